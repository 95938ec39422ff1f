"""ChatSession: the in-memory transcript for one user's active chat.

Coordinates the three I/O legs of an exchange (persist the user turn, call
the completion endpoint, persist the assistant turn) and keeps the transcript
as a display cache. Entries are appended optimistically and flagged
``confirmed`` once the store acknowledges them; a later failure never removes
an entry.

Callers serialize calls. One exchange runs at a time; a ``send_message``
issued while another is in flight is rejected with ``SessionBusy``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

from logging_config import chat_id_var
from models.chat import utcnow
from services.chats import to_utc_naive
from services.completion import CompletionClient, EndpointConfig
from services.errors import (
    ChatError,
    ConfigurationMissing,
    InvalidInput,
    PersistenceFailure,
    SessionBusy,
    Unauthenticated,
)
from services.stores import ChatStore

logger = logging.getLogger(__name__)

Role = Literal["user", "assistant"]


@dataclass
class TranscriptEntry:
    role: Role
    content: str
    timestamp: datetime
    confirmed: bool = False
    message_id: int | None = None

    def to_export(self) -> dict:
        return {"role": self.role, "content": self.content, "timestamp": self.timestamp.isoformat() + "Z"}


@dataclass
class SessionOutcome:
    ok: bool
    transcript: list[TranscriptEntry] = field(default_factory=list)
    chat_id: str | None = None
    error_code: str | None = None
    error: str | None = None
    exception: ChatError | None = field(default=None, repr=False)


def _parse_timestamp(value) -> datetime:
    if isinstance(value, datetime):
        return to_utc_naive(value)
    return to_utc_naive(datetime.fromisoformat(str(value).replace("Z", "+00:00")))


class ChatSession:
    def __init__(
        self,
        store: ChatStore,
        endpoint: EndpointConfig | None = None,
        completion: CompletionClient | None = None,
        *,
        chat_id: str | None = None,
        auto_load_history: bool | None = None,
    ):
        if auto_load_history is None:
            from config import settings

            auto_load_history = settings.AUTO_LOAD_HISTORY

        self.store = store
        self.endpoint = endpoint or EndpointConfig()
        self.completion = completion or CompletionClient()
        self.auto_load_history = auto_load_history

        self.transcript: list[TranscriptEntry] = []
        self.active_chat_id: str | None = chat_id
        self.pending = False
        self.last_error: str | None = None

    # ── helpers ──────────────────────────────────────────────────────────────

    def _outcome(self, error: ChatError | None = None) -> SessionOutcome:
        if error is not None:
            self.last_error = error.message
            logger.warning("%s: %s", error.code, error.message)
        return SessionOutcome(
            ok=error is None,
            transcript=list(self.transcript),
            chat_id=self.active_chat_id,
            error_code=error.code if error else None,
            error=error.message if error else None,
            exception=error,
        )

    def _persist(self, entry: TranscriptEntry) -> None:
        saved, chat_id = self.store.append(
            self.active_chat_id, entry.role, entry.content, entry.timestamp
        )
        if self.active_chat_id != chat_id:
            logger.info("Session adopted chat %s", chat_id)
        self.active_chat_id = chat_id
        chat_id_var.set(chat_id)
        entry.message_id = saved.get("id")
        entry.confirmed = True

    def last_assistant_message(self) -> TranscriptEntry | None:
        """The reply the presentation layer should speak, if any."""
        for entry in reversed(self.transcript):
            if entry.role == "assistant":
                return entry
        return None

    # ── operations ───────────────────────────────────────────────────────────

    def send_message(self, text: str) -> SessionOutcome:
        if self.pending:
            return self._outcome(SessionBusy())
        if not text or not text.strip():
            return self._outcome(InvalidInput("Message must not be empty."))
        if not self.store.is_authenticated:
            return self._outcome(Unauthenticated())
        if not self.endpoint.is_configured:
            return self._outcome(ConfigurationMissing())

        self.pending = True
        self.last_error = None
        try:
            user_entry = TranscriptEntry(role="user", content=text, timestamp=utcnow())
            self.transcript.append(user_entry)
            try:
                self._persist(user_entry)
                reply = self.completion.complete(self.endpoint, text)
            except ChatError as exc:
                return self._outcome(exc)

            # Never earlier than the turn it answers, even if the clock steps back
            reply_entry = TranscriptEntry(
                role="assistant",
                content=reply,
                timestamp=max(utcnow(), user_entry.timestamp),
            )
            self.transcript.append(reply_entry)
            try:
                self._persist(reply_entry)
            except ChatError as exc:
                return self._outcome(exc)
            return self._outcome()
        finally:
            self.pending = False

    def start_new_chat(self) -> None:
        self.transcript = []
        self.active_chat_id = None
        self.last_error = None

    def load_chat(self, chat_id: str) -> SessionOutcome:
        if not self.store.is_authenticated:
            return self._outcome(Unauthenticated())
        try:
            messages = self.store.get_messages(chat_id)
            transcript = [
                TranscriptEntry(
                    role=m["role"],
                    content=m["content"],
                    timestamp=_parse_timestamp(m["timestamp"]),
                    confirmed=True,
                    message_id=m.get("id"),
                )
                for m in messages
            ]
        except ChatError as exc:
            return self._outcome(exc)
        except ValueError:
            return self._outcome(PersistenceFailure("Stored message has an unreadable timestamp."))

        self.transcript = transcript
        self.active_chat_id = chat_id
        self.last_error = None
        chat_id_var.set(chat_id)
        return self._outcome()

    def save_chat(self, title: str | None = None) -> bool:
        if not self.active_chat_id:
            return False
        title = title or f"Chat {utcnow():%Y-%m-%d %H:%M}"
        try:
            self.store.update_title(self.active_chat_id, title)
        except ChatError as exc:
            self._outcome(exc)
            return False
        return True

    def mount(self) -> SessionOutcome:
        """Restore the most recently updated chat when history auto-load is on."""
        if not self.auto_load_history or not self.store.is_authenticated:
            return self._outcome()
        try:
            recent = self.store.list_chats()
        except ChatError as exc:
            return self._outcome(exc)
        if not recent:
            return self._outcome()
        return self.load_chat(recent[0]["id"])

    def export_transcript(self) -> dict:
        return {
            "messages": [entry.to_export() for entry in self.transcript],
            "exportedAt": utcnow().isoformat() + "Z",
        }

    def export_json(self) -> str:
        return json.dumps(self.export_transcript(), indent=2)

    @staticmethod
    def export_filename() -> str:
        return f"chat-history-{utcnow():%Y-%m-%d}.json"
