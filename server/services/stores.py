"""Chat stores the session talks to: in-process (DB) or over the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

import httpx
from sqlalchemy.orm import Session

from models.user import User
from services import chats
from services.errors import (
    ChatError,
    InvalidInput,
    NotFound,
    PersistenceFailure,
    Unauthenticated,
)


class ChatStore(Protocol):
    @property
    def is_authenticated(self) -> bool: ...

    def append(
        self, chat_id: str | None, role: str, content: str, timestamp: datetime
    ) -> tuple[dict, str]: ...

    def get_messages(self, chat_id: str) -> list[dict]: ...

    def update_title(self, chat_id: str, title: str) -> dict: ...

    def list_chats(self) -> list[dict]: ...


class LocalChatStore:
    """Calls the persistence service directly, bound to one DB session and user."""

    def __init__(self, db: Session, user: User | None):
        self.db = db
        self.user = user

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None

    def append(self, chat_id, role, content, timestamp):
        message, new_chat_id = chats.create_or_append(
            self.db, self.user, chat_id, role, content, timestamp
        )
        return chats.serialize_message(message), new_chat_id

    def get_messages(self, chat_id):
        _, messages = chats.get_chat(self.db, self.user, chat_id)
        return [chats.serialize_message(m) for m in messages]

    def update_title(self, chat_id, title):
        return chats.serialize_chat(chats.update_title(self.db, self.user, chat_id, title))

    def list_chats(self):
        return [chats.serialize_chat(c) for c in chats.list_chats(self.db, self.user)]


_MESSAGE_KEYS = {"role", "content", "timestamp"}

_STATUS_ERRORS: dict[int, type[ChatError]] = {
    400: InvalidInput,
    401: Unauthenticated,
    403: Unauthenticated,
    404: NotFound,
}


class HttpChatStore:
    """Talks to ``/api/v1/messages/`` and ``/api/v1/chats/`` with a bearer token.

    *client* carries the base URL and ``Authorization`` header. A
    ``fastapi.testclient.TestClient`` works too.
    """

    def __init__(self, client: httpx.Client, prefix: str = "/api/v1"):
        self.client = client
        self.prefix = prefix.rstrip("/")

    @property
    def is_authenticated(self) -> bool:
        return bool(self.client.headers.get("Authorization"))

    def _request(self, method: str, path: str, **kwargs):
        try:
            resp = self.client.request(method, f"{self.prefix}{path}", **kwargs)
        except httpx.HTTPError as exc:
            raise PersistenceFailure(f"Chat store unreachable: {exc}") from None

        try:
            data = resp.json()
        except ValueError:
            data = None

        if resp.is_success:
            if data is None:
                raise PersistenceFailure("Chat store returned a non-JSON body.")
            return data

        detail = data.get("detail") if isinstance(data, dict) else None
        error_cls = _STATUS_ERRORS.get(resp.status_code, PersistenceFailure)
        raise error_cls(detail if isinstance(detail, str) else None)

    @staticmethod
    def _field(data, key: str, kind: type):
        value = data.get(key) if isinstance(data, dict) else None
        if not isinstance(value, kind):
            raise PersistenceFailure("Chat store returned an unexpected body.")
        return value

    def append(self, chat_id, role, content, timestamp):
        body = {
            "chatId": chat_id,
            "message": {"role": role, "content": content, "timestamp": timestamp.isoformat()},
        }
        data = self._request("POST", "/messages/", json=body)
        return self._field(data, "message", dict), self._field(data, "chatId", str)

    def get_messages(self, chat_id):
        messages = self._field(self._request("GET", f"/chats/{chat_id}/"), "messages", list)
        if not all(isinstance(m, dict) and _MESSAGE_KEYS <= m.keys() for m in messages):
            raise PersistenceFailure("Chat store returned an unexpected body.")
        return messages

    def update_title(self, chat_id, title):
        return self._request("PATCH", f"/chats/{chat_id}/", json={"title": title})

    def list_chats(self):
        chats_data = self._request("GET", "/chats/")
        if not isinstance(chats_data, list) or not all(isinstance(c, dict) and "id" in c for c in chats_data):
            raise PersistenceFailure("Chat store returned an unexpected body.")
        return chats_data
