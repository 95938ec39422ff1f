"""Log formatting for the API server.

Every record carries the requesting user and the chat being worked on, taken
from two context variables:

    user_id_var   set by ``auth.get_current_user``
    chat_id_var   set by the persistence service and ``ChatSession``

so a line reads::

    2026-10-18 14:30:01 [Server][User 3][Chat 1a2b3c4d][INFO] services.chats:88 - Created chat ...

Call ``setup_logging("Server")`` once at startup; repeated calls are no-ops.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from contextvars import ContextVar
from pathlib import Path

user_id_var: ContextVar[str] = ContextVar("user_id_var", default="")
chat_id_var: ContextVar[str] = ContextVar("chat_id_var", default="")

LINE_FORMAT = "%(asctime)s %(context)s %(name)s:%(lineno)d - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_STREAM_HANDLER = "_avatar_chat_stream"
_FILE_HANDLER = "_avatar_chat_file"

# Third-party loggers that log every request at INFO
_QUIET_LOGGERS = ("httpx", "httpcore")


class ContextFilter(logging.Filter):
    """Copies the process role and the current user/chat ids onto each record."""

    def __init__(self, role: str) -> None:
        super().__init__()
        self.role = role

    def filter(self, record: logging.LogRecord) -> bool:
        record.role = self.role  # type: ignore[attr-defined]
        record.user_id = user_id_var.get("")  # type: ignore[attr-defined]
        record.chat_id = chat_id_var.get("")  # type: ignore[attr-defined]
        return True


def _context_prefix(record: logging.LogRecord) -> str:
    role = getattr(record, "role", "")
    user_id = getattr(record, "user_id", "")
    chat_id = getattr(record, "chat_id", "")

    prefix = f"[{role}]" if role else ""
    if user_id:
        prefix += f"[User {user_id}]"
    if chat_id:
        # uuid4 ids; the first block is enough to tell chats apart in a log
        prefix += f"[Chat {chat_id[:8]}]"
    return prefix + f"[{record.levelname}]"


class ContextFormatter(logging.Formatter):
    def __init__(self, fmt: str = LINE_FORMAT, datefmt: str | None = DATE_FORMAT) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)

    def format(self, record: logging.LogRecord) -> str:
        record.context = _context_prefix(record)  # type: ignore[attr-defined]
        return super().format(record)


def _attach(root: logging.Logger, handler: logging.Handler, name: str, role: str) -> None:
    handler.name = name
    handler.addFilter(ContextFilter(role))
    handler.setFormatter(ContextFormatter())
    root.addHandler(handler)


def setup_logging(role: str) -> None:
    """Route all logging through the context-aware format on stderr.

    A rotating file is added when ``settings.LOG_FILE`` is set. For the
    server role, uvicorn's own loggers are folded into root.
    """
    from config import settings

    root = logging.getLogger()
    if any(getattr(h, "name", None) == _STREAM_HANDLER for h in root.handlers):
        return

    root.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    _attach(root, logging.StreamHandler(sys.stderr), _STREAM_HANDLER, role)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            str(log_path),
            maxBytes=settings.LOG_MAX_BYTES,
            backupCount=settings.LOG_BACKUP_COUNT,
            encoding="utf-8",
        )
        _attach(root, file_handler, _FILE_HANDLER, role)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    if role.lower() == "server":
        for name in ("uvicorn", "uvicorn.access", "uvicorn.error"):
            uv_logger = logging.getLogger(name)
            uv_logger.handlers.clear()
            uv_logger.propagate = True
