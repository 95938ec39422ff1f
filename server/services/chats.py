"""Message persistence: chats and their messages, scoped to the owning user."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from logging_config import chat_id_var
from models.chat import Chat, ChatMessage, MessageRole, utcnow
from models.user import User
from services.crypto import EncryptionKeyMissing
from services.errors import InvalidInput, NotFound, PersistenceFailure, Unauthenticated

logger = logging.getLogger(__name__)


def to_utc_naive(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _require_user(user: User | None) -> User:
    if user is None:
        raise Unauthenticated()
    return user


def _validate_message(role, content) -> MessageRole:
    try:
        parsed = MessageRole(role)
    except ValueError:
        raise InvalidInput("Message role must be 'user' or 'assistant'.") from None
    if not isinstance(content, str) or not content.strip():
        raise InvalidInput("Message content must not be empty.")
    return parsed


def _owned_chat(db: Session, user: User, chat_id: str) -> Chat:
    chat = db.execute(
        select(Chat).where(Chat.id == chat_id, Chat.user_id == user.id)
    ).scalar_one_or_none()
    if chat is None:
        raise NotFound()
    return chat


def commit_or_fail(db: Session, failure_message: str) -> None:
    """Commit, or roll back and raise PersistenceFailure."""
    try:
        db.commit()
    except (SQLAlchemyError, EncryptionKeyMissing):
        db.rollback()
        logger.exception(failure_message)
        raise PersistenceFailure(failure_message) from None


def create_or_append(
    db: Session,
    user: User | None,
    chat_id: str | None,
    role,
    content,
    timestamp: datetime | None = None,
) -> tuple[ChatMessage, str]:
    """Append a message to ``chat_id``, or start a new chat when it is None.

    Returns the stored message and the id of the chat it landed in.
    """
    user = _require_user(user)
    parsed_role = _validate_message(role, content)
    stamp = to_utc_naive(timestamp) if timestamp else utcnow()

    try:
        if chat_id:
            chat = _owned_chat(db, user, chat_id)
            chat.updated_at = utcnow()
        else:
            chat = Chat(user_id=user.id)
            db.add(chat)
            db.flush()
        message = ChatMessage(chat_id=chat.id, role=parsed_role, content=content, timestamp=stamp)
        db.add(message)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Failed to save message")
        raise PersistenceFailure() from None

    commit_or_fail(db, "Failed to save message.")
    db.refresh(message)

    chat_id_var.set(chat.id)
    if not chat_id:
        logger.info("Created chat %s for user %s", chat.id, user.id)
    return message, chat.id


def get_chat(db: Session, user: User | None, chat_id: str) -> tuple[Chat, list[ChatMessage]]:
    """Return the chat and its messages, oldest first."""
    user = _require_user(user)
    chat = _owned_chat(db, user, chat_id)
    messages = list(
        db.execute(
            select(ChatMessage)
            .where(ChatMessage.chat_id == chat.id)
            .order_by(ChatMessage.timestamp.asc(), ChatMessage.id.asc())
        ).scalars().all()
    )
    return chat, messages


def list_chats(db: Session, user: User | None) -> list[Chat]:
    user = _require_user(user)
    stmt = (
        select(Chat)
        .where(Chat.user_id == user.id)
        .order_by(Chat.updated_at.desc(), Chat.created_at.desc())
    )
    return list(db.execute(stmt).scalars().all())


def update_title(db: Session, user: User | None, chat_id: str, title: str | None) -> Chat:
    user = _require_user(user)
    chat = _owned_chat(db, user, chat_id)
    chat.title = title
    chat.updated_at = utcnow()
    commit_or_fail(db, "Failed to update chat.")
    db.refresh(chat)
    return chat


def delete_chat(db: Session, user: User | None, chat_id: str) -> None:
    user = _require_user(user)
    chat = _owned_chat(db, user, chat_id)
    db.delete(chat)
    commit_or_fail(db, "Failed to delete chat.")
    logger.info("Deleted chat %s", chat_id)


# ── Serializers (API response shapes) ─────────────────────────────────────────


def serialize_message(message: ChatMessage) -> dict:
    return {
        "id": message.id,
        "chat_id": message.chat_id,
        "role": message.role.value,
        "content": message.content,
        "timestamp": message.timestamp,
    }


def serialize_chat(chat: Chat, messages: list[ChatMessage] | None = None) -> dict:
    data = {
        "id": chat.id,
        "title": chat.title,
        "created_at": chat.created_at,
        "updated_at": chat.updated_at,
    }
    if messages is not None:
        data["messages"] = [serialize_message(m) for m in messages]
    return data
