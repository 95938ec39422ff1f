"""Per-user settings: avatar, voice, and completion endpoint configuration."""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session
from sqlalchemy.orm.attributes import flag_modified

from config import settings
from models.user import User
from models.user_settings import UserSettings
from services.chats import commit_or_fail
from services.completion import EndpointConfig
from services.errors import Unauthenticated

logger = logging.getLogger(__name__)

# Request field name -> column name
_FIELD_MAP = {
    "selectedAvatar": "selected_avatar",
    "selectedVoice": "selected_voice",
    "flowiseApiUrl": "completion_url",
}


def _find(db: Session, user: User) -> UserSettings | None:
    return db.execute(
        select(UserSettings).where(UserSettings.user_id == user.id)
    ).scalar_one_or_none()


def _to_public(row: UserSettings | None) -> dict:
    # The stored credential is never part of a response
    if row is None:
        return {
            "selectedAvatar": settings.DEFAULT_AVATAR,
            "selectedVoice": settings.DEFAULT_VOICE,
            "flowiseApiUrl": "",
        }
    return {
        "selectedAvatar": row.selected_avatar,
        "selectedVoice": row.selected_voice,
        "flowiseApiUrl": row.completion_url or "",
    }


def create_default_settings(db: Session, user: User) -> UserSettings:
    row = UserSettings(
        user_id=user.id,
        selected_avatar=settings.DEFAULT_AVATAR,
        selected_voice=settings.DEFAULT_VOICE,
        completion_url="",
        completion_api_key="",
    )
    db.add(row)
    return row


def get_settings(db: Session, user: User | None) -> dict:
    if user is None:
        raise Unauthenticated()
    return _to_public(_find(db, user))


def put_settings(db: Session, user: User | None, updates: dict) -> dict:
    """Upsert the fields present in *updates*.

    An empty or missing ``flowiseApiKey`` keeps the stored credential.
    """
    if user is None:
        raise Unauthenticated()

    row = _find(db, user)
    if row is None:
        row = create_default_settings(db, user)

    for field_name, column in _FIELD_MAP.items():
        if updates.get(field_name) is not None:
            setattr(row, column, updates[field_name])

    api_key = updates.get("flowiseApiKey")
    if api_key:
        row.completion_api_key = api_key
        # Re-encrypt with a fresh IV even when the value is unchanged
        flag_modified(row, "completion_api_key")
        logger.info("Stored new completion credential for user %s", user.id)

    commit_or_fail(db, "Failed to save settings.")
    db.refresh(row)
    return _to_public(row)


def endpoint_config(db: Session, user: User | None, timeout: float | None = None) -> EndpointConfig:
    """Completion endpoint config with the decrypted credential, for server-side use only."""
    if user is None:
        raise Unauthenticated()
    row = _find(db, user)
    if row is None:
        return EndpointConfig(timeout=timeout)
    return EndpointConfig(
        url=row.completion_url or "",
        credential=row.completion_api_key or "",
        timeout=timeout,
    )
