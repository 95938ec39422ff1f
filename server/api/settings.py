"""Settings API: per-user avatar, voice, and completion endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api._helpers import http_error
from auth import get_current_user
from database import get_db
from models.user import User
from schemas.settings import SettingsOut, SettingsUpdate
from services import user_settings
from services.errors import ChatError

router = APIRouter()


@router.get("/", response_model=SettingsOut)
def get_settings(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Return the caller's settings, defaulted when none were saved."""
    return user_settings.get_settings(db, user)


@router.post("/", response_model=SettingsOut)
def update_settings(
    payload: SettingsUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Upsert the supplied fields. The credential is stored encrypted and never echoed."""
    try:
        return user_settings.put_settings(db, user, payload.model_dump(exclude_unset=True))
    except ChatError as exc:
        raise http_error(exc) from None
