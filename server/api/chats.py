"""Chat history endpoints. Every lookup is scoped to the caller."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api._helpers import http_error
from auth import get_current_user
from database import get_db
from models.user import User
from schemas.chat import ChatDeleteResponse, ChatDetailOut, ChatOut, ChatUpdate
from services import chats
from services.errors import ChatError

router = APIRouter()


@router.get("/", response_model=list[ChatOut])
def list_chats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return [chats.serialize_chat(c) for c in chats.list_chats(db, user)]


@router.get("/{chat_id}/", response_model=ChatDetailOut)
def get_chat(
    chat_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        chat, messages = chats.get_chat(db, user, chat_id)
    except ChatError as exc:
        raise http_error(exc) from None
    return chats.serialize_chat(chat, messages)


@router.patch("/{chat_id}/", response_model=ChatOut)
def update_chat(
    chat_id: str,
    payload: ChatUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        chat = chats.update_title(db, user, chat_id, payload.title)
    except ChatError as exc:
        raise http_error(exc) from None
    return chats.serialize_chat(chat)


@router.delete("/{chat_id}/", response_model=ChatDeleteResponse)
def delete_chat(
    chat_id: str,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        chats.delete_chat(db, user, chat_id)
    except ChatError as exc:
        raise http_error(exc) from None
    return {"success": True}
