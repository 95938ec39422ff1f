"""Message persistence endpoint: append to a chat, or start one."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api._helpers import http_error
from auth import get_current_user
from database import get_db
from models.user import User
from schemas.chat import MessageCreate, MessageCreateResponse
from services import chats
from services.errors import ChatError

router = APIRouter()


@router.post(
    "/",
    response_model=MessageCreateResponse,
    responses={400: {"description": "Invalid message"}, 404: {"description": "Chat not found"}},
)
def create_message(
    payload: MessageCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    try:
        message, chat_id = chats.create_or_append(
            db,
            user,
            payload.chat_id,
            payload.message.role,
            payload.message.content,
            payload.message.timestamp,
        )
    except ChatError as exc:
        raise http_error(exc) from None
    return {"message": chats.serialize_message(message), "chat_id": chat_id}
