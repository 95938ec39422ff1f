"""Server-side exchange: runs a ChatSession with the caller's stored endpoint.

The decrypted completion credential stays on the server.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api._helpers import http_error
from auth import get_current_user
from database import get_db
from models.user import User
from schemas.chat import AssistantReplyIn, AssistantReplyOut
from services.completion import CompletionClient
from services.session import ChatSession
from services.stores import LocalChatStore
from services.user_settings import endpoint_config

router = APIRouter()


def get_completion_client() -> CompletionClient:
    return CompletionClient()


@router.post(
    "/reply/",
    response_model=AssistantReplyOut,
    responses={
        404: {"description": "Chat not found"},
        409: {"description": "No completion endpoint configured"},
        502: {"description": "Completion endpoint failed"},
    },
)
def reply(
    payload: AssistantReplyIn,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    completion: CompletionClient = Depends(get_completion_client),
):
    session = ChatSession(
        LocalChatStore(db, user),
        endpoint_config(db, user),
        completion,
        auto_load_history=False,
    )
    if payload.chat_id:
        loaded = session.load_chat(payload.chat_id)
        if not loaded.ok:
            raise http_error(loaded.exception)

    outcome = session.send_message(payload.message)
    if not outcome.ok:
        raise http_error(outcome.exception)

    return {
        "chat_id": outcome.chat_id,
        "messages": [
            {
                "role": e.role,
                "content": e.content,
                "timestamp": e.timestamp,
                "confirmed": e.confirmed,
            }
            for e in outcome.transcript
        ],
    }