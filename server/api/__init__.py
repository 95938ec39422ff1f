"""FastAPI router aggregation."""

from fastapi import APIRouter

from api.auth import router as auth_router
from api.messages import router as messages_router
from api.chats import router as chats_router
from api.settings import router as settings_router
from api.assistant import router as assistant_router

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(auth_router, prefix="/auth", tags=["auth"])
api_router.include_router(messages_router, prefix="/messages", tags=["messages"])
api_router.include_router(chats_router, prefix="/chats", tags=["chats"])
api_router.include_router(settings_router, prefix="/settings", tags=["settings"])
api_router.include_router(assistant_router, prefix="/assistant", tags=["assistant"])
