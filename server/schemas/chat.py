"""Chat, message, and assistant reply schemas."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

RoleStr = Literal["user", "assistant"]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class MessageIn(CamelModel):
    role: RoleStr
    content: str = Field(min_length=1)
    timestamp: datetime | None = None

    @field_validator("content")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("content must not be blank")
        return value


class MessageCreate(CamelModel):
    chat_id: str | None = None
    message: MessageIn


class MessageOut(CamelModel):
    id: int
    chat_id: str
    role: RoleStr
    content: str
    timestamp: datetime


class MessageCreateResponse(CamelModel):
    message: MessageOut
    chat_id: str


class ChatOut(CamelModel):
    id: str
    title: str | None = None
    created_at: datetime
    updated_at: datetime


class ChatDetailOut(ChatOut):
    messages: list[MessageOut] = []


class ChatUpdate(CamelModel):
    title: str | None = Field(None, max_length=255)


class ChatDeleteResponse(CamelModel):
    success: bool = True


class AssistantReplyIn(CamelModel):
    chat_id: str | None = None
    message: str


class TranscriptEntryOut(CamelModel):
    role: RoleStr
    content: str
    timestamp: datetime
    confirmed: bool


class AssistantReplyOut(CamelModel):
    chat_id: str | None = None
    messages: list[TranscriptEntryOut]
