"""Auth schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    email: str = Field(min_length=3, max_length=255, pattern=r"^[^@\s]+@[^@\s]+$")
    password: str = Field(min_length=4)


class RegisterResponse(BaseModel):
    id: int
    name: str
    email: str
    createdAt: datetime | None = None


class TokenRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    key: str


class MeResponse(BaseModel):
    id: int
    name: str
    email: str
