"""User settings schemas. The completion credential is write-only."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SettingsOut(BaseModel):
    selectedAvatar: str
    selectedVoice: str
    flowiseApiUrl: str


class SettingsUpdate(BaseModel):
    """POST body. All fields optional; only present fields are written."""

    model_config = ConfigDict(extra="ignore")

    selectedAvatar: str | None = Field(None, min_length=1, max_length=100)
    selectedVoice: str | None = Field(None, min_length=1, max_length=255)
    flowiseApiUrl: str | None = Field(None, max_length=2048)
    flowiseApiKey: str | None = Field(None, max_length=512)
