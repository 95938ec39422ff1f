"""Per-user preferences: avatar, voice, and completion endpoint."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from database import Base
from models.encrypted import EncryptedString


class UserSettings(Base):
    __tablename__ = "user_settings"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), unique=True)
    selected_avatar: Mapped[str] = mapped_column(String(100), default="default")
    selected_voice: Mapped[str] = mapped_column(String(255), default="default")
    completion_url: Mapped[str] = mapped_column(String(2048), default="")
    completion_api_key: Mapped[str] = mapped_column(EncryptedString(1024), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime, server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.now(), onupdate=func.now()
    )

    user: Mapped["User"] = relationship("User", back_populates="settings")  # noqa: F821

    def __repr__(self):
        return f"<UserSettings user_id={self.user_id} avatar={self.selected_avatar}>"
