"""SQLAlchemy models, re-exported."""

from models.user import User, APIKey  # noqa: F401
from models.user_settings import UserSettings  # noqa: F401
from models.chat import Chat, ChatMessage, MessageRole  # noqa: F401
