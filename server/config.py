"""Pydantic settings loaded from .env, with conf.json overlay."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings

BASE_DIR = Path(__file__).resolve().parent

# ---------------------------------------------------------------------------
# conf.json: runtime config (separate from .env secrets)
# ---------------------------------------------------------------------------


def get_data_dir() -> Path:
    """Resolve the data directory. AVATAR_CHAT_DIR env var or ~/.config/avatar-chat."""
    d = os.environ.get("AVATAR_CHAT_DIR", "")
    return Path(d).expanduser() if d else Path.home() / ".config" / "avatar-chat"


class AppConfig(BaseModel):
    database_url: str = ""
    log_level: str = ""
    log_file: str = ""
    cors_allow_all_origins: bool | None = None  # None = use Settings default
    completion_timeout_seconds: float | None = None
    auto_load_history: bool | None = None


_logger = logging.getLogger(__name__)


def load_conf() -> AppConfig:
    """Load conf.json from the data directory."""
    conf_path = get_data_dir() / "conf.json"
    if conf_path.exists():
        try:
            return AppConfig.model_validate_json(conf_path.read_text())
        except Exception:
            _logger.warning("Failed to parse %s, using defaults", conf_path, exc_info=True)
    return AppConfig()


# ---------------------------------------------------------------------------
# Secret auto-generation
# ---------------------------------------------------------------------------


def _ensure_secrets(env_file: Path) -> None:
    """Generate FIELD_ENCRYPTION_KEY if missing, append to .env."""
    from cryptography.fernet import Fernet

    if os.environ.get("FIELD_ENCRYPTION_KEY"):
        return

    key = Fernet.generate_key().decode()
    os.environ["FIELD_ENCRYPTION_KEY"] = key
    env_file.parent.mkdir(parents=True, exist_ok=True)
    with open(env_file, "a") as f:
        f.write(f"\nFIELD_ENCRYPTION_KEY={key}\n")


# ---------------------------------------------------------------------------
# Bootstrap: load .env, generate secrets, load conf.json
# ---------------------------------------------------------------------------

_env_file = BASE_DIR.parent / ".env"
load_dotenv(_env_file)
_ensure_secrets(_env_file)
_conf = load_conf()

# ---------------------------------------------------------------------------
# Settings (pydantic-settings): .env / env vars override conf.json defaults
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    DATABASE_URL: str = _conf.database_url or f"sqlite:///{BASE_DIR / 'db.sqlite3'}"

    FIELD_ENCRYPTION_KEY: str = ""

    CORS_ALLOW_ALL_ORIGINS: bool = (
        _conf.cors_allow_all_origins if _conf.cors_allow_all_origins is not None else True
    )

    LOG_LEVEL: str = _conf.log_level or "INFO"
    LOG_FILE: str = _conf.log_file or ""
    LOG_MAX_BYTES: int = 10_485_760
    LOG_BACKUP_COUNT: int = 5

    # Completion endpoint calls have no upstream deadline of their own
    COMPLETION_TIMEOUT_SECONDS: float = (
        _conf.completion_timeout_seconds if _conf.completion_timeout_seconds is not None else 60.0
    )
    AUTO_LOAD_HISTORY: bool = (
        _conf.auto_load_history if _conf.auto_load_history is not None else False
    )

    DEFAULT_AVATAR: str = "default"
    DEFAULT_VOICE: str = "default"

    model_config = ConfigDict(
        env_file=str(BASE_DIR.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )


settings = Settings()
