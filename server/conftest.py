"""Root conftest: shared fixtures for all server tests."""

from __future__ import annotations

import os
import sys
from pathlib import Path

# Ensure server/ is on sys.path
_server_dir = str(Path(__file__).resolve().parent)
if _server_dir not in sys.path:
    sys.path.insert(0, _server_dir)

# Set encryption key for tests
if not os.environ.get("FIELD_ENCRYPTION_KEY"):
    from cryptography.fernet import Fernet
    os.environ["FIELD_ENCRYPTION_KEY"] = Fernet.generate_key().decode()

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base
import models  # noqa: F401 (registers models with Base)

# Use in-memory SQLite for tests. StaticPool ensures all connections share the same DB
TEST_ENGINE = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSession = sessionmaker(bind=TEST_ENGINE, autoflush=False, expire_on_commit=False)


@pytest.fixture(autouse=True)
def _setup_db():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=TEST_ENGINE)
    yield
    Base.metadata.drop_all(bind=TEST_ENGINE)


@pytest.fixture(autouse=True)
def _reset_log_context():
    """Keep logging context vars set by one test from leaking into the next."""
    from logging_config import chat_id_var, user_id_var

    user_token = user_id_var.set("")
    chat_token = chat_id_var.set("")
    yield
    chat_id_var.reset(chat_token)
    user_id_var.reset(user_token)


@pytest.fixture
def db():
    """Yield a test database session."""
    session = TestSession()
    try:
        yield session
    finally:
        session.close()


def _make_user(db, name, email, password=b"testpass"):
    import bcrypt
    from models.user import User

    user = User(
        name=name,
        email=email,
        password_hash=bcrypt.hashpw(password, bcrypt.gensalt(4)).decode(),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def user(db):
    return _make_user(db, "Test User", "test@example.com")


@pytest.fixture
def other_user(db):
    return _make_user(db, "Other User", "other@example.com")


@pytest.fixture
def api_key(db, user):
    from models.user import APIKey

    key = APIKey(user_id=user.id)
    db.add(key)
    db.commit()
    db.refresh(key)
    return key


@pytest.fixture
def other_api_key(db, other_user):
    from models.user import APIKey

    key = APIKey(user_id=other_user.id)
    db.add(key)
    db.commit()
    db.refresh(key)
    return key


# ---------------------------------------------------------------------------
# HTTP clients with the database dependency overridden
# ---------------------------------------------------------------------------


@pytest.fixture
def app(db):
    """Create a test FastAPI app with DB overridden to use test session."""
    from main import app as _app
    from database import get_db

    def _override_get_db():
        yield db

    _app.dependency_overrides[get_db] = _override_get_db
    yield _app
    _app.dependency_overrides.clear()


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def auth_client(client, api_key):
    client.headers["Authorization"] = f"Bearer {api_key.key}"
    return client


@pytest.fixture
def other_client(app, other_api_key):
    c = TestClient(app)
    c.headers["Authorization"] = f"Bearer {other_api_key.key}"
    return c
