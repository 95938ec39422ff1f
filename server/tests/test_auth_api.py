"""Tests for registration, token, and bearer authentication."""

from __future__ import annotations

from models.user import User
from models.user_settings import UserSettings


def _register(client, email="new@example.com", password="s3cret!", name="New User"):
    return client.post(
        "/api/v1/auth/register/",
        json={"name": name, "email": email, "password": password},
    )


class TestRegister:
    def test_register(self, client, db):
        resp = _register(client)
        assert resp.status_code == 201
        data = resp.json()
        assert data["email"] == "new@example.com"
        assert "password" not in data
        assert "passwordHash" not in data

        user = db.query(User).filter(User.email == "new@example.com").one()
        assert user.password_hash != "s3cret!"
        assert db.query(UserSettings).filter(UserSettings.user_id == user.id).count() == 1

    def test_duplicate_email(self, client, user):
        resp = _register(client, email=user.email)
        assert resp.status_code == 409

    def test_missing_fields(self, client):
        resp = client.post("/api/v1/auth/register/", json={"email": "a@b.c"})
        assert resp.status_code == 400


class TestToken:
    def test_obtain_token(self, client, user):
        resp = client.post("/api/v1/auth/token/", json={"email": "test@example.com", "password": "testpass"})
        assert resp.status_code == 200
        assert len(resp.json()["key"]) == 36

    def test_invalid_credentials(self, client, user):
        resp = client.post("/api/v1/auth/token/", json={"email": "test@example.com", "password": "nope"})
        assert resp.status_code == 401

    def test_token_regenerates_key(self, client, user):
        creds = {"email": "test@example.com", "password": "testpass"}
        first = client.post("/api/v1/auth/token/", json=creds).json()["key"]
        second = client.post("/api/v1/auth/token/", json=creds).json()["key"]
        assert first != second

        client.headers["Authorization"] = f"Bearer {first}"
        assert client.get("/api/v1/auth/me/").status_code == 401
        client.headers["Authorization"] = f"Bearer {second}"
        assert client.get("/api/v1/auth/me/").status_code == 200

    def test_register_then_login_then_chat(self, client):
        _register(client)
        key = client.post(
            "/api/v1/auth/token/", json={"email": "new@example.com", "password": "s3cret!"}
        ).json()["key"]
        client.headers["Authorization"] = f"Bearer {key}"

        resp = client.post("/api/v1/messages/", json={"message": {"role": "user", "content": "hi"}})
        assert resp.status_code == 200


def test_me(auth_client, user):
    resp = auth_client.get("/api/v1/auth/me/")
    assert resp.json() == {"id": user.id, "name": user.name, "email": user.email}


def test_me_unauthenticated(client):
    resp = client.get("/api/v1/auth/me/")
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Authentication required."
