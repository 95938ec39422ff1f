"""Tests for services/crypto.py and the EncryptedString column type."""

from __future__ import annotations

import pytest
from cryptography.fernet import Fernet

from services.crypto import (
    EncryptionKeyMissing,
    InvalidSecret,
    decrypt_secret,
    encrypt_secret,
)


@pytest.mark.parametrize(
    "plaintext",
    ["a", "sk-live-1234567890", "with spaces and ümlauts ✓", "x" * 500, "line\nbreak"],
)
def test_roundtrip(plaintext):
    token = encrypt_secret(plaintext)
    assert token != plaintext
    assert decrypt_secret(token) == plaintext


def test_fresh_iv_per_call():
    tokens = {encrypt_secret("same-secret") for _ in range(5)}
    assert len(tokens) == 5
    assert all(decrypt_secret(t) == "same-secret" for t in tokens)


def test_empty_values_pass_through():
    assert encrypt_secret("") == ""
    assert decrypt_secret("") == ""


def test_explicit_key():
    key = Fernet.generate_key().decode()
    token = encrypt_secret("s", key=key)
    assert decrypt_secret(token, key=key) == "s"


def test_wrong_key_raises():
    token = encrypt_secret("s", key=Fernet.generate_key().decode())
    with pytest.raises(InvalidSecret):
        decrypt_secret(token, key=Fernet.generate_key().decode())


def test_tampered_token_raises():
    with pytest.raises(InvalidSecret):
        decrypt_secret("not-a-fernet-token")


def test_missing_key(monkeypatch):
    from config import settings

    monkeypatch.setattr(settings, "FIELD_ENCRYPTION_KEY", "")
    with pytest.raises(EncryptionKeyMissing):
        encrypt_secret("secret")


class TestEncryptedString:
    def test_bind_and_result(self):
        from models.encrypted import EncryptedString

        col = EncryptedString()
        stored = col.process_bind_param("sk-1", None)
        assert stored != "sk-1"
        assert col.process_result_value(stored, None) == "sk-1"

    def test_empty_passthrough(self):
        from models.encrypted import EncryptedString

        col = EncryptedString()
        assert col.process_bind_param("", None) == ""
        assert col.process_result_value(None, None) is None

    def test_undecryptable_value_reads_as_empty(self, caplog):
        from models.encrypted import EncryptedString

        with caplog.at_level("WARNING"):
            assert EncryptedString().process_result_value("garbage", None) == ""
        assert "undecryptable" in caplog.text
