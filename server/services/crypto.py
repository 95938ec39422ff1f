"""Symmetric encryption for credentials stored at rest.

Fernet tokens carry a fresh random IV alongside the ciphertext and an HMAC,
so the same plaintext encrypts differently on every write.
"""

from __future__ import annotations

from cryptography.fernet import Fernet, InvalidToken


class EncryptionKeyMissing(RuntimeError):
    pass


class InvalidSecret(ValueError):
    pass


def _fernet(key: str | None = None) -> Fernet:
    if key is None:
        from config import settings

        key = settings.FIELD_ENCRYPTION_KEY
    if not key:
        raise EncryptionKeyMissing("FIELD_ENCRYPTION_KEY is not set.")
    return Fernet(key.encode())


def encrypt_secret(plaintext: str, key: str | None = None) -> str:
    if not plaintext:
        return ""
    return _fernet(key).encrypt(plaintext.encode()).decode()


def decrypt_secret(token: str, key: str | None = None) -> str:
    if not token:
        return ""
    try:
        return _fernet(key).decrypt(token.encode()).decode()
    except InvalidToken as exc:
        raise InvalidSecret("Stored secret could not be decrypted.") from exc
