"""Shared EncryptedString column type."""

from __future__ import annotations

import logging

from sqlalchemy import String
from sqlalchemy.types import TypeDecorator

from services.crypto import InvalidSecret, decrypt_secret, encrypt_secret

logger = logging.getLogger(__name__)


class EncryptedString(TypeDecorator):
    """Transparently encrypts/decrypts string values using Fernet."""

    impl = String
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value:
            return encrypt_secret(value)
        return value

    def process_result_value(self, value, dialect):
        if not value:
            return value
        try:
            return decrypt_secret(value)
        except InvalidSecret:
            # Key rotated or row written elsewhere; treat as no credential
            logger.warning("Discarding undecryptable secret value")
            return ""
