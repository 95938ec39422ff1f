"""Shared helpers for API routers."""

from __future__ import annotations

from fastapi import HTTPException

from services.errors import ChatError


def http_error(exc: ChatError) -> HTTPException:
    """Translate a service error into the matching HTTP response."""
    return HTTPException(status_code=exc.status_code, detail=exc.message)
