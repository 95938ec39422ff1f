"""Error taxonomy shared by the chat store, completion client, and chat session."""

from __future__ import annotations


class ChatError(Exception):
    """Base class. ``code`` is stable and safe to show to clients."""

    code = "chat_error"
    status_code = 500
    default_message = "Something went wrong."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class Unauthenticated(ChatError):
    code = "unauthenticated"
    status_code = 401
    default_message = "Authentication required."


class NotFound(ChatError):
    # Same signal for "missing" and "owned by another user"
    code = "not_found"
    status_code = 404
    default_message = "Chat not found."


class InvalidInput(ChatError):
    code = "invalid_input"
    status_code = 400
    default_message = "Invalid message data."


class ConfigurationMissing(ChatError):
    code = "configuration_missing"
    status_code = 409
    default_message = "No completion endpoint is configured."


class UpstreamFailure(ChatError):
    code = "upstream_failure"
    status_code = 502
    default_message = "The completion endpoint did not return a reply."


class PersistenceFailure(ChatError):
    code = "persistence_failure"
    status_code = 500
    default_message = "Failed to save message."


class SessionBusy(ChatError):
    code = "session_busy"
    status_code = 409
    default_message = "A message is already being sent."
