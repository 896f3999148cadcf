"""Custom exceptions for the conversation session layer."""

from __future__ import annotations

LOCAL_ERROR_CODE = 500


class ConversationError(RuntimeError):
    """Base class for errors raised while preparing or sending a call."""

    def __init__(self, message: str, *, code: int = LOCAL_ERROR_CODE) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class LocalRequestError(ConversationError):
    """Raised when a call is rejected before anything is sent to the server."""


class InvalidEntitiesError(LocalRequestError):
    """Raised when an entity list argument is not a sequence."""


class InvalidAudioError(LocalRequestError):
    """Raised when audio passed to a call cannot be submitted."""


class TransportError(ConversationError):
    """Raised when the transport could not obtain a JSON payload."""
