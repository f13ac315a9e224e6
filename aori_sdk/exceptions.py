"""
Exceptions for the Aori SDK.
"""
from typing import Optional


class AoriError(Exception):
    """Base exception for all Aori SDK errors."""
    pass


class ConfigurationError(AoriError):
    """Raised when credentials or endpoints are missing or malformed."""
    pass


class AoriConnectionError(AoriError):
    """Raised when a channel or the chain node cannot be reached."""
    pass


class SigningError(AoriError):
    """Raised when the held key cannot produce a signature."""
    pass


class SendError(AoriError):
    """
    Raised when an envelope could not be written to its channel.

    The session that raised it must be treated as unusable afterwards.
    """

    def __init__(self, message: str, method: Optional[str] = None, request_id: Optional[int] = None):
        self.method = method
        self.request_id = request_id
        super().__init__(message)


class ProtocolError(AoriError):
    """Raised when a response frame is malformed or reports an error."""

    def __init__(self, message: str, request_id: Optional[int] = None, error: Optional[dict] = None):
        self.request_id = request_id
        self.error = error
        super().__init__(message)


class SessionStateError(AoriError):
    """Raised when an operation is not allowed in the session's current phase."""
    pass
