"""Exception types for push protocol errors.

Caller errors (bad tokens, unsupported messages, malformed feedback blocks)
are never retried by the connection pool. They share the ``CallerError``
base so callers can catch them separately from transport failures.
"""

from __future__ import annotations


class PushProtocolError(Exception):
    """Base exception for all push client errors."""


class CallerError(PushProtocolError):
    """Input supplied by the caller cannot be encoded or decoded.

    Attributes:
        reason: Specific failure reason (e.g., "invalid_hex", "too_large")
    """

    def __init__(self, reason: str, message: str | None = None):
        self.reason = reason
        super().__init__(message or reason)


class InvalidTokenError(CallerError):
    """Device token is not 32 bytes of hex-encoded data."""

    def __init__(self, reason: str, token: str = ""):
        # Only keep a short prefix of the token for diagnostics
        self.token_preview = token[:8]
        super().__init__(reason, f"Invalid device token: {reason}")


class PayloadError(CallerError):
    """Message cannot be serialized into a notification payload.

    Attributes:
        size: Serialized payload size in bytes (0 when serialization failed)
    """

    def __init__(self, reason: str, size: int = 0):
        self.size = size
        super().__init__(reason, f"Invalid notification payload: {reason}")


class FeedbackDecodeError(CallerError):
    """Feedback block cannot be decoded.

    Attributes:
        data_preview: First 16 bytes of the block (keeps tokens out of logs)
    """

    def __init__(self, reason: str, data: bytes = b""):
        self.data_preview = data[:16] if data else b""
        super().__init__(reason, f"Feedback decode failed: {reason}")


class FrameDecodeError(CallerError):
    """Notification frame cannot be decoded."""

    def __init__(self, reason: str, data: bytes = b""):
        self.data_preview = data[:16] if data else b""
        super().__init__(reason, f"Notification frame decode failed: {reason}")
