"""Exception types and error classification for the transport layer."""

from __future__ import annotations

import ssl

from apns_pusher.protocol.exceptions import PushProtocolError


class ConnectError(PushProtocolError):
    """Transport or TLS layer could not be established.

    Raised after the open retry budget is spent, or immediately when TLS
    negotiation is rejected.

    Attributes:
        host: Remote host
        port: Remote port
        attempts: Number of establishment attempts made
        reason: Specific failure reason
        transient: Whether another attempt could succeed (OS-level failure)
    """

    def __init__(self, host: str, port: int, attempts: int, reason: str, *, transient: bool = False):
        self.host = host
        self.port = port
        self.attempts = attempts
        self.reason = reason
        self.transient = transient
        super().__init__(f"Could not connect to {host}:{port} after {attempts} attempt(s): {reason}")


class APNSConnectionError(PushProtocolError):
    """Operation kept failing with transport errors until the retry budget ran out.

    Note: Named APNSConnectionError to avoid shadowing Python's built-in ConnectionError.

    Attributes:
        operation: Name of the pooled operation (e.g. "send_notification")
        host: Remote host
        port: Remote port
        attempts: Number of attempts made
        last_error: The final underlying transport error
    """

    def __init__(
        self,
        operation: str,
        host: str,
        port: int,
        attempts: int,
        last_error: BaseException | None = None,
    ):
        self.operation = operation
        self.host = host
        self.port = port
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"{operation} to {host}:{port} failed: tried {attempts} times to reconnect but failed: {last_error!r}"
        )


def is_transient_io_error(exc: BaseException) -> bool:
    """Return True for in-flight transport errors worth a reconnect.

    Covers broken pipes, timeouts, TLS layer errors, and any other OSError
    raised while reading or writing an established session.
    """
    return isinstance(exc, BrokenPipeError | TimeoutError | ssl.SSLError | OSError)


def is_transient_connect_error(exc: BaseException) -> bool:
    """Return True for connection-establishment failures worth another attempt.

    OS-level failures (refused, reset, unreachable, timed out) qualify; a TLS
    negotiation error does not, since the credentials will not change between
    attempts.
    """
    return isinstance(exc, OSError) and not isinstance(exc, ssl.SSLError)
