"""Transport package: TLS sessions, connection pooling, and retry policy."""

from apns_pusher.transport.connection_pool import ConnectionPool
from apns_pusher.transport.exceptions import (
    APNSConnectionError,
    ConnectError,
    is_transient_connect_error,
    is_transient_io_error,
)
from apns_pusher.transport.retry_policy import RetryOutcome, RetryPolicy
from apns_pusher.transport.session import TransportSession

__all__ = [
    "APNSConnectionError",
    "ConnectError",
    "ConnectionPool",
    "RetryOutcome",
    "RetryPolicy",
    "TransportSession",
    "is_transient_connect_error",
    "is_transient_io_error",
]
