"""Client for the legacy binary push notification gateway and feedback service."""

from apns_pusher.feedback import Feedbacker
from apns_pusher.protocol import FeedbackRecord, Notification, PushProtocol
from apns_pusher.protocol.exceptions import (
    CallerError,
    FeedbackDecodeError,
    InvalidTokenError,
    PayloadError,
    PushProtocolError,
)
from apns_pusher.pusher import Pusher
from apns_pusher.structs import Credentials, FeedbackerOptions, PusherOptions
from apns_pusher.transport import (
    APNSConnectionError,
    ConnectError,
    ConnectionPool,
    RetryPolicy,
    TransportSession,
)

__version__ = "0.1.0"

__all__ = [
    "APNSConnectionError",
    "CallerError",
    "ConnectError",
    "ConnectionPool",
    "Credentials",
    "FeedbackDecodeError",
    "FeedbackRecord",
    "Feedbacker",
    "FeedbackerOptions",
    "InvalidTokenError",
    "Notification",
    "PayloadError",
    "PushProtocol",
    "PushProtocolError",
    "Pusher",
    "PusherOptions",
    "RetryPolicy",
    "TransportSession",
    "__version__",
]
