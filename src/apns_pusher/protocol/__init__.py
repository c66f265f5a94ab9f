"""Push protocol package: notification encoding and feedback decoding.

Public API:
- Protocol encoder/decoder (PushProtocol)
- Frame dataclasses (Notification, FeedbackRecord)
- Wire constants
"""

from apns_pusher.protocol.frame_types import (
    DEVICE_TOKEN_LENGTH_BYTES,
    FEEDBACK_TUPLE_LENGTH,
    MAX_PAYLOAD_LENGTH,
    FeedbackRecord,
    Notification,
)
from apns_pusher.protocol.push_protocol import PushProtocol, json_serializer

__all__ = [
    "DEVICE_TOKEN_LENGTH_BYTES",
    "FEEDBACK_TUPLE_LENGTH",
    "MAX_PAYLOAD_LENGTH",
    "FeedbackRecord",
    "Notification",
    "PushProtocol",
    "json_serializer",
]
