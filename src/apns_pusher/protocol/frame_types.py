"""Wire constants and frame dataclasses for the binary push protocol.

Frame Overview (all multi-byte integers big-endian):
- Notification (client → gateway):
  [0x00][0x00][0x20][token:32][0x00][len:1][payload:len]
- Feedback record (feedback service → client):
  [timestamp:4][token_length:2][token:32], fixed 38-byte stride
"""

from dataclasses import dataclass
from datetime import UTC, datetime

# Notification frame
COMMAND_SIMPLE_NOTIFICATION = 0x00
DEVICE_TOKEN_LENGTH_BYTES = 32
NOTIFICATION_HEADER_LENGTH = 3  # command (1) + token length (2)
PAYLOAD_LENGTH_FIELD_BYTES = 2  # high byte always 0x00, low byte carries the length
MAX_PAYLOAD_LENGTH = 0xFF  # one usable length byte
NOTIFICATION_OVERHEAD = NOTIFICATION_HEADER_LENGTH + DEVICE_TOKEN_LENGTH_BYTES + PAYLOAD_LENGTH_FIELD_BYTES

# Feedback record
FEEDBACK_TIMESTAMP_BYTES = 4
FEEDBACK_TOKEN_LENGTH_BYTES = 2
FEEDBACK_TUPLE_LENGTH = FEEDBACK_TIMESTAMP_BYTES + FEEDBACK_TOKEN_LENGTH_BYTES + DEVICE_TOKEN_LENGTH_BYTES
FEEDBACK_STRUCT_FORMAT = ">IH32s"


@dataclass(frozen=True)
class Notification:
    """A decoded notification frame.

    Attributes:
        device_token: 64 lowercase hex characters
        payload: Serialized payload bytes
    """

    device_token: str
    payload: bytes


@dataclass(frozen=True)
class FeedbackRecord:
    """One entry from the feedback service.

    Attributes:
        timestamp: Seconds since the epoch (UTC) at which the token was reported
        token_length: Token length field (32 in every known record)
        device_token: 64 lowercase hex characters
    """

    timestamp: int
    token_length: int
    device_token: str

    @property
    def feedback_at(self) -> datetime:
        return datetime.fromtimestamp(self.timestamp, tz=UTC)
