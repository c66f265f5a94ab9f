"""Binary push protocol encoder/decoder.

Implements the simple notification frame sent to the gateway and the
fixed-size tuple returned by the feedback service. All methods are
stateless.
"""

from __future__ import annotations

import json
import re
import struct
from collections.abc import Callable, Mapping

from apns_pusher.logging_abstraction import get_logger
from apns_pusher.protocol.exceptions import (
    FeedbackDecodeError,
    FrameDecodeError,
    InvalidTokenError,
    PayloadError,
)
from apns_pusher.protocol.frame_types import (
    COMMAND_SIMPLE_NOTIFICATION,
    DEVICE_TOKEN_LENGTH_BYTES,
    FEEDBACK_STRUCT_FORMAT,
    FEEDBACK_TUPLE_LENGTH,
    MAX_PAYLOAD_LENGTH,
    NOTIFICATION_OVERHEAD,
    FeedbackRecord,
    Notification,
)

# command, token length, token, payload length
_NOTIFICATION_HEADER_FORMAT = ">BH32sH"
_TOKEN_NOISE = re.compile(r"[\s<>|]")

PayloadSerializer = Callable[[object], bytes]

logger = get_logger(__name__)


def json_serializer(message: object) -> bytes:
    """Serialize to compact UTF-8 JSON (no whitespace between tokens)."""
    return json.dumps(message, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


class PushProtocol:
    """Push protocol encoder/decoder.

    Provides static methods for building notification frames and parsing
    feedback tuples. No instance state is kept.
    """

    @staticmethod
    def package_token(device_token: str) -> bytes:
        """Convert a hex device token into its 32 raw bytes.

        Whitespace and the ``<``, ``>`` and ``|`` characters are stripped first,
        so tokens copied from device logs (``<7dfbc9b5 2916a6c3 ...>``) work.

        Raises:
            InvalidTokenError: If the token is not hex or not 32 bytes long

        Example:
            >>> len(PushProtocol.package_token("<" + "ab" * 32 + ">"))
            32

        """
        if not isinstance(device_token, str):
            error_reason = "token_not_text"
            raise InvalidTokenError(error_reason)

        normalized = _TOKEN_NOISE.sub("", device_token)
        try:
            raw = bytes.fromhex(normalized)
        except ValueError as e:
            error_reason = "invalid_hex"
            raise InvalidTokenError(error_reason, normalized) from e

        if len(raw) != DEVICE_TOKEN_LENGTH_BYTES:
            error_reason = f"expected_{DEVICE_TOKEN_LENGTH_BYTES}_bytes_got_{len(raw)}"
            raise InvalidTokenError(error_reason, normalized)
        return raw

    @staticmethod
    def package_message(message: object, serializer: PayloadSerializer | None = None) -> bytes:
        """Serialize a message into payload bytes.

        - Mapping or list: serialized as-is
        - str: wrapped as ``{"aps":{"alert":<text>}}``

        Args:
            message: Structured message or alert text
            serializer: Replaces the default compact JSON serializer

        Raises:
            PayloadError: Unsupported message type, serializer failure, or a
                payload longer than one length byte can describe

        """
        if isinstance(message, str):
            structured: object = {"aps": {"alert": message}}
        elif isinstance(message, Mapping):
            structured = dict(message)
        elif isinstance(message, list):
            structured = message
        else:
            error_reason = "message must be structured or text"
            raise PayloadError(error_reason)

        encode = serializer or json_serializer
        try:
            payload = encode(structured)
        except (TypeError, ValueError) as e:
            error_reason = "not_serializable"
            raise PayloadError(error_reason) from e

        if not isinstance(payload, bytes | bytearray):
            error_reason = "serializer must return bytes"
            raise PayloadError(error_reason)

        if len(payload) > MAX_PAYLOAD_LENGTH:
            error_reason = f"payload is {len(payload)} bytes, frame length field holds at most {MAX_PAYLOAD_LENGTH}"
            raise PayloadError(error_reason, size=len(payload))
        return bytes(payload)

    @staticmethod
    def encode_notification(
        device_token: str,
        message: object,
        *,
        serializer: PayloadSerializer | None = None,
    ) -> bytes:
        """Encode a simple notification frame.

        Frame structure:
        - Byte 0: command (0x00)
        - Bytes 1-2: token length (0x00 0x20)
        - Bytes 3-34: device token
        - Byte 35: 0x00
        - Byte 36: payload length
        - Bytes 37+: payload

        Args:
            device_token: 64 hex characters (decorations allowed, see package_token)
            message: Mapping, list, or alert text
            serializer: Optional payload serializer (default: compact JSON)

        Returns:
            Complete frame bytes

        Raises:
            InvalidTokenError: Malformed token
            PayloadError: Unsupported or oversized message

        """
        token = PushProtocol.package_token(device_token)
        payload = PushProtocol.package_message(message, serializer)

        frame = (
            struct.pack(
                _NOTIFICATION_HEADER_FORMAT,
                COMMAND_SIMPLE_NOTIFICATION,
                DEVICE_TOKEN_LENGTH_BYTES,
                token,
                len(payload),
            )
            + payload
        )

        logger.debug(
            "Encoded notification frame",
            extra={"token_prefix": token[:4].hex(), "payload_bytes": len(payload), "frame_bytes": len(frame)},
        )
        return frame

    @staticmethod
    def decode_notification(frame: bytes) -> Notification:
        """Decode a simple notification frame produced by encode_notification.

        Raises:
            FrameDecodeError: Wrong command byte, token length, or frame size

        """
        if len(frame) < NOTIFICATION_OVERHEAD:
            error_reason = "too_short"
            raise FrameDecodeError(error_reason, frame)

        command, token_length, token, payload_length = struct.unpack_from(_NOTIFICATION_HEADER_FORMAT, frame)
        if command != COMMAND_SIMPLE_NOTIFICATION:
            error_reason = f"unknown_command_0x{command:02x}"
            raise FrameDecodeError(error_reason, frame)
        if token_length != DEVICE_TOKEN_LENGTH_BYTES:
            error_reason = "invalid_token_length"
            raise FrameDecodeError(error_reason, frame)
        if len(frame) != NOTIFICATION_OVERHEAD + payload_length:
            error_reason = "invalid_length"
            raise FrameDecodeError(error_reason, frame)

        return Notification(device_token=token.hex(), payload=frame[NOTIFICATION_OVERHEAD:])

    @staticmethod
    def decode_feedback_tuple(data: bytes) -> FeedbackRecord:
        """Decode one 38-byte feedback tuple.

        Tuple structure (big-endian):
        - Bytes 0-3: timestamp, seconds since the epoch in UTC
        - Bytes 4-5: token length (always 32)
        - Bytes 6-37: device token

        Raises:
            FeedbackDecodeError: If data is not exactly 38 bytes

        Example:
            >>> block = bytes.fromhex("6553f100" "0020") + bytes(32)
            >>> PushProtocol.decode_feedback_tuple(block).timestamp
            1700000000

        """
        if len(data) != FEEDBACK_TUPLE_LENGTH:
            error_reason = f"expected_{FEEDBACK_TUPLE_LENGTH}_bytes_got_{len(data)}"
            raise FeedbackDecodeError(error_reason, data)

        timestamp, token_length, token = struct.unpack(FEEDBACK_STRUCT_FORMAT, data)
        if token_length != DEVICE_TOKEN_LENGTH_BYTES:
            logger.warning(
                "Feedback tuple declares unexpected token length %d",
                token_length,
                extra={"token_length": token_length},
            )
        return FeedbackRecord(timestamp=timestamp, token_length=token_length, device_token=token.hex())

    @staticmethod
    def encode_feedback_tuple(timestamp: int, device_token: str) -> bytes:
        """Encode a feedback tuple, as the feedback service would send it."""
        return struct.pack(
            FEEDBACK_STRUCT_FORMAT,
            timestamp,
            DEVICE_TOKEN_LENGTH_BYTES,
            PushProtocol.package_token(device_token),
        )
