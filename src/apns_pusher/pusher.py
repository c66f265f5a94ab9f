"""Notification sender for the binary push gateway."""

from __future__ import annotations

from collections.abc import Iterable

from apns_pusher import metrics
from apns_pusher.instrumentation import timed
from apns_pusher.logging_abstraction import get_logger
from apns_pusher.protocol import PushProtocol
from apns_pusher.protocol.exceptions import PushProtocolError
from apns_pusher.protocol.push_protocol import PayloadSerializer
from apns_pusher.structs import Credentials, PusherOptions
from apns_pusher.transport import ConnectionPool, TransportSession

logger = get_logger(__name__)


class Pusher:
    """Sends notification frames to the gateway through a ConnectionPool.

    Frames are encoded before any connection is touched, so a malformed token
    or message fails fast and never leaves a partial batch on the wire.
    """

    def __init__(
        self,
        pool: ConnectionPool,
        *,
        host: str | None = None,
        port: int | None = None,
        serializer: PayloadSerializer | None = None,
    ):
        defaults = PusherOptions()
        self.pool = pool
        self.host = host or defaults.host
        self.port = port or defaults.port
        self.serializer = serializer

    @classmethod
    def from_options(cls, credentials: Credentials, options: PusherOptions | None = None) -> Pusher:
        """Build a Pusher with its own pool from typed options."""
        options = options or PusherOptions()
        pool = ConnectionPool(
            credentials,
            cache_connections=options.cache_connections,
            idle_timeout=options.idle_timeout,
        )
        return cls(pool, host=options.host, port=options.port)

    @property
    def cache_connections(self) -> bool:
        return self.pool.cache_connections

    # ── Explicit endpoint ───────────────────────────────────────────

    @timed("send_one")
    def send_one(self, host: str, port: int, device_token: str, message: object) -> None:
        """Write one notification frame and flush.

        Raises:
            CallerError: Malformed token or message (nothing is sent)
            APNSConnectionError: Transport kept failing across the retry budget
            ConnectError: The gateway could not be reached
        """
        frame = PushProtocol.encode_notification(device_token, message, serializer=self.serializer)

        def write_frame(session: TransportSession) -> None:
            session.write(frame)
            session.flush()

        self.pool.with_connection(host, port, write_frame, operation_name="send_notification")
        metrics.record_notifications_sent(metrics.endpoint_label(host, port))
        logger.debug(
            "Sent notification to %s:%d",
            host,
            port,
            extra={"host": host, "port": port, "frame_bytes": len(frame)},
        )

    @timed("send_many")
    def send_many(self, host: str, port: int, notifications: Iterable[tuple[str, object]]) -> None:
        """Write every frame in order on one session, then flush once.

        A failure part-way through re-sends the whole batch on a new session.
        """
        frames = [
            PushProtocol.encode_notification(device_token, message, serializer=self.serializer)
            for device_token, message in notifications
        ]
        if not frames:
            logger.debug("No notifications to send", extra={"host": host, "port": port})
            return

        def write_frames(session: TransportSession) -> None:
            for frame in frames:
                session.write(frame)
            session.flush()

        self.pool.with_connection(host, port, write_frames, operation_name="send_notifications")
        metrics.record_notifications_sent(metrics.endpoint_label(host, port), len(frames))
        logger.info(
            "Sent %d notifications to %s:%d",
            len(frames),
            host,
            port,
            extra={"host": host, "port": port, "count": len(frames)},
        )

    # ── Default endpoint ────────────────────────────────────────────

    def send_notification(self, device_token: str, message: object) -> None:
        self.send_one(self.host, self.port, device_token, message)

    def send_notifications(self, notifications: Iterable[tuple[str, object]]) -> None:
        self.send_many(self.host, self.port, notifications)

    def establish_notification_connection(self) -> bool:
        """Open the cached gateway connection ahead of the first send.

        Returns:
            True if a cached connection is ready, False when caching is off or
            the gateway could not be reached
        """
        if not self.cache_connections:
            return False
        try:
            self.pool.get_or_create(self.host, self.port)
        except (PushProtocolError, OSError) as e:
            logger.warning(
                "Could not pre-establish connection to %s:%d: %s",
                self.host,
                self.port,
                e,
                extra={"host": self.host, "port": self.port, "error_type": type(e).__name__},
            )
            return False
        return True

    def has_notification_connection(self) -> bool:
        return self.pool.has_connection(self.host, self.port)

    def close(self) -> None:
        """Close the cached gateway connection."""
        self.pool.evict(self.host, self.port)
