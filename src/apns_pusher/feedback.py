"""Feedback service reader."""

from __future__ import annotations

from apns_pusher import metrics
from apns_pusher.instrumentation import timed
from apns_pusher.logging_abstraction import get_logger
from apns_pusher.protocol import FEEDBACK_TUPLE_LENGTH, FeedbackRecord, PushProtocol
from apns_pusher.structs import Credentials, FeedbackerOptions
from apns_pusher.transport import ConnectionPool, TransportSession

logger = get_logger(__name__)


class Feedbacker:
    """Drains the feedback service into FeedbackRecords.

    Feedback sessions are single-use: the service sends its records and closes
    the stream, so caching is always off for these operations, whatever the
    pool's own setting.
    """

    def __init__(self, pool: ConnectionPool, *, host: str | None = None, port: int | None = None):
        defaults = FeedbackerOptions()
        self.pool = pool
        self.host = host or defaults.host
        self.port = port or defaults.port

    @classmethod
    def from_options(cls, credentials: Credentials, options: FeedbackerOptions | None = None) -> Feedbacker:
        options = options or FeedbackerOptions()
        return cls(ConnectionPool(credentials, cache_connections=False), host=options.host, port=options.port)

    @timed("drain_feedback")
    def drain_feedback(self, host: str, port: int) -> list[FeedbackRecord]:
        """Read 38-byte tuples until the service ends the stream.

        A trailing block cut short by the end of stream is logged and dropped.

        Returns:
            Records in the order the service sent them
        """

        def read_all(session: TransportSession) -> list[FeedbackRecord]:
            records: list[FeedbackRecord] = []
            while (block := session.read(FEEDBACK_TUPLE_LENGTH)) is not None:
                if len(block) < FEEDBACK_TUPLE_LENGTH:
                    logger.warning(
                        "Feedback stream from %s:%d ended mid-record, dropping %d trailing bytes",
                        host,
                        port,
                        len(block),
                        extra={"host": host, "port": port, "bytes": len(block)},
                    )
                    break
                records.append(PushProtocol.decode_feedback_tuple(block))
            return records

        records = self.pool.with_connection(host, port, read_all, cache=False, operation_name="feedback")
        metrics.record_feedback_records(metrics.endpoint_label(host, port), len(records))
        logger.info(
            "Read %d feedback records from %s:%d",
            len(records),
            host,
            port,
            extra={"host": host, "port": port, "count": len(records)},
        )
        return records

    def feedback(self) -> list[FeedbackRecord]:
        """Drain the default feedback endpoint."""
        return self.drain_feedback(self.host, self.port)
