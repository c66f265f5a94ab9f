"""Blocking TLS-over-TCP session to one gateway endpoint."""

from __future__ import annotations

import contextlib
import errno
import socket
import ssl
import time
from collections.abc import Callable
from typing import BinaryIO

from apns_pusher.const import APNS_CONN_IDLE_TIMEOUT, APNS_CONNECT_TIMEOUT, APNS_IO_TIMEOUT
from apns_pusher.instrumentation import measure_time
from apns_pusher.logging_abstraction import get_logger
from apns_pusher.transport.exceptions import ConnectError, is_transient_connect_error

logger = get_logger(__name__)

Clock = Callable[[], float]


class TransportSession:
    """One encrypted socket to one (host, port).

    Writes go through a buffered stream over the TLS socket; ``flush`` pushes
    them to the wire. Every write refreshes ``last_activity``, which the
    connection pool compares against the idle timeout.
    """

    def __init__(
        self,
        host: str,
        port: int,
        sock: socket.socket,
        ssl_sock: ssl.SSLSocket | None = None,
        *,
        clock: Clock = time.time,
    ):
        """
        Wrap an already connected socket.

        Args:
            host: Remote host
            port: Remote port
            sock: Connected TCP socket
            ssl_sock: TLS socket wrapping ``sock`` (None for a plain TCP session)
            clock: Wall clock used for idle tracking
        """
        self.host = host
        self.port = port
        self.sock = sock
        self.ssl = ssl_sock
        self._clock = clock
        self._stream: BinaryIO = (ssl_sock or sock).makefile("rwb")
        self._closed = False
        self.last_activity: float = clock()

    @classmethod
    def open(
        cls,
        host: str,
        port: int,
        ssl_context: ssl.SSLContext | None,
        *,
        connect_timeout: float = APNS_CONNECT_TIMEOUT,
        io_timeout: float | None = APNS_IO_TIMEOUT,
        clock: Clock = time.time,
    ) -> TransportSession:
        """
        Establish TCP, then negotiate TLS with the given context.

        Args:
            host: Remote host
            port: Remote port
            ssl_context: Client TLS context (None skips TLS, for local test peers)
            connect_timeout: TCP connect timeout in seconds
            io_timeout: Socket timeout for reads and writes (None blocks forever)
            clock: Wall clock used for idle tracking

        Returns:
            Open session

        Raises:
            ConnectError: TCP or TLS establishment failed. ``transient`` is set
                for OS-level failures that another attempt may overcome.
        """
        start_time = time.perf_counter()
        try:
            sock = socket.create_connection((host, port), timeout=connect_timeout)
        except OSError as e:
            logger.warning(
                "Connection to %s:%d failed after %.1fms: %s",
                host,
                port,
                measure_time(start_time),
                e,
                extra={"host": host, "port": port, "error": str(e), "error_type": type(e).__name__},
            )
            reason = str(e) or type(e).__name__
            raise ConnectError(host, port, 1, reason, transient=is_transient_connect_error(e)) from e

        ssl_sock: ssl.SSLSocket | None = None
        try:
            if ssl_context is not None:
                ssl_sock = ssl_context.wrap_socket(sock, server_hostname=host)
            (ssl_sock or sock).settimeout(io_timeout)
        except OSError as e:
            with contextlib.suppress(OSError):
                sock.close()
            logger.warning(
                "TLS negotiation with %s:%d failed: %s",
                host,
                port,
                e,
                extra={"host": host, "port": port, "error": str(e), "error_type": type(e).__name__},
            )
            reason = str(e) or type(e).__name__
            raise ConnectError(host, port, 1, reason, transient=is_transient_connect_error(e)) from e

        session = cls(host, port, sock, ssl_sock, clock=clock)
        logger.info(
            "Connected to %s:%d in %.1fms",
            host,
            port,
            measure_time(start_time),
            extra={"host": host, "port": port, "tls": ssl_sock is not None},
        )
        return session

    def write(self, data: bytes) -> None:
        """Write all of ``data`` to the session buffer.

        Raises:
            OSError: Session closed or socket failure
        """
        self._ensure_open()
        self.last_activity = self._clock()
        self._stream.write(data)
        logger.debug(
            "Wrote %d bytes to %s:%d",
            len(data),
            self.host,
            self.port,
            extra={"bytes": len(data), "host": self.host, "port": self.port},
        )

    def flush(self) -> None:
        """Force buffered bytes to the wire."""
        self._ensure_open()
        self._stream.flush()

    def read(self, n: int) -> bytes | None:
        """Block until ``n`` bytes arrive or the peer ends the stream.

        Returns:
            Exactly ``n`` bytes, fewer if the stream ended mid-read, or None if
            the stream ended before any byte arrived
        """
        self._ensure_open()
        data = self._stream.read(n)
        if not data:
            logger.debug(
                "End of stream from %s:%d",
                self.host,
                self.port,
                extra={"host": self.host, "port": self.port},
            )
            return None
        return data

    def is_closed(self) -> bool:
        return self._closed

    def is_idle_expired(self, now: float | None = None, threshold_seconds: float | None = None) -> bool:
        """True when more than ``threshold_seconds`` passed since the last write."""
        if now is None:
            now = self._clock()
        if threshold_seconds is None:
            threshold_seconds = APNS_CONN_IDLE_TIMEOUT
        return (now - self.last_activity) > threshold_seconds

    def close(self) -> None:
        """Tear down the stream, the TLS layer, then the socket. Idempotent."""
        if self._closed:
            return
        self._closed = True
        logger.debug(
            "Closing connection to %s:%d",
            self.host,
            self.port,
            extra={"host": self.host, "port": self.port},
        )
        for resource in (self._stream, self.ssl, self.sock):
            if resource is None:
                continue
            try:
                resource.close()
            except OSError as e:
                # Peer may already have dropped the connection; nothing left to release
                logger.debug(
                    "Error closing connection: %s",
                    e,
                    extra={"host": self.host, "port": self.port, "error_type": type(e).__name__},
                )

    def _ensure_open(self) -> None:
        if self._closed:
            raise BrokenPipeError(errno.EPIPE, f"session to {self.host}:{self.port} is closed")

    def __repr__(self) -> str:
        status = "closed" if self._closed else "open"
        return f"TransportSession({self.host}:{self.port}, {status})"
