"""Connection pool keyed by (host, port) with idle expiry and bounded retries.

Per key the pool is in one of three states:

- Absent: nothing cached; the next acquire opens a session
- Cached-Live: the cached session is open and inside its idle window; reused
- Cached-Expired/Dead: idle for too long or closed; replaced on the next acquire

Every pooled operation runs inside a retry envelope. A transport error
(broken pipe, timeout, TLS error, other OSError) evicts the cached session
and repeats the whole acquire-and-invoke cycle on a fresh one.
"""

from __future__ import annotations

import functools
import ssl
import threading
import time
from collections.abc import Callable
from types import TracebackType
from typing import Protocol, Self, TypeVar

from apns_pusher import metrics
from apns_pusher.const import (
    APNS_CONN_IDLE_TIMEOUT,
    APNS_CONNECT_TIMEOUT,
    APNS_IO_TIMEOUT,
    APNS_OPEN_MAX_ATTEMPTS,
    APNS_OPEN_RETRY_DELAY,
    APNS_OPERATION_MAX_ATTEMPTS,
)
from apns_pusher.correlation import correlation_context
from apns_pusher.logging_abstraction import get_logger
from apns_pusher.structs import Credentials
from apns_pusher.transport.exceptions import APNSConnectionError, ConnectError, is_transient_io_error
from apns_pusher.transport.retry_policy import RetryPolicy
from apns_pusher.transport.session import Clock, TransportSession

logger = get_logger(__name__)

T = TypeVar("T")
Key = tuple[str, int]


class SessionFactory(Protocol):
    def __call__(
        self,
        host: str,
        port: int,
        ssl_context: ssl.SSLContext | None,
        *,
        clock: Clock,
    ) -> TransportSession: ...


def _is_retryable_connect_error(exc: BaseException) -> bool:
    return isinstance(exc, ConnectError) and exc.transient


class ConnectionPool:
    """Owns zero or one cached TransportSession per (host, port).

    Threads may share a pool: operations on the same key are serialized by a
    per-key re-entrant lock, operations on different keys run concurrently.
    Cached sessions live until evicted or until ``close_all`` (or leaving the
    ``with`` block) tears the pool down.
    """

    def __init__(
        self,
        credentials: Credentials | None = None,
        *,
        cache_connections: bool = False,
        idle_timeout: float = APNS_CONN_IDLE_TIMEOUT,
        tls: bool = True,
        open_policy: RetryPolicy | None = None,
        operation_policy: RetryPolicy | None = None,
        session_factory: SessionFactory | None = None,
        clock: Clock = time.time,
    ):
        """
        Args:
            credentials: Client certificate material (required when tls=True)
            cache_connections: Keep sessions open between operations (off by
                default: every operation opens and closes its own session)
            idle_timeout: Seconds since the last write after which a cached
                session is replaced
            tls: Negotiate TLS (False only for plain TCP test peers)
            open_policy: Retry policy for establishing a session
                (default: 5 attempts, 1s apart)
            operation_policy: Retry policy for pooled operations
                (default: 5 attempts, no delay)
            session_factory: Opens a session; defaults to TransportSession.open
            clock: Wall clock shared with the sessions for idle tracking
        """
        if tls and credentials is None:
            error_msg = "credentials are required when tls is enabled"
            raise ValueError(error_msg)

        self.credentials = credentials
        self.cache_connections = cache_connections
        self.idle_timeout = idle_timeout
        self.tls = tls
        self.open_policy = open_policy or RetryPolicy(
            max_attempts=APNS_OPEN_MAX_ATTEMPTS,
            base_delay_seconds=APNS_OPEN_RETRY_DELAY,
        )
        self.operation_policy = operation_policy or RetryPolicy(
            max_attempts=APNS_OPERATION_MAX_ATTEMPTS,
            base_delay_seconds=0.0,
        )
        self._session_factory: SessionFactory = session_factory or functools.partial(
            TransportSession.open,
            connect_timeout=APNS_CONNECT_TIMEOUT,
            io_timeout=APNS_IO_TIMEOUT,
        )
        self._clock = clock
        self._ssl_context: ssl.SSLContext | None = None
        self._sessions: dict[Key, TransportSession] = {}
        self._locks: dict[Key, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    # ── Session acquisition ─────────────────────────────────────────

    def get_or_create(self, host: str, port: int, *, cache: bool | None = None) -> TransportSession:
        """Return a usable session for (host, port).

        With caching disabled a fresh session is opened on every call and the
        caller owns (and must close) it.

        Raises:
            ConnectError: A new session was needed and could not be opened
        """
        if not self._use_cache(cache):
            return self.open(host, port)

        key = (host, port)
        with self._lock_for(key):
            session = self._sessions.get(key)
            if session is not None:
                if session.is_closed():
                    self._discard(key, "closed")
                elif session.is_idle_expired(self._clock(), self.idle_timeout):
                    logger.info(
                        "Connection to %s:%d idle for more than %.0fs, reconnecting",
                        host,
                        port,
                        self.idle_timeout,
                        extra={"host": host, "port": port, "idle_timeout": self.idle_timeout},
                    )
                    self._discard(key, "idle_timeout")
                else:
                    return session

            session = self.open(host, port)
            self._sessions[key] = session
            return session

    def open(self, host: str, port: int) -> TransportSession:
        """Open a new, uncached session, retrying OS-level connection failures.

        Raises:
            ConnectError: Every attempt failed, or TLS setup was rejected
        """
        endpoint = metrics.endpoint_label(host, port)
        ssl_context = self._get_ssl_context(host, port)

        def on_retry(attempt: int, error: BaseException) -> None:
            metrics.record_connection_open(endpoint, "retry")
            logger.warning(
                "Connect attempt %d/%d to %s:%d failed, retrying: %s",
                attempt,
                self.open_policy.max_attempts,
                host,
                port,
                error,
                extra={"host": host, "port": port, "attempt": attempt},
            )

        outcome = self.open_policy.run(
            lambda: self._session_factory(host, port, ssl_context, clock=self._clock),
            is_retryable=_is_retryable_connect_error,
            on_retry=on_retry,
        )
        if outcome.ok and outcome.value is not None:
            metrics.record_connection_open(endpoint, "success")
            return outcome.value

        metrics.record_connection_open(endpoint, "failed")
        last_error = outcome.error
        reason = getattr(last_error, "reason", str(last_error))
        logger.error(
            "Giving up on %s:%d after %d connect attempts",
            host,
            port,
            outcome.attempts,
            extra={"host": host, "port": port, "attempts": outcome.attempts, "reason": reason},
        )
        raise ConnectError(host, port, outcome.attempts, reason, transient=True) from last_error

    # ── Pooled operations ───────────────────────────────────────────

    def with_connection(
        self,
        host: str,
        port: int,
        operation: Callable[[TransportSession], T],
        *,
        cache: bool | None = None,
        operation_name: str = "operation",
    ) -> T:
        """Run ``operation`` against a session for (host, port).

        The session is closed afterwards only when caching is disabled. A
        transport error evicts the cached session and retries the whole
        acquire-and-invoke cycle up to the operation policy's budget.

        Args:
            host: Remote host
            port: Remote port
            operation: Callable receiving the session
            cache: Override the pool's caching setting for this call
            operation_name: Label used in logs, metrics, and errors

        Returns:
            The operation's return value

        Raises:
            APNSConnectionError: Transport errors on every attempt
            ConnectError: A session could not be established
            CallerError: Propagated from the operation without retry
        """
        use_cache = self._use_cache(cache)
        key = (host, port)
        endpoint = metrics.endpoint_label(host, port)

        def attempt() -> T:
            session = self.get_or_create(host, port, cache=use_cache)
            try:
                return operation(session)
            finally:
                if not use_cache:
                    session.close()

        def on_retry(attempt_number: int, error: BaseException) -> None:
            metrics.record_operation_retry(endpoint, operation_name)
            logger.warning(
                "%s to %s:%d failed on attempt %d/%d (%s), reconnecting",
                operation_name,
                host,
                port,
                attempt_number,
                self.operation_policy.max_attempts,
                type(error).__name__,
                extra={"host": host, "port": port, "attempt": attempt_number, "error": str(error)},
            )
            if use_cache:
                self._discard(key, "io_error")

        start_time = time.perf_counter()
        with correlation_context(), self._lock_for(key):
            try:
                outcome = self.operation_policy.run(attempt, is_retryable=is_transient_io_error, on_retry=on_retry)
            finally:
                metrics.record_operation_latency(endpoint, operation_name, time.perf_counter() - start_time)

            if outcome.ok:
                return outcome.value  # type: ignore[return-value]

            if use_cache:
                self._discard(key, "io_error")
            metrics.record_operation_abandoned(endpoint, operation_name)
            logger.error(
                "%s to %s:%d abandoned after %d attempts",
                operation_name,
                host,
                port,
                outcome.attempts,
                extra={"host": host, "port": port, "attempts": outcome.attempts, "error": repr(outcome.error)},
            )
            raise APNSConnectionError(operation_name, host, port, outcome.attempts, outcome.error) from outcome.error

    # ── Pool maintenance ────────────────────────────────────────────

    def has_connection(self, host: str, port: int) -> bool:
        return (host, port) in self._sessions

    def evict(self, host: str, port: int) -> None:
        """Remove and close the cached session for (host, port), if any."""
        key = (host, port)
        with self._lock_for(key):
            self._discard(key, "explicit")

    def close_all(self) -> None:
        """Close every cached session."""
        for key in list(self._sessions):
            with self._lock_for(key):
                self._discard(key, "shutdown")

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close_all()

    def __len__(self) -> int:
        return len(self._sessions)

    # ── Internals ───────────────────────────────────────────────────

    def _use_cache(self, cache: bool | None) -> bool:
        return self.cache_connections if cache is None else cache

    def _lock_for(self, key: Key) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    def _discard(self, key: Key, reason: str) -> None:
        session = self._sessions.pop(key, None)
        if session is None:
            return
        session.close()
        metrics.record_connection_evicted(metrics.endpoint_label(*key), reason)
        logger.debug(
            "Evicted connection to %s:%d (%s)",
            key[0],
            key[1],
            reason,
            extra={"host": key[0], "port": key[1], "reason": reason},
        )

    def _get_ssl_context(self, host: str, port: int) -> ssl.SSLContext | None:
        if not self.tls or self.credentials is None:
            return None
        if self._ssl_context is None:
            try:
                self._ssl_context = self.credentials.build_ssl_context()
            except ssl.SSLError as e:
                raise ConnectError(host, port, 0, f"invalid credentials: {e}") from e
        return self._ssl_context
