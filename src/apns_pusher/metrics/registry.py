"""Prometheus metrics registry for gateway and feedback connections."""

import threading
from typing import Final

from prometheus_client import (  # type: ignore[import-untyped]
    Counter,
    Histogram,
    start_http_server,
)

# Connection lifecycle
apns_connection_open_total: Final = Counter(  # type: ignore[assignment]
    "apns_connection_open_total",
    "Total connection establishment attempts",
    ["endpoint", "outcome"],
)

apns_connection_evicted_total: Final = Counter(  # type: ignore[assignment]
    "apns_connection_evicted_total",
    "Total cached connections evicted",
    ["endpoint", "reason"],
)

apns_operation_retry_total: Final = Counter(  # type: ignore[assignment]
    "apns_operation_retry_total",
    "Total operation retries after a transient transport error",
    ["endpoint", "operation"],
)

apns_operation_abandoned_total: Final = Counter(  # type: ignore[assignment]
    "apns_operation_abandoned_total",
    "Total operations abandoned after exhausting the retry budget",
    ["endpoint", "operation"],
)

apns_operation_latency_seconds: Final = Histogram(  # type: ignore[assignment]
    "apns_operation_latency_seconds",
    "Duration of a pooled operation including retries, in seconds",
    ["endpoint", "operation"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

# Payload traffic
apns_notification_sent_total: Final = Counter(  # type: ignore[assignment]
    "apns_notification_sent_total",
    "Total notification frames written and flushed",
    ["endpoint"],
)

apns_feedback_record_total: Final = Counter(  # type: ignore[assignment]
    "apns_feedback_record_total",
    "Total feedback records decoded",
    ["endpoint"],
)

_server_state = {"started": False}
_server_lock = threading.Lock()


def endpoint_label(host: str, port: int) -> str:
    """Return the label value used for a (host, port) pair."""
    return f"{host}:{port}"


def start_metrics_server(port: int | None = None) -> None:
    """Start Prometheus HTTP metrics server (idempotent)."""
    if port is None:
        from apns_pusher.const import APNS_METRICS_PORT  # noqa: PLC0415

        port = APNS_METRICS_PORT
    with _server_lock:
        if not _server_state["started"]:
            start_http_server(port)  # type: ignore[no-untyped-call]
            _server_state["started"] = True


def record_connection_open(endpoint: str, outcome: str) -> None:
    """Record a connection attempt ("success", "retry", "failed")."""
    apns_connection_open_total.labels(endpoint=endpoint, outcome=outcome).inc()  # type: ignore[no-untyped-call]


def record_connection_evicted(endpoint: str, reason: str) -> None:
    """Record an eviction ("idle_timeout", "closed", "io_error", "explicit", "shutdown")."""
    apns_connection_evicted_total.labels(endpoint=endpoint, reason=reason).inc()  # type: ignore[no-untyped-call]


def record_operation_retry(endpoint: str, operation: str) -> None:
    apns_operation_retry_total.labels(endpoint=endpoint, operation=operation).inc()  # type: ignore[no-untyped-call]


def record_operation_abandoned(endpoint: str, operation: str) -> None:
    apns_operation_abandoned_total.labels(endpoint=endpoint, operation=operation).inc()  # type: ignore[no-untyped-call]


def record_operation_latency(endpoint: str, operation: str, latency_seconds: float) -> None:
    apns_operation_latency_seconds.labels(endpoint=endpoint, operation=operation).observe(
        latency_seconds,
    )  # type: ignore[no-untyped-call]


def record_notifications_sent(endpoint: str, count: int = 1) -> None:
    apns_notification_sent_total.labels(endpoint=endpoint).inc(count)  # type: ignore[no-untyped-call]


def record_feedback_records(endpoint: str, count: int) -> None:
    apns_feedback_record_total.labels(endpoint=endpoint).inc(count)  # type: ignore[no-untyped-call]
