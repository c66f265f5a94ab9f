"""Metrics module."""

from .registry import (
    endpoint_label,
    record_connection_evicted,
    record_connection_open,
    record_feedback_records,
    record_notifications_sent,
    record_operation_abandoned,
    record_operation_latency,
    record_operation_retry,
    start_metrics_server,
)

__all__ = [
    "endpoint_label",
    "record_connection_evicted",
    "record_connection_open",
    "record_feedback_records",
    "record_notifications_sent",
    "record_operation_abandoned",
    "record_operation_latency",
    "record_operation_retry",
    "start_metrics_server",
]
