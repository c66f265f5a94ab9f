"""Unit tests for the Prometheus metrics registry."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from apns_pusher.metrics import registry

ENDPOINT = "metrics-test.example:2195"


def sample_value(metric, sample_name: str, **labels: str) -> float:
    for sample in metric.collect()[0].samples:
        if sample.name == sample_name and all(sample.labels.get(k) == v for k, v in labels.items()):
            return sample.value
    return 0.0


@pytest.mark.unit
class TestCounters:
    def test_endpoint_label(self) -> None:
        assert registry.endpoint_label("gateway.example", 2195) == "gateway.example:2195"

    def test_connection_open_outcomes(self) -> None:
        before = sample_value(
            registry.apns_connection_open_total, "apns_connection_open_total", endpoint=ENDPOINT, outcome="retry"
        )
        registry.record_connection_open(ENDPOINT, "retry")
        registry.record_connection_open(ENDPOINT, "retry")
        after = sample_value(
            registry.apns_connection_open_total, "apns_connection_open_total", endpoint=ENDPOINT, outcome="retry"
        )
        assert after - before == 2

    def test_connection_evicted_reason_label(self) -> None:
        registry.record_connection_evicted(ENDPOINT, "idle_timeout")
        value = sample_value(
            registry.apns_connection_evicted_total,
            "apns_connection_evicted_total",
            endpoint=ENDPOINT,
            reason="idle_timeout",
        )
        assert value >= 1

    def test_notifications_sent_counts_batch(self) -> None:
        before = sample_value(registry.apns_notification_sent_total, "apns_notification_sent_total", endpoint=ENDPOINT)
        registry.record_notifications_sent(ENDPOINT, 3)
        registry.record_notifications_sent(ENDPOINT)
        after = sample_value(registry.apns_notification_sent_total, "apns_notification_sent_total", endpoint=ENDPOINT)
        assert after - before == 4

    def test_feedback_records(self) -> None:
        before = sample_value(registry.apns_feedback_record_total, "apns_feedback_record_total", endpoint=ENDPOINT)
        registry.record_feedback_records(ENDPOINT, 5)
        after = sample_value(registry.apns_feedback_record_total, "apns_feedback_record_total", endpoint=ENDPOINT)
        assert after - before == 5

    def test_operation_retry_and_abandoned(self) -> None:
        registry.record_operation_retry(ENDPOINT, "send_notification")
        registry.record_operation_abandoned(ENDPOINT, "send_notification")

        assert (
            sample_value(
                registry.apns_operation_retry_total,
                "apns_operation_retry_total",
                endpoint=ENDPOINT,
                operation="send_notification",
            )
            >= 1
        )
        assert (
            sample_value(
                registry.apns_operation_abandoned_total,
                "apns_operation_abandoned_total",
                endpoint=ENDPOINT,
                operation="send_notification",
            )
            >= 1
        )

    def test_operation_latency_histogram(self) -> None:
        registry.record_operation_latency(ENDPOINT, "feedback", 0.2)
        count = sample_value(
            registry.apns_operation_latency_seconds,
            "apns_operation_latency_seconds_count",
            endpoint=ENDPOINT,
            operation="feedback",
        )
        assert count >= 1


@pytest.mark.unit
class TestMetricsServer:
    def test_start_is_idempotent(self) -> None:
        with (
            patch.object(registry, "start_http_server") as start_http_server,
            patch.dict(registry._server_state, {"started": False}),
        ):
            registry.start_metrics_server(9999)
            registry.start_metrics_server(9999)

        start_http_server.assert_called_once_with(9999)

    def test_default_port(self) -> None:
        with (
            patch.object(registry, "start_http_server") as start_http_server,
            patch.dict(registry._server_state, {"started": False}),
        ):
            registry.start_metrics_server()

        start_http_server.assert_called_once_with(9400)
