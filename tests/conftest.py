"""
Shared fixtures for unit and integration tests.
"""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from apns_pusher.transport import ConnectionPool, RetryPolicy
from tests.helpers.fake_gateway import FakeClock, FakeGateway

SAMPLE_TOKEN = "7dfbc9b52916a6c3aaf3d9e4e93e6079aee1c9015db464592a4d3734d835e0cb"
GATEWAY_HOST = "www.sample.com"
GATEWAY_PORT = 443


@pytest.fixture
def token() -> str:
    return SAMPLE_TOKEN


@pytest.fixture
def other_token() -> str:
    return SAMPLE_TOKEN.replace("a", "b")


@pytest.fixture
def message() -> dict[str, object]:
    """Structured payload with nested alert, badge, and custom keys."""
    return {
        "aps": {
            "alert": {"body": "Bob wants to play poker", "action-loc-key": "PLAY"},
            "badge": 5,
        },
        "acme1": "bar",
        "acme2": ["bang", "whiz"],
    }


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def sleep() -> MagicMock:
    return MagicMock()


@pytest.fixture
def make_pool(gateway: FakeGateway, clock: FakeClock, sleep: MagicMock):
    """Build a ConnectionPool wired to the fake gateway, clock, and sleep."""

    def _make(*, cache_connections: bool = True, idle_timeout: float = 1800.0) -> ConnectionPool:
        return ConnectionPool(
            cache_connections=cache_connections,
            idle_timeout=idle_timeout,
            tls=False,
            open_policy=RetryPolicy(max_attempts=5, base_delay_seconds=1.0, sleep=sleep),
            operation_policy=RetryPolicy(max_attempts=5, base_delay_seconds=0.0, sleep=sleep),
            session_factory=gateway.factory,
            clock=clock,
        )

    return _make
