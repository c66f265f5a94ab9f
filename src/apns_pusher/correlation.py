"""
Correlation ID tracking for push and feedback operations.

Every send or feedback drain runs inside a correlation context so the log
lines of one logical operation (including its reconnects and retries) can be
grouped together. Uses contextvars, so each thread keeps its own ID.
"""

from __future__ import annotations

import contextvars
import uuid
from collections.abc import Generator
from contextlib import contextmanager

__all__ = [
    "correlation_context",
    "generate_correlation_id",
    "get_correlation_id",
    "set_correlation_id",
]

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "apns_correlation_id",
    default=None,
)


def generate_correlation_id() -> str:
    """Return a new correlation ID (UUID4 hex without dashes)."""
    return uuid.uuid4().hex


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context, if any."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str | None) -> None:
    _correlation_id.set(correlation_id)


@contextmanager
def correlation_context(
    correlation_id: str | None = None,
    auto_generate: bool = True,
) -> Generator[str | None]:
    """
    Context manager for correlation ID scope.

    An operation nested inside an existing context keeps the outer ID unless
    one is passed explicitly. The previous ID is restored on exit.

    Args:
        correlation_id: Specific correlation ID to use (None to inherit or generate)
        auto_generate: Generate a new ID when none is set or given

    Yields:
        The correlation ID used in this context

    Example:
        with correlation_context() as corr_id:
            pusher.send_notification(token, "hello")
    """
    previous_id = get_correlation_id()

    if correlation_id is None:
        correlation_id = previous_id
    if correlation_id is None and auto_generate:
        correlation_id = generate_correlation_id()

    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        set_correlation_id(previous_id)

