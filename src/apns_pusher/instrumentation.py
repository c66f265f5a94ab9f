"""
Timing instrumentation for blocking network operations.

Provides a decorator that logs how long an operation took and warns when it
exceeds the configured threshold. Disabled via APNS_PERF_TRACKING.
"""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import ParamSpec, TypeVar

from apns_pusher.logging_abstraction import PushLogger, get_logger

__all__ = [
    "measure_time",
    "timed",
]

P = ParamSpec("P")
T = TypeVar("T")

logger = get_logger(__name__)


def measure_time(start_time: float) -> float:
    """
    Calculate elapsed time in milliseconds.

    Args:
        start_time: Start time from time.perf_counter()

    Returns:
        Elapsed time in milliseconds
    """
    return (time.perf_counter() - start_time) * 1000


def timed(operation_name: str | None = None) -> Callable[[Callable[P, T]], Callable[P, T]]:
    """
    Decorator for timing synchronous functions with threshold warnings.

    Args:
        operation_name: Name for the operation (defaults to function name)

    Example:
        @timed("send_notification")
        def send_notification(device_token, message):
            ...
    """

    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        @functools.wraps(func)
        def wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
            from apns_pusher import const  # noqa: PLC0415

            if not const.APNS_PERF_TRACKING:
                return func(*args, **kwargs)

            op_name = operation_name or func.__name__
            start_time = time.perf_counter()
            try:
                return func(*args, **kwargs)
            finally:
                _log_timing(logger, op_name, measure_time(start_time), const.APNS_PERF_THRESHOLD_MS)

        return wrapper

    return decorator


def _log_timing(logger: PushLogger, operation_name: str, elapsed_ms: float, threshold_ms: int) -> None:
    if elapsed_ms > threshold_ms:
        logger.warning(
            "[%s] completed in %.1fms (threshold: %dms)",
            operation_name,
            elapsed_ms,
            threshold_ms,
            extra={
                "operation": operation_name,
                "duration_ms": round(elapsed_ms, 2),
                "threshold_ms": threshold_ms,
                "exceeded_threshold": True,
            },
        )
    else:
        logger.debug(
            "[%s] completed in %.1fms",
            operation_name,
            elapsed_ms,
            extra={
                "operation": operation_name,
                "duration_ms": round(elapsed_ms, 2),
                "threshold_ms": threshold_ms,
                "exceeded_threshold": False,
            },
        )
