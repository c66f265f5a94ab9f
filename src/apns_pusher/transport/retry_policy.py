"""Bounded retry helper for connection establishment and pooled operations.

``RetryPolicy.run`` calls a function until it succeeds, a non-retryable
error escapes, or the attempt budget is spent. Exhaustion is reported as a
``RetryOutcome`` value rather than an exception, so each caller decides how
to surface it.
"""

from __future__ import annotations

import random
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class RetryOutcome(Generic[T]):
    """Result of RetryPolicy.run().

    Attributes:
        value: Return value of the successful attempt (None on failure)
        error: Last retryable error when every attempt failed (None on success)
        attempts: Number of attempts made
    """

    value: T | None
    error: BaseException | None
    attempts: int

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, or re-raise the last error."""
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class RetryPolicy:
    """Fixed-budget retry policy with optional exponential backoff and jitter.

    With the default ``multiplier=1.0`` and ``jitter_factor=0.0`` the delay
    between attempts is constant.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        base_delay_seconds: float = 1.0,
        max_delay_seconds: float = 30.0,
        multiplier: float = 1.0,
        jitter_factor: float = 0.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize retry policy.

        Args:
            max_attempts: Total attempts including the first one (>= 1)
            base_delay_seconds: Delay after the first failed attempt
            max_delay_seconds: Delay cap
            multiplier: Backoff multiplier applied per retry (1.0 = constant)
            jitter_factor: Jitter as fraction of delay (0.1 = up to 10%)
            sleep: Blocking sleep function (injectable for tests)
        """
        if max_attempts < 1:
            error_msg = f"max_attempts must be at least 1, got {max_attempts}"
            raise ValueError(error_msg)
        self.max_attempts = max_attempts
        self.base_delay_seconds = base_delay_seconds
        self.max_delay_seconds = max_delay_seconds
        self.multiplier = multiplier
        self.jitter_factor = jitter_factor
        self._sleep = sleep

    def get_delay(self, attempt: int) -> float:
        """Delay before retry number ``attempt`` (0-indexed), capped at max_delay_seconds."""
        delay = min(self.base_delay_seconds * (self.multiplier**attempt), self.max_delay_seconds)
        if self.jitter_factor:
            delay += random.uniform(0, delay * self.jitter_factor)
        return delay

    def run(
        self,
        func: Callable[[], T],
        *,
        is_retryable: Callable[[BaseException], bool],
        on_retry: Callable[[int, BaseException], None] | None = None,
    ) -> RetryOutcome[T]:
        """Call ``func`` until it succeeds or the attempt budget is spent.

        Errors rejected by ``is_retryable`` propagate immediately. ``on_retry``
        runs after each failed attempt that will be retried, before the delay.

        Args:
            func: Zero-argument callable to attempt
            is_retryable: Classifies an error as worth another attempt
            on_retry: Callback receiving (attempt_number, error), 1-indexed

        Returns:
            RetryOutcome with the value, or with the last error on exhaustion

        """
        last_error: BaseException | None = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                return RetryOutcome(value=func(), error=None, attempts=attempt)
            except Exception as e:
                if not is_retryable(e):
                    raise
                last_error = e

            if attempt == self.max_attempts:
                break
            if on_retry is not None:
                on_retry(attempt, last_error)
            delay = self.get_delay(attempt - 1)
            if delay > 0:
                self._sleep(delay)

        return RetryOutcome(value=None, error=last_error, attempts=self.max_attempts)

    def __repr__(self) -> str:
        return (
            f"RetryPolicy(max_attempts={self.max_attempts}, "
            f"base_delay={self.base_delay_seconds}s, "
            f"max_delay={self.max_delay_seconds}s, "
            f"multiplier={self.multiplier}, "
            f"jitter_factor={self.jitter_factor})"
        )
