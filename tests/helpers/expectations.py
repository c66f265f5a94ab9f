"""Helpers for asserting exceptions raised by the push client."""

from __future__ import annotations

from collections.abc import Callable
from typing import ParamSpec, TypeVar

from apns_pusher.protocol.exceptions import CallerError

P = ParamSpec("P")
TException = TypeVar("TException", bound=BaseException)
TCallerError = TypeVar("TCallerError", bound=CallerError)


def expect_exception(
    func: Callable[P, object],
    exception_type: type[TException],
    *args: P.args,
    **kwargs: P.kwargs,
) -> TException:
    """Run a callable and return the raised exception for inspection."""
    try:
        _ = func(*args, **kwargs)
    except exception_type as err:
        return err
    message = f"Expected {exception_type.__name__} to be raised"
    raise AssertionError(message)  # pragma: no cover


def expect_caller_error(
    func: Callable[P, object],
    error_type: type[TCallerError],
    reason: str,
    *args: P.args,
    **kwargs: P.kwargs,
) -> TCallerError:
    """Like expect_exception, but also require ``reason`` in the error's reason."""
    error = expect_exception(func, error_type, *args, **kwargs)
    assert reason in error.reason, f"{error.reason!r} does not contain {reason!r}"
    return error
