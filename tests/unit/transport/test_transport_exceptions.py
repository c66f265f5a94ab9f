"""Unit tests for transport exception types and error classification."""

from __future__ import annotations

import socket
import ssl

import pytest

from apns_pusher.protocol.exceptions import CallerError, PayloadError, PushProtocolError
from apns_pusher.transport.exceptions import (
    APNSConnectionError,
    ConnectError,
    is_transient_connect_error,
    is_transient_io_error,
)


@pytest.mark.unit
class TestConnectError:
    def test_attributes_and_message(self) -> None:
        error = ConnectError("gateway.example", 2195, 5, "Connection refused", transient=True)
        assert error.host == "gateway.example"
        assert error.port == 2195
        assert error.attempts == 5
        assert error.transient
        assert str(error) == "Could not connect to gateway.example:2195 after 5 attempt(s): Connection refused"

    def test_not_transient_by_default(self) -> None:
        assert not ConnectError("h", 1, 1, "bad certificate").transient

    def test_not_an_os_error(self) -> None:
        error = ConnectError("h", 1, 1, "refused")
        assert isinstance(error, PushProtocolError)
        assert not isinstance(error, OSError)
        assert not isinstance(error, CallerError)


@pytest.mark.unit
class TestAPNSConnectionError:
    def test_message_names_attempts_and_cause(self) -> None:
        cause = BrokenPipeError(32, "Broken pipe")
        error = APNSConnectionError("send_notification", "gateway.example", 2195, 5, cause)

        assert error.last_error is cause
        assert error.attempts == 5
        assert "tried 5 times to reconnect but failed" in str(error)
        assert "BrokenPipeError" in str(error)

    def test_does_not_shadow_builtin(self) -> None:
        assert not issubclass(APNSConnectionError, ConnectionError)


@pytest.mark.unit
@pytest.mark.parametrize(
    "error",
    [
        BrokenPipeError(32, "Broken pipe"),
        TimeoutError("timed out"),
        socket.timeout("timed out"),
        ssl.SSLError("bad record mac"),
        ConnectionResetError(104, "reset"),
        OSError("generic"),
    ],
)
def test_io_errors_are_transient(error: BaseException) -> None:
    assert is_transient_io_error(error)


@pytest.mark.unit
@pytest.mark.parametrize("error", [PayloadError("too_large"), ValueError("x"), KeyError("k")])
def test_other_errors_are_not_transient(error: BaseException) -> None:
    assert not is_transient_io_error(error)


@pytest.mark.unit
def test_connect_error_classification() -> None:
    assert is_transient_connect_error(ConnectionRefusedError(111, "refused"))
    assert is_transient_connect_error(TimeoutError())
    assert not is_transient_connect_error(ssl.SSLError("handshake failure"))
    assert not is_transient_connect_error(ValueError())
