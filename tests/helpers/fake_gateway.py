"""In-memory gateway for exercising the connection pool without sockets.

Sessions handed out are real TransportSession objects wrapped around a mock
socket whose stream records writes and flushes, and can be told to fail.
"""

from __future__ import annotations

import io
from dataclasses import dataclass, field
from unittest.mock import MagicMock

from apns_pusher.transport.exceptions import ConnectError
from apns_pusher.transport.session import Clock, TransportSession


class FakeClock:
    """Settable wall clock."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.start = start
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_to(self, offset: float) -> None:
        """Set the clock to ``start + offset`` seconds."""
        self.now = self.start + offset


class FakeStream:
    """Stands in for the buffered stream returned by socket.makefile()."""

    def __init__(self, gateway: FakeGateway, index: int):
        self.gateway = gateway
        self.index = index
        self.closed = False
        self._feed = io.BytesIO(gateway.feedback_data)

    def write(self, data: bytes) -> int:
        if self.gateway.write_failures > 0:
            self.gateway.write_failures -= 1
            raise self.gateway.write_error
        self.gateway.events.append(("write", self.index, bytes(data)))
        return len(data)

    def flush(self) -> None:
        self.gateway.events.append(("flush", self.index, b""))

    def read(self, n: int) -> bytes:
        return self._feed.read(n)

    def close(self) -> None:
        self.closed = True


@dataclass
class FakeGateway:
    """Session factory with failure injection.

    Attributes:
        refusals: Number of upcoming opens to refuse with a transient ConnectError
        write_failures: Number of upcoming writes (across sessions) to fail
        write_error: Error raised by a failing write
        feedback_data: Bytes each new session will return from read()
    """

    refusals: int = 0
    write_failures: int = 0
    write_error: Exception = field(default_factory=lambda: BrokenPipeError(32, "Broken pipe"))
    feedback_data: bytes = b""
    sessions: list[TransportSession] = field(default_factory=list)
    streams: list[FakeStream] = field(default_factory=list)
    events: list[tuple[str, int, bytes]] = field(default_factory=list)
    open_calls: int = 0

    def factory(self, host: str, port: int, ssl_context: object, *, clock: Clock) -> TransportSession:
        self.open_calls += 1
        if self.refusals > 0:
            self.refusals -= 1
            raise ConnectError(host, port, 1, "Connection refused", transient=True)

        stream = FakeStream(self, index=len(self.sessions))
        sock = MagicMock()
        sock.makefile.return_value = stream
        session = TransportSession(host, port, sock, clock=clock)
        self.sessions.append(session)
        self.streams.append(stream)
        return session

    @property
    def established(self) -> int:
        return len(self.sessions)

    def writes(self) -> list[bytes]:
        return [data for kind, _, data in self.events if kind == "write"]

    def flushes(self) -> int:
        return sum(1 for kind, _, _ in self.events if kind == "flush")
