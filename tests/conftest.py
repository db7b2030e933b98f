"""Pytest configuration and fixtures."""

import heapq
import itertools

import pytest

from stompwire.config import ClientConfig
from stompwire.protocol.client import StompClient
from stompwire.protocol.frames import Command, Frame, decode, encode
from stompwire.transport.base import Transport
from stompwire.transport.types import TransportErrorCode, TransportEventType
from stompwire.utilities.timers import Scheduler, TimerHandle


class ManualScheduler(Scheduler):
    """Scheduler driven by a virtual clock."""

    def __init__(self):
        self.now = 0.0
        self._queue: list[tuple[float, int, TimerHandle]] = []
        self._seq = itertools.count()

    def schedule(self, delay, callback, repeating=False):
        handle = TimerHandle(delay, callback, repeating)
        heapq.heappush(self._queue, (self.now + delay, next(self._seq), handle))
        return handle

    def cancel(self, handle):
        handle.cancelled = True

    @property
    def pending(self) -> list[TimerHandle]:
        return [h for _, _, h in self._queue if not h.cancelled]

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing every timer that falls due."""
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            if handle.cancelled:
                continue
            self.now = due
            if handle.repeating:
                heapq.heappush(
                    self._queue, (due + handle.delay, next(self._seq), handle)
                )
            handle.callback()
        self.now = target


class FakeTransport(Transport):
    """In-memory transport recording sent bytes and injecting events."""

    def __init__(self, scheduler: ManualScheduler):
        super().__init__()
        self.scheduler = scheduler
        self.sent: list[bytes] = []
        self.connect_calls = 0
        self.destroy_calls = 0
        self.reconnect_calls: list[float] = []
        self._connected = False
        self._connecting = False
        self._reconnect_handle = None

    # Transport interface

    def connect(self):
        self.connect_calls += 1
        self._connecting = True
        self._emit(TransportEventType.CONNECTING)

    def send(self, data):
        if not self._connected:
            self._emit(TransportEventType.ERROR, code=TransportErrorCode.SEND_FAILED)
            return False
        self.sent.append(data)
        return True

    def close(self):
        self.destroy()

    def destroy(self):
        self.destroy_calls += 1
        if self._reconnect_handle is not None:
            self.scheduler.cancel(self._reconnect_handle)
            self._reconnect_handle = None
        if self._connected or self._connecting:
            self.drop()

    def reconnect(self, after=0):
        self.reconnect_calls.append(after)
        if after > 0:
            self._reconnect_handle = self.scheduler.schedule(after, self._begin_reconnect)
        else:
            self.connect()

    def _begin_reconnect(self):
        self._reconnect_handle = None
        self.connect()

    def is_connected(self):
        return self._connected

    # Test controls

    def accept(self):
        """Complete a pending connect."""
        self._connecting = False
        self._connected = True
        self._emit(TransportEventType.CONNECTED)

    def refuse(self):
        """Fail a pending connect."""
        self._connecting = False
        self._emit(TransportEventType.ERROR, code=TransportErrorCode.CONNECT_FAILED)
        self._emit(TransportEventType.CLOSED)

    def drop(self):
        """Close the connection from the remote side."""
        self._connected = False
        self._connecting = False
        self._emit(TransportEventType.CLOSED)

    def feed(self, data: bytes):
        self._emit(TransportEventType.DATA_RECEIVED, data=data)

    def receive(self, command: Command, headers=None, body=b""):
        self.feed(encode(Frame(command, headers or {}, body)))

    def fill_buffer(self):
        self._emit(TransportEventType.BUFFER_FULL)

    def sent_frames(self) -> list[Frame]:
        return [decode(data) for data in self.sent]

    def sent_commands(self) -> list[Command]:
        return [frame.command for frame in self.sent_frames()]


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def transport(scheduler):
    return FakeTransport(scheduler)


@pytest.fixture
def config():
    return ClientConfig(connect_timeout=30, reconnect_period=2)


@pytest.fixture
def errors():
    """Errors reported through on_error."""
    return []


@pytest.fixture
def client(config, transport, scheduler, errors):
    return StompClient(
        "localhost:61613",
        config=config,
        transport=transport,
        scheduler=scheduler,
        on_error=errors.append,
    )


@pytest.fixture
def established(client, transport):
    """A client that completed the CONNECT/CONNECTED handshake."""
    client.connect()
    transport.accept()
    transport.receive(Command.CONNECTED, {"version": "1.2"})
    transport.sent.clear()
    return client
