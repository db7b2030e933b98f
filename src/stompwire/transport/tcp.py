"""asyncio TCP/TLS transport for STOMP."""

from __future__ import annotations

import asyncio
import logging

from stompwire.transport.base import Transport
from stompwire.transport.types import (
    TransportConfig,
    TransportErrorCode,
    TransportEventType,
)

logger = logging.getLogger(__name__)


class _StreamProtocol(asyncio.Protocol):
    """Forwards asyncio protocol callbacks to the owning TcpTransport."""

    def __init__(self, owner: "TcpTransport"):
        self._owner = owner

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._owner._on_connection_made(transport)

    def data_received(self, data: bytes) -> None:
        self._owner._emit(TransportEventType.DATA_RECEIVED, data=data)

    def connection_lost(self, exc: Exception | None) -> None:
        self._owner._on_connection_lost(exc)

    def pause_writing(self) -> None:
        self._owner._on_pause_writing()

    def resume_writing(self) -> None:
        pass


class TcpTransport(Transport):
    """
    TCP transport built on asyncio protocols.

    Supports:
    - Plain TCP and TLS connections
    - Binding to a local address
    - Delayed reconnects
    - Write buffer limits, reported as BUFFER_FULL

    Events triggered by a caller's own send() are delivered on the next
    loop iteration so the caller is never re-entered.
    """

    def __init__(
        self,
        config: TransportConfig,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        super().__init__(config)
        self._loop = loop
        self._stream: asyncio.Transport | None = None
        self._connect_task: asyncio.Task | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def _emit_soon(self, type: TransportEventType, **kwargs) -> None:
        self._get_loop().call_soon(lambda: self._emit(type, **kwargs))

    def connect(self) -> None:
        """Start opening the connection in a background task."""
        if self._stream is not None or self._connect_task is not None:
            logger.debug("Connect ignored, connection already in progress")
            return

        self._cancel_reconnect()
        self._emit(TransportEventType.CONNECTING)
        self._connect_task = self._get_loop().create_task(
            self._open(),
            name=f"stomp-connect-{self.config.address}",
        )

    async def _open(self) -> None:
        host, port = self.config.host_port()
        loop = self._get_loop()
        try:
            await loop.create_connection(
                lambda: _StreamProtocol(self),
                host,
                port,
                ssl=self.config.ssl_context(),
                local_addr=self.config.local_addr(),
                **self.config.extra,
            )
        except OSError as e:
            logger.debug(f"Connect to {host}:{port} failed: {e}")
            self._emit(
                TransportEventType.ERROR,
                code=TransportErrorCode.CONNECT_FAILED,
                error=e,
            )
            self._emit(TransportEventType.CLOSED, error=e)
        finally:
            if self._connect_task is asyncio.current_task():
                self._connect_task = None

    def _on_connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._stream = transport
        transport.set_write_buffer_limits(high=self.config.max_send_buffer_size)
        logger.debug(f"Connected to {self.config.address}")
        self._emit(TransportEventType.CONNECTED)

    def _on_connection_lost(self, exc: Exception | None) -> None:
        self._stream = None
        logger.debug(f"Connection to {self.config.address} lost: {exc}")
        self._emit(TransportEventType.CLOSED, error=exc)

    def _on_pause_writing(self) -> None:
        logger.warning(
            f"Send buffer above {self.config.max_send_buffer_size} bytes"
        )
        self._emit_soon(TransportEventType.BUFFER_FULL)

    def send(self, data: bytes) -> bool:
        """Queue bytes on the open stream."""
        if not self.is_connected():
            self._emit_soon(
                TransportEventType.ERROR,
                code=TransportErrorCode.SEND_FAILED,
            )
            return False
        self._stream.write(data)
        return True

    def close(self) -> None:
        """Close after queued bytes are flushed."""
        self._cancel_reconnect()
        if self._stream is not None:
            self._stream.close()
        elif self._connect_task is not None:
            self._abort_connect()

    def destroy(self) -> None:
        """Abort the connection or pending connect without flushing."""
        self._cancel_reconnect()
        if self._stream is not None:
            self._stream.abort()
        elif self._connect_task is not None:
            self._abort_connect()

    def _abort_connect(self) -> None:
        self._connect_task.cancel()
        self._connect_task = None
        self._emit_soon(TransportEventType.CLOSED)

    def reconnect(self, after: float = 0) -> None:
        """Schedule a new connection attempt."""
        if self._stream is not None or self._connect_task is not None:
            logger.warning("Reconnect ignored, connection still open")
            return

        self._cancel_reconnect()
        if after > 0:
            self._reconnect_handle = self._get_loop().call_later(
                after, self._begin_reconnect
            )
        else:
            self.connect()

    def _begin_reconnect(self) -> None:
        self._reconnect_handle = None
        self.connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def is_connected(self) -> bool:
        return self._stream is not None and not self._stream.is_closing()

    def __repr__(self) -> str:
        status = "connected" if self.is_connected() else "disconnected"
        return f"TcpTransport({self.config.address}, {status})"
