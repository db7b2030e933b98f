"""Abstract base transport and error types."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable

from stompwire.transport.types import (
    TransportConfig,
    TransportErrorCode,
    TransportEvent,
    TransportEventType,
)

logger = logging.getLogger(__name__)

TransportEventHandler = Callable[[TransportEvent], None]


class TransportError(Exception):
    """Base exception for transport errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class Transport(ABC):
    """
    Abstract base class for STOMP byte-stream transports.

    A transport opens and closes the connection and moves raw bytes. It
    never blocks the caller: outcomes are reported as TransportEvents to
    the handlers registered with on_event().
    """

    def __init__(self, config: TransportConfig | None = None):
        self.config = config
        self._event_handlers: list[TransportEventHandler] = []

    def on_event(self, handler: TransportEventHandler) -> None:
        """
        Register an event handler for transport events.

        Args:
            handler: Callback invoked when transport events occur.
        """
        self._event_handlers.append(handler)

    def remove_handler(self, handler: TransportEventHandler) -> None:
        try:
            self._event_handlers.remove(handler)
        except ValueError:
            pass

    def _emit_event(self, event: TransportEvent) -> None:
        """Emit an event to all registered handlers."""
        for handler in list(self._event_handlers):
            try:
                handler(event)
            except Exception:
                logger.exception(f"Transport event handler failed for {event}")

    def _emit(
        self,
        type: TransportEventType,
        data: bytes | None = None,
        code: TransportErrorCode | None = None,
        error: Exception | None = None,
    ) -> None:
        self._emit_event(
            TransportEvent(
                type=type,
                timestamp=time.time(),
                data=data,
                code=code,
                error=error,
            )
        )

    @abstractmethod
    def connect(self) -> None:
        """
        Start connecting.

        Emits CONNECTING, then CONNECTED on success or ERROR
        (CONNECT_FAILED) followed by CLOSED on failure.
        """
        pass

    @abstractmethod
    def send(self, data: bytes) -> bool:
        """
        Queue bytes for writing.

        Returns:
            True if the bytes were queued. On failure an ERROR
            (SEND_FAILED) or BUFFER_FULL event is emitted.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Close gracefully after flushing queued bytes."""
        pass

    @abstractmethod
    def destroy(self) -> None:
        """
        Tear down immediately, discarding queued bytes.

        Also cancels a pending connect or reconnect. Emits CLOSED if a
        connection or connection attempt was in progress.
        """
        pass

    @abstractmethod
    def reconnect(self, after: float = 0) -> None:
        """
        Connect again after a delay in seconds.

        Emits CONNECTING when the delayed attempt begins.
        """
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the byte stream is open."""
        pass
