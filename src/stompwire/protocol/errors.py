"""Client error kinds reported through the on_error notification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stompwire.protocol.frames import Frame


class ErrorKind(Enum):
    """Categories of client errors."""

    CONNECT_FAILED = "connect_failed"
    CONNECT_TIMEOUT = "connect_timeout"
    TRANSPORT_CLOSED = "transport_closed"
    PROTOCOL_ERROR = "protocol_error"
    BUFFER_OVERRUN = "buffer_overrun"
    NOT_CONNECTED = "not_connected"
    INVALID_ARGUMENT = "invalid_argument"

    def __str__(self) -> str:
        return self.name


# Error kind to default message mapping
ERROR_MESSAGES = {
    ErrorKind.CONNECT_FAILED: "Connection failed",
    ErrorKind.CONNECT_TIMEOUT: "Connection timeout",
    ErrorKind.TRANSPORT_CLOSED: "Connection closed",
    ErrorKind.PROTOCOL_ERROR: "Server reported an error",
    ErrorKind.BUFFER_OVERRUN: "Connection buffer full and close connection",
    ErrorKind.NOT_CONNECTED: "Connection not established",
    ErrorKind.INVALID_ARGUMENT: "Invalid argument",
}


@dataclass
class StompError(Exception):
    """
    STOMP client error.

    Delivered to the client's on_error notification rather than raised to
    the caller. Server ERROR frames are carried in `frame`.
    """

    kind: ErrorKind
    message: str
    frame: "Frame | None" = None

    def __post_init__(self):
        super().__init__(self.message)

    @classmethod
    def connect_failed(cls, details: str | None = None) -> "StompError":
        message = ERROR_MESSAGES[ErrorKind.CONNECT_FAILED]
        if details:
            message = f"{message}: {details}"
        return cls(ErrorKind.CONNECT_FAILED, message)

    @classmethod
    def connect_timeout(cls, timeout_seconds: float) -> "StompError":
        return cls(
            ErrorKind.CONNECT_TIMEOUT,
            f"{ERROR_MESSAGES[ErrorKind.CONNECT_TIMEOUT]} after {timeout_seconds}s",
        )

    @classmethod
    def transport_closed(cls, details: str | None = None) -> "StompError":
        message = ERROR_MESSAGES[ErrorKind.TRANSPORT_CLOSED]
        if details:
            message = f"{message}: {details}"
        return cls(ErrorKind.TRANSPORT_CLOSED, message)

    @classmethod
    def from_frame(cls, frame: "Frame") -> "StompError":
        """Create from a server ERROR frame."""
        return cls(
            ErrorKind.PROTOCOL_ERROR,
            frame.get("message") or ERROR_MESSAGES[ErrorKind.PROTOCOL_ERROR],
            frame=frame,
        )

    @classmethod
    def protocol_error(cls, details: str) -> "StompError":
        return cls(ErrorKind.PROTOCOL_ERROR, details)

    @classmethod
    def buffer_overrun(cls) -> "StompError":
        return cls(ErrorKind.BUFFER_OVERRUN, ERROR_MESSAGES[ErrorKind.BUFFER_OVERRUN])

    @classmethod
    def not_connected(cls, operation: str | None = None) -> "StompError":
        message = ERROR_MESSAGES[ErrorKind.NOT_CONNECTED]
        if operation:
            message = f"{message} ({operation})"
        return cls(ErrorKind.NOT_CONNECTED, message)

    @classmethod
    def invalid_argument(cls, details: str) -> "StompError":
        return cls(
            ErrorKind.INVALID_ARGUMENT,
            f"{ERROR_MESSAGES[ErrorKind.INVALID_ARGUMENT]}: {details}",
        )

    def __str__(self) -> str:
        return f"StompError({self.kind}): {self.message}"

    def __repr__(self) -> str:
        return f"StompError(kind={self.kind}, message={self.message!r})"
