"""
STOMP Transport Layer.

Byte-stream transports the client drives through a narrow interface.
"""

from stompwire.transport.types import (
    TransportConfig,
    TransportEvent,
    TransportEventType,
    TransportErrorCode,
)
from stompwire.transport.base import Transport, TransportError
from stompwire.transport.tcp import TcpTransport

__all__ = [
    "Transport",
    "TransportConfig",
    "TransportEvent",
    "TransportEventType",
    "TransportErrorCode",
    "TransportError",
    "TcpTransport",
]
