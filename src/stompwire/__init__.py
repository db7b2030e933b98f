"""
STOMP client for asyncio.

Submodules:
- protocol: frame codec, connection state machine, subscriptions, acks
- transport: TCP/TLS byte-stream transport
- utilities: timers and frame logging
- config: client options
"""

# Protocol layer
from stompwire.protocol import (
    AckMode,
    AckToken,
    Command,
    ConnectionState,
    ErrorKind,
    Frame,
    StompClient,
    StompError,
    Subscription,
    decode,
    detect_frame_length,
    encode,
)

# Transport layer
from stompwire.transport import (
    TcpTransport,
    Transport,
    TransportConfig,
    TransportError,
)

# Configuration
from stompwire.config import ClientConfig, load_client_config

__version__ = "0.1.0"

__all__ = [
    "AckMode",
    "AckToken",
    "Command",
    "ConnectionState",
    "ErrorKind",
    "Frame",
    "StompClient",
    "StompError",
    "Subscription",
    "decode",
    "detect_frame_length",
    "encode",
    "TcpTransport",
    "Transport",
    "TransportConfig",
    "TransportError",
    "ClientConfig",
    "load_client_config",
]
