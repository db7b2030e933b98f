"""Transport layer types and configuration."""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field
from enum import Enum, IntEnum, auto
from typing import Any
from urllib.parse import urlparse

DEFAULT_PORT = 61613
TLS_SCHEMES = ("stomp+ssl", "stomp+tls", "ssl", "tls")


class TransportEventType(Enum):
    """Events a transport reports to its owner."""

    CONNECTING = auto()
    CONNECTED = auto()
    DATA_RECEIVED = auto()
    ERROR = auto()
    CLOSED = auto()
    BUFFER_FULL = auto()


class TransportErrorCode(IntEnum):
    """Error codes carried by ERROR events."""

    CONNECT_FAILED = 1
    SEND_FAILED = 2


@dataclass
class TransportEvent:
    """Event emitted by a transport."""

    type: TransportEventType
    timestamp: float
    data: bytes | None = None
    code: TransportErrorCode | None = None
    error: Exception | None = None

    def __str__(self) -> str:
        base = f"[{self.type.name}]"
        if self.data is not None:
            base += f" {len(self.data)} bytes"
        if self.code is not None:
            base += f" code={self.code.name}"
        if self.error:
            base += f" error={self.error}"
        return base


@dataclass
class TransportConfig:
    """Configuration for the TCP transport."""

    address: str
    """Broker address: host:port, stomp://host:port or stomp+ssl://host:port."""

    bind_to: str | None = None
    """Local address to bind before connecting, as host or host:port."""

    tls: ssl.SSLContext | bool | None = None
    """True for a default TLS context, or an explicit SSLContext."""

    max_send_buffer_size: int = 1024 * 1024
    """Write buffer high-water mark in bytes; exceeding it reports BUFFER_FULL."""

    extra: dict[str, Any] = field(default_factory=dict)
    """Extra keyword arguments for loop.create_connection()."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.address:
            raise ValueError("address is required")
        if self.max_send_buffer_size < 1:
            raise ValueError("max_send_buffer_size must be positive")
        # Validates the address eagerly
        self.host_port()

    def host_port(self) -> tuple[str, int]:
        """Split the address into host and port."""
        parsed = urlparse(self.address if "://" in self.address else f"//{self.address}")
        try:
            port = parsed.port
        except ValueError:
            raise ValueError(f"Invalid port in address: {self.address}")
        if not parsed.hostname:
            raise ValueError(f"Invalid address: {self.address}")
        return parsed.hostname, port or DEFAULT_PORT

    def local_addr(self) -> tuple[str, int] | None:
        """Local bind address for create_connection()."""
        if not self.bind_to:
            return None
        host, _, port = self.bind_to.rpartition(":")
        if not host:
            return (self.bind_to, 0)
        return (host.strip("[]"), int(port or 0))

    def ssl_context(self) -> ssl.SSLContext | None:
        """TLS context, from the tls option or a TLS address scheme."""
        if isinstance(self.tls, ssl.SSLContext):
            return self.tls
        scheme = urlparse(self.address).scheme if "://" in self.address else ""
        if self.tls or scheme in TLS_SCHEMES:
            return ssl.create_default_context()
        return None
