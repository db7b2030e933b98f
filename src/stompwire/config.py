"""STOMP client configuration loading."""

from __future__ import annotations

import logging
import ssl
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

import orjson

logger = logging.getLogger(__name__)

# Option names accepted as aliases of the dataclass fields
OPTION_ALIASES = {
    "bindto": "bind_to",
    "ssl": "tls",
    "connect_timeout_seconds": "connect_timeout",
    "reconnect_period_seconds": "reconnect_period",
    "debug_logging": "debug",
}


@dataclass
class ClientConfig:
    """Configuration for a STOMP client."""

    vhost: str = "/"
    """Virtual host sent in the CONNECT frame's host header."""

    login: str | None = "guest"
    """Login for CONNECT. None omits both login and passcode."""

    passcode: str | None = "guest"
    """Passcode for CONNECT. None omits both login and passcode."""

    bind_to: str | None = None
    """Local address to bind the socket to."""

    tls: ssl.SSLContext | bool | None = None
    """True for a default TLS context, or an explicit SSLContext."""

    connect_timeout: float = 30.0
    """Seconds to wait for the CONNECTED frame after starting to connect."""

    reconnect_period: float = 2.0
    """Seconds before reconnecting after the connection closes; <= 0 disables."""

    heartbeat_interval: float = 0.0
    """Seconds between liveness checks once established; <= 0 disables."""

    debug: bool = False
    """Log every frame sent and received."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.connect_timeout <= 0:
            raise ValueError("connect_timeout must be positive")
        if self.heartbeat_interval < 0:
            raise ValueError("heartbeat_interval must not be negative")
        if not self.vhost:
            raise ValueError("vhost is required")

    @property
    def sends_credentials(self) -> bool:
        return self.login is not None and self.passcode is not None

    @property
    def auto_reconnect(self) -> bool:
        return self.reconnect_period > 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ClientConfig":
        """
        Create from an options dict.

        Accepts field names and their aliases (bindto, ssl, ...).
        Unknown keys are ignored with a warning.
        """
        known = {f.name for f in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in data.items():
            name = OPTION_ALIASES.get(key, key)
            if name not in known:
                logger.warning(f"Ignoring unknown client option: {key}")
                continue
            kwargs[name] = value

        # An empty TLS settings block means TLS is off
        if isinstance(kwargs.get("tls"), dict):
            kwargs["tls"] = bool(kwargs["tls"])
        if kwargs.get("bind_to") == "":
            kwargs["bind_to"] = None
        return cls(**kwargs)


def load_client_config(path: Path, section: str | None = None) -> ClientConfig:
    """Load client options from a JSON file.

    Args:
        path: JSON file holding an options object.
        section: Optional top-level key holding the options instead.

    Returns:
        Parsed configuration.

    Raises:
        FileNotFoundError: If the file does not exist.
        ValueError: If the file is not valid JSON or options are invalid.
    """
    data = orjson.loads(Path(path).read_bytes())
    if section is not None:
        data = data.get(section, {})
    if not isinstance(data, dict):
        raise ValueError(f"Client options in {path} must be an object")
    return ClientConfig.from_dict(data)
