"""One-shot acknowledgement tokens for delivered messages."""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from stompwire.protocol.client import StompClient

logger = logging.getLogger(__name__)


class AckMode(str, Enum):
    """Subscription acknowledgement modes."""

    AUTO = "auto"
    CLIENT = "client"
    CLIENT_INDIVIDUAL = "client-individual"

    def __str__(self) -> str:
        return self.value


class AckToken:
    """
    Acknowledges or rejects one delivered message, at most once.

    The token forwards to the client's ack()/nack() on first use and then
    drops its client reference, so later calls send nothing.
    """

    def __init__(self, client: "StompClient", subscription_id: str, message_id: str):
        self._client: StompClient | None = client
        self.subscription_id = subscription_id
        self.message_id = message_id
        self._done = False

    @property
    def is_done(self) -> bool:
        """Whether the token has been consumed."""
        return self._done

    def ack(self, headers: dict[str, str] | None = None) -> None:
        """
        Acknowledge the message.

        Args:
            headers: Extra headers for the ACK frame.
        """
        if self._done:
            return
        self._client.ack(self.subscription_id, self.message_id, headers)
        self._consume()

    def nack(self, headers: dict[str, str] | None = None) -> None:
        """
        Reject the message.

        Args:
            headers: Extra headers for the NACK frame.
        """
        if self._done:
            return
        self._client.nack(self.subscription_id, self.message_id, headers)
        self._consume()

    def done(self) -> None:
        """Mark consumed without sending anything."""
        self._consume()

    def _consume(self) -> None:
        self._done = True
        self._client = None

    def __repr__(self) -> str:
        status = "done" if self._done else "pending"
        return (
            f"AckToken(subscription={self.subscription_id!r}, "
            f"message={self.message_id!r}, {status})"
        )
