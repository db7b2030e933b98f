"""Subscription registry used for routing and resubscription."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, Iterator

from stompwire.protocol.ack import AckMode

if TYPE_CHECKING:
    from stompwire.protocol.ack import AckToken
    from stompwire.protocol.client import StompClient
    from stompwire.protocol.frames import Frame

logger = logging.getLogger(__name__)

MessageCallback = Callable[["StompClient", "Frame", "AckToken"], None]


@dataclass
class Subscription:
    """A standing registration for messages from a destination."""

    id: str
    """Subscription id, unique per client."""

    destination: str
    """Destination the subscription listens on."""

    callback: MessageCallback
    """Called with (client, frame, token) for each delivered message."""

    ack_mode: AckMode = AckMode.AUTO
    """How delivered messages must be acknowledged."""

    headers: dict[str, str] = field(default_factory=dict)
    """Headers the caller originally passed to subscribe()."""

    @property
    def requires_ack(self) -> bool:
        return self.ack_mode != AckMode.AUTO

    def subscribe_headers(self) -> dict[str, str]:
        """Headers for the SUBSCRIBE frame, on first subscribe and on replay."""
        headers = dict(self.headers)
        headers["id"] = self.id
        headers["ack"] = self.ack_mode.value
        headers["destination"] = self.destination
        return headers

    def __str__(self) -> str:
        return f"Subscription({self.id} -> {self.destination} [{self.ack_mode}])"


class SubscriptionRegistry:
    """
    Maps subscription ids to their subscriptions.

    Only the owning client mutates the registry, on its own event loop turn.
    """

    def __init__(self):
        self._subscriptions: dict[str, Subscription] = {}

    def add(self, subscription: Subscription) -> None:
        """
        Register a subscription, replacing any entry with the same id.

        Args:
            subscription: The subscription to register.
        """
        if subscription.id in self._subscriptions:
            logger.debug(f"Replacing subscription: {subscription}")
        else:
            logger.debug(f"Registered subscription: {subscription}")
        self._subscriptions[subscription.id] = subscription

    def remove(self, subscription_id: str) -> Subscription | None:
        """
        Remove a subscription.

        Returns:
            The removed subscription, or None if not registered.
        """
        subscription = self._subscriptions.pop(subscription_id, None)
        if subscription:
            logger.debug(f"Removed subscription: {subscription}")
        return subscription

    def get(self, subscription_id: str) -> Subscription | None:
        return self._subscriptions.get(subscription_id)

    def ids(self) -> list[str]:
        return list(self._subscriptions)

    def clear(self) -> None:
        self._subscriptions.clear()

    def __len__(self) -> int:
        return len(self._subscriptions)

    def __contains__(self, subscription_id: object) -> bool:
        return subscription_id in self._subscriptions

    def __iter__(self) -> Iterator[Subscription]:
        """Iterate over a snapshot of the registered subscriptions."""
        return iter(list(self._subscriptions.values()))
