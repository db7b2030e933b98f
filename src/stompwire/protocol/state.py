"""Connection state machine for the STOMP client lifecycle."""

from __future__ import annotations

import logging
from enum import Enum, auto
from typing import Callable

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """
    Client connection states.

    State transitions:
        INITIAL -> CONNECTING -> AWAITING_CONNECTED -> ESTABLISHED -> DISCONNECTING
                      ^                  |                 |               |
                      |                  v                 v               v
                      +------------ DISCONNECTED <---------+---------------+

    DISCONNECTED is reached whenever the transport closes. A reconnect
    attempt moves the client from DISCONNECTED back to CONNECTING.
    """

    INITIAL = auto()
    CONNECTING = auto()
    AWAITING_CONNECTED = auto()
    ESTABLISHED = auto()
    DISCONNECTING = auto()
    DISCONNECTED = auto()

    def __str__(self) -> str:
        return self.name


class InvalidStateTransition(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: ConnectionState, to_state: ConnectionState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid state transition: {from_state.name} -> {to_state.name}"
        )


StateTransitionCallback = Callable[[ConnectionState, ConnectionState], None]

# States in which frames other than ACK/NACK may be written
SENDABLE_STATES = frozenset(
    {
        ConnectionState.AWAITING_CONNECTED,
        ConnectionState.ESTABLISHED,
        ConnectionState.DISCONNECTING,
    }
)


class ConnectionStateMachine:
    """
    Tracks the client's connection state.

    Enforces valid state transitions and notifies listeners
    when transitions occur.
    """

    VALID_TRANSITIONS: dict[ConnectionState, list[ConnectionState]] = {
        ConnectionState.INITIAL: [ConnectionState.CONNECTING],
        ConnectionState.CONNECTING: [
            ConnectionState.AWAITING_CONNECTED,
            ConnectionState.DISCONNECTED,  # Connect failed or timed out
        ],
        ConnectionState.AWAITING_CONNECTED: [
            ConnectionState.ESTABLISHED,
            ConnectionState.DISCONNECTING,
            ConnectionState.DISCONNECTED,
        ],
        ConnectionState.ESTABLISHED: [
            ConnectionState.DISCONNECTING,
            ConnectionState.DISCONNECTED,
        ],
        ConnectionState.DISCONNECTING: [ConnectionState.DISCONNECTED],
        ConnectionState.DISCONNECTED: [ConnectionState.CONNECTING],
    }

    def __init__(self, initial_state: ConnectionState = ConnectionState.INITIAL):
        self._state = initial_state
        self._listeners: list[StateTransitionCallback] = []

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state

    @property
    def can_send(self) -> bool:
        """Check if frames may be written in the current state."""
        return self._state in SENDABLE_STATES

    @property
    def is_established(self) -> bool:
        return self._state == ConnectionState.ESTABLISHED

    @property
    def is_connecting(self) -> bool:
        """Check if a connection attempt is still waiting for CONNECTED."""
        return self._state in (
            ConnectionState.CONNECTING,
            ConnectionState.AWAITING_CONNECTED,
        )

    def can_transition_to(self, new_state: ConnectionState) -> bool:
        """Check if transition to new_state is valid."""
        return new_state in self.VALID_TRANSITIONS.get(self._state, [])

    def transition(self, new_state: ConnectionState) -> None:
        """
        Transition to a new state.

        Args:
            new_state: The target state.

        Raises:
            InvalidStateTransition: If the transition is not valid.
        """
        if not self.can_transition_to(new_state):
            raise InvalidStateTransition(self._state, new_state)

        old_state = self._state
        self._state = new_state
        logger.debug(f"Connection state {old_state} -> {new_state}")

        for listener in list(self._listeners):
            try:
                listener(old_state, new_state)
            except Exception:
                logger.exception("State listener failed")

    def on_transition(self, callback: StateTransitionCallback) -> None:
        """
        Register a callback for state transitions.

        Args:
            callback: Function called with (old_state, new_state) on transitions.
        """
        self._listeners.append(callback)

    def remove_listener(self, callback: StateTransitionCallback) -> None:
        """Remove a previously registered callback."""
        try:
            self._listeners.remove(callback)
        except ValueError:
            pass

    def __str__(self) -> str:
        return f"ConnectionStateMachine({self._state.name})"

    def __repr__(self) -> str:
        return f"ConnectionStateMachine(state={self._state!r})"
