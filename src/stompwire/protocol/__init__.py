"""
STOMP Protocol Core.

Implements STOMP frame encoding and decoding, the client connection
state machine, subscriptions and message acknowledgement.
"""

from stompwire.protocol.frames import (
    Command,
    Frame,
    FrameBoundary,
    BoundaryKind,
    FrameError,
    detect_frame_length,
    decode,
    encode,
)
from stompwire.protocol.errors import ErrorKind, StompError
from stompwire.protocol.state import (
    ConnectionState,
    ConnectionStateMachine,
    InvalidStateTransition,
)
from stompwire.protocol.ack import AckMode, AckToken
from stompwire.protocol.subscriptions import Subscription, SubscriptionRegistry
from stompwire.protocol.client import StompClient

__all__ = [
    # Frames
    "Command",
    "Frame",
    "FrameBoundary",
    "BoundaryKind",
    "FrameError",
    "detect_frame_length",
    "decode",
    "encode",
    # Errors
    "ErrorKind",
    "StompError",
    # State
    "ConnectionState",
    "ConnectionStateMachine",
    "InvalidStateTransition",
    # Acknowledgement
    "AckMode",
    "AckToken",
    # Subscriptions
    "Subscription",
    "SubscriptionRegistry",
    # Client
    "StompClient",
]
