"""STOMP frame types and wire codec."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Mapping

NULL = b"\x00"
EOL = b"\n"
HEADER_SEPARATOR = b"\n\n"


class FrameError(ValueError):
    """Raised when bytes cannot be interpreted as a STOMP frame."""

    pass


class Command(str, Enum):
    """STOMP commands understood by the codec."""

    # Client frames
    CONNECT = "CONNECT"
    STOMP = "STOMP"
    SEND = "SEND"
    SUBSCRIBE = "SUBSCRIBE"
    UNSUBSCRIBE = "UNSUBSCRIBE"
    ACK = "ACK"
    NACK = "NACK"
    DISCONNECT = "DISCONNECT"

    # Server frames
    CONNECTED = "CONNECTED"
    MESSAGE = "MESSAGE"
    RECEIPT = "RECEIPT"
    ERROR = "ERROR"

    # Synthetic keep-alive marker, never written as a command line
    HEARTBEAT = ""

    def __str__(self) -> str:
        return self.value or "HEARTBEAT"


# Only these commands may carry a body
BODY_COMMANDS = frozenset({"SEND", "MESSAGE", "ERROR"})


@dataclass(frozen=True)
class Frame:
    """
    A single STOMP frame.

    Headers keep the order they were supplied in. The mapping is copied on
    construction and exposed read-only, so neither the caller's dict nor
    a message callback can change a constructed frame.
    """

    command: Command
    headers: Mapping[str, str] = field(default_factory=dict)
    body: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))

    @classmethod
    def heartbeat(cls) -> "Frame":
        """Create the synthetic heartbeat frame."""
        return cls(command=Command.HEARTBEAT)

    @property
    def is_heartbeat(self) -> bool:
        return self.command is Command.HEARTBEAT

    @property
    def text(self) -> str:
        """Body decoded as UTF-8."""
        return self.body.decode("utf-8", errors="replace")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a header value."""
        return self.headers.get(key, default)

    def __str__(self) -> str:
        return f"Frame({self.command}, headers={len(self.headers)}, body={len(self.body)}b)"


class BoundaryKind(Enum):
    """Outcome of scanning a receive buffer for a frame."""

    INCOMPLETE = auto()
    HEARTBEAT = auto()
    FRAME = auto()


@dataclass(frozen=True)
class FrameBoundary:
    """Where the first frame in a buffer ends, if it is complete."""

    kind: BoundaryKind
    length: int = 0

    @property
    def is_complete(self) -> bool:
        return self.kind is not BoundaryKind.INCOMPLETE

    @classmethod
    def incomplete(cls) -> "FrameBoundary":
        return cls(BoundaryKind.INCOMPLETE)

    @classmethod
    def heartbeat(cls) -> "FrameBoundary":
        return cls(BoundaryKind.HEARTBEAT, 1)

    @classmethod
    def frame(cls, length: int) -> "FrameBoundary":
        return cls(BoundaryKind.FRAME, length)


def _starts_with_heartbeat(buffer: bytes | bytearray) -> bool:
    return buffer[:1] in (EOL, NULL)


def _header_lines(head: bytes) -> list[bytes]:
    return head.strip(EOL).split(EOL)


def detect_frame_length(buffer: bytes | bytearray) -> FrameBoundary:
    """
    Determine whether the buffer starts with a complete frame.

    Args:
        buffer: Bytes received so far.

    Returns:
        FrameBoundary describing the first frame, or INCOMPLETE if more
        bytes are needed.

    Raises:
        FrameError: If a content-length header is not a valid length.
    """
    if not buffer:
        return FrameBoundary.incomplete()
    if _starts_with_heartbeat(buffer):
        return FrameBoundary.heartbeat()

    pos = buffer.find(HEADER_SEPARATOR)
    if pos == -1:
        return FrameBoundary.incomplete()
    body_start = pos + len(HEADER_SEPARATOR)

    lines = _header_lines(bytes(buffer[:pos]))
    command = lines[0].decode("utf-8", errors="replace")

    if command not in BODY_COMMANDS:
        length = pos + 3
    else:
        length = None
        for line in lines[1:]:
            key, sep, value = line.partition(b":")
            if sep and key == b"content-length":
                try:
                    content_length = int(value)
                except ValueError:
                    raise FrameError(f"Invalid content-length: {value!r}")
                if content_length < 0:
                    raise FrameError(f"Invalid content-length: {content_length}")
                length = body_start + content_length + 1
                break

        if length is None:
            end = buffer.find(NULL, body_start)
            if end == -1:
                return FrameBoundary.incomplete()
            length = end + 1

    if length > len(buffer):
        return FrameBoundary.incomplete()
    return FrameBoundary.frame(length)


def decode(buffer: bytes | bytearray) -> Frame:
    """
    Decode exactly one complete frame.

    The buffer must be sized by detect_frame_length().

    Raises:
        FrameError: If the command is unknown or a header line is malformed.
    """
    buffer = bytes(buffer)
    if _starts_with_heartbeat(buffer):
        return Frame.heartbeat()

    head, sep, rest = buffer.partition(HEADER_SEPARATOR)
    if not sep:
        raise FrameError("Missing header separator")

    try:
        lines = head.decode("utf-8").strip("\n").split("\n")
    except UnicodeDecodeError as e:
        raise FrameError(f"Header block is not UTF-8: {e}")

    name = lines[0]
    try:
        command = Command(name)
    except ValueError:
        raise FrameError(f"Unknown command: {name!r}")
    if command is Command.HEARTBEAT:
        raise FrameError("Empty command line")

    headers: dict[str, str] = {}
    for line in lines[1:]:
        if not line:
            continue
        key, colon, value = line.partition(":")
        if not colon:
            raise FrameError(f"Malformed header line: {line!r}")
        # First occurrence of a repeated header wins
        if key not in headers:
            headers[key] = value

    return Frame(command=command, headers=headers, body=rest[:-1])


def encode(frame: Frame) -> bytes:
    """Encode a frame to wire bytes."""
    if frame.is_heartbeat:
        return EOL

    parts = [frame.command.value.encode("utf-8"), EOL]
    for key, value in frame.headers.items():
        parts.append(f"{key}:{value}".encode("utf-8"))
        parts.append(EOL)
    parts.append(EOL)
    parts.append(frame.body)
    parts.append(NULL)
    return b"".join(parts)
