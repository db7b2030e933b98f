"""Readable one-line frame descriptions for debug logging."""

from __future__ import annotations

from stompwire.protocol.frames import Frame

# Longest body excerpt included in a description
BODY_PREVIEW_LIMIT = 200

# Header values that are never written to logs
REDACTED_HEADERS = frozenset({"passcode"})


def describe_frame(frame: Frame, direction: str = "recv") -> str:
    """
    Describe a frame for the debug log.

    Args:
        frame: The frame to describe.
        direction: "recv" for inbound frames, "send" for outbound ones.

    Returns:
        A line like "<- Recv MESSAGE frame, header[...] body[...]".
    """
    arrow = "<- Recv" if direction == "recv" else "-> Send"
    headers = " ".join(
        f"{key}:{'***' if key in REDACTED_HEADERS else value}"
        for key, value in frame.headers.items()
    )
    body = frame.text
    if len(body) > BODY_PREVIEW_LIMIT:
        body = body[:BODY_PREVIEW_LIMIT] + "..."
    return f"{arrow} {frame.command} frame, header[{headers}] body[{body}]"
