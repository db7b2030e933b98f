"""Tests for the STOMP frame codec."""

import pytest

from stompwire.protocol.frames import (
    BoundaryKind,
    Command,
    Frame,
    FrameError,
    decode,
    detect_frame_length,
    encode,
)


class TestDetectFrameLength:
    """Tests for frame boundary detection."""

    def test_send_with_content_length(self):
        buffer = b"SEND\ncontent-length:5\n\nhello\x00"
        boundary = detect_frame_length(buffer)
        assert boundary.kind == BoundaryKind.FRAME
        assert boundary.length == len(buffer)

    def test_missing_trailing_nul_is_incomplete(self):
        buffer = b"SEND\ncontent-length:5\n\nhello"
        assert detect_frame_length(buffer).kind == BoundaryKind.INCOMPLETE

    def test_empty_buffer_is_incomplete(self):
        assert not detect_frame_length(b"").is_complete

    def test_no_separator_yet(self):
        assert not detect_frame_length(b"MESSAGE\ndestination:/q").is_complete

    @pytest.mark.parametrize("buffer", [b"\n", b"\x00", b"\nMESSAGE\n"])
    def test_heartbeat_is_one_byte(self, buffer):
        boundary = detect_frame_length(buffer)
        assert boundary.kind == BoundaryKind.HEARTBEAT
        assert boundary.length == 1

    def test_receipt_ends_three_bytes_after_separator(self):
        head = b"RECEIPT\nreceipt-id:77"
        buffer = head + b"\n\n\x00content-length:99\n\nMESSAGE"
        boundary = detect_frame_length(buffer)
        assert boundary.kind == BoundaryKind.FRAME
        assert boundary.length == len(head) + 3

    def test_connected_ignores_content_length_header(self):
        buffer = b"CONNECTED\ncontent-length:10\n\n\x00"
        assert detect_frame_length(buffer).length == len(buffer)

    def test_message_without_content_length_scans_for_nul(self):
        frame = b"MESSAGE\nsubscription:sub-1\n\nbody text\x00"
        boundary = detect_frame_length(frame + b"MESSAGE\n")
        assert boundary.length == len(frame)

    def test_message_without_nul_is_incomplete(self):
        assert not detect_frame_length(b"MESSAGE\nid:1\n\npartial").is_complete

    def test_content_length_allows_nul_in_body(self):
        buffer = b"MESSAGE\ncontent-length:3\n\na\x00b\x00"
        assert detect_frame_length(buffer).length == len(buffer)

    def test_content_length_key_is_case_sensitive(self):
        # Falls back to NUL scanning, which stops at the embedded NUL
        buffer = b"MESSAGE\nContent-Length:3\n\na\x00b\x00"
        assert detect_frame_length(buffer).length == len(b"MESSAGE\nContent-Length:3\n\na\x00")

    def test_invalid_content_length(self):
        with pytest.raises(FrameError, match="content-length"):
            detect_frame_length(b"SEND\ncontent-length:abc\n\nx\x00")

    def test_only_first_frame_is_measured(self):
        first = b"ERROR\nmessage:bad\n\noops\x00"
        second = b"RECEIPT\nreceipt-id:1\n\n\x00"
        assert detect_frame_length(first + second).length == len(first)


class TestDecode:
    """Tests for frame decoding."""

    def test_decode_message(self):
        frame = decode(b"MESSAGE\ndestination:/queue/a\nmessage-id:7\n\nhi\x00")
        assert frame.command == Command.MESSAGE
        assert frame.headers == {"destination": "/queue/a", "message-id": "7"}
        assert frame.body == b"hi"

    def test_heartbeat(self):
        frame = decode(b"\n")
        assert frame.is_heartbeat
        assert frame.headers == {}
        assert frame.body == b""

    def test_first_duplicate_header_wins(self):
        frame = decode(b"MESSAGE\nfoo:first\nfoo:second\n\n\x00")
        assert frame.get("foo") == "first"

    def test_value_keeps_later_colons(self):
        frame = decode(b"ERROR\nmessage:a:b:c\n\n\x00")
        assert frame.get("message") == "a:b:c"

    def test_header_order_preserved(self):
        frame = decode(b"SEND\nz:1\na:2\nm:3\n\n\x00")
        assert list(frame.headers) == ["z", "a", "m"]

    def test_unknown_command(self):
        with pytest.raises(FrameError, match="Unknown command"):
            decode(b"BOGUS\n\n\x00")

    def test_header_without_colon(self):
        with pytest.raises(FrameError, match="Malformed header"):
            decode(b"MESSAGE\nnocolon\n\n\x00")


class TestEncode:
    """Tests for frame encoding."""

    def test_encode_send(self):
        frame = Frame(Command.SEND, {"destination": "/q", "content-length": "2"}, b"hi")
        assert encode(frame) == b"SEND\ndestination:/q\ncontent-length:2\n\nhi\x00"

    def test_encode_without_headers(self):
        assert encode(Frame(Command.DISCONNECT)) == b"DISCONNECT\n\n\x00"

    def test_heartbeat_is_single_newline(self):
        assert encode(Frame.heartbeat()) == b"\n"

    def test_headers_in_caller_order(self):
        frame = Frame(Command.SUBSCRIBE, {"b": "1", "a": "2"})
        assert encode(frame).startswith(b"SUBSCRIBE\nb:1\na:2\n")

    @pytest.mark.parametrize(
        "frame",
        [
            Frame(
                Command.MESSAGE,
                {"subscription": "sub-1", "message-id": "42", "destination": "/topic/x"},
                "café".encode("utf-8"),
            ),
            Frame(Command.SEND, {"destination": "/queue/a"}),
            Frame(Command.SEND, {"content-length": "4"}, b"\x00\xff\x00\x01"),
            Frame(Command.ERROR, {"message": "bad:frame:here"}, b"details"),
            Frame(Command.ERROR, {"message": ""}),
            Frame(Command.SEND, {}, b"no headers"),
            Frame(Command.SUBSCRIBE, {"id": "sub-1", "selector": "a = 'b:c'"}),
            Frame(Command.DISCONNECT),
        ],
        ids=[
            "message-utf8",
            "send-empty-body",
            "send-binary-body",
            "error-colon-value",
            "error-empty-value",
            "send-no-headers",
            "subscribe-colon-value",
            "disconnect",
        ],
    )
    def test_round_trip(self, frame):
        assert decode(encode(frame)) == frame

    def test_encoded_frame_measures_itself(self):
        data = encode(Frame(Command.SEND, {"destination": "/q"}, b"payload"))
        assert detect_frame_length(data).length == len(data)


class TestFrame:
    """Tests for the Frame type."""

    def test_headers_copied(self):
        headers = {"a": "1"}
        frame = Frame(Command.SEND, headers)
        headers["a"] = "changed"
        assert frame.get("a") == "1"

    def test_frozen(self):
        frame = Frame(Command.SEND)
        with pytest.raises(AttributeError):
            frame.body = b"x"

    def test_headers_read_only(self):
        frame = Frame(Command.SEND, {"a": "1"})
        with pytest.raises(TypeError):
            frame.headers["a"] = "2"
        with pytest.raises(AttributeError):
            frame.headers.pop("a")
        assert frame.get("a") == "1"

    def test_text(self):
        assert Frame(Command.MESSAGE, body=b"hello").text == "hello"
