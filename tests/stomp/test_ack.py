"""Tests for acknowledgement tokens."""

from unittest.mock import MagicMock

from stompwire.protocol.ack import AckMode, AckToken


class TestAckToken:
    """Tests for AckToken one-shot behavior."""

    def test_ack_forwards_once(self):
        client = MagicMock()
        token = AckToken(client, "sub-1", "m-1")

        token.ack({"receipt": "r1"})
        token.ack()

        client.ack.assert_called_once_with("sub-1", "m-1", {"receipt": "r1"})
        assert token.is_done

    def test_nack_forwards_once(self):
        client = MagicMock()
        token = AckToken(client, "sub-1", "m-1")

        token.nack()
        token.nack()

        client.nack.assert_called_once_with("sub-1", "m-1", None)

    def test_ack_after_nack_is_noop(self):
        client = MagicMock()
        token = AckToken(client, "sub-1", "m-1")

        token.nack()
        token.ack()

        client.ack.assert_not_called()

    def test_client_reference_dropped(self):
        token = AckToken(MagicMock(), "sub-1", "m-1")
        token.ack()
        assert token._client is None

    def test_done_sends_nothing(self):
        client = MagicMock()
        token = AckToken(client, "sub-1", "m-1")

        token.done()
        token.ack()
        token.nack()

        client.ack.assert_not_called()
        client.nack.assert_not_called()
        assert token.is_done


class TestAckMode:
    def test_wire_values(self):
        assert AckMode("client-individual") is AckMode.CLIENT_INDIVIDUAL
        assert str(AckMode.AUTO) == "auto"
