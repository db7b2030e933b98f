"""STOMP protocol client implementation."""

from __future__ import annotations

import itertools
import logging
import uuid
from typing import Callable

from stompwire.config import ClientConfig
from stompwire.protocol.ack import AckMode, AckToken
from stompwire.protocol.errors import StompError
from stompwire.protocol.frames import (
    Command,
    Frame,
    FrameError,
    decode,
    detect_frame_length,
    encode,
)
from stompwire.protocol.state import ConnectionState, ConnectionStateMachine
from stompwire.protocol.subscriptions import (
    MessageCallback,
    Subscription,
    SubscriptionRegistry,
)
from stompwire.transport.base import Transport
from stompwire.transport.tcp import TcpTransport
from stompwire.transport.types import (
    TransportConfig,
    TransportErrorCode,
    TransportEvent,
    TransportEventType,
)
from stompwire.utilities.frame_logging import describe_frame
from stompwire.utilities.timers import LoopScheduler, Scheduler, TimerHandle

logger = logging.getLogger(__name__)

# Type aliases for notification slots
ClientCallback = Callable[["StompClient"], None]
ErrorCallback = Callable[[StompError], None]


class StompClient:
    """
    Core STOMP protocol client.

    Handles the connection lifecycle, subscriptions and acknowledgements,
    and reconnects after transport failure, replaying every registered
    subscription once the broker accepts the new connection.

    All methods are synchronous and never block. Transport events and
    timers are processed one at a time on the event loop thread.
    """

    def __init__(
        self,
        address: str,
        config: ClientConfig | None = None,
        transport: Transport | None = None,
        scheduler: Scheduler | None = None,
        on_connect: ClientCallback | None = None,
        on_reconnect: ClientCallback | None = None,
        on_close: ClientCallback | None = None,
        on_error: ErrorCallback | None = None,
    ):
        """
        Initialize STOMP client.

        Args:
            address: Broker address, e.g. "localhost:61613".
            config: Client options (defaults if omitted).
            transport: Byte-stream transport; a TcpTransport if omitted.
            scheduler: Timer scheduler; a LoopScheduler if omitted.
            on_connect: Called after the first CONNECTED frame.
            on_reconnect: Called after each later CONNECTED frame.
            on_close: Called whenever the transport closes.
            on_error: Called with a StompError for every reported error.
        """
        self.address = address
        self.config = config or ClientConfig()
        if transport is None:
            transport = TcpTransport(
                TransportConfig(
                    address=address,
                    bind_to=self.config.bind_to,
                    tls=self.config.tls,
                )
            )
        self.transport = transport
        self.scheduler = scheduler or LoopScheduler()

        self.on_connect = on_connect
        self.on_reconnect = on_reconnect
        self.on_close = on_close
        self.on_error = on_error

        self._state = ConnectionStateMachine()
        self._subscriptions = SubscriptionRegistry()
        self._subscription_ids = itertools.count(1)
        # Ids sent as SUBSCRIBE on the current connection
        self._subscribed_ids: set[str] = set()
        self._buffer = bytearray()
        self._first_connect = True
        self._do_not_reconnect = False
        self._heartbeat_received = True
        self._connect_timer: TimerHandle | None = None
        self._heartbeat_timer: TimerHandle | None = None

        self.transport.on_event(self._on_transport_event)

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state.state

    def get_state(self) -> ConnectionState:
        return self._state.state

    @property
    def is_established(self) -> bool:
        return self._state.is_established

    @property
    def subscriptions(self) -> SubscriptionRegistry:
        """Registered subscriptions. Treat as read-only."""
        return self._subscriptions

    def on_state_change(
        self,
        callback: Callable[[ConnectionState, ConnectionState], None],
    ) -> None:
        """Register callback for state changes."""
        self._state.on_transition(callback)

    # Lifecycle

    def connect(self) -> None:
        """
        Start connecting to the broker.

        Valid from INITIAL or DISCONNECTED. The CONNECT frame is sent once
        the transport is open; on_connect fires when the broker answers.
        """
        self._do_not_reconnect = False
        if self.state not in (ConnectionState.INITIAL, ConnectionState.DISCONNECTED):
            logger.warning(f"connect() ignored in state {self.state}")
            return

        self._state.transition(ConnectionState.CONNECTING)
        self._set_connect_timeout(self.config.connect_timeout)
        if self.config.debug:
            logger.debug(f"-> Try to connect to {self.address}")
        self.transport.connect()

    def reconnect(self, after: float = 0) -> None:
        """
        Connect again after a delay.

        Args:
            after: Seconds to wait before the attempt begins.
        """
        self._do_not_reconnect = False
        self._set_connect_timeout(self.config.connect_timeout + after)
        logger.info(f"Reconnecting to {self.address} in {after}s")
        self.transport.reconnect(after)

    def disconnect(self) -> None:
        """
        Disconnect gracefully.

        Sends DISCONNECT with a receipt request; the transport is closed
        when the RECEIPT arrives. Auto-reconnect is disabled.
        """
        self._do_not_reconnect = True
        if self.state == ConnectionState.DISCONNECTING:
            return
        if self.state not in (
            ConnectionState.AWAITING_CONNECTED,
            ConnectionState.ESTABLISHED,
        ):
            self.close()
            return

        self._state.transition(ConnectionState.DISCONNECTING)
        self._send_frame(
            Frame(Command.DISCONNECT, {"receipt": self._create_receipt_id()})
        )

    def close(self) -> None:
        """Tear down the transport immediately. Auto-reconnect is disabled."""
        self._do_not_reconnect = True
        if self.config.debug:
            logger.debug("-> Connection close() called")
        self.transport.destroy()

    # Messaging

    def subscribe(
        self,
        destination: str,
        callback: MessageCallback,
        headers: dict[str, str] | None = None,
    ) -> str | None:
        """
        Subscribe to a destination.

        Args:
            destination: Destination to subscribe to.
            callback: Called with (client, frame, token) per message.
            headers: Extra SUBSCRIBE headers; "id" and "ack" are honored.

        Returns:
            The subscription id, or None if not connected or the ack mode
            is unknown (reported as INVALID_ARGUMENT).
        """
        if not self._check_connected("subscribe"):
            return None

        raw_headers = dict(headers or {})
        try:
            ack_mode = AckMode(raw_headers.pop("ack", AckMode.AUTO.value))
        except ValueError as e:
            self._trigger_error(StompError.invalid_argument(str(e)))
            return None
        subscription_id = raw_headers.pop("id", None) or self._create_subscription_id()
        raw_headers.pop("destination", None)

        subscription = Subscription(
            id=subscription_id,
            destination=destination,
            callback=callback,
            ack_mode=ack_mode,
            headers=raw_headers,
        )
        # Registered first so a MESSAGE right behind the SUBSCRIBE is routable
        self._subscriptions.add(subscription)
        self._send_subscribe(subscription)
        return subscription_id

    def subscribe_with_ack(
        self,
        destination: str,
        callback: MessageCallback,
        headers: dict[str, str] | None = None,
    ) -> str | None:
        """Subscribe with client acknowledgement unless another explicit mode is given."""
        headers = dict(headers or {})
        if headers.get("ack", AckMode.AUTO.value) == AckMode.AUTO.value:
            headers["ack"] = AckMode.CLIENT.value
        return self.subscribe(destination, callback, headers)

    def unsubscribe(
        self,
        subscription_id: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        """
        Cancel a subscription.

        Args:
            subscription_id: Id returned by subscribe().
            headers: Extra UNSUBSCRIBE headers.
        """
        if not self._check_connected("unsubscribe"):
            return

        frame_headers = {"id": subscription_id}
        frame_headers.update(headers or {})
        if self._send_frame(Frame(Command.UNSUBSCRIBE, frame_headers)):
            self._subscriptions.remove(subscription_id)
            self._subscribed_ids.discard(subscription_id)

    def send(
        self,
        destination: str,
        body: bytes | str,
        headers: dict[str, str] | None = None,
    ) -> None:
        """
        Send a message to a destination.

        Args:
            destination: Target destination.
            body: Message body; str is encoded as UTF-8.
            headers: Extra SEND headers. content-type defaults to text/plain.
        """
        if not self._check_connected("send"):
            return

        if isinstance(body, str):
            body = body.encode("utf-8")
        frame_headers = dict(headers or {})
        frame_headers["destination"] = destination
        frame_headers["content-length"] = str(len(body))
        frame_headers.setdefault("content-type", "text/plain")
        self._send_frame(Frame(Command.SEND, frame_headers, body))

    def ack(
        self,
        subscription_id: str,
        message_id: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Send an ACK frame. Usually called through an AckToken."""
        self._send_ack(Command.ACK, subscription_id, message_id, headers)

    def nack(
        self,
        subscription_id: str,
        message_id: str,
        headers: dict[str, str] | None = None,
    ) -> None:
        """Send a NACK frame. Usually called through an AckToken."""
        self._send_ack(Command.NACK, subscription_id, message_id, headers)

    def _send_ack(
        self,
        command: Command,
        subscription_id: str,
        message_id: str,
        headers: dict[str, str] | None,
    ) -> None:
        frame_headers = dict(headers or {})
        frame_headers["subscription"] = subscription_id
        frame_headers["message-id"] = message_id
        self._write(Frame(command, frame_headers))

    # Outgoing frames

    def _check_connected(self, operation: str) -> bool:
        if self._state.can_send:
            return True
        self._trigger_error(StompError.not_connected(operation))
        return False

    def _send_frame(self, frame: Frame) -> bool:
        """Write a frame if the state allows it."""
        if not self._check_connected(frame.command.value):
            return False
        return self._write(frame)

    def _send_subscribe(self, subscription: Subscription) -> bool:
        """Write SUBSCRIBE unless this connection already carries the id."""
        if subscription.id in self._subscribed_ids:
            return True
        if not self._send_frame(
            Frame(Command.SUBSCRIBE, subscription.subscribe_headers())
        ):
            return False
        self._subscribed_ids.add(subscription.id)
        return True

    def _write(self, frame: Frame) -> bool:
        if self.config.debug:
            logger.debug(describe_frame(frame, "send"))
        return self.transport.send(encode(frame))

    # Transport events

    def _on_transport_event(self, event: TransportEvent) -> None:
        """Dispatch a transport event to its handler."""
        if event.type == TransportEventType.DATA_RECEIVED:
            self._on_data(event.data or b"")
        elif event.type == TransportEventType.CONNECTING:
            self._on_transport_connecting()
        elif event.type == TransportEventType.CONNECTED:
            self._on_transport_connected()
        elif event.type == TransportEventType.CLOSED:
            self._on_transport_closed()
        elif event.type == TransportEventType.ERROR:
            self._on_transport_error(event)
        elif event.type == TransportEventType.BUFFER_FULL:
            self._on_buffer_full()

    def _on_transport_connecting(self) -> None:
        # A reconnect() attempt has begun
        if self.state in (ConnectionState.INITIAL, ConnectionState.DISCONNECTED):
            self._state.transition(ConnectionState.CONNECTING)

    def _on_transport_connected(self) -> None:
        if self._do_not_reconnect:
            self.close()
            return
        if self.state != ConnectionState.CONNECTING:
            logger.warning(f"Transport connected in unexpected state {self.state}")
            return

        self._state.transition(ConnectionState.AWAITING_CONNECTED)
        if self.config.debug:
            logger.debug("-- Tcp connection established")

        headers = {"host": self.config.vhost}
        if self.config.sends_credentials:
            headers["login"] = self.config.login
            headers["passcode"] = self.config.passcode
        self._send_frame(Frame(Command.CONNECT, headers))

    def _on_transport_closed(self) -> None:
        if self.config.debug:
            logger.debug("-- Connection closed")
        self._cancel_heartbeat()
        self._cancel_connect_timeout()
        self._heartbeat_received = True
        self._buffer.clear()
        self._subscribed_ids.clear()
        if self.state != ConnectionState.DISCONNECTED:
            self._state.transition(ConnectionState.DISCONNECTED)

        if not self._do_not_reconnect and self.config.auto_reconnect:
            self.reconnect(self.config.reconnect_period)

        self._notify(self.on_close)

    def _on_transport_error(self, event: TransportEvent) -> None:
        details = str(event.error) if event.error else None
        if event.code == TransportErrorCode.CONNECT_FAILED:
            self._trigger_error(StompError.connect_failed(details))
        else:
            self._trigger_error(StompError.transport_closed(details))

    def _on_buffer_full(self) -> None:
        if self.config.debug:
            logger.debug("-- Connection buffer full and close connection")
        self._trigger_error(StompError.buffer_overrun())
        self.transport.destroy()

    def _on_data(self, data: bytes) -> None:
        """Buffer received bytes and handle every complete frame."""
        self._buffer.extend(data)
        while self._buffer:
            try:
                boundary = detect_frame_length(self._buffer)
                if not boundary.is_complete:
                    return
                frame = decode(self._buffer[: boundary.length])
            except FrameError as e:
                logger.error(f"Undecodable data from {self.address}: {e}")
                self._buffer.clear()
                self._trigger_error(StompError.protocol_error(str(e)))
                self.transport.destroy()
                return
            del self._buffer[: boundary.length]
            self._handle_frame(frame)

    # Incoming frames

    def _handle_frame(self, frame: Frame) -> None:
        """Route an incoming frame by command."""
        if self.config.debug:
            logger.debug(describe_frame(frame, "recv"))
        self._heartbeat_received = True

        if frame.command == Command.HEARTBEAT:
            return
        if frame.command == Command.CONNECTED:
            self._handle_connected(frame)
        elif frame.command == Command.MESSAGE:
            self._handle_message(frame)
        elif frame.command == Command.ERROR:
            self._trigger_error(StompError.from_frame(frame))
        elif frame.command == Command.RECEIPT:
            if self.state == ConnectionState.DISCONNECTING:
                self.close()
        else:
            logger.warning(f"Unexpected command from server: {frame.command}")

    def _handle_connected(self, frame: Frame) -> None:
        if self.state != ConnectionState.AWAITING_CONNECTED:
            logger.warning(f"CONNECTED frame ignored in state {self.state}")
            return

        self._state.transition(ConnectionState.ESTABLISHED)
        self._cancel_connect_timeout()
        if self.config.heartbeat_interval > 0:
            self._set_heartbeat(self.config.heartbeat_interval)
        logger.info(f"STOMP session established with {self.address}")

        if self._first_connect:
            self._first_connect = False
            self._notify(self.on_connect)
        else:
            replay = list(self._subscriptions)
            self._notify(self.on_reconnect)
            self._resubscribe(replay)

    def _resubscribe(self, subscriptions: list[Subscription]) -> None:
        """Replay registered subscriptions after a reconnect."""
        for subscription in subscriptions:
            if subscription.id not in self._subscriptions:
                continue
            logger.debug(f"Resubscribing {subscription}")
            self._send_subscribe(subscription)

    def _handle_message(self, frame: Frame) -> None:
        subscription_id = frame.get("subscription")
        subscription = self._subscriptions.get(subscription_id)
        if subscription is None:
            logger.debug(f"Dropping message for unknown subscription {subscription_id}")
            return

        token = AckToken(self, subscription.id, frame.get("message-id", ""))
        if not subscription.requires_ack:
            token.done()

        try:
            subscription.callback(self, frame, token)
        except Exception:
            logger.exception(f"Message callback failed for {subscription}")

    # Notifications

    def _notify(self, callback: ClientCallback | None) -> None:
        if callback is None:
            return
        try:
            callback(self)
        except Exception:
            logger.exception("Client notification callback failed")

    def _trigger_error(self, error: StompError) -> None:
        if self.config.debug:
            logger.debug(f"-- Error: {error.message}")
        if self.on_error is None:
            logger.error(f"Stomp client: {error.message}")
            return
        try:
            self.on_error(error)
        except Exception:
            logger.exception("Error callback failed")

    # Timers

    def _set_connect_timeout(self, timeout: float) -> None:
        self._cancel_connect_timeout()
        self._connect_timer = self.scheduler.schedule(timeout, self._check_connect_timeout)

    def _cancel_connect_timeout(self) -> None:
        if self._connect_timer is not None:
            self.scheduler.cancel(self._connect_timer)
            self._connect_timer = None

    def _check_connect_timeout(self) -> None:
        timer = self._connect_timer
        self._connect_timer = None
        if self._state.is_connecting:
            timeout = timer.delay if timer else self.config.connect_timeout
            self._trigger_error(StompError.connect_timeout(timeout))
            self.transport.destroy()

    def _set_heartbeat(self, interval: float) -> None:
        self._cancel_heartbeat()
        self._heartbeat_received = True
        self._heartbeat_timer = self.scheduler.schedule(
            interval, self._check_heartbeat, repeating=True
        )

    def _cancel_heartbeat(self) -> None:
        if self._heartbeat_timer is not None:
            self.scheduler.cancel(self._heartbeat_timer)
            self._heartbeat_timer = None

    def _check_heartbeat(self) -> None:
        """Destroy the connection if nothing arrived since the last check."""
        if not self._heartbeat_received:
            logger.warning(f"No data from {self.address} within heartbeat interval")
            self.transport.destroy()
            return
        # Liveness check only; no heartbeat frame is sent
        self._heartbeat_received = False

    # Identifiers

    def _create_subscription_id(self) -> str:
        return f"sub-{next(self._subscription_ids)}"

    def _create_receipt_id(self) -> str:
        return str(uuid.uuid4())

    def __repr__(self) -> str:
        return f"StompClient({self.address}, state={self.state})"
