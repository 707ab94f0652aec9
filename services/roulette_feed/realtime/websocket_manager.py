"""
Roulette Feed - Broadcast Hub
=============================

Owns every live WebSocket subscriber:
- Handshake: CONNECTED, then one INITIAL_DATA snapshot
- Fan-out of events to every OPEN subscriber, concurrently
- Per-subscriber isolation: a failed or slow send drops only that subscriber
- Heartbeat PING while subscribers are connected
- Graceful close of every socket on shutdown

Subscriber lifecycle:
    CONNECTING --accept + handshake--> OPEN --disconnect / send failure / shutdown--> CLOSED
"""

import asyncio
import contextlib
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import structlog

from ..errors import SubscriberSendError
from ..models import SpinRecord, WSMessageType, build_message, utc_now_iso

logger = structlog.get_logger(__name__)

CLOSE_NORMAL = 1000
CLOSE_GOING_AWAY = 1001

InitialData = Union[Dict[str, Any], Callable[[], Awaitable[Dict[str, Any]]]]


class SubscriberState(str, Enum):
    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class SendOutcome(str, Enum):
    DELIVERED = "delivered"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class BroadcastResult:
    delivered: int = 0
    dropped: int = 0


@dataclass(eq=False)
class Subscriber:
    """Hub-owned handle around one WebSocket"""

    websocket: Any
    connection_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    state: SubscriberState = SubscriberState.CONNECTING
    connected_at: str = field(default_factory=utc_now_iso)
    messages_sent: int = 0
    # Broadcasts that arrive while the handshake is still being sent
    pending: List[Dict[str, Any]] = field(default_factory=list)

    async def send(self, message: Dict[str, Any], timeout: float) -> None:
        """
        Raises:
            SubscriberSendError: subscriber closed, send failed or timed out
        """
        if self.state is SubscriberState.CLOSED:
            raise SubscriberSendError(self.connection_id, "not open")

        try:
            await asyncio.wait_for(self.websocket.send_json(message), timeout=timeout)
        except asyncio.TimeoutError as e:
            raise SubscriberSendError(self.connection_id, "timeout") from e
        except Exception as e:
            raise SubscriberSendError(self.connection_id, str(e) or type(e).__name__) from e

        self.messages_sent += 1

    async def close(self, code: int = CLOSE_NORMAL, close_socket: bool = True) -> None:
        if self.state is SubscriberState.CLOSED:
            return
        self.state = SubscriberState.CLOSED

        if not close_socket:
            return
        try:
            await self.websocket.close(code=code)
        except Exception as e:
            # Socket already gone on the client side
            logger.debug("subscriber_close_error", connection_id=self.connection_id, error=str(e))


class BroadcastHub:
    """
    Fan-out hub for live subscribers

    Features:
    - Track OPEN subscribers by connection id
    - Broadcast typed messages with a per-send timeout
    - Drop subscribers whose send fails, without affecting the others
    - Periodic PING
    """

    def __init__(self, heartbeat_interval: float = 30.0, send_timeout: float = 5.0):
        self.heartbeat_interval = heartbeat_interval
        self.send_timeout = send_timeout

        self._subscribers: Dict[str, Subscriber] = {}
        self._connecting: Dict[str, Subscriber] = {}
        self._heartbeat_task: Optional[asyncio.Task] = None

        # Stats
        self._total_connections = 0
        self._total_messages_sent = 0
        self._total_dropped = 0

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def start(self) -> None:
        """Start the heartbeat task"""
        if self._heartbeat_task is None:
            self._heartbeat_task = asyncio.create_task(self._heartbeat_loop(), name="ws-heartbeat")
            logger.info("broadcast_hub_started", heartbeat_interval=self.heartbeat_interval)

    async def shutdown(self) -> None:
        """Stop the heartbeat and close every subscriber"""
        task, self._heartbeat_task = self._heartbeat_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        subscribers = list(self._subscribers.values()) + list(self._connecting.values())
        self._subscribers.clear()
        self._connecting.clear()
        await asyncio.gather(*(s.close(code=CLOSE_GOING_AWAY) for s in subscribers))

        logger.info("broadcast_hub_stopped", closed=len(subscribers))

    async def _heartbeat_loop(self) -> None:
        while True:
            await asyncio.sleep(self.heartbeat_interval)
            try:
                await self.broadcast(WSMessageType.PING)
            except Exception as e:
                logger.exception("heartbeat_error", error=str(e))

    # ========================================================================
    # Connection Management
    # ========================================================================

    async def connect(self, websocket: Any, initial_data: InitialData) -> Subscriber:
        """
        Accept a WebSocket and run the handshake

        Args:
            websocket: Socket to accept
            initial_data: INITIAL_DATA payload, or a coroutine function
                producing it (evaluated after CONNECTED is sent)

        Returns:
            The subscriber; its state is CLOSED if the handshake failed
        """
        subscriber = Subscriber(websocket=websocket)

        try:
            await websocket.accept()
        except Exception as e:
            logger.warning("subscriber_accept_failed", error=str(e))
            subscriber.state = SubscriberState.CLOSED
            return subscriber

        self._connecting[subscriber.connection_id] = subscriber
        self._total_connections += 1

        try:
            if not await self._handshake(subscriber, initial_data):
                return subscriber
            subscriber.state = SubscriberState.OPEN
            self._subscribers[subscriber.connection_id] = subscriber
        finally:
            self._connecting.pop(subscriber.connection_id, None)

        logger.info(
            "subscriber_connected",
            connection_id=subscriber.connection_id,
            active_connections=len(self._subscribers),
            total_connections=self._total_connections
        )
        return subscriber

    async def disconnect(self, subscriber: Subscriber, close_socket: bool = True) -> None:
        """Remove a subscriber; safe to call more than once"""
        removed = self._subscribers.pop(subscriber.connection_id, None)
        await subscriber.close(code=CLOSE_NORMAL, close_socket=close_socket)

        if removed is not None:
            logger.info(
                "subscriber_disconnected",
                connection_id=subscriber.connection_id,
                active_connections=len(self._subscribers)
            )

    async def _handshake(self, subscriber: Subscriber, initial_data: InitialData) -> bool:
        """
        CONNECTED, INITIAL_DATA, then whatever was broadcast meanwhile

        Runs while the subscriber is CONNECTING. The snapshot is taken after
        CONNECTED went out; broadcasts from that point on sit in `pending`
        until INITIAL_DATA has been delivered.
        """
        if await self._deliver(subscriber, build_message(WSMessageType.CONNECTED)) is not SendOutcome.DELIVERED:
            return False

        data = await initial_data() if callable(initial_data) else initial_data
        if await self._deliver(subscriber, build_message(WSMessageType.INITIAL_DATA, data)) is not SendOutcome.DELIVERED:
            return False

        while subscriber.pending:
            if await self._deliver(subscriber, subscriber.pending.pop(0)) is not SendOutcome.DELIVERED:
                return False

        # Closed by shutdown while the last send was in flight
        return subscriber.state is SubscriberState.CONNECTING

    @property
    def active_count(self) -> int:
        return len(self._subscribers)

    # ========================================================================
    # Message Sending
    # ========================================================================

    async def _deliver(self, subscriber: Subscriber, message: Dict[str, Any]) -> SendOutcome:
        try:
            await subscriber.send(message, timeout=self.send_timeout)
        except SubscriberSendError as e:
            self._total_dropped += 1
            logger.warning(
                "subscriber_send_failed",
                connection_id=subscriber.connection_id,
                reason=e.reason
            )
            await self.disconnect(subscriber)
            return SendOutcome.TIMED_OUT if e.reason == "timeout" else SendOutcome.FAILED

        self._total_messages_sent += 1
        return SendOutcome.DELIVERED

    async def send_personal(self, subscriber: Subscriber, message: Dict[str, Any]) -> SendOutcome:
        return await self._deliver(subscriber, message)

    async def broadcast(
        self,
        message_type: WSMessageType,
        data: Optional[Dict[str, Any]] = None
    ) -> BroadcastResult:
        """
        Send one message to every OPEN subscriber (subscribers still in
        their handshake get it queued)

        Sends run concurrently; a failing subscriber is dropped and counted,
        nothing is raised to the caller.
        """
        message = build_message(message_type, data)
        for subscriber in self._connecting.values():
            subscriber.pending.append(message)

        targets = [s for s in self._subscribers.values() if s.state is SubscriberState.OPEN]
        if not targets:
            return BroadcastResult()

        outcomes = await asyncio.gather(*(self._deliver(s, message) for s in targets))

        delivered = sum(1 for outcome in outcomes if outcome is SendOutcome.DELIVERED)
        return BroadcastResult(delivered=delivered, dropped=len(outcomes) - delivered)

    # ========================================================================
    # Typed Message Broadcasting
    # ========================================================================

    async def publish_spin(self, spin: SpinRecord) -> BroadcastResult:
        """Send NEW_SPIN to every subscriber"""
        return await self.broadcast(WSMessageType.NEW_SPIN, spin.model_dump(mode="json"))

    async def send_error(self, subscriber: Subscriber, error: str) -> SendOutcome:
        return await self.send_personal(
            subscriber,
            build_message(WSMessageType.ERROR, {"error": error})
        )

    # ========================================================================
    # Message Handler
    # ========================================================================

    async def handle_message(self, subscriber: Subscriber, data: Any) -> None:
        """
        Handle a message sent by a subscriber

        Supported message types:
        - ping: heartbeat (responds with PONG)
        """
        msg_type = data.get("type") if isinstance(data, dict) else None

        if isinstance(msg_type, str) and msg_type.lower() == "ping":
            await self.send_personal(subscriber, build_message(WSMessageType.PONG))
        else:
            await self.send_error(subscriber, f"Unknown message type: {msg_type}")

    # ========================================================================
    # Stats
    # ========================================================================

    def get_stats(self) -> Dict[str, Any]:
        return {
            "active_connections": len(self._subscribers),
            "total_connections": self._total_connections,
            "total_messages_sent": self._total_messages_sent,
            "total_dropped": self._total_dropped,
            "heartbeat_interval_seconds": self.heartbeat_interval,
        }
