"""
WebSocket Router - live spin channel

On connect: CONNECTED, then INITIAL_DATA {lastSpin, totalSpins}.
Afterwards: NEW_SPIN for each new spin and a periodic PING.
Clients may send {"type": "ping"} and get a PONG back.
"""

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
import structlog

from ..realtime import SubscriberState

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["websocket"])


@router.websocket("/ws")
async def live_channel(websocket: WebSocket):
    ctx = websocket.app.state.context

    subscriber = await ctx.hub.connect(websocket, ctx.initial_data)
    if subscriber.state is not SubscriberState.OPEN:
        return

    try:
        while subscriber.state is SubscriberState.OPEN:
            try:
                data = await websocket.receive_json()
            except ValueError:
                await ctx.hub.send_error(subscriber, "Invalid JSON")
                continue
            await ctx.hub.handle_message(subscriber, data)
    except WebSocketDisconnect:
        pass
    except RuntimeError as e:
        # Socket closed by the hub (send failure or shutdown)
        logger.debug("websocket_receive_closed", connection_id=subscriber.connection_id, error=str(e))
    finally:
        await ctx.hub.disconnect(subscriber, close_socket=False)
