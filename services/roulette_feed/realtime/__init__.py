"""
Live push channel
"""

from .websocket_manager import (
    BroadcastHub,
    BroadcastResult,
    SendOutcome,
    Subscriber,
    SubscriberState,
)

__all__ = [
    "BroadcastHub",
    "BroadcastResult",
    "SendOutcome",
    "Subscriber",
    "SubscriberState",
]
