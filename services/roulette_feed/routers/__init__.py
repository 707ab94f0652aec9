"""
HTTP and WebSocket routers
"""

from .spins import router as spins_router
from .patterns import router as patterns_router
from .status import router as status_router
from .websocket_router import router as websocket_router

__all__ = [
    "spins_router",
    "patterns_router",
    "status_router",
    "websocket_router",
]
