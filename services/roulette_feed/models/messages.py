"""
Live Channel Messages
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional


class WSMessageType(str, Enum):
    """Types of messages pushed to subscribers"""
    CONNECTED = "CONNECTED"
    INITIAL_DATA = "INITIAL_DATA"
    NEW_SPIN = "NEW_SPIN"
    PING = "PING"
    PONG = "PONG"
    ERROR = "ERROR"


def build_message(
    message_type: WSMessageType,
    data: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Wrap a payload in the channel envelope, stamped with delivery time"""
    message: Dict[str, Any] = {"type": WSMessageType(message_type).value}
    if data is not None:
        message["data"] = data
    message["timestamp"] = datetime.now(timezone.utc).isoformat()
    return message
