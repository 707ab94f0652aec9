"""
Feed item → SpinRecord
"""

from typing import Any, Dict, Optional

from ..errors import ParseError
from ..models import SpinRecord, spin_id_for, utc_now_iso


def normalize_feed_item(
    item: Dict[str, Any],
    collected_by: str = "server",
    collected_at: Optional[str] = None
) -> SpinRecord:
    """
    Build the canonical spin for one raw feed item

    The id comes from `created_at`, so fetching the same upstream result
    twice yields the same id. Numbers off the board are kept (color
    "unknown"); a missing or non-integral roll is rejected.

    Raises:
        ParseError: item lacks a usable `roll` or `created_at`
    """
    roll = item.get("roll")
    created_at = item.get("created_at")

    if isinstance(roll, bool) or not isinstance(roll, (int, float)):
        raise ParseError(f"feed item has no numeric roll: {roll!r}")
    if isinstance(roll, float) and not roll.is_integer():
        raise ParseError(f"feed roll is not an integer: {roll!r}")
    if created_at is None or created_at == "":
        raise ParseError("feed item has no created_at")

    return SpinRecord(
        id=spin_id_for(created_at),
        number=int(roll),
        timestamp=str(created_at),
        collected_at=collected_at or utc_now_iso(),
        collected_by=collected_by,
    )
