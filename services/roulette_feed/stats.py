"""
Summary statistics over the ledger and the pattern store (read-only)
"""

from collections import Counter
from typing import Any, Dict, Iterable, List

from shared.enums import SpinColor

from .models import PatternRecord, SpinRecord

HIGH_CONFIDENCE = 80
MEDIUM_CONFIDENCE = 60


def confidence_band(confidence: float) -> str:
    """high (>= 80), medium (>= 60) or low"""
    if confidence >= HIGH_CONFIDENCE:
        return "high"
    if confidence >= MEDIUM_CONFIDENCE:
        return "medium"
    return "low"


def pattern_stats(patterns: List[PatternRecord], capacity: int) -> Dict[str, Any]:
    by_type: Counter = Counter()
    by_confidence = {"high": 0, "medium": 0, "low": 0}

    for pattern in patterns:
        by_type[pattern.type or "unknown"] += 1
        by_confidence[confidence_band(pattern.confidence)] += 1

    total = len(patterns)
    return {
        "total": total,
        "limit": capacity,
        "percentage": round(total / capacity * 100, 1) if capacity else 0.0,
        "by_type": dict(by_type),
        "by_confidence": by_confidence,
    }


def spin_stats(spins: Iterable[SpinRecord]) -> Dict[str, Any]:
    by_color = {color.value: 0 for color in SpinColor}
    total = 0

    for spin in spins:
        by_color[spin.color.value] += 1
        total += 1

    return {
        "total": total,
        "by_color": by_color,
    }
