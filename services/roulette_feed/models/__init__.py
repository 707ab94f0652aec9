"""
Pydantic models for spins, patterns, the snapshot document and live messages
"""

from .spin import SpinRecord, spin_id_for, utc_now_iso
from .pattern import PatternRecord
from .snapshot import Snapshot, SnapshotMetadata, SNAPSHOT_VERSION
from .messages import WSMessageType, build_message

__all__ = [
    "SpinRecord",
    "spin_id_for",
    "utc_now_iso",
    "PatternRecord",
    "Snapshot",
    "SnapshotMetadata",
    "SNAPSHOT_VERSION",
    "WSMessageType",
    "build_message",
]
