"""
Pattern Store

Bounded store of pattern records with merge-on-conflict upserts.

Matching rule, evaluated in this order over the whole store:
    1. same id
    2. same structural key: canonical JSON of (pattern, expected_next),
       only for records that carry a pattern signature
First rule that finds a record wins. No match inserts at the front and
evicts the oldest record beyond capacity.

Merge law (existing ⊕ incoming):
    found_at       existing (never changes after first insertion)
    id             existing
    total_wins     existing + incoming
    total_losses   existing + incoming
    occurrences    max(existing, incoming)
    anything else  incoming value when the incoming record sets it
"""

import uuid
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Tuple

import orjson
import structlog

from ..models import PatternRecord, utc_now_iso
from ..persistence import SnapshotStore
from ..stats import pattern_stats

logger = structlog.get_logger(__name__)

_MERGE_MANAGED = ("id", "found_at", "total_wins", "total_losses", "occurrences")


@dataclass
class UpsertResult:
    inserted: bool
    pattern: PatternRecord
    total: int


@dataclass
class BulkUpsertResult:
    received: int
    inserted: int
    merged: int
    total: int


def structural_key(pattern: PatternRecord) -> Optional[Tuple[bytes, bytes]]:
    """Canonical (signature, expected_next) key, or None without a signature"""
    if pattern.pattern is None:
        return None
    return (
        orjson.dumps(pattern.pattern, option=orjson.OPT_SORT_KEYS),
        orjson.dumps(pattern.expected_next, option=orjson.OPT_SORT_KEYS),
    )


def find_match(patterns: List[PatternRecord], candidate: PatternRecord) -> Optional[int]:
    """Index of the stored pattern `candidate` merges into, or None"""
    if candidate.id is not None:
        for index, stored in enumerate(patterns):
            if stored.id == candidate.id:
                return index

    key = structural_key(candidate)
    if key is None:
        return None
    for index, stored in enumerate(patterns):
        if structural_key(stored) == key:
            return index
    return None


def merge_patterns(existing: PatternRecord, incoming: PatternRecord) -> PatternRecord:
    """Combine a stored pattern with a resubmission of it"""
    merged: Dict[str, Any] = existing.model_dump()
    updates = incoming.model_dump(exclude_unset=True)
    for name in _MERGE_MANAGED:
        updates.pop(name, None)
    merged.update(updates)

    merged["id"] = existing.id
    merged["found_at"] = existing.found_at
    merged["total_wins"] = existing.total_wins + incoming.total_wins
    merged["total_losses"] = existing.total_losses + incoming.total_losses
    merged["occurrences"] = max(existing.occurrences, incoming.occurrences)
    return PatternRecord.model_validate(merged)


def _prepare_new(pattern: PatternRecord) -> PatternRecord:
    updates: Dict[str, Any] = {}
    if pattern.id is None:
        updates["id"] = uuid.uuid4().hex
    if pattern.found_at is None:
        updates["found_at"] = utc_now_iso()
    return pattern.model_copy(update=updates) if updates else pattern


def upsert_into(
    patterns: List[PatternRecord],
    candidate: PatternRecord,
    capacity: int
) -> Tuple[bool, PatternRecord]:
    """
    Insert or merge `candidate` in place

    Returns:
        (inserted, stored record)
    """
    index = find_match(patterns, candidate)
    if index is None:
        stored = _prepare_new(candidate)
        patterns.insert(0, stored)
        del patterns[capacity:]
        return True, stored

    stored = merge_patterns(patterns[index], candidate)
    patterns[index] = stored
    return False, stored


class PatternStore:
    """Pattern store backed by the snapshot store"""

    def __init__(self, store: SnapshotStore, capacity: int = 5000):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.store = store
        self.capacity = capacity

    async def upsert(self, pattern: PatternRecord) -> UpsertResult:
        """
        Raises:
            PersistenceError: the store could not be saved
        """
        async with self.store.transaction() as snapshot:
            inserted, stored = upsert_into(snapshot.patterns, pattern, self.capacity)
            total = len(snapshot.patterns)

        return UpsertResult(inserted=inserted, pattern=stored, total=total)

    async def upsert_many(self, patterns: Iterable[PatternRecord]) -> BulkUpsertResult:
        """
        Upsert a batch in one write; earlier batch members are visible to
        later ones, so two submissions of the same pattern merge together

        Raises:
            PersistenceError: the store could not be saved
        """
        batch = list(patterns)
        inserted = 0

        async with self.store.transaction() as snapshot:
            for pattern in batch:
                was_inserted, _ = upsert_into(snapshot.patterns, pattern, self.capacity)
                if was_inserted:
                    inserted += 1
            total = len(snapshot.patterns)

        result = BulkUpsertResult(
            received=len(batch),
            inserted=inserted,
            merged=len(batch) - inserted,
            total=total,
        )
        logger.info(
            "patterns_upserted",
            received=result.received,
            inserted=result.inserted,
            merged=result.merged,
            total=result.total
        )
        return result

    async def list(self, limit: Optional[int] = None) -> List[PatternRecord]:
        snapshot = await self.store.load()
        cap = self.capacity if limit is None else min(limit, self.capacity)
        return snapshot.patterns[:max(cap, 0)]

    async def stats(self) -> Dict[str, Any]:
        snapshot = await self.store.load()
        return pattern_stats(snapshot.patterns, self.capacity)

    async def size(self) -> int:
        snapshot = await self.store.load()
        return len(snapshot.patterns)

    async def clear(self) -> int:
        async with self.store.transaction() as snapshot:
            removed = len(snapshot.patterns)
            snapshot.patterns.clear()

        logger.warning("pattern_store_cleared", removed=removed)
        return removed
