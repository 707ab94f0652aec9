"""
Spin Ledger

Bounded, newest-first, deduplicated store of spins kept in the snapshot
document. A spin is a duplicate when its id matches a stored spin, or when
both its source timestamp and number do (records stored under an older id
scheme still match).
"""

from dataclasses import dataclass, field
from typing import Iterable, List, Optional

import structlog

from ..models import SpinRecord
from ..persistence import SnapshotStore

logger = structlog.get_logger(__name__)


@dataclass
class IngestResult:
    inserted: bool
    spin: SpinRecord
    total: int


@dataclass
class BulkIngestResult:
    received: int
    total: int
    inserted: List[SpinRecord] = field(default_factory=list)

    @property
    def inserted_count(self) -> int:
        return len(self.inserted)


def find_duplicate(spins: List[SpinRecord], candidate: SpinRecord) -> Optional[int]:
    """Index of the stored spin `candidate` duplicates, or None"""
    for index, spin in enumerate(spins):
        if spin.id == candidate.id:
            return index
        if spin.timestamp == candidate.timestamp and spin.number == candidate.number:
            return index
    return None


def insert_newest(spins: List[SpinRecord], candidate: SpinRecord, capacity: int) -> bool:
    """
    Put a new spin at the front and drop the oldest beyond capacity

    Returns:
        False (and leaves `spins` untouched) if the spin is a duplicate
    """
    if find_duplicate(spins, candidate) is not None:
        return False

    spins.insert(0, candidate)
    del spins[capacity:]
    return True


class Ledger:
    """
    Spin ledger backed by the snapshot store

    Writes go through SnapshotStore.transaction(); a duplicate found on a
    plain read short-circuits without touching the file.
    """

    def __init__(self, store: SnapshotStore, capacity: int = 2000):
        if capacity < 1:
            raise ValueError("capacity must be >= 1")
        self.store = store
        self.capacity = capacity

    async def ingest(self, spin: SpinRecord) -> IngestResult:
        """
        Add one spin unless it is already stored

        Raises:
            PersistenceError: the spin is new but could not be saved
        """
        current = await self.store.load()
        if find_duplicate(current.spins, spin) is not None:
            return IngestResult(inserted=False, spin=spin, total=len(current.spins))

        async with self.store.transaction() as snapshot:
            # Re-check: another writer may have stored it since the read above
            inserted = insert_newest(snapshot.spins, spin, self.capacity)
            total = len(snapshot.spins)

        if inserted:
            logger.debug("spin_ingested", spin_id=spin.id, number=spin.number, total=total)
        return IngestResult(inserted=inserted, spin=spin, total=total)

    async def ingest_many(self, spins: Iterable[SpinRecord]) -> BulkIngestResult:
        """
        Add a batch of spins, each checked against the ledger and the
        spins inserted before it in the same batch

        Only spins still held once the whole batch is in are reported as
        inserted.

        Raises:
            PersistenceError: the batch could not be saved
        """
        batch = list(spins)
        inserted: List[SpinRecord] = []

        async with self.store.transaction() as snapshot:
            for spin in batch:
                if insert_newest(snapshot.spins, spin, self.capacity):
                    inserted.append(spin)
            # A batch larger than the free space evicts its own oldest members
            kept = {spin.id for spin in snapshot.spins}
            inserted = [spin for spin in inserted if spin.id in kept]
            total = len(snapshot.spins)

        logger.info(
            "spins_bulk_ingested",
            received=len(batch),
            inserted=len(inserted),
            total=total
        )
        return BulkIngestResult(received=len(batch), total=total, inserted=inserted)

    async def latest(self) -> Optional[SpinRecord]:
        snapshot = await self.store.load()
        return snapshot.spins[0] if snapshot.spins else None

    async def list(self, limit: Optional[int] = None) -> List[SpinRecord]:
        """Newest-first spins, capped at `limit` and at capacity"""
        snapshot = await self.store.load()
        cap = self.capacity if limit is None else min(limit, self.capacity)
        return snapshot.spins[:max(cap, 0)]

    async def size(self) -> int:
        snapshot = await self.store.load()
        return len(snapshot.spins)

    async def clear(self) -> int:
        """Remove every spin, returning how many were removed"""
        async with self.store.transaction() as snapshot:
            removed = len(snapshot.spins)
            snapshot.spins.clear()

        logger.warning("ledger_cleared", removed=removed)
        return removed
