"""
Tests for spin deduplication and bounded retention.
"""

import pytest

from services.roulette_feed.store import Ledger, find_duplicate, insert_newest

from conftest import make_spin


def spins_for(count: int, start: int = 0):
    """Distinct spins, oldest first."""
    return [
        make_spin(number=i % 15, timestamp=f"2026-01-01T00:{i // 60:02d}:{i % 60:02d}Z")
        for i in range(start, start + count)
    ]


# ============================================================================
# PURE DEDUP / EVICTION
# ============================================================================

class TestFindDuplicate:
    def test_same_id_is_duplicate(self):
        stored = [make_spin(number=1, timestamp="A", id="spin_X")]
        candidate = make_spin(number=2, timestamp="B", id="spin_X")
        assert find_duplicate(stored, candidate) == 0

    def test_same_timestamp_and_number_is_duplicate(self):
        stored = [make_spin(number=4, timestamp="A", id="old-scheme-1")]
        candidate = make_spin(number=4, timestamp="A")
        assert find_duplicate(stored, candidate) == 0

    def test_same_timestamp_other_number_is_new(self):
        stored = [make_spin(number=4, timestamp="A", id="old-scheme-1")]
        candidate = make_spin(number=5, timestamp="A", id="other")
        assert find_duplicate(stored, candidate) is None

    def test_empty_ledger(self):
        assert find_duplicate([], make_spin()) is None


class TestInsertNewest:
    def test_inserts_at_front(self):
        spins = []
        first, second = spins_for(2)
        assert insert_newest(spins, first, capacity=10)
        assert insert_newest(spins, second, capacity=10)
        assert [s.id for s in spins] == [second.id, first.id]

    def test_duplicate_leaves_ledger_untouched(self):
        spin = make_spin()
        spins = [spin]
        assert not insert_newest(spins, make_spin(), capacity=10)
        assert spins == [spin]

    def test_capacity_evicts_oldest(self):
        cap, extra = 5, 3
        batch = spins_for(cap + extra)
        spins = []
        for spin in batch:
            insert_newest(spins, spin, capacity=cap)

        assert len(spins) == cap
        expected = [s.id for s in reversed(batch)][:cap]
        assert [s.id for s in spins] == expected
        evicted = {s.id for s in batch[:extra]}
        assert evicted.isdisjoint(s.id for s in spins)


# ============================================================================
# LEDGER (persisted)
# ============================================================================

class TestLedger:
    @pytest.mark.asyncio
    async def test_ingest_new_spin(self, ledger):
        result = await ledger.ingest(make_spin(number=0, timestamp="T"))
        assert result.inserted
        assert result.total == 1
        latest = await ledger.latest()
        assert latest.id == "spin_T"

    @pytest.mark.asyncio
    async def test_ingest_is_idempotent(self, ledger, db_path):
        await ledger.ingest(make_spin(number=3, timestamp="T"))
        before = db_path.read_bytes()

        again = await ledger.ingest(make_spin(number=3, timestamp="T"))
        by_pair = await ledger.ingest(make_spin(number=3, timestamp="T", id="different-id"))

        assert not again.inserted
        assert not by_pair.inserted
        assert await ledger.size() == 1
        assert db_path.read_bytes() == before

    @pytest.mark.asyncio
    async def test_bounded_retention(self, ledger):
        batch = spins_for(ledger.capacity + 3)
        for spin in batch:
            await ledger.ingest(spin)

        stored = await ledger.list()
        assert len(stored) == ledger.capacity
        assert [s.id for s in stored] == [s.id for s in reversed(batch)][:ledger.capacity]

    @pytest.mark.asyncio
    async def test_ingest_many_counts_inserted(self, ledger):
        await ledger.ingest(make_spin(number=1, timestamp="A"))

        result = await ledger.ingest_many([
            make_spin(number=1, timestamp="A"),   # already stored
            make_spin(number=2, timestamp="B"),
            make_spin(number=2, timestamp="B"),   # duplicate within the batch
            make_spin(number=3, timestamp="C"),
        ])

        assert result.received == 4
        assert result.inserted_count == 2
        assert result.total == 3
        assert [s.id for s in await ledger.list()] == ["spin_C", "spin_B", "spin_A"]

    @pytest.mark.asyncio
    async def test_ingest_many_larger_than_capacity(self, ledger):
        batch = spins_for(ledger.capacity + 5)

        result = await ledger.ingest_many(batch)

        stored_ids = [s.id for s in await ledger.list()]
        assert result.total == ledger.capacity
        assert result.inserted_count == ledger.capacity
        assert {s.id for s in result.inserted} == set(stored_ids)
        assert batch[0].id not in stored_ids

    @pytest.mark.asyncio
    async def test_list_limit(self, ledger):
        for spin in spins_for(4):
            await ledger.ingest(spin)

        assert len(await ledger.list(2)) == 2
        assert len(await ledger.list(1000)) == 4

    @pytest.mark.asyncio
    async def test_latest_on_empty_ledger(self, ledger):
        assert await ledger.latest() is None

    @pytest.mark.asyncio
    async def test_clear(self, ledger):
        for spin in spins_for(3):
            await ledger.ingest(spin)

        assert await ledger.clear() == 3
        assert await ledger.size() == 0

    def test_capacity_must_be_positive(self, snapshot_store):
        with pytest.raises(ValueError):
            Ledger(snapshot_store, capacity=0)
