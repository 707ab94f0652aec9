"""
Tests for SnapshotStore load / save / transaction behaviour.
"""

import asyncio

import orjson
import pytest

from services.roulette_feed.errors import PersistenceError
from services.roulette_feed.persistence import SnapshotStore

from conftest import make_spin


class TestLoad:
    @pytest.mark.asyncio
    async def test_missing_file_is_initialized(self, snapshot_store, db_path):
        snapshot = await snapshot_store.load()

        assert snapshot.spins == []
        assert snapshot.patterns == []
        assert db_path.exists()
        document = orjson.loads(db_path.read_bytes())
        assert document["metadata"]["totalSpins"] == 0

    @pytest.mark.asyncio
    async def test_corrupt_file_is_quarantined(self, snapshot_store, db_path, tmp_path):
        db_path.write_text("{not json")

        snapshot = await snapshot_store.load()

        assert snapshot.spins == []
        assert snapshot_store.stats["recoveries"] == 1
        moved = list(tmp_path.glob("database.json.corrupt-*"))
        assert len(moved) == 1
        assert moved[0].read_text() == "{not json"
        # replaced with a valid empty document
        assert orjson.loads(db_path.read_bytes())["spins"] == []

    @pytest.mark.asyncio
    async def test_wrong_shape_is_treated_as_corrupt(self, snapshot_store, db_path):
        db_path.write_text('{"spins": "nope"}')

        snapshot = await snapshot_store.load()

        assert snapshot.spins == []
        assert snapshot_store.stats["recoveries"] == 1

    @pytest.mark.asyncio
    async def test_legacy_document(self, snapshot_store, db_path):
        db_path.write_bytes(orjson.dumps({
            "giros": [{"id": "spin_A", "number": 0, "color": "white", "timestamp": "A"}],
            "padroes": [],
            "metadata": {"version": "1.0", "createdAt": "2025-01-01T00:00:00Z"},
        }))

        snapshot = await snapshot_store.load()

        assert [s.id for s in snapshot.spins] == ["spin_A"]
        assert snapshot.metadata.created_at == "2025-01-01T00:00:00Z"


class TestSave:
    @pytest.mark.asyncio
    async def test_save_stamps_metadata(self, snapshot_store, db_path):
        snapshot = await snapshot_store.load()
        snapshot.spins.append(make_spin())

        assert await snapshot_store.save(snapshot)

        document = orjson.loads(db_path.read_bytes())
        assert document["metadata"]["totalSpins"] == 1
        assert document["metadata"]["totalPatterns"] == 0
        assert document["metadata"]["lastUpdate"]
        assert document["spins"][0]["color"] == "red"

    @pytest.mark.asyncio
    async def test_no_temp_files_left_behind(self, snapshot_store, tmp_path):
        snapshot = await snapshot_store.load()
        await snapshot_store.save(snapshot)
        assert list(tmp_path.glob("*.tmp")) == []

    @pytest.mark.asyncio
    async def test_save_to_directory_fails(self, tmp_path):
        store = SnapshotStore(tmp_path)
        snapshot = await store.load()

        assert not await store.save(snapshot)
        assert store.stats["save_failures"] >= 1


class TestTransaction:
    @pytest.mark.asyncio
    async def test_commit(self, snapshot_store):
        async with snapshot_store.transaction() as snapshot:
            snapshot.spins.insert(0, make_spin())

        reloaded = await snapshot_store.load()
        assert len(reloaded.spins) == 1

    @pytest.mark.asyncio
    async def test_failed_save_raises(self, tmp_path):
        store = SnapshotStore(tmp_path)

        with pytest.raises(PersistenceError):
            async with store.transaction() as snapshot:
                snapshot.spins.append(make_spin())

    @pytest.mark.asyncio
    async def test_body_error_writes_nothing(self, snapshot_store, db_path):
        await snapshot_store.load()
        before = db_path.read_bytes()

        with pytest.raises(RuntimeError):
            async with snapshot_store.transaction() as snapshot:
                snapshot.spins.append(make_spin())
                raise RuntimeError("boom")

        assert db_path.read_bytes() == before

    @pytest.mark.asyncio
    async def test_concurrent_transactions_are_serialized(self, snapshot_store):
        async def add(i: int):
            async with snapshot_store.transaction() as snapshot:
                snapshot.spins.insert(0, make_spin(number=i % 15, timestamp=f"T{i}"))
                await asyncio.sleep(0)

        await asyncio.gather(*(add(i) for i in range(20)))

        snapshot = await snapshot_store.load()
        assert len(snapshot.spins) == 20
        assert snapshot.metadata.total_spins == 20
