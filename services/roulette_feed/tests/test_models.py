"""
Tests for spin color classification, spin records and the normalizer.
"""

import pytest
from pydantic import ValidationError

from shared.enums import SpinColor
from services.roulette_feed.errors import ParseError
from services.roulette_feed.models import Snapshot, SpinRecord
from services.roulette_feed.tasks import normalize_feed_item


class TestSpinColor:
    """Tests for SpinColor.from_number."""

    def test_zero_is_white(self):
        assert SpinColor.from_number(0) == SpinColor.WHITE

    @pytest.mark.parametrize("number", range(1, 8))
    def test_low_range_is_red(self, number):
        assert SpinColor.from_number(number) == SpinColor.RED

    @pytest.mark.parametrize("number", range(8, 15))
    def test_high_range_is_black(self, number):
        assert SpinColor.from_number(number) == SpinColor.BLACK

    @pytest.mark.parametrize("number", [-1, 15, 37, 1000, None, "3", 2.5, True])
    def test_off_board_is_unknown(self, number):
        assert SpinColor.from_number(number) == SpinColor.UNKNOWN

    def test_color_is_string_enum(self):
        assert SpinColor.RED == "red"
        assert str(SpinColor.BLACK) == "black"


class TestSpinRecord:
    """Tests for SpinRecord identity and derived color."""

    def test_id_derived_from_timestamp(self):
        spin = SpinRecord(number=3, timestamp="2026-03-01T10:00:00Z")
        assert spin.id == "spin_2026-03-01T10:00:00Z"

    def test_created_at_fallback(self):
        spin = SpinRecord.model_validate({"number": 9, "created_at": "T1"})
        assert spin.timestamp == "T1"
        assert spin.id == "spin_T1"

    def test_supplied_color_is_ignored(self):
        spin = SpinRecord.model_validate(
            {"id": "x", "number": 0, "timestamp": "T", "color": "black"}
        )
        assert spin.color == SpinColor.WHITE

    def test_color_serialized(self):
        spin = SpinRecord(number=12, timestamp="T")
        data = spin.model_dump(mode="json")
        assert data["color"] == "black"
        assert data["collected_by"] == "client"
        assert data["collected_at"]

    def test_records_are_immutable(self):
        spin = SpinRecord(number=1, timestamp="T")
        with pytest.raises(ValidationError):
            spin.number = 2


class TestNormalizer:
    """Tests for normalize_feed_item."""

    def test_white_result(self):
        spin = normalize_feed_item({"roll": 0, "created_at": "T"})
        assert spin.id == "spin_T"
        assert spin.number == 0
        assert spin.color == SpinColor.WHITE
        assert spin.timestamp == "T"
        assert spin.collected_by == "server"

    def test_same_payload_same_id(self):
        item = {"roll": 5, "created_at": "2026-01-01T00:00:02.000Z", "id": "upstream"}
        assert normalize_feed_item(item).id == normalize_feed_item(item).id

    def test_integral_float_roll(self):
        spin = normalize_feed_item({"roll": 9.0, "created_at": "T"})
        assert spin.number == 9
        assert spin.color == SpinColor.BLACK

    def test_off_board_roll_is_kept(self):
        spin = normalize_feed_item({"roll": 20, "created_at": "T"})
        assert spin.color == SpinColor.UNKNOWN

    @pytest.mark.parametrize("item", [
        {"created_at": "T"},
        {"roll": None, "created_at": "T"},
        {"roll": "7", "created_at": "T"},
        {"roll": True, "created_at": "T"},
        {"roll": 3.5, "created_at": "T"},
        {"roll": 3},
        {"roll": 3, "created_at": ""},
    ])
    def test_invalid_items_rejected(self, item):
        with pytest.raises(ParseError):
            normalize_feed_item(item)


class TestSnapshotModel:
    """Tests for the persisted document layout."""

    def test_document_layout(self):
        document = Snapshot().to_document()
        assert set(document) == {"spins", "patterns", "metadata"}
        assert set(document["metadata"]) == {
            "version", "createdAt", "lastUpdate", "totalSpins", "totalPatterns"
        }

    def test_legacy_keys_accepted(self):
        snapshot = Snapshot.model_validate({
            "giros": [{"id": "spin_T", "number": 4, "color": "red", "timestamp": "T"}],
            "padroes": [{"id": 1700000000123, "pattern": ["red"], "expected_next": "black"}],
            "metadata": {"version": "1.0", "created_at": "2025-01-01T00:00:00Z", "totalGiros": 1},
        })
        assert snapshot.spins[0].id == "spin_T"
        assert snapshot.patterns[0].id == "1700000000123"
        assert snapshot.metadata.created_at == "2025-01-01T00:00:00Z"
