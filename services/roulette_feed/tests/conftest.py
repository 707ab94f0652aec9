"""
Pytest configuration and fixtures for Roulette Feed tests.
"""

import asyncio
from typing import Any, Dict, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from services.roulette_feed.config import Settings
from services.roulette_feed.main import create_app
from services.roulette_feed.models import PatternRecord, SpinRecord
from services.roulette_feed.persistence import SnapshotStore
from services.roulette_feed.realtime import BroadcastHub
from services.roulette_feed.store import Ledger, PatternStore


class FakeWebSocket:
    """Stand-in for a Starlette WebSocket, recording what the hub sends"""

    def __init__(self, fail_send: bool = False, send_delay: float = 0.0):
        self.fail_send = fail_send
        self.send_delay = send_delay
        self.accepted = False
        self.closed = False
        self.close_code: Optional[int] = None
        self.sent: List[Dict[str, Any]] = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message: Dict[str, Any]):
        if self.fail_send or self.closed:
            raise RuntimeError("socket closed")
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        self.sent.append(message)

    async def close(self, code: int = 1000):
        self.closed = True
        self.close_code = code

    def force_close(self):
        """Simulate the client vanishing without a close handshake"""
        self.closed = True

    def types(self) -> List[str]:
        return [m["type"] for m in self.sent]


def make_spin(
    number: int = 7,
    timestamp: str = "2026-01-01T00:00:00.000Z",
    **kwargs
) -> SpinRecord:
    """Helper to create a SpinRecord with defaults."""
    return SpinRecord(number=number, timestamp=timestamp, **kwargs)


def make_pattern(**kwargs) -> PatternRecord:
    """Helper to create a PatternRecord with defaults."""
    data = {
        "type": "sequence",
        "pattern": ["red", "red", "black"],
        "expected_next": "black",
        "confidence": 75,
    }
    data.update(kwargs)
    return PatternRecord(**data)


def feed_transport(payload: Any = None, status_code: int = 200) -> httpx.MockTransport:
    """MockTransport answering every request with `payload`"""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, json=payload)
    return httpx.MockTransport(handler)


@pytest.fixture
def db_path(tmp_path):
    return tmp_path / "database.json"


@pytest.fixture
def snapshot_store(db_path) -> SnapshotStore:
    return SnapshotStore(db_path)


@pytest.fixture
def ledger(snapshot_store) -> Ledger:
    return Ledger(snapshot_store, capacity=10)


@pytest.fixture
def pattern_store(snapshot_store) -> PatternStore:
    return PatternStore(snapshot_store, capacity=5)


@pytest.fixture
def hub() -> BroadcastHub:
    return BroadcastHub(heartbeat_interval=60.0, send_timeout=0.2)


@pytest.fixture
def settings(db_path) -> Settings:
    return Settings(
        database_path=str(db_path),
        poller_enabled=False,
        max_spins=5,
        max_patterns=50,
        heartbeat_interval_seconds=60.0,
        feed_url="http://feed.test/recent/1",
    )


@pytest.fixture
def client(settings):
    app = create_app(settings, feed_transport=feed_transport([{"roll": 0, "created_at": "T"}]))
    with TestClient(app) as test_client:
        yield test_client
