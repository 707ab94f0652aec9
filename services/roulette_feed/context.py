"""
Service Context

Single process-owned object holding configuration, collection counters,
stores, the broadcast hub and the poller. Built in the FastAPI lifespan,
torn down at shutdown; routes reach it through `get_context`.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import httpx
import structlog
from fastapi import Request

from .config import Settings
from .persistence import SnapshotStore
from .realtime import BroadcastHub
from .store import Ledger, PatternStore
from .tasks import CollectionStats, RouletteFeedClient, SpinPoller

logger = structlog.get_logger(__name__)


@dataclass
class ServiceContext:
    settings: Settings
    store: SnapshotStore
    ledger: Ledger
    patterns: PatternStore
    hub: BroadcastHub
    feed_client: RouletteFeedClient
    poller: SpinPoller
    collection: CollectionStats
    started_monotonic: float = field(default_factory=time.monotonic)

    @classmethod
    def build(
        cls,
        settings: Settings,
        feed_transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "ServiceContext":
        store = SnapshotStore(settings.database_path, serialize_writes=settings.serialize_writes)
        ledger = Ledger(store, capacity=settings.max_spins)
        patterns = PatternStore(store, capacity=settings.max_patterns)
        hub = BroadcastHub(
            heartbeat_interval=settings.heartbeat_interval_seconds,
            send_timeout=settings.ws_send_timeout_seconds
        )
        feed_client = RouletteFeedClient(
            settings.feed_url,
            timeout=settings.feed_timeout_seconds,
            transport=feed_transport
        )
        collection = CollectionStats()
        poller = SpinPoller(
            client=feed_client,
            ledger=ledger,
            hub=hub,
            stats=collection,
            interval=settings.poll_interval_seconds
        )
        return cls(
            settings=settings,
            store=store,
            ledger=ledger,
            patterns=patterns,
            hub=hub,
            feed_client=feed_client,
            poller=poller,
            collection=collection,
        )

    async def startup(self) -> None:
        snapshot = await self.store.load()
        logger.info(
            "snapshot_loaded",
            spins=len(snapshot.spins),
            patterns=len(snapshot.patterns),
            path=str(self.store.path)
        )

        await self.hub.start()

        if self.settings.poller_enabled:
            await self.poller.start()
        else:
            logger.info("poller_disabled")

    async def shutdown(self) -> None:
        await self.poller.stop()
        await self.hub.shutdown()
        await self.feed_client.close()

    @property
    def uptime_seconds(self) -> float:
        return round(time.monotonic() - self.started_monotonic, 1)

    async def initial_data(self) -> Dict[str, Any]:
        """Payload of INITIAL_DATA sent to a new subscriber"""
        snapshot = await self.store.load()
        last_spin = snapshot.spins[0].model_dump(mode="json") if snapshot.spins else None
        return {"lastSpin": last_spin, "totalSpins": len(snapshot.spins)}


def get_context(request: Request) -> ServiceContext:
    return request.app.state.context
