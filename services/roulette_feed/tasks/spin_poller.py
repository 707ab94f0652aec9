"""
Spin Poller

Polls the roulette feed on a fixed schedule:
- Fetch the newest result
- Normalize it into a SpinRecord
- Ingest into the ledger (duplicates are skipped, so refetches are harmless)
- Broadcast NEW_SPIN to live subscribers when the spin is new

A failed tick is logged and counted; the next tick runs on schedule.
"""

import asyncio
import contextlib
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import structlog

from ..errors import FetchError, ParseError, PersistenceError
from ..models import SpinRecord, utc_now_iso
from ..realtime import BroadcastHub
from ..store import Ledger
from .feed_client import RouletteFeedClient
from .normalizer import normalize_feed_item

logger = structlog.get_logger(__name__)


@dataclass
class CollectionStats:
    """Process-wide collection counters, reset only at process start"""
    running: bool = False
    total_collected: int = 0
    errors: int = 0
    persistence_errors: int = 0
    duplicates_skipped: int = 0
    polls_completed: int = 0
    last_collection: Optional[str] = None
    last_error: Optional[str] = None
    started_at: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CollectionResult:
    success: bool
    is_new: bool = False
    spin: Optional[SpinRecord] = None
    error: Optional[str] = None


class SpinPoller:
    """
    Drives feed → normalizer → ledger → hub on a fixed interval

    Ticks are scheduled at a fixed rate from their start time and run one
    at a time; a tick that overruns the interval delays the next one.
    """

    def __init__(
        self,
        client: RouletteFeedClient,
        ledger: Ledger,
        hub: BroadcastHub,
        stats: Optional[CollectionStats] = None,
        interval: float = 2.0
    ):
        self.client = client
        self.ledger = ledger
        self.hub = hub
        self.stats = stats or CollectionStats()
        self.interval = interval

        self._poll_task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self.stats.running

    async def start(self):
        """Start polling; collects immediately, then every `interval` seconds"""
        if self.stats.running:
            logger.warning("poller_already_running")
            return

        self.stats.running = True
        self.stats.started_at = utc_now_iso()
        self._poll_task = asyncio.create_task(self._polling_loop(), name="spin-poller")

        logger.info(
            "poller_started",
            interval_seconds=self.interval,
            feed_url=self.client.feed_url
        )

    async def stop(self):
        """Stop polling. Stopping a stopped poller is a no-op."""
        if not self.stats.running and self._poll_task is None:
            return

        self.stats.running = False

        task, self._poll_task = self._poll_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        logger.info("poller_stopped")

    async def _polling_loop(self):
        loop = asyncio.get_running_loop()

        while self.stats.running:
            started = loop.time()
            try:
                await self.collect_once()
            except Exception as e:
                logger.exception("polling_error", error=str(e))
                self.stats.errors += 1
                self.stats.last_error = str(e)

            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self.interval - elapsed))

    async def collect_once(self) -> CollectionResult:
        """
        Run one tick

        Never raises for feed or persistence failures; they are counted
        and reported in the returned CollectionResult.
        """
        try:
            item = await self.client.fetch_latest()
            spin = normalize_feed_item(item, collected_by="server")
        except FetchError as e:
            return self._record_failure("feed_fetch_error", e)
        except ParseError as e:
            return self._record_failure("feed_parse_error", e)
        finally:
            self.stats.last_collection = utc_now_iso()

        try:
            result = await self.ledger.ingest(spin)
        except PersistenceError as e:
            self.stats.persistence_errors += 1
            self.stats.last_error = str(e)
            logger.error("spin_persist_error", spin_id=spin.id, error=str(e))
            return CollectionResult(success=False, spin=spin, error=str(e))
        finally:
            self.stats.polls_completed += 1

        if not result.inserted:
            self.stats.duplicates_skipped += 1
            return CollectionResult(success=True, is_new=False, spin=spin)

        self.stats.total_collected += 1
        delivery = await self.hub.publish_spin(spin)

        logger.info(
            "spin_collected",
            spin_id=spin.id,
            number=spin.number,
            color=spin.color.value,
            total=result.total,
            delivered=delivery.delivered
        )
        return CollectionResult(success=True, is_new=True, spin=spin)

    def _record_failure(self, event: str, error: Exception) -> CollectionResult:
        self.stats.errors += 1
        self.stats.polls_completed += 1
        self.stats.last_error = str(error)
        logger.warning(event, error=str(error), errors=self.stats.errors)
        return CollectionResult(success=False, error=str(error))
