"""
Snapshot Store - durable JSON document for ledger, patterns and metadata.

Responsibilities:
1. load(): read and validate the document, creating it when missing and
   replacing it (after moving the bad file aside) when corrupt
2. save(): stamp metadata and write the whole document atomically
   (temp file in the same directory + os.replace)
3. transaction(): load → mutate → save as one unit

Design:
    - Whole-document read-modify-write, no partial updates
    - With serialize_writes=True every transaction runs under one
      asyncio.Lock, the single writer of the file. With it off, two
      interleaved transactions race and the last save wins.
    - Blocking file I/O runs in a worker thread
"""

import asyncio
import contextlib
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, Union

import orjson
from pydantic import ValidationError

from shared.utils.logger import LoggerMixin

from ..errors import PersistenceError
from ..models import Snapshot, utc_now_iso


class SnapshotStore(LoggerMixin):
    """
    Persistence gateway for the service state

    Usage:
        store = SnapshotStore("./database.json")
        snapshot = await store.load()

        async with store.transaction() as snapshot:
            snapshot.spins.insert(0, spin)
    """

    def __init__(self, path: Union[str, Path], serialize_writes: bool = True):
        self.path = Path(path)
        self.serialize_writes = serialize_writes
        self._lock = asyncio.Lock()
        self.logger = self.get_logger(path=str(self.path))

        self.stats = {
            "loads": 0,
            "saves": 0,
            "save_failures": 0,
            "recoveries": 0,
        }

    # ========================================================================
    # Read
    # ========================================================================

    async def load(self) -> Snapshot:
        """
        Read the current document

        Never raises: a missing, unreadable or corrupt document yields a
        freshly initialized (and, when possible, persisted) empty snapshot.
        """
        try:
            raw = await asyncio.to_thread(self.path.read_bytes)
        except FileNotFoundError:
            self.logger.info("snapshot_missing_initializing")
            return await self._initialize()
        except OSError as e:
            self.logger.error("snapshot_read_error", error=str(e))
            self.stats["recoveries"] += 1
            return await self._initialize()

        try:
            snapshot = Snapshot.model_validate(orjson.loads(raw))
        except (orjson.JSONDecodeError, ValidationError) as e:
            self.logger.error("snapshot_corrupt", error=str(e))
            self.stats["recoveries"] += 1
            await self._quarantine()
            return await self._initialize()

        self.stats["loads"] += 1
        return snapshot

    # ========================================================================
    # Write
    # ========================================================================

    async def save(self, snapshot: Snapshot) -> bool:
        """
        Write the whole document

        Returns:
            True on success, False if the document could not be written
        """
        snapshot.metadata.last_update = utc_now_iso()
        snapshot.refresh_totals()

        try:
            payload = orjson.dumps(snapshot.to_document(), option=orjson.OPT_INDENT_2)
            await asyncio.to_thread(self._write_atomic, payload)
        except (OSError, TypeError) as e:
            self.stats["save_failures"] += 1
            self.logger.error("snapshot_save_error", error=str(e))
            return False

        self.stats["saves"] += 1
        return True

    @contextlib.asynccontextmanager
    async def transaction(self) -> AsyncIterator[Snapshot]:
        """
        Load, hand the snapshot to the caller for mutation, then save

        Nothing is written if the caller's block raises.

        Raises:
            PersistenceError: the mutated snapshot could not be saved
        """
        guard = self._lock if self.serialize_writes else contextlib.nullcontext()

        async with guard:
            snapshot = await self.load()
            yield snapshot
            if not await self.save(snapshot):
                raise PersistenceError(f"could not write snapshot to {self.path}")

    def get_stats(self) -> Dict[str, Any]:
        """Load/save counters for the status endpoint"""
        return {
            **self.stats,
            "path": str(self.path),
            "serialize_writes": self.serialize_writes,
        }

    # ========================================================================
    # Internals
    # ========================================================================

    async def _initialize(self) -> Snapshot:
        snapshot = Snapshot()
        if not await self.save(snapshot):
            self.logger.warning("snapshot_initialize_not_persisted")
        return snapshot

    async def _quarantine(self) -> None:
        stamp = datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ")
        target = self.path.with_name(f"{self.path.name}.corrupt-{stamp}")
        try:
            await asyncio.to_thread(os.replace, self.path, target)
            self.logger.warning("snapshot_quarantined", moved_to=str(target))
        except OSError as e:
            self.logger.error("snapshot_quarantine_error", error=str(e))

    def _write_atomic(self, payload: bytes) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=f".{self.path.name}.",
            suffix=".tmp",
            dir=self.path.parent,
        )
        try:
            with os.fdopen(fd, "wb") as fh:
                fh.write(payload)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_path, self.path)
        except OSError:
            with contextlib.suppress(OSError):
                os.unlink(tmp_path)
            raise
