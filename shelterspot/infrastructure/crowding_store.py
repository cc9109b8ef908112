"""
Crowding Store
==============

Click counts over the trailing hour, turned into crowding snapshots.

Storage layout
--------------
* The click log (see ``click_log``) is the only source of truth.  By
  default it is a JSON list under ``shelter-clicks`` in the same key-value
  storage; the Redis deployment uses one sorted set per shelter.
* ``shelter-crowding-data`` -- JSON map of shelterId -> last computed
  snapshot.  Advisory only; rebuilt after every click and safe to drop.

Windowing
---------
An event counts while ``timestamp > now_ms - window_ms``.  Expired events
are filtered on every read and compacted out on every append; nothing
sweeps them eagerly.

Failure policy
--------------
Storage errors never reach the caller.  Reads degrade to empty / zero,
``record_click`` degrades to a no-op, and the failure is logged.  A click
counts as recorded once the click log accepts it; a later failure to
refresh the snapshot cache does not change that.
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from shelterspot.domain.crowding import classify, summarize
from shelterspot.domain.entities import (
    ClickEvent,
    CrowdingSnapshot,
    CrowdingStatistics,
)
from shelterspot.domain.errors import StorageUnavailableError

from .click_log import WINDOW_MS, ClickLog, JsonClickLog
from .storage import KeyValueStore

logger = logging.getLogger(__name__)

SNAPSHOT_CACHE_KEY = "shelter-crowding-data"


class CrowdingStore:
    def __init__(
        self,
        storage: KeyValueStore,
        window_ms: int = WINDOW_MS,
        click_log: Optional[ClickLog] = None,
    ):
        self.storage = storage
        self.window_ms = window_ms
        self.click_log = click_log if click_log is not None else JsonClickLog(storage)

    def _cutoff(self, now_ms: int) -> int:
        return now_ms - self.window_ms

    # ── Writes ────────────────────────────────────────────────────────

    async def record_click(self, shelter_id: str, now_ms: int) -> None:
        """Append a click and refresh the snapshot cache.  Never raises."""
        event = ClickEvent(shelter_id=shelter_id, timestamp_ms=now_ms)
        try:
            await self.click_log.append(event, self._cutoff(now_ms))
        except StorageUnavailableError:
            logger.warning("Click for shelter %s not recorded: storage unavailable", shelter_id)
            return
        logger.info("Recorded click for shelter %s", shelter_id)

        try:
            counts = await self.click_log.counts(self._cutoff(now_ms))
            await self.storage.set(
                SNAPSHOT_CACHE_KEY,
                json.dumps({
                    k: v.to_record()
                    for k, v in self._snapshots_from(counts, now_ms).items()
                }),
            )
        except StorageUnavailableError:
            logger.warning("Snapshot cache not refreshed: storage unavailable")

    async def clear(self) -> None:
        """Drop the click log and the snapshot cache."""
        try:
            await self.click_log.clear()
            await self.storage.delete(SNAPSHOT_CACHE_KEY)
        except StorageUnavailableError:
            logger.warning("Could not clear crowding data: storage unavailable")
            return
        logger.info("Crowding data cleared")

    # ── Reads ─────────────────────────────────────────────────────────

    async def hourly_click_count(self, shelter_id: str, now_ms: int) -> int:
        try:
            return await self.click_log.count(shelter_id, self._cutoff(now_ms))
        except StorageUnavailableError:
            logger.warning("Click log unavailable; reporting no clicks")
            return 0

    async def snapshot(
        self, shelter_id: str, now_ms: int, capacity: Optional[int] = None
    ) -> CrowdingSnapshot:
        count = await self.hourly_click_count(shelter_id, now_ms)
        return CrowdingSnapshot(
            shelter_id=shelter_id,
            hourly_click_count=count,
            level=classify(count, capacity),
            computed_at_ms=now_ms,
        )

    async def all_snapshots(self, now_ms: int) -> dict[str, CrowdingSnapshot]:
        counts = await self._read_counts(now_ms)
        return self._snapshots_from(counts, now_ms)

    async def statistics(self, now_ms: int) -> CrowdingStatistics:
        counts = await self._read_counts(now_ms)
        snapshots = self._snapshots_from(counts, now_ms)
        return summarize(snapshots.values(), total_clicks=sum(counts.values()))

    async def cached_snapshots(self) -> dict[str, CrowdingSnapshot]:
        """Last snapshots written after a click.  May be stale."""
        try:
            raw = await self.storage.get(SNAPSHOT_CACHE_KEY)
        except StorageUnavailableError:
            logger.warning("Snapshot cache unavailable")
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
            return {
                shelter_id: CrowdingSnapshot.from_record(record)
                for shelter_id, record in data.items()
            }
        except (ValueError, KeyError, TypeError, AttributeError):
            logger.warning("Snapshot cache is malformed; ignoring")
            return {}

    # ── Internals ─────────────────────────────────────────────────────

    def _snapshots_from(
        self, counts: dict[str, int], now_ms: int
    ) -> dict[str, CrowdingSnapshot]:
        return {
            shelter_id: CrowdingSnapshot(
                shelter_id=shelter_id,
                hourly_click_count=count,
                level=classify(count),
                computed_at_ms=now_ms,
            )
            for shelter_id, count in counts.items()
            if count > 0
        }

    async def _read_counts(self, now_ms: int) -> dict[str, int]:
        try:
            return await self.click_log.counts(self._cutoff(now_ms))
        except StorageUnavailableError:
            logger.warning("Click log unavailable; reporting no clicks")
            return {}
