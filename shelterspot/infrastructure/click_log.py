"""
Click logs
==========

Where click events live.  Both backends count, per shelter, the events
newer than a cutoff ``c`` (``timestamp > c``).  An append also drops that
shelter's events with ``timestamp <= c``.

``JsonClickLog``
    One JSON list of ``{"timestamp", "shelterId"}`` under ``shelter-clicks``
    in any ``KeyValueStore``.  Appends are serialised by an
    ``asyncio.Lock``, so it is safe within one process only.  Used for the
    in-memory backend and in tests.

``RedisClickLog``
    One sorted set per shelter (score = timestamp) plus a set indexing the
    shelters that have ever been clicked.  ``ZADD`` + ``ZREMRANGEBYSCORE`` +
    ``SADD`` run in a single ``MULTI`` transaction, so an append is atomic
    per shelter and never waits on a lock.  Clicks on different shelters
    touch different keys.

Backends raise ``StorageUnavailableError`` on failure; the crowding store
decides how to degrade.
"""

from __future__ import annotations

import asyncio
import json
import logging
import uuid
from typing import Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shelterspot.domain.entities import ClickEvent
from shelterspot.domain.errors import StorageUnavailableError

from .storage import KeyValueStore

logger = logging.getLogger(__name__)

CLICKS_KEY = "shelter-clicks"
WINDOW_MS = 60 * 60 * 1000


class ClickLog(Protocol):
    async def append(self, event: ClickEvent, cutoff_ms: int) -> None: ...

    async def count(self, shelter_id: str, cutoff_ms: int) -> int: ...

    async def counts(self, cutoff_ms: int) -> dict[str, int]: ...

    async def clear(self) -> None: ...


class JsonClickLog:
    def __init__(self, storage: KeyValueStore):
        self.storage = storage
        self._lock = asyncio.Lock()

    async def append(self, event: ClickEvent, cutoff_ms: int) -> None:
        async with self._lock:
            events = await self._load()
            events.append(event)
            live = [e for e in events if e.timestamp_ms > cutoff_ms]
            await self.storage.set(
                CLICKS_KEY, json.dumps([e.to_record() for e in live])
            )

    async def count(self, shelter_id: str, cutoff_ms: int) -> int:
        return (await self.counts(cutoff_ms)).get(shelter_id, 0)

    async def counts(self, cutoff_ms: int) -> dict[str, int]:
        counts: dict[str, int] = {}
        for e in await self._load():
            if e.timestamp_ms > cutoff_ms:
                counts[e.shelter_id] = counts.get(e.shelter_id, 0) + 1
        return counts

    async def clear(self) -> None:
        await self.storage.delete(CLICKS_KEY)

    async def _load(self) -> list[ClickEvent]:
        raw = await self.storage.get(CLICKS_KEY)
        if not raw:
            return []
        try:
            return [ClickEvent.from_record(r) for r in json.loads(raw)]
        except (ValueError, KeyError, TypeError):
            # the next append replaces the corrupt log
            logger.warning("Click log is malformed; treating it as empty")
            return []


class RedisClickLog:
    def __init__(
        self,
        client: aioredis.Redis,
        namespace: str = "shelterspot",
        ttl_ms: int = WINDOW_MS,
    ):
        self.redis = client
        self.prefix = f"{namespace}:{CLICKS_KEY}"
        self.index_key = f"{self.prefix}:index"
        self.ttl_ms = ttl_ms

    def key(self, shelter_id: str) -> str:
        return f"{self.prefix}:{shelter_id}"

    async def append(self, event: ClickEvent, cutoff_ms: int) -> None:
        key = self.key(event.shelter_id)
        # unique member so equal timestamps are separate clicks
        member = f"{event.timestamp_ms}:{uuid.uuid4().hex}"
        pipe = self.redis.pipeline(transaction=True)
        pipe.zadd(key, {member: event.timestamp_ms})
        pipe.zremrangebyscore(key, "-inf", cutoff_ms)
        pipe.pexpire(key, self.ttl_ms)
        pipe.sadd(self.index_key, event.shelter_id)
        try:
            await pipe.execute()
        except RedisError as exc:
            raise StorageUnavailableError(
                f"Redis append for shelter {event.shelter_id} failed"
            ) from exc

    async def count(self, shelter_id: str, cutoff_ms: int) -> int:
        try:
            return int(await self.redis.zcount(self.key(shelter_id), f"({cutoff_ms}", "+inf"))
        except RedisError as exc:
            raise StorageUnavailableError(f"Redis ZCOUNT for shelter {shelter_id} failed") from exc

    async def counts(self, cutoff_ms: int) -> dict[str, int]:
        try:
            shelter_ids = sorted(await self.redis.smembers(self.index_key))
            if not shelter_ids:
                return {}
            pipe = self.redis.pipeline(transaction=False)
            for shelter_id in shelter_ids:
                pipe.zcount(self.key(shelter_id), f"({cutoff_ms}", "+inf")
            results = await pipe.execute()
        except RedisError as exc:
            raise StorageUnavailableError("Redis click counts failed") from exc
        return {
            shelter_id: int(n)
            for shelter_id, n in zip(shelter_ids, results)
            if n
        }

    async def clear(self) -> None:
        try:
            shelter_ids = await self.redis.smembers(self.index_key)
            await self.redis.delete(
                self.index_key, *(self.key(s) for s in shelter_ids)
            )
        except RedisError as exc:
            raise StorageUnavailableError("Redis click log clear failed") from exc
