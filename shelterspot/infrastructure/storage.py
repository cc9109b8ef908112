"""
Key-value storage backends.

The crowding store only needs string get / set / delete under a handful of
well-known keys.  Backends translate their own failures into
``StorageUnavailableError`` so the store can degrade in one place.
"""

from __future__ import annotations

from typing import Optional, Protocol

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from shelterspot.domain.errors import StorageUnavailableError


class KeyValueStore(Protocol):
    async def get(self, key: str) -> Optional[str]: ...

    async def set(self, key: str, value: str) -> None: ...

    async def delete(self, key: str) -> None: ...


class InMemoryKeyValueStore:
    """Process-local backend used for development and tests."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._data[key] = value

    async def delete(self, key: str) -> None:
        self._data.pop(key, None)


class RedisKeyValueStore:
    def __init__(self, client: aioredis.Redis, namespace: str = "shelterspot"):
        self.redis = client
        self.namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self.redis.get(self._key(key))
        except RedisError as exc:
            raise StorageUnavailableError(f"Redis GET {key} failed") from exc

    async def set(self, key: str, value: str) -> None:
        try:
            await self.redis.set(self._key(key), value)
        except RedisError as exc:
            raise StorageUnavailableError(f"Redis SET {key} failed") from exc

    async def delete(self, key: str) -> None:
        try:
            await self.redis.delete(self._key(key))
        except RedisError as exc:
            raise StorageUnavailableError(f"Redis DEL {key} failed") from exc
