"""
Shared test fixtures.

Storage runs in memory (or through a backend that always fails) and the
directions provider is a scripted fake, so tests need neither Redis nor
network access.  Time is passed explicitly as ``NOW_MS``.
"""

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from shelterspot.domain.entities import Coordinate, Shelter
from shelterspot.domain.errors import StorageUnavailableError
from shelterspot.infrastructure.catalog import ShelterCatalog
from shelterspot.infrastructure.crowding_store import CrowdingStore
from shelterspot.infrastructure.storage import InMemoryKeyValueStore
from shelterspot.services.route_finder import RouteFinder


NOW_MS = 1_750_000_000_000
SEOUL_CITY_HALL = Coordinate(37.5666, 126.9784)


# ── Test doubles ──────────────────────────────────────────────────────


class FailingKeyValueStore:
    """Every operation fails, as when storage is full or absent."""

    def __init__(self):
        self.calls = 0

    async def get(self, key: str) -> Optional[str]:
        self.calls += 1
        raise StorageUnavailableError("storage offline")

    async def set(self, key: str, value: str) -> None:
        self.calls += 1
        raise StorageUnavailableError("storage offline")

    async def delete(self, key: str) -> None:
        self.calls += 1
        raise StorageUnavailableError("storage offline")


class FakeDirectionsClient:
    """Returns a scripted response (or raises) and counts calls."""

    def __init__(self, response=None, error: Exception | None = None, has_credential: bool = True):
        self.response = response
        self.error = error
        self._has_credential = has_credential
        self.calls: list[dict] = []

    @property
    def has_credential(self) -> bool:
        return self._has_credential

    async def fetch_route(self, payload: dict[str, str]):
        self.calls.append(payload)
        if self.error is not None:
            raise self.error
        return self.response


def tmap_response() -> dict:
    """Small feature collection shaped like the pedestrian API answer."""
    return {
        "type": "FeatureCollection",
        "features": [
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [126.9784, 37.5666]},
                "properties": {"description": "출발", "turnType": 200},
            },
            {
                "type": "Feature",
                "geometry": {
                    "type": "LineString",
                    "coordinates": [
                        [126.9784, 37.5666],
                        [126.978405, 37.566605],  # within 1e-5 of the previous point
                        [126.9790, 37.5680],
                    ],
                },
                "properties": {"distance": 160, "time": 120},
            },
            {
                "type": "Feature",
                "geometry": {"type": "Point", "coordinates": [126.9790, 37.5680]},
                "properties": {"description": "우회전", "turnType": 12},
            },
            {
                "type": "Feature",
                "geometry": {
                    "type": "LineString",
                    "coordinates": [[126.9790, 37.5680], [126.9795, 37.5700]],
                },
                "properties": {"distance": 230, "time": 170},
            },
        ],
    }


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest.fixture
def memory_storage() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(memory_storage) -> CrowdingStore:
    return CrowdingStore(memory_storage)


@pytest.fixture
def failing_store() -> CrowdingStore:
    return CrowdingStore(FailingKeyValueStore())


@pytest.fixture
def shelters() -> list[Shelter]:
    return [
        Shelter(id="S1", name="종로구청", coordinates=Coordinate(37.5735, 126.9790), capacity=50),
        Shelter(
            id="S2",
            name="명동 주민센터",
            coordinates=Coordinate(37.5637, 126.9850),
            address="서울특별시 중구 명동길 14",
            capacity=20,
        ),
        Shelter(
            id="S3",
            name="용산구청",
            coordinates=Coordinate(37.5324, 126.9905),
            remarks="주말 휴관",
        ),
    ]


@pytest.fixture
def directions() -> FakeDirectionsClient:
    return FakeDirectionsClient(response=tmap_response())


@pytest_asyncio.fixture
async def client(store, shelters, directions) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient with in-memory storage, a fake provider and a fixed clock."""
    from shelterspot.api import dependencies
    from shelterspot.api.app import create_app
    from shelterspot.api.middleware import limiter

    app = create_app()
    app.dependency_overrides[dependencies.get_crowding_store] = lambda: store
    app.dependency_overrides[dependencies.get_route_finder] = lambda: RouteFinder(directions)
    app.dependency_overrides[dependencies.get_catalog] = lambda: ShelterCatalog(shelters)
    app.dependency_overrides[dependencies.get_now_ms] = lambda: NOW_MS

    limiter.enabled = False
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    limiter.enabled = True
