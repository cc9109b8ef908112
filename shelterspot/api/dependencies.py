"""
FastAPI dependency injection helpers.

Long-lived services are built once in the application lifespan and kept on
``app.state``; routes receive them through these providers so tests can
swap them with ``app.dependency_overrides``.
"""

import time

from fastapi import Request

from shelterspot.config import settings
from shelterspot.domain.entities import Coordinate
from shelterspot.infrastructure.catalog import ShelterCatalog
from shelterspot.infrastructure.crowding_store import CrowdingStore
from shelterspot.infrastructure.location import LocationResolver
from shelterspot.services.route_finder import RouteFinder


def get_crowding_store(request: Request) -> CrowdingStore:
    return request.app.state.crowding_store


def get_route_finder(request: Request) -> RouteFinder:
    return request.app.state.route_finder


def get_catalog(request: Request) -> ShelterCatalog:
    return request.app.state.catalog


def get_location_resolver() -> LocationResolver:
    # Per request: a cached position belongs to one client, so the
    # max-age cache never spans HTTP requests.  Each request reports its own.
    return LocationResolver(
        default=Coordinate(settings.default_latitude, settings.default_longitude),
        timeout_s=settings.location_timeout_seconds,
    )


def get_now_ms() -> int:
    """Wall-clock milliseconds; the only place the API reads the clock."""
    return int(time.time() * 1000)
