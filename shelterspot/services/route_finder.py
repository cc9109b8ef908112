"""
Route finding
=============

``RouteFinder.find_route`` validates both endpoints and the provider
credential before any network I/O, then asks the directions provider for
a walking path.  Provider failures and empty answers never surface: the
result is a straight-line fallback with ``is_fallback=True``.

``RouteSession`` implements last-request-wins for a single user view.  Each
request takes a generation number; a response whose generation is no
longer current is discarded and the call resolves to ``None``.
"""

from __future__ import annotations

import logging
from typing import Optional, Protocol

from shelterspot.domain.entities import Coordinate, RouteResult
from shelterspot.domain.errors import MissingCredentialError, RouteProviderError
from shelterspot.domain.routing import (
    build_request_payload,
    fallback_route,
    parse_route_response,
    validate_route_endpoints,
)

logger = logging.getLogger(__name__)

DEFAULT_START_NAME = "출발지"
DEFAULT_END_NAME = "도착지"


class DirectionsClient(Protocol):
    @property
    def has_credential(self) -> bool: ...

    async def fetch_route(self, payload: dict[str, str]) -> object: ...


class RouteFinder:
    def __init__(self, client: DirectionsClient):
        self.client = client

    async def find_route(
        self,
        origin: Coordinate,
        destination: Coordinate,
        start_name: str = DEFAULT_START_NAME,
        end_name: str = DEFAULT_END_NAME,
    ) -> RouteResult:
        validate_route_endpoints(origin, destination)
        if not self.client.has_credential:
            raise MissingCredentialError("Walking directions API key is not configured")

        payload = build_request_payload(origin, destination, start_name, end_name)
        try:
            data = await self.client.fetch_route(payload)
        except RouteProviderError as exc:
            logger.warning("Directions provider failed (%s); using straight line", exc)
            return fallback_route(origin, destination)

        parsed = parse_route_response(data)
        if parsed is None:
            logger.warning("Directions provider returned no usable path; using straight line")
            return fallback_route(origin, destination)

        logger.info(
            "Route found: %d points, %.0fm, %.0fs",
            len(parsed.path), parsed.total_distance_m, parsed.total_duration_s,
        )
        return RouteResult(
            path=parsed.path,
            total_distance_m=parsed.total_distance_m,
            total_duration_s=parsed.total_duration_s,
            is_fallback=False,
            instructions=parsed.instructions,
        )


class RouteSession:
    """Discards responses of requests superseded by a newer one."""

    def __init__(self, finder: RouteFinder):
        self.finder = finder
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    async def request(
        self,
        origin: Coordinate,
        destination: Coordinate,
        start_name: str = DEFAULT_START_NAME,
        end_name: str = DEFAULT_END_NAME,
    ) -> Optional[RouteResult]:
        self._generation += 1
        mine = self._generation
        result = await self.finder.find_route(origin, destination, start_name, end_name)
        if mine != self._generation:
            logger.debug("Discarding stale route response (generation %d)", mine)
            return None
        return result

    def cancel(self) -> None:
        """Invalidate whatever request is in flight (e.g. route cleared)."""
        self._generation += 1
