"""
One-shot device location with a bounded wait and a cached-position window.

A provider is any coroutine function returning a ``Coordinate`` (a browser
bridge, a client-reported position, a test double).  ``None`` means the
capability is unsupported.

* A cached position younger than ``max_age_s`` is returned without asking
  the provider again.
* The provider gets ``timeout_s`` to answer; after that the request resolves
  to ``LocationUnavailableError`` rather than hanging.
* Cancelling ``resolve`` (e.g. the caller navigated away) cancels the
  provider call too; nothing is left pending.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from shelterspot.domain.entities import Coordinate
from shelterspot.domain.errors import LocationUnavailableError

logger = logging.getLogger(__name__)

LocationProvider = Callable[[], Awaitable[Coordinate]]

SEOUL_CITY_HALL = Coordinate(latitude=37.5666103, longitude=126.9783882)


class LocationResolver:
    def __init__(
        self,
        default: Coordinate = SEOUL_CITY_HALL,
        timeout_s: float = 10.0,
        max_age_s: float = 60.0,
    ):
        self.default = default
        self.timeout_s = timeout_s
        self.max_age_s = max_age_s
        self._cached: Optional[tuple[Coordinate, float]] = None

    async def resolve(
        self, provider: Optional[LocationProvider], now_s: float
    ) -> Coordinate:
        if self._cached is not None:
            position, taken_at = self._cached
            if now_s - taken_at <= self.max_age_s:
                return position

        if provider is None:
            raise LocationUnavailableError("Location is not supported")

        try:
            position = await asyncio.wait_for(provider(), timeout=self.timeout_s)
        except asyncio.TimeoutError as exc:
            raise LocationUnavailableError(
                f"Location request timed out after {self.timeout_s}s"
            ) from exc
        except LocationUnavailableError:
            raise
        except Exception as exc:
            raise LocationUnavailableError(f"Location request failed: {exc}") from exc

        if not position.is_valid():
            raise LocationUnavailableError(
                f"Provider returned an invalid position: {position}"
            )

        self._cached = (position, now_s)
        return position

    async def resolve_or_default(
        self, provider: Optional[LocationProvider], now_s: float
    ) -> tuple[Coordinate, bool]:
        """Return ``(position, is_default)``; never raises for location errors."""
        try:
            return await self.resolve(provider, now_s), False
        except LocationUnavailableError as exc:
            logger.warning("%s; using default reference location", exc)
            return self.default, True
