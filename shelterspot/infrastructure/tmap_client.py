"""HTTP client for the TMAP pedestrian directions API."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from shelterspot.config import settings
from shelterspot.domain.errors import MissingCredentialError, RouteProviderError

logger = logging.getLogger(__name__)

PEDESTRIAN_PATH = "/tmap/routes/pedestrian"


class TmapPedestrianClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else settings.tmap_api_key
        self.base_url = (base_url or settings.tmap_base_url).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.route_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(self.timeout, connect=5.0),
            transport=transport,
        )

    @property
    def has_credential(self) -> bool:
        return bool(self.api_key)

    async def fetch_route(self, payload: dict[str, str]) -> Any:
        """POST a pedestrian route request and return the decoded JSON body."""
        if not self.api_key:
            raise MissingCredentialError("TMAP API key is not configured")

        try:
            response = await self._client.post(
                PEDESTRIAN_PATH,
                params={"version": "1"},
                json=payload,
                headers={
                    "appKey": self.api_key,
                    "Accept": "application/json",
                },
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            raise RouteProviderError(
                f"Directions provider returned HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise RouteProviderError(f"Directions request failed: {exc!r}") from exc
        except ValueError as exc:
            raise RouteProviderError("Directions provider returned invalid JSON") from exc

    async def aclose(self) -> None:
        await self._client.aclose()
