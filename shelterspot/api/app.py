"""
FastAPI application factory.

* Registers routes for shelters, crowding, walking routes and admin.
* Builds the long-lived services (storage, crowding store, directions
  client, shelter catalog) on startup and closes them on shutdown.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from shelterspot.api.middleware import limiter
from shelterspot.api.routes import admin, crowding, routes, shelters
from shelterspot.config import settings
from shelterspot.infrastructure.catalog import load_catalog
from shelterspot.infrastructure.click_log import RedisClickLog
from shelterspot.infrastructure.crowding_store import CrowdingStore
from shelterspot.infrastructure.storage import InMemoryKeyValueStore, RedisKeyValueStore
from shelterspot.infrastructure.tmap_client import TmapPedestrianClient
from shelterspot.services.route_finder import RouteFinder

logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)


def build_crowding_store() -> CrowdingStore:
    if settings.storage_backend == "memory":
        logger.info("Crowding store: in-memory backend")
        return CrowdingStore(InMemoryKeyValueStore(), window_ms=settings.crowding_window_ms)

    from shelterspot.infrastructure.redis_client import get_redis

    client = get_redis()
    logger.info("Crowding store: redis backend at %s", settings.redis_url)
    return CrowdingStore(
        RedisKeyValueStore(client),
        window_ms=settings.crowding_window_ms,
        click_log=RedisClickLog(client, ttl_ms=settings.crowding_window_ms),
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build services on startup; release the HTTP client on shutdown."""
    tmap = TmapPedestrianClient()
    if not tmap.has_credential:
        logger.warning("TMAP API key missing; /routes will answer 503")

    app.state.crowding_store = build_crowding_store()
    app.state.route_finder = RouteFinder(tmap)
    app.state.catalog = load_catalog(settings.catalog_path)
    yield
    await tmap.aclose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Shelter Spot Guide API",
        description=(
            "Finds nearby cooling shelters, estimates crowding from recent "
            "user interest and plans walking routes with a straight-line "
            "fallback when the directions provider is unavailable."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(shelters.router, prefix="/api/v1")
    app.include_router(crowding.router, prefix="/api/v1")
    app.include_router(routes.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
