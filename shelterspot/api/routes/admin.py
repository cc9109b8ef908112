"""
Admin / observability endpoints
===============================

GET    /api/v1/admin/health   -- simple health check
DELETE /api/v1/admin/crowding -- reset the click log and snapshot cache
"""

from fastapi import APIRouter, Depends, Request

from shelterspot.api.dependencies import get_crowding_store
from shelterspot.api.middleware import limiter
from shelterspot.api.schemas import HealthResponse
from shelterspot.config import settings
from shelterspot.infrastructure.crowding_store import CrowdingStore

router = APIRouter(prefix="/admin", tags=["admin"])


@router.delete(
    "/crowding",
    status_code=204,
    summary="Clear all crowding data (development / testing)",
)
@limiter.limit(settings.rate_limit)
async def clear_crowding(
    request: Request,
    store: CrowdingStore = Depends(get_crowding_store),
):
    await store.clear()


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health():
    return HealthResponse()
