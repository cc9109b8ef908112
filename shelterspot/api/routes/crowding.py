"""
Crowding endpoints
==================

GET /api/v1/crowding            -- snapshots for every shelter clicked in the last hour
GET /api/v1/crowding/statistics -- totals and per-level counts
GET /api/v1/crowding/cached     -- last snapshots written after a click (advisory)
"""

from fastapi import APIRouter, Depends, Request

from shelterspot.api.dependencies import get_crowding_store, get_now_ms
from shelterspot.api.middleware import limiter
from shelterspot.api.schemas import CrowdingResponse, CrowdingStatisticsResponse
from shelterspot.config import settings
from shelterspot.infrastructure.crowding_store import CrowdingStore

router = APIRouter(prefix="/crowding", tags=["crowding"])


@router.get(
    "",
    response_model=dict[str, CrowdingResponse],
    summary="Crowding for all recently clicked shelters",
    description="Shelters without clicks in the last hour are omitted; treat them as RELAXED.",
)
@limiter.limit(settings.rate_limit)
async def all_crowding(
    request: Request,
    store: CrowdingStore = Depends(get_crowding_store),
    now_ms: int = Depends(get_now_ms),
):
    snapshots = await store.all_snapshots(now_ms)
    return {k: CrowdingResponse.from_snapshot(v) for k, v in snapshots.items()}


@router.get(
    "/statistics",
    response_model=CrowdingStatisticsResponse,
    summary="Crowding statistics",
)
@limiter.limit(settings.rate_limit)
async def crowding_statistics(
    request: Request,
    store: CrowdingStore = Depends(get_crowding_store),
    now_ms: int = Depends(get_now_ms),
):
    stats = await store.statistics(now_ms)
    return CrowdingStatisticsResponse.from_statistics(stats)


@router.get(
    "/cached",
    response_model=dict[str, CrowdingResponse],
    summary="Snapshot cache (may be stale)",
)
@limiter.limit(settings.rate_limit)
async def cached_crowding(
    request: Request,
    store: CrowdingStore = Depends(get_crowding_store),
):
    snapshots = await store.cached_snapshots()
    return {k: CrowdingResponse.from_snapshot(v) for k, v in snapshots.items()}
