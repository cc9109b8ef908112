"""
Shelter endpoints
=================

GET  /api/v1/shelters                          -- distance-sorted list with crowding
GET  /api/v1/shelters/{shelter_id}             -- one shelter with crowding
POST /api/v1/shelters/{shelter_id}/clicks      -- record interest (returns 202)
GET  /api/v1/shelters/{shelter_id}/crowding    -- crowding badge for one shelter
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from shelterspot.api.dependencies import (
    get_catalog,
    get_crowding_store,
    get_location_resolver,
    get_now_ms,
)
from shelterspot.api.middleware import limiter
from shelterspot.api.schemas import (
    CoordinateSchema,
    CrowdingResponse,
    RankedSheltersResponse,
    ShelterResponse,
)
from shelterspot.config import settings
from shelterspot.domain.distance import distance_km, format_distance
from shelterspot.domain.entities import Coordinate, RankedShelter
from shelterspot.domain.enums import CrowdingLevel
from shelterspot.domain.ranking import matches_query, order_ranked, rank_in_batches
from shelterspot.infrastructure.catalog import ShelterCatalog
from shelterspot.infrastructure.crowding_store import CrowdingStore
from shelterspot.infrastructure.location import LocationResolver

router = APIRouter(prefix="/shelters", tags=["shelters"])


@router.get(
    "",
    response_model=RankedSheltersResponse,
    summary="List shelters nearest first",
    description=(
        "Sorts the catalog by great-circle distance from the reported "
        "position.  Without a usable position the default reference point "
        "(Seoul City Hall) is used so sorting still works.  ``sort=congestion`` "
        "lists RELAXED shelters first and ``sort=name`` alphabetically; ties "
        "stay nearest first."
    ),
)
@limiter.limit(settings.rate_limit)
async def list_shelters(
    request: Request,
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    q: Optional[str] = Query(None, max_length=100, description="Search in name or address"),
    level: Optional[CrowdingLevel] = Query(None),
    sort: Literal["distance", "congestion", "name"] = Query("distance"),
    limit: int = Query(50, ge=1, le=1000),
    catalog: ShelterCatalog = Depends(get_catalog),
    store: CrowdingStore = Depends(get_crowding_store),
    resolver: LocationResolver = Depends(get_location_resolver),
    now_ms: int = Depends(get_now_ms),
):
    provider = None
    if lat is not None and lng is not None:
        reported = Coordinate(latitude=lat, longitude=lng)

        async def provider() -> Coordinate:
            return reported

    origin, is_default = await resolver.resolve_or_default(provider, now_ms / 1000)

    # the last snapshot is the complete ordering
    ranked = ()
    async for ranked in rank_in_batches(
        origin, catalog.shelters, batch_size=settings.ranking_batch_size
    ):
        pass

    snapshots = await store.all_snapshots(now_ms)
    levels = {shelter_id: snap.level for shelter_id, snap in snapshots.items()}
    if q:
        ranked = [e for e in ranked if matches_query(e.shelter, q)]
    if level is not None:
        ranked = [
            e for e in ranked
            if levels.get(e.shelter.id, CrowdingLevel.RELAXED) == level
        ]

    results = [
        ShelterResponse.from_ranked(entry, snapshots.get(entry.shelter.id))
        for entry in order_ranked(ranked, levels, sort)[:limit]
    ]

    return RankedSheltersResponse(
        origin=CoordinateSchema.from_domain(origin),
        is_default_origin=is_default,
        shelters=results,
    )


@router.get(
    "/{shelter_id}",
    response_model=ShelterResponse,
    summary="Get one shelter",
)
@limiter.limit(settings.rate_limit)
async def get_shelter(
    request: Request,
    shelter_id: str,
    lat: Optional[float] = Query(None),
    lng: Optional[float] = Query(None),
    catalog: ShelterCatalog = Depends(get_catalog),
    store: CrowdingStore = Depends(get_crowding_store),
    now_ms: int = Depends(get_now_ms),
):
    shelter = catalog.get(shelter_id)
    if not shelter:
        raise HTTPException(status_code=404, detail="Shelter not found")

    entry = RankedShelter(shelter=shelter)
    if lat is not None and lng is not None:
        user = Coordinate(latitude=lat, longitude=lng)
        if user.is_valid():
            km = distance_km(user, shelter.coordinates)
            entry = RankedShelter(shelter=shelter, distance_km=km, distance_label=format_distance(km))

    snap = await store.snapshot(shelter_id, now_ms, capacity=shelter.capacity)
    return ShelterResponse.from_ranked(entry, snap)


@router.post(
    "/{shelter_id}/clicks",
    status_code=202,
    response_model=CrowdingResponse,
    summary="Record interest in a shelter",
    description=(
        "Counts a card click, detail view or route request toward the "
        "shelter's crowding estimate.  Storage problems never fail the call."
    ),
)
@limiter.limit(settings.rate_limit)
async def record_click(
    request: Request,
    shelter_id: str,
    catalog: ShelterCatalog = Depends(get_catalog),
    store: CrowdingStore = Depends(get_crowding_store),
    now_ms: int = Depends(get_now_ms),
):
    shelter = catalog.get(shelter_id)
    if not shelter:
        raise HTTPException(status_code=404, detail="Shelter not found")

    await store.record_click(shelter_id, now_ms)
    snap = await store.snapshot(shelter_id, now_ms, capacity=shelter.capacity)
    return CrowdingResponse.from_snapshot(snap)


@router.get(
    "/{shelter_id}/crowding",
    response_model=CrowdingResponse,
    summary="Crowding estimate for one shelter",
)
@limiter.limit(settings.rate_limit)
async def get_crowding(
    request: Request,
    shelter_id: str,
    capacity: Optional[int] = Query(None, ge=0),
    store: CrowdingStore = Depends(get_crowding_store),
    now_ms: int = Depends(get_now_ms),
):
    snap = await store.snapshot(shelter_id, now_ms, capacity=capacity)
    return CrowdingResponse.from_snapshot(snap)
