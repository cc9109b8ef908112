"""
Walking route endpoint
======================

POST /api/v1/routes -- walking route from the user to a shelter

Invalid coordinates -> 422, missing provider key -> 503.  A provider outage
is not an error: the response is a straight-line estimate with
``is_fallback: true``.
"""

from fastapi import APIRouter, Depends, HTTPException, Request

from shelterspot.api.dependencies import (
    get_catalog,
    get_crowding_store,
    get_now_ms,
    get_route_finder,
)
from shelterspot.api.middleware import limiter
from shelterspot.api.schemas import ErrorResponse, RouteRequest, RouteResponse
from shelterspot.config import settings
from shelterspot.domain.errors import InvalidCoordinateError, MissingCredentialError
from shelterspot.infrastructure.catalog import ShelterCatalog
from shelterspot.infrastructure.crowding_store import CrowdingStore
from shelterspot.services.route_finder import (
    DEFAULT_END_NAME,
    DEFAULT_START_NAME,
    RouteFinder,
)

router = APIRouter(prefix="/routes", tags=["routes"])


@router.post(
    "",
    response_model=RouteResponse,
    summary="Find a walking route",
    responses={
        422: {"model": ErrorResponse, "description": "Coordinate out of range"},
        503: {"model": ErrorResponse, "description": "Directions provider not configured"},
    },
)
@limiter.limit(settings.rate_limit)
async def find_route(
    request: Request,
    body: RouteRequest,
    finder: RouteFinder = Depends(get_route_finder),
    catalog: ShelterCatalog = Depends(get_catalog),
    store: CrowdingStore = Depends(get_crowding_store),
    now_ms: int = Depends(get_now_ms),
):
    # unknown shelter ids still get a route but are not counted
    shelter = catalog.get(body.shelter_id) if body.shelter_id else None
    end_name = body.end_name or (shelter.name if shelter else None)

    try:
        result = await finder.find_route(
            body.origin.to_domain(),
            body.destination.to_domain(),
            start_name=body.start_name or DEFAULT_START_NAME,
            end_name=end_name or DEFAULT_END_NAME,
        )
    except InvalidCoordinateError as exc:
        raise HTTPException(status_code=422, detail=str(exc))
    except MissingCredentialError:
        raise HTTPException(
            status_code=503,
            detail="Walking directions are not configured (missing TMAP API key)",
        )

    if shelter is not None:
        await store.record_click(shelter.id, now_ms)
    return RouteResponse.from_result(result)
