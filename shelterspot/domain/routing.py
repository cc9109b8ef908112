"""
Walking-route request building and response parsing.

Request
-------
The pedestrian directions provider expects string-encoded decimal degrees
with X = longitude and Y = latitude, display names for both ends and a
coordinate-system identifier (``WGS84GEO``).

Response
--------
A GeoJSON-like feature collection:

* ``LineString`` features -> ordered path points (``[lng, lat]`` pairs)
* ``Point`` features      -> turn / maneuver metadata
* ``distance`` / ``time`` properties on any feature are summed for totals

Consecutive points closer than ``DEDUP_EPSILON_DEG`` on *both* axes are
collapsed (about 1 m) to avoid redundant vertices.

Fallback
--------
If the provider is unusable the route is the straight line
``[origin, destination]`` at an assumed walking pace of 5 km/h
(12 minutes per kilometre).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Optional

from .distance import distance_km, round_half_up
from .entities import Coordinate, RouteInstruction, RouteResult
from .errors import InvalidCoordinateError

logger = logging.getLogger(__name__)

COORD_TYPE = "WGS84GEO"
DEDUP_EPSILON_DEG = 1e-5
WALKING_MINUTES_PER_KM = 12

# Rough bounding box of South Korea, used for warnings only
SERVICE_REGION = {"min_lat": 33.0, "max_lat": 39.0, "min_lng": 124.0, "max_lng": 132.0}


@dataclass(frozen=True)
class ParsedRoute:
    path: tuple[Coordinate, ...]
    total_distance_m: float
    total_duration_s: float
    instructions: tuple[RouteInstruction, ...]


# ── Validation ────────────────────────────────────────────────────────


def validate_coordinate(coord: Coordinate, role: str) -> None:
    if not coord.is_valid():
        raise InvalidCoordinateError(role, coord.latitude, coord.longitude)


def is_within_service_region(coord: Coordinate) -> bool:
    return (
        SERVICE_REGION["min_lat"] <= coord.latitude <= SERVICE_REGION["max_lat"]
        and SERVICE_REGION["min_lng"] <= coord.longitude <= SERVICE_REGION["max_lng"]
    )


def validate_route_endpoints(origin: Coordinate, destination: Coordinate) -> None:
    """Raise for out-of-range coordinates; only warn for out-of-region ones."""
    validate_coordinate(origin, "origin")
    validate_coordinate(destination, "destination")
    for role, coord in (("origin", origin), ("destination", destination)):
        if not is_within_service_region(coord):
            logger.warning(
                "Route %s (%.5f, %.5f) is outside the service region",
                role, coord.latitude, coord.longitude,
            )


# ── Request ───────────────────────────────────────────────────────────


def build_request_payload(
    origin: Coordinate,
    destination: Coordinate,
    start_name: str,
    end_name: str,
) -> dict[str, str]:
    return {
        "startX": str(origin.longitude),
        "startY": str(origin.latitude),
        "endX": str(destination.longitude),
        "endY": str(destination.latitude),
        "startName": start_name,
        "endName": end_name,
        "reqCoordType": COORD_TYPE,
        "resCoordType": COORD_TYPE,
        "searchOption": "0",
    }


# ── Response ──────────────────────────────────────────────────────────


def _to_coordinate(pair: Any) -> Optional[Coordinate]:
    try:
        lng, lat = float(pair[0]), float(pair[1])
    except (TypeError, ValueError, IndexError):
        return None
    return Coordinate(latitude=lat, longitude=lng)


def _number(value: Any) -> float:
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    return 0.0


def dedupe_path(points: list[Coordinate]) -> list[Coordinate]:
    """Drop points within ``DEDUP_EPSILON_DEG`` of the last retained one."""
    kept: list[Coordinate] = []
    for p in points:
        if kept:
            last = kept[-1]
            if (
                abs(p.latitude - last.latitude) < DEDUP_EPSILON_DEG
                and abs(p.longitude - last.longitude) < DEDUP_EPSILON_DEG
            ):
                continue
        kept.append(p)
    return kept


def parse_route_response(data: Any) -> Optional[ParsedRoute]:
    """Parse a provider feature collection.  ``None`` if nothing usable."""
    if not isinstance(data, dict):
        return None
    features = data.get("features")
    if not isinstance(features, list) or not features:
        return None

    points: list[Coordinate] = []
    instructions: list[RouteInstruction] = []
    total_distance = 0.0
    total_time = 0.0

    for feature in features:
        if not isinstance(feature, dict):
            continue
        geometry = feature.get("geometry") or {}
        props = feature.get("properties") or {}
        geom_type = geometry.get("type")
        coords = geometry.get("coordinates")

        if geom_type == "LineString" and isinstance(coords, list):
            for pair in coords:
                c = _to_coordinate(pair)
                if c is not None:
                    points.append(c)
        elif geom_type == "Point":
            c = _to_coordinate(coords)
            if c is not None:
                turn_type = props.get("turnType")
                instructions.append(
                    RouteInstruction(
                        point=c,
                        description=str(props.get("description", "")),
                        turn_type=int(turn_type) if isinstance(turn_type, int) else None,
                    )
                )

        total_distance += _number(props.get("distance"))
        total_time += _number(props.get("time"))

    path = dedupe_path(points)
    if len(path) < 2:
        return None

    return ParsedRoute(
        path=tuple(path),
        total_distance_m=total_distance,
        total_duration_s=total_time,
        instructions=tuple(instructions),
    )


def fallback_route(origin: Coordinate, destination: Coordinate) -> RouteResult:
    """Straight-line estimate at walking pace."""
    meters = distance_km(origin, destination) * 1000
    seconds = meters / 1000 * WALKING_MINUTES_PER_KM * 60
    return RouteResult(
        path=(origin, destination),
        total_distance_m=meters,
        total_duration_s=seconds,
        is_fallback=True,
    )


# ── Display ───────────────────────────────────────────────────────────


def format_route_distance(meters: float) -> str:
    return f"{meters / 1000:.2f}km"


def format_route_duration(seconds: float) -> str:
    minutes = round_half_up(seconds / 60)
    if minutes >= 60:
        return f"{minutes // 60}시간 {minutes % 60}분"
    return f"{minutes}분"
