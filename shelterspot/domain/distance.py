"""
Distance calculation using the Haversine formula.

Assumption
----------
Shelter lists are sorted by great-circle distance, not walking distance.
Real walking paths come from the directions provider (see
``shelterspot.domain.routing``) and only for the one shelter the user picks.

Complexity: O(1) per call.
"""

import math

from .entities import Coordinate

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two coordinates.  No range checks."""
    return haversine_km(a.latitude, a.longitude, b.latitude, b.longitude)


def round_half_up(x: float) -> int:
    """Nearest integer, halves rounded up (``2.5 -> 3``)."""
    return math.floor(x + 0.5)


def format_distance(km: float) -> str:
    """``850m`` below one kilometre, ``1.3km`` from there on."""
    if km < 1:
        return f"{round_half_up(km * 1000)}m"
    return f"{km:.1f}km"
