"""
Domain entities and value objects.

* ``Coordinate`` is an immutable value type; range checks live in
  ``Coordinate.is_valid`` so callers decide whether to raise.
* ``ClickEvent`` is the only source of truth for crowding.  A
  ``CrowdingSnapshot`` is a derived view recomputed on demand.
* ``Shelter`` comes from the read-only catalog.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .enums import CrowdingLevel


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Coordinate:
    latitude: float
    longitude: float

    def is_valid(self) -> bool:
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0


@dataclass(frozen=True)
class ClickEvent:
    shelter_id: str
    timestamp_ms: int

    def to_record(self) -> dict:
        return {"timestamp": self.timestamp_ms, "shelterId": self.shelter_id}

    @classmethod
    def from_record(cls, record: dict) -> "ClickEvent":
        return cls(
            shelter_id=str(record["shelterId"]),
            timestamp_ms=int(record["timestamp"]),
        )


@dataclass(frozen=True)
class CrowdingSnapshot:
    shelter_id: str
    hourly_click_count: int
    level: CrowdingLevel
    computed_at_ms: int

    def to_record(self) -> dict:
        return {
            "shelterId": self.shelter_id,
            "hourlyClicks": self.hourly_click_count,
            "level": self.level.value,
            "lastUpdated": self.computed_at_ms,
        }

    @classmethod
    def from_record(cls, record: dict) -> "CrowdingSnapshot":
        return cls(
            shelter_id=str(record["shelterId"]),
            hourly_click_count=int(record["hourlyClicks"]),
            level=CrowdingLevel(record["level"]),
            computed_at_ms=int(record["lastUpdated"]),
        )


@dataclass(frozen=True)
class CrowdingStatistics:
    total_clicks: int
    active_shelters: int
    levels: dict[CrowdingLevel, int]


# ── Entities ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Shelter:
    id: str
    name: str
    coordinates: Coordinate
    address: str = ""
    capacity: Optional[int] = None
    facility_types: tuple[str, ...] = ()
    remarks: Optional[str] = None


@dataclass(frozen=True)
class RankedShelter:
    shelter: Shelter
    distance_km: Optional[float] = None
    distance_label: Optional[str] = None


@dataclass(frozen=True)
class RouteInstruction:
    point: Coordinate
    description: str = ""
    turn_type: Optional[int] = None


@dataclass(frozen=True)
class RouteResult:
    path: tuple[Coordinate, ...]
    total_distance_m: float
    total_duration_s: float
    is_fallback: bool
    instructions: tuple[RouteInstruction, ...] = field(default_factory=tuple)
