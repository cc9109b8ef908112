"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from shelterspot.domain.entities import (
    Coordinate,
    CrowdingSnapshot,
    CrowdingStatistics,
    RankedShelter,
    RouteResult,
)
from shelterspot.domain.enums import CrowdingLevel
from shelterspot.domain.routing import format_route_distance, format_route_duration


# ── Shared ────────────────────────────────────────────────────────────


class CoordinateSchema(BaseModel):
    # Range checks happen in the domain so they map to InvalidCoordinateError
    latitude: float
    longitude: float

    def to_domain(self) -> Coordinate:
        return Coordinate(latitude=self.latitude, longitude=self.longitude)

    @classmethod
    def from_domain(cls, c: Coordinate) -> "CoordinateSchema":
        return cls(latitude=c.latitude, longitude=c.longitude)


# ── Requests ──────────────────────────────────────────────────────────


class RouteRequest(BaseModel):
    origin: CoordinateSchema
    destination: CoordinateSchema
    start_name: Optional[str] = Field(None, max_length=100)
    end_name: Optional[str] = Field(None, max_length=100)
    shelter_id: Optional[str] = Field(
        None,
        description="When set, the request also counts as interest in this shelter.",
    )


# ── Responses ─────────────────────────────────────────────────────────


class CrowdingResponse(BaseModel):
    shelter_id: str
    hourly_clicks: int
    level: CrowdingLevel
    label: str
    emoji: str
    description: str
    computed_at_ms: int

    @classmethod
    def from_snapshot(cls, snap: CrowdingSnapshot) -> "CrowdingResponse":
        return cls(
            shelter_id=snap.shelter_id,
            hourly_clicks=snap.hourly_click_count,
            level=snap.level,
            label=snap.level.label,
            emoji=snap.level.emoji,
            description=snap.level.description,
            computed_at_ms=snap.computed_at_ms,
        )


class CrowdingStatisticsResponse(BaseModel):
    total_clicks: int
    active_shelters: int
    levels: dict[str, int]

    @classmethod
    def from_statistics(cls, stats: CrowdingStatistics) -> "CrowdingStatisticsResponse":
        return cls(
            total_clicks=stats.total_clicks,
            active_shelters=stats.active_shelters,
            levels={level.value: n for level, n in stats.levels.items()},
        )


class ShelterResponse(BaseModel):
    id: str
    name: str
    address: str
    latitude: float
    longitude: float
    capacity: Optional[int] = None
    facility_types: list[str] = []
    remarks: Optional[str] = None
    distance_km: Optional[float] = None
    distance_label: Optional[str] = None
    crowding_level: CrowdingLevel = CrowdingLevel.RELAXED
    hourly_clicks: int = 0

    @classmethod
    def from_ranked(
        cls, entry: RankedShelter, snap: Optional[CrowdingSnapshot]
    ) -> "ShelterResponse":
        s = entry.shelter
        return cls(
            id=s.id,
            name=s.name,
            address=s.address,
            latitude=s.coordinates.latitude,
            longitude=s.coordinates.longitude,
            capacity=s.capacity,
            facility_types=list(s.facility_types),
            remarks=s.remarks,
            distance_km=entry.distance_km,
            distance_label=entry.distance_label,
            crowding_level=snap.level if snap else CrowdingLevel.RELAXED,
            hourly_clicks=snap.hourly_click_count if snap else 0,
        )


class RankedSheltersResponse(BaseModel):
    origin: CoordinateSchema
    is_default_origin: bool
    shelters: list[ShelterResponse]


class RouteInstructionResponse(BaseModel):
    point: CoordinateSchema
    description: str
    turn_type: Optional[int] = None


class RouteResponse(BaseModel):
    path: list[CoordinateSchema]
    total_distance_m: float
    total_duration_s: float
    distance_label: str
    duration_label: str
    is_fallback: bool
    instructions: list[RouteInstructionResponse] = []

    @classmethod
    def from_result(cls, result: RouteResult) -> "RouteResponse":
        return cls(
            path=[CoordinateSchema.from_domain(p) for p in result.path],
            total_distance_m=result.total_distance_m,
            total_duration_s=result.total_duration_s,
            distance_label=format_route_distance(result.total_distance_m),
            duration_label=format_route_duration(result.total_duration_s),
            is_fallback=result.is_fallback,
            instructions=[
                RouteInstructionResponse(
                    point=CoordinateSchema.from_domain(i.point),
                    description=i.description,
                    turn_type=i.turn_type,
                )
                for i in result.instructions
            ],
        )


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
