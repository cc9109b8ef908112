"""Tests for walking-route parsing, fallback and the route finder."""

import asyncio

import httpx
import pytest

from shelterspot.domain.distance import distance_km
from shelterspot.domain.entities import Coordinate
from shelterspot.domain.errors import (
    InvalidCoordinateError,
    MissingCredentialError,
    RouteProviderError,
)
from shelterspot.domain.routing import (
    build_request_payload,
    dedupe_path,
    fallback_route,
    format_route_distance,
    format_route_duration,
    is_within_service_region,
    parse_route_response,
)
from shelterspot.infrastructure.tmap_client import TmapPedestrianClient
from shelterspot.services.route_finder import RouteFinder, RouteSession

from tests.conftest import FakeDirectionsClient, tmap_response

ORIGIN = Coordinate(37.5666, 126.9784)
DEST = Coordinate(37.5700, 126.9795)


class TestParseResponse:
    def test_sums_totals_and_collects_path(self):
        parsed = parse_route_response(tmap_response())
        assert parsed is not None
        assert parsed.total_distance_m == 390
        assert parsed.total_duration_s == 290
        # duplicate start of the second line and the near-duplicate are dropped
        assert parsed.path == (
            Coordinate(37.5666, 126.9784),
            Coordinate(37.5680, 126.9790),
            Coordinate(37.5700, 126.9795),
        )

    def test_collects_turn_instructions(self):
        parsed = parse_route_response(tmap_response())
        assert [i.description for i in parsed.instructions] == ["출발", "우회전"]
        assert parsed.instructions[1].turn_type == 12

    @pytest.mark.parametrize(
        "data",
        [None, {}, {"features": []}, {"features": "nope"}, [1, 2, 3]],
    )
    def test_unusable_payloads(self, data):
        assert parse_route_response(data) is None

    def test_points_only_is_unusable(self):
        data = {
            "features": [
                {"geometry": {"type": "Point", "coordinates": [126.9, 37.5]}, "properties": {}}
            ]
        }
        assert parse_route_response(data) is None


class TestDedupe:
    def test_drops_only_when_both_axes_are_close(self):
        pts = [
            Coordinate(37.0, 127.0),
            Coordinate(37.000005, 127.000005),  # both within 1e-5 -> dropped
            Coordinate(37.000005, 127.0002),  # lng moved -> kept
        ]
        assert dedupe_path(pts) == [pts[0], pts[2]]

    def test_compares_with_last_retained_point(self):
        pts = [
            Coordinate(37.0, 127.0),
            Coordinate(37.000006, 127.0),
            Coordinate(37.000012, 127.0),  # 1.2e-5 from the first kept point
        ]
        assert dedupe_path(pts) == [pts[0], pts[2]]


class TestFallback:
    def test_shape(self):
        result = fallback_route(ORIGIN, DEST)
        assert result.path == (ORIGIN, DEST)
        assert result.is_fallback is True
        expected_m = distance_km(ORIGIN, DEST) * 1000
        assert result.total_distance_m == pytest.approx(expected_m, rel=0.01)

    def test_walking_pace(self):
        result = fallback_route(Coordinate(37.5666, 126.9784), Coordinate(37.5766, 126.9784))
        # 12 minutes per km
        assert result.total_duration_s == pytest.approx(result.total_distance_m * 0.72)

    def test_same_point_still_has_two_points(self):
        result = fallback_route(ORIGIN, ORIGIN)
        assert len(result.path) == 2
        assert result.total_distance_m == pytest.approx(0.0, abs=1e-6)


class TestFormatting:
    def test_distance_two_decimals(self):
        assert format_route_distance(1234.0) == "1.23km"

    def test_minutes_only(self):
        assert format_route_duration(290) == "5분"

    def test_half_minute_rounds_up(self):
        assert format_route_duration(150) == "3분"
        assert format_route_duration(90) == "2분"

    def test_hours_and_minutes(self):
        assert format_route_duration(3900) == "1시간 5분"

    def test_exactly_one_hour(self):
        assert format_route_duration(3600) == "1시간 0분"


class TestRequestPayload:
    def test_x_is_longitude(self):
        payload = build_request_payload(ORIGIN, DEST, "출발지", "종로구청")
        assert payload["startX"] == "126.9784"
        assert payload["startY"] == "37.5666"
        assert payload["endX"] == "126.9795"
        assert payload["endName"] == "종로구청"
        assert payload["reqCoordType"] == "WGS84GEO"

    def test_service_region(self):
        assert is_within_service_region(ORIGIN)
        assert not is_within_service_region(Coordinate(40.7128, -74.0060))


class TestRouteFinder:
    @pytest.mark.asyncio
    async def test_success(self, directions):
        result = await RouteFinder(directions).find_route(ORIGIN, DEST)
        assert result.is_fallback is False
        assert len(result.path) == 3
        assert result.total_distance_m == 390
        assert len(directions.calls) == 1

    @pytest.mark.asyncio
    async def test_provider_failure_falls_back(self):
        client = FakeDirectionsClient(error=RouteProviderError("boom", status_code=500))
        result = await RouteFinder(client).find_route(ORIGIN, DEST)
        assert result.is_fallback is True
        assert len(result.path) == 2
        assert result.total_distance_m == pytest.approx(
            distance_km(ORIGIN, DEST) * 1000, rel=0.01
        )

    @pytest.mark.asyncio
    async def test_empty_response_falls_back(self):
        client = FakeDirectionsClient(response={"features": []})
        result = await RouteFinder(client).find_route(ORIGIN, DEST)
        assert result.is_fallback is True

    @pytest.mark.asyncio
    async def test_invalid_latitude_makes_no_call(self, directions):
        with pytest.raises(InvalidCoordinateError):
            await RouteFinder(directions).find_route(Coordinate(999, 126.97), DEST)
        assert directions.calls == []

    @pytest.mark.asyncio
    async def test_invalid_destination_longitude(self, directions):
        with pytest.raises(InvalidCoordinateError) as exc_info:
            await RouteFinder(directions).find_route(ORIGIN, Coordinate(37.5, 181))
        assert exc_info.value.role == "destination"
        assert directions.calls == []

    @pytest.mark.asyncio
    async def test_coordinates_checked_before_credential(self):
        client = FakeDirectionsClient(has_credential=False)
        with pytest.raises(InvalidCoordinateError):
            await RouteFinder(client).find_route(Coordinate(-91, 0), DEST)

    @pytest.mark.asyncio
    async def test_missing_credential(self):
        client = FakeDirectionsClient(has_credential=False)
        with pytest.raises(MissingCredentialError):
            await RouteFinder(client).find_route(ORIGIN, DEST)
        assert client.calls == []

    @pytest.mark.asyncio
    async def test_far_away_coordinates_still_requested(self, directions):
        result = await RouteFinder(directions).find_route(
            Coordinate(40.7128, -74.0060), Coordinate(40.7138, -74.0050)
        )
        assert len(directions.calls) == 1
        assert result.is_fallback is False


class _GatedClient:
    """Holds each request until its gate is opened."""

    has_credential = True

    def __init__(self):
        self.gates: list[asyncio.Event] = []

    async def fetch_route(self, payload):
        gate = asyncio.Event()
        self.gates.append(gate)
        await gate.wait()
        return tmap_response()


class TestRouteSession:
    @pytest.mark.asyncio
    async def test_last_request_wins(self):
        client = _GatedClient()
        session = RouteSession(RouteFinder(client))

        first = asyncio.create_task(session.request(ORIGIN, DEST))
        await asyncio.sleep(0)
        second = asyncio.create_task(session.request(ORIGIN, Coordinate(37.57, 126.98)))
        await asyncio.sleep(0)

        client.gates[0].set()
        client.gates[1].set()
        assert await first is None
        assert (await second) is not None

    @pytest.mark.asyncio
    async def test_cancel_discards_in_flight(self):
        client = _GatedClient()
        session = RouteSession(RouteFinder(client))

        pending = asyncio.create_task(session.request(ORIGIN, DEST))
        await asyncio.sleep(0)
        session.cancel()
        client.gates[0].set()
        assert await pending is None


class TestTmapClient:
    @pytest.mark.asyncio
    async def test_posts_with_app_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["key"] = request.headers.get("appKey")
            return httpx.Response(200, json=tmap_response())

        client = TmapPedestrianClient(
            api_key="secret", base_url="https://tmap.test", transport=httpx.MockTransport(handler)
        )
        data = await client.fetch_route(build_request_payload(ORIGIN, DEST, "a", "b"))
        await client.aclose()

        assert seen["url"] == "https://tmap.test/tmap/routes/pedestrian?version=1"
        assert seen["key"] == "secret"
        assert data["type"] == "FeatureCollection"

    @pytest.mark.asyncio
    async def test_non_success_status_raises_provider_error(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(429, json={}))
        client = TmapPedestrianClient(api_key="k", base_url="https://tmap.test", transport=transport)
        with pytest.raises(RouteProviderError) as exc_info:
            await client.fetch_route({})
        await client.aclose()
        assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_network_error_raises_provider_error(self):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client = TmapPedestrianClient(
            api_key="k", base_url="https://tmap.test", transport=httpx.MockTransport(handler)
        )
        with pytest.raises(RouteProviderError):
            await client.fetch_route({})
        await client.aclose()

    @pytest.mark.asyncio
    async def test_missing_key(self):
        client = TmapPedestrianClient(api_key="", base_url="https://tmap.test")
        assert client.has_credential is False
        with pytest.raises(MissingCredentialError):
            await client.fetch_route({})
        await client.aclose()

    @pytest.mark.asyncio
    async def test_finder_with_failing_http_falls_back(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(503)

        client = TmapPedestrianClient(
            api_key="k", base_url="https://tmap.test", transport=httpx.MockTransport(handler)
        )
        result = await RouteFinder(client).find_route(ORIGIN, DEST)
        await client.aclose()
        assert result.is_fallback is True
        assert len(calls) == 1
