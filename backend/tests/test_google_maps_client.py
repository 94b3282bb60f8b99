"""Tests for the Google Maps journey provider."""
from datetime import datetime, timezone

import httpx
import pytest

from wheretolive.config import Settings
from wheretolive.services.errors import ProviderRequestError, ProviderUnavailableError
from wheretolive.services.google_maps_client import GoogleMapsClient
from wheretolive.services.journey_types import TravelMode


def element(seconds=None, status="OK"):
    if seconds is None:
        return {"status": status}
    return {"status": "OK", "duration": {"value": seconds, "text": f"{seconds // 60} mins"}}


def matrix_payload(rows, status="OK"):
    return {"status": status, "rows": [{"elements": row} for row in rows]}


def place_ids(param: str) -> list[str]:
    return [p.removeprefix("place_id:") for p in param.split("|")]


def make_client(handler, **kwargs) -> GoogleMapsClient:
    return GoogleMapsClient(
        api_key="test-key",
        retry_backoff=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_matrix_request_and_parsing():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=matrix_payload([
            [element(600), element(status="ZERO_RESULTS")],
            [element(300), element(3000)],
        ]))

    departure = datetime(2026, 10, 26, 12, 0, tzinfo=timezone.utc)
    async with make_client(handler) as client:
        matrix = await client.matrix(["A", "B"], ["X", "Y"], TravelMode.CYCLING, departure)

    params = seen[0].url.params
    assert seen[0].url.path.endswith("/distancematrix/json")
    assert params["origins"] == "place_id:A|place_id:B"
    assert params["destinations"] == "place_id:X|place_id:Y"
    assert params["mode"] == "bicycling"
    assert params["departure_time"] == str(int(departure.timestamp()))
    assert params["key"] == "test-key"

    assert matrix.mode == TravelMode.CYCLING
    assert matrix.cell(0, 0).duration_seconds == 600
    assert not matrix.cell(0, 1).ok
    assert matrix.cell(0, 1).status == "ZERO_RESULTS"
    assert matrix.cell(1, 1).duration_seconds == 3000


@pytest.mark.asyncio
async def test_matrix_splits_origins_to_respect_element_limit():
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        origins = place_ids(request.url.params["origins"])
        destinations = place_ids(request.url.params["destinations"])
        requests.append(origins)
        # Encode origin index into the duration so ordering can be checked
        rows = [[element(int(o[1:]) * 100 + j) for j in range(len(destinations))] for o in origins]
        return httpx.Response(200, json=matrix_payload(rows))

    origins = [f"O{i}" for i in range(5)]
    async with make_client(handler, max_elements=4) as client:
        matrix = await client.matrix(origins, ["X", "Y"], TravelMode.DRIVING)

    assert sorted(len(chunk) for chunk in requests) == [1, 2, 2]
    assert matrix.shape == (5, 2)
    assert [row[1].duration_seconds for row in matrix.rows] == [1, 101, 201, 301, 401]


@pytest.mark.asyncio
async def test_too_many_destinations_is_request_error():
    async with make_client(lambda r: httpx.Response(500), max_dimension=2) as client:
        with pytest.raises(ProviderRequestError):
            await client.matrix(["A"], ["X", "Y", "Z"], TravelMode.DRIVING)


@pytest.mark.asyncio
@pytest.mark.parametrize("status, error", [
    ("REQUEST_DENIED", ProviderRequestError),
    ("INVALID_REQUEST", ProviderRequestError),
    ("OVER_QUERY_LIMIT", ProviderUnavailableError),
    ("UNKNOWN_ERROR", ProviderUnavailableError),
])
async def test_top_level_status_maps_to_provider_error(status, error):
    def handler(request):
        return httpx.Response(200, json={"status": status, "error_message": "nope", "rows": []})

    async with make_client(handler) as client:
        with pytest.raises(error):
            await client.matrix(["A"], ["X"], TravelMode.DRIVING)


@pytest.mark.asyncio
async def test_rate_limit_is_retried():
    attempts = []

    def handler(request):
        attempts.append(request)
        if len(attempts) < 3:
            return httpx.Response(429)
        return httpx.Response(200, json=matrix_payload([[element(120)]]))

    async with make_client(handler) as client:
        matrix = await client.matrix(["A"], ["X"], TravelMode.WALKING)

    assert len(attempts) == 3
    assert matrix.cell(0, 0).duration_seconds == 120


@pytest.mark.asyncio
async def test_persistent_rate_limit_is_unavailable():
    async with make_client(lambda r: httpx.Response(429)) as client:
        with pytest.raises(ProviderUnavailableError):
            await client.matrix(["A"], ["X"], TravelMode.WALKING)


@pytest.mark.asyncio
async def test_transport_error_is_unavailable_after_retries():
    attempts = []

    def handler(request):
        attempts.append(request)
        raise httpx.ConnectError("connection refused", request=request)

    async with make_client(handler) as client:
        with pytest.raises(ProviderUnavailableError):
            await client.matrix(["A"], ["X"], TravelMode.DRIVING)
    assert len(attempts) == 3


@pytest.mark.asyncio
@pytest.mark.parametrize("code, error", [(503, ProviderUnavailableError), (403, ProviderRequestError)])
async def test_http_errors(code, error):
    async with make_client(lambda r: httpx.Response(code)) as client:
        with pytest.raises(error):
            await client.matrix(["A"], ["X"], TravelMode.DRIVING)


@pytest.mark.asyncio
async def test_row_count_mismatch_is_unavailable():
    def handler(request):
        return httpx.Response(200, json=matrix_payload([[element(100)]]))

    async with make_client(handler) as client:
        with pytest.raises(ProviderUnavailableError):
            await client.matrix(["A", "B"], ["X"], TravelMode.DRIVING)


@pytest.mark.asyncio
async def test_timezone_lookup():
    def handler(request):
        assert request.url.path.endswith("/timezone/json")
        assert request.url.params["location"] == "51.5,-0.12"
        return httpx.Response(200, json={"status": "OK", "timeZoneId": "Europe/London"})

    async with make_client(handler) as client:
        assert await client.timezone_for(51.5, -0.12) == "Europe/London"


@pytest.mark.asyncio
async def test_timezone_zero_results_is_request_error():
    def handler(request):
        return httpx.Response(200, json={"status": "ZERO_RESULTS"})

    async with make_client(handler) as client:
        with pytest.raises(ProviderRequestError):
            await client.timezone_for(0.0, -160.0)


@pytest.mark.asyncio
async def test_mock_mode_is_deterministic_and_offline():
    def handler(request):
        raise AssertionError("mock mode must not call the network")

    client = GoogleMapsClient(api_key="", mock_timezone="Europe/Paris", transport=httpx.MockTransport(handler))
    async with client:
        first = await client.matrix(["A", "B"], ["X", "Y", "Z"], TravelMode.DRIVING)
        second = await client.matrix(["A", "B"], ["X", "Y", "Z"], TravelMode.DRIVING)
        cycling = await client.matrix(["A", "B"], ["X", "Y", "Z"], TravelMode.CYCLING)
        assert await client.timezone_for(48.85, 2.35) == "Europe/Paris"

    assert first == second
    assert first.shape == (2, 3)
    for fast, slow in zip(first.rows, cycling.rows):
        for d, c in zip(fast, slow):
            assert d.ok == c.ok
            if d.ok:
                assert d.duration_seconds < c.duration_seconds


@pytest.mark.asyncio
async def test_from_settings_reads_provider_settings():
    settings = Settings(google_maps_api_key="", mock_timezone="Asia/Tokyo", google_maps_max_dimension=3)
    async with GoogleMapsClient.from_settings(settings) as client:
        assert await client.timezone_for(35.68, 139.69) == "Asia/Tokyo"
        matrix = await client.matrix(["A"], ["X", "Y"], TravelMode.TRANSIT)
    assert matrix.shape == (1, 2)
