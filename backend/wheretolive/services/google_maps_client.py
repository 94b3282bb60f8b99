"""Google Maps client — Distance Matrix and Time Zone adapter with mock fallback."""

import asyncio
import hashlib
import logging
import time
from datetime import datetime
from typing import Any, Sequence

import httpx

from wheretolive.config import Settings
from wheretolive.services.errors import ProviderRequestError, ProviderUnavailableError
from wheretolive.services.fanout import gather_or_cancel
from wheretolive.services.journey_types import JourneyMatrix, JourneyOutcome, TravelMode

logger = logging.getLogger(__name__)

# Map our travel modes to Distance Matrix `mode` values
GOOGLE_MODES = {
    TravelMode.DRIVING: "driving",
    TravelMode.CYCLING: "bicycling",
    TravelMode.TRANSIT: "transit",
    TravelMode.WALKING: "walking",
}

# Top-level statuses meaning the request itself was refused
REQUEST_REJECTED_STATUSES = {
    "INVALID_REQUEST",
    "MAX_ELEMENTS_EXCEEDED",
    "MAX_DIMENSIONS_EXCEEDED",
    "REQUEST_DENIED",
    "ZERO_RESULTS",
    "NOT_FOUND",
}

# Average door-to-door speeds (km/h) for mock journeys
MOCK_SPEEDS = {
    TravelMode.DRIVING: 45.0,
    TravelMode.CYCLING: 16.0,
    TravelMode.TRANSIT: 24.0,
    TravelMode.WALKING: 5.0,
}

MAX_ATTEMPTS = 3


def _stable_int(*parts: str) -> int:
    return int(hashlib.md5("|".join(parts).encode()).hexdigest()[:8], 16)


def _place_ids(ids: Sequence[str]) -> str:
    return "|".join(f"place_id:{place_id}" for place_id in ids)


class GoogleMapsClient:
    """Journey provider backed by the Google Maps web services.

    One instance belongs to one ranking run; use it as an async context
    manager so the underlying HTTP connection pool is closed afterwards.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://maps.googleapis.com/maps/api",
        timeout: float = 30.0,
        max_concurrency: int = 10,
        max_elements: int = 100,
        max_dimension: int = 25,
        mock_timezone: str = "Europe/London",
        retry_backoff: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._semaphore = asyncio.Semaphore(max_concurrency)
        self._max_elements = max_elements
        self._max_dimension = max_dimension
        self._mock_timezone = mock_timezone
        self._retry_backoff = retry_backoff
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._use_mock = not api_key
        if self._use_mock:
            logger.info("Google Maps API key not configured, using mock journey data")

    @classmethod
    def from_settings(cls, settings: Settings, transport: httpx.AsyncBaseTransport | None = None) -> "GoogleMapsClient":
        return cls(
            api_key=settings.google_maps_api_key,
            base_url=settings.google_maps_base_url,
            timeout=settings.google_maps_timeout_seconds,
            max_concurrency=settings.google_maps_max_concurrency,
            max_elements=settings.google_maps_max_elements,
            max_dimension=settings.google_maps_max_dimension,
            mock_timezone=settings.mock_timezone,
            transport=transport,
        )

    async def __aenter__(self) -> "GoogleMapsClient":
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
        return False

    async def aclose(self):
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            )
        return self._client

    async def _get_json(self, path: str, params: dict[str, Any]) -> dict:
        """GET a Maps web service endpoint, retrying rate limits and transport errors."""
        client = await self._get_client()
        params = {**params, "key": self._api_key}

        async with self._semaphore:
            for attempt in range(MAX_ATTEMPTS):
                last_attempt = attempt == MAX_ATTEMPTS - 1
                try:
                    resp = await client.get(path, params=params)
                    if resp.status_code == 429:
                        if last_attempt:
                            raise ProviderUnavailableError(f"Google Maps rate limit exceeded on {path}")
                        await asyncio.sleep(self._retry_backoff * 2 ** attempt)
                        continue
                    resp.raise_for_status()
                    data = resp.json()
                except httpx.HTTPStatusError as e:
                    logger.error(f"Google Maps {path} error: {e.response.status_code}")
                    if e.response.status_code >= 500:
                        raise ProviderUnavailableError(
                            f"Google Maps returned HTTP {e.response.status_code}"
                        ) from e
                    raise ProviderRequestError(
                        f"Google Maps rejected request with HTTP {e.response.status_code}"
                    ) from e
                except httpx.RequestError as e:
                    logger.error(f"Google Maps request error on {path}: {e}")
                    if last_attempt:
                        raise ProviderUnavailableError(f"Google Maps unreachable: {e}") from e
                    await asyncio.sleep(self._retry_backoff * 2 ** attempt)
                    continue
                except ValueError as e:
                    raise ProviderUnavailableError(f"Google Maps returned invalid JSON on {path}") from e

                if not isinstance(data, dict):
                    raise ProviderUnavailableError(f"Google Maps returned unexpected payload on {path}")
                self._check_status(path, data)
                return data

        raise ProviderUnavailableError(f"Google Maps request to {path} failed")

    @staticmethod
    def _check_status(path: str, data: dict):
        status = data.get("status", "UNKNOWN_ERROR")
        if status == "OK":
            return
        message = data.get("error_message") or data.get("errorMessage") or status
        logger.error(f"Google Maps {path} status {status}: {message}")
        if status in REQUEST_REJECTED_STATUSES:
            raise ProviderRequestError(f"Google Maps {status}: {message}")
        raise ProviderUnavailableError(f"Google Maps {status}: {message}")

    # --- Journey provider ---

    async def matrix(
        self,
        origins: Sequence[str],
        destinations: Sequence[str],
        mode: TravelMode,
        departure_time: datetime | None = None,
    ) -> JourneyMatrix:
        """Journey outcomes for every origin/destination pair, in input order."""
        if not origins or not destinations:
            return JourneyMatrix.from_rows(mode, [[] for _ in origins])

        if self._use_mock:
            return self._generate_mock_matrix(origins, destinations, mode, departure_time)

        if len(destinations) > self._max_dimension:
            raise ProviderRequestError(
                f"{len(destinations)} destinations exceeds the limit of {self._max_dimension} per request"
            )

        # Split origins so each request stays within the element and dimension limits
        chunk_size = max(1, min(self._max_dimension, self._max_elements // len(destinations)))
        chunks = [origins[i:i + chunk_size] for i in range(0, len(origins), chunk_size)]
        chunk_rows = await gather_or_cancel(*(
            self._matrix_chunk(chunk, destinations, mode, departure_time)
            for chunk in chunks
        ))

        rows = [row for chunk in chunk_rows for row in chunk]
        return JourneyMatrix.from_rows(mode, rows)

    async def _matrix_chunk(
        self,
        origins: Sequence[str],
        destinations: Sequence[str],
        mode: TravelMode,
        departure_time: datetime | None,
    ) -> list[list[JourneyOutcome]]:
        params: dict[str, Any] = {
            "origins": _place_ids(origins),
            "destinations": _place_ids(destinations),
            "mode": GOOGLE_MODES[mode],
        }
        if departure_time is not None:
            params["departure_time"] = int(departure_time.timestamp())

        data = await self._get_json("/distancematrix/json", params)

        rows = data.get("rows") or []
        if len(rows) != len(origins):
            raise ProviderUnavailableError(
                f"Distance matrix returned {len(rows)} rows for {len(origins)} origins"
            )

        parsed = []
        for row in rows:
            elements = row.get("elements") or []
            if len(elements) != len(destinations):
                raise ProviderUnavailableError(
                    f"Distance matrix returned {len(elements)} elements for {len(destinations)} destinations"
                )
            parsed.append([self._parse_element(el) for el in elements])
        return parsed

    @staticmethod
    def _parse_element(element: dict) -> JourneyOutcome:
        status = element.get("status", "UNKNOWN_ERROR")
        duration = (element.get("duration") or {}).get("value")
        if status != "OK" or duration is None:
            return JourneyOutcome.failure(status)
        try:
            return JourneyOutcome.success(float(duration))
        except (TypeError, ValueError):
            return JourneyOutcome.failure("INVALID_DURATION")

    async def timezone_for(self, lat: float, lng: float) -> str:
        """IANA timezone id for a coordinate, e.g. 'Europe/London'."""
        if self._use_mock:
            return self._mock_timezone

        data = await self._get_json(
            "/timezone/json",
            {"location": f"{lat},{lng}", "timestamp": int(time.time())},
        )
        tz_id = data.get("timeZoneId")
        if not tz_id:
            raise ProviderUnavailableError("Time zone response missing timeZoneId")
        return tz_id

    # --- Mock data ---

    def _generate_mock_matrix(
        self,
        origins: Sequence[str],
        destinations: Sequence[str],
        mode: TravelMode,
        departure_time: datetime | None,
    ) -> JourneyMatrix:
        """Deterministic journey times so demos return stable rankings."""
        hour = str(departure_time.hour) if departure_time else "none"
        rows = []
        for origin in origins:
            row = []
            for destination in destinations:
                pair_seed = _stable_int(*sorted((origin, destination)))
                if pair_seed % 23 == 0:
                    row.append(JourneyOutcome.failure("ZERO_RESULTS"))
                    continue
                distance_km = 1.5 + (pair_seed % 600) / 10.0
                if mode == TravelMode.WALKING and distance_km > 30:
                    row.append(JourneyOutcome.failure("ZERO_RESULTS"))
                    continue
                seconds = distance_km / MOCK_SPEEDS[mode] * 3600
                if mode == TravelMode.TRANSIT:
                    # Timetable-dependent waiting, 0-40% on top of travel time
                    seconds *= 1 + (_stable_int(origin, destination, hour) % 41) / 100.0
                row.append(JourneyOutcome.success(round(seconds)))
            rows.append(row)
        return JourneyMatrix.from_rows(mode, rows)
