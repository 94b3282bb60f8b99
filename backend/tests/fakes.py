"""In-memory journey provider and matrix helpers for tests."""
import asyncio
from datetime import datetime

from wheretolive.services.journey_types import JourneyMatrix, JourneyOutcome, TravelMode


def outcome(value):
    """Number -> Ok(seconds), None -> Failed."""
    if value is None:
        return JourneyOutcome.failure("ZERO_RESULTS")
    return JourneyOutcome.success(value)


def grid(mode: TravelMode, rows) -> JourneyMatrix:
    return JourneyMatrix.from_rows(mode, [[outcome(v) for v in row] for row in rows])


class FakeProvider:
    """In-memory journey provider.

    `responder(mode, departure_time)` returns a list of rows (numbers or None)
    or raises. `delay` is seconds to wait before answering, or a callable of
    (mode, departure_time). Every call is recorded in `calls`.
    """

    def __init__(self, responder, timezone: str = "Europe/London", delay=0.0):
        self.responder = responder
        self.timezone = timezone
        self.delay = delay
        self.calls: list[tuple[tuple[str, ...], tuple[str, ...], TravelMode, datetime | None]] = []
        self.cancelled = 0

    async def matrix(self, origins, destinations, mode, departure_time=None):
        self.calls.append((tuple(origins), tuple(destinations), mode, departure_time))
        delay = self.delay(mode, departure_time) if callable(self.delay) else self.delay
        try:
            if delay:
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled += 1
            raise
        return grid(mode, self.responder(mode, departure_time))

    async def timezone_for(self, lat, lng):
        return self.timezone
