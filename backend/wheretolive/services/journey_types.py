"""Journey data model shared by sampling, aggregation, scoring and ranking."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Protocol, Sequence


class TravelMode(str, Enum):
    DRIVING = "driving"
    CYCLING = "cycling"
    TRANSIT = "transit"
    WALKING = "walking"


@dataclass(frozen=True)
class JourneyOutcome:
    """Result of one origin/destination query: a duration, or a failure."""
    duration_seconds: float | None
    status: str = "OK"

    @classmethod
    def success(cls, duration_seconds: float) -> "JourneyOutcome":
        if duration_seconds < 0:
            raise ValueError(f"Journey duration cannot be negative: {duration_seconds}")
        return cls(duration_seconds=float(duration_seconds))

    @classmethod
    def failure(cls, status: str = "FAILED") -> "JourneyOutcome":
        return cls(duration_seconds=None, status=status)

    @property
    def ok(self) -> bool:
        return self.duration_seconds is not None

    def is_faster_than(self, other: "JourneyOutcome") -> bool:
        """True when this is a success that beats `other` (a failure is beaten by any success)."""
        if not self.ok:
            return False
        if not other.ok:
            return True
        return self.duration_seconds < other.duration_seconds


SAME_PLACE = JourneyOutcome.success(0)


@dataclass(frozen=True)
class JourneyMatrix:
    """Candidates (rows) × destinations (columns) grid of outcomes for one travel mode."""
    mode: TravelMode
    rows: tuple[tuple[JourneyOutcome, ...], ...]

    @classmethod
    def from_rows(cls, mode: TravelMode, rows: Sequence[Sequence[JourneyOutcome]]) -> "JourneyMatrix":
        return cls(mode=mode, rows=tuple(tuple(row) for row in rows))

    @property
    def shape(self) -> tuple[int, int]:
        return len(self.rows), len(self.rows[0]) if self.rows else 0

    def cell(self, row: int, col: int) -> JourneyOutcome:
        return self.rows[row][col]

    def with_same_place_zeroed(
        self, origins: Sequence[str], destinations: Sequence[str]
    ) -> "JourneyMatrix":
        """Return a copy where every origin == destination cell is Ok(0)."""
        return JourneyMatrix.from_rows(
            self.mode,
            [
                [
                    SAME_PLACE if origin == destination else outcome
                    for destination, outcome in zip(destinations, row)
                ]
                for origin, row in zip(origins, self.rows)
            ],
        )


@dataclass(frozen=True)
class Destination:
    """An important place and how often it is visited per month."""
    id: str
    visits_per_month: float

    def __post_init__(self):
        if self.visits_per_month < 0:
            raise ValueError(f"visits_per_month must be >= 0 for {self.id}")


@dataclass(frozen=True)
class BestJourney:
    destination_id: str
    outcome: JourneyOutcome
    mode: TravelMode


@dataclass(frozen=True)
class ScoredCandidate:
    candidate_id: str
    position: int
    monthly_cost: float | None
    best_journeys: dict[str, BestJourney] = field(default_factory=dict)

    @property
    def scored(self) -> bool:
        return self.monthly_cost is not None


class JourneyProvider(Protocol):
    """External journey-time source.

    `matrix` must preserve input ordering: row i is origins[i], column j is
    destinations[j]. Whole-request failures raise ProviderError.
    """

    async def matrix(
        self,
        origins: Sequence[str],
        destinations: Sequence[str],
        mode: TravelMode,
        departure_time: datetime | None = None,
    ) -> JourneyMatrix:
        ...

    async def timezone_for(self, lat: float, lng: float) -> str:
        ...
