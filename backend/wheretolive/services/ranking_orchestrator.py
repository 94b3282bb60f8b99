"""Ranking orchestrator — runs one place-to-live ranking end to end."""

import logging
import time
from dataclasses import dataclass
from typing import Sequence
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from wheretolive.services.aggregator import aggregate
from wheretolive.services.cost_calculator import monthly_cost
from wheretolive.services.errors import ProviderUnavailableError
from wheretolive.services.fanout import gather_or_cancel
from wheretolive.services.journey_types import (
    Destination,
    JourneyProvider,
    ScoredCandidate,
    TravelMode,
)
from wheretolive.services.matrix_sampler import MatrixSampler
from wheretolive.services.ranker import rank

logger = logging.getLogger(__name__)

DEFAULT_MODES = (TravelMode.DRIVING,)


@dataclass
class RankingRun:
    rankings: list[ScoredCandidate]
    timezone: str
    travel_modes: list[TravelMode]
    search_time_ms: int


def normalize_modes(modes: Sequence[TravelMode] | None) -> list[TravelMode]:
    """Requested modes without duplicates, first occurrence kept; driving if none."""
    if not modes:
        return list(DEFAULT_MODES)
    return list(dict.fromkeys(modes))


class RankingOrchestrator:
    """Coordinates timezone lookup, per-mode sampling, aggregation, scoring and ranking."""

    def __init__(self, provider: JourneyProvider, sampler: MatrixSampler):
        self.provider = provider
        self.sampler = sampler

    async def rank_places(
        self,
        candidates: Sequence[str],
        destinations: Sequence[Destination],
        lat: float,
        lng: float,
        modes: Sequence[TravelMode] | None = None,
    ) -> RankingRun:
        """
        Rank candidates by monthly travel time to the destinations.

        Raises ProviderError if the timezone lookup or any mode's sampling
        fails; in-flight queries for other modes are cancelled.
        """
        start_time = time.monotonic()
        candidates = list(candidates)
        destinations = list(destinations)
        modes = normalize_modes(modes)
        destination_ids = [d.id for d in destinations]

        tz_name = await self.provider.timezone_for(lat, lng)
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ProviderUnavailableError(f"Unknown timezone {tz_name!r} from provider") from e

        # All modes (and transit time samples) run concurrently; merge waits for every one
        matrices = await gather_or_cancel(*(
            self.sampler.sample(candidates, destination_ids, mode, tz)
            for mode in modes
        ))
        matrices_by_mode = dict(zip(modes, matrices))

        best_journeys = aggregate(matrices_by_mode, candidates, destinations)
        scored = [
            ScoredCandidate(
                candidate_id=candidate_id,
                position=position,
                monthly_cost=monthly_cost(best_journeys[candidate_id], destinations),
                best_journeys=best_journeys[candidate_id],
            )
            for position, candidate_id in enumerate(candidates)
        ]
        ranked = rank(scored)

        elapsed_ms = int((time.monotonic() - start_time) * 1000)
        unscored = sum(1 for c in ranked if not c.scored)
        logger.info(
            f"Ranked {len(candidates)} places against {len(destinations)} destinations "
            f"via {','.join(m.value for m in modes)} in {tz_name}: "
            f"{unscored} unscoreable, {elapsed_ms}ms"
        )

        return RankingRun(
            rankings=ranked,
            timezone=tz_name,
            travel_modes=modes,
            search_time_ms=elapsed_ms,
        )
