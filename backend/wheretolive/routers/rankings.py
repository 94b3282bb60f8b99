"""Rankings router — rank candidate places to live by monthly travel time."""

import asyncio
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Depends, HTTPException

from wheretolive.config import settings
from wheretolive.schemas.ranking import (
    JourneySummary,
    PlaceRankSummary,
    RankPlacesToLiveRequest,
    RankPlacesToLiveResponse,
)
from wheretolive.services.errors import ProviderRequestError, ProviderUnavailableError
from wheretolive.services.google_maps_client import GoogleMapsClient
from wheretolive.services.journey_types import Destination, JourneyProvider, ScoredCandidate
from wheretolive.services.matrix_sampler import MatrixSampler
from wheretolive.services.ranking_orchestrator import RankingOrchestrator, RankingRun

logger = logging.getLogger(__name__)

router = APIRouter()


async def get_journey_provider() -> AsyncIterator[JourneyProvider]:
    """A fresh provider handle per request, closed when the request ends."""
    async with GoogleMapsClient.from_settings(settings) as provider:
        yield provider


def _validate(req: RankPlacesToLiveRequest) -> None:
    if not req.places_to_live:
        raise HTTPException(status_code=400, detail="places_to_live must not be empty")
    if not req.important_places:
        raise HTTPException(status_code=400, detail="important_places must not be empty")
    if req.lat_lng is None:
        raise HTTPException(status_code=400, detail="lat_lng is required")
    if len(set(req.places_to_live)) != len(req.places_to_live):
        raise HTTPException(status_code=400, detail="places_to_live contains duplicates")
    ids = [p.id for p in req.important_places]
    if len(set(ids)) != len(ids):
        raise HTTPException(status_code=400, detail="important_places contains duplicate ids")


def _summarize(candidate: ScoredCandidate, destinations: list[Destination]) -> PlaceRankSummary:
    breakdown = []
    for destination in destinations:
        journey = candidate.best_journeys[destination.id]
        duration = journey.outcome.duration_seconds
        breakdown.append(JourneySummary(
            destination_id=destination.id,
            success=journey.outcome.ok,
            travel_mode=journey.mode,
            travel_time_seconds=duration,
            visits_per_month=destination.visits_per_month,
            monthly_travel_time_seconds=(
                duration * destination.visits_per_month if duration is not None else None
            ),
        ))
    return PlaceRankSummary(
        candidate_id=candidate.candidate_id,
        scored=candidate.scored,
        total_monthly_cost=candidate.monthly_cost,
        per_destination_breakdown=breakdown,
    )


@router.post("/rank-places-to-live", response_model=RankPlacesToLiveResponse)
async def rank_places_to_live(
    req: RankPlacesToLiveRequest,
    provider: JourneyProvider = Depends(get_journey_provider),
):
    """Rank places to live from least to most monthly travel time."""
    _validate(req)
    destinations = [Destination(p.id, p.visits_per_month) for p in req.important_places]
    orchestrator = RankingOrchestrator(provider, MatrixSampler.from_settings(provider, settings))

    try:
        run: RankingRun = await asyncio.wait_for(
            orchestrator.rank_places(
                candidates=req.places_to_live,
                destinations=destinations,
                lat=req.lat_lng.lat,
                lng=req.lat_lng.lng,
                modes=req.travel_modes,
            ),
            timeout=settings.rank_timeout_seconds,
        )
    except asyncio.TimeoutError:
        logger.error(f"Ranking timed out for {len(req.places_to_live)} places")
        raise HTTPException(status_code=504, detail="Ranking timed out. Please try again.")
    except ProviderRequestError as e:
        logger.error(f"Journey provider rejected ranking request: {e}")
        raise HTTPException(status_code=400, detail=f"Journey lookup rejected: {e}")
    except ProviderUnavailableError as e:
        logger.error(f"Journey provider unavailable: {e}")
        raise HTTPException(status_code=503, detail="Journey time service unavailable. Please try again.")

    return RankPlacesToLiveResponse(
        timezone=run.timezone,
        travel_modes=run.travel_modes,
        search_time_ms=run.search_time_ms,
        rankings=[_summarize(c, destinations) for c in run.rankings],
    )
