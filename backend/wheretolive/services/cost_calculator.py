"""Monthly cost — visit-weighted travel time from one candidate to every destination."""

from typing import Mapping, Sequence

from wheretolive.services.journey_types import BestJourney, Destination


def monthly_cost(
    best_journeys: Mapping[str, BestJourney],
    destinations: Sequence[Destination],
) -> float | None:
    """
    Sum of duration × visits_per_month over all destinations, in seconds.

    Returns None (not scoreable) when any destination is missing or its best
    journey failed: one unreachable destination invalidates the candidate.
    """
    total = 0.0
    for destination in destinations:
        journey = best_journeys.get(destination.id)
        if journey is None or not journey.outcome.ok:
            return None
        total += journey.outcome.duration_seconds * destination.visits_per_month
    return total
