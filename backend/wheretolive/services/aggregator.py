"""Cross-mode aggregation — fastest journey per candidate/destination across modes."""

from typing import Mapping, Sequence

from wheretolive.services.journey_types import (
    SAME_PLACE,
    BestJourney,
    Destination,
    JourneyMatrix,
    TravelMode,
)


def aggregate_candidate(
    matrices_by_mode: Mapping[TravelMode, JourneyMatrix],
    candidate_id: str,
    position: int,
    destinations: Sequence[Destination],
) -> dict[str, BestJourney]:
    """Best journey to each destination for the candidate at row `position`.

    Modes are visited in mapping order; on equal durations the first mode seen wins.
    """
    best: dict[str, BestJourney] = {}
    for mode, matrix in matrices_by_mode.items():
        row = matrix.rows[position]
        for destination, outcome in zip(destinations, row):
            if destination.id == candidate_id:
                outcome = SAME_PLACE
            current = best.get(destination.id)
            if current is None or not current.outcome.ok:
                # Adopted even when failed; a later success replaces it
                best[destination.id] = BestJourney(destination.id, outcome, mode)
            elif outcome.is_faster_than(current.outcome):
                best[destination.id] = BestJourney(destination.id, outcome, mode)
    return best


def aggregate(
    matrices_by_mode: Mapping[TravelMode, JourneyMatrix],
    candidates: Sequence[str],
    destinations: Sequence[Destination],
) -> dict[str, dict[str, BestJourney]]:
    """candidate id -> destination id -> BestJourney, for every pair."""
    return {
        candidate_id: aggregate_candidate(matrices_by_mode, candidate_id, position, destinations)
        for position, candidate_id in enumerate(candidates)
    }
