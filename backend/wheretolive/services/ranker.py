"""Ranker — orders scored candidates by ascending monthly cost."""

from typing import Iterable

from wheretolive.services.journey_types import ScoredCandidate


def rank(candidates: Iterable[ScoredCandidate]) -> list[ScoredCandidate]:
    """
    Scoreable candidates first, cheapest to most expensive, then the
    unscoreable ones. Both groups keep input order for ties.
    """
    candidates = list(candidates)
    scored = [c for c in candidates if c.scored]
    unscored = [c for c in candidates if not c.scored]
    scored.sort(key=lambda c: c.monthly_cost)
    return scored + unscored
