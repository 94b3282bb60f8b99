"""Matrix sampler — one best-case journey matrix per travel mode.

Transit durations swing with the timetable, so transit is queried at several
departure slots across the week and each cell keeps its fastest success.
Every other mode is queried once at the reference slot.
"""

import logging
from datetime import tzinfo
from typing import Sequence

from wheretolive.config import Settings
from wheretolive.services.departure_times import DepartureSlot, next_occurrence
from wheretolive.services.errors import ProviderUnavailableError
from wheretolive.services.fanout import gather_or_cancel
from wheretolive.services.journey_types import (
    JourneyMatrix,
    JourneyProvider,
    TravelMode,
)

logger = logging.getLogger(__name__)

TIME_SAMPLED_MODES = frozenset({TravelMode.TRANSIT})


def merge_best(base: JourneyMatrix, sample: JourneyMatrix) -> JourneyMatrix:
    """New matrix taking the sample's cell wherever it is a faster success than the base."""
    return JourneyMatrix.from_rows(
        base.mode,
        [
            [
                sampled if sampled.is_faster_than(current) else current
                for current, sampled in zip(base_row, sample_row)
            ]
            for base_row, sample_row in zip(base.rows, sample.rows)
        ],
    )


class MatrixSampler:
    """Queries a JourneyProvider for one mode and merges time samples."""

    def __init__(
        self,
        provider: JourneyProvider,
        reference_slot: DepartureSlot,
        sample_slots: Sequence[DepartureSlot],
    ):
        self.provider = provider
        self.reference_slot = reference_slot
        self.sample_slots = tuple(sample_slots)

    @classmethod
    def from_settings(cls, provider: JourneyProvider, settings: Settings) -> "MatrixSampler":
        return cls(
            provider,
            reference_slot=settings.reference_slot,
            sample_slots=settings.transit_slots,
        )

    def slots_for(self, mode: TravelMode) -> list[DepartureSlot]:
        """Reference slot first, then the extra samples for time-sensitive modes."""
        if mode in TIME_SAMPLED_MODES:
            return [self.reference_slot, *self.sample_slots]
        return [self.reference_slot]

    async def sample(
        self,
        candidates: Sequence[str],
        destinations: Sequence[str],
        mode: TravelMode,
        tz: tzinfo,
    ) -> JourneyMatrix:
        """Best-case matrix for `mode`. Raises ProviderError if any query fails outright."""
        slots = self.slots_for(mode)
        matrices = await gather_or_cancel(*(
            self.provider.matrix(candidates, destinations, mode, next_occurrence(slot, tz))
            for slot in slots
        ))

        expected = (len(candidates), len(destinations))
        for slot, matrix in zip(slots, matrices):
            if matrix.shape != expected:
                raise ProviderUnavailableError(
                    f"{mode.value} matrix at {slot} has shape {matrix.shape}, expected {expected}"
                )

        best = matrices[0]
        for sampled in matrices[1:]:
            best = merge_best(best, sampled)
        best = best.with_same_place_zeroed(candidates, destinations)

        failed = sum(1 for row in best.rows for cell in row if not cell.ok)
        logger.debug(
            f"Sampled {mode.value} over {len(slots)} slot(s): "
            f"{expected[0]}x{expected[1]} cells, {failed} failed"
        )
        return best
