"""Rank and percentile queries over claimed scores.

Ordering is score descending, then time ascending. There is no third key:
two players with identical score and time get the same rank value.
Anonymous rows never count.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

from shared.dal.errors import ScoreboardError

if TYPE_CHECKING:
    from datetime import date

    from shared.dal.score_repository import ScoreRepository

logger = structlog.get_logger()

# Reported when nobody has a claimed score yet, or the store cannot answer.
NEUTRAL_PERCENTILE = 50


def percentile_from_counts(below: int, total: int) -> int:
    """Return round(100 * below / total) with halves rounded up, or the neutral value for total == 0."""
    if total <= 0:
        return NEUTRAL_PERCENTILE
    return (200 * below + total) // (2 * total)


@dataclass(frozen=True)
class Standing:
    """A score's position among the day's claimed scores. rank is None when it could not be computed."""

    rank: int | None
    percentile: int


class RankCalculator:
    def __init__(self, scores: ScoreRepository) -> None:
        self._scores = scores

    async def rank(self, puzzle_date: date, score: int, time_seconds: int) -> int:
        """1 + number of claimed rows ordered strictly ahead of (score, time_seconds)."""
        ahead = await self._scores.count_ranked_ahead(puzzle_date, score, time_seconds)
        return ahead + 1

    async def percentile(self, puzzle_date: date, score: int) -> int:
        """Share of claimed scores strictly below score, 0-100."""
        total = await self._scores.count_claimed(puzzle_date)
        if total == 0:
            return NEUTRAL_PERCENTILE
        below = await self._scores.count_claimed(puzzle_date, below_score=score)
        return percentile_from_counts(below, total)

    async def standing(self, puzzle_date: date, score: int, time_seconds: int) -> Standing:
        """Rank and percentile for display. Never raises on store failures; degrades to neutral values."""
        try:
            rank: int | None = await self.rank(puzzle_date, score, time_seconds)
        except ScoreboardError:
            logger.warning("rank unavailable", puzzle_date=puzzle_date.isoformat(), exc_info=True)
            rank = None
        return Standing(rank=rank, percentile=await self.safe_percentile(puzzle_date, score))

    async def safe_percentile(self, puzzle_date: date, score: int) -> int:
        try:
            return await self.percentile(puzzle_date, score)
        except ScoreboardError:
            logger.warning("percentile unavailable", puzzle_date=puzzle_date.isoformat(), exc_info=True)
            return NEUTRAL_PERCENTILE
