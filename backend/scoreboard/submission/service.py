"""Score submission: store once, then report where the score stands."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from scoreboard.ranking.calculator import RankCalculator
    from shared.dal.models import ScoreSubmission
    from shared.dal.score_repository import ScoreRepository

logger = structlog.get_logger()


@dataclass(frozen=True)
class SubmittedScore:
    score_id: str
    existing: bool
    rank: int | None
    percentile: int


class ScoreSubmissionService:
    def __init__(self, scores: ScoreRepository, ranking: RankCalculator) -> None:
        self._scores = scores
        self._ranking = ranking

    async def submit(self, submission: ScoreSubmission) -> SubmittedScore:
        """Store a finished puzzle and attach rank and percentile.

        A retried submission from an identified player returns the row stored
        the first time; rank and percentile then describe that row, not the
        retried payload. Store failures on the write propagate as
        TransientStoreError; failures while ranking degrade to neutral values.
        """
        result = await self._scores.submit_score(submission)

        score, time_seconds = submission.score, submission.time_seconds
        if result.existing:
            stored = await self._scores.get_score(result.score_id)
            if stored is not None:
                score, time_seconds = stored.score, stored.time_seconds

        standing = await self._ranking.standing(submission.puzzle_date, score, time_seconds)
        return SubmittedScore(
            score_id=result.score_id,
            existing=result.existing,
            rank=standing.rank,
            percentile=standing.percentile,
        )
