"""Builders shared by scoreboard tests."""

from __future__ import annotations

from datetime import date
from typing import TYPE_CHECKING

from shared.dal.models import ScoreSubmission

if TYPE_CHECKING:
    from shared.dal.score_repository import ScoreRepository

PUZZLE_DATE = date(2025, 3, 14)


def submission(
    score: int = 500,
    time_seconds: int = 120,
    player_id: str | None = None,
    *,
    puzzle_date: date = PUZZLE_DATE,
    mistakes: int = 1,
    correct_placements: int = 16,
) -> ScoreSubmission:
    return ScoreSubmission(
        puzzle_date=puzzle_date,
        score=score,
        time_seconds=time_seconds,
        mistakes=mistakes,
        correct_placements=correct_placements,
        player_id=player_id,
    )


async def store(scores: ScoreRepository, score: int, time_seconds: int, player_id: str | None, **kwargs) -> str:
    """Submit a score and return its row id."""
    result = await scores.submit_score(submission(score, time_seconds, player_id, **kwargs))
    return result.score_id
