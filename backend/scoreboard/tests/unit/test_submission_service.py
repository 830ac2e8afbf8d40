"""Tests for ScoreSubmissionService."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest

from scoreboard.submission.service import ScoreSubmissionService
from scoreboard.tests.helpers import submission
from shared.dal.errors import TransientStoreError

if TYPE_CHECKING:
    from scoreboard.ranking.calculator import RankCalculator
    from shared.db import SqliteScoreRepository


@pytest.fixture
def service(scores: SqliteScoreRepository, ranking: RankCalculator) -> ScoreSubmissionService:
    return ScoreSubmissionService(scores, ranking)


class TestSubmit:
    async def test_first_identified_submission(self, service: ScoreSubmissionService):
        result = await service.submit(submission(700, 100, "P"))

        assert not result.existing
        assert result.rank == 1
        assert result.percentile == 0

    async def test_ranks_against_earlier_scores(self, service: ScoreSubmissionService):
        await service.submit(submission(900, 100, "a"))
        await service.submit(submission(300, 100, "b"))

        result = await service.submit(submission(600, 100, "c"))

        assert result.rank == 2
        assert result.percentile == 33

    async def test_retry_returns_original_row_and_its_standing(self, service: ScoreSubmissionService):
        await service.submit(submission(900, 100, "a"))
        first = await service.submit(submission(500, 100, "P"))

        retried = await service.submit(submission(1000, 1, "P"))

        assert retried.existing
        assert retried.score_id == first.score_id
        assert retried.rank == 2

    async def test_anonymous_submission_is_ranked_but_not_counted(
        self,
        scores: SqliteScoreRepository,
        service: ScoreSubmissionService,
    ):
        result = await service.submit(submission(800, 100, None))

        assert not result.existing
        assert result.rank == 1
        assert await scores.count_claimed(submission().puzzle_date) == 0

    async def test_write_failure_propagates(self, ranking: RankCalculator):
        broken = AsyncMock()
        broken.submit_score.side_effect = TransientStoreError("down")

        with pytest.raises(TransientStoreError):
            await ScoreSubmissionService(broken, ranking).submit(submission())
