"""Tests for rank and percentile computation over claimed scores."""

from __future__ import annotations

from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest

from scoreboard.ranking.calculator import NEUTRAL_PERCENTILE, RankCalculator, Standing, percentile_from_counts
from scoreboard.tests.helpers import PUZZLE_DATE, store
from shared.dal.errors import TransientStoreError

if TYPE_CHECKING:
    from shared.db import SqliteScoreRepository


class TestPercentileFromCounts:
    @pytest.mark.parametrize(
        ("below", "total", "expected"),
        [
            (0, 1, 0),
            (1, 1, 100),
            (1, 2, 50),
            (1, 3, 33),
            (2, 3, 67),
            (1, 8, 13),
            (1, 200, 1),
            (0, 0, NEUTRAL_PERCENTILE),
        ],
    )
    def test_rounds_half_up(self, below, total, expected):
        assert percentile_from_counts(below, total) == expected


class TestRank:
    async def test_empty_board_ranks_first(self, ranking: RankCalculator):
        assert await ranking.rank(PUZZLE_DATE, 100, 100) == 1

    async def test_equal_score_lower_time_ranks_ahead(self, scores: SqliteScoreRepository, ranking: RankCalculator):
        await store(scores, 500, 60, "fast")
        await store(scores, 500, 90, "slow")

        fast = await ranking.rank(PUZZLE_DATE, 500, 60)
        slow = await ranking.rank(PUZZLE_DATE, 500, 90)

        assert fast < slow
        assert (fast, slow) == (1, 2)

    async def test_higher_score_never_ranks_behind(self, scores: SqliteScoreRepository, ranking: RankCalculator):
        for player, score, time_seconds in (("a", 900, 400), ("b", 700, 50), ("c", 700, 90), ("d", 300, 10)):
            await store(scores, score, time_seconds, player)

        ranks = [await ranking.rank(PUZZLE_DATE, score, 200) for score in (1000, 900, 700, 500, 300, 0)]

        assert ranks == sorted(ranks)

    async def test_identical_score_and_time_share_rank(self, scores: SqliteScoreRepository, ranking: RankCalculator):
        await store(scores, 500, 60, "a")
        await store(scores, 500, 60, "b")

        assert await ranking.rank(PUZZLE_DATE, 500, 60) == 1

    async def test_anonymous_rows_do_not_count(self, scores: SqliteScoreRepository, ranking: RankCalculator):
        await store(scores, 1000, 1, None)
        await store(scores, 1000, 1, None)

        assert await ranking.rank(PUZZLE_DATE, 10, 500) == 1


class TestPercentile:
    async def test_neutral_when_nobody_claimed(self, scores: SqliteScoreRepository, ranking: RankCalculator):
        await store(scores, 800, 100, None)

        assert await ranking.percentile(PUZZLE_DATE, 800) == NEUTRAL_PERCENTILE

    async def test_counts_strictly_lower_scores(self, scores: SqliteScoreRepository, ranking: RankCalculator):
        for player, score in (("a", 200), ("b", 400), ("c", 400), ("d", 900)):
            await store(scores, score, 100, player)

        assert await ranking.percentile(PUZZLE_DATE, 400) == 25
        assert await ranking.percentile(PUZZLE_DATE, 901) == 100
        assert await ranking.percentile(PUZZLE_DATE, 200) == 0

    async def test_non_decreasing_in_score(self, scores: SqliteScoreRepository, ranking: RankCalculator):
        for index, score in enumerate((120, 340, 340, 560, 780, 990)):
            await store(scores, score, 100, f"p{index}")

        values = [await ranking.percentile(PUZZLE_DATE, score) for score in range(0, 1001, 50)]

        assert values == sorted(values)


class TestStanding:
    async def test_combines_rank_and_percentile(self, scores: SqliteScoreRepository, ranking: RankCalculator):
        await store(scores, 900, 100, "a")
        await store(scores, 300, 100, "b")

        assert await ranking.standing(PUZZLE_DATE, 600, 100) == Standing(rank=2, percentile=50)

    async def test_degrades_on_store_failure(self):
        broken = AsyncMock()
        broken.count_ranked_ahead.side_effect = TransientStoreError("down")
        broken.count_claimed.side_effect = TransientStoreError("down")

        standing = await RankCalculator(broken).standing(PUZZLE_DATE, 500, 100)

        assert standing == Standing(rank=None, percentile=NEUTRAL_PERCENTILE)

    async def test_rank_failure_propagates_from_plain_query(self):
        broken = AsyncMock()
        broken.count_ranked_ahead.side_effect = TransientStoreError("down")

        with pytest.raises(TransientStoreError):
            await RankCalculator(broken).rank(PUZZLE_DATE, 500, 100)
