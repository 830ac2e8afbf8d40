"""Paginated daily leaderboard views."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from scoreboard.leaderboard.types import LeaderboardEntry, LeaderboardPage
from shared.dal.errors import ScoreboardError, ScoreValidationError

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import date

    from shared.dal.models import ScoreRecord
    from shared.dal.profile_repository import ProfileRepository
    from shared.dal.score_repository import ScoreRepository

logger = structlog.get_logger()

DEFAULT_MAX_PAGE_SIZE = 100


def _best_row_per_player(rows: list[ScoreRecord]) -> list[ScoreRecord]:
    """Keep the first row seen for each player. Rows must already be in board order."""
    seen: set[str] = set()
    unique = []
    for row in rows:
        if not row.is_claimed or row.player_id in seen:
            continue
        seen.add(str(row.player_id))
        unique.append(row)
    return unique


class LeaderboardAssembler:
    """Build leaderboard pages over claimed scores, sorted by score desc then time asc.

    Ranks are absolute positions, consistent with RankCalculator's ordering.
    A player missing from the requested page is not added to it; callers
    look up that player's rank separately.
    """

    def __init__(
        self,
        scores: ScoreRepository,
        profiles: ProfileRepository | None = None,
        *,
        max_page_size: int = DEFAULT_MAX_PAGE_SIZE,
    ) -> None:
        self._scores = scores
        self._profiles = profiles
        self._max_page_size = max_page_size

    async def page(
        self,
        puzzle_date: date,
        start: int,
        page_size: int,
        current_player_id: str | None = None,
        player_ids: Collection[str] | None = None,
    ) -> LeaderboardPage:
        """Return up to page_size entries starting at position start (0-based).

        When player_ids is given, only those players are listed and ranked
        among themselves (the friends board).
        """
        if start < 0:
            raise ScoreValidationError("Leaderboard offset must not be negative")
        if page_size < 1:
            raise ScoreValidationError("Leaderboard page size must be at least 1")
        page_size = min(page_size, self._max_page_size)

        # One extra row tells us whether another page exists.
        rows = await self._scores.list_claimed(puzzle_date, start, page_size + 1, player_ids)
        has_more = len(rows) > page_size
        rows = _best_row_per_player(rows[:page_size])

        names = await self._display_names([row.player_id for row in rows if row.player_id is not None])
        entries = [
            LeaderboardEntry(
                rank=start + index + 1,
                score_id=row.id,
                player_id=row.player_id,
                display_name=names.get(row.player_id),
                score=row.score,
                time_seconds=row.time_seconds,
                mistakes=row.mistakes,
                correct_placements=row.correct_placements,
                is_current_player=current_player_id is not None and row.player_id == current_player_id,
            )
            for index, row in enumerate(rows)
            if row.player_id is not None
        ]
        return LeaderboardPage(entries=entries, has_more=has_more, next_from=start + len(entries))

    async def _display_names(self, player_ids: list[str]) -> dict[str, str | None]:
        if self._profiles is None or not player_ids:
            return {}
        try:
            return await self._profiles.get_display_names(player_ids)
        except ScoreboardError:
            logger.warning("display names unavailable, listing without names", exc_info=True)
            return {}
