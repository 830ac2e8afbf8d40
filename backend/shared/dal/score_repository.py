"""Abstract interface for daily score persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection
    from datetime import date

    from shared.dal.models import ScoreRecord, ScoreSubmission, SubmitResult


class ScoreRepository(ABC):
    """Abstract interface for score persistence.

    Only claimed rows (player_id set) take part in ranking queries.
    Implementations must guarantee at most one claimed row per
    (player_id, puzzle_date) and that ownership moves from None to a
    player at most once.
    """

    @abstractmethod
    async def submit_score(self, submission: ScoreSubmission) -> SubmitResult: ...

    @abstractmethod
    async def get_score(self, score_id: str) -> ScoreRecord | None: ...

    @abstractmethod
    async def get_for_player(self, player_id: str, puzzle_date: date) -> ScoreRecord | None: ...

    @abstractmethod
    async def claim_score(self, score_id: str, player_id: str) -> bool: ...

    @abstractmethod
    async def count_ranked_ahead(self, puzzle_date: date, score: int, time_seconds: int) -> int: ...

    @abstractmethod
    async def count_claimed(self, puzzle_date: date, *, below_score: int | None = None) -> int: ...

    @abstractmethod
    async def list_claimed(
        self,
        puzzle_date: date,
        offset: int,
        limit: int,
        player_ids: Collection[str] | None = None,
    ) -> list[ScoreRecord]: ...
