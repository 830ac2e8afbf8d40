"""Sign-in time reconciliation of a device's anonymous score with the player's account."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import structlog

from scoreboard.reconciliation.single_flight import SingleFlight
from scoreboard.reconciliation.types import ClaimedAnonymous, LoadedExisting, NoChange
from shared.dal.errors import ScoreboardError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable
    from datetime import date

    from scoreboard.claims.service import IdentityClaimService
    from scoreboard.ranking.calculator import RankCalculator
    from scoreboard.reconciliation.types import LocalScoreRef, LocalScoreSource, ReconcileOutcome
    from shared.dal.score_repository import ScoreRepository

logger = structlog.get_logger()

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_SECONDS = 1.0


class ReconciliationCoordinator:
    """Decide, once per sign-in, between loading the player's stored score, claiming the
    device's anonymous score, or doing nothing.

    A stored score for today always wins; the local anonymous score is then
    dropped. Concurrent sign-ins for the same player inside this process
    collapse to one run; the others return NoChange straight away. Any store
    failure also ends in NoChange so a player is never kept from playing.
    """

    def __init__(
        self,
        scores: ScoreRepository,
        claims: IdentityClaimService,
        ranking: RankCalculator,
        *,
        today: Callable[[], date],
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_delay: float = DEFAULT_RETRY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._scores = scores
        self._claims = claims
        self._ranking = ranking
        self._today = today
        self._max_retries = max_retries
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._in_flight = SingleFlight()

    def is_in_progress(self, player_id: str) -> bool:
        return self._in_flight.is_active(player_id)

    async def reconcile(
        self,
        player_id: str,
        local_scores: LocalScoreSource | None = None,
        *,
        puzzle_date: date | None = None,
    ) -> ReconcileOutcome:
        with self._in_flight.enter(player_id) as entered:
            if not entered:
                logger.info("reconciliation already in progress", player_id=player_id)
                return NoChange(reason="in_progress")
            with structlog.contextvars.bound_contextvars(player_id=player_id):
                try:
                    return await self._reconcile(player_id, local_scores, puzzle_date or self._today())
                except ScoreboardError:
                    logger.warning("reconciliation failed, leaving scores unchanged", exc_info=True)
                    return NoChange(reason="store_error")

    async def _reconcile(
        self,
        player_id: str,
        local_scores: LocalScoreSource | None,
        puzzle_date: date,
    ) -> ReconcileOutcome:
        existing = await self._scores.get_for_player(player_id, puzzle_date)
        if existing is not None:
            standing = await self._ranking.standing(existing.puzzle_date, existing.score, existing.time_seconds)
            logger.info("loaded existing score", score_id=existing.id, puzzle_date=puzzle_date.isoformat())
            return LoadedExisting(score=existing, rank=standing.rank, percentile=standing.percentile)

        local = await self._load_with_score_id(local_scores) if local_scores is not None else None
        if local is None:
            return NoChange(reason="no_local_score")
        if local.score_id is None:
            # The original submission may have failed for good; nothing left to claim it with.
            logger.warning("local score never received an id, abandoning claim")
            return NoChange(reason="score_id_missing")

        return await self._claim(player_id, local.score_id)

    async def _load_with_score_id(self, local_scores: LocalScoreSource) -> LocalScoreRef | None:
        """Read the local score, re-reading while its submission may still be committing."""
        local = await local_scores.load_local_score()
        if not local_scores.may_change:
            return local
        attempt = 0
        while local is not None and local.score_id is None and attempt < self._max_retries:
            attempt += 1
            logger.info("local score has no id yet, retrying", attempt=attempt, max_retries=self._max_retries)
            await self._sleep(self._retry_delay)
            local = await local_scores.load_local_score()
        return local

    async def _claim(self, player_id: str, score_id: str) -> ReconcileOutcome:
        outcome = await self._claims.claim(score_id, player_id)
        if not outcome.succeeded:
            return NoChange(reason=outcome.value)

        claimed = await self._scores.get_score(score_id)
        if claimed is None:
            return NoChange(reason="not_found")
        standing = await self._ranking.standing(claimed.puzzle_date, claimed.score, claimed.time_seconds)
        return ClaimedAnonymous(score=claimed, rank=standing.rank, percentile=standing.percentile)
