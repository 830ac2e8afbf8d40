"""Transfer of an anonymous score row to a player identity."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from scoreboard.claims.types import ClaimOutcome
from shared.dal.errors import ConflictError

if TYPE_CHECKING:
    from shared.dal.score_repository import ScoreRepository

logger = structlog.get_logger()


class IdentityClaimService:
    """Attach a player to an anonymous score row, at most once per row.

    The store's conditional update (only when player_id is still NULL) is
    the only thing deciding the winner between concurrent claimants. This
    service never retries: a lost claim cannot be won by trying again.
    """

    def __init__(self, scores: ScoreRepository) -> None:
        self._scores = scores

    async def claim(self, score_id: str, player_id: str) -> ClaimOutcome:
        try:
            updated = await self._scores.claim_score(score_id, player_id)
        except ConflictError:
            # The player already owns a row for that puzzle date.
            logger.info("claim rejected, player already has a score", score_id=score_id, player_id=player_id)
            return ClaimOutcome.CONFLICT

        if updated:
            logger.info("claimed anonymous score", score_id=score_id, player_id=player_id)
            return ClaimOutcome.CLAIMED

        row = await self._scores.get_score(score_id)
        if row is None:
            logger.info("claim target not found", score_id=score_id, player_id=player_id)
            return ClaimOutcome.NOT_FOUND
        if row.player_id == player_id:
            return ClaimOutcome.ALREADY_OWNED_BY_SELF
        logger.info("claim lost, score owned by another player", score_id=score_id, player_id=player_id)
        return ClaimOutcome.CONFLICT
