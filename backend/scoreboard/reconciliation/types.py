"""Reconciliation inputs and outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, ClassVar, Protocol

if TYPE_CHECKING:
    from shared.dal.models import ScoreRecord


class ReconcileAction(StrEnum):
    LOADED_EXISTING = "loaded_existing"
    CLAIMED_ANONYMOUS = "claimed_anonymous"
    NO_CHANGE = "no_change"


@dataclass(frozen=True)
class LocalScoreRef:
    """Anonymous score remembered on the device. score_id is None until the submission has committed."""

    score: int
    time_seconds: int
    mistakes: int
    correct_placements: int
    score_id: str | None = None


class LocalScoreSource(Protocol):
    """Where the coordinator reads the device's anonymous score from.

    Sources whose value can change between reads (device storage that the
    submission updates once it commits) set may_change and are re-read while
    the score has no id. Static sources are read once.
    """

    may_change: bool

    async def load_local_score(self) -> LocalScoreRef | None: ...


class FixedLocalScore:
    """A LocalScoreSource that always returns the same reference."""

    may_change = False

    def __init__(self, ref: LocalScoreRef | None) -> None:
        self._ref = ref

    async def load_local_score(self) -> LocalScoreRef | None:
        return self._ref


@dataclass(frozen=True)
class LoadedExisting:
    """The player already had a score for the day. It wins over any local anonymous score."""

    action: ClassVar[ReconcileAction] = ReconcileAction.LOADED_EXISTING

    score: ScoreRecord
    rank: int | None
    percentile: int


@dataclass(frozen=True)
class ClaimedAnonymous:
    """The device's anonymous score now belongs to the player."""

    action: ClassVar[ReconcileAction] = ReconcileAction.CLAIMED_ANONYMOUS

    score: ScoreRecord
    rank: int | None
    percentile: int


@dataclass(frozen=True)
class NoChange:
    """Nothing to load or claim. The player may start a fresh puzzle."""

    action: ClassVar[ReconcileAction] = ReconcileAction.NO_CHANGE

    reason: str = ""


type ReconcileOutcome = LoadedExisting | ClaimedAnonymous | NoChange
