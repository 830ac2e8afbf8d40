"""Persistence models for the data access layer."""

from dataclasses import dataclass
from datetime import date

from pydantic import BaseModel, Field

MAX_SCORE = 1000
# A puzzle has 16 word placements; all 16 correct means the puzzle was completed.
TOTAL_PLACEMENTS = 16
# A daily puzzle left open longer than a day is not a competitive time.
MAX_TIME_SECONDS = 24 * 60 * 60
MAX_MISTAKES = 10_000


class ScoreSubmission(BaseModel, frozen=True):
    """A finished puzzle as reported by the client, before it is stored."""

    puzzle_date: date
    score: int = Field(ge=0, le=MAX_SCORE)
    time_seconds: int = Field(ge=0, le=MAX_TIME_SECONDS)
    mistakes: int = Field(ge=0, le=MAX_MISTAKES)
    correct_placements: int = Field(ge=0, le=TOTAL_PLACEMENTS)
    player_id: str | None = Field(default=None, min_length=1)  # None for anonymous play


class ScoreRecord(BaseModel, frozen=True):
    """One stored score row. Only player_id ever changes, once, from None to a player."""

    id: str
    player_id: str | None = None
    puzzle_date: date
    score: int
    time_seconds: int
    mistakes: int
    correct_placements: int

    @property
    def is_claimed(self) -> bool:
        return self.player_id is not None

    @property
    def completed(self) -> bool:
        return self.correct_placements == TOTAL_PLACEMENTS


class Profile(BaseModel, frozen=True):
    """Public profile of an authenticated player."""

    player_id: str
    display_name: str | None = None


@dataclass(frozen=True)
class SubmitResult:
    """Outcome of a store submission: the row id and whether it already existed."""

    score_id: str
    existing: bool
