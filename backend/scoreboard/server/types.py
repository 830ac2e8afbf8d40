from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from shared.dal.models import MAX_MISTAKES, MAX_SCORE, MAX_TIME_SECONDS, TOTAL_PLACEMENTS

MAX_ID_LENGTH = 100


class SubmitScoreRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    puzzle_date: date | None = None  # defaults to today's puzzle
    score: int = Field(ge=0, le=MAX_SCORE, strict=True)
    time_seconds: int = Field(ge=0, le=MAX_TIME_SECONDS, strict=True)
    mistakes: int = Field(ge=0, le=MAX_MISTAKES, strict=True)
    correct_placements: int = Field(ge=0, le=TOTAL_PLACEMENTS, strict=True)
    player_id: str | None = Field(default=None, min_length=1, max_length=MAX_ID_LENGTH)


class ClaimScoreRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    player_id: str = Field(min_length=1, max_length=MAX_ID_LENGTH)


class LocalScorePayload(BaseModel):
    """The anonymous score a device remembers. score_id is absent while its submission is in flight."""

    model_config = ConfigDict(extra="forbid")

    score_id: str | None = Field(default=None, min_length=1, max_length=MAX_ID_LENGTH)
    score: int = Field(ge=0, le=MAX_SCORE, strict=True)
    time_seconds: int = Field(ge=0, le=MAX_TIME_SECONDS, strict=True)
    mistakes: int = Field(ge=0, le=MAX_MISTAKES, strict=True)
    correct_placements: int = Field(ge=0, le=TOTAL_PLACEMENTS, strict=True)


class ReconcileRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    puzzle_date: date | None = None
    local_score: LocalScorePayload | None = None


class DisplayNameRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    display_name: str = Field(min_length=1, max_length=100)
