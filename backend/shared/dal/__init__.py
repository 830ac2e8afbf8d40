"""Data access layer: repository interfaces and shared persistence models."""

from shared.dal.errors import (
    ConflictError,
    NotFoundError,
    ScoreboardError,
    ScoreValidationError,
    TransientStoreError,
)
from shared.dal.models import Profile, ScoreRecord, ScoreSubmission, SubmitResult
from shared.dal.profile_repository import ProfileRepository
from shared.dal.score_repository import ScoreRepository

__all__ = [
    "ConflictError",
    "NotFoundError",
    "Profile",
    "ProfileRepository",
    "ScoreRecord",
    "ScoreRepository",
    "ScoreSubmission",
    "ScoreValidationError",
    "ScoreboardError",
    "SubmitResult",
    "TransientStoreError",
]
