"""Display name normalization and validation."""

import re
import unicodedata

from shared.dal.errors import ScoreValidationError

DISPLAY_NAME_MIN_LENGTH = 3
DISPLAY_NAME_MAX_LENGTH = 20
DISPLAY_NAME_PATTERN = re.compile(r"^[A-Za-z0-9 _.\-]+$")
_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_display_name(value: str) -> str:
    """NFKC-normalize, trim, and collapse internal whitespace to single spaces."""
    return _WHITESPACE_RUN.sub(" ", unicodedata.normalize("NFKC", value).strip())


def validate_display_name(value: str) -> str:
    """Return the normalized display name or raise ScoreValidationError."""
    normalized = normalize_display_name(value)
    if not normalized:
        raise ScoreValidationError("Display name cannot be empty")
    if len(normalized) < DISPLAY_NAME_MIN_LENGTH or len(normalized) > DISPLAY_NAME_MAX_LENGTH:
        raise ScoreValidationError(
            f"Display name must be between {DISPLAY_NAME_MIN_LENGTH} and {DISPLAY_NAME_MAX_LENGTH} characters",
        )
    if not DISPLAY_NAME_PATTERN.match(normalized):
        raise ScoreValidationError("Display name may only contain letters, numbers, spaces, and _ . -")
    return normalized
