"""Puzzle date helpers. One puzzle per calendar day in the configured timezone."""

from datetime import date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from shared.dal.errors import ScoreValidationError


def today_puzzle_date(timezone: str = "UTC") -> date:
    """Return today's puzzle date in the given IANA timezone."""
    return datetime.now(tz=ZoneInfo(timezone)).date()


def parse_puzzle_date(value: str) -> date:
    """Parse an ISO ``YYYY-MM-DD`` puzzle date."""
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ScoreValidationError(f"Invalid puzzle date: {value!r}") from exc


def validate_timezone(value: str) -> str:
    """Raise ValueError unless value names a known IANA timezone."""
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown timezone: {value!r}") from exc
    return value
