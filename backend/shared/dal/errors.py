"""Domain errors raised by the score store and the services built on it."""


class ScoreboardError(Exception):
    """Base class for score store and scoreboard failures."""


class TransientStoreError(ScoreboardError):
    """The store is unavailable. Safe to retry; no row may be assumed written."""


class ConflictError(ScoreboardError):
    """A write lost a race or would break the one-claimed-row-per-player-per-day rule."""


class NotFoundError(ScoreboardError):
    """A referenced score row does not exist."""


class ScoreValidationError(ScoreboardError):
    """A score payload or query argument is malformed."""
