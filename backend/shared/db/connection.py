"""SQLite database connection and schema management."""

import contextlib
import os
import sqlite3
from collections.abc import Iterator
from pathlib import Path

import structlog

from shared.dal.errors import TransientStoreError

logger = structlog.get_logger()

_DB_FILE_PERMISSIONS = 0o600

_SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS scores (
    id TEXT PRIMARY KEY,
    player_id TEXT,
    puzzle_date TEXT NOT NULL,
    score INTEGER NOT NULL CHECK (score BETWEEN 0 AND 1000),
    time_seconds INTEGER NOT NULL CHECK (time_seconds >= 0),
    mistakes INTEGER NOT NULL CHECK (mistakes >= 0),
    correct_placements INTEGER NOT NULL CHECK (correct_placements >= 0)
);

CREATE UNIQUE INDEX IF NOT EXISTS idx_scores_player_date
    ON scores (player_id, puzzle_date) WHERE player_id IS NOT NULL;

CREATE INDEX IF NOT EXISTS idx_scores_ranking
    ON scores (puzzle_date, score DESC, time_seconds ASC) WHERE player_id IS NOT NULL;

CREATE TRIGGER IF NOT EXISTS trg_scores_immutable
BEFORE UPDATE ON scores
WHEN OLD.player_id IS NOT NULL
    OR NEW.player_id IS NULL
    OR NEW.id IS NOT OLD.id
    OR NEW.puzzle_date IS NOT OLD.puzzle_date
    OR NEW.score IS NOT OLD.score
    OR NEW.time_seconds IS NOT OLD.time_seconds
    OR NEW.mistakes IS NOT OLD.mistakes
    OR NEW.correct_placements IS NOT OLD.correct_placements
BEGIN
    SELECT RAISE(ABORT, 'score rows only change by claiming an anonymous row');
END;

CREATE TRIGGER IF NOT EXISTS trg_scores_no_delete
BEFORE DELETE ON scores
BEGIN
    SELECT RAISE(ABORT, 'score rows are never deleted');
END;

CREATE TABLE IF NOT EXISTS profiles (
    player_id TEXT PRIMARY KEY,
    display_name TEXT
);
"""


@contextlib.contextmanager
def translate_store_errors(operation: str) -> Iterator[None]:
    """Re-raise SQLite availability failures (locked, I/O, closed) as TransientStoreError."""
    try:
        yield
    except (sqlite3.OperationalError, sqlite3.InterfaceError) as exc:
        logger.warning("score store unavailable", operation=operation, error=str(exc))
        raise TransientStoreError(f"Store unavailable during {operation}") from exc


class Database:
    """SQLite database wrapper with schema management."""

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        self._conn: sqlite3.Connection | None = None

    @property
    def connection(self) -> sqlite3.Connection:
        """Return the active connection or raise if disconnected."""
        if self._conn is None:
            raise TransientStoreError("Database is not connected")
        return self._conn

    @property
    def is_memory(self) -> bool:
        return self._path == ":memory:"

    def connect(self) -> None:
        """Open the database, apply pragmas, create schema, and harden file permissions."""
        if not self.is_memory:
            Path(self._path).parent.mkdir(parents=True, exist_ok=True)

        self._conn = sqlite3.connect(self._path, check_same_thread=False)
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")
        self._conn.execute("PRAGMA busy_timeout=5000")
        self._conn.executescript(_SCHEMA_SQL)

        if not self.is_memory:
            self._harden_permissions()
        logger.info("score database ready", path=self._path)

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def _harden_permissions(self) -> None:
        """Set restrictive file permissions on POSIX systems (best effort).

        Covers the WAL/SHM sibling files too, since they hold row data.
        """
        if os.name != "posix":  # pragma: no cover
            return
        for suffix in ("", "-wal", "-shm"):
            p = Path(self._path + suffix)
            if p.exists():
                try:
                    p.chmod(_DB_FILE_PERMISSIONS)
                except OSError:
                    logger.warning("could not set file permissions", permissions=oct(_DB_FILE_PERMISSIONS), path=str(p))
