"""SQLite-backed score repository."""

from __future__ import annotations

import asyncio
import sqlite3
from typing import TYPE_CHECKING, Any
from uuid import uuid4

import structlog

from shared.dal.errors import ConflictError
from shared.dal.models import ScoreRecord, SubmitResult
from shared.dal.score_repository import ScoreRepository
from shared.db.connection import translate_store_errors

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence
    from datetime import date

    from shared.dal.models import ScoreSubmission
    from shared.db.connection import Database

logger = structlog.get_logger()

_COLUMNS = ("id", "player_id", "puzzle_date", "score", "time_seconds", "mistakes", "correct_placements")
_SELECT_COLUMNS = ", ".join(_COLUMNS)


def _to_record(row: Sequence[Any]) -> ScoreRecord:
    return ScoreRecord.model_validate(dict(zip(_COLUMNS, row, strict=True)))


class SqliteScoreRepository(ScoreRepository):
    """SQLite implementation of ScoreRepository.

    Writes run under an asyncio lock. Correctness does not depend on it:
    the partial unique index on (player_id, puzzle_date) and the
    ``player_id IS NULL`` guard on claims hold across processes too.
    """

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def submit_score(self, submission: ScoreSubmission) -> SubmitResult:
        """Insert a score row, or return the player's existing row for that puzzle date."""
        async with self._lock:
            with translate_store_errors("submit_score"):
                if submission.player_id is not None:
                    existing = self._fetch_for_player(submission.player_id, submission.puzzle_date)
                    if existing is not None:
                        logger.info(
                            "score already submitted, returning existing row",
                            player_id=submission.player_id,
                            score_id=existing.id,
                        )
                        return SubmitResult(score_id=existing.id, existing=True)
                return self._insert(submission)

    def _insert(self, submission: ScoreSubmission) -> SubmitResult:
        score_id = str(uuid4())
        conn = self._db.connection
        try:
            conn.execute(
                f"INSERT INTO scores ({_SELECT_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?)",  # noqa: S608
                (
                    score_id,
                    submission.player_id,
                    submission.puzzle_date.isoformat(),
                    submission.score,
                    submission.time_seconds,
                    submission.mistakes,
                    submission.correct_placements,
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as exc:
            conn.rollback()
            # Another writer stored this player's row for the date first.
            if submission.player_id is not None:
                existing = self._fetch_for_player(submission.player_id, submission.puzzle_date)
                if existing is not None:
                    return SubmitResult(score_id=existing.id, existing=True)
            raise ConflictError(str(exc)) from exc
        logger.info(
            "stored score",
            score_id=score_id,
            player_id=submission.player_id,
            puzzle_date=submission.puzzle_date.isoformat(),
        )
        return SubmitResult(score_id=score_id, existing=False)

    async def get_score(self, score_id: str) -> ScoreRecord | None:
        """Look up a score row by id."""
        with translate_store_errors("get_score"):
            row = self._db.connection.execute(
                f"SELECT {_SELECT_COLUMNS} FROM scores WHERE id = ?",  # noqa: S608
                (score_id,),
            ).fetchone()
        return _to_record(row) if row is not None else None

    async def get_for_player(self, player_id: str, puzzle_date: date) -> ScoreRecord | None:
        """Return the player's claimed row for the puzzle date, if any."""
        with translate_store_errors("get_for_player"):
            return self._fetch_for_player(player_id, puzzle_date)

    def _fetch_for_player(self, player_id: str, puzzle_date: date) -> ScoreRecord | None:
        row = self._db.connection.execute(
            f"SELECT {_SELECT_COLUMNS} FROM scores WHERE player_id = ? AND puzzle_date = ?",  # noqa: S608
            (player_id, puzzle_date.isoformat()),
        ).fetchone()
        return _to_record(row) if row is not None else None

    async def claim_score(self, score_id: str, player_id: str) -> bool:
        """Set player_id on an anonymous row. Returns False if the row was not anonymous or is missing.

        Raises ConflictError when the player already owns a row for that puzzle date.
        """
        async with self._lock:
            conn = self._db.connection
            with translate_store_errors("claim_score"):
                try:
                    cursor = conn.execute(
                        "UPDATE scores SET player_id = ? WHERE id = ? AND player_id IS NULL",
                        (player_id, score_id),
                    )
                    conn.commit()
                except sqlite3.IntegrityError as exc:
                    conn.rollback()
                    raise ConflictError(
                        f"Player '{player_id}' already has a score for the puzzle of score '{score_id}'",
                    ) from exc
        return cursor.rowcount == 1

    async def count_ranked_ahead(self, puzzle_date: date, score: int, time_seconds: int) -> int:
        """Count claimed rows ordered strictly before (score, time_seconds)."""
        with translate_store_errors("count_ranked_ahead"):
            row = self._db.connection.execute(
                "SELECT COUNT(*) FROM scores "
                "WHERE puzzle_date = ? AND player_id IS NOT NULL "
                "AND (score > ? OR (score = ? AND time_seconds < ?))",
                (puzzle_date.isoformat(), score, score, time_seconds),
            ).fetchone()
        return row[0]

    async def count_claimed(self, puzzle_date: date, *, below_score: int | None = None) -> int:
        """Count claimed rows for the date, optionally only those scoring strictly below below_score."""
        sql = "SELECT COUNT(*) FROM scores WHERE puzzle_date = ? AND player_id IS NOT NULL"
        params: list[Any] = [puzzle_date.isoformat()]
        if below_score is not None:
            sql += " AND score < ?"
            params.append(below_score)
        with translate_store_errors("count_claimed"):
            row = self._db.connection.execute(sql, params).fetchone()
        return row[0]

    async def list_claimed(
        self,
        puzzle_date: date,
        offset: int,
        limit: int,
        player_ids: Collection[str] | None = None,
    ) -> list[ScoreRecord]:
        """List each player's best claimed row, ordered by score desc then time asc.

        Rows tied on both keys come back in insertion order so that
        consecutive pages never overlap.
        """
        if player_ids is not None and not player_ids:
            return []
        where = "puzzle_date = ? AND player_id IS NOT NULL"
        params: list[Any] = [puzzle_date.isoformat()]
        if player_ids is not None:
            ids = sorted(set(player_ids))
            where += f" AND player_id IN ({', '.join('?' * len(ids))})"
            params.extend(ids)
        params.extend([limit, offset])
        sql = (
            f"SELECT {_SELECT_COLUMNS} FROM ("  # noqa: S608
            f"  SELECT {_SELECT_COLUMNS}, rowid AS seq, ROW_NUMBER() OVER ("
            "    PARTITION BY player_id ORDER BY score DESC, time_seconds ASC, rowid ASC"
            "  ) AS player_row"
            f"  FROM scores WHERE {where}"
            ") WHERE player_row = 1 "
            "ORDER BY score DESC, time_seconds ASC, seq ASC "
            "LIMIT ? OFFSET ?"
        )
        with translate_store_errors("list_claimed"):
            rows = self._db.connection.execute(sql, params).fetchall()
        return [_to_record(row) for row in rows]
