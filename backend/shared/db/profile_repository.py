"""SQLite-backed profile repository."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

from shared.dal.models import Profile
from shared.dal.profile_repository import ProfileRepository
from shared.db.connection import translate_store_errors

if TYPE_CHECKING:
    from collections.abc import Collection

    from shared.db.connection import Database


class SqliteProfileRepository(ProfileRepository):
    """SQLite implementation of ProfileRepository."""

    def __init__(self, db: Database) -> None:
        self._db = db
        self._lock = asyncio.Lock()

    async def get_profile(self, player_id: str) -> Profile | None:
        with translate_store_errors("get_profile"):
            row = self._db.connection.execute(
                "SELECT player_id, display_name FROM profiles WHERE player_id = ?",
                (player_id,),
            ).fetchone()
        if row is None:
            return None
        return Profile(player_id=row[0], display_name=row[1])

    async def get_display_names(self, player_ids: Collection[str]) -> dict[str, str | None]:
        """Map each known player id to its display name. Unknown ids are omitted."""
        ids = sorted(set(player_ids))
        if not ids:
            return {}
        with translate_store_errors("get_display_names"):
            rows = self._db.connection.execute(
                f"SELECT player_id, display_name FROM profiles WHERE player_id IN ({', '.join('?' * len(ids))})",  # noqa: S608
                ids,
            ).fetchall()
        return {row[0]: row[1] for row in rows}

    async def set_display_name(self, player_id: str, display_name: str) -> Profile:
        """Create or update the player's display name."""
        async with self._lock:
            conn = self._db.connection
            with translate_store_errors("set_display_name"):
                conn.execute(
                    "INSERT INTO profiles (player_id, display_name) VALUES (?, ?) "
                    "ON CONFLICT(player_id) DO UPDATE SET display_name = excluded.display_name",
                    (player_id, display_name),
                )
                conn.commit()
        return Profile(player_id=player_id, display_name=display_name)
