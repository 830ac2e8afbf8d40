"""Abstract interface for player profile persistence."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Collection

    from shared.dal.models import Profile


class ProfileRepository(ABC):
    """Abstract interface for player profiles shown next to leaderboard rows."""

    @abstractmethod
    async def get_profile(self, player_id: str) -> Profile | None: ...

    @abstractmethod
    async def get_display_names(self, player_ids: Collection[str]) -> dict[str, str | None]: ...

    @abstractmethod
    async def set_display_name(self, player_id: str, display_name: str) -> Profile: ...
