"""Tests for SqliteProfileRepository."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from shared.db.connection import Database
from shared.db.profile_repository import SqliteProfileRepository

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def repo(tmp_path: Path):
    db = Database(tmp_path / "test.db")
    db.connect()
    yield SqliteProfileRepository(db)
    db.close()


async def test_unknown_profile_returns_none(repo: SqliteProfileRepository) -> None:
    assert await repo.get_profile("p1") is None


async def test_set_then_get_display_name(repo: SqliteProfileRepository) -> None:
    profile = await repo.set_display_name("p1", "Alice")

    assert profile.display_name == "Alice"
    assert await repo.get_profile("p1") == profile


async def test_set_display_name_overwrites(repo: SqliteProfileRepository) -> None:
    await repo.set_display_name("p1", "Alice")
    await repo.set_display_name("p1", "Alicia")

    profile = await repo.get_profile("p1")
    assert profile is not None
    assert profile.display_name == "Alicia"


async def test_get_display_names_omits_unknown_players(repo: SqliteProfileRepository) -> None:
    await repo.set_display_name("p1", "Alice")
    await repo.set_display_name("p2", "Bob")

    names = await repo.get_display_names(["p1", "p2", "p3", "p1"])

    assert names == {"p1": "Alice", "p2": "Bob"}


async def test_get_display_names_empty_input(repo: SqliteProfileRepository) -> None:
    assert await repo.get_display_names([]) == {}
