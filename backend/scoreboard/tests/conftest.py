"""Shared fixtures for scoreboard tests: a fresh SQLite store per test."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from scoreboard.claims.service import IdentityClaimService
from scoreboard.ranking.calculator import RankCalculator
from shared.db import Database, SqliteProfileRepository, SqliteScoreRepository

if TYPE_CHECKING:
    from pathlib import Path


@pytest.fixture
def db(tmp_path: Path):
    database = Database(tmp_path / "scores.db")
    database.connect()
    yield database
    database.close()


@pytest.fixture
def scores(db: Database) -> SqliteScoreRepository:
    return SqliteScoreRepository(db)


@pytest.fixture
def profiles(db: Database) -> SqliteProfileRepository:
    return SqliteProfileRepository(db)


@pytest.fixture
def ranking(scores: SqliteScoreRepository) -> RankCalculator:
    return RankCalculator(scores)


@pytest.fixture
def claims(scores: SqliteScoreRepository) -> IdentityClaimService:
    return IdentityClaimService(scores)
