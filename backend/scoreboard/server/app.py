from __future__ import annotations

import contextlib
from functools import partial
from http import HTTPStatus
from typing import TYPE_CHECKING, cast

import structlog
from pydantic import ValidationError
from starlette.applications import Starlette
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse
from starlette.routing import Route

from scoreboard.claims.service import IdentityClaimService
from scoreboard.dates import today_puzzle_date
from scoreboard.leaderboard.assembler import LeaderboardAssembler
from scoreboard.ranking.calculator import RankCalculator
from scoreboard.reconciliation.coordinator import ReconciliationCoordinator
from scoreboard.server.handlers import (
    claim_score,
    get_display_name,
    get_leaderboard,
    get_percentile,
    get_player_score,
    get_rank,
    get_score,
    reconcile,
    set_display_name,
    submit_score,
    validation_error_json,
)
from scoreboard.server.settings import ScoreboardSettings
from scoreboard.submission.service import ScoreSubmissionService
from shared.dal.errors import (
    ConflictError,
    NotFoundError,
    ScoreboardError,
    ScoreValidationError,
    TransientStoreError,
)
from shared.db import Database, SqliteProfileRepository, SqliteScoreRepository
from shared.logging import setup_logging

logger = structlog.get_logger()

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable
    from datetime import date

    from starlette.requests import Request

_ERROR_STATUS: dict[type[ScoreboardError], HTTPStatus] = {
    ScoreValidationError: HTTPStatus.UNPROCESSABLE_ENTITY,
    NotFoundError: HTTPStatus.NOT_FOUND,
    ConflictError: HTTPStatus.CONFLICT,
    TransientStoreError: HTTPStatus.SERVICE_UNAVAILABLE,
}


async def health(_request: Request) -> JSONResponse:
    return JSONResponse({"status": "ok"})


async def _scoreboard_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    status = next(
        (code for error_type, code in _ERROR_STATUS.items() if isinstance(exc, error_type)),
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )
    if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
        logger.warning("request failed", error_type=type(exc).__name__, error=str(exc))
    return JSONResponse({"error": str(exc)}, status_code=status)


async def _validation_error_handler(_request: Request, exc: Exception) -> JSONResponse:
    return JSONResponse(
        {"error": "Invalid request", "details": validation_error_json(cast("ValidationError", exc))},
        status_code=HTTPStatus.UNPROCESSABLE_ENTITY,
    )


def create_app(
    settings: ScoreboardSettings | None = None,
    today: Callable[[], date] | None = None,
) -> Starlette:
    if settings is None:  # pragma: no cover
        settings = ScoreboardSettings()
    if today is None:
        today = partial(today_puzzle_date, settings.puzzle_timezone)

    db = Database(settings.database_path)
    db.connect()
    scores = SqliteScoreRepository(db)
    profiles = SqliteProfileRepository(db)
    ranking = RankCalculator(scores)
    claims = IdentityClaimService(scores)

    routes = [
        Route("/health", health, methods=["GET"]),
        Route("/scores", submit_score, methods=["POST"]),
        Route("/scores/{score_id}", get_score, methods=["GET"]),
        Route("/scores/{score_id}/claim", claim_score, methods=["POST"]),
        Route("/rank", get_rank, methods=["GET"]),
        Route("/percentile", get_percentile, methods=["GET"]),
        Route("/leaderboard/{puzzle_date}", get_leaderboard, methods=["GET"]),
        Route("/players/{player_id}/scores/{puzzle_date}", get_player_score, methods=["GET"]),
        Route("/players/{player_id}/reconcile", reconcile, methods=["POST"]),
        Route("/players/{player_id}/display-name", get_display_name, methods=["GET"]),
        Route("/players/{player_id}/display-name", set_display_name, methods=["PUT"]),
    ]

    @contextlib.asynccontextmanager
    async def lifespan(_app: Starlette) -> AsyncGenerator[None]:
        yield
        db.close()

    app = Starlette(
        routes=routes,
        lifespan=lifespan,
        exception_handlers={
            ScoreboardError: _scoreboard_error_handler,
            ValidationError: _validation_error_handler,
        },
    )
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT"],
        allow_headers=["Content-Type"],
    )
    app.state.settings = settings
    app.state.today = today
    app.state.db = db
    app.state.scores = scores
    app.state.profiles = profiles
    app.state.ranking = ranking
    app.state.claims = claims
    app.state.submission = ScoreSubmissionService(scores, ranking)
    app.state.leaderboard = LeaderboardAssembler(
        scores,
        profiles,
        max_page_size=settings.leaderboard_max_page_size,
    )
    app.state.reconciler = ReconciliationCoordinator(
        scores,
        claims,
        ranking,
        today=today,
        max_retries=settings.reconcile_retry_attempts,
        retry_delay=settings.reconcile_retry_delay_seconds,
    )

    logger.info("scoreboard server ready", database_path=settings.database_path)
    return app


def get_app() -> Starlette:  # pragma: no cover
    """ASGI application factory for production use (e.g., uvicorn --factory)."""
    _settings = ScoreboardSettings()
    setup_logging(log_dir=_settings.log_dir)
    return create_app(settings=_settings)
