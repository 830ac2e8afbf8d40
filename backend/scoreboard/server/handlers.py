"""JSON endpoints for score submission, ranking, leaderboards, claims and reconciliation."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ValidationError
from starlette.responses import JSONResponse

from scoreboard.dates import parse_puzzle_date
from scoreboard.profiles.display_name import validate_display_name
from scoreboard.reconciliation.types import ClaimedAnonymous, FixedLocalScore, LoadedExisting, LocalScoreRef
from scoreboard.server.types import (
    ClaimScoreRequest,
    DisplayNameRequest,
    ReconcileRequest,
    SubmitScoreRequest,
)
from shared.dal.errors import NotFoundError, ScoreboardError, ScoreValidationError
from shared.dal.models import MAX_SCORE, MAX_TIME_SECONDS, ScoreSubmission
from shared.validators import parse_string_list

if TYPE_CHECKING:
    from datetime import date

    from starlette.requests import Request

    from scoreboard.reconciliation.types import ReconcileOutcome
    from shared.dal.models import ScoreRecord

logger = structlog.get_logger()

_MAX_REQUEST_BODY_SIZE = 4096
MAX_FRIEND_IDS = 500
MAX_LEADERBOARD_OFFSET = 1_000_000
# Larger requests are accepted and capped to the configured page size.
MAX_REQUESTED_PAGE_SIZE = 10_000


async def _parse_body[M: BaseModel](request: Request, model: type[M]) -> M:
    """Decode a JSON request body into model. An empty body is treated as {}."""
    raw_body = await request.body()
    if len(raw_body) > _MAX_REQUEST_BODY_SIZE:
        raise ScoreValidationError("Request body too large")
    try:
        body = json.loads(raw_body) if raw_body.strip() else {}
    except ValueError as exc:
        raise ScoreValidationError("Invalid JSON body") from exc
    if not isinstance(body, dict):
        raise ScoreValidationError("Expected a JSON object")
    return model.model_validate(body)


def _query_int(
    request: Request,
    name: str,
    default: int | None = None,
    *,
    minimum: int = 0,
    maximum: int,
) -> int:
    """Read an integer query parameter, bounded to [minimum, maximum] so it always fits a store column."""
    raw = request.query_params.get(name)
    if raw is None:
        if default is None:
            raise ScoreValidationError(f"Missing query parameter: {name}")
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ScoreValidationError(f"Query parameter {name} must be an integer") from exc
    if not minimum <= value <= maximum:
        raise ScoreValidationError(f"Query parameter {name} must be between {minimum} and {maximum}")
    return value


def _query_date(request: Request) -> date:
    raw = request.query_params.get("puzzle_date")
    if raw is None:
        return request.app.state.today()
    return parse_puzzle_date(raw)


def score_json(record: ScoreRecord) -> dict[str, Any]:
    data = record.model_dump(mode="json")
    data["completed"] = record.completed
    return data


def outcome_json(outcome: ReconcileOutcome) -> dict[str, Any]:
    data: dict[str, Any] = {"action": outcome.action.value}
    if isinstance(outcome, LoadedExisting | ClaimedAnonymous):
        data["score"] = score_json(outcome.score)
        data["rank"] = outcome.rank
        data["percentile"] = outcome.percentile
    else:
        data["reason"] = outcome.reason
    return data


async def submit_score(request: Request) -> JSONResponse:
    """POST /scores - store a finished puzzle and report its rank and percentile."""
    req = await _parse_body(request, SubmitScoreRequest)
    submission = ScoreSubmission(
        puzzle_date=req.puzzle_date or request.app.state.today(),
        score=req.score,
        time_seconds=req.time_seconds,
        mistakes=req.mistakes,
        correct_placements=req.correct_placements,
        player_id=req.player_id,
    )
    result = await request.app.state.submission.submit(submission)
    return JSONResponse(
        {
            "id": result.score_id,
            "existing": result.existing,
            "rank": result.rank,
            "percentile": result.percentile,
        },
        status_code=200 if result.existing else 201,
    )


async def get_score(request: Request) -> JSONResponse:
    """GET /scores/{score_id}"""
    score_id = request.path_params["score_id"]
    record = await request.app.state.scores.get_score(score_id)
    if record is None:
        raise NotFoundError(f"Score '{score_id}' not found")
    return JSONResponse(score_json(record))


async def get_player_score(request: Request) -> JSONResponse:
    """GET /players/{player_id}/scores/{puzzle_date}"""
    player_id = request.path_params["player_id"]
    puzzle_date = parse_puzzle_date(request.path_params["puzzle_date"])
    record = await request.app.state.scores.get_for_player(player_id, puzzle_date)
    if record is None:
        raise NotFoundError(f"No score for player '{player_id}' on {puzzle_date.isoformat()}")
    return JSONResponse(score_json(record))


async def claim_score(request: Request) -> JSONResponse:
    """POST /scores/{score_id}/claim - lost claims are reported, not raised."""
    req = await _parse_body(request, ClaimScoreRequest)
    outcome = await request.app.state.claims.claim(request.path_params["score_id"], req.player_id)
    return JSONResponse({"outcome": outcome.value, "succeeded": outcome.succeeded})


async def get_rank(request: Request) -> JSONResponse:
    """GET /rank?puzzle_date&score&time_seconds - rank is null when the store cannot answer."""
    puzzle_date = _query_date(request)
    score = _query_int(request, "score", maximum=MAX_SCORE)
    time_seconds = _query_int(request, "time_seconds", maximum=MAX_TIME_SECONDS)
    try:
        rank = await request.app.state.ranking.rank(puzzle_date, score, time_seconds)
    except ScoreboardError:
        logger.warning("rank unavailable", puzzle_date=puzzle_date.isoformat(), exc_info=True)
        rank = None
    return JSONResponse({"rank": rank})


async def get_percentile(request: Request) -> JSONResponse:
    """GET /percentile?puzzle_date&score - 50 when the store cannot answer."""
    puzzle_date = _query_date(request)
    score = _query_int(request, "score", maximum=MAX_SCORE)
    percentile = await request.app.state.ranking.safe_percentile(puzzle_date, score)
    return JSONResponse({"percentile": percentile})


async def get_leaderboard(request: Request) -> JSONResponse:
    """GET /leaderboard/{puzzle_date}?from&page_size&player_id&friend_ids

    When player_id is given but not on the global page, the response adds
    player_standing with that player's own rank so they always see it.
    """
    settings = request.app.state.settings
    puzzle_date = parse_puzzle_date(request.path_params["puzzle_date"])
    start = _query_int(request, "from", 0, maximum=MAX_LEADERBOARD_OFFSET)
    page_size = _query_int(
        request,
        "page_size",
        settings.leaderboard_default_page_size,
        minimum=1,
        maximum=MAX_REQUESTED_PAGE_SIZE,
    )
    player_id = request.query_params.get("player_id") or None

    friend_ids: list[str] | None = None
    raw_friends = request.query_params.get("friend_ids")
    if raw_friends is not None:
        try:
            friend_ids = parse_string_list(raw_friends, allow_empty=True)
        except ValueError as exc:
            raise ScoreValidationError(str(exc)) from exc
        if len(friend_ids) > MAX_FRIEND_IDS:
            raise ScoreValidationError(f"At most {MAX_FRIEND_IDS} friend ids are allowed")
        if player_id is not None:
            friend_ids.append(player_id)

    page = await request.app.state.leaderboard.page(puzzle_date, start, page_size, player_id, friend_ids)
    body: dict[str, Any] = {
        "puzzle_date": puzzle_date.isoformat(),
        "entries": [
            {
                "rank": e.rank,
                "score_id": e.score_id,
                "player_id": e.player_id,
                "display_name": e.display_name,
                "score": e.score,
                "time_seconds": e.time_seconds,
                "mistakes": e.mistakes,
                "correct_placements": e.correct_placements,
                "is_current_player": e.is_current_player,
            }
            for e in page.entries
        ],
        "has_more": page.has_more,
        "next_from": page.next_from,
    }
    if player_id is not None and friend_ids is None and page.find_player(player_id) is None:
        body["player_standing"] = await _player_standing(request, player_id, puzzle_date)
    return JSONResponse(body)


async def _player_standing(request: Request, player_id: str, puzzle_date: date) -> dict[str, Any] | None:
    own = await request.app.state.scores.get_for_player(player_id, puzzle_date)
    if own is None:
        return None
    standing = await request.app.state.ranking.standing(puzzle_date, own.score, own.time_seconds)
    return {"score_id": own.id, "score": own.score, "rank": standing.rank, "percentile": standing.percentile}


async def reconcile(request: Request) -> JSONResponse:
    """POST /players/{player_id}/reconcile - run sign-in reconciliation for the player."""
    req = await _parse_body(request, ReconcileRequest)
    local_scores = None
    if req.local_score is not None:
        local_scores = FixedLocalScore(
            LocalScoreRef(
                score=req.local_score.score,
                time_seconds=req.local_score.time_seconds,
                mistakes=req.local_score.mistakes,
                correct_placements=req.local_score.correct_placements,
                score_id=req.local_score.score_id,
            ),
        )
    outcome = await request.app.state.reconciler.reconcile(
        request.path_params["player_id"],
        local_scores,
        puzzle_date=req.puzzle_date,
    )
    return JSONResponse(outcome_json(outcome))


async def get_display_name(request: Request) -> JSONResponse:
    """GET /players/{player_id}/display-name"""
    player_id = request.path_params["player_id"]
    profile = await request.app.state.profiles.get_profile(player_id)
    if profile is None:
        raise NotFoundError(f"No profile for player '{player_id}'")
    return JSONResponse(profile.model_dump())


async def set_display_name(request: Request) -> JSONResponse:
    """PUT /players/{player_id}/display-name"""
    req = await _parse_body(request, DisplayNameRequest)
    display_name = validate_display_name(req.display_name)
    profile = await request.app.state.profiles.set_display_name(request.path_params["player_id"], display_name)
    return JSONResponse(profile.model_dump())


def validation_error_json(exc: ValidationError) -> list[dict[str, Any]]:
    return [{"loc": list(err["loc"]), "msg": err["msg"]} for err in exc.errors()]
