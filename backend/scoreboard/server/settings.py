"""Scoreboard server configuration via environment variables."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings

from scoreboard.dates import validate_timezone
from shared.validators import StringListEnvSettingsSource, parse_string_list

if TYPE_CHECKING:
    from pydantic_settings.sources.base import PydanticBaseSettingsSource


class ScoreboardSettings(BaseSettings):
    model_config = {"env_prefix": "SCOREBOARD_"}

    database_path: str = Field(default="backend/data/scores.db", min_length=1)
    log_dir: str | None = "backend/logs/scoreboard"
    cors_origins: list[str] = []

    # "Today's puzzle" is the calendar date in this timezone.
    puzzle_timezone: str = "UTC"

    # While a device's anonymous score has no id yet, re-read it this many times.
    reconcile_retry_attempts: int = Field(default=3, ge=0, le=10)
    reconcile_retry_delay_seconds: float = Field(default=1.0, ge=0, le=30)

    leaderboard_default_page_size: int = Field(default=50, ge=1)
    leaderboard_max_page_size: int = Field(default=100, ge=1)

    @field_validator("cors_origins", mode="before")
    @classmethod
    def validate_cors_origins(cls, v: str | list[str]) -> list[str]:
        return parse_string_list(v, allow_empty=True)

    @field_validator("puzzle_timezone")
    @classmethod
    def validate_puzzle_timezone(cls, v: str) -> str:
        return validate_timezone(v)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (init_settings, StringListEnvSettingsSource(settings_cls), dotenv_settings, file_secret_settings)
