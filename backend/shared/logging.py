"""Structured logging for the scoreboard service.

Events are structlog key-value records rendered through stdlib handlers:
one stdout handler, plus a per-run log file when a log directory is configured.
Every event carries the emitting service name.

Environment variables:
- LOG_FORMAT: "json" for log aggregation, "console" or unset for readable output.
- LOG_LEVEL: "DEBUG", "INFO" (default), "WARNING", "ERROR", or "CRITICAL".
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, NamedTuple

import structlog

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

LOG_FILE_TIMESTAMP_FORMAT = "%Y-%m-%d_%H-%M-%S"

_LOG_FORMATS = {"json", "console", ""}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LogOptions(NamedTuple):
    json_mode: bool
    level: int


def read_log_options() -> LogOptions:
    """Read LOG_FORMAT and LOG_LEVEL, raising ValueError for unknown values."""
    log_format = os.environ.get("LOG_FORMAT", "").lower()
    if log_format not in _LOG_FORMATS:
        raise ValueError(f"Invalid LOG_FORMAT={log_format!r}. Must be 'json', 'console', or unset.")
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    if level_name not in _LOG_LEVELS:
        raise ValueError(f"Invalid LOG_LEVEL={level_name!r}. Must be one of {', '.join(sorted(_LOG_LEVELS))}.")
    return LogOptions(json_mode=log_format == "json", level=getattr(logging, level_name))


def _serialize_enums(
    _logger: object,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Log claim outcomes and reconcile actions by value."""
    for key, value in event_dict.items():
        if isinstance(value, Enum):
            event_dict[key] = value.value
    return event_dict


def _add_service(service: str):
    def processor(
        _logger: object,
        _method_name: str,
        event_dict: MutableMapping[str, Any],
    ) -> MutableMapping[str, Any]:
        event_dict.setdefault("service", service)
        return event_dict

    return processor


def _is_test() -> bool:
    return "pytest" in sys.modules


def _formatter(*, json_mode: bool, colors: bool) -> logging.Formatter:
    renderer = structlog.processors.JSONRenderer() if json_mode else structlog.dev.ConsoleRenderer(colors=colors)
    return structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            structlog.processors.format_exc_info,
            renderer,
        ],
    )


def setup_logging(log_dir: Path | str | None = None, service: str = "scoreboard") -> Path | None:
    """Configure structlog and the root logger. Returns the log file path, if one was opened.

    No file is opened under pytest; tests read events through caplog instead.
    """
    options = read_log_options()

    # format_exc_info runs in the handler formatter so file output gets one traceback.
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _serialize_enums,
            _add_service(service),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=False,
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(options.level)
    root_logger.handlers.clear()
    # asyncio reports every slow callback at DEBUG.
    logging.getLogger("asyncio").setLevel(max(options.level, logging.INFO))

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(_formatter(json_mode=options.json_mode, colors=sys.stdout.isatty()))
    root_logger.addHandler(stdout_handler)

    if log_dir is None or _is_test():
        return None

    dir_path = Path(log_dir)
    dir_path.mkdir(parents=True, exist_ok=True)
    file_path = dir_path / f"{datetime.now(tz=UTC).strftime(LOG_FILE_TIMESTAMP_FORMAT)}.log"
    file_handler = logging.FileHandler(file_path)
    file_handler.setFormatter(_formatter(json_mode=options.json_mode, colors=False))
    root_logger.addHandler(file_handler)
    return file_path
