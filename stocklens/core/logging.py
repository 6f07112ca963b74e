"""Structured logging for the API and the report runner.

Events go to stderr so that report output written to stdout by the CLI stays
machine-readable. Two kinds of context are merged into every event: the HTTP
request id (set by ``RequestIdMiddleware``) and any values bound with
``report_context`` while a report is being built.
"""

import logging
import sys
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

import structlog

from stocklens.core.config import get_settings

request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)


def add_request_id(
    _logger: structlog.types.WrappedLogger,
    _method_name: str,
    event_dict: MutableMapping[str, Any],
) -> MutableMapping[str, Any]:
    """Copy the active request id, if any, into the event."""
    request_id = request_id_ctx.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


@contextmanager
def report_context(report: str, **values: Any) -> Iterator[None]:
    """Bind a report name (and extra values) to every event logged inside."""
    with structlog.contextvars.bound_contextvars(report=report, **values):
        yield


def _resolve_level(name: str) -> int:
    level = logging.getLevelNamesMapping().get(name.upper())
    if level is None:
        raise ValueError(f"Unknown log level: {name}")
    return level


def configure_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """Configure structlog once per process.

    Args:
        log_level: Level name overriding settings.log_level (e.g. "DEBUG").
        log_format: "json" or "console", overriding settings.log_format.

    Raises:
        ValueError: If the level name is not a standard logging level.
    """
    settings = get_settings()
    level = _resolve_level(log_level or settings.log_level)
    fmt = log_format or settings.log_format

    if fmt == "json":
        renderer: structlog.types.Processor = structlog.processors.JSONRenderer(sort_keys=True)
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_request_id,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )


def get_logger(name: str | None = None) -> structlog.typing.FilteringBoundLogger:
    """Module logger; ``name`` is usually ``__name__``."""
    logger: structlog.typing.FilteringBoundLogger = structlog.get_logger(name)
    return logger
