"""
Structured logging configuration using structlog.

Tax calculations log with keyword context (regime, country, zones, rates)
so that zone decisions and registry failures can be audited.
"""

from __future__ import annotations

import logging
import sys
from decimal import Decimal
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.typing import EventDict, Processor, WrappedLogger

    from core.config import Settings


def _plain(value: Any) -> Any:
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, dict):
        return {key: _plain(item) for key, item in value.items()}
    if isinstance(value, list | tuple):
        return [_plain(item) for item in value]
    return value


def render_decimals(_logger: WrappedLogger, _method_name: str, event_dict: EventDict) -> EventDict:
    """Render Decimal values (tax percentages) as plain strings, e.g. '0.19'."""
    return {key: _plain(value) for key, value in event_dict.items()}


def _renderer(json_format: bool) -> list[Processor]:
    if json_format:
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [
        structlog.dev.ConsoleRenderer(
            colors=False,
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_logging(
    *,
    json_format: bool = False,
    log_level: str = "INFO",
) -> None:
    """
    Configure structlog for the application.

    Logs go to stderr so that tax output written to stdout stays clean.

    Args:
        json_format: Use JSON format (for production) instead of console format.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    level = logging.getLevelName(log_level.upper())

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            render_decimals,
            *_renderer(json_format),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)


def configure_from_settings(settings: Settings) -> None:
    """Configure logging from application settings."""
    configure_logging(json_format=settings.log_json, log_level=settings.log_level)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, typically named after the calling module."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_context(**kwargs: object) -> None:
    """
    Bind context variables to the current context.

    Bound variables (e.g. an order id) are added to every log message
    emitted in the current context until cleared.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all context variables."""
    structlog.contextvars.clear_contextvars()
