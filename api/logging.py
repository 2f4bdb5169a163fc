"""Structured logging configuration."""

import logging
import sys
from typing import Any

import structlog

from api.config import Settings, get_settings

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _renderer(settings: Settings) -> Any:
    if settings.is_production:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=not settings.is_test,
        exception_formatter=structlog.dev.plain_traceback,
    )


def setup_logging(settings: Settings | None = None) -> None:
    """Configure structlog and the standard library root logger."""
    settings = settings or get_settings()
    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        _renderer(settings),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_audit_context(audit_id: str) -> None:
    """Attach the audit id to every log line for the rest of the request."""
    structlog.contextvars.bind_contextvars(audit_id=audit_id)
