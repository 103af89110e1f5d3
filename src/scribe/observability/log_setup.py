"""structlog configuration shared by every scribe entry point."""

from __future__ import annotations

import logging

import structlog

from scribe.config import settings


def configure_logging(level: str | None = None, env: str | None = None) -> None:
    """Render JSON in production and readable console lines elsewhere."""
    level_name = (level or settings.log_level).upper()
    numeric_level = logging.getLevelName(level_name)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer()
            if (env or settings.env) == "production"
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=False,
    )
