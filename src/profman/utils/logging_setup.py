"""structlog configuration.

JSON lines in production, coloured console output everywhere else.
"""

from __future__ import annotations

import logging

import structlog


def configure_logging(env: str = "development", level: int = logging.INFO) -> None:
    """Configure structlog processors for the given environment."""
    renderer: structlog.typing.Processor
    if env == "production":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        cache_logger_on_first_use=False,
    )
