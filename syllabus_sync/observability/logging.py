"""
Structured logging configuration using structlog.

JSON logs in production, colored console logs in development.
Request-scoped fields (request_id, route) are bound through
contextvars so every line emitted while serving a request carries them.
Syllabus text is never logged; callers log lengths and counts only.
"""

import logging
import sys
from typing import TextIO

import structlog
from structlog.types import Processor

from syllabus_sync.config.settings import get_settings


def setup_logging(level: str | None = None, stream: TextIO | None = None) -> None:
    """
    Configure structured logging for the application.

    Args:
        level: Optional override for the configured LOG_LEVEL.
        stream: Output stream, stdout by default. The CLI logs to stderr
            so JSON written to stdout stays parseable.

    Usage:
        setup_logging()
        logger = structlog.get_logger()
        logger.info("Parsed syllabus", events=12, source="heuristics")
    """
    settings = get_settings()
    log_level = level or settings.log_level

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_production:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=stream or sys.stdout,
        level=getattr(logging, log_level),
    )

    # The model client talks through httpx; keep its per-request chatter quiet
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name (defaults to module name)

    Returns:
        Bound logger instance
    """
    return structlog.get_logger(name)


def bind_context(**kwargs) -> None:
    """
    Bind context variables to all subsequent log messages.

    Args:
        **kwargs: Key-value pairs to bind (e.g. request_id, route)
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
