"""Structured logging configuration with structlog.

Usage:
    # At application startup
    from taskboard.observability import configure_logging

    configure_logging(environment="production")   # JSON output
    configure_logging(environment="development")  # Console output

    # Then use structlog normally
    import structlog
    log = structlog.get_logger(__name__)
    log.info("move_committed", task_id=3)
"""

import logging
import os
import sys
from typing import List, Optional

import structlog
from structlog.typing import Processor

# Environment variables
LOG_LEVEL_ENV = "LOG_LEVEL"
LOG_FORMAT_ENV = "TASKBOARD_LOG_FORMAT"
DEFAULT_LOG_LEVEL = "WARNING"
DEFAULT_ENVIRONMENT = "development"


def _get_log_level() -> int:
    """Get the configured log level from environment.

    Returns:
        The logging level integer (e.g., logging.INFO).
    """
    level_name = os.getenv(LOG_LEVEL_ENV, DEFAULT_LOG_LEVEL).upper()
    return getattr(logging, level_name, logging.WARNING)


def configure_logging(environment: Optional[str] = None) -> None:
    """Configure structlog for the application.

    Should be called once at startup. Log lines go to stderr so they never
    mix with command output.

    Args:
        environment: 'production' for JSON output, 'development' for console.
                    If None, uses TASKBOARD_LOG_FORMAT or 'development'.
    """
    if environment is None:
        environment = os.getenv(LOG_FORMAT_ENV, DEFAULT_ENVIRONMENT)

    shared_processors: List[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if environment == "production":
        final_processor: Processor = structlog.processors.JSONRenderer()
    else:
        final_processor = structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())

    structlog.configure(
        processors=shared_processors + [final_processor],
        wrapper_class=structlog.make_filtering_bound_logger(_get_log_level()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=False,
    )
