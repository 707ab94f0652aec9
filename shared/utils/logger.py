"""
Centralized logging configuration using structlog

Every service logs structured events (snake_case event name + key/value
context). Standard library loggers (uvicorn, httpx) are routed through the
same handler so one stream carries everything.
"""

import sys
import logging
from typing import Iterable, Optional

import structlog

from ..config.settings import settings

# One INFO line per feed request is noise at a 2s poll rate
NOISY_LOGGERS = ("httpx", "httpcore", "uvicorn.access")


def _pick_renderer(format_type: str):
    if format_type == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=not settings.is_production)


def configure_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
    service_name: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS
) -> None:
    """
    Configure logging for the process

    Safe to call again (e.g. once per app lifespan in tests); the root
    handler is replaced, not duplicated.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: 'json' or 'text'
        service_name: Bound as `service` on every event
        quiet: stdlib loggers capped at WARNING unless DEBUG is requested
    """
    level_name = (log_level or settings.log_level).upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
        force=True,
    )
    for name in quiet:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            _pick_renderer(log_format or settings.log_format),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    structlog.contextvars.clear_contextvars()
    if service_name:
        structlog.contextvars.bind_contextvars(service=service_name)


def get_logger(name: str, **initial_context) -> structlog.stdlib.BoundLogger:
    """
    Get a logger with optional bound context

    Example:
        logger = get_logger(__name__, component="poller")
        logger.info("spin_collected", number=7, color="red")
    """
    logger = structlog.get_logger(name)
    if initial_context:
        logger = logger.bind(**initial_context)
    return logger


class LoggerMixin:
    """
    Gives a class a logger named after it

    Example:
        class SnapshotStore(LoggerMixin):
            def __init__(self, path):
                self.logger = self.get_logger(path=str(path))
    """

    @classmethod
    def get_logger(cls, **context):
        return get_logger(cls.__name__, **context)
