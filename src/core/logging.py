"""
Structured logging configuration using structlog.

Development runs get a colored console renderer, production runs get
one JSON object per line.

Usage:
    from core.logging import configure_logging, get_logger

    configure_logging(json_logs=False)  # Development
    configure_logging(json_logs=True)   # Production

    logger = get_logger(__name__)
    logger.debug("Ranked suggestions", item_type="event", admitted=12)
"""

import logging
import sys
from typing import TYPE_CHECKING, Any, ContextManager, Optional

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from config.settings import Settings


def configure_logging(
    json_logs: bool = False,
    log_level: str = "INFO",
    include_timestamp: bool = True,
) -> None:
    """
    Configure structured logging for the application.

    Args:
        json_logs: If True, output JSON format (for production).
                   If False, output colored console format (for development).
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        include_timestamp: Whether to include timestamp in logs
    """
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if include_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_logs:
        shared_processors.append(structlog.processors.format_exc_info)
        shared_processors.append(structlog.processors.JSONRenderer())
    else:
        shared_processors.append(structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        ))

    structlog.configure(
        processors=shared_processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # force=True so a second call (tests, reloads) still applies the level
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
        force=True,
    )


def configure_from_settings(settings: "Settings") -> None:
    """Configure logging from an application Settings instance."""
    configure_logging(
        json_logs=settings.use_json_logs,
        log_level="DEBUG" if settings.debug else settings.log_level,
    )


def get_logger(name: Optional[str] = None) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__). If None, returns root logger.

    Returns:
        A structlog BoundLogger instance
    """
    return structlog.get_logger(name)


def bound_context(**kwargs: Any) -> ContextManager[None]:
    """
    Bind context variables to every log line emitted inside the block.

    Previous values are restored on exit, so nothing leaks past the block.

    Usage:
        with bound_context(feed_mode="suggested"):
            logger.debug("Ranked pool")  # includes feed_mode
    """
    return structlog.contextvars.bound_contextvars(**kwargs)


class LoggerMixin:
    """
    Mixin class that provides a logger property.

    Usage:
        class FeedRanker(LoggerMixin):
            def rank(self):
                self.logger.debug("Ranking")
    """

    @property
    def logger(self) -> structlog.stdlib.BoundLogger:
        return get_logger(self.__class__.__name__)
