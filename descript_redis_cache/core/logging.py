"""
Structured logging configuration and the cache event logger.

This module provides centralized structlog configuration with JSON output
in production and console rendering in development, and
``StructlogEventLogger``, the logger sink turning cache lifecycle events
into structured log records.
"""

import logging
import sys
from typing import Any, Optional

import structlog
from structlog.types import Processor

from descript_redis_cache.cache.events import CacheEvent, EventType, LifecycleEvent
from descript_redis_cache.core.config import CacheSettings, get_settings

EVENT_LOG_LEVELS: dict[EventType, int] = {
    EventType.INITIALIZED: logging.INFO,
    EventType.ERROR: logging.ERROR,
    EventType.READ_START: logging.DEBUG,
    EventType.READ_TIMEOUT: logging.INFO,
    EventType.READ_ERROR: logging.ERROR,
    EventType.READ_KEY_NOT_FOUND: logging.DEBUG,
    EventType.JSON_PARSING_FAILED: logging.ERROR,
    EventType.READ_DONE: logging.DEBUG,
    EventType.WRITE_START: logging.DEBUG,
    EventType.JSON_STRINGIFY_FAILED: logging.ERROR,
    EventType.WRITE_ERROR: logging.ERROR,
    EventType.WRITE_FAILED: logging.WARNING,
    EventType.WRITE_DONE: logging.DEBUG,
}


def configure_logging(settings: Optional[CacheSettings] = None) -> None:
    """
    Configure structured logging.

    Sets up structlog with console rendering for development and JSON for
    other environments, and routes output through the standard library
    logging module at the configured level.

    Args:
        settings: Settings to use, loaded from the environment if None
    """
    settings = settings or get_settings()

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if settings.is_development:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level),
    )

    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger instance
    """
    return structlog.get_logger(name)


def event_fields(event: CacheEvent, include_data: bool = False) -> dict[str, Any]:
    """
    Flatten a lifecycle event into structured log fields.

    Args:
        event: Lifecycle event
        include_data: Include cached payloads in the fields

    Returns:
        Dictionary of log fields
    """
    fields: dict[str, Any] = {}
    for name, value in event:
        if name == "type":
            continue
        if name == "timers":
            fields["total_ms"] = value.total_ms
            if value.network_ms is not None:
                fields["network_ms"] = value.network_ms
        elif name == "error":
            fields["error"] = str(value)
            fields["error_type"] = type(value).__name__
        elif name == "options":
            fields["options"] = value.model_dump(mode="json")
        elif name == "data":
            if include_data:
                fields["data"] = value
        else:
            fields[name] = value
    return fields


class StructlogEventLogger:
    """
    Logger sink writing cache lifecycle events through structlog.

    Routine outcomes (starts, hits, misses) are logged at debug level,
    timeouts at info, and store or serialization failures at error.
    """

    def __init__(
        self,
        logger: Optional[structlog.stdlib.BoundLogger] = None,
        include_data: bool = False,
    ):
        """
        Initialize event logger.

        Args:
            logger: structlog logger to write to (module logger if None)
            include_data: Include cached payloads in log records
        """
        self._logger = logger or get_logger("descript_redis_cache.events")
        self._include_data = include_data

    def log(self, event: LifecycleEvent) -> None:
        self._logger.log(
            EVENT_LOG_LEVELS[event.type],
            event.type.value,
            **event_fields(event, self._include_data),
        )
