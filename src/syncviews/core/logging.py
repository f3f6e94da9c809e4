"""
Structured logging for syncviews.

Thin structlog configuration shared by every module of the package. Library
code only ever calls :func:`get_logger`; applications (and the test suite)
call :func:`configure_logging` once at startup.

Manifesto:
    A synchronization engine is hard to debug from the outside: one source
    mutation fans out into several view reactions. Event-style structured
    logs (``mapped_view.replace``, ``filtered_view.add``) keyed by view and
    record ``cid`` make that fan-out readable.

    - **Structured:** key/value events, JSON for aggregation
    - **Quiet by default:** reactions log at DEBUG and only when tracing
    - **Flexible:** colored console output for development

Architecture:
    ::

        configure_logging(level="INFO", json_format=None, service="syncviews")
            │
            ▼
        structlog processor chain:
          1. TimeStamper (ISO)
          2. merge_contextvars
          3. add_log_level / add_logger_name
          4. StackInfoRenderer / set_exc_info
          5. service metadata
          6. JSONRenderer (or ConsoleRenderer for a tty)

Examples:
    >>> from syncviews.core.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", json_format=False)
    >>> logger = get_logger(__name__)
    >>> logger.debug("filtered_view.add", view="c7", record="c3")

Tags:
    logging, structlog, observability, syncviews

Doc-Types:
    - API Reference
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

_SERVICE_NAME = "syncviews"


def _add_service_metadata(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Add service-level metadata to all logs."""
    event_dict.setdefault("service.name", _SERVICE_NAME)
    return event_dict


def configure_logging(
    level: str = "INFO",
    json_format: bool | None = None,
    service: str = "syncviews",
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_format: True for JSON, False for console, None for auto (JSON if not tty)
        service: Service name to include in logs
        add_timestamp: Include ISO timestamp in logs
    """
    global _SERVICE_NAME
    _SERVICE_NAME = service

    if json_format is None:
        json_format = not sys.stdout.isatty()

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        _add_service_metadata,
    ]

    if add_timestamp:
        shared_processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        renderer: Processor = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=shared_processors + [renderer],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper()),
    )


def configure_from_settings(settings: Any | None = None) -> None:
    """Configure logging from :class:`~syncviews.core.settings.SyncViewSettings`."""
    if settings is None:
        from syncviews.core.settings import get_settings

        settings = get_settings()
    json_format = {"json": True, "console": False}.get(settings.log_format)
    configure_logging(
        level=settings.log_level,
        json_format=json_format,
        service=settings.service_name,
    )


def get_logger(name: str | None = None) -> Any:
    """Get a structured logger.

    Args:
        name: Logger name (usually __name__)
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context to include in all subsequent logs."""
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove specific keys from logging context."""
    structlog.contextvars.unbind_contextvars(*keys)


def clear_context() -> None:
    """Clear all bound context."""
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Context manager for scoped logging context.

    Example:
        with LogContext(view="mc1"):
            source.reset(records)
    """

    def __init__(self, **kwargs: Any):
        self._context = kwargs

    def __enter__(self) -> LogContext:
        bind_context(**self._context)
        return self

    def __exit__(self, *args) -> None:
        unbind_context(*self._context.keys())


__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "bind_context",
    "unbind_context",
    "clear_context",
    "LogContext",
]
