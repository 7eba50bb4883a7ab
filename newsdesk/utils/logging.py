"""Structured logging utilities using structlog for run context and tracing."""

import os
import sys
import uuid
from typing import Any, Optional
import structlog
from structlog.processors import JSONRenderer
from structlog.contextvars import merge_contextvars

# Console rendering only on a TTY with LOG_FORMAT=console
IS_TTY = sys.stderr.isatty()
LOG_FORMAT = os.getenv("LOG_FORMAT", "console").lower()
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()


def configure_structured_logging() -> None:
    """
    Configure structured logging with appropriate processors and renderers.

    Uses:
    - Console renderer for development (colorized, human-readable)
    - JSON renderer for production (structured, machine-readable)
    - Context binding for run_id and component
    """
    # Shared by both renderers
    processors = [
        merge_contextvars,  # Context bound via contextvars
        structlog.processors.add_log_level,  # Level name
        structlog.processors.TimeStamper(fmt="iso"),  # ISO timestamp
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,  # Exceptions as text
    ]

    if IS_TTY and LOG_FORMAT == "console":
        # Development: colorized console output
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        # Production: JSON lines
        processors.append(JSONRenderer())

    # stderr keeps stdout free for progress events
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(LOG_LEVEL),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def get_structured_logger(
    name: str,
    run_id: Optional[str] = None,
    **additional_context: Any,
) -> structlog.BoundLogger:
    """
    Get a structured logger with bound context.

    Args:
        name: Component name (bound as ``component``)
        run_id: Optional ingestion run ID to bind
        **additional_context: Additional context to bind

    Returns:
        Configured BoundLogger instance with context

    Example:
        >>> log = get_structured_logger("IngestionCoordinator", run_id="abc-123")
        >>> log.info("item_saved", url="https://example.com", status="pending")
    """
    bound = structlog.get_logger(name).bind(component=name)

    # Correlates every line of one ingestion run
    if run_id:
        bound = bound.bind(run_id=run_id)

    if additional_context:
        bound = bound.bind(**additional_context)

    return bound


def new_run_id() -> str:
    """Generate an ID correlating all log lines of one ingestion run."""
    return str(uuid.uuid4())


# Configure on module import
configure_structured_logging()


__all__ = [
    "get_structured_logger",
    "new_run_id",
    "configure_structured_logging",
]
