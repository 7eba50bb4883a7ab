"""Logging configuration using loguru with automatic dev/prod detection."""

import sys
from loguru import logger

from newsdesk.config.settings import settings


def configure_logging() -> None:
    """
    Configure loguru based on environment settings.

    Behavior:
    - Development (TTY + console format): Colorized, human-readable output
    - Production (non-TTY or json format): JSON-structured logs to stderr
    - Respects LOG_LEVEL from settings

    Logs go to stderr so that stdout stays free for the CLI's
    one-JSON-object-per-line progress stream.
    """
    # Drop loguru's default stderr handler
    logger.remove()
    logger.configure(extra={"component": "newsdesk"})

    # Interactive terminal check
    is_tty = sys.stderr.isatty()
    use_console_format = settings.log_format.lower() == "console"

    if is_tty and use_console_format:
        # Development: colorized, human-readable
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{extra[component]}</cyan> | <level>{message}</level>",
            level=settings.log_level,
            colorize=True,
        )
    else:
        # Production: one JSON object per line
        logger.add(
            sys.stderr,
            format="{message}",
            level=settings.log_level,
            serialize=True,  # JSON output
            diagnose=False,  # No variable values in tracebacks
        )


def get_logger(component: str):
    """
    Get a logger instance bound to a specific component name.

    Args:
        component: Component/module name for log context

    Returns:
        Logger instance with component context

    Example:
        >>> log = get_logger("fetcher")
        >>> log.info("Fetching article")
    """
    return logger.bind(component=component)


# Configure logging on module import
configure_logging()

# Re-exported so callers can use the configured logger directly
__all__ = ["logger", "get_logger", "configure_logging"]
