"""
Structured Logging Module
=========================

Provides structured logging using structlog with JSON output for production
and colored console output for development.

Usage:
    from app.utils.logger import get_logger

    logger = get_logger(__name__)
    logger.info("Action executed", session_id="abc", action="click")
"""

import logging
import re
import sys
from typing import Any, Optional

import structlog
from structlog.types import Processor

from app import __version__
from app.config import get_settings

_SCREENSHOT_DATA_URI = re.compile(r"data:image/\w+;base64,[A-Za-z0-9+/=]+")


def _redact(value: Any) -> Any:
    if isinstance(value, str):
        return _SCREENSHOT_DATA_URI.sub(
            lambda m: f"<screenshot {len(m.group(0))} chars>", value
        )
    if isinstance(value, dict):
        return {k: _redact(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_redact(v) for v in value]
    return value


def redact_screenshots(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Replace inline screenshot data URIs with a short placeholder.

    Model inputs carry full-size base64 screenshots; verbose request
    logging would otherwise write each of them out.
    """
    return {key: _redact(value) for key, value in event_dict.items()}


def add_app_context(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """
    Add application context to log entries.

    Args:
        logger: The wrapped logger object.
        method_name: The name of the log method called.
        event_dict: The event dictionary to process.

    Returns:
        The modified event dictionary.
    """
    event_dict["app"] = "browser-operator"
    event_dict["version"] = __version__
    return event_dict


def setup_logging(level: Optional[str] = None, json_logs: Optional[bool] = None) -> None:
    """
    Configure structured logging for the application.

    Sets up structlog with appropriate processors based on the environment:
    - Development: Colored console output with pretty printing
    - Production: JSON output for log aggregation

    Args:
        level: Log level name; defaults to the configured server log level.
        json_logs: Force JSON output; defaults to ``not debug``.
    """
    settings = get_settings()
    level = level or settings.server.log_level
    if json_logs is None:
        json_logs = not settings.server.debug

    # Shared processors for all environments
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
        add_app_context,
        redact_screenshots,
    ]

    if not json_logs:
        processors: list[Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.rich_traceback,
            ),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    # Also configure standard library logging for third-party libs
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )

    # Reduce noise from common libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("slack_sdk").setLevel(logging.WARNING)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: The name for the logger, typically __name__.

    Returns:
        A bound structlog logger instance.
    """
    return structlog.get_logger(name)


class LogContext:
    """
    Context manager for adding temporary context to logs.

    Usage:
        with LogContext(session_id="abc123"):
            logger.info("Processing")  # Will include session_id
    """

    def __init__(self, **kwargs: Any) -> None:
        self.context = kwargs

    def __enter__(self) -> "LogContext":
        """Enter the context, binding variables."""
        structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        """Exit the context, unbinding variables."""
        structlog.contextvars.unbind_contextvars(*self.context.keys())
