"""
Utility modules for the Browser Operator.

This package contains:
    - logger: Structured logging with structlog
"""

from app.utils.logger import LogContext, get_logger, setup_logging

__all__ = [
    "LogContext",
    "get_logger",
    "setup_logging",
]
