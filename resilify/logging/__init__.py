"""Logging module for resilify.

Provides structured logging with Rich console support.
"""

from resilify.logging.logger import (
    LogLevel,
    ResilifyLogger,
    configure_logging,
    disable_logging,
    enable_logging,
    get_logger,
)

__all__ = [
    "LogLevel",
    "ResilifyLogger",
    "configure_logging",
    "disable_logging",
    "enable_logging",
    "get_logger",
]
