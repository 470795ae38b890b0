"""Error types for resilify."""

from resilify.errors.exceptions import (
    CancelledError,
    CircuitOpenError,
    ConfigurationError,
    ResilifyError,
    TimeoutError,
)

__all__ = [
    "CancelledError",
    "CircuitOpenError",
    "ConfigurationError",
    "ResilifyError",
    "TimeoutError",
]
