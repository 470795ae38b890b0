"""Resilify exception hierarchy.

All exceptions inherit from ResilifyError for easy catching.
Each exception includes a `retryable` flag hinting whether the operation
can be retried. Failures raised by a wrapped callable itself are never
wrapped in these types; they propagate unchanged.
"""

from __future__ import annotations

import builtins


class ResilifyError(Exception):
    """Base exception for all resilify errors."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class ConfigurationError(ResilifyError, ValueError):
    """Invalid resilience configuration."""

    def __init__(self, message: str) -> None:
        super().__init__(message, retryable=False)


class TimeoutError(ResilifyError, builtins.TimeoutError):
    """Attempt did not finish before its deadline. Can be retried."""

    def __init__(self, timeout_ms: float, *, name: str | None = None) -> None:
        target = f"'{name}' " if name else ""
        super().__init__(
            f"Operation {target}timed out after {timeout_ms:g}ms",
            retryable=True,
        )
        self.timeout_ms = timeout_ms
        self.name = name


class CircuitOpenError(ResilifyError):
    """Raised when the circuit is open and the attempt is rejected."""

    def __init__(self, name: str, *, retry_after: float | None = None) -> None:
        message = f"Circuit breaker is open for '{name}'"
        if retry_after is not None:
            message += f". Retry after {retry_after:.1f}s"
        super().__init__(message, retryable=False)
        self.name = name
        self.retry_after = retry_after


class CancelledError(ResilifyError):
    """A cancellation signal was observed.

    Unlike asyncio.CancelledError this is a regular Exception, so it flows
    through retry predicates and hooks like any other attempt failure.
    """

    def __init__(self, reason: object | None = None) -> None:
        message = "Operation was cancelled"
        if reason is not None:
            message += f": {reason}"
        super().__init__(message, retryable=False)
        self.reason = reason
