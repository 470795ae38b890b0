"""Resilience configuration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable, TypeVar

from pydantic import BaseModel, ConfigDict, Field, InstanceOf

from resilify.errors.exceptions import ConfigurationError, ResilifyError
from resilify.resilience.backoff import BackoffStrategy
from resilify.resilience.circuit_breaker import CircuitBreakerConfig
from resilify.resilience.hooks import ResilienceHooks

if TYPE_CHECKING:
    from resilify.resilience.executor import ResilientFunction


T = TypeVar("T")


def always_retry(error: Exception) -> bool:
    """Default retry predicate: every failure is retryable."""
    return True


def retry_on_exceptions(*types: type[Exception]) -> Callable[[Exception], bool]:
    """Build a predicate that retries only the given exception types.

    Example:
        >>> retry_on = retry_on_exceptions(ConnectionError, TimeoutError)
    """
    if not types:
        raise ConfigurationError("at least one exception type is required")

    def predicate(error: Exception) -> bool:
        return isinstance(error, types)

    return predicate


def retry_if_retryable(error: Exception) -> bool:
    """Retry resilify errors flagged retryable and any foreign exception."""
    if isinstance(error, ResilifyError):
        return error.retryable
    return True


class ResilienceConfig(BaseModel):
    """Immutable configuration attached to a wrapped callable.

    One instance is shared, read-only, by every invocation of the
    callable it was attached to.

    Example:
        >>> config = ResilienceConfig(
        ...     name="fetch_user",
        ...     retries=3,
        ...     timeout_ms=2_000,
        ...     backoff=ExponentialBackoff(base_delay_ms=100, max_delay_ms=1_000),
        ...     circuit_breaker=CircuitBreakerConfig(failure_threshold=5),
        ... )
        >>> fetch_user = config.wrap(fetch_user)
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str | None = Field(
        default=None,
        description="Identity reported to hooks and metrics",
    )
    retries: int = Field(
        default=0,
        ge=0,
        description="Extra attempts after the first failure",
    )
    timeout_ms: float | None = Field(
        default=None,
        ge=0,
        description="Per-attempt deadline in milliseconds; None or 0 disables it",
    )
    backoff: BackoffStrategy | None = Field(
        default=None,
        description="Delay strategy between attempts",
    )
    retry_on: Callable[[Exception], bool] = Field(
        default=always_retry,
        description="Predicate deciding whether a failure is retried",
    )
    circuit_breaker: CircuitBreakerConfig | None = Field(
        default=None,
        description="Enables a per-callable circuit breaker",
    )
    hooks: InstanceOf[ResilienceHooks] | None = Field(
        default=None,
        description="Observability callbacks",
    )
    use_cancel_signal: bool = Field(
        default=False,
        description="Install a fresh cancellation signal as the active signal per attempt",
    )

    def wrap(self, func: Callable[..., Any]) -> "ResilientFunction":
        """Wrap a function with this configuration.

        Args:
            func: Sync or async callable.

        Returns:
            Async callable with resilience applied.
        """
        from resilify.resilience.executor import with_resilience

        return with_resilience(func, self)

    async def execute(self, func: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Run ``func`` once under this configuration.

        Each call builds a fresh circuit breaker, so breaker state only
        carries over between calls made through ``wrap``.
        """
        return await self.wrap(func)(*args, **kwargs)
