"""resilify - retries, timeouts and circuit breaking for any callable.

Wrap a sync or async function once and call it as before; every call
gets bounded retries with backoff, a per-attempt timeout, a circuit
breaker and observability hooks.

Example:
    >>> from resilify import resilient, FixedBackoff
    >>> @resilient(retries=2, timeout_ms=500, backoff=FixedBackoff(delay_ms=100))
    ... async def fetch_user(user_id: int) -> dict:
    ...     ...
    >>> user = await fetch_user(42)
"""

__version__ = "0.1.0"

# Error exports
from resilify.errors.exceptions import (
    CancelledError,
    CircuitOpenError,
    ConfigurationError,
    ResilifyError,
    TimeoutError,
)

# Resilience exports
from resilify.resilience import (
    AttemptEvent,
    AttemptOrchestrator,
    CancellationController,
    CancellationSignal,
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitEvent,
    CircuitState,
    ExponentialBackoff,
    FailureEvent,
    FixedBackoff,
    HookEvent,
    ResilienceConfig,
    ResilienceHooks,
    ResilientFunction,
    RetryEvent,
    SuccessEvent,
    TimeoutController,
    always_retry,
    compute_backoff_ms,
    current_signal,
    resilient,
    retry_if_retryable,
    retry_on_exceptions,
    run_with_signal,
    signal_scope,
    sleep,
    with_resilience,
)

# Outbound calls and metrics
from resilify.http import resilient_request
from resilify.metrics import CallMetrics, FunctionResult

# Logging
from resilify.logging import configure_logging, get_logger

__all__ = [
    # Version
    "__version__",
    # Errors
    "CancelledError",
    "CircuitOpenError",
    "ConfigurationError",
    "ResilifyError",
    "TimeoutError",
    # Decorator
    "AttemptOrchestrator",
    "ResilienceConfig",
    "ResilientFunction",
    "resilient",
    "with_resilience",
    # Backoff
    "ExponentialBackoff",
    "FixedBackoff",
    "compute_backoff_ms",
    # Retry predicates
    "always_retry",
    "retry_if_retryable",
    "retry_on_exceptions",
    # Circuit breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    # Timeout
    "TimeoutController",
    # Cancellation
    "CancellationController",
    "CancellationSignal",
    "current_signal",
    "run_with_signal",
    "signal_scope",
    "sleep",
    # Hooks
    "AttemptEvent",
    "CircuitEvent",
    "FailureEvent",
    "HookEvent",
    "ResilienceHooks",
    "RetryEvent",
    "SuccessEvent",
    # HTTP
    "resilient_request",
    # Metrics
    "CallMetrics",
    "FunctionResult",
    # Logging
    "configure_logging",
    "get_logger",
]
