"""Resilience module for resilify.

Provides the resilience decorator together with its building blocks:
backoff strategies, circuit breakers, timeouts, cooperative cancellation
and observability hooks.
"""

from resilify.resilience.backoff import (
    BackoffStrategy,
    ExponentialBackoff,
    FixedBackoff,
    compute_backoff_ms,
)
from resilify.resilience.cancellation import (
    CancellationController,
    CancellationSignal,
    current_signal,
    run_with_signal,
    signal_scope,
    sleep,
)
from resilify.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from resilify.resilience.config import (
    ResilienceConfig,
    always_retry,
    retry_if_retryable,
    retry_on_exceptions,
)
from resilify.resilience.executor import (
    AttemptOrchestrator,
    ResilientFunction,
    resilient,
    with_resilience,
)
from resilify.resilience.hooks import (
    AttemptEvent,
    CircuitEvent,
    FailureEvent,
    HookEvent,
    ResilienceHooks,
    RetryEvent,
    SuccessEvent,
)
from resilify.resilience.timeout import TimeoutController

__all__ = [
    # Backoff
    "BackoffStrategy",
    "ExponentialBackoff",
    "FixedBackoff",
    "compute_backoff_ms",
    # Cancellation
    "CancellationController",
    "CancellationSignal",
    "current_signal",
    "run_with_signal",
    "signal_scope",
    "sleep",
    # Circuit Breaker
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    # Config
    "ResilienceConfig",
    "always_retry",
    "retry_if_retryable",
    "retry_on_exceptions",
    # Executor
    "AttemptOrchestrator",
    "ResilientFunction",
    "resilient",
    "with_resilience",
    # Hooks
    "AttemptEvent",
    "CircuitEvent",
    "FailureEvent",
    "HookEvent",
    "ResilienceHooks",
    "RetryEvent",
    "SuccessEvent",
    # Timeout
    "TimeoutController",
]
