"""Circuit breaker pattern implementation."""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable

from pydantic import BaseModel, ConfigDict, Field

from resilify.errors.exceptions import CircuitOpenError
from resilify.logging import get_logger
from resilify.resilience.hooks import CircuitEvent, HookEvent, ResilienceHooks, emit


class CircuitState(str, Enum):
    """Circuit breaker states."""

    CLOSED = "closed"        # Normal operation, attempts allowed
    OPEN = "open"            # Failure mode, attempts rejected
    HALF_OPEN = "half_open"  # Probing whether the callable recovered


class CircuitBreakerConfig(BaseModel):
    """Thresholds for a circuit breaker.

    Example:
        >>> config = CircuitBreakerConfig(failure_threshold=3, reset_timeout_ms=5000)
    """

    model_config = ConfigDict(frozen=True)

    failure_threshold: int = Field(
        default=5,
        ge=1,
        description="Consecutive failures needed to open the circuit",
    )
    reset_timeout_ms: float = Field(
        default=30_000,
        ge=0,
        description="Milliseconds the circuit stays open before probing",
    )


class CircuitBreaker:
    """Circuit breaker for a single wrapped callable.

    Tracks consecutive failures and blocks attempts once the threshold is
    reached. After ``reset_timeout_ms`` the next ``can_attempt()`` moves to
    HALF_OPEN and lets a trial call through; its outcome either closes
    the circuit or reopens it.

    States:
        - CLOSED: Normal operation, attempts pass through
        - OPEN: Too many failures, attempts rejected immediately
        - HALF_OPEN: Testing if the callable recovered

    Example:
        >>> breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=3))
        >>> if breaker.can_attempt():
        ...     ...
    """

    def __init__(
        self,
        config: CircuitBreakerConfig | None = None,
        *,
        name: str = "anonymous",
        hooks: ResilienceHooks | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize circuit breaker.

        Args:
            config: Thresholds (defaults used if None).
            name: Identity passed to circuit hooks.
            hooks: Hook set notified of state transitions.
            clock: Monotonic clock in seconds, injectable for tests.
        """
        self._config = config or CircuitBreakerConfig()
        self._name = name
        self._hooks = hooks
        self._clock = clock

        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at: float | None = None

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> CircuitBreakerConfig:
        return self._config

    @property
    def state(self) -> CircuitState:
        """Current circuit state, without triggering transitions."""
        return self._state

    @property
    def failure_count(self) -> int:
        """Failures counted since the circuit last closed."""
        return self._failure_count

    @property
    def opened_at(self) -> float | None:
        """Clock reading when the circuit opened; None unless OPEN."""
        return self._opened_at if self._state == CircuitState.OPEN else None

    @property
    def retry_after(self) -> float:
        """Seconds until an open circuit will accept a trial call."""
        if self._state != CircuitState.OPEN or self._opened_at is None:
            return 0.0
        elapsed = self._clock() - self._opened_at
        return max(0.0, self._config.reset_timeout_ms / 1000 - elapsed)

    def can_attempt(self) -> bool:
        """Check whether a new attempt may run.

        An OPEN circuit whose reset timeout elapsed transitions to
        HALF_OPEN here and admits the attempt.
        """
        if self._state == CircuitState.OPEN:
            if self.retry_after > 0:
                return False
            self._half_open()
        return True

    def guard(self) -> None:
        """Raise CircuitOpenError unless ``can_attempt()`` allows the attempt."""
        if not self.can_attempt():
            raise CircuitOpenError(self._name, retry_after=self.retry_after)

    def record_success(self) -> None:
        """Record a successful attempt."""
        if self._state != CircuitState.CLOSED:
            self._close()
        self._failure_count = 0

    def record_failure(self) -> None:
        """Record a failed attempt."""
        self._failure_count += 1

        if self._state == CircuitState.HALF_OPEN:
            # The trial call failed
            self._open()
        elif self._failure_count >= self._config.failure_threshold:
            self._open()

    def reset(self) -> None:
        """Manually reset circuit to closed state."""
        self._state = CircuitState.CLOSED
        self._failure_count = 0
        self._opened_at = None

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        get_logger().circuit_opened(self._name, self._failure_count)
        emit(self._hooks, HookEvent.CIRCUIT_OPEN, CircuitEvent(self._name))

    def _close(self) -> None:
        self.reset()
        get_logger().circuit_closed(self._name)
        emit(self._hooks, HookEvent.CIRCUIT_CLOSED, CircuitEvent(self._name))

    def _half_open(self) -> None:
        self._state = CircuitState.HALF_OPEN
        self._opened_at = None
        get_logger().circuit_half_opened(self._name)
        emit(self._hooks, HookEvent.CIRCUIT_HALF_OPEN, CircuitEvent(self._name))
