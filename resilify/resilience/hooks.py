"""Observability hooks fired by the resilience executor."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Callable

from resilify.logging import get_logger


class HookEvent(str, Enum):
    """Events that can trigger hooks."""

    ATTEMPT = "on_attempt"
    SUCCESS = "on_success"
    FAILURE = "on_failure"
    RETRY = "on_retry"
    CIRCUIT_OPEN = "on_circuit_open"
    CIRCUIT_HALF_OPEN = "on_circuit_half_open"
    CIRCUIT_CLOSED = "on_circuit_closed"


@dataclass(frozen=True)
class AttemptEvent:
    """An attempt is about to start."""

    name: str
    attempt: int


@dataclass(frozen=True)
class SuccessEvent:
    """An attempt returned a value."""

    name: str
    attempt: int
    time_ms: float


@dataclass(frozen=True)
class FailureEvent:
    """An attempt raised (including timeouts)."""

    name: str
    attempt: int
    time_ms: float
    error: Exception


@dataclass(frozen=True)
class RetryEvent:
    """A failed attempt will be retried after ``delay_ms``."""

    name: str
    attempt: int
    delay_ms: int
    error: Exception


@dataclass(frozen=True)
class CircuitEvent:
    """The circuit breaker of ``name`` changed state."""

    name: str


Hook = Callable[[Any], None]


@dataclass(frozen=True)
class ResilienceHooks:
    """Optional callbacks invoked at fixed points of a resilient call.

    Hooks are called synchronously, in order, and their return values are
    ignored. An exception raised by a hook is logged and does not affect
    the call being observed.

    Example:
        >>> seen = []
        >>> hooks = ResilienceHooks(on_retry=lambda e: seen.append(e.delay_ms))
    """

    on_attempt: Callable[[AttemptEvent], None] | None = None
    on_success: Callable[[SuccessEvent], None] | None = None
    on_failure: Callable[[FailureEvent], None] | None = None
    on_retry: Callable[[RetryEvent], None] | None = None
    on_circuit_open: Callable[[CircuitEvent], None] | None = None
    on_circuit_half_open: Callable[[CircuitEvent], None] | None = None
    on_circuit_closed: Callable[[CircuitEvent], None] | None = None
    extra: tuple["ResilienceHooks", ...] = field(default=(), repr=False)

    def emit(self, event: HookEvent, payload: Any) -> None:
        """Dispatch ``payload`` to the hook registered for ``event``."""
        callback: Hook | None = getattr(self, event.value)
        if callback is not None:
            try:
                callback(payload)
            except Exception as e:
                get_logger().hook_error(event.value, e)

        for hooks in self.extra:
            hooks.emit(event, payload)

    def combine(self, *others: "ResilienceHooks | None") -> "ResilienceHooks":
        """Return a hook set that fires these hooks, then each of ``others``."""
        rest = tuple(h for h in others if h is not None)
        if not rest:
            return self
        return ResilienceHooks(
            **{f.name: getattr(self, f.name) for f in fields(self) if f.name != "extra"},
            extra=self.extra + rest,
        )


def emit(hooks: ResilienceHooks | None, event: HookEvent, payload: Any) -> None:
    """Fire ``event`` on ``hooks`` if a hook set is configured."""
    if hooks is not None:
        hooks.emit(event, payload)
