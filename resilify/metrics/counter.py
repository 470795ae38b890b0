"""Per-name call counters driven by resilience hooks.

Counts can optionally be exported as OpenTelemetry counters when the
``opentelemetry-api`` package is installed.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, TypeVar

from resilify.resilience.config import ResilienceConfig
from resilify.resilience.executor import ResilientFunction, with_resilience
from resilify.resilience.hooks import AttemptEvent, ResilienceHooks

try:
    from opentelemetry import metrics
    HAS_OTEL = True
except ImportError:
    HAS_OTEL = False


T = TypeVar("T")


@dataclass(frozen=True)
class FunctionResult(Generic[T]):
    """Outcome of a direct ``CallMetrics.run`` invocation."""

    name: str
    time_ms: float
    return_value: T
    inputs_count: int


def _function_name(func: Callable[..., Any]) -> str:
    return getattr(func, "__name__", None) or "anonymous"


class CallMetrics:
    """Thread-safe counter of calls per function name.

    Counts every attempt of functions wrapped through ``wrap`` (via the
    ``on_attempt`` hook) and every direct ``run``.

    Example:
        >>> metrics = CallMetrics()
        >>> fetch = metrics.wrap(fetch_user, retries=2)
        >>> await fetch(42)
        >>> metrics.count("fetch_user")
        1
    """

    def __init__(self, meter_name: str | None = None) -> None:
        """Initialize counters.

        Args:
            meter_name: OpenTelemetry meter to export counts to. Export is
                disabled when None or when opentelemetry is not installed.
        """
        self._counts: dict[str, int] = {}
        self._function_calls = 0
        self._last_result: FunctionResult[Any] | None = None
        self._lock = threading.Lock()

        self._otel_calls = None
        if meter_name is not None and HAS_OTEL:
            meter = metrics.get_meter(meter_name)
            self._otel_calls = meter.create_counter(
                "resilify.calls",
                description="Attempts per wrapped function",
                unit="1",
            )

    @property
    def function_calls(self) -> int:
        """Total calls recorded across all names."""
        with self._lock:
            return self._function_calls

    @property
    def last_result(self) -> FunctionResult[Any] | None:
        """Result of the most recent ``run``."""
        with self._lock:
            return self._last_result

    def count(self, name: str) -> int:
        """Calls recorded for ``name``."""
        with self._lock:
            return self._counts.get(name, 0)

    def snapshot(self) -> dict[str, int]:
        """Copy of the per-name counts."""
        with self._lock:
            return dict(self._counts)

    def record(self, name: str, *, result: FunctionResult[Any] | None = None) -> None:
        """Record one call for ``name``, optionally as the latest run result."""
        with self._lock:
            self._counts[name] = self._counts.get(name, 0) + 1
            self._function_calls += 1
            if result is not None:
                self._last_result = result

        if self._otel_calls is not None:
            self._otel_calls.add(1, {"function": name})

    def reset(self) -> None:
        """Forget all recorded calls."""
        with self._lock:
            self._counts.clear()
            self._function_calls = 0
            self._last_result = None

    def hooks(self) -> ResilienceHooks:
        """Hook set that records every attempt."""

        def on_attempt(event: AttemptEvent) -> None:
            self.record(event.name)

        return ResilienceHooks(on_attempt=on_attempt)

    def wrap(
        self,
        func: Callable[..., T | Awaitable[T]],
        config: ResilienceConfig | None = None,
        **options: Any,
    ) -> ResilientFunction[T]:
        """Wrap ``func`` with resilience and attempt counting.

        Hooks already present in the configuration keep firing after the
        counting hook.
        """
        merged = {**dict(config or {}), **options}
        merged["name"] = merged.get("name") or _function_name(func)
        merged["hooks"] = self.hooks().combine(merged.get("hooks"))
        return with_resilience(func, ResilienceConfig.model_validate(merged))

    def run(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Call ``func`` directly, recording its timing and one call.

        No retries, timeout or circuit breaking are applied. Exceptions
        propagate and are not counted.
        """
        name = _function_name(func)
        start = time.perf_counter()
        value = func(*args, **kwargs)
        self._finish_run(name, start, value, len(args) + len(kwargs))
        return value

    async def run_async(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        **kwargs: Any,
    ) -> T:
        """Await ``func`` directly, recording its timing and one call."""
        name = _function_name(func)
        start = time.perf_counter()
        value = await func(*args, **kwargs)
        self._finish_run(name, start, value, len(args) + len(kwargs))
        return value

    def _finish_run(self, name: str, start: float, value: Any, inputs_count: int) -> None:
        result = FunctionResult(
            name=name,
            time_ms=(time.perf_counter() - start) * 1000,
            return_value=value,
            inputs_count=inputs_count,
        )
        self.record(name, result=result)
