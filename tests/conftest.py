"""Pytest configuration and fixtures for resilify tests."""

from __future__ import annotations

from io import StringIO
from typing import Any

import pytest
from rich.console import Console

from resilify.logging import configure_logging
from resilify.resilience.hooks import HookEvent, ResilienceHooks


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class Flaky:
    """Callable that raises ``error`` for the first ``failures`` calls."""

    def __init__(
        self,
        failures: int,
        *,
        error: Exception | None = None,
        result: Any = None,
    ) -> None:
        self.failures = failures
        self.error = error or ConnectionError("boom")
        self.result = result
        self.calls = 0
        self.__name__ = "flaky"

    async def __call__(self, *args: Any, **kwargs: Any) -> Any:
        self.calls += 1
        if self.calls <= self.failures:
            raise self.error
        if self.result is None:
            return f"ok-{self.calls}"
        return self.result


class HookRecorder:
    """Collects every hook firing as ``(event, payload)`` in order."""

    def __init__(self) -> None:
        self.events: list[tuple[HookEvent, Any]] = []
        self.hooks = ResilienceHooks(
            **{event.value: self._recorder(event) for event in HookEvent}
        )

    def _recorder(self, event: HookEvent):
        def record(payload: Any) -> None:
            self.events.append((event, payload))
        return record

    def of(self, event: HookEvent) -> list[Any]:
        return [payload for kind, payload in self.events if kind == event]

    def kinds(self) -> list[HookEvent]:
        return [kind for kind, _ in self.events]


@pytest.fixture(autouse=True)
def log_output() -> StringIO:
    """Route the global logger to a buffer at debug level."""
    output = StringIO()
    configure_logging(
        level="debug",
        console=Console(file=output, width=200),
        show_timestamps=False,
    )
    return output


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def recorder() -> HookRecorder:
    return HookRecorder()


@pytest.fixture
def make_flaky() -> type[Flaky]:
    return Flaky
