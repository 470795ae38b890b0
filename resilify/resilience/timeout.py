"""Timeout enforcement for a single attempt."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, TypeVar

from resilify.errors.exceptions import ConfigurationError, TimeoutError
from resilify.resilience.cancellation import CancellationController


T = TypeVar("T")


class TimeoutController:
    """Races an attempt against a deadline.

    On expiry the attempt's cancellation controller is triggered, so
    anything observing the active signal stops, and the pending work is
    asked to cancel. Cancellation is cooperative: a callable that ignores
    both may keep running in the background, but its result is discarded.

    Example:
        >>> controller = TimeoutController(timeout_ms=50, name="fetch_user")
        >>> result = await controller.race(fetch_user(42))
    """

    def __init__(self, timeout_ms: float | None = None, *, name: str | None = None) -> None:
        """Initialize timeout controller.

        Args:
            timeout_ms: Deadline in milliseconds. None or 0 disables it.
            name: Callable name used in the TimeoutError message.
        """
        if timeout_ms is not None and timeout_ms < 0:
            raise ConfigurationError("timeout_ms must be non-negative")

        self._timeout_ms = timeout_ms
        self._name = name

    @property
    def timeout_ms(self) -> float | None:
        return self._timeout_ms

    @property
    def enabled(self) -> bool:
        return bool(self._timeout_ms)

    async def race(
        self,
        awaitable: Awaitable[T],
        controller: CancellationController | None = None,
    ) -> T:
        """Await ``awaitable`` within the deadline.

        Args:
            awaitable: Work to run.
            controller: Cancellation controller to trigger on timeout.

        Returns:
            The awaitable's result.

        Raises:
            TimeoutError: If the deadline elapsed first.
        """
        timeout_ms = self._timeout_ms
        if not timeout_ms:
            return await awaitable

        task = asyncio.ensure_future(awaitable)
        try:
            done, _ = await asyncio.wait({task}, timeout=timeout_ms / 1000)
        except BaseException:
            task.cancel()
            raise

        if task in done:
            return task.result()

        error = TimeoutError(timeout_ms, name=self._name)
        if controller is not None:
            controller.cancel(error)
        # Signal observers get to react before the task itself is cancelled
        asyncio.get_running_loop().call_soon(task.cancel)
        task.add_done_callback(_consume_result)
        raise error


def _consume_result(task: asyncio.Future[Any]) -> None:
    # Late failures of abandoned work are not reported
    if not task.cancelled():
        task.exception()
