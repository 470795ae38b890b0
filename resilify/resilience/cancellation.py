"""Cooperative cancellation and the ambient cancellation signal.

A resilient attempt can install a CancellationSignal as the *active*
signal for everything it runs. Utilities such as ``sleep`` and
``resilient_request`` pick that signal up when they are not given one
explicitly, so work nested inside a timed attempt stops when the attempt
times out.

The active signal lives in a ContextVar. Each asyncio task runs in a copy
of the context it was created in, so concurrent tasks never observe each
other's signal.
"""

from __future__ import annotations

import asyncio
import inspect
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any, Awaitable, Callable, Iterator, TypeVar

from resilify.errors.exceptions import CancelledError


T = TypeVar("T")

Listener = Callable[[object], None]


class CancellationSignal:
    """Read side of a one-shot cancellation trigger.

    Obtain one from ``CancellationController.signal``.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._reason: object | None = None
        self._listeners: list[Listener] = []

    @property
    def cancelled(self) -> bool:
        """Whether cancellation was requested."""
        return self._cancelled

    @property
    def reason(self) -> object | None:
        """Value passed to ``cancel()``, if any."""
        return self._reason

    def raise_if_cancelled(self) -> None:
        """Raise CancelledError if the signal has fired."""
        if self._cancelled:
            raise CancelledError(self._reason)

    def add_listener(self, listener: Listener) -> None:
        """Call ``listener(reason)`` once when the signal fires.

        Listeners added after the signal fired are not called.
        """
        if not self._cancelled:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        try:
            self._listeners.remove(listener)
        except ValueError:
            pass

    async def wait(self) -> object | None:
        """Suspend until the signal fires and return its reason."""
        if self._cancelled:
            return self._reason

        future: asyncio.Future[object | None] = asyncio.get_running_loop().create_future()

        def _wake(reason: object) -> None:
            if not future.done():
                future.set_result(reason)

        self.add_listener(_wake)
        try:
            return await future
        finally:
            self.remove_listener(_wake)

    def _fire(self, reason: object | None) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._reason = reason
        listeners, self._listeners = self._listeners, []
        for listener in listeners:
            listener(reason)


class CancellationController:
    """Owner of a CancellationSignal.

    Cancellation is irreversible: once ``cancel()`` has been called the
    signal stays cancelled and later calls are ignored.

    Example:
        >>> controller = CancellationController()
        >>> controller.cancel("shutting down")
        >>> controller.signal.cancelled
        True
    """

    def __init__(self) -> None:
        self._signal = CancellationSignal()

    @property
    def signal(self) -> CancellationSignal:
        return self._signal

    @property
    def cancelled(self) -> bool:
        return self._signal.cancelled

    def cancel(self, reason: object | None = None) -> None:
        """Fire the signal, notifying every listener once."""
        self._signal._fire(reason)


_active_signal: ContextVar[CancellationSignal | None] = ContextVar(
    "resilify_active_signal", default=None
)


def current_signal() -> CancellationSignal | None:
    """Return the active cancellation signal, if any."""
    return _active_signal.get()


@contextmanager
def signal_scope(signal: CancellationSignal | None) -> Iterator[CancellationSignal | None]:
    """Install ``signal`` as the active signal for the enclosed block.

    Passing None clears the active signal for the block. The previous
    value is restored on exit whether the block succeeds or raises.
    """
    token = _active_signal.set(signal)
    try:
        yield signal
    finally:
        _active_signal.reset(token)


async def sleep(ms: float, signal: CancellationSignal | None = None) -> None:
    """Sleep for ``ms`` milliseconds unless cancelled first.

    Args:
        ms: Duration in milliseconds.
        signal: Signal to observe. Defaults to the active signal.

    Raises:
        CancelledError: If the signal is already cancelled, or fires
            before the duration elapses.
    """
    if signal is None:
        signal = current_signal()
    if signal is None:
        await asyncio.sleep(max(ms, 0) / 1000)
        return

    signal.raise_if_cancelled()

    loop = asyncio.get_running_loop()
    waiter: asyncio.Future[None] = loop.create_future()

    def _elapsed() -> None:
        if not waiter.done():
            waiter.set_result(None)

    def _cancelled(reason: object) -> None:
        if not waiter.done():
            waiter.set_exception(CancelledError(reason))

    handle = loop.call_later(max(ms, 0) / 1000, _elapsed)
    signal.add_listener(_cancelled)
    try:
        await waiter
    finally:
        handle.cancel()
        signal.remove_listener(_cancelled)


async def run_with_signal(
    awaitable: Awaitable[T],
    signal: CancellationSignal | None = None,
) -> T:
    """Await ``awaitable``, abandoning it if ``signal`` fires first.

    Args:
        awaitable: Coroutine, task or future to run.
        signal: Signal to observe. Defaults to the active signal.

    Returns:
        The awaitable's result.

    Raises:
        CancelledError: If the signal fires (or had fired) before the
            awaitable finished. The pending work is cancelled.
    """
    if signal is None:
        signal = current_signal()
    if signal is None:
        return await awaitable

    if signal.cancelled:
        _discard(awaitable)
        raise CancelledError(signal.reason)

    task = asyncio.ensure_future(awaitable)

    def _abort(reason: object) -> None:
        task.cancel()

    signal.add_listener(_abort)
    try:
        return await task
    except asyncio.CancelledError:
        if signal.cancelled and task.cancelled():
            raise CancelledError(signal.reason) from None
        raise
    finally:
        signal.remove_listener(_abort)


def _discard(awaitable: Awaitable[Any]) -> None:
    """Release an awaitable that will never be awaited."""
    if inspect.iscoroutine(awaitable):
        awaitable.close()
    elif isinstance(awaitable, asyncio.Future):
        awaitable.cancel()
