"""Unit tests for cooperative cancellation and the active signal."""

from __future__ import annotations

import asyncio
import time

import pytest

from resilify.errors.exceptions import CancelledError
from resilify.resilience.cancellation import (
    CancellationController,
    current_signal,
    run_with_signal,
    signal_scope,
    sleep,
)


class TestCancellationController:
    """Tests for CancellationController and CancellationSignal."""

    def test_initial_state(self) -> None:
        controller = CancellationController()

        assert controller.cancelled is False
        assert controller.signal.cancelled is False
        assert controller.signal.reason is None

    def test_cancel_is_one_shot(self) -> None:
        """Later cancel calls should not change the reason or re-notify."""
        controller = CancellationController()
        calls: list[object] = []
        controller.signal.add_listener(calls.append)

        controller.cancel("first")
        controller.cancel("second")

        assert controller.signal.cancelled is True
        assert controller.signal.reason == "first"
        assert calls == ["first"]

    def test_listener_removed(self) -> None:
        controller = CancellationController()
        calls: list[object] = []
        controller.signal.add_listener(calls.append)
        controller.signal.remove_listener(calls.append)

        controller.cancel()

        assert calls == []

    def test_raise_if_cancelled(self) -> None:
        controller = CancellationController()
        controller.signal.raise_if_cancelled()

        controller.cancel("stop")

        with pytest.raises(CancelledError) as exc_info:
            controller.signal.raise_if_cancelled()
        assert exc_info.value.reason == "stop"

    @pytest.mark.asyncio
    async def test_wait_returns_reason(self) -> None:
        controller = CancellationController()
        asyncio.get_running_loop().call_later(0.01, controller.cancel, "done")

        reason = await asyncio.wait_for(controller.signal.wait(), timeout=1.0)

        assert reason == "done"


class TestSignalScope:
    """Tests for the active signal context."""

    def test_no_active_signal_by_default(self) -> None:
        assert current_signal() is None

    def test_scope_installs_and_restores(self) -> None:
        outer = CancellationController().signal
        inner = CancellationController().signal

        with signal_scope(outer):
            assert current_signal() is outer
            with signal_scope(inner):
                assert current_signal() is inner
            assert current_signal() is outer
        assert current_signal() is None

    def test_scope_restores_on_error(self) -> None:
        signal = CancellationController().signal

        with pytest.raises(ValueError):
            with signal_scope(signal):
                raise ValueError("boom")

        assert current_signal() is None

    def test_scope_can_clear_signal(self) -> None:
        signal = CancellationController().signal

        with signal_scope(signal):
            with signal_scope(None):
                assert current_signal() is None
            assert current_signal() is signal

    @pytest.mark.asyncio
    async def test_concurrent_tasks_are_isolated(self) -> None:
        """Each task should only ever see its own signal."""
        seen: dict[str, list[bool]] = {"a": [], "b": []}
        signals = {"a": CancellationController().signal, "b": CancellationController().signal}

        async def worker(key: str) -> None:
            with signal_scope(signals[key]):
                for _ in range(5):
                    await asyncio.sleep(0)
                    seen[key].append(current_signal() is signals[key])

        await asyncio.gather(worker("a"), worker("b"))

        assert all(seen["a"]) and all(seen["b"])
        assert current_signal() is None


class TestSleep:
    """Tests for the cancellable sleep."""

    @pytest.mark.asyncio
    async def test_sleeps_without_signal(self) -> None:
        start = time.perf_counter()

        await sleep(20)

        assert time.perf_counter() - start >= 0.015

    @pytest.mark.asyncio
    async def test_already_cancelled(self) -> None:
        """Should fail immediately when the signal already fired."""
        controller = CancellationController()
        controller.cancel("early")

        start = time.perf_counter()
        with pytest.raises(CancelledError):
            await sleep(1000, controller.signal)

        assert time.perf_counter() - start < 0.5

    @pytest.mark.asyncio
    async def test_cancelled_during_wait(self) -> None:
        """Should fail as soon as the signal fires."""
        controller = CancellationController()
        asyncio.get_running_loop().call_later(0.02, controller.cancel, "late")

        start = time.perf_counter()
        with pytest.raises(CancelledError) as exc_info:
            await sleep(5000, controller.signal)

        assert exc_info.value.reason == "late"
        assert time.perf_counter() - start < 1.0

    @pytest.mark.asyncio
    async def test_uses_active_signal(self) -> None:
        controller = CancellationController()
        controller.cancel()

        with signal_scope(controller.signal):
            with pytest.raises(CancelledError):
                await sleep(1000)

    @pytest.mark.asyncio
    async def test_completes_before_cancel(self) -> None:
        controller = CancellationController()

        await sleep(5, controller.signal)
        controller.cancel()

        assert controller.signal.cancelled is True


class TestRunWithSignal:
    """Tests for run_with_signal."""

    @pytest.mark.asyncio
    async def test_returns_result(self) -> None:
        async def work() -> int:
            await asyncio.sleep(0)
            return 7

        assert await run_with_signal(work(), CancellationController().signal) == 7

    @pytest.mark.asyncio
    async def test_without_signal(self) -> None:
        async def work() -> str:
            return "plain"

        assert await run_with_signal(work()) == "plain"

    @pytest.mark.asyncio
    async def test_cancels_pending_work(self) -> None:
        controller = CancellationController()
        finished = asyncio.Event()

        async def work() -> None:
            try:
                await asyncio.sleep(10)
            finally:
                finished.set()

        asyncio.get_running_loop().call_later(0.02, controller.cancel, "abort")

        with pytest.raises(CancelledError):
            await run_with_signal(work(), controller.signal)

        await asyncio.wait_for(finished.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_already_cancelled_never_starts(self) -> None:
        controller = CancellationController()
        controller.cancel()
        started = False

        async def work() -> None:
            nonlocal started
            started = True

        with pytest.raises(CancelledError):
            await run_with_signal(work(), controller.signal)

        assert started is False

    @pytest.mark.asyncio
    async def test_work_errors_propagate(self) -> None:
        async def work() -> None:
            raise KeyError("missing")

        with pytest.raises(KeyError):
            await run_with_signal(work(), CancellationController().signal)
