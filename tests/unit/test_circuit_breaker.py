"""Unit tests for CircuitBreaker."""

from __future__ import annotations

import time

import pytest
from pydantic import ValidationError

from resilify.errors.exceptions import CircuitOpenError
from resilify.resilience.circuit_breaker import (
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
)
from resilify.resilience.hooks import HookEvent


def make_breaker(clock, recorder=None, threshold: int = 3, reset_ms: float = 1000) -> CircuitBreaker:
    return CircuitBreaker(
        CircuitBreakerConfig(failure_threshold=threshold, reset_timeout_ms=reset_ms),
        name="svc",
        hooks=recorder.hooks if recorder else None,
        clock=clock,
    )


class TestCircuitBreakerConfig:
    """Tests for CircuitBreakerConfig."""

    def test_defaults(self) -> None:
        config = CircuitBreakerConfig()

        assert config.failure_threshold == 5
        assert config.reset_timeout_ms == 30_000

    def test_threshold_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            CircuitBreakerConfig(failure_threshold=0)


class TestCircuitBreaker:
    """Tests for CircuitBreaker."""

    def test_initial_state_closed(self, clock) -> None:
        """Should start closed and admit attempts."""
        breaker = make_breaker(clock)

        assert breaker.state == CircuitState.CLOSED
        assert breaker.can_attempt() is True
        assert breaker.opened_at is None

    def test_opens_after_threshold(self, clock, recorder) -> None:
        """Should open once failures reach the threshold."""
        breaker = make_breaker(clock, recorder)

        breaker.record_failure()
        breaker.record_failure()
        assert breaker.state == CircuitState.CLOSED

        breaker.record_failure()

        assert breaker.state == CircuitState.OPEN
        assert breaker.opened_at == clock.now
        assert recorder.kinds() == [HookEvent.CIRCUIT_OPEN]
        assert recorder.of(HookEvent.CIRCUIT_OPEN)[0].name == "svc"

    def test_rejects_while_open(self, clock) -> None:
        """Should refuse attempts until the reset timeout elapses."""
        breaker = make_breaker(clock, threshold=1)
        breaker.record_failure()

        clock.advance(0.999)

        assert breaker.can_attempt() is False
        assert breaker.state == CircuitState.OPEN
        assert breaker.retry_after == pytest.approx(0.001)

    def test_guard_raises_circuit_open(self, clock) -> None:
        breaker = make_breaker(clock, threshold=1)
        breaker.record_failure()

        with pytest.raises(CircuitOpenError) as exc_info:
            breaker.guard()

        assert exc_info.value.name == "svc"
        assert exc_info.value.retry_after == pytest.approx(1.0)
        assert exc_info.value.retryable is False

    def test_half_open_after_reset_timeout(self, clock, recorder) -> None:
        """Should allow a trial call once the reset timeout elapsed."""
        breaker = make_breaker(clock, recorder, threshold=1)
        breaker.record_failure()

        clock.advance(1.0)

        assert breaker.can_attempt() is True
        assert breaker.state == CircuitState.HALF_OPEN
        assert breaker.opened_at is None
        assert recorder.kinds() == [HookEvent.CIRCUIT_OPEN, HookEvent.CIRCUIT_HALF_OPEN]

    def test_half_open_admits_further_attempts(self, clock) -> None:
        breaker = make_breaker(clock, threshold=1)
        breaker.record_failure()
        clock.advance(1.0)
        breaker.can_attempt()

        assert breaker.can_attempt() is True

    def test_half_open_success_closes(self, clock, recorder) -> None:
        """A successful trial call should close the circuit and reset failures."""
        breaker = make_breaker(clock, recorder)
        for _ in range(3):
            breaker.record_failure()
        clock.advance(1.0)
        breaker.can_attempt()

        breaker.record_success()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
        assert recorder.kinds()[-1] == HookEvent.CIRCUIT_CLOSED

    def test_half_open_failure_reopens(self, clock, recorder) -> None:
        """A single failed trial call should reopen, even below the threshold."""
        breaker = make_breaker(clock, recorder, threshold=3)
        for _ in range(3):
            breaker.record_failure()
        clock.advance(1.0)
        breaker.can_attempt()

        clock.advance(0.5)
        breaker.record_failure()

        assert breaker.state == CircuitState.OPEN
        assert breaker.opened_at == clock.now
        assert recorder.kinds() == [
            HookEvent.CIRCUIT_OPEN,
            HookEvent.CIRCUIT_HALF_OPEN,
            HookEvent.CIRCUIT_OPEN,
        ]

    def test_success_resets_failure_count(self, clock, recorder) -> None:
        """Success while closed resets the count without firing hooks."""
        breaker = make_breaker(clock, recorder)

        breaker.record_failure()
        breaker.record_failure()
        breaker.record_success()

        assert breaker.failure_count == 0
        assert recorder.events == []

    def test_cycles_indefinitely(self, clock) -> None:
        breaker = make_breaker(clock, threshold=1)

        for _ in range(3):
            breaker.record_failure()
            assert breaker.can_attempt() is False
            clock.advance(1.0)
            assert breaker.can_attempt() is True
            breaker.record_success()
            assert breaker.state == CircuitState.CLOSED

    def test_reset(self, clock) -> None:
        breaker = make_breaker(clock, threshold=1)
        breaker.record_failure()

        breaker.reset()

        assert breaker.state == CircuitState.CLOSED
        assert breaker.failure_count == 0
        assert breaker.can_attempt() is True

    def test_real_clock(self) -> None:
        """Should transition with the default monotonic clock."""
        breaker = CircuitBreaker(CircuitBreakerConfig(failure_threshold=1, reset_timeout_ms=100))
        breaker.record_failure()

        assert breaker.can_attempt() is False

        time.sleep(0.15)

        assert breaker.can_attempt() is True
        assert breaker.state == CircuitState.HALF_OPEN

    def test_transitions_are_logged(self, clock, log_output) -> None:
        breaker = make_breaker(clock, threshold=1)

        breaker.record_failure()

        assert "svc opened after 1 failure" in log_output.getvalue()
