"""Attempt orchestration and the resilience decorator."""

from __future__ import annotations

import functools
import inspect
import time
from typing import Any, Awaitable, Callable, TypeVar, overload

from resilify.errors.exceptions import ResilifyError
from resilify.logging import get_logger
from resilify.resilience.backoff import compute_backoff_ms
from resilify.resilience.cancellation import CancellationController, signal_scope, sleep
from resilify.resilience.circuit_breaker import CircuitBreaker
from resilify.resilience.config import ResilienceConfig
from resilify.resilience.hooks import (
    AttemptEvent,
    FailureEvent,
    HookEvent,
    RetryEvent,
    SuccessEvent,
    emit,
)
from resilify.resilience.timeout import TimeoutController


T = TypeVar("T")


def _elapsed_ms(start: float) -> float:
    return (time.perf_counter() - start) * 1000


class AttemptOrchestrator:
    """Runs a callable through the retry loop described by its config.

    Attempts of one call run strictly one after another: attempt ``i + 1``
    starts only after attempt ``i`` settled, its hooks fired and its
    backoff delay elapsed. Concurrent calls share the circuit breaker.
    """

    def __init__(
        self,
        func: Callable[..., Any],
        config: ResilienceConfig,
        *,
        breaker: CircuitBreaker | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            func: Sync or async callable to protect.
            config: Resilience configuration.
            breaker: Pre-built circuit breaker. Built from
                ``config.circuit_breaker`` when omitted.
        """
        self._func = func
        self._config = config
        self._name = config.name or getattr(func, "__name__", None) or "anonymous"
        self._timeout = TimeoutController(config.timeout_ms, name=self._name)

        if breaker is None and config.circuit_breaker is not None:
            breaker = CircuitBreaker(
                config.circuit_breaker,
                name=self._name,
                hooks=config.hooks,
            )
        self._breaker = breaker

    @property
    def name(self) -> str:
        return self._name

    @property
    def config(self) -> ResilienceConfig:
        return self._config

    @property
    def breaker(self) -> CircuitBreaker | None:
        return self._breaker

    async def execute(self, *args: Any, **kwargs: Any) -> Any:
        """Call the wrapped function with retries, timeout and circuit breaking.

        Returns:
            The first successful attempt's result.

        Raises:
            CircuitOpenError: If the breaker rejected an attempt.
            Exception: The last attempt's failure, unchanged.
        """
        config = self._config
        hooks = config.hooks
        logger = get_logger()
        last_error: Exception | None = None

        for attempt in range(1, config.retries + 2):
            emit(hooks, HookEvent.ATTEMPT, AttemptEvent(self._name, attempt))

            # Fail fast without counting a breaker failure
            if self._breaker is not None:
                self._breaker.guard()

            start = time.perf_counter()
            try:
                result = await self._attempt(args, kwargs)
            except Exception as e:
                time_ms = _elapsed_ms(start)
                last_error = e

                if self._breaker is not None:
                    self._breaker.record_failure()
                logger.attempt_failed(self._name, attempt, time_ms, e)
                emit(hooks, HookEvent.FAILURE, FailureEvent(self._name, attempt, time_ms, e))

                if attempt > config.retries or not config.retry_on(e):
                    logger.giving_up(self._name, attempt, e)
                    raise

                delay_ms = compute_backoff_ms(config.backoff, attempt)
                logger.retry_scheduled(self._name, attempt, delay_ms)
                emit(hooks, HookEvent.RETRY, RetryEvent(self._name, attempt, delay_ms, e))
                if delay_ms > 0:
                    await sleep(delay_ms)
                continue

            time_ms = _elapsed_ms(start)
            if self._breaker is not None:
                self._breaker.record_success()
            logger.attempt_succeeded(self._name, attempt, time_ms)
            emit(hooks, HookEvent.SUCCESS, SuccessEvent(self._name, attempt, time_ms))
            return result

        raise last_error or ResilifyError(f"'{self._name}' finished without a result")

    async def _attempt(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        controller = CancellationController() if self._config.use_cancel_signal else None

        with signal_scope(controller.signal if controller is not None else None):
            outcome = self._func(*args, **kwargs)
            if inspect.isawaitable(outcome):
                outcome = await self._timeout.race(outcome, controller)
            return outcome


# Async callable returned by ``with_resilience``. Besides the wrapped
# function's metadata it carries ``config``, ``breaker``,
# ``resilience_name`` and ``orchestrator`` attributes.
ResilientFunction = Callable[..., Awaitable[T]]


def with_resilience(
    func: Callable[..., T | Awaitable[T]],
    config: ResilienceConfig | None = None,
    **options: Any,
) -> ResilientFunction[T]:
    """Wrap ``func`` with retries, timeout, backoff and circuit breaking.

    Args:
        func: Sync or async callable.
        config: Base configuration.
        **options: ResilienceConfig fields, overriding ``config``.

    Returns:
        Coroutine function taking the same arguments as ``func``.

    Example:
        >>> fetch = with_resilience(fetch_user, retries=2, timeout_ms=500)
        >>> user = await fetch(42)
    """
    if config is None:
        config = ResilienceConfig(**options)
    elif options:
        config = ResilienceConfig.model_validate({**dict(config), **options})

    orchestrator = AttemptOrchestrator(func, config)

    @functools.wraps(func)
    async def wrapped(*args: Any, **kwargs: Any) -> T:
        return await orchestrator.execute(*args, **kwargs)

    wrapped.orchestrator = orchestrator  # type: ignore[attr-defined]
    wrapped.config = orchestrator.config  # type: ignore[attr-defined]
    wrapped.breaker = orchestrator.breaker  # type: ignore[attr-defined]
    wrapped.resilience_name = orchestrator.name  # type: ignore[attr-defined]
    return wrapped


@overload
def resilient(func: Callable[..., T | Awaitable[T]], /) -> ResilientFunction[T]: ...


@overload
def resilient(
    *,
    config: ResilienceConfig | None = None,
    **options: Any,
) -> Callable[[Callable[..., T | Awaitable[T]]], ResilientFunction[T]]: ...


def resilient(
    func: Callable[..., Any] | None = None,
    /,
    *,
    config: ResilienceConfig | None = None,
    **options: Any,
) -> Any:
    """Decorator form of ``with_resilience``.

    Example:
        >>> @resilient(retries=3, backoff=FixedBackoff(delay_ms=100))
        ... async def fetch_user(user_id: int) -> dict:
        ...     ...
    """
    def decorate(f: Callable[..., Any]) -> ResilientFunction[Any]:
        return with_resilience(f, config, **options)

    if func is not None:
        return decorate(func)
    return decorate
