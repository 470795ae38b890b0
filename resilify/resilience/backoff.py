"""Backoff strategies and delay calculation."""

from __future__ import annotations

import random
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field


class FixedBackoff(BaseModel):
    """Constant delay between attempts.

    Example:
        >>> compute_backoff_ms(FixedBackoff(delay_ms=100), attempt=3)
        100
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["fixed"] = "fixed"
    delay_ms: int = Field(ge=0, description="Delay in milliseconds")


class ExponentialBackoff(BaseModel):
    """Doubling delay capped at ``max_delay_ms``, with optional full jitter.

    Example:
        >>> strategy = ExponentialBackoff(base_delay_ms=50, max_delay_ms=400)
        >>> [compute_backoff_ms(strategy, n) for n in range(1, 6)]
        [50, 100, 200, 400, 400]
    """

    model_config = ConfigDict(frozen=True)

    type: Literal["exponential"] = "exponential"
    base_delay_ms: int = Field(ge=0, description="Delay for the first retry")
    max_delay_ms: int = Field(ge=0, description="Upper bound for any delay")
    jitter: bool = Field(
        default=False,
        description="Draw the delay uniformly from [0, capped delay)",
    )


BackoffStrategy = Annotated[
    Union[FixedBackoff, ExponentialBackoff],
    Field(discriminator="type"),
]


def compute_backoff_ms(strategy: FixedBackoff | ExponentialBackoff | None, attempt: int) -> int:
    """Calculate the delay to wait after a failed attempt.

    Args:
        strategy: Backoff strategy, or None for no delay.
        attempt: 1-based index of the attempt that just failed. Values
            below 1 are treated as 1.

    Returns:
        Delay in milliseconds, never negative.
    """
    if strategy is None:
        return 0
    if isinstance(strategy, FixedBackoff):
        return strategy.delay_ms

    exponent = max(attempt, 1) - 1
    capped = min(strategy.base_delay_ms * (2 ** exponent), strategy.max_delay_ms)
    if not strategy.jitter:
        return capped

    # Full jitter
    return int(random.random() * capped)
