"""Caller-side retry policy for transient ledger failures.

Only ``RetryableError`` (lock or store contention) is retried.  Business outcomes
such as ``InsufficientStock`` and upstream bugs such as
``ReservationUnderflow`` propagate on the first attempt.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

import structlog

from stockledger.domain.exceptions import RetryableError

logger = structlog.get_logger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded exponential backoff: base, 2×base, 4×base, … capped at max_delay."""

    attempts: int = 5
    base_delay: float = 0.05
    max_delay: float = 1.0
    sleep: Callable[[float], None] = field(default=time.sleep, compare=False)

    def __post_init__(self) -> None:
        if self.attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {self.attempts}")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given 1-based failed attempt."""
        return min(self.max_delay, self.base_delay * (2 ** (attempt - 1)))

    def call(self, fn: Callable[[], T]) -> T:
        for attempt in range(1, self.attempts + 1):
            try:
                return fn()
            except RetryableError as exc:
                if attempt == self.attempts:
                    logger.warning(
                        "Giving up after retries",
                        attempts=attempt,
                        error=str(exc),
                    )
                    raise
                delay = self.delay_for(attempt)
                logger.info("Retrying after transient error", attempt=attempt, delay=delay)
                self.sleep(delay)
        raise AssertionError("unreachable")


NO_RETRY = RetryPolicy(attempts=1)
