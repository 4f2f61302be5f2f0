"""Bounded retry with exponential backoff and jitter for short contended writes."""

import logging
import random
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TypeVar

from .exceptions import TransientError

T = TypeVar("T")
logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    base_delay: float = 0.5
    multiplier: float = 2.0
    max_delay: float = 30.0
    jitter: float = 0.0
    retryable_exceptions: tuple[type[Exception], ...] = field(
        default_factory=lambda: (TransientError,)
    )

    def delay_for(self, attempt: int) -> float:
        """Sleep before retry number `attempt` (0-based), capped at max_delay.

        With jitter, the delay is spread uniformly over +/- jitter of itself so
        that callers which collided once do not collide again in lockstep.
        """
        delay = min(self.base_delay * (self.multiplier**attempt), self.max_delay)
        if self.jitter:
            delay *= random.uniform(1 - self.jitter, 1 + self.jitter)
        return max(delay, 0.0)


def with_retry_sync(
    operation: Callable[[], T],
    config: RetryConfig | None = None,
    operation_name: str = "operation",
    on_retry: Callable[[Exception, int], None] | None = None,
) -> T:
    """Run `operation`, retrying only the configured exception types.

    The last error is re-raised once attempts run out. Any other exception
    propagates immediately.
    """
    config = config or RetryConfig()

    attempt = 0
    while True:
        try:
            return operation()
        except config.retryable_exceptions as e:
            attempt += 1
            if attempt >= config.max_attempts:
                logger.warning(f"{operation_name} gave up after {attempt} attempts: {e}")
                raise

            delay = config.delay_for(attempt - 1)
            logger.debug(
                f"{operation_name} attempt {attempt}/{config.max_attempts} failed, "
                f"retrying in {delay * 1000:.1f}ms: {e}"
            )
            if on_retry is not None:
                on_retry(e, attempt)
            time.sleep(delay)
