from __future__ import annotations
import asyncio
import logging
import random
from typing import Awaitable, Callable, Optional, TypeVar

from glide.core.errors import ClassifiedError, classify_error

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryPolicy:
    def __init__(self, max_retries=3, initial_delay_ms=1000, backoff_factor=2.0, jitter_ratio=0.3):
        if max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        self.max_retries = int(max_retries)
        self.initial_delay_ms = float(initial_delay_ms)
        self.backoff_factor = float(backoff_factor)
        self.jitter_ratio = float(jitter_ratio)

    def compute_delay(self, delay_ms: float) -> float:
        """Seconds to sleep: delay plus up to jitter_ratio of it, at random."""
        return (delay_ms + random.uniform(0, self.jitter_ratio * delay_ms)) / 1000.0


async def with_retry(
    attempt_fn: Callable[[], Awaitable[T]],
    policy: Optional[RetryPolicy] = None,
    *,
    on_retry: Optional[Callable[[int, ClassifiedError], None]] = None,
) -> T:
    """
    Run `attempt_fn` until it succeeds, fails non-retryably, or the
    retries run out. Always-retryable failures are attempted
    max_retries + 1 times. Failures leave as ClassifiedError.
    """
    policy = policy or RetryPolicy()
    delay = policy.initial_delay_ms
    attempt = 0
    while True:
        attempt += 1
        try:
            return await attempt_fn()
        except Exception as e:
            err = classify_error(e)
            if not err.retryable or attempt > policy.max_retries:
                if err is e:
                    raise
                raise err from e

            logger.debug("attempt %s failed (%s), retrying in ~%.0fms", attempt, err.kind.value, delay)
            if on_retry is not None:
                on_retry(attempt, err)
            await asyncio.sleep(policy.compute_delay(delay))
            delay *= policy.backoff_factor
