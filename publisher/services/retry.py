"""Bounded async retry combinator.

Wraps a coroutine factory with a fixed number of attempts and a fixed or
exponential delay between them. Only exceptions accepted by the
``retry_on`` predicate are retried; anything else propagates immediately.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def _always(_exc: Exception) -> bool:
    return True


@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters.

    Attributes:
        max_attempts: Total attempts including the first one.
        delay: Seconds to wait before the second attempt.
        backoff: Multiplier applied to the delay after each failure
            (1.0 keeps the delay fixed).
        retry_on: Predicate deciding whether an exception is retryable.
    """

    max_attempts: int = 3
    delay: float = 2.0
    backoff: float = 1.0
    retry_on: Callable[[Exception], bool] = _always

    def delay_for(self, attempt: int) -> float:
        """Return the wait after the given 1-based failed attempt."""
        return self.delay * (self.backoff ** (attempt - 1))


async def retry_async(
    func: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    description: str = "operation",
) -> T:
    """Await func() until it succeeds or the policy is exhausted.

    Args:
        func: Zero-argument callable returning a fresh awaitable per attempt.
        policy: Attempt bound, delay and retryable predicate.
        description: Label used in log messages.

    Returns:
        The first successful result.

    Raises:
        Exception: The last exception when all attempts fail, or the first
            non-retryable exception.
    """
    if policy.max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    attempt = 0
    while True:
        attempt += 1
        try:
            return await func()
        except Exception as exc:
            if not policy.retry_on(exc):
                raise
            if attempt >= policy.max_attempts:
                logger.error(
                    "%s failed after %d attempts: %s",
                    description,
                    attempt,
                    exc,
                )
                raise
            delay = policy.delay_for(attempt)
            logger.warning(
                "%s failed (attempt %d/%d), retrying in %.1fs: %s",
                description,
                attempt,
                policy.max_attempts,
                delay,
                exc,
            )
            await asyncio.sleep(delay)
