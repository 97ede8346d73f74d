"""Bounded retry with exponential backoff around a provider exchange."""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

from conduit.errors import ProviderError, RateLimited

logger = logging.getLogger(__name__)

T = TypeVar("T")

Sleep = Callable[[float], Awaitable[None]]


def backoff_delay_s(
    attempt: int,
    backoff_base_ms: int,
    *,
    jitter: float = 0.0,
    rng: Callable[[], float] = random.random,
) -> float:
    """Delay after failed ``attempt`` (1-based): base * 2**(attempt-1).

    With ``jitter`` > 0 the delay is drawn uniformly from
    ``[delay * (1 - jitter), delay]``.
    """
    delay = backoff_base_ms * (2 ** (attempt - 1)) / 1000.0
    if jitter > 0:
        delay -= delay * jitter * rng()
    return delay


async def with_retry(
    op: Callable[[], Awaitable[T]],
    retry_count: int,
    backoff_base_ms: int,
    *,
    jitter: float = 0.0,
    sleep: Sleep = asyncio.sleep,
) -> T:
    """Run ``op`` up to ``retry_count`` times.

    Retryable ProviderErrors are retried after an exponential backoff;
    non-retryable ones propagate on the first occurrence. Once every attempt
    is spent the last error propagates.
    """
    attempts = max(1, retry_count)
    for attempt in range(1, attempts + 1):
        try:
            return await op()
        except ProviderError as exc:
            if not exc.retryable:
                logger.warning("provider error is not retryable: %s", exc)
                raise
            if attempt >= attempts:
                logger.warning("provider retries exhausted after %d attempts: %s", attempt, exc)
                raise
            delay = backoff_delay_s(attempt, backoff_base_ms, jitter=jitter)
            if isinstance(exc, RateLimited) and exc.retry_after is not None:
                delay = max(delay, exc.retry_after)
            logger.info(
                "transient provider error on attempt %d/%d, retrying in %.3fs: %s",
                attempt,
                attempts,
                delay,
                exc,
            )
            await sleep(delay)
    raise AssertionError("unreachable")
