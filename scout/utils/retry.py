"""
Retry utilities for Faculty Scout.

Provides retry mechanisms with exponential backoff for async operations.
"""

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from typing import TypeVar

logger = logging.getLogger(__name__)

# Type variable for generic retry function
T = TypeVar("T")


def compute_backoff_delay(
    attempt: int,
    base_delay: float = 1.0,
    factor: float = 2.0,
    max_delay: float = 60.0,
    jitter: float = 0.1,
    rng: random.Random | None = None,
) -> float:
    """
    Compute the wait before the next attempt.

    The delay grows geometrically (base_delay * factor**attempt), is capped at
    max_delay, and gets up to ``jitter * delay`` of random extra wait. The
    jittered total never exceeds max_delay.
    """
    delay = min(base_delay * (factor**attempt), max_delay)
    uniform = rng.uniform if rng is not None else random.uniform
    extra = uniform(0, delay * jitter) if jitter > 0 else 0.0
    return min(delay + extra, max_delay)


async def retry_with_backoff(
    func: Callable[..., Awaitable[T]],
    *args,
    max_retries: int = 5,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    factor: float = 2.0,
    jitter: float = 0.1,
    retry_on: tuple = (Exception,),
    sleep: Callable[[float], Awaitable[None]] | None = None,
    rng: random.Random | None = None,
    **kwargs,
) -> T:
    """
    Retry an async function with exponential backoff.

    Args:
        func: The async function to retry
        *args: Arguments to pass to the function
        max_retries: Maximum number of retries (total attempts = max_retries + 1)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        factor: Growth factor applied per attempt
        jitter: Fraction of the delay added as random jitter
        retry_on: Tuple of exceptions to retry on
        sleep: Awaitable sleep used between attempts (defaults to asyncio.sleep)
        rng: Optional random source for jitter
        **kwargs: Keyword arguments to pass to the function

    Returns:
        The return value of the function

    Raises:
        The last exception encountered if max_retries is exceeded
    """
    sleep = sleep or asyncio.sleep
    last_exception = None
    for attempt in range(max_retries + 1):
        try:
            return await func(*args, **kwargs)
        except retry_on as e:
            last_exception = e
            if attempt == max_retries:
                logger.error(f"Max retries ({max_retries}) exceeded: {e}")
                raise

            total_delay = compute_backoff_delay(
                attempt,
                base_delay=base_delay,
                factor=factor,
                max_delay=max_delay,
                jitter=jitter,
                rng=rng,
            )

            logger.warning(
                f"Attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                f"Retrying in {total_delay:.1f} seconds..."
            )
            await sleep(total_delay)

    # This should never be reached due to the raise in the loop
    raise last_exception  # type: ignore
