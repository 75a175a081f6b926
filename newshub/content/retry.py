"""Caller-side retry of a whole read-mutate-write cycle after a conflict.

The repository client and the mutators never retry. A caller that knows its
mutation is safe to re-apply to fresh data (e.g. "set views to 42" rather
than "add 1 to what I saw") can wrap the call here.
"""

import asyncio
import logging
import random
from typing import Awaitable, Callable, TypeVar

from .errors import ConflictError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def get_retry_delay(
    attempt: int,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
    include_jitter: bool = True,
) -> float:
    """
    Calculate retry delay using exponential backoff with cap.

    Args:
        attempt: Zero-based attempt number (0 = first retry)
        include_jitter: Add random jitter so racing writers spread out

    Returns:
        Delay in seconds (0.5, 1, 2, 4, 8, 8... plus up to 10% jitter)
    """
    delay = min(base_delay * 2**attempt, max_delay)
    if include_jitter:
        delay += random.uniform(0, delay * 0.1)
    return delay


async def retry_on_conflict(
    operation: Callable[[], Awaitable[T]],
    *,
    attempts: int = 3,
    base_delay: float = 0.5,
    max_delay: float = 8.0,
) -> T:
    """Run operation, re-running it from scratch when it raises ConflictError.

    Args:
        operation: Zero-argument coroutine factory performing the full
            read-mutate-write cycle (e.g. lambda: posts.update(slug, patch))
        attempts: Total number of tries, including the first

    Raises:
        ConflictError: If every attempt conflicted
        Any other error from operation, immediately
    """
    if attempts < 1:
        raise ValueError("attempts must be at least 1")

    for attempt in range(attempts):
        try:
            return await operation()
        except ConflictError as e:
            if attempt == attempts - 1:
                logger.warning(f"Giving up after {attempts} conflicting attempts: {e}")
                raise
            delay = get_retry_delay(attempt, base_delay, max_delay)
            logger.info(
                f"Write conflict on {e.path}, retrying in {delay:.2f}s "
                f"(attempt {attempt + 2}/{attempts})"
            )
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")
