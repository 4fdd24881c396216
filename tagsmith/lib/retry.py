"""Retry helpers for flaky async calls.

- ``retry_once_async``: one fixed-delay second attempt. Wraps the whole
  summarize + extract exchange for a document.
- ``retry_on_failure_async``: decorator with exponential backoff. Wraps
  individual Zotero API reads.

Example:
    raw = await retry_once_async(lambda: extractor.run_once(context), delay=0.6)

    @retry_on_failure_async(max_retries=2)
    async def fetch_item(client, key):
        return (await client.get(f"/users/1/items/{key}")).json()
"""

import asyncio
import logging
import random
from functools import wraps
from typing import Awaitable, Callable, TypeVar

import httpx

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Network-level failures worth another attempt
RETRYABLE_EXCEPTIONS: tuple = (
    ConnectionError,
    TimeoutError,
    httpx.TransportError,
)


async def retry_once_async(
    operation: Callable[[], Awaitable[T]],
    delay: float = 0.6,
    exceptions: tuple = (Exception,),
    name: str = "operation",
) -> T:
    """Await ``operation()``; if it raises one of ``exceptions``, sleep
    ``delay`` seconds and await it one last time.

    Whatever the second attempt raises propagates to the caller.
    """
    try:
        return await operation()
    except exceptions as e:
        logger.info(f"{name} failed ({type(e).__name__}: {e}); retrying once in {delay:.1f}s")

    await asyncio.sleep(delay)
    return await operation()


def _backoff_delay(attempt: int, base_delay: float, max_delay: float, jitter: bool) -> float:
    """Delay before retry number ``attempt`` (0-based): base * 2^attempt, capped."""
    delay = min(base_delay * 2**attempt, max_delay)
    if jitter:
        delay += random.uniform(0, delay / 4)
    return delay


def retry_on_failure_async(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exceptions: tuple = RETRYABLE_EXCEPTIONS,
    jitter: bool = True,
) -> Callable:
    """Retry the decorated coroutine with exponential backoff.

    Args:
        max_retries: Retries after the first attempt
        base_delay: Delay before the first retry, doubled each time
        max_delay: Upper bound on any single delay
        exceptions: Exception types that trigger a retry
        jitter: Add up to 25% random extra delay
    """

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        logger.warning(f"{func.__name__} gave up after {attempt + 1} tries: {e}")
                        raise
                    delay = _backoff_delay(attempt, base_delay, max_delay, jitter)
                    logger.info(f"{func.__name__} try {attempt + 1} failed ({e}); next in {delay:.1f}s")
                    await asyncio.sleep(delay)
                    attempt += 1

        return wrapper

    return decorator
