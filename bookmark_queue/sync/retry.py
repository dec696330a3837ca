"""Caller-side retry for whole append cycles.

Queue sync itself never retries. A retry here re-invokes the complete
read-modify-write, so every attempt starts from the latest remote list.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import TYPE_CHECKING, TypeVar

from bookmark_queue.core.errors import QueueSyncError

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY = 1.0  # seconds
DEFAULT_MAX_DELAY = 10.0  # seconds
DEFAULT_JITTER = 0.1  # 10% jitter


def calculate_delay(attempt: int, base_delay: float, max_delay: float, jitter: float) -> float:
    """Calculate delay with exponential backoff and jitter.

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Base delay in seconds
        max_delay: Maximum delay in seconds
        jitter: Jitter factor (0.1 = 10% random variation)

    Returns:
        Delay in seconds
    """
    delay = min(base_delay * (2**attempt), max_delay)
    return delay + delay * jitter * random.random()


async def run_with_retry(
    func: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay: float = DEFAULT_BASE_DELAY,
    max_delay: float = DEFAULT_MAX_DELAY,
    jitter: float = DEFAULT_JITTER,
    operation_name: str = "append_bookmark",
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> T:
    """Run ``func`` until it succeeds or fails with a non-retryable error.

    Only errors whose category is retryable (transport failures) are retried.
    The last error is re-raised unchanged once attempts are exhausted.
    """
    if max_attempts < 1:
        msg = "max_attempts must be at least 1"
        raise ValueError(msg)

    attempt = 0
    while True:
        try:
            return await func()
        except QueueSyncError as exc:
            attempt += 1
            if not exc.retryable or attempt >= max_attempts:
                if exc.retryable:
                    logger.error(
                        "retry_exhausted",
                        extra={
                            "operation": operation_name,
                            "attempts": attempt,
                            "error": exc.message,
                        },
                    )
                raise

            delay = calculate_delay(attempt - 1, base_delay, max_delay, jitter)
            logger.warning(
                "retry_attempt",
                extra={
                    "operation": operation_name,
                    "attempt": attempt,
                    "max_attempts": max_attempts,
                    "delay_seconds": round(delay, 2),
                    "error": exc.message,
                },
            )
            await sleep(delay)
