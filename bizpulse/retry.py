"""
Generic exponential-backoff retry controller.

Every failure is retried identically: no jitter, no deadline, no notion of
retryable vs. non-retryable errors.
"""
import asyncio
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, TypeVar

from loguru import logger

from bizpulse.config import RETRY_INITIAL_DELAY, RETRY_MAX_ATTEMPTS

T = TypeVar("T")


async def retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = RETRY_MAX_ATTEMPTS,
    initial_delay: float = RETRY_INITIAL_DELAY,
) -> T:
    """
    Await `operation()` until it succeeds or `max_attempts` consecutive failures occur.

    Args:
        operation: Zero-argument coroutine function.
        max_attempts: Total number of attempts.
        initial_delay: Delay in seconds after the first failure; doubled after each subsequent one.

    Returns:
        The operation's result.

    Raises:
        The last exception raised by `operation`, unmodified.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Optional[Exception] = None
    for attempt in range(max_attempts):
        try:
            return await operation()
        except Exception as e:
            last_error = e
            delay = initial_delay * (2 ** attempt)
            if attempt < max_attempts - 1:
                logger.warning(f"Attempt {attempt + 1}/{max_attempts} failed: {e}. Retrying in {delay:.2f}s...")
                await asyncio.sleep(delay)
            else:
                logger.warning(f"Attempt {attempt + 1}/{max_attempts} failed: {e}. Giving up.")
    raise last_error


@dataclass(frozen=True)
class RetryPolicy:
    """Retry parameters shared by every external call site."""
    max_attempts: int = RETRY_MAX_ATTEMPTS
    initial_delay: float = RETRY_INITIAL_DELAY

    async def run(self, operation: Callable[[], Awaitable[T]]) -> T:
        return await retry(operation, self.max_attempts, self.initial_delay)
