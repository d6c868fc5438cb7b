"""
Retry with bounded exponential backoff.

One utility shared by every retry site: quote, submit, confirmation
polling and consolidation.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from swapengine.config.constants import RETRY_BASE_DELAY


logger = logging.getLogger(__name__)

T = TypeVar("T")


def _retry_all(exc: BaseException) -> bool:
    return isinstance(exc, Exception)


@dataclass(frozen=True)
class RetryPolicy:
    """
    Retry parameters.

    The delay before retry n (0-based) is base_delay * multiplier ** n,
    capped at max_delay.
    """

    max_attempts: int = 3
    base_delay: float = RETRY_BASE_DELAY
    multiplier: float = 2.0
    max_delay: float = 30.0
    is_retryable: Callable[[BaseException], bool] = _retry_all

    def delay(self, attempt: int) -> float:
        """Backoff delay after a failed attempt (0-based)."""
        return min(self.base_delay * self.multiplier**attempt, self.max_delay)


class RetryExhaustedError(Exception):
    """Raised when every attempt failed."""

    def __init__(self, operation: str, attempts: int, last_error: BaseException) -> None:
        super().__init__(f"{operation} failed after {attempts} attempts: {last_error}")
        self.operation = operation
        self.attempts = attempts
        self.last_error = last_error


async def retry_async(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy,
    name: str = "operation",
) -> T:
    """
    Run an async operation with retries.

    Non-retryable errors propagate immediately.

    Args:
        operation: Zero-argument coroutine factory.
        policy: Retry policy.
        name: Operation name for logging.

    Returns:
        The operation's result.

    Raises:
        RetryExhaustedError: When all attempts fail with retryable errors.
    """
    if policy.max_attempts < 1:
        raise ValueError(f"{name}: max_attempts must be at least 1")

    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as e:
            if not policy.is_retryable(e):
                raise
            attempt += 1
            if attempt >= policy.max_attempts:
                logger.error(f"{name} failed after {policy.max_attempts} attempts: {e}")
                raise RetryExhaustedError(name, policy.max_attempts, e) from e
            delay = policy.delay(attempt - 1)
            logger.warning(
                f"{name} attempt {attempt}/{policy.max_attempts} failed: {e}; "
                f"retrying in {delay:.2f}s"
            )
            if delay > 0:
                await asyncio.sleep(delay)
