"""
Token bucket rate limiter for venue requests.

Keeps read traffic (prices, quotes, status, balances) and swap
submissions under separate budgets.
"""

import asyncio
import time
from dataclasses import dataclass, field

from swapengine.config.constants import REQUESTS_PER_SECOND, SUBMISSIONS_PER_SECOND


@dataclass
class TokenBucket:
    """
    Token bucket implementation for rate limiting.

    Tokens are added at a constant rate up to a maximum capacity.
    Each request consumes one or more tokens.
    """

    capacity: int
    refill_rate: float  # tokens per second
    tokens: float = field(init=False)
    last_refill: float = field(init=False)  # monotonic seconds
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, init=False, repr=False)

    def __post_init__(self) -> None:
        """Initialize with full bucket."""
        self.tokens = float(self.capacity)
        self.last_refill = time.monotonic()

    def _refill(self) -> None:
        now = time.monotonic()
        elapsed = now - self.last_refill
        self.tokens = min(self.capacity, self.tokens + elapsed * self.refill_rate)
        self.last_refill = now

    async def acquire(self, tokens: int = 1) -> None:
        """
        Acquire tokens, waiting if necessary.

        Args:
            tokens: Number of tokens to acquire.
        """
        async with self._lock:
            self._refill()

            if self.tokens < tokens:
                wait_seconds = (tokens - self.tokens) / self.refill_rate
                await asyncio.sleep(wait_seconds)
                self._refill()

            self.tokens -= tokens

    async def try_acquire(self, tokens: int = 1) -> bool:
        """
        Try to acquire tokens without waiting.

        Returns:
            True if tokens were acquired, False if not enough available.
        """
        async with self._lock:
            self._refill()

            if self.tokens >= tokens:
                self.tokens -= tokens
                return True
            return False


class RateLimiter:
    """
    Two-bucket rate limiter for the swap venue.

    Burst capacity is twice the per-second rate.
    """

    def __init__(
        self,
        requests_per_second: int = REQUESTS_PER_SECOND,
        submissions_per_second: int = SUBMISSIONS_PER_SECOND,
    ) -> None:
        self._request_bucket = TokenBucket(
            capacity=requests_per_second * 2,
            refill_rate=float(requests_per_second),
        )
        self._submit_bucket = TokenBucket(
            capacity=submissions_per_second * 2,
            refill_rate=float(submissions_per_second),
        )

    async def acquire_request(self) -> None:
        """Acquire permission for a read request."""
        await self._request_bucket.acquire(1)

    async def acquire_submission(self) -> None:
        """Acquire permission for a swap submission."""
        await asyncio.gather(
            self._submit_bucket.acquire(1),
            self._request_bucket.acquire(1),
        )

    @property
    def available_requests(self) -> float:
        """Get approximate number of available request tokens."""
        return self._request_bucket.tokens

    @property
    def available_submissions(self) -> float:
        return min(self._submit_bucket.tokens, self._request_bucket.tokens)
