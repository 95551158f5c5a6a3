"""
Rate limiting for third-party APIs
Token bucket pacing plus fixed-size batching of outbound calls
"""
import asyncio
import time
from typing import Awaitable, Callable, Iterable, TypeVar

from config.settings import BATCH_PAUSE_SECONDS, BATCH_SIZE, RISK_REQUESTS_PER_SECOND
from utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class TokenBucketRateLimiter:
    """
    Token bucket rate limiter for controlling API request rates
    """

    def __init__(self, rate: float, burst: int = 1):
        """
        Args:
            rate: Requests per second
            burst: Maximum burst size
        """
        self.rate = rate
        self.burst = burst
        self.tokens = float(burst)
        self.last_update = time.monotonic()
        self._lock = asyncio.Lock()

    async def acquire(self):
        """Wait until a token is available"""
        wait_time = 0
        async with self._lock:
            now = time.monotonic()
            elapsed = now - self.last_update
            if elapsed > 0:
                self.tokens = min(self.burst, self.tokens + elapsed * self.rate)
                self.last_update = now

            if self.tokens < 1:
                wait_time = (1 - self.tokens) / self.rate
                self.tokens = 0  # Reserve the token we're waiting for
            else:
                self.tokens -= 1

        if wait_time > 0:
            await asyncio.sleep(wait_time)


class BatchRunner:
    """
    Runs an async function over many items, BATCH_SIZE at a time,
    pausing between batches to respect third-party rate limits
    """

    def __init__(self, batch_size: int = BATCH_SIZE, pause: float = BATCH_PAUSE_SECONDS):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.batch_size = batch_size
        self.pause = pause

    async def run(
        self,
        items: Iterable[T],
        func: Callable[[T], Awaitable[R]],
    ) -> list[R | BaseException]:
        """
        Returns one result per item in input order. Exceptions raised by
        func are returned in place of the result, never raised.
        """
        items = list(items)
        results: list[R | BaseException] = []

        for start in range(0, len(items), self.batch_size):
            batch = items[start:start + self.batch_size]
            batch_results = await asyncio.gather(
                *(func(item) for item in batch),
                return_exceptions=True
            )
            results.extend(batch_results)

            if start + self.batch_size < len(items) and self.pause > 0:
                logger.debug(f"Batch {start // self.batch_size + 1} done, pausing {self.pause}s")
                await asyncio.sleep(self.pause)

        return results


def create_risk_limiter() -> TokenBucketRateLimiter:
    """Pacing for the risk-scoring API"""
    return TokenBucketRateLimiter(RISK_REQUESTS_PER_SECOND, burst=1)
