"""Async token bucket rate limiter."""

import asyncio
import time
from collections.abc import Awaitable, Callable


class RateLimiter:
    """Token bucket shared by every outbound request.

    The bucket starts full with ``burst`` tokens and refills one token every
    ``interval_sec``. Callers over budget are delayed, never rejected, and are
    served in arrival order.
    """

    def __init__(
        self,
        interval_sec: float,
        burst: int,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        if burst < 1:
            raise ValueError("burst must be at least 1")
        self.interval_sec = interval_sec
        self.burst = burst
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(burst)
        self._updated = clock()
        self._lock = asyncio.Lock()

    @property
    def tokens(self) -> float:
        """Tokens currently available, including refill since the last take."""
        elapsed = self._clock() - self._updated
        return min(self.burst, self._tokens + elapsed / self.interval_sec)

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(
            self.burst, self._tokens + (now - self._updated) / self.interval_sec
        )
        self._updated = now

    async def wait(self) -> None:
        """Wait until a token is available and take it.

        Cancelling the waiting task leaves the bucket untouched.
        """
        async with self._lock:
            self._refill()
            if self._tokens < 1:
                await self._sleep((1 - self._tokens) * self.interval_sec)
                self._refill()
            self._tokens -= 1
