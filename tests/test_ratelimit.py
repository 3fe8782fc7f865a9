"""Tests for the token bucket rate limiter."""

import asyncio

import pytest

from egain.lib.ratelimit import RateLimiter


class FakeClock:
    """Manual clock whose sleep advances time instantly."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


class TestRateLimiter:
    """Tests for RateLimiter.wait()."""

    @pytest.mark.asyncio
    async def test_burst_is_not_delayed(self, clock):
        limiter = RateLimiter(5.0, 4, clock=clock, sleep=clock.sleep)

        for _ in range(4):
            await limiter.wait()

        assert clock.sleeps == []

    @pytest.mark.asyncio
    async def test_excess_calls_are_delayed_not_rejected(self, clock):
        limiter = RateLimiter(5.0, 4, clock=clock, sleep=clock.sleep)

        for _ in range(6):
            await limiter.wait()

        assert clock.sleeps == [pytest.approx(5.0), pytest.approx(5.0)]
        assert clock.now == pytest.approx(10.0)

    @pytest.mark.asyncio
    async def test_partial_refill_shortens_delay(self, clock):
        limiter = RateLimiter(5.0, 1, clock=clock, sleep=clock.sleep)
        await limiter.wait()

        clock.now += 2.0
        await limiter.wait()

        assert clock.sleeps == [pytest.approx(3.0)]

    @pytest.mark.asyncio
    async def test_refill_is_capped_at_burst(self, clock):
        limiter = RateLimiter(5.0, 2, clock=clock, sleep=clock.sleep)
        clock.now += 1000.0

        assert limiter.tokens == 2

        for _ in range(3):
            await limiter.wait()

        assert clock.sleeps == [pytest.approx(5.0)]

    @pytest.mark.asyncio
    async def test_concurrent_waiters_are_spaced(self):
        limiter = RateLimiter(0.05, 1)
        loop = asyncio.get_running_loop()
        start = loop.time()

        await asyncio.gather(*(limiter.wait() for _ in range(3)))

        # First token is free, the next two need one refill each
        assert loop.time() - start >= 0.09

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_take_token(self):
        limiter = RateLimiter(60.0, 1)
        await limiter.wait()

        waiter = asyncio.create_task(limiter.wait())
        await asyncio.sleep(0)
        waiter.cancel()

        with pytest.raises(asyncio.CancelledError):
            await waiter
        assert limiter.tokens < 1
        assert limiter.tokens >= 0

    def test_invalid_arguments(self):
        with pytest.raises(ValueError, match="interval_sec"):
            RateLimiter(0, 1)
        with pytest.raises(ValueError, match="burst"):
            RateLimiter(1.0, 0)
