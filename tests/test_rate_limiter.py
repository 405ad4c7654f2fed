import asyncio

import pytest

from crypto_alerts.pricing import RateLimiter
from tests.helpers.fakes import FakeClock


def make_limiter(max_calls=3, window=60.0, **kwargs):
    clock = FakeClock()
    limiter = RateLimiter(max_calls, window, clock=clock, sleep=clock.sleep, **kwargs)
    return limiter, clock


async def test_calls_within_budget_do_not_wait():
    limiter, clock = make_limiter(max_calls=3)
    for _ in range(3):
        await limiter.acquire()
    assert limiter.call_count == 3
    assert clock.sleeps == []
    assert limiter.available == 0


async def test_extra_call_blocks_until_window_rolls_over():
    limiter, clock = make_limiter(max_calls=3, window=60.0)
    for _ in range(3):
        await limiter.acquire()

    await limiter.acquire()

    assert clock.now > 60.0
    assert limiter.call_count == 1
    assert limiter.window_start == pytest.approx(clock.now)
    assert sum(clock.sleeps) == pytest.approx(60.05)


async def test_each_sleep_is_capped():
    limiter, clock = make_limiter(max_calls=1, window=60.0, max_sleep=10.0)
    await limiter.acquire()
    await limiter.acquire()
    assert clock.sleeps
    assert max(clock.sleeps) <= 10.0
    assert clock.sleeps[:6] == [10.0] * 6


async def test_window_resets_after_it_elapses():
    limiter, clock = make_limiter(max_calls=2, window=60.0)
    await limiter.acquire()
    await limiter.acquire()
    clock.now = 61.0

    await limiter.acquire()

    assert clock.sleeps == []
    assert limiter.call_count == 1
    assert limiter.window_start == 61.0


async def test_boundary_instant_still_belongs_to_window():
    limiter, clock = make_limiter(max_calls=1, window=60.0, min_sleep=0.5)
    await limiter.acquire()
    clock.now = 60.0

    await limiter.acquire()

    # Exactly window_seconds elapsed is not a rollover.
    assert clock.sleeps == [0.5]
    assert limiter.window_start == 60.5


async def test_concurrent_waiters_never_exceed_budget():
    limiter, clock = make_limiter(max_calls=2, window=60.0)
    granted: list[float] = []

    async def worker():
        await limiter.acquire()
        assert limiter.call_count <= limiter.max_calls
        granted.append(clock.now)

    await asyncio.gather(*(worker() for _ in range(5)))

    granted.sort()
    assert granted[:2] == [0.0, 0.0]
    assert all(t > 60.0 for t in granted[2:])
    assert len(granted) == 5


def test_snapshot_reports_window_state():
    limiter, clock = make_limiter(max_calls=10, window=60.0)
    clock.now = 12.5
    snap = limiter.snapshot()
    assert snap == {
        "call_count": 0,
        "max_calls": 10,
        "window_seconds": 60.0,
        "window_age_seconds": 12.5,
    }


@pytest.mark.parametrize("max_calls, window", [(0, 60), (5, 0)])
def test_rejects_invalid_configuration(max_calls, window):
    with pytest.raises(ValueError):
        RateLimiter(max_calls, window)
