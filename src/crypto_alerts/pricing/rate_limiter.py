"""Fixed-window call budget shared by every outbound provider call."""
import asyncio
import logging
import time
from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


class RateLimiter:
    """Gate for the third-party API's call budget.

    State is a call counter and the monotonic instant the current window
    started. Whenever more than `window_seconds` have passed since
    `window_start` the counter resets. `acquire()` takes a slot if one is
    free and otherwise sleeps (at most `max_sleep` per sleep, so a rollover is
    noticed promptly) and re-checks. There is no queue: concurrent waiters
    race for freed slots on wake-up, and acquire() never times out.

    The check-and-increment runs under one asyncio.Lock; sleeping does not.
    """

    def __init__(
        self,
        max_calls: int,
        window_seconds: float,
        *,
        max_sleep: float = 10.0,
        min_sleep: float = 0.05,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_calls < 1:
            raise ValueError("max_calls must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.max_calls = max_calls
        self.window_seconds = float(window_seconds)
        self._max_sleep = max_sleep
        self._min_sleep = min_sleep
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self.call_count = 0
        self.window_start = clock()

    def _try_take(self) -> float | None:
        """Take a slot if one is free. Returns None on success, else seconds to rollover."""
        now = self._clock()
        elapsed = now - self.window_start
        if elapsed > self.window_seconds:
            self.call_count = 0
            self.window_start = now
            elapsed = 0.0
        if self.call_count < self.max_calls:
            self.call_count += 1
            return None
        return self.window_seconds - elapsed

    async def acquire(self) -> None:
        """Block until a call slot is available, then consume it."""
        waited = 0.0
        while True:
            async with self._lock:
                remaining = self._try_take()
            if remaining is None:
                if waited:
                    logger.debug("Rate limit slot acquired after %.1fs", waited)
                return
            if not waited:
                logger.info(
                    "Rate limit reached (%d calls per %.0fs); waiting %.1fs for rollover",
                    self.max_calls,
                    self.window_seconds,
                    remaining,
                )
            delay = min(max(remaining, self._min_sleep), self._max_sleep)
            await self._sleep(delay)
            waited += delay

    @property
    def available(self) -> int:
        """Slots left in the current window (ignores a pending rollover)."""
        return max(self.max_calls - self.call_count, 0)

    def snapshot(self) -> dict[str, float | int]:
        """Current window state for health/diagnostics."""
        return {
            "call_count": self.call_count,
            "max_calls": self.max_calls,
            "window_seconds": self.window_seconds,
            "window_age_seconds": round(self._clock() - self.window_start, 3),
        }
