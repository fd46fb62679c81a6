"""
Fixed-Window Rate Limiter

Admission control for outgoing calls. Each limiter holds ``capacity``
tokens; once ``refill_period`` has elapsed since the last refill the bucket
is reset to full capacity in one step (fixed window, not a gradual drip).
Bursts of up to ``2 * capacity`` across a window boundary are therefore
possible.

Exhausted callers sleep and re-check until the window rolls over. Waiters
are not queued, so grant order under contention is not FIFO.
"""

import asyncio
import threading
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

DEFAULT_POLL_INTERVAL = 0.01


@dataclass(frozen=True)
class RateLimiterState:
    """Point-in-time snapshot of a limiter."""
    capacity: int
    tokens: int
    refill_period: float
    last_refill: float


class RateLimiter:
    """
    Fixed-window token bucket shared by every call of one category.

    The lock only guards the check-and-decrement; it is never held across
    a sleep or network I/O.
    """

    def __init__(
        self,
        capacity: int,
        refill_period: float,
        name: str = "",
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        if refill_period <= 0:
            raise ValueError("refill_period must be positive")
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")

        self.name = name
        self.capacity = capacity
        self.refill_period = refill_period
        self.poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep
        self._tokens = capacity
        self._last_refill = clock()
        self._lock = threading.Lock()

    def _refill_if_due(self, now: float) -> None:
        if now - self._last_refill >= self.refill_period:
            self._tokens = self.capacity
            self._last_refill = now

    def try_acquire(self) -> bool:
        """Take one token if available. Never blocks."""
        with self._lock:
            self._refill_if_due(self._clock())
            if self._tokens > 0:
                self._tokens -= 1
                return True
            return False

    def time_until_refill(self) -> float:
        with self._lock:
            return max(0.0, self.refill_period - (self._clock() - self._last_refill))

    async def acquire(self) -> float:
        """
        Wait for a token.

        Returns:
            Seconds spent waiting (0.0 when granted immediately)
        """
        if self.try_acquire():
            return 0.0
        started = self._clock()
        while not self.try_acquire():
            await self._sleep(min(self.poll_interval, self.time_until_refill()) or self.poll_interval)
        return self._clock() - started

    @property
    def available_tokens(self) -> int:
        with self._lock:
            self._refill_if_due(self._clock())
            return self._tokens

    def snapshot(self) -> RateLimiterState:
        with self._lock:
            return RateLimiterState(
                capacity=self.capacity,
                tokens=self._tokens,
                refill_period=self.refill_period,
                last_refill=self._last_refill,
            )

    def __repr__(self):
        return (f"RateLimiter(name={self.name!r}, capacity={self.capacity}, "
                f"refill_period={self.refill_period})")
