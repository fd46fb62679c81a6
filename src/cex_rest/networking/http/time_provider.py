"""
Timestamp Providers

Sources of millisecond timestamps for operations declaring a timestamp
parameter. ``create_value()`` is synchronous and cheap; providers that
depend on a remote clock refresh asynchronously through ``sync()``, which
the executor awaits before building a timestamped request.
"""

import asyncio
import threading
import time
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from cex_rest.logging import get_logger


def _now_ms() -> int:
    return int(time.time() * 1000)


class TimestampProvider(ABC):
    """Millisecond epoch timestamp source."""

    @abstractmethod
    def create_value(self) -> int:
        pass

    async def sync(self) -> None:
        """Refresh any remote state. Default providers have none."""
        return None


class MonotonicTimestamp(TimestampProvider):
    """Wall-clock milliseconds that never go backwards within one process."""

    def __init__(self, clock: Callable[[], int] = _now_ms):
        self._clock = clock
        self._last = 0
        self._lock = threading.Lock()

    def create_value(self) -> int:
        with self._lock:
            value = max(self._clock(), self._last)
            self._last = value
            return value


class FixedTimestamp(TimestampProvider):
    """Always returns the same value. Used for replaying a request byte-for-byte."""

    def __init__(self, value: int):
        self.value = value

    def create_value(self) -> int:
        return self.value


class ServerSyncedTimestamp(TimestampProvider):
    """
    Local clock corrected by the offset to the remote server clock.

    The offset is fetched through ``fetch_server_time`` and cached for
    ``refresh_interval`` seconds (10 minutes by default). Until the first
    successful sync the local clock is used unchanged. Concurrent
    ``sync()`` calls share a single in-flight fetch.
    """

    DEFAULT_REFRESH_INTERVAL = 600.0

    def __init__(
        self,
        fetch_server_time: Callable[[], Awaitable[int]],
        refresh_interval: float = DEFAULT_REFRESH_INTERVAL,
        clock: Callable[[], int] = _now_ms,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self._fetch_server_time = fetch_server_time
        self._refresh_interval = refresh_interval
        self._clock = clock
        self._monotonic = monotonic
        self._offset_ms = 0
        self._synced_at: Optional[float] = None
        self._local = MonotonicTimestamp(lambda: self._clock() + self._offset_ms)
        self._refresh_lock = asyncio.Lock()
        self.logger = get_logger('rest.time_provider')

    @property
    def offset_ms(self) -> int:
        return self._offset_ms

    @property
    def is_stale(self) -> bool:
        if self._synced_at is None:
            return True
        return self._monotonic() - self._synced_at >= self._refresh_interval

    def create_value(self) -> int:
        return self._local.create_value()

    async def sync(self) -> None:
        if not self.is_stale:
            return
        # One fetch per stale period; concurrent callers wait for it
        async with self._refresh_lock:
            if self.is_stale:
                await self.refresh()

    async def refresh(self) -> None:
        before = self._clock()
        server_time = await self._fetch_server_time()
        after = self._clock()

        # Assume the server stamped the response halfway through the round trip
        local_mid = (before + after) // 2
        self._offset_ms = int(server_time) - local_mid
        self._synced_at = self._monotonic()

        self.logger.debug("Server time synchronized",
                          offset_ms=self._offset_ms, round_trip_ms=after - before)

    def clear(self) -> None:
        """Forget the cached offset so the next ``sync()`` refetches it."""
        self._synced_at = None
