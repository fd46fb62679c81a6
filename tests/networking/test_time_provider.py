"""
Unit tests for timestamp providers.
"""

import asyncio
from itertools import chain, repeat
from unittest.mock import AsyncMock

import pytest

from conftest import FakeClock
from cex_rest.networking.http import FixedTimestamp, MonotonicTimestamp, ServerSyncedTimestamp


class TestLocalProviders:

    def test_fixed(self):
        provider = FixedTimestamp(1000)
        assert provider.create_value() == 1000
        assert provider.create_value() == 1000

    def test_monotonic_never_goes_backwards(self):
        readings = iter([1000, 1005, 990, 1010])
        provider = MonotonicTimestamp(lambda: next(readings))
        assert [provider.create_value() for _ in range(4)] == [1000, 1005, 1005, 1010]

    @pytest.mark.asyncio
    async def test_sync_is_noop(self):
        provider = FixedTimestamp(1)
        await provider.sync()
        assert provider.create_value() == 1


class TestServerSyncedTimestamp:

    @pytest.mark.asyncio
    async def test_offset_from_round_trip_midpoint(self):
        # Local clock reads 1000 before and 1100 after the fetch; server says 5050
        local = chain([1000, 1100], repeat(2000))
        fetch = AsyncMock(return_value=5050)

        provider = ServerSyncedTimestamp(fetch, clock=lambda: next(local), monotonic=FakeClock(0.0))
        await provider.sync()

        assert provider.offset_ms == 4000
        assert provider.create_value() == 6000
        fetch.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_offset_is_cached_until_stale(self):
        monotonic = FakeClock(0.0)
        fetches = []

        async def fetch():
            fetches.append(1)
            return 0

        provider = ServerSyncedTimestamp(fetch, refresh_interval=600.0, clock=lambda: 0, monotonic=monotonic)
        assert provider.is_stale

        await provider.sync()
        monotonic.advance(599.0)
        await provider.sync()
        assert len(fetches) == 1

        monotonic.advance(1.0)
        assert provider.is_stale
        await provider.sync()
        assert len(fetches) == 2

    @pytest.mark.asyncio
    async def test_clear_forces_refetch(self):
        fetches = []

        async def fetch():
            fetches.append(1)
            return 0

        provider = ServerSyncedTimestamp(fetch, clock=lambda: 0, monotonic=FakeClock(0.0))
        await provider.sync()
        provider.clear()
        await provider.sync()
        assert len(fetches) == 2

    def test_unsynced_uses_local_clock(self):
        async def fetch():
            return 0

        provider = ServerSyncedTimestamp(fetch, clock=lambda: 1234, monotonic=FakeClock(0.0))
        assert provider.offset_ms == 0
        assert provider.create_value() == 1234

    @pytest.mark.asyncio
    async def test_fetch_failure_propagates(self):
        async def fetch():
            raise RuntimeError("down")

        provider = ServerSyncedTimestamp(fetch, clock=lambda: 0, monotonic=FakeClock(0.0))
        with pytest.raises(RuntimeError):
            await provider.sync()
        assert provider.is_stale

    @pytest.mark.asyncio
    async def test_concurrent_syncs_share_one_fetch(self):
        fetches = []

        async def fetch():
            fetches.append(1)
            await asyncio.sleep(0)
            return 0

        provider = ServerSyncedTimestamp(fetch, clock=lambda: 0, monotonic=FakeClock(0.0))
        await asyncio.gather(*[provider.sync() for _ in range(20)])

        assert len(fetches) == 1
        assert not provider.is_stale

    @pytest.mark.asyncio
    async def test_failed_fetch_lets_next_caller_retry(self):
        outcomes = [RuntimeError("down"), 0]

        async def fetch():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        provider = ServerSyncedTimestamp(fetch, clock=lambda: 0, monotonic=FakeClock(0.0))
        with pytest.raises(RuntimeError):
            await provider.sync()
        await provider.sync()

        assert outcomes == []
        assert not provider.is_stale
