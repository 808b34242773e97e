"""Unit tests for InMemoryCacheClient."""

import pytest

from commentable.adapter.cache import InMemoryCacheClient


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestInMemoryCacheClient:
    """Tests for expiry and prefix deletion."""

    @pytest.mark.asyncio
    async def test_entries_expire_after_ttl(self):
        clock = FakeClock()
        client = InMemoryCacheClient(clock=clock)
        await client.set("k", "v", ttl=10)

        clock.now += 9
        assert await client.get("k") == "v"

        clock.now += 1
        assert await client.get("k") is None

    @pytest.mark.asyncio
    async def test_delete_by_prefix_counts_live_entries(self):
        clock = FakeClock()
        client = InMemoryCacheClient(clock=clock)
        await client.set("a/1", "x", ttl=5)
        await client.set("a/2", "x", ttl=100)
        await client.set("b/1", "x", ttl=100)
        clock.now += 10

        deleted = await client.delete_by_prefix("a/")

        assert deleted == 1
        assert client.keys() == ["b/1"]

    @pytest.mark.asyncio
    async def test_counters_start_at_zero_and_never_expire(self):
        clock = FakeClock()
        client = InMemoryCacheClient(clock=clock)

        assert await client.incr("gen") == 1
        clock.now += 10**9
        assert await client.incr("gen") == 2
        assert await client.get("gen") == "2"
