"""Tests for the in-memory TTL cache."""

import pytest

from fakes import FakeClock
from tonecord.cache.cache_backend import MemoryTTLCache, translate_cache_errors
from tonecord.errors import CacheUnavailableError


class TestMemoryTTLCache:
    @pytest.mark.asyncio
    async def test_get_missing_key(self):
        cache = MemoryTTLCache()
        assert await cache.get("missing") is None

    @pytest.mark.asyncio
    async def test_value_expires_after_ttl(self):
        clock = FakeClock()
        cache = MemoryTTLCache(clock=clock)

        await cache.set("key", [1, 2], ttl_seconds=10)
        clock.advance(9.9)
        assert await cache.get("key") == [1, 2]

        clock.advance(0.1)
        assert await cache.get("key") is None
        assert len(cache) == 0

    @pytest.mark.asyncio
    async def test_set_refreshes_ttl(self):
        clock = FakeClock()
        cache = MemoryTTLCache(clock=clock)

        await cache.set("key", "a", ttl_seconds=10)
        clock.advance(8)
        await cache.set("key", "b", ttl_seconds=10)
        clock.advance(8)

        assert await cache.get("key") == "b"

    @pytest.mark.asyncio
    async def test_non_positive_ttl_deletes(self):
        cache = MemoryTTLCache()
        await cache.set("key", "a", ttl_seconds=10)
        await cache.set("key", "b", ttl_seconds=0)

        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_delete(self):
        cache = MemoryTTLCache()
        await cache.set("key", "a", ttl_seconds=10)
        await cache.delete("key")
        await cache.delete("key")

        assert await cache.get("key") is None

    @pytest.mark.asyncio
    async def test_full_cache_evicts_entry_closest_to_expiry(self):
        cache = MemoryTTLCache(max_keys=2)
        await cache.set("short", 1, ttl_seconds=5)
        await cache.set("long", 2, ttl_seconds=50)
        await cache.set("new", 3, ttl_seconds=20)

        assert await cache.get("short") is None
        assert await cache.get("long") == 2
        assert await cache.get("new") == 3

    @pytest.mark.asyncio
    async def test_purge_expired(self):
        clock = FakeClock()
        cache = MemoryTTLCache(clock=clock)
        await cache.set("a", 1, ttl_seconds=1)
        await cache.set("b", 2, ttl_seconds=100)
        clock.advance(5)

        assert cache.purge_expired() == 1
        assert len(cache) == 1

    @pytest.mark.asyncio
    async def test_backend_failures_raise_cache_unavailable(self):
        def broken_clock():
            raise RuntimeError("clock unavailable")

        cache = MemoryTTLCache(clock=broken_clock)

        with pytest.raises(CacheUnavailableError) as excinfo:
            await cache.set("a", 1, ttl_seconds=10)
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_unhashable_key_raises_cache_unavailable(self):
        with pytest.raises(CacheUnavailableError):
            await MemoryTTLCache().get(["not", "hashable"])


class TestTranslateCacheErrors:
    def test_wraps_other_errors(self):
        with pytest.raises(CacheUnavailableError):
            with translate_cache_errors("get", "k"):
                raise ConnectionError("down")

    def test_cache_errors_pass_through_unchanged(self):
        original = CacheUnavailableError("already translated")
        with pytest.raises(CacheUnavailableError) as excinfo:
            with translate_cache_errors("get", "k"):
                raise original
        assert excinfo.value is original
