"""
In-process TTL cache tests.
"""
import pytest

from app.core.errors import CacheError
from app.services.cache_service import (
    CacheService,
    difficulty_cache_key,
    recommendation_cache_key,
    user_cache_prefix,
)


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return CacheService(default_ttl=60, clock=clock)


class TestKeys:

    def test_keys_share_the_user_prefix(self):
        prefix = user_cache_prefix("u1")

        assert recommendation_cache_key("u1") == "user:u1:recommendations:latest"
        assert difficulty_cache_key("u1") == "user:u1:difficulty"
        assert difficulty_cache_key("u1", "debugging") == "user:u1:difficulty:debugging"
        assert recommendation_cache_key("u1").startswith(prefix)
        assert difficulty_cache_key("u1", "design").startswith(prefix)


class TestGetSet:

    def test_hit_within_ttl(self, cache, clock):
        cache.set("k", "v")
        clock.advance(59)

        assert cache.get("k") == "v"
        assert cache.metrics["hits"] == 1

    def test_expired_entry_is_a_miss(self, cache, clock):
        cache.set("k", "v", ttl=10)
        clock.advance(10)

        assert cache.get("k") is None
        assert cache.metrics["misses"] == 1
        assert cache.keys() == []

    def test_delete(self, cache):
        cache.set("k", "v")

        assert cache.delete("k") is True
        assert cache.delete("k") is False
        assert cache.get("k") is None

    def test_keys_by_prefix_purge_expired(self, cache, clock):
        cache.set("user:a:difficulty", 1)
        cache.set("user:a:recommendations:latest", 2)
        cache.set("user:ab:difficulty", 3, ttl=5)
        clock.advance(6)

        assert sorted(cache.keys("user:a")) == ["user:a:difficulty", "user:a:recommendations:latest"]
        assert cache.keys("user:ab:") == []
        assert cache.get_stats()["size"] == 2

    def test_disabled_cache_stores_nothing(self, clock):
        cache = CacheService(enabled=False, clock=clock)
        cache.set("k", "v")

        assert cache.get("k") is None
        assert cache.get_stats()["size"] == 0

    def test_stats(self, cache):
        cache.set("k", "v")
        cache.get("k")
        cache.get("missing")

        stats = cache.get_stats()
        assert stats["hits"] == 1
        assert stats["misses"] == 1
        assert stats["hit_rate"] == 0.5


class TestGetOrSet:

    @pytest.mark.asyncio
    async def test_async_factory_runs_once(self, cache):
        calls = []

        async def factory():
            calls.append(1)
            return {"value": len(calls)}

        first = await cache.get_or_set("k", factory)
        second = await cache.get_or_set("k", factory)

        assert first == second == {"value": 1}
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_sync_factory_is_supported(self, cache):
        assert await cache.get_or_set("k", lambda: 42) == 42
        assert cache.get("k") == 42

    @pytest.mark.asyncio
    async def test_none_is_not_cached(self, cache):
        calls = []

        def factory():
            calls.append(1)
            return None

        await cache.get_or_set("k", factory)
        await cache.get_or_set("k", factory)

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_recomputes_after_expiry(self, cache, clock):
        values = iter([1, 2])

        await cache.get_or_set("k", lambda: next(values), ttl=30)
        clock.advance(31)

        assert await cache.get_or_set("k", lambda: next(values), ttl=30) == 2

    @pytest.mark.asyncio
    async def test_factory_errors_propagate(self, cache):
        async def factory():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await cache.get_or_set("k", factory)
        assert cache.keys() == []


class TestValidation:

    def test_empty_key(self, cache):
        with pytest.raises(CacheError):
            cache.get("")

    def test_non_positive_ttl(self, cache):
        with pytest.raises(CacheError):
            cache.set("k", "v", ttl=0)

    def test_non_positive_default_ttl(self):
        with pytest.raises(CacheError):
            CacheService(default_ttl=0)

    @pytest.mark.asyncio
    async def test_non_callable_factory(self, cache):
        with pytest.raises(CacheError):
            await cache.get_or_set("k", "not callable")
