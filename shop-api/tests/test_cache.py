"""
In-memory TTL cache
"""
from unittest.mock import AsyncMock

import pytest

from utils import cache as cache_module
from utils.cache import MemoryCache


@pytest.fixture
def clock(monkeypatch):
    current = {"now": 1000.0}
    monkeypatch.setattr(cache_module.time, "monotonic", lambda: current["now"])
    return current


class TestMemoryCache:

    def test_expiry(self, clock):
        cache = MemoryCache(default_ttl=60)
        cache.set("categories:root", ["women"])
        clock["now"] += 59
        assert cache.get("categories:root") == ["women"]
        clock["now"] += 1
        assert cache.get("categories:root") is None
        assert len(cache) == 0

    def test_per_key_ttl(self, clock):
        cache = MemoryCache(default_ttl=60)
        cache.set("short", 1, ttl=5)
        clock["now"] += 10
        assert cache.get("short", "gone") == "gone"

    def test_clear_by_pattern(self):
        cache = MemoryCache()
        cache.set("categories:all", 1)
        cache.set("categories:root", 2)
        cache.set("products:filters", 3)
        assert cache.clear("categories:") == 2
        assert cache.get("products:filters") == 3

    def test_disabled_cache_stores_nothing(self):
        cache = MemoryCache(enabled=False)
        cache.set("key", "value")
        assert cache.get("key") is None
        assert len(cache) == 0

    async def test_get_or_set_calls_factory_once(self):
        cache = MemoryCache()
        factory = AsyncMock(return_value={"colors": ["Ivory"]})
        first = await cache.get_or_set("products:filters", factory)
        second = await cache.get_or_set("products:filters", factory)
        assert first == second == {"colors": ["Ivory"]}
        factory.assert_awaited_once()

    async def test_get_or_set_caches_falsy_values(self):
        cache = MemoryCache()
        factory = AsyncMock(return_value=[])
        await cache.get_or_set("empty", factory)
        await cache.get_or_set("empty", factory)
        factory.assert_awaited_once()
