"""Tests for the in-memory cache."""

import asyncio

import pytest

from spotsync.application.cache import CacheEntry, InMemoryCache


@pytest.fixture
def cache() -> InMemoryCache[str, str]:
    return InMemoryCache()


def _age(cache: InMemoryCache, key: str, seconds: float) -> None:
    cache._cache[key].created_at -= seconds


class TestCacheEntry:
    def test_without_ttl_never_expires(self) -> None:
        assert CacheEntry(value=1, created_at=0.0, ttl_seconds=None).is_expired() is False

    def test_with_ttl_expires(self) -> None:
        assert CacheEntry(value=1, created_at=0.0, ttl_seconds=5).is_expired() is True


class TestInMemoryCache:
    """Test get/set/delete semantics."""

    async def test_set_overwrites(self, cache: InMemoryCache[str, str]) -> None:
        await cache.set("k", "first")
        await cache.set("k", "second")

        assert await cache.get("k") == "second"

    async def test_missing_key(self, cache: InMemoryCache[str, str]) -> None:
        assert await cache.get("nope") is None
        assert await cache.delete("nope") is False

    async def test_expired_entry_is_evicted_on_read(
        self, cache: InMemoryCache[str, str]
    ) -> None:
        await cache.set("k", "v", ttl_seconds=10)
        _age(cache, "k", 11)

        assert await cache.get("k") is None
        assert "k" not in cache._cache

    async def test_delete_of_expired_entry_reports_false(
        self, cache: InMemoryCache[str, str]
    ) -> None:
        await cache.set("k", "v", ttl_seconds=10)
        _age(cache, "k", 11)

        assert await cache.delete("k") is False

    async def test_concurrent_deletes_have_one_winner(
        self, cache: InMemoryCache[str, str]
    ) -> None:
        await cache.set("k", "v")

        results = await asyncio.gather(*(cache.delete("k") for _ in range(5)))

        assert sorted(results) == [False, False, False, False, True]
