"""Base cache interface and in-memory implementation."""

import asyncio
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K")  # Key type
V = TypeVar("V")  # Value type


@dataclass
class CacheEntry(Generic[V]):
    """Cache entry with value and metadata."""

    value: V
    created_at: float
    ttl_seconds: int | None

    # Hey future me, ttl_seconds=None means the entry lives until someone deletes it. The undo
    # slot relies on that: an undo stays available until it is used or overwritten by the next
    # sync of the same session, unless a TTL was configured.
    def is_expired(self) -> bool:
        """Check if cache entry is expired."""
        if self.ttl_seconds is None:
            return False
        return time.time() > (self.created_at + self.ttl_seconds)


class BaseCache(ABC, Generic[K, V]):
    """Base cache interface for all cache implementations."""

    @abstractmethod
    async def get(self, key: K) -> V | None:
        """Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value if found and not expired, None otherwise
        """
        pass

    @abstractmethod
    async def set(self, key: K, value: V, ttl_seconds: int | None = None) -> None:
        """Set value in cache.

        Args:
            key: Cache key
            value: Value to cache
            ttl_seconds: Time to live in seconds, None for no expiry
        """
        pass

    @abstractmethod
    async def delete(self, key: K) -> bool:
        """Delete value from cache.

        Args:
            key: Cache key

        Returns:
            True if a live entry was deleted, False if not found
        """
        pass


class InMemoryCache(BaseCache[K, V]):
    """In-memory cache implementation using a dictionary.

    Process-local: entries are lost on restart and not shared between
    workers. Run a single worker or plug in a shared BaseCache.
    """

    # Listen up future me, the _lock is what makes "delete returns True exactly once" hold under
    # concurrency. Two undo requests racing for the same slot both may read it, but only one
    # delete() can win. Always use "async with self._lock" before touching self._cache!
    def __init__(self) -> None:
        """Initialize in-memory cache."""
        self._cache: dict[K, CacheEntry[V]] = {}
        self._lock = asyncio.Lock()

    # Yo, get() evicts expired entries on read, so it has side effects. Returns None for both
    # "not found" and "found but expired" - caller can't tell the difference.
    async def get(self, key: K) -> V | None:
        """Get value from cache."""
        async with self._lock:
            entry = self._cache.get(key)
            if not entry:
                return None

            if entry.is_expired():
                del self._cache[key]
                return None

            return entry.value

    # set() ALWAYS overwrites the existing key. That is exactly the single-slot behaviour the
    # undo store wants.
    async def set(self, key: K, value: V, ttl_seconds: int | None = None) -> None:
        """Set value in cache."""
        async with self._lock:
            self._cache[key] = CacheEntry(
                value=value,
                created_at=time.time(),
                ttl_seconds=ttl_seconds,
            )

    async def delete(self, key: K) -> bool:
        """Delete value from cache."""
        async with self._lock:
            entry = self._cache.pop(key, None)
            return entry is not None and not entry.is_expired()
