"""Cache implementations."""

from spotsync.application.cache.base_cache import BaseCache, CacheEntry, InMemoryCache
from spotsync.application.cache.undo_store import UndoStore

__all__ = ["BaseCache", "CacheEntry", "InMemoryCache", "UndoStore"]
