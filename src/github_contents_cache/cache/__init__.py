"""Cache entries and stores."""

from github_contents_cache.cache.entries import CacheEntry, CacheStore, FoundEntry, NotFoundEntry
from github_contents_cache.cache.file_store import JsonFileCacheStore
from github_contents_cache.cache.memory import InMemoryCacheStore
from github_contents_cache.cache.namespaced import NamespacedCacheStore

__all__ = [
    "CacheEntry",
    "CacheStore",
    "FoundEntry",
    "InMemoryCacheStore",
    "JsonFileCacheStore",
    "NamespacedCacheStore",
    "NotFoundEntry",
]
