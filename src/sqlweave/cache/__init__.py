"""Query result caching."""

from .backends import CacheDriver, CacheEntry, InMemoryCache, NoOpCache
from .manager import DEFAULT_DURATION_MS, CacheManager, hash_query

__all__ = [
    "DEFAULT_DURATION_MS",
    "CacheDriver",
    "CacheEntry",
    "CacheManager",
    "InMemoryCache",
    "NoOpCache",
    "hash_query",
]
