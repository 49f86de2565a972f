"""Cache stores, keys and the cache-aside helper."""

from .aside import read_through
from .store import (
    CacheStore,
    InMemoryCacheStore,
    NullCacheStore,
    RedisCacheStore,
    build_cache_store,
)

__all__ = [
    "CacheStore",
    "InMemoryCacheStore",
    "NullCacheStore",
    "RedisCacheStore",
    "build_cache_store",
    "read_through",
]
