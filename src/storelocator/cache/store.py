"""Key-value stores shared by the cache wrappers.

Values handed to ``set`` are JSON-compatible (dicts, lists, strings, numbers);
the wrappers convert domain objects before storing them.
"""

from __future__ import annotations

import asyncio
import heapq
import json
import logging
import time
from abc import ABC, abstractmethod
from typing import Any

import redis.asyncio as redis
from redis.exceptions import RedisError

from ..config import Settings
from ..exceptions import CacheUnavailableError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 10_000


class CacheStore(ABC):
    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the stored value, or None when absent or expired."""

    @abstractmethod
    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        """Store ``value`` for ``ttl_ms`` milliseconds."""

    async def close(self) -> None:
        return None


class NullCacheStore(CacheStore):
    """Cache disabled: every read is a miss and writes are dropped."""

    async def get(self, key: str) -> Any | None:
        return None

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        return None


class InMemoryCacheStore(CacheStore):
    """Process-local store on a monotonic clock.

    Expired entries are dropped on read and swept on every write; beyond
    ``max_entries`` the oldest writes are evicted first.
    """

    def __init__(self, clock=time.monotonic, max_entries: int = DEFAULT_MAX_ENTRIES) -> None:
        if max_entries <= 0:
            raise ValueError("max_entries must be positive")
        self._clock = clock
        self.max_entries = max_entries
        self._entries: dict[str, tuple[float, str]] = {}
        self._expiry_heap: list[tuple[float, str]] = []
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, payload = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
        return json.loads(payload)

    def _sweep_expired(self, now: float) -> None:
        while self._expiry_heap and self._expiry_heap[0][0] <= now:
            expires_at, key = heapq.heappop(self._expiry_heap)
            entry = self._entries.get(key)
            # the key may have been rewritten with a later expiry
            if entry is not None and entry[0] == expires_at:
                del self._entries[key]

    def _evict_oldest(self) -> None:
        while len(self._entries) > self.max_entries:
            oldest = next(iter(self._entries))
            del self._entries[oldest]
        if len(self._expiry_heap) > 2 * self.max_entries:
            self._expiry_heap = [(expires_at, key) for key, (expires_at, _) in self._entries.items()]
            heapq.heapify(self._expiry_heap)

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        if ttl_ms <= 0:
            return
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise CacheUnavailableError(f"Value for '{key}' is not serializable: {exc}") from exc
        async with self._lock:
            now = self._clock()
            self._sweep_expired(now)
            expires_at = now + ttl_ms / 1000
            self._entries.pop(key, None)
            self._entries[key] = (expires_at, payload)
            heapq.heappush(self._expiry_heap, (expires_at, key))
            self._evict_oldest()

    def __len__(self) -> int:
        return len(self._entries)


class RedisCacheStore(CacheStore):
    """Redis-backed store; values are JSON encoded and expire with PX."""

    def __init__(self, client: redis.Redis, key_prefix: str = "storelocator:") -> None:
        self._client = client
        self._key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "storelocator:") -> "RedisCacheStore":
        client = redis.from_url(url, encoding="utf-8", decode_responses=True)
        return cls(client, key_prefix=key_prefix)

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def get(self, key: str) -> Any | None:
        try:
            payload = await self._client.get(self._key(key))
        except RedisError as exc:
            raise CacheUnavailableError(f"Redis GET failed for '{key}': {exc}") from exc
        if payload is None:
            return None
        try:
            return json.loads(payload)
        except json.JSONDecodeError as exc:
            raise CacheUnavailableError(f"Corrupt cache entry for '{key}': {exc}") from exc

    async def set(self, key: str, value: Any, ttl_ms: int) -> None:
        if ttl_ms <= 0:
            return
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise CacheUnavailableError(f"Value for '{key}' is not serializable: {exc}") from exc
        try:
            await self._client.set(self._key(key), payload, px=ttl_ms)
        except RedisError as exc:
            raise CacheUnavailableError(f"Redis SET failed for '{key}': {exc}") from exc

    async def close(self) -> None:
        await self._client.aclose()


def build_cache_store(source: Settings) -> CacheStore:
    if source.cache_backend == "redis":
        logger.info("Using Redis cache store at %s", source.redis_url.split("@")[-1])
        return RedisCacheStore.from_url(source.redis_url)
    if source.cache_backend == "none":
        logger.info("Cache disabled, provider calls will not be cached")
        return NullCacheStore()
    return InMemoryCacheStore(max_entries=source.cache_memory_max_entries)
