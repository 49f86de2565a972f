"""Cache-aside wrapper around a shipping client."""

from __future__ import annotations

from pydantic import TypeAdapter

from ...cache.aside import read_cached, write_cached
from ...cache.keys import shipping_cache_key
from ...cache.store import CacheStore
from ...models.domain import ShippingQuotes
from .client import ShippingClient

_QUOTES = TypeAdapter(ShippingQuotes)


class CachedShippingClient(ShippingClient):
    """Keys are direction-sensitive: ``(from, to)`` and ``(to, from)`` are distinct.

    Fallback answers are cached too, but only for ``fallback_ttl_ms`` so a
    provider outage is retried soon.
    """

    def __init__(self, client: ShippingClient, store: CacheStore, ttl_ms: int, fallback_ttl_ms: int) -> None:
        self._client = client
        self._store = store
        self._ttl_ms = ttl_ms
        self._fallback_ttl_ms = fallback_ttl_ms

    async def close(self) -> None:
        await self._client.close()

    async def quote(self, from_postal_code: str, to_postal_code: str) -> ShippingQuotes:
        key = shipping_cache_key(from_postal_code, to_postal_code)
        ok, cached = await read_cached(self._store, key, _QUOTES)
        if ok and cached is not None:
            return cached

        quotes = await self._client.quote(from_postal_code, to_postal_code)
        if ok:
            ttl_ms = self._ttl_ms if quotes.available else self._fallback_ttl_ms
            await write_cached(self._store, key, quotes, _QUOTES, ttl_ms)
        return quotes
