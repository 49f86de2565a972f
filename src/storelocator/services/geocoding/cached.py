"""Cache-aside wrapper around a geocoding client."""

from __future__ import annotations

from pydantic import TypeAdapter

from ...cache.aside import read_through
from ...cache.keys import geocoding_cache_key
from ...cache.store import CacheStore
from ...models.domain import Coordinates
from .client import GeocodingClient

_COORDINATES = TypeAdapter(Coordinates)


class CachedGeocodingClient(GeocodingClient):
    """Addresses differing only in case or spacing share one entry."""

    def __init__(self, client: GeocodingClient, store: CacheStore, ttl_ms: int) -> None:
        self._client = client
        self._store = store
        self._ttl_ms = ttl_ms

    async def close(self) -> None:
        await self._client.close()

    async def geocode(self, address: str) -> Coordinates:
        return await read_through(
            self._store,
            geocoding_cache_key(address),
            self._ttl_ms,
            _COORDINATES,
            lambda: self._client.geocode(address),
        )
