"""Cache-aside wrapper around a distance client."""

from __future__ import annotations

import logging
from typing import Sequence

from pydantic import TypeAdapter

from ...cache.aside import read_cached, write_cached
from ...cache.keys import distance_cache_key
from ...cache.store import CacheStore
from ...exceptions import UpstreamBatchMismatchError
from ...models.domain import Coordinates, DistanceResult
from .client import DistanceClient

DEFAULT_MAX_CACHED_DESTINATIONS = 10

_DISTANCE = TypeAdapter(DistanceResult)

logger = logging.getLogger(__name__)


class CachedDistanceClient(DistanceClient):
    """Caches one entry per (origin, destination) pair.

    Batches of at most ``max_cached_destinations`` are looked up pair by pair
    and every miss is fetched in a single upstream call. Larger batches go
    straight to the upstream client and are not cached. Unavailable ("N/A")
    results are returned but never stored.
    """

    def __init__(
        self,
        client: DistanceClient,
        store: CacheStore,
        ttl_ms: int,
        max_cached_destinations: int = DEFAULT_MAX_CACHED_DESTINATIONS,
    ) -> None:
        self._client = client
        self._store = store
        self._ttl_ms = ttl_ms
        self.max_cached_destinations = max_cached_destinations

    async def _fetch(self, origin: Coordinates, destinations: Sequence[Coordinates]) -> list[DistanceResult]:
        results = await self._client.compute_distances(origin, destinations)
        if len(results) != len(destinations):
            raise UpstreamBatchMismatchError(expected=len(destinations), received=len(results))
        return list(results)

    async def close(self) -> None:
        await self._client.close()

    async def compute_distances(
        self, origin: Coordinates, destinations: Sequence[Coordinates]
    ) -> list[DistanceResult]:
        if not destinations:
            return []
        if len(destinations) > self.max_cached_destinations:
            logger.debug(
                "Skipping distance cache for %d destinations (threshold %d)",
                len(destinations), self.max_cached_destinations,
            )
            return await self._fetch(origin, destinations)

        keys = [distance_cache_key(origin, [destination]) for destination in destinations]
        results: list[DistanceResult | None] = [None] * len(destinations)
        writable = True
        for index, key in enumerate(keys):
            ok, cached = await read_cached(self._store, key, _DISTANCE)
            if not ok:
                # store is down: fetch everything directly and skip writes
                writable = False
                results = [None] * len(destinations)
                break
            results[index] = cached

        missing = [index for index, result in enumerate(results) if result is None]
        if missing:
            fetched = await self._fetch(origin, [destinations[index] for index in missing])
            for index, result in zip(missing, fetched):
                results[index] = result
                if writable and result.available:
                    await write_cached(self._store, keys[index], result, _DISTANCE, self._ttl_ms)
        return [result for result in results if result is not None]
