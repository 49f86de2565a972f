"""Resolve a postal code into the user's address and coordinates."""

from __future__ import annotations

import logging

from pydantic import TypeAdapter

from ...cache.aside import read_through
from ...cache.keys import location_cache_key, normalize_postal_code
from ...cache.store import CacheStore
from ...exceptions import AddressResolutionError
from ...models.domain import UserLocationInfo
from ..geocoding.client import GeocodingClient
from ..postal.client import PostalLookupClient

_USER_LOCATION = TypeAdapter(UserLocationInfo)

logger = logging.getLogger(__name__)


class LocationResolver:
    """Postal lookup followed by geocoding, cached as one unit per postal code.

    ``geocoder`` is normally a CachedGeocodingClient, so a location cache miss
    can still be served from the geocoding cache.
    """

    def __init__(
        self,
        postal_client: PostalLookupClient,
        geocoder: GeocodingClient,
        store: CacheStore,
        ttl_ms: int,
    ) -> None:
        self._postal_client = postal_client
        self._geocoder = geocoder
        self._store = store
        self._ttl_ms = ttl_ms

    async def _resolve_uncached(self, normalized_postal_code: str) -> UserLocationInfo:
        address = await self._postal_client.lookup(normalized_postal_code)
        full_address = ", ".join((address.street, address.locality, address.region))
        coordinates = await self._geocoder.geocode(full_address)
        logger.info("Resolved postal code %s to %s", normalized_postal_code, full_address)
        return UserLocationInfo(
            full_address=full_address,
            normalized_postal_code=address.normalized_postal_code or normalized_postal_code,
            user_coordinates=coordinates,
            resolved_address=address,
        )

    async def close(self) -> None:
        await self._postal_client.close()
        await self._geocoder.close()

    async def resolve(self, raw_postal_code: str) -> UserLocationInfo:
        normalized = normalize_postal_code(raw_postal_code)
        if not normalized:
            raise AddressResolutionError(f"Invalid postal code '{raw_postal_code}'", {"cep": raw_postal_code})
        return await read_through(
            self._store,
            location_cache_key(normalized),
            self._ttl_ms,
            _USER_LOCATION,
            lambda: self._resolve_uncached(normalized),
        )
