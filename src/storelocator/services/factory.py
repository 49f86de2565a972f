"""Wire provider clients, caches and the enrichment engine from settings."""

from __future__ import annotations

import logging
from typing import Optional

from ..cache.store import CacheStore, build_cache_store
from ..config import CacheTTLs, Settings, settings as default_settings
from ..data.locations_repository import InMemoryLocationRepository, LocationRepository
from .catalog.service import StoreFinderService
from .distance.cached import CachedDistanceClient
from .distance.client import DistanceClient, GoogleDistanceClient, HaversineDistanceClient
from .enrichment.engine import EnrichmentPolicy, ProximityEnrichmentEngine
from .geocoding.cached import CachedGeocodingClient
from .geocoding.client import GeocodingClient, GoogleGeocodingClient
from .location.resolver import LocationResolver
from .postal.client import PostalLookupClient, ViaCepClient
from .shipping.cached import CachedShippingClient
from .shipping.client import MelhorEnvioShippingClient, ShippingClient

logger = logging.getLogger(__name__)


def _http_options(source: Settings) -> dict:
    return {
        "timeout": source.http_timeout_seconds,
        "max_retries": source.provider_max_retries,
        "backoff_seconds": source.provider_backoff_seconds,
    }


def build_location_resolver(
    source: Settings,
    store: CacheStore,
    postal_client: Optional[PostalLookupClient] = None,
    geocoder: Optional[GeocodingClient] = None,
) -> LocationResolver:
    ttls = CacheTTLs.from_settings(source)
    if postal_client is None:
        postal_client = ViaCepClient(base_url=source.viacep_base_url, **_http_options(source))
    if geocoder is None:
        geocoder = GoogleGeocodingClient(
            api_key=source.google_api_key,
            url=source.google_geocoding_url,
            **_http_options(source),
        )
    return LocationResolver(
        postal_client=postal_client,
        geocoder=CachedGeocodingClient(geocoder, store, ttls.geocoding_ms),
        store=store,
        ttl_ms=ttls.location_ms,
    )


def _default_distance_client(source: Settings) -> DistanceClient:
    if source.google_api_key:
        return GoogleDistanceClient(
            api_key=source.google_api_key,
            url=source.google_distance_matrix_url,
            **_http_options(source),
        )
    logger.warning("No Google API key configured, using straight-line distances")
    return HaversineDistanceClient(average_speed_kmh=source.haversine_average_speed_kmh)


def build_engine(
    source: Optional[Settings] = None,
    cache_store: Optional[CacheStore] = None,
    postal_client: Optional[PostalLookupClient] = None,
    geocoder: Optional[GeocodingClient] = None,
    distance_client: Optional[DistanceClient] = None,
    shipping_client: Optional[ShippingClient] = None,
) -> ProximityEnrichmentEngine:
    """Build the engine with every provider wrapped in its cache.

    Clients passed in replace the HTTP providers; they are still cached.
    ``engine.close()`` closes every client and the cache store built here,
    but not a ``cache_store`` supplied by the caller.
    """
    source = source or default_settings
    store = cache_store if cache_store is not None else build_cache_store(source)
    ttls = CacheTTLs.from_settings(source)

    if distance_client is None:
        distance_client = _default_distance_client(source)
    if shipping_client is None:
        shipping_client = MelhorEnvioShippingClient(
            token=source.melhor_envio_token,
            url=source.melhor_envio_url,
            service_ids=source.melhor_envio_service_ids,
            **_http_options(source),
        )

    resolver = build_location_resolver(source, store, postal_client=postal_client, geocoder=geocoder)
    distance = CachedDistanceClient(
        distance_client,
        store,
        ttls.distance_ms,
        max_cached_destinations=source.distance_cache_max_destinations,
    )
    shipping = CachedShippingClient(
        shipping_client,
        store,
        ttls.shipping_ms,
        ttls.shipping_fallback_ms,
    )
    return ProximityEnrichmentEngine(
        resolver=resolver,
        distance_client=distance,
        shipping_client=shipping,
        policy=EnrichmentPolicy.from_settings(source),
        cache_store=store if cache_store is None else None,
    )


def build_store_finder(
    source: Optional[Settings] = None,
    repository: Optional[LocationRepository] = None,
    engine: Optional[ProximityEnrichmentEngine] = None,
) -> StoreFinderService:
    source = source or default_settings
    return StoreFinderService(
        repository=repository if repository is not None else InMemoryLocationRepository.from_csv(source.locations_file),
        engine=engine if engine is not None else build_engine(source),
        default_limit=source.default_page_limit,
    )
