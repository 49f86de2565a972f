"""Proximity search orchestration: distance, shipping, ranking and pagination."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Sequence

from ...cache.store import CacheStore
from ...config import Settings
from ...exceptions import UpstreamBatchMismatchError
from ...models.domain import (
    CandidateLocation,
    DistanceResult,
    EnrichedLocation,
    EnrichmentResult,
    LocationKind,
    ShippingQuote,
    ShippingQuotes,
    UserLocationInfo,
)
from ..distance.client import DistanceClient
from ..location.resolver import LocationResolver
from ..shipping.client import ShippingClient, format_lead_time
from .ranking import build_pins, paginate, sort_by_distance

logger = logging.getLogger(__name__)


def _default_flat_rate_quote() -> ShippingQuote:
    return ShippingQuote(
        lead_time_days=1,
        lead_time_label=format_lead_time(1),
        price="R$ 15,00",
        description="Fixed price for this distance",
    )


@dataclass(frozen=True, slots=True)
class EnrichmentPolicy:
    """Business rules applied while enriching candidates.

    PDVs within ``pdv_flat_rate_radius_km`` of the user get ``flat_rate_quote``
    instead of a provider quote.
    """

    pdv_flat_rate_radius_km: float = 50.0
    flat_rate_quote: ShippingQuote = field(default_factory=_default_flat_rate_quote)
    shipping_concurrency: int = 1

    @classmethod
    def from_settings(cls, source: Settings) -> "EnrichmentPolicy":
        return cls(
            pdv_flat_rate_radius_km=source.pdv_flat_rate_radius_km,
            flat_rate_quote=ShippingQuote(
                lead_time_days=1,
                lead_time_label=format_lead_time(1),
                price=source.pdv_flat_rate_price,
                description=source.pdv_flat_rate_description,
            ),
            shipping_concurrency=source.shipping_concurrency,
        )

    def flat_rate_applies(self, candidate: CandidateLocation, distance: DistanceResult) -> bool:
        return (
            candidate.kind is LocationKind.PDV
            and distance.available
            and distance.distance_km <= self.pdv_flat_rate_radius_km
        )


class ProximityEnrichmentEngine:
    """Usable as an async context manager; ``close`` shuts the provider clients
    and, when one is given, the cache store the engine owns.
    """

    def __init__(
        self,
        resolver: LocationResolver,
        distance_client: DistanceClient,
        shipping_client: ShippingClient,
        policy: EnrichmentPolicy | None = None,
        cache_store: CacheStore | None = None,
    ) -> None:
        self._resolver = resolver
        self._distance_client = distance_client
        self._shipping_client = shipping_client
        self.policy = policy or EnrichmentPolicy()
        self._cache_store = cache_store

    async def close(self) -> None:
        """Close provider clients and the owned cache store."""
        try:
            await self._resolver.close()
            await self._distance_client.close()
            await self._shipping_client.close()
        finally:
            if self._cache_store is not None:
                await self._cache_store.close()

    async def __aenter__(self) -> "ProximityEnrichmentEngine":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    async def resolve_location(self, target_postal_code: str) -> UserLocationInfo:
        return await self._resolver.resolve(target_postal_code)

    async def _shipping_options(
        self, candidate: CandidateLocation, distance: DistanceResult, target_postal_code: str
    ) -> tuple[ShippingQuote, ...]:
        if self.policy.flat_rate_applies(candidate, distance):
            logger.debug("Flat rate for PDV %s at %.1f km", candidate.name, distance.distance_km)
            return (self.policy.flat_rate_quote,)
        try:
            quotes = await self._shipping_client.quote(candidate.postal_code, target_postal_code)
        except Exception as exc:
            # a failed quote keeps the candidate, with the placeholder option
            logger.error("Shipping lookup failed for %s (%s): %s", candidate.name, candidate.id, exc)
            quotes = ShippingQuotes.unavailable(str(exc))
        return quotes.options

    async def _attach_shipping(
        self,
        candidates: Sequence[CandidateLocation],
        distances: Sequence[DistanceResult],
        target_postal_code: str,
    ) -> list[EnrichedLocation]:
        semaphore = asyncio.Semaphore(self.policy.shipping_concurrency)

        async def enrich_one(candidate: CandidateLocation, distance: DistanceResult) -> EnrichedLocation:
            async with semaphore:
                options = await self._shipping_options(candidate, distance, target_postal_code)
            return EnrichedLocation(
                id=candidate.id,
                name=candidate.name,
                city=candidate.city,
                postal_code=candidate.postal_code,
                kind=candidate.kind,
                distance_text=distance.distance_text,
                distance_km=distance.distance_km if distance.available else None,
                shipping_options=options,
                coordinates=candidate.coordinates,
            )

        if self.policy.shipping_concurrency <= 1:
            return [await enrich_one(candidate, distance) for candidate, distance in zip(candidates, distances)]
        return list(
            await asyncio.gather(*(enrich_one(candidate, distance) for candidate, distance in zip(candidates, distances)))
        )

    async def enrich(
        self,
        candidates: Sequence[CandidateLocation],
        target_postal_code: str,
        limit: int = 10,
        offset: int = 0,
    ) -> EnrichmentResult:
        if limit < 0 or offset < 0:
            raise ValueError(f"limit and offset must be non-negative, got limit={limit} offset={offset}")

        user_location = await self.resolve_location(target_postal_code)

        located = [candidate for candidate in candidates if candidate.coordinates is not None]
        if not located:
            logger.info("No candidates with coordinates for postal code %s", user_location.normalized_postal_code)
            return EnrichmentResult(
                items=(),
                pins=tuple(build_pins([], user_location)),
                total=0,
                limit=limit,
                offset=offset,
            )

        distances = await self._distance_client.compute_distances(
            user_location.user_coordinates,
            [candidate.coordinates for candidate in located],
        )
        if len(distances) != len(located):
            raise UpstreamBatchMismatchError(expected=len(located), received=len(distances))

        enriched = await self._attach_shipping(located, distances, user_location.normalized_postal_code)
        ranked = sort_by_distance(enriched)
        logger.info(
            "Enriched %d of %d candidates for postal code %s",
            len(ranked), len(candidates), user_location.normalized_postal_code,
        )
        return EnrichmentResult(
            items=tuple(paginate(ranked, limit, offset)),
            pins=tuple(build_pins(ranked, user_location)),
            total=len(ranked),
            limit=limit,
            offset=offset,
        )
