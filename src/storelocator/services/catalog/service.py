"""Store and PDV search by postal code."""

from __future__ import annotations

import logging
from typing import Optional

from ...data.locations_repository import LocationRepository
from ...models.domain import EnrichmentResult
from ..enrichment.engine import ProximityEnrichmentEngine

logger = logging.getLogger(__name__)


class StoreFinderService:
    """Feeds repository candidates to the enrichment engine."""

    def __init__(
        self,
        repository: LocationRepository,
        engine: ProximityEnrichmentEngine,
        default_limit: int = 10,
    ) -> None:
        self._repository = repository
        self._engine = engine
        self.default_limit = default_limit

    async def stores_by_postal_code(
        self, postal_code: str, limit: Optional[int] = None, offset: int = 0
    ) -> EnrichmentResult:
        stores = await self._repository.list_stores()
        logger.debug("Searching %d stores near %s", len(stores), postal_code)
        return await self._engine.enrich(stores, postal_code, self._limit(limit), offset)

    async def pdvs_by_postal_code(
        self, postal_code: str, limit: Optional[int] = None, offset: int = 0
    ) -> EnrichmentResult:
        pdvs = await self._repository.list_pdvs()
        logger.debug("Searching %d PDVs near %s", len(pdvs), postal_code)
        return await self._engine.enrich(pdvs, postal_code, self._limit(limit), offset)

    async def locations_by_postal_code(
        self, postal_code: str, limit: Optional[int] = None, offset: int = 0
    ) -> EnrichmentResult:
        candidates = [*await self._repository.list_stores(), *await self._repository.list_pdvs()]
        return await self._engine.enrich(candidates, postal_code, self._limit(limit), offset)

    def _limit(self, limit: Optional[int]) -> int:
        return self.default_limit if limit is None else limit
