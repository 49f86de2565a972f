"""Driving distance providers."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Sequence

import httpx

from ...config import settings
from ...exceptions import ExternalServiceError, UpstreamBatchMismatchError
from ...models.domain import Coordinates, DistanceResult
from ..geospatial import format_distance_text, format_duration_text, haversine_km
from ..http import ProviderHttpClient

# Distance Matrix accepts at most 25 destinations per request.
DEFAULT_MAX_DESTINATIONS_PER_REQUEST = 25

logger = logging.getLogger(__name__)


class DistanceClient(ABC):
    @abstractmethod
    async def compute_distances(
        self, origin: Coordinates, destinations: Sequence[Coordinates]
    ) -> list[DistanceResult]:
        """Return one result per destination, in destination order."""

    async def close(self) -> None:
        return None


class GoogleDistanceClient(ProviderHttpClient, DistanceClient):
    service_name = "Google Distance Matrix"

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        max_destinations_per_request: int = DEFAULT_MAX_DESTINATIONS_PER_REQUEST,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, max_retries=max_retries, backoff_seconds=backoff_seconds, transport=transport)
        self.api_key = api_key or settings.google_api_key
        if not self.api_key:
            raise ValueError("Google API key is not configured.")
        self.url = url or settings.google_distance_matrix_url
        self.max_destinations_per_request = max_destinations_per_request

    async def _matrix_row(self, origin: Coordinates, destinations: Sequence[Coordinates]) -> list[DistanceResult]:
        params = {
            "origins": origin.as_query(),
            "destinations": "|".join(point.as_query() for point in destinations),
            "mode": "driving",
            "language": "en",
            "key": self.api_key,
        }
        response = await self._request("GET", self.url, params=params)
        if response.status_code >= 400:
            raise ExternalServiceError(self.service_name, "request rejected", status_code=response.status_code)
        data = response.json()
        status = data.get("status", "OK")
        if status != "OK":
            raise ExternalServiceError(self.service_name, f"status {status}: {data.get('error_message', '')}")

        rows = data.get("rows") or []
        elements = (rows[0].get("elements") if rows else None) or []
        if len(elements) != len(destinations):
            raise UpstreamBatchMismatchError(expected=len(destinations), received=len(elements))

        results: list[DistanceResult] = []
        for element in elements:
            distance = element.get("distance") or {}
            duration = element.get("duration") or {}
            if element.get("status", "OK") != "OK" or not distance:
                results.append(DistanceResult.unavailable())
                continue
            results.append(
                DistanceResult(
                    distance_text=distance.get("text") or "N/A",
                    duration_text=duration.get("text") or "N/A",
                    distance_meters=int(distance.get("value") or 0),
                )
            )
        return results

    async def compute_distances(
        self, origin: Coordinates, destinations: Sequence[Coordinates]
    ) -> list[DistanceResult]:
        if not destinations:
            return []
        chunk_size = self.max_destinations_per_request
        if len(destinations) > chunk_size:
            logger.info(
                "Chunking distance request: %d destinations (max per request: %d)",
                len(destinations), chunk_size,
            )
        results: list[DistanceResult] = []
        for start in range(0, len(destinations), chunk_size):
            results.extend(await self._matrix_row(origin, destinations[start : start + chunk_size]))
        return results


class HaversineDistanceClient(DistanceClient):
    """Offline straight-line distances, for setups without a Google API key."""

    def __init__(self, average_speed_kmh: float | None = None) -> None:
        self.average_speed_kmh = average_speed_kmh or settings.haversine_average_speed_kmh

    async def compute_distances(
        self, origin: Coordinates, destinations: Sequence[Coordinates]
    ) -> list[DistanceResult]:
        results: list[DistanceResult] = []
        for destination in destinations:
            km = haversine_km(origin, destination)
            meters = int(round(km * 1000))
            results.append(
                DistanceResult(
                    distance_text=format_distance_text(meters),
                    duration_text=format_duration_text(km / self.average_speed_kmh * 3600),
                    distance_meters=meters,
                )
            )
        return results
