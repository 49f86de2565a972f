"""Address geocoding through the Google Geocoding API."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from ...config import settings
from ...exceptions import GeocodingError
from ...models.domain import Coordinates
from ..http import ProviderHttpClient

logger = logging.getLogger(__name__)


class GeocodingClient(ABC):
    @abstractmethod
    async def geocode(self, address: str) -> Coordinates:
        """Return the coordinates of ``address`` or raise GeocodingError."""

    async def close(self) -> None:
        return None


class GoogleGeocodingClient(ProviderHttpClient, GeocodingClient):
    service_name = "Google Geocoding"

    def __init__(
        self,
        api_key: str | None = None,
        url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, max_retries=max_retries, backoff_seconds=backoff_seconds, transport=transport)
        self.api_key = api_key or settings.google_api_key
        if not self.api_key:
            raise ValueError("Google API key is not configured.")
        self.url = url or settings.google_geocoding_url

    async def geocode(self, address: str) -> Coordinates:
        response = await self._request("GET", self.url, params={"address": address, "key": self.api_key})
        if response.status_code >= 400:
            raise GeocodingError(
                f"Could not geocode the address (HTTP {response.status_code})",
                {"address": address, "status_code": response.status_code},
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise GeocodingError("Unreadable geocoding answer", {"address": address}) from exc
        if not isinstance(data, dict):
            raise GeocodingError("Unreadable geocoding answer", {"address": address})
        status = data.get("status", "")
        if status and status != "OK":
            if status != "ZERO_RESULTS":
                logger.warning("Geocoding status=%s: %s", status, data.get("error_message", ""))
            raise GeocodingError("Could not geocode the address", {"address": address, "status": status})

        results = data.get("results") or []
        location = (results[0].get("geometry") or {}).get("location") if results else None
        if not location or location.get("lat") is None or location.get("lng") is None:
            raise GeocodingError("Could not geocode the address", {"address": address})

        try:
            return Coordinates(latitude=float(location["lat"]), longitude=float(location["lng"]))
        except (TypeError, ValueError) as exc:
            raise GeocodingError(f"Geocoding returned an invalid location: {exc}", {"address": address}) from exc
