"""Shipping quotes through the Melhor Envio API."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence

import httpx

from ...cache.keys import normalize_postal_code
from ...config import settings
from ...exceptions import ExternalServiceError
from ...models.domain import ShippingQuote, ShippingQuotes
from ..http import ProviderHttpClient

logger = logging.getLogger(__name__)


def format_lead_time(days: int) -> str:
    return f"{days} {'dia útil' if days == 1 else 'dias úteis'}"


def format_price(value: Any) -> str:
    return f"R$ {float(value):.2f}".replace(".", ",")


class ShippingClient(ABC):
    @abstractmethod
    async def quote(self, from_postal_code: str, to_postal_code: str) -> ShippingQuotes:
        """Quote shipping between two postal codes.

        Provider failures come back as ``ShippingQuotes.unavailable`` rather
        than as exceptions.
        """

    async def close(self) -> None:
        return None


class MelhorEnvioShippingClient(ProviderHttpClient, ShippingClient):
    service_name = "Melhor Envio"

    def __init__(
        self,
        token: str | None = None,
        url: str | None = None,
        service_ids: Sequence[str] | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, max_retries=max_retries, backoff_seconds=backoff_seconds, transport=transport)
        self.token = token or settings.melhor_envio_token
        self.url = url or settings.melhor_envio_url
        self.service_ids = tuple(str(item) for item in (service_ids or settings.melhor_envio_service_ids))

    def _payload(self, from_postal_code: str, to_postal_code: str) -> dict[str, Any]:
        return {
            "from": {"postal_code": from_postal_code},
            "to": {"postal_code": to_postal_code},
            "products": [
                {
                    "id": "1",
                    "width": settings.package_width_cm,
                    "height": settings.package_height_cm,
                    "length": settings.package_length_cm,
                    "weight": settings.package_weight_kg,
                    "insurance_value": 0,
                    "quantity": 1,
                }
            ],
            "options": {
                "receipt": False,
                "own_hand": False,
                "insurance_value": 0,
                "reverse": False,
                "non_commercial": True,
            },
            "services": ",".join(self.service_ids),
            "validate": True,
        }

    def _parse_option(self, option: dict[str, Any]) -> ShippingQuote:
        days = int(option.get("delivery_time") or 0)
        company = (option.get("company") or {}).get("name") or ""
        name = option.get("name") or ""
        return ShippingQuote(
            lead_time_days=days,
            lead_time_label=format_lead_time(days),
            price=format_price(option["price"]),
            description=f"{company} - {name}" if company else name,
            carrier=company or None,
            service_name=name or None,
            service_code=str(option.get("id")),
        )

    async def quote(self, from_postal_code: str, to_postal_code: str) -> ShippingQuotes:
        origin = normalize_postal_code(from_postal_code)
        destination = normalize_postal_code(to_postal_code)
        if not origin:
            return ShippingQuotes.unavailable("Location has no postal code")

        headers = {
            "Authorization": f"Bearer {self.token}",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        try:
            response = await self._request("POST", self.url, json=self._payload(origin, destination), headers=headers)
            response.raise_for_status()
            options = response.json()
            quotes = tuple(
                self._parse_option(option)
                for option in options
                if str(option.get("id")) in self.service_ids and not option.get("error")
            )
        except (ExternalServiceError, httpx.HTTPError, KeyError, TypeError, ValueError, AttributeError) as exc:
            logger.error("Error calculating shipping from %s to %s: %s", origin, destination, exc)
            return ShippingQuotes.unavailable(str(exc))

        if not quotes:
            logger.warning("No shipping options from %s to %s", origin, destination)
            return ShippingQuotes.unavailable("No shipping options available")
        return ShippingQuotes(options=quotes)
