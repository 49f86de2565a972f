"""Postal code (CEP) lookup through ViaCEP."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

import httpx

from ...cache.keys import normalize_postal_code
from ...config import settings
from ...exceptions import AddressResolutionError
from ...models.domain import ResolvedAddress
from ..http import ProviderHttpClient

CEP_LENGTH = 8

logger = logging.getLogger(__name__)


class PostalLookupClient(ABC):
    @abstractmethod
    async def lookup(self, normalized_postal_code: str) -> ResolvedAddress:
        """Resolve a digits-only postal code, raising AddressResolutionError when unusable."""

    async def close(self) -> None:
        return None


class ViaCepClient(ProviderHttpClient, PostalLookupClient):
    service_name = "ViaCEP"

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__(timeout=timeout, max_retries=max_retries, backoff_seconds=backoff_seconds, transport=transport)
        self.base_url = (base_url or settings.viacep_base_url).rstrip("/")

    async def lookup(self, normalized_postal_code: str) -> ResolvedAddress:
        cep = normalize_postal_code(normalized_postal_code)
        if len(cep) != CEP_LENGTH:
            raise AddressResolutionError(f"Invalid CEP '{normalized_postal_code}'", {"cep": normalized_postal_code})

        response = await self._request("GET", f"{self.base_url}/{cep}/json/")
        if response.status_code == 400:
            raise AddressResolutionError(f"Invalid CEP '{cep}'", {"cep": cep})
        if response.status_code >= 400:
            raise AddressResolutionError(
                f"ViaCEP rejected CEP '{cep}' with status {response.status_code}",
                {"cep": cep, "status_code": response.status_code},
            )
        try:
            data = response.json()
        except ValueError as exc:
            raise AddressResolutionError(f"Unreadable ViaCEP answer for '{cep}'", {"cep": cep}) from exc

        if not isinstance(data, dict) or str(data.get("erro", "")).lower() == "true":
            raise AddressResolutionError(f"CEP '{cep}' not found", {"cep": cep})

        street = (data.get("logradouro") or "").strip()
        locality = (data.get("localidade") or "").strip()
        region = (data.get("uf") or "").strip()
        if not street or not locality or not region:
            logger.info("ViaCEP returned an incomplete address for %s", cep)
            raise AddressResolutionError("Invalid CEP or incomplete address from ViaCEP", {"cep": cep})

        return ResolvedAddress(
            street=street,
            locality=locality,
            region=region,
            neighborhood=(data.get("bairro") or "").strip(),
            normalized_postal_code=normalize_postal_code(data.get("cep")) or cep,
            raw_provider_fields=data,
        )
