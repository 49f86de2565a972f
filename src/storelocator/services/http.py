"""Shared async HTTP plumbing for the third-party provider clients."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx

from ..config import settings
from ..exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class ProviderHttpClient:
    """Lazily created ``httpx.AsyncClient`` with retry and exponential backoff.

    Timeouts, network errors and 5xx answers are retried up to ``max_retries``
    times; 4xx answers are returned to the caller untouched so each provider
    can decide what they mean. Exhausted retries raise ExternalServiceError.
    """

    service_name = "provider"

    def __init__(
        self,
        timeout: float | None = None,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.timeout = timeout if timeout is not None else settings.http_timeout_seconds
        self.max_retries = max_retries if max_retries is not None else settings.provider_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.provider_backoff_seconds
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._lock = asyncio.Lock()

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = httpx.AsyncClient(
                        timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 5.0)),
                        transport=self._transport,
                    )
        return self._client

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        client = await self._get_client()
        attempt = 0
        while True:
            try:
                response = await client.request(method, url, **kwargs)
                if response.status_code >= 500:
                    raise httpx.HTTPStatusError(
                        f"{self.service_name} answered {response.status_code}",
                        request=response.request,
                        response=response,
                    )
                return response
            except httpx.HTTPStatusError as exc:
                attempt += 1
                if attempt > self.max_retries:
                    raise ExternalServiceError(
                        self.service_name,
                        f"server error after {attempt} attempts",
                        status_code=exc.response.status_code,
                    ) from exc
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(
                    "%s returned %d, retrying in %.1fs (attempt %d/%d)",
                    self.service_name, exc.response.status_code, wait_time, attempt, self.max_retries,
                )
                await asyncio.sleep(wait_time)
            except httpx.TimeoutException as exc:
                attempt += 1
                if attempt > self.max_retries:
                    logger.warning("%s request timed out after %d attempts: %s", self.service_name, attempt, exc)
                    raise ExternalServiceError(self.service_name, f"timed out after {attempt} attempts") from exc
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(
                    "%s request timeout, retrying in %.1fs (attempt %d/%d)",
                    self.service_name, wait_time, attempt, self.max_retries,
                )
                await asyncio.sleep(wait_time)
            except httpx.TransportError as exc:
                attempt += 1
                if attempt > self.max_retries:
                    raise ExternalServiceError(self.service_name, f"unreachable: {exc}") from exc
                wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                logger.debug(
                    "%s network error, retrying in %.1fs (attempt %d/%d): %s",
                    self.service_name, wait_time, attempt, self.max_retries, exc,
                )
                await asyncio.sleep(wait_time)

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
