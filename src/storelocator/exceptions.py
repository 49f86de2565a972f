"""Error taxonomy for the proximity search pipeline."""

from __future__ import annotations

from typing import Any, Optional


class StoreLocatorError(Exception):
    """Base class for every error raised by this package."""

    code = "STORE_LOCATOR_ERROR"

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(message)


class ResolutionError(StoreLocatorError):
    """The target postal code could not be turned into a location."""

    code = "RESOLUTION_ERROR"


class AddressResolutionError(ResolutionError):
    code = "ADDRESS_RESOLUTION_ERROR"


class GeocodingError(ResolutionError):
    code = "GEOCODING_ERROR"


class UpstreamBatchMismatchError(StoreLocatorError):
    """A batched distance call answered with a different number of results."""

    code = "UPSTREAM_BATCH_MISMATCH"

    def __init__(self, expected: int, received: int) -> None:
        super().__init__(
            f"Distance provider returned {received} results for {expected} destinations",
            {"expected": expected, "received": received},
        )
        self.expected = expected
        self.received = received


class CacheUnavailableError(StoreLocatorError):
    """Raised by cache stores; cache wrappers log it and call the provider directly."""

    code = "CACHE_UNAVAILABLE"


class ExternalServiceError(StoreLocatorError):
    code = "EXTERNAL_SERVICE_ERROR"

    def __init__(self, service_name: str, message: str, status_code: Optional[int] = None) -> None:
        context: dict[str, Any] = {"service": service_name}
        if status_code is not None:
            context["status_code"] = status_code
        super().__init__(f"{service_name} service error: {message}", context)
        self.service_name = service_name
        self.status_code = status_code
