"""Domain models for candidate locations, provider results and search output."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

UNAVAILABLE = "N/A"


class LocationKind(str, Enum):
    STORE = "STORE"
    PDV = "PDV"


@dataclass(frozen=True, slots=True)
class Coordinates:
    """A WGS84 point. Rejects non-finite or out-of-range values."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.latitude) and math.isfinite(self.longitude)):
            raise ValueError(f"Coordinates must be finite, got ({self.latitude}, {self.longitude})")
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"Latitude {self.latitude} is outside [-90, 90]")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"Longitude {self.longitude} is outside [-180, 180]")

    def as_query(self) -> str:
        return f"{self.latitude},{self.longitude}"


@dataclass(frozen=True, slots=True)
class ResolvedAddress:
    """Structured address returned by the postal code lookup."""

    street: str
    locality: str
    region: str
    neighborhood: str
    normalized_postal_code: str
    raw_provider_fields: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UserLocationInfo:
    full_address: str
    normalized_postal_code: str
    user_coordinates: Coordinates
    resolved_address: ResolvedAddress


@dataclass(frozen=True, slots=True)
class DistanceResult:
    distance_text: str
    duration_text: str
    distance_meters: int

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000

    @property
    def available(self) -> bool:
        return self.distance_text != UNAVAILABLE

    @classmethod
    def unavailable(cls) -> "DistanceResult":
        return cls(distance_text=UNAVAILABLE, duration_text=UNAVAILABLE, distance_meters=0)


@dataclass(frozen=True, slots=True)
class ShippingQuote:
    lead_time_days: int
    lead_time_label: str
    price: str
    description: str
    carrier: Optional[str] = None
    service_name: Optional[str] = None
    service_code: Optional[str] = None

    @classmethod
    def placeholder(cls) -> "ShippingQuote":
        return cls(
            lead_time_days=0,
            lead_time_label=UNAVAILABLE,
            price=UNAVAILABLE,
            description="Erro ao calcular frete",
        )


@dataclass(frozen=True, slots=True)
class ShippingQuotes:
    """Outcome of a shipping quote request.

    A provider failure is an ordinary value here: ``available`` is False and
    ``options`` holds the single placeholder quote, so callers always receive
    at least one option.
    """

    options: tuple[ShippingQuote, ...]
    available: bool = True
    reason: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.options:
            raise ValueError("ShippingQuotes requires at least one option")

    @classmethod
    def unavailable(cls, reason: str) -> "ShippingQuotes":
        return cls(options=(ShippingQuote.placeholder(),), available=False, reason=reason)


@dataclass(frozen=True, slots=True)
class CandidateLocation:
    """A store or PDV supplied by the persistence layer."""

    id: str
    kind: LocationKind
    name: str
    postal_code: str
    city: str
    coordinates: Optional[Coordinates] = None
    parent_store_id: Optional[str] = None


@dataclass(frozen=True, slots=True)
class EnrichedLocation:
    id: str
    name: str
    city: str
    postal_code: str
    kind: LocationKind
    distance_text: str
    distance_km: Optional[float]
    shipping_options: tuple[ShippingQuote, ...]
    coordinates: Coordinates


@dataclass(frozen=True, slots=True)
class MapPin:
    position: Coordinates
    title: str


@dataclass(frozen=True, slots=True)
class EnrichmentResult:
    items: tuple[EnrichedLocation, ...]
    pins: tuple[MapPin, ...]
    total: int
    limit: int
    offset: int
