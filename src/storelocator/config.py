"""Application configuration and settings management."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MINUTE_MS = 60 * 1000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="STORELOCATOR_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Store Locator"
    log_level: str = Field(default="INFO", description="Root log level used by the helper scripts.")

    locations_file: Optional[Path] = Field(
        default=None,
        description="CSV file with the stores and PDVs offered as search candidates.",
    )

    # Postal code lookup
    viacep_base_url: str = Field(default="https://viacep.com.br/ws", description="ViaCEP REST endpoint.")

    # Google Maps Platform
    google_api_key: Optional[str] = Field(
        default=None,
        description="API key for the Geocoding and Distance Matrix APIs.",
    )
    google_geocoding_url: str = "https://maps.googleapis.com/maps/api/geocode/json"
    google_distance_matrix_url: str = "https://maps.googleapis.com/maps/api/distancematrix/json"

    # Melhor Envio shipping quotes
    melhor_envio_url: str = "https://www.melhorenvio.com.br/api/v2/me/shipment/calculate"
    melhor_envio_token: Optional[str] = None
    melhor_envio_service_ids: tuple[str, ...] = Field(
        default=("1", "2"),
        description="Carrier service ids kept from the quote response.",
    )
    package_width_cm: float = Field(default=15.0, gt=0)
    package_height_cm: float = Field(default=10.0, gt=0)
    package_length_cm: float = Field(default=20.0, gt=0)
    package_weight_kg: float = Field(default=1.0, gt=0)

    # Provider HTTP behaviour
    http_timeout_seconds: float = Field(default=10.0, gt=0)
    provider_max_retries: int = Field(default=2, ge=0)
    provider_backoff_seconds: float = Field(default=0.5, ge=0.0)

    # Cache
    cache_backend: Literal["memory", "redis", "none"] = "memory"
    redis_url: str = "redis://localhost:6379/0"
    cache_memory_max_entries: int = Field(default=10_000, gt=0, description="Size bound of the in-memory cache store.")
    cache_location_ttl_ms: int = Field(default=30 * MINUTE_MS, ge=0)
    cache_geocoding_ttl_ms: int = Field(default=30 * DAY_MS, ge=0)
    cache_distance_ttl_ms: int = Field(default=DAY_MS, ge=0)
    cache_shipping_ttl_ms: int = Field(default=HOUR_MS, ge=0)
    cache_shipping_fallback_ttl_ms: int = Field(default=5 * MINUTE_MS, ge=0)
    distance_cache_max_destinations: int = Field(
        default=10,
        ge=0,
        description="Batches larger than this skip the per-pair distance cache.",
    )

    # Enrichment policy
    pdv_flat_rate_radius_km: float = Field(default=50.0, ge=0.0)
    pdv_flat_rate_price: str = "R$ 15,00"
    pdv_flat_rate_description: str = "Fixed price for this distance"
    shipping_concurrency: int = Field(
        default=1,
        ge=1,
        description="Concurrent shipping quote requests per search (1 keeps them sequential).",
    )
    haversine_average_speed_kmh: float = Field(default=40.0, gt=0)
    default_page_limit: int = Field(default=10, ge=0)

    @field_validator("melhor_envio_service_ids", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return tuple(str(item) for item in value)
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, (int, float)):
            return (str(value),)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()


@dataclass(frozen=True, slots=True)
class CacheTTLs:
    """Per-operation cache lifetimes in milliseconds, handed to each cache wrapper."""

    location_ms: int = 30 * MINUTE_MS
    geocoding_ms: int = 30 * DAY_MS
    distance_ms: int = DAY_MS
    shipping_ms: int = HOUR_MS
    shipping_fallback_ms: int = 5 * MINUTE_MS

    @classmethod
    def from_settings(cls, source: Settings) -> "CacheTTLs":
        return cls(
            location_ms=source.cache_location_ttl_ms,
            geocoding_ms=source.cache_geocoding_ttl_ms,
            distance_ms=source.cache_distance_ttl_ms,
            shipping_ms=source.cache_shipping_ttl_ms,
            shipping_fallback_ms=source.cache_shipping_fallback_ttl_ms,
        )


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


settings = Settings()
