"""Deterministic cache keys for each cached operation."""

from __future__ import annotations

import re
from typing import Sequence

from ..models.domain import Coordinates

COORDINATE_PLACES = 6

_WHITESPACE_RE = re.compile(r"\s+")
_NON_DIGIT_RE = re.compile(r"\D")


def normalize_postal_code(postal_code: str | None) -> str:
    """Strip everything but digits ("01310-200" -> "01310200")."""
    return _NON_DIGIT_RE.sub("", postal_code or "")


def normalize_address(address: str) -> str:
    return _WHITESPACE_RE.sub(" ", address.strip().lower())


def _coordinate_token(point: Coordinates) -> str:
    return f"{point.latitude:.{COORDINATE_PLACES}f},{point.longitude:.{COORDINATE_PLACES}f}"


def location_cache_key(normalized_postal_code: str) -> str:
    return f"location:{normalized_postal_code}"


def geocoding_cache_key(address: str) -> str:
    return f"geocoding:{normalize_address(address)}"


def distance_cache_key(origin: Coordinates, destinations: Sequence[Coordinates]) -> str:
    """Key for an origin and a set of destinations.

    Destinations are sorted after rounding, so any ordering of the same
    destinations maps to the same key.
    """
    rounded = sorted(
        (round(point.latitude, COORDINATE_PLACES), round(point.longitude, COORDINATE_PLACES))
        for point in destinations
    )
    tokens = "|".join(f"{lat:.{COORDINATE_PLACES}f},{lng:.{COORDINATE_PLACES}f}" for lat, lng in rounded)
    return f"distance:{_coordinate_token(origin)}:to:{tokens}"


def shipping_cache_key(origin_postal_code: str, destination_postal_code: str) -> str:
    return f"shipping:{normalize_postal_code(origin_postal_code)}:{normalize_postal_code(destination_postal_code)}"
