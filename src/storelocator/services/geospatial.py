"""Geospatial helper functions."""

from __future__ import annotations

import math
import re

from ..models.domain import Coordinates

EARTH_RADIUS_KM = 6371.0
KM_PER_MILE = 1.609344

_NUMBER_RE = re.compile(r"\d[\d.,]*")


def haversine_km(origin: Coordinates, destination: Coordinates) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(origin.latitude), math.radians(destination.latitude)
    d_phi = math.radians(destination.latitude - origin.latitude)
    d_lambda = math.radians(destination.longitude - origin.longitude)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def format_distance_text(meters: int) -> str:
    if meters < 1000:
        return f"{meters} m"
    return f"{meters / 1000:.1f} km"


def format_duration_text(seconds: float) -> str:
    minutes = max(1, round(seconds / 60))
    if minutes < 60:
        return f"{minutes} min"
    hours, rest = divmod(minutes, 60)
    return f"{hours} h {rest} min" if rest else f"{hours} h"


def _normalize_number(raw: str) -> str:
    """Turn a locale-formatted number into something float() accepts."""
    if "," in raw and "." in raw:
        if raw.rfind(",") > raw.rfind("."):
            return raw.replace(".", "").replace(",", ".")
        return raw.replace(",", "")
    if "," in raw:
        integer, _, fraction = raw.rpartition(",")
        # "1,300" is a thousands separator, "1,5" a decimal comma
        if raw.count(",") > 1 or len(fraction) == 3:
            return raw.replace(",", "")
        return f"{integer}.{fraction}"
    # "1.300" is a thousands separator as well, matching the comma case
    if raw.count(".") > 1 or (raw.count(".") == 1 and len(raw.rpartition(".")[2]) == 3):
        return raw.replace(".", "")
    return raw


def parse_distance_km(text: str | None) -> float:
    """Parse provider distance text ("1,2 km", "850 m", "3 mi") into kilometres.

    Anything without a usable number is ``math.inf`` so it ranks last.
    """
    if not text:
        return math.inf
    match = _NUMBER_RE.search(text)
    if not match:
        return math.inf
    raw = match.group().rstrip(".,")
    try:
        value = float(_normalize_number(raw))
    except ValueError:
        return math.inf

    unit = text[match.end():].strip().lower()
    if unit.startswith("km"):
        return value
    if unit.startswith("mi"):
        return value * KM_PER_MILE
    if unit.startswith("m"):
        return value / 1000
    return value
