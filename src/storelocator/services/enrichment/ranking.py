"""Ordering, pagination and map pins for enriched locations."""

from __future__ import annotations

from typing import Sequence, TypeVar

from ...models.domain import EnrichedLocation, MapPin, UserLocationInfo
from ..geospatial import parse_distance_km

T = TypeVar("T")


def sort_by_distance(locations: Sequence[EnrichedLocation]) -> list[EnrichedLocation]:
    """Ascending by the distance text; unparsable distances go last, ties keep input order."""
    return sorted(locations, key=lambda location: parse_distance_km(location.distance_text))


def paginate(items: Sequence[T], limit: int, offset: int) -> list[T]:
    if limit < 0 or offset < 0:
        raise ValueError(f"limit and offset must be non-negative, got limit={limit} offset={offset}")
    return list(items[offset : offset + limit])


def build_pins(locations: Sequence[EnrichedLocation], user_location: UserLocationInfo) -> list[MapPin]:
    pins = [MapPin(position=location.coordinates, title=location.name) for location in locations]
    address = user_location.resolved_address
    pins.append(
        MapPin(
            position=user_location.user_coordinates,
            title=f"Current Location: {address.locality}, {address.region}",
        )
    )
    return pins
