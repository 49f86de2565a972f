"""Serializers for search results."""

from __future__ import annotations

import csv
import io
from dataclasses import asdict

from ...models.domain import Coordinates, EnrichmentResult


def _position(coordinates: Coordinates) -> dict:
    return {"lat": coordinates.latitude, "lng": coordinates.longitude}


def enrichment_result_to_json(result: EnrichmentResult) -> dict:
    return {
        "total": result.total,
        "limit": result.limit,
        "offset": result.offset,
        "items": [
            {
                "id": item.id,
                "name": item.name,
                "city": item.city,
                "postal_code": item.postal_code,
                "type": item.kind.value,
                "distance": item.distance_text,
                "distance_km": item.distance_km,
                "position": _position(item.coordinates),
                "shipping": [asdict(option) for option in item.shipping_options],
            }
            for item in result.items
        ],
        "pins": [{"position": _position(pin.position), "title": pin.title} for pin in result.pins],
    }


def enrichment_result_to_csv(result: EnrichmentResult) -> str:
    """One row per shipping option of each location on the current page."""
    buffer = io.StringIO()
    fieldnames = [
        "id",
        "name",
        "type",
        "city",
        "postal_code",
        "distance",
        "latitude",
        "longitude",
        "shipping_description",
        "shipping_price",
        "shipping_lead_time",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()
    for item in result.items:
        for option in item.shipping_options:
            writer.writerow(
                {
                    "id": item.id,
                    "name": item.name,
                    "type": item.kind.value,
                    "city": item.city,
                    "postal_code": item.postal_code,
                    "distance": item.distance_text,
                    "latitude": item.coordinates.latitude,
                    "longitude": item.coordinates.longitude,
                    "shipping_description": option.description,
                    "shipping_price": option.price,
                    "shipping_lead_time": option.lead_time_label,
                }
            )
    return buffer.getvalue()
