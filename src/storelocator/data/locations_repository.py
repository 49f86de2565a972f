"""Data access helpers for loading stores and points of sale."""

from __future__ import annotations

import csv
import functools
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Iterable, Optional

from ..config import settings
from ..models.domain import CandidateLocation, Coordinates, LocationKind

logger = logging.getLogger(__name__)

_KIND_ALIASES = {
    "LOJA": LocationKind.STORE,
    "STORE": LocationKind.STORE,
    "PDV": LocationKind.PDV,
}


def _coerce_float(value: Optional[str]) -> Optional[float]:
    if value is None or value.strip() == "":
        return None
    try:
        return float(value.strip().replace(",", "."))
    except ValueError as exc:
        raise ValueError(f"Unable to parse float from value '{value}'") from exc


def _parse_kind(value: Optional[str]) -> LocationKind:
    kind = _KIND_ALIASES.get((value or "").strip().upper())
    if kind is None:
        raise ValueError(f"Unknown location type '{value}'")
    return kind


def _row_coordinates(row: dict[str, str], location_id: str) -> Optional[Coordinates]:
    lat = _coerce_float(row.get("latitude") or row.get("Latitude"))
    lon = _coerce_float(row.get("longitude") or row.get("Longitude"))
    if lat is None or lon is None:
        return None
    try:
        return Coordinates(latitude=lat, longitude=lon)
    except ValueError as exc:
        logger.warning("Ignoring invalid coordinates for location %s: %s", location_id, exc)
        return None


@functools.lru_cache(maxsize=4)
def load_locations(source: Optional[Path] = None) -> tuple[CandidateLocation, ...]:
    """Load stores and PDVs from a CSV file.

    Expected columns: ``id,type,name,postal_code,city,latitude,longitude,parent_store_id``.
    Rows without coordinates are kept; the search skips them.
    """

    csv_path = source or settings.locations_file
    if csv_path is None:
        raise FileNotFoundError("No locations file configured (STORELOCATOR_LOCATIONS_FILE)")
    csv_path = Path(csv_path)
    if not csv_path.exists():
        raise FileNotFoundError(f"Locations file not found: {csv_path}")

    locations: list[CandidateLocation] = []
    with csv_path.open(mode="r", encoding="utf-8-sig", newline="") as handle:
        reader = csv.DictReader(handle)
        if not reader.fieldnames:
            raise ValueError(f"Locations file '{csv_path}' is missing a header row.")
        for row in reader:
            location_id = (row.get("id") or "").strip()
            if not location_id:
                continue
            locations.append(
                CandidateLocation(
                    id=location_id,
                    kind=_parse_kind(row.get("type")),
                    name=(row.get("name") or "").strip(),
                    postal_code=(row.get("postal_code") or "").strip(),
                    city=(row.get("city") or "").strip(),
                    coordinates=_row_coordinates(row, location_id),
                    parent_store_id=(row.get("parent_store_id") or "").strip() or None,
                )
            )
    logger.info("Loaded %d locations from %s", len(locations), csv_path)
    return tuple(locations)


class LocationRepository(ABC):
    @abstractmethod
    async def list_stores(self) -> list[CandidateLocation]:
        ...

    @abstractmethod
    async def list_pdvs(self) -> list[CandidateLocation]:
        ...


class InMemoryLocationRepository(LocationRepository):
    def __init__(self, locations: Iterable[CandidateLocation]) -> None:
        self._locations = tuple(locations)

    @classmethod
    def from_csv(cls, source: Optional[Path] = None) -> "InMemoryLocationRepository":
        return cls(load_locations(source))

    async def list_stores(self) -> list[CandidateLocation]:
        return [location for location in self._locations if location.kind is LocationKind.STORE]

    async def list_pdvs(self) -> list[CandidateLocation]:
        return [location for location in self._locations if location.kind is LocationKind.PDV]
