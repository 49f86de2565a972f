#!/usr/bin/env python3
"""Resolve a postal code and search nearby locations against the live providers."""

import asyncio
import sys
from pathlib import Path

project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

from storelocator.config import configure_logging, settings
from storelocator.exceptions import StoreLocatorError
from storelocator.services.factory import build_engine, build_store_finder


async def run(postal_code: str) -> int:
    print("=" * 60)
    print(f"Provider check for postal code {postal_code}")
    print("=" * 60)
    print()

    if not settings.google_api_key:
        print("   [ERROR] STORELOCATOR_GOOGLE_API_KEY is not configured")
        return 1

    async with build_engine(settings) as engine:
        return await _check(engine, postal_code)


async def _check(engine, postal_code: str) -> int:
    print("1. Resolving postal code...")
    try:
        user_location = await engine.resolve_location(postal_code)
    except StoreLocatorError as e:
        print(f"   [ERROR] {e}")
        return 1
    print(f"   [OK] {user_location.full_address}")
    coords = user_location.user_coordinates
    print(f"   [OK] Coordinates: {coords.latitude:.6f}, {coords.longitude:.6f}")
    print()

    if not settings.locations_file:
        print("2. Skipping search: STORELOCATOR_LOCATIONS_FILE is not set")
        return 0

    print("2. Searching nearby locations...")
    finder = build_store_finder(settings, engine=engine)
    try:
        result = await finder.locations_by_postal_code(postal_code)
    except StoreLocatorError as e:
        print(f"   [ERROR] {e}")
        return 1
    print(f"   [OK] {result.total} locations, showing {len(result.items)}")
    for item in result.items:
        best = item.shipping_options[0]
        print(f"   - {item.name} ({item.kind.value}): {item.distance_text}, {best.price} {best.lead_time_label}")
    print()

    print("=" * 60)
    print("[SUCCESS] Providers are reachable!")
    print("=" * 60)
    return 0


def main() -> int:
    configure_logging()
    postal_code = sys.argv[1] if len(sys.argv) > 1 else "01310-200"
    return asyncio.run(run(postal_code))


if __name__ == "__main__":
    sys.exit(main())
