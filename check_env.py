#!/usr/bin/env python3
"""Helper script to check and create the .env file for provider credentials."""

from pathlib import Path
import os

ENV_TEMPLATE = """# Google Maps Platform (Geocoding + Distance Matrix)
STORELOCATOR_GOOGLE_API_KEY=your-google-api-key

# Melhor Envio shipping quotes
STORELOCATOR_MELHOR_ENVIO_TOKEN=your-melhor-envio-token
# STORELOCATOR_MELHOR_ENVIO_SERVICE_IDS - comma-separated or JSON array, e.g. 1,2

# Cache backend: memory, redis or none
STORELOCATOR_CACHE_BACKEND=memory
# STORELOCATOR_REDIS_URL=redis://localhost:6379/0

# Candidate stores and PDVs
STORELOCATOR_LOCATIONS_FILE=./data/locations.csv
"""

SECRET_VARS = ("STORELOCATOR_GOOGLE_API_KEY", "STORELOCATOR_MELHOR_ENVIO_TOKEN")


def _mask(value: str) -> str:
    if len(value) > 12:
        return value[:6] + "..." + value[-4:]
    return "***"


def main():
    project_root = Path(__file__).parent
    env_file = project_root / ".env"

    print("=" * 60)
    print("Store Locator Environment Checker")
    print("=" * 60)
    print()

    if env_file.exists():
        print(f"[OK] Found .env file at: {env_file}")
        print()
        print("Current contents:")
        print("-" * 60)
        for line in env_file.read_text(encoding="utf-8").splitlines():
            name, sep, value = line.partition("=")
            if sep and name.strip() in SECRET_VARS and value.strip():
                print(f"{name}={_mask(value.strip())}")
            else:
                print(line)
        print("-" * 60)
        print()
    else:
        print(f"[ERROR] .env file NOT found at: {env_file}")
        print("Creating template .env file...")
        env_file.write_text(ENV_TEMPLATE, encoding="utf-8")
        print(f"[OK] Created .env file at: {env_file}")
        print("Please edit .env and add your provider credentials.")
        print()
        return

    print("Testing config loading...")
    print()
    for name in SECRET_VARS:
        if os.getenv(name):
            print(f"[OK] {name} set in environment")

    try:
        import sys
        sys.path.insert(0, str(project_root / "src"))
        from storelocator.config import Settings

        loaded = Settings()
    except Exception as e:
        print(f"[ERROR] Error loading config: {e}")
        print("Make sure you're running this from the project root directory")
        return

    print(f"Cache backend: {loaded.cache_backend}")
    print(f"Locations file: {loaded.locations_file or '(not set)'}")
    print(f"Google API key: {'configured' if loaded.google_api_key else 'missing (straight-line distances only, no geocoding)'}")
    print(f"Melhor Envio token: {'configured' if loaded.melhor_envio_token else 'missing (shipping quotes will be N/A)'}")
    print()

    if loaded.google_api_key and loaded.melhor_envio_token:
        print("=" * 60)
        print("[SUCCESS] Providers are configured!")
        print("=" * 60)
    else:
        print("=" * 60)
        print("[ERROR] Some providers are NOT configured")
        print("=" * 60)
        print("Make sure variables start with the STORELOCATOR_ prefix")


if __name__ == "__main__":
    main()
