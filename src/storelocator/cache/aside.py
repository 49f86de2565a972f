"""Cache-aside reads with graceful degradation.

Cache Strategy:
    - Read the store first, call the provider only on a miss
    - Populate the store after a miss with the caller's TTL
    - Fail open: a store error is logged and the provider is called
      directly, so responses never depend on cache availability
"""

from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, TypeVar

from pydantic import TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError

from .store import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def read_cached(store: CacheStore, key: str, adapter: TypeAdapter[T]) -> tuple[bool, T | None]:
    """Return ``(ok, value)``; ``ok`` is False when the store could not be read."""
    try:
        raw = await store.get(key)
    except Exception as exc:
        logger.warning("Cache read failed for %s, calling provider directly: %s", key, exc)
        return False, None
    if raw is None:
        logger.debug("Cache miss for %s", key)
        return True, None
    try:
        value = adapter.validate_python(raw)
    except ValidationError as exc:
        logger.warning("Discarding unreadable cache entry %s: %s", key, exc)
        return True, None
    logger.debug("Cache hit for %s", key)
    return True, value


async def write_cached(store: CacheStore, key: str, value: T, adapter: TypeAdapter[T], ttl_ms: int) -> None:
    try:
        payload: Any = adapter.dump_python(value, mode="json")
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        logger.warning("Cannot serialize value for %s, result not cached: %s", key, exc)
        return
    try:
        await store.set(key, payload, ttl_ms)
    except Exception as exc:
        logger.warning("Cache write failed for %s, result not cached: %s", key, exc)


async def read_through(
    store: CacheStore,
    key: str,
    ttl_ms: int,
    adapter: TypeAdapter[T],
    compute: Callable[[], Awaitable[T]],
) -> T:
    ok, cached = await read_cached(store, key, adapter)
    if not ok:
        return await compute()
    if cached is not None:
        return cached
    value = await compute()
    await write_cached(store, key, value, adapter, ttl_ms)
    return value
