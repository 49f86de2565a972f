import pytest

from storelocator.cache.store import CacheStore, InMemoryCacheStore
from storelocator.exceptions import CacheUnavailableError, GeocodingError, UpstreamBatchMismatchError
from storelocator.models.domain import Coordinates, DistanceResult, ShippingQuote, ShippingQuotes
from storelocator.services.distance.cached import CachedDistanceClient
from storelocator.services.distance.client import DistanceClient
from storelocator.services.geocoding.cached import CachedGeocodingClient
from storelocator.services.geocoding.client import GeocodingClient
from storelocator.services.shipping.cached import CachedShippingClient
from storelocator.services.shipping.client import ShippingClient

ORIGIN = Coordinates(-23.5505, -46.6333)
A = Coordinates(-23.56, -46.64)
B = Coordinates(-23.60, -46.70)
C = Coordinates(-23.70, -46.80)


class RecordingStore(InMemoryCacheStore):
    def __init__(self) -> None:
        super().__init__()
        self.writes: list[tuple[str, int]] = []

    async def set(self, key, value, ttl_ms):
        self.writes.append((key, ttl_ms))
        await super().set(key, value, ttl_ms)


class BrokenStore(CacheStore):
    async def get(self, key):
        raise CacheUnavailableError("store down")

    async def set(self, key, value, ttl_ms):
        raise CacheUnavailableError("store down")


class WriteOnlyBrokenStore(CacheStore):
    async def get(self, key):
        return None

    async def set(self, key, value, ttl_ms):
        raise CacheUnavailableError("store down")


class DummyGeocoder(GeocodingClient):
    def __init__(self) -> None:
        self.calls: list[str] = []

    async def geocode(self, address):
        self.calls.append(address)
        return Coordinates(-23.5505, -46.6333)


class DummyDistance(DistanceClient):
    """Distance in km equals the destination's index in ``known``."""

    def __init__(self, known=(A, B, C), drop_last=False, unavailable=()) -> None:
        self.known = list(known)
        self.batches: list[list[Coordinates]] = []
        self.drop_last = drop_last
        self.unavailable = set(unavailable)

    async def compute_distances(self, origin, destinations):
        self.batches.append(list(destinations))
        results = []
        for destination in destinations:
            if destination in self.unavailable:
                results.append(DistanceResult.unavailable())
                continue
            km = self.known.index(destination) + 1
            results.append(DistanceResult(f"{km} km", f"{km} min", km * 1000))
        return results[:-1] if self.drop_last else results


def _quote(price: str) -> ShippingQuotes:
    return ShippingQuotes(
        options=(ShippingQuote(lead_time_days=2, lead_time_label="2 dias úteis", price=price, description="Correios - PAC"),)
    )


class DummyShipping(ShippingClient):
    def __init__(self, result: ShippingQuotes) -> None:
        self.result = result
        self.calls = 0

    async def quote(self, from_postal_code, to_postal_code):
        self.calls += 1
        return self.result


@pytest.mark.asyncio
async def test_geocoding_hits_cache_for_equivalent_addresses():
    geocoder = DummyGeocoder()
    store = RecordingStore()
    cached = CachedGeocodingClient(geocoder, store, ttl_ms=1000)

    first = await cached.geocode("Av. Paulista, São Paulo, SP")
    second = await cached.geocode("  av.  paulista, são paulo, sp")

    assert first == second == Coordinates(-23.5505, -46.6333)
    assert len(geocoder.calls) == 1
    assert store.writes == [("geocoding:av. paulista, são paulo, sp", 1000)]


@pytest.mark.asyncio
async def test_geocoding_fails_open_when_store_is_down():
    geocoder = DummyGeocoder()
    cached = CachedGeocodingClient(geocoder, BrokenStore(), ttl_ms=1000)

    await cached.geocode("Rua A")
    await cached.geocode("Rua A")

    assert len(geocoder.calls) == 2


@pytest.mark.asyncio
async def test_geocoding_returns_value_when_write_fails():
    geocoder = DummyGeocoder()
    cached = CachedGeocodingClient(geocoder, WriteOnlyBrokenStore(), ttl_ms=1000)

    assert await cached.geocode("Rua A") == Coordinates(-23.5505, -46.6333)


@pytest.mark.asyncio
async def test_geocoding_errors_are_not_cached():
    class FailingGeocoder(GeocodingClient):
        async def geocode(self, address):
            raise GeocodingError("Could not geocode the address")

    store = RecordingStore()
    cached = CachedGeocodingClient(FailingGeocoder(), store, ttl_ms=1000)

    with pytest.raises(GeocodingError):
        await cached.geocode("Nowhere")
    assert store.writes == []


@pytest.mark.asyncio
async def test_distance_cache_fetches_only_missing_pairs_in_one_batch():
    upstream = DummyDistance()
    cached = CachedDistanceClient(upstream, RecordingStore(), ttl_ms=5000)

    await cached.compute_distances(ORIGIN, [A, B])
    results = await cached.compute_distances(ORIGIN, [B, A, C])

    assert [result.distance_text for result in results] == ["2 km", "1 km", "3 km"]
    assert upstream.batches == [[A, B], [C]]


@pytest.mark.asyncio
async def test_distance_cache_is_order_independent():
    upstream = DummyDistance()
    cached = CachedDistanceClient(upstream, RecordingStore(), ttl_ms=5000)

    await cached.compute_distances(ORIGIN, [A, B, C])
    results = await cached.compute_distances(ORIGIN, [C, B, A])

    assert [result.distance_text for result in results] == ["3 km", "2 km", "1 km"]
    assert len(upstream.batches) == 1


@pytest.mark.asyncio
async def test_distance_cache_skipped_above_threshold():
    upstream = DummyDistance()
    store = RecordingStore()
    cached = CachedDistanceClient(upstream, store, ttl_ms=5000, max_cached_destinations=2)

    results = await cached.compute_distances(ORIGIN, [A, B, C])

    assert len(results) == 3
    assert upstream.batches == [[A, B, C]]
    assert store.writes == []


@pytest.mark.asyncio
async def test_distance_cache_does_not_store_unavailable_results():
    upstream = DummyDistance(unavailable=[B])
    store = RecordingStore()
    cached = CachedDistanceClient(upstream, store, ttl_ms=5000)

    results = await cached.compute_distances(ORIGIN, [A, B])

    assert [result.distance_text for result in results] == ["1 km", "N/A"]
    assert len(store.writes) == 1


@pytest.mark.asyncio
async def test_distance_cache_read_failure_fetches_everything_without_writes():
    upstream = DummyDistance()
    cached = CachedDistanceClient(upstream, BrokenStore(), ttl_ms=5000)

    results = await cached.compute_distances(ORIGIN, [A, B])

    assert [result.distance_text for result in results] == ["1 km", "2 km"]
    assert upstream.batches == [[A, B]]


@pytest.mark.asyncio
async def test_distance_cache_rejects_short_upstream_batches():
    cached = CachedDistanceClient(DummyDistance(drop_last=True), RecordingStore(), ttl_ms=5000)

    with pytest.raises(UpstreamBatchMismatchError):
        await cached.compute_distances(ORIGIN, [A, B])


@pytest.mark.asyncio
async def test_distance_cache_empty_destinations():
    upstream = DummyDistance()
    cached = CachedDistanceClient(upstream, RecordingStore(), ttl_ms=5000)

    assert await cached.compute_distances(ORIGIN, []) == []
    assert upstream.batches == []


@pytest.mark.asyncio
async def test_shipping_cache_hit_and_ttl():
    upstream = DummyShipping(_quote("R$ 20,50"))
    store = RecordingStore()
    cached = CachedShippingClient(upstream, store, ttl_ms=3600000, fallback_ttl_ms=300000)

    first = await cached.quote("01310-200", "20040-002")
    second = await cached.quote("01310200", "20040002")

    assert first == second
    assert upstream.calls == 1
    assert store.writes == [("shipping:01310200:20040002", 3600000)]


@pytest.mark.asyncio
async def test_shipping_fallback_uses_short_ttl():
    upstream = DummyShipping(ShippingQuotes.unavailable("provider down"))
    store = RecordingStore()
    cached = CachedShippingClient(upstream, store, ttl_ms=3600000, fallback_ttl_ms=300000)

    quotes = await cached.quote("01310200", "20040002")

    assert not quotes.available
    assert quotes.options[0].price == "N/A"
    assert quotes.options[0].description == "Erro ao calcular frete"
    assert store.writes == [("shipping:01310200:20040002", 300000)]


@pytest.mark.asyncio
async def test_shipping_cache_fails_open():
    upstream = DummyShipping(_quote("R$ 20,50"))
    cached = CachedShippingClient(upstream, BrokenStore(), ttl_ms=3600000, fallback_ttl_ms=300000)

    await cached.quote("01310200", "20040002")
    quotes = await cached.quote("01310200", "20040002")

    assert quotes.options[0].price == "R$ 20,50"
    assert upstream.calls == 2
