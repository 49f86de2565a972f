import pytest

from storelocator.cache.store import CacheStore, InMemoryCacheStore
from storelocator.exceptions import AddressResolutionError, CacheUnavailableError, GeocodingError
from storelocator.models.domain import Coordinates, ResolvedAddress
from storelocator.services.geocoding.client import GeocodingClient
from storelocator.services.location.resolver import LocationResolver
from storelocator.services.postal.client import PostalLookupClient


def _address(cep: str = "01310200") -> ResolvedAddress:
    return ResolvedAddress(
        street="Avenida Paulista",
        locality="São Paulo",
        region="SP",
        neighborhood="Bela Vista",
        normalized_postal_code=cep,
        raw_provider_fields={"cep": "01310-200", "logradouro": "Avenida Paulista"},
    )


class DummyPostal(PostalLookupClient):
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[str] = []
        self.error = error

    async def lookup(self, normalized_postal_code):
        self.calls.append(normalized_postal_code)
        if self.error:
            raise self.error
        return _address(normalized_postal_code)


class DummyGeocoder(GeocodingClient):
    def __init__(self, error: Exception | None = None) -> None:
        self.calls: list[str] = []
        self.error = error

    async def geocode(self, address):
        self.calls.append(address)
        if self.error:
            raise self.error
        return Coordinates(-23.5505, -46.6333)


class BrokenStore(CacheStore):
    async def get(self, key):
        raise CacheUnavailableError("store down")

    async def set(self, key, value, ttl_ms):
        raise CacheUnavailableError("store down")


def _resolver(postal=None, geocoder=None, store=None) -> LocationResolver:
    return LocationResolver(
        postal_client=postal or DummyPostal(),
        geocoder=geocoder or DummyGeocoder(),
        store=store if store is not None else InMemoryCacheStore(),
        ttl_ms=1800000,
    )


@pytest.mark.asyncio
async def test_resolve_builds_user_location():
    postal = DummyPostal()
    geocoder = DummyGeocoder()

    info = await _resolver(postal, geocoder).resolve("01310-200")

    assert postal.calls == ["01310200"]
    assert geocoder.calls == ["Avenida Paulista, São Paulo, SP"]
    assert info.full_address == "Avenida Paulista, São Paulo, SP"
    assert info.normalized_postal_code == "01310200"
    assert info.user_coordinates == Coordinates(-23.5505, -46.6333)
    assert info.resolved_address.locality == "São Paulo"


@pytest.mark.asyncio
async def test_resolve_is_cached_per_postal_code():
    postal = DummyPostal()
    resolver = _resolver(postal)

    first = await resolver.resolve("01310-200")
    second = await resolver.resolve("01310200")

    assert first == second
    assert postal.calls == ["01310200"]


@pytest.mark.asyncio
async def test_resolve_works_without_cache():
    postal = DummyPostal()
    resolver = _resolver(postal, store=BrokenStore())

    await resolver.resolve("01310200")
    await resolver.resolve("01310200")

    assert len(postal.calls) == 2


@pytest.mark.asyncio
async def test_resolve_rejects_blank_postal_code():
    postal = DummyPostal()

    with pytest.raises(AddressResolutionError):
        await _resolver(postal).resolve(" - ")
    assert postal.calls == []


@pytest.mark.asyncio
async def test_resolution_errors_propagate_and_are_not_cached():
    store = InMemoryCacheStore()
    postal = DummyPostal(error=AddressResolutionError("CEP '99999999' not found"))
    resolver = _resolver(postal, store=store)

    with pytest.raises(AddressResolutionError):
        await resolver.resolve("99999-999")
    assert len(store) == 0


@pytest.mark.asyncio
async def test_geocoding_failure_propagates():
    resolver = _resolver(geocoder=DummyGeocoder(error=GeocodingError("Could not geocode the address")))

    with pytest.raises(GeocodingError):
        await resolver.resolve("01310200")


@pytest.mark.asyncio
async def test_unserializable_result_is_returned_without_caching():
    class OddPostal(DummyPostal):
        async def lookup(self, normalized_postal_code):
            address = await super().lookup(normalized_postal_code)
            return ResolvedAddress(
                street=address.street,
                locality=address.locality,
                region=address.region,
                neighborhood=address.neighborhood,
                normalized_postal_code=address.normalized_postal_code,
                raw_provider_fields={"x": object()},
            )

    store = InMemoryCacheStore()

    info = await _resolver(OddPostal(), store=store).resolve("01310200")

    assert info.full_address == "Avenida Paulista, São Paulo, SP"
    assert len(store) == 0
