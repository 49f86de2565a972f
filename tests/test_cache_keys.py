from itertools import permutations

from storelocator.cache.keys import (
    distance_cache_key,
    geocoding_cache_key,
    location_cache_key,
    normalize_postal_code,
    shipping_cache_key,
)
from storelocator.models.domain import Coordinates

ORIGIN = Coordinates(-23.5505, -46.6333)


def test_normalize_postal_code():
    assert normalize_postal_code("01310-200") == "01310200"
    assert normalize_postal_code(" 01.310-200 ") == "01310200"
    assert normalize_postal_code(None) == ""
    assert location_cache_key("01310200") == "location:01310200"


def test_geocoding_key_ignores_case_and_spacing():
    assert geocoding_cache_key("  Av.  Paulista, São Paulo ") == "geocoding:av. paulista, são paulo"
    assert geocoding_cache_key("AV. PAULISTA, SÃO PAULO") == geocoding_cache_key("av. paulista,  são paulo")


def test_distance_key_is_order_independent():
    destinations = [Coordinates(-23.56, -46.64), Coordinates(-23.6, -46.7), Coordinates(-22.9, -43.2)]

    keys = {distance_cache_key(ORIGIN, list(order)) for order in permutations(destinations)}

    assert len(keys) == 1
    assert keys.pop().startswith("distance:-23.550500,-46.633300:to:")


def test_distance_key_rounds_to_six_places():
    first = distance_cache_key(ORIGIN, [Coordinates(-23.56, -46.64)])
    second = distance_cache_key(ORIGIN, [Coordinates(-23.56000001, -46.63999999)])

    assert first == second
    assert first != distance_cache_key(ORIGIN, [Coordinates(-23.561, -46.64)])


def test_shipping_key_is_direction_sensitive():
    assert shipping_cache_key("01310-200", "20040-002") == "shipping:01310200:20040002"
    assert shipping_cache_key("01310-200", "20040-002") != shipping_cache_key("20040-002", "01310-200")
