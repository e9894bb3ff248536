from concurrent.futures import ThreadPoolExecutor
from unittest.mock import patch

from itinerary_logic.event import RouteProvider
from itinerary_logic.route_cache import MemoryRouteCache, NullRouteCache, RouteResult, route_cache_key


def make_result(minutes=10):
    return RouteResult(5.0, minutes, RouteProvider.OSRM)


def test_cache_key_rounds_coordinates():
    key = route_cache_key([75.123456789, 26.1], [75.2, 26.2])
    assert key == "75.12346,26.10000|75.20000,26.20000"
    # differences below the precision share a key
    assert route_cache_key([75.1234561, 26.1], [75.2, 26.2]) == key


def test_cache_key_is_direction_sensitive():
    a, b = [75.85, 26.98], [75.82, 26.92]
    assert route_cache_key(a, b) != route_cache_key(b, a)


def test_memory_cache_get_put():
    cache = MemoryRouteCache(max_size=10)
    assert cache.get("k") is None
    cache.put("k", make_result())
    assert cache.get("k") == make_result()
    assert cache.size() == 1
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1


def test_memory_cache_evicts_least_recently_used():
    cache = MemoryRouteCache(max_size=2)
    cache.put("a", make_result(1))
    cache.put("b", make_result(2))
    assert cache.get("a") is not None  # a is now most recently used
    cache.put("c", make_result(3))

    assert cache.get("b") is None
    assert cache.get("a").travel_time_min == 1
    assert cache.get("c").travel_time_min == 3
    assert cache.stats()["evictions"] == 1


def test_memory_cache_overwrite_keeps_single_entry():
    cache = MemoryRouteCache(max_size=2)
    cache.put("a", make_result(1))
    cache.put("a", make_result(1))
    assert cache.size() == 1


def test_memory_cache_ttl_expiry():
    cache = MemoryRouteCache(ttl_seconds=10)
    with patch('itinerary_logic.route_cache.time.monotonic', side_effect=[0.0, 5.0, 100.0]):
        cache.put("a", make_result())
        assert cache.get("a") is not None
        assert cache.get("a") is None
    assert cache.size() == 0


def test_memory_cache_clear():
    cache = MemoryRouteCache()
    cache.put("a", make_result())
    assert cache.clear() == 1
    assert cache.size() == 0


def test_memory_cache_concurrent_writers():
    cache = MemoryRouteCache(max_size=50)

    def worker(i):
        key = f"k{i % 80}"
        cache.put(key, make_result(i % 80))
        return cache.get(key)

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(worker, range(400)))

    assert cache.size() <= 50
    assert all(r is None or isinstance(r, RouteResult) for r in results)


def test_null_cache_never_stores():
    cache = NullRouteCache()
    cache.put("a", make_result())
    assert cache.get("a") is None
    assert cache.size() == 0
