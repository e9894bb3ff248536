"""Route cache - memoized leg estimates shared by concurrent scheduling runs.

Keys are built from coordinates rounded to a fixed precision and are
direction sensitive: A->B and B->A are cached separately because road
travel times differ by direction.

Implementations:
- MemoryRouteCache: thread-safe LRU with optional TTL (production)
- NullRouteCache: always misses (tests, debugging)
"""

from __future__ import annotations

import logging
import threading
import time
from collections import OrderedDict
from typing import Any, Dict, Optional, Protocol, Sequence, Tuple

from .config import Config
from .event import RouteProvider


class RouteResult:
    """Distance and travel time of one leg, tagged with the provider that produced it."""

    def __init__(self, distance_km, travel_time_min, provider, cached=False):
        self.distance_km = float(distance_km)
        self.travel_time_min = int(travel_time_min)
        self.provider = RouteProvider(provider)
        self.cached = cached

    def as_cached(self) -> "RouteResult":
        return RouteResult(self.distance_km, self.travel_time_min, self.provider, cached=True)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "distanceKm": self.distance_km,
            "travelTimeMin": self.travel_time_min,
            "provider": self.provider.value,
            "cached": self.cached,
        }

    def __eq__(self, other):
        if not isinstance(other, RouteResult):
            return NotImplemented
        return (self.distance_km, self.travel_time_min, self.provider) == \
            (other.distance_km, other.travel_time_min, other.provider)

    def __repr__(self):
        return f"RouteResult({self.distance_km} km, {self.travel_time_min} min, {self.provider.value})"


def route_cache_key(origin: Sequence[float], destination: Sequence[float],
                    precision: Optional[int] = None) -> str:
    """Build the cache key for a directed leg from two [lon, lat] points."""
    digits = Config.CACHE_PRECISION if precision is None else precision

    def fmt(point):
        return f"{float(point[0]):.{digits}f},{float(point[1]):.{digits}f}"

    return f"{fmt(origin)}|{fmt(destination)}"


class RouteCache(Protocol):
    """Contract the resolver relies on. Any object with get/put can be injected."""

    def get(self, key: str) -> Optional[RouteResult]:
        ...

    def put(self, key: str, entry: RouteResult) -> None:
        ...


class MemoryRouteCache:
    """Thread-safe in-memory LRU cache of route results.

    Concurrent misses for the same key are not coordinated: both callers
    compute the leg and the later put overwrites the earlier one with an
    equivalent value.

    Args:
        max_size: Maximum number of entries (None = unlimited)
        ttl_seconds: Lifetime of an entry (None = until process exit)
    """

    def __init__(self, max_size: Optional[int] = None, ttl_seconds: Optional[float] = None) -> None:
        self.max_size = Config.ROUTE_CACHE_MAX_SIZE if max_size is None else max_size
        self.ttl_seconds = ttl_seconds
        self._store: "OrderedDict[str, Tuple[RouteResult, float]]" = OrderedDict()
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0

    def get(self, key: str) -> Optional[RouteResult]:
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                self._misses += 1
                return None

            result, expiry = entry
            if time.monotonic() > expiry:
                del self._store[key]
                logging.debug(f"Route cache entry expired: {key}")
                self._misses += 1
                return None

            self._store.move_to_end(key)
            self._hits += 1
            return result

    def put(self, key: str, entry: RouteResult) -> None:
        expiry = time.monotonic() + self.ttl_seconds if self.ttl_seconds is not None else float("inf")
        with self._lock:
            self._store[key] = (entry, expiry)
            self._store.move_to_end(key)
            while self.max_size is not None and len(self._store) > self.max_size:
                evicted, _ = self._store.popitem(last=False)
                self._evictions += 1
                logging.debug(f"Route cache evicted least recently used entry: {evicted}")

    def clear(self) -> int:
        with self._lock:
            count = len(self._store)
            self._store.clear()
            self._hits = 0
            self._misses = 0
            self._evictions = 0
            logging.info(f"Route cache cleared ({count} entries)")
            return count

    def size(self) -> int:
        with self._lock:
            return len(self._store)

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total = self._hits + self._misses
            hit_rate = (self._hits / total * 100) if total > 0 else 0.0
            return {
                "size": len(self._store),
                "hits": self._hits,
                "misses": self._misses,
                "evictions": self._evictions,
                "hit_rate_percent": round(hit_rate, 1),
            }


class NullRouteCache:
    """No-op cache - every lookup misses and nothing is stored."""

    def get(self, key: str) -> Optional[RouteResult]:
        return None

    def put(self, key: str, entry: RouteResult) -> None:
        pass

    def clear(self) -> int:
        return 0

    def size(self) -> int:
        return 0

    def stats(self) -> Dict[str, Any]:
        return {"size": 0, "hits": 0, "misses": 0, "evictions": 0, "hit_rate_percent": 0.0}
