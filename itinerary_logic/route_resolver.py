"""
Route resolution through an ordered fallback chain.

Each strategy turns (origin, destination, config) into a RouteResult or raises
RouteUnavailableError. The resolver tries them in order and returns the first
result, so the answer is always tagged with the provider that produced it:

    OSRM (routing service) -> HAVERSINE (great-circle estimate) -> STATIC (fixed default)

Points are [longitude, latitude].
"""
import asyncio
import logging
import math

import requests

from .api_client import OSRMClient
from .config import ScheduleConfig
from .errors import RouteUnavailableError
from .event import RouteProvider
from .route_cache import MemoryRouteCache, NullRouteCache, RouteResult, route_cache_key
from .timeutils import haversine_distance, round_half_up

# Failures a strategy may report; anything else is a bug and propagates.
STRATEGY_FAILURES = (RouteUnavailableError, requests.exceptions.RequestException, ValueError, asyncio.TimeoutError)


def normalize_point(point):
    """Return (lon, lat) as floats, or None when the point is missing or degenerate."""
    if point is None:
        return None
    try:
        if len(point) != 2:
            return None
        lon, lat = float(point[0]), float(point[1])
    except (TypeError, ValueError):
        return None
    if not (math.isfinite(lon) and math.isfinite(lat)):
        return None
    if not (-180 <= lon <= 180 and -90 <= lat <= 90):
        return None
    return (lon, lat)


def static_result(config) -> RouteResult:
    return RouteResult(config.static_distance_km, config.static_travel_time_min, RouteProvider.STATIC)


class RouteStrategy:
    """Base class for one link of the fallback chain."""
    provider = None
    # Blocking strategies are run in a worker thread under the routing timeout.
    blocking = False

    def route(self, origin, destination, config) -> RouteResult:
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"


class OSRMStrategy(RouteStrategy):
    provider = RouteProvider.OSRM
    blocking = True

    def route(self, origin, destination, config) -> RouteResult:
        client = OSRMClient(config.osrm_base_url, config.osrm_profile, config.osrm_timeout_seconds)
        data = client.route(origin, destination)
        distance_km = round_half_up(data["distance"] / 1000, 2)
        travel_time_min = max(1, int(round_half_up(data["duration"] / 60)))
        return RouteResult(distance_km, travel_time_min, self.provider)


class HaversineStrategy(RouteStrategy):
    provider = RouteProvider.HAVERSINE

    def route(self, origin, destination, config) -> RouteResult:
        distance_km = round_half_up(
            haversine_distance(origin[1], origin[0], destination[1], destination[0]), 2
        )
        if not math.isfinite(distance_km):
            raise RouteUnavailableError("Great-circle distance is not finite", provider="HAVERSINE")
        if distance_km == 0:
            travel_time_min = 0
        else:
            travel_time_min = max(1, int(round_half_up(distance_km / config.fallback_speed_kmh * 60)))
        return RouteResult(distance_km, travel_time_min, self.provider)


class StaticStrategy(RouteStrategy):
    provider = RouteProvider.STATIC

    def route(self, origin, destination, config) -> RouteResult:
        return static_result(config)


def default_strategies():
    return [OSRMStrategy(), HaversineStrategy(), StaticStrategy()]


class RouteResolver:
    """
    Resolves legs through the strategy chain, memoized in an injected route cache.

    One resolver (and therefore one cache) is meant to be shared by every
    scheduling run of the process. The instance is itself a valid route_fn
    for ScheduleContext.
    """

    def __init__(self, cache=None, strategies=None):
        self.cache = cache if cache is not None else MemoryRouteCache()
        self.strategies = list(strategies) if strategies is not None else default_strategies()

    async def __call__(self, origin, destination, config=None) -> RouteResult:
        return await self.resolve(origin, destination, config)

    async def resolve(self, origin, destination, config=None) -> RouteResult:
        config = config or ScheduleConfig()
        start = normalize_point(origin)
        end = normalize_point(destination)

        if start is None or end is None:
            logging.warning(f"Degenerate coordinates {origin} -> {destination}, using static route")
            return static_result(config)

        if start == end:
            return RouteResult(0, 0, RouteProvider.STATIC)

        key = route_cache_key(start, end)
        cached = self.cache.get(key)
        if cached is not None:
            logging.debug(f"Route cache hit for {key}")
            return cached.as_cached()

        result = await self._run_chain(start, end, config)
        self.cache.put(key, result)
        return result

    async def _run_chain(self, origin, destination, config) -> RouteResult:
        for strategy in self.strategies:
            try:
                if strategy.blocking:
                    result = await asyncio.wait_for(
                        asyncio.to_thread(strategy.route, origin, destination, config),
                        timeout=config.osrm_timeout_seconds,
                    )
                else:
                    result = strategy.route(origin, destination, config)
            except STRATEGY_FAILURES as e:
                logging.warning(f"Route strategy {strategy!r} failed for {origin} -> {destination}: {e!r}")
                continue

            if result.provider is not RouteProvider.OSRM:
                logging.info(f"Route {origin} -> {destination} resolved by fallback {result.provider.value}")
            return result

        logging.error(f"All route strategies failed for {origin} -> {destination}, using static route")
        return static_result(config)


async def resolve_route(origin, destination, config=None, cache=None) -> RouteResult:
    """
    Point-to-point estimate outside a full day schedule.

    Without a cache every call goes through the chain; pass the shared cache
    (or use a long-lived RouteResolver) to memoize.
    """
    resolver = RouteResolver(cache=cache if cache is not None else NullRouteCache())
    return await resolver.resolve(origin, destination, config)
