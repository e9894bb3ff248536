"""
Itinerary Logic

This module provides the day-schedule builder of the itinerary back office:
arrival/departure times for an ordered list of stops, validation against
opening hours and date-specific closures, and travel estimates through an
OSRM -> haversine -> static fallback chain with a shared route cache.

Example:
    import asyncio
    from itinerary_logic import (
        Place, ScheduleConfig, ScheduleContext, RouteResolver, MemoryRouteCache, schedule_day,
    )

    resolver = RouteResolver(cache=MemoryRouteCache())  # share across requests
    places = {
        "fort": Place("fort", coordinates=[75.8513, 26.9855], avg_duration_min=90,
                      opens_at="08:00", closes_at="17:30"),
        "palace": Place("palace", coordinates=[75.8237, 26.9239], avg_duration_min=60,
                        opens_at="09:30", closes_at="17:00", closed_days=["MONDAY"]),
    }
    context = ScheduleContext("2025-01-07", places=places, route_fn=resolver,
                              config=ScheduleConfig(day_start_time="09:00"))
    result = asyncio.run(schedule_day([{"placeId": "fort", "order": 0},
                                       {"placeId": "palace", "order": 1}], context))
"""

from .config import Config, ScheduleConfig
from .day_scheduler import DayScheduler, ScheduleContext, ScheduleResult, schedule_day
from .errors import InvalidDateError, ItineraryLogicError, RouteUnavailableError
from .event import (
    RouteProvider,
    ScheduledEvent,
    ScheduleInputEvent,
    ValidationReason,
    ValidationResult,
    ValidationStatus,
)
from .event_validator import validate_event
from .place import Closure, Place, TimeRange, select_closures
from .route_cache import MemoryRouteCache, NullRouteCache, RouteResult, route_cache_key
from .route_resolver import RouteResolver, resolve_route

__all__ = [
    'Config', 'ScheduleConfig',
    'DayScheduler', 'ScheduleContext', 'ScheduleResult', 'schedule_day',
    'InvalidDateError', 'ItineraryLogicError', 'RouteUnavailableError',
    'RouteProvider', 'ScheduledEvent', 'ScheduleInputEvent',
    'ValidationReason', 'ValidationResult', 'ValidationStatus',
    'validate_event',
    'Closure', 'Place', 'TimeRange', 'select_closures',
    'MemoryRouteCache', 'NullRouteCache', 'RouteResult', 'route_cache_key',
    'RouteResolver', 'resolve_route',
]
