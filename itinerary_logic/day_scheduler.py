import inspect
import logging
import time
from collections import Counter
from collections.abc import Mapping

from .config import ScheduleConfig
from .event import ScheduleInputEvent, ScheduledEvent, ValidationReason, ValidationResult, RouteProvider
from .event_validator import validate_event
from .route_cache import RouteResult
from .route_resolver import RouteResolver, static_result
from .timeutils import resolve_local_date, time_to_minutes


class ScheduleContext:
    """
    Everything a scheduling run needs besides the events themselves.

    places maps place id -> Place; closures maps place id -> Closure and must
    already be filtered to the target date (see place.select_closures).
    route_fn is called as route_fn(origin, destination, config) and may be a
    coroutine function or a plain function returning a RouteResult (or a
    mapping with distanceKm, travelTimeMin and provider keys).

    Without a route_fn every context builds its own RouteResolver, and with it
    a fresh in-memory cache. Long-running callers should create one
    RouteResolver and pass it to every context so the cache is shared.
    """

    def __init__(self, date, places=None, closures=None, route_fn=None, config=None):
        self.date = date
        self.places = {str(key): value for key, value in (places or {}).items()}
        self.closures = {str(key): value for key, value in (closures or {}).items()}
        self.route_fn = route_fn if route_fn is not None else RouteResolver()
        self.config = config or ScheduleConfig()


class ScheduleStats:
    """Summary of one run, the same numbers the back office keeps in its run log."""

    def __init__(self, input_event_count=0, output_event_count=0, invalid_event_count=0,
                 provider_counts=None, total_ms=0):
        self.input_event_count = input_event_count
        self.output_event_count = output_event_count
        self.invalid_event_count = invalid_event_count
        self.provider_counts = dict(provider_counts or {})
        self.total_ms = total_ms

    def to_dict(self):
        return {
            "inputEventCount": self.input_event_count,
            "outputEventCount": self.output_event_count,
            "invalidEventCount": self.invalid_event_count,
            "providerCounts": self.provider_counts,
            "timingsMs": {"total": self.total_ms},
        }


class ScheduleResult:
    def __init__(self, events, warnings, stats=None):
        self.events = events
        self.warnings = warnings
        self.stats = stats or ScheduleStats()

    def events_for_storage(self):
        """Event dicts renumbered 0..n-1 in scheduled order, ready to persist."""
        stored = []
        for index, event in enumerate(self.events):
            event_dict = event.to_dict()
            event_dict["order"] = index
            stored.append(event_dict)
        return stored

    def to_dict(self):
        return {
            "events": [event.to_dict() for event in self.events],
            "warnings": list(self.warnings),
        }


def _as_route_result(route):
    if isinstance(route, RouteResult):
        return route
    if isinstance(route, Mapping):
        return RouteResult(route["distanceKm"], route["travelTimeMin"], route["provider"])
    raise TypeError(f"Unsupported route result {route!r}")


def _as_input_event(event):
    if isinstance(event, ScheduleInputEvent):
        return event
    return ScheduleInputEvent.from_dict(event)


class DayScheduler:
    def __init__(self, context: ScheduleContext):
        """
        Initialize the DayScheduler with the context of one trip day.
        """
        self.context = context
        self.config = context.config

    def sort_events(self, events):
        """
        Sort events by ascending order. sorted() is stable, so events sharing an
        order value keep their input sequence.
        """
        sorted_events = sorted(events, key=lambda e: e.order)
        orders = [e.order for e in sorted_events]
        if len(set(orders)) != len(orders):
            logging.debug(f"Duplicate order values in schedule input: {orders}")
        return sorted_events

    async def route_leg(self, previous_place, place):
        """
        Resolve the leg between two places with the context's route function.
        A failing route function costs this leg its estimate, never the run.
        """
        try:
            result = self.context.route_fn(previous_place.coordinates, place.coordinates, self.config)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            logging.error(f"Error routing {previous_place.place_id} -> {place.place_id}: {e}", exc_info=True)
            return static_result(self.config)

        try:
            return _as_route_result(result)
        except (KeyError, TypeError, ValueError) as e:
            logging.error(f"Unusable route result for {previous_place.place_id} -> {place.place_id}: {e}")
            return static_result(self.config)

    async def schedule(self, events):
        """
        Lay out the day: walk the sorted events, route each leg, validate each
        stop and advance the time cursor.

        Raises InvalidDateError before doing anything when the target date is bad.
        """
        run_start = time.perf_counter()
        target_date = resolve_local_date(self.context.date, self.config.timezone)
        sorted_events = self.sort_events([_as_input_event(e) for e in events])

        cursor = time_to_minutes(self.config.day_start_time)
        buffer_min = self.config.transition_buffer_min
        warnings = []
        scheduled = []
        providers = Counter()
        previous_place = None

        logging.info(f"Scheduling {len(sorted_events)} events on {target_date} from {self.config.day_start_time}")

        for event in sorted_events:
            place = self.context.places.get(event.place_id)
            if place is None:
                # Nothing to route against, so the cursor stays where it is
                warnings.append(f"PLACE_NOT_FOUND:{event.place_id}")
                logging.warning(f"Place {event.place_id} not found, marking event invalid")
                scheduled.append(ScheduledEvent(
                    event.place_id, event.order, cursor, cursor,
                    validation=ValidationResult.invalid(ValidationReason.PLACE_NOT_FOUND),
                ))
                continue

            travel_time_min = 0
            distance_km = 0.0
            provider = RouteProvider.STATIC
            if previous_place is not None:
                route = await self.route_leg(previous_place, place)
                travel_time_min = max(0, int(route.travel_time_min))
                distance_km = max(0.0, float(route.distance_km))
                provider = route.provider
                providers[provider.value] += 1
                cursor += buffer_min + travel_time_min

            start_min = cursor
            end_min = start_min + place.avg_duration_min
            validation = validate_event(
                place, target_date, start_min,
                closure=self.context.closures.get(event.place_id),
                timezone=self.config.timezone,
            )
            scheduled.append(ScheduledEvent(
                event.place_id, event.order, start_min, end_min,
                travel_time_min=travel_time_min,
                distance_km=distance_km,
                validation=validation,
                route_provider=provider,
            ))

            # Advance even past invalid stops; conflicts are reported, not corrected
            cursor = end_min
            previous_place = place

        invalid_count = sum(1 for e in scheduled if not e.is_valid)
        if invalid_count > 0:
            warnings.append(f"INVALID_EVENTS:{invalid_count}")
        overflow_count = sum(1 for e in scheduled if e.crosses_midnight)
        if overflow_count > 0:
            warnings.append(f"DAY_OVERFLOW:{overflow_count}")

        stats = ScheduleStats(
            input_event_count=len(sorted_events),
            output_event_count=len(scheduled),
            invalid_event_count=invalid_count,
            provider_counts=providers,
            total_ms=round((time.perf_counter() - run_start) * 1000),
        )
        logging.info(f"Scheduled {stats.output_event_count} events on {target_date}: "
                     f"{invalid_count} invalid, providers {dict(providers)}, {stats.total_ms} ms")
        return ScheduleResult(scheduled, warnings, stats)


async def schedule_day(events, context: ScheduleContext) -> ScheduleResult:
    """
    Compute start/end times, leg estimates and validation for one day of stops.

    Only an invalid target date raises (InvalidDateError); missing places,
    closures and routing failures are reported in the result.
    """
    return await DayScheduler(context).schedule(events)
