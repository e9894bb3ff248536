import datetime
import math

from .config import Config
from .timeutils import is_valid_time, time_to_minutes, resolve_local_date, DAY_NAMES


def _check_time(value, field_name):
    if not is_valid_time(value):
        raise ValueError(f"{field_name} must be HH:MM, got {value!r}")
    return value


def _parse_coordinates(value):
    """Accept [lon, lat] (or a GeoJSON point dict) and return a (lon, lat) tuple or None."""
    if value is None:
        return None
    if isinstance(value, dict):
        value = value.get('coordinates')
        if value is None:
            return None
    if len(value) != 2:
        raise ValueError(f"Coordinates must be [longitude, latitude], got {value!r}")
    lon, lat = float(value[0]), float(value[1])
    if not (math.isfinite(lon) and math.isfinite(lat)):
        raise ValueError(f"Coordinates must be finite, got {value!r}")
    return (lon, lat)


class Place:
    """
    Read-only snapshot of a place as supplied by the caller.

    coordinates are (longitude, latitude), the GeoJSON order used by storage.
    """

    def __init__(self, place_id, name="", category="SIGHTSEEING", coordinates=None,
                 avg_duration_min=60, opens_at="00:00", closes_at="23:59",
                 closed_days=None, is_active=True):
        self.place_id = str(place_id)
        self.name = name
        self.category = category
        self.coordinates = _parse_coordinates(coordinates)
        self.avg_duration_min = max(0, int(avg_duration_min or 0))
        self.opens_at = _check_time(opens_at, "opens_at")
        self.closes_at = _check_time(closes_at, "closes_at")
        self.closed_days = frozenset(day.strip().upper() for day in (closed_days or []))
        unknown_days = self.closed_days - set(DAY_NAMES)
        if unknown_days:
            raise ValueError(f"Unknown weekday names in closed_days: {sorted(unknown_days)}")
        self.is_active = bool(is_active)

    @property
    def opens_at_minutes(self) -> int:
        return time_to_minutes(self.opens_at)

    @property
    def closes_at_minutes(self) -> int:
        return time_to_minutes(self.closes_at)

    @classmethod
    def from_dict(cls, data):
        """Build a Place from a storage document (camelCase keys, GeoJSON location)."""
        place_id = data.get('_id', data.get('id', data.get('placeId')))
        if place_id is None:
            raise ValueError("Place document has no id")
        return cls(
            place_id=place_id,
            name=data.get('name', ''),
            category=data.get('category', 'SIGHTSEEING'),
            coordinates=data.get('location', data.get('coordinates')),
            avg_duration_min=data.get('avgDurationMin', 60),
            opens_at=data.get('opensAt', '00:00'),
            closes_at=data.get('closesAt', '23:59'),
            closed_days=data.get('closedDays', []),
            is_active=data.get('isActive', True),
        )

    def __repr__(self):
        return f"Place({self.place_id}, {self.name}, {self.coordinates}, {self.opens_at}-{self.closes_at})"


class TimeRange:
    def __init__(self, start_time, end_time):
        self.start_time = _check_time(start_time, "start_time")
        self.end_time = _check_time(end_time, "end_time")

    @property
    def start_minutes(self) -> int:
        return time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return time_to_minutes(self.end_time)

    def __repr__(self):
        return f"TimeRange({self.start_time}-{self.end_time})"


class Closure:
    """
    A date-specific closure of one place. Overrides the weekly pattern of the place.
    """

    def __init__(self, place_id, date=None, is_closed_full_day=True, closed_ranges=None,
                 reason="", created_at=None):
        self.place_id = str(place_id)
        if date is not None:
            # Reject unparseable dates now, the calendar day is resolved per timezone later
            resolve_local_date(date, 'UTC')
        self.date = date
        self.is_closed_full_day = bool(is_closed_full_day)
        self.closed_ranges = [
            r if isinstance(r, TimeRange) else TimeRange(r['startTime'], r['endTime'])
            for r in (closed_ranges or [])
        ]
        self.reason = reason
        self.created_at = created_at

    @classmethod
    def from_dict(cls, data):
        return cls(
            place_id=data['placeId'],
            date=data.get('date'),
            is_closed_full_day=data.get('isClosedFullDay', True),
            closed_ranges=data.get('closedRanges', []),
            reason=data.get('reason', ''),
            created_at=data.get('createdAt'),
        )

    def local_date(self, timezone=None):
        """Calendar day of the closure in the given timezone, or None for an undated record."""
        if self.date is None:
            return None
        return resolve_local_date(self.date, timezone or Config.LOGIC_TIMEZONE)

    def __repr__(self):
        if self.is_closed_full_day:
            return f"Closure({self.place_id}, {self.date}, full day)"
        return f"Closure({self.place_id}, {self.date}, {self.closed_ranges})"


def _created_sort_key(closure):
    created = closure.created_at
    if created is None:
        return datetime.datetime.min.replace(tzinfo=datetime.timezone.utc)
    if isinstance(created, str):
        created = datetime.datetime.fromisoformat(created.replace('Z', '+00:00'))
    if created.tzinfo is None:
        created = created.replace(tzinfo=datetime.timezone.utc)
    return created


def select_closures(closures, date=None, timezone=None):
    """
    Reduce closure records to at most one per place id.

    When a date is given only closures on that date are kept. The target date
    and the closure dates are both resolved in timezone (LOGIC_TIMEZONE by
    default), the same way the scheduler resolves its day. Among several
    closures for the same place the most recently created one wins.
    """
    timezone = timezone or Config.LOGIC_TIMEZONE
    target = resolve_local_date(date, timezone) if date is not None else None
    selected = {}
    for closure in sorted(closures, key=_created_sort_key, reverse=True):
        if target is not None and closure.date is not None and closure.local_date(timezone) != target:
            continue
        selected.setdefault(closure.place_id, closure)
    return selected
