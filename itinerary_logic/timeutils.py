"""
Geometry and time helpers shared by the validator, resolver and scheduler.

All time-of-day values are either "HH:MM" strings (24h) or integer minutes
since midnight of the target date. Minute values past 1439 belong to the
following day(s); minutes_to_time wraps them back onto the clock face.
"""
import datetime
import logging
import math
import re

import pytz

from .errors import InvalidDateError

EARTH_RADIUS_KM = 6371.0
MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r'^([01]\d|2[0-3]):([0-5]\d)$')

# Indexed by datetime.date.weekday()
DAY_NAMES = ['MONDAY', 'TUESDAY', 'WEDNESDAY', 'THURSDAY', 'FRIDAY', 'SATURDAY', 'SUNDAY']


def haversine_distance(lat1, lon1, lat2, lon2):
    """
    Calculate the great-circle distance between two points on Earth in kilometers.
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    delta_phi = math.radians(lat2 - lat1)
    delta_lambda = math.radians(lon2 - lon1)
    a = math.sin(delta_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def round_half_up(value, digits=0):
    """Round like a calculator does (2.5 -> 3), not like round() does (2.5 -> 2)."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def is_valid_time(time_str) -> bool:
    return isinstance(time_str, str) and bool(TIME_PATTERN.match(time_str))


def time_to_minutes(time_str: str) -> int:
    """Convert "HH:MM" into minutes since midnight. Raises ValueError on bad input."""
    if not is_valid_time(time_str):
        raise ValueError(f"INVALID_TIME_FORMAT: {time_str!r}")
    hour, minute = time_str.split(':')
    return int(hour) * 60 + int(minute)


def minutes_to_time(total_minutes) -> str:
    """Format minutes since midnight as "HH:MM", wrapping past midnight."""
    minutes = int(total_minutes) % MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(time_str: str, delta: int) -> str:
    """Shift an "HH:MM" time by delta minutes (negative allowed), rolling over the day."""
    return minutes_to_time(time_to_minutes(time_str) + int(delta))


def get_timezone(name):
    """Return a pytz timezone, falling back to UTC for unknown identifiers."""
    try:
        return pytz.timezone(name)
    except pytz.exceptions.UnknownTimeZoneError:
        logging.warning(f"Unknown timezone '{name}', falling back to UTC")
        return pytz.utc


def _parse_datetime(value: str):
    """Parse an ISO format date or datetime string."""
    text = value.strip()
    try:
        return datetime.date.fromisoformat(text)
    except ValueError:
        pass
    return datetime.datetime.fromisoformat(text.replace('Z', '+00:00'))


def resolve_local_date(value, timezone='Asia/Kolkata') -> datetime.date:
    """
    Resolve the calendar date a scheduling call refers to, in the given timezone.

    Plain dates (and "YYYY-MM-DD" strings) are taken as-is. Datetimes are
    converted into the timezone first; naive datetimes are assumed to be UTC.
    """
    if isinstance(value, str):
        try:
            value = _parse_datetime(value)
        except ValueError as e:
            raise InvalidDateError("Invalid date value", cause=e, value=value)

    if isinstance(value, datetime.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=datetime.timezone.utc)
        return value.astimezone(get_timezone(timezone)).date()
    if isinstance(value, datetime.date):
        return value

    raise InvalidDateError("Invalid date value", value=repr(value))


def get_day_name(value, timezone='Asia/Kolkata') -> str:
    """Upper-case English weekday name of the date in the given timezone."""
    return DAY_NAMES[resolve_local_date(value, timezone).weekday()]


def ranges_overlap(start_a, end_a, start_b, end_b) -> bool:
    """Half-open interval overlap test."""
    return start_a < end_b and end_a > start_b
