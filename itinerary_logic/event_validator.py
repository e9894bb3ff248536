import logging
import numbers

from .config import Config
from .event import ValidationReason, ValidationResult
from .timeutils import time_to_minutes, get_day_name, ranges_overlap


def _start_minutes(time):
    if isinstance(time, bool):
        raise ValueError("INVALID_TIME_FORMAT")
    if isinstance(time, numbers.Real):
        if not float(time).is_integer():
            raise ValueError("INVALID_TIME_FORMAT")
        return int(time)
    return time_to_minutes(time)


def validate_event(place, date, time, closure=None, timezone=None) -> ValidationResult:
    """
    Decide whether a visit to a place at the given date and time is possible.

    Checks run in this order and the first failure wins:
    - the place exists (PLACE_NOT_FOUND)
    - the date-specific closure is not a full-day closure (FULL_DAY_CLOSURE)
    - the visit does not overlap a closed range of the closure (CLOSURE_RANGE)
    - the weekday is not one of the place's closed days (CLOSED_DAY)
    - the visit fits inside opening hours (OUTSIDE_HOURS)

    A closure is an explicit override for one date, so it is checked before the
    weekly pattern of the place.

    Args:
        place: Place snapshot, or None when the caller could not find it
        date: target date (date, datetime or ISO string)
        time: "HH:MM", or minutes since midnight of the target date (may be >= 1440)
        closure: Closure for this place on this date, if any
        timezone: IANA timezone used to resolve the weekday of date

    Raises:
        InvalidDateError: date cannot be parsed
        ValueError: time is neither a valid "HH:MM" string nor a whole number of minutes
    """
    if place is None:
        return ValidationResult.invalid(ValidationReason.PLACE_NOT_FOUND)

    start_min = _start_minutes(time)
    end_min = start_min + place.avg_duration_min
    day_name = get_day_name(date, timezone or Config.LOGIC_TIMEZONE)

    if closure is not None:
        if closure.is_closed_full_day:
            logging.debug(f"{place.place_id} closed all day by closure: {closure.reason}")
            return ValidationResult.invalid(ValidationReason.FULL_DAY_CLOSURE)

        for closed in closure.closed_ranges:
            if ranges_overlap(start_min, end_min, closed.start_minutes, closed.end_minutes):
                logging.debug(f"{place.place_id} visit overlaps closed range {closed}")
                return ValidationResult.invalid(ValidationReason.CLOSURE_RANGE)

    if day_name in place.closed_days:
        return ValidationResult.invalid(ValidationReason.CLOSED_DAY)

    opens_min = place.opens_at_minutes
    closes_min = place.closes_at_minutes
    if start_min < opens_min or start_min >= closes_min or end_min > closes_min:
        return ValidationResult.invalid(ValidationReason.OUTSIDE_HOURS)

    return ValidationResult.valid()
