from enum import Enum
from typing import Any, Dict, Optional

from .timeutils import minutes_to_time, MINUTES_PER_DAY


class ValidationStatus(str, Enum):
    VALID = "VALID"
    INVALID = "INVALID"


class ValidationReason(str, Enum):
    PLACE_NOT_FOUND = "PLACE_NOT_FOUND"
    FULL_DAY_CLOSURE = "FULL_DAY_CLOSURE"
    CLOSURE_RANGE = "CLOSURE_RANGE"
    CLOSED_DAY = "CLOSED_DAY"
    OUTSIDE_HOURS = "OUTSIDE_HOURS"


class RouteProvider(str, Enum):
    OSRM = "OSRM"
    HAVERSINE = "HAVERSINE"
    STATIC = "STATIC"


class ValidationResult:
    def __init__(self, status: ValidationStatus, reason: Optional[ValidationReason] = None) -> None:
        self.status = status
        self.reason = reason

    @classmethod
    def valid(cls):
        return cls(ValidationStatus.VALID)

    @classmethod
    def invalid(cls, reason: ValidationReason):
        return cls(ValidationStatus.INVALID, reason)

    @property
    def is_valid(self) -> bool:
        return self.status is ValidationStatus.VALID

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.is_valid,
            "status": self.status.value,
            "reason": self.reason.value if self.reason else None,
        }

    def __eq__(self, other):
        if not isinstance(other, ValidationResult):
            return NotImplemented
        return self.status == other.status and self.reason == other.reason

    def __repr__(self):
        return f"ValidationResult({self.status.value}, {self.reason.value if self.reason else None})"


class ScheduleInputEvent:
    def __init__(self, place_id, order: int) -> None:
        self.place_id = str(place_id)
        self.order = int(order)

    @classmethod
    def from_dict(cls, event_dict: Dict[str, Any]):
        if 'placeId' not in event_dict or 'order' not in event_dict:
            raise ValueError(f"Schedule event needs placeId and order: {event_dict}")
        return cls(event_dict['placeId'], event_dict['order'])

    def __repr__(self):
        return f"ScheduleInputEvent({self.place_id}, order={self.order})"


class ScheduledEvent:
    """
    One stop of a computed day.

    start_minute and end_minute count from midnight of the target date and keep
    growing past 1440; start_time and end_time are the clock-face rendering.
    travel_time_min, distance_km and route_provider describe the leg arriving
    at this stop.
    """

    def __init__(self, place_id, order, start_minute, end_minute,
                 travel_time_min=0, distance_km=0.0,
                 validation: Optional[ValidationResult] = None,
                 route_provider: RouteProvider = RouteProvider.STATIC) -> None:
        self.place_id = str(place_id)
        self.order = order
        self.start_minute = int(start_minute)
        self.end_minute = int(end_minute)
        self.travel_time_min = travel_time_min
        self.distance_km = distance_km
        validation = validation or ValidationResult.valid()
        self.validation_status = validation.status
        self.validation_reason = validation.reason
        self.route_provider = route_provider

    @property
    def start_time(self) -> str:
        return minutes_to_time(self.start_minute)

    @property
    def end_time(self) -> str:
        return minutes_to_time(self.end_minute)

    @property
    def is_valid(self) -> bool:
        return self.validation_status is ValidationStatus.VALID

    @property
    def crosses_midnight(self) -> bool:
        return self.start_minute >= MINUTES_PER_DAY or self.end_minute > MINUTES_PER_DAY

    def to_dict(self) -> Dict[str, Any]:
        """Convert the event to the camelCase shape stored on a trip day."""
        return {
            "placeId": self.place_id,
            "order": self.order,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "travelTimeMin": self.travel_time_min,
            "distanceKm": self.distance_km,
            "validationStatus": self.validation_status.value,
            "validationReason": self.validation_reason.value if self.validation_reason else None,
            "routeProvider": self.route_provider.value,
        }

    def __str__(self):
        return f"ScheduledEvent({self.place_id}, {self.start_time}-{self.end_time}, {self.validation_status.value})"

    def __repr__(self):
        return self.__str__()
