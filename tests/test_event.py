import pytest

from itinerary_logic.event import (
    ScheduleInputEvent,
    ScheduledEvent,
    ValidationResult,
    ValidationReason,
    ValidationStatus,
    RouteProvider,
)


def test_input_event_from_dict():
    event = ScheduleInputEvent.from_dict({"placeId": 42, "order": "3"})
    assert event.place_id == "42"
    assert event.order == 3


def test_input_event_requires_place_and_order():
    with pytest.raises(ValueError):
        ScheduleInputEvent.from_dict({"placeId": "p1"})


def test_scheduled_event_to_dict():
    event = ScheduledEvent(
        "p1", 2, 630, 690,
        travel_time_min=20,
        distance_km=10.0,
        validation=ValidationResult.invalid(ValidationReason.CLOSED_DAY),
        route_provider=RouteProvider.OSRM,
    )
    assert event.to_dict() == {
        "placeId": "p1",
        "order": 2,
        "startTime": "10:30",
        "endTime": "11:30",
        "travelTimeMin": 20,
        "distanceKm": 10.0,
        "validationStatus": "INVALID",
        "validationReason": "CLOSED_DAY",
        "routeProvider": "OSRM",
    }


def test_scheduled_event_defaults_to_valid_static():
    event = ScheduledEvent("p1", 0, 540, 600)
    assert event.is_valid
    assert event.validation_reason is None
    assert event.to_dict()["routeProvider"] == "STATIC"
    assert event.to_dict()["validationReason"] is None


def test_scheduled_event_past_midnight():
    event = ScheduledEvent("p1", 0, 1410, 1470)
    assert event.start_time == "23:30"
    assert event.end_time == "00:30"
    assert event.crosses_midnight
    assert not ScheduledEvent("p1", 0, 1380, 1440).crosses_midnight


def test_validation_result_to_dict():
    assert ValidationResult.valid().to_dict() == {"valid": True, "status": "VALID", "reason": None}
    result = ValidationResult.invalid(ValidationReason.OUTSIDE_HOURS)
    assert result.status is ValidationStatus.INVALID
    assert result.to_dict()["reason"] == "OUTSIDE_HOURS"
