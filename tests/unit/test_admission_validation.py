from datetime import UTC, date, datetime

import pytest

from app.core.exceptions import BookingValidationError
from app.db.models import EventType
from app.schemas.booking import PublicBookingRequest
from app.services.admission_service import validate_against_event_type, validate_booking_request

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def _payload(**overrides) -> PublicBookingRequest:
    values = {
        "event_type_id": 3,
        "slug": "portrait",
        "start_time": "2026-10-26T10:00:00Z",
        "end_time": "2026-10-26T10:30:00Z",
        "date": "2026-10-26",
        "timezone": "UTC",
        "client_name": "  Ada Client ",
        "client_email": "Ada@Example.com",
        "client_phone": "+1 555 0100",
    }
    values.update(overrides)
    return PublicBookingRequest(**values)


def _event_type(**overrides) -> EventType:
    values = {
        "id": 3,
        "duration_minutes": 30,
        "period_type": "unlimited",
        "period_days": None,
        "period_start_date": None,
        "period_end_date": None,
    }
    values.update(overrides)
    return EventType(**values)


def test_valid_request_is_normalized():
    request = validate_booking_request(_payload())

    assert request.client_name == "Ada Client"
    assert request.client_email == "ada@example.com"
    assert request.start_at == datetime(2026, 10, 26, 10, 0, tzinfo=UTC)
    assert request.booking_date == date(2026, 10, 26)
    assert request.notes == ""


def test_every_missing_field_is_reported_at_once():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_request(PublicBookingRequest())

    assert exc_info.value.details == [
        "Event type ID is required",
        "Start time is required",
        "End time is required",
        "Date is required",
        "Client name is required",
        "Client email is required",
        "Client phone is required",
        "Event type slug is required",
    ]


def test_blank_strings_count_as_missing():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_request(_payload(client_name="   ", client_phone=""))

    assert exc_info.value.details == ["Client name is required", "Client phone is required"]


def test_malformed_email_is_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_request(_payload(client_email="ada@example"))

    assert exc_info.value.details == ["Valid email address is required"]


def test_start_must_precede_end():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_request(_payload(end_time="2026-10-26T10:00:00Z"))

    assert exc_info.value.details == ["Start time must be before end time"]


def test_unparseable_times_are_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_request(_payload(start_time="tomorrow at ten"))

    assert exc_info.value.details == ["Invalid date or time format"]


def test_unknown_timezone_is_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_request(_payload(timezone="Mars/Olympus_Mons"))

    assert exc_info.value.details == ["Unknown timezone: Mars/Olympus_Mons"]


def test_naive_times_are_read_in_request_timezone():
    request = validate_booking_request(
        _payload(
            start_time="2026-10-26T10:00:00",
            end_time="2026-10-26T10:30:00",
            timezone="America/New_York",
        )
    )

    assert request.start_at == datetime(2026, 10, 26, 14, 0, tzinfo=UTC)
    assert request.timezone == "America/New_York"


def test_matching_event_type_passes():
    validate_against_event_type(validate_booking_request(_payload()), _event_type(), NOW)


def test_event_type_id_must_match_slug():
    with pytest.raises(BookingValidationError, match="Event type ID mismatch"):
        validate_against_event_type(validate_booking_request(_payload()), _event_type(id=4), NOW)


def test_past_start_is_rejected():
    request = validate_booking_request(
        _payload(start_time="2026-10-19T11:00:00Z", end_time="2026-10-19T11:30:00Z", date="2026-10-19")
    )

    with pytest.raises(BookingValidationError, match="Cannot book time slots in the past"):
        validate_against_event_type(request, _event_type(), NOW)


def test_duration_tolerance_is_sixty_seconds():
    within = validate_booking_request(_payload(end_time="2026-10-26T10:31:00Z"))
    beyond = validate_booking_request(_payload(end_time="2026-10-26T10:31:01Z"))

    validate_against_event_type(within, _event_type(), NOW, tolerance_seconds=60)
    with pytest.raises(BookingValidationError, match="duration does not match"):
        validate_against_event_type(beyond, _event_type(), NOW, tolerance_seconds=60)


def test_rolling_booking_window_is_enforced():
    request = validate_booking_request(
        _payload(start_time="2026-10-30T10:00:00Z", end_time="2026-10-30T10:30:00Z", date="2026-10-30")
    )

    with pytest.raises(BookingValidationError, match="outside the booking window"):
        validate_against_event_type(request, _event_type(period_type="rolling", period_days=7), NOW)


def test_date_range_booking_window_is_enforced():
    event_type = _event_type(
        period_type="range",
        period_start_date=date(2026, 11, 1),
        period_end_date=date(2026, 11, 30),
    )

    with pytest.raises(BookingValidationError, match="outside the booking window"):
        validate_against_event_type(validate_booking_request(_payload()), event_type, NOW)


def test_start_inside_minimum_notice_is_rejected():
    request = validate_booking_request(
        _payload(start_time="2026-10-19T12:40:00Z", end_time="2026-10-19T13:10:00Z", date="2026-10-19")
    )

    with pytest.raises(BookingValidationError, match="at least 120 minutes in advance"):
        validate_against_event_type(request, _event_type(minimum_booking_notice_minutes=120), NOW)


def test_start_exactly_at_minimum_notice_is_accepted():
    request = validate_booking_request(
        _payload(start_time="2026-10-19T14:00:00Z", end_time="2026-10-19T14:30:00Z", date="2026-10-19")
    )

    validate_against_event_type(request, _event_type(minimum_booking_notice_minutes=120), NOW)


def test_times_that_leave_the_calendar_in_utc_are_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_request(
            _payload(
                start_time="0001-01-01T00:00:00",
                end_time="0001-01-01T00:30:00",
                date="0001-01-01",
                timezone="Asia/Tokyo",
            )
        )

    assert exc_info.value.details == ["Invalid date or time format"]


def test_times_at_the_end_of_the_calendar_are_rejected():
    with pytest.raises(BookingValidationError) as exc_info:
        validate_booking_request(
            _payload(start_time="9999-12-31T10:00:00Z", end_time="9999-12-31T10:30:00Z", date="9999-12-31")
        )

    assert exc_info.value.details == ["Date is out of range"]
