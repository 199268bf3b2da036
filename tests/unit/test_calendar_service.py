from datetime import UTC, datetime

from app.db.models import Booking, EventType
from app.services.calendar_service import build_booking_calendar_ics, describe_location


def _booking(status: str = "confirmed") -> Booking:
    return Booking(
        id=7,
        start_at=datetime(2026, 10, 26, 14, 0, tzinfo=UTC),
        end_at=datetime(2026, 10, 26, 14, 30, tzinfo=UTC),
        client_name="Ada Client",
        client_email="ada@example.com",
        client_phone="+1 555 0100",
        notes="Bring the dog; he is the star",
        status=status,
    )


def test_calendar_file_describes_the_booking():
    event_type = EventType(
        title="Portrait Session",
        locations=[{"type": "zoom"}, {"type": "in_person", "address": "1 Main St, Springfield"}],
    )

    ics = build_booking_calendar_ics(_booking(), event_type)
    lines = ics.split("\r\n")

    assert lines[0] == "BEGIN:VCALENDAR"
    assert "UID:booking-7@session-booking.local" in lines
    assert "DTSTART:20261026T140000Z" in lines
    assert "DTEND:20261026T143000Z" in lines
    assert "SUMMARY:Portrait Session with Ada Client" in lines
    assert "LOCATION:Zoom" in lines
    assert "STATUS:CONFIRMED" in lines
    assert r"Notes: Bring the dog\; he is the star" in ics


def test_pending_booking_is_tentative_and_location_is_optional():
    ics = build_booking_calendar_ics(_booking(status="pending"), EventType(title="Mini", locations=[]))

    assert "STATUS:TENTATIVE" in ics
    assert "LOCATION:" not in ics


def test_describe_location_per_kind():
    assert describe_location({"type": "in_person", "address": "1 Main St"}) == "1 Main St"
    assert describe_location({"type": "phone", "phone": "555-0100"}) == "555-0100"
    assert describe_location({"type": "video", "link": "https://meet.example.com/x"}) == "https://meet.example.com/x"
    assert describe_location({"type": "unknown"}) == ""
