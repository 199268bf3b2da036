from datetime import UTC, datetime

from app.db.models import Booking, EventType
from app.services.slot_generator import as_utc


def _format_ics_datetime(value: datetime) -> str:
    return as_utc(value).strftime("%Y%m%dT%H%M%SZ")


def _escape_ics_text(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace(";", r"\;")
        .replace(",", r"\,")
        .replace("\r\n", r"\n")
        .replace("\n", r"\n")
    )


def _to_ics_status(status: str) -> str:
    return {
        "confirmed": "CONFIRMED",
        "pending": "TENTATIVE",
        "cancelled": "CANCELLED",
    }.get(status.lower(), "CONFIRMED")


def describe_location(location: dict) -> str:
    kind = location.get("type")
    if kind == "in_person":
        return location.get("address", "")
    if kind in ("video", "link"):
        return location.get("link", "")
    if kind == "phone":
        return location.get("phone", "")
    if kind == "custom":
        return location.get("text", "")
    if kind == "zoom":
        return "Zoom"
    return ""


def build_booking_calendar_ics(booking: Booking, event_type: EventType) -> str:
    summary = _escape_ics_text(f"{event_type.title} with {booking.client_name}")
    description = _escape_ics_text(
        f"Booking #{booking.id}\nSession: {event_type.title}\n"
        f"Client: {booking.client_name} <{booking.client_email}>\nPhone: {booking.client_phone}"
        + (f"\nNotes: {booking.notes}" if booking.notes else "")
    )

    lines = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Session Booking//EN",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        "BEGIN:VEVENT",
        f"UID:booking-{booking.id}@session-booking.local",
        f"DTSTAMP:{_format_ics_datetime(datetime.now(UTC))}",
        f"DTSTART:{_format_ics_datetime(booking.start_at)}",
        f"DTEND:{_format_ics_datetime(booking.end_at)}",
        f"SUMMARY:{summary}",
        f"DESCRIPTION:{description}",
    ]
    locations = [describe_location(item) for item in event_type.locations or []]
    locations = [text for text in locations if text]
    if locations:
        lines.append(f"LOCATION:{_escape_ics_text(locations[0])}")
    lines += [
        f"STATUS:{_to_ics_status(booking.status)}",
        "END:VEVENT",
        "END:VCALENDAR",
        "",
    ]
    return "\r\n".join(lines)
