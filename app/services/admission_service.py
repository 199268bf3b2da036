"""Public booking admission.

A request moves Received -> Validated -> Reserved -> Committed, or ends in
Rejected with one of the ``AdmissionError`` subclasses. The guard re-validates
everything the booking widget already checked and re-runs the conflict check
against live bookings inside the storage transaction, so a stale slot list on
the client can never produce a double booking.
"""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import (
    AdmissionError,
    BookingValidationError,
    RateLimitedError,
)
from app.core.metrics import BOOKING_ADMISSIONS
from app.core.rate_limiter import BookingRequestThrottle, booking_throttle
from app.db.models import Booking, BookingStatus, EventType
from app.schemas.booking import PublicBookingRequest
from app.services.availability_service import get_public_event_type, is_within_booking_window
from app.services.booking_service import reserve_booking
from app.services.conflict_filter import violates_minimum_notice
from app.services.slot_generator import LAST_BOOKABLE_DAY, as_utc

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MAX_NAME_LENGTH = 120
MAX_PHONE_LENGTH = 40
MAX_NOTES_LENGTH = 2000


@dataclass(frozen=True)
class ValidatedBookingRequest:
    event_type_id: int
    slug: str
    start_at: datetime
    end_at: datetime
    booking_date: date
    timezone: str
    client_name: str
    client_email: str
    client_phone: str
    notes: str


def _parse_instant(value: str, tz: ZoneInfo) -> datetime:
    parsed = datetime.fromisoformat(value.strip())
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=tz)
    return parsed.astimezone(UTC)


def _parse_day(value: str) -> date:
    value = value.strip()
    try:
        return date.fromisoformat(value)
    except ValueError:
        return datetime.fromisoformat(value).date()


def validate_booking_request(
    payload: PublicBookingRequest,
    default_timezone: str | None = None,
) -> ValidatedBookingRequest:
    """Field-level checks that need no storage. Raises with one message per problem."""
    errors: list[str] = []

    if not payload.event_type_id:
        errors.append("Event type ID is required")
    if not payload.start_time:
        errors.append("Start time is required")
    if not payload.end_time:
        errors.append("End time is required")
    if not payload.date:
        errors.append("Date is required")

    client_name = (payload.client_name or "").strip()
    if not client_name:
        errors.append("Client name is required")
    elif len(client_name) > MAX_NAME_LENGTH:
        errors.append(f"Client name must be at most {MAX_NAME_LENGTH} characters")

    client_email = (payload.client_email or "").strip()
    if not client_email:
        errors.append("Client email is required")
    elif not EMAIL_PATTERN.match(client_email):
        errors.append("Valid email address is required")

    client_phone = (payload.client_phone or "").strip()
    if not client_phone:
        errors.append("Client phone is required")
    elif len(client_phone) > MAX_PHONE_LENGTH:
        errors.append(f"Client phone must be at most {MAX_PHONE_LENGTH} characters")

    notes = (payload.notes or "").strip()
    if len(notes) > MAX_NOTES_LENGTH:
        errors.append(f"Notes must be at most {MAX_NOTES_LENGTH} characters")

    slug = (payload.slug or "").strip()
    if not slug:
        errors.append("Event type slug is required")

    timezone = (payload.timezone or "").strip() or default_timezone or settings.default_timezone
    try:
        tz = ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        errors.append(f"Unknown timezone: {timezone}")
        tz = ZoneInfo("UTC")

    start_at = end_at = None
    booking_date = None
    if payload.start_time and payload.end_time and payload.date:
        try:
            start_at = _parse_instant(payload.start_time, tz)
            end_at = _parse_instant(payload.end_time, tz)
            booking_date = _parse_day(payload.date)
        except (ValueError, OverflowError):
            errors.append("Invalid date or time format")
        else:
            if start_at >= end_at:
                errors.append("Start time must be before end time")
            elif end_at.date() > LAST_BOOKABLE_DAY:
                errors.append("Date is out of range")

    if errors:
        raise BookingValidationError(details=errors)

    return ValidatedBookingRequest(
        event_type_id=payload.event_type_id,
        slug=slug,
        start_at=start_at,
        end_at=end_at,
        booking_date=booking_date,
        timezone=timezone,
        client_name=client_name,
        client_email=client_email.lower(),
        client_phone=client_phone,
        notes=notes,
    )


def validate_against_event_type(
    request: ValidatedBookingRequest,
    event_type: EventType,
    now: datetime,
    tolerance_seconds: int | None = None,
) -> None:
    if event_type.id != request.event_type_id:
        raise BookingValidationError("Event type ID mismatch")

    if request.start_at < as_utc(now):
        raise BookingValidationError("Cannot book time slots in the past")

    notice_minutes = event_type.minimum_booking_notice_minutes or 0
    if violates_minimum_notice(request.start_at, notice_minutes, now):
        raise BookingValidationError(f"Booking must be made at least {notice_minutes} minutes in advance")

    tolerance = settings.booking_duration_tolerance_seconds if tolerance_seconds is None else tolerance_seconds
    requested_seconds = (request.end_at - request.start_at).total_seconds()
    expected_seconds = event_type.duration_minutes * 60
    if abs(requested_seconds - expected_seconds) > tolerance:
        raise BookingValidationError("Booking duration does not match event type duration")

    today = as_utc(now).astimezone(ZoneInfo(request.timezone)).date()
    local_day = request.start_at.astimezone(ZoneInfo(request.timezone)).date()
    if not is_within_booking_window(event_type, local_day, today):
        raise BookingValidationError("Selected date is outside the booking window")


def _record(outcome: str) -> None:
    BOOKING_ADMISSIONS.labels(outcome=outcome).inc()


def admit_booking(
    db: Session,
    payload: PublicBookingRequest,
    client_ip: str,
    now: datetime | None = None,
    throttle: BookingRequestThrottle | None = None,
) -> tuple[Booking, EventType]:
    throttle = throttle or booking_throttle
    current_time = as_utc(now) if now else datetime.now(UTC)
    try:
        request = validate_booking_request(payload)

        allowed, retry_after = throttle.check(client_ip, request.slug)
        if not allowed:
            raise RateLimitedError(retry_after=retry_after)

        event_type = get_public_event_type(db, request.slug)
        validate_against_event_type(request, event_type, current_time)

        status = BookingStatus.PENDING if event_type.requires_confirmation else BookingStatus.CONFIRMED
        booking = reserve_booking(
            db,
            event_type=event_type,
            start_at=request.start_at,
            end_at=request.end_at,
            booking_date=request.booking_date,
            timezone=request.timezone,
            client_name=request.client_name,
            client_email=request.client_email,
            client_phone=request.client_phone,
            notes=request.notes,
            status=status,
        )
    except AdmissionError as exc:
        _record(exc.code)
        logger.warning(
            "booking_rejected code=%s slug=%s client_ip=%s message=%s",
            exc.code,
            payload.slug,
            client_ip,
            exc.message,
        )
        raise

    _record("committed")
    logger.info(
        "booking_committed id=%s event_type_id=%s owner_id=%s start=%s status=%s",
        booking.id,
        event_type.id,
        booking.user_id,
        request.start_at.isoformat(),
        booking.status,
    )
    return booking, event_type
