import logging
from datetime import UTC, date, datetime, timedelta

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.exceptions import SlotTakenError, StorageFailureError
from app.db.models import Booking, BookingStatus, EventType, User
from app.db.session import is_postgresql_session
from app.schemas.types import MAX_BUFFER_MINUTES
from app.services.conflict_filter import BusyInterval, conflicts_with_any
from app.services.slot_generator import as_utc

logger = logging.getLogger(__name__)

# Bookings further than this from a candidate interval can never collide with it,
# whatever buffers either side carries.
CONFLICT_SEARCH_MARGIN = timedelta(minutes=2 * MAX_BUFFER_MINUTES)


def load_busy_intervals(
    db: Session,
    owner_id: int,
    window_start: datetime,
    window_end: datetime,
) -> list[BusyInterval]:
    rows = db.scalars(
        select(Booking).where(
            Booking.user_id == owner_id,
            Booking.status != BookingStatus.CANCELLED.value,
            Booking.start_at < as_utc(window_end),
            Booking.end_at > as_utc(window_start),
        )
    ).all()
    return [
        BusyInterval(
            start=as_utc(booking.start_at),
            end=as_utc(booking.end_at),
            buffer_before_minutes=booking.buffer_before_minutes,
            buffer_after_minutes=booking.buffer_after_minutes,
        )
        for booking in rows
    ]


def _lock_owner_schedule(db: Session, owner_id: int) -> None:
    """Serialize booking writes for one owner until the transaction ends.

    On SQLite the session already holds the database write lock from
    ``BEGIN IMMEDIATE`` (see ``create_db_engine``).
    """
    if not is_postgresql_session(db):
        return

    timeout_ms = int(settings.db_storage_timeout_seconds * 1000)
    db.execute(text(f"SET LOCAL lock_timeout = {timeout_ms}"))
    db.execute(text(f"SET LOCAL statement_timeout = {timeout_ms}"))
    db.scalar(select(User.id).where(User.id == owner_id).with_for_update())


def reserve_booking(
    db: Session,
    event_type: EventType,
    start_at: datetime,
    end_at: datetime,
    booking_date: date,
    timezone: str,
    client_name: str,
    client_email: str,
    client_phone: str,
    notes: str = "",
    status: BookingStatus = BookingStatus.CONFIRMED,
) -> Booking:
    """Insert a booking only if no live booking of the owner collides with it.

    The conflict check and the insert run in one transaction under an
    owner-scoped write lock; a partial unique index on (owner, start) backs it
    up. Losing the race raises ``SlotTakenError``; lock or connection trouble
    raises ``StorageFailureError``. Either way nothing is left committed.
    """
    start_at = as_utc(start_at)
    end_at = as_utc(end_at)
    owner_id = event_type.user_id
    buffer_before = event_type.buffer_before_minutes
    buffer_after = event_type.buffer_after_minutes

    try:
        _lock_owner_schedule(db, owner_id)
        busy = load_busy_intervals(
            db,
            owner_id=owner_id,
            window_start=start_at - CONFLICT_SEARCH_MARGIN,
            window_end=end_at + CONFLICT_SEARCH_MARGIN,
        )
        if conflicts_with_any(start_at, end_at, busy, buffer_before, buffer_after):
            db.rollback()
            raise SlotTakenError()

        booking = Booking(
            event_type_id=event_type.id,
            user_id=owner_id,
            start_at=start_at,
            end_at=end_at,
            booking_date=booking_date,
            timezone=timezone,
            buffer_before_minutes=buffer_before,
            buffer_after_minutes=buffer_after,
            client_name=client_name,
            client_email=client_email,
            client_phone=client_phone,
            notes=notes,
            status=status.value,
        )
        db.add(booking)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise SlotTakenError() from None
    except OperationalError:
        db.rollback()
        logger.exception("booking_storage_unavailable owner_id=%s start=%s", owner_id, start_at.isoformat())
        raise StorageFailureError() from None
    except SQLAlchemyError:
        db.rollback()
        logger.exception("booking_storage_failed owner_id=%s start=%s", owner_id, start_at.isoformat())
        raise StorageFailureError() from None

    db.refresh(booking)
    return booking


def cancel_booking(db: Session, booking: Booking, now: datetime | None = None) -> Booking:
    if booking.status != BookingStatus.CANCELLED.value:
        booking.cancel(now or datetime.now(UTC))
        db.commit()
        db.refresh(booking)
        logger.info("booking_cancelled id=%s owner_id=%s", booking.id, booking.user_id)
    return booking
