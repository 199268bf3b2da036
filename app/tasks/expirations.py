import logging
from datetime import UTC, datetime, timedelta

from sqlalchemy import or_, select
from sqlalchemy.orm import Session

from app.core.config import settings
from app.db.models import Booking, BookingStatus
from app.db.session import SessionLocal
from app.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def expire_pending_bookings(db: Session, now: datetime | None = None) -> int:
    """Cancel unconfirmed bookings that started already or waited too long, freeing their time."""
    current_time = now or datetime.now(UTC)
    stale_before = current_time - timedelta(minutes=settings.pending_booking_expire_minutes)

    stale_bookings = db.scalars(
        select(Booking).where(
            Booking.status == BookingStatus.PENDING.value,
            or_(Booking.start_at <= current_time, Booking.created_at <= stale_before),
        )
    ).all()

    for booking in stale_bookings:
        booking.cancel(current_time)

    if stale_bookings:
        db.commit()
        logger.info("pending_bookings_expired count=%s", len(stale_bookings))

    return len(stale_bookings)


@celery_app.task(name="bookings.expire_pending")
def expire_pending_bookings_task() -> dict[str, int]:
    db = SessionLocal()
    try:
        expired_count = expire_pending_bookings(db=db)
        return {"expired": expired_count}
    finally:
        db.close()
