from datetime import timedelta
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.api.pagination import LimitParam, OffsetParam, RangeEndParam, RangeStartParam
from app.core.config import settings
from app.db.models import Booking, BookingStatus, User
from app.db.session import get_db
from app.schemas.booking import BookingResponse, ManualBookingCreateRequest
from app.services.booking_service import cancel_booking, reserve_booking
from app.services.calendar_service import build_booking_calendar_ics
from app.services.event_type_service import get_owned_event_type
from app.services.slot_generator import as_utc

router = APIRouter(prefix="/api/bookings", tags=["bookings"])


def _get_owned_booking(db: Session, owner: User, booking_id: int) -> Booking:
    booking = db.scalar(select(Booking).where(Booking.id == booking_id, Booking.user_id == owner.id))
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


@router.get("", response_model=list[BookingResponse], status_code=status.HTTP_200_OK)
def list_bookings(
    range_start: RangeStartParam = None,
    range_end: RangeEndParam = None,
    status_filter: BookingStatus | None = Query(default=None, alias="status"),
    limit: LimitParam = 50,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[BookingResponse]:
    query = select(Booking).where(Booking.user_id == current_user.id)
    if range_start:
        query = query.where(Booking.start_at >= as_utc(range_start))
    if range_end:
        query = query.where(Booking.start_at <= as_utc(range_end))
    if status_filter:
        query = query.where(Booking.status == status_filter.value)

    bookings = db.scalars(query.order_by(Booking.start_at, Booking.id).limit(limit).offset(offset)).all()
    return [BookingResponse.model_validate(booking) for booking in bookings]


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_manual_booking(
    payload: ManualBookingCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BookingResponse:
    event_type = get_owned_event_type(db=db, owner=current_user, event_type_id=payload.event_type_id)
    timezone = payload.timezone or event_type.timezone or settings.default_timezone
    tz = ZoneInfo(timezone)

    start_at = payload.start_at if payload.start_at.tzinfo else payload.start_at.replace(tzinfo=tz)
    start_at = as_utc(start_at)
    end_at = start_at + timedelta(minutes=event_type.duration_minutes)

    booking = reserve_booking(
        db,
        event_type=event_type,
        start_at=start_at,
        end_at=end_at,
        booking_date=start_at.astimezone(tz).date(),
        timezone=timezone,
        client_name=payload.client_name.strip(),
        client_email=payload.client_email.lower(),
        client_phone=payload.client_phone.strip(),
        notes=payload.notes.strip(),
        status=BookingStatus(payload.status),
    )
    return BookingResponse.model_validate(booking)


@router.get("/{booking_id}", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def get_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BookingResponse:
    return BookingResponse.model_validate(_get_owned_booking(db, current_user, booking_id))


@router.patch("/{booking_id}/cancel", response_model=BookingResponse, status_code=status.HTTP_200_OK)
def cancel_owned_booking(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BookingResponse:
    booking = _get_owned_booking(db, current_user, booking_id)
    return BookingResponse.model_validate(cancel_booking(db, booking))


@router.get("/{booking_id}/calendar.ics", status_code=status.HTTP_200_OK)
def download_booking_calendar_file(
    booking_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    booking = _get_owned_booking(db, current_user, booking_id)
    ics_content = build_booking_calendar_ics(booking=booking, event_type=booking.event_type)
    filename = f"booking-{booking.id}.ics"
    return Response(
        content=ics_content,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
