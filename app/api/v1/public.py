from datetime import date
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_client_ip
from app.core.config import settings
from app.core.exceptions import BookingValidationError, RateLimitedError
from app.core.rate_limiter import rate_limiter
from app.db.session import get_db
from app.schemas.availability import AvailabilityEventType, AvailabilityResponse, SlotResponse
from app.schemas.booking import PublicBookingRequest, PublicBookingResponse, PublicBookingSummary
from app.schemas.event_type import PublicEventTypeResponse
from app.services.admission_service import admit_booking
from app.services.availability_service import compute_day_availability, get_public_event_type

router = APIRouter(prefix="/api/public", tags=["public"])


def _availability_rate_limit_or_raise(request: Request) -> None:
    allowed, retry_after = rate_limiter.allow(
        key=f"public-availability:{get_client_ip(request)}",
        limit=settings.public_availability_max_requests,
        window_seconds=settings.public_availability_rate_limit_window_seconds,
    )
    if not allowed:
        raise RateLimitedError(retry_after=retry_after)


@router.get("/event-types/{slug}", response_model=PublicEventTypeResponse, status_code=status.HTTP_200_OK)
def get_public_event_type_by_slug(slug: str, db: Session = Depends(get_db)) -> PublicEventTypeResponse:
    event_type = get_public_event_type(db, slug)
    response = PublicEventTypeResponse.model_validate(event_type)
    response.locations = [location for location in response.locations if location.display_location_publicly]
    return response


@router.get("/availability", response_model=AvailabilityResponse, status_code=status.HTTP_200_OK)
def get_public_availability(
    request: Request,
    slug: str = Query(min_length=1),
    day: date = Query(alias="date"),
    timezone: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> AvailabilityResponse:
    _availability_rate_limit_or_raise(request)

    timezone = timezone or settings.default_timezone
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError):
        raise BookingValidationError(details=[f"Unknown timezone: {timezone}"]) from None

    event_type = get_public_event_type(db, slug)
    slots = compute_day_availability(db, event_type, day, timezone)
    return AvailabilityResponse(
        slots=[SlotResponse(start=slot.start, end=slot.end, available=slot.available) for slot in slots],
        date=day,
        timezone=timezone,
        event_type=AvailabilityEventType(
            id=event_type.id,
            slug=event_type.slug,
            title=event_type.title,
            duration=event_type.duration_minutes,
        ),
    )


@router.post("/bookings", response_model=PublicBookingResponse, status_code=status.HTTP_201_CREATED)
def create_public_booking(
    payload: PublicBookingRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> PublicBookingResponse:
    booking, event_type = admit_booking(db=db, payload=payload, client_ip=get_client_ip(request))
    return PublicBookingResponse(
        booking=PublicBookingSummary(
            id=booking.id,
            event_type=event_type.title,
            date=booking.booking_date,
            start_time=booking.start_at,
            end_time=booking.end_at,
            client_name=booking.client_name,
            client_email=booking.client_email,
            timezone=booking.timezone,
            status=booking.status,
        )
    )
