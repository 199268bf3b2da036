from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from app.db.models.booking import BookingStatus
from app.schemas.types import TimezoneName, UtcDatetime


class PublicBookingRequest(BaseModel):
    """Body of ``POST /api/public/bookings``.

    Every field is optional at the schema level so missing or blank values are
    reported together, one message per field, by the admission validator.
    """

    event_type_id: int | None = None
    start_time: str | None = None
    end_time: str | None = None
    date: str | None = None
    client_name: str | None = None
    client_email: str | None = None
    client_phone: str | None = None
    notes: str | None = None
    timezone: str | None = None
    slug: str | None = None


class PublicBookingSummary(BaseModel):
    id: int
    event_type: str
    date: date
    start_time: UtcDatetime
    end_time: UtcDatetime
    client_name: str
    client_email: str
    timezone: str
    status: BookingStatus


class PublicBookingResponse(BaseModel):
    success: bool = True
    booking: PublicBookingSummary


class ManualBookingCreateRequest(BaseModel):
    event_type_id: int
    start_at: datetime
    client_name: str = Field(min_length=1, max_length=120)
    client_email: EmailStr
    client_phone: str = Field(default="", max_length=40)
    notes: str = Field(default="", max_length=2000)
    timezone: TimezoneName | None = None
    status: Literal["confirmed", "pending"] = "confirmed"


class BookingResponse(BaseModel):
    id: int
    event_type_id: int
    user_id: int
    start_at: UtcDatetime
    end_at: UtcDatetime
    booking_date: date
    timezone: str
    client_name: str
    client_email: str
    client_phone: str
    notes: str
    status: BookingStatus
    created_at: datetime
    cancelled_at: datetime | None

    model_config = {"from_attributes": True}
