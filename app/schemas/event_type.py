from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, Field, model_validator

from app.db.models.event_type import PeriodType
from app.schemas.location import Location, RecurringEvent
from app.schemas.types import MAX_BUFFER_MINUTES, TimezoneName

SLUG_PATTERN = r"^[a-z0-9]+(?:-[a-z0-9]+)*$"


class EventTypeCreateRequest(BaseModel):
    title: str = Field(min_length=1, max_length=120)
    slug: str | None = Field(default=None, min_length=1, max_length=120, pattern=SLUG_PATTERN)
    description: str = Field(default="", max_length=2000)
    category_id: int | None = None
    position: int = 0

    duration_minutes: int = Field(default=30, ge=1, le=1440)
    slot_interval_minutes: int | None = Field(default=None, ge=1, le=1440)
    buffer_before_minutes: int = Field(default=0, ge=0, le=MAX_BUFFER_MINUTES)
    buffer_after_minutes: int = Field(default=0, ge=0, le=MAX_BUFFER_MINUTES)
    minimum_booking_notice_minutes: int = Field(default=120, ge=0, le=525600)

    period_type: PeriodType = PeriodType.UNLIMITED
    period_days: int | None = Field(default=None, ge=1, le=3650)
    period_start_date: date | None = None
    period_end_date: date | None = None

    price: Decimal = Field(default=Decimal("0.00"), ge=0, max_digits=10, decimal_places=2)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    requires_confirmation: bool = False
    is_active: bool = True
    is_hidden: bool = False
    timezone: TimezoneName | None = None

    locations: list[Location] = Field(default_factory=list)
    recurring_event: RecurringEvent | None = None

    @model_validator(mode="after")
    def validate_booking_window(self) -> "EventTypeCreateRequest":
        check_booking_window(self.period_type, self.period_days, self.period_start_date, self.period_end_date)
        return self


class EventTypeUpdateRequest(BaseModel):
    title: str | None = Field(default=None, min_length=1, max_length=120)
    slug: str | None = Field(default=None, min_length=1, max_length=120, pattern=SLUG_PATTERN)
    description: str | None = Field(default=None, max_length=2000)
    category_id: int | None = None
    position: int | None = None

    duration_minutes: int | None = Field(default=None, ge=1, le=1440)
    slot_interval_minutes: int | None = Field(default=None, ge=1, le=1440)
    buffer_before_minutes: int | None = Field(default=None, ge=0, le=MAX_BUFFER_MINUTES)
    buffer_after_minutes: int | None = Field(default=None, ge=0, le=MAX_BUFFER_MINUTES)
    minimum_booking_notice_minutes: int | None = Field(default=None, ge=0, le=525600)

    period_type: PeriodType | None = None
    period_days: int | None = Field(default=None, ge=1, le=3650)
    period_start_date: date | None = None
    period_end_date: date | None = None

    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    currency: str | None = Field(default=None, min_length=3, max_length=3)
    requires_confirmation: bool | None = None
    is_active: bool | None = None
    is_hidden: bool | None = None
    timezone: TimezoneName | None = None

    locations: list[Location] | None = None
    recurring_event: RecurringEvent | None = None


def check_booking_window(
    period_type: PeriodType | str,
    period_days: int | None,
    period_start_date: date | None,
    period_end_date: date | None,
) -> None:
    if PeriodType(period_type) is PeriodType.ROLLING and not period_days:
        raise ValueError("period_days is required for a rolling booking window")
    if PeriodType(period_type) is PeriodType.RANGE:
        if period_start_date is None or period_end_date is None:
            raise ValueError("period_start_date and period_end_date are required for a date range window")
        if period_end_date < period_start_date:
            raise ValueError("period_end_date must not be before period_start_date")


class EventTypeResponse(BaseModel):
    id: int
    user_id: int
    category_id: int | None
    title: str
    slug: str
    description: str
    position: int
    duration_minutes: int
    slot_interval_minutes: int | None
    buffer_before_minutes: int
    buffer_after_minutes: int
    minimum_booking_notice_minutes: int
    period_type: PeriodType
    period_days: int | None
    period_start_date: date | None
    period_end_date: date | None
    price: Decimal
    currency: str
    requires_confirmation: bool
    is_active: bool
    is_hidden: bool
    timezone: str | None
    locations: list[Location]
    recurring_event: RecurringEvent | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class PublicEventTypeResponse(BaseModel):
    id: int
    title: str
    slug: str
    description: str
    duration_minutes: int
    price: Decimal
    currency: str
    requires_confirmation: bool
    timezone: str | None
    locations: list[Location]

    model_config = {"from_attributes": True}
