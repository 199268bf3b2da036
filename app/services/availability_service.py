from datetime import UTC, date, datetime, timedelta
from zoneinfo import ZoneInfo

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.core.exceptions import EventTypeNotFoundError
from app.db.models import AvailabilityRule, EventType, PeriodType
from app.services.booking_service import CONFLICT_SEARCH_MARGIN, load_busy_intervals
from app.services.conflict_filter import filter_available
from app.services.slot_generator import AvailabilityRuleData, TimeSlot, as_utc, generate_slots


def get_public_event_type(db: Session, slug: str) -> EventType:
    """Active event type for a public slug.

    Slugs are unique per owner only; a slug shared by several active event
    types is treated as not found rather than guessing an owner.
    """
    matches = db.scalars(
        select(EventType).where(EventType.slug == slug, EventType.is_active.is_(True)).limit(2)
    ).all()
    if len(matches) != 1:
        raise EventTypeNotFoundError()
    return matches[0]


def load_availability_rules(db: Session, owner_id: int) -> list[AvailabilityRuleData]:
    rules = db.scalars(
        select(AvailabilityRule).where(
            AvailabilityRule.user_id == owner_id,
            AvailabilityRule.is_active.is_(True),
        )
    ).all()
    return [rule.to_rule_data() for rule in rules]


def is_within_booking_window(event_type: EventType, day: date, today: date) -> bool:
    period_type = PeriodType(event_type.period_type)
    if period_type is PeriodType.ROLLING and event_type.period_days:
        return day <= today + timedelta(days=event_type.period_days)
    if period_type is PeriodType.RANGE:
        if event_type.period_start_date and day < event_type.period_start_date:
            return False
        if event_type.period_end_date and day > event_type.period_end_date:
            return False
    return True


def compute_day_availability(
    db: Session,
    event_type: EventType,
    day: date,
    timezone: str,
    now: datetime | None = None,
) -> list[TimeSlot]:
    current_time = as_utc(now) if now else datetime.now(UTC)
    today = current_time.astimezone(ZoneInfo(timezone)).date()
    if not is_within_booking_window(event_type, day, today):
        return []

    slots = list(
        generate_slots(
            day,
            load_availability_rules(db, event_type.user_id),
            event_type.duration_minutes,
            event_type.slot_interval_minutes,
            timezone=timezone,
            now=current_time,
        )
    )
    if not slots:
        return []

    busy = load_busy_intervals(
        db,
        owner_id=event_type.user_id,
        window_start=slots[0].start - CONFLICT_SEARCH_MARGIN,
        window_end=slots[-1].end + CONFLICT_SEARCH_MARGIN,
    )
    return filter_available(
        slots,
        busy,
        buffer_before_minutes=event_type.buffer_before_minutes,
        buffer_after_minutes=event_type.buffer_after_minutes,
        minimum_notice_minutes=event_type.minimum_booking_notice_minutes,
        now=current_time,
    )
