import logging
import re

from fastapi import HTTPException, status
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.models import Booking, Category, EventType, User
from app.schemas.event_type import EventTypeCreateRequest, EventTypeUpdateRequest, check_booking_window

logger = logging.getLogger(__name__)

SLUG_TAKEN_DETAIL = "Event type with this slug already exists"
EVENT_TYPE_NOT_FOUND_DETAIL = "Event type not found"
NULLABLE_FIELDS = {
    "category_id",
    "slot_interval_minutes",
    "period_days",
    "period_start_date",
    "period_end_date",
    "timezone",
    "recurring_event",
}


def slugify(text: str) -> str:
    slug = text.lower().strip()
    slug = re.sub(r"[^\w\s-]", "", slug)
    slug = re.sub(r"[\s_-]+", "-", slug)
    return slug.strip("-")


def get_owned_event_type(db: Session, owner: User, event_type_id: int) -> EventType:
    event_type = db.scalar(
        select(EventType).where(EventType.id == event_type_id, EventType.user_id == owner.id)
    )
    if not event_type:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=EVENT_TYPE_NOT_FOUND_DETAIL)
    return event_type


def _ensure_category_owned(db: Session, owner: User, category_id: int | None) -> None:
    if category_id is None:
        return
    category = db.scalar(select(Category.id).where(Category.id == category_id, Category.user_id == owner.id))
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")


def _ensure_slug_free(db: Session, owner: User, slug: str, exclude_id: int | None = None) -> None:
    query = select(EventType.id).where(EventType.user_id == owner.id, EventType.slug == slug)
    if exclude_id is not None:
        query = query.where(EventType.id != exclude_id)
    if db.scalar(query):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLUG_TAKEN_DETAIL)


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=SLUG_TAKEN_DETAIL) from None


def create_event_type(db: Session, owner: User, payload: EventTypeCreateRequest) -> EventType:
    slug = payload.slug or slugify(payload.title)
    if not slug:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Title does not produce a usable slug")
    _ensure_slug_free(db, owner, slug)
    _ensure_category_owned(db, owner, payload.category_id)

    values = payload.model_dump(mode="json", exclude={"slug", "price", "period_start_date", "period_end_date"})
    event_type = EventType(
        **values,
        user_id=owner.id,
        slug=slug,
        price=payload.price,
        period_start_date=payload.period_start_date,
        period_end_date=payload.period_end_date,
    )
    db.add(event_type)
    _commit_or_conflict(db)
    db.refresh(event_type)
    logger.info("event_type_created id=%s owner_id=%s slug=%s", event_type.id, owner.id, slug)
    return event_type


def update_event_type(
    db: Session,
    owner: User,
    event_type: EventType,
    payload: EventTypeUpdateRequest,
) -> EventType:
    changes = {
        field: value
        for field, value in payload.model_dump(exclude_unset=True).items()
        if value is not None or field in NULLABLE_FIELDS
    }
    if "slug" in changes and changes["slug"] != event_type.slug:
        _ensure_slug_free(db, owner, changes["slug"], exclude_id=event_type.id)
    if "category_id" in changes:
        _ensure_category_owned(db, owner, changes["category_id"])

    json_fields = payload.model_dump(mode="json", exclude_unset=True, include={"locations", "recurring_event"})
    changes.update({field: value for field, value in json_fields.items() if field in changes})

    try:
        check_booking_window(
            changes.get("period_type", event_type.period_type),
            changes.get("period_days", event_type.period_days),
            changes.get("period_start_date", event_type.period_start_date),
            changes.get("period_end_date", event_type.period_end_date),
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None

    for field, value in changes.items():
        if field == "period_type" and value is not None:
            value = value.value if hasattr(value, "value") else value
        setattr(event_type, field, value)

    _commit_or_conflict(db)
    db.refresh(event_type)
    return event_type


def delete_event_type(db: Session, event_type: EventType) -> bool:
    """Hard-delete when unused, otherwise hide it. Returns True when the row was removed."""
    references = db.scalar(select(func.count(Booking.id)).where(Booking.event_type_id == event_type.id))
    if references:
        event_type.soft_hide()
        db.commit()
        logger.info("event_type_hidden id=%s bookings=%s", event_type.id, references)
        return False

    db.delete(event_type)
    db.commit()
    logger.info("event_type_deleted id=%s", event_type.id)
    return True
