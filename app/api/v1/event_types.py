from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.api.pagination import LimitParam, OffsetParam
from app.db.models import EventType, User
from app.db.session import get_db
from app.schemas.event_type import EventTypeCreateRequest, EventTypeResponse, EventTypeUpdateRequest
from app.services.event_type_service import (
    create_event_type,
    delete_event_type,
    get_owned_event_type,
    update_event_type,
)

router = APIRouter(prefix="/api/event-types", tags=["event-types"])


@router.get("", response_model=list[EventTypeResponse], status_code=status.HTTP_200_OK)
def list_event_types(
    include_hidden: bool = False,
    limit: LimitParam = 50,
    offset: OffsetParam = 0,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[EventTypeResponse]:
    query = select(EventType).where(EventType.user_id == current_user.id)
    if not include_hidden:
        query = query.where(EventType.is_hidden.is_(False))
    event_types = db.scalars(
        query.order_by(EventType.position.desc(), EventType.created_at.desc(), EventType.id.desc())
        .limit(limit)
        .offset(offset)
    ).all()
    return [EventTypeResponse.model_validate(event_type) for event_type in event_types]


@router.post("", response_model=EventTypeResponse, status_code=status.HTTP_201_CREATED)
def create_event_type_for_me(
    payload: EventTypeCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EventTypeResponse:
    event_type = create_event_type(db=db, owner=current_user, payload=payload)
    return EventTypeResponse.model_validate(event_type)


@router.get("/{event_type_id}", response_model=EventTypeResponse, status_code=status.HTTP_200_OK)
def get_event_type(
    event_type_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EventTypeResponse:
    event_type = get_owned_event_type(db=db, owner=current_user, event_type_id=event_type_id)
    return EventTypeResponse.model_validate(event_type)


@router.patch("/{event_type_id}", response_model=EventTypeResponse, status_code=status.HTTP_200_OK)
def patch_event_type(
    event_type_id: int,
    payload: EventTypeUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> EventTypeResponse:
    event_type = get_owned_event_type(db=db, owner=current_user, event_type_id=event_type_id)
    updated = update_event_type(db=db, owner=current_user, event_type=event_type, payload=payload)
    return EventTypeResponse.model_validate(updated)


@router.delete("/{event_type_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_event_type(
    event_type_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    event_type = get_owned_event_type(db=db, owner=current_user, event_type_id=event_type_id)
    delete_event_type(db=db, event_type=event_type)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
