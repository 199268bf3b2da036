from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Path, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.db.models import AvailabilityRule, User
from app.db.session import get_db
from app.schemas.availability import AvailabilityRuleResponse, DateOverrideRequest, WeekdayAvailabilityRequest

router = APIRouter(prefix="/api/availability", tags=["availability"])


def _upsert_rule(
    db: Session,
    rule: AvailabilityRule | None,
    owner: User,
    payload: WeekdayAvailabilityRequest | DateOverrideRequest,
    weekday: int | None = None,
    specific_date: date | None = None,
) -> AvailabilityRule:
    if rule is None:
        rule = AvailabilityRule(user_id=owner.id, weekday=weekday, specific_date=specific_date)
        db.add(rule)
    rule.windows = [window.as_storage() for window in payload.windows]
    rule.timezone = payload.timezone
    rule.is_active = payload.is_active
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Availability for this day was changed concurrently. Retry the request.",
        ) from None
    db.refresh(rule)
    return rule


@router.get("", response_model=list[AvailabilityRuleResponse], status_code=status.HTTP_200_OK)
def list_availability_rules(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[AvailabilityRuleResponse]:
    rules = db.scalars(
        select(AvailabilityRule)
        .where(AvailabilityRule.user_id == current_user.id)
        .order_by(AvailabilityRule.specific_date.is_not(None), AvailabilityRule.weekday, AvailabilityRule.specific_date)
    ).all()
    return [AvailabilityRuleResponse.model_validate(rule) for rule in rules]


@router.put("/weekdays/{weekday}", response_model=AvailabilityRuleResponse, status_code=status.HTTP_200_OK)
def upsert_weekday_availability(
    payload: WeekdayAvailabilityRequest,
    weekday: int = Path(ge=0, le=6, description="0 = Sunday ... 6 = Saturday"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AvailabilityRuleResponse:
    rule = db.scalar(
        select(AvailabilityRule).where(
            AvailabilityRule.user_id == current_user.id,
            AvailabilityRule.weekday == weekday,
        )
    )
    rule = _upsert_rule(db, rule, current_user, payload, weekday=weekday)
    return AvailabilityRuleResponse.model_validate(rule)


@router.put("/dates/{specific_date}", response_model=AvailabilityRuleResponse, status_code=status.HTTP_200_OK)
def upsert_date_override(
    specific_date: date,
    payload: DateOverrideRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> AvailabilityRuleResponse:
    rule = db.scalar(
        select(AvailabilityRule).where(
            AvailabilityRule.user_id == current_user.id,
            AvailabilityRule.specific_date == specific_date,
        )
    )
    rule = _upsert_rule(db, rule, current_user, payload, specific_date=specific_date)
    return AvailabilityRuleResponse.model_validate(rule)


@router.delete("/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_availability_rule(
    rule_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    rule = db.scalar(
        select(AvailabilityRule).where(AvailabilityRule.id == rule_id, AvailabilityRule.user_id == current_user.id)
    )
    if not rule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Availability rule not found")
    db.delete(rule)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
