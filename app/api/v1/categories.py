from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.api.deps import get_current_user
from app.db.models import Category, User
from app.db.session import get_db
from app.schemas.category import CategoryRequest, CategoryResponse

router = APIRouter(prefix="/api/categories", tags=["categories"])

CATEGORY_NAME_TAKEN_DETAIL = "A category with this name already exists"


def _get_owned_category(db: Session, owner: User, category_id: int) -> Category:
    category = db.scalar(select(Category).where(Category.id == category_id, Category.user_id == owner.id))
    if not category:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


def _commit_or_conflict(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=CATEGORY_NAME_TAKEN_DETAIL) from None


@router.get("", response_model=list[CategoryResponse], status_code=status.HTTP_200_OK)
def list_categories(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> list[CategoryResponse]:
    categories = db.scalars(
        select(Category).where(Category.user_id == current_user.id).order_by(Category.name)
    ).all()
    return [CategoryResponse.model_validate(category) for category in categories]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CategoryResponse:
    category = Category(user_id=current_user.id, **payload.model_dump())
    db.add(category)
    _commit_or_conflict(db)
    db.refresh(category)
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse, status_code=status.HTTP_200_OK)
def update_category(
    category_id: int,
    payload: CategoryRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> CategoryResponse:
    category = _get_owned_category(db, current_user, category_id)
    for field, value in payload.model_dump().items():
        setattr(category, field, value)
    _commit_or_conflict(db)
    db.refresh(category)
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_category(
    category_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    category = _get_owned_category(db, current_user, category_id)
    for event_type in category.event_types:
        event_type.category_id = None
    db.delete(category)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)
