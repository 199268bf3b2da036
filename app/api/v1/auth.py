from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from app.api.deps import get_client_ip, get_current_user
from app.core.config import settings
from app.core.rate_limiter import rate_limiter
from app.db.models import User
from app.db.session import get_db
from app.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from app.schemas.user import UserResponse
from app.services.auth_service import login_owner, register_owner

router = APIRouter(prefix="/auth", tags=["auth"])


def _attempt_limit(action: str) -> int:
    if action == "register":
        return settings.auth_register_max_attempts
    return settings.auth_login_max_attempts


def throttle_auth_attempts(action: str):
    """Per-IP fixed window on credential endpoints, shared with the public limiter backend."""

    def dependency(request: Request) -> None:
        allowed, retry_after = rate_limiter.allow(
            key=f"{action}:{get_client_ip(request)}",
            limit=_attempt_limit(action),
            window_seconds=settings.auth_rate_limit_window_seconds,
        )
        if not allowed:
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="Too many requests. Please try again later.",
                headers={"Retry-After": str(retry_after)},
            )

    return dependency


@router.post(
    "/register",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(throttle_auth_attempts("register"))],
)
def register(payload: RegisterRequest, db: Session = Depends(get_db)) -> UserResponse:
    return UserResponse.model_validate(register_owner(payload=payload, db=db))


@router.post(
    "/login",
    response_model=TokenResponse,
    status_code=status.HTTP_200_OK,
    dependencies=[Depends(throttle_auth_attempts("login"))],
)
def login(payload: LoginRequest, db: Session = Depends(get_db)) -> TokenResponse:
    return login_owner(payload=payload, db=db)


@router.get("/me", response_model=UserResponse, status_code=status.HTTP_200_OK)
def read_current_owner(current_user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(current_user)
