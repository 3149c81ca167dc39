"""
Users router.

POST  /users      — create a user (returns the id to send as X-User-Id)
GET   /users/me   — the acting user
PATCH /users/me   — change timezone
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.db.base import get_db
from app.models.user import User
from app.routers.deps import get_current_user
from app.schemas.user import UserCreate, UserResponse, UserUpdate
from app.services.users import create_user, update_timezone

router = APIRouter(prefix="/users", tags=["users"])


def _user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        timezone=user.timezone,
        last_cycle_on=str(user.last_cycle_on) if user.last_cycle_on else None,
    )


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
)
def users_create(payload: UserCreate, db: Session = Depends(get_db)):
    return _user_to_response(create_user(db, name=payload.name, timezone=payload.timezone))


@router.get("/me", response_model=UserResponse, summary="Acting user")
def users_me(user: User = Depends(get_current_user)):
    return _user_to_response(user)


@router.patch("/me", response_model=UserResponse, summary="Change the acting user's timezone")
def users_update(
    payload: UserUpdate,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return _user_to_response(update_timezone(db, user, payload.timezone))
