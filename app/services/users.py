"""
Users — just enough identity for the engine: who owns what, and which
timezone decides "today".
"""
from __future__ import annotations

from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import UserNotFoundError, ValidationFailedError
from app.models.user import User


def _validate_timezone(tz_name: str) -> str:
    try:
        ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationFailedError("timezone", f"Unknown timezone '{tz_name}'.")
    return tz_name


def create_user(db: Session, name: Optional[str] = None, timezone: Optional[str] = None) -> User:
    user = User(
        name=name,
        timezone=_validate_timezone(timezone or settings.DEFAULT_TIMEZONE),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


def update_timezone(db: Session, user: User, timezone: str) -> User:
    user.timezone = _validate_timezone(timezone)
    db.commit()
    db.refresh(user)
    return user
