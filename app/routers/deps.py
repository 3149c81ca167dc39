"""
Shared router dependencies.

Authentication is out of scope: the caller names the acting user with the
`X-User-Id` header and every query is scoped to that user.
"""
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from app.core.errors import MissingUserError
from app.db.base import get_db
from app.models.user import User
from app.services.users import get_user


def get_current_user(
    x_user_id: Optional[int] = Header(default=None, description="Acting user id."),
    db: Session = Depends(get_db),
) -> User:
    if x_user_id is None:
        raise MissingUserError()
    return get_user(db, x_user_id)
