from __future__ import annotations

from typing import Optional

from sqlalchemy.orm import Session

from ..core.config import ADMIN_EMAILS
from ..models import User


def _normalize(value: Optional[str]) -> str:
    return (value or "").strip().lower()


def is_admin_identity(user: Optional[User]) -> bool:
    if user is None:
        return False
    if user.role == "admin":
        return True

    email = _normalize(user.email)
    if email and email in ADMIN_EMAILS:
        return True

    return False


def ensure_admin_role(db: Session, user: User) -> bool:
    if not is_admin_identity(user):
        return False
    if user.role != "admin":
        user.role = "admin"
        db.commit()
        db.refresh(user)
    return True
