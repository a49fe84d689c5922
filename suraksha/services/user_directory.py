"""User directory lookups consumed by the core."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from suraksha.models.guardian import Guardian
from suraksha.models.user import User


def get_user(db: Session, user_id: int) -> User | None:
    """Get user by id."""
    return db.get(User, user_id)


def get_guardian_mobiles(db: Session, user_id: int) -> list[str]:
    """Raw mobiles of every guardian registered for the user."""
    result = db.execute(select(Guardian.mobile).where(Guardian.user_id == user_id))
    return list(result.scalars().all())


def get_guardian_email(db: Session, user_id: int) -> str | None:
    """Email of the highest-priority guardian that has one, if any."""
    result = db.execute(
        select(Guardian.email)
        .where(Guardian.user_id == user_id)
        .where(Guardian.email.is_not(None))
        .where(Guardian.email != "")
        .order_by(Guardian.priority.asc(), Guardian.id.asc())
        .limit(1)
    )
    return result.scalar_one_or_none()
