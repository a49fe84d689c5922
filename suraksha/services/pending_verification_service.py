"""Shared-store holder for values awaiting a verification code.

Used by profile management when a user changes their email or mobile: the
new value is parked here until the code sent to it is confirmed. Kept in
the database so any worker can complete the flow.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from suraksha.core.config import settings
from suraksha.models.pending_verification import PendingVerification


def put_pending(db: Session, user_id: int, value: str, ttl_seconds: int | None = None) -> PendingVerification:
    """Hold `value` for the user until it expires. Replaces any earlier entry."""
    ttl = ttl_seconds if ttl_seconds is not None else settings.pending_verification_ttl_seconds
    db.execute(delete(PendingVerification).where(PendingVerification.user_id == user_id))
    entry = PendingVerification(
        user_id=user_id,
        value=value,
        expires_at=datetime.now(timezone.utc) + timedelta(seconds=ttl),
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    return entry


def pop_pending(db: Session, user_id: int) -> str | None:
    """Return the held value once if it has not expired. The entry is always cleared."""
    entry = db.execute(
        select(PendingVerification).where(PendingVerification.user_id == user_id)
    ).scalar_one_or_none()
    if not entry:
        return None

    value = entry.value
    expires_at = entry.expires_at
    if expires_at.tzinfo is None:
        expires_at = expires_at.replace(tzinfo=timezone.utc)

    db.delete(entry)
    db.commit()
    if expires_at <= datetime.now(timezone.utc):
        return None
    return value
