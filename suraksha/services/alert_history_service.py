"""Append-only store of SOS dispatch attempts."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from suraksha.core.policies import DEFAULT_HISTORY_LIMIT, MAX_ALERTS_PER_HOUR
from suraksha.models.alert_record import AlertRecord
from suraksha.schemas.alert import AlertLocation, SenderDetails

logger = logging.getLogger(__name__)


def record_alert(
    db: Session,
    user_id: int,
    recipients: list[str],
    message: str,
    location: AlertLocation,
    status: str,
    sender: SenderDetails,
    email_sent: bool = False,
    channel_request_id: str | None = None,
    guardian_email: str | None = None,
    error: str | None = None,
) -> AlertRecord:
    """Write one audit record. Never updated afterwards."""
    record = AlertRecord(
        user_id=user_id,
        recipients=list(recipients),
        message=message,
        latitude=location.latitude,
        longitude=location.longitude,
        map_link=location.map_link,
        status=status,
        channel_request_id=channel_request_id,
        sender_name=sender.name,
        sender_mobile=sender.mobile,
        sender_email=sender.email,
        guardian_email=guardian_email,
        email_sent=email_sent,
        error=error,
        sent_at=datetime.now(timezone.utc),
    )
    db.add(record)
    db.commit()
    db.refresh(record)
    logger.info("Alert record %s saved for user %s (status=%s)", record.id, user_id, status)
    return record


def list_alerts(db: Session, user_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> list[AlertRecord]:
    """User's alert records, newest first."""
    result = db.execute(
        select(AlertRecord)
        .where(AlertRecord.user_id == user_id)
        .order_by(AlertRecord.sent_at.desc(), AlertRecord.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def count_recent_alerts(db: Session, user_id: int, hours: int = 24) -> int:
    """Alert attempts by the user within the last `hours`."""
    since = datetime.now(timezone.utc) - timedelta(hours=hours)
    return db.execute(
        select(func.count(AlertRecord.id)).where(
            AlertRecord.user_id == user_id,
            AlertRecord.sent_at >= since,
        )
    ).scalar_one()


def can_send_alert(db: Session, user_id: int, max_per_hour: int = MAX_ALERTS_PER_HOUR) -> bool:
    """Soft quota check over the last hour."""
    return count_recent_alerts(db, user_id, hours=1) < max_per_hour
