"""Location store with a distance-gated write policy."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from suraksha.core.policies import DEFAULT_HISTORY_LIMIT, LOCATION_RETENTION_DAYS, MIN_LOCATION_DISTANCE_M
from suraksha.models.location_sample import LocationSample
from suraksha.schemas.location import LocationUpdate
from suraksha.services.geo_service import distance_meters

logger = logging.getLogger(__name__)


@dataclass
class LocationWriteResult:
    saved: bool
    location: LocationSample | None = None
    distance_from_previous: float | None = None  # meters, rounded to cm


def _as_utc(ts: datetime | None) -> datetime:
    if ts is None:
        return datetime.now(timezone.utc)
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def get_last_location(db: Session, user_id: int) -> LocationSample | None:
    """Most recent sample for the user by timestamp."""
    result = db.execute(
        select(LocationSample)
        .where(LocationSample.user_id == user_id)
        .order_by(LocationSample.timestamp.desc(), LocationSample.id.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


def record_location(db: Session, user_id: int, data: LocationUpdate) -> LocationWriteResult:
    """Store a sample unless it is within MIN_LOCATION_DISTANCE_M of the last one.

    The first sample for a user is always stored. Coordinates are assumed
    to be range-checked already.
    """
    previous = get_last_location(db, user_id)
    distance: float | None = None

    if previous is not None:
        distance = distance_meters(previous.latitude, previous.longitude, data.latitude, data.longitude)
        if distance < MIN_LOCATION_DISTANCE_M:
            logger.debug("Location for user %s discarded: %.2fm from previous", user_id, distance)
            return LocationWriteResult(saved=False, distance_from_previous=round(distance, 2))

    sample = LocationSample(
        user_id=user_id,
        latitude=data.latitude,
        longitude=data.longitude,
        accuracy=data.accuracy,
        altitude=data.altitude,
        speed=data.speed,
        heading=data.heading,
        timestamp=_as_utc(data.timestamp),
    )
    db.add(sample)
    db.commit()
    db.refresh(sample)
    return LocationWriteResult(
        saved=True,
        location=sample,
        distance_from_previous=round(distance, 2) if distance is not None else None,
    )


def get_location_history(db: Session, user_id: int, limit: int = DEFAULT_HISTORY_LIMIT) -> list[LocationSample]:
    """User's samples, newest first."""
    result = db.execute(
        select(LocationSample)
        .where(LocationSample.user_id == user_id)
        .order_by(LocationSample.timestamp.desc(), LocationSample.id.desc())
        .limit(limit)
    )
    return list(result.scalars().all())


def purge_locations_older_than(db: Session, days: int = LOCATION_RETENTION_DAYS) -> int:
    """Delete samples older than `days`. Returns number of rows removed."""
    cutoff = datetime.now(timezone.utc) - timedelta(days=days)
    result = db.execute(delete(LocationSample).where(LocationSample.timestamp < cutoff))
    db.commit()
    deleted = result.rowcount or 0
    logger.info("Purged %s location samples older than %s days", deleted, days)
    return deleted
