"""Distance math and nearby-user discovery."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from suraksha.models.location_sample import LocationSample
from suraksha.models.user import User

EARTH_RADIUS_M = 6_371_000.0


@dataclass
class NearbyUser:
    """Another user's latest fix, ranked by distance from the query point."""

    user_id: int
    name: str
    email: str | None
    mobile: str | None
    latitude: float
    longitude: float
    distance: float  # meters, rounded to cm
    timestamp: datetime
    accuracy: float | None


def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two lat/lng points in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)
    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def find_nearby_users(
    db: Session,
    latitude: float,
    longitude: float,
    radius_m: float,
    exclude_user_id: int | None = None,
) -> list[NearbyUser]:
    """
    Get every user whose latest known location is within radius_m of the point.

    Full scan over the newest sample per user, then filter and sort
    ascending by distance. Users without a matching row in `users` are
    skipped.
    """
    ranked = (
        select(
            LocationSample.id.label("sample_id"),
            func.row_number()
            .over(
                partition_by=LocationSample.user_id,
                order_by=(LocationSample.timestamp.desc(), LocationSample.id.desc()),
            )
            .label("rn"),
        )
    ).subquery()

    rows = db.execute(
        select(LocationSample, User)
        .join(ranked, ranked.c.sample_id == LocationSample.id)
        .join(User, User.id == LocationSample.user_id)
        .where(ranked.c.rn == 1)
    ).all()

    nearby: list[NearbyUser] = []
    for sample, user in rows:
        if exclude_user_id is not None and user.id == exclude_user_id:
            continue
        dist = distance_meters(latitude, longitude, sample.latitude, sample.longitude)
        if dist > radius_m:
            continue
        nearby.append(
            NearbyUser(
                user_id=user.id,
                name=user.name,
                email=user.email,
                mobile=user.mobile,
                latitude=sample.latitude,
                longitude=sample.longitude,
                distance=round(dist, 2),
                timestamp=sample.timestamp,
                accuracy=sample.accuracy,
            )
        )

    nearby.sort(key=lambda n: n.distance)
    return nearby
