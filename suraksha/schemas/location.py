"""Location schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from suraksha.core.policies import DEFAULT_NEARBY_RADIUS_M, MIN_LOCATION_DISTANCE_M


class LocationUpdate(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    accuracy: float | None = Field(default=None, ge=0)
    altitude: float | None = None
    speed: float | None = Field(default=None, ge=0)
    heading: float | None = Field(default=None, ge=0, le=360)
    timestamp: datetime | None = None


class LocationSampleResponse(BaseModel):
    id: int
    user_id: int
    latitude: float
    longitude: float
    accuracy: float | None = None
    altitude: float | None = None
    speed: float | None = None
    heading: float | None = None
    timestamp: datetime
    recorded_at: datetime

    model_config = {"from_attributes": True}


class LocationUpdateResponse(BaseModel):
    saved: bool
    message: str
    location: LocationSampleResponse | None = None
    distance_from_previous: float | None = None  # meters
    threshold: float = MIN_LOCATION_DISTANCE_M


class LocationHistoryResponse(BaseModel):
    count: int
    locations: list[LocationSampleResponse]


class NearbyQuery(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)
    radius: float = Field(default=DEFAULT_NEARBY_RADIUS_M, gt=0, description="Search radius in meters")


class NearbyUserResponse(BaseModel):
    user_id: int
    name: str
    email: str | None = None
    mobile: str | None = None
    latitude: float
    longitude: float
    distance: float  # meters
    timestamp: datetime
    accuracy: float | None = None

    model_config = {"from_attributes": True}


class NearbyUsersResponse(BaseModel):
    count: int
    radius: float
    users: list[NearbyUserResponse]
