"""Location tracking and nearby users API."""

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.orm import Session

from suraksha.core.deps import get_current_user
from suraksha.core.policies import DEFAULT_HISTORY_LIMIT
from suraksha.db.session import get_db
from suraksha.models.user import User
from suraksha.schemas.location import (
    LocationHistoryResponse,
    LocationSampleResponse,
    LocationUpdate,
    LocationUpdateResponse,
    NearbyQuery,
    NearbyUserResponse,
    NearbyUsersResponse,
)
from suraksha.services.geo_service import find_nearby_users
from suraksha.services.location_service import get_last_location, get_location_history, record_location

router = APIRouter(prefix="/location", tags=["location"])


@router.post("/update", response_model=LocationUpdateResponse)
def update_location(
    data: LocationUpdate,
    response: Response,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Store the user's location. 201 when stored, 200 when within the distance gate."""
    result = record_location(db, current_user.id, data)
    if result.saved:
        response.status_code = status.HTTP_201_CREATED
        return LocationUpdateResponse(
            saved=True,
            message="Location updated successfully",
            location=LocationSampleResponse.model_validate(result.location),
            distance_from_previous=result.distance_from_previous,
        )
    return LocationUpdateResponse(
        saved=False,
        message="Location not stored. Distance from previous location is less than 5 meters",
        distance_from_previous=result.distance_from_previous,
    )


@router.post("/nearby", response_model=NearbyUsersResponse)
def nearby_users(
    data: NearbyQuery,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Other users whose latest location is within `radius` meters, nearest first."""
    found = find_nearby_users(db, data.latitude, data.longitude, data.radius, exclude_user_id=current_user.id)
    return NearbyUsersResponse(
        count=len(found),
        radius=data.radius,
        users=[NearbyUserResponse.model_validate(u) for u in found],
    )


@router.get("/current", response_model=LocationSampleResponse)
def current_location(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Get the user's last stored location."""
    sample = get_last_location(db, current_user.id)
    if not sample:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No location found for this user")
    return sample


@router.get("/history", response_model=LocationHistoryResponse)
def location_history(
    limit: int = Query(default=DEFAULT_HISTORY_LIMIT, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List the user's stored locations, newest first."""
    history = get_location_history(db, current_user.id, limit)
    return LocationHistoryResponse(
        count=len(history),
        locations=[LocationSampleResponse.model_validate(s) for s in history],
    )
