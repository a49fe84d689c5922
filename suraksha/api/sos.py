"""SOS dispatch and alert history API."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from suraksha.core.deps import get_current_user
from suraksha.core.exceptions import DomainError
from suraksha.core.policies import DEFAULT_HISTORY_LIMIT, MAX_ALERTS_PER_HOUR
from suraksha.db.session import get_db
from suraksha.models.user import User
from suraksha.schemas.alert import (
    AlertHistoryResponse,
    AlertQuotaResponse,
    AlertRecordResponse,
    SosDispatchRequest,
    SosDispatchResponse,
)
from suraksha.services.alert_history_service import can_send_alert, count_recent_alerts, list_alerts
from suraksha.services.alert_service import dispatch_sos

router = APIRouter(prefix="/sos", tags=["sos"])


@router.post(
    "/send",
    response_model=SosDispatchResponse,
    responses={status.HTTP_502_BAD_GATEWAY: {"model": SosDispatchResponse}},
)
async def send_sos(
    data: SosDispatchRequest,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Broadcast an SOS to explicit recipients or the user's active trusted contacts.

    Returns 502 when the SMS channel failed; the attempt is still recorded.
    """
    try:
        outcome = await dispatch_sos(
            db,
            current_user.id,
            map_link=data.location,
            latitude=data.latitude,
            longitude=data.longitude,
            recipients=data.recipients,
        )
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    body = SosDispatchResponse(
        success=outcome.success,
        message="SOS alert sent successfully" if outcome.success else "Failed to send SOS alert",
        alert_id=outcome.alert_id,
        recipient_count=outcome.recipient_count,
        email_sent=outcome.email_sent,
        request_id=outcome.request_id,
    )
    if not outcome.success:
        return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content=body.model_dump(mode="json"))
    return body


@router.get("/history", response_model=AlertHistoryResponse)
def alert_history(
    limit: int = Query(default=DEFAULT_HISTORY_LIMIT, ge=1, le=200),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """List the user's SOS attempts, newest first."""
    records = list_alerts(db, current_user.id, limit)
    return AlertHistoryResponse(
        count=len(records),
        alerts=[AlertRecordResponse.from_record(r) for r in records],
    )


@router.get("/quota", response_model=AlertQuotaResponse)
def alert_quota(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Alerts sent in the last hour against the soft quota."""
    return AlertQuotaResponse(
        recent_count=count_recent_alerts(db, current_user.id, hours=1),
        max_per_hour=MAX_ALERTS_PER_HOUR,
        can_send=can_send_alert(db, current_user.id),
    )
