"""SOS dispatch and alert history schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field, model_validator


class AlertLocation(BaseModel):
    latitude: float | None = None
    longitude: float | None = None
    map_link: str


class SenderDetails(BaseModel):
    name: str
    mobile: str
    email: str | None = None


class SosDispatchRequest(BaseModel):
    """Either a map link or both coordinates are required."""

    recipients: list[str] | None = Field(
        default=None,
        validation_alias=AliasChoices("recipients", "numbersArray", "numbers_array"),
    )
    location: str | None = Field(default=None, max_length=512, description="Map link")
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def require_location(self) -> "SosDispatchRequest":
        has_coords = self.latitude is not None and self.longitude is not None
        if not self.location and not has_coords:
            raise ValueError("Provide location or both latitude and longitude")
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        if self.recipients is not None:
            self.recipients = [r.strip() for r in self.recipients if r and r.strip()]
        return self


class SosDispatchResponse(BaseModel):
    success: bool
    message: str
    alert_id: int
    recipient_count: int
    email_sent: bool
    request_id: str | None = None


class AlertRecordResponse(BaseModel):
    id: int
    user_id: int
    recipients: list[str]
    message: str
    location: AlertLocation
    status: str
    channel_request_id: str | None = None
    sender_details: SenderDetails
    guardian_email: str | None = None
    email_sent: bool
    error: str | None = None
    sent_at: datetime

    @classmethod
    def from_record(cls, record) -> "AlertRecordResponse":
        return cls(
            id=record.id,
            user_id=record.user_id,
            recipients=list(record.recipients or []),
            message=record.message,
            location=AlertLocation(
                latitude=record.latitude,
                longitude=record.longitude,
                map_link=record.map_link or "",
            ),
            status=record.status,
            channel_request_id=record.channel_request_id,
            sender_details=SenderDetails(
                name=record.sender_name,
                mobile=record.sender_mobile,
                email=record.sender_email,
            ),
            guardian_email=record.guardian_email,
            email_sent=record.email_sent,
            error=record.error,
            sent_at=record.sent_at,
        )


class AlertHistoryResponse(BaseModel):
    count: int
    alerts: list[AlertRecordResponse]


class AlertQuotaResponse(BaseModel):
    recent_count: int
    max_per_hour: int
    can_send: bool
