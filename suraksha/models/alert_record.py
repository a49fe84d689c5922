"""Alert record model - append-only audit entry for every SOS attempt."""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from suraksha.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AlertRecord(Base):
    __tablename__ = "alert_records"
    __table_args__ = (
        Index("ix_alert_records_user_id_sent_at", "user_id", "sent_at"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    # Snapshot of mobiles at dispatch time, not contact ids
    recipients: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    message: Mapped[str] = mapped_column(Text, nullable=False, default="")
    latitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    longitude: Mapped[float | None] = mapped_column(Float, nullable=True)
    map_link: Mapped[str | None] = mapped_column(String(512), nullable=True)
    status: Mapped[str] = mapped_column(String(10), nullable=False)  # sent | failed
    channel_request_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    sender_name: Mapped[str] = mapped_column(String(255), nullable=False)
    sender_mobile: Mapped[str] = mapped_column(String(32), nullable=False, default="")
    sender_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    guardian_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email_sent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    sent_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_utcnow)
