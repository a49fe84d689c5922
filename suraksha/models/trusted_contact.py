"""Trusted contact model - an emergency recipient owned by one user."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from suraksha.db.base import Base


class TrustedContact(Base):
    __tablename__ = "trusted_contacts"
    __table_args__ = (
        Index("ix_trusted_contacts_owner_id_is_active", "owner_id", "is_active"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    mobile: Mapped[str] = mapped_column(String(32), nullable=False)  # raw, as entered
    relationship: Mapped[str] = mapped_column(String(100), nullable=False)
    is_guardian: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
