"""SQLAlchemy models."""

from __future__ import annotations

from suraksha.models.alert_record import AlertRecord
from suraksha.models.guardian import Guardian
from suraksha.models.location_sample import LocationSample
from suraksha.models.pending_verification import PendingVerification
from suraksha.models.trusted_contact import TrustedContact
from suraksha.models.user import User

__all__ = [
    "User",
    "Guardian",
    "LocationSample",
    "TrustedContact",
    "AlertRecord",
    "PendingVerification",
]
