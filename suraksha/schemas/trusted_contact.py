"""Trusted contact schemas."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from suraksha.utils.phone import is_valid_mobile


class TrustedContactCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    mobile: str = Field(min_length=1, max_length=32)
    relationship: str = Field(min_length=1, max_length=100)

    @field_validator("mobile")
    @classmethod
    def require_full_number(cls, v: str) -> str:
        if not is_valid_mobile(v):
            raise ValueError("Mobile number must contain 10 digits")
        return v


class TrustedContactUpdate(BaseModel):
    """Only name and relationship are editable; mobile and guardian flag are fixed at creation."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    relationship: str | None = Field(default=None, min_length=1, max_length=100)

    @model_validator(mode="after")
    def require_one_field(self) -> "TrustedContactUpdate":
        if self.name is None and self.relationship is None:
            raise ValueError("At least one field (name or relationship) must be provided")
        return self


class TrustedContactResponse(BaseModel):
    id: int
    owner_id: int
    name: str
    mobile: str
    relationship: str
    is_guardian: bool
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TrustedContactResult(BaseModel):
    message: str
    contact: TrustedContactResponse | None = None


class TrustedContactList(BaseModel):
    count: int
    contacts: list[TrustedContactResponse]


class TrustedContactStatus(BaseModel):
    has_trusted_contacts: bool
    count: int
