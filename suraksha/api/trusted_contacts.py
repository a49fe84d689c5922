"""Trusted contacts API."""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from suraksha.core.deps import get_current_user
from suraksha.core.exceptions import DomainError
from suraksha.db.session import get_db
from suraksha.models.user import User
from suraksha.schemas.trusted_contact import (
    TrustedContactCreate,
    TrustedContactList,
    TrustedContactResponse,
    TrustedContactResult,
    TrustedContactStatus,
    TrustedContactUpdate,
)
from suraksha.services.trusted_contact_service import (
    add_contact,
    count_active_contacts,
    deactivate_contact,
    delete_contact,
    list_contacts,
    update_contact,
)

router = APIRouter(prefix="/trusted-contacts", tags=["trusted-contacts"])


def _contact_list(contacts) -> TrustedContactList:
    return TrustedContactList(
        count=len(contacts),
        contacts=[TrustedContactResponse.model_validate(c) for c in contacts],
    )


@router.post("", response_model=TrustedContactResult, status_code=status.HTTP_201_CREATED)
def add(
    data: TrustedContactCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Add a trusted contact. Own number and duplicates are rejected."""
    try:
        contact = add_contact(db, current_user.id, data.name, data.mobile, data.relationship)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    message = (
        "Guardian added as trusted contact successfully"
        if contact.is_guardian
        else "Trusted contact added successfully"
    )
    return TrustedContactResult(message=message, contact=TrustedContactResponse.model_validate(contact))


@router.get("", response_model=TrustedContactList)
def list_active(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Active trusted contacts, newest first."""
    return _contact_list(list_contacts(db, current_user.id))


@router.get("/all", response_model=TrustedContactList)
def list_all(
    include_inactive: bool = Query(default=False),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Trusted contacts, optionally including deactivated ones."""
    return _contact_list(list_contacts(db, current_user.id, include_inactive=include_inactive))


@router.get("/status", response_model=TrustedContactStatus)
def contact_status(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Whether the user has any active trusted contact."""
    count = count_active_contacts(db, current_user.id)
    return TrustedContactStatus(has_trusted_contacts=count > 0, count=count)


@router.patch("/{contact_id}", response_model=TrustedContactResult)
def update(
    contact_id: int,
    data: TrustedContactUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Update name and/or relationship."""
    try:
        contact = update_contact(db, current_user.id, contact_id, name=data.name, relationship=data.relationship)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return TrustedContactResult(
        message="Trusted contact updated successfully",
        contact=TrustedContactResponse.model_validate(contact),
    )


@router.post("/{contact_id}/deactivate", response_model=TrustedContactResult)
def deactivate(
    contact_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Soft-remove a contact. Refused for the last active one."""
    try:
        deactivate_contact(db, current_user.id, contact_id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return TrustedContactResult(message="Trusted contact deactivated successfully")


@router.delete("/{contact_id}", response_model=TrustedContactResult)
def remove(
    contact_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """Permanently delete a contact. Refused for the last active one."""
    try:
        delete_contact(db, current_user.id, contact_id)
    except DomainError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return TrustedContactResult(message="Trusted contact deleted permanently")
