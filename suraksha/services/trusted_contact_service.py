"""Trusted contact registry."""

from __future__ import annotations

import logging

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import Session, aliased

from suraksha.core.exceptions import (
    ContactNotFoundError,
    DuplicateContactError,
    LastContactError,
    SelfContactError,
    UserNotFoundError,
)
from suraksha.core.policies import MIN_ACTIVE_CONTACTS
from suraksha.models.trusted_contact import TrustedContact
from suraksha.models.user import User
from suraksha.services.user_directory import get_guardian_mobiles
from suraksha.utils.phone import normalize_phone, same_phone

logger = logging.getLogger(__name__)


def _lock_owner(db: Session, owner_id: int) -> User:
    """Lock the owner's row so removals for one owner run one at a time."""
    owner = db.execute(
        select(User).where(User.id == owner_id).with_for_update()
    ).scalar_one_or_none()
    if not owner:
        raise UserNotFoundError()
    return owner


def _active_count_subquery(owner_id: int):
    # Aliased so the subquery is not correlated to the outer UPDATE/DELETE
    counted = aliased(TrustedContact)
    return (
        select(func.count(counted.id))
        .where(counted.owner_id == owner_id, counted.is_active.is_(True))
        .scalar_subquery()
    )


def count_active_contacts(db: Session, owner_id: int) -> int:
    """Number of active contacts for the owner."""
    return db.execute(
        select(func.count(TrustedContact.id)).where(
            TrustedContact.owner_id == owner_id,
            TrustedContact.is_active.is_(True),
        )
    ).scalar_one()


def has_trusted_contacts(db: Session, owner_id: int) -> bool:
    return count_active_contacts(db, owner_id) > 0


def list_contacts(db: Session, owner_id: int, include_inactive: bool = False) -> list[TrustedContact]:
    """Owner's contacts, newest first. Active only unless include_inactive."""
    stmt = select(TrustedContact).where(TrustedContact.owner_id == owner_id)
    if not include_inactive:
        stmt = stmt.where(TrustedContact.is_active.is_(True))
    result = db.execute(stmt.order_by(TrustedContact.created_at.desc(), TrustedContact.id.desc()))
    return list(result.scalars().all())


def add_contact(db: Session, owner_id: int, name: str, mobile: str, relationship: str) -> TrustedContact:
    """Add a trusted contact.

    Rejects the owner's own number and numbers already held by an active
    contact, comparing normalized forms. The guardian flag is set when the
    number matches one of the owner's registered guardians.
    """
    owner = db.get(User, owner_id)
    if not owner:
        raise UserNotFoundError()

    if same_phone(owner.mobile, mobile):
        raise SelfContactError()

    normalized = normalize_phone(mobile)

    for contact in list_contacts(db, owner_id):
        if normalize_phone(contact.mobile) == normalized:
            raise DuplicateContactError()

    is_guardian = any(normalize_phone(g) == normalized for g in get_guardian_mobiles(db, owner_id))

    contact = TrustedContact(
        owner_id=owner_id,
        name=name,
        mobile=mobile,
        relationship=relationship,
        is_guardian=is_guardian,
        is_active=True,
    )
    db.add(contact)
    if not owner.trusted_contacts_configured:
        owner.trusted_contacts_configured = True
    db.commit()
    db.refresh(contact)
    logger.info("User %s added trusted contact %s (guardian=%s)", owner_id, contact.id, is_guardian)
    return contact


def update_contact(
    db: Session,
    owner_id: int,
    contact_id: int,
    name: str | None = None,
    relationship: str | None = None,
) -> TrustedContact:
    """Update name and/or relationship of an active contact."""
    contact = db.execute(
        select(TrustedContact).where(
            TrustedContact.id == contact_id,
            TrustedContact.owner_id == owner_id,
            TrustedContact.is_active.is_(True),
        )
    ).scalar_one_or_none()
    if not contact:
        raise ContactNotFoundError()

    if name:
        contact.name = name
    if relationship:
        contact.relationship = relationship
    db.commit()
    db.refresh(contact)
    return contact


def _refuse_removal(db: Session, owner_id: int, action: str) -> None:
    """Explain why a guarded removal touched no rows."""
    db.rollback()
    if count_active_contacts(db, owner_id) <= MIN_ACTIVE_CONTACTS:
        raise LastContactError(action)
    raise ContactNotFoundError()


def _clear_flag_if_empty(db: Session, owner: User) -> None:
    if count_active_contacts(db, owner.id) == 0 and owner.trusted_contacts_configured:
        logger.warning("User %s has no active trusted contacts left; clearing flag", owner.id)
        owner.trusted_contacts_configured = False


def deactivate_contact(db: Session, owner_id: int, contact_id: int) -> None:
    """Soft-remove a contact. Refused when it would leave no active contact."""
    owner = _lock_owner(db, owner_id)
    result = db.execute(
        update(TrustedContact)
        .where(
            TrustedContact.id == contact_id,
            TrustedContact.owner_id == owner_id,
            TrustedContact.is_active.is_(True),
            _active_count_subquery(owner_id) > MIN_ACTIVE_CONTACTS,
        )
        .values(is_active=False)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        _refuse_removal(db, owner_id, "deactivate")

    _clear_flag_if_empty(db, owner)
    db.commit()
    logger.info("User %s deactivated trusted contact %s", owner_id, contact_id)


def delete_contact(db: Session, owner_id: int, contact_id: int) -> None:
    """Permanently remove an active contact. Same guard as deactivate."""
    owner = _lock_owner(db, owner_id)
    result = db.execute(
        delete(TrustedContact)
        .where(
            TrustedContact.id == contact_id,
            TrustedContact.owner_id == owner_id,
            TrustedContact.is_active.is_(True),
            _active_count_subquery(owner_id) > MIN_ACTIVE_CONTACTS,
        )
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        _refuse_removal(db, owner_id, "delete")

    _clear_flag_if_empty(db, owner)
    db.commit()
    logger.info("User %s deleted trusted contact %s", owner_id, contact_id)


def get_active_recipient_mobiles(db: Session, owner_id: int) -> list[str]:
    """Raw mobiles of the owner's active contacts, oldest first."""
    result = db.execute(
        select(TrustedContact.mobile)
        .where(TrustedContact.owner_id == owner_id, TrustedContact.is_active.is_(True))
        .order_by(TrustedContact.created_at.asc(), TrustedContact.id.asc())
    )
    return list(result.scalars().all())
