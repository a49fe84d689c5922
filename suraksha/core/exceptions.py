"""Domain errors raised by services and translated to HTTP by routers."""

from __future__ import annotations

from fastapi import status


class DomainError(ValueError):
    """A business rule refused the operation. No state was changed."""

    status_code: int = status.HTTP_400_BAD_REQUEST


class UserNotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class ContactNotFoundError(DomainError):
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Trusted contact not found") -> None:
        super().__init__(message)


class SelfContactError(DomainError):
    def __init__(self) -> None:
        super().__init__("You cannot add your own number as a trusted contact")


class DuplicateContactError(DomainError):
    def __init__(self) -> None:
        super().__init__("This contact is already in your trusted contacts")


class LastContactError(DomainError):
    def __init__(self, action: str) -> None:
        super().__init__(
            f"Cannot {action} the last trusted contact. You must have at least one trusted contact."
        )


class NoTrustedContactsError(DomainError):
    def __init__(self) -> None:
        super().__init__("No trusted contacts found. Please add trusted contacts first.")
