"""Phone number normalization for equality checks."""

from __future__ import annotations

import re

_NON_DIGIT = re.compile(r"\D")
COUNTRY_CODE = "91"
NATIONAL_NUMBER_LENGTH = 10


def normalize_phone(phone: str) -> str:
    """Reduce a phone number to its canonical 10-digit form.

    Only used to compare numbers (self-add, duplicates, guardian match);
    the raw string is what gets stored and displayed.

    >>> normalize_phone("+91 98765 43210")
    '9876543210'
    """
    digits = _NON_DIGIT.sub("", phone)
    if digits.startswith(COUNTRY_CODE) and len(digits) > NATIONAL_NUMBER_LENGTH:
        digits = digits[len(COUNTRY_CODE):]
    return digits[-NATIONAL_NUMBER_LENGTH:]


def is_valid_mobile(phone: str) -> bool:
    """True if the number reduces to a full national number."""
    return len(normalize_phone(phone)) == NATIONAL_NUMBER_LENGTH


def same_phone(a: str | None, b: str | None) -> bool:
    """True if both numbers are present and normalize to the same digits."""
    if not a or not b:
        return False
    return normalize_phone(a) == normalize_phone(b)
