"""
Contact normalization.

Emails and phone numbers arrive in many shapes ("+91 98765-43210",
"098765 43210", " User@Example.com "). OTP records and account lookups are
keyed on the canonical form produced here so the same person always maps to
the same row.
"""

import re
from enum import StrEnum

_NON_DIGITS = re.compile(r"[^0-9]")

INDIA_COUNTRY_CODE = "91"
NATIONAL_NUMBER_LENGTH = 10


class ContactChannel(StrEnum):
    """Delivery channel a contact belongs to."""

    EMAIL = "email"
    PHONE = "phone"


def detect_channel(contact: str) -> ContactChannel:
    """Classify a raw contact string as email or phone."""
    return ContactChannel.EMAIL if "@" in contact else ContactChannel.PHONE


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_phone(phone: str) -> str:
    """
    Reduce a phone number to its national digits.

    Strips every non-digit, then drops a leading "91" country code from
    12-digit numbers and a leading trunk "0" from 11-digit numbers.

    >>> normalize_phone("+91 12345 67890")
    '1234567890'
    >>> normalize_phone("01234567890")
    '1234567890'
    """
    digits = _NON_DIGITS.sub("", phone)

    if len(digits) == 12 and digits.startswith(INDIA_COUNTRY_CODE):
        digits = digits[2:]
    elif len(digits) == 11 and digits.startswith("0"):
        digits = digits[1:]

    return digits


def normalize_contact(contact: str, channel: ContactChannel | str | None = None) -> str:
    """Canonicalize a contact for its channel (detected when not given)."""
    if channel is None:
        channel = detect_channel(contact)

    if ContactChannel(channel) == ContactChannel.EMAIL:
        return normalize_email(contact)
    return normalize_phone(contact)


def is_valid_phone(phone: str) -> bool:
    """Whether a phone number reduces to a full national number."""
    return len(normalize_phone(phone)) == NATIONAL_NUMBER_LENGTH


def is_valid_contact(contact: str, channel: ContactChannel | str | None = None) -> bool:
    """Phone contacts must be full national numbers; emails only need an "@"."""
    if channel is None:
        channel = detect_channel(contact)

    if ContactChannel(channel) == ContactChannel.EMAIL:
        return "@" in contact
    return is_valid_phone(contact)


def phone_lookup_variants(phone: str) -> tuple[str, str]:
    """
    Values a stored phone number may match.

    Returns (raw, normalized). Older rows may hold the raw value the user
    typed. Only exact matches count, so a foreign number sharing the last
    ten digits never resolves to someone else's account.
    """
    return phone.strip(), normalize_phone(phone)


def mask_contact(contact: str) -> str:
    """Mask a contact for logs: last 4 digits of a phone, first char + domain of an email."""
    if "@" in contact:
        local, _, domain = contact.partition("@")
        return f"{local[:1]}***@{domain}"
    return f"***{contact[-4:]}"
