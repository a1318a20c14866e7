"""
Tests for contact normalization helpers.
"""

import pytest

from apps.core.contacts import (
    ContactChannel,
    detect_channel,
    is_valid_contact,
    is_valid_phone,
    mask_contact,
    normalize_contact,
    normalize_phone,
    phone_lookup_variants,
)


class TestNormalizePhone:
    """Tests for normalize_phone."""

    @pytest.mark.parametrize(
        "raw",
        ["9876543210", "+91 98765 43210", "919876543210", "098765-43210", "(987) 654-3210"],
    )
    def test_reduces_to_national_digits(self, raw: str) -> None:
        assert normalize_phone(raw) == "9876543210"

    def test_leaves_other_lengths_alone(self) -> None:
        """Only 12-digit 91 and 11-digit 0 prefixes are stripped."""
        assert normalize_phone("+1 415 555 1234") == "14155551234"
        assert normalize_phone("12345") == "12345"


class TestNormalizeContact:
    def test_detects_channel(self) -> None:
        assert detect_channel("a@b.com") == ContactChannel.EMAIL
        assert detect_channel("9876543210") == ContactChannel.PHONE

    def test_email(self) -> None:
        assert normalize_contact("  Mixed.Case@Example.COM ") == "mixed.case@example.com"

    def test_explicit_channel(self) -> None:
        assert normalize_contact("+91-98765-43210", "phone") == "9876543210"


def test_phone_lookup_variants() -> None:
    assert phone_lookup_variants(" +91 98765 43210 ") == ("+91 98765 43210", "9876543210")


class TestIsValidPhone:
    @pytest.mark.parametrize("raw", ["9876543210", "+91 98765 43210", "098765-43210"])
    def test_national_numbers(self, raw: str) -> None:
        assert is_valid_phone(raw)

    @pytest.mark.parametrize("raw", ["+44 9876543210", "+1 415 555 1234", "210", "abcdefghij", ""])
    def test_rejects_foreign_and_partial_numbers(self, raw: str) -> None:
        assert not is_valid_phone(raw)

    def test_contact_by_channel(self) -> None:
        assert is_valid_contact("a@example.com")
        assert is_valid_contact("9876543210", "phone")
        assert not is_valid_contact("a@example.com", "phone")
        assert not is_valid_contact("9876543210", "email")


class TestMaskContact:
    def test_phone(self) -> None:
        assert mask_contact("9876543210") == "***3210"

    def test_email(self) -> None:
        assert mask_contact("person@example.com") == "p***@example.com"
