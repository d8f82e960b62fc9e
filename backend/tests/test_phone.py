# tests/test_phone.py
from __future__ import annotations

import phonenumbers
import pytest

from app.core.countries import COUNTRIES
from app.core.phone import (
    ERROR_COUNTRY,
    ERROR_INVALID,
    ERROR_REQUIRED,
    are_phone_numbers_equal,
    format_phone_for_display,
    get_country_from_canonical,
    get_example_number,
    get_national_number,
    is_canonical_form,
    is_valid_phone,
    normalize_phone_input,
    strip_separators,
    validate_and_format_phone,
)


def test_us_number_is_stored_canonical():
    result = validate_and_format_phone("(555) 123-4567", "US")
    assert result.is_valid
    assert result.formatted == "+15551234567"
    assert result.country == "US"
    assert result.error is None


@pytest.mark.parametrize(
    "phone_input,country,error",
    [
        ("", "US", ERROR_REQUIRED),
        (" - ( ) ", "US", ERROR_REQUIRED),
        ("5551234567", "XX", ERROR_COUNTRY),
        ("5551234567", "", ERROR_COUNTRY),
        ("123", "US", ERROR_INVALID),
        ("abc", "US", ERROR_INVALID),
        ("555123456789012", "US", ERROR_INVALID),
        ("1-800-FLOWERS", "US", ERROR_INVALID),
        ("555 123 4567 ext 89", "US", ERROR_INVALID),
        ("+1 555 123 4567+", "US", ERROR_INVALID),
    ],
)
def test_rejections(phone_input, country, error):
    result = validate_and_format_phone(phone_input, country)
    assert not result.is_valid
    assert result.formatted is None
    assert result.error == error


def test_explicit_country_code_in_input_wins():
    result = validate_and_format_phone("+44 7123 456789", "US")
    assert result.is_valid
    assert result.formatted == "+447123456789"
    assert result.country == "GB"


@pytest.mark.parametrize("country", [c.code for c in COUNTRIES])
def test_accepted_numbers_are_canonical_and_idempotent(country):
    example = phonenumbers.example_number(country)
    assert example is not None
    national = phonenumbers.format_number(example, phonenumbers.PhoneNumberFormat.NATIONAL)

    first = validate_and_format_phone(national, country)
    assert first.is_valid, (country, national, first.error)
    assert is_canonical_form(first.formatted)

    again = validate_and_format_phone(first.formatted, country)
    assert again.is_valid
    assert again.formatted == first.formatted


@pytest.mark.parametrize(
    "value,expected",
    [
        ("+15551234567", True),
        ("+12", True),
        ("+123456789012345", True),
        ("+1234567890123456", False),
        ("+1", False),
        ("+0123456", False),
        ("15551234567", False),
        ("+1 555 123 4567", False),
        ("", False),
        (None, False),
    ],
)
def test_canonical_form(value, expected):
    assert is_canonical_form(value) is expected


def test_display_styles():
    assert format_phone_for_display("+15551234567") == "(555) 123-4567"
    assert format_phone_for_display("+15551234567", "international") == "+1 555-123-4567"
    assert format_phone_for_display("+15551234567", "uri") == "tel:+15551234567"


def test_display_falls_back_to_input():
    assert format_phone_for_display("not a phone") == "not a phone"


def test_equality():
    assert are_phone_numbers_equal("+15551234567", "+15551234567")
    assert not are_phone_numbers_equal("+15551234567", "+15551234568")
    assert are_phone_numbers_equal("(555) 123-4567", "555.123.4567", "US")
    assert not are_phone_numbers_equal("(555) 123-4567", "555.123.4567")


def test_helpers():
    assert strip_separators("(555) 123.4567") == "5551234567"
    assert normalize_phone_input("+1 (555) 123-4567") == "+15551234567"
    assert normalize_phone_input("555-1234") == "5551234"
    assert get_country_from_canonical("+447123456789") == "GB"
    assert get_country_from_canonical("+15551234567") == "US"
    assert get_country_from_canonical("garbage") is None
    assert get_national_number("+15551234567") == "5551234567"
    assert is_valid_phone("(555) 123-4567", "US")
    assert not is_valid_phone("123", "US")
    assert get_example_number("gb") == "07123 456789"
    assert get_example_number("ZZ") == "123456789"
