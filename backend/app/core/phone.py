# backend/app/core/phone.py
"""
Phone number parsing and formatting.

Storage form is canonical E.164 (``+15551234567``); national and
international groupings are produced only for display. Validation checks the
digits against the numbering plan of the selected country (possible lengths
and the national number pattern), which is what decides whether a number can
be stored at all.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal, Optional

import phonenumbers
from phonenumbers import NumberParseException, PhoneMetadata, PhoneNumberFormat

_CANONICAL_RE = re.compile(r"\+[1-9]\d{1,14}")
_SEPARATORS_RE = re.compile(r"[\s\-().]")
_DIALABLE_RE = re.compile(r"\+?\d+")

ERROR_REQUIRED = "Phone number is required"
ERROR_COUNTRY = "Invalid country code"
ERROR_INVALID = "Invalid phone number for the selected country"

DisplayStyle = Literal["national", "international", "uri"]

_EXAMPLE_NUMBERS: dict[str, str] = {
    "US": "(555) 123-4567",
    "CA": "(555) 123-4567",
    "GB": "07123 456789",
    "AU": "0412 345 678",
    "NZ": "021 234 5678",
    "DE": "0151 23456789",
    "FR": "06 12 34 56 78",
    "IT": "312 345 6789",
    "ES": "612 34 56 78",
    "JP": "090-1234-5678",
    "CN": "138 0013 8000",
    "IN": "98765 43210",
}


@dataclass(frozen=True)
class PhoneValidationResult:
    is_valid: bool
    formatted: Optional[str] = None   # canonical form
    country: Optional[str] = None     # ISO code the number resolved to
    error: Optional[str] = None


def is_canonical_form(phone: str | None) -> bool:
    """True iff ``phone`` is ``+`` followed by a non-zero digit and 1-14 more digits."""
    if not phone:
        return False
    return _CANONICAL_RE.fullmatch(phone) is not None


def strip_separators(phone_input: str) -> str:
    return _SEPARATORS_RE.sub("", phone_input or "")


def normalize_phone_input(phone_input: str) -> str:
    """Digits only, keeping a single leading '+' if the input had one anywhere."""
    normalized = re.sub(r"[^\d+]", "", phone_input or "")
    if "+" in normalized:
        normalized = "+" + normalized.replace("+", "")
    return normalized


def _matches_numbering_plan(number: phonenumbers.PhoneNumber) -> bool:
    if phonenumbers.is_possible_number_with_reason(number) != phonenumbers.ValidationResult.IS_POSSIBLE:
        return False

    nsn = phonenumbers.national_significant_number(number)
    for region in phonenumbers.region_codes_for_country_code(number.country_code):
        metadata = PhoneMetadata.metadata_for_region(region)
        if metadata is None or metadata.general_desc is None:
            continue
        pattern = metadata.general_desc.national_number_pattern
        if pattern and re.fullmatch(pattern, nsn):
            return True
    return False


def _resolved_region(number: phonenumbers.PhoneNumber, fallback: str) -> str:
    region = phonenumbers.region_code_for_number(number)
    if region and region != phonenumbers.UNKNOWN_REGION:
        return region
    # shared calling codes (+1) with no type match: keep the country the caller chose
    if number.country_code == phonenumbers.country_code_for_region(fallback):
        return fallback
    return phonenumbers.region_code_for_country_code(number.country_code)


def validate_and_format_phone(phone_input: str, country_code: str) -> PhoneValidationResult:
    """
    Strip separators, check the digits against the country's numbering plan
    and return the canonical form, e.g. "(555) 123-4567" + "US" -> "+15551234567".
    """
    cleaned = strip_separators(phone_input)
    if not cleaned:
        return PhoneValidationResult(is_valid=False, error=ERROR_REQUIRED)

    region = (country_code or "").strip().upper()
    if region not in phonenumbers.SUPPORTED_REGIONS:
        return PhoneValidationResult(is_valid=False, error=ERROR_COUNTRY)

    # letters (vanity numbers) and extensions are not dialable digits
    if _DIALABLE_RE.fullmatch(cleaned) is None:
        return PhoneValidationResult(is_valid=False, error=ERROR_INVALID)

    try:
        number = phonenumbers.parse(cleaned, region)
    except NumberParseException:
        return PhoneValidationResult(is_valid=False, error=ERROR_INVALID)

    if not _matches_numbering_plan(number):
        return PhoneValidationResult(is_valid=False, error=ERROR_INVALID)

    return PhoneValidationResult(
        is_valid=True,
        formatted=phonenumbers.format_number(number, PhoneNumberFormat.E164),
        country=_resolved_region(number, region),
    )


def is_valid_phone(phone_input: str, country_code: str) -> bool:
    return validate_and_format_phone(phone_input, country_code).is_valid


def format_phone_for_display(canonical: str, style: DisplayStyle = "national") -> str:
    """
    Render a stored number for people. Anything that does not parse is
    returned unchanged.
    """
    try:
        number = phonenumbers.parse(canonical, None)
    except NumberParseException:
        return canonical

    if style == "international":
        return phonenumbers.format_number(number, PhoneNumberFormat.INTERNATIONAL)
    if style == "uri":
        return f"tel:{phonenumbers.format_number(number, PhoneNumberFormat.E164)}"
    return phonenumbers.format_number(number, PhoneNumberFormat.NATIONAL)


def get_country_from_canonical(canonical: str) -> Optional[str]:
    try:
        number = phonenumbers.parse(canonical, None)
    except NumberParseException:
        return None
    region = phonenumbers.region_code_for_number(number)
    if region and region != phonenumbers.UNKNOWN_REGION:
        return region
    main = phonenumbers.region_code_for_country_code(number.country_code)
    return None if main == phonenumbers.UNKNOWN_REGION else main


def get_national_number(canonical: str) -> str:
    try:
        number = phonenumbers.parse(canonical, None)
    except NumberParseException:
        return canonical.replace("+", "")
    return phonenumbers.national_significant_number(number)


def are_phone_numbers_equal(phone1: str, phone2: str, country_code: str | None = None) -> bool:
    """
    Two canonical numbers are equal only when byte-identical. Anything else
    needs a country to parse against and is compared by canonical form.
    """
    if is_canonical_form(phone1) and is_canonical_form(phone2):
        return phone1 == phone2

    if not country_code:
        return False

    region = country_code.strip().upper()
    try:
        first = phonenumbers.parse(strip_separators(phone1), region)
        second = phonenumbers.parse(strip_separators(phone2), region)
    except NumberParseException:
        return False

    return phonenumbers.format_number(first, PhoneNumberFormat.E164) == phonenumbers.format_number(
        second, PhoneNumberFormat.E164
    )


def get_example_number(country_code: str) -> str:
    return _EXAMPLE_NUMBERS.get((country_code or "").upper(), "123456789")
