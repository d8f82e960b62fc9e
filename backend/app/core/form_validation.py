# backend/app/core/form_validation.py
"""
Field validators for customer registration and edit payloads.

Validators never raise: each returns None when the value is acceptable, or a
FieldError naming the field and a message meant for the person filling the
form. ``validate_customer_registration`` collects every error at once.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

NAME_FIELDS = {"first_name": "First", "last_name": "Last"}

_NAME_RE = re.compile(r"[a-zA-Z\s\-']+")
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_CITY_RE = re.compile(r"[a-zA-Z\s\-'.]+")

MAX_AGE_YEARS = 150

# (pattern, message) by ISO country code; other countries only get the length check
_POSTAL_CODE_RULES: dict[str, tuple[re.Pattern[str], str]] = {
    "US": (
        re.compile(r"\d{5}(-\d{4})?"),
        "Please enter a valid US ZIP code (e.g., 12345 or 12345-6789)",
    ),
    "CA": (
        re.compile(r"[A-Za-z]\d[A-Za-z] ?\d[A-Za-z]\d"),
        "Please enter a valid Canadian postal code (e.g., A1A 1A1)",
    ),
    "GB": (
        re.compile(r"[A-Z]{1,2}\d{1,2}[A-Z]?\s?\d[A-Z]{2}", re.IGNORECASE),
        "Please enter a valid UK postcode",
    ),
}


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def validate_name(value: Optional[str], field: str) -> Optional[FieldError]:
    label = NAME_FIELDS.get(field, "Name")
    name = _text(value)

    if not name:
        return FieldError(field, f"{label} name is required")
    if len(name) < 2:
        return FieldError(field, f"{label} name must be at least 2 characters")
    if len(name) > 100:
        return FieldError(field, f"{label} name must be less than 100 characters")
    if not _NAME_RE.fullmatch(name):
        return FieldError(
            field,
            f"{label} name can only contain letters, spaces, hyphens, and apostrophes",
        )
    return None


def validate_email(value: Optional[str]) -> Optional[FieldError]:
    email = _text(value)
    if not email:
        return None  # optional
    if not _EMAIL_RE.fullmatch(email):
        return FieldError("email", "Please enter a valid email address")
    return None


def parse_birth_date(value: Any) -> Optional[date]:
    """Accepts a date, a datetime, or an ISO-8601 date/datetime string."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = _text(value)
    if not text:
        return None
    if len(text) > 10 and text[10] in "T ":
        text = text[:10]  # drop the time part of a datetime string
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def _years_before(day: date, years: int) -> date:
    try:
        return day.replace(year=day.year - years)
    except ValueError:  # Feb 29 in a non-leap target year
        return day.replace(year=day.year - years, day=28)


def validate_birth_date(value: Any, *, today: Optional[date] = None) -> Optional[FieldError]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return FieldError("birth_date", "Birth date is required")

    birth_date = parse_birth_date(value)
    if birth_date is None:
        return FieldError("birth_date", "Please enter a valid date")

    today = today or date.today()
    if birth_date >= today:
        return FieldError("birth_date", "Birth date must be in the past")
    if birth_date < _years_before(today, MAX_AGE_YEARS):
        return FieldError("birth_date", "Please enter a valid birth date")
    return None


def validate_postal_code(value: Optional[str], country_code: Optional[str] = None) -> Optional[FieldError]:
    postal_code = _text(value)
    if not postal_code:
        return None  # optional

    if len(postal_code) < 3 or len(postal_code) > 10:
        return FieldError("postal_code", "Please enter a valid postal code")

    rule = _POSTAL_CODE_RULES.get((country_code or "").upper())
    if rule is not None:
        pattern, message = rule
        if not pattern.fullmatch(postal_code):
            return FieldError("postal_code", message)
    return None


def validate_address_line(value: Optional[str], field: str) -> Optional[FieldError]:
    address = _text(value)
    if not address:
        return None  # optional
    if len(address) < 3:
        return FieldError(field, "Address must be at least 3 characters")
    if len(address) > 200:
        return FieldError(field, "Address must be less than 200 characters")
    return None


def validate_city(value: Optional[str]) -> Optional[FieldError]:
    city = _text(value)
    if not city:
        return None  # optional
    if len(city) < 2:
        return FieldError("city", "City must be at least 2 characters")
    if len(city) > 100:
        return FieldError("city", "City must be less than 100 characters")
    if not _CITY_RE.fullmatch(city):
        return FieldError(
            "city",
            "City can only contain letters, spaces, hyphens, apostrophes, and periods",
        )
    return None


def validate_state(value: Optional[str]) -> Optional[FieldError]:
    state = _text(value)
    if not state:
        return None  # optional
    if len(state) < 2:
        return FieldError("state", "State must be at least 2 characters")
    if len(state) > 100:
        return FieldError("state", "State must be less than 100 characters")
    return None


def validate_consent(consent_given: Any) -> Optional[FieldError]:
    if consent_given is not True:
        return FieldError("consent_given", "You must agree to the terms to continue")
    return None


def validate_customer_registration(
    data: Mapping[str, Any],
    *,
    country_code: Optional[str] = None,
    require_consent: bool = True,
) -> list[FieldError]:
    """
    Runs every required-field check and every optional-field check whose value
    is present. Phone numbers are validated separately by the phone formatter.

    ``require_consent`` is True on public self-registration only; customers
    entered by staff may be stored without consent.
    """
    errors: list[Optional[FieldError]] = [
        validate_name(data.get("first_name"), "first_name"),
        validate_name(data.get("last_name"), "last_name"),
        validate_birth_date(data.get("birth_date")),
    ]
    if require_consent:
        errors.append(validate_consent(data.get("consent_given")))

    if _text(data.get("email")):
        errors.append(validate_email(data.get("email")))
    if _text(data.get("address_line1")):
        errors.append(validate_address_line(data.get("address_line1"), "address_line1"))
    if _text(data.get("address_line2")):
        errors.append(validate_address_line(data.get("address_line2"), "address_line2"))
    if _text(data.get("city")):
        errors.append(validate_city(data.get("city")))
    if _text(data.get("state")):
        errors.append(validate_state(data.get("state")))
    if _text(data.get("postal_code")):
        errors.append(validate_postal_code(data.get("postal_code"), country_code))

    return [e for e in errors if e is not None]


def errors_to_details(errors: Iterable[FieldError]) -> dict[str, list[str]]:
    details: dict[str, list[str]] = {}
    for err in errors:
        details.setdefault(err.field, []).append(err.message)
    return details
