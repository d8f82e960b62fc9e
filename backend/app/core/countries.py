# backend/app/core/countries.py
"""
Country registry: ISO code, display name, international dial code and the
display pattern used for local phone grouping.

The table is a process-wide constant. Admin country choices are validated
against display names; the phone formatter works with ISO codes.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Country:
    code: str          # ISO 3166-1 alpha-2, e.g. "US"
    name: str          # display name, e.g. "United States"
    dial_code: str     # e.g. "+1"
    format: str        # display pattern, '#' is a digit


_RAW_COUNTRIES: tuple[tuple[str, str, str, str], ...] = (
    ("US", "United States", "+1", "(###) ###-####"),
    ("CA", "Canada", "+1", "(###) ###-####"),
    ("GB", "United Kingdom", "+44", "#### ### ####"),
    ("AU", "Australia", "+61", "#### ### ###"),
    ("NZ", "New Zealand", "+64", "### ### ####"),
    ("DE", "Germany", "+49", "#### #######"),
    ("FR", "France", "+33", "# ## ## ## ##"),
    ("IT", "Italy", "+39", "### ### ####"),
    ("ES", "Spain", "+34", "### ## ## ##"),
    ("NL", "Netherlands", "+31", "## ########"),
    ("BE", "Belgium", "+32", "### ## ## ##"),
    ("CH", "Switzerland", "+41", "## ### ## ##"),
    ("AT", "Austria", "+43", "### #######"),
    ("SE", "Sweden", "+46", "##-### ## ##"),
    ("NO", "Norway", "+47", "### ## ###"),
    ("DK", "Denmark", "+45", "## ## ## ##"),
    ("FI", "Finland", "+358", "## ### ## ##"),
    ("IE", "Ireland", "+353", "## ### ####"),
    ("PL", "Poland", "+48", "### ### ###"),
    ("PT", "Portugal", "+351", "### ### ###"),
    ("GR", "Greece", "+30", "### ### ####"),
    ("CZ", "Czech Republic", "+420", "### ### ###"),
    ("HU", "Hungary", "+36", "## ### ####"),
    ("RO", "Romania", "+40", "### ### ###"),
    ("BG", "Bulgaria", "+359", "### ### ###"),
    ("JP", "Japan", "+81", "##-####-####"),
    ("KR", "South Korea", "+82", "##-####-####"),
    ("CN", "China", "+86", "### #### ####"),
    ("IN", "India", "+91", "##### #####"),
    ("SG", "Singapore", "+65", "#### ####"),
    ("MY", "Malaysia", "+60", "##-### ####"),
    ("TH", "Thailand", "+66", "##-###-####"),
    ("ID", "Indonesia", "+62", "###-###-####"),
    ("PH", "Philippines", "+63", "### ### ####"),
    ("VN", "Vietnam", "+84", "### ### ####"),
    ("AE", "United Arab Emirates", "+971", "## ### ####"),
    ("SA", "Saudi Arabia", "+966", "## ### ####"),
    ("IL", "Israel", "+972", "##-###-####"),
    ("TR", "Turkey", "+90", "### ### ## ##"),
    ("ZA", "South Africa", "+27", "## ### ####"),
    ("EG", "Egypt", "+20", "### ### ####"),
    ("BR", "Brazil", "+55", "## #####-####"),
    ("MX", "Mexico", "+52", "### ### ####"),
    ("AR", "Argentina", "+54", "## ####-####"),
    ("CL", "Chile", "+56", "# #### ####"),
    ("CO", "Colombia", "+57", "### ### ####"),
    ("PE", "Peru", "+51", "### ### ###"),
)

# Sorted by display name for dropdowns and listings.
COUNTRIES: tuple[Country, ...] = tuple(
    sorted((Country(*row) for row in _RAW_COUNTRIES), key=lambda c: c.name.lower())
)

DEFAULT_COUNTRY_CODE = "US"

_BY_CODE: dict[str, Country] = {c.code: c for c in COUNTRIES}
_BY_NAME: dict[str, Country] = {c.name.lower(): c for c in COUNTRIES}


def get_country_by_code(code: str | None) -> Country | None:
    if not code:
        return None
    return _BY_CODE.get(code.strip().upper())


def get_country_by_name(name: str | None) -> Country | None:
    """Case-insensitive lookup by display name."""
    if not name:
        return None
    return _BY_NAME.get(name.strip().lower())


def get_countries_by_dial_code(dial_code: str) -> list[Country]:
    """
    Dial codes are shared (US and Canada are both +1), so this returns every
    match in registry order. A missing leading '+' is tolerated.
    """
    value = (dial_code or "").strip()
    if not value:
        return []
    normalized = value if value.startswith("+") else f"+{value}"
    return [c for c in COUNTRIES if c.dial_code == normalized]


def get_default_country() -> Country:
    return _BY_CODE[DEFAULT_COUNTRY_CODE]


def is_valid_country_code(code: str | None) -> bool:
    return get_country_by_code(code) is not None


def get_country_name(code: str) -> str:
    country = get_country_by_code(code)
    return country.name if country else code


def resolve_country(value: str | None) -> Country | None:
    """
    Accepts either an ISO code or a display name. Registration payloads carry
    whichever the client had at hand; tenant settings always store the name.
    """
    if not value:
        return None
    return get_country_by_code(value) or get_country_by_name(value)
