# tests/test_countries.py
from __future__ import annotations

from app.core.countries import (
    COUNTRIES,
    get_countries_by_dial_code,
    get_country_by_code,
    get_country_by_name,
    get_country_name,
    get_default_country,
    is_valid_country_code,
    resolve_country,
)


def test_registry_is_sorted_by_name_and_unique():
    names = [c.name for c in COUNTRIES]
    assert names == sorted(names, key=str.lower)
    assert len({c.code for c in COUNTRIES}) == len(COUNTRIES)


def test_lookup_by_code_is_case_insensitive():
    assert get_country_by_code("us").name == "United States"
    assert get_country_by_code(" GB ").dial_code == "+44"
    assert get_country_by_code("XX") is None
    assert get_country_by_code(None) is None


def test_lookup_by_name():
    assert get_country_by_name("Canada").code == "CA"
    assert get_country_by_name("united kingdom").code == "GB"
    assert get_country_by_name("Narnia") is None


def test_shared_dial_code_returns_every_country():
    codes = {c.code for c in get_countries_by_dial_code("+1")}
    assert codes == {"US", "CA"}
    # missing '+' is tolerated
    assert {c.code for c in get_countries_by_dial_code("44")} == {"GB"}
    assert get_countries_by_dial_code("") == []


def test_default_and_helpers():
    assert get_default_country().code == "US"
    assert is_valid_country_code("de")
    assert not is_valid_country_code("QQ")
    assert get_country_name("FR") == "France"
    assert get_country_name("QQ") == "QQ"


def test_resolve_accepts_code_or_name():
    assert resolve_country("US").name == "United States"
    assert resolve_country("United States").code == "US"
    assert resolve_country("") is None
