from __future__ import annotations

import math
from datetime import date, datetime
from decimal import Decimal

import pytest

from finance_engine.utilities.converters_scalar import (
    is_missing,
    parse_iso_date,
    to_bool,
    to_date,
    to_decimal,
    to_epoch_millis,
    to_optional_int,
    to_optional_str,
    to_str_list,
)


# ---------- to_decimal ----------
@pytest.mark.parametrize(
    "raw,expected",
    [
        (Decimal("1.50"), Decimal("1.50")),
        (7, Decimal("7")),
        (0.1, Decimal("0.1")),
        ("1,234.56", Decimal("1234.56")),
        ("1.234,56", Decimal("1234.56")),
        ("R$ 99,90", Decimal("99.90")),
        ("(12.00)", Decimal("-12.00")),
        ("12.00-", Decimal("-12.00")),
        ("−45", Decimal("-45")),
        ("1,000", Decimal("1000")),
        ("+3", Decimal("3")),
    ],
)
def test_to_decimal_accepts_store_and_locale_formats(raw, expected):
    assert to_decimal(raw) == expected


@pytest.mark.parametrize("raw", [True, "", "abc", float("nan"), None, [1]])
def test_to_decimal_rejects(raw):
    with pytest.raises(ValueError):
        to_decimal(raw)


# ---------- missing / bool / int / str ----------
@pytest.mark.parametrize("raw", [None, "", "   ", float("nan"), Decimal("NaN")])
def test_is_missing_true(raw):
    assert is_missing(raw) is True


@pytest.mark.parametrize("raw", [0, "0", False, "x", Decimal("0")])
def test_is_missing_false(raw):
    assert is_missing(raw) is False


@pytest.mark.parametrize(
    "raw,default,expected",
    [
        (None, True, True),
        (math.nan, False, False),
        ("TRUE", False, True),
        ("yes", False, True),
        ("false", True, False),
        ("0", True, False),
        (1, False, True),
        (0.0, True, False),
        (False, True, False),
    ],
)
def test_to_bool(raw, default, expected):
    assert to_bool(raw, default=default) is expected


def test_to_optional_int():
    assert to_optional_int(None) is None
    assert to_optional_int(6.0) == 6
    assert to_optional_int("12") == 12
    with pytest.raises(ValueError):
        to_optional_int(2.5)
    with pytest.raises(ValueError):
        to_optional_int(True)


def test_to_optional_str_strips_and_maps_missing_to_none():
    assert to_optional_str("  Alex ") == "Alex"
    assert to_optional_str(float("nan")) is None
    assert to_optional_str(42) == "42"


# ---------- dates ----------
@pytest.mark.parametrize(
    "raw,expected",
    [
        ("2024-02-29", date(2024, 2, 29)),
        (" 2024-01-05 ", date(2024, 1, 5)),
        ("2024-01-05T13:45:00Z", date(2024, 1, 5)),
        (datetime(2024, 3, 1, 8, 30), date(2024, 3, 1)),
        (date(2024, 3, 1), date(2024, 3, 1)),
        ("2023-02-29", None),
        ("05/01/2024", None),
        ("", None),
        (None, None),
        (20240105, None),
    ],
)
def test_parse_iso_date_is_lenient(raw, expected):
    assert parse_iso_date(raw) == expected


def test_to_date_is_strict():
    assert to_date("2024-12-31") == date(2024, 12, 31)
    with pytest.raises(ValueError):
        to_date("31/12/2024")


@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, 0.0),
        (1700000000000, 1700000000000.0),
        ("1700000000000", 1700000000000.0),
        (" 1704103200000.5 ", 1704103200000.5),
        ("1970-01-01T00:00:01Z", 1000.0),
        ("1970-01-01T00:00:01+00:00", 1000.0),
        (datetime(1970, 1, 1, 0, 0, 2), 2000.0),
        (date(1970, 1, 2), 86_400_000.0),
    ],
)
def test_to_epoch_millis(raw, expected):
    assert to_epoch_millis(raw) == pytest.approx(expected)


def test_to_epoch_millis_rejects_garbage():
    with pytest.raises(ValueError):
        to_epoch_millis("yesterday")


# ---------- lists ----------
@pytest.mark.parametrize(
    "raw,expected",
    [
        (None, []),
        (["2024-01-01", None, " 2024-02-01 "], ["2024-01-01", "2024-02-01"]),
        ('["2024-01-01", "2024-02-01"]', ["2024-01-01", "2024-02-01"]),
        ("2024-01-01; 2024-02-01", ["2024-01-01", "2024-02-01"]),
        ("2024-01-01,2024-02-01", ["2024-01-01", "2024-02-01"]),
        ("[]", []),
    ],
)
def test_to_str_list(raw, expected):
    assert to_str_list(raw) == expected


def test_to_str_list_rejects_broken_json():
    with pytest.raises(ValueError):
        to_str_list("[2024-01-01")
