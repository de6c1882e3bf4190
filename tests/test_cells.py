from datetime import date, datetime
from decimal import Decimal

import pytest

from retail_ingest.cells import normalize_text, parse_day_month_year, parse_period, parse_smart_number


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("5,800", Decimal("5800")),
        ("12,5", Decimal("12.5")),
        ("1.384,92", Decimal("1384.92")),
        ("107,000.00", Decimal("107000.00")),
        ("1,234,567", Decimal("1234567")),
        ("1.234", Decimal("1234")),
        ("1.234.567", Decimal("1234567")),
        ("1.5", Decimal("1.5")),
        (" 5 800 ", Decimal("5800")),
        ("-3", Decimal("-3")),
        ("0", Decimal("0")),
    ],
)
def test_parse_smart_number_disambiguates_separators(raw, expected):
    assert parse_smart_number(raw) == expected


def test_parse_smart_number_matches_plain_numbers():
    assert parse_smart_number("5,800") == 5800
    assert parse_smart_number("12,5") == 12.5


@pytest.mark.parametrize("raw", ["", "   ", None, "abc", "12a", "NaN", "Infinity", "1_000", "Rp 5.000", "1e400", "-1e400"])
def test_parse_smart_number_returns_none_for_unparsable(raw):
    assert parse_smart_number(raw) is None


def test_parse_smart_number_accepts_native_numbers():
    assert parse_smart_number(12) == Decimal("12")
    assert parse_smart_number(2.5) == Decimal("2.5")
    assert parse_smart_number(float("nan")) is None
    assert parse_smart_number(True) is None
    assert parse_smart_number(Decimal("1e999999")) is None


def test_parse_day_month_year_accepts_both_separators():
    assert parse_day_month_year("18/01/2026") == date(2026, 1, 18)
    assert parse_day_month_year("5-2-2026") == date(2026, 2, 5)
    assert parse_day_month_year(" 06/02/2026 ") == date(2026, 2, 6)


@pytest.mark.parametrize("raw", ["32/01/2026", "00/01/2026", "18/13/2026", "31/02/2026", "2026-01-18", "18/01/26", "", None])
def test_parse_day_month_year_rejects_invalid(raw):
    assert parse_day_month_year(raw) is None


def test_normalize_text_trims_and_blanks_missing_cells():
    assert normalize_text(None) == ""
    assert normalize_text(float("nan")) == ""
    assert normalize_text("  Gula Pasir ") == "Gula Pasir"
    assert normalize_text(42) == "42"


def test_normalize_text_renders_typed_cells_as_displayed():
    assert normalize_text(datetime(2026, 1, 18)) == "18/01/2026"
    assert normalize_text(date(2026, 2, 5)) == "05/02/2026"
    assert normalize_text(30000.0) == "30000"
    assert normalize_text(2.5) == "2.5"
    assert parse_smart_number(normalize_text(1.234)) == Decimal("1.234")
    assert parse_day_month_year(datetime(2026, 1, 18)) == date(2026, 1, 18)


def test_parse_period_extracts_range():
    period = parse_period("Periode 18/01/2026 Sampai 06/02/2026")

    assert period.date_from == date(2026, 1, 18)
    assert period.date_to == date(2026, 2, 6)
    assert period.raw == "Periode 18/01/2026 Sampai 06/02/2026"


def test_parse_period_keeps_raw_text_when_phrase_does_not_match():
    period = parse_period("Januari 2026")

    assert period.raw == "Januari 2026"
    assert period.date_from is None
    assert period.date_to is None
