from decimal import Decimal

import pytest

from ledger_reports.models import CalendarDate
from ledger_reports.normalizers import (
    display_date,
    format_display_date,
    format_money,
    from_iso,
    parse_date,
    parse_money,
    parse_quantity,
    product_name,
    split_product,
)


@pytest.mark.parametrize(
    "raw",
    ["2024-01-15", "15-01-2024", "2024-01-15T10:30:00", "2024-01-15 08:00:00", "  15-01-2024 "],
)
def test_parse_date_accepts_both_layouts(raw):
    assert parse_date(raw) == CalendarDate(2024, 1, 15)


@pytest.mark.parametrize("raw", [None, "", "15/01/2024", "yesterday", "31-02-2024", "2024-13-01", "1-2"])
def test_parse_date_rejects_malformed_text(raw):
    assert parse_date(raw) is None


def test_format_then_parse_is_identity():
    d = CalendarDate(2023, 12, 5)
    assert format_display_date(d) == "05-12-2023"
    assert parse_date(format_display_date(d)) == d
    assert str(d) == "05-12-2023"


def test_display_date_normalizes_and_passes_through_garbage():
    assert display_date("2024-03-09") == "09-03-2024"
    assert display_date("not a date") == "not a date"
    assert display_date(None) == ""


def test_from_iso_is_strict():
    assert from_iso("2024-02-29") == CalendarDate(2024, 2, 29)
    with pytest.raises(ValueError):
        from_iso("29-02-2023")


def test_calendar_dates_order_chronologically():
    assert CalendarDate(2023, 12, 31) < CalendarDate(2024, 1, 1) < CalendarDate(2024, 1, 2)
    assert CalendarDate(2024, 3, 1).month_key == "2024-03"


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1,250.50", Decimal("1250.50")),
        ("  300 ", Decimal("300")),
        (900, Decimal(900)),
        (0.1, Decimal("0.1")),
        ("-75", Decimal("-75")),
        ("abc", Decimal(0)),
        ("", Decimal(0)),
        (None, Decimal(0)),
        ("NaN", Decimal(0)),
    ],
)
def test_parse_money_is_zero_on_failure(raw, expected):
    assert parse_money(raw) == expected


def test_parse_quantity_uses_the_same_policy():
    assert parse_quantity("12.5") == Decimal("12.5")
    assert parse_quantity("twelve") == Decimal(0)


def test_format_money_groups_and_rounds():
    assert format_money(Decimal("12500")) == "12,500.00"
    assert format_money(Decimal("-0.005")) == "-0.01"


def test_format_money_handles_amounts_beyond_default_precision():
    assert format_money(Decimal("1e30")) == "1," + ",".join(["000"] * 10) + ".00"
    assert format_money(Decimal("123456789012345678901234567890.555")) == (
        "123,456,789,012,345,678,901,234,567,890.56"
    )
    assert format_money(Decimal("Infinity")) == "Infinity"


def test_split_product_descriptor():
    assert split_product("Cement • 10 bags") == ("Cement", Decimal(10), "bags")
    assert split_product("Steel • 2") == ("Steel", Decimal(2), "")
    assert split_product("Sand") == ("Sand", Decimal(0), "")
    assert split_product("Cement • 12 bags extra") == ("Cement", Decimal(12), "bags")
    assert product_name("Cement • 10 bags") == "Cement"
