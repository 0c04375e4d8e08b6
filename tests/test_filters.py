from decimal import Decimal

from ledger_reports.filters import (
    CustomerDirectory,
    belongs_to,
    filter_records,
    in_range,
    matches_search,
    product_is,
    selected,
)
from ledger_reports.models import CalendarDate, Customer, Payment, ReportFilter, Sale

JAN_10 = CalendarDate(2024, 1, 10)
JAN_20 = CalendarDate(2024, 1, 20)


def _sale(sid: str, date: CalendarDate | None, customer: str = "Asha", product: str = "Cement • 1 bags") -> Sale:
    return Sale(
        id=sid,
        date=date,
        date_str=str(date) if date else "??",
        customer=customer,
        amount=Decimal(100),
        product=product,
    )


def test_open_range_admits_everything_including_bad_dates():
    assert in_range(JAN_10, None, None)
    assert in_range(None, None, None)
    # A single bound still leaves the range open.
    assert in_range(JAN_10, JAN_20, None)
    assert in_range(None, None, JAN_20)


def test_closed_range_is_inclusive_and_rejects_bad_dates():
    assert in_range(JAN_10, JAN_10, JAN_20)
    assert in_range(JAN_20, JAN_10, JAN_20)
    assert not in_range(CalendarDate(2024, 1, 21), JAN_10, JAN_20)
    assert not in_range(None, JAN_10, JAN_20)


def test_selected_treats_all_and_blank_as_unrestricted():
    assert selected(None) is None
    assert selected("  ") is None
    assert selected("All") is None
    assert selected(" Dealer ") == "Dealer"


def test_filter_records_applies_range_predicates_and_search():
    sales = [
        _sale("a", JAN_10, "Asha"),
        _sale("b", JAN_20, "Bala", "Steel • 2 tons"),
        _sale("c", None, "Asha"),
    ]
    bounded = ReportFilter(date_from=JAN_10, date_to=JAN_10)
    assert [s.id for s in filter_records(sales, bounded)] == ["a"]

    steel = filter_records(sales, ReportFilter(), product_is("Steel"))
    assert [s.id for s in steel] == ["b"]

    searched = filter_records(sales, ReportFilter(search="ASH"))
    assert [s.id for s in searched] == ["a", "c"]


def test_matches_search_blank_matches_everything():
    assert matches_search(_sale("a", JAN_10), None)
    assert matches_search(_sale("a", JAN_10), "")
    assert not matches_search(_sale("a", JAN_10), "zzz")


def test_directory_prefers_id_then_name():
    first = Customer(id="1", name="Asha", category="Dealer")
    dup = Customer(id="2", name="Asha", category="Retail")
    directory = CustomerDirectory([first, dup])

    assert directory.lookup(customer_id="2") is dup
    assert directory.lookup(customer_id="missing", name="Asha") is first
    assert directory.lookup(name="Nobody") is None
    assert directory.category_of("Asha") == "Dealer"
    assert directory.category_of("Nobody") == "Individual"


def test_belongs_to_matches_by_id_or_name():
    customer = Customer(id="1", name="Asha")
    by_id = Payment(id="p", date=JAN_10, date_str="10-01-2024", customer="Renamed", amount=Decimal(1), customer_id="1")
    by_name = _sale("s", JAN_10, "Asha")
    other = _sale("o", JAN_10, "Bala")

    assert belongs_to(by_id, customer)
    assert belongs_to(by_name, customer)
    assert not belongs_to(other, customer)
