import datetime as dt
from decimal import Decimal

import pytest

from ledger_reports.errors import UnknownReportError
from ledger_reports.models import AccountLedger, CalendarDate, CustomerLedger, ReportFilter
from ledger_reports.reports import ReportId, compute_report, parse_report_id, profit_margin

NOW = dt.datetime(2024, 2, 20, 9, 0)


def _report(snapshot, rid, **flt):
    return compute_report(rid, snapshot, ReportFilter(**flt), now=NOW)


def test_parse_report_id_accepts_slug_and_title():
    assert parse_report_id("party-wise-summary") is ReportId.PARTY_WISE_SUMMARY
    assert parse_report_id("Profit & Loss Analysis") is ReportId.PROFIT_AND_LOSS
    assert ReportId.SUB_CATEGORY.label == "Sub Category Report"
    with pytest.raises(UnknownReportError) as exc:
        parse_report_id("Notes Report")
    assert exc.value.value == "Notes Report"


def test_compute_report_is_idempotent(sample_snapshot):
    first = _report(sample_snapshot, "party-wise-summary")
    second = _report(sample_snapshot, "party-wise-summary")
    assert first == second


def test_party_wise_summary(sample_snapshot):
    result = _report(sample_snapshot, ReportId.PARTY_WISE_SUMMARY)

    assert [r.customer_name for r in result.rows] == ["Asha Traders", "Bala"]
    asha, bala = result.rows
    assert (asha.total_sales, asha.total_payments, asha.balance) == (Decimal(1200), Decimal(100), Decimal(1100))
    assert asha.category == "Dealer"
    assert asha.last_transaction_str == "05-02-2024"
    assert asha.status == "Due"
    assert bala.category == "Individual"
    assert bala.last_transaction_str == "15-02-2024"
    assert bala.days_since == 6
    # Internal transfers never reach customer reports.
    assert result.summary.total_payments == Decimal(300)
    assert result.summary.total_balance == Decimal(2100)


def test_party_wise_summary_category_filter(sample_snapshot):
    result = _report(sample_snapshot, ReportId.PARTY_WISE_SUMMARY, category="Dealer")
    assert [r.customer_name for r in result.rows] == ["Asha Traders"]


def test_monthly_business_summary(sample_snapshot):
    result = _report(sample_snapshot, ReportId.MONTHLY_BUSINESS_SUMMARY)

    assert [r.month_key for r in result.rows] == ["2024-01", "2024-02"]
    assert [r.display_month for r in result.rows] == ["Jan 2024", "Feb 2024"]
    feb = result.rows[1]
    assert (feb.total_sales, feb.total_collections, feb.difference) == (Decimal(2100), Decimal(200), Decimal(1900))
    assert result.summary.difference == Decimal(2100)


def test_item_reports_by_party(sample_snapshot):
    result = _report(sample_snapshot, ReportId.ITEM_REPORTS_BY_PARTY)

    assert [r.id for r in result.rows] == [
        "Bala_Cement_bags",
        "Asha Traders_Steel_tons",
        "Asha Traders_Cement_bags",
    ]
    assert result.summary.total_customers == 2
    assert result.summary.total_amount == Decimal(2400)
    assert result.summary.total_quantity == Decimal(16)

    only_asha = _report(sample_snapshot, ReportId.ITEM_REPORTS_BY_PARTY, customer="Asha Traders")
    assert only_asha.summary.total_customers == 1


def test_item_sale_summary(sample_snapshot):
    result = _report(sample_snapshot, ReportId.ITEM_SALE_SUMMARY)

    assert [(r.product_name, r.unit, r.quantity) for r in result.rows] == [
        ("Cement", "bags", Decimal(14)),
        ("Steel", "tons", Decimal(2)),
    ]
    assert result.summary.total_items == 2

    steel = _report(sample_snapshot, ReportId.ITEM_SALE_SUMMARY, product="Steel")
    assert [r.product_name for r in steel.rows] == ["Steel"]


def test_profit_and_loss(sample_snapshot):
    result = _report(sample_snapshot, ReportId.PROFIT_AND_LOSS)

    jan, feb = result.rows
    assert (jan.total_revenue, jan.total_cost, jan.profit) == (Decimal(300), Decimal(200), Decimal(100))
    assert (feb.total_revenue, feb.total_cost) == (Decimal(2100), Decimal(1000))
    assert result.summary.net_profit == Decimal(1200)
    assert result.summary.margin == Decimal(50)


def test_profit_margin_without_revenue_is_zero():
    assert profit_margin(Decimal(0), Decimal(-10)) == 0


def test_sub_category_report(sample_snapshot):
    result = _report(sample_snapshot, ReportId.SUB_CATEGORY)

    assert [r.total_unbilled for r in result.rows] == [Decimal(10), Decimal(3)]
    totals = result.summary
    assert (totals.direct, totals.gl, totals.gv, totals.total) == (Decimal(2), Decimal(10), Decimal(5), Decimal(17))
    assert totals.total_unbilled == Decimal(3)

    bags = _report(sample_snapshot, ReportId.SUB_CATEGORY, metric="bags")
    assert bags.summary.total_unbilled == Decimal(60)


def test_expenses_grouped_by_item(sample_snapshot):
    result = _report(sample_snapshot, ReportId.EXPENSES)

    diesel, rent = result.rows
    assert diesel.item == "Diesel"
    assert [e.id for e in diesel.expenses] == ["e2", "e1"]
    assert diesel.total == Decimal(200)
    assert rent.total == Decimal(1000)
    assert result.summary.total_expenses == Decimal(1200)
    assert result.summary.count == 3


def test_accounts_report_with_selected_ledger(sample_snapshot):
    result = _report(sample_snapshot, ReportId.ACCOUNTS, account="Main Bank")

    assert [(r.name, r.status) for r in result.rows] == [("Main Bank", "Active"), ("Petty Cash", "Inactive")]
    assert result.summary.total_balance == Decimal(1000)
    assert result.summary.active_count == 1
    assert isinstance(result.detail, AccountLedger)
    assert result.detail.opening_balance == Decimal(850)
    assert [e.balance for e in result.detail.entries] == [Decimal(1050), Decimal(1000)]

    assert _report(sample_snapshot, ReportId.ACCOUNTS).detail is None


def test_daily_report_counts_and_sections(sample_snapshot):
    result = _report(sample_snapshot, ReportId.DAILY)

    counts = {s.name: len(s.records) for s in result.rows}
    assert counts["Sales"] == 3
    assert counts["Payments"] == 2
    assert counts["New Customers"] == 2
    # Registrations are listed but not counted as transactions.
    assert result.summary.total_transactions == 14

    only_sales = _report(sample_snapshot, ReportId.DAILY, section="Sales")
    assert [s.name for s in only_sales.rows] == ["Sales"]
    assert only_sales.summary == result.summary

    one_day = _report(
        sample_snapshot,
        ReportId.DAILY,
        date_from=CalendarDate(2024, 3, 2),
        date_to=CalendarDate(2024, 3, 2),
    )
    one_day_counts = {s.name: len(s.records) for s in one_day.rows}
    assert one_day_counts["Purchases"] == 2
    assert one_day_counts["Accounts"] == 1
    assert one_day_counts["Sales"] == 0


def test_customer_ledger_report(sample_snapshot):
    result = _report(
        sample_snapshot,
        ReportId.CUSTOMER_LEDGER,
        customer_id="1",
        date_from=CalendarDate(2024, 1, 15),
    )

    assert [(r.name, r.balance) for r in result.rows] == [("Asha Traders", Decimal(1600)), ("Bala", Decimal(1000))]
    assert result.summary.active == 2
    assert result.summary.total_outstanding == Decimal(2600)
    ledger = result.detail
    assert isinstance(ledger, CustomerLedger)
    assert ledger.opening_balance == Decimal(800)
    assert ledger.opening_balance_date == "15-01-2024"
    assert ledger.closing_balance == Decimal(1600)


def test_customer_ledger_selected_by_name(sample_snapshot):
    result = _report(sample_snapshot, ReportId.CUSTOMER_LEDGER, customer="Bala")
    assert result.detail.customer.id == "c2"

    unknown = _report(sample_snapshot, ReportId.CUSTOMER_LEDGER, customer_id="nobody")
    assert unknown.detail is None


def test_customer_category_activity(sample_snapshot):
    result = _report(sample_snapshot, ReportId.CUSTOMER_CATEGORY)

    bala = next(r for r in result.rows if r.name == "Bala")
    assert bala.activity == "Active"
    assert bala.last_transaction_label == "5 days ago"
    assert result.summary.total == 2

    assert _report(sample_snapshot, ReportId.CUSTOMER_CATEGORY, status="Inactive").rows == ()

    later = compute_report(
        ReportId.CUSTOMER_CATEGORY, sample_snapshot, ReportFilter(status="Inactive"), now=dt.datetime(2024, 6, 1)
    )
    assert later.summary.total == 2


def test_empty_snapshot_gives_empty_rows_and_zero_summaries():
    from ledger_reports.models import Snapshot

    empty = Snapshot()
    for rid in ReportId:
        result = compute_report(rid, empty, now=NOW)
        if rid is ReportId.DAILY:
            assert all(not s.records for s in result.rows)
        else:
            assert result.rows == ()
    assert compute_report(ReportId.PROFIT_AND_LOSS, empty, now=NOW).summary.margin == 0
