"""Report dispatch: one entry point, one result shape per report.

:func:`compute_report` is the only place that knows which report is active.
It filters the snapshot with the predicates that report uses, runs the
matching aggregation, and pairs the rows with a report-specific summary.
The function is pure; :mod:`ledger_reports.cache` can memoize it.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Callable
from dataclasses import dataclass
from decimal import Decimal
from typing import TypeAlias
from enum import StrEnum

from . import aggregate, classify, filters
from .balances import account_ledger, customer_ledger
from .errors import UnknownReportError
from .logging_setup import get_logger
from .models import ZERO, Money, ReportFilter, Snapshot
from .reconcile import TONS, SubCategoryTotals, sub_category_report

_logger = get_logger("ledger_reports.reports")


class ReportId(StrEnum):
    DAILY = "daily"
    ITEM_REPORTS_BY_PARTY = "item-reports-by-party"
    ITEM_SALE_SUMMARY = "item-sale-summary"
    MONTHLY_BUSINESS_SUMMARY = "monthly-business-summary"
    PARTY_WISE_SUMMARY = "party-wise-summary"
    CUSTOMER_CATEGORY = "customer-category"
    ACCOUNTS = "accounts"
    PROFIT_AND_LOSS = "profit-and-loss"
    SUB_CATEGORY = "sub-category"
    CUSTOMER_LEDGER = "customer-ledger"
    EXPENSES = "expenses"

    @property
    def label(self) -> str:
        return REPORT_TITLES[self]


REPORT_TITLES: dict[ReportId, str] = {
    ReportId.DAILY: "Daily Report",
    ReportId.ITEM_REPORTS_BY_PARTY: "Item Reports by Party",
    ReportId.ITEM_SALE_SUMMARY: "Item Sale Summary",
    ReportId.MONTHLY_BUSINESS_SUMMARY: "Monthly Business Summary",
    ReportId.PARTY_WISE_SUMMARY: "Party Wise Summary",
    ReportId.CUSTOMER_CATEGORY: "Customer Category Report",
    ReportId.ACCOUNTS: "Account's Report",
    ReportId.PROFIT_AND_LOSS: "Profit & Loss Analysis",
    ReportId.SUB_CATEGORY: "Sub Category Report",
    ReportId.CUSTOMER_LEDGER: "Customer Ledger",
    ReportId.EXPENSES: "Expenses Report",
}


def parse_report_id(value: str | ReportId) -> ReportId:
    """Accept a slug (``party-wise-summary``) or a title (``Party Wise Summary``)."""

    if isinstance(value, ReportId):
        return value
    v = value.strip()
    try:
        return ReportId(v.lower())
    except ValueError:
        pass
    for rid, title in REPORT_TITLES.items():
        if title.lower() == v.lower():
            return rid
    raise UnknownReportError(value)


# ---------------------------------------------------------------------------
# Summaries
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ItemByPartySummary:
    total_customers: int
    total_amount: Money
    total_quantity: Decimal


@dataclass(frozen=True, slots=True)
class ItemSaleSummaryTotals:
    total_items: int
    total_quantity: Decimal


@dataclass(frozen=True, slots=True)
class MonthlySummary:
    total_sales: Money
    total_collections: Money
    difference: Money


@dataclass(frozen=True, slots=True)
class PartySummary:
    total_sales: Money
    total_payments: Money
    total_balance: Money


@dataclass(frozen=True, slots=True)
class AccountsSummary:
    total_balance: Money
    active_count: int


@dataclass(frozen=True, slots=True)
class DailySummary:
    sales_count: int
    purchase_count: int
    payment_count: int
    total_transactions: int


@dataclass(frozen=True, slots=True)
class ProfitLossSummary:
    total_revenue: Money
    total_cost: Money
    net_profit: Money
    margin: Decimal


@dataclass(frozen=True, slots=True)
class CustomerLedgerSummary:
    total: int
    active: int
    total_outstanding: Money


@dataclass(frozen=True, slots=True)
class ExpensesSummary:
    total_expenses: Money
    count: int


@dataclass(frozen=True, slots=True)
class CustomerCategorySummary:
    total: int


@dataclass(frozen=True, slots=True)
class ReportResult:
    """Rows plus summary; ``detail`` carries a drill-down ledger when selected."""

    report_id: ReportId
    rows: tuple[object, ...]
    summary: object
    detail: object | None = None

    @property
    def title(self) -> str:
        return self.report_id.label


def profit_margin(revenue: Money, net_profit: Money) -> Decimal:
    """Net profit as a percentage of revenue; ``0`` when there is no revenue."""

    if revenue > ZERO:
        return net_profit / revenue * 100
    return ZERO


# ---------------------------------------------------------------------------
# Per-report builders
# ---------------------------------------------------------------------------

_Builder: TypeAlias = Callable[[Snapshot, ReportFilter, _dt.datetime], ReportResult]


def _daily(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    sections = aggregate.daily_activity(snapshot, flt)
    counts = {s.name: len(s.records) for s in sections}
    summary = DailySummary(
        sales_count=counts["Sales"],
        purchase_count=counts["Purchases"],
        payment_count=counts["Payments"],
        # Customer registrations are listed but are not transactions.
        total_transactions=sum(n for name, n in counts.items() if name != aggregate.NEW_CUSTOMERS),
    )
    wanted = filters.selected(flt.section)
    shown = tuple(s for s in sections if wanted is None or s.name == wanted)
    return ReportResult(ReportId.DAILY, shown, summary)


def _item_reports_by_party(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    sales = filters.filter_records(snapshot.sales, flt, filters.customer_is(flt.customer))
    rows = aggregate.item_reports_by_party(sales)
    summary = ItemByPartySummary(
        total_customers=len({s.customer for s in sales}),
        total_amount=sum((r.amount for r in rows), ZERO),
        total_quantity=sum((r.quantity for r in rows), ZERO),
    )
    return ReportResult(ReportId.ITEM_REPORTS_BY_PARTY, tuple(rows), summary)


def _item_sale_summary(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    sales = filters.filter_records(snapshot.sales, flt, filters.product_is(flt.product))
    rows = aggregate.item_sale_summary(sales)
    summary = ItemSaleSummaryTotals(
        total_items=len(rows),
        total_quantity=sum((r.quantity for r in rows), ZERO),
    )
    return ReportResult(ReportId.ITEM_SALE_SUMMARY, tuple(rows), summary)


def _monthly(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    sales = filters.filter_records(snapshot.sales, flt)
    payments = filters.filter_records(snapshot.customer_payments, flt)
    rows = aggregate.monthly_business_summary(sales, payments)
    total_sales = sum((r.total_sales for r in rows), ZERO)
    total_collections = sum((r.total_collections for r in rows), ZERO)
    summary = MonthlySummary(total_sales, total_collections, total_sales - total_collections)
    return ReportResult(ReportId.MONTHLY_BUSINESS_SUMMARY, tuple(rows), summary)


def _party_wise(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    directory = filters.CustomerDirectory(snapshot.customers)
    by_category = filters.customer_category_is(flt.category, directory)
    sales = filters.filter_records(snapshot.sales, flt, by_category)
    payments = filters.filter_records(snapshot.customer_payments, flt, by_category)
    rows = aggregate.party_wise_summary(sales, payments, directory, now)
    summary = PartySummary(
        total_sales=sum((r.total_sales for r in rows), ZERO),
        total_payments=sum((r.total_payments for r in rows), ZERO),
        total_balance=sum((r.balance for r in rows), ZERO),
    )
    return ReportResult(ReportId.PARTY_WISE_SUMMARY, tuple(rows), summary)


def _customer_category(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    customers = filters.filter_records(
        snapshot.customers,
        flt,
        filters.customer_in_category(flt.category),
        use_range=False,
        use_search=False,
    )
    rows = aggregate.customer_category_rows(customers, snapshot.sales, snapshot.customer_payments, now)
    wanted = filters.selected(flt.status)
    if wanted is not None:
        rows = [r for r in rows if r.activity == wanted]
    return ReportResult(ReportId.CUSTOMER_CATEGORY, tuple(rows), CustomerCategorySummary(total=len(rows)))


def _accounts(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    rows = aggregate.account_rows(snapshot.accounts)
    summary = AccountsSummary(
        total_balance=sum((r.balance for r in rows), ZERO),
        active_count=sum(1 for r in rows if r.status == classify.ACTIVE),
    )
    detail = None
    name = filters.selected(flt.account)
    if name is not None:
        account = next((a for a in snapshot.accounts if a.name == name), None)
        if account is None:
            _logger.warning("accounts report: no account named %r", name)
        else:
            detail = account_ledger(account, snapshot.account_transactions, flt)
    return ReportResult(ReportId.ACCOUNTS, tuple(rows), summary, detail)


def _profit_and_loss(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    rows = aggregate.profit_and_loss(filters.filter_records(snapshot.sales, flt))
    revenue = sum((r.total_revenue for r in rows), ZERO)
    cost = sum((r.total_cost for r in rows), ZERO)
    net = revenue - cost
    summary = ProfitLossSummary(revenue, cost, net, profit_margin(revenue, net))
    return ReportResult(ReportId.PROFIT_AND_LOSS, tuple(rows), summary)


def _sub_category(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    purchases = filters.filter_records(
        snapshot.purchases, flt, filters.purchase_matches(flt.category, flt.product)
    )
    rows, totals = sub_category_report(
        purchases, metric=flt.metric or TONS, ratio=snapshot.settings.bags_per_ton
    )
    return ReportResult(ReportId.SUB_CATEGORY, tuple(rows), totals)


def _customer_ledger(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    customers = filters.filter_records(
        snapshot.customers,
        flt,
        filters.customer_in_category(flt.category),
        use_range=False,
    )
    rows = aggregate.customer_balances(customers, snapshot.sales, snapshot.customer_payments)
    summary = CustomerLedgerSummary(
        total=len(rows),
        active=sum(1 for r in rows if r.balance != ZERO),
        total_outstanding=sum((r.balance for r in rows), ZERO),
    )
    detail = None
    if flt.customer_id or flt.customer:
        directory = filters.CustomerDirectory(snapshot.customers)
        customer = directory.lookup(customer_id=flt.customer_id, name=flt.customer)
        if customer is None:
            _logger.warning(
                "customer ledger: no customer with id %r or name %r", flt.customer_id, flt.customer
            )
        else:
            detail = customer_ledger(customer, snapshot.sales, snapshot.customer_payments, flt)
    return ReportResult(ReportId.CUSTOMER_LEDGER, tuple(rows), summary, detail)


def _expenses(snapshot: Snapshot, flt: ReportFilter, now: _dt.datetime) -> ReportResult:
    expenses = filters.filter_records(snapshot.expenses, flt)
    rows = aggregate.expenses_by_item(expenses)
    summary = ExpensesSummary(
        total_expenses=sum((e.amount for e in expenses), ZERO),
        count=len(expenses),
    )
    return ReportResult(ReportId.EXPENSES, tuple(rows), summary)


_BUILDERS: dict[ReportId, _Builder] = {
    ReportId.DAILY: _daily,
    ReportId.ITEM_REPORTS_BY_PARTY: _item_reports_by_party,
    ReportId.ITEM_SALE_SUMMARY: _item_sale_summary,
    ReportId.MONTHLY_BUSINESS_SUMMARY: _monthly,
    ReportId.PARTY_WISE_SUMMARY: _party_wise,
    ReportId.CUSTOMER_CATEGORY: _customer_category,
    ReportId.ACCOUNTS: _accounts,
    ReportId.PROFIT_AND_LOSS: _profit_and_loss,
    ReportId.SUB_CATEGORY: _sub_category,
    ReportId.CUSTOMER_LEDGER: _customer_ledger,
    ReportId.EXPENSES: _expenses,
}


def compute_report(
    report_id: str | ReportId,
    snapshot: Snapshot,
    flt: ReportFilter | None = None,
    *,
    now: _dt.datetime | None = None,
) -> ReportResult:
    """Compute one report over ``snapshot``.

    Parameters
    ----------
    report_id:
        A :class:`ReportId`, its slug, or its display title.
    snapshot:
        The read-only data snapshot. It is never modified.
    flt:
        Date range and selections; defaults to an unrestricted filter.
    now:
        Reference time for recency classifications (defaults to the current
        local time). Pass it explicitly for reproducible output.
    """

    rid = parse_report_id(report_id)
    result = _BUILDERS[rid](snapshot, flt or ReportFilter(), now or _dt.datetime.now())
    _logger.debug("computed report=%s rows=%d", rid.value, len(result.rows))
    return result


__all__ = [
    "REPORT_TITLES",
    "AccountsSummary",
    "CustomerCategorySummary",
    "CustomerLedgerSummary",
    "DailySummary",
    "ExpensesSummary",
    "ItemByPartySummary",
    "ItemSaleSummaryTotals",
    "MonthlySummary",
    "PartySummary",
    "ProfitLossSummary",
    "ReportId",
    "ReportResult",
    "SubCategoryTotals",
    "compute_report",
    "parse_report_id",
    "profit_margin",
]
