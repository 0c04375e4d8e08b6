"""Group-and-reduce aggregations behind the tabular reports.

Every function takes records that were already filtered (see
:mod:`ledger_reports.filters`) and returns fresh row objects. Sorting uses
Python's stable sort, so rows that tie on the sort key keep the order in
which their group was first seen.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from decimal import Decimal

from . import classify
from .balances import chronological_key, customer_balance
from .filters import CustomerDirectory, belongs_to, in_range, selected
from .logging_setup import get_logger
from .models import (
    DEFAULT_CUSTOMER_CATEGORY,
    ZERO,
    Account,
    CalendarDate,
    Customer,
    Expense,
    Money,
    Payment,
    ReportFilter,
    Sale,
    Snapshot,
)
from .normalizers import split_product

_logger = get_logger("ledger_reports.aggregate")

# ---------------------------------------------------------------------------
# Row types
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ItemByPartyRow:
    id: str
    customer: str
    product_name: str
    unit: str
    quantity: Decimal
    amount: Money


@dataclass(frozen=True, slots=True)
class ItemSummaryRow:
    id: str
    product_name: str
    unit: str
    quantity: Decimal


@dataclass(frozen=True, slots=True)
class MonthlyRow:
    month_key: str
    display_month: str
    total_sales: Money
    total_collections: Money

    @property
    def difference(self) -> Money:
        return self.total_sales - self.total_collections


@dataclass(frozen=True, slots=True)
class PartyRow:
    customer_name: str
    category: str
    total_sales: Money
    total_payments: Money
    balance: Money
    last_transaction: CalendarDate | None
    last_transaction_str: str
    days_since: int
    status: str


@dataclass(frozen=True, slots=True)
class ProfitLossRow:
    month_key: str
    display_month: str
    total_qty: Decimal
    total_revenue: Money
    total_cost: Money

    @property
    def profit(self) -> Money:
        return self.total_revenue - self.total_cost


@dataclass(frozen=True, slots=True)
class ExpenseGroup:
    item: str
    expenses: tuple[Expense, ...]
    total: Money


@dataclass(frozen=True, slots=True)
class DailySection:
    name: str
    records: tuple[object, ...]


@dataclass(frozen=True, slots=True)
class AccountRow:
    id: str
    name: str
    balance: Money
    status: str


@dataclass(frozen=True, slots=True)
class CustomerBalanceRow:
    id: str
    name: str
    phone: str
    category: str
    balance: Money


@dataclass(frozen=True, slots=True)
class CustomerCategoryRow:
    id: str
    name: str
    phone: str
    category: str
    balance: Money
    status: str
    last_transaction_str: str
    last_transaction_label: str
    activity: str


# ---------------------------------------------------------------------------
# Month labels
# ---------------------------------------------------------------------------


class _MonthLabels:
    """Per-call memo so each distinct month key is formatted once."""

    __slots__ = ("_labels",)

    def __init__(self) -> None:
        self._labels: dict[str, str] = {}

    def __call__(self, date: CalendarDate) -> str:
        key = date.month_key
        label = self._labels.get(key)
        if label is None:
            label = self._labels[key] = _dt.date(date.year, date.month, 1).strftime("%b %Y")
        return label


# ---------------------------------------------------------------------------
# Running totals (mutable while a group is being reduced)
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class _ItemTotals:
    customer: str
    product: str
    unit: str
    quantity: Decimal = ZERO
    amount: Money = ZERO


@dataclass(slots=True)
class _MonthTotals:
    display: str
    sales: Money = ZERO
    collections: Money = ZERO
    quantity: Decimal = ZERO
    cost: Money = ZERO


@dataclass(slots=True)
class _PartyTotals:
    category: str
    sales: Money = ZERO
    payments: Money = ZERO
    last: CalendarDate | None = None
    last_str: str = "-"

    def touch(self, date: CalendarDate | None, date_str: str) -> None:
        if date is not None and (self.last is None or date > self.last):
            self.last = date
            self.last_str = date_str


# ---------------------------------------------------------------------------
# Item reports
# ---------------------------------------------------------------------------


def item_reports_by_party(sales: Iterable[Sale]) -> list[ItemByPartyRow]:
    """Quantity and amount per ``(customer, product, unit)``, largest amount first."""

    groups: dict[str, _ItemTotals] = {}
    for sale in sales:
        name, qty, unit = split_product(sale.product)
        key = f"{sale.customer}_{name}_{unit}"
        g = groups.get(key)
        if g is None:
            g = groups[key] = _ItemTotals(sale.customer, name, unit)
        g.quantity += qty
        g.amount += sale.amount

    rows = [
        ItemByPartyRow(k, g.customer, g.product, g.unit, g.quantity, g.amount)
        for k, g in groups.items()
    ]
    rows.sort(key=lambda r: r.amount, reverse=True)
    return rows


def item_sale_summary(sales: Iterable[Sale]) -> list[ItemSummaryRow]:
    """Total quantity per ``(product, unit)``, largest quantity first."""

    totals: dict[tuple[str, str], Decimal] = {}
    for sale in sales:
        name, qty, unit = split_product(sale.product)
        totals[(name, unit)] = totals.get((name, unit), ZERO) + qty

    rows = [ItemSummaryRow(f"{n}_{u}", n, u, q) for (n, u), q in totals.items()]
    rows.sort(key=lambda r: r.quantity, reverse=True)
    return rows


# ---------------------------------------------------------------------------
# Monthly reports
# ---------------------------------------------------------------------------


def monthly_business_summary(sales: Iterable[Sale], payments: Iterable[Payment]) -> list[MonthlyRow]:
    """Sales versus collections per calendar month, oldest month first."""

    label = _MonthLabels()
    groups: dict[str, _MonthTotals] = {}

    def _bucket(date: CalendarDate) -> _MonthTotals:
        g = groups.get(date.month_key)
        if g is None:
            g = groups[date.month_key] = _MonthTotals(label(date))
        return g

    for sale in sales:
        if sale.date is None:
            _logger.warning("sale %s left out of monthly summary: bad date %r", sale.id, sale.date_str)
            continue
        _bucket(sale.date).sales += sale.amount
    for payment in payments:
        if payment.date is None:
            _logger.warning(
                "payment %s left out of monthly summary: bad date %r", payment.id, payment.date_str
            )
            continue
        _bucket(payment.date).collections += payment.amount

    return [MonthlyRow(k, g.display, g.sales, g.collections) for k, g in sorted(groups.items())]


def profit_and_loss(sales: Iterable[Sale]) -> list[ProfitLossRow]:
    """Revenue and cost of goods sold per month.

    Cost is ``quantity * purchase_price`` of each sale; a sale without a
    recorded purchase price contributes revenue at zero cost.
    """

    label = _MonthLabels()
    groups: dict[str, _MonthTotals] = {}
    for sale in sales:
        if sale.date is None:
            _logger.warning("sale %s left out of profit & loss: bad date %r", sale.id, sale.date_str)
            continue
        g = groups.get(sale.date.month_key)
        if g is None:
            g = groups[sale.date.month_key] = _MonthTotals(label(sale.date))
        _name, qty, _unit = split_product(sale.product)
        g.quantity += qty
        g.sales += sale.amount
        g.cost += qty * sale.purchase_price

    return [
        ProfitLossRow(k, g.display, g.quantity, g.sales, g.cost) for k, g in sorted(groups.items())
    ]


# ---------------------------------------------------------------------------
# Party-wise summary
# ---------------------------------------------------------------------------


def party_wise_summary(
    sales: Iterable[Sale],
    payments: Iterable[Payment],
    directory: CustomerDirectory,
    now: _dt.datetime,
) -> list[PartyRow]:
    """One row per customer name merging sales (debits) and payments (credits).

    The last-transaction reference is the latest date across both streams.
    Sales are scanned first and a later record only replaces the reference
    when its date is strictly newer, so on a same-day tie the sale wins.
    """

    groups: dict[str, _PartyTotals] = {}

    def _group(name: str) -> _PartyTotals:
        g = groups.get(name)
        if g is None:
            g = groups[name] = _PartyTotals(directory.category_of(name))
        return g

    for sale in sales:
        g = _group(sale.customer)
        g.sales += sale.amount
        g.touch(sale.date, sale.date_str)
    for payment in payments:
        g = _group(payment.customer)
        g.payments += payment.amount
        g.touch(payment.date, payment.date_str)

    rows: list[PartyRow] = []
    for name, g in groups.items():
        balance = g.sales - g.payments
        last = g.last
        rows.append(
            PartyRow(
                customer_name=name,
                category=g.category,
                total_sales=g.sales,
                total_payments=g.payments,
                balance=balance,
                last_transaction=last,
                last_transaction_str=g.last_str,
                days_since=classify.days_since(last, now) if last is not None else 0,
                status=classify.balance_status(balance),
            )
        )
    rows.sort(key=lambda r: r.balance, reverse=True)
    return rows


# ---------------------------------------------------------------------------
# Expenses, accounts, daily activity
# ---------------------------------------------------------------------------


def expenses_by_item(expenses: Iterable[Expense]) -> list[ExpenseGroup]:
    """Expenses grouped by item; each group listed oldest first."""

    groups: dict[str, list[Expense]] = {}
    for e in expenses:
        groups.setdefault(e.item, []).append(e)
    return [
        ExpenseGroup(
            item=item,
            expenses=tuple(sorted(items, key=lambda e: chronological_key(e.date))),
            total=sum((e.amount for e in items), ZERO),
        )
        for item, items in groups.items()
    ]


def account_rows(accounts: Iterable[Account]) -> list[AccountRow]:
    return [
        AccountRow(id=a.id, name=a.name, balance=a.balance, status=classify.account_status(a.balance))
        for a in accounts
    ]


NEW_CUSTOMERS = "New Customers"

DAILY_SECTIONS: tuple[str, ...] = (
    "Sales",
    "Payments",
    "Purchases",
    "Expenses",
    "Stocks",
    "Accounts",
    NEW_CUSTOMERS,
)


def daily_activity(snapshot: Snapshot, flt: ReportFilter) -> list[DailySection]:
    """Every kind of activity inside the date range, one section per kind.

    Only the date range applies, plus an optional account-name restriction
    on the account-transaction section.
    """

    def _in(records: Sequence) -> tuple:
        return tuple(r for r in records if in_range(r.date, flt.date_from, flt.date_to))

    account_txs = _in(snapshot.account_transactions)
    account_name = selected(flt.account)
    if account_name is not None:
        ids = {a.id for a in snapshot.accounts if a.name == account_name}
        account_txs = tuple(t for t in account_txs if t.account_id in ids)

    records = {
        "Sales": _in(snapshot.sales),
        "Payments": _in(snapshot.customer_payments),
        "Purchases": _in(snapshot.purchases),
        "Expenses": _in(snapshot.expenses),
        "Stocks": _in(snapshot.stock_transactions),
        "Accounts": account_txs,
        NEW_CUSTOMERS: _in(snapshot.customers),
    }
    return [DailySection(name, records[name]) for name in DAILY_SECTIONS]


# ---------------------------------------------------------------------------
# Customer lists
# ---------------------------------------------------------------------------


def customer_balances(
    customers: Iterable[Customer],
    sales: Sequence[Sale],
    payments: Sequence[Payment],
) -> list[CustomerBalanceRow]:
    """Current (all-time) balance for each customer, in directory order."""

    return [
        CustomerBalanceRow(
            id=c.id,
            name=c.name,
            phone=c.phone,
            category=c.category or DEFAULT_CUSTOMER_CATEGORY,
            balance=customer_balance(c, sales, payments),
        )
        for c in customers
    ]


def customer_category_rows(
    customers: Iterable[Customer],
    sales: Sequence[Sale],
    payments: Sequence[Payment],
    now: _dt.datetime,
) -> list[CustomerCategoryRow]:
    rows: list[CustomerCategoryRow] = []
    for c in customers:
        own = [r for r in (*sales, *payments) if belongs_to(r, c)]
        last: CalendarDate | None = None
        last_str = "-"
        for r in own:
            if r.date is not None and (last is None or r.date > last):
                last, last_str = r.date, r.date_str
        balance = customer_balance(c, sales, payments)
        rows.append(
            CustomerCategoryRow(
                id=c.id,
                name=c.name,
                phone=c.phone,
                category=c.category or DEFAULT_CUSTOMER_CATEGORY,
                balance=balance,
                status=classify.balance_status(balance),
                last_transaction_str=last_str,
                last_transaction_label=classify.last_transaction_label(last, now),
                activity=classify.activity_status(last, now),
            )
        )
    return rows


__all__ = [
    "DAILY_SECTIONS",
    "NEW_CUSTOMERS",
    "AccountRow",
    "CustomerBalanceRow",
    "CustomerCategoryRow",
    "DailySection",
    "ExpenseGroup",
    "ItemByPartyRow",
    "ItemSummaryRow",
    "MonthlyRow",
    "PartyRow",
    "ProfitLossRow",
    "account_rows",
    "customer_balances",
    "customer_category_rows",
    "daily_activity",
    "expenses_by_item",
    "item_reports_by_party",
    "item_sale_summary",
    "monthly_business_summary",
    "party_wise_summary",
    "profit_and_loss",
]
