"""Domain types for ``ledger_reports``.

Everything here is an immutable value object. Raw text fields coming from the
external data store are canonicalized exactly once, at the snapshot boundary
(see :mod:`ledger_reports.snapshot`), so records carry both the canonical
value (``date``/``amount``) and the raw ``date_str`` used for display.

A ``date`` of ``None`` means the source text could not be parsed; such records
are excluded from any bounded date range rather than aborting a report.
"""

from __future__ import annotations

import datetime as _dt
from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar, Protocol, TypeAlias

from .config import DEFAULT_BAGS_PER_TON

# ---------------------------------------------------------------------------
# Scalars
# ---------------------------------------------------------------------------

Money: TypeAlias = Decimal
"""Signed decimal currency amount. Unparseable inputs become ``Decimal(0)``."""

ZERO: Money = Decimal(0)

DEFAULT_CUSTOMER_CATEGORY = "Individual"


@dataclass(frozen=True, slots=True, order=True)
class CalendarDate:
    """A day on the calendar with no time-of-day component.

    Ordering is by ``(year, month, day)``. Instances are produced by
    :func:`ledger_reports.normalizers.parse_date`; compare them with each
    other, never with raw strings.
    """

    year: int
    month: int
    day: int

    @classmethod
    def from_date(cls, value: _dt.date) -> CalendarDate:
        return cls(value.year, value.month, value.day)

    def to_date(self) -> _dt.date:
        return _dt.date(self.year, self.month, self.day)

    @property
    def month_key(self) -> str:
        """``"YYYY-MM"``; sorts chronologically as a plain string."""

        return f"{self.year:04d}-{self.month:02d}"

    def __str__(self) -> str:
        return f"{self.day:02d}-{self.month:02d}-{self.year:04d}"


# ---------------------------------------------------------------------------
# Source records (read-only inputs)
# ---------------------------------------------------------------------------


class LedgerRecord(Protocol):
    """Narrow interface shared by every record variant.

    Range filtering and free-text search only touch these members; variant
    specific fields are read inside the reducer that needs them.
    """

    kind: ClassVar[str]
    id: str
    date: CalendarDate | None
    date_str: str

    @property
    def counterparty(self) -> str: ...

    def search_fields(self) -> Sequence[str]: ...


@dataclass(frozen=True, slots=True)
class Sale:
    kind: ClassVar[str] = "Sale"

    id: str
    date: CalendarDate | None
    date_str: str
    customer: str
    amount: Money
    product: str
    customer_id: str | None = None
    price_per_bag: Money = ZERO
    purchase_price: Money = ZERO
    note: str | None = None

    @property
    def counterparty(self) -> str:
        return self.customer

    def search_fields(self) -> Sequence[str]:
        return (self.customer, self.product)


@dataclass(frozen=True, slots=True)
class Payment:
    kind: ClassVar[str] = "Payment"

    id: str
    date: CalendarDate | None
    date_str: str
    customer: str
    amount: Money
    method: str = ""
    customer_id: str | None = None
    account_id: str | None = None
    note: str | None = None
    # Internal transfers between own accounts; never part of customer reports.
    internal_transfer: bool = False

    @property
    def counterparty(self) -> str:
        return self.customer

    def search_fields(self) -> Sequence[str]:
        return (self.customer,)


@dataclass(frozen=True, slots=True)
class Purchase:
    kind: ClassVar[str] = "Purchase"

    id: str
    date: CalendarDate | None
    date_str: str
    vendor: str
    amount: Money
    item: str
    sub_category: str = "Direct"
    quantity: Decimal = ZERO
    billed_quantity: Decimal = ZERO
    unit: str = ""
    note: str | None = None
    vehicle_number: str | None = None

    @property
    def counterparty(self) -> str:
        return self.vendor

    def search_fields(self) -> Sequence[str]:
        return (self.vendor, self.item)


@dataclass(frozen=True, slots=True)
class Expense:
    kind: ClassVar[str] = "Expense"

    id: str
    date: CalendarDate | None
    date_str: str
    vendor: str
    amount: Money
    item: str
    account_id: str | None = None
    note: str | None = None

    @property
    def counterparty(self) -> str:
        return self.vendor

    def search_fields(self) -> Sequence[str]:
        return (self.vendor, self.item)


@dataclass(frozen=True, slots=True)
class AccountTransaction:
    kind: ClassVar[str] = "AccountTransaction"

    id: str
    date: CalendarDate | None
    date_str: str
    account_id: str
    amount: Money
    direction: str  # "Credit" | "Debit"
    description: str = ""
    category: str = ""

    @property
    def counterparty(self) -> str:
        return self.account_id

    @property
    def is_credit(self) -> bool:
        return self.direction.strip().lower() == "credit"

    def search_fields(self) -> Sequence[str]:
        return (self.description, self.category)


@dataclass(frozen=True, slots=True)
class StockTransaction:
    kind: ClassVar[str] = "StockTransaction"

    id: str
    date: CalendarDate | None
    date_str: str
    shop_id: str
    movement: str  # Sale | Dump | Add Stock | Transfer In | Transfer Out
    amount: Money
    quantity: Decimal = ZERO
    unit: str = ""
    price: Money = ZERO
    purchase_price: Money = ZERO
    customer: str = ""
    product: str = ""
    note: str | None = None

    @property
    def counterparty(self) -> str:
        return self.customer or self.shop_id

    def search_fields(self) -> Sequence[str]:
        return (self.customer, self.product)


TransactionRecord: TypeAlias = Sale | Payment | Purchase | Expense | AccountTransaction | StockTransaction


# ---------------------------------------------------------------------------
# Reference entities and settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Customer:
    kind: ClassVar[str] = "Customer"

    id: str
    name: str
    phone: str = ""
    email: str = ""
    category: str = DEFAULT_CUSTOMER_CATEGORY
    opening_balance: Money = ZERO
    # Falls back to the registration date when the store has none.
    opening_balance_date: CalendarDate | None = None
    opening_balance_date_str: str = ""
    register_date: CalendarDate | None = None
    register_date_str: str = ""

    # Customers are range-filtered by registration (Daily Report "new
    # customers"), so they expose the same narrow interface as records.
    @property
    def date(self) -> CalendarDate | None:
        return self.register_date

    @property
    def date_str(self) -> str:
        return self.register_date_str

    @property
    def counterparty(self) -> str:
        return self.name

    def search_fields(self) -> Sequence[str]:
        return (self.name, self.phone)


@dataclass(frozen=True, slots=True)
class Account:
    id: str
    name: str
    balance: Money
    type: str = ""
    account_number: str = ""


@dataclass(frozen=True, slots=True)
class Settings:
    bags_per_ton: Decimal = Decimal(DEFAULT_BAGS_PER_TON)
    reports_password: str | None = None


@dataclass(frozen=True, slots=True)
class Snapshot:
    """Read-only view of the data store at one point in time.

    ``version`` identifies the snapshot for memoization; two snapshots with the
    same version are assumed to hold identical records.
    """

    sales: tuple[Sale, ...] = ()
    payments: tuple[Payment, ...] = ()
    purchases: tuple[Purchase, ...] = ()
    expenses: tuple[Expense, ...] = ()
    stock_transactions: tuple[StockTransaction, ...] = ()
    account_transactions: tuple[AccountTransaction, ...] = ()
    customers: tuple[Customer, ...] = ()
    accounts: tuple[Account, ...] = ()
    settings: Settings = field(default_factory=Settings)
    version: str = ""

    @property
    def customer_payments(self) -> tuple[Payment, ...]:
        """Payments that belong in customer reports (no internal transfers)."""

        return tuple(p for p in self.payments if not p.internal_transfer)


# ---------------------------------------------------------------------------
# Filter
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ReportFilter:
    """Date range plus report-specific scalar selections.

    ``date_from``/``date_to`` are inclusive; ``None`` leaves that side open.
    For the scalar selections ``None``, ``""`` and ``"All"`` all mean "no
    restriction".
    """

    date_from: CalendarDate | None = None
    date_to: CalendarDate | None = None
    customer: str | None = None
    customer_id: str | None = None
    product: str | None = None
    category: str | None = None
    account: str | None = None
    search: str | None = None
    status: str | None = None
    metric: str = "tons"
    section: str | None = None


# ---------------------------------------------------------------------------
# Derived ledger structures
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class LedgerEntry:
    """One line of a ledger. At most one of ``debit``/``credit`` is nonzero."""

    id: str
    date: CalendarDate | None
    date_str: str
    details: str
    debit: Money
    credit: Money
    balance: Money
    note: str | None = None


@dataclass(frozen=True, slots=True)
class AccountLedger:
    account: Account
    opening_balance: Money
    entries: tuple[LedgerEntry, ...]

    @property
    def closing_balance(self) -> Money:
        return self.entries[-1].balance if self.entries else self.opening_balance


@dataclass(frozen=True, slots=True)
class LedgerMonth:
    """Entries of one calendar month with their own debit/credit subtotals."""

    title: str
    entries: tuple[LedgerEntry, ...]
    total_debit: Money
    total_credit: Money


@dataclass(frozen=True, slots=True)
class CustomerLedger:
    customer: Customer
    opening_balance: Money
    opening_balance_date: str
    total_debit: Money
    total_credit: Money
    months: tuple[LedgerMonth, ...]

    @property
    def closing_balance(self) -> Money:
        return self.opening_balance + self.total_debit - self.total_credit

    @property
    def entries(self) -> tuple[LedgerEntry, ...]:
        return tuple(e for m in self.months for e in m.entries)


__all__ = [
    "DEFAULT_CUSTOMER_CATEGORY",
    "ZERO",
    "Account",
    "AccountLedger",
    "AccountTransaction",
    "CalendarDate",
    "Customer",
    "CustomerLedger",
    "Expense",
    "LedgerEntry",
    "LedgerMonth",
    "LedgerRecord",
    "Money",
    "Payment",
    "Purchase",
    "ReportFilter",
    "Sale",
    "Settings",
    "Snapshot",
    "StockTransaction",
    "TransactionRecord",
]
