"""Snapshot boundary: validate the store's JSON and canonicalize it once.

The external data store exports its collections with camelCase keys and
string-typed dates/amounts (``"15-01-2024"``, ``"1,250"``). This module
validates that shape with Pydantic, then converts every record into the
immutable domain types of :mod:`ledger_reports.models`, parsing dates and
amounts exactly once so nothing downstream re-parses text.

Identifiers may be numbers or strings in the export; they are carried as
strings. Unknown keys are ignored so new store fields do not break loading.
A ``null`` amount, date or text field is read as empty instead of rejecting
the whole export, and account-transaction types are matched without regard
to case.
"""

from __future__ import annotations

import hashlib
import json
from collections.abc import Mapping
from os import PathLike
from pathlib import Path
from typing import Annotated, Any

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .config import DEFAULT_BAGS_PER_TON
from .errors import SnapshotError
from .logging_setup import get_logger
from .models import (
    DEFAULT_CUSTOMER_CATEGORY,
    Account,
    AccountTransaction,
    Customer,
    Expense,
    Payment,
    Purchase,
    Sale,
    Settings,
    Snapshot,
    StockTransaction,
)
from .normalizers import parse_date, parse_money, parse_quantity

_logger = get_logger("ledger_reports.snapshot")

RawId = int | str
RawNumber = str | int | float


def _blank_if_none(v: Any) -> Any:
    return "" if v is None else v


# Stores write `null` for cleared text fields; treat it as empty.
RawText = Annotated[str, BeforeValidator(_blank_if_none)]


# ---------------------------------------------------------------------------
# Raw (wire) models
# ---------------------------------------------------------------------------


class _RawModel(BaseModel):
    model_config = ConfigDict(
        strict=True,
        extra="ignore",
        str_strip_whitespace=True,
        populate_by_name=True,
        frozen=True,
    )


class RawSale(_RawModel):
    id: RawId
    customer_id: RawId | None = Field(default=None, alias="customerId")
    customer: RawText = ""
    product: RawText = ""
    date: RawText = ""
    amount: RawNumber | None = None
    price_per_bag: RawNumber | None = Field(default=None, alias="pricePerBag")
    purchase_price: RawNumber | None = Field(default=None, alias="purchasePrice")
    note: str | None = None


class RawPayment(_RawModel):
    id: RawId
    customer_id: RawId | None = Field(default=None, alias="customerId")
    customer: RawText = ""
    method: RawText = ""
    date: RawText = ""
    amount: RawNumber | None = None
    account_id: RawId | None = Field(default=None, alias="accountId")
    note: str | None = None
    internal_transfer: bool = Field(default=False, alias="internalTransfer")


class RawPurchase(_RawModel):
    id: RawId
    vendor: RawText = ""
    item: RawText = ""
    sub_category: RawText = Field(default="", alias="subCategory")
    quantity: RawNumber | None = None
    billed_quantity: RawNumber | None = Field(default=None, alias="billedQuantity")
    unit: RawText = ""
    date: RawText = ""
    amount: RawNumber | None = None
    note: str | None = None
    vehicle_number: str | None = Field(default=None, alias="vehicleNumber")


class RawExpense(_RawModel):
    id: RawId
    vendor: RawText = ""
    item: RawText = ""
    date: RawText = ""
    amount: RawNumber | None = None
    note: str | None = None
    account_id: RawId | None = Field(default=None, alias="accountId")


class RawStockTransaction(_RawModel):
    id: RawId
    shop_id: RawId = Field(default="", alias="shopId")
    movement: RawText = Field(default="", alias="type")
    quantity: RawNumber | None = None
    unit: RawText = ""
    date: RawText = ""
    amount: RawNumber | None = None
    price: RawNumber | None = None
    purchase_price: RawNumber | None = Field(default=None, alias="purchasePrice")
    customer: RawText = ""
    product: RawText = ""
    note: str | None = None


class RawAccountTransaction(_RawModel):
    id: RawId
    account_id: RawId = Field(alias="accountId")
    direction: RawText = Field(default="", alias="type")
    amount: RawNumber | None = None
    date: RawText = ""
    description: RawText = ""
    category: RawText = ""


class RawCustomer(_RawModel):
    id: RawId
    name: str
    phone: RawText = ""
    email: RawText = ""
    category: RawText = ""
    register_date: RawText = Field(default="", alias="registerDate")
    opening_balance: RawNumber | None = Field(default=None, alias="openingBalance")
    opening_balance_date: RawText = Field(default="", alias="openingBalanceDate")


class RawAccount(_RawModel):
    id: RawId
    name: str
    balance: RawNumber | None = None
    type: RawText = ""
    account_number: RawText = Field(default="", alias="accountNumber")


class RawSettings(_RawModel):
    bags_per_ton: int | float = Field(default=DEFAULT_BAGS_PER_TON, alias="bagsPerTon")
    reports_password: str | None = Field(default=None, alias="reportsPassword")

    @field_validator("bags_per_ton")
    @classmethod
    def _positive_ratio(cls, v: int | float) -> int | float:
        if v <= 0:
            raise ValueError("bagsPerTon must be positive")
        return v


class SnapshotDocument(_RawModel):
    """Top-level schema of a snapshot export."""

    version: str | None = None
    sales: list[RawSale] = Field(default_factory=list)
    payments: list[RawPayment] = Field(default_factory=list)
    purchases: list[RawPurchase] = Field(default_factory=list)
    expenses: list[RawExpense] = Field(default_factory=list)
    stock_transactions: list[RawStockTransaction] = Field(
        default_factory=list,
        validation_alias=AliasChoices("stockTransactions", "stock_transactions"),
    )
    account_transactions: list[RawAccountTransaction] = Field(
        default_factory=list,
        validation_alias=AliasChoices(
            "accountTransactions", "globalTransactions", "account_transactions"
        ),
    )
    customers: list[RawCustomer] = Field(default_factory=list)
    accounts: list[RawAccount] = Field(default_factory=list)
    settings: RawSettings = Field(default_factory=RawSettings)


# ---------------------------------------------------------------------------
# Hydration
# ---------------------------------------------------------------------------


def _sid(v: RawId | None) -> str | None:
    return None if v is None else str(v)


def document_version(doc: SnapshotDocument) -> str:
    """SHA-256 over the canonical JSON of ``doc`` (order-sensitive)."""

    payload = doc.model_dump(mode="json", by_alias=True, exclude={"version"})
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"), ensure_ascii=False)
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


_DIRECTIONS = ("Credit", "Debit")


def _direction(r: RawAccountTransaction) -> str:
    label = r.direction.title()
    if label not in _DIRECTIONS:
        _logger.warning(
            "account transaction %s has type %r; it is neither Credit nor Debit", r.id, r.direction
        )
    return label


def _customer(r: RawCustomer) -> Customer:
    opening_date_str = r.opening_balance_date or r.register_date
    return Customer(
        id=str(r.id),
        name=r.name,
        phone=r.phone,
        email=r.email,
        category=r.category or DEFAULT_CUSTOMER_CATEGORY,
        opening_balance=parse_money(r.opening_balance),
        opening_balance_date=parse_date(opening_date_str),
        opening_balance_date_str=opening_date_str,
        register_date=parse_date(r.register_date),
        register_date_str=r.register_date,
    )


def hydrate(doc: SnapshotDocument) -> Snapshot:
    """Convert a validated document into a canonical :class:`Snapshot`."""

    sales = tuple(
        Sale(
            id=str(r.id),
            date=parse_date(r.date),
            date_str=r.date,
            customer=r.customer,
            amount=parse_money(r.amount),
            product=r.product,
            customer_id=_sid(r.customer_id),
            price_per_bag=parse_money(r.price_per_bag),
            purchase_price=parse_money(r.purchase_price),
            note=r.note,
        )
        for r in doc.sales
    )
    payments = tuple(
        Payment(
            id=str(r.id),
            date=parse_date(r.date),
            date_str=r.date,
            customer=r.customer,
            amount=parse_money(r.amount),
            method=r.method,
            customer_id=_sid(r.customer_id),
            account_id=_sid(r.account_id),
            note=r.note,
            internal_transfer=r.internal_transfer,
        )
        for r in doc.payments
    )
    purchases = tuple(
        Purchase(
            id=str(r.id),
            date=parse_date(r.date),
            date_str=r.date,
            vendor=r.vendor,
            amount=parse_money(r.amount),
            item=r.item,
            sub_category=r.sub_category or "Direct",
            quantity=parse_quantity(r.quantity),
            billed_quantity=parse_quantity(r.billed_quantity),
            unit=r.unit,
            note=r.note,
            vehicle_number=r.vehicle_number,
        )
        for r in doc.purchases
    )
    expenses = tuple(
        Expense(
            id=str(r.id),
            date=parse_date(r.date),
            date_str=r.date,
            vendor=r.vendor,
            amount=parse_money(r.amount),
            item=r.item,
            account_id=_sid(r.account_id),
            note=r.note,
        )
        for r in doc.expenses
    )
    stock = tuple(
        StockTransaction(
            id=str(r.id),
            date=parse_date(r.date),
            date_str=r.date,
            shop_id=str(r.shop_id),
            movement=r.movement,
            amount=parse_money(r.amount),
            quantity=parse_quantity(r.quantity),
            unit=r.unit,
            price=parse_money(r.price),
            purchase_price=parse_money(r.purchase_price),
            customer=r.customer,
            product=r.product,
            note=r.note,
        )
        for r in doc.stock_transactions
    )
    account_txs = tuple(
        AccountTransaction(
            id=str(r.id),
            date=parse_date(r.date),
            date_str=r.date,
            account_id=str(r.account_id),
            amount=parse_money(r.amount),
            direction=_direction(r),
            description=r.description,
            category=r.category,
        )
        for r in doc.account_transactions
    )
    accounts = tuple(
        Account(
            id=str(r.id),
            name=r.name,
            balance=parse_money(r.balance),
            type=r.type,
            account_number=r.account_number,
        )
        for r in doc.accounts
    )
    settings = Settings(
        bags_per_ton=parse_quantity(doc.settings.bags_per_ton),
        reports_password=doc.settings.reports_password or None,
    )

    return Snapshot(
        sales=sales,
        payments=payments,
        purchases=purchases,
        expenses=expenses,
        stock_transactions=stock,
        account_transactions=account_txs,
        customers=tuple(_customer(r) for r in doc.customers),
        accounts=accounts,
        settings=settings,
        version=doc.version or document_version(doc),
    )


def build_snapshot(data: Mapping[str, Any]) -> Snapshot:
    """Validate an in-memory mapping (e.g. parsed JSON) and hydrate it."""

    try:
        doc = SnapshotDocument.model_validate(dict(data))
    except ValidationError as exc:
        raise SnapshotError(f"invalid snapshot: {exc}") from exc
    return hydrate(doc)


def load_snapshot(path: str | PathLike[str]) -> Snapshot:
    """Read a snapshot JSON file and hydrate it.

    Raises :class:`~ledger_reports.errors.SnapshotError` when the file cannot
    be read or does not match :class:`SnapshotDocument`.
    """

    p = Path(path)
    try:
        text = p.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise SnapshotError(f"cannot read snapshot {p}: {exc}") from exc
    try:
        doc = SnapshotDocument.model_validate_json(text)
    except ValidationError as exc:
        raise SnapshotError(f"invalid snapshot {p}: {exc}") from exc

    snapshot = hydrate(doc)
    _logger.info(
        "loaded snapshot path=%s version=%s sales=%d payments=%d customers=%d",
        p,
        snapshot.version[:12],
        len(snapshot.sales),
        len(snapshot.payments),
        len(snapshot.customers),
    )
    return snapshot


__all__ = [
    "RawAccount",
    "RawAccountTransaction",
    "RawCustomer",
    "RawExpense",
    "RawPayment",
    "RawPurchase",
    "RawSale",
    "RawSettings",
    "RawStockTransaction",
    "SnapshotDocument",
    "build_snapshot",
    "document_version",
    "hydrate",
    "load_snapshot",
]
