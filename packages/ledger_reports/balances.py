"""Running-balance reconstruction for account and customer ledgers.

Both ledgers anchor on a balance known at a *different* point in time than
the entries on screen:

- An :class:`~ledger_reports.models.Account` stores its balance as of now.
  The opening anchor for a filtered view is found by undoing the visible
  transactions from that balance, then the same transactions are replayed to
  assign running balances. This relies on "now" being later than every
  selected transaction; future-dated transactions inside the range make the
  anchor wrong, and nothing here guards against that.
- A :class:`~ledger_reports.models.Customer` stores an opening balance at an
  opening date. With a ``date_from`` filter, everything before it is folded
  into an effective opening balance and the walk starts from there.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .filters import belongs_to, in_range
from .logging_setup import get_logger
from .models import (
    ZERO,
    Account,
    AccountLedger,
    AccountTransaction,
    CalendarDate,
    Customer,
    CustomerLedger,
    LedgerEntry,
    LedgerMonth,
    Money,
    Payment,
    ReportFilter,
    Sale,
)
from .normalizers import display_date, format_display_date

_logger = get_logger("ledger_reports.balances")

UNDATED_GROUP = "Undated"


def chronological_key(date: CalendarDate | None) -> tuple[int, int, int]:
    """Sort key placing unparseable dates before every real date."""

    if date is None:
        return (0, 0, 0)
    return (date.year, date.month, date.day)


# ---------------------------------------------------------------------------
# Account ledger
# ---------------------------------------------------------------------------


def account_ledger(
    account: Account,
    transactions: Iterable[AccountTransaction],
    flt: ReportFilter,
) -> AccountLedger:
    """Chronological ledger of ``account`` within the filter's date range.

    Credits raise the balance and debits lower it. The returned
    ``opening_balance`` is the balance immediately before the first visible
    transaction, so the last entry's balance equals ``account.balance``.
    """

    visible = sorted(
        (
            tx
            for tx in transactions
            if tx.account_id == account.id and in_range(tx.date, flt.date_from, flt.date_to)
        ),
        key=lambda tx: chronological_key(tx.date),
    )

    # Undo the visible transactions to find the balance before the first one.
    anchor = account.balance
    for tx in visible:
        anchor = anchor - tx.amount if tx.is_credit else anchor + tx.amount

    running = anchor
    entries: list[LedgerEntry] = []
    for tx in visible:
        if tx.is_credit:
            running += tx.amount
            debit, credit = ZERO, tx.amount
        else:
            running -= tx.amount
            debit, credit = tx.amount, ZERO
        entries.append(
            LedgerEntry(
                id=tx.id,
                date=tx.date,
                date_str=tx.date_str,
                details=tx.description or tx.category,
                debit=debit,
                credit=credit,
                balance=running,
            )
        )

    _logger.debug(
        "account_ledger account=%s entries=%d anchor=%s closing=%s",
        account.id,
        len(entries),
        anchor,
        running,
    )
    return AccountLedger(account=account, opening_balance=anchor, entries=tuple(entries))


# ---------------------------------------------------------------------------
# Customer ledger
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class _Movement:
    id: str
    date: CalendarDate | None
    date_str: str
    details: str
    note: str | None
    debit: Money
    credit: Money


def _movements(customer: Customer, sales: Iterable[Sale], payments: Iterable[Payment]) -> list[_Movement]:
    merged = [
        _Movement(s.id, s.date, s.date_str, s.product, s.note, s.amount, ZERO)
        for s in sales
        if belongs_to(s, customer)
    ]
    merged.extend(
        _Movement(p.id, p.date, p.date_str, f"Payment ({p.method})", p.note, ZERO, p.amount)
        for p in payments
        if belongs_to(p, customer)
    )
    # Stable: on equal dates sales stay ahead of payments.
    merged.sort(key=lambda m: chronological_key(m.date))
    return merged


def _month_title(date: CalendarDate | None) -> str:
    if date is None:
        return UNDATED_GROUP
    return date.to_date().strftime("%B %Y")


def customer_ledger(
    customer: Customer,
    sales: Iterable[Sale],
    payments: Iterable[Payment],
    flt: ReportFilter,
) -> CustomerLedger:
    """Debit/credit ledger of one customer with an effective opening balance.

    Sales are debits and payments credits, matched by customer id or name.
    Either bound of the filter may be set on its own here; ``date_to`` is
    inclusive of the whole day. When any bound is set, entries whose date did
    not parse are left out.
    """

    movements = _movements(customer, sales, payments)
    date_from, date_to = flt.date_from, flt.date_to

    opening = customer.opening_balance
    opening_date = display_date(customer.opening_balance_date_str or customer.register_date_str)

    if date_from is not None:
        for m in movements:
            if m.date is not None and m.date < date_from:
                opening += m.debit - m.credit
        opening_date = format_display_date(date_from)

    bounded = date_from is not None or date_to is not None
    visible = [
        m
        for m in movements
        if not bounded
        or (
            m.date is not None
            and (date_from is None or m.date >= date_from)
            and (date_to is None or m.date <= date_to)
        )
    ]

    running = opening
    total_debit = ZERO
    total_credit = ZERO
    # Insertion-ordered: months appear in chronological order.
    months: dict[str, list[LedgerEntry]] = {}
    for m in visible:
        running = running + m.debit - m.credit
        total_debit += m.debit
        total_credit += m.credit
        months.setdefault(_month_title(m.date), []).append(
            LedgerEntry(
                id=m.id,
                date=m.date,
                date_str=m.date_str,
                details=m.details,
                debit=m.debit,
                credit=m.credit,
                balance=running,
                note=m.note,
            )
        )

    groups = tuple(
        LedgerMonth(
            title=title,
            entries=tuple(entries),
            total_debit=sum((e.debit for e in entries), ZERO),
            total_credit=sum((e.credit for e in entries), ZERO),
        )
        for title, entries in months.items()
    )
    return CustomerLedger(
        customer=customer,
        opening_balance=opening,
        opening_balance_date=opening_date,
        total_debit=total_debit,
        total_credit=total_credit,
        months=groups,
    )


def customer_balance(customer: Customer, sales: Iterable[Sale], payments: Iterable[Payment]) -> Money:
    """All-time balance: opening + every sale - every payment."""

    debit = sum((s.amount for s in sales if belongs_to(s, customer)), ZERO)
    credit = sum((p.amount for p in payments if belongs_to(p, customer)), ZERO)
    return customer.opening_balance + debit - credit


__all__ = [
    "UNDATED_GROUP",
    "account_ledger",
    "chronological_key",
    "customer_balance",
    "customer_ledger",
]
