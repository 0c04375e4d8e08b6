"""Status labels derived from balances and transaction recency."""

from __future__ import annotations

import datetime as _dt
import math

from .config import activity_window_days
from .models import ZERO, CalendarDate, Money

DUE = "Due"
ADVANCE = "Advance"
SETTLED = "Settled"

ACTIVE = "Active"
INACTIVE = "Inactive"
NO_TRANSACTIONS = "No transactions"

_SECONDS_PER_DAY = 24 * 60 * 60


def balance_status(balance: Money) -> str:
    """``Due`` when the customer owes money, ``Advance`` when overpaid."""

    if balance > ZERO:
        return DUE
    if balance < ZERO:
        return ADVANCE
    return SETTLED


def account_status(balance: Money) -> str:
    return ACTIVE if balance != ZERO else INACTIVE


def _midnight(date: CalendarDate) -> _dt.datetime:
    return _dt.datetime(date.year, date.month, date.day)


def days_since(last: CalendarDate, now: _dt.datetime) -> int:
    """Whole days between ``now`` and ``last`` (midnight), rounded up."""

    seconds = abs((now - _midnight(last)).total_seconds())
    return math.ceil(seconds / _SECONDS_PER_DAY)


def is_active(last: CalendarDate | None, now: _dt.datetime, *, window_days: int | None = None) -> bool:
    """True when ``last`` falls within the recency window ending at ``now``."""

    if last is None:
        return False
    window = window_days if window_days is not None else activity_window_days()
    return _midnight(last) >= now - _dt.timedelta(days=window)


def activity_status(last: CalendarDate | None, now: _dt.datetime, *, window_days: int | None = None) -> str:
    return ACTIVE if is_active(last, now, window_days=window_days) else INACTIVE


def last_transaction_label(last: CalendarDate | None, now: _dt.datetime) -> str:
    if last is None:
        return NO_TRANSACTIONS
    elapsed = (now - _midnight(last)).total_seconds()
    days = math.floor(elapsed / _SECONDS_PER_DAY)
    if days == 0:
        return "Today"
    if days == 1:
        return "Yesterday"
    return f"{days} days ago"


__all__ = [
    "ACTIVE",
    "ADVANCE",
    "DUE",
    "INACTIVE",
    "NO_TRANSACTIONS",
    "SETTLED",
    "account_status",
    "activity_status",
    "balance_status",
    "days_since",
    "is_active",
    "last_transaction_label",
]
