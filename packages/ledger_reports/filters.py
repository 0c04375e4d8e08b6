"""Date-range membership and report-specific record filtering.

Filtering is conjunctive: a record survives only if it is inside the date
range, satisfies every equality predicate, and (when a search text is set)
contains the text case-insensitively in one of its ``search_fields()``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from typing import TypeAlias, TypeVar

from .models import (
    DEFAULT_CUSTOMER_CATEGORY,
    CalendarDate,
    Customer,
    LedgerRecord,
    Payment,
    Purchase,
    ReportFilter,
    Sale,
)
from .normalizers import product_name

RecordT = TypeVar("RecordT", bound=LedgerRecord)

T = TypeVar("T")
Predicate: TypeAlias = Callable[[T], bool]

# Selection value the report screens use for "no restriction".
ALL = "All"


def selected(value: str | None) -> str | None:
    """Return the active selection, or ``None`` for ``None``/``""``/``"All"``."""

    if value is None:
        return None
    v = value.strip()
    if not v or v == ALL:
        return None
    return v


# ---------------------------------------------------------------------------
# Range membership
# ---------------------------------------------------------------------------


def in_range(
    date: CalendarDate | None,
    date_from: CalendarDate | None,
    date_to: CalendarDate | None,
) -> bool:
    """Whole-day inclusive membership test.

    When either bound is unset the range is open and every record (even one
    whose date failed to parse) is a member; this is the state before the
    caller picks an explicit range. With both bounds set, an unparseable date
    is never a member.
    """

    if date_from is None or date_to is None:
        return True
    if date is None:
        return False
    return date_from <= date <= date_to


# ---------------------------------------------------------------------------
# Generic record filter
# ---------------------------------------------------------------------------


def matches_search(record: LedgerRecord, search: str | None) -> bool:
    q = (search or "").strip().lower()
    if not q:
        return True
    return any(q in (f or "").lower() for f in record.search_fields())


def filter_records(
    records: Iterable[RecordT],
    flt: ReportFilter,
    predicates: Sequence[Predicate[RecordT]] = (),
    *,
    use_range: bool = True,
    use_search: bool = True,
) -> list[RecordT]:
    """Apply date range, then ``predicates``, then the search text."""

    out: list[RecordT] = []
    for rec in records:
        if use_range and not in_range(rec.date, flt.date_from, flt.date_to):
            continue
        if not all(pred(rec) for pred in predicates):
            continue
        if use_search and not matches_search(rec, flt.search):
            continue
        out.append(rec)
    return out


# ---------------------------------------------------------------------------
# Customer directory (id lookup with name fallback)
# ---------------------------------------------------------------------------


class CustomerDirectory:
    """Resolve counterparties of sales/payments to :class:`Customer` rows.

    Lookup prefers the stable ``customer_id`` and falls back to the display
    name; unmatched records resolve to ``None`` and render with defaults.
    """

    __slots__ = ("_by_id", "_by_name")

    def __init__(self, customers: Iterable[Customer]) -> None:
        self._by_id: dict[str, Customer] = {}
        self._by_name: dict[str, Customer] = {}
        for c in customers:
            self._by_id.setdefault(c.id, c)
            # First registration wins when names collide.
            self._by_name.setdefault(c.name, c)

    def lookup(self, *, customer_id: str | None = None, name: str | None = None) -> Customer | None:
        if customer_id is not None and customer_id in self._by_id:
            return self._by_id[customer_id]
        if name is not None:
            return self._by_name.get(name)
        return None

    def category_of(self, name: str) -> str:
        cust = self._by_name.get(name)
        return (cust.category if cust else None) or DEFAULT_CUSTOMER_CATEGORY


def belongs_to(record: Sale | Payment, customer: Customer) -> bool:
    """Id-or-name match used by the ledgers and the category report."""

    return (record.customer_id is not None and record.customer_id == customer.id) or (
        record.customer == customer.name
    )


# ---------------------------------------------------------------------------
# Report-specific predicate builders
# ---------------------------------------------------------------------------


def customer_is(name: str | None) -> list[Predicate[Sale]]:
    want = selected(name)
    if want is None:
        return []
    return [lambda s: s.customer == want]


def product_is(name: str | None) -> list[Predicate[Sale]]:
    want = selected(name)
    if want is None:
        return []
    return [lambda s: product_name(s.product) == want]


def customer_category_is(
    category: str | None, directory: CustomerDirectory
) -> list[Predicate[Sale | Payment]]:
    want = selected(category)
    if want is None:
        return []
    return [lambda r: directory.category_of(r.customer) == want]


def purchase_matches(category: str | None, item: str | None) -> list[Predicate[Purchase]]:
    preds: list[Predicate[Purchase]] = []
    want_cat = selected(category)
    if want_cat is not None:
        preds.append(lambda p: p.sub_category == want_cat)
    want_item = selected(item)
    if want_item is not None:
        preds.append(lambda p: p.item == want_item)
    return preds


def customer_in_category(category: str | None) -> list[Predicate[Customer]]:
    want = selected(category)
    if want is None:
        return []
    return [lambda c: (c.category or DEFAULT_CUSTOMER_CATEGORY) == want]


__all__ = [
    "ALL",
    "CustomerDirectory",
    "Predicate",
    "belongs_to",
    "customer_category_is",
    "customer_in_category",
    "customer_is",
    "filter_records",
    "in_range",
    "matches_search",
    "product_is",
    "purchase_matches",
    "selected",
]
