"""Sub-category (Direct/GL/GV) purchase report with billing carry-forward.

Purchases are grouped per ``(date, item)`` into three quantity buckets and a
billed quantity, all expressed in the selected display metric (``tons`` or
``bags``). Rows are then folded strictly in date order:

    unbilled[i] = unbilled[i-1] + (gl[i] + gv[i]) - billed[i]

Direct purchases are not billed through this channel and stay out of the
fold. Because each row depends on every earlier one, the chronological sort
is part of the computation, not a presentation detail.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from decimal import Context, Decimal

from .logging_setup import get_logger
from .models import ZERO, CalendarDate, Purchase

_logger = get_logger("ledger_reports.reconcile")

BAGS = "bags"
TONS = "tons"

DIRECT = "Direct"
GL = "GL"
GV = "GV"

# Significant digits kept by to_bags. Below the default context precision so a
# quotient from to_tons multiplies back to the quantity it came from.
_BAGS_DIGITS = Context(prec=20)


# ---------------------------------------------------------------------------
# Unit conversion
# ---------------------------------------------------------------------------


def _check_ratio(ratio: Decimal) -> Decimal:
    if ratio <= 0:
        raise ValueError(f"bags-per-ton ratio must be positive, got {ratio}")
    return ratio


def _trim(d: Decimal) -> Decimal:
    if d.as_tuple().exponent >= 0:
        return d
    return d.quantize(Decimal(1)) if d == d.to_integral_value() else d.normalize()


def to_bags(tons: Decimal, ratio: Decimal) -> Decimal:
    return _trim(_BAGS_DIGITS.multiply(tons, _check_ratio(ratio)))


def to_tons(bags: Decimal, ratio: Decimal) -> Decimal:
    return bags / _check_ratio(ratio)


def convert(quantity: Decimal, unit: str, metric: str, ratio: Decimal) -> Decimal:
    """Express ``quantity`` (in ``unit``) in the display ``metric``.

    Only the ``tons``/``bags`` pair is converted; any other unit passes through
    unchanged.
    """

    if unit == TONS and metric == BAGS:
        return to_bags(quantity, ratio)
    if unit == BAGS and metric == TONS:
        return to_tons(quantity, ratio)
    return quantity


# ---------------------------------------------------------------------------
# Rows
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class SubCategoryRow:
    date: CalendarDate
    date_str: str
    product: str
    direct: Decimal = ZERO
    gl: Decimal = ZERO
    gv: Decimal = ZERO
    billed: Decimal = ZERO
    total: Decimal = ZERO
    total_unbilled: Decimal = ZERO

    @property
    def inflow(self) -> Decimal:
        return self.gl + self.gv

    @property
    def total_billed(self) -> Decimal:
        return self.billed


@dataclass(frozen=True, slots=True)
class SubCategoryTotals:
    direct: Decimal = ZERO
    gl: Decimal = ZERO
    gv: Decimal = ZERO
    total: Decimal = ZERO
    total_billed: Decimal = ZERO
    total_unbilled: Decimal = ZERO


@dataclass(slots=True)
class _Bucket:
    date: CalendarDate
    date_str: str
    product: str
    direct: Decimal = ZERO
    gl: Decimal = ZERO
    gv: Decimal = ZERO
    billed: Decimal = ZERO
    total: Decimal = ZERO


def group_purchases(
    purchases: Iterable[Purchase],
    *,
    metric: str,
    ratio: Decimal,
) -> list[SubCategoryRow]:
    """Bucket purchases per ``(date, item)``; rows come back in date order.

    A purchase without a parseable date cannot be placed in the fold and is
    skipped with a warning. Unknown sub-categories still count toward
    ``total`` and ``billed`` but land in no bucket.
    """

    buckets: dict[tuple[CalendarDate, str], _Bucket] = {}
    for p in purchases:
        if p.date is None:
            _logger.warning("purchase %s skipped: unparseable date %r", p.id, p.date_str)
            continue
        key = (p.date, p.item)
        bucket = buckets.get(key)
        if bucket is None:
            bucket = buckets[key] = _Bucket(date=p.date, date_str=p.date_str, product=p.item)

        qty = convert(p.quantity, p.unit, metric, ratio)
        billed = convert(p.billed_quantity, p.unit, metric, ratio)

        cat = p.sub_category or DIRECT
        if cat == DIRECT:
            bucket.direct += qty
        elif cat == GL:
            bucket.gl += qty
        elif cat == GV:
            bucket.gv += qty
        bucket.billed += billed
        bucket.total += qty

    ordered = sorted(buckets.values(), key=lambda b: b.date)
    return [
        SubCategoryRow(
            date=b.date,
            date_str=b.date_str,
            product=b.product,
            direct=b.direct,
            gl=b.gl,
            gv=b.gv,
            billed=b.billed,
            total=b.total,
        )
        for b in ordered
    ]


def carry_forward(rows: Iterable[SubCategoryRow]) -> list[SubCategoryRow]:
    """Left-fold the unbilled balance over ``rows`` in the order given."""

    carry = ZERO
    out: list[SubCategoryRow] = []
    for row in rows:
        carry = carry + (row.inflow - row.billed)
        out.append(replace(row, total_unbilled=carry))
    return out


def column_totals(rows: list[SubCategoryRow]) -> SubCategoryTotals:
    """Sum every column except ``total_unbilled``, which is the last carry."""

    return SubCategoryTotals(
        direct=sum((r.direct for r in rows), ZERO),
        gl=sum((r.gl for r in rows), ZERO),
        gv=sum((r.gv for r in rows), ZERO),
        total=sum((r.total for r in rows), ZERO),
        total_billed=sum((r.billed for r in rows), ZERO),
        total_unbilled=rows[-1].total_unbilled if rows else ZERO,
    )


def sub_category_report(
    purchases: Iterable[Purchase],
    *,
    metric: str,
    ratio: Decimal,
) -> tuple[list[SubCategoryRow], SubCategoryTotals]:
    rows = carry_forward(group_purchases(purchases, metric=metric, ratio=ratio))
    return rows, column_totals(rows)


__all__ = [
    "BAGS",
    "DIRECT",
    "GL",
    "GV",
    "TONS",
    "SubCategoryRow",
    "SubCategoryTotals",
    "carry_forward",
    "column_totals",
    "convert",
    "group_purchases",
    "sub_category_report",
    "to_bags",
    "to_tons",
]
