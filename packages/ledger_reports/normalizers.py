"""Canonicalization of raw date, amount and product text.

The data store hands us strings that were written by different screens at
different times, so the same field can arrive as ``YYYY-MM-DD`` or
``DD-MM-YYYY`` and amounts may carry grouping commas. Everything here is
error tolerant by policy:

- an unparseable date becomes ``None`` (the record is then out of any bounded
  date range);
- an unparseable amount or quantity becomes ``Decimal(0)``.

Neither case raises. Both are logged at DEBUG on the
``ledger_reports.normalizers`` logger so an operator can see what was
absorbed.
"""

from __future__ import annotations

import datetime as _dt
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext

from .logging_setup import get_logger
from .models import ZERO, CalendarDate, Money

_logger = get_logger("ledger_reports.normalizers")

# Separator used by the sales screen: "<name> • <qty> <unit>"
PRODUCT_SEPARATOR = " • "

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------


def _strip_time(s: str) -> str:
    # Accept 'YYYY-MM-DD', 'YYYY-MM-DDTHH:MM:SS' and 'YYYY-MM-DD HH:MM:SS'.
    first = s.split()[0]
    return first.split("T", 1)[0]


def parse_date(raw: str | None) -> CalendarDate | None:
    """Parse ``raw`` as either ``YYYY-MM-DD`` or ``DD-MM-YYYY``.

    The format is chosen per value: when the text contains ``-`` and its first
    segment has four characters it is read year-first, otherwise day-first.
    Any other shape (missing separators, non-numeric parts, impossible days
    such as ``31-02-2024``) yields ``None``.
    """

    if raw is None:
        return None
    s = raw.strip()
    if not s or "-" not in s:
        if s:
            _logger.debug("unparseable date %r (no '-' separator)", raw)
        return None

    parts = _strip_time(s).split("-")
    if len(parts) != 3 or not all(p.isdigit() for p in parts):
        _logger.debug("unparseable date %r", raw)
        return None

    if len(parts[0]) == 4:
        year, month, day = (int(p) for p in parts)
    else:
        day, month, year = (int(p) for p in parts)

    try:
        return CalendarDate.from_date(_dt.date(year, month, day))
    except ValueError:
        _logger.debug("date out of calendar range %r", raw)
        return None


def format_display_date(date: CalendarDate) -> str:
    """Render ``date`` as ``DD-MM-YYYY`` for user-facing output."""

    return f"{date.day:02d}-{date.month:02d}-{date.year:04d}"


def display_date(raw: str | None) -> str:
    """Normalize a raw date string to ``DD-MM-YYYY`` when it parses.

    Unparseable text is returned unchanged (``""`` for ``None``) so the
    caller still has something to show.
    """

    parsed = parse_date(raw)
    if parsed is None:
        return raw or ""
    return format_display_date(parsed)


def from_iso(value: str) -> CalendarDate:
    """Strict parser for CLI/filter input; raises ``ValueError`` on bad text."""

    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"invalid date: {value!r} (expected YYYY-MM-DD or DD-MM-YYYY)")
    return parsed


# ---------------------------------------------------------------------------
# Amounts and quantities
# ---------------------------------------------------------------------------


def _to_decimal(raw: str | int | float | Decimal | None) -> Decimal | None:
    if raw is None:
        return None
    if isinstance(raw, Decimal):
        return raw if raw.is_finite() else None
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return Decimal(raw)
    if isinstance(raw, float):
        # Go through repr so 0.1 stays 0.1 instead of its binary expansion.
        d = Decimal(repr(raw))
        return d if d.is_finite() else None

    # Strip thousands separators; keep decimal point.
    s = raw.replace(",", "").strip()
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        return None
    return d if d.is_finite() else None


def parse_money(raw: str | int | float | Decimal | None) -> Money:
    """Parse a currency amount such as ``"1,250.50"``; failures become ``0``."""

    d = _to_decimal(raw)
    if d is None:
        if raw not in (None, ""):
            _logger.debug("unparseable amount %r treated as 0", raw)
        return ZERO
    return d


def parse_quantity(raw: str | int | float | Decimal | None) -> Decimal:
    """Parse a quantity field with the same zero-on-failure policy as money."""

    d = _to_decimal(raw)
    if d is None:
        if raw not in (None, ""):
            _logger.debug("unparseable quantity %r treated as 0", raw)
        return ZERO
    return d


def format_money(amount: Decimal) -> str:
    """Two decimals with grouping commas, e.g. ``"12,500.00"``.

    Precision is widened for the call so amounts beyond the default 28
    digits still format instead of raising ``InvalidOperation``.
    """

    if not amount.is_finite():
        return str(amount)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, amount.adjusted() + 4)
        q = amount.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    return f"{q:,.2f}"


# ---------------------------------------------------------------------------
# Product descriptor
# ---------------------------------------------------------------------------


def product_name(descriptor: str) -> str:
    return descriptor.split(PRODUCT_SEPARATOR)[0]


def split_product(descriptor: str) -> tuple[str, Decimal, str]:
    """Split ``"<name> • <qty> <unit>"`` into ``(name, qty, unit)``.

    A missing quantity segment gives ``(name, 0, "")``; a quantity without a
    unit gives an empty unit. Only the leading number of the quantity segment
    is read, so ``"12 bags extra"`` still yields ``12``/``"bags"``.
    """

    parts = descriptor.split(PRODUCT_SEPARATOR)
    name = parts[0]
    if len(parts) < 2 or not parts[1].strip():
        return name, ZERO, ""
    qty_parts = parts[1].split()
    qty = parse_quantity(qty_parts[0]) if qty_parts else ZERO
    unit = qty_parts[1] if len(qty_parts) > 1 else ""
    return name, qty, unit


__all__ = [
    "PRODUCT_SEPARATOR",
    "display_date",
    "format_display_date",
    "format_money",
    "from_iso",
    "parse_date",
    "parse_money",
    "parse_quantity",
    "product_name",
    "split_product",
]
