"""In-process memoization of report results.

Reports are pure functions of ``(report id, filter, snapshot, reference
day)``, so a result can be reused for as long as the snapshot version and the
calendar day stay the same. Keys are SHA-256 digests of a canonical JSON
payload:

    {"report": <slug>, "filter": {...}, "snapshot": <version>, "day": "YYYY-MM-DD"}

Capacity comes from ``LEDGER_REPORTS_CACHE_SIZE`` (see
:mod:`ledger_reports.config`); the least recently used entry is evicted once
the cache is full, and a capacity of ``0`` disables memoization.
"""

from __future__ import annotations

import dataclasses
import datetime as _dt
import hashlib
import json
from collections import OrderedDict

from . import config
from .logging_setup import get_logger
from .models import CalendarDate, ReportFilter, Snapshot
from .reports import ReportId, ReportResult, compute_report, parse_report_id

_logger = get_logger("ledger_reports.cache")


def _filter_payload(flt: ReportFilter) -> dict[str, str | None]:
    out: dict[str, str | None] = {}
    for f in dataclasses.fields(flt):
        value = getattr(flt, f.name)
        if isinstance(value, CalendarDate):
            value = value.to_date().isoformat()
        out[f.name] = value
    return out


def compute_report_key(
    report_id: str | ReportId,
    flt: ReportFilter,
    *,
    snapshot_version: str,
    day: _dt.date,
) -> str:
    """Return the 64-char hex key for one report invocation."""

    payload = {
        "report": parse_report_id(report_id).value,
        "filter": _filter_payload(flt),
        "snapshot": snapshot_version,
        "day": day.isoformat(),
    }
    data = json.dumps(payload, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


class ReportCache:
    """Bounded LRU mapping of report keys to :class:`ReportResult`.

    ``now`` only matters at day granularity for the classifications, so two
    calls on the same day with equal inputs share an entry.
    """

    def __init__(self, maxsize: int | None = None) -> None:
        self.maxsize = config.cache_size() if maxsize is None else max(0, maxsize)
        self._entries: OrderedDict[str, ReportResult] = OrderedDict()
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def get_or_compute(
        self,
        report_id: str | ReportId,
        snapshot: Snapshot,
        flt: ReportFilter | None = None,
        *,
        now: _dt.datetime | None = None,
    ) -> ReportResult:
        flt = flt or ReportFilter()
        now = now or _dt.datetime.now()
        if self.maxsize == 0 or not snapshot.version:
            return compute_report(report_id, snapshot, flt, now=now)

        key = compute_report_key(
            report_id, flt, snapshot_version=snapshot.version, day=now.date()
        )
        cached = self._entries.get(key)
        if cached is not None:
            self._entries.move_to_end(key)
            self.hits += 1
            _logger.debug("report_cache:hit key=%s", key[:12])
            return cached

        self.misses += 1
        result = compute_report(report_id, snapshot, flt, now=now)
        self._entries[key] = result
        if len(self._entries) > self.maxsize:
            evicted, _ = self._entries.popitem(last=False)
            _logger.debug("report_cache:evict key=%s", evicted[:12])
        return result


__all__ = ["ReportCache", "compute_report_key"]
