"""Exceptions raised at the package boundaries.

The report computations themselves never raise for bad data (see
:mod:`ledger_reports.normalizers`); only loading a snapshot and naming a
report can fail.
"""

from __future__ import annotations


class LedgerReportsError(Exception):
    """Base class for errors surfaced to callers of ``ledger_reports``."""


class SnapshotError(LedgerReportsError):
    """The snapshot document could not be read or does not match the schema."""


class UnknownReportError(LedgerReportsError, ValueError):
    """A report identifier that names no known report."""

    def __init__(self, value: str) -> None:
        super().__init__(f"unknown report: {value!r}")
        self.value = value


__all__ = ["LedgerReportsError", "SnapshotError", "UnknownReportError"]
