"""Public interface for the ``ledger_reports`` package.

Re-exports the report entry point, the snapshot loaders and the public
domain types. There is no runtime logic here, only symbol re-exports.
"""

from .auth import GateResult, hash_password, unlock, verify_password
from .balances import account_ledger, customer_balance, customer_ledger
from .cache import ReportCache, compute_report_key
from .errors import LedgerReportsError, SnapshotError, UnknownReportError
from .models import (
    Account,
    AccountLedger,
    AccountTransaction,
    CalendarDate,
    Customer,
    CustomerLedger,
    Expense,
    LedgerEntry,
    Payment,
    Purchase,
    ReportFilter,
    Sale,
    Settings,
    Snapshot,
    StockTransaction,
)
from .normalizers import format_display_date, parse_date, parse_money
from .reconcile import carry_forward, sub_category_report, to_bags, to_tons
from .reports import ReportId, ReportResult, compute_report, parse_report_id
from .snapshot import build_snapshot, load_snapshot

__all__ = [
    # Reports
    "compute_report",
    "parse_report_id",
    "ReportId",
    "ReportResult",
    "ReportCache",
    "compute_report_key",
    # Snapshot
    "build_snapshot",
    "load_snapshot",
    # Ledgers and reconciliation
    "account_ledger",
    "customer_ledger",
    "customer_balance",
    "carry_forward",
    "sub_category_report",
    "to_bags",
    "to_tons",
    # Canonicalization
    "parse_date",
    "parse_money",
    "format_display_date",
    # Password gate
    "GateResult",
    "hash_password",
    "unlock",
    "verify_password",
    # Errors
    "LedgerReportsError",
    "SnapshotError",
    "UnknownReportError",
    # Models / types
    "Account",
    "AccountLedger",
    "AccountTransaction",
    "CalendarDate",
    "Customer",
    "CustomerLedger",
    "Expense",
    "LedgerEntry",
    "Payment",
    "Purchase",
    "ReportFilter",
    "Sale",
    "Settings",
    "Snapshot",
    "StockTransaction",
]
