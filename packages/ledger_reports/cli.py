"""CLI for the ``ledger_reports`` package.

Command handlers (``cmd_*``) do the work and return a process exit code; the
Typer commands below only translate options into handler calls. A local
``.env`` is loaded with ``python-dotenv`` (``override=False``) before any
command runs, so ``LEDGER_REPORTS_SNAPSHOT`` and the other settings in
:mod:`ledger_reports.config` can live there.

Results are rendered as rich tables, or as JSON with ``--json``.
"""

from __future__ import annotations

import dataclasses
import datetime as _dt
import json
import sys
from decimal import Decimal
from functools import cache
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from . import config
from .auth import hash_password, unlock
from .cache import ReportCache
from .errors import LedgerReportsError
from .logging_setup import configure_logging, get_logger, verbosity_level
from .models import AccountLedger, CalendarDate, CustomerLedger, ReportFilter, Snapshot
from .normalizers import format_money, from_iso
from .reports import REPORT_TITLES, ReportId, ReportResult, parse_report_id
from .snapshot import load_snapshot

_logger = get_logger("ledger_reports.cli")

console = Console()


# ---- Small module-level helpers used by CLI commands -------------------------


@cache
def _report_cache() -> ReportCache:
    return ReportCache()


def _resolve_snapshot_path(snapshot: Path | None) -> Path | None:
    return snapshot if snapshot is not None else config.default_snapshot_path()


def _parse_cli_date(raw: str | None, option: str) -> CalendarDate | None:
    """Parse a ``--from``/``--to`` style value; raise ``ValueError`` when bad."""

    if raw is None or not raw.strip():
        return None
    try:
        return from_iso(raw.strip())
    except ValueError as exc:
        raise ValueError(f"{option}: {exc}") from exc


def _reference_time(as_of: str | None) -> _dt.datetime:
    day = _parse_cli_date(as_of, "--as-of")
    if day is None:
        return _dt.datetime.now()
    return _dt.datetime.combine(day.to_date(), _dt.time())


def _check_gate(snapshot: Snapshot, password: str | None) -> bool:
    """Run the reports password gate; prompt when no password was passed."""

    if not snapshot.settings.reports_password:
        return True
    candidate = password
    if candidate is None:
        from .term_ui import prompt_password

        try:
            candidate = prompt_password()
        except (EOFError, KeyboardInterrupt):
            candidate = None
    result = unlock(snapshot.settings, candidate)
    if not result.ok:
        print(f"Error: {result.message}", file=sys.stderr)
    return result.ok


def _load(snapshot_path: Path | None) -> Snapshot | None:
    path = _resolve_snapshot_path(snapshot_path)
    if path is None:
        print(
            "Error: no snapshot given (pass --snapshot or set LEDGER_REPORTS_SNAPSHOT).",
            file=sys.stderr,
        )
        return None
    try:
        return load_snapshot(path)
    except LedgerReportsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return None


# ---- Rendering ---------------------------------------------------------------


def to_jsonable(value: Any) -> Any:
    """Convert result objects into JSON-compatible structures.

    Decimals become strings so no precision is lost; calendar dates become
    ``YYYY-MM-DD``.
    """

    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, CalendarDate):
        return value.to_date().isoformat()
    if isinstance(value, ReportResult):
        return {
            "report": value.report_id.value,
            "title": value.title,
            "rows": to_jsonable(value.rows),
            "summary": to_jsonable(value.summary),
            "detail": to_jsonable(value.detail),
        }
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_jsonable(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(v) for v in value]
    return value


def _cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, Decimal):
        return format_money(value)
    return str(value)


def _heading(name: str) -> str:
    return name.replace("_", " ").title()


def _flat_columns(row: Any) -> list[str]:
    # Nested collections are rendered separately; raw CalendarDate values are
    # shown through their *_str siblings.
    return [
        f.name
        for f in dataclasses.fields(row)
        if not isinstance(getattr(row, f.name), (tuple, list, CalendarDate))
        and not (f.name in ("date", "last_transaction") and getattr(row, f.name) is None)
    ]


def _rows_table(title: str, rows: tuple[Any, ...] | list[Any]) -> Table:
    table = Table(title=title)
    if not rows:
        table.add_column("Result")
        table.add_row("No records")
        return table
    columns = _flat_columns(rows[0])
    for col in columns:
        table.add_column(_heading(col))
    for row in rows:
        table.add_row(*(_cell(getattr(row, col)) for col in columns))
    return table


def _summary_table(summary: Any) -> Table:
    table = Table(title="Summary", show_header=False)
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    for f in dataclasses.fields(summary):
        table.add_row(_heading(f.name), _cell(getattr(summary, f.name)))
    return table


def _ledger_table(title: str, ledger: AccountLedger | CustomerLedger) -> Table:
    table = Table(title=title)
    for col in ("Date", "Details", "Debit", "Credit", "Balance"):
        table.add_column(col, justify="right" if col in ("Debit", "Credit", "Balance") else "left")
    table.add_row("", "Opening balance", "", "", format_money(ledger.opening_balance))
    for e in ledger.entries:
        table.add_row(e.date_str, e.details, _cell(e.debit), _cell(e.credit), _cell(e.balance))
    table.add_row("", "Closing balance", "", "", format_money(ledger.closing_balance))
    return table


def render_result(result: ReportResult) -> None:
    """Print ``result`` to the console as one or more rich tables."""

    if result.report_id is ReportId.DAILY:
        for section in result.rows:
            console.print(_rows_table(f"{result.title}: {section.name}", section.records))
    elif result.report_id is ReportId.EXPENSES:
        table = Table(title=result.title)
        for col in ("Item", "Count", "Total"):
            table.add_column(col)
        for group in result.rows:
            table.add_row(group.item, str(len(group.expenses)), format_money(group.total))
        console.print(table)
    else:
        console.print(_rows_table(result.title, result.rows))
    console.print(_summary_table(result.summary))

    if isinstance(result.detail, AccountLedger):
        console.print(_ledger_table(f"Ledger: {result.detail.account.name}", result.detail))
    elif isinstance(result.detail, CustomerLedger):
        console.print(_ledger_table(f"Ledger: {result.detail.customer.name}", result.detail))


def _emit(result: ReportResult, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps(to_jsonable(result), indent=2, ensure_ascii=False))
    else:
        render_result(result)


# ---- Command handlers --------------------------------------------------------


def cmd_list_reports() -> int:
    for rid, title in REPORT_TITLES.items():
        typer.echo(f"{rid.value}\t{title}")
    return 0


def cmd_report(
    report_id: str,
    *,
    snapshot_path: Path | None,
    flt_options: dict[str, str | None],
    metric: str = "tons",
    as_of: str | None = None,
    password: str | None = None,
    as_json: bool = False,
) -> int:
    """Compute one report and print it.

    Errors (unknown report, bad dates, unreadable snapshot, wrong password)
    are written to stderr and produce exit status ``1``.
    """

    try:
        rid = parse_report_id(report_id)
        flt = ReportFilter(
            date_from=_parse_cli_date(flt_options.get("date_from"), "--from"),
            date_to=_parse_cli_date(flt_options.get("date_to"), "--to"),
            customer=flt_options.get("customer"),
            customer_id=flt_options.get("customer_id"),
            product=flt_options.get("product"),
            category=flt_options.get("category"),
            account=flt_options.get("account"),
            search=flt_options.get("search"),
            status=flt_options.get("status"),
            metric=metric,
            section=flt_options.get("section"),
        )
        now = _reference_time(as_of)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    snapshot = _load(snapshot_path)
    if snapshot is None:
        return 1
    if not _check_gate(snapshot, password):
        return 1

    try:
        result = _report_cache().get_or_compute(rid, snapshot, flt, now=now)
    except ValueError as e:
        print(f"Error: report {rid.value} failed: {e}", file=sys.stderr)
        return 1

    _logger.info("report=%s rows=%d snapshot=%s", rid.value, len(result.rows), snapshot.version[:12])
    _emit(result, as_json)
    return 0


def cmd_hash_password(password: str | None) -> int:
    if password is None:
        from .term_ui import prompt_password

        try:
            password = prompt_password(message="New reports password: ")
        except (EOFError, KeyboardInterrupt):
            print("Error: no password entered.", file=sys.stderr)
            return 1
    typer.echo(hash_password(password))
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Compute business reports (sales, payments, purchases, ledgers) from a "
        "data-store snapshot. Loads settings from a local .env before running."
    ),
)

SnapshotOpt = Annotated[
    Path | None,
    typer.Option("--snapshot", help="Snapshot JSON file (default: $LEDGER_REPORTS_SNAPSHOT)."),
]
FromOpt = Annotated[str | None, typer.Option("--from", help="Inclusive start date.")]
ToOpt = Annotated[str | None, typer.Option("--to", help="Inclusive end date.")]
AsOfOpt = Annotated[
    str | None, typer.Option("--as-of", help="Reference day for recency labels (default: today).")
]
PasswordOpt = Annotated[
    str | None, typer.Option("--password", help="Reports password (prompted when required).")
]
JsonOpt = Annotated[bool, typer.Option("--json", help="Print JSON instead of tables.")]


def _exit(code: int) -> None:
    if code:
        raise typer.Exit(code)


@app.command("list-reports")
def list_reports_cmd() -> None:
    """List report identifiers and titles."""

    _exit(cmd_list_reports())


@app.command("report")
def report_cmd(
    report_id: Annotated[str, typer.Argument(help="Report id or title (see list-reports).")],
    snapshot: SnapshotOpt = None,
    date_from: FromOpt = None,
    date_to: ToOpt = None,
    customer: Annotated[str | None, typer.Option(help="Customer name.")] = None,
    customer_id: Annotated[str | None, typer.Option("--customer-id", help="Customer id.")] = None,
    product: Annotated[str | None, typer.Option(help="Product or item name.")] = None,
    category: Annotated[str | None, typer.Option(help="Customer category or purchase sub-category.")] = None,
    account: Annotated[str | None, typer.Option(help="Account name (accounts report ledger).")] = None,
    search: Annotated[str | None, typer.Option(help="Free-text search.")] = None,
    status: Annotated[str | None, typer.Option(help="Active or Inactive (customer-category).")] = None,
    metric: Annotated[str, typer.Option(help="tons or bags (sub-category).")] = "tons",
    section: Annotated[str | None, typer.Option(help="Sales, Purchases or Payments (daily).")] = None,
    as_of: AsOfOpt = None,
    password: PasswordOpt = None,
    as_json: JsonOpt = False,
) -> None:
    """Compute a report over the snapshot."""

    _exit(
        cmd_report(
            report_id,
            snapshot_path=snapshot,
            flt_options={
                "date_from": date_from,
                "date_to": date_to,
                "customer": customer,
                "customer_id": customer_id,
                "product": product,
                "category": category,
                "account": account,
                "search": search,
                "status": status,
                "section": section,
            },
            metric=metric,
            as_of=as_of,
            password=password,
            as_json=as_json,
        )
    )


@app.command("customer-ledger")
def customer_ledger_cmd(
    customer_id: Annotated[str, typer.Argument(help="Customer id.")],
    snapshot: SnapshotOpt = None,
    date_from: FromOpt = None,
    date_to: ToOpt = None,
    as_of: AsOfOpt = None,
    password: PasswordOpt = None,
    as_json: JsonOpt = False,
) -> None:
    """Show the debit/credit ledger of one customer."""

    _exit(
        cmd_report(
            ReportId.CUSTOMER_LEDGER,
            snapshot_path=snapshot,
            flt_options={"date_from": date_from, "date_to": date_to, "customer_id": customer_id},
            as_of=as_of,
            password=password,
            as_json=as_json,
        )
    )


@app.command("account-ledger")
def account_ledger_cmd(
    account: Annotated[str, typer.Argument(help="Account name.")],
    snapshot: SnapshotOpt = None,
    date_from: FromOpt = None,
    date_to: ToOpt = None,
    password: PasswordOpt = None,
    as_json: JsonOpt = False,
) -> None:
    """Show the running-balance ledger of one account."""

    _exit(
        cmd_report(
            ReportId.ACCOUNTS,
            snapshot_path=snapshot,
            flt_options={"date_from": date_from, "date_to": date_to, "account": account},
            password=password,
            as_json=as_json,
        )
    )


@app.command("hash-password")
def hash_password_cmd(
    password: Annotated[
        str | None, typer.Option("--password", help="Password to hash (prompted when omitted).")
    ] = None,
) -> None:
    """Print the SHA-256 digest to store as settings.reportsPassword."""

    _exit(cmd_hash_password(password))


@app.callback()
def _root(
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", help="Override LEDGER_REPORTS_LOG_LEVEL for this run."),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option("--verbose", "-v", count=True, help="-v for INFO, -vv for DEBUG."),
    ] = 0,
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging. An
    explicit ``--log-level`` wins over ``-v``.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging(log_level if log_level is not None else verbosity_level(verbose))


if __name__ == "__main__":  # pragma: no cover
    app()
