from decimal import Decimal

from ledger_reports.balances import account_ledger, customer_balance, customer_ledger
from ledger_reports.models import (
    Account,
    AccountTransaction,
    CalendarDate,
    Customer,
    Payment,
    ReportFilter,
    Sale,
)
from ledger_reports.normalizers import parse_date


def _tx(tid: str, day: int, direction: str, amount: int, account_id: str = "a1") -> AccountTransaction:
    date = CalendarDate(2024, 3, day)
    return AccountTransaction(
        id=tid,
        date=date,
        date_str=str(date),
        account_id=account_id,
        amount=Decimal(amount),
        direction=direction,
        description=f"{direction} {amount}",
    )


def _sale(sid: str, raw_date: str, amount: int, customer: str = "Asha", customer_id: str | None = "1") -> Sale:
    return Sale(
        id=sid,
        date=parse_date(raw_date),
        date_str=raw_date,
        customer=customer,
        amount=Decimal(amount),
        product="Cement • 1 bags",
        customer_id=customer_id,
    )


def _payment(pid: str, raw_date: str, amount: int, customer: str = "Asha", customer_id: str | None = "1") -> Payment:
    return Payment(
        id=pid,
        date=parse_date(raw_date),
        date_str=raw_date,
        customer=customer,
        amount=Decimal(amount),
        method="Cash",
        customer_id=customer_id,
    )


# ---------------------------------------------------------------------------
# Account ledger
# ---------------------------------------------------------------------------


def test_account_ledger_reconstructs_anchor_from_current_balance():
    account = Account(id="a1", name="Main Bank", balance=Decimal(1000))
    txs = [_tx("t2", 2, "Debit", 50), _tx("t1", 1, "Credit", 200)]

    ledger = account_ledger(account, txs, ReportFilter())

    assert ledger.opening_balance == Decimal(850)
    assert [e.id for e in ledger.entries] == ["t1", "t2"]
    assert [e.balance for e in ledger.entries] == [Decimal(1050), Decimal(1000)]
    assert ledger.entries[0].credit == Decimal(200) and ledger.entries[0].debit == 0
    assert ledger.entries[1].debit == Decimal(50) and ledger.entries[1].credit == 0
    assert ledger.closing_balance == account.balance


def test_account_ledger_ignores_other_accounts_and_out_of_range():
    account = Account(id="a1", name="Main Bank", balance=Decimal(500))
    txs = [
        _tx("t1", 1, "Credit", 100),
        _tx("t2", 5, "Debit", 30),
        _tx("x", 2, "Credit", 999, account_id="a2"),
    ]
    flt = ReportFilter(date_from=CalendarDate(2024, 3, 4), date_to=CalendarDate(2024, 3, 6))

    ledger = account_ledger(account, txs, flt)

    assert [e.id for e in ledger.entries] == ["t2"]
    assert ledger.opening_balance == Decimal(530)
    assert ledger.closing_balance == Decimal(500)


def test_account_ledger_without_transactions_opens_at_balance():
    account = Account(id="a1", name="Main Bank", balance=Decimal(42))
    ledger = account_ledger(account, [], ReportFilter())
    assert ledger.entries == ()
    assert ledger.opening_balance == ledger.closing_balance == Decimal(42)


# ---------------------------------------------------------------------------
# Customer ledger
# ---------------------------------------------------------------------------


def _customer() -> Customer:
    return Customer(
        id="1",
        name="Asha",
        opening_balance=Decimal(500),
        opening_balance_date=CalendarDate(2024, 1, 1),
        opening_balance_date_str="01-01-2024",
        register_date=CalendarDate(2024, 1, 1),
        register_date_str="01-01-2024",
    )


def test_customer_ledger_folds_history_before_from_into_opening():
    sales = [_sale("s1", "10-01-2024", 300)]
    payments = [_payment("p1", "20-01-2024", 100)]
    flt = ReportFilter(date_from=CalendarDate(2024, 1, 15))

    ledger = customer_ledger(_customer(), sales, payments, flt)

    assert ledger.opening_balance == Decimal(800)
    assert ledger.opening_balance_date == "15-01-2024"
    assert [e.id for e in ledger.entries] == ["p1"]
    assert ledger.closing_balance == Decimal(700)
    assert ledger.entries[-1].balance == Decimal(700)


def test_customer_ledger_groups_by_month_with_subtotals():
    sales = [_sale("s1", "2024-01-10", 300), _sale("s2", "05-02-2024", 900)]
    payments = [_payment("p1", "20-01-2024", 100)]

    ledger = customer_ledger(_customer(), sales, payments, ReportFilter())

    assert [m.title for m in ledger.months] == ["January 2024", "February 2024"]
    january = ledger.months[0]
    assert january.total_debit == Decimal(300)
    assert january.total_credit == Decimal(100)
    assert ledger.opening_balance_date == "01-01-2024"
    assert ledger.closing_balance == Decimal(500 + 300 + 900 - 100)
    assert ledger.total_debit == Decimal(1200)
    assert ledger.total_credit == Decimal(100)


def test_customer_ledger_sale_precedes_payment_on_same_day():
    sales = [_sale("s1", "10-01-2024", 300)]
    payments = [_payment("p1", "10-01-2024", 300)]

    ledger = customer_ledger(_customer(), sales, payments, ReportFilter())

    assert [e.id for e in ledger.entries] == ["s1", "p1"]
    assert [e.balance for e in ledger.entries] == [Decimal(800), Decimal(500)]


def test_customer_ledger_to_bound_alone_limits_entries():
    sales = [_sale("s1", "10-01-2024", 300), _sale("s2", "10-03-2024", 50), _sale("bad", "someday", 7)]
    flt = ReportFilter(date_to=CalendarDate(2024, 1, 31))

    ledger = customer_ledger(_customer(), sales, [], flt)

    assert [e.id for e in ledger.entries] == ["s1"]
    assert ledger.opening_balance == Decimal(500)


def test_customer_ledger_matches_by_name_when_id_missing():
    sales = [_sale("s1", "10-01-2024", 300, customer_id=None), _sale("x", "10-01-2024", 99, customer="Bala", customer_id="2")]

    ledger = customer_ledger(_customer(), sales, [], ReportFilter())

    assert [e.id for e in ledger.entries] == ["s1"]


def test_customer_balance_is_opening_plus_sales_minus_payments():
    sales = [_sale("s1", "10-01-2024", 300)]
    payments = [_payment("p1", "20-01-2024", 1000)]
    assert customer_balance(_customer(), sales, payments) == Decimal(-200)
