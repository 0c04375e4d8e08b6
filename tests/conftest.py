"""Pytest configuration and shared fixtures.

Settings are read from the environment on every call, and the CLI loads a
``.env`` from the working directory, so each test starts from a clean
environment and an unconfigured package logger.
"""

from __future__ import annotations

import copy
import sys
from pathlib import Path
from typing import Any

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `ledger_reports` is importable
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
if str(_PKG_DIR) not in sys.path:
    sys.path.insert(0, str(_PKG_DIR))

from ledger_reports.logging_setup import reset_logging  # noqa: E402
from ledger_reports.snapshot import build_snapshot  # noqa: E402

_ENV_VARS = (
    "LEDGER_REPORTS_LOG_LEVEL",
    "LEDGER_REPORTS_CACHE_SIZE",
    "LEDGER_REPORTS_ACTIVITY_DAYS",
    "LEDGER_REPORTS_SNAPSHOT",
)


@pytest.fixture(autouse=True)
def _isolate_environment(monkeypatch: pytest.MonkeyPatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_logging()
    yield
    reset_logging()


SAMPLE_DOCUMENT: dict[str, Any] = {
    "customers": [
        {
            "id": 1,
            "name": "Asha Traders",
            "phone": "98450 11111",
            "category": "Dealer",
            "registerDate": "01-01-2024",
            "openingBalance": "500",
            "openingBalanceDate": "01-01-2024",
        },
        {"id": "c2", "name": "Bala", "phone": "99000 22222", "registerDate": "2024-02-10"},
    ],
    "sales": [
        {
            "id": "s1",
            "customerId": 1,
            "customer": "Asha Traders",
            "product": "Cement • 10 bags",
            "date": "10-01-2024",
            "amount": "300",
            "purchasePrice": "20",
        },
        {
            "id": "s2",
            "customerId": "c2",
            "customer": "Bala",
            "product": "Cement • 4 bags",
            "date": "2024-02-12",
            "amount": "1,200",
            "purchasePrice": 250,
        },
        {
            "id": "s3",
            "customerId": 1,
            "customer": "Asha Traders",
            "product": "Steel • 2 tons",
            "date": "05-02-2024",
            "amount": 900,
        },
    ],
    "payments": [
        {
            "id": "p1",
            "customerId": 1,
            "customer": "Asha Traders",
            "method": "Cash",
            "date": "20-01-2024",
            "amount": "100",
        },
        {
            "id": "p2",
            "customerId": "c2",
            "customer": "Bala",
            "method": "UPI",
            "date": "15-02-2024",
            "amount": 200,
        },
        {
            "id": "p3",
            "customer": "Own account",
            "method": "Bank",
            "date": "16-02-2024",
            "amount": 5000,
            "internalTransfer": True,
        },
    ],
    "purchases": [
        {
            "id": "pu1",
            "vendor": "Plant",
            "item": "Cement",
            "subCategory": "GL",
            "quantity": 10,
            "billedQuantity": 0,
            "unit": "tons",
            "date": "01-03-2024",
            "amount": 5000,
        },
        {
            "id": "pu2",
            "vendor": "Plant",
            "item": "Cement",
            "subCategory": "GV",
            "quantity": 5,
            "billedQuantity": 12,
            "unit": "tons",
            "date": "02-03-2024",
            "amount": 2500,
        },
        {
            "id": "pu3",
            "vendor": "Plant",
            "item": "Cement",
            "subCategory": "Direct",
            "quantity": 2,
            "unit": "tons",
            "date": "2024-03-02",
            "amount": 1000,
        },
    ],
    "expenses": [
        {"id": "e1", "vendor": "Fuel Co", "item": "Diesel", "date": "03-03-2024", "amount": 150, "accountId": "a1"},
        {"id": "e2", "vendor": "Fuel Co", "item": "Diesel", "date": "01-03-2024", "amount": "50"},
        {"id": "e3", "vendor": "Landlord", "item": "Rent", "date": "05-03-2024", "amount": "1,000"},
    ],
    "stockTransactions": [
        {
            "id": "st1",
            "shopId": 1,
            "type": "Add Stock",
            "quantity": 10,
            "unit": "bags",
            "date": "01-03-2024",
            "amount": 0,
            "product": "Cement",
        }
    ],
    "accountTransactions": [
        {"id": "t1", "accountId": "a1", "type": "Credit", "amount": 200, "date": "2024-03-01", "description": "Deposit"},
        {"id": "t2", "accountId": "a1", "type": "Debit", "amount": 50, "date": "2024-03-02", "description": "Fees"},
    ],
    "accounts": [
        {"id": "a1", "name": "Main Bank", "balance": 1000, "type": "Bank"},
        {"id": "a2", "name": "Petty Cash", "balance": 0, "type": "Cash"},
    ],
    "settings": {"bagsPerTon": 20},
}


@pytest.fixture
def sample_document() -> dict[str, Any]:
    return copy.deepcopy(SAMPLE_DOCUMENT)


@pytest.fixture
def sample_snapshot(sample_document):
    return build_snapshot(sample_document)
