"""Environment-driven settings for the reporting engine and its CLI.

Values are read lazily from the process environment on every call so that a
``.env`` loaded by the CLI (``python-dotenv``, ``override=False``) or a
``monkeypatch.setenv`` in tests takes effect without re-importing anything.

Recognized variables
--------------------
``LEDGER_REPORTS_LOG_LEVEL``
    Level name or number for the package logger (default ``WARNING``).
``LEDGER_REPORTS_CACHE_SIZE``
    Maximum number of memoized report results (default ``128``; ``0``
    disables memoization).
``LEDGER_REPORTS_ACTIVITY_DAYS``
    Recency window for the Active/Inactive classification (default ``30``).
``LEDGER_REPORTS_SNAPSHOT``
    Default snapshot JSON path used by the CLI when ``--snapshot`` is omitted.
"""

from __future__ import annotations

import os
from pathlib import Path

DEFAULT_CACHE_SIZE = 128
DEFAULT_ACTIVITY_DAYS = 30
DEFAULT_BAGS_PER_TON = 20


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= minimum else default


def log_level_env() -> str | None:
    raw = os.getenv("LEDGER_REPORTS_LOG_LEVEL")
    return raw.strip() if raw and raw.strip() else None


def cache_size() -> int:
    """Return the configured report-cache capacity (``0`` disables caching)."""

    return _int_env("LEDGER_REPORTS_CACHE_SIZE", DEFAULT_CACHE_SIZE)


def activity_window_days() -> int:
    """Return the recency window used to mark customers Active."""

    return _int_env("LEDGER_REPORTS_ACTIVITY_DAYS", DEFAULT_ACTIVITY_DAYS, minimum=1)


def default_snapshot_path() -> Path | None:
    raw = os.getenv("LEDGER_REPORTS_SNAPSHOT")
    if raw and raw.strip():
        return Path(raw.strip()).expanduser()
    return None


__all__ = [
    "DEFAULT_ACTIVITY_DAYS",
    "DEFAULT_BAGS_PER_TON",
    "DEFAULT_CACHE_SIZE",
    "activity_window_days",
    "cache_size",
    "default_snapshot_path",
    "log_level_env",
]
