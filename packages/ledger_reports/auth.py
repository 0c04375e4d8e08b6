"""Reports password gate.

The store keeps ``settings.reportsPassword`` either as a SHA-256 hex digest
or, for installations configured before hashing was introduced, as plain
text. Both forms are accepted. The gate only answers yes/no; it never raises
on a wrong password.
"""

from __future__ import annotations

import hashlib
import hmac
import re
from dataclasses import dataclass

from .logging_setup import get_logger
from .models import Settings

_logger = get_logger("ledger_reports.auth")

_HEX_DIGEST_RE = re.compile(r"^[a-fA-F0-9]{64}$")

INCORRECT_PASSWORD = "Incorrect password"


def hash_password(password: str) -> str:
    return hashlib.sha256(password.encode("utf-8")).hexdigest()


def is_hash(stored: str) -> bool:
    """True when ``stored`` looks like a SHA-256 hex digest."""

    return bool(_HEX_DIGEST_RE.fullmatch(stored))


def verify_password(candidate: str, stored: str) -> bool:
    """Compare ``candidate`` against a stored digest or legacy plain text."""

    if is_hash(stored):
        return hmac.compare_digest(hash_password(candidate), stored.lower())
    return hmac.compare_digest(candidate.encode("utf-8"), stored.encode("utf-8"))


@dataclass(frozen=True, slots=True)
class GateResult:
    ok: bool
    message: str = ""


def unlock(settings: Settings, candidate: str | None) -> GateResult:
    """Check ``candidate`` against the configured reports password.

    With no password configured the gate is open.
    """

    stored = settings.reports_password
    if not stored:
        return GateResult(ok=True)
    if candidate is not None and verify_password(candidate, stored):
        return GateResult(ok=True)
    _logger.info("reports gate: password rejected")
    return GateResult(ok=False, message=INCORRECT_PASSWORD)


__all__ = [
    "INCORRECT_PASSWORD",
    "GateResult",
    "hash_password",
    "is_hash",
    "unlock",
    "verify_password",
]
