"""Package logging for ``ledger_reports``.

Report code asks :func:`get_logger` for a module logger and never touches
handlers. Entry points call :func:`configure_logging`, which attaches one
console handler, recognized by its name, to the ``"ledger_reports"`` logger.

The level comes from, in order: an explicit argument (``--log-level`` or
repeated ``-v`` on the CLI), ``LEDGER_REPORTS_LOG_LEVEL``, then ``WARNING``.
At ``WARNING`` rendered reports stay free of per-record noise; ``DEBUG``
shows every malformed date or amount absorbed while loading a snapshot.
"""

from __future__ import annotations

import logging
import sys
from typing import IO

from .config import log_level_env

PACKAGE_LOGGER = "ledger_reports"
HANDLER_NAME = "ledger_reports.console"
DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"

# Index is the number of -v flags given.
_VERBOSITY = (logging.WARNING, logging.INFO, logging.DEBUG)


def resolve_level(level: int | str | None) -> int:
    """Level number for a name, a number or ``None`` (environment, then WARNING).

    Unknown names fall back to ``WARNING`` rather than failing a report run.
    """

    if level is None:
        level = log_level_env()
        if level is None:
            return logging.WARNING
    if isinstance(level, int):
        return level
    text = level.strip().upper()
    if text.isdigit():
        return int(text)
    return logging.getLevelNamesMapping().get(text, logging.WARNING)


def verbosity_level(count: int) -> int | None:
    """Level for ``count`` repeated ``-v`` flags; ``None`` when none were given."""

    if count <= 0:
        return None
    return _VERBOSITY[min(count, len(_VERBOSITY) - 1)]


def _console_handler(pkg_logger: logging.Logger) -> logging.Handler | None:
    return next((h for h in pkg_logger.handlers if h.get_name() == HANDLER_NAME), None)


def configure_logging(
    level: int | str | None = None,
    *,
    fmt: str | None = None,
    stream: IO[str] | None = None,
) -> logging.Handler:
    """Attach the console handler and return it.

    When the handler is already attached it is returned unchanged, so the
    first caller decides level, format and stream. ``stream`` defaults to
    the ``sys.stderr`` current at call time.
    """

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    handler = _console_handler(pkg_logger)
    if handler is not None:
        return handler

    for placeholder in [h for h in pkg_logger.handlers if isinstance(h, logging.NullHandler)]:
        pkg_logger.removeHandler(placeholder)

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.set_name(HANDLER_NAME)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT))
    pkg_logger.addHandler(handler)
    pkg_logger.setLevel(resolve_level(level))
    pkg_logger.propagate = False
    return handler


def reset_logging() -> None:
    """Detach every package handler and restore propagation (tests only)."""

    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    for h in list(pkg_logger.handlers):
        pkg_logger.removeHandler(h)
    pkg_logger.setLevel(logging.NOTSET)
    pkg_logger.propagate = True


def get_logger(name: str) -> logging.Logger:
    pkg_logger = logging.getLogger(PACKAGE_LOGGER)
    if not pkg_logger.handlers:
        # Library use without configure_logging: stay quiet.
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = [
    "DEFAULT_FORMAT",
    "HANDLER_NAME",
    "PACKAGE_LOGGER",
    "configure_logging",
    "get_logger",
    "reset_logging",
    "resolve_level",
    "verbosity_level",
]
