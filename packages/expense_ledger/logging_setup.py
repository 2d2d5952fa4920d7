"""Centralized logging configuration for the ``expense_ledger`` package.

Two loggers matter to a host:

- ``"expense_ledger"``: the package root. ``configure_logging`` gives it one
  ``StreamHandler`` whose level comes from the call or from
  ``EXPENSE_LEDGER_LOG_LEVEL``.
- ``"sqlalchemy.engine"``: statement logging. It stays untouched unless a SQL
  level is passed or ``EXPENSE_LEDGER_SQL_LOG_LEVEL`` is set, in which case it
  shares the package handler (``INFO`` prints statements, ``DEBUG`` adds rows).

Library modules only call ``get_logger(__name__)``; attaching handlers is the
host's job (the CLI root callback, or the web application at startup).
"""

from __future__ import annotations

import logging
import os
import sys
from typing import IO

_PKG_LOGGER_NAME = "expense_ledger"
_SQL_LOGGER_NAME = "sqlalchemy.engine"
_LEVEL_ENV_VAR = "EXPENSE_LEDGER_LOG_LEVEL"
_SQL_LEVEL_ENV_VAR = "EXPENSE_LEDGER_SQL_LOG_LEVEL"
_DEFAULT_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"
_CONFIGURED = False


def _level_from_name(name: str) -> int | None:
    # Numeric strings or standard level names (INFO/DEBUG/etc.).
    name = name.strip().upper()
    if name.isdigit():
        return int(name)
    numeric = getattr(logging, name, None)
    return numeric if isinstance(numeric, int) else None


def _resolve_level(level: int | str | None, env_var: str) -> int | None:
    """Explicit ``level`` first, then ``env_var``; ``None`` when neither parses."""

    if isinstance(level, int):
        return level
    for candidate in (level, os.getenv(env_var)):
        if candidate:
            parsed = _level_from_name(candidate)
            if parsed is not None:
                return parsed
    return None


def configure_logging(
    level: int | str | None = None,
    *,
    sql_level: int | str | None = None,
    fmt: str | None = None,
    stream: IO[str] = sys.stderr,
) -> None:
    """Configure the package root logger exactly once.

    Parameters
    ----------
    level:
        Package logging level as ``int`` or level name. Falls back to
        ``EXPENSE_LEDGER_LOG_LEVEL``, then ``logging.INFO``.
    sql_level:
        Level for ``sqlalchemy.engine``. Falls back to
        ``EXPENSE_LEDGER_SQL_LOG_LEVEL``; statement logging stays off when
        neither is set.
    fmt:
        Optional format string shared by both loggers.
    stream:
        Output stream of the shared ``StreamHandler``.
    """

    global _CONFIGURED
    if _CONFIGURED:
        return

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    for h in list(pkg_logger.handlers):
        if isinstance(h, logging.NullHandler):
            pkg_logger.removeHandler(h)

    resolved = _resolve_level(level, _LEVEL_ENV_VAR)
    if resolved is None:
        resolved = logging.INFO
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(fmt or _DEFAULT_FORMAT))

    pkg_logger.setLevel(resolved)
    pkg_logger.addHandler(handler)
    pkg_logger.propagate = False

    sql_resolved = _resolve_level(sql_level, _SQL_LEVEL_ENV_VAR)
    if sql_resolved is not None:
        sql_logger = logging.getLogger(_SQL_LOGGER_NAME)
        sql_logger.setLevel(sql_resolved)
        sql_logger.addHandler(handler)
        sql_logger.propagate = False

    _CONFIGURED = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger by name, ensuring safe defaults for library use."""

    pkg_logger = logging.getLogger(_PKG_LOGGER_NAME)
    if not _CONFIGURED and not pkg_logger.handlers:
        pkg_logger.addHandler(logging.NullHandler())
    return logging.getLogger(name)


__all__ = ["configure_logging", "get_logger"]
