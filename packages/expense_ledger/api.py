"""Public API surface for the ``expense_ledger`` package.

Host applications (a web layer, the CLI) authenticate the caller and pass a
trusted ``owner_id`` into these operations. Implementations live in the
topical modules and are re-exported here:

- writes: :mod:`expense_ledger.expenses`, :mod:`expense_ledger.ingest.pipeline`
- reads: :mod:`expense_ledger.reports`
"""

from __future__ import annotations

from .expenses import create_expense, delete_expenses, get_expense, update_expense
from .ingest.pipeline import ingest_expenses
from .reports import (
    aggregate_by_dimension,
    daily_overview,
    dimension_detail,
    list_dimension_labels,
    list_dimension_usage,
    list_summary,
    monthly_trend,
)

__all__ = [
    "create_expense",
    "ingest_expenses",
    "get_expense",
    "update_expense",
    "delete_expenses",
    "list_summary",
    "daily_overview",
    "monthly_trend",
    "dimension_detail",
    "aggregate_by_dimension",
    "list_dimension_labels",
    "list_dimension_usage",
]
