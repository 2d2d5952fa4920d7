"""Public interface for the ``expense_ledger`` package.

This module exposes the package's operations and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    aggregate_by_dimension,
    create_expense,
    daily_overview,
    delete_expenses,
    dimension_detail,
    get_expense,
    ingest_expenses,
    list_dimension_labels,
    list_dimension_usage,
    list_summary,
    monthly_trend,
    update_expense,
)
from .dimensions import Dimension
from .errors import (
    CreateFailed,
    DeleteFailed,
    DimensionConflict,
    ExpenseLedgerError,
    IngestionFailed,
    InvalidSort,
    MissingDimensionId,
    NotFoundOrForbidden,
    TransactionFailure,
    UpdateFailed,
    ValidationError,
)
from .models import (
    DailyTotal,
    DateRange,
    DimensionDetailRow,
    DimensionRef,
    DimensionTotal,
    ExpenseChanges,
    ExpenseRecord,
    IngestResult,
    MonthlyTotal,
    NewExpense,
    TransactionInput,
)
from .sorting import SortDirection, SortSpec

__all__ = [
    # API
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
    # Models / types
    "Dimension",
    "DateRange",
    "TransactionInput",
    "NewExpense",
    "ExpenseChanges",
    "IngestResult",
    "ExpenseRecord",
    "DailyTotal",
    "MonthlyTotal",
    "DimensionDetailRow",
    "DimensionTotal",
    "DimensionRef",
    "SortDirection",
    "SortSpec",
    # Errors
    "ExpenseLedgerError",
    "ValidationError",
    "MissingDimensionId",
    "InvalidSort",
    "NotFoundOrForbidden",
    "DimensionConflict",
    "TransactionFailure",
    "IngestionFailed",
    "CreateFailed",
    "UpdateFailed",
    "DeleteFailed",
]
