"""Typed failures raised by expense ledger operations.

Hierarchy
---------
- ``ValidationError``: malformed or missing input; raised before any storage
  work, so no state changes. ``MissingDimensionId`` and ``InvalidSort`` are
  narrower validation failures.
- ``NotFoundOrForbidden``: the record does not exist or belongs to someone
  else. The two cases are merged so callers cannot probe for other users'
  records.
- ``DimensionConflict``: a store/category label kept conflicting after the
  bounded retry.
- ``TransactionFailure``: anything that went wrong inside a unit of work. The
  transaction has already been rolled back when it is raised, and its message
  never carries storage details (the cause is chained for logs).
"""

from __future__ import annotations


class ExpenseLedgerError(Exception):
    """Base class for all expense ledger failures."""


class ValidationError(ExpenseLedgerError):
    pass


class MissingDimensionId(ValidationError):
    def __init__(self, kind: str) -> None:
        super().__init__(f"a {kind} id is required for this report")
        self.kind = kind


class InvalidSort(ValidationError):
    def __init__(self, sort_key: object, direction: object) -> None:
        super().__init__("unsupported sort option")
        self.sort_key = sort_key
        self.direction = direction


class NotFoundOrForbidden(ExpenseLedgerError):
    def __init__(self, expense_id: object) -> None:
        super().__init__(f"expense {expense_id!r} not found")
        self.expense_id = expense_id


class DimensionConflict(ExpenseLedgerError):
    pass


class TransactionFailure(ExpenseLedgerError):
    pass


class IngestionFailed(TransactionFailure):
    pass


class CreateFailed(TransactionFailure):
    pass


class UpdateFailed(TransactionFailure):
    pass


class DeleteFailed(TransactionFailure):
    pass


__all__ = [
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
