"""ledger_db: database library for the expense ledger (SQLAlchemy).

Public exports
--------------
- ``Base`` and ``metadata`` for schema creation
- ORM models in ``ledger_db.models.expenses`` (re-exported for convenience)
- Engine/session helpers in ``ledger_db.client``
"""

from __future__ import annotations

from .models.expenses import Base, Category, Expense, Store

metadata = Base.metadata

__all__ = [
    "Base",
    "metadata",
    "Category",
    "Expense",
    "Store",
]
