"""SQLAlchemy models registry for the expense ledger database."""

from .expenses import Base, Category, Expense, Store

__all__ = [
    "Base",
    "Category",
    "Expense",
    "Store",
]
