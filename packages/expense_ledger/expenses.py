"""Create, read, update and delete of individual expenses.

Every operation is scoped to the owner: a row that exists but belongs to
someone else behaves exactly like a row that does not exist
(:class:`NotFoundOrForbidden`). Each write runs in its own
``session_scope``; storage failures are rolled back and reported as the
operation's :class:`TransactionFailure` subtype.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from ledger_db.client import session_scope
from ledger_db.models.expenses import Category, Expense, Store
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .dimensions import Dimension, resolve_dimension
from .errors import (
    CreateFailed,
    DeleteFailed,
    DimensionConflict,
    NotFoundOrForbidden,
    UpdateFailed,
    ValidationError,
)
from .logging_setup import get_logger
from .models import ExpenseChanges, ExpenseRecord, NewExpense, coerce_input

logger = get_logger(__name__)


def _owned(session: Session, owner_id: int, expense_id: int) -> Expense | None:
    return session.execute(
        select(Expense).where(Expense.id == expense_id, Expense.user_id == owner_id)
    ).scalar_one_or_none()


def create_expense(
    *,
    owner_id: int,
    expense: NewExpense | Mapping[str, Any],
    database_url: str | None = None,
) -> int:
    """Create one expense for ``owner_id`` and return its id.

    ``amount`` and ``date`` must be present and well formed; otherwise a
    :class:`ValidationError` is raised before the database is touched.
    """

    new = coerce_input(NewExpense, expense)
    logger.info("Adding expense for user %s", owner_id)
    try:
        with session_scope(database_url=database_url) as session:
            row = Expense(
                user_id=owner_id,
                amount=new.amount,
                date=new.date,
                store_id=resolve_dimension(session, Dimension.STORE, new.store),
                category_id=resolve_dimension(session, Dimension.CATEGORY, new.category),
            )
            session.add(row)
            session.flush()
            expense_id = row.id
    except (DimensionConflict, SQLAlchemyError) as e:
        logger.exception("Error adding single expense")
        raise CreateFailed("error while adding expense") from e
    logger.debug("Created expense %s", expense_id)
    return expense_id


def get_expense(
    *, owner_id: int, expense_id: int, database_url: str | None = None
) -> ExpenseRecord:
    """Return one of the owner's expenses with store/category names resolved."""

    stmt = (
        select(Expense.id, Expense.amount, Expense.date, Store.name, Category.name)
        .outerjoin(Store, Expense.store_id == Store.id)
        .outerjoin(Category, Expense.category_id == Category.id)
        .where(Expense.id == expense_id, Expense.user_id == owner_id)
    )
    with session_scope(database_url=database_url) as session:
        row = session.execute(stmt).one_or_none()
    if row is None:
        logger.info("Expense %s not available to user %s", expense_id, owner_id)
        raise NotFoundOrForbidden(expense_id)
    return ExpenseRecord(*row)


def _apply_changes(session: Session, row: Expense, changes: ExpenseChanges) -> None:
    supplied = changes.model_fields_set

    # Blank store/category clears the reference; only absent keys leave it alone.
    if "store" in supplied:
        row.store_id = resolve_dimension(session, Dimension.STORE, changes.store)
    if "category" in supplied:
        row.category_id = resolve_dimension(session, Dimension.CATEGORY, changes.category)
    if "date" in supplied and changes.date is not None:
        row.date = changes.date
    amount = changes.parsed_amount()
    if amount is not None:
        row.amount = amount


def update_expense(
    *,
    owner_id: int,
    expense_id: int,
    changes: ExpenseChanges | Mapping[str, Any],
    database_url: str | None = None,
) -> None:
    """Apply a partial update to one of the owner's expenses.

    Only keys present in ``changes`` are considered. ``store``/``category``
    given as blank clear the reference. ``amount`` is applied only when it
    parses as a finite number. A malformed ``date`` is a
    :class:`ValidationError`.
    """

    parsed = coerce_input(ExpenseChanges, changes)
    logger.info("Updating expense %s for user %s", expense_id, owner_id)
    try:
        with session_scope(database_url=database_url) as session:
            row = _owned(session, owner_id, expense_id)
            if row is None:
                logger.info("User %s attempted update of unavailable expense", owner_id)
                raise NotFoundOrForbidden(expense_id)
            _apply_changes(session, row, parsed)
    except (DimensionConflict, SQLAlchemyError) as e:
        logger.exception("Error updating expense %s", expense_id)
        raise UpdateFailed("there was an error updating the expense") from e


def delete_expenses(
    *,
    owner_id: int | None,
    expense_ids: Iterable[int] | None,
    database_url: str | None = None,
) -> int:
    """Delete the listed expenses that belong to ``owner_id``.

    Ids that do not exist or belong to another user are ignored. Returns the
    number of rows removed.
    """

    if owner_id is None or expense_ids is None:
        raise ValidationError("an owner and a list of expense ids are required")
    ids = list(expense_ids)
    if not ids:
        return 0

    logger.info("Deleting %d expenses for user %s", len(ids), owner_id)
    try:
        with session_scope(database_url=database_url) as session:
            result = session.execute(
                delete(Expense)
                .where(Expense.id.in_(ids), Expense.user_id == owner_id)
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount
    except SQLAlchemyError as e:
        logger.exception("Error deleting expenses")
        raise DeleteFailed("there was an error processing the delete") from e
    logger.debug("Deleted %d of %d requested expenses", deleted, len(ids))
    return deleted


__all__ = [
    "create_expense",
    "get_expense",
    "update_expense",
    "delete_expenses",
]
