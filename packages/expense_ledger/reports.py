"""Read-side reports over an owner's expenses.

Every report filters on ``Expense.user_id`` and an optional inclusive
:class:`~expense_ledger.models.DateRange`. Store/category rows are global, but
they are only ever reached through the owner's expenses, so one user never
sees another user's labels or totals.

Sort options are validated (:mod:`expense_ledger.sorting`) before a session
is opened; an invalid option raises without issuing any query.
"""

from __future__ import annotations

from typing import Any

from ledger_db.client import session_scope
from ledger_db.models.expenses import Category, Expense, Store
from sqlalchemy import Date, Select, func, select
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.elements import ColumnElement
from sqlalchemy.sql.functions import FunctionElement

from .dimensions import Dimension, dimension_meta
from .errors import MissingDimensionId
from .logging_setup import get_logger
from .models import (
    ALL_DATES,
    DailyTotal,
    DateRange,
    DimensionDetailRow,
    DimensionRef,
    DimensionTotal,
    ExpenseRecord,
    MonthlyTotal,
)
from .sorting import SortSpec, validate_aggregate_sort, validate_summary_sort

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# SQL helpers
# ---------------------------------------------------------------------------


class month_start(FunctionElement):
    """First day of the calendar month of a date expression."""

    type = Date()
    name = "month_start"
    inherit_cache = True


@compiles(month_start)
def _month_start_default(element: month_start, compiler: Any, **kw: Any) -> str:
    return "CAST(date_trunc('month', %s) AS DATE)" % compiler.process(element.clauses, **kw)


@compiles(month_start, "sqlite")
def _month_start_sqlite(element: month_start, compiler: Any, **kw: Any) -> str:
    return "date(%s, 'start of month')" % compiler.process(element.clauses, **kw)


def _date_filters(owner_id: int, date_range: DateRange) -> list[ColumnElement[bool]]:
    conds: list[ColumnElement[bool]] = [Expense.user_id == owner_id]
    if date_range.bounded:
        conds.append(Expense.date.between(date_range.start, date_range.end))
    return conds


def _require_dimension_id(kind: Dimension, dimension_id: int | None) -> int:
    if dimension_id is None:
        raise MissingDimensionId(kind.value)
    return dimension_id


def _run(stmt: Select[Any], database_url: str | None) -> list[Any]:
    with session_scope(database_url=database_url) as session:
        return list(session.execute(stmt).all())


# ---------------------------------------------------------------------------
# Reports
# ---------------------------------------------------------------------------


def list_summary(
    *,
    owner_id: int,
    date_range: DateRange = ALL_DATES,
    sort_by: str = "date",
    direction: str = "asc",
    database_url: str | None = None,
) -> list[ExpenseRecord]:
    """One row per expense with store and category names attached."""

    sort: SortSpec = validate_summary_sort(sort_by, direction)
    logger.info("Serving expense summary for user %s", owner_id)
    columns: dict[str, ColumnElement[Any]] = {
        "amount": Expense.amount,
        "date": Expense.date,
        "store": Store.name,
        "category": Category.name,
    }
    stmt = (
        select(Expense.id, Expense.amount, Expense.date, Store.name, Category.name)
        .outerjoin(Store, Expense.store_id == Store.id)
        .outerjoin(Category, Expense.category_id == Category.id)
        .where(*_date_filters(owner_id, date_range))
        .order_by(sort.order_by(columns), Expense.id)
    )
    return [ExpenseRecord(*row) for row in _run(stmt, database_url)]


def daily_overview(
    *,
    owner_id: int,
    date_range: DateRange = ALL_DATES,
    database_url: str | None = None,
) -> list[DailyTotal]:
    """Sum of amounts per calendar date, oldest first."""

    logger.info("Serving daily overview for user %s", owner_id)
    stmt = (
        select(Expense.date, func.sum(Expense.amount))
        .where(*_date_filters(owner_id, date_range))
        .group_by(Expense.date)
        .order_by(Expense.date)
    )
    return [DailyTotal(day, total) for day, total in _run(stmt, database_url)]


def monthly_trend(
    *,
    kind: Dimension | str,
    dimension_id: int | None,
    owner_id: int,
    date_range: DateRange = ALL_DATES,
    database_url: str | None = None,
) -> list[MonthlyTotal]:
    """Monthly totals for one store or category, oldest month first."""

    kind = Dimension.parse(kind)
    dim_id = _require_dimension_id(kind, dimension_id)
    logger.info("Serving %s trends for user %s", kind.value, owner_id)
    meta = dimension_meta(kind)
    month = month_start(Expense.date).label("month")
    stmt = (
        select(month, func.sum(Expense.amount))
        .where(*_date_filters(owner_id, date_range), meta.fk == dim_id)
        # Undated expenses have no month to fall into.
        .where(Expense.date.is_not(None))
        .group_by(month)
        .order_by(month)
    )
    return [MonthlyTotal(m, total) for m, total in _run(stmt, database_url)]


def dimension_detail(
    *,
    kind: Dimension | str,
    dimension_id: int | None,
    owner_id: int,
    date_range: DateRange = ALL_DATES,
    database_url: str | None = None,
) -> list[DimensionDetailRow]:
    """Expenses for one store or category, each labelled with the other dimension."""

    kind = Dimension.parse(kind)
    dim_id = _require_dimension_id(kind, dimension_id)
    logger.info("Serving %s details for user %s", kind.value, owner_id)
    meta = dimension_meta(kind)
    other = dimension_meta(meta.other)
    stmt = (
        select(Expense.id, Expense.amount, Expense.date, other.model.name)
        .outerjoin(other.model, other.fk == other.model.id)
        .where(*_date_filters(owner_id, date_range), meta.fk == dim_id)
        .order_by(Expense.date, Expense.id)
    )
    return [DimensionDetailRow(*row) for row in _run(stmt, database_url)]


def aggregate_by_dimension(
    *,
    kind: Dimension | str,
    owner_id: int,
    date_range: DateRange = ALL_DATES,
    sort_by: str = "amount",
    direction: str = "desc",
    database_url: str | None = None,
) -> list[DimensionTotal]:
    """Total per store or category that has at least one matching expense."""

    sort = validate_aggregate_sort(sort_by, direction)
    kind = Dimension.parse(kind)
    logger.info("Serving aggregated summary by %s for user %s", kind.value, owner_id)
    model = dimension_meta(kind).model
    total = func.sum(Expense.amount)
    stmt = (
        select(model.id, model.name, total)
        .join(Expense, dimension_meta(kind).fk == model.id)
        .where(*_date_filters(owner_id, date_range))
        .group_by(model.id, model.name)
        .order_by(sort.order_by({"amount": total, "name": model.name}), model.id)
    )
    return [DimensionTotal(*row) for row in _run(stmt, database_url)]


def _used_by_owner(kind: Dimension, owner_id: int) -> Select[Any]:
    meta = dimension_meta(kind)
    used = select(meta.fk).where(Expense.user_id == owner_id, meta.fk.is_not(None))
    return select(meta.model.id, meta.model.name).where(meta.model.id.in_(used))


def list_dimension_labels(
    *,
    kind: Dimension | str,
    owner_id: int,
    database_url: str | None = None,
) -> list[str]:
    """Distinct store or category names the owner has used, alphabetically."""

    kind = Dimension.parse(kind)
    logger.info("Getting %s labels for user %s", kind.value, owner_id)
    model = dimension_meta(kind).model
    stmt = _used_by_owner(kind, owner_id).order_by(model.name, model.id)
    return [name for _id, name in _run(stmt, database_url)]


def list_dimension_usage(
    *,
    kind: Dimension | str,
    owner_id: int,
    database_url: str | None = None,
) -> list[DimensionRef]:
    """Stores or categories (id and name) the owner has used, for merge tooling."""

    kind = Dimension.parse(kind)
    logger.info("Getting %s usage for user %s", kind.value, owner_id)
    model = dimension_meta(kind).model
    stmt = _used_by_owner(kind, owner_id).order_by(model.name, model.id)
    return [DimensionRef(*row) for row in _run(stmt, database_url)]


__all__ = [
    "month_start",
    "list_summary",
    "daily_overview",
    "monthly_trend",
    "dimension_detail",
    "aggregate_by_dimension",
    "list_dimension_labels",
    "list_dimension_usage",
]
