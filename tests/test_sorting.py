import pytest
from ledger_db.models.expenses import Expense
from sqlalchemy import select

from expense_ledger.errors import InvalidSort
from expense_ledger.sorting import (
    AGGREGATE_SORT_KEYS,
    SUMMARY_SORT_KEYS,
    SortDirection,
    SortSpec,
    validate_aggregate_sort,
    validate_summary_sort,
)


@pytest.mark.parametrize("key", sorted(SUMMARY_SORT_KEYS))
@pytest.mark.parametrize("direction", ["asc", "desc"])
def test_summary_accepts_allow_listed_pairs(key, direction):
    spec = validate_summary_sort(key, direction)
    assert spec == SortSpec(key, SortDirection(direction))


@pytest.mark.parametrize("key", sorted(AGGREGATE_SORT_KEYS))
@pytest.mark.parametrize("direction", ["asc", "desc"])
def test_aggregate_accepts_allow_listed_pairs(key, direction):
    spec = validate_aggregate_sort(key, direction)
    assert spec.key == key
    assert spec.direction is SortDirection(direction)


def test_keys_and_directions_are_trimmed_and_case_folded():
    spec = validate_summary_sort(" Amount ", "DESC")
    assert spec == SortSpec("amount", SortDirection.DESC)


@pytest.mark.parametrize(
    ("key", "direction"),
    [
        ("; DROP", "asc"),
        ("amount; DROP TABLE expenses", "asc"),
        ("amount", "asc; DROP TABLE expenses"),
        ("amount", "sideways"),
        ("name", "asc"),
        ("id", "desc"),
        ("", "asc"),
        (None, "asc"),
        ("date", None),
    ],
)
def test_summary_rejects_anything_else(key, direction):
    with pytest.raises(InvalidSort):
        validate_summary_sort(key, direction)


@pytest.mark.parametrize(
    ("key", "direction"),
    [
        ("; DROP", "asc"),
        ("date", "asc"),
        ("store", "desc"),
        ("category", "asc"),
        ("amount", "down"),
    ],
)
def test_aggregate_rejects_anything_else(key, direction):
    with pytest.raises(InvalidSort):
        validate_aggregate_sort(key, direction)


def test_order_by_renders_the_mapped_column():
    spec = validate_summary_sort("amount", "desc")
    stmt = select(Expense.id).order_by(spec.order_by({"amount": Expense.amount}))
    assert "ORDER BY expenses.amount DESC" in str(stmt)
