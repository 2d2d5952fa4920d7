from datetime import date
from decimal import Decimal

import pytest
from ledger_db.client import session_scope
from ledger_db.models.expenses import Expense, Store
from sqlalchemy.exc import OperationalError

import expense_ledger.expenses as expenses_mod
from expense_ledger.errors import (
    CreateFailed,
    NotFoundOrForbidden,
    TransactionFailure,
    ValidationError,
)
from expense_ledger.expenses import (
    create_expense,
    delete_expenses,
    get_expense,
    update_expense,
)
from expense_ledger.models import ExpenseRecord
from tests.helpers.db import count_rows

ALICE = 1
BOB = 2


def _add(owner=ALICE, **overrides):
    payload = {"amount": "12.50", "date": "2024-01-05", "store": "Costco", "category": "Groceries"}
    payload.update(overrides)
    return create_expense(owner_id=owner, expense=payload)


def _stored(expense_id):
    with session_scope() as s:
        return s.get(Expense, expense_id)


# ---- create / get -------------------------------------------------------------


def test_create_then_get_returns_resolved_names():
    expense_id = _add()

    assert get_expense(owner_id=ALICE, expense_id=expense_id) == ExpenseRecord(
        id=expense_id,
        amount=Decimal("12.50"),
        date=date(2024, 1, 5),
        store="Costco",
        category="Groceries",
    )


def test_create_without_dimensions_stores_null_references():
    expense_id = _add(store="  ", category=None)

    record = get_expense(owner_id=ALICE, expense_id=expense_id)
    assert record.store is None and record.category is None
    assert count_rows(Store) == 0


def test_create_accepts_zero_and_refunds():
    refund_id = _add(amount="-20")
    zero_id = _add(amount=0)

    assert _stored(refund_id).amount == Decimal("-20.00")
    assert _stored(zero_id).amount == Decimal("0")


@pytest.mark.parametrize(
    "overrides",
    [
        {"amount": None},
        {"amount": ""},
        {"amount": "abc"},
        {"amount": "1e30"},
        {"amount": "12345678901"},
        {"date": None},
        {"date": "not-a-date"},
        {"date": "2024-01-05garbage"},
    ],
)
def test_create_rejects_missing_or_malformed_required_fields(overrides):
    with pytest.raises(ValidationError):
        _add(**overrides)
    assert count_rows(Expense) == 0
    assert count_rows(Store) == 0


def test_create_storage_failure_rolls_back(monkeypatch):
    def _boom(session, kind, label):
        raise OperationalError("INSERT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(expenses_mod, "resolve_dimension", _boom)

    with pytest.raises(CreateFailed) as excinfo:
        _add()
    assert isinstance(excinfo.value, TransactionFailure)
    assert "disk" not in str(excinfo.value)
    assert count_rows(Expense) == 0


def test_create_accepts_largest_amount_and_timestamp_dates():
    expense_id = _add(amount="9999999999.99", date="2024-01-05T23:30:00Z")

    row = _stored(expense_id)
    assert row.amount == Decimal("9999999999.99")
    assert row.date == date(2024, 1, 5)


def test_get_is_scoped_to_owner():
    expense_id = _add(owner=ALICE)

    with pytest.raises(NotFoundOrForbidden):
        get_expense(owner_id=BOB, expense_id=expense_id)
    with pytest.raises(NotFoundOrForbidden):
        get_expense(owner_id=ALICE, expense_id=expense_id + 1000)


# ---- update -------------------------------------------------------------------


def test_update_only_changes_supplied_fields():
    expense_id = _add()

    update_expense(owner_id=ALICE, expense_id=expense_id, changes={"category": "Household"})

    record = get_expense(owner_id=ALICE, expense_id=expense_id)
    assert record.category == "Household"
    assert record.store == "Costco"
    assert record.amount == Decimal("12.50")
    assert record.date == date(2024, 1, 5)


def test_update_with_empty_store_clears_the_reference():
    expense_id = _add()

    update_expense(owner_id=ALICE, expense_id=expense_id, changes={"store": ""})

    assert _stored(expense_id).store_id is None
    assert get_expense(owner_id=ALICE, expense_id=expense_id).category == "Groceries"
    # The store row itself is never deleted.
    assert count_rows(Store) == 1


def test_update_with_null_category_clears_the_reference():
    expense_id = _add()

    update_expense(owner_id=ALICE, expense_id=expense_id, changes={"category": None})

    assert _stored(expense_id).category_id is None


def test_update_store_label_is_trimmed_and_resolved():
    expense_id = _add()

    update_expense(owner_id=ALICE, expense_id=expense_id, changes={"store": "  costco  "})

    assert count_rows(Store) == 1
    assert get_expense(owner_id=ALICE, expense_id=expense_id).store == "Costco"


@pytest.mark.parametrize("amount", ["abc", "", None, "NaN", "1e30"])
def test_update_ignores_unusable_amounts(amount):
    expense_id = _add()

    update_expense(owner_id=ALICE, expense_id=expense_id, changes={"amount": amount})

    assert _stored(expense_id).amount == Decimal("12.50")


def test_update_applies_valid_amount_and_date():
    expense_id = _add()

    update_expense(
        owner_id=ALICE, expense_id=expense_id, changes={"amount": "-4.5", "date": "2024-03-01"}
    )

    row = _stored(expense_id)
    assert row.amount == Decimal("-4.50")
    assert row.date == date(2024, 3, 1)


def test_update_rejects_malformed_date():
    expense_id = _add()

    with pytest.raises(ValidationError):
        update_expense(owner_id=ALICE, expense_id=expense_id, changes={"date": "01/03/2024"})
    assert _stored(expense_id).date == date(2024, 1, 5)


def test_update_of_foreign_or_missing_expense_is_not_found():
    expense_id = _add(owner=ALICE)

    with pytest.raises(NotFoundOrForbidden):
        update_expense(owner_id=BOB, expense_id=expense_id, changes={"amount": "1"})
    with pytest.raises(NotFoundOrForbidden):
        update_expense(owner_id=ALICE, expense_id=expense_id + 1000, changes={"amount": "1"})

    assert _stored(expense_id).amount == Decimal("12.50")


def test_rejected_update_does_not_create_dimensions():
    expense_id = _add(owner=ALICE)

    with pytest.raises(NotFoundOrForbidden):
        update_expense(owner_id=BOB, expense_id=expense_id, changes={"store": "Brand New"})
    assert count_rows(Store) == 1


# ---- delete -------------------------------------------------------------------


def test_delete_only_removes_callers_rows():
    mine = [_add(owner=ALICE), _add(owner=ALICE)]
    theirs = _add(owner=BOB)

    deleted = delete_expenses(owner_id=ALICE, expense_ids=[*mine, theirs, 9999])

    assert deleted == 2
    assert count_rows(Expense, Expense.user_id == ALICE) == 0
    assert count_rows(Expense, Expense.id == theirs) == 1


def test_delete_of_only_foreign_ids_is_not_an_error():
    theirs = _add(owner=BOB)

    assert delete_expenses(owner_id=ALICE, expense_ids=[theirs]) == 0
    assert count_rows(Expense) == 1


def test_delete_with_empty_id_list_is_a_no_op():
    _add()
    assert delete_expenses(owner_id=ALICE, expense_ids=[]) == 0
    assert count_rows(Expense) == 1


@pytest.mark.parametrize(("owner", "ids"), [(None, [1]), (ALICE, None), (None, None)])
def test_delete_requires_owner_and_ids(owner, ids):
    _add()
    with pytest.raises(ValidationError):
        delete_expenses(owner_id=owner, expense_ids=ids)
    assert count_rows(Expense) == 1
