"""Bulk ingestion of uploaded expense rows.

A batch is all-or-nothing. Within one ``session_scope`` the pipeline:

1. validates every record (malformed amount/date fails the whole batch);
2. collects the distinct non-blank store and category labels;
3. resolves each distinct label once (find-or-create);
4. inserts every fact row with one parameterized ``executemany``.

Any failure rolls the scope back, so no dimension row or expense from the
batch is ever committed on its own.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from ledger_db.client import session_scope
from ledger_db.models.expenses import Expense
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..dimensions import Dimension, resolve_dimensions
from ..errors import DimensionConflict, IngestionFailed
from ..logging_setup import get_logger
from ..models import IngestResult, TransactionInput, label_key

logger = get_logger(__name__)


def _label_id(resolved: Mapping[str, int], label: str | None) -> int | None:
    return resolved[label_key(label)] if label is not None else None


def insert_batch(
    session: Session,
    *,
    owner_id: int,
    records: Sequence[TransactionInput],
) -> int:
    """Resolve dimensions and insert ``records`` using the caller's session."""

    if not records:
        return 0

    stores = resolve_dimensions(session, Dimension.STORE, (r.store for r in records))
    categories = resolve_dimensions(session, Dimension.CATEGORY, (r.category for r in records))

    rows: list[dict[str, Any]] = [
        {
            "user_id": owner_id,
            "amount": r.amount,
            "date": r.date,
            "store_id": _label_id(stores, r.store),
            "category_id": _label_id(categories, r.category),
        }
        for r in records
    ]
    session.execute(insert(Expense), rows)
    return len(rows)


def ingest_expenses(
    *,
    owner_id: int,
    records: Sequence[TransactionInput | Mapping[str, Any]] | None,
    database_url: str | None = None,
) -> IngestResult:
    """Persist an uploaded batch of expenses for ``owner_id``.

    Returns the number of inserted rows. An empty batch succeeds without
    touching the database. Raises :class:`IngestionFailed` when anything in
    the batch fails; nothing from the batch is committed in that case.
    """

    if not records:
        logger.info("No expenses were sent for upload")
        return IngestResult(inserted=0)

    logger.info("Uploading %d expenses for user %s", len(records), owner_id)
    try:
        with session_scope(database_url=database_url) as session:
            parsed = [
                r if isinstance(r, TransactionInput) else TransactionInput.model_validate(r)
                for r in records
            ]
            inserted = insert_batch(session, owner_id=owner_id, records=parsed)
    except (PydanticValidationError, DimensionConflict, SQLAlchemyError) as e:
        logger.exception("Error inserting uploaded expenses")
        raise IngestionFailed("upload failed; no expenses were saved") from e

    logger.info("Upload complete: %d expenses", inserted)
    return IngestResult(inserted=inserted)


__all__ = ["insert_batch", "ingest_expenses"]
