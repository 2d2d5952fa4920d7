"""Store/category dimensions and the find-or-create resolver.

Dimensions form a closed set (:class:`Dimension`). Code that has to treat
stores and categories differently goes through :func:`dimension_meta`, which
maps each kind to its model, its foreign key on ``Expense`` and its sibling
dimension.

Resolution is find-or-create on the normalized label (``name_norm``). The
``name_norm`` column is unique in the database; creation uses an
``INSERT ... ON CONFLICT DO NOTHING`` upsert where the dialect supports it and
re-reads the row afterwards. Other dialects fall back to a SAVEPOINT insert
that treats an ``IntegrityError`` as "someone else won the race". Either way a
label resolves to the same id no matter how many callers race on it.

Callers own the transaction: every function takes the active ``Session``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from ledger_db.models.expenses import Category, Expense, Store
from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import InstrumentedAttribute, Session

from .errors import DimensionConflict, ValidationError
from .logging_setup import get_logger
from .models import label_key, normalize_label

logger = get_logger(__name__)

# One initial attempt plus one retry after a conflict.
_MAX_ATTEMPTS = 2


class Dimension(StrEnum):
    CATEGORY = "category"
    STORE = "store"

    @classmethod
    def parse(cls, raw: Any) -> Dimension:
        if isinstance(raw, Dimension):
            return raw
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise ValidationError(f"unknown dimension kind: {raw!r}") from None


@dataclass(frozen=True, slots=True)
class DimensionMeta:
    model: type[Store] | type[Category]
    # Foreign key on ``Expense`` pointing at ``model``.
    fk: InstrumentedAttribute[int | None]
    other: Dimension


_DIMENSIONS: dict[Dimension, DimensionMeta] = {
    Dimension.CATEGORY: DimensionMeta(Category, Expense.category_id, Dimension.STORE),
    Dimension.STORE: DimensionMeta(Store, Expense.store_id, Dimension.CATEGORY),
}

_UPSERT_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def dimension_meta(kind: Dimension | str) -> DimensionMeta:
    return _DIMENSIONS[Dimension.parse(kind)]


def _find(session: Session, model: type[Store] | type[Category], key: str) -> int | None:
    return session.execute(select(model.id).where(model.name_norm == key)).scalar_one_or_none()


def _insert_if_absent(
    session: Session, model: type[Store] | type[Category], name: str, key: str
) -> None:
    insert_fn = _UPSERT_INSERTS.get(session.get_bind().dialect.name)
    if insert_fn is not None:
        stmt = (
            insert_fn(model)
            .values(name=name, name_norm=key)
            .on_conflict_do_nothing(index_elements=["name_norm"])
        )
        session.execute(stmt)
        return

    try:
        with session.begin_nested():
            session.add(model(name=name, name_norm=key))
    except IntegrityError:
        logger.debug("%s %r inserted concurrently", model.__tablename__, key)


def resolve_dimension(session: Session, kind: Dimension | str, label: Any) -> int | None:
    """Return the id for ``label`` in the ``kind`` table, creating it if absent.

    Blank labels resolve to ``None`` and never create a row.
    """

    name = normalize_label(label)
    if name is None:
        return None
    model = dimension_meta(kind).model
    key = label_key(name)

    found = _find(session, model, key)
    if found is not None:
        return found

    for attempt in range(1, _MAX_ATTEMPTS + 1):
        _insert_if_absent(session, model, name, key)
        found = _find(session, model, key)
        if found is not None:
            if attempt > 1:
                logger.info("Resolved %s %r after retry", model.__tablename__, key)
            return found
        logger.warning(
            "Conflict resolving %s %r (attempt %d/%d)",
            model.__tablename__,
            key,
            attempt,
            _MAX_ATTEMPTS,
        )
    raise DimensionConflict(f"could not resolve {Dimension.parse(kind).value} label")


def resolve_dimensions(
    session: Session, kind: Dimension | str, labels: Iterable[Any]
) -> dict[str, int]:
    """Resolve each distinct label once; return ``{label_key: id}``.

    The first spelling seen for a key becomes the display name when the row
    has to be created.
    """

    first_seen: dict[str, str] = {}
    for raw in labels:
        name = normalize_label(raw)
        if name is not None:
            first_seen.setdefault(label_key(name), name)

    resolved: dict[str, int] = {}
    for key, name in first_seen.items():
        dim_id = resolve_dimension(session, kind, name)
        assert dim_id is not None  # name is non-blank
        resolved[key] = dim_id
    logger.debug("Resolved %d distinct %s labels", len(resolved), Dimension.parse(kind).value)
    return resolved


__all__ = [
    "Dimension",
    "DimensionMeta",
    "dimension_meta",
    "resolve_dimension",
    "resolve_dimensions",
]
