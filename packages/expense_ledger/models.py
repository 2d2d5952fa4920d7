"""Input models, parsing helpers and result shapes for ``expense_ledger``.

Inputs arrive as loosely typed mappings (JSON bodies, CSV rows). The pydantic
models here coerce them into canonical Python values:

- amounts become ``Decimal`` rounded to cents; zero and negative values are
  accepted (refunds);
- dates become ``datetime.date`` (``YYYY-MM-DD`` strings or ``date`` objects);
- store/category labels are trimmed and single-spaced, blank means "none".

Read results are small frozen dataclasses so callers can serialize them
without touching ORM state.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Mapping
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, field_validator

from .errors import ValidationError

_CENTS = Decimal("0.01")
# Expense.amount is Numeric(12, 2): at most ten digits before the point.
_MAX_INTEGER_DIGITS = 10


# ---------------------------------------------------------------------------
# Parsing helpers
# ---------------------------------------------------------------------------


def normalize_label(raw: Any) -> str | None:
    """Return a trimmed, single-spaced label, or ``None`` when blank."""

    if raw is None:
        return None
    s = " ".join(str(raw).split())
    return s if s else None


def label_key(label: str) -> str:
    """Lookup key used for dimension dedup: normalized and lower-cased."""

    return " ".join(label.split()).casefold()


def parse_amount(raw: Any) -> Decimal | None:
    """Parse ``raw`` into a cent-rounded ``Decimal``.

    Returns ``None`` for a missing or blank value and raises ``ValueError``
    when the value is present but not a finite number or does not fit the
    amount column.
    """

    if raw is None:
        return None
    if isinstance(raw, bool):
        raise ValueError(f"not a number: {raw!r}")
    if isinstance(raw, float) and not math.isfinite(raw):
        raise ValueError(f"not a finite number: {raw!r}")
    s = str(raw).strip()
    if not s:
        return None
    try:
        d = Decimal(s)
    except InvalidOperation:
        raise ValueError(f"not a number: {raw!r}") from None
    if not d.is_finite():
        raise ValueError(f"not a finite number: {raw!r}")
    try:
        q = d.quantize(_CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        raise ValueError(f"amount out of range: {raw!r}") from None
    if q.adjusted() >= _MAX_INTEGER_DIGITS:
        raise ValueError(f"amount out of range: {raw!r}")
    return q


def parse_date(raw: Any) -> dt.date | None:
    """Parse an ISO ``YYYY-MM-DD`` string (or ``date``) into a ``date``.

    Returns ``None`` for a missing or blank value and raises ``ValueError``
    on anything else that does not parse.
    """

    if raw is None:
        return None
    if isinstance(raw, dt.datetime):
        return raw.date()
    if isinstance(raw, dt.date):
        return raw
    s = str(raw).strip()
    if not s:
        return None
    try:
        if len(s) > 10 and s[10] in "T ":
            # Full timestamps ("2024-01-05T10:30:00Z") keep their calendar date.
            return dt.datetime.fromisoformat(s).date()
        return dt.date.fromisoformat(s)
    except ValueError:
        raise ValueError(f"not a YYYY-MM-DD date: {raw!r}") from None


# ---------------------------------------------------------------------------
# Input models
# ---------------------------------------------------------------------------


class TransactionInput(BaseModel):
    """One row of a bulk upload.

    Missing amount defaults to zero; missing date/store/category to ``None``.
    A present but malformed amount or date fails validation.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    amount: Decimal = Decimal("0.00")
    date: dt.date | None = None
    store: str | None = None
    category: str | None = None

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> Decimal:
        parsed = parse_amount(v)
        return parsed if parsed is not None else Decimal("0.00")

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v: Any) -> dt.date | None:
        return parse_date(v)

    @field_validator("store", "category", mode="before")
    @classmethod
    def _label(cls, v: Any) -> str | None:
        return normalize_label(v)


class NewExpense(BaseModel):
    """A single expense created by its owner; amount and date are required."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    amount: Decimal
    date: dt.date
    store: str | None = None
    category: str | None = None

    @field_validator("store", "category", mode="before")
    @classmethod
    def _label(cls, v: Any) -> str | None:
        return normalize_label(v)

    @field_validator("amount", mode="before")
    @classmethod
    def _amount(cls, v: Any) -> Decimal:
        parsed = parse_amount(v)
        if parsed is None:
            raise ValueError("amount is required")
        return parsed

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v: Any) -> dt.date:
        parsed = parse_date(v)
        if parsed is None:
            raise ValueError("date is required")
        return parsed


class ExpenseChanges(BaseModel):
    """Partial update payload.

    Only keys present in the payload are considered (``model_fields_set``).
    ``store``/``category`` set to ``""`` or ``None`` clear the reference.
    ``amount`` is kept raw here because an unparseable amount is ignored
    rather than rejected.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    amount: Any = None
    date: dt.date | None = None
    store: str | None = None
    category: str | None = None

    @field_validator("date", mode="before")
    @classmethod
    def _date(cls, v: Any) -> dt.date | None:
        return parse_date(v)

    @field_validator("store", "category", mode="before")
    @classmethod
    def _label(cls, v: Any) -> str | None:
        return normalize_label(v)

    def parsed_amount(self) -> Decimal | None:
        if "amount" not in self.model_fields_set:
            return None
        try:
            return parse_amount(self.amount)
        except ValueError:
            return None


M = TypeVar("M", bound=BaseModel)


def coerce_input(model: type[M], data: M | Mapping[str, Any]) -> M:
    """Validate ``data`` into ``model``, raising the ledger's ``ValidationError``."""

    from pydantic import ValidationError as PydanticValidationError

    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        fields = ", ".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise ValidationError(f"invalid {model.__name__}: {fields or 'payload'}") from e


# ---------------------------------------------------------------------------
# Date range
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DateRange:
    """Optional inclusive bounds on ``Expense.date``.

    The range filters only when both bounds are given; a lone ``start`` or
    ``end`` leaves reports unconstrained.
    """

    start: dt.date | None = None
    end: dt.date | None = None

    def __post_init__(self) -> None:
        if self.start is not None and self.end is not None and self.start > self.end:
            raise ValidationError("date range start must not be after its end")

    @property
    def bounded(self) -> bool:
        return self.start is not None and self.end is not None

    @classmethod
    def parse(cls, start: Any = None, end: Any = None) -> DateRange:
        try:
            return cls(parse_date(start), parse_date(end))
        except ValueError as e:
            raise ValidationError(str(e)) from e


ALL_DATES = DateRange()


# ---------------------------------------------------------------------------
# Result shapes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class IngestResult:
    inserted: int


@dataclass(frozen=True, slots=True)
class ExpenseRecord:
    id: int
    amount: Decimal
    date: dt.date | None
    store: str | None
    category: str | None


@dataclass(frozen=True, slots=True)
class DailyTotal:
    date: dt.date | None
    amount: Decimal


@dataclass(frozen=True, slots=True)
class MonthlyTotal:
    month: dt.date
    amount: Decimal


@dataclass(frozen=True, slots=True)
class DimensionDetailRow:
    """An expense within one store/category, labelled with the other dimension."""

    id: int
    amount: Decimal
    date: dt.date | None
    label: str | None


@dataclass(frozen=True, slots=True)
class DimensionTotal:
    id: int
    name: str
    amount: Decimal


@dataclass(frozen=True, slots=True)
class DimensionRef:
    id: int
    name: str


__all__ = [
    "normalize_label",
    "label_key",
    "parse_amount",
    "parse_date",
    "TransactionInput",
    "NewExpense",
    "ExpenseChanges",
    "coerce_input",
    "DateRange",
    "ALL_DATES",
    "IngestResult",
    "ExpenseRecord",
    "DailyTotal",
    "MonthlyTotal",
    "DimensionDetailRow",
    "DimensionTotal",
    "DimensionRef",
]
