"""Sort options accepted from clients.

Clients pick a sort key and a direction by name. Both are checked against a
per-report allow-list and turned into a :class:`SortSpec`; report queries map
the key to a column expression themselves, so client text never reaches SQL.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from sqlalchemy.sql.elements import ColumnElement

from .errors import InvalidSort

SUMMARY_SORT_KEYS: frozenset[str] = frozenset({"amount", "date", "store", "category"})
AGGREGATE_SORT_KEYS: frozenset[str] = frozenset({"amount", "name"})


class SortDirection(StrEnum):
    ASC = "asc"
    DESC = "desc"


@dataclass(frozen=True, slots=True)
class SortSpec:
    key: str
    direction: SortDirection

    def order_by(self, columns: Mapping[str, ColumnElement[Any]]) -> ColumnElement[Any]:
        """Render this sort against ``columns`` (key -> column expression)."""

        column = columns[self.key]
        return column.asc() if self.direction is SortDirection.ASC else column.desc()


def validate_sort(sort_key: Any, direction: Any, *, allowed: frozenset[str]) -> SortSpec:
    """Return a :class:`SortSpec` or raise :class:`InvalidSort`.

    Values are compared after trimming and lower-casing. Anything outside
    ``allowed`` or ``{"asc", "desc"}`` is rejected.
    """

    if not isinstance(sort_key, str) or not isinstance(direction, str):
        raise InvalidSort(sort_key, direction)
    key = sort_key.strip().lower()
    if key not in allowed:
        raise InvalidSort(sort_key, direction)
    try:
        parsed_direction = SortDirection(direction.strip().lower())
    except ValueError:
        raise InvalidSort(sort_key, direction) from None
    return SortSpec(key, parsed_direction)


def validate_summary_sort(sort_key: Any, direction: Any) -> SortSpec:
    return validate_sort(sort_key, direction, allowed=SUMMARY_SORT_KEYS)


def validate_aggregate_sort(sort_key: Any, direction: Any) -> SortSpec:
    return validate_sort(sort_key, direction, allowed=AGGREGATE_SORT_KEYS)


__all__ = [
    "SUMMARY_SORT_KEYS",
    "AGGREGATE_SORT_KEYS",
    "SortDirection",
    "SortSpec",
    "validate_sort",
    "validate_summary_sort",
    "validate_aggregate_sort",
]
