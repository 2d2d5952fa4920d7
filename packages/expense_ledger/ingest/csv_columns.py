"""Adapter for turning a user-mapped CSV export into upload records.

Bank exports disagree on column names, so the caller says which header holds
each field. Output dict keys: ``amount, date, store, category``.

Mapping rules:
- ``store``/``category``: lower-cased, then capitalized at word and hyphen
  boundaries (``"WHOLE FOODS-MKT"`` -> ``"Whole Foods-Mkt"``); blank -> ``None``
- ``amount``: trimmed string; blank -> ``"0"``
- ``date``: normalized to ``YYYY-MM-DD`` when parseable (ISO, ``MM/DD/YYYY``,
  ``MM/DD/YY``); other non-blank values pass through unchanged so the
  ingestion pipeline rejects the batch instead of silently dropping a date
"""

from __future__ import annotations

import csv
import re
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from datetime import datetime
from os import PathLike
from pathlib import Path
from typing import Any

_BOUNDARY_RE = re.compile(r"(^|\s|-)(\S)")


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """Header names for each upload field; ``None`` means "not present"."""

    amount: str | None = None
    date: str | None = None
    store: str | None = None
    category: str | None = None

    def headers(self) -> list[str]:
        return [h for h in (self.amount, self.date, self.store, self.category) if h]


def _capitalize_label(value: str | None) -> str | None:
    if value is None:
        return None
    s = " ".join(value.split()).lower()
    if not s:
        return None
    return _BOUNDARY_RE.sub(lambda m: m.group(1) + m.group(2).upper(), s)


def _normalize_date(value: str | None) -> str | None:
    if value is None:
        return None
    s = value.strip()
    if not s:
        return None
    for fmt in ("%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y"):
        try:
            return datetime.strptime(s, fmt).date().isoformat()
        except ValueError:
            continue
    return s


def _cell(row: Mapping[str, str | None], header: str | None) -> str | None:
    return row.get(header) if header else None


def to_records(
    rows: Iterable[Mapping[str, str | None]], mapping: ColumnMapping
) -> Iterator[dict[str, Any]]:
    """Convert CSV rows to upload records using ``mapping``."""

    for row in rows:
        amount_raw = _cell(row, mapping.amount)
        amount = amount_raw.strip() if amount_raw is not None else ""
        yield {
            "amount": amount or "0",
            "date": _normalize_date(_cell(row, mapping.date)),
            "store": _capitalize_label(_cell(row, mapping.store)),
            "category": _capitalize_label(_cell(row, mapping.category)),
        }


def load_records_from_csv(
    csv_path: str | PathLike[str], mapping: ColumnMapping
) -> list[dict[str, Any]]:
    """Read ``csv_path`` and return upload records.

    Raises ``csv.Error`` when the file has no header row or a mapped header is
    missing.
    """

    p = Path(csv_path)
    with p.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        headers_set = set(reader.fieldnames or [])
        if not headers_set:
            raise csv.Error(f"CSV appears to have no header row: {csv_path}")
        missing = sorted(h for h in mapping.headers() if h not in headers_set)
        if missing:
            raise csv.Error("CSV is missing mapped columns: " + ", ".join(missing))
        return list(to_records(reader, mapping))


__all__ = ["ColumnMapping", "to_records", "load_records_from_csv"]
