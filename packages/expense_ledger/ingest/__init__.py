"""Bulk upload: CSV column mapping and the all-or-nothing ingestion pipeline."""

from .csv_columns import ColumnMapping, load_records_from_csv, to_records
from .pipeline import ingest_expenses, insert_batch

__all__ = [
    "ColumnMapping",
    "load_records_from_csv",
    "to_records",
    "ingest_expenses",
    "insert_batch",
]
