import csv
import textwrap
from pathlib import Path

import pytest

from expense_ledger.ingest.csv_columns import ColumnMapping, load_records_from_csv, to_records

MAPPING = ColumnMapping(amount="Amount", date="Posted", store="Payee", category="Type")


def _write(tmp_path: Path, text: str) -> Path:
    p = tmp_path / "export.csv"
    p.write_text(textwrap.dedent(text).lstrip("\n"), encoding="utf-8")
    return p


def test_maps_columns_and_normalizes_values(tmp_path):
    p = _write(
        tmp_path,
        """
        Posted,Payee,Amount,Type,Memo
        01/05/2024,WHOLE FOODS-MKT,12.50,groceries,weekly shop
        2024-01-06,  costco  ,,HOME goods,
        1/7/24,,3,,
        """,
    )

    assert load_records_from_csv(p, MAPPING) == [
        {"amount": "12.50", "date": "2024-01-05", "store": "Whole Foods-Mkt", "category": "Groceries"},
        {"amount": "0", "date": "2024-01-06", "store": "Costco", "category": "Home Goods"},
        {"amount": "3", "date": "2024-01-07", "store": None, "category": None},
    ]


def test_unparseable_dates_pass_through_for_the_pipeline_to_reject():
    rows = [{"Posted": "sometime in May", "Amount": "1"}]
    (record,) = to_records(rows, ColumnMapping(amount="Amount", date="Posted"))
    assert record["date"] == "sometime in May"


def test_unmapped_fields_are_none():
    (record,) = to_records([{"Amount": "5"}], ColumnMapping(amount="Amount"))
    assert record == {"amount": "5", "date": None, "store": None, "category": None}


def test_missing_mapped_header_is_reported(tmp_path):
    p = _write(
        tmp_path,
        """
        Posted,Amount
        2024-01-05,1
        """,
    )
    with pytest.raises(csv.Error, match="Payee"):
        load_records_from_csv(p, MAPPING)


def test_empty_file_has_no_header(tmp_path):
    p = tmp_path / "empty.csv"
    p.write_text("", encoding="utf-8")
    with pytest.raises(csv.Error, match="no header"):
        load_records_from_csv(p, MAPPING)
