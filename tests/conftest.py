"""Pytest configuration for test isolation.

Every test gets its own file-backed SQLite database. The shared engine in
``ledger_db.client`` is bound to one URL at a time, so it is disposed before
and after each test and ``DATABASE_URL`` points at the test's database.
"""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from ledger_db.client import dispose_engine

from tests.helpers.db import bootstrap_sqlite_db


@pytest.fixture(autouse=True)
def database_url(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[str]:
    dispose_engine()
    url = bootstrap_sqlite_db(tmp_path / "ledger.db")
    monkeypatch.setenv("DATABASE_URL", url)
    yield url
    dispose_engine()
