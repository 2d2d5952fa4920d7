"""DB helpers for tests: bootstrap a temporary SQLite DB and count rows."""

from __future__ import annotations

from pathlib import Path

from ledger_db import Base
from ledger_db.client import get_engine, session_scope
from sqlalchemy import func, select


def bootstrap_sqlite_db(db_file: Path) -> str:
    """Create a SQLite database file, initialize schema, and return the URL.

    Using a file-backed SQLite DB ensures multiple SQLAlchemy connections share
    the same state (in-memory DBs are per-connection by default).
    """

    url = f"sqlite+pysqlite:///{db_file}"
    db_file.parent.mkdir(parents=True, exist_ok=True)
    engine = get_engine(database_url=url)

    Base.metadata.create_all(bind=engine)
    return url


def count_rows(model, *where) -> int:
    """Return the number of committed rows of ``model`` matching ``where``."""

    with session_scope() as session:
        return session.execute(select(func.count()).select_from(model).where(*where)).scalar_one()
