# ruff: noqa: I001
"""CLI for the ``expense_ledger`` package.

A thin Typer host over :mod:`expense_ledger.api`: each command takes the owner
id the way an authenticated web request would supply it, calls one
operation, and prints the result as JSON. Environment variables (notably
``DATABASE_URL``) are loaded from a local ``.env`` using ``python-dotenv``
before any command runs.
"""

from __future__ import annotations

import csv
import json
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from ledger_db import Base
from ledger_db.client import get_engine
from typer.models import OptionInfo

from . import api
from .errors import ExpenseLedgerError
from .ingest.csv_columns import ColumnMapping, load_records_from_csv
from .logging_setup import configure_logging
from .models import DateRange

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    help="Record expenses and print spending reports.",
)

# Module-level option objects (ruff B008: no calls in parameter defaults).
OWNER_OPTION: OptionInfo = typer.Option(..., "--owner", help="Owner (user) id.")
DATABASE_URL_OPTION: OptionInfo = typer.Option(
    None, "--database-url", help="Override DATABASE_URL (falls back to env var)."
)
START_OPTION: OptionInfo = typer.Option(
    None, "--start", help="Inclusive start date (YYYY-MM-DD); only applied together with --end."
)
END_OPTION: OptionInfo = typer.Option(
    None, "--end", help="Inclusive end date (YYYY-MM-DD); only applied together with --start."
)


def _to_jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list):
        return [_to_jsonable(v) for v in value]
    return value


def _emit(value: Any) -> None:
    typer.echo(json.dumps(_to_jsonable(value), default=str, indent=2))


def _fail(e: Exception) -> typer.Exit:
    print(f"Error: {e}", file=sys.stderr)
    return typer.Exit(1)


@app.command("init-db")
def init_db_cmd(database_url: str | None = DATABASE_URL_OPTION) -> None:
    """Create the expense tables if they do not exist."""

    engine = get_engine(database_url=database_url)
    Base.metadata.create_all(bind=engine)
    typer.echo(f"Schema ready on {engine.url.render_as_string(hide_password=True)}")


@app.command("add")
def add_cmd(
    owner: Annotated[int, OWNER_OPTION],
    amount: Annotated[str, typer.Option(..., help="Amount, e.g. 12.50 (negative for refunds).")],
    date: Annotated[str, typer.Option(..., help="Date (YYYY-MM-DD).")],
    store: Annotated[str | None, typer.Option(help="Store name.")] = None,
    category: Annotated[str | None, typer.Option(help="Category name.")] = None,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Add a single expense."""

    payload = {"amount": amount, "date": date, "store": store, "category": category}
    try:
        expense_id = api.create_expense(
            owner_id=owner, expense=payload, database_url=database_url
        )
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit({"id": expense_id})


@app.command("ingest-csv")
def ingest_csv_cmd(
    csv_path: Annotated[Path, typer.Argument(dir_okay=False, help="CSV file with a header row.")],
    owner: Annotated[int, OWNER_OPTION],
    amount_col: Annotated[str | None, typer.Option(help="Header of the amount column.")] = None,
    date_col: Annotated[str | None, typer.Option(help="Header of the date column.")] = None,
    store_col: Annotated[str | None, typer.Option(help="Header of the store column.")] = None,
    category_col: Annotated[
        str | None, typer.Option(help="Header of the category column.")
    ] = None,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Upload every row of a CSV export as one all-or-nothing batch."""

    mapping = ColumnMapping(
        amount=amount_col, date=date_col, store=store_col, category=category_col
    )
    try:
        records = load_records_from_csv(csv_path, mapping)
    except (OSError, csv.Error) as e:
        raise _fail(e) from e
    try:
        result = api.ingest_expenses(owner_id=owner, records=records, database_url=database_url)
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit(result)


@app.command("get")
def get_cmd(
    expense_id: Annotated[int, typer.Argument(help="Expense id.")],
    owner: Annotated[int, OWNER_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Show one expense."""

    try:
        record = api.get_expense(owner_id=owner, expense_id=expense_id, database_url=database_url)
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit(record)


@app.command("update")
def update_cmd(
    expense_id: Annotated[int, typer.Argument(help="Expense id.")],
    owner: Annotated[int, OWNER_OPTION],
    amount: Annotated[str | None, typer.Option(help="New amount.")] = None,
    date: Annotated[str | None, typer.Option(help="New date (YYYY-MM-DD).")] = None,
    store: Annotated[str | None, typer.Option(help="New store; empty string clears it.")] = None,
    category: Annotated[
        str | None, typer.Option(help="New category; empty string clears it.")
    ] = None,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Change only the given fields of one expense."""

    given = {"amount": amount, "date": date, "store": store, "category": category}
    changes = {k: v for k, v in given.items() if v is not None}
    try:
        api.update_expense(
            owner_id=owner, expense_id=expense_id, changes=changes, database_url=database_url
        )
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit({"message": "Expense updated ok"})


@app.command("delete")
def delete_cmd(
    expense_ids: Annotated[list[int], typer.Argument(help="Expense ids to delete.")],
    owner: Annotated[int, OWNER_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Delete expenses owned by the caller; other ids are ignored."""

    try:
        deleted = api.delete_expenses(
            owner_id=owner, expense_ids=expense_ids, database_url=database_url
        )
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit({"deleted": deleted})


@app.command("summary")
def summary_cmd(
    owner: Annotated[int, OWNER_OPTION],
    start: str | None = START_OPTION,
    end: str | None = END_OPTION,
    sort: Annotated[str, typer.Option(help="amount, date, store or category.")] = "date",
    direction: Annotated[str, typer.Option(help="asc or desc.")] = "asc",
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """List expenses in a period."""

    try:
        rows = api.list_summary(
            owner_id=owner,
            date_range=DateRange.parse(start, end),
            sort_by=sort,
            direction=direction,
            database_url=database_url,
        )
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit(rows)


@app.command("overview")
def overview_cmd(
    owner: Annotated[int, OWNER_OPTION],
    start: str | None = START_OPTION,
    end: str | None = END_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Daily totals in a period."""

    try:
        rows = api.daily_overview(
            owner_id=owner, date_range=DateRange.parse(start, end), database_url=database_url
        )
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit(rows)


@app.command("trends")
def trends_cmd(
    kind: Annotated[str, typer.Argument(help="category or store.")],
    owner: Annotated[int, OWNER_OPTION],
    dimension_id: Annotated[int | None, typer.Option("--id", help="Category/store id.")] = None,
    start: str | None = START_OPTION,
    end: str | None = END_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Monthly totals for one category or store."""

    try:
        rows = api.monthly_trend(
            kind=kind,
            dimension_id=dimension_id,
            owner_id=owner,
            date_range=DateRange.parse(start, end),
            database_url=database_url,
        )
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit(rows)


@app.command("details")
def details_cmd(
    kind: Annotated[str, typer.Argument(help="category or store.")],
    owner: Annotated[int, OWNER_OPTION],
    dimension_id: Annotated[int | None, typer.Option("--id", help="Category/store id.")] = None,
    start: str | None = START_OPTION,
    end: str | None = END_OPTION,
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Expenses for one category or store."""

    try:
        rows = api.dimension_detail(
            kind=kind,
            dimension_id=dimension_id,
            owner_id=owner,
            date_range=DateRange.parse(start, end),
            database_url=database_url,
        )
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit(rows)


@app.command("aggregate")
def aggregate_cmd(
    kind: Annotated[str, typer.Argument(help="category or store.")],
    owner: Annotated[int, OWNER_OPTION],
    start: str | None = START_OPTION,
    end: str | None = END_OPTION,
    sort: Annotated[str, typer.Option(help="amount or name.")] = "amount",
    direction: Annotated[str, typer.Option(help="asc or desc.")] = "desc",
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Totals per category or store."""

    try:
        rows = api.aggregate_by_dimension(
            kind=kind,
            owner_id=owner,
            date_range=DateRange.parse(start, end),
            sort_by=sort,
            direction=direction,
            database_url=database_url,
        )
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit(rows)


@app.command("labels")
def labels_cmd(
    kind: Annotated[str, typer.Argument(help="category or store.")],
    owner: Annotated[int, OWNER_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Names of the categories or stores the owner has used."""

    try:
        names = api.list_dimension_labels(kind=kind, owner_id=owner, database_url=database_url)
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit(names)


@app.command("usage")
def usage_cmd(
    kind: Annotated[str, typer.Argument(help="category or store.")],
    owner: Annotated[int, OWNER_OPTION],
    database_url: str | None = DATABASE_URL_OPTION,
) -> None:
    """Ids and names of the categories or stores the owner has used."""

    try:
        refs = api.list_dimension_usage(kind=kind, owner_id=owner, database_url=database_url)
    except ExpenseLedgerError as e:
        raise _fail(e) from e
    _emit(refs)


@app.callback(invoke_without_command=True)
def _root(ctx: typer.Context) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures package logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()

    if ctx.invoked_subcommand is None:
        typer.echo("No subcommand provided. Use --help to see available commands.")
        raise typer.Exit(1)


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    app()
