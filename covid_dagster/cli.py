from __future__ import annotations

from datetime import date
from pathlib import Path
from typing import Optional

import typer

from covid_dagster.db.bootstrap import ensure_covid_warehouse
from covid_dagster.db.stats_store import insert_daily_stats
from covid_dagster.resources.duckdb_resource import DuckDBResource, default_duckdb_path
from covid_risk.aggregator import aggregate
from covid_risk.errors import DataQualityError
from covid_risk.selector import (
    DEFAULT_CUTOFF_DATE,
    DEFAULT_SCHEMA,
    DEFAULT_TABLE,
    latest_stat_date,
    select_at_risk_states,
)
from covid_risk.stats_loader import load_stats_csv

app = typer.Typer(no_args_is_help=True, help="COVID risk briefing CLI - warehouse and report utilities")

DEFAULT_DUCKDB_PATH = default_duckdb_path()


@app.command(name="db-bootstrap")
def db_bootstrap(
    duckdb_path: str = typer.Option(DEFAULT_DUCKDB_PATH, "--duckdb-path"),
) -> None:
    """Create warehouse schemas + tables in DuckDB.

    Creates: `main_raw.covid_daily_state_stats`, `main_runs.briefing_runs`.
    """

    res = DuckDBResource(path=duckdb_path)
    con = res.connect()
    try:
        ensure_covid_warehouse(con)
    finally:
        con.close()

    typer.echo(f"Bootstrapped warehouse at {res.database_file}")


@app.command(name="load-csv")
def load_csv(
    csv_path: Path = typer.Argument(..., exists=True, dir_okay=False),
    duckdb_path: str = typer.Option(DEFAULT_DUCKDB_PATH, "--duckdb-path"),
    schema: str = typer.Option(DEFAULT_SCHEMA, "--schema"),
    table: str = typer.Option(DEFAULT_TABLE, "--table"),
    replace: bool = typer.Option(False, "--replace", help="Delete existing rows first"),
) -> None:
    """Validate a daily per-state statistics CSV and load it into the warehouse."""

    try:
        stats = load_stats_csv(csv_path)
    except DataQualityError as exc:
        typer.echo(f"Rejected {csv_path}: {exc}", err=True)
        raise typer.Exit(code=1) from exc

    res = DuckDBResource(path=duckdb_path)
    con = res.connect()
    try:
        written = insert_daily_stats(con, stats, schema=schema, table=table, replace=replace)
    finally:
        con.close()

    typer.echo(f"Loaded {written} rows into {schema}.{table}")


@app.command(name="preview")
def preview(
    target_date: Optional[str] = typer.Option(
        None, "--date", help="Report date (YYYY-MM-DD); defaults to the latest loaded date"
    ),
    duckdb_path: str = typer.Option(DEFAULT_DUCKDB_PATH, "--duckdb-path"),
    schema: str = typer.Option(DEFAULT_SCHEMA, "--schema"),
    table: str = typer.Option(DEFAULT_TABLE, "--table"),
    cutoff_date: str = typer.Option(DEFAULT_CUTOFF_DATE.isoformat(), "--cutoff-date"),
) -> None:
    """Print the aggregated risk report without calling the model or sending email."""

    res = DuckDBResource(path=duckdb_path)
    con = res.connect()
    try:
        ensure_covid_warehouse(con, schema=schema, table=table)
        if target_date:
            report_day = date.fromisoformat(target_date)
        else:
            report_day = latest_stat_date(con, schema=schema, table=table)
            if report_day is None:
                typer.echo(f"{schema}.{table} is empty; load statistics first", err=True)
                raise typer.Exit(code=1)

        states = select_at_risk_states(
            con,
            report_day,
            schema=schema,
            table=table,
            cutoff_date=date.fromisoformat(cutoff_date),
        )
    finally:
        con.close()

    report = aggregate(states)
    typer.echo(f"Report date: {report_day} | flagged states: {report.total_states or 0}")
    typer.echo("")
    typer.echo(report.full_report)


if __name__ == "__main__":
    app()
