from __future__ import annotations

from datetime import UTC, datetime

import duckdb

from covid_risk.selector import DEFAULT_SCHEMA, DEFAULT_TABLE


def ensure_core_schemas(con: duckdb.DuckDBPyConnection) -> None:
    con.execute("CREATE SCHEMA IF NOT EXISTS main_raw")
    con.execute("CREATE SCHEMA IF NOT EXISTS main_runs")


def ensure_stats_table(
    con: duckdb.DuckDBPyConnection,
    *,
    schema: str = DEFAULT_SCHEMA,
    table: str = DEFAULT_TABLE,
) -> None:
    con.execute(f"CREATE SCHEMA IF NOT EXISTS {schema}")
    con.execute(
        f"""
        CREATE TABLE IF NOT EXISTS {schema}.{table} (
            state VARCHAR NOT NULL,
            "date" DATE NOT NULL,
            daily_new_cases BIGINT,
            positive_test_rate DOUBLE,
            population BIGINT,
            vaccination_rate DOUBLE,
            PRIMARY KEY (state, "date")
        )
        """
    )


def ensure_briefing_runs(con: duckdb.DuckDBPyConnection) -> None:
    con.execute(
        """
        CREATE TABLE IF NOT EXISTS main_runs.briefing_runs (
            run_id VARCHAR PRIMARY KEY,
            report_date DATE,
            total_states INTEGER,
            flagged_states VARCHAR,
            recipients VARCHAR,
            status VARCHAR,
            trigger_source VARCHAR,
            on_duplicate VARCHAR,
            created_at TIMESTAMP,
            updated_at TIMESTAMP
        )
        """
    )


def ensure_covid_warehouse(
    con: duckdb.DuckDBPyConnection,
    *,
    schema: str = DEFAULT_SCHEMA,
    table: str = DEFAULT_TABLE,
) -> None:
    ensure_core_schemas(con)
    ensure_stats_table(con, schema=schema, table=table)
    ensure_briefing_runs(con)


def now_utc() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)
