from __future__ import annotations

from collections.abc import Sequence

import duckdb

from covid_risk.models import DailyStateStat
from covid_risk.selector import DEFAULT_SCHEMA, DEFAULT_TABLE, stats_frame
from covid_dagster.db.bootstrap import ensure_stats_table


def insert_daily_stats(
    con: duckdb.DuckDBPyConnection,
    stats: Sequence[DailyStateStat],
    *,
    schema: str = DEFAULT_SCHEMA,
    table: str = DEFAULT_TABLE,
    replace: bool = False,
) -> int:
    """Write validated rows into `{schema}.{table}`; returns rows written.

    Rows for an existing (state, date) key overwrite the stored values.
    """

    ensure_stats_table(con, schema=schema, table=table)
    if replace:
        con.execute(f"DELETE FROM {schema}.{table}")

    if not stats:
        return 0

    df = stats_frame(stats)
    con.execute(
        f"""
        INSERT OR REPLACE INTO {schema}.{table}
            (state, "date", daily_new_cases, positive_test_rate, population, vaccination_rate)
        SELECT state, "date", daily_new_cases, positive_test_rate, population, vaccination_rate
        FROM df
        """
    )
    return len(stats)
