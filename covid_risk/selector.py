"""Risk Selector: flag states whose daily statistics signal elevated COVID-19 risk.

All lag arithmetic runs inside DuckDB as window functions:
1. Restrict history to rows on/after a cutoff date (bounds the window work)
2. Per state, ordered by date, look up cases 1/2/3 days back and yesterday's vaccination rate
3. Evaluate Consecutive Rise, High Positivity and Vaccine Stall
4. Keep only the target date, and only rows where at least one rule fired

A missing lag makes the comparison NULL, which COALESCE turns into FALSE, so
partial history can never satisfy a rise-based rule.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from typing import Any

import duckdb
import polars as pl

from covid_risk.models import DailyStateStat, RiskFlaggedState, RiskThresholds

DEFAULT_CUTOFF_DATE = date(2021, 7, 1)
DEFAULT_SCHEMA = "main_raw"
DEFAULT_TABLE = "covid_daily_state_stats"

# Emitted in this order, joined by RISK_SEPARATOR.
CONSECUTIVE_RISE_REASON = "Outbreak Trend: new cases rose for 3 consecutive days"
HIGH_POSITIVITY_REASON = "High Positivity: test positivity is above the safe threshold"
VACCINE_STALL_REASON = "Vaccination stalled: vaccine uptake is flat while cases climb"
RISK_SEPARATOR = " | "

STATS_SCHEMA = {
    "state": pl.Utf8,
    "date": pl.Date,
    "daily_new_cases": pl.Int64,
    "positive_test_rate": pl.Float64,
    "population": pl.Int64,
    "vaccination_rate": pl.Float64,
}


def build_risk_query(relation: str) -> str:
    """Return the risk query against `relation` (a table, view or registered frame).

    Named parameters: cutoff_date, target_date, positivity_pct, vax_growth_pct,
    stall_min_cases, consecutive_rise_reason, high_positivity_reason,
    vaccine_stall_reason, separator.
    """

    return f"""
        WITH history AS (
            SELECT
                state,
                "date",
                daily_new_cases,
                positive_test_rate,
                population,
                vaccination_rate,
                LAG(daily_new_cases, 1) OVER w AS cases_1_day_ago,
                LAG(daily_new_cases, 2) OVER w AS cases_2_days_ago,
                LAG(daily_new_cases, 3) OVER w AS cases_3_days_ago,
                vaccination_rate - LAG(vaccination_rate, 1) OVER w AS daily_vax_growth_pct
            FROM {relation}
            WHERE "date" >= $cutoff_date
            WINDOW w AS (PARTITION BY state ORDER BY "date")
        ),
        evaluated AS (
            SELECT
                *,
                COALESCE(
                    daily_new_cases > cases_1_day_ago
                    AND cases_1_day_ago > cases_2_days_ago
                    AND cases_2_days_ago > cases_3_days_ago,
                    FALSE
                ) AS consecutive_rise,
                COALESCE(positive_test_rate > $positivity_pct, FALSE) AS high_positivity,
                COALESCE(
                    daily_vax_growth_pct < $vax_growth_pct
                    AND daily_new_cases > cases_1_day_ago
                    AND daily_new_cases > $stall_min_cases,
                    FALSE
                ) AS vaccine_stall
            FROM history
            WHERE "date" = $target_date
        )
        SELECT
            state,
            "date",
            daily_new_cases,
            positive_test_rate,
            population,
            vaccination_rate,
            cases_1_day_ago,
            cases_2_days_ago,
            cases_3_days_ago,
            daily_vax_growth_pct,
            concat_ws(
                CAST($separator AS VARCHAR),
                CASE WHEN consecutive_rise THEN CAST($consecutive_rise_reason AS VARCHAR) END,
                CASE WHEN high_positivity THEN CAST($high_positivity_reason AS VARCHAR) END,
                CASE WHEN vaccine_stall THEN CAST($vaccine_stall_reason AS VARCHAR) END
            ) AS risk_summary
        FROM evaluated
        WHERE consecutive_rise OR high_positivity OR vaccine_stall
        ORDER BY state
    """


def _query_params(
    target_date: date, cutoff_date: date, thresholds: RiskThresholds
) -> dict[str, Any]:
    return {
        "cutoff_date": cutoff_date,
        "target_date": target_date,
        "positivity_pct": float(thresholds.positivity_pct),
        "vax_growth_pct": float(thresholds.vax_growth_pct),
        "stall_min_cases": int(thresholds.stall_min_cases),
        "consecutive_rise_reason": CONSECUTIVE_RISE_REASON,
        "high_positivity_reason": HIGH_POSITIVITY_REASON,
        "vaccine_stall_reason": VACCINE_STALL_REASON,
        "separator": RISK_SEPARATOR,
    }


def _run_risk_query(
    con: duckdb.DuckDBPyConnection,
    relation: str,
    target_date: date,
    cutoff_date: date,
    thresholds: RiskThresholds,
) -> list[RiskFlaggedState]:
    cursor = con.execute(
        build_risk_query(relation), _query_params(target_date, cutoff_date, thresholds)
    )
    columns = [desc[0] for desc in cursor.description]
    return [RiskFlaggedState(**dict(zip(columns, row))) for row in cursor.fetchall()]


def select_at_risk_states(
    con: duckdb.DuckDBPyConnection,
    target_date: date,
    *,
    schema: str = DEFAULT_SCHEMA,
    table: str = DEFAULT_TABLE,
    cutoff_date: date = DEFAULT_CUTOFF_DATE,
    thresholds: RiskThresholds | None = None,
) -> list[RiskFlaggedState]:
    """Flag at-risk states for `target_date` from the warehouse table `{schema}.{table}`.

    Results are ordered by state.
    """

    return _run_risk_query(
        con,
        f"{schema}.{table}",
        target_date,
        cutoff_date,
        thresholds or RiskThresholds(),
    )


def stats_frame(rows: Iterable[DailyStateStat | dict[str, Any]]) -> pl.DataFrame:
    """Build a Polars frame with the warehouse column layout."""

    records = [r.model_dump() if isinstance(r, DailyStateStat) else dict(r) for r in rows]
    return pl.DataFrame(records, schema=STATS_SCHEMA)


def select_from_history(
    rows: Iterable[DailyStateStat | dict[str, Any]],
    target_date: date,
    *,
    cutoff_date: date = DEFAULT_CUTOFF_DATE,
    thresholds: RiskThresholds | None = None,
) -> list[RiskFlaggedState]:
    """Same as `select_at_risk_states`, but over in-memory history."""

    history = stats_frame(rows)
    con = duckdb.connect()
    try:
        con.register("daily_state_stats", history)
        return _run_risk_query(
            con,
            "daily_state_stats",
            target_date,
            cutoff_date,
            thresholds or RiskThresholds(),
        )
    finally:
        con.close()


def latest_stat_date(
    con: duckdb.DuckDBPyConnection,
    *,
    schema: str = DEFAULT_SCHEMA,
    table: str = DEFAULT_TABLE,
) -> date | None:
    """Most recent date present in the stats table, or None if it is empty."""

    row = con.execute(f'SELECT MAX("date") FROM {schema}.{table}').fetchone()
    return row[0] if row else None
