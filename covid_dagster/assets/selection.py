from datetime import date
from typing import Optional

from dagster import AssetExecutionContext, Config, asset

from covid_dagster.db.bootstrap import ensure_covid_warehouse
from covid_dagster.resources.duckdb_resource import DuckDBResource
from covid_risk.models import RiskSelection, RiskThresholds
from covid_risk.selector import (
    DEFAULT_SCHEMA,
    DEFAULT_TABLE,
    latest_stat_date,
    select_at_risk_states,
)


class RiskSelectionConfig(Config):
    # ISO date; defaults to the most recent date in the stats table
    target_date: Optional[str] = None
    cutoff_date: str = "2021-07-01"
    stats_schema: str = DEFAULT_SCHEMA
    stats_table: str = DEFAULT_TABLE
    positivity_pct: float = 10.0
    vax_growth_pct: float = 0.1
    stall_min_cases: int = 500

    def thresholds(self) -> RiskThresholds:
        return RiskThresholds(
            positivity_pct=self.positivity_pct,
            vax_growth_pct=self.vax_growth_pct,
            stall_min_cases=self.stall_min_cases,
        )


@asset
def at_risk_states(
    context: AssetExecutionContext, config: RiskSelectionConfig, duckdb: DuckDBResource
) -> RiskSelection:
    """Flag states whose statistics on the target date trip a risk rule."""

    context.log.info(f"Connecting to DuckDB at: {duckdb.database_file}")
    con = duckdb.connect()

    try:
        ensure_covid_warehouse(con, schema=config.stats_schema, table=config.stats_table)

        if config.target_date:
            target_date = date.fromisoformat(config.target_date)
        else:
            target_date = latest_stat_date(
                con, schema=config.stats_schema, table=config.stats_table
            )
            if target_date is None:
                raise ValueError(
                    f"{config.stats_schema}.{config.stats_table} is empty; "
                    "load statistics or set target_date"
                )
            context.log.info(f"No target_date configured; using latest stats date {target_date}")

        states = select_at_risk_states(
            con,
            target_date,
            schema=config.stats_schema,
            table=config.stats_table,
            cutoff_date=date.fromisoformat(config.cutoff_date),
            thresholds=config.thresholds(),
        )
    finally:
        con.close()

    context.log.info(f"Flagged {len(states)} state(s) for {target_date}")
    return RiskSelection(target_date=target_date, states=states)
