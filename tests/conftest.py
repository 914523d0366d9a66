from __future__ import annotations

from collections.abc import Callable
from datetime import date, timedelta
from pathlib import Path

import duckdb
import pytest

from covid_dagster.db.bootstrap import ensure_covid_warehouse
from covid_dagster.db.stats_store import insert_daily_stats
from covid_risk.models import DailyStateStat

TARGET_DATE = date(2021, 8, 4)


def _series(
    state: str,
    cases_recent_first: list[int],
    *,
    positivity: float = 5.0,
    population: int = 10_000_000,
    vaccination_recent_first: list[float] | None = None,
    end: date = TARGET_DATE,
) -> list[DailyStateStat]:
    """Consecutive daily rows ending at `end`, given most-recent-first values."""
    vaccination = vaccination_recent_first or [50.0] * len(cases_recent_first)
    rows = []
    for offset, (cases, vax) in enumerate(zip(cases_recent_first, vaccination)):
        rows.append(
            DailyStateStat(
                state=state,
                date=end - timedelta(days=offset),
                daily_new_cases=cases,
                positive_test_rate=positivity,
                population=population,
                vaccination_rate=vax,
            )
        )
    return list(reversed(rows))


@pytest.fixture
def series() -> Callable[..., list[DailyStateStat]]:
    return _series


@pytest.fixture
def tx_fl_history() -> list[DailyStateStat]:
    tx = _series("TX", [400, 300, 250, 200], positivity=12.0, population=30_000_000)
    fl = _series(
        "FL",
        [600, 550],
        positivity=5.0,
        population=21_500_000,
        vaccination_recent_first=[60.05, 60.0],
    )
    quiet = _series("VT", [20, 25, 30, 10], positivity=1.5, population=640_000)
    return tx + fl + quiet


@pytest.fixture
def warehouse(tmp_path: Path, tx_fl_history: list[DailyStateStat]) -> Path:
    db_path = tmp_path / "covid_risk.duckdb"
    con = duckdb.connect(str(db_path))
    try:
        ensure_covid_warehouse(con)
        insert_daily_stats(con, tx_fl_history)
    finally:
        con.close()
    return db_path
