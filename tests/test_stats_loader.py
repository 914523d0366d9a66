from __future__ import annotations

from datetime import date
from pathlib import Path

import duckdb
import pytest

from covid_dagster.db.bootstrap import ensure_covid_warehouse
from covid_dagster.db.stats_store import insert_daily_stats
from covid_risk.errors import DataQualityError
from covid_risk.stats_loader import load_stats_csv

CSV_HEADER = "state,date,daily_new_cases,positive_test_rate,population,vaccination_rate,source\n"


def _write_csv(path: Path, rows: list[str]) -> Path:
    path.write_text(CSV_HEADER + "\n".join(rows) + "\n", encoding="utf-8")
    return path


def test_load_stats_csv_validates_rows(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path / "stats.csv",
        [
            "TX,2021-08-03,300,11.5,30000000,49.9,cdc",
            "TX,2021-08-04,400,12.0,30000000,50.0,cdc",
        ],
    )

    stats = load_stats_csv(csv_path)

    assert [s.date for s in stats] == [date(2021, 8, 3), date(2021, 8, 4)]
    assert stats[1].daily_new_cases == 400
    assert stats[1].population == 30_000_000


def test_load_stats_csv_reports_bad_row(tmp_path: Path) -> None:
    csv_path = _write_csv(
        tmp_path / "stats.csv",
        [
            "TX,2021-08-03,300,11.5,30000000,49.9,cdc",
            "PR,2021-08-03,12,3.0,0,70.0,cdc",
        ],
    )

    with pytest.raises(DataQualityError, match="row 2"):
        load_stats_csv(csv_path)


def test_load_stats_csv_missing_column(tmp_path: Path) -> None:
    csv_path = tmp_path / "stats.csv"
    csv_path.write_text("state,date,daily_new_cases\nTX,2021-08-03,300\n", encoding="utf-8")

    with pytest.raises(DataQualityError, match="population"):
        load_stats_csv(csv_path)


def test_load_stats_csv_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_stats_csv(tmp_path / "nope.csv")


def test_insert_daily_stats_upserts_and_replaces(tmp_path: Path, tx_fl_history) -> None:
    db_path = tmp_path / "covid_risk.duckdb"
    con = duckdb.connect(str(db_path))
    try:
        ensure_covid_warehouse(con)

        assert insert_daily_stats(con, tx_fl_history) == len(tx_fl_history)
        # Same keys again: overwritten, not duplicated
        insert_daily_stats(con, tx_fl_history)
        count = con.execute("SELECT COUNT(*) FROM main_raw.covid_daily_state_stats").fetchone()
        assert count[0] == len(tx_fl_history)

        insert_daily_stats(con, tx_fl_history[:1], replace=True)
        count = con.execute("SELECT COUNT(*) FROM main_raw.covid_daily_state_stats").fetchone()
        assert count[0] == 1
    finally:
        con.close()
