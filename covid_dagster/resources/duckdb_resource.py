from __future__ import annotations

import os
from pathlib import Path

import duckdb
from dagster import ConfigurableResource


def default_duckdb_path() -> str:
    """Warehouse file: `DUCKDB_PATH` if set, else covid_risk.duckdb at the repo root."""

    env_path = os.environ.get("DUCKDB_PATH")
    if env_path:
        return env_path
    return str((Path(__file__).resolve().parents[2] / "covid_risk.duckdb").resolve())


class DuckDBResource(ConfigurableResource):
    """Dagster resource for the COVID statistics warehouse and the briefing ledger."""

    path: str = default_duckdb_path()

    @property
    def database_file(self) -> Path:
        return Path(self.path).expanduser().resolve()

    def connect(self) -> duckdb.DuckDBPyConnection:
        # A fresh DUCKDB_PATH may point into a directory that does not exist yet
        self.database_file.parent.mkdir(parents=True, exist_ok=True)
        return duckdb.connect(str(self.database_file))
