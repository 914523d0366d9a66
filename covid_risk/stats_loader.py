"""Read and validate daily per-state statistics from CSV exports."""

from pathlib import Path

import polars as pl
from pydantic import ValidationError

from covid_risk.errors import DataQualityError
from covid_risk.models import DailyStateStat

REQUIRED_COLUMNS = (
    "state",
    "date",
    "daily_new_cases",
    "positive_test_rate",
    "population",
    "vaccination_rate",
)


def load_stats_csv(path: str | Path) -> list[DailyStateStat]:
    """Load a CSV export into validated DailyStateStat rows.

    Args:
        path: CSV file with a header row containing REQUIRED_COLUMNS
            (extra columns are ignored; dates in ISO format)

    Returns:
        Rows in file order

    Raises:
        FileNotFoundError: if the file does not exist
        DataQualityError: if a column is missing or a row fails validation
            (the message carries the 1-based data row number)
    """
    csv_path = Path(path).expanduser().resolve()
    if not csv_path.exists():
        raise FileNotFoundError(f"Stats CSV not found: {csv_path}")

    df = pl.read_csv(csv_path, try_parse_dates=True)

    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise DataQualityError(f"{csv_path.name} is missing columns: {', '.join(missing)}")

    stats: list[DailyStateStat] = []
    for i, row in enumerate(df.select(REQUIRED_COLUMNS).iter_rows(named=True), start=1):
        try:
            stats.append(DailyStateStat(**row))
        except ValidationError as exc:
            raise DataQualityError(f"{csv_path.name} row {i}: {exc}") from exc

    return stats
