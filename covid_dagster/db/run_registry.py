from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

import duckdb

from covid_dagster.db.bootstrap import now_utc

STATUS_STARTED = "started"
STATUS_SENT = "sent"
STATUS_SKIPPED = "skipped"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class BriefingRunRecord:
    """One delivery attempt for a report date."""

    run_id: str
    report_date: date
    total_states: int
    flagged_states: list[str]
    recipients: list[str]
    status: str
    trigger_source: str | None
    on_duplicate: str
    created_at: datetime
    updated_at: datetime


def insert_briefing_run(con: duckdb.DuckDBPyConnection, record: BriefingRunRecord) -> None:
    con.execute(
        """
        INSERT OR REPLACE INTO main_runs.briefing_runs (
            run_id,
            report_date,
            total_states,
            flagged_states,
            recipients,
            status,
            trigger_source,
            on_duplicate,
            created_at,
            updated_at
        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """,
        [
            record.run_id,
            record.report_date,
            record.total_states,
            ", ".join(record.flagged_states),
            ", ".join(record.recipients),
            record.status,
            record.trigger_source,
            record.on_duplicate,
            record.created_at,
            record.updated_at,
        ],
    )


def update_briefing_status(
    con: duckdb.DuckDBPyConnection,
    *,
    run_id: str,
    status: str,
) -> None:
    con.execute(
        """
        UPDATE main_runs.briefing_runs
        SET status = ?, updated_at = ?
        WHERE run_id = ?
        """,
        [status, now_utc(), run_id],
    )


def find_sent_briefing(
    con: duckdb.DuckDBPyConnection,
    report_date: date,
) -> str | None:
    """Run id of the latest briefing already sent for `report_date`, if any."""

    row = con.execute(
        """
        SELECT run_id
        FROM main_runs.briefing_runs
        WHERE report_date = ? AND status = ?
        ORDER BY created_at DESC
        LIMIT 1
        """,
        [report_date, STATUS_SENT],
    ).fetchone()
    return row[0] if row else None
