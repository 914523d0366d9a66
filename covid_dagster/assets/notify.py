from enum import Enum

from dagster import AssetExecutionContext, Config, asset

from covid_dagster.db.bootstrap import ensure_covid_warehouse, now_utc
from covid_dagster.db.run_registry import (
    STATUS_FAILED,
    STATUS_SENT,
    STATUS_SKIPPED,
    STATUS_STARTED,
    BriefingRunRecord,
    find_sent_briefing,
    insert_briefing_run,
    update_briefing_status,
)
from covid_dagster.resources.duckdb_resource import DuckDBResource
from covid_dagster.resources.smtp_resource import SmtpResource
from covid_risk.errors import DuplicateBriefingError
from covid_risk.models import AggregatedReport, RiskSelection


class DuplicatePolicy(str, Enum):
    send = "send"
    skip = "skip"
    error = "error"


class NotifyConfig(Config):
    on_duplicate: DuplicatePolicy = DuplicatePolicy.send
    trigger_source: str = "dagster"


@asset
def risk_alert_email(
    context: AssetExecutionContext,
    config: NotifyConfig,
    at_risk_states: RiskSelection,
    risk_report: AggregatedReport,
    risk_narrative: str,
    duckdb: DuckDBResource,
    smtp: SmtpResource,
) -> None:
    """Email the briefing and record the delivery in main_runs.briefing_runs."""

    con = duckdb.connect()

    try:
        ensure_covid_warehouse(con)

        report_date = at_risk_states.target_date
        previous_run = find_sent_briefing(con, report_date)

        if previous_run is not None:
            if config.on_duplicate == DuplicatePolicy.error:
                raise DuplicateBriefingError(
                    f"Briefing for {report_date} was already sent by run {previous_run}"
                )
            context.log.warning(
                f"Briefing for {report_date} was already sent by run {previous_run} "
                f"(on_duplicate={config.on_duplicate.value})"
            )

        skip = previous_run is not None and config.on_duplicate == DuplicatePolicy.skip

        record = BriefingRunRecord(
            run_id=context.run_id,
            report_date=report_date,
            total_states=risk_report.total_states or 0,
            flagged_states=[s.state for s in at_risk_states.states],
            recipients=list(smtp.recipients),
            status=STATUS_SKIPPED if skip else STATUS_STARTED,
            trigger_source=config.trigger_source,
            on_duplicate=config.on_duplicate.value,
            created_at=now_utc(),
            updated_at=now_utc(),
        )
        insert_briefing_run(con, record)

        if skip:
            context.log.info(f"Skipped email for {report_date}")
            return

        try:
            smtp.send_html(risk_narrative)
        except Exception:
            update_briefing_status(con, run_id=context.run_id, status=STATUS_FAILED)
            raise

        update_briefing_status(con, run_id=context.run_id, status=STATUS_SENT)
        context.log.info(
            f"Sent briefing for {report_date} ({record.total_states} flagged state(s)) "
            f"to {len(record.recipients)} recipient(s)"
        )

    finally:
        con.close()
