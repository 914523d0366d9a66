import os
from pathlib import Path

import yaml
from dagster import Definitions, EnvVar, ScheduleDefinition, define_asset_job

from covid_dagster.assets.narrative import risk_narrative
from covid_dagster.assets.notify import risk_alert_email
from covid_dagster.assets.report import risk_report
from covid_dagster.assets.selection import at_risk_states
from covid_dagster.resources.duckdb_resource import DuckDBResource
from covid_dagster.resources.narrative_resource import NarrativeResource
from covid_dagster.resources.smtp_resource import SmtpResource

CONFIG_DIR = Path(__file__).resolve().parent / "configs"

with open(CONFIG_DIR / "briefing_example.yaml") as f:
    default_briefing_config = yaml.safe_load(f)


def _recipients_from_env() -> list[str]:
    raw = os.environ.get("ALERT_RECIPIENTS", "")
    return [addr.strip() for addr in raw.split(",") if addr.strip()]


risk_briefing_job = define_asset_job(
    name="risk_briefing_job",
    selection=["at_risk_states", "risk_report", "risk_narrative", "risk_alert_email"],
    description="""
    # COVID-19 Risk Briefing Job

    Flags at-risk states and emails a strategic briefing.

    **Steps:**
    1. Runs the window-function risk query against `main_raw.covid_daily_state_stats`
    2. Aggregates flagged states into a text report
    3. Asks the hosted model for an HTML briefing
    4. Emails the briefing and records it in `main_runs.briefing_runs`
    """,
    tags={"team": "epidemiology", "priority": "high"},
    config=default_briefing_config,
)

daily_risk_briefing = ScheduleDefinition(
    name="daily_risk_briefing",
    job=risk_briefing_job,
    cron_schedule="0 7 * * *",
    execution_timezone="America/New_York",
)


definitions = Definitions(
    assets=[at_risk_states, risk_report, risk_narrative, risk_alert_email],
    resources={
        "duckdb": DuckDBResource(),
        "narrator": NarrativeResource(
            api_key=EnvVar("OPENAI_API_KEY"),
            base_url=os.environ.get("OPENAI_BASE_URL") or None,
            model=os.environ.get("OPENAI_MODEL", "gpt-4o-mini"),
        ),
        "smtp": SmtpResource(
            host=EnvVar("SMTP_HOST"),
            port=int(os.environ.get("SMTP_PORT", "587")),
            user=os.environ.get("SMTP_USER") or None,
            password=os.environ.get("SMTP_PASSWORD") or None,
            from_address=EnvVar("ALERT_FROM_ADDRESS"),
            recipients=_recipients_from_env(),
        ),
    },
    jobs=[risk_briefing_job],
    schedules=[daily_risk_briefing],
)
