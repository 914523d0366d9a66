from dagster import AssetExecutionContext, asset

from covid_dagster.resources.narrative_resource import NarrativeResource
from covid_risk.models import AggregatedReport


@asset
def risk_narrative(
    context: AssetExecutionContext, risk_report: AggregatedReport, narrator: NarrativeResource
) -> str:
    """HTML strategic briefing written by the hosted model from the aggregated report."""

    html = narrator.generate_briefing(risk_report.full_report)
    context.log.info(f"Generated briefing HTML ({len(html)} characters)")
    return html
