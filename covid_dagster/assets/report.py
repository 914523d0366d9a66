from dagster import AssetExecutionContext, asset

from covid_risk.aggregator import aggregate
from covid_risk.models import AggregatedReport, RiskSelection


@asset
def risk_report(context: AssetExecutionContext, at_risk_states: RiskSelection) -> AggregatedReport:
    """Fold the flagged states into the text report handed to the narrative model."""

    report = aggregate(at_risk_states.states)

    if report.has_risks:
        context.log.info(
            f"Aggregated {report.total_states} state(s) for {report.report_date} "
            f"({len(report.full_report)} characters)"
        )
    else:
        context.log.info(f"No critical risks on {at_risk_states.target_date}")

    return report
