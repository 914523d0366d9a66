"""COVID-19 risk briefing - risk detection and report aggregation.

Pipeline stages implemented here:
    - select_at_risk_states / select_from_history: flag states for a target date
    - aggregate: fold flagged states into one AggregatedReport
"""

from covid_risk.aggregator import aggregate
from covid_risk.models import (
    AggregatedReport,
    DailyStateStat,
    RiskFlaggedState,
    RiskSelection,
    RiskThresholds,
)
from covid_risk.selector import select_at_risk_states, select_from_history

__all__ = [
    "AggregatedReport",
    "DailyStateStat",
    "RiskFlaggedState",
    "RiskSelection",
    "RiskThresholds",
    "aggregate",
    "select_at_risk_states",
    "select_from_history",
]
