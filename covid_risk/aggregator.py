"""Aggregator: fold flagged states into the single text report fed to the narrative model."""

from __future__ import annotations

import math
from collections.abc import Sequence

from covid_risk.errors import DataQualityError
from covid_risk.models import NO_RISK_SENTINEL, AggregatedReport, RiskFlaggedState

BLOCK_SEPARATOR = "\n\n"


def cases_per_million(cases: int, population: int | None) -> int:
    """Population-normalized case count, rounded half-up to the nearest integer.

    Raises DataQualityError when population is missing or not a positive finite number.
    """

    if population is None:
        raise DataQualityError("population is missing; cannot compute cases per million")
    if not math.isfinite(population) or population <= 0:
        raise DataQualityError(f"population must be positive, got {population!r}")

    per_million = cases / population * 1_000_000
    return int(math.floor(per_million + 0.5))


def format_state_block(index: int, state: RiskFlaggedState) -> str:
    """Render one flagged state; `index` is 1-based."""

    per_million = cases_per_million(state.daily_new_cases, state.population)
    population_millions = state.population / 1_000_000

    return "\n".join(
        [
            f"{index}. {state.state} (Population: {population_millions:.1f}M)",
            f"   - New cases: {state.daily_new_cases} ({per_million} per million)",
            f"   - Positivity: {state.positive_test_rate:.1f}%",
            f"   - Vaccinated: {state.vaccination_rate:.1f}%",
            f"   - Flag: {state.risk_summary}",
        ]
    )


def aggregate(states: Sequence[RiskFlaggedState]) -> AggregatedReport:
    """Build the report from selector output, preserving its order.

    An empty selection is the explicit no-risk path, not an error.
    """

    if not states:
        return AggregatedReport(full_report=NO_RISK_SENTINEL)

    blocks = [format_state_block(i, state) for i, state in enumerate(states, start=1)]

    return AggregatedReport(
        report_date=states[0].date,
        total_states=len(states),
        full_report=BLOCK_SEPARATOR.join(blocks),
    )
