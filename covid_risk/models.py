"""Data models for the COVID-19 risk briefing pipeline."""

import datetime

from pydantic import BaseModel, Field

NO_RISK_SENTINEL = "No critical risks detected today."


class DailyStateStat(BaseModel):
    """One row of daily per-state statistics.

    Attributes:
        state: State identifier (e.g. 'TX')
        date: Calendar date of the observation
        daily_new_cases: New cases reported that day
        positive_test_rate: Share of positive tests, in percent (0-100)
        population: State population
        vaccination_rate: Share of population vaccinated, in percent (0-100)
    """

    state: str = Field(min_length=1)
    date: datetime.date
    daily_new_cases: int = Field(ge=0)
    positive_test_rate: float = Field(ge=0, le=100)
    population: int = Field(gt=0)
    vaccination_rate: float = Field(ge=0, le=100)


class RiskThresholds(BaseModel):
    """Cut-offs used by the three risk rules."""

    positivity_pct: float = 10.0
    vax_growth_pct: float = 0.1
    stall_min_cases: int = 500


class RiskFlaggedState(BaseModel):
    """A state-date row for which at least one risk rule fired.

    Lag columns are None when the state has too little history. Population is
    left unconstrained here; warehouse rows can be dirty and the aggregator is
    the stage that rejects them.
    """

    state: str
    date: datetime.date
    daily_new_cases: int
    positive_test_rate: float
    population: int | None
    vaccination_rate: float
    cases_1_day_ago: int | None = None
    cases_2_days_ago: int | None = None
    cases_3_days_ago: int | None = None
    daily_vax_growth_pct: float | None = None
    risk_summary: str = Field(min_length=1)


class AggregatedReport(BaseModel):
    """Single text report handed to the narrative generator.

    `report_date` and `total_states` stay None on the no-risk path.
    """

    report_date: datetime.date | None = None
    total_states: int | None = None
    full_report: str

    @property
    def has_risks(self) -> bool:
        return bool(self.total_states)


class RiskSelection(BaseModel):
    """Selector output for one run, keeping the target date even when nothing was flagged."""

    target_date: datetime.date
    states: list[RiskFlaggedState] = Field(default_factory=list)
