"""Exceptions raised by the risk briefing pipeline."""


class CovidRiskError(Exception):
    """Base class for pipeline errors."""


class DataQualityError(CovidRiskError, ValueError):
    """Warehouse data cannot be turned into a trustworthy report.

    Raised instead of letting a bad row leak `inf`/`nan` into the briefing.
    """


class DuplicateBriefingError(CovidRiskError):
    """A briefing for this report date was already sent and the run refuses to resend."""
