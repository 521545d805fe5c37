"""
Rate and Timing Conventions

Payment frequencies, annuity timing, and the single place where percentage
rates from callers become per-period decimals (and back).
"""

import enum


class PaymentFrequency(str, enum.Enum):
    """How many payment periods fall in one year."""

    annual = "annual"
    semi_annual = "semi_annual"
    quarterly = "quarterly"
    monthly = "monthly"
    weekly = "weekly"
    daily = "daily"

    @property
    def periods_per_year(self) -> int:
        return _PERIODS_PER_YEAR[self]

    def periods_from_years(self, years: float) -> float:
        return years * self.periods_per_year

    def years_from_periods(self, periods: float) -> float:
        return periods / self.periods_per_year


_PERIODS_PER_YEAR = {
    PaymentFrequency.annual: 1,
    PaymentFrequency.semi_annual: 2,
    PaymentFrequency.quarterly: 4,
    PaymentFrequency.monthly: 12,
    PaymentFrequency.weekly: 52,
    PaymentFrequency.daily: 365,
}


class AnnuityTiming(str, enum.Enum):
    """Whether payments fall at the end (ordinary) or start (due) of a period."""

    ordinary = "ordinary"
    due = "due"


def to_periodic_rate(annual_rate_percent: float, periods_per_year: float = 1) -> float:
    """
    Convert an annual percentage rate to a per-period decimal rate.

    Args:
        annual_rate_percent: Annual rate as a percentage (e.g., 6.0 for 6%)
        periods_per_year: Compounding/payment periods per year

    Returns:
        Periodic rate as decimal (e.g., 0.005 for 6% monthly)
    """
    return annual_rate_percent / 100.0 / periods_per_year


def to_annual_percent(periodic_rate: float, periods_per_year: float = 1) -> float:
    """Convert a per-period decimal rate back to an annual percentage."""
    return periodic_rate * periods_per_year * 100.0
