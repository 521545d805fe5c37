"""
Depreciation Schedules

Per-year depreciation for straight-line, declining balance,
sum-of-years-digits and MACRS. The method is a small tagged union of
dataclasses, dispatched once in depreciation_schedule.
"""

import enum
import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Optional, Union

from fincalc.calculations.results import CalculationInputError

logger = logging.getLogger(__name__)


class MacrsClass(str, enum.Enum):
    """MACRS property classes (general depreciation system)."""

    three_year = "3-year"
    five_year = "5-year"
    seven_year = "7-year"
    ten_year = "10-year"
    fifteen_year = "15-year"
    twenty_year = "20-year"


# Half-year convention tables: one entry more than the class life.
MACRS_RATES = MappingProxyType(
    {
        MacrsClass.three_year: (0.3333, 0.4445, 0.1481, 0.0741),
        MacrsClass.five_year: (0.2000, 0.3200, 0.1920, 0.1152, 0.1152, 0.0576),
        MacrsClass.seven_year: (
            0.1429, 0.2449, 0.1749, 0.1249, 0.0893, 0.0892, 0.0893, 0.0446,
        ),
        MacrsClass.ten_year: (
            0.1000, 0.1800, 0.1440, 0.1152, 0.0922, 0.0737,
            0.0655, 0.0655, 0.0656, 0.0655, 0.0328,
        ),
        MacrsClass.fifteen_year: (
            0.0500, 0.0950, 0.0855, 0.0770, 0.0693, 0.0623, 0.0590, 0.0590,
            0.0591, 0.0590, 0.0591, 0.0590, 0.0591, 0.0590, 0.0591, 0.0295,
        ),
        MacrsClass.twenty_year: (
            0.0375, 0.0722, 0.0668, 0.0618, 0.0571, 0.0528, 0.0489,
            0.0452, 0.0447, 0.0447, 0.0446, 0.0446, 0.0446, 0.0446,
            0.0446, 0.0446, 0.0446, 0.0446, 0.0446, 0.0446, 0.0223,
        ),
    }
)


@dataclass(frozen=True)
class StraightLine:
    """Equal depreciation each year."""


@dataclass(frozen=True)
class DecliningBalance:
    """
    Fixed rate (multiplier / life) applied to the declining book value.

    Each year is capped at book value minus salvage. With
    switch_to_straight_line the schedule moves to straight-line over the
    remaining life once that gives the larger charge, which guarantees the
    book value ends at salvage.
    """

    multiplier: float = 2.0
    switch_to_straight_line: bool = False


@dataclass(frozen=True)
class SumOfYearsDigits:
    """Depreciable base weighted by remaining life over the sum of digits."""


@dataclass(frozen=True)
class Macrs:
    """US tax depreciation from a fixed table; salvage value is ignored."""

    property_class: Optional[MacrsClass] = None


DepreciationMethod = Union[StraightLine, DecliningBalance, SumOfYearsDigits, Macrs]


@dataclass(frozen=True)
class DepreciationEntry:
    """One year of a depreciation schedule."""

    year: int
    depreciation: float
    cumulative_depreciation: float
    book_value: float


@dataclass(frozen=True)
class DepreciationYear:
    """Depreciation figures for a single year of a schedule."""

    year: int
    depreciation: float
    rate: float
    cumulative_depreciation: float
    book_value: float
    depreciable_base: float


def _validate(cost: float, salvage: float, life: float, method: DepreciationMethod) -> int:
    if isinstance(method, Macrs) and method.property_class is None:
        raise CalculationInputError("MACRS property class is required for MACRS method")
    if cost <= 0:
        raise CalculationInputError("Asset cost must be positive")
    if salvage < 0:
        raise CalculationInputError("Salvage value cannot be negative")
    if salvage >= cost:
        raise CalculationInputError("Salvage value must be less than asset cost")
    if life <= 0:
        raise CalculationInputError("Useful life must be positive")
    if int(life) != life:
        raise CalculationInputError("Useful life must be a whole number of years")
    if isinstance(method, DecliningBalance) and method.multiplier <= 0:
        raise CalculationInputError("Declining balance multiplier must be positive")
    return int(life)


def _build(cost: float, amounts: List[float]) -> List[DepreciationEntry]:
    schedule = []
    cumulative = 0.0
    for year, amount in enumerate(amounts, start=1):
        cumulative += amount
        schedule.append(
            DepreciationEntry(
                year=year,
                depreciation=amount,
                cumulative_depreciation=cumulative,
                book_value=cost - cumulative,
            )
        )
    return schedule


def _straight_line(cost: float, salvage: float, life: int) -> List[float]:
    return [(cost - salvage) / life] * life


def _declining_balance(
    cost: float, salvage: float, life: int, method: DecliningBalance
) -> List[float]:
    rate = method.multiplier / life
    book_value = cost
    amounts = []
    for year in range(1, life + 1):
        remaining = book_value - salvage
        # Capped at book value minus salvage; later years can be zero
        amount = min(book_value * rate, remaining)
        if method.switch_to_straight_line:
            amount = max(amount, remaining / (life - year + 1))
        amounts.append(amount)
        book_value = salvage if amount >= remaining else book_value - amount
    return amounts


def _sum_of_years_digits(cost: float, salvage: float, life: int) -> List[float]:
    sum_of_digits = life * (life + 1) / 2
    base = cost - salvage
    return [(life - year + 1) / sum_of_digits * base for year in range(1, life + 1)]


def _macrs(cost: float, property_class: MacrsClass) -> List[float]:
    return [cost * rate for rate in MACRS_RATES[property_class]]


def depreciation_schedule(
    cost: float,
    salvage: float,
    life: float,
    method: DepreciationMethod,
) -> List[DepreciationEntry]:
    """
    Generate a per-year depreciation schedule.

    Args:
        cost: Asset cost
        salvage: Salvage value at the end of useful life (ignored by MACRS)
        life: Useful life in whole years
        method: StraightLine, DecliningBalance, SumOfYearsDigits or Macrs

    Returns:
        One entry per year of useful life; MACRS returns one entry per table
        year, which is one more than the class life (half-year convention).

    Raises:
        CalculationInputError: On invalid inputs, including MACRS without a
            property class, before any computation
    """
    years = _validate(cost, salvage, life, method)

    if isinstance(method, StraightLine):
        amounts = _straight_line(cost, salvage, years)
    elif isinstance(method, DecliningBalance):
        amounts = _declining_balance(cost, salvage, years, method)
    elif isinstance(method, SumOfYearsDigits):
        amounts = _sum_of_years_digits(cost, salvage, years)
    elif isinstance(method, Macrs):
        amounts = _macrs(cost, method.property_class)
    else:
        raise CalculationInputError(f"Unknown depreciation method: {method!r}")

    logger.debug("Depreciation schedule for %r: %s years", method, len(amounts))
    return _build(cost, amounts)


def depreciation_rate(method: DepreciationMethod, life: float, year: int) -> float:
    """Rate applied in the given year, as decimal (0 outside the schedule)."""
    if not isinstance(method, Macrs) and not 1 <= year <= life:
        return 0.0
    if isinstance(method, StraightLine):
        return 1.0 / life
    if isinstance(method, DecliningBalance):
        return method.multiplier / life
    if isinstance(method, SumOfYearsDigits):
        return (life - (year - 1)) / (life * (life + 1) / 2)
    if isinstance(method, Macrs):
        if method.property_class is None:
            return 0.0
        rates = MACRS_RATES[method.property_class]
        return rates[year - 1] if 1 <= year <= len(rates) else 0.0
    raise CalculationInputError(f"Unknown depreciation method: {method!r}")


def depreciation_for_year(
    cost: float,
    salvage: float,
    life: float,
    method: DepreciationMethod,
    year: int,
) -> DepreciationYear:
    """
    Depreciation, rate, cumulative total and book value for one year.

    Raises:
        CalculationInputError: If year is outside the schedule
    """
    schedule = depreciation_schedule(cost, salvage, life, method)
    if not 1 <= year <= len(schedule):
        raise CalculationInputError(
            f"Year must be between 1 and {len(schedule)} for this schedule"
        )
    entry = schedule[year - 1]
    return DepreciationYear(
        year=year,
        depreciation=entry.depreciation,
        rate=depreciation_rate(method, life, year),
        cumulative_depreciation=entry.cumulative_depreciation,
        book_value=entry.book_value,
        depreciable_base=cost if isinstance(method, Macrs) else cost - salvage,
    )
