"""
Time Value of Money

Closed-form PV, FV, PMT and NPER plus an iterative rate solve. All formulas
follow the cash-flow sign convention used by Excel's PV/FV/PMT/NPER/RATE:

    PV * (1 + r)^n + PMT * (1 + r*t) * ((1 + r)^n - 1) / r + FV = 0

Money received is positive and money paid out is negative; t is 1 for an
annuity due and 0 for an ordinary annuity. The primitives take a periodic
decimal rate and a period count; solve_tvm takes caller units (annual
percentage rate, years).
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from fincalc.calculations.conventions import (
    AnnuityTiming,
    PaymentFrequency,
    to_annual_percent,
    to_periodic_rate,
)
from fincalc.calculations.results import (
    CalculationInputError,
    SolverOptions,
    SolverResult,
    SolverStatus,
)
from fincalc.calculations.rootfinding import find_root

logger = logging.getLogger(__name__)

RATE_LOWER_BOUND = -0.99
RATE_UPPER_BOUND = 10.0
DEFAULT_RATE_GUESS = 0.01
ZERO_RATE = 1e-12


class TVMVariable(str, enum.Enum):
    """The five TVM values; names match TVMParameters fields."""

    present_value = "present_value"
    future_value = "future_value"
    payment = "payment"
    annual_rate = "annual_rate"
    years = "years"


@dataclass(frozen=True)
class TVMParameters:
    """Inputs for a TVM solve. Exactly one of the five values must be None."""

    present_value: Optional[float] = None
    future_value: Optional[float] = None
    payment: Optional[float] = None
    annual_rate: Optional[float] = None  # Percent, e.g. 6.0 for 6%
    years: Optional[float] = None
    frequency: PaymentFrequency = PaymentFrequency.annual
    timing: AnnuityTiming = AnnuityTiming.ordinary
    solve_for: Optional[TVMVariable] = None

    def missing(self) -> List[TVMVariable]:
        """Variables that were not supplied."""
        return [var for var in TVMVariable if getattr(self, var.value) is None]


def _is_zero_rate(rate: float) -> bool:
    return abs(rate) < ZERO_RATE


def compound_factor(rate: float, periods: float) -> float:
    """(1 + r)^n"""
    return math.exp(periods * math.log1p(rate))


def annuity_factor(rate: float, periods: float, due: bool = False) -> float:
    """
    Future value of a stream of unit payments: (1 + r*t) * ((1 + r)^n - 1) / r.

    Reduces to n when the rate is zero.
    """
    if _is_zero_rate(rate):
        return float(periods)
    growth_minus_one = math.expm1(periods * math.log1p(rate))
    return (1.0 + rate * int(due)) * growth_minus_one / rate


def future_value(
    rate: float,
    periods: float,
    payment: float = 0.0,
    present_value: float = 0.0,
    due: bool = False,
) -> float:
    """
    Calculate future value.

    Matches Excel's FV(rate, nper, pmt, pv, type).
    """
    return -(
        present_value * compound_factor(rate, periods)
        + payment * annuity_factor(rate, periods, due)
    )


def present_value(
    rate: float,
    periods: float,
    payment: float = 0.0,
    future_value: float = 0.0,
    due: bool = False,
) -> float:
    """
    Calculate present value.

    Matches Excel's PV(rate, nper, pmt, fv, type).
    """
    return -(future_value + payment * annuity_factor(rate, periods, due)) / compound_factor(
        rate, periods
    )


def payment(
    rate: float,
    periods: float,
    present_value: float = 0.0,
    future_value: float = 0.0,
    due: bool = False,
) -> float:
    """
    Calculate the level payment per period.

    Matches Excel's PMT(rate, nper, pv, fv, type). At a zero rate this is
    -(PV + FV) / n.

    Raises:
        CalculationInputError: If periods is zero (no payment can settle it)
    """
    if periods == 0:
        raise CalculationInputError("Payment is undefined over zero periods")
    return -(future_value + present_value * compound_factor(rate, periods)) / annuity_factor(
        rate, periods, due
    )


def number_of_periods(
    rate: float,
    payment: float,
    present_value: float = 0.0,
    future_value: float = 0.0,
    due: bool = False,
) -> SolverResult:
    """
    Solve for the number of periods.

    Matches Excel's NPER. Uses the logarithmic closed form when the rate is
    non-zero and n = -(PV + FV) / PMT when it is zero.
    """
    if rate <= -1.0:
        return SolverResult.failure(
            SolverStatus.out_of_domain, "Periodic rate must be greater than -100%"
        )

    if _is_zero_rate(rate):
        if payment == 0:
            return SolverResult.failure(
                SolverStatus.out_of_domain,
                "With a zero rate and zero payment the term is undetermined",
            )
        periods = -(present_value + future_value) / payment
    else:
        adjusted_payment = payment * (1.0 + rate * int(due))
        numerator = adjusted_payment - future_value * rate
        denominator = adjusted_payment + present_value * rate
        if denominator == 0 or numerator / denominator <= 0:
            return SolverResult.failure(
                SolverStatus.out_of_domain,
                "No term reaches the future value from these values",
            )
        periods = math.log(numerator / denominator) / math.log1p(rate)

    if periods < 0:
        return SolverResult.failure(
            SolverStatus.out_of_domain,
            "Values imply a negative term; check the cash-flow signs",
        )
    return SolverResult.success(periods)


def _rate_seed(periods: float, payment: float, present_value: float, future_value: float) -> float:
    """Simple-interest estimate of the periodic rate, 1% when undefined."""
    exposure = periods * (
        abs(present_value) + abs(payment) * periods / 2.0 + abs(future_value) / 2.0
    )
    if exposure == 0:
        return DEFAULT_RATE_GUESS
    seed = abs(present_value + payment * periods + future_value) / exposure
    if seed == 0 or not math.isfinite(seed) or seed >= RATE_UPPER_BOUND:
        return DEFAULT_RATE_GUESS
    return seed


def interest_rate(
    periods: float,
    payment: float,
    present_value: float = 0.0,
    future_value: float = 0.0,
    due: bool = False,
    guess: Optional[float] = None,
    options: Optional[SolverOptions] = None,
) -> SolverResult:
    """
    Solve for the periodic interest rate.

    Matches Excel's RATE. A zero payment has the closed form
    (-FV / PV)^(1/n) - 1; otherwise the TVM residual is solved iteratively.

    Args:
        periods: Number of periods
        payment: Payment per period
        present_value: Present value
        future_value: Future value
        due: Payments at the start of each period
        guess: Optional periodic-rate starting point
        options: Root finder limits

    Returns:
        SolverResult with the periodic rate as decimal
    """
    if periods <= 0:
        return SolverResult.failure(
            SolverStatus.out_of_domain, "Rate is undetermined over zero periods"
        )

    if payment == 0:
        if present_value == 0:
            return SolverResult.failure(
                SolverStatus.out_of_domain,
                "Rate is undetermined with zero payment and zero present value",
            )
        ratio = -future_value / present_value
        if ratio <= 0:
            return SolverResult.failure(
                SolverStatus.out_of_domain,
                "Present and future value must have opposite signs",
            )
        return SolverResult.success(ratio ** (1.0 / periods) - 1.0)

    def residual(rate: float) -> float:
        return (
            present_value * compound_factor(rate, periods)
            + payment * annuity_factor(rate, periods, due)
            + future_value
        )

    seed = guess if guess is not None else _rate_seed(periods, payment, present_value, future_value)
    result = find_root(
        residual,
        seed,
        lower=RATE_LOWER_BOUND,
        upper=RATE_UPPER_BOUND,
        options=options,
    )
    if not result.ok:
        logger.info("Rate solve failed: %s", result.message)
    return result


def _validate(params: TVMParameters, target: Optional[TVMVariable]) -> Optional[SolverResult]:
    """Check the known/unknown contract; return a failure or None."""
    missing = params.missing()

    if not missing:
        hint = target.value if target is not None else "one value"
        return SolverResult.failure(
            SolverStatus.invalid_input,
            f"All five values were supplied; leave {hint} empty to solve for it",
        )
    if target is None:
        return SolverResult.failure(
            SolverStatus.invalid_input,
            "No solve-for variable given and more than one value is missing",
        )
    if missing != [target]:
        names = ", ".join(var.value for var in missing)
        return SolverResult.failure(
            SolverStatus.invalid_input,
            f"Exactly one value must be unknown ({target.value}); missing: {names}",
        )

    for var in TVMVariable:
        value = getattr(params, var.value)
        if value is not None and not math.isfinite(value):
            return SolverResult.failure(
                SolverStatus.invalid_input, f"{var.value} must be a finite number"
            )

    if params.years is not None and params.years < 0:
        return SolverResult.failure(SolverStatus.out_of_domain, "Number of years cannot be negative")
    if params.annual_rate is not None:
        periodic = to_periodic_rate(params.annual_rate, params.frequency.periods_per_year)
        if periodic <= -1.0:
            return SolverResult.failure(
                SolverStatus.out_of_domain, "Periodic rate must be greater than -100%"
            )
    return None


def solve_tvm(
    params: TVMParameters,
    solve_for: Optional[TVMVariable] = None,
    options: Optional[SolverOptions] = None,
) -> SolverResult:
    """
    Solve for the one missing TVM value.

    Args:
        params: Four known values, frequency and annuity timing
        solve_for: Variable to solve for; defaults to params.solve_for, or to
            the single missing value when neither is set
        options: Root finder limits for the rate solve

    Returns:
        SolverResult in caller units: currency for PV/FV/PMT, annual
        percentage for the rate, years for the term
    """
    missing = params.missing()
    target = solve_for or params.solve_for
    if target is None and len(missing) == 1:
        target = missing[0]

    failure = _validate(params, target)
    if failure is not None:
        logger.info("Rejected TVM inputs: %s", failure.message)
        return failure

    periods_per_year = params.frequency.periods_per_year
    due = params.timing is AnnuityTiming.due
    rate = (
        to_periodic_rate(params.annual_rate, periods_per_year)
        if params.annual_rate is not None
        else None
    )
    periods = (
        params.frequency.periods_from_years(params.years) if params.years is not None else None
    )
    pv = params.present_value
    fv = params.future_value
    pmt = params.payment

    try:
        if target is TVMVariable.future_value:
            return SolverResult.success(future_value(rate, periods, pmt, pv, due))
        if target is TVMVariable.present_value:
            return SolverResult.success(present_value(rate, periods, pmt, fv, due))
        if target is TVMVariable.payment:
            if periods == 0:
                return SolverResult.failure(
                    SolverStatus.out_of_domain, "Payment is undefined over zero periods"
                )
            return SolverResult.success(payment(rate, periods, pv, fv, due))
        if target is TVMVariable.annual_rate:
            result = interest_rate(periods, pmt, pv, fv, due, options=options)
            return result.map(lambda r: to_annual_percent(r, periods_per_year))
        result = number_of_periods(rate, pmt, pv, fv, due)
        return result.map(params.frequency.years_from_periods)
    except OverflowError:
        return SolverResult.failure(
            SolverStatus.out_of_domain, "Values overflow double precision"
        )
