"""
Bond Pricing and Yield Calculations

Prices fixed-coupon, fixed-maturity bonds from a market yield and solves
yield-to-maturity from an observed price. Coupon and market rates are
annual percentages at this boundary and become per-period decimals once,
inside each function.
"""

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from fincalc.calculations import tvm
from fincalc.calculations.conventions import to_annual_percent, to_periodic_rate
from fincalc.calculations.results import (
    CalculationInputError,
    SolverOptions,
    SolverResult,
    SolverStatus,
)
from fincalc.calculations.rootfinding import find_root

logger = logging.getLogger(__name__)

YIELD_LOWER_BOUND = -0.99
YIELD_UPPER_BOUND = 10.0


@dataclass(frozen=True)
class Bond:
    """A plain coupon bond."""

    face_value: float
    coupon_rate: float  # Annual coupon rate in percent (e.g., 5.0)
    years_to_maturity: float
    payments_per_year: int = 2

    @property
    def periods(self) -> int:
        """Total number of coupon periods."""
        return int(round(self.years_to_maturity * self.payments_per_year))

    @property
    def coupon_payment(self) -> float:
        """Per-period coupon amount."""
        return self.face_value * self.coupon_rate / 100.0 / self.payments_per_year

    @property
    def annual_coupon(self) -> float:
        return self.face_value * self.coupon_rate / 100.0


def validate_bond(bond: Bond) -> None:
    """
    Reject bonds the pricer cannot handle.

    Raises:
        CalculationInputError: On non-positive face value or term, negative
            coupon, or a term that is not a whole number of coupon periods
    """
    if bond.face_value <= 0:
        raise CalculationInputError("Face value must be positive")
    if bond.coupon_rate < 0:
        raise CalculationInputError("Coupon rate cannot be negative")
    if bond.payments_per_year <= 0:
        raise CalculationInputError("Payments per year must be positive")
    if bond.years_to_maturity <= 0:
        raise CalculationInputError("Years to maturity must be positive")
    exact_periods = bond.years_to_maturity * bond.payments_per_year
    if not math.isclose(exact_periods, round(exact_periods), abs_tol=1e-9):
        raise CalculationInputError(
            "Years to maturity must be a whole number of coupon periods"
        )


def _price_at_periodic_yield(bond: Bond, periodic_yield: float) -> float:
    # tvm.present_value returns the outlay that buys these inflows
    return -tvm.present_value(
        periodic_yield, bond.periods, bond.coupon_payment, bond.face_value
    )


def _cash_flow_arrays(bond: Bond):
    times = np.arange(1, bond.periods + 1, dtype=float)
    amounts = np.full(bond.periods, bond.coupon_payment)
    amounts[-1] += bond.face_value
    return times, amounts


def price_bond(bond: Bond, market_rate: float) -> float:
    """
    Calculate bond price from its market yield.

    Present value of the coupon annuity plus present value of the face
    value at maturity.

    Args:
        bond: Bond terms
        market_rate: Annual market yield in percent (e.g., 6.0)

    Returns:
        Price in currency units
    """
    validate_bond(bond)
    periodic_yield = to_periodic_rate(market_rate, bond.payments_per_year)
    if periodic_yield <= -1.0:
        raise CalculationInputError("Market rate implies a periodic yield at or below -100%")
    return _price_at_periodic_yield(bond, periodic_yield)


def approximate_yield(bond: Bond, price: float) -> float:
    """
    Approximate annual YTM in percent.

    (annual coupon + (face - price) / years) / ((face + price) / 2)
    """
    denominator = (bond.face_value + price) / 2.0
    if denominator <= 0:
        return bond.coupon_rate
    estimate = (
        bond.annual_coupon + (bond.face_value - price) / bond.years_to_maturity
    ) / denominator
    return estimate * 100.0


def solve_bond_yield(
    bond: Bond, price: float, options: Optional[SolverOptions] = None
) -> SolverResult:
    """
    Solve yield-to-maturity for an observed price.

    Args:
        bond: Bond terms
        price: Observed market price
        options: Root finder limits

    Returns:
        SolverResult with the annual yield in percent. A non-positive price,
        or one that implies a yield outside the solver range, is reported as
        no-convergence rather than clamped.
    """
    try:
        validate_bond(bond)
    except CalculationInputError as e:
        return SolverResult.failure(SolverStatus.invalid_input, str(e))

    if not math.isfinite(price) or price <= 0:
        return SolverResult.failure(
            SolverStatus.no_convergence, "Bond price must be a positive number"
        )

    times, amounts = _cash_flow_arrays(bond)

    def residual(periodic_yield: float) -> float:
        return _price_at_periodic_yield(bond, periodic_yield) - price

    def slope(periodic_yield: float) -> float:
        return float(np.sum(-times * amounts / (1.0 + periodic_yield) ** (times + 1.0)))

    seed = to_periodic_rate(approximate_yield(bond, price), bond.payments_per_year)
    if not YIELD_LOWER_BOUND < seed < YIELD_UPPER_BOUND:
        seed = to_periodic_rate(bond.coupon_rate, bond.payments_per_year)

    result = find_root(
        residual,
        seed,
        derivative=slope,
        lower=YIELD_LOWER_BOUND,
        upper=YIELD_UPPER_BOUND,
        options=options,
    )
    if not result.ok:
        logger.info("Yield solve failed for price %s: %s", price, result.message)
    return result.map(lambda y: to_annual_percent(y, bond.payments_per_year))


def current_yield(bond: Bond, price: float) -> float:
    """Annual coupon over price, in percent."""
    if price <= 0:
        raise CalculationInputError("Bond price must be positive")
    return bond.annual_coupon / price * 100.0


def premium_discount(bond: Bond, price: float) -> float:
    """Price minus face value (positive = premium)."""
    return price - bond.face_value


def bond_cash_flows(bond: Bond) -> List[Dict]:
    """
    Coupon schedule of the bond.

    Returns:
        Rows with period, time in years, and amount (face added at maturity)
    """
    validate_bond(bond)
    times, amounts = _cash_flow_arrays(bond)
    return [
        {
            "period": int(t),
            "years": t / bond.payments_per_year,
            "amount": float(amount),
        }
        for t, amount in zip(times, amounts)
    ]


def _discounted(bond: Bond, market_rate: float):
    validate_bond(bond)
    periodic_yield = to_periodic_rate(market_rate, bond.payments_per_year)
    if periodic_yield <= -1.0:
        raise CalculationInputError("Market rate implies a periodic yield at or below -100%")
    times, amounts = _cash_flow_arrays(bond)
    present_values = amounts / (1.0 + periodic_yield) ** times
    return periodic_yield, times, present_values


def macaulay_duration(bond: Bond, market_rate: float) -> float:
    """Macaulay duration in years."""
    _, times, present_values = _discounted(bond, market_rate)
    periods_weighted = np.sum(times * present_values) / np.sum(present_values)
    return float(periods_weighted / bond.payments_per_year)


def modified_duration(bond: Bond, market_rate: float) -> float:
    """Macaulay duration divided by (1 + periodic yield)."""
    periodic_yield = to_periodic_rate(market_rate, bond.payments_per_year)
    return macaulay_duration(bond, market_rate) / (1.0 + periodic_yield)


def convexity(bond: Bond, market_rate: float) -> float:
    """Convexity in years squared."""
    periodic_yield, times, present_values = _discounted(bond, market_rate)
    price = np.sum(present_values)
    weighted = np.sum(present_values * times * (times + 1.0))
    return float(
        weighted / (price * (1.0 + periodic_yield) ** 2 * bond.payments_per_year ** 2)
    )
