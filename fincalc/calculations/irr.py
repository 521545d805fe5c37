"""
IRR and NPV Calculations

NPV and IRR for regular-interval cash flow series, matching Excel's NPV
(with the period-0 flow undiscounted) and IRR functions. Rates are
percentages at this boundary.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from fincalc.calculations.conventions import to_periodic_rate
from fincalc.calculations.results import (
    CalculationInputError,
    SolverOptions,
    SolverResult,
    SolverStatus,
)
from fincalc.calculations.rootfinding import find_root

logger = logging.getLogger(__name__)

DEFAULT_GUESS = 10.0
RATE_LOWER_BOUND = -0.99
RATE_UPPER_BOUND = 10.0


def _discount_factors(periods: int, rate: float) -> np.ndarray:
    return (1.0 + rate) ** -np.arange(periods, dtype=float)


def _npv(cash_flows: np.ndarray, rate: float) -> float:
    return float(np.dot(cash_flows, _discount_factors(len(cash_flows), rate)))


def _npv_derivative(cash_flows: np.ndarray, rate: float) -> float:
    """Calculate derivative of NPV with respect to rate (for Newton-Raphson)."""
    periods = np.arange(len(cash_flows), dtype=float)
    return float(np.sum(-periods * cash_flows / (1.0 + rate) ** (periods + 1.0)))


def calculate_npv(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Calculate NPV (Net Present Value) of cash flows.

    Args:
        cash_flows: Cash flows by period, period 0 first (negative = outflow)
        discount_rate: Discount rate per period in percent (e.g., 10.0)

    Returns:
        NPV value
    """
    rate = to_periodic_rate(discount_rate)
    if rate <= -1.0:
        raise CalculationInputError("Discount rate must be greater than -100%")
    return _npv(np.asarray(cash_flows, dtype=float), rate)


def count_sign_changes(cash_flows: Sequence[float]) -> int:
    """Sign changes in the series, ignoring zero flows."""
    signs = [1 if cf > 0 else -1 for cf in cash_flows if cf != 0]
    return sum(1 for a, b in zip(signs, signs[1:]) if a != b)


def calculate_irr(
    cash_flows: Sequence[float],
    guess: float = DEFAULT_GUESS,
    options: Optional[SolverOptions] = None,
) -> SolverResult:
    """
    Calculate IRR (Internal Rate of Return) by root finding on NPV(rate).

    With a single sign change NPV is monotonic in the rate and the IRR is
    unique. With several sign changes more than one IRR can exist; the root
    reached from ``guess`` is returned with status ``ambiguous``, and a
    different guess may find a different root.

    Args:
        cash_flows: Periodic cash flows, period 0 first
        guess: Starting rate in percent (default 10%)
        options: Root finder limits

    Returns:
        SolverResult with the IRR per period in percent
    """
    if len(cash_flows) < 2:
        return SolverResult.failure(
            SolverStatus.invalid_input, "At least 2 cash flows required"
        )

    flows = np.asarray(cash_flows, dtype=float)
    if not np.all(np.isfinite(flows)):
        return SolverResult.failure(
            SolverStatus.invalid_input, "Cash flows must be finite numbers"
        )

    sign_changes = count_sign_changes(cash_flows)
    if sign_changes == 0:
        return SolverResult.failure(
            SolverStatus.out_of_domain,
            "Cash flows must contain both positive and negative values",
        )

    result = find_root(
        lambda rate: _npv(flows, rate),
        to_periodic_rate(guess),
        derivative=lambda rate: _npv_derivative(flows, rate),
        lower=RATE_LOWER_BOUND,
        upper=RATE_UPPER_BOUND,
        options=options,
    )
    if not result.ok:
        logger.info("IRR calculation failed: %s", result.message)
        return result

    result = result.map(lambda rate: rate * 100.0)
    if sign_changes > 1:
        return SolverResult(
            SolverStatus.ambiguous,
            result.value,
            result.iterations,
            result.method,
            f"Cash flows change sign {sign_changes} times; other IRRs may exist",
        )
    return result


def profitability_index(cash_flows: Sequence[float], discount_rate: float) -> float:
    """
    Present value of future flows divided by the initial outlay.

    Args:
        cash_flows: Cash flows, period 0 being the initial investment
        discount_rate: Discount rate in percent
    """
    if not cash_flows or cash_flows[0] == 0:
        raise CalculationInputError("Initial investment cannot be zero")
    future = [0.0] + list(cash_flows[1:])
    return calculate_npv(future, discount_rate) / abs(cash_flows[0])


def payback_period(cash_flows: Sequence[float]) -> Optional[float]:
    """
    Periods until cumulative cash flow turns non-negative.

    Interpolates linearly within the recovery period. Returns None if the
    investment is never recovered.
    """
    cumulative = 0.0
    for period, cf in enumerate(cash_flows):
        previous = cumulative
        cumulative += cf
        if period > 0 and previous < 0 <= cumulative:
            return period - 1 + (-previous / cf)
    return None


def calculate_multiple(cash_flows: List[float]) -> float:
    """
    Calculate equity multiple.

    Args:
        cash_flows: Array of cash flows (investments are negative)

    Returns:
        Multiple (e.g., 2.0 = 2.0x return)
    """
    total_inflows = sum(cf for cf in cash_flows if cf > 0)
    total_outflows = abs(sum(cf for cf in cash_flows if cf < 0))

    if total_outflows == 0:
        raise CalculationInputError("No investment (outflows) found")

    return total_inflows / total_outflows


def calculate_profit(cash_flows: List[float]) -> float:
    """Calculate profit (total inflows minus total outflows)."""
    return sum(cash_flows)
