"""
Root Finding

Newton-Raphson with a bisection fallback. Shared by the TVM rate solve,
bond yield-to-maturity and IRR.
"""

import logging
import math
from typing import Callable, Optional, Tuple

from fincalc.calculations.results import (
    DEFAULT_OPTIONS,
    SolverOptions,
    SolverResult,
    SolverStatus,
)

logger = logging.getLogger(__name__)

Func = Callable[[float], float]

MIN_SLOPE = 1e-12
BRACKET_EXPANSION = 1.6
MAX_BRACKET_ATTEMPTS = 60


def _evaluate(func: Func, x: float) -> float:
    """Evaluate func at x, mapping arithmetic blow-ups to NaN."""
    try:
        value = func(x)
    except (OverflowError, ZeroDivisionError):
        return math.nan
    if isinstance(value, complex):
        return math.nan
    return float(value)


def _in_domain(x: float, lower: Optional[float], upper: Optional[float]) -> bool:
    if lower is not None and x < lower:
        return False
    if upper is not None and x > upper:
        return False
    return True


def _central_difference(func: Func, x: float, relative_step: float) -> float:
    h = relative_step * max(1.0, abs(x))
    return (_evaluate(func, x + h) - _evaluate(func, x - h)) / (2.0 * h)


def _newton(
    func: Func,
    derivative: Optional[Func],
    x: float,
    fx: float,
    lower: Optional[float],
    upper: Optional[float],
    options: SolverOptions,
) -> Tuple[Optional[SolverResult], int]:
    """
    Run Newton-Raphson from x.

    Returns (result, iterations). The result is None when Newton gave up
    (flat derivative, step outside the domain, non-finite value, or the
    iteration cap), which tells the caller to fall back to bisection.
    """
    for iteration in range(1, options.max_iterations + 1):
        if derivative is not None:
            slope = _evaluate(derivative, x)
        else:
            slope = _central_difference(func, x, options.derivative_step)

        if not math.isfinite(slope) or abs(slope) < MIN_SLOPE:
            logger.debug("Flat or undefined derivative at x=%s; switching to bisection", x)
            return None, iteration

        x_new = x - fx / slope
        if not math.isfinite(x_new) or not _in_domain(x_new, lower, upper):
            logger.debug("Newton step to x=%s left the domain; switching to bisection", x_new)
            return None, iteration

        f_new = _evaluate(func, x_new)
        if not math.isfinite(f_new):
            logger.debug("Function undefined at x=%s; switching to bisection", x_new)
            return None, iteration

        step = abs(x_new - x)
        x, fx = x_new, f_new
        logger.debug("Newton iter %s: x=%s f(x)=%s slope=%s", iteration, x, fx, slope)

        # Both tests must pass; a small |f| alone can be a flat region.
        if abs(fx) <= options.value_tolerance and step <= options.step_tolerance * max(
            1.0, abs(x)
        ):
            return SolverResult.success(x, iteration, "newton"), iteration

    logger.debug("Newton hit the %s iteration cap", options.max_iterations)
    return None, options.max_iterations


def find_bracket(
    func: Func,
    center: float,
    lower: Optional[float] = None,
    upper: Optional[float] = None,
) -> Optional[Tuple[float, float, float, float]]:
    """
    Grow an interval around center geometrically until f changes sign.

    Returns (a, f(a), b, f(b)) or None when no sign change is found before
    the interval covers the whole domain or the attempt limit is reached.
    """
    half_width = max(abs(center) * 0.1, 0.01)

    for _ in range(MAX_BRACKET_ATTEMPTS):
        a = center - half_width
        b = center + half_width
        if lower is not None:
            a = max(a, lower)
        if upper is not None:
            b = min(b, upper)

        f_a = _evaluate(func, a)
        f_b = _evaluate(func, b)
        if math.isfinite(f_a) and math.isfinite(f_b) and f_a * f_b <= 0:
            return a, f_a, b, f_b

        if a == lower and b == upper:
            break
        half_width *= BRACKET_EXPANSION

    return None


def bisect(
    func: Func,
    a: float,
    f_a: float,
    b: float,
    f_b: float,
    options: SolverOptions = DEFAULT_OPTIONS,
    iterations_used: int = 0,
) -> SolverResult:
    """Bisection on a bracket [a, b] with f(a) and f(b) of opposite sign."""
    if f_a == 0.0:
        return SolverResult.success(a, iterations_used, "bisection")
    if f_b == 0.0:
        return SolverResult.success(b, iterations_used, "bisection")

    for iteration in range(1, options.max_iterations + 1):
        mid = 0.5 * (a + b)
        f_mid = _evaluate(func, mid)
        if not math.isfinite(f_mid):
            return SolverResult.failure(
                SolverStatus.no_convergence,
                f"Function undefined at x={mid} inside the bracket",
                iterations_used + iteration,
            )

        # The sign change guarantees a root inside [a, b].
        if f_mid == 0.0 or 0.5 * (b - a) <= options.step_tolerance * max(1.0, abs(mid)):
            return SolverResult.success(mid, iterations_used + iteration, "bisection")

        if f_a * f_mid < 0:
            b, f_b = mid, f_mid
        else:
            a, f_a = mid, f_mid

    return SolverResult.failure(
        SolverStatus.no_convergence,
        f"Bisection did not converge within {options.max_iterations} iterations",
        iterations_used + options.max_iterations,
    )


def find_root(
    func: Func,
    initial_guess: float,
    *,
    derivative: Optional[Func] = None,
    lower: Optional[float] = None,
    upper: Optional[float] = None,
    options: Optional[SolverOptions] = None,
) -> SolverResult:
    """
    Find x such that func(x) == 0.

    Newton-Raphson runs first, using ``derivative`` when supplied and a
    central difference otherwise. If Newton stalls, leaves the domain or
    exhausts its iteration cap, bisection takes over on a bracket grown
    geometrically around the initial guess.

    Args:
        func: Continuous scalar function
        initial_guess: Starting point
        derivative: Optional closed-form derivative of func
        lower: Optional inclusive lower bound of the search domain
        upper: Optional inclusive upper bound of the search domain
        options: Iteration cap and tolerances

    Returns:
        SolverResult. A failure is never a partially converged value: when
        no bracket is found the solver cannot tell "no root" apart from
        "root not reached", and the message says so.
    """
    options = options or DEFAULT_OPTIONS
    x = float(initial_guess)

    if not _in_domain(x, lower, upper):
        return SolverResult.failure(
            SolverStatus.out_of_domain,
            f"Initial guess {x} lies outside the search domain [{lower}, {upper}]",
        )

    fx = _evaluate(func, x)
    if not math.isfinite(fx):
        return SolverResult.failure(
            SolverStatus.out_of_domain, f"Function is undefined at the initial guess {x}"
        )
    if abs(fx) <= options.value_tolerance:
        return SolverResult.success(x, 0, "newton")

    result, newton_iterations = _newton(func, derivative, x, fx, lower, upper, options)
    if result is not None:
        return result

    bracket = find_bracket(func, x, lower, upper)
    if bracket is None:
        logger.info("No sign change found around x=%s", x)
        return SolverResult.failure(
            SolverStatus.no_convergence,
            "Could not bracket a root near the initial guess; either no root "
            "exists in the search range or the solver could not reach it",
            newton_iterations,
        )

    a, f_a, b, f_b = bracket
    logger.debug("Bisecting on [%s, %s]", a, b)
    return bisect(func, a, f_a, b, f_b, options, newton_iterations)
