"""
Tests for the Newton/bisection root finder.
"""

import math

import pytest

from fincalc.calculations.results import SolverOptions, SolverResult, SolverStatus
from fincalc.calculations.rootfinding import bisect, find_bracket, find_root


class TestNewton:
    """Newton-Raphson path."""

    def test_square_root_of_two(self):
        """Newton converges on x^2 - 2 from 1."""
        result = find_root(lambda x: x * x - 2.0, 1.0)
        assert result.status is SolverStatus.converged
        assert result.ok
        assert result.method == "newton"
        assert abs(result.value - math.sqrt(2.0)) < 1e-9

    def test_analytic_derivative(self):
        """Supplied derivative gives the same root."""
        result = find_root(lambda x: x * x - 2.0, 1.0, derivative=lambda x: 2.0 * x)
        assert abs(result.value - math.sqrt(2.0)) < 1e-9
        assert result.iterations < 10

    def test_guess_already_a_root(self):
        """A guess within tolerance returns immediately."""
        result = find_root(lambda x: x - 1.0, 1.0)
        assert result.ok
        assert result.value == 1.0
        assert result.iterations == 0


class TestBisectionFallback:
    """Fallback when Newton cannot proceed."""

    def test_flat_derivative_falls_back(self):
        """Zero slope at the guess switches to bisection."""
        result = find_root(lambda x: x ** 3 - 1.0, 0.0)
        assert result.ok
        assert result.method == "bisection"
        assert abs(result.value - 1.0) < 1e-8

    def test_step_outside_domain_falls_back(self):
        """A Newton step past the bound is not taken."""
        # Newton diverges from 3 and its second step passes the upper bound
        result = find_root(lambda x: math.atan(x - 1.0), 3.0, lower=-5.0, upper=4.0)
        assert result.ok
        assert abs(result.value - 1.0) < 1e-8

    def test_iteration_cap_reports_no_convergence(self, tight_options):
        """Running out of iterations never returns a partial value."""
        result = find_root(lambda x: x ** 3, 1.0, options=tight_options)
        assert result.status is SolverStatus.no_convergence
        assert result.value is None
        assert not result.ok
        assert result.iterations > tight_options.max_iterations


class TestFailures:
    """Typed failures."""

    def test_no_real_root(self):
        """x^2 + 1 has no root and no bracket."""
        result = find_root(lambda x: x * x + 1.0, 0.5, lower=-100.0, upper=100.0)
        assert result.status is SolverStatus.no_convergence
        assert result.value is None
        assert "no root" in result.message

    def test_guess_outside_domain(self):
        """Initial guess outside [lower, upper]."""
        result = find_root(lambda x: x, 5.0, lower=0.0, upper=1.0)
        assert result.status is SolverStatus.out_of_domain

    def test_undefined_at_guess(self):
        """Function undefined at the guess."""
        result = find_root(lambda x: 1.0 / x, 0.0)
        assert result.status is SolverStatus.out_of_domain


class TestBracketing:
    """Bracket search and bisection helpers."""

    def test_find_bracket_spans_sign_change(self):
        bracket = find_bracket(lambda x: x - 3.0, 0.0)
        assert bracket is not None
        a, f_a, b, f_b = bracket
        assert a <= 3.0 <= b
        assert f_a * f_b <= 0

    def test_find_bracket_respects_bounds(self):
        """No sign change inside the bounds."""
        assert find_bracket(lambda x: x - 3.0, 0.0, lower=-1.0, upper=1.0) is None

    def test_bisect_endpoint_root(self):
        """An endpoint that is already a root is returned as is."""
        result = bisect(lambda x: x, 0.0, 0.0, 1.0, 1.0)
        assert result.value == 0.0

    def test_bisect_converges(self):
        f = lambda x: x * x - 2.0
        result = bisect(f, 0.0, f(0.0), 2.0, f(2.0), SolverOptions(max_iterations=200))
        assert abs(result.value - math.sqrt(2.0)) < 1e-9


class TestSolverResult:
    """SolverResult helpers."""

    def test_map_converts_value(self):
        result = SolverResult.success(0.05).map(lambda r: r * 100.0)
        assert result.value == pytest.approx(5.0)
        assert result.status is SolverStatus.converged

    def test_map_keeps_failure(self):
        failure = SolverResult.failure(SolverStatus.out_of_domain, "bad")
        assert failure.map(lambda r: r * 100.0) is failure

    def test_ambiguous_is_usable(self):
        result = SolverResult(SolverStatus.ambiguous, 0.1)
        assert result.ok
