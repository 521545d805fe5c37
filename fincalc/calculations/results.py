"""
Solver Results and Input Errors

Typed outcomes shared by every iterative calculation. Solvers return a
SolverResult instead of raising, so callers can show an "invalid input"
message without catching exceptions.
"""

import enum
from dataclasses import dataclass, replace
from typing import Callable, Optional

MAX_ITERATIONS = 100
VALUE_TOLERANCE = 1e-7
STEP_TOLERANCE = 1e-10
DERIVATIVE_STEP = 1e-6


class CalculationInputError(ValueError):
    """Raised by schedule and pricing functions when inputs are rejected."""


class SolverStatus(str, enum.Enum):
    """Outcome of a solve."""

    converged = "converged"
    no_convergence = "no-convergence"
    out_of_domain = "out-of-domain"
    ambiguous = "multiple-roots-ambiguous"
    invalid_input = "invalid-input"


@dataclass(frozen=True)
class SolverOptions:
    """Iteration limits and tolerances for the root finder."""

    max_iterations: int = MAX_ITERATIONS
    value_tolerance: float = VALUE_TOLERANCE  # absolute, on |f(x)|
    step_tolerance: float = STEP_TOLERANCE  # relative, on |dx|
    derivative_step: float = DERIVATIVE_STEP  # relative central-difference step


DEFAULT_OPTIONS = SolverOptions()


@dataclass(frozen=True)
class SolverResult:
    """
    Result of a numerical or closed-form solve.

    A result is usable (``ok``) when it converged, or when a root was found
    but other roots may exist (``ambiguous``). Every other status carries no
    value and a human-readable message.
    """

    status: SolverStatus
    value: Optional[float] = None
    iterations: int = 0
    method: Optional[str] = None
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.status in (SolverStatus.converged, SolverStatus.ambiguous)

    @classmethod
    def success(
        cls, value: float, iterations: int = 0, method: str = "closed-form"
    ) -> "SolverResult":
        return cls(SolverStatus.converged, value, iterations, method)

    @classmethod
    def failure(
        cls, status: SolverStatus, message: str, iterations: int = 0
    ) -> "SolverResult":
        return cls(status, None, iterations, None, message)

    def map(self, fn: Callable[[float], float]) -> "SolverResult":
        """Convert the value (e.g. periodic decimal to annual percent)."""
        if self.value is None:
            return self
        return replace(self, value=fn(self.value))
