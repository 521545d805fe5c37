"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fincalc.calculations.results import SolverOptions


@pytest.fixture
def tight_options():
    """Solver options with a small iteration cap."""
    return SolverOptions(max_iterations=5)
