"""
Financial Calculation Engine

Core calculation modules for personal finance: time value of money,
bonds, loans, depreciation and cash flow analysis.
All calculations are designed to match Excel formula behavior.
"""

from fincalc.calculations import (
    amortization,
    bond,
    conventions,
    depreciation,
    irr,
    results,
    rootfinding,
    tvm,
)

__all__ = [
    "amortization",
    "bond",
    "conventions",
    "depreciation",
    "irr",
    "results",
    "rootfinding",
    "tvm",
]
