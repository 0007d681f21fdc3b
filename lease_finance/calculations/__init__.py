"""
Financial Calculation Engine

Core calculation modules for loan, investor and lease analysis.
All functions are pure: they take inputs and return new values.
"""

from lease_finance.calculations import (
    allocation,
    amortization,
    cashflow,
    formatting,
    leasing,
    lender,
    metrics,
    money,
    renter,
)
from lease_finance.calculations.errors import CalculationError, InvalidInputError

__all__ = [
    "allocation",
    "amortization",
    "cashflow",
    "formatting",
    "leasing",
    "lender",
    "metrics",
    "money",
    "renter",
    "CalculationError",
    "InvalidInputError",
]
