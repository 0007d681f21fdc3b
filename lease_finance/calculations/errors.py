"""
Calculation Errors

Exceptions raised by the calculation engine. Degenerate financial outcomes
(no IRR root, payback never reached) are returned as NaN / inf sentinels,
not raised.
"""


class CalculationError(Exception):
    """Base exception for all calculation engine errors."""


class InvalidInputError(CalculationError, ValueError):
    """Raised when a required numeric input is non-finite, negative, or zero where positive is required."""
