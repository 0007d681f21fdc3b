"""
Money and Percent Primitives

Numeric coercion, rounding and unit-conversion helpers shared by every
calculation module.

Rates cross module boundaries in two units. Percentages (10.0 means 10%)
are what users type; fractions (0.10) are what the math uses. The only
place one becomes the other is pct_to_fraction / fraction_to_pct.
"""

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, NewType

from lease_finance.calculations.errors import InvalidInputError

Percent = NewType("Percent", float)
Fraction = NewType("Fraction", float)

CENT = Decimal("0.01")
MONTHS_PER_YEAR = 12


def _to_float(value: Any, field: str) -> float:
    if isinstance(value, bool) or value is None:
        raise InvalidInputError(f"{field} must be a number, got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError, InvalidOperation):
        raise InvalidInputError(f"{field} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise InvalidInputError(f"{field} must be finite, got {value!r}")
    return number


def coerce_amount(value: Any, field: str = "amount", allow_zero: bool = True) -> float:
    """
    Coerce a value to a finite, non-negative float.

    Args:
        value: int, float, Decimal or numeric string
        field: Field name used in the error message
        allow_zero: If False, zero is rejected as well

    Raises:
        InvalidInputError: If the value is not a finite number, is negative,
            or is zero when allow_zero is False
    """
    number = _to_float(value, field)
    if number < 0:
        raise InvalidInputError(f"{field} must not be negative, got {number}")
    if not allow_zero and number == 0:
        raise InvalidInputError(f"{field} must be greater than zero")
    return number


def coerce_positive(value: Any, field: str = "amount") -> float:
    """Coerce a value to a finite float strictly greater than zero."""
    return coerce_amount(value, field, allow_zero=False)


def coerce_term(value: Any, field: str = "term_months") -> int:
    """Coerce a value to a positive whole number of periods."""
    number = _to_float(value, field)
    if number <= 0:
        raise InvalidInputError(f"{field} must be a positive integer, got {value!r}")
    if not number.is_integer():
        raise InvalidInputError(f"{field} must be a whole number, got {value!r}")
    return int(number)


def round_money(amount: float) -> float:
    """
    Round to cents, half away from zero.

    NaN and infinite sentinels are returned unchanged.
    """
    if not math.isfinite(amount):
        return amount
    return float(Decimal(repr(amount)).quantize(CENT, rounding=ROUND_HALF_UP))


def pct_to_fraction(pct: float) -> Fraction:
    """Convert a percentage (4.0) to a fractional rate (0.04)."""
    return Fraction(pct / 100)


def fraction_to_pct(fraction: float) -> Percent:
    """Convert a fractional rate (0.04) to a percentage (4.0)."""
    return Percent(fraction * 100)


def monthly_rate(annual_rate_pct: float, periods_per_year: int = MONTHS_PER_YEAR) -> Fraction:
    """Periodic fractional rate for a nominal annual percentage rate."""
    return Fraction(pct_to_fraction(annual_rate_pct) / periods_per_year)


def apply_vat(amount: float, vat_rate: float) -> float:
    """
    Add value-added tax to an amount.

    Args:
        amount: Amount before tax
        vat_rate: Tax rate as a fraction (e.g., 0.16 for 16%)
    """
    return amount * (1 + vat_rate)
