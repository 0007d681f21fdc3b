"""
Display formatting for metric values, including the NaN / inf sentinels.
"""

import math
from typing import Optional

NOT_AVAILABLE = "N/A"
NEVER = "Never"


def is_sentinel(value: float) -> bool:
    """True for NaN and infinite values."""
    return not math.isfinite(value)


def json_number(value: float, digits: Optional[int] = None) -> Optional[float]:
    """JSON-safe number: sentinels become None."""
    if is_sentinel(value):
        return None
    return round(value, digits) if digits is not None else value


def format_currency(amount: float) -> str:
    if is_sentinel(amount):
        return NOT_AVAILABLE
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


def format_percentage(pct: float, decimals: int = 2) -> str:
    """Format a percentage value (12.5 -> '12.50%'). NaN renders as N/A, inf as ∞%."""
    if math.isnan(pct):
        return NOT_AVAILABLE
    if math.isinf(pct):
        return "∞%" if pct > 0 else "-∞%"
    return f"{pct:.{decimals}f}%"


def format_rate(fraction: float, decimals: int = 2) -> str:
    """Format a fractional rate (0.125 -> '12.50%')."""
    return format_percentage(fraction * 100, decimals)


def format_months(months: float) -> str:
    """
    Format a period count in months as years and months.

    inf renders as "Never", NaN as "N/A".
    """
    if math.isnan(months):
        return NOT_AVAILABLE
    if math.isinf(months):
        return NEVER

    years = int(months // 12)
    remaining = int(round(months % 12))
    if remaining == 12:
        years, remaining = years + 1, 0

    if years == 0:
        return f"{remaining} months"
    year_label = "year" if years == 1 else "years"
    if remaining == 0:
        return f"{years} {year_label}"
    return f"{years} {year_label} and {remaining} months"
