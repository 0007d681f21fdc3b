"""
Investment Metrics: NPV, IRR, Payback, ROI

Time-value-of-money functions over periodic cash-flow series.

All rates here are fractions per period (0.04 for 4%). Convert percentages
with money.pct_to_fraction before calling. IRR results are per-period rates;
annualize explicitly with periodic_to_annual_rate.

Degenerate outcomes are returned, not raised:
    NaN  - IRR has no root in the search interval, ROI / PI of a zero investment
    inf  - payback never occurs
"""

import logging
import math
from typing import List, Optional, Sequence

import numpy as np

from lease_finance.calculations.errors import InvalidInputError

logger = logging.getLogger(__name__)

IRR_LOWER_BOUND = -0.99
IRR_UPPER_BOUND = 10.0
IRR_MAX_ITERATIONS = 1000
IRR_TOLERANCE = 1e-7

# Coarse grid used to bracket a root before bisecting.
IRR_BRACKETS = (
    IRR_LOWER_BOUND, -0.9, -0.75, -0.5, -0.25, -0.1, 0.0,
    0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, IRR_UPPER_BOUND,
)

RATE_MAX_ITERATIONS = 100
RATE_GUESS = 0.01


def _as_array(cash_flows: Sequence[float], field: str = "cash_flows") -> np.ndarray:
    flows = np.asarray(list(cash_flows), dtype=float)
    if flows.ndim != 1:
        raise InvalidInputError(f"{field} must be a flat sequence of numbers")
    if not np.all(np.isfinite(flows)):
        raise InvalidInputError(f"{field} must contain only finite numbers")
    return flows


def _check_rate(rate: float) -> float:
    if not math.isfinite(rate) or rate <= -1:
        raise InvalidInputError(f"Discount rate must be finite and greater than -1, got {rate}")
    return float(rate)


def _discounted_sum(flows: np.ndarray, rate: float, offset: int) -> float:
    """Sum of flows[t] / (1 + rate)^(t + offset); may overflow to inf/NaN at extreme rates."""
    periods = np.arange(offset, offset + len(flows), dtype=float)
    with np.errstate(over="ignore", invalid="ignore", divide="ignore"):
        factors = np.power(1.0 + rate, -periods)
        terms = np.where(flows == 0.0, 0.0, flows * factors)
        return float(np.sum(terms))


def npv_of_series(cash_flows: Sequence[float], rate: float) -> float:
    """
    Calculate NPV of a series whose first entry falls at t=0.

    Matches Excel's NPV(rate, values[1:]) + values[0].

    Args:
        cash_flows: Cash flows (negative = outflow, positive = inflow)
        rate: Discount rate per period as a fraction

    Returns:
        NPV value
    """
    return _discounted_sum(_as_array(cash_flows), _check_rate(rate), 0)


def calculate_npv(
    initial_investment: float, cash_flows: Sequence[float], discount_rate: float
) -> float:
    """
    Calculate NPV (Net Present Value) of an investment.

    NPV = -initial_investment + sum(cash_flows[t] / (1 + r)^(t + 1))

    Each entry of cash_flows falls one full period after the investment.

    Args:
        initial_investment: Amount invested at t=0
        cash_flows: Periodic cash flows, first one at t=1
        discount_rate: Discount rate per period as a fraction (0.04 for 4%)

    Returns:
        NPV value
    """
    if not math.isfinite(initial_investment):
        raise InvalidInputError("initial_investment must be finite")
    flows = _as_array(cash_flows)
    rate = _check_rate(discount_rate)
    return _discounted_sum(flows, rate, 1) - float(initial_investment)


def _bisect(flows: np.ndarray, low: float, high: float, npv_low: float) -> float:
    mid = (low + high) / 2
    for _ in range(IRR_MAX_ITERATIONS):
        mid = (low + high) / 2
        npv_mid = _discounted_sum(flows, mid, 0)

        if abs(npv_mid) < IRR_TOLERANCE:
            return mid
        # Interval exhausted at float precision
        if mid in (low, high):
            return mid

        if (npv_mid < 0) == (npv_low < 0):
            low, npv_low = mid, npv_mid
        else:
            high = mid

    return mid


def irr_of_series(cash_flows: Sequence[float]) -> float:
    """
    Calculate IRR of a periodic series whose first entry falls at t=0.

    Brackets a sign change on a fixed grid over [-0.99, 10.0] and bisects
    within the first bracket found.

    Args:
        cash_flows: Array of periodic cash flows

    Returns:
        Per-period IRR as a fraction, or NaN if no sign change exists in
        the search interval
    """
    flows = _as_array(cash_flows)

    if len(flows) < 2 or not (np.any(flows > 0) and np.any(flows < 0)):
        return float("nan")

    previous_rate: Optional[float] = None
    previous_npv: Optional[float] = None

    for rate in IRR_BRACKETS:
        npv = _discounted_sum(flows, rate, 0)
        if not math.isfinite(npv):
            continue
        if npv == 0:
            return rate
        if previous_npv is not None and (npv < 0) != (previous_npv < 0):
            return _bisect(flows, previous_rate, rate, previous_npv)
        previous_rate, previous_npv = rate, npv

    logger.debug("IRR: no sign change in [%s, %s] for %d flows", IRR_LOWER_BOUND, IRR_UPPER_BOUND, len(flows))
    return float("nan")


def calculate_irr(initial_investment: float, cash_flows: Sequence[float]) -> float:
    """
    Calculate IRR (Internal Rate of Return) of an investment.

    The initial investment is an outlay; its sign is ignored, so
    calculate_irr(10000, flows) and calculate_irr(-10000, flows) agree and
    calculate_npv(abs(initial_investment), flows, irr) is ~0.

    Args:
        initial_investment: Amount invested at t=0
        cash_flows: Periodic cash flows, first one at t=1

    Returns:
        Per-period IRR as a fraction, or NaN when it cannot be computed
    """
    if not math.isfinite(initial_investment):
        raise InvalidInputError("initial_investment must be finite")
    flows = _as_array(cash_flows)
    return irr_of_series(np.concatenate(([-abs(float(initial_investment))], flows)))


def calculate_payback_period(initial_investment: float, periodic_cash_flow: float) -> float:
    """
    Periods needed for a level cash flow to recover an investment.

    Returns:
        initial_investment / periodic_cash_flow, or inf when the periodic
        cash flow is zero or negative (never recovers)
    """
    if periodic_cash_flow <= 0:
        return float("inf")
    return initial_investment / periodic_cash_flow


def calculate_cumulative_payback(cash_flows: Sequence[float]) -> float:
    """
    Fractional periods until the running total of a t=0 series turns non-negative.

    Returns:
        0.0 if the series starts non-negative, inf if it never recovers
    """
    flows = _as_array(cash_flows)
    if len(flows) == 0 or flows[0] >= 0:
        return 0.0

    cumulative = float(flows[0])
    for period in range(1, len(flows)):
        previous = cumulative
        cumulative += float(flows[period])
        if cumulative >= 0:
            return (period - 1) + (-previous / float(flows[period]))

    return float("inf")


def calculate_discounted_payback(
    initial_investment: float, cash_flows: Sequence[float], discount_rate: float
) -> float:
    """First whole period at which discounted cash flows recover the investment, else inf."""
    flows = _as_array(cash_flows)
    rate = _check_rate(discount_rate)

    cumulative = -float(initial_investment)
    for period, cf in enumerate(flows, start=1):
        cumulative += float(cf) / (1 + rate) ** period
        if cumulative >= 0:
            return float(period)

    return float("inf")


def calculate_roi(gain: float, investment: float) -> float:
    """
    Return on investment as a percentage.

    Returns:
        gain / investment * 100, or NaN when investment is zero
    """
    if investment == 0:
        return float("nan")
    return gain / investment * 100


def calculate_profitability_index(
    initial_investment: float, cash_flows: Sequence[float], discount_rate: float
) -> float:
    """Present value of inflows per unit invested; NaN for a zero investment."""
    if initial_investment == 0:
        return float("nan")
    present_value = calculate_npv(0.0, cash_flows, discount_rate)
    return present_value / initial_investment


def calculate_dscr(noi: float, debt_service: float) -> float:
    """
    Calculate Debt Service Coverage Ratio (DSCR).

    Args:
        noi: Net Operating Income for the period
        debt_service: Debt service for the period

    Returns:
        DSCR ratio
    """
    if debt_service == 0:
        return float("inf")
    return noi / debt_service


def calculate_ltv(loan_amount: float, asset_value: float) -> float:
    """Loan-to-value as a percentage; NaN when the asset has no value."""
    if asset_value == 0:
        return float("nan")
    return loan_amount / asset_value * 100


def calculate_interest_coverage(earnings: float, interest_expense: float) -> float:
    """Earnings per unit of interest expense; inf when there is no interest."""
    if interest_expense == 0:
        return float("inf")
    return earnings / interest_expense


def calculate_break_even_periods(
    principal: float, payment: float, periodic_rate: float
) -> float:
    """
    Periods to repay the principal at the first period's principal portion.

    The first payment less its interest is the slowest rate at which an
    annuity retires principal, so this is an upper bound on the term.

    Returns:
        principal / (payment - principal * periodic_rate), or inf when the
        payment does not cover the interest
    """
    principal_portion = payment - principal * periodic_rate
    if principal_portion <= 0:
        return float("inf")
    return principal / principal_portion


def _annuity_value(rate: float, periods: int, payment: float, future_value: float) -> float:
    if rate == 0:
        return payment * periods + future_value
    growth = (1 + rate) ** periods
    return payment * (1 - 1 / growth) / rate + future_value / growth


def _annuity_derivative(rate: float, periods: int, payment: float, future_value: float) -> float:
    if rate == 0:
        return -payment * periods * (periods + 1) / 2 - future_value * periods
    growth = (1 + rate) ** periods
    d_annuity = payment * (periods / (rate * growth * (1 + rate)) - (1 - 1 / growth) / rate ** 2)
    d_future = -future_value * periods / (growth * (1 + rate))
    return d_annuity + d_future


def solve_periodic_rate(
    periods: int,
    payment: float,
    present_value: float,
    future_value: float = 0.0,
    guess: float = RATE_GUESS,
) -> float:
    """
    Solve for the periodic rate that justifies a level payment.

    Finds r such that present_value equals the discounted value of `periods`
    payments plus a future (residual) value, using Newton-Raphson. Matches
    Excel's RATE(nper, -pmt, pv, -fv).

    Args:
        periods: Number of payments
        payment: Level payment per period
        present_value: Amount financed
        future_value: Balance remaining after the last payment
        guess: Starting rate

    Returns:
        Periodic rate as a fraction, or NaN if it does not converge
    """
    if periods <= 0:
        raise InvalidInputError("periods must be positive")

    rate = guess

    for _ in range(RATE_MAX_ITERATIONS):
        value = _annuity_value(rate, periods, payment, future_value) - present_value
        derivative = _annuity_derivative(rate, periods, payment, future_value)

        if derivative == 0 or not math.isfinite(derivative):
            break

        new_rate = rate - value / derivative
        if new_rate <= -1:
            new_rate = (rate - 1) / 2

        if abs(new_rate - rate) < IRR_TOLERANCE:
            return new_rate

        rate = new_rate

    logger.debug("RATE did not converge for periods=%s payment=%s pv=%s", periods, payment, present_value)
    return float("nan")


def periodic_to_annual_rate(periodic_rate: float, periods_per_year: int = 12) -> float:
    """Compound a periodic rate to an effective annual rate."""
    return ((1 + periodic_rate) ** periods_per_year) - 1


def annual_to_periodic_rate(annual_rate: float, periods_per_year: int = 12) -> float:
    """Convert an effective annual rate to the equivalent periodic rate."""
    return ((1 + annual_rate) ** (1 / periods_per_year)) - 1


def level_cash_flows(amount: float, periods: int, terminal_value: float = 0.0) -> List[float]:
    """A level series of `periods` flows with a terminal value added to the last one."""
    flows = [float(amount)] * periods
    if flows:
        flows[-1] += terminal_value
    return flows
