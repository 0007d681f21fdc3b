"""
Loan Amortization Calculations

Implements fixed-payment (annuity) schedules matching Excel's PMT, IPMT and
PPMT functions, plus a leasing-style schedule that amortizes down to a
residual (balloon) value.

Rates are nominal annual percentages (10.0 for 10%). Due dates advance in
calendar months, never in 30-day blocks.
"""

import enum
import logging
import math
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence, Union

from dateutil.relativedelta import relativedelta

from lease_finance.calculations.errors import InvalidInputError
from lease_finance.calculations.money import (
    coerce_amount,
    coerce_positive,
    coerce_term,
    monthly_rate,
    round_money,
)

logger = logging.getLogger(__name__)


class PaymentFrequency(str, enum.Enum):
    """Payment frequency of a schedule."""

    monthly = "monthly"
    quarterly = "quarterly"
    semi_annual = "semi-annual"
    annual = "annual"

    @property
    def periods_per_year(self) -> int:
        return {"monthly": 12, "quarterly": 4, "semi-annual": 2, "annual": 1}[self.value]

    @property
    def months_per_period(self) -> int:
        return 12 // self.periods_per_year


@dataclass(frozen=True)
class LoanTerms:
    """Inputs of a loan schedule. Rate is an annual percentage."""

    principal: float
    annual_rate_pct: float
    term_months: int
    start_date: date
    frequency: PaymentFrequency = PaymentFrequency.monthly


@dataclass(frozen=True)
class PaymentScheduleEntry:
    """One row of an amortization schedule."""

    payment_number: int
    due_date: date
    payment: float
    principal: float
    interest: float
    balance: float

    def as_dict(self) -> Dict:
        return {
            "payment_number": self.payment_number,
            "date": self.due_date.isoformat(),
            "payment": round_money(self.payment),
            "principal": round_money(self.principal),
            "interest": round_money(self.interest),
            "balance": round_money(self.balance),
        }


def parse_frequency(frequency: Union[str, PaymentFrequency]) -> PaymentFrequency:
    """Resolve a frequency name, rejecting unknown values."""
    if isinstance(frequency, PaymentFrequency):
        return frequency
    try:
        return PaymentFrequency(str(frequency).lower())
    except ValueError:
        raise InvalidInputError(f"Unsupported payment frequency: {frequency!r}")


def calculate_payment(
    principal: float,
    annual_rate_pct: float,
    periods: int,
    periods_per_year: int = 12,
) -> float:
    """
    Calculate the fixed periodic loan payment.

    Matches Excel's PMT() function (sign flipped to positive).

    Args:
        principal: Loan principal amount
        annual_rate_pct: Nominal annual interest rate as a percentage (e.g., 10.0)
        periods: Number of payments
        periods_per_year: Payments per year (12 for monthly)

    Returns:
        Periodic payment amount
    """
    rate = monthly_rate(annual_rate_pct, periods_per_year)

    if rate == 0:
        return principal / periods

    return principal * rate / (1 - (1 + rate) ** -periods)


def calculate_payment_with_residual(
    principal: float,
    annual_rate_pct: float,
    periods: int,
    residual_value: float,
    periods_per_year: int = 12,
) -> float:
    """Periodic payment that amortizes principal down to a residual balloon."""
    rate = monthly_rate(annual_rate_pct, periods_per_year)

    if rate == 0:
        return (principal - residual_value) / periods

    growth = (1 + rate) ** periods
    net_principal = principal - residual_value / growth
    return net_principal * rate * growth / (growth - 1)


def _walk_schedule(
    principal: float,
    rate: float,
    payment: float,
    periods: int,
    start_date: date,
    months_per_period: int,
    final_balance: float,
) -> List[PaymentScheduleEntry]:
    schedule = []
    balance = principal

    for period in range(1, periods + 1):
        due_date = start_date + relativedelta(months=period * months_per_period)
        interest = balance * rate

        if period == periods:
            # Final period absorbs accumulated drift so the balance lands exactly
            principal_pmt = balance - final_balance
            period_payment = principal_pmt + interest
            balance = final_balance
        else:
            principal_pmt = payment - interest
            period_payment = payment
            balance -= principal_pmt

        schedule.append(
            PaymentScheduleEntry(
                payment_number=period,
                due_date=due_date,
                payment=period_payment,
                principal=principal_pmt,
                interest=interest,
                balance=balance,
            )
        )

    return schedule


def generate_schedule(
    principal: float,
    annual_rate_pct: float,
    term_months: int,
    start_date: date,
    frequency: Union[str, PaymentFrequency] = PaymentFrequency.monthly,
) -> List[PaymentScheduleEntry]:
    """
    Generate a full annuity amortization schedule.

    The payment of period k falls due k calendar months after start_date
    (k payment periods for non-monthly frequencies). The final payment is
    adjusted so the balance ends at exactly zero.

    Args:
        principal: Loan principal amount, > 0
        annual_rate_pct: Nominal annual interest rate as a percentage, >= 0
        term_months: Loan term in months, positive integer
        start_date: Loan start date
        frequency: Payment frequency (default monthly)

    Returns:
        Schedule entries in ascending payment order

    Raises:
        InvalidInputError: If principal <= 0, term <= 0 or rate < 0
    """
    principal = coerce_positive(principal, "principal")
    annual_rate_pct = coerce_amount(annual_rate_pct, "annual_rate_pct")
    term_months = coerce_term(term_months)
    frequency = parse_frequency(frequency)

    periods = math.ceil(term_months / frequency.months_per_period)
    rate = monthly_rate(annual_rate_pct, frequency.periods_per_year)
    payment = calculate_payment(principal, annual_rate_pct, periods, frequency.periods_per_year)

    logger.debug(
        "Generating %s schedule: principal=%s rate=%s%% periods=%d payment=%.6f",
        frequency.value, principal, annual_rate_pct, periods, payment,
    )

    return _walk_schedule(
        principal, rate, payment, periods, start_date, frequency.months_per_period, 0.0
    )


def generate_loan_schedule(terms: LoanTerms) -> List[PaymentScheduleEntry]:
    """Generate the schedule for a LoanTerms record."""
    return generate_schedule(
        terms.principal,
        terms.annual_rate_pct,
        terms.term_months,
        terms.start_date,
        terms.frequency,
    )


def generate_residual_schedule(
    principal: float,
    annual_rate_pct: float,
    term_months: int,
    start_date: date,
    residual_value: float,
) -> List[PaymentScheduleEntry]:
    """
    Generate a leasing-style monthly schedule ending at a residual balance.

    The level payment discounts the residual value, and the final entry's
    balance equals residual_value exactly.

    Raises:
        InvalidInputError: If residual_value is negative or exceeds principal
    """
    principal = coerce_positive(principal, "principal")
    annual_rate_pct = coerce_amount(annual_rate_pct, "annual_rate_pct")
    term_months = coerce_term(term_months)
    residual_value = coerce_amount(residual_value, "residual_value")
    if residual_value > principal:
        raise InvalidInputError("residual_value must not exceed principal")

    rate = monthly_rate(annual_rate_pct)
    payment = calculate_payment_with_residual(principal, annual_rate_pct, term_months, residual_value)

    return _walk_schedule(principal, rate, payment, term_months, start_date, 1, residual_value)


def calculate_total_interest(schedule: Sequence[PaymentScheduleEntry]) -> float:
    """Calculate total interest paid over loan term."""
    return sum(row.interest for row in schedule)


def calculate_total_payments(schedule: Sequence[PaymentScheduleEntry]) -> float:
    """Calculate total of all payments (P+I) over loan term."""
    return sum(row.payment for row in schedule)


def schedule_end_date(schedule: Sequence[PaymentScheduleEntry]) -> Optional[date]:
    """Due date of the final payment, or None for an empty schedule."""
    return schedule[-1].due_date if schedule else None


def summarize_by_year(schedule: Sequence[PaymentScheduleEntry]) -> List[Dict]:
    """
    Group a schedule into calendar-year totals.

    Returns:
        One row per calendar year with principal, interest and payment totals
    """
    years: "OrderedDict[int, Dict]" = OrderedDict()

    for row in schedule:
        year = row.due_date.year
        if year not in years:
            years[year] = {"year": year, "principal": 0.0, "interest": 0.0, "payment": 0.0}
        years[year]["principal"] += row.principal
        years[year]["interest"] += row.interest
        years[year]["payment"] += row.payment

    return list(years.values())
