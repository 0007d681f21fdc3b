"""
Lender-Side Loan Metrics

Looks at a loan the way the investor pool that funds it does: the principal
goes out at t=0 and the scheduled payments come back. Adds the banker's
coverage ratios (DSCR, LTV, interest coverage) computed against the
borrower's asset value and net operating income.

Asset value and NOI are required; nothing is assumed on the caller's behalf.
Rates follow the rest of the engine: percentages in, fractions inside.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional

from lease_finance.calculations import metrics
from lease_finance.calculations.amortization import (
    LoanTerms,
    calculate_total_interest,
    generate_loan_schedule,
    parse_frequency,
)
from lease_finance.calculations.formatting import json_number
from lease_finance.calculations.money import coerce_amount, monthly_rate

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LenderMetrics:
    """
    Return and coverage metrics of a loan.

    irr_periodic / irr_annual are NaN without a sign change; ltv is NaN for a
    zero asset value; payback and break-even periods are inf when never reached.
    """

    irr_periodic: float
    irr_annual: float
    npv: float
    payback_periods: float
    discounted_payback_periods: float
    profitability_index: float
    roi: float
    dscr: float
    ltv: float
    interest_coverage_ratio: float
    break_even_periods: float

    def as_dict(self) -> Dict:
        return {
            "irr_periodic": json_number(self.irr_periodic, 8),
            "irr_annual": json_number(self.irr_annual, 6),
            "npv": json_number(self.npv, 2),
            "payback_periods": json_number(self.payback_periods, 4),
            "discounted_payback_periods": json_number(self.discounted_payback_periods),
            "profitability_index": json_number(self.profitability_index, 6),
            "roi": json_number(self.roi, 4),
            "dscr": json_number(self.dscr, 4),
            "ltv": json_number(self.ltv, 4),
            "interest_coverage_ratio": json_number(self.interest_coverage_ratio, 4),
            "break_even_periods": json_number(self.break_even_periods, 4),
        }


def calculate_lender_metrics(
    terms: LoanTerms,
    asset_value: float,
    annual_net_operating_income: float,
    discount_rate_pct: Optional[float] = None,
) -> LenderMetrics:
    """
    Calculate the lender's view of a loan.

    Args:
        terms: Loan terms; the schedule is generated from them
        asset_value: Value of the asset securing the loan
        annual_net_operating_income: Borrower's yearly NOI available for debt service
        discount_rate_pct: Annual discount rate as a percentage; the loan's own
            rate when omitted

    Returns:
        LenderMetrics

    Raises:
        InvalidInputError: If the terms are invalid, or asset value or NOI is
            negative or non-finite
    """
    asset_value = coerce_amount(asset_value, "asset_value")
    noi = coerce_amount(annual_net_operating_income, "annual_net_operating_income")
    periods_per_year = parse_frequency(terms.frequency).periods_per_year

    schedule = generate_loan_schedule(terms)
    principal = float(terms.principal)
    payments = [row.payment for row in schedule]
    level_payment = payments[0]
    total_interest = calculate_total_interest(schedule)

    if discount_rate_pct is None:
        discount_rate_pct = terms.annual_rate_pct
    discount = monthly_rate(coerce_amount(discount_rate_pct, "discount_rate_pct"), periods_per_year)
    loan_rate = monthly_rate(float(terms.annual_rate_pct), periods_per_year)

    irr = metrics.calculate_irr(principal, payments)
    annual_debt_service = level_payment * periods_per_year
    annual_interest = total_interest / len(schedule) * periods_per_year

    logger.debug(
        "Lender metrics: principal=%s periods=%d asset=%s noi=%s",
        principal, len(schedule), asset_value, noi,
    )

    return LenderMetrics(
        irr_periodic=irr,
        irr_annual=metrics.periodic_to_annual_rate(irr, periods_per_year),
        npv=metrics.calculate_npv(principal, payments, discount),
        payback_periods=metrics.calculate_payback_period(principal, level_payment),
        discounted_payback_periods=metrics.calculate_discounted_payback(principal, payments, discount),
        profitability_index=metrics.calculate_profitability_index(principal, payments, discount),
        roi=metrics.calculate_roi(total_interest, principal),
        dscr=metrics.calculate_dscr(noi, annual_debt_service),
        ltv=metrics.calculate_ltv(principal, asset_value),
        interest_coverage_ratio=metrics.calculate_interest_coverage(noi, annual_interest),
        break_even_periods=metrics.calculate_break_even_periods(principal, level_payment, loan_rate),
    )
