"""
Renter / Operator Profitability

What-if analysis for the party that uses the leased (or financed) asset to
run a business: given the revenue it earns with the asset, does the monthly
payment leave a profit, and what do NPV, IRR and payback look like?

Designed to be recomputed from scratch on every change of the revenue
input; nothing is cached.
"""

import math
from dataclasses import dataclass
from typing import Dict, List

from lease_finance.calculations import metrics
from lease_finance.calculations.leasing import LeasingFinancialResult, LeasingInputs
from lease_finance.calculations.money import (
    coerce_amount,
    coerce_term,
    monthly_rate,
    pct_to_fraction,
)


@dataclass(frozen=True)
class RenterAnalysis:
    """
    Renter profitability over the term.

    roi is a percentage and NaN when nothing was invested up front.
    payback_period_months is inf when the monthly net is not positive.
    irr_monthly / irr_annual are NaN when the series has no IRR.
    """

    net_monthly_cash_flow: float
    break_even_revenue: float
    total_net_income: float
    roi: float
    npv: float
    irr_monthly: float
    irr_annual: float
    payback_period_months: float
    is_viable: bool


@dataclass(frozen=True)
class LeaseVsBuy:
    """Total cost of leasing the asset versus financing its purchase."""

    total_cost_of_leasing: float
    total_cost_of_buying: float
    cost_savings: float


def analyze_renter(
    monthly_payment: float,
    monthly_revenue: float,
    monthly_expenses: float,
    initial_investment: float,
    term_months: int,
    residual_value: float = 0.0,
    discount_rate_pct: float = 0.0,
) -> RenterAnalysis:
    """
    Analyze the renter's business case.

    Args:
        monthly_payment: Rent or loan payment made each month
        monthly_revenue: Revenue the asset generates each month
        monthly_expenses: Other monthly operating expenses
        initial_investment: Cash put in at month 0 (down or initial payment)
        term_months: Months the asset is used
        residual_value: Value recovered at the end of the term
        discount_rate_pct: Annual discount rate as a percentage

    Returns:
        RenterAnalysis
    """
    monthly_payment = coerce_amount(monthly_payment, "monthly_payment")
    monthly_revenue = coerce_amount(monthly_revenue, "monthly_revenue")
    monthly_expenses = coerce_amount(monthly_expenses, "monthly_expenses")
    initial_investment = coerce_amount(initial_investment, "initial_investment")
    term_months = coerce_term(term_months)
    residual_value = coerce_amount(residual_value, "residual_value")
    discount_rate_pct = coerce_amount(discount_rate_pct, "discount_rate_pct")

    net_monthly = monthly_revenue - monthly_payment - monthly_expenses
    total_net_income = net_monthly * term_months
    flows = metrics.level_cash_flows(net_monthly, term_months, residual_value)

    npv = metrics.calculate_npv(initial_investment, flows, monthly_rate(discount_rate_pct))
    irr_monthly = metrics.calculate_irr(initial_investment, flows)
    irr_annual = metrics.periodic_to_annual_rate(irr_monthly)

    return RenterAnalysis(
        net_monthly_cash_flow=net_monthly,
        break_even_revenue=monthly_payment + monthly_expenses,
        total_net_income=total_net_income,
        roi=metrics.calculate_roi(total_net_income, initial_investment),
        npv=npv,
        irr_monthly=irr_monthly,
        irr_annual=irr_annual,
        payback_period_months=metrics.calculate_payback_period(initial_investment, net_monthly),
        # NaN compares False, so a missing IRR is never viable
        is_viable=npv > 0 and irr_annual > pct_to_fraction(discount_rate_pct),
    )


def analyze_lessee(
    result: LeasingFinancialResult,
    inputs: LeasingInputs,
    monthly_revenue: float,
) -> RenterAnalysis:
    """Renter analysis for a lessee paying the lease rent and initial payment."""
    return analyze_renter(
        monthly_payment=result.total_monthly_rent_sans_iva,
        monthly_revenue=monthly_revenue,
        monthly_expenses=inputs.monthly_operational_expenses,
        initial_investment=result.initial_payment_sans_iva,
        term_months=inputs.lease_term_months,
        discount_rate_pct=inputs.discount_rate_pct,
    )


def compare_lease_vs_buy(
    result: LeasingFinancialResult,
    inputs: LeasingInputs,
    down_payment_pct: float = 20.0,
) -> LeaseVsBuy:
    """
    Compare leasing against buying with a down payment and the investor loan payment.

    Args:
        result: Leasing result for the inputs
        inputs: Leasing inputs
        down_payment_pct: Down payment as a percentage of asset cost
    """
    down_payment_pct = coerce_amount(down_payment_pct, "down_payment_pct")
    term = inputs.lease_term_months

    total_cost_of_leasing = (
        result.initial_payment_sans_iva + result.total_monthly_rent_sans_iva * term
    )
    down_payment = inputs.asset_cost_sans_iva * pct_to_fraction(down_payment_pct)
    total_cost_of_buying = down_payment + result.monthly_payment * term

    return LeaseVsBuy(
        total_cost_of_leasing=total_cost_of_leasing,
        total_cost_of_buying=total_cost_of_buying,
        cost_savings=total_cost_of_buying - total_cost_of_leasing,
    )


def annual_breakdown(
    monthly_revenue: float,
    monthly_payment: float,
    monthly_expenses: float,
    term_months: int,
) -> List[Dict]:
    """Per-year revenue, payment, expense and net totals; the last year may be partial."""
    rows = []
    years = math.ceil(term_months / 12)
    for year in range(1, years + 1):
        months = min(12, term_months - (year - 1) * 12)
        rows.append(
            {
                "year": year,
                "months": months,
                "revenue": monthly_revenue * months,
                "payment": monthly_payment * months,
                "expenses": monthly_expenses * months,
                "net_cash_flow": (monthly_revenue - monthly_payment - monthly_expenses) * months,
            }
        )
    return rows
