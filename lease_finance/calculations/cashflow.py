"""
Lease Project Cash Flow Calculations

Generates the operator's (lessor's) monthly cash flow for a lease and the
KPIs derived from it.

Month 0:   inflow  = loan proceeds + admin commission + security deposit
           outflow = asset cost + delivery costs + other initial expenses
Months 1-N: inflow = total monthly rent, outflow = scheduled loan payment + operating expenses
Month N:   adds the residual value (inflow) and the deposit refund (outflow)
"""

from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Sequence, Tuple

from dateutil.relativedelta import relativedelta

from lease_finance.calculations import metrics
from lease_finance.calculations.leasing import (
    LeasingFinancialResult,
    LeasingInputs,
    calculate_leasing_financials,
)
from lease_finance.calculations.money import monthly_rate, round_money


@dataclass(frozen=True)
class CashFlowEntry:
    """One month of the operator's project cash flow."""

    month: int
    date: date
    cash_inflow: float
    cash_outflow: float
    net_cash_flow: float
    cumulative_cash_flow: float
    present_value: float
    cumulative_npv: float

    def as_dict(self) -> Dict:
        return {
            "month": self.month,
            "date": self.date.isoformat(),
            "cash_inflow": round_money(self.cash_inflow),
            "cash_outflow": round_money(self.cash_outflow),
            "net_cash_flow": round_money(self.net_cash_flow),
            "cumulative_cash_flow": round_money(self.cumulative_cash_flow),
            "present_value": round_money(self.present_value),
            "cumulative_npv": round_money(self.cumulative_npv),
        }


@dataclass(frozen=True)
class OperatorMetrics:
    """Operator KPIs. IRR is given per month and, explicitly annualized, per year."""

    net_present_value: float
    irr_monthly: float
    irr_annual: float
    payback_period_months: float
    total_project_profit: float
    net_monthly_cash_flow: float


@dataclass(frozen=True)
class OperatorAnalysis:
    """Leasing result together with the project cash flow and KPIs built from it."""

    result: LeasingFinancialResult
    cash_flow: Tuple[CashFlowEntry, ...]
    metrics: OperatorMetrics


def generate_monthly_dates(start_date: date, num_months: int) -> List[date]:
    """Generate array of monthly dates (month 0 through num_months)."""
    return [start_date + relativedelta(months=i) for i in range(num_months + 1)]


def generate_project_cash_flow(
    inputs: LeasingInputs,
    start_date: date,
    result: Optional[LeasingFinancialResult] = None,
) -> List[CashFlowEntry]:
    """
    Generate the operator's monthly project cash flow.

    Args:
        inputs: Leasing inputs
        start_date: Lease start date (month 0)
        result: Precomputed leasing result for the same inputs, if available

    Returns:
        Entries for months 0 through lease_term_months
    """
    inputs = inputs.validated()
    if result is None:
        result = calculate_leasing_financials(inputs, start_date)

    term = inputs.lease_term_months
    discount = monthly_rate(inputs.discount_rate_pct)
    dates = generate_monthly_dates(start_date, term)

    flows = []
    for month in range(term + 1):
        if month == 0:
            inflow = (
                inputs.loan_amount
                + result.initial_admin_commission
                + result.initial_security_deposit
            )
            outflow = (
                inputs.asset_cost_sans_iva
                + inputs.delivery_costs
                + inputs.other_initial_expenses
            )
        else:
            inflow = result.total_monthly_rent_sans_iva
            loan_payment = (
                result.loan_schedule[month - 1].payment
                if result.loan_schedule
                else result.monthly_payment
            )
            outflow = loan_payment + inputs.monthly_operational_expenses

        if month == term:
            inflow += result.residual_value_amount
            outflow += result.initial_security_deposit

        flows.append((inflow, outflow))

    entries = []
    cumulative = 0.0
    cumulative_npv = 0.0

    for month, (inflow, outflow) in enumerate(flows):
        net = inflow - outflow
        present_value = net / (1 + discount) ** month
        cumulative += net
        cumulative_npv += present_value

        entries.append(
            CashFlowEntry(
                month=month,
                date=dates[month],
                cash_inflow=inflow,
                cash_outflow=outflow,
                net_cash_flow=net,
                cumulative_cash_flow=cumulative,
                present_value=present_value,
                cumulative_npv=cumulative_npv,
            )
        )

    return entries


def calculate_operator_metrics(
    entries: Sequence[CashFlowEntry], net_monthly_cash_flow: float
) -> OperatorMetrics:
    """
    Calculate operator KPIs from a project cash flow.

    Args:
        entries: Output of generate_project_cash_flow
        net_monthly_cash_flow: Recurring monthly net (rent - loan payment - opex)
    """
    net_flows = [entry.net_cash_flow for entry in entries]
    irr_monthly = metrics.irr_of_series(net_flows)

    return OperatorMetrics(
        net_present_value=entries[-1].cumulative_npv,
        irr_monthly=irr_monthly,
        irr_annual=metrics.periodic_to_annual_rate(irr_monthly),
        payback_period_months=metrics.calculate_cumulative_payback(net_flows),
        total_project_profit=entries[-1].cumulative_cash_flow,
        net_monthly_cash_flow=net_monthly_cash_flow,
    )


def analyze_operator(inputs: LeasingInputs, start_date: date) -> OperatorAnalysis:
    """Leasing result, project cash flow and operator KPIs for one set of inputs."""
    inputs = inputs.validated()
    result = calculate_leasing_financials(inputs, start_date)
    entries = generate_project_cash_flow(inputs, start_date, result)
    net_monthly = (
        result.total_monthly_rent_sans_iva
        - result.monthly_payment
        - inputs.monthly_operational_expenses
    )

    return OperatorAnalysis(
        result=result,
        cash_flow=tuple(entries),
        metrics=calculate_operator_metrics(entries, net_monthly),
    )


def annualize_cash_flows(entries: Sequence[CashFlowEntry]) -> List[Dict]:
    """
    Convert monthly project cash flows to lease-year totals.

    Month 0 is folded into year 1.
    """
    annual_data: List[Dict] = []

    for entry in entries:
        year = max(1, (entry.month + 11) // 12)
        if not annual_data or annual_data[-1]["year"] != year:
            annual_data.append(
                {"year": year, "cash_inflow": 0.0, "cash_outflow": 0.0, "net_cash_flow": 0.0}
            )
        totals = annual_data[-1]
        totals["cash_inflow"] += entry.cash_inflow
        totals["cash_outflow"] += entry.cash_outflow
        totals["net_cash_flow"] += entry.net_cash_flow

    for year in annual_data:
        for key in ("cash_inflow", "cash_outflow", "net_cash_flow"):
            year[key] = round_money(year[key])

    return annual_data
