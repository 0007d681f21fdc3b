"""
Leasing API endpoints.

Missing leasing inputs are filled from the configured defaults before the
calculation runs. Results are VAT-exclusive; the lessee quote in the
response adds VAT at the configured rate.
"""

import logging
from dataclasses import asdict
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from lease_finance.calculations import cashflow, formatting, leasing, renter
from lease_finance.calculations.errors import InvalidInputError
from lease_finance.calculations.money import apply_vat, round_money
from lease_finance.config import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


class LeasingRequest(BaseModel):
    """Leasing inputs. Percent fields are percentages (20 = 20%)."""

    asset_cost_sans_iva: float
    lease_term_months: int
    loan_amount: float = 0.0
    annual_interest_rate: float = 0.0
    start_date: Optional[date] = None

    # Filled from settings when omitted
    lessor_profit_margin_pct: Optional[float] = None
    fixed_monthly_fee: Optional[float] = None
    admin_commission_pct: Optional[float] = None
    security_deposit_months: Optional[float] = None
    delivery_costs: Optional[float] = None
    residual_value_rate: Optional[float] = None
    discount_rate_pct: Optional[float] = None
    other_initial_expenses: Optional[float] = None
    monthly_operational_expenses: Optional[float] = None

    # Optional lessee analysis
    monthly_revenue: Optional[float] = None


class LesseeQuote(BaseModel):
    """What the lessee pays, with VAT."""

    monthly_rent_with_iva: float
    initial_payment_with_iva: float
    vat_rate: float


class OperatorMetricsResponse(BaseModel):
    net_present_value: float
    irr_monthly: Optional[float] = None
    irr_annual: Optional[float] = None
    irr_annual_label: str
    payback_period_months: Optional[float] = None
    payback_label: str
    total_project_profit: float
    net_monthly_cash_flow: float


class LeasingResponse(BaseModel):
    inputs: dict
    result: dict
    quote: LesseeQuote
    operator_metrics: OperatorMetricsResponse
    cash_flow: List[dict]
    annual_cash_flow: List[dict]
    lessee_analysis: Optional[dict] = None


def build_inputs(request: LeasingRequest, settings: Settings) -> leasing.LeasingInputs:
    """Merge the request over the configured defaults into LeasingInputs."""
    values = request.model_dump(exclude={"start_date", "monthly_revenue"})
    merged = leasing.merge_defaults(values, settings.leasing_defaults())
    return leasing.LeasingInputs(**merged)


def lessee_quote(
    result: leasing.LeasingFinancialResult,
    inputs: leasing.LeasingInputs,
    vat_rate: float,
) -> LesseeQuote:
    """
    VAT-inclusive figures for the lessee.

    Commission and delivery costs carry VAT; the security deposit does not.
    """
    taxable_initial = result.initial_admin_commission + inputs.delivery_costs
    return LesseeQuote(
        monthly_rent_with_iva=round_money(apply_vat(result.total_monthly_rent_sans_iva, vat_rate)),
        initial_payment_with_iva=round_money(
            apply_vat(taxable_initial, vat_rate) + result.initial_security_deposit
        ),
        vat_rate=vat_rate,
    )


def _lessee_analysis_dict(analysis: renter.RenterAnalysis) -> dict:
    return {
        "net_monthly_cash_flow": round_money(analysis.net_monthly_cash_flow),
        "break_even_revenue": round_money(analysis.break_even_revenue),
        "total_net_income": round_money(analysis.total_net_income),
        "roi": formatting.json_number(analysis.roi, 4),
        "roi_label": formatting.format_percentage(analysis.roi),
        "npv": round_money(analysis.npv),
        "irr_annual": formatting.json_number(analysis.irr_annual, 6),
        "irr_annual_label": formatting.format_rate(analysis.irr_annual),
        "payback_period_months": formatting.json_number(analysis.payback_period_months, 2),
        "payback_label": formatting.format_months(analysis.payback_period_months),
        "is_viable": analysis.is_viable,
    }


@router.post("", response_model=LeasingResponse)
async def calculate_leasing(request: LeasingRequest, settings: Settings = Depends(get_settings)):
    """Calculate lease financials, the operator's cash flow and, optionally, the lessee case."""
    logger.info(
        "Leasing: asset=%s term=%s loan=%s",
        request.asset_cost_sans_iva, request.lease_term_months, request.loan_amount,
    )
    start_date = request.start_date or date.today()

    try:
        inputs = build_inputs(request, settings).validated()
        analysis = cashflow.analyze_operator(inputs, start_date)
        lessee = None
        if request.monthly_revenue is not None:
            lessee = _lessee_analysis_dict(
                renter.analyze_lessee(analysis.result, inputs, request.monthly_revenue)
            )
    except InvalidInputError as e:
        logger.warning("Leasing rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    kpis = analysis.metrics
    return LeasingResponse(
        inputs={**asdict(inputs), "start_date": start_date.isoformat()},
        result=analysis.result.as_dict(),
        quote=lessee_quote(analysis.result, inputs, settings.vat_rate),
        operator_metrics=OperatorMetricsResponse(
            net_present_value=round_money(kpis.net_present_value),
            irr_monthly=formatting.json_number(kpis.irr_monthly, 6),
            irr_annual=formatting.json_number(kpis.irr_annual, 6),
            irr_annual_label=formatting.format_rate(kpis.irr_annual),
            payback_period_months=formatting.json_number(kpis.payback_period_months, 2),
            payback_label=formatting.format_months(kpis.payback_period_months),
            total_project_profit=round_money(kpis.total_project_profit),
            net_monthly_cash_flow=round_money(kpis.net_monthly_cash_flow),
        ),
        cash_flow=[entry.as_dict() for entry in analysis.cash_flow],
        annual_cash_flow=cashflow.annualize_cash_flows(analysis.cash_flow),
        lessee_analysis=lessee,
    )
