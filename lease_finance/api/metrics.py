"""
Investment metric API endpoints.

Rates cross this boundary as percentages and are normalised to fractions
before reaching the calculation engine. Values that have no numeric answer
(no IRR, payback never reached) are returned as null with a display label.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from lease_finance.api.calculations import LoanInput
from lease_finance.calculations import amortization, formatting, lender, metrics
from lease_finance.calculations.errors import InvalidInputError
from lease_finance.calculations.money import fraction_to_pct, pct_to_fraction

logger = logging.getLogger(__name__)

router = APIRouter()


class MetricsInput(BaseModel):
    """
    Input for investment metrics.

    cash_flows start one period after the initial investment. discount_rate
    is a per-period percentage (1 = 1% per period).
    """

    initial_investment: float
    cash_flows: List[float]
    discount_rate: float = 0.0
    periods_per_year: Optional[int] = None


class MetricsResponse(BaseModel):
    """Investment metrics with display labels."""

    npv: float
    npv_label: str
    irr: Optional[float] = None
    irr_label: str
    irr_annual: Optional[float] = None
    irr_annual_label: Optional[str] = None
    payback_period: Optional[float] = None
    payback_label: str
    discounted_payback_period: Optional[float] = None
    roi: Optional[float] = None
    roi_label: str
    profitability_index: Optional[float] = None


def _period_label(periods: float) -> str:
    if formatting.is_sentinel(periods):
        return formatting.format_months(periods)
    return f"{periods:.2f} periods"


@router.post("", response_model=MetricsResponse)
async def calculate_metrics(inputs: MetricsInput):
    """Calculate NPV, IRR, payback, ROI and profitability index for a cash flow series."""
    logger.info(
        "Metrics: initial=%s flows=%d discount=%s%%",
        inputs.initial_investment, len(inputs.cash_flows), inputs.discount_rate,
    )

    try:
        rate = pct_to_fraction(inputs.discount_rate)
        # The initial investment is an outlay whichever sign the caller used
        outlay = abs(inputs.initial_investment)
        npv = metrics.calculate_npv(outlay, inputs.cash_flows, rate)
        irr = metrics.calculate_irr(outlay, inputs.cash_flows)
        payback = metrics.calculate_cumulative_payback([-outlay, *inputs.cash_flows])
        discounted_payback = metrics.calculate_discounted_payback(outlay, inputs.cash_flows, rate)
        roi = metrics.calculate_roi(sum(inputs.cash_flows) - outlay, outlay)
        pi = metrics.calculate_profitability_index(outlay, inputs.cash_flows, rate)
    except InvalidInputError as e:
        logger.warning("Metrics rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    irr_annual = None
    irr_annual_label = None
    if inputs.periods_per_year:
        annual = metrics.periodic_to_annual_rate(irr, inputs.periods_per_year)
        irr_annual = formatting.json_number(annual, 6)
        irr_annual_label = formatting.format_rate(annual)

    return MetricsResponse(
        npv=round(npv, 2),
        npv_label=formatting.format_currency(npv),
        irr=formatting.json_number(irr, 6),
        irr_label=formatting.format_rate(irr),
        irr_annual=irr_annual,
        irr_annual_label=irr_annual_label,
        payback_period=formatting.json_number(payback, 4),
        payback_label=_period_label(payback),
        discounted_payback_period=formatting.json_number(discounted_payback),
        roi=formatting.json_number(roi, 4),
        roi_label=formatting.format_percentage(roi),
        profitability_index=formatting.json_number(pi, 6),
    )


class RateInput(BaseModel):
    """Input for solving the periodic rate of a level annuity."""

    periods: int
    payment: float
    present_value: float
    future_value: float = 0.0
    periods_per_year: int = 12


class RateResponse(BaseModel):
    periodic_rate: Optional[float] = None
    annual_rate: Optional[float] = None
    label: str


@router.post("/rate", response_model=RateResponse)
async def solve_rate(inputs: RateInput):
    """Solve for the periodic interest rate of a level payment stream."""
    try:
        periodic = metrics.solve_periodic_rate(
            inputs.periods, inputs.payment, inputs.present_value, inputs.future_value
        )
    except InvalidInputError as e:
        logger.warning("Rate rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    annual = periodic * inputs.periods_per_year
    return RateResponse(
        periodic_rate=formatting.json_number(periodic, 8),
        annual_rate=formatting.json_number(fraction_to_pct(annual), 6),
        label=formatting.format_rate(annual),
    )


class LenderInput(LoanInput):
    """
    Loan parameters plus the borrower's collateral and income.

    discount_rate is an annual percentage; the loan's own rate when omitted.
    """

    asset_value: float
    annual_net_operating_income: float
    discount_rate: Optional[float] = None


class LenderResponse(BaseModel):
    """Lender return and coverage metrics; sentinels are null with a label."""

    metrics: dict
    irr_annual_label: str
    payback_label: str
    break_even_label: str
    ltv_label: str


@router.post("/lender", response_model=LenderResponse)
async def calculate_lender(inputs: LenderInput):
    """Calculate IRR, NPV, payback, DSCR, LTV, interest coverage and break-even for a loan."""
    logger.info(
        "Lender metrics: principal=%s rate=%s%% term=%s asset=%s",
        inputs.principal, inputs.annual_rate, inputs.term_months, inputs.asset_value,
    )

    try:
        terms = amortization.LoanTerms(
            principal=inputs.principal,
            annual_rate_pct=inputs.annual_rate,
            term_months=inputs.term_months,
            start_date=inputs.start_date,
            frequency=amortization.parse_frequency(inputs.frequency),
        )
        result = lender.calculate_lender_metrics(
            terms,
            inputs.asset_value,
            inputs.annual_net_operating_income,
            inputs.discount_rate,
        )
    except InvalidInputError as e:
        logger.warning("Lender metrics rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return LenderResponse(
        metrics=result.as_dict(),
        irr_annual_label=formatting.format_rate(result.irr_annual),
        payback_label=_period_label(result.payback_periods),
        break_even_label=_period_label(result.break_even_periods),
        ltv_label=formatting.format_percentage(result.ltv),
    )
