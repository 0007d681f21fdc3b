"""
Loan and investor calculation API endpoints.

These endpoints accept loan parameters (and an investor pool) and return the
amortization schedule with each investor's proportional returns.
"""

import logging
from datetime import date
from typing import List, Optional, Union

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from lease_finance.calculations import allocation, amortization
from lease_finance.calculations.errors import InvalidInputError
from lease_finance.config import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter()


class InvestorInput(BaseModel):
    """An investor's stake."""

    name: str
    investment_amount: float
    investor_id: Optional[Union[int, str]] = None


class LoanInput(BaseModel):
    """Loan parameters. Rate is an annual percentage (12 = 12%)."""

    principal: float
    annual_rate: float
    term_months: int
    start_date: date
    frequency: str = "monthly"


class CalculateInput(LoanInput):
    """Loan parameters plus the investors funding the loan."""

    investors: List[InvestorInput]


class ScheduleResponse(BaseModel):
    """Amortization schedule with totals."""

    monthly_payment: float
    total_interest: float
    total_payments: float
    end_date: Optional[date] = None
    schedule: List[dict]
    annual_summary: List[dict]


class CalculateResponse(ScheduleResponse):
    """Schedule plus the allocation across investors."""

    investor_returns: List[dict]
    summary: dict


def _schedule_response_fields(schedule) -> dict:
    return {
        "monthly_payment": round(schedule[0].payment, 2),
        "total_interest": round(amortization.calculate_total_interest(schedule), 2),
        "total_payments": round(amortization.calculate_total_payments(schedule), 2),
        "end_date": amortization.schedule_end_date(schedule),
        "schedule": [row.as_dict() for row in schedule],
        "annual_summary": amortization.summarize_by_year(schedule),
    }


def _check_investor_pool(
    investors: List[allocation.Investor], principal: float, settings: Settings
) -> None:
    if len(investors) < settings.min_investors:
        raise InvalidInputError(
            f"At least {settings.min_investors} investors are required, got {len(investors)}"
        )

    gap = allocation.funding_gap(investors, principal)
    if abs(gap) > settings.funding_tolerance:
        direction = "under" if gap > 0 else "over"
        raise InvalidInputError(
            f"Investments are {direction}-funded by {abs(gap):.2f} against principal {principal:.2f}"
        )


@router.post("", response_model=CalculateResponse)
async def calculate(inputs: CalculateInput, settings: Settings = Depends(get_settings)):
    """Generate the loan schedule and allocate it across the investors."""
    logger.info(
        "Calculate: principal=%s rate=%s%% term=%s investors=%d",
        inputs.principal, inputs.annual_rate, inputs.term_months, len(inputs.investors),
    )

    investors = [
        allocation.Investor(
            name=inv.name,
            investment_amount=inv.investment_amount,
            investor_id=inv.investor_id,
        )
        for inv in inputs.investors
    ]

    try:
        _check_investor_pool(investors, inputs.principal, settings)
        terms = amortization.LoanTerms(
            principal=inputs.principal,
            annual_rate_pct=inputs.annual_rate,
            term_months=inputs.term_months,
            start_date=inputs.start_date,
            frequency=amortization.parse_frequency(inputs.frequency),
        )
        schedule = amortization.generate_loan_schedule(terms)
        returns = allocation.allocate(schedule, investors)
    except InvalidInputError as e:
        logger.warning("Calculate rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    summary = allocation.summarize_allocation(returns)
    return CalculateResponse(
        **_schedule_response_fields(schedule),
        investor_returns=[r.as_dict() for r in returns],
        summary={key: round(value, 2) for key, value in summary.items()},
    )


@router.post("/schedule", response_model=ScheduleResponse)
async def calculate_schedule(inputs: LoanInput):
    """Generate a loan amortization schedule without investors."""
    logger.info(
        "Schedule: principal=%s rate=%s%% term=%s frequency=%s",
        inputs.principal, inputs.annual_rate, inputs.term_months, inputs.frequency,
    )

    try:
        schedule = amortization.generate_schedule(
            principal=inputs.principal,
            annual_rate_pct=inputs.annual_rate,
            term_months=inputs.term_months,
            start_date=inputs.start_date,
            frequency=inputs.frequency,
        )
    except InvalidInputError as e:
        logger.warning("Schedule rejected: %s", e)
        raise HTTPException(status_code=400, detail=str(e))

    return ScheduleResponse(**_schedule_response_fields(schedule))
