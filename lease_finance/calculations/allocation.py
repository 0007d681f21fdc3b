"""
Investor Return Allocation

Splits a loan's payment stream across investors pro-rata to the amount each
one put in. Every payment is shared in proportion; there are no hurdles or
promotes.

Shares are normalised to the sum of the supplied investment amounts. The
allocator does not require the investors to fully fund the loan; callers
compare funding_gap() against their own tolerance.

Rounding drift: per-period shares are not rebalanced, so the investors'
totals may differ from the schedule's total by at most
max_allocation_drift(investors, periods), i.e. half a cent per investor per
period.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple, Union

from lease_finance.calculations.amortization import PaymentScheduleEntry
from lease_finance.calculations.errors import InvalidInputError
from lease_finance.calculations.money import coerce_amount, round_money

HALF_CENT = 0.005


@dataclass(frozen=True)
class Investor:
    """An investor's stake in a loan."""

    name: str
    investment_amount: float
    investor_id: Optional[Union[int, str]] = None


@dataclass(frozen=True)
class InvestorReturn:
    """An investor's proportional slice of a payment schedule."""

    investor_id: Optional[Union[int, str]]
    name: str
    investment_amount: float
    share: float
    monthly_returns: Tuple[float, ...] = field(repr=False)
    total_return: float
    total_interest: float
    roi: float  # Percent; NaN when investment_amount is zero

    def as_dict(self) -> Dict:
        return {
            "investor_id": self.investor_id,
            "name": self.name,
            "investment_amount": round_money(self.investment_amount),
            "share": self.share,
            "monthly_returns": [round_money(r) for r in self.monthly_returns],
            "total_return": round_money(self.total_return),
            "total_interest": round_money(self.total_interest),
            "roi": None if math.isnan(self.roi) else round(self.roi, 4),
        }


def _validated_amounts(investors: Sequence[Investor]) -> List[float]:
    if not investors:
        raise InvalidInputError("At least one investor is required")

    amounts = [
        coerce_amount(inv.investment_amount, f"investment_amount ({inv.name})")
        for inv in investors
    ]
    if sum(amounts) <= 0:
        raise InvalidInputError("Total investment must be greater than zero")
    return amounts


def calculate_share(investment_amount: float, total_investment: float) -> float:
    """Investor's share of the pool (0 to 1)."""
    if total_investment <= 0:
        raise InvalidInputError("Total investment must be greater than zero")
    return investment_amount / total_investment


def calculate_investor_return(
    investor: Investor,
    share: float,
    schedule: Sequence[PaymentScheduleEntry],
) -> InvestorReturn:
    """
    Allocate a schedule to one investor with a known share.

    Args:
        investor: Investor record
        share: Investor's share of the pool (0 to 1)
        schedule: Loan payment schedule

    Returns:
        InvestorReturn with per-period returns, totals and ROI percentage
    """
    monthly_returns = tuple(row.payment * share for row in schedule)
    total_return = sum(monthly_returns)
    total_interest = sum(row.interest * share for row in schedule)

    amount = coerce_amount(investor.investment_amount, f"investment_amount ({investor.name})")
    roi = (total_interest / amount) * 100 if amount != 0 else float("nan")

    return InvestorReturn(
        investor_id=investor.investor_id,
        name=investor.name,
        investment_amount=amount,
        share=share,
        monthly_returns=monthly_returns,
        total_return=total_return,
        total_interest=total_interest,
        roi=roi,
    )


def allocate(
    schedule: Sequence[PaymentScheduleEntry],
    investors: Sequence[Investor],
) -> List[InvestorReturn]:
    """
    Allocate a payment schedule across investors pro-rata.

    Args:
        schedule: Loan payment schedule
        investors: Investors with their investment amounts

    Returns:
        One InvestorReturn per investor, in input order

    Raises:
        InvalidInputError: If there are no investors, an amount is negative
            or non-finite, or the amounts sum to zero
    """
    amounts = _validated_amounts(investors)
    total_investment = sum(amounts)

    return [
        calculate_investor_return(investor, calculate_share(amount, total_investment), schedule)
        for investor, amount in zip(investors, amounts)
    ]


def max_allocation_drift(investor_count: int, period_count: int) -> float:
    """Upper bound on |sum of investor returns - sum of payments|."""
    return investor_count * period_count * HALF_CENT


def funding_gap(investors: Sequence[Investor], principal: float) -> float:
    """
    Principal not covered by the investors.

    Positive when under-funded, negative when over-funded.
    """
    return principal - sum(
        coerce_amount(inv.investment_amount, f"investment_amount ({inv.name})")
        for inv in investors
    )


def investor_cash_flows(investor_return: InvestorReturn) -> List[float]:
    """Cash-flow series for an investor: the investment at t=0, then each period's return."""
    return [-investor_return.investment_amount, *investor_return.monthly_returns]


def summarize_allocation(returns: Sequence[InvestorReturn]) -> Dict:
    """Calculate summary totals across all investors."""
    return {
        "total_invested": sum(r.investment_amount for r in returns),
        "total_return": sum(r.total_return for r in returns),
        "total_interest": sum(r.total_interest for r in returns),
        "investor_count": len(returns),
    }
