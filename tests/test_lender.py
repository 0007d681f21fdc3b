"""
Tests for lender-side loan metrics and the banker's coverage ratios.
"""

import math
import pytest

from lease_finance.calculations.amortization import (
    LoanTerms,
    PaymentFrequency,
    calculate_payment,
)
from lease_finance.calculations.errors import InvalidInputError
from lease_finance.calculations.lender import calculate_lender_metrics
from lease_finance.calculations.metrics import (
    calculate_break_even_periods,
    calculate_interest_coverage,
    calculate_ltv,
)


@pytest.fixture
def terms(start_date):
    """100k at 10% over 36 months."""
    return LoanTerms(principal=100000, annual_rate_pct=10, term_months=36, start_date=start_date)


class TestCoverageRatios:
    """Test LTV, interest coverage and break-even."""

    def test_ltv(self):
        assert calculate_ltv(80000, 100000) == 80
        assert math.isnan(calculate_ltv(80000, 0))

    def test_interest_coverage(self):
        assert calculate_interest_coverage(3000, 1000) == 3
        assert calculate_interest_coverage(3000, 0) == float("inf")

    def test_break_even_periods(self):
        """Principal over the first period's principal portion."""
        payment = calculate_payment(100000, 10, 36)
        periods = calculate_break_even_periods(100000, payment, 0.10 / 12)
        assert abs(periods - 41.7818) < 1e-3

    def test_break_even_never(self):
        """A payment that only covers interest never breaks even."""
        assert calculate_break_even_periods(1000, 10, 0.01) == float("inf")
        assert calculate_break_even_periods(1000, 5, 0.01) == float("inf")


class TestLenderMetrics:
    """Test the lender's view of a loan."""

    def test_returns_at_the_loan_rate(self, terms):
        """Discounting at the loan's own rate gives NPV near zero and PI near one."""
        result = calculate_lender_metrics(terms, 125000, 10000)
        assert abs(result.irr_periodic - 0.10 / 12) < 1e-8
        assert abs(result.irr_annual - 0.104713) < 1e-5
        assert abs(result.npv) < 1e-4
        assert abs(result.profitability_index - 1) < 1e-9
        assert abs(result.roi - 16.1619) < 1e-3

    def test_coverage(self, terms):
        result = calculate_lender_metrics(terms, 125000, 10000)
        assert result.ltv == 80
        assert abs(result.dscr - 10000 / (3226.7187 * 12)) < 1e-6
        assert abs(result.interest_coverage_ratio - 1.85623) < 1e-4
        assert abs(result.break_even_periods - 41.7818) < 1e-3

    def test_payback(self, terms):
        """Discounted payback comes after the undiscounted one."""
        result = calculate_lender_metrics(terms, 125000, 10000, discount_rate_pct=5)
        assert abs(result.payback_periods - 30.9912) < 1e-3
        assert result.payback_periods < result.discounted_payback_periods < 36
        assert result.npv > 0

    def test_quarterly_loan(self, start_date):
        """Debt service is annualized by the payment frequency."""
        terms = LoanTerms(
            principal=100000,
            annual_rate_pct=8,
            term_months=36,
            start_date=start_date,
            frequency=PaymentFrequency.quarterly,
        )
        result = calculate_lender_metrics(terms, 200000, 40000)
        payment = calculate_payment(100000, 8, 12, periods_per_year=4)
        assert abs(result.dscr - 40000 / (payment * 4)) < 1e-9
        assert abs(result.irr_periodic - 0.02) < 1e-8
        assert result.ltv == 50

    def test_as_dict_renders_sentinels(self, terms):
        data = calculate_lender_metrics(terms, 0, 10000).as_dict()
        assert data["ltv"] is None
        assert data["npv"] == 0

    @pytest.mark.parametrize(
        "asset_value,noi", [(-1, 10000), (125000, float("nan")), ("abc", 10000)]
    )
    def test_invalid_inputs(self, terms, asset_value, noi):
        with pytest.raises(InvalidInputError):
            calculate_lender_metrics(terms, asset_value, noi)
