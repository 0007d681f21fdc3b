"""
Tests for leasing financials, the operator's project cash flow and the
renter analysis.
"""

import math
import pytest
from dataclasses import replace
from datetime import date

from lease_finance.calculations.cashflow import (
    analyze_operator,
    annualize_cash_flows,
    calculate_operator_metrics,
    generate_monthly_dates,
    generate_project_cash_flow,
)
from lease_finance.calculations.errors import InvalidInputError
from lease_finance.calculations.leasing import (
    LEASING_DEFAULTS,
    LeasingInputs,
    calculate_leasing_financials,
    merge_defaults,
)
from lease_finance.calculations.renter import (
    analyze_lessee,
    analyze_renter,
    annual_breakdown,
    compare_lease_vs_buy,
)


class TestLeasingFinancials:
    """Test the lessor/lessee breakdown."""

    def test_admin_commission(self, leasing_inputs, start_date):
        """1% commission on a 100k asset."""
        result = calculate_leasing_financials(leasing_inputs, start_date)
        assert result.initial_admin_commission == 1000

    def test_rent_components(self, leasing_inputs, start_date):
        """Straight-line base rent plus margin plus fixed fee."""
        result = calculate_leasing_financials(leasing_inputs, start_date)
        assert result.residual_value_amount == 20000
        assert abs(result.base_rent_amortization - 80000 / 36) < 1e-9
        assert abs(result.lessor_monthly_profit - 20000 / 36) < 1e-9
        assert abs(result.total_monthly_rent_sans_iva - 100000 / 36) < 1e-9
        assert abs(result.base_rent_with_margin - result.total_monthly_rent_sans_iva) < 1e-9

    def test_fixed_fee_added_to_rent(self, leasing_inputs, start_date):
        with_fee = replace(leasing_inputs, fixed_monthly_fee=150)
        base = calculate_leasing_financials(leasing_inputs, start_date)
        result = calculate_leasing_financials(with_fee, start_date)
        assert abs(result.total_monthly_rent_sans_iva - base.total_monthly_rent_sans_iva - 150) < 1e-9
        assert result.base_rent_with_margin == base.base_rent_with_margin

    def test_security_deposit_and_initial_payment(self, leasing_inputs, start_date):
        """Deposit is months of total rent; initial payment adds commission and delivery."""
        inputs = replace(leasing_inputs, security_deposit_months=2, delivery_costs=500)
        result = calculate_leasing_financials(inputs, start_date)
        assert abs(result.initial_security_deposit - 2 * result.total_monthly_rent_sans_iva) < 1e-9
        assert abs(
            result.initial_payment_sans_iva
            - (1000 + result.initial_security_deposit + 500)
        ) < 1e-9

    def test_loan_payment_and_interest(self, leasing_inputs, start_date):
        """Investor loan of 80k at 12% for 36 months."""
        result = calculate_leasing_financials(leasing_inputs, start_date)
        assert abs(result.monthly_payment - 2657.14) < 0.01
        assert len(result.loan_schedule) == 36
        assert result.loan_schedule[-1].balance == 0.0
        assert abs(
            result.total_interest_cost - sum(row.interest for row in result.loan_schedule)
        ) < 1e-9

    def test_no_loan(self, leasing_inputs, start_date):
        """A lease without investor funding has no loan figures."""
        result = calculate_leasing_financials(replace(leasing_inputs, loan_amount=0), start_date)
        assert result.monthly_payment == 0
        assert result.total_interest_cost == 0
        assert result.loan_schedule == ()

    @pytest.mark.parametrize(
        "field,value",
        [
            ("asset_cost_sans_iva", -1),
            ("lease_term_months", 0),
            ("lease_term_months", 12.5),
            ("residual_value_rate", float("nan")),
            ("loan_amount", -5),
            ("discount_rate_pct", float("inf")),
        ],
    )
    def test_invalid_inputs(self, leasing_inputs, start_date, field, value):
        with pytest.raises(InvalidInputError):
            calculate_leasing_financials(replace(leasing_inputs, **{field: value}), start_date)

    def test_missing_field_is_not_defaulted(self):
        """The calculator never fills in defaults on its own."""
        with pytest.raises(TypeError):
            LeasingInputs(asset_cost_sans_iva=100000, lease_term_months=36)

    def test_merge_defaults(self):
        """Caller-side defaults fill missing and None entries only."""
        merged = merge_defaults({"lessor_profit_margin_pct": 15, "residual_value_rate": None})
        assert merged["lessor_profit_margin_pct"] == 15
        assert merged["residual_value_rate"] == LEASING_DEFAULTS["residual_value_rate"]
        assert merged["admin_commission_pct"] == 1.0

    def test_as_dict_rounds(self, leasing_inputs, start_date):
        data = calculate_leasing_financials(leasing_inputs, start_date).as_dict()
        assert data["total_monthly_rent_sans_iva"] == 2777.78
        assert data["initial_admin_commission"] == 1000
        assert len(data["loan_schedule"]) == 36


class TestProjectCashFlow:
    """Test the operator's monthly cash flow and KPIs."""

    def test_monthly_dates(self):
        dates = generate_monthly_dates(date(2024, 1, 31), 2)
        assert dates == [date(2024, 1, 31), date(2024, 2, 29), date(2024, 3, 31)]

    def test_cash_flow_shape(self, leasing_inputs, start_date):
        """Months 0 through term, with the upfront and closing flows."""
        entries = generate_project_cash_flow(leasing_inputs, start_date)
        result = calculate_leasing_financials(leasing_inputs, start_date)
        assert len(entries) == 37
        assert entries[0].date == start_date

        month0 = entries[0]
        assert abs(month0.cash_inflow - (80000 + 1000 + result.initial_security_deposit)) < 1e-9
        assert month0.cash_outflow == 100000

        middle = entries[12]
        assert abs(middle.cash_inflow - result.total_monthly_rent_sans_iva) < 1e-9
        assert abs(middle.cash_outflow - result.monthly_payment) < 1e-9

        last = entries[-1]
        assert abs(last.cash_inflow - (result.total_monthly_rent_sans_iva + 20000)) < 1e-9
        assert abs(
            last.cash_outflow
            - (result.loan_schedule[-1].payment + result.initial_security_deposit)
        ) < 1e-9

    def test_outflows_follow_loan_schedule(self, leasing_inputs, start_date):
        """Each month pays that month's scheduled loan payment, final adjustment included."""
        result = calculate_leasing_financials(leasing_inputs, start_date)
        entries = generate_project_cash_flow(leasing_inputs, start_date, result)
        deposit = result.initial_security_deposit
        for entry, row in zip(entries[1:], result.loan_schedule):
            expected = row.payment + leasing_inputs.monthly_operational_expenses
            if entry.month == leasing_inputs.lease_term_months:
                expected += deposit
            assert entry.cash_outflow == expected
        assert sum(e.cash_outflow for e in entries[1:]) == pytest.approx(
            sum(r.payment for r in result.loan_schedule)
            + leasing_inputs.monthly_operational_expenses * leasing_inputs.lease_term_months
            + deposit
        )

    def test_cumulative_totals(self, leasing_inputs, start_date):
        entries = generate_project_cash_flow(leasing_inputs, start_date)
        assert abs(entries[-1].cumulative_cash_flow - sum(e.net_cash_flow for e in entries)) < 1e-6
        assert abs(entries[-1].cumulative_npv - sum(e.present_value for e in entries)) < 1e-6
        assert entries[0].present_value == entries[0].net_cash_flow

    def test_operator_metrics(self, leasing_inputs, start_date):
        """A profitable lease has a finite payback and a positive IRR."""
        analysis = analyze_operator(leasing_inputs, start_date)
        kpis = analysis.metrics
        assert len(analysis.cash_flow) == 37
        assert kpis.total_project_profit > 0
        assert kpis.irr_monthly > 0
        assert abs(kpis.irr_annual - ((1 + kpis.irr_monthly) ** 12 - 1)) < 1e-12
        assert math.isfinite(kpis.payback_period_months)
        assert abs(
            kpis.net_monthly_cash_flow
            - (analysis.result.total_monthly_rent_sans_iva - analysis.result.monthly_payment)
        ) < 1e-9

    def test_unprofitable_lease_never_pays_back(self, leasing_inputs, start_date):
        """Running costs above rent with no residual never recover the outlay."""
        inputs = replace(
            leasing_inputs,
            residual_value_rate=0,
            monthly_operational_expenses=5000,
        )
        kpis = analyze_operator(inputs, start_date).metrics
        assert kpis.payback_period_months == float("inf")
        assert kpis.net_monthly_cash_flow < 0

    def test_fully_funded_upfront_has_zero_payback(self, leasing_inputs, start_date):
        """No net outlay at month 0 means payback is immediate."""
        entries = generate_project_cash_flow(
            replace(leasing_inputs, loan_amount=100000), start_date
        )
        kpis = calculate_operator_metrics(entries, 0.0)
        assert entries[0].net_cash_flow > 0
        assert kpis.payback_period_months == 0.0

    def test_annualize(self, leasing_inputs, start_date):
        """Month 0 folds into year 1."""
        entries = generate_project_cash_flow(leasing_inputs, start_date)
        years = annualize_cash_flows(entries)
        assert [y["year"] for y in years] == [1, 2, 3]
        total = sum(e.net_cash_flow for e in entries)
        assert abs(sum(y["net_cash_flow"] for y in years) - total) < 0.05


class TestRenterAnalysis:
    """Test the renter/operator what-if analysis."""

    def test_profitable_renter(self):
        analysis = analyze_renter(
            monthly_payment=2000,
            monthly_revenue=3500,
            monthly_expenses=500,
            initial_investment=6000,
            term_months=24,
            discount_rate_pct=10,
        )
        assert analysis.net_monthly_cash_flow == 1000
        assert analysis.break_even_revenue == 2500
        assert analysis.total_net_income == 24000
        assert analysis.roi == 400
        assert analysis.payback_period_months == 6
        assert analysis.npv > 0
        assert analysis.is_viable

    def test_loss_making_renter(self):
        """Revenue below break-even never pays back and is not viable."""
        analysis = analyze_renter(2000, 2100, 500, 6000, 24)
        assert analysis.net_monthly_cash_flow == -400
        assert analysis.payback_period_months == float("inf")
        assert math.isnan(analysis.irr_monthly)
        assert not analysis.is_viable

    def test_no_upfront_investment(self):
        """ROI is undefined without an upfront investment."""
        analysis = analyze_renter(1000, 1500, 0, 0, 12)
        assert math.isnan(analysis.roi)
        assert analysis.payback_period_months == 0

    def test_renter_rejects_negative_revenue(self):
        with pytest.raises(InvalidInputError):
            analyze_renter(1000, -1, 0, 0, 12)

    def test_analyze_lessee(self, leasing_inputs, start_date):
        result = calculate_leasing_financials(leasing_inputs, start_date)
        analysis = analyze_lessee(result, leasing_inputs, monthly_revenue=4000)
        assert abs(analysis.break_even_revenue - result.total_monthly_rent_sans_iva) < 1e-9
        assert abs(analysis.net_monthly_cash_flow - (4000 - result.total_monthly_rent_sans_iva)) < 1e-9

    def test_lease_vs_buy(self, leasing_inputs, start_date):
        result = calculate_leasing_financials(leasing_inputs, start_date)
        comparison = compare_lease_vs_buy(result, leasing_inputs, down_payment_pct=20)
        expected_lease = result.initial_payment_sans_iva + result.total_monthly_rent_sans_iva * 36
        expected_buy = 20000 + result.monthly_payment * 36
        assert abs(comparison.total_cost_of_leasing - expected_lease) < 1e-6
        assert abs(comparison.total_cost_of_buying - expected_buy) < 1e-6
        assert abs(comparison.cost_savings - (expected_buy - expected_lease)) < 1e-6

    def test_annual_breakdown_partial_year(self):
        rows = annual_breakdown(3000, 2000, 200, 30)
        assert [r["months"] for r in rows] == [12, 12, 6]
        assert rows[-1]["net_cash_flow"] == 800 * 6
