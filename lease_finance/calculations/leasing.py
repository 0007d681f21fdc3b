"""
Leasing Financials

Lessor/lessee breakdown of a pure lease: monthly rent, initial payment and
residual value, with the investor loan that funds the asset amortized by
the standard annuity schedule.

Rent basis (straight line):
    base_rent_amortization  = (asset cost - residual value) / term
    lessor_monthly_profit   = asset cost * margin% / term
    total_monthly_rent      = base_rent_amortization + lessor_monthly_profit + fixed fee

All amounts exclude VAT. VAT is applied by the caller with money.apply_vat.
Inputs are validated, never defaulted: a caller that wants defaults merges
LEASING_DEFAULTS (or its own settings) before building LeasingInputs.
"""

from dataclasses import asdict, dataclass, field, fields
from datetime import date
from types import MappingProxyType
from typing import Dict, List, Tuple

from lease_finance.calculations.amortization import (
    PaymentScheduleEntry,
    calculate_total_interest,
    generate_schedule,
)
from lease_finance.calculations.money import coerce_amount, coerce_term, round_money

# Published caller-side defaults. The calculator itself never reads these.
LEASING_DEFAULTS = MappingProxyType(
    {
        "lessor_profit_margin_pct": 20.0,
        "fixed_monthly_fee": 0.0,
        "admin_commission_pct": 1.0,
        "security_deposit_months": 1.0,
        "delivery_costs": 0.0,
        "other_initial_expenses": 0.0,
        "monthly_operational_expenses": 0.0,
        "residual_value_rate": 20.0,
        "discount_rate_pct": 4.0,
    }
)


@dataclass(frozen=True)
class LeasingInputs:
    """
    Leasing inputs. Every *_pct / *_rate field is a percentage (20.0 = 20%).

    Attributes:
        asset_cost_sans_iva: Asset cost before VAT
        lease_term_months: Lease term in months
        lessor_profit_margin_pct: Target margin on asset cost over the whole term
        fixed_monthly_fee: Fixed administrative fee added to each rent
        admin_commission_pct: Opening commission on asset cost
        security_deposit_months: Months of total rent held as deposit
        delivery_costs: Delivery costs paid up front
        residual_value_rate: Residual value as % of asset cost
        discount_rate_pct: Annual discount rate for NPV
        loan_amount: Investor loan funding the asset
        annual_interest_rate: Investor loan annual rate
        other_initial_expenses: Plates, paperwork and other set-up costs
        monthly_operational_expenses: Insurance, maintenance, etc.
    """

    asset_cost_sans_iva: float
    lease_term_months: int
    lessor_profit_margin_pct: float
    fixed_monthly_fee: float
    admin_commission_pct: float
    security_deposit_months: float
    delivery_costs: float
    residual_value_rate: float
    discount_rate_pct: float
    loan_amount: float
    annual_interest_rate: float
    other_initial_expenses: float = 0.0
    monthly_operational_expenses: float = 0.0

    def validated(self) -> "LeasingInputs":
        """Return a copy with every field coerced to a finite, non-negative number."""
        values = {}
        for f in fields(self):
            raw = getattr(self, f.name)
            if f.name == "lease_term_months":
                values[f.name] = coerce_term(raw, f.name)
            else:
                values[f.name] = coerce_amount(raw, f.name)
        return LeasingInputs(**values)


@dataclass(frozen=True)
class LeasingFinancialResult:
    """Lessor/lessee figures for a lease, all before VAT."""

    monthly_payment: float
    base_rent_amortization: float
    lessor_monthly_profit: float
    total_monthly_rent_sans_iva: float
    initial_admin_commission: float
    initial_security_deposit: float
    residual_value_amount: float
    total_interest_cost: float
    base_rent_with_margin: float
    initial_payment_sans_iva: float
    loan_schedule: Tuple[PaymentScheduleEntry, ...] = field(default=(), repr=False)

    def as_dict(self) -> Dict:
        data = {
            key: round_money(value)
            for key, value in asdict(self).items()
            if key != "loan_schedule"
        }
        data["loan_schedule"] = [row.as_dict() for row in self.loan_schedule]
        return data


def merge_defaults(values: Dict, defaults=LEASING_DEFAULTS) -> Dict:
    """Fill missing or None entries from a defaults mapping (caller-side policy)."""
    merged = dict(defaults)
    merged.update({k: v for k, v in values.items() if v is not None})
    return merged


def calculate_residual_value(asset_cost: float, residual_value_rate: float) -> float:
    """Residual value of the asset at the end of the lease."""
    return asset_cost * residual_value_rate / 100


def calculate_base_rent_amortization(
    asset_cost: float, residual_value: float, lease_term_months: int
) -> float:
    """Straight-line recovery of the depreciable asset cost."""
    return (asset_cost - residual_value) / lease_term_months


def calculate_lessor_monthly_profit(
    asset_cost: float, lessor_profit_margin_pct: float, lease_term_months: int
) -> float:
    """Target margin spread evenly over the term."""
    return asset_cost * (lessor_profit_margin_pct / 100) / lease_term_months


def calculate_initial_admin_commission(asset_cost: float, admin_commission_pct: float) -> float:
    return asset_cost * admin_commission_pct / 100


def calculate_initial_security_deposit(
    total_monthly_rent: float, security_deposit_months: float
) -> float:
    return total_monthly_rent * security_deposit_months


def _loan_figures(
    inputs: LeasingInputs, start_date: date
) -> Tuple[float, float, List[PaymentScheduleEntry]]:
    if inputs.loan_amount == 0:
        return 0.0, 0.0, []

    schedule = generate_schedule(
        inputs.loan_amount,
        inputs.annual_interest_rate,
        inputs.lease_term_months,
        start_date,
    )
    return schedule[0].payment, calculate_total_interest(schedule), schedule


def calculate_leasing_financials(
    inputs: LeasingInputs, start_date: date
) -> LeasingFinancialResult:
    """
    Calculate the lessor/lessee breakdown of a lease.

    Args:
        inputs: Leasing inputs (percentages, not fractions)
        start_date: Lease and loan start date

    Returns:
        LeasingFinancialResult, VAT excluded

    Raises:
        InvalidInputError: If any input is negative or non-finite, or the
            lease term is not a positive integer
    """
    inputs = inputs.validated()
    asset_cost = inputs.asset_cost_sans_iva
    term = inputs.lease_term_months

    monthly_payment, total_interest_cost, loan_schedule = _loan_figures(inputs, start_date)

    residual_value_amount = calculate_residual_value(asset_cost, inputs.residual_value_rate)
    base_rent_amortization = calculate_base_rent_amortization(asset_cost, residual_value_amount, term)
    lessor_monthly_profit = calculate_lessor_monthly_profit(
        asset_cost, inputs.lessor_profit_margin_pct, term
    )
    base_rent_with_margin = base_rent_amortization + lessor_monthly_profit
    total_monthly_rent_sans_iva = base_rent_with_margin + inputs.fixed_monthly_fee

    initial_admin_commission = calculate_initial_admin_commission(
        asset_cost, inputs.admin_commission_pct
    )
    initial_security_deposit = calculate_initial_security_deposit(
        total_monthly_rent_sans_iva, inputs.security_deposit_months
    )
    initial_payment_sans_iva = (
        initial_admin_commission + initial_security_deposit + inputs.delivery_costs
    )

    return LeasingFinancialResult(
        monthly_payment=monthly_payment,
        base_rent_amortization=base_rent_amortization,
        lessor_monthly_profit=lessor_monthly_profit,
        total_monthly_rent_sans_iva=total_monthly_rent_sans_iva,
        initial_admin_commission=initial_admin_commission,
        initial_security_deposit=initial_security_deposit,
        residual_value_amount=residual_value_amount,
        total_interest_cost=total_interest_cost,
        base_rent_with_margin=base_rent_with_margin,
        initial_payment_sans_iva=initial_payment_sans_iva,
        loan_schedule=tuple(loan_schedule),
    )
