"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os
from datetime import date

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lease_finance.calculations.allocation import Investor
from lease_finance.calculations.leasing import LeasingInputs


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")
    config.addinivalue_line("markers", "integration: marks integration tests")


@pytest.fixture(scope="session")
def anyio_backend():
    """Backend for async tests."""
    return "asyncio"


@pytest.fixture
def start_date():
    """Loan and lease start date used across tests."""
    return date(2024, 1, 15)


@pytest.fixture
def three_investors():
    """Investor pool that exactly funds a 100,000 loan."""
    return [
        Investor(name="Alice", investment_amount=50000, investor_id=1),
        Investor(name="Bob", investment_amount=30000, investor_id=2),
        Investor(name="Carol", investment_amount=20000, investor_id=3),
    ]


@pytest.fixture
def leasing_inputs():
    """A typical vehicle lease funded by an investor loan."""
    return LeasingInputs(
        asset_cost_sans_iva=100000,
        lease_term_months=36,
        lessor_profit_margin_pct=20,
        fixed_monthly_fee=0,
        admin_commission_pct=1,
        security_deposit_months=1,
        delivery_costs=0,
        residual_value_rate=20,
        discount_rate_pct=4,
        loan_amount=80000,
        annual_interest_rate=12,
    )
