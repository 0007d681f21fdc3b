"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings

from lease_finance.calculations.leasing import LEASING_DEFAULTS


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Lease Finance Calculator"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Tax (fraction, applied at the API boundary only)
    vat_rate: float = 0.16

    # Investor pool policy for /api/calculate
    min_investors: int = 3
    funding_tolerance: float = 0.01

    # Leasing defaults (percentages) for fields a request leaves out
    default_lessor_profit_margin_pct: float = LEASING_DEFAULTS["lessor_profit_margin_pct"]
    default_admin_commission_pct: float = LEASING_DEFAULTS["admin_commission_pct"]
    default_security_deposit_months: float = LEASING_DEFAULTS["security_deposit_months"]
    default_residual_value_rate: float = LEASING_DEFAULTS["residual_value_rate"]
    default_discount_rate_pct: float = LEASING_DEFAULTS["discount_rate_pct"]

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"

    def leasing_defaults(self) -> dict:
        """Caller-side defaults for LeasingInputs fields, keyed by field name."""
        return {
            **LEASING_DEFAULTS,
            "lessor_profit_margin_pct": self.default_lessor_profit_margin_pct,
            "admin_commission_pct": self.default_admin_commission_pct,
            "security_deposit_months": self.default_security_deposit_months,
            "residual_value_rate": self.default_residual_value_rate,
            "discount_rate_pct": self.default_discount_rate_pct,
        }


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
