# backend/finance_engine/config.py
"""
Engine configuration using Pydantic Settings.

Loads configuration from environment variables (prefix ``ENGINE_``) with
validation:
- ENGINE_LOG_LEVEL / ENGINE_LOG_FORMAT: Logging behaviour
- ENGINE_RISK_FREE_RATE: Annual risk-free rate used by Sharpe ratios
- ENGINE_HARVEST_*: Tax-loss harvesting thresholds
- ENGINE_MAX_SIMULATION_MONTHS: Termination cap for payoff simulations

The engine itself never reads the environment during a calculation. The
host builds one ``EngineSettings`` (or uses the module-level ``settings``)
and passes it to ``FinanceEngine``; tests construct their own instances.

Usage:
    from finance_engine.config import settings

    sharpe = calculate_sharpe_ratio(ret, vol, settings.risk_free_rate)
"""
from decimal import Decimal
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# Optional .env next to the backend/ directory
_BACKEND_DIR = Path(__file__).resolve().parent.parent
_PROJECT_ROOT = _BACKEND_DIR.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class EngineSettings(BaseSettings):
    """
    Analytics engine settings loaded from environment variables.

    Rates are decimals (0.043 = 4.3%). Dollar thresholds are Decimal.
    """

    model_config = SettingsConfigDict(
        env_prefix="ENGINE_",
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    log_format: Literal["text", "json"] = Field(
        default="text",
        description="Log output format"
    )

    # =========================================================================
    # PERFORMANCE & RISK
    # =========================================================================
    risk_free_rate: Decimal = Field(
        default=Decimal("0.043"),
        ge=Decimal("0"),
        le=Decimal("1"),
        description="Annual risk-free rate for Sharpe ratio (10Y Treasury proxy)"
    )
    rolling_volatility_window: int = Field(
        default=30,
        ge=2,
        le=520,
        description="Number of periodic returns per rolling volatility window"
    )

    # =========================================================================
    # TAX
    # =========================================================================
    harvest_loss_threshold: Decimal = Field(
        default=Decimal("1"),
        ge=Decimal("0"),
        description="Minimum unrealized dollar loss for a harvesting candidate"
    )
    harvest_loss_percent: Decimal | None = Field(
        default=None,
        ge=Decimal("0"),
        le=Decimal("1"),
        description="Optional percentage loss (0.10 = 10%) that also qualifies a lot"
    )
    short_term_tax_rate: Decimal = Field(
        default=Decimal("0.24"),
        ge=Decimal("0"),
        le=Decimal("1"),
        description="Ordinary income rate applied to short-term gains"
    )
    long_term_tax_rate: Decimal = Field(
        default=Decimal("0.15"),
        ge=Decimal("0"),
        le=Decimal("1"),
        description="Capital gains rate applied to long-term gains"
    )

    # =========================================================================
    # LIABILITIES
    # =========================================================================
    max_simulation_months: int = Field(
        default=1200,
        ge=12,
        le=1200,
        description="Month cap for amortization and payoff simulations"
    )
    default_mortgage_apr: Decimal = Field(
        default=Decimal("0.065"),
        ge=Decimal("0"),
        le=Decimal("1"),
        description="APR assumed for property mortgages that carry no rate"
    )

    @model_validator(mode="after")
    def validate_tax_rates(self) -> "EngineSettings":
        """Long-term rates above short-term rates indicate swapped inputs."""
        if self.long_term_tax_rate > self.short_term_tax_rate:
            raise ValueError(
                "long_term_tax_rate must not exceed short_term_tax_rate "
                f"({self.long_term_tax_rate} > {self.short_term_tax_rate})"
            )
        return self


@lru_cache
def get_settings() -> EngineSettings:
    """Return the cached process-wide settings instance."""
    return EngineSettings()


settings = get_settings()
