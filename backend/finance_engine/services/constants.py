# backend/finance_engine/services/constants.py
"""
Centralized constants for the analytics engine.

Single source of truth for business constants used across the services.
Values that operators may want to tune per deployment (risk-free rate,
harvesting thresholds, tax rates, simulation cap) live in
``finance_engine.config.EngineSettings``; the defaults below are the
fallbacks used when a calculator is called without settings.

Usage:
    from finance_engine.services.constants import (
        TRADING_DAYS_PER_YEAR,
        DEFAULT_RISK_FREE_RATE,
        ZERO,
    )
"""

from decimal import Decimal


# =============================================================================
# FINANCIAL CALENDAR CONSTANTS
# =============================================================================

# Trading days per year, used for annualizing daily volatility
TRADING_DAYS_PER_YEAR: int = 252

# Calendar days per year, used for annualizing returns and MWR discounting
CALENDAR_DAYS_PER_YEAR: int = 365

MONTHS_PER_YEAR: int = 12

# Holding period (days) that must be EXCEEDED for long-term treatment
LONG_TERM_HOLDING_DAYS: int = 365

# Mean spacing (days) -> periods per year, checked in order.
# A series whose points are on average <= 4 days apart is treated as daily.
PERIODICITY_THRESHOLDS: tuple[tuple[int, int], ...] = (
    (4, TRADING_DAYS_PER_YEAR),
    (10, 52),
    (45, 12),
    (120, 4),
)


# =============================================================================
# PERIODS & INTERVALS
# =============================================================================

SUPPORTED_PERIODS: tuple[str, ...] = ("1M", "3M", "6M", "YTD", "1Y", "3Y", "5Y", "ALL")

# "ALL" never reaches further back than this
ALL_PERIOD_MAX_YEARS: int = 10

SUPPORTED_INTERVALS: tuple[str, ...] = ("daily", "weekly", "monthly")


# =============================================================================
# RISK-FREE RATE
# =============================================================================

# Approximate 10-year Treasury yield
DEFAULT_RISK_FREE_RATE: Decimal = Decimal("0.043")


# =============================================================================
# MWR (IRR) SOLVER SETTINGS
# =============================================================================

# Bisection bracket for the annual money-weighted rate
MWR_LOWER_BOUND: Decimal = Decimal("-0.99")
MWR_UPPER_BOUND: Decimal = Decimal("10")

# Convergence tolerance on the rate (bracket width)
MWR_TOLERANCE: Decimal = Decimal("0.000001")

# Bisection halves the bracket each step; 200 is far past what 1e-6 needs
MWR_MAX_ITERATIONS: int = 200


# =============================================================================
# BENCHMARKS
# =============================================================================

# Symbol -> display name, in presentation order
BENCHMARK_NAMES: dict[str, str] = {
    "SPY": "S&P 500",
    "QQQ": "Nasdaq 100",
    "IWM": "Russell 2000",
    "VTI": "Total Market",
}

DEFAULT_BENCHMARK_SYMBOL: str = "SPY"


# =============================================================================
# RISK CALCULATION CONSTANTS
# =============================================================================

# Need at least 2 data points for a standard deviation
MIN_POINTS_FOR_VOLATILITY: int = 2

# Beta and correlation need at least 2 paired returns
MIN_PAIRED_RETURNS: int = 2

DEFAULT_ROLLING_WINDOW: int = 30


# =============================================================================
# TAX CONSTANTS
# =============================================================================

DEFAULT_SHORT_TERM_TAX_RATE: Decimal = Decimal("0.24")
DEFAULT_LONG_TERM_TAX_RATE: Decimal = Decimal("0.15")

# Unrealized dollar loss at or beyond which a lot is a harvesting candidate
DEFAULT_HARVEST_LOSS_THRESHOLD: Decimal = Decimal("1")

# Purchases of the same symbol inside this window flag a wash-sale risk
WASH_SALE_WINDOW_DAYS: int = 30

# Symbol -> similar-but-not-identical replacement to keep market exposure
HARVEST_REPLACEMENTS: dict[str, str] = {
    "AAPL": "VGT",
    "MSFT": "VGT",
    "GOOGL": "VGT",
    "AMZN": "VGT",
    "META": "VGT",
    "TSLA": "DRIV",
    "JPM": "VFH",
    "BAC": "VFH",
    "WFC": "VFH",
    "JNJ": "VHT",
    "PFE": "VHT",
    "UNH": "VHT",
    "XOM": "VDE",
    "CVX": "VDE",
    "SPY": "VOO",
    "QQQ": "VGT",
}

DEFAULT_HARVEST_REPLACEMENT: str = "VTI"


# =============================================================================
# LIABILITY CONSTANTS
# =============================================================================

# Hard termination cap for month-by-month simulations (100 years)
MAX_SIMULATION_MONTHS: int = 1200

# Estimated minimum payment when a debt carries none: max($25, 2% of balance)
MIN_PAYMENT_FLOOR: Decimal = Decimal("25")
MIN_PAYMENT_BALANCE_RATE: Decimal = Decimal("0.02")

DEFAULT_MORTGAGE_APR: Decimal = Decimal("0.065")

# Utilization band edges (percent): <10 excellent, 10-<30 good, 30-50 fair, >50 poor
UTILIZATION_EXCELLENT_BELOW: Decimal = Decimal("10")
UTILIZATION_GOOD_BELOW: Decimal = Decimal("30")
UTILIZATION_FAIR_UP_TO: Decimal = Decimal("50")
UTILIZATION_NOT_APPLICABLE: str = "N/A"


# =============================================================================
# DECIMAL PRECISION CONSTANTS
# =============================================================================

# Currency amounts: 2 decimal places
CURRENCY_PRECISION: Decimal = Decimal("0.01")

# Share quantities: 8 decimal places (fractional shares)
SHARE_PRECISION: Decimal = Decimal("0.00000001")

# Returns and ratios: 8 decimal places
RATIO_PRECISION: Decimal = Decimal("0.00000001")

# Percentage figures (12.3456%): 4 decimal places
PERCENTAGE_PRECISION: Decimal = Decimal("0.0001")


# =============================================================================
# UTILITY CONSTANTS
# =============================================================================

ZERO: Decimal = Decimal("0")
ONE: Decimal = Decimal("1")
HUNDRED: Decimal = Decimal("100")
