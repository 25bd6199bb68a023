# backend/finance_engine/services/analytics/risk.py
"""
Risk calculation functions for the analytics services.

This module contains pure functions for calculating risk metrics:
- Max Drawdown: Largest peak-to-trough decline, with peak/trough dates
- Drawdown history: Distance from the running peak at every point
- Beta & Correlation: Versus a benchmark resampled to the account's dates
- Rolling volatility: Annualized volatility over a sliding window

All functions are stateless and operate on Decimal values for precision.
No external dependencies (scipy, numpy).

Formulas:
    Max Drawdown = max_{i<j} (Peak(0..i) - V(j)) / Peak(0..i)   (reported positive)

    Beta = Cov(R_a, R_b) / Var(R_b)

    Correlation = Cov(R_a, R_b) / (σ_a · σ_b)

    Periodic returns use the Daily Linking Method (consistent with TWR):
        r_i = (V_i - CF_i) / V_{i-1} - 1
"""

import logging
from datetime import date
from decimal import Decimal

from finance_engine.services.analytics.returns import (
    calculate_periodic_returns,
    calculate_volatility,
    decimal_mean,
    infer_periods_per_year,
)
from finance_engine.services.analytics.timeseries import PriceLookup
from finance_engine.services.analytics.types import (
    DrawdownPoint,
    PricePoint,
    RiskMetrics,
    ValuationPoint,
    ValuationSeries,
    VolatilityPoint,
)
from finance_engine.services.constants import (
    DEFAULT_ROLLING_WINDOW,
    MIN_PAIRED_RETURNS,
    MIN_POINTS_FOR_VOLATILITY,
    ZERO,
)

logger = logging.getLogger(__name__)


# =============================================================================
# DRAWDOWN
# =============================================================================

def calculate_max_drawdown(
        points: list[ValuationPoint],
) -> tuple[Decimal, date | None, date | None]:
    """
    Largest decline from a running peak.

    Points before the first positive value are ignored (nothing to lose).

    Args:
        points: Valuation points (any order)

    Returns:
        Tuple of (max_drawdown >= 0, peak_date, trough_date). Dates are None
        when the series never declines.
    """
    ordered = sorted(points, key=lambda p: p.date)

    peak_value = ZERO
    peak_date: date | None = None
    max_drawdown = ZERO
    max_peak_date: date | None = None
    max_trough_date: date | None = None

    for point in ordered:
        if point.total_market_value > peak_value:
            peak_value = point.total_market_value
            peak_date = point.date
            continue

        if peak_value <= ZERO:
            continue

        drawdown = (peak_value - point.total_market_value) / peak_value
        if drawdown > max_drawdown:
            max_drawdown = drawdown
            max_peak_date = peak_date
            max_trough_date = point.date

    return max_drawdown, max_peak_date, max_trough_date


def calculate_drawdown_history(points: list[ValuationPoint]) -> list[DrawdownPoint]:
    """Drawdown of every point from the running peak (0 at a new peak)."""
    history: list[DrawdownPoint] = []
    peak_value = ZERO

    for point in sorted(points, key=lambda p: p.date):
        if point.total_market_value > peak_value:
            peak_value = point.total_market_value

        if peak_value <= ZERO:
            drawdown = ZERO
        else:
            drawdown = (peak_value - point.total_market_value) / peak_value
        history.append(DrawdownPoint(date=point.date, drawdown=drawdown))

    return history


# =============================================================================
# BETA & CORRELATION
# =============================================================================

def _covariance(x: list[Decimal], y: list[Decimal]) -> Decimal:
    """Population covariance of two equal-length series."""
    mean_x = decimal_mean(x)
    mean_y = decimal_mean(y)
    total = sum(((a - mean_x) * (b - mean_y) for a, b in zip(x, y)), ZERO)
    return total / Decimal(len(x))


def calculate_beta(
        account_returns: list[Decimal],
        benchmark_returns: list[Decimal],
) -> Decimal | None:
    """
    Calculate Beta (systematic risk).

    Formula: β = Cov(R_a, R_b) / Var(R_b)

    Interpretation:
        β > 1: More volatile than the benchmark
        β < 1: Less volatile than the benchmark
        β < 0: Moves opposite to the benchmark (rare)

    Returns:
        Beta, or None with fewer than 2 pairs or zero benchmark variance
    """
    if len(account_returns) != len(benchmark_returns):
        logger.warning("Account and benchmark return series must be same length")
        return None

    if len(account_returns) < MIN_PAIRED_RETURNS:
        return None

    var_benchmark = _covariance(benchmark_returns, benchmark_returns)
    if var_benchmark == ZERO:
        return None

    return _covariance(account_returns, benchmark_returns) / var_benchmark


def calculate_correlation(
        account_returns: list[Decimal],
        benchmark_returns: list[Decimal],
) -> Decimal | None:
    """
    Pearson correlation coefficient.

    Returns:
        Correlation in [-1, 1], or None under the same rule as beta (or
        when the account series itself has zero variance)
    """
    if len(account_returns) != len(benchmark_returns):
        return None

    if len(account_returns) < MIN_PAIRED_RETURNS:
        return None

    var_a = _covariance(account_returns, account_returns)
    var_b = _covariance(benchmark_returns, benchmark_returns)
    if var_a == ZERO or var_b == ZERO:
        return None

    correlation = _covariance(account_returns, benchmark_returns) / (var_a.sqrt() * var_b.sqrt())
    # Clamp rounding noise
    return max(Decimal("-1"), min(Decimal("1"), correlation))


# =============================================================================
# PAIRING
# =============================================================================

def pair_returns(
        series: ValuationSeries,
        benchmark_closes: list[PricePoint],
) -> tuple[list[Decimal], list[Decimal]]:
    """
    Align account and benchmark returns on the account's dates.

    The benchmark is resampled to the account's valuation dates (close
    as-of each date, gaps take the last known close) so both return
    series share one periodicity. A date pair is used only when both
    sides produce a return.

    Returns:
        Tuple of (account_returns, benchmark_returns), same length
    """
    lookup = PriceLookup({"BENCH": benchmark_closes})
    closes = {p.date: lookup.close_asof("BENCH", p.date) for p in series.points}

    account_returns: list[Decimal] = []
    benchmark_returns: list[Decimal] = []
    account_by_date = dict(calculate_periodic_returns(series))

    for prev, curr in zip(series.points, series.points[1:]):
        account_r = account_by_date.get(curr.date)
        prev_close = closes.get(prev.date)
        curr_close = closes.get(curr.date)

        if account_r is None or prev_close is None or curr_close is None:
            continue
        if prev_close == ZERO:
            continue

        account_returns.append(account_r)
        benchmark_returns.append((curr_close - prev_close) / prev_close)

    return account_returns, benchmark_returns


# =============================================================================
# ROLLING VOLATILITY
# =============================================================================

def calculate_rolling_volatility(
        periodic_returns: list[tuple[date, Decimal]],
        periods_per_year: int,
        window: int = DEFAULT_ROLLING_WINDOW,
) -> list[VolatilityPoint]:
    """
    Annualized volatility of each full window of returns.

    One entry per window end; empty when there are fewer returns than
    the window.
    """
    if window < MIN_POINTS_FOR_VOLATILITY or len(periodic_returns) < window:
        return []

    history: list[VolatilityPoint] = []
    for end in range(window, len(periodic_returns) + 1):
        chunk = periodic_returns[end - window:end]
        vol = calculate_volatility([r for _, r in chunk], periods_per_year)
        if vol is not None:
            history.append(VolatilityPoint(date=chunk[-1][0], volatility=vol))
    return history


# =============================================================================
# COMBINED RISK ANALYZER
# =============================================================================

class RiskAnalyzer:
    """
    Calculator for all risk metrics.

    This class provides a convenient interface to calculate all risk
    metrics for one valuation series at once.
    """

    def __init__(self, rolling_window: int = DEFAULT_ROLLING_WINDOW) -> None:
        self._rolling_window = rolling_window

    def calculate(
            self,
            series: ValuationSeries,
            benchmark_symbol: str | None = None,
            benchmark_closes: list[PricePoint] | None = None,
    ) -> RiskMetrics:
        """
        Calculate all risk metrics.

        Args:
            series: Account valuation series
            benchmark_symbol: Ticker the closes belong to
            benchmark_closes: Daily closes of the benchmark (optional)

        Returns:
            RiskMetrics with all available metrics
        """
        result = RiskMetrics(benchmark_symbol=benchmark_symbol)
        result.warnings.extend(series.warnings)

        if series.insufficient_data or len(series.points) < MIN_POINTS_FOR_VOLATILITY:
            result.has_sufficient_data = False

        (
            result.max_drawdown,
            result.max_drawdown_peak_date,
            result.max_drawdown_trough_date,
        ) = calculate_max_drawdown(series.points)
        result.drawdown_history = calculate_drawdown_history(series.points)

        periodic = calculate_periodic_returns(series)
        ppy = infer_periods_per_year([p.date for p in series.points])
        result.periods_per_year = ppy

        if ppy is not None and len(periodic) >= MIN_POINTS_FOR_VOLATILITY:
            result.volatility = calculate_volatility([r for _, r in periodic], ppy)
            result.volatility_history = calculate_rolling_volatility(
                periodic, ppy, self._rolling_window
            )
        else:
            result.warnings.append("Insufficient data for volatility: need at least 2 returns")

        if benchmark_closes:
            account_returns, benchmark_returns = pair_returns(series, benchmark_closes)
            result.paired_returns = len(account_returns)
            result.beta = calculate_beta(account_returns, benchmark_returns)
            result.correlation = calculate_correlation(account_returns, benchmark_returns)

            if result.beta is None:
                result.warnings.append(
                    f"Beta unavailable: {len(account_returns)} paired returns "
                    f"or zero benchmark variance"
                )
        elif benchmark_symbol:
            result.warnings.append(f"No price history for benchmark {benchmark_symbol}")

        return result
