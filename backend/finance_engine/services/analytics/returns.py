# backend/finance_engine/services/analytics/returns.py
"""
Return calculation functions for the analytics services.

This module contains pure functions for calculating return metrics:
- Time-Weighted Return (TWR): Removes cash flow bias (sub-period linking)
- Money-Weighted Return (MWR): Annual IRR of the account's flows (bisection)
- Periodic returns, volatility and Sharpe ratio
- Dollar return from the current holdings snapshot

All functions are stateless. No external dependencies (scipy, numpy) - pure
Python Decimal arithmetic.

Formulas:
    TWR (boundaries at every external flow date after start):
        r_i = (V(b) - CF(b)) / V(a) - 1
        TWR = ∏(1 + r_i) - 1

    MWR solves:
        V_start + Σ in_i·d(t_i) - Σ out_i·d(t_i) - V_end·d(T) = 0
        d(t) = (1 + r)^-(t/365)

    Volatility = population std(periodic returns) * √periods_per_year

    Sharpe = (mean(periodic returns) * periods_per_year - R_f) / Volatility

Precision Note:
    Decimal.__pow__() supports non-integer exponents for positive bases, so
    annualization and MWR discounting stay in Decimal. The MWR solver
    brackets the root; it never needs a derivative.
"""

import decimal
import logging
from datetime import date
from decimal import Decimal

from finance_engine.services.analytics.types import (
    HistoricalPerformancePoint,
    HoldingSnapshot,
    MWRResult,
    PerformanceMetrics,
    ValuationSeries,
)
from finance_engine.services.constants import (
    CALENDAR_DAYS_PER_YEAR,
    DEFAULT_RISK_FREE_RATE,
    MIN_POINTS_FOR_VOLATILITY,
    MWR_LOWER_BOUND,
    MWR_MAX_ITERATIONS,
    MWR_TOLERANCE,
    MWR_UPPER_BOUND,
    ONE,
    PERIODICITY_THRESHOLDS,
    ZERO,
)

logger = logging.getLogger(__name__)


# =============================================================================
# ANNUALIZATION
# =============================================================================

def annualize_return(total_return: Decimal, days: int) -> Decimal | None:
    """
    Annualize a return over a given number of calendar days.

    Formula: (1 + r)^(365/days) - 1

    Returns:
        Annualized return as decimal, or None if days <= 0
    """
    if days <= 0:
        return None

    base = ONE + total_return
    if base <= 0:
        return Decimal("-1")  # Total loss

    exponent = Decimal(CALENDAR_DAYS_PER_YEAR) / Decimal(days)

    try:
        return base ** exponent - ONE
    except decimal.InvalidOperation:
        # Fallback to float for extremely large/small values
        return Decimal(str(float(base) ** float(exponent))) - ONE


# =============================================================================
# TIME-WEIGHTED RETURN (TWR)
# =============================================================================

def _value_on(series: ValuationSeries, target: date) -> Decimal:
    """Valuation on the last point at or before target."""
    value = ZERO
    for point in series.points:
        if point.date > target:
            break
        value = point.total_market_value
    return value


def calculate_twr(series: ValuationSeries) -> tuple[Decimal, int, list[str]]:
    """
    Calculate Time-Weighted Return by chaining flow-bounded sub-periods.

    Every external flow date strictly after start closes a sub-period, so
    no sub-period straddles a flow. The flow itself is removed from the
    closing value: r = (V(b) - CF(b)) / V(a) - 1.

    Sub-periods opening at zero value are skipped with a warning. With no
    flows the result is exactly (V_end - V_start) / V_start.

    Args:
        series: Valuation series with cash flows

    Returns:
        Tuple of (twr, sub_periods_used, warnings). twr is 0 with a warning
        when there is nothing to measure.
    """
    warnings: list[str] = []
    start_value = series.start_value
    end_value = series.end_value

    flow_totals = {
        d: amount
        for d, amount in series.flows_by_date().items()
        if series.start_date < d <= series.end_date
    }

    if not flow_totals:
        if start_value == ZERO:
            warnings.append("Start value is zero: TWR undefined, reported as 0")
            return ZERO, 0, warnings
        return (end_value - start_value) / start_value, 1, warnings

    boundaries = [series.start_date, *sorted(flow_totals)]
    if boundaries[-1] != series.end_date:
        boundaries.append(series.end_date)

    cumulative = ONE
    used = 0

    for a, b in zip(boundaries, boundaries[1:]):
        v_a = _value_on(series, a)
        v_b = _value_on(series, b)
        cf_b = flow_totals.get(b, ZERO)

        if v_a <= ZERO:
            warnings.append(f"Sub-period {a} to {b} skipped: zero opening value")
            continue

        cumulative *= (v_b - cf_b) / v_a
        used += 1

    if used == 0:
        warnings.append("No measurable sub-periods: TWR reported as 0")
        return ZERO, 0, warnings

    logger.debug(f"TWR: chained {used} sub-periods across {len(flow_totals)} flow dates")
    return cumulative - ONE, used, warnings


# =============================================================================
# MONEY-WEIGHTED RETURN (MWR)
# =============================================================================

def _mwr_residual(
        rate: Decimal,
        start_value: Decimal,
        flows: list[tuple[int, Decimal]],
        end_value: Decimal,
        total_days: int,
) -> Decimal:
    """
    Future-value form of the MWR equation, evaluated at total_days.

    Multiplying the discounted equation by (1+r)^(T/365) > 0 keeps the
    same root and avoids huge discount factors near r = -0.99.
    """
    growth = ONE + rate
    horizon = Decimal(total_days) / Decimal(CALENDAR_DAYS_PER_YEAR)

    residual = start_value * growth ** horizon - end_value
    for days, signed_amount in flows:
        remaining = Decimal(total_days - days) / Decimal(CALENDAR_DAYS_PER_YEAR)
        residual += signed_amount * growth ** remaining
    return residual


def calculate_mwr(
        series: ValuationSeries,
        lower: Decimal = MWR_LOWER_BOUND,
        upper: Decimal = MWR_UPPER_BOUND,
        tolerance: Decimal = MWR_TOLERANCE,
        max_iterations: int = MWR_MAX_ITERATIONS,
) -> MWRResult:
    """
    Calculate the annual money-weighted return by bisection.

    Solves for r in
        V_start + Σ in_i/(1+r)^(t_i/365) - Σ out_i/(1+r)^(t_i/365)
            - V_end/(1+r)^(T/365) = 0
    on [lower, upper], where t_i and T are days since start.

    Args:
        series: Valuation series with cash flows
        lower, upper: Bracket for the annual rate
        tolerance: Half-width of the bracket at convergence
        max_iterations: Iteration cap

    Returns:
        MWRResult. converged=False when no root is bracketed (best endpoint
        returned) or the cap is hit (midpoint returned).
    """
    total_days = (series.end_date - series.start_date).days
    flows = [
        ((flow.date - series.start_date).days, flow.signed_amount)
        for flow in series.cash_flows
        if series.start_date < flow.date <= series.end_date
    ]

    if total_days <= 0:
        return MWRResult(rate=None, converged=False, iterations=0)
    if series.start_value == ZERO and not flows:
        return MWRResult(rate=None, converged=False, iterations=0)

    def residual(rate: Decimal) -> Decimal:
        return _mwr_residual(rate, series.start_value, flows, series.end_value, total_days)

    lo, hi = lower, upper
    f_lo, f_hi = residual(lo), residual(hi)

    if f_lo == ZERO:
        return MWRResult(rate=lo, converged=True, iterations=0)
    if f_hi == ZERO:
        return MWRResult(rate=hi, converged=True, iterations=0)

    if (f_lo > ZERO) == (f_hi > ZERO):
        best = lo if abs(f_lo) < abs(f_hi) else hi
        logger.warning(
            f"MWR: no root bracketed in [{lower}, {upper}] for account {series.account_id}"
        )
        return MWRResult(rate=best, converged=False, iterations=0)

    mid = (lo + hi) / 2
    for iteration in range(1, max_iterations + 1):
        mid = (lo + hi) / 2
        f_mid = residual(mid)

        if f_mid == ZERO or (hi - lo) / 2 < tolerance:
            return MWRResult(rate=mid, converged=True, iterations=iteration)

        if (f_mid > ZERO) == (f_lo > ZERO):
            lo, f_lo = mid, f_mid
        else:
            hi = mid

    logger.warning(f"MWR did not converge after {max_iterations} iterations")
    return MWRResult(rate=mid, converged=False, iterations=max_iterations)


# =============================================================================
# PERIODIC RETURNS, VOLATILITY & SHARPE
# =============================================================================

def calculate_periodic_returns(series: ValuationSeries) -> list[tuple[date, Decimal]]:
    """
    Point-to-point returns using the Daily Linking Method.

        r_i = (V_i - CF_i) / V_{i-1} - 1

    Points whose predecessor is zero are skipped.

    Returns:
        List of (date, return) pairs, one per usable point after the first
    """
    flow_totals = series.flows_by_date()
    returns: list[tuple[date, Decimal]] = []

    for prev, curr in zip(series.points, series.points[1:]):
        if prev.total_market_value <= ZERO:
            continue
        cash_flow = flow_totals.get(curr.date, ZERO)
        r = (curr.total_market_value - cash_flow) / prev.total_market_value - ONE
        returns.append((curr.date, r))

    return returns


def calculate_series_returns(values: list[Decimal]) -> list[Decimal]:
    """
    Period-over-period returns of a plain value series (no cash flows).

    Used for benchmark closes. Zero predecessors are skipped.
    """
    returns = []
    for prev, curr in zip(values, values[1:]):
        if prev != ZERO:
            returns.append((curr - prev) / prev)
    return returns


def infer_periods_per_year(dates: list[date]) -> int | None:
    """
    Infer the sampling frequency from the mean spacing of dates.

    ≤4 days -> 252, ≤10 -> 52, ≤45 -> 12, ≤120 -> 4, else 1.
    Returns None with fewer than 2 dates.
    """
    if len(dates) < 2:
        return None

    ordered = sorted(dates)
    mean_spacing = Decimal((ordered[-1] - ordered[0]).days) / Decimal(len(ordered) - 1)

    for max_days, periods in PERIODICITY_THRESHOLDS:
        if mean_spacing <= max_days:
            return periods
    return 1


def decimal_mean(values: list[Decimal]) -> Decimal | None:
    if not values:
        return None
    return sum(values, ZERO) / Decimal(len(values))


def population_stdev(values: list[Decimal]) -> Decimal | None:
    """
    Population standard deviation in pure Decimal.

    Formula: σ = sqrt(Σ(x - μ)² / n)

    Returns:
        Standard deviation, or None with fewer than 2 values
    """
    if len(values) < MIN_POINTS_FOR_VOLATILITY:
        return None

    mean_val = decimal_mean(values)
    variance = sum(((x - mean_val) ** 2 for x in values), ZERO) / Decimal(len(values))
    return variance.sqrt()


def calculate_volatility(
        periodic_returns: list[Decimal],
        periods_per_year: int,
) -> Decimal | None:
    """
    Annualized volatility of periodic returns.

    Returns:
        Volatility as decimal (e.g., 0.20 = 20%), or None if insufficient data
    """
    std = population_stdev(periodic_returns)
    if std is None:
        return None
    return std * Decimal(periods_per_year).sqrt()


def calculate_sharpe_ratio(
        periodic_returns: list[Decimal],
        volatility: Decimal | None,
        periods_per_year: int,
        risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE,
) -> Decimal | None:
    """
    Calculate Sharpe Ratio.

    Formula: Sharpe = (R_p - R_f) / σ_p
    where R_p = mean periodic return × periods_per_year.

    Returns:
        Sharpe ratio; 0 when volatility is zero; None without volatility
    """
    if volatility is None:
        return None
    if volatility == ZERO:
        return ZERO

    annualized_return = decimal_mean(periodic_returns) * Decimal(periods_per_year)
    return (annualized_return - risk_free_rate) / volatility


# =============================================================================
# DOLLAR RETURN & CHART SERIES
# =============================================================================

def calculate_dollar_return(
        holdings: list[HoldingSnapshot],
        lot_cost_basis: dict[int, Decimal] | None = None,
) -> tuple[Decimal, Decimal, Decimal]:
    """
    Dollar return of the current snapshot.

    Cost basis per holding comes from the holding itself; when absent,
    from the open tax lots (lot_cost_basis keyed by holding_id).

    Returns:
        Tuple of (market_value, cost_basis, market_value - cost_basis)
    """
    lot_cost_basis = lot_cost_basis or {}
    market_value = ZERO
    cost_basis = ZERO

    for holding in holdings:
        market_value += holding.market_value
        basis = holding.total_cost_basis
        if basis is None:
            basis = lot_cost_basis.get(holding.holding_id, ZERO)
        cost_basis += basis

    return market_value, cost_basis, market_value - cost_basis


def build_historical_points(series: ValuationSeries) -> list[HistoricalPerformancePoint]:
    """Cumulative return of every point versus the first point."""
    if not series.points:
        return []

    first_value = series.points[0].total_market_value
    return [
        HistoricalPerformancePoint(
            date=point.date,
            portfolio_value=point.total_market_value,
            cumulative_return=(
                (point.total_market_value - first_value) / first_value
                if first_value != ZERO else ZERO
            ),
        )
        for point in series.points
    ]


# =============================================================================
# COMBINED PERFORMANCE CALCULATOR
# =============================================================================

class PerformanceCalculator:
    """
    Calculator for all return-based performance metrics.

    Provides one entry point that fills a PerformanceMetrics from a
    ValuationSeries and the current holdings snapshot.
    """

    def __init__(self, risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE) -> None:
        self._risk_free_rate = risk_free_rate

    def calculate(
            self,
            series: ValuationSeries,
            holdings: list[HoldingSnapshot],
            lot_cost_basis: dict[int, Decimal] | None = None,
    ) -> PerformanceMetrics:
        """
        Calculate all return metrics.

        Args:
            series: Valuation series for the window
            holdings: Current holdings (for dollar return)
            lot_cost_basis: Open-lot cost basis by holding_id, used when a
                            holding carries no cost basis of its own

        Returns:
            PerformanceMetrics with all available metrics
        """
        result = PerformanceMetrics()
        result.warnings.extend(series.warnings)

        result.start_value = series.start_value
        result.end_value = series.end_value
        result.calendar_days = (series.end_date - series.start_date).days
        result.total_deposits = sum(
            (f.amount for f in series.cash_flows if f.direction == "in"), ZERO
        )
        result.total_withdrawals = sum(
            (f.amount for f in series.cash_flows if f.direction == "out"), ZERO
        )

        (
            result.current_market_value,
            result.total_cost_basis,
            result.dollar_return,
        ) = calculate_dollar_return(holdings, lot_cost_basis)

        if series.insufficient_data:
            result.has_sufficient_data = False

        # TWR
        twr, sub_periods, twr_warnings = calculate_twr(series)
        result.twr = twr
        result.sub_periods = sub_periods
        result.warnings.extend(twr_warnings)
        if sub_periods == 0:
            result.has_sufficient_data = False

        if result.calendar_days >= CALENDAR_DAYS_PER_YEAR:
            result.twr_annualized = annualize_return(twr, result.calendar_days)

        # MWR
        mwr = calculate_mwr(series)
        result.mwr = mwr.rate
        result.mwr_converged = mwr.converged
        result.mwr_iterations = mwr.iterations
        if not mwr.converged:
            result.warnings.append("MWR did not converge")

        # Volatility & Sharpe
        periodic = calculate_periodic_returns(series)
        ppy = infer_periods_per_year([p.date for p in series.points])
        result.periods_per_year = ppy

        returns_only = [r for _, r in periodic]
        if ppy is not None and len(returns_only) >= MIN_POINTS_FOR_VOLATILITY:
            result.volatility = calculate_volatility(returns_only, ppy)
            result.sharpe_ratio = calculate_sharpe_ratio(
                returns_only, result.volatility, ppy, self._risk_free_rate
            )
        else:
            result.warnings.append("Insufficient data for volatility: need at least 2 returns")

        return result
