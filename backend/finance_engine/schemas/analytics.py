# backend/finance_engine/schemas/analytics.py
"""
Pydantic schemas for investment analytics results.

These schemas define the JSON rendering of:
- Performance reports (TWR, MWR, volatility, Sharpe, dollar return)
- Benchmark comparison (SPY, QQQ, IWM, VTI)
- Risk reports (drawdown, beta, correlation, rolling volatility)

Design decisions:
- All numeric values are serialized as STRINGS to preserve Decimal precision
- Money is rounded to the cent, returns and ratios to 8 decimal places
- Return values are in decimal form (0.155 = 15.5%), the host formats for display
- Null is returned when a metric cannot be calculated (insufficient data)
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from finance_engine.services.analytics.types import (
    BenchmarkComparison,
    PerformanceMetrics,
    PerformanceReport,
    RiskMetrics,
    RiskReport,
)
from finance_engine.utils.money import format_money, format_ratio


# =============================================================================
# PERIOD INFO
# =============================================================================

class PeriodInfo(BaseModel):
    """Time period information for analytics calculations."""

    model_config = ConfigDict(from_attributes=True)

    start_date: date = Field(..., description="Start date of analysis period")
    end_date: date = Field(..., description="End date of analysis period")
    calendar_days: int = Field(..., description="Number of calendar days in period")


# =============================================================================
# PERFORMANCE SCHEMAS
# =============================================================================

class PerformanceMetricsResponse(BaseModel):
    """
    Performance metrics response.

    All return values are decimals (0.155 = 15.5%).
    All numeric values are strings to preserve precision.
    """

    model_config = ConfigDict(from_attributes=True)

    twr: str | None = Field(
        None,
        description="Time-Weighted Return (removes cash flow timing bias)"
    )
    twr_annualized: str | None = Field(
        None,
        description="TWR annualized to 1 year (periods of a year or more)"
    )
    mwr: str | None = Field(
        None,
        description="Money-Weighted Return (annual IRR of the cash flows)"
    )
    mwr_converged: bool = Field(
        True,
        description="False when the IRR solver did not converge; mwr is then a best estimate"
    )
    volatility: str | None = Field(None, description="Annualized volatility")
    sharpe_ratio: str | None = Field(None, description="(annualized return - Rf) / volatility")

    start_value: str = Field("0", description="Account value at start of period")
    end_value: str = Field("0", description="Account value at end of period")
    total_deposits: str = Field("0", description="Sum of deposits during period")
    total_withdrawals: str = Field(
        "0",
        description="Sum of withdrawals during period (positive number)"
    )
    current_market_value: str = Field("0", description="Market value of current holdings")
    total_cost_basis: str = Field("0", description="Cost basis of current holdings")
    dollar_return: str = Field("0", description="current_market_value - total_cost_basis")

    has_sufficient_data: bool = Field(
        True,
        description="False if insufficient data for calculations"
    )
    warnings: list[str] = Field(
        default_factory=list,
        description="Warnings about data quality or calculation limitations"
    )


class BenchmarkComparisonResponse(BaseModel):
    """One benchmark next to the account's return."""

    model_config = ConfigDict(from_attributes=True)

    symbol: str
    name: str | None = None
    period_return: str | None = None
    volatility: str | None = None
    sharpe_ratio: str | None = None
    excess_return: str | None = Field(
        None,
        description="Account TWR minus benchmark return"
    )
    has_sufficient_data: bool = True
    warnings: list[str] = Field(default_factory=list)


class HistoricalPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    portfolio_value: str
    cumulative_return: str


class PerformanceResponse(BaseModel):
    """Wrapped performance response with context."""

    model_config = ConfigDict(from_attributes=True)

    account_id: int
    period: PeriodInfo
    performance: PerformanceMetricsResponse
    benchmarks: list[BenchmarkComparisonResponse] = Field(default_factory=list)
    historical: list[HistoricalPointResponse] = Field(default_factory=list)


# =============================================================================
# RISK SCHEMAS
# =============================================================================

class DrawdownPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    drawdown: str = Field(..., description="Decline from running peak (0.15 = 15%)")


class VolatilityPointResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    date: date
    volatility: str


class RiskMetricsResponse(BaseModel):
    """
    Risk metrics response.

    All percentages are decimals (0.155 = 15.5%).
    All numeric values are strings to preserve precision.
    """

    model_config = ConfigDict(from_attributes=True)

    volatility: str | None = Field(None, description="Annualized volatility")
    max_drawdown: str = Field(
        "0",
        description="Largest peak-to-trough decline as a positive decimal"
    )
    max_drawdown_peak_date: date | None = None
    max_drawdown_trough_date: date | None = None
    beta: str | None = Field(None, description="Beta vs benchmark (null if undefined)")
    correlation: str | None = Field(None, description="Correlation with benchmark in [-1, 1]")
    benchmark_symbol: str | None = None
    paired_returns: int = Field(0, description="Return pairs used for beta/correlation")

    drawdown_history: list[DrawdownPointResponse] = Field(default_factory=list)
    volatility_history: list[VolatilityPointResponse] = Field(default_factory=list)

    has_sufficient_data: bool = True
    warnings: list[str] = Field(default_factory=list)


class RiskResponse(BaseModel):
    """Wrapped risk response with context."""

    model_config = ConfigDict(from_attributes=True)

    account_id: int
    period: PeriodInfo
    risk: RiskMetricsResponse


# =============================================================================
# MAPPERS
# =============================================================================

def _map_period(start_date: date, end_date: date) -> PeriodInfo:
    return PeriodInfo(
        start_date=start_date,
        end_date=end_date,
        calendar_days=(end_date - start_date).days,
    )


def _map_performance(perf: PerformanceMetrics) -> PerformanceMetricsResponse:
    return PerformanceMetricsResponse(
        twr=format_ratio(perf.twr),
        twr_annualized=format_ratio(perf.twr_annualized),
        mwr=format_ratio(perf.mwr),
        mwr_converged=perf.mwr_converged,
        volatility=format_ratio(perf.volatility),
        sharpe_ratio=format_ratio(perf.sharpe_ratio),
        start_value=format_money(perf.start_value),
        end_value=format_money(perf.end_value),
        total_deposits=format_money(perf.total_deposits),
        total_withdrawals=format_money(perf.total_withdrawals),
        current_market_value=format_money(perf.current_market_value),
        total_cost_basis=format_money(perf.total_cost_basis),
        dollar_return=format_money(perf.dollar_return),
        has_sufficient_data=perf.has_sufficient_data,
        warnings=list(perf.warnings),
    )


def _map_benchmark(bench: BenchmarkComparison) -> BenchmarkComparisonResponse:
    return BenchmarkComparisonResponse(
        symbol=bench.symbol,
        name=bench.name,
        period_return=format_ratio(bench.period_return),
        volatility=format_ratio(bench.volatility),
        sharpe_ratio=format_ratio(bench.sharpe_ratio),
        excess_return=format_ratio(bench.excess_return),
        has_sufficient_data=bench.has_sufficient_data,
        warnings=list(bench.warnings),
    )


def _map_risk(risk: RiskMetrics) -> RiskMetricsResponse:
    return RiskMetricsResponse(
        volatility=format_ratio(risk.volatility),
        max_drawdown=format_ratio(risk.max_drawdown),
        max_drawdown_peak_date=risk.max_drawdown_peak_date,
        max_drawdown_trough_date=risk.max_drawdown_trough_date,
        beta=format_ratio(risk.beta),
        correlation=format_ratio(risk.correlation),
        benchmark_symbol=risk.benchmark_symbol,
        paired_returns=risk.paired_returns,
        drawdown_history=[
            DrawdownPointResponse(date=p.date, drawdown=format_ratio(p.drawdown))
            for p in risk.drawdown_history
        ],
        volatility_history=[
            VolatilityPointResponse(date=p.date, volatility=format_ratio(p.volatility))
            for p in risk.volatility_history
        ],
        has_sufficient_data=risk.has_sufficient_data,
        warnings=list(risk.warnings),
    )


def build_performance_response(report: PerformanceReport) -> PerformanceResponse:
    """Render a PerformanceReport for JSON output."""
    return PerformanceResponse(
        account_id=report.account_id,
        period=_map_period(report.start_date, report.end_date),
        performance=_map_performance(report.metrics),
        benchmarks=[_map_benchmark(b) for b in report.benchmarks],
        historical=[
            HistoricalPointResponse(
                date=p.date,
                portfolio_value=format_money(p.portfolio_value),
                cumulative_return=format_ratio(p.cumulative_return),
            )
            for p in report.historical
        ],
    )


def build_risk_response(report: RiskReport) -> RiskResponse:
    """Render a RiskReport for JSON output."""
    return RiskResponse(
        account_id=report.account_id,
        period=_map_period(report.start_date, report.end_date),
        risk=_map_risk(report.metrics),
    )
