# backend/finance_engine/schemas/__init__.py
"""
Pydantic schemas for rendering engine results as JSON.

This package contains response schemas organized by domain:
- analytics: Performance, benchmark and risk reports
- tax: Tax insights (lots, unrealized gains, harvesting)
- liabilities: Amortization, payoff, utilization, payoff strategies

Each module also provides build_*_response() mappers that turn the
engine's result dataclasses into response models.

Usage:
    from finance_engine.schemas import build_performance_response

    payload = build_performance_response(report).model_dump(mode="json")
"""

from finance_engine.schemas.analytics import (
    PeriodInfo,
    # Performance
    PerformanceMetricsResponse,
    BenchmarkComparisonResponse,
    HistoricalPointResponse,
    PerformanceResponse,
    # Risk
    DrawdownPointResponse,
    VolatilityPointResponse,
    RiskMetricsResponse,
    RiskResponse,
    build_performance_response,
    build_risk_response,
)
from finance_engine.schemas.liabilities import (
    AmortizationPeriodResponse,
    AmortizationScheduleResponse,
    AmortizationSummaryResponse,
    CardUtilizationResponse,
    DebtResponse,
    PayoffPlanResponse,
    PayoffResponse,
    PayoffSavingsResponse,
    PayoffStrategyResponse,
    StrategyComparisonResponse,
    UtilizationResponse,
    build_amortization_response,
    build_payoff_response,
    build_strategy_comparison_response,
    build_utilization_response,
)
from finance_engine.schemas.tax import (
    HarvestCandidateResponse,
    HoldingTaxResponse,
    LotResponse,
    RealizedGainResponse,
    ReturnValueResponse,
    TaxInsightsResponse,
    TaxLiabilityResponse,
    UnrealizedGainsResponse,
    build_tax_insights_response,
)

__all__ = [
    # Analytics
    "PeriodInfo",
    "PerformanceMetricsResponse",
    "BenchmarkComparisonResponse",
    "HistoricalPointResponse",
    "PerformanceResponse",
    "DrawdownPointResponse",
    "VolatilityPointResponse",
    "RiskMetricsResponse",
    "RiskResponse",
    "build_performance_response",
    "build_risk_response",
    # Tax
    "ReturnValueResponse",
    "UnrealizedGainsResponse",
    "TaxLiabilityResponse",
    "LotResponse",
    "HoldingTaxResponse",
    "HarvestCandidateResponse",
    "RealizedGainResponse",
    "TaxInsightsResponse",
    "build_tax_insights_response",
    # Liabilities
    "AmortizationPeriodResponse",
    "AmortizationSummaryResponse",
    "AmortizationScheduleResponse",
    "PayoffPlanResponse",
    "PayoffSavingsResponse",
    "PayoffResponse",
    "CardUtilizationResponse",
    "UtilizationResponse",
    "DebtResponse",
    "PayoffStrategyResponse",
    "StrategyComparisonResponse",
    "build_amortization_response",
    "build_payoff_response",
    "build_utilization_response",
    "build_strategy_comparison_response",
]
