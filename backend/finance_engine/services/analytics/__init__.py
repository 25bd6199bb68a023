# backend/finance_engine/services/analytics/__init__.py
"""
Analytics Service Package.

This package provides investment account analytics:
- Valuation series reconstruction (holdings replay + price as-of)
- Performance metrics (TWR, MWR, volatility, Sharpe, dollar return)
- Benchmark comparison (SPY, QQQ, IWM, VTI)
- Risk metrics (max drawdown, beta, correlation, rolling volatility)

Architecture:
    analytics/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Snapshot and result dataclasses
    ├── timeseries.py            # TimeSeriesBuilder
    ├── returns.py               # PerformanceCalculator (TWR, MWR, Sharpe)
    ├── risk.py                  # RiskAnalyzer (drawdown, beta, correlation)
    ├── benchmark.py             # BenchmarkComparator
    └── service.py               # AnalyticsService (orchestrator)

Usage:
    from finance_engine.services.analytics import AnalyticsService

    service = AnalyticsService(risk_free_rate=Decimal("0.043"))
    report = service.get_performance(
        account_id=1,
        start_date=date(2024, 1, 1),
        end_date=date(2024, 12, 31),
        holdings=holdings,
        transactions=transactions,
        price_history=prices,
        benchmark_series=benchmarks,
    )

    print(f"TWR: {report.metrics.twr}")
    print(f"MWR: {report.metrics.mwr} (converged={report.metrics.mwr_converged})")

Data Flow:
    holdings + transactions + price history
        ↓
    TimeSeriesBuilder → ValuationSeries (points + cash flows)
        ↓
    ┌─────────────────────────────────────────┐
    │           AnalyticsService              │
    │  ┌──────────────────┐ ┌──────────────┐  │
    │  │ Performance      │ │ Risk         │  │
    │  │ Calculator       │ │ Analyzer     │  │
    │  │ • TWR  • MWR     │ │ • Drawdown   │  │
    │  │ • Vol  • Sharpe  │ │ • Beta/Corr  │  │
    │  └──────────────────┘ └──────────────┘  │
    │  ┌───────────────────────────────────┐  │
    │  │ BenchmarkComparator               │  │
    │  └───────────────────────────────────┘  │
    └─────────────────────────────────────────┘
        ↓
    PerformanceReport / RiskReport
"""

from finance_engine.services.analytics.benchmark import (
    BenchmarkComparator,
    calculate_period_return,
)
# Calculators (for testing / direct usage)
from finance_engine.services.analytics.returns import (
    PerformanceCalculator,
    annualize_return,
    calculate_mwr,
    calculate_periodic_returns,
    calculate_sharpe_ratio,
    calculate_twr,
    calculate_volatility,
    infer_periods_per_year,
)
from finance_engine.services.analytics.risk import (
    RiskAnalyzer,
    calculate_beta,
    calculate_correlation,
    calculate_drawdown_history,
    calculate_max_drawdown,
    calculate_rolling_volatility,
)
# Main service
from finance_engine.services.analytics.service import AnalyticsService
from finance_engine.services.analytics.timeseries import PriceLookup, TimeSeriesBuilder
# Types
from finance_engine.services.analytics.types import (
    # Input types
    HoldingSnapshot,
    LotMethod,
    PricePoint,
    TransactionRecord,
    TransactionType,
    # Series
    CashFlowEvent,
    ValuationPoint,
    ValuationSeries,
    # Result types
    BenchmarkComparison,
    DrawdownPoint,
    HistoricalPerformancePoint,
    MWRResult,
    PerformanceMetrics,
    PerformanceReport,
    RiskMetrics,
    RiskReport,
    VolatilityPoint,
)

__all__ = [
    # Main service
    "AnalyticsService",

    # Input types
    "HoldingSnapshot",
    "LotMethod",
    "PricePoint",
    "TransactionRecord",
    "TransactionType",

    # Series
    "CashFlowEvent",
    "ValuationPoint",
    "ValuationSeries",

    # Result types
    "BenchmarkComparison",
    "DrawdownPoint",
    "HistoricalPerformancePoint",
    "MWRResult",
    "PerformanceMetrics",
    "PerformanceReport",
    "RiskMetrics",
    "RiskReport",
    "VolatilityPoint",

    # Calculators
    "TimeSeriesBuilder",
    "PriceLookup",
    "PerformanceCalculator",
    "BenchmarkComparator",
    "RiskAnalyzer",

    # Individual functions (for testing)
    "annualize_return",
    "calculate_twr",
    "calculate_mwr",
    "calculate_periodic_returns",
    "calculate_volatility",
    "calculate_sharpe_ratio",
    "infer_periods_per_year",
    "calculate_period_return",
    "calculate_max_drawdown",
    "calculate_drawdown_history",
    "calculate_beta",
    "calculate_correlation",
    "calculate_rolling_volatility",
]
