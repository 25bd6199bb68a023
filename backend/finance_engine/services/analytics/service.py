# backend/finance_engine/services/analytics/service.py
"""
Analytics Service - orchestrates performance and risk calculations.

This service coordinates:
1. TimeSeriesBuilder (valuations + external cash flows)
2. PerformanceCalculator (TWR, MWR, volatility, Sharpe, dollar return)
3. BenchmarkComparator (SPY, QQQ, IWM, VTI)
4. RiskAnalyzer (drawdown, beta, correlation, rolling volatility)

It never fetches data: the engine facade hands it snapshots read from
an AccountDataRepository.

Sampling:
    When price history is supplied and no interval is requested, the
    series is sampled on business days so volatility sees real price
    movement. Without price history the series holds transaction dates
    plus both endpoints.
"""

from __future__ import annotations

import logging
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from finance_engine.services.analytics.benchmark import BenchmarkComparator
from finance_engine.services.analytics.returns import (
    PerformanceCalculator,
    build_historical_points,
)
from finance_engine.services.analytics.risk import RiskAnalyzer
from finance_engine.services.analytics.timeseries import TimeSeriesBuilder, check_quantities
from finance_engine.services.analytics.types import (
    HoldingSnapshot,
    PerformanceReport,
    PricePoint,
    RiskReport,
    TransactionRecord,
    ValuationSeries,
)
from finance_engine.services.constants import (
    DEFAULT_BENCHMARK_SYMBOL,
    DEFAULT_RISK_FREE_RATE,
    DEFAULT_ROLLING_WINDOW,
)
from finance_engine.services.exceptions import ValidationError

if TYPE_CHECKING:
    from finance_engine.services.tax.lots import TaxLotEngine

logger = logging.getLogger(__name__)


class AnalyticsService:
    """
    Main orchestrator for account analytics.

    Attributes:
        _builder: Valuation series reconstruction
        _performance: Return metrics
        _benchmarks: Benchmark comparison
        _risk: Risk metrics
        _lots: Lot replay for cost basis when holdings carry none
    """

    def __init__(
            self,
            risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE,
            rolling_window: int = DEFAULT_ROLLING_WINDOW,
            builder: TimeSeriesBuilder | None = None,
            lot_engine: TaxLotEngine | None = None,
    ) -> None:
        self._builder = builder or TimeSeriesBuilder()
        self._performance = PerformanceCalculator(risk_free_rate)
        self._benchmarks = BenchmarkComparator(risk_free_rate)
        self._risk = RiskAnalyzer(rolling_window)

        # Lazy import: the tax package builds on analytics.timeseries
        if lot_engine is None:
            from finance_engine.services.tax.lots import TaxLotEngine
            lot_engine = TaxLotEngine()
        self._lots = lot_engine

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def get_performance(
            self,
            account_id: int,
            start_date: date,
            end_date: date,
            holdings: list[HoldingSnapshot],
            transactions: list[TransactionRecord],
            price_history: dict[str, list[PricePoint]] | None = None,
            benchmark_series: dict[str, list[PricePoint]] | None = None,
            interval: str | None = None,
    ) -> PerformanceReport:
        """
        Calculate performance metrics with benchmark comparison.

        Args:
            account_id: Account to analyze
            start_date: Start of analysis period
            end_date: End of analysis period
            holdings: Current holdings snapshot
            transactions: Full transaction history
            price_history: Symbol -> daily closes for the holdings
            benchmark_series: Symbol -> daily closes for SPY/QQQ/IWM/VTI
            interval: Optional sampling calendar

        Returns:
            PerformanceReport

        Raises:
            ValidationError: Negative transaction or holding quantity
        """
        logger.info(
            f"Calculating performance for account {account_id} "
            f"from {start_date} to {end_date}"
        )

        series = self._build_series(
            account_id, start_date, end_date, holdings, transactions, price_history, interval
        )
        lot_basis, lot_warnings = self._lot_cost_basis(holdings, transactions)

        metrics = self._performance.calculate(series, holdings, lot_basis)
        metrics.warnings.extend(lot_warnings)

        benchmarks = self._benchmarks.compare(
            metrics.twr, start_date, end_date, benchmark_series or {}
        )

        return PerformanceReport(
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            metrics=metrics,
            benchmarks=benchmarks,
            historical=build_historical_points(series),
        )

    def get_risk(
            self,
            account_id: int,
            start_date: date,
            end_date: date,
            holdings: list[HoldingSnapshot],
            transactions: list[TransactionRecord],
            price_history: dict[str, list[PricePoint]] | None = None,
            benchmark_series: dict[str, list[PricePoint]] | None = None,
            benchmark_symbol: str = DEFAULT_BENCHMARK_SYMBOL,
            interval: str | None = None,
    ) -> RiskReport:
        """
        Calculate risk metrics versus one benchmark.

        Args:
            benchmark_symbol: Benchmark for beta/correlation (default SPY)

        Returns:
            RiskReport

        Raises:
            ValidationError: Negative transaction or holding quantity
        """
        logger.info(
            f"Calculating risk for account {account_id} "
            f"from {start_date} to {end_date} vs {benchmark_symbol}"
        )

        series = self._build_series(
            account_id, start_date, end_date, holdings, transactions, price_history, interval
        )

        closes = (benchmark_series or {}).get(benchmark_symbol.upper())
        metrics = self._risk.calculate(series, benchmark_symbol.upper(), closes)

        return RiskReport(
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            metrics=metrics,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _build_series(
            self,
            account_id: int,
            start_date: date,
            end_date: date,
            holdings: list[HoldingSnapshot],
            transactions: list[TransactionRecord],
            price_history: dict[str, list[PricePoint]] | None,
            interval: str | None,
    ) -> ValuationSeries:
        if interval is None and price_history:
            interval = "daily"

        return self._builder.build(
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
            transactions=transactions,
            holdings=holdings,
            price_history=price_history,
            interval=interval,
        )

    def _lot_cost_basis(
            self,
            holdings: list[HoldingSnapshot],
            transactions: list[TransactionRecord],
    ) -> tuple[dict[int, Decimal], list[str]]:
        """
        Open-lot cost basis for holdings that carry none of their own.

        An inconsistent history (oversold lots) degrades to a warning here;
        calculate_tax_insights is where it is raised to the caller. Negative
        quantities are never tolerated.

        Raises:
            ValidationError: A transaction or holding quantity is negative
        """
        check_quantities(transactions, holdings)

        if all(h.cost_basis_per_unit is not None for h in holdings):
            return {}, []

        try:
            replay = self._lots.replay(transactions, holdings)
        except ValidationError as e:
            logger.warning(f"Lot cost basis unavailable: {e.message}")
            return {}, [f"Cost basis from lots unavailable: {e.message}"]

        return replay.open_cost_basis(), []
