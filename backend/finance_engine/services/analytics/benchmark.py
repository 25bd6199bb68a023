# backend/finance_engine/services/analytics/benchmark.py
"""
Benchmark comparison for the analytics services.

Packages the standard market benchmarks next to the account's
performance so the caller can answer "how did I do versus the market?".

Benchmarks:
    SPY  S&P 500
    QQQ  Nasdaq 100
    IWM  Russell 2000
    VTI  Total Market

Per benchmark:
    Period Return = Close(end) / Close(start) - 1   (closes as-of each date)
    Volatility    = population std(daily returns) * √252
    Sharpe        = (mean(daily returns) * 252 - R_f) / Volatility
    Excess Return = Account TWR - Period Return

A missing series yields an entry flagged has_sufficient_data=False
instead of an error.
"""

import logging
from datetime import date
from decimal import Decimal

from finance_engine.services.analytics.returns import (
    calculate_series_returns,
    calculate_sharpe_ratio,
    calculate_volatility,
)
from finance_engine.services.analytics.timeseries import PriceLookup
from finance_engine.services.analytics.types import BenchmarkComparison, PricePoint
from finance_engine.services.constants import (
    BENCHMARK_NAMES,
    DEFAULT_RISK_FREE_RATE,
    MIN_POINTS_FOR_VOLATILITY,
    TRADING_DAYS_PER_YEAR,
    ZERO,
)
from finance_engine.services.exceptions import AnalyticsError

logger = logging.getLogger(__name__)


def calculate_period_return(
        closes: list[PricePoint],
        start_date: date,
        end_date: date,
) -> Decimal | None:
    """
    Close-to-close return over [start_date, end_date].

    Each endpoint takes the last close on or before it. If nothing trades
    before start_date, the first close inside the window is used.

    Returns:
        Return as decimal, or None when no usable closes exist
    """
    lookup = PriceLookup({"BENCH": closes})

    start_close = lookup.close_asof("BENCH", start_date)
    if start_close is None:
        in_window = sorted(
            (p for p in closes if start_date <= p.date <= end_date), key=lambda p: p.date
        )
        start_close = in_window[0].close if in_window else None

    end_close = lookup.close_asof("BENCH", end_date)

    if start_close is None or end_close is None or start_close == ZERO:
        return None

    return end_close / start_close - Decimal("1")


class BenchmarkComparator:
    """
    Compares an account's TWR against benchmark close series.

    Stateless apart from the risk-free rate used for Sharpe.
    """

    def __init__(self, risk_free_rate: Decimal = DEFAULT_RISK_FREE_RATE) -> None:
        self._risk_free_rate = risk_free_rate

    def compare(
            self,
            account_twr: Decimal | None,
            start_date: date,
            end_date: date,
            benchmark_series: dict[str, list[PricePoint]],
            symbols: list[str] | None = None,
    ) -> list[BenchmarkComparison]:
        """
        Build one BenchmarkComparison per benchmark symbol.

        Args:
            account_twr: Account TWR over the same window (None skips excess)
            start_date: Window start
            end_date: Window end
            benchmark_series: Symbol -> daily closes (missing symbols allowed)
            symbols: Benchmarks to report (default: all four, in order)

        Returns:
            List of BenchmarkComparison in presentation order

        Raises:
            AnalyticsError: If a requested symbol is not a known benchmark
        """
        requested = [s.upper() for s in symbols] if symbols else list(BENCHMARK_NAMES)
        unknown = [s for s in requested if s not in BENCHMARK_NAMES]
        if unknown:
            raise AnalyticsError(
                f"Unknown benchmark symbol(s): {', '.join(unknown)}. "
                f"Valid options: {', '.join(BENCHMARK_NAMES)}"
            )

        available = {symbol.upper(): closes for symbol, closes in benchmark_series.items()}
        return [
            self._compare_one(symbol, account_twr, start_date, end_date, available.get(symbol))
            for symbol in requested
        ]

    def _compare_one(
            self,
            symbol: str,
            account_twr: Decimal | None,
            start_date: date,
            end_date: date,
            closes: list[PricePoint] | None,
    ) -> BenchmarkComparison:
        result = BenchmarkComparison(symbol=symbol, name=BENCHMARK_NAMES[symbol])

        if not closes:
            result.has_sufficient_data = False
            result.warnings.append(f"No price history for {symbol}")
            logger.debug(f"Benchmark {symbol}: no price history supplied")
            return result

        result.period_return = calculate_period_return(closes, start_date, end_date)
        if result.period_return is None:
            result.has_sufficient_data = False
            result.warnings.append(f"No closes for {symbol} in {start_date} to {end_date}")
            return result

        window = sorted(
            (p for p in closes if start_date <= p.date <= end_date), key=lambda p: p.date
        )
        daily_returns = calculate_series_returns([p.close for p in window])

        if len(daily_returns) >= MIN_POINTS_FOR_VOLATILITY:
            result.volatility = calculate_volatility(daily_returns, TRADING_DAYS_PER_YEAR)
            result.sharpe_ratio = calculate_sharpe_ratio(
                daily_returns, result.volatility, TRADING_DAYS_PER_YEAR, self._risk_free_rate
            )
        else:
            result.warnings.append(f"Insufficient data for {symbol} volatility")

        if account_twr is not None:
            result.excess_return = account_twr - result.period_return

        return result
