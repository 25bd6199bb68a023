# backend/tests/services/analytics/test_benchmark.py
"""
Unit tests for benchmark comparison.

Test Coverage:
- calculate_period_return: As-of closes at both ends of the window
- BenchmarkComparator.compare: Order, missing series, excess return
"""

from datetime import date
from decimal import Decimal

import pytest

from finance_engine.services.analytics.benchmark import (
    BenchmarkComparator,
    calculate_period_return,
)
from finance_engine.services.analytics.types import PricePoint
from finance_engine.services.exceptions import AnalyticsError
from tests.conftest import create_price_series


def closes(*pairs: tuple[date, str]) -> list[PricePoint]:
    return [PricePoint(date=d, close=Decimal(c)) for d, c in pairs]


@pytest.fixture
def comparator() -> BenchmarkComparator:
    return BenchmarkComparator(risk_free_rate=Decimal("0.043"))


# =============================================================================
# PERIOD RETURN
# =============================================================================

class TestPeriodReturn:
    """Tests for calculate_period_return."""

    def test_close_to_close(self):
        series = closes((date(2024, 1, 2), "100"), (date(2024, 1, 31), "110"))

        result = calculate_period_return(series, date(2024, 1, 2), date(2024, 1, 31))

        assert result == Decimal("0.1")

    def test_endpoints_use_last_close_on_or_before(self):
        """Weekend endpoints take the Friday close."""
        series = closes(
            (date(2023, 12, 29), "80"),
            (date(2024, 1, 2), "90"),
            (date(2024, 3, 29), "100"),
            (date(2024, 4, 1), "120"),
        )

        result = calculate_period_return(series, date(2023, 12, 31), date(2024, 3, 31))

        assert result == Decimal("0.25")

    def test_window_starting_before_history(self):
        """No close before start: the first close inside the window is used."""
        series = closes((date(2024, 1, 5), "50"), (date(2024, 1, 31), "55"))

        result = calculate_period_return(series, date(2024, 1, 1), date(2024, 1, 31))

        assert result == Decimal("0.1")

    def test_no_closes_in_window(self):
        series = closes((date(2025, 1, 5), "50"))

        assert calculate_period_return(series, date(2024, 1, 1), date(2024, 1, 31)) is None


# =============================================================================
# COMPARATOR
# =============================================================================

class TestBenchmarkComparator:
    """Tests for BenchmarkComparator.compare."""

    def test_all_four_in_order(self, comparator):
        result = comparator.compare(Decimal("0.05"), date(2024, 1, 1), date(2024, 1, 31), {})

        assert [b.symbol for b in result] == ["SPY", "QQQ", "IWM", "VTI"]
        assert [b.name for b in result] == ["S&P 500", "Nasdaq 100", "Russell 2000", "Total Market"]

    def test_missing_series_flagged_not_raised(self, comparator):
        result = comparator.compare(Decimal("0.05"), date(2024, 1, 1), date(2024, 1, 31), {})

        for benchmark in result:
            assert benchmark.has_sufficient_data is False
            assert benchmark.period_return is None
            assert benchmark.excess_return is None
            assert benchmark.warnings == [f"No price history for {benchmark.symbol}"]

    def test_excess_return(self, comparator):
        series = {"spy": closes((date(2024, 1, 2), "100"), (date(2024, 1, 31), "104"))}

        result = comparator.compare(
            Decimal("0.10"), date(2024, 1, 1), date(2024, 1, 31), series, symbols=["SPY"]
        )

        spy = result[0]
        assert spy.period_return == Decimal("0.04")
        assert spy.excess_return == Decimal("0.06")
        assert spy.has_sufficient_data is True

    def test_volatility_and_sharpe_from_daily_closes(self, comparator):
        series = {"QQQ": create_price_series(date(2024, 1, 1), date(2024, 3, 31), "390", "1.001")}

        result = comparator.compare(
            None, date(2024, 1, 1), date(2024, 3, 31), series, symbols=["qqq"]
        )

        qqq = result[0]
        assert qqq.symbol == "QQQ"
        assert qqq.period_return > 0
        assert qqq.volatility is not None
        assert qqq.sharpe_ratio is not None
        assert qqq.excess_return is None

    def test_single_close_has_no_volatility(self, comparator):
        series = {"IWM": closes((date(2024, 1, 2), "200"))}

        result = comparator.compare(
            Decimal("0"), date(2024, 1, 1), date(2024, 1, 31), series, symbols=["IWM"]
        )

        assert result[0].period_return == Decimal("0")
        assert result[0].volatility is None
        assert "Insufficient data for IWM volatility" in result[0].warnings

    def test_unknown_symbol_rejected(self, comparator):
        with pytest.raises(AnalyticsError):
            comparator.compare(Decimal("0"), date(2024, 1, 1), date(2024, 1, 31), {}, symbols=["DIA"])
