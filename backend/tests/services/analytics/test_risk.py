# backend/tests/services/analytics/test_risk.py
"""
Unit tests for risk calculations.

These tests verify the pure calculation logic WITHOUT any data source.

Test Coverage:
- calculate_max_drawdown / calculate_drawdown_history
- calculate_beta / calculate_correlation
- pair_returns: Benchmark alignment
- calculate_rolling_volatility
- RiskAnalyzer.calculate: Combined calculations
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from finance_engine.services.analytics.risk import (
    RiskAnalyzer,
    calculate_beta,
    calculate_correlation,
    calculate_drawdown_history,
    calculate_max_drawdown,
    calculate_rolling_volatility,
    pair_returns,
)
from finance_engine.services.analytics.types import PricePoint, ValuationPoint, ValuationSeries


def points_from(values: list[str], start: date = date(2024, 1, 1)) -> list[ValuationPoint]:
    return [
        ValuationPoint(date=start + timedelta(days=i), total_market_value=Decimal(v))
        for i, v in enumerate(values)
    ]


def series_from(values: list[str], insufficient_data: bool = False) -> ValuationSeries:
    points = points_from(values)
    return ValuationSeries(
        account_id=1,
        start_date=points[0].date,
        end_date=points[-1].date,
        points=points,
        insufficient_data=insufficient_data,
    )


def decimals(*values: str) -> list[Decimal]:
    return [Decimal(v) for v in values]


# =============================================================================
# DRAWDOWN
# =============================================================================

class TestMaxDrawdown:
    """Tests for calculate_max_drawdown."""

    def test_largest_decline_wins(self):
        """120 -> 90 (25%) beats 130 -> 104 (20%)."""
        points = points_from(["100", "120", "90", "130", "104"])

        drawdown, peak, trough = calculate_max_drawdown(points)

        assert drawdown == Decimal("0.25")
        assert peak == date(2024, 1, 2)
        assert trough == date(2024, 1, 3)

    def test_monotonic_increase(self):
        """No decline -> 0 with no dates."""
        drawdown, peak, trough = calculate_max_drawdown(points_from(["100", "110", "120"]))

        assert drawdown == Decimal("0")
        assert peak is None
        assert trough is None

    def test_leading_zeros_ignored(self):
        """Nothing to lose before the account is funded."""
        drawdown, _, _ = calculate_max_drawdown(points_from(["0", "100", "50"]))

        assert drawdown == Decimal("0.5")

    def test_input_order_does_not_matter(self):
        points = points_from(["100", "120", "90"])

        assert calculate_max_drawdown(list(reversed(points))) == calculate_max_drawdown(points)

    def test_drawdown_is_bounded(self):
        """0 <= drawdown <= 1 even for a total loss."""
        drawdown, _, _ = calculate_max_drawdown(points_from(["100", "0"]))

        assert drawdown == Decimal("1")


class TestDrawdownHistory:
    def test_distance_from_running_peak(self):
        history = calculate_drawdown_history(points_from(["100", "120", "90", "130"]))

        assert [h.drawdown for h in history] == decimals("0", "0", "0.25", "0")


# =============================================================================
# BETA & CORRELATION
# =============================================================================

class TestBeta:
    """Tests for calculate_beta."""

    def test_double_leverage(self):
        """Account moving exactly twice the benchmark has beta 2."""
        benchmark = decimals("0.01", "-0.02", "0.03", "0.005")
        account = [r * 2 for r in benchmark]

        beta = calculate_beta(account, benchmark)

        assert abs(beta - Decimal("2")) < Decimal("1e-20")

    def test_inverse(self):
        benchmark = decimals("0.01", "-0.02", "0.03")
        account = [-r for r in benchmark]

        beta = calculate_beta(account, benchmark)

        assert abs(beta + Decimal("1")) < Decimal("1e-20")

    def test_fewer_than_two_pairs(self):
        assert calculate_beta(decimals("0.01"), decimals("0.02")) is None

    def test_zero_benchmark_variance(self):
        assert calculate_beta(decimals("0.01", "0.02"), decimals("0.01", "0.01")) is None

    def test_length_mismatch(self):
        assert calculate_beta(decimals("0.01", "0.02"), decimals("0.01")) is None


class TestCorrelation:
    """Tests for calculate_correlation."""

    def test_perfect_positive(self):
        benchmark = decimals("0.01", "-0.02", "0.03")
        account = [r * 3 + Decimal("0.001") for r in benchmark]

        assert abs(calculate_correlation(account, benchmark) - Decimal("1")) < Decimal("1e-20")

    def test_perfect_negative(self):
        benchmark = decimals("0.01", "-0.02", "0.03")
        account = [-r for r in benchmark]

        assert abs(calculate_correlation(account, benchmark) + Decimal("1")) < Decimal("1e-20")

    def test_bounded(self):
        correlation = calculate_correlation(
            decimals("0.01", "0.04", "-0.02", "0.00"),
            decimals("0.02", "0.01", "-0.01", "0.03"),
        )

        assert Decimal("-1") <= correlation <= Decimal("1")

    def test_flat_account(self):
        """Zero account variance leaves correlation undefined."""
        assert calculate_correlation(decimals("0.01", "0.01"), decimals("0.01", "0.02")) is None


# =============================================================================
# PAIRING
# =============================================================================

class TestPairReturns:
    """Tests for pair_returns."""

    def test_benchmark_gap_carries_close_forward(self):
        """No benchmark close on Jan 2: the Jan 1 close is used, giving a 0 return."""
        series = series_from(["100", "110", "121"])
        closes = [
            PricePoint(date=date(2024, 1, 1), close=Decimal("50")),
            PricePoint(date=date(2024, 1, 3), close=Decimal("55")),
        ]

        account, benchmark = pair_returns(series, closes)

        assert account == decimals("0.1", "0.1")
        assert benchmark == decimals("0", "0.1")

    def test_dates_before_benchmark_history_are_dropped(self):
        series = series_from(["100", "110", "121"])
        closes = [
            PricePoint(date=date(2024, 1, 2), close=Decimal("50")),
            PricePoint(date=date(2024, 1, 3), close=Decimal("55")),
        ]

        account, benchmark = pair_returns(series, closes)

        assert account == decimals("0.1")
        assert benchmark == decimals("0.1")


# =============================================================================
# ROLLING VOLATILITY
# =============================================================================

class TestRollingVolatility:
    """Tests for calculate_rolling_volatility."""

    def test_one_point_per_full_window(self):
        returns = [
            (date(2024, 1, 1) + timedelta(days=i), r)
            for i, r in enumerate(decimals("0.01", "-0.01", "0.02", "0.00", "0.01"))
        ]

        history = calculate_rolling_volatility(returns, 252, window=3)

        assert [p.date for p in history] == [date(2024, 1, 3), date(2024, 1, 4), date(2024, 1, 5)]
        assert all(p.volatility > 0 for p in history)

    def test_window_longer_than_history(self):
        returns = [(date(2024, 1, 1), Decimal("0.01")), (date(2024, 1, 2), Decimal("0.02"))]

        assert calculate_rolling_volatility(returns, 252, window=30) == []


# =============================================================================
# RISK ANALYZER
# =============================================================================

class TestRiskAnalyzer:
    """Tests for RiskAnalyzer.calculate."""

    @pytest.fixture
    def analyzer(self) -> RiskAnalyzer:
        return RiskAnalyzer(rolling_window=2)

    def test_with_benchmark(self, analyzer):
        series = series_from(["100", "102", "99", "104", "101"])
        closes = [
            PricePoint(date=date(2024, 1, 1) + timedelta(days=i), close=Decimal(c))
            for i, c in enumerate(["50", "51", "49.5", "52", "50.5"])
        ]

        result = analyzer.calculate(series, "SPY", closes)

        assert result.benchmark_symbol == "SPY"
        assert result.paired_returns == 4
        assert result.beta is not None
        assert Decimal("-1") <= result.correlation <= Decimal("1")
        assert result.volatility > 0
        assert result.periods_per_year == 252
        assert len(result.volatility_history) == 3
        assert len(result.drawdown_history) == 5
        assert result.max_drawdown > 0
        assert result.has_sufficient_data is True

    def test_missing_benchmark_history(self, analyzer):
        result = analyzer.calculate(series_from(["100", "102", "99"]), "SPY", None)

        assert result.beta is None
        assert result.correlation is None
        assert "No price history for benchmark SPY" in result.warnings

    def test_too_few_pairs_for_beta(self, analyzer):
        series = series_from(["100", "110"])
        closes = [
            PricePoint(date=date(2024, 1, 1), close=Decimal("50")),
            PricePoint(date=date(2024, 1, 2), close=Decimal("55")),
        ]

        result = analyzer.calculate(series, "SPY", closes)

        assert result.paired_returns == 1
        assert result.beta is None
        assert any(w.startswith("Beta unavailable") for w in result.warnings)

    def test_flat_series_flagged(self, analyzer):
        result = analyzer.calculate(series_from(["1200", "1200"], insufficient_data=True))

        assert result.has_sufficient_data is False
        assert result.max_drawdown == Decimal("0")
