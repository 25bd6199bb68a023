# backend/tests/schemas/test_response_schemas.py
"""
Tests for the response schemas and their build_*_response mappers.
"""

import json
from datetime import date
from decimal import Decimal

from finance_engine.schemas import (
    build_amortization_response,
    build_payoff_response,
    build_performance_response,
    build_risk_response,
    build_strategy_comparison_response,
    build_tax_insights_response,
    build_utilization_response,
)
from finance_engine.services.analytics.types import (
    BenchmarkComparison,
    HistoricalPerformancePoint,
    PerformanceMetrics,
    PerformanceReport,
    RiskMetrics,
    RiskReport,
)
from finance_engine.services.liabilities.amortization import AmortizationEngine
from finance_engine.services.liabilities.payoff import DebtPayoffStrategist
from finance_engine.services.liabilities.types import CreditCardSnapshot, DebtAccount
from finance_engine.services.liabilities.utilization import CreditUtilizationCalculator
from finance_engine.services.tax.service import TaxInsightsService
from tests.conftest import create_holding, create_loan, create_transaction


class TestPerformanceResponse:
    """Tests for build_performance_response."""

    def test_numbers_are_strings(self):
        report = PerformanceReport(
            account_id=7,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 3, 31),
            metrics=PerformanceMetrics(
                twr=Decimal("0.21"),
                start_value=Decimal("1000"),
                end_value=Decimal("2310.456"),
                total_deposits=Decimal("1000"),
            ),
            benchmarks=[BenchmarkComparison(symbol="SPY", name="S&P 500", period_return=Decimal("0.04"))],
            historical=[
                HistoricalPerformancePoint(
                    date=date(2024, 1, 1),
                    portfolio_value=Decimal("1000"),
                    cumulative_return=Decimal("0"),
                ),
            ],
        )

        response = build_performance_response(report)

        assert response.period.calendar_days == 90
        assert response.performance.twr == "0.21000000"
        assert response.performance.mwr is None
        assert response.performance.end_value == "2310.46"
        assert response.benchmarks[0].period_return == "0.04000000"
        assert response.benchmarks[0].excess_return is None
        assert response.historical[0].portfolio_value == "1000.00"

    def test_serializes_to_json(self):
        report = PerformanceReport(
            account_id=7,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
            metrics=PerformanceMetrics(warnings=["MWR did not converge"]),
        )

        payload = json.loads(build_performance_response(report).model_dump_json())

        assert payload["period"]["start_date"] == "2024-01-01"
        assert payload["performance"]["warnings"] == ["MWR did not converge"]
        assert payload["performance"]["start_value"] == "0.00"


class TestRiskResponse:
    def test_ratios_rounded_to_eight_places(self):
        report = RiskReport(
            account_id=7,
            start_date=date(2024, 1, 1),
            end_date=date(2024, 1, 31),
            metrics=RiskMetrics(
                volatility=Decimal("0.123456789"),
                max_drawdown=Decimal("0.25"),
                beta=None,
                benchmark_symbol="SPY",
            ),
        )

        risk = build_risk_response(report).risk

        assert risk.volatility == "0.12345679"
        assert risk.max_drawdown == "0.25000000"
        assert risk.beta is None
        assert risk.benchmark_symbol == "SPY"


class TestTaxInsightsResponse:
    def test_candidate_and_liability(self):
        holdings = [
            create_holding(1, "AAPL", quantity="10", current_price="150"),
            create_holding(3, "MSFT", quantity="5", current_price="300"),
        ]
        transactions = [
            create_transaction(1, date(2022, 1, 3), "BUY", holding_id=1, quantity="10", price="100"),
            create_transaction(2, date(2023, 12, 1), "BUY", holding_id=3, quantity="5", price="400"),
        ]
        insights = TaxInsightsService().calculate(1, holdings, transactions, as_of=date(2024, 6, 1))

        response = build_tax_insights_response(insights)

        assert response.estimated_tax_liability.long_term_tax == "75.00"
        assert response.estimated_tax_liability.tax_rate == "15.0000"
        assert response.unrealized_gains.long_term.percent == "50.0000"
        candidate = response.harvesting_opportunities[0]
        assert candidate.loss == "-500.00"
        assert candidate.loss_percent == "-0.25000000"
        assert candidate.replacement_suggestion == "VGT"
        aapl = next(h for h in response.holdings if h.symbol == "AAPL")
        assert aapl.lots[0].quantity == "10"


class TestLiabilityResponses:
    """Tests for the loan, utilization and payoff strategy mappers."""

    def test_amortization(self):
        schedule = AmortizationEngine().generate_schedule(create_loan(), as_of=date(2024, 1, 1))

        response = build_amortization_response(schedule)

        assert response.summary.monthly_payment == "1798.65"
        assert response.summary.total_payments == 360
        assert response.summary.percent_paid == "0.0000"
        assert response.schedule[0].payment_number == 1
        assert response.schedule[0].interest == "1500.00"
        assert response.schedule[-1].balance == "0.00"

    def test_payoff_never_pays_off(self):
        loan = create_loan(principal="100000", monthly_payment=Decimal("400"))
        comparison = AmortizationEngine().calculate_payoff(loan, Decimal("50"))

        response = build_payoff_response(comparison)

        assert response.current_plan.never_pays_off is True
        assert response.current_plan.payoff_date is None
        assert response.savings.months_saved == 0

    def test_utilization(self):
        report = CreditUtilizationCalculator().calculate([
            CreditCardSnapshot(account_id=1, balance=Decimal("1000"), credit_limit=Decimal("0")),
            CreditCardSnapshot(account_id=2, balance=Decimal("1000"), credit_limit=Decimal("10000")),
        ])

        response = build_utilization_response(report)

        assert response.utilization == "20.0000"
        assert response.cards[0].utilization is None
        assert response.cards[0].band == "N/A"
        assert response.cards[1].available_credit == "9000.00"

    def test_strategy_comparison(self):
        comparison = DebtPayoffStrategist().compare(
            [
                DebtAccount(id=1, balance=Decimal("5000"), apr=Decimal("0.05"), minimum_payment=Decimal("100")),
                DebtAccount(id=2, balance=Decimal("8000"), apr=Decimal("0.20"), minimum_payment=Decimal("150")),
            ],
            extra_payment=Decimal("200"),
        )

        response = build_strategy_comparison_response(comparison)

        assert response.total_debt == "13000.00"
        assert [d.interest_rate for d in response.debts] == ["5.0000", "20.0000"]
        assert response.debts[1].payoff_month_avalanche == comparison.avalanche.per_debt_payoff_month[2]
        assert response.avalanche.strategy == "avalanche"
        assert response.recommended_strategy == "avalanche"
        json.loads(response.model_dump_json())
