# backend/finance_engine/services/engine.py
"""
FinanceEngine - the single entry point hosts call.

Operations:
    calculate_performance            TWR, MWR, volatility, Sharpe, benchmarks
    calculate_tax_insights           Lots, unrealized gains, harvesting
    calculate_risk_metrics           Drawdown, beta, correlation
    generate_amortization_schedule   Loan schedule + summary
    calculate_payoff                 Extra-payment acceleration
    calculate_utilization            Per-card and aggregate utilization
    compare_payoff_strategies        Avalanche vs snowball vs minimum-only

Account-level operations read snapshots from an AccountDataRepository;
liability operations take their snapshots directly (the *_for_user
helpers read them from the repository first). Tunables come from
EngineSettings.

Usage:
    engine = FinanceEngine(repository)
    report = engine.calculate_performance(account_id=7, period="1Y")
"""

import logging
from datetime import date
from decimal import Decimal

from finance_engine.config import EngineSettings, get_settings
from finance_engine.services.analytics.service import AnalyticsService
from finance_engine.services.analytics.types import PerformanceReport, RiskReport
from finance_engine.services.constants import BENCHMARK_NAMES, DEFAULT_BENCHMARK_SYMBOL, ZERO
from finance_engine.services.exceptions import ValidationError
from finance_engine.services.liabilities.amortization import AmortizationEngine
from finance_engine.services.liabilities.payoff import DebtPayoffStrategist
from finance_engine.services.liabilities.types import (
    AmortizationSchedule,
    CreditCardSnapshot,
    DebtAccount,
    LoanTerms,
    PayoffComparison,
    PropertyMortgage,
    StrategyComparison,
    UtilizationReport,
)
from finance_engine.services.liabilities.utilization import CreditUtilizationCalculator
from finance_engine.services.protocols import AccountDataRepository
from finance_engine.services.tax.lots import TaxLotEngine
from finance_engine.services.tax.service import TaxInsightsService
from finance_engine.services.tax.types import TaxInsights
from finance_engine.utils.context import bound_context
from finance_engine.utils.date_utils import resolve_period

logger = logging.getLogger(__name__)


class FinanceEngine:
    """
    Facade over the analytics, tax and liability services.

    Attributes:
        _repository: Snapshot source
        _settings: Engine tunables
    """

    def __init__(
            self,
            repository: AccountDataRepository,
            settings: EngineSettings | None = None,
    ) -> None:
        self._repository = repository
        self._settings = settings or get_settings()

        lot_engine = TaxLotEngine()
        self._analytics = AnalyticsService(
            risk_free_rate=self._settings.risk_free_rate,
            rolling_window=self._settings.rolling_volatility_window,
            lot_engine=lot_engine,
        )
        self._tax = TaxInsightsService(
            lot_engine=lot_engine,
            short_term_rate=self._settings.short_term_tax_rate,
            long_term_rate=self._settings.long_term_tax_rate,
            harvest_loss_threshold=self._settings.harvest_loss_threshold,
            harvest_loss_percent=self._settings.harvest_loss_percent,
        )
        self._amortization = AmortizationEngine(self._settings.max_simulation_months)
        self._utilization = CreditUtilizationCalculator()
        self._payoff = DebtPayoffStrategist(
            max_months=self._settings.max_simulation_months,
            default_mortgage_apr=self._settings.default_mortgage_apr,
        )

    # =========================================================================
    # INVESTMENT ANALYTICS
    # =========================================================================

    def calculate_performance(
            self,
            account_id: int,
            start_date: date | None = None,
            end_date: date | None = None,
            period: str | None = None,
            interval: str | None = None,
            today: date | None = None,
    ) -> PerformanceReport:
        """
        Performance of an account over a date range or period code.

        Args:
            account_id: Account to analyze
            start_date / end_date: Explicit range
            period: 1M, 3M, 6M, YTD, 1Y, 3Y, 5Y or ALL (overrides the range)
            interval: Sampling calendar (daily, weekly, monthly)
            today: End of a period range (default: today, UTC)

        Raises:
            AccountNotFoundError: Unknown account
            InvalidPeriodError: Unknown period code
            ValidationError: Missing or inverted date range
        """
        with bound_context(account_id=account_id):
            start, end = self._resolve_range(start_date, end_date, period, today)

            holdings = self._repository.get_holdings(account_id)
            transactions = self._repository.get_transactions(account_id)
            prices = self._repository.get_price_history(self._symbols(holdings, transactions))
            benchmarks = self._repository.get_benchmark_series(list(BENCHMARK_NAMES))

            return self._analytics.get_performance(
                account_id=account_id,
                start_date=start,
                end_date=end,
                holdings=holdings,
                transactions=transactions,
                price_history=prices,
                benchmark_series=benchmarks,
                interval=interval,
            )

    def calculate_risk_metrics(
            self,
            account_id: int,
            start_date: date | None = None,
            end_date: date | None = None,
            period: str | None = None,
            benchmark_symbol: str = DEFAULT_BENCHMARK_SYMBOL,
            interval: str | None = None,
            today: date | None = None,
    ) -> RiskReport:
        """Risk metrics of an account versus one benchmark (default SPY)."""
        with bound_context(account_id=account_id):
            start, end = self._resolve_range(start_date, end_date, period, today)

            holdings = self._repository.get_holdings(account_id)
            transactions = self._repository.get_transactions(account_id)
            prices = self._repository.get_price_history(self._symbols(holdings, transactions))
            benchmarks = self._repository.get_benchmark_series([benchmark_symbol])

            return self._analytics.get_risk(
                account_id=account_id,
                start_date=start,
                end_date=end,
                holdings=holdings,
                transactions=transactions,
                price_history=prices,
                benchmark_series=benchmarks,
                benchmark_symbol=benchmark_symbol,
                interval=interval,
            )

    def calculate_tax_insights(
            self,
            account_id: int,
            as_of: date | None = None,
            opening_lot_date: date | None = None,
    ) -> TaxInsights:
        """
        Tax insights for an account.

        Raises:
            AccountNotFoundError: Unknown account
            ValidationError: The history oversells a holding, or a
                             quantity is negative
        """
        with bound_context(account_id=account_id):
            holdings = self._repository.get_holdings(account_id)
            transactions = self._repository.get_transactions(account_id)

            return self._tax.calculate(
                account_id=account_id,
                holdings=holdings,
                transactions=transactions,
                as_of=as_of,
                opening_lot_date=opening_lot_date,
            )

    # =========================================================================
    # LIABILITIES
    # =========================================================================

    def generate_amortization_schedule(
            self,
            loan: LoanTerms,
            as_of: date | None = None,
    ) -> AmortizationSchedule:
        return self._amortization.generate_schedule(loan, as_of)

    def calculate_payoff(
            self,
            loan: LoanTerms,
            extra_payment: Decimal,
            as_of: date | None = None,
    ) -> PayoffComparison:
        return self._amortization.calculate_payoff(loan, extra_payment, as_of)

    def calculate_utilization(self, cards: list[CreditCardSnapshot]) -> UtilizationReport:
        return self._utilization.calculate(cards)

    def compare_payoff_strategies(
            self,
            debts: list[DebtAccount],
            extra_payment: Decimal = ZERO,
            mortgages: list[PropertyMortgage] | None = None,
            include_mortgages: bool = False,
    ) -> StrategyComparison:
        return self._payoff.compare(debts, extra_payment, mortgages, include_mortgages)

    def calculate_loan_schedule(self, loan_id: int | str, as_of: date | None = None) -> AmortizationSchedule:
        """Schedule for a loan read from the repository."""
        return self.generate_amortization_schedule(self._repository.get_loan(loan_id), as_of)

    def calculate_utilization_for_user(self, user_id: int) -> UtilizationReport:
        return self.calculate_utilization(self._repository.get_credit_cards(user_id))

    def compare_payoff_strategies_for_user(
            self,
            user_id: int,
            extra_payment: Decimal = ZERO,
            include_mortgages: bool = False,
    ) -> StrategyComparison:
        mortgages = self._repository.get_mortgages(user_id) if include_mortgages else None
        return self.compare_payoff_strategies(
            self._repository.get_debts(user_id),
            extra_payment,
            mortgages,
            include_mortgages,
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _resolve_range(
            start_date: date | None,
            end_date: date | None,
            period: str | None,
            today: date | None,
    ) -> tuple[date, date]:
        if period is not None:
            start, end = resolve_period(period, today)
            logger.debug(f"Period {period} resolved to {start} - {end}")
            return start, end

        if start_date is None or end_date is None:
            raise ValidationError(
                "Either a period or both start_date and end_date are required",
                field="start_date" if start_date is None else "end_date",
            )
        return start_date, end_date

    @staticmethod
    def _symbols(holdings, transactions) -> list[str]:
        symbols = {h.symbol.upper() for h in holdings}
        symbols.update(t.symbol.upper() for t in transactions if t.symbol)
        return sorted(symbols)
