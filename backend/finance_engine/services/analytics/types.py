# backend/finance_engine/services/analytics/types.py
"""
Data types for the investment analytics services.

Input snapshots are frozen dataclasses read from storage by the host.
Result types are plain dataclasses; the pydantic schemas in
finance_engine/schemas render them as JSON. All money uses Decimal.

Architecture:
    Inputs:
    - HoldingSnapshot: Current position with quantity and price
    - TransactionRecord: One row of transaction history
    - PricePoint: Historical daily close

    Series:
    - ValuationPoint: Market value of the account on a date
    - CashFlowEvent: External deposit/withdrawal
    - ValuationSeries: Output of TimeSeriesBuilder

    Results:
    - MWRResult: Money-weighted rate with convergence flag
    - PerformanceMetrics, BenchmarkComparison, PerformanceReport
    - DrawdownPoint, VolatilityPoint, RiskMetrics, RiskReport
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from finance_engine.services.constants import ZERO


class TransactionType(str, Enum):
    """
    Transaction types understood by the engine.

    DEPOSIT, WITHDRAWAL and INITIAL_BALANCE are external cash flows.
    Everything else is internal to the account.
    """
    BUY = "BUY"
    SELL = "SELL"
    DEPOSIT = "DEPOSIT"
    WITHDRAWAL = "WITHDRAWAL"
    INITIAL_BALANCE = "INITIAL_BALANCE"
    DIVIDEND = "DIVIDEND"
    DIVIDEND_REINVEST = "DIVIDEND_REINVEST"
    INTEREST = "INTEREST"
    FEE = "FEE"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: "str | TransactionType") -> "TransactionType":
        """Normalize free-form type strings from storage ("buy", "Buy")."""
        if isinstance(value, TransactionType):
            return value
        try:
            return cls(value.strip().upper())
        except ValueError:
            return cls.OTHER


# Types that change holding quantity (positive direction)
QUANTITY_INCREASING_TYPES = frozenset({TransactionType.BUY, TransactionType.DIVIDEND_REINVEST})

# Types treated as external flows, with their direction
EXTERNAL_FLOW_DIRECTIONS: dict[TransactionType, str] = {
    TransactionType.DEPOSIT: "in",
    TransactionType.INITIAL_BALANCE: "in",
    TransactionType.WITHDRAWAL: "out",
}


class LotMethod(str, Enum):
    """How a SELL chooses the lots it consumes."""
    FIFO = "FIFO"
    SPECIFIC_ID = "SPECIFIC_ID"


# =============================================================================
# INPUT SNAPSHOTS
# =============================================================================

@dataclass(frozen=True)
class HoldingSnapshot:
    """
    Current position in one security.

    Attributes:
        holding_id: Storage ID of the holding
        symbol: Ticker
        quantity: Shares held now
        current_price: Latest price per share
        cost_basis_per_unit: Average cost per share, None if unknown
        name: Display name
        purchase_date: Acquisition date recorded on the holding itself
    """
    holding_id: int
    symbol: str
    quantity: Decimal
    current_price: Decimal
    cost_basis_per_unit: Decimal | None = None
    name: str | None = None
    purchase_date: date | None = None

    @property
    def market_value(self) -> Decimal:
        return self.quantity * self.current_price

    @property
    def total_cost_basis(self) -> Decimal | None:
        if self.cost_basis_per_unit is None:
            return None
        return self.quantity * self.cost_basis_per_unit


@dataclass(frozen=True)
class TransactionRecord:
    """
    One transaction row.

    Attributes:
        transaction_id: Storage ID (also used as lot ID for BUYs)
        date: Trade/settlement date
        transaction_type: TransactionType or a raw string from storage
        holding_id: Holding affected (None for pure cash movements)
        symbol: Ticker of the holding
        quantity: Shares bought/sold (always positive)
        price: Price per share
        amount: Cash amount. For flows, the deposit/withdrawal size; for
                SELLs, net proceeds (None = quantity × price)
        lot_method: FIFO (default) or SPECIFIC_ID for SELLs
        specific_lot_ids: Lot IDs named by a specific-identification SELL
    """
    transaction_id: int
    date: date
    transaction_type: TransactionType | str
    holding_id: int | None = None
    symbol: str | None = None
    quantity: Decimal = ZERO
    price: Decimal = ZERO
    amount: Decimal | None = None
    lot_method: LotMethod = LotMethod.FIFO
    specific_lot_ids: tuple[int, ...] = ()

    @property
    def kind(self) -> TransactionType:
        return TransactionType.parse(self.transaction_type)

    @property
    def gross_amount(self) -> Decimal:
        """Cash size of the transaction: amount if recorded, else qty × price."""
        if self.amount is not None:
            return abs(self.amount)
        return self.quantity * self.price


@dataclass(frozen=True)
class PricePoint:
    """Daily close for a symbol."""
    date: date
    close: Decimal


# =============================================================================
# SERIES
# =============================================================================

@dataclass(frozen=True)
class ValuationPoint:
    """Total market value of the account at the end of a date."""
    date: date
    total_market_value: Decimal


@dataclass(frozen=True)
class CashFlowEvent:
    """
    External deposit or withdrawal.

    Attributes:
        date: When the flow occurred
        amount: Size of the flow (always positive)
        direction: "in" (deposit) or "out" (withdrawal)
    """
    date: date
    amount: Decimal
    direction: str

    @property
    def signed_amount(self) -> Decimal:
        """Positive for money entering the account, negative for leaving."""
        return self.amount if self.direction == "in" else -self.amount


@dataclass
class ValuationSeries:
    """
    Output of TimeSeriesBuilder.

    Attributes:
        account_id: Account the series belongs to
        start_date, end_date: Requested range
        points: Ascending ValuationPoints (always includes both endpoints)
        cash_flows: External flows inside the range, ascending
        insufficient_data: True when there was nothing to reconstruct
        warnings: Data quality notes (clamped quantities, missing prices)
    """
    account_id: int
    start_date: date
    end_date: date
    points: list[ValuationPoint] = field(default_factory=list)
    cash_flows: list[CashFlowEvent] = field(default_factory=list)
    insufficient_data: bool = False
    warnings: list[str] = field(default_factory=list)

    @property
    def start_value(self) -> Decimal:
        return self.points[0].total_market_value if self.points else ZERO

    @property
    def end_value(self) -> Decimal:
        return self.points[-1].total_market_value if self.points else ZERO

    def flows_by_date(self) -> dict[date, Decimal]:
        """Net signed external flow per date."""
        totals: dict[date, Decimal] = {}
        for flow in self.cash_flows:
            totals[flow.date] = totals.get(flow.date, ZERO) + flow.signed_amount
        return totals


# =============================================================================
# PERFORMANCE
# =============================================================================

@dataclass(frozen=True)
class MWRResult:
    """
    Money-weighted return solver output.

    Attributes:
        rate: Annual rate (0.08 = 8%); best estimate when not converged
        converged: False when no root was bracketed or the cap was hit
        iterations: Solver iterations used
    """
    rate: Decimal | None
    converged: bool
    iterations: int = 0


@dataclass
class PerformanceMetrics:
    """
    Return-based metrics for one account and window.

    All returns are decimals (0.15 = 15%).
    """
    twr: Decimal | None = None
    twr_annualized: Decimal | None = None
    mwr: Decimal | None = None
    mwr_converged: bool = True
    mwr_iterations: int = 0
    volatility: Decimal | None = None
    sharpe_ratio: Decimal | None = None
    periods_per_year: int | None = None

    start_value: Decimal = ZERO
    end_value: Decimal = ZERO
    total_deposits: Decimal = ZERO
    total_withdrawals: Decimal = ZERO

    # Dollar return from the current snapshot (value - cost basis)
    current_market_value: Decimal = ZERO
    total_cost_basis: Decimal = ZERO
    dollar_return: Decimal = ZERO

    calendar_days: int = 0
    sub_periods: int = 0

    has_sufficient_data: bool = True
    warnings: list[str] = field(default_factory=list)


@dataclass
class BenchmarkComparison:
    """
    One benchmark packaged next to the account's performance.

    Attributes:
        symbol: Benchmark ticker (SPY, QQQ, IWM, VTI)
        name: Display name
        period_return: Close-to-close return over the window
        volatility: Annualized volatility of its daily returns
        sharpe_ratio: Same formula as the account's Sharpe
        excess_return: Account TWR minus benchmark return
    """
    symbol: str
    name: str | None = None
    period_return: Decimal | None = None
    volatility: Decimal | None = None
    sharpe_ratio: Decimal | None = None
    excess_return: Decimal | None = None
    has_sufficient_data: bool = True
    warnings: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class HistoricalPerformancePoint:
    """Chart point: value and cumulative return since the first point."""
    date: date
    portfolio_value: Decimal
    cumulative_return: Decimal


@dataclass
class PerformanceReport:
    """Result of calculate_performance."""
    account_id: int
    start_date: date
    end_date: date
    metrics: PerformanceMetrics
    benchmarks: list[BenchmarkComparison] = field(default_factory=list)
    historical: list[HistoricalPerformancePoint] = field(default_factory=list)


# =============================================================================
# RISK
# =============================================================================

@dataclass(frozen=True)
class DrawdownPoint:
    """Drawdown of one valuation point from the running peak (>= 0)."""
    date: date
    drawdown: Decimal


@dataclass(frozen=True)
class VolatilityPoint:
    """Annualized volatility of the window ending on date."""
    date: date
    volatility: Decimal


@dataclass
class RiskMetrics:
    """
    Risk statistics over one periodic return series.

    Attributes:
        volatility: Annualized population volatility
        max_drawdown: Largest peak-to-trough decline (positive, 0.2 = 20%)
        max_drawdown_peak_date / max_drawdown_trough_date: Where it happened
        beta: Cov(account, benchmark) / Var(benchmark), None if undefined
        correlation: Pearson correlation, None if undefined
        paired_returns: Number of return pairs used for beta/correlation
    """
    volatility: Decimal | None = None
    periods_per_year: int | None = None
    max_drawdown: Decimal = ZERO
    max_drawdown_peak_date: date | None = None
    max_drawdown_trough_date: date | None = None
    beta: Decimal | None = None
    correlation: Decimal | None = None
    benchmark_symbol: str | None = None
    paired_returns: int = 0

    drawdown_history: list[DrawdownPoint] = field(default_factory=list)
    volatility_history: list[VolatilityPoint] = field(default_factory=list)

    has_sufficient_data: bool = True
    warnings: list[str] = field(default_factory=list)


@dataclass
class RiskReport:
    """Result of calculate_risk_metrics."""
    account_id: int
    start_date: date
    end_date: date
    metrics: RiskMetrics
