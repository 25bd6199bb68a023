# backend/finance_engine/services/tax/types.py
"""
Data types for the tax-lot engine and tax insights.

Lots are mutable while a transaction history is replayed (remaining
quantity shrinks as SELLs consume them); everything else is a result.
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from finance_engine.services.constants import ZERO


@dataclass
class Lot:
    """
    One acquisition of shares.

    Attributes:
        lot_id: Unique lot identifier ("T<transaction_id>" or "OPEN-<holding>")
        holding_id: Holding the lot belongs to (None if the holding is gone)
        symbol: Ticker
        quantity: Shares originally acquired
        remaining_quantity: Shares not yet sold
        cost_basis_per_unit: Price paid per share (fees included)
        acquisition_date: Date the shares were acquired
        specific_id: Transaction ID a SPECIFIC_ID sale names to pick this lot
                     (None for synthesized opening lots)
    """
    lot_id: str
    holding_id: int | None
    symbol: str
    quantity: Decimal
    remaining_quantity: Decimal
    cost_basis_per_unit: Decimal
    acquisition_date: date
    specific_id: int | None = None

    @property
    def is_open(self) -> bool:
        return self.remaining_quantity > ZERO

    @property
    def remaining_cost_basis(self) -> Decimal:
        return self.remaining_quantity * self.cost_basis_per_unit


@dataclass(frozen=True)
class RealizedGain:
    """Gain or loss realized by selling (part of) one lot."""
    lot_id: str
    holding_id: int | None
    symbol: str
    sale_date: date
    quantity_sold: Decimal
    proceeds: Decimal
    cost_basis: Decimal
    gain_loss: Decimal
    is_long_term: bool


@dataclass
class LotReplay:
    """
    Result of replaying a transaction history into lots.

    Attributes:
        lots: Every lot created, per position key, in acquisition order
        realized_gains: One entry per lot slice consumed by a SELL
        warnings: Conservation mismatches and synthesized opening lots
    """
    lots: dict[int | str, list[Lot]] = field(default_factory=dict)
    realized_gains: list[RealizedGain] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def open_lots(self) -> list[Lot]:
        return [lot for lots in self.lots.values() for lot in lots if lot.is_open]

    def open_cost_basis(self) -> dict[int, Decimal]:
        """Remaining cost basis per holding_id across open lots."""
        totals: dict[int, Decimal] = {}
        for lot in self.open_lots():
            if lot.holding_id is None:
                continue
            totals[lot.holding_id] = totals.get(lot.holding_id, ZERO) + lot.remaining_cost_basis
        return totals


# =============================================================================
# INSIGHTS
# =============================================================================

@dataclass(frozen=True)
class LotPosition:
    """Unrealized view of one open lot as of an evaluation date."""
    lot_id: str
    holding_id: int | None
    symbol: str
    remaining_quantity: Decimal
    cost_basis_per_unit: Decimal
    current_price: Decimal
    acquisition_date: date
    holding_days: int
    is_long_term: bool

    @property
    def cost_basis(self) -> Decimal:
        return self.remaining_quantity * self.cost_basis_per_unit

    @property
    def current_value(self) -> Decimal:
        return self.remaining_quantity * self.current_price

    @property
    def gain_loss(self) -> Decimal:
        return (self.current_price - self.cost_basis_per_unit) * self.remaining_quantity

    @property
    def gain_loss_percent(self) -> Decimal:
        """Gain/loss as a fraction of cost basis (0 when basis is 0)."""
        if self.cost_basis == ZERO:
            return ZERO
        return self.gain_loss / self.cost_basis


@dataclass
class HoldingTaxDetail:
    """
    Per-holding roll-up of open lots.

    tax_type is "short_term", "long_term" or "mixed" when the holding has
    lots on both sides of the one-year line.
    """
    holding_id: int | None
    symbol: str
    name: str
    cost_basis: Decimal
    current_value: Decimal
    gain_loss: Decimal
    percent_gain: Decimal
    holding_period: str
    tax_type: str
    purchase_date: date | None
    lots: list[LotPosition] = field(default_factory=list)


@dataclass(frozen=True)
class ReturnValue:
    """Dollar amount with its percentage of cost basis (12.5 = 12.5%)."""
    dollar: Decimal
    percent: Decimal


@dataclass(frozen=True)
class UnrealizedGainsSummary:
    short_term: ReturnValue
    long_term: ReturnValue
    total: ReturnValue


@dataclass(frozen=True)
class HarvestCandidate:
    """
    Open lot whose unrealized loss qualifies for tax-loss harvesting.

    Attributes:
        loss: Unrealized loss (negative)
        loss_percent: Loss as a fraction of cost basis (negative)
        tax_savings: |loss| × applicable rate
        replacement_suggestion: Similar ETF to keep market exposure
        wash_sale_risk: Same symbol bought within 30 days before evaluation
        reason: Human-readable suggestion
    """
    lot_id: str
    holding_id: int | None
    symbol: str
    loss: Decimal
    loss_percent: Decimal
    holding_period: str
    is_long_term: bool
    tax_savings: Decimal
    replacement_suggestion: str
    wash_sale_risk: bool
    reason: str


@dataclass(frozen=True)
class EstimatedTaxLiability:
    """
    Federal tax if every open position were sold on the evaluation date.

    tax_rate is the effective rate in percent.
    """
    short_term_tax: Decimal
    long_term_tax: Decimal
    total_federal_tax: Decimal
    tax_rate: Decimal


@dataclass
class TaxInsights:
    """Result of calculate_tax_insights."""
    account_id: int
    as_of: date
    unrealized_gains: UnrealizedGainsSummary
    estimated_tax_liability: EstimatedTaxLiability
    holdings: list[HoldingTaxDetail] = field(default_factory=list)
    harvesting_opportunities: list[HarvestCandidate] = field(default_factory=list)
    realized_gains: list[RealizedGain] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
