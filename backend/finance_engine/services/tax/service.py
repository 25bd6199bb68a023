# backend/finance_engine/services/tax/service.py
"""
Tax insights: unrealized gains, harvesting opportunities, tax liability.

Builds on TaxLotEngine: every open lot is valued at its holding's
current price and classified short- or long-term as of an evaluation
date. Lots (not whole holdings) are the unit of harvesting, so a holding
with an old winning lot and a new losing lot still surfaces the loss.

Harvesting:
    A lot qualifies when its unrealized loss is at least the dollar
    threshold, or (when configured) its loss percentage is at least the
    percentage threshold. Tax savings use the short-term rate (24%) or
    long-term rate (15%). wash_sale_risk flags a purchase of the same
    symbol within 30 days before the evaluation date; it is detection
    only and never blocks a candidate.
"""

import logging
from datetime import date, timedelta
from decimal import Decimal

from finance_engine.services.analytics.types import (
    HoldingSnapshot,
    TransactionRecord,
    TransactionType,
)
from finance_engine.services.constants import (
    DEFAULT_HARVEST_LOSS_THRESHOLD,
    DEFAULT_HARVEST_REPLACEMENT,
    DEFAULT_LONG_TERM_TAX_RATE,
    DEFAULT_SHORT_TERM_TAX_RATE,
    HARVEST_REPLACEMENTS,
    HUNDRED,
    WASH_SALE_WINDOW_DAYS,
    ZERO,
)
from finance_engine.services.tax.lots import TaxLotEngine, is_long_term
from finance_engine.services.tax.types import (
    EstimatedTaxLiability,
    HarvestCandidate,
    HoldingTaxDetail,
    LotPosition,
    ReturnValue,
    TaxInsights,
    UnrealizedGainsSummary,
)
from finance_engine.utils.date_utils import utc_today

logger = logging.getLogger(__name__)


def format_holding_period(days: int) -> str:
    """
    Human-readable holding period.

    Example:
        >>> format_holding_period(400)
        '1.1 years'
    """
    years = days / 365.25
    if years >= 1:
        return "1.0 year" if years < 1.05 else f"{years:.1f} years"
    if days >= 30:
        months = days // 30
        return "1 month" if months == 1 else f"{months} months"
    return "1 day" if days == 1 else f"{days} days"


def suggest_replacement(symbol: str) -> str:
    """Similar-but-not-identical ETF that keeps market exposure."""
    return HARVEST_REPLACEMENTS.get(symbol.upper(), DEFAULT_HARVEST_REPLACEMENT)


def _percent_of(amount: Decimal, basis: Decimal) -> Decimal:
    return amount / basis * HUNDRED if basis != ZERO else ZERO


class TaxInsightsService:
    """
    Produces TaxInsights for one account.

    Rates and thresholds are injected so the engine can pass values from
    EngineSettings; the defaults mirror the constants.
    """

    def __init__(
            self,
            lot_engine: TaxLotEngine | None = None,
            short_term_rate: Decimal = DEFAULT_SHORT_TERM_TAX_RATE,
            long_term_rate: Decimal = DEFAULT_LONG_TERM_TAX_RATE,
            harvest_loss_threshold: Decimal = DEFAULT_HARVEST_LOSS_THRESHOLD,
            harvest_loss_percent: Decimal | None = None,
    ) -> None:
        self._lot_engine = lot_engine or TaxLotEngine()
        self._short_term_rate = short_term_rate
        self._long_term_rate = long_term_rate
        self._harvest_loss_threshold = harvest_loss_threshold
        self._harvest_loss_percent = harvest_loss_percent

    def calculate(
            self,
            account_id: int,
            holdings: list[HoldingSnapshot],
            transactions: list[TransactionRecord],
            as_of: date | None = None,
            opening_lot_date: date | None = None,
    ) -> TaxInsights:
        """
        Calculate tax insights as of a date.

        Args:
            account_id: Account being analyzed
            holdings: Current holdings snapshot (prices)
            transactions: Full transaction history
            as_of: Evaluation date (defaults to the current UTC date)
            opening_lot_date: Acquisition date for synthesized opening lots

        Returns:
            TaxInsights

        Raises:
            ValidationError: If the history oversells a holding
        """
        as_of = as_of or utc_today()
        replay = self._lot_engine.replay(transactions, holdings, opening_lot_date, as_of)
        warnings = list(replay.warnings)

        by_id = {h.holding_id: h for h in holdings}
        positions_by_holding: dict[int, list[LotPosition]] = {}

        for lot in replay.open_lots():
            holding = by_id.get(lot.holding_id) if lot.holding_id is not None else None
            if holding is None:
                warnings.append(f"{lot.symbol}: open lot {lot.lot_id} has no current holding; skipped")
                continue

            positions_by_holding.setdefault(holding.holding_id, []).append(
                LotPosition(
                    lot_id=lot.lot_id,
                    holding_id=lot.holding_id,
                    symbol=lot.symbol,
                    remaining_quantity=lot.remaining_quantity,
                    cost_basis_per_unit=lot.cost_basis_per_unit,
                    current_price=holding.current_price,
                    acquisition_date=lot.acquisition_date,
                    holding_days=(as_of - lot.acquisition_date).days,
                    is_long_term=is_long_term(lot.acquisition_date, as_of),
                )
            )

        details = [
            self._holding_detail(by_id[holding_id], positions)
            for holding_id, positions in positions_by_holding.items()
        ]
        details.sort(key=lambda d: abs(d.gain_loss), reverse=True)

        all_positions = [p for positions in positions_by_holding.values() for p in positions]
        summary = self._summarize(all_positions)

        candidates = self.find_harvest_candidates(all_positions, transactions, as_of)

        insights = TaxInsights(
            account_id=account_id,
            as_of=as_of,
            unrealized_gains=summary,
            estimated_tax_liability=self.estimate_tax_liability(
                summary.short_term.dollar, summary.long_term.dollar
            ),
            holdings=details,
            harvesting_opportunities=candidates,
            realized_gains=replay.realized_gains,
            warnings=warnings,
        )

        logger.info(
            f"Tax insights for account {account_id}: {len(all_positions)} open lots, "
            f"{len(candidates)} harvesting candidates"
        )
        return insights

    # =========================================================================
    # AGGREGATION
    # =========================================================================

    @staticmethod
    def _holding_detail(holding: HoldingSnapshot, positions: list[LotPosition]) -> HoldingTaxDetail:
        cost_basis = sum((p.cost_basis for p in positions), ZERO)
        current_value = sum((p.current_value for p in positions), ZERO)
        gain_loss = sum((p.gain_loss for p in positions), ZERO)

        earliest = min(positions, key=lambda p: p.acquisition_date)
        terms = {p.is_long_term for p in positions}
        if terms == {True}:
            tax_type = "long_term"
        elif terms == {False}:
            tax_type = "short_term"
        else:
            tax_type = "mixed"

        return HoldingTaxDetail(
            holding_id=holding.holding_id,
            symbol=holding.symbol,
            name=holding.name or holding.symbol,
            cost_basis=cost_basis,
            current_value=current_value,
            gain_loss=gain_loss,
            percent_gain=_percent_of(gain_loss, cost_basis),
            holding_period=format_holding_period(earliest.holding_days),
            tax_type=tax_type,
            purchase_date=earliest.acquisition_date,
            lots=sorted(positions, key=lambda p: p.acquisition_date),
        )

    @staticmethod
    def _summarize(positions: list[LotPosition]) -> UnrealizedGainsSummary:
        short = [p for p in positions if not p.is_long_term]
        long = [p for p in positions if p.is_long_term]

        def roll_up(group: list[LotPosition]) -> ReturnValue:
            gain = sum((p.gain_loss for p in group), ZERO)
            basis = sum((p.cost_basis for p in group), ZERO)
            return ReturnValue(dollar=gain, percent=_percent_of(gain, basis))

        return UnrealizedGainsSummary(
            short_term=roll_up(short),
            long_term=roll_up(long),
            total=roll_up(positions),
        )

    # =========================================================================
    # HARVESTING
    # =========================================================================

    def find_harvest_candidates(
            self,
            positions: list[LotPosition],
            transactions: list[TransactionRecord],
            as_of: date,
    ) -> list[HarvestCandidate]:
        """
        Open lots whose losses qualify for harvesting, largest savings first.
        """
        recent_buys = self._recent_purchases(transactions, as_of)
        candidates: list[HarvestCandidate] = []

        for position in positions:
            loss = position.gain_loss
            if loss >= ZERO:
                continue

            meets_dollar = loss <= -self._harvest_loss_threshold
            meets_percent = (
                    self._harvest_loss_percent is not None
                    and position.gain_loss_percent <= -self._harvest_loss_percent
            )
            if not (meets_dollar or meets_percent):
                continue

            rate = self._long_term_rate if position.is_long_term else self._short_term_rate
            replacement = suggest_replacement(position.symbol)

            candidates.append(
                HarvestCandidate(
                    lot_id=position.lot_id,
                    holding_id=position.holding_id,
                    symbol=position.symbol,
                    loss=loss,
                    loss_percent=position.gain_loss_percent,
                    holding_period=format_holding_period(position.holding_days),
                    is_long_term=position.is_long_term,
                    tax_savings=abs(loss) * rate,
                    replacement_suggestion=replacement,
                    wash_sale_risk=position.symbol.upper() in recent_buys,
                    reason=(
                        f"Sell {position.symbol} at a ${abs(loss):,.0f} loss, then buy "
                        f"{replacement} to maintain market exposure while avoiding wash sale rules."
                    ),
                )
            )

        candidates.sort(key=lambda c: c.tax_savings, reverse=True)
        return candidates

    @staticmethod
    def _recent_purchases(transactions: list[TransactionRecord], as_of: date) -> set[str]:
        """Symbols bought within the wash-sale window before as_of."""
        window_start = as_of - timedelta(days=WASH_SALE_WINDOW_DAYS)
        return {
            txn.symbol.upper()
            for txn in transactions
            if txn.symbol
            and txn.kind in (TransactionType.BUY, TransactionType.DIVIDEND_REINVEST)
            and window_start <= txn.date <= as_of
        }

    # =========================================================================
    # LIABILITY
    # =========================================================================

    def estimate_tax_liability(
            self,
            short_term_gains: Decimal,
            long_term_gains: Decimal,
    ) -> EstimatedTaxLiability:
        """Federal tax if all positions were sold today. Losses are not taxed."""
        taxable_short = max(ZERO, short_term_gains)
        taxable_long = max(ZERO, long_term_gains)

        short_tax = taxable_short * self._short_term_rate
        long_tax = taxable_long * self._long_term_rate
        total_tax = short_tax + long_tax

        return EstimatedTaxLiability(
            short_term_tax=short_tax,
            long_term_tax=long_tax,
            total_federal_tax=total_tax,
            tax_rate=_percent_of(total_tax, taxable_short + taxable_long),
        )
