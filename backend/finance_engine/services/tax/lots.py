# backend/finance_engine/services/tax/lots.py
"""
Tax-lot engine.

Replays an account's transaction history into acquisition lots and
realized gains.

Lot Selection:
    FIFO         - Oldest lot first (default)
    SPECIFIC_ID  - Lots named by the sale first, then FIFO for the rest

Holding Period:
    Long-term when (sale_date - acquisition_date).days > 365.

Conservation:
    After replay, Σ remaining lot quantity per holding must equal the
    holding's current quantity. A mismatch means the transaction history
    is incomplete; it is logged and reported as a warning.

Opening Lots:
    Shares the history does not explain (current - net transactions) get
    one synthesized lot at the holding's cost basis.
"""

import logging
from datetime import date

from finance_engine.services.analytics.timeseries import (
    PositionKey,
    check_quantities,
    opening_quantities,
    position_key,
    replay_order,
)
from finance_engine.services.analytics.types import (
    QUANTITY_INCREASING_TYPES,
    HoldingSnapshot,
    LotMethod,
    TransactionRecord,
    TransactionType,
)
from finance_engine.services.constants import LONG_TERM_HOLDING_DAYS, SHARE_PRECISION, ZERO
from finance_engine.services.exceptions import ValidationError
from finance_engine.services.tax.types import Lot, LotReplay, RealizedGain
from finance_engine.utils.date_utils import utc_today

logger = logging.getLogger(__name__)


def is_long_term(acquisition_date: date, disposal_date: date) -> bool:
    """More than one year (365 days) between acquisition and disposal."""
    return (disposal_date - acquisition_date).days > LONG_TERM_HOLDING_DAYS


class TaxLotEngine:
    """
    Builds lots and realized gains from a transaction history.

    Stateless: every call replays from scratch.
    """

    def replay(
            self,
            transactions: list[TransactionRecord],
            holdings: list[HoldingSnapshot],
            opening_lot_date: date | None = None,
            as_of: date | None = None,
    ) -> LotReplay:
        """
        Replay transactions chronologically into lots.

        Args:
            transactions: Full transaction history of the account
            holdings: Current holdings snapshot
            opening_lot_date: Acquisition date for synthesized opening lots
                              (default: holding purchase date, else the
                              holding's first transaction date)
            as_of: Fallback acquisition date when nothing else is known

        Returns:
            LotReplay with lots, realized gains and warnings

        Raises:
            ValidationError: Negative quantity, or a SELL larger than the
                             shares open at that point (field="quantity")
        """
        result = LotReplay()
        by_symbol = {h.symbol.upper(): h for h in holdings}
        by_key: dict[PositionKey, HoldingSnapshot] = {h.holding_id: h for h in holdings}

        check_quantities(transactions, holdings)
        ordered = sorted(transactions, key=replay_order)

        self._open_lots(result, ordered, holdings, by_symbol, opening_lot_date, as_of)

        for txn in ordered:
            kind = txn.kind
            if kind not in QUANTITY_INCREASING_TYPES and kind != TransactionType.SELL:
                continue
            if txn.quantity == ZERO:
                continue

            key = position_key(txn, by_symbol)
            holding = by_key.get(key)
            lots = result.lots.setdefault(key, [])

            if kind == TransactionType.SELL:
                result.realized_gains.extend(self._sell(txn, lots))
            else:
                lots.append(self._lot_from_buy(txn, key, holding))

        self._check_conservation(result, holdings)

        logger.debug(
            f"Lot replay: {len(result.open_lots())} open lots, "
            f"{len(result.realized_gains)} realized slices"
        )
        return result

    # =========================================================================
    # LOT CREATION
    # =========================================================================

    def _open_lots(
            self,
            result: LotReplay,
            ordered: list[TransactionRecord],
            holdings: list[HoldingSnapshot],
            by_symbol: dict[str, HoldingSnapshot],
            opening_lot_date: date | None,
            as_of: date | None,
    ) -> None:
        """Synthesize one lot per holding for shares the history does not explain."""
        opening = opening_quantities(ordered, holdings)

        first_dates: dict[PositionKey, date] = {}
        for txn in ordered:
            first_dates.setdefault(position_key(txn, by_symbol), txn.date)

        for holding in holdings:
            qty = opening.get(holding.holding_id, ZERO)
            if qty <= ZERO:
                continue

            acquired = (
                    opening_lot_date
                    or holding.purchase_date
                    or first_dates.get(holding.holding_id)
            )
            if acquired is None:
                # No history at all: nothing tells us when the shares were bought
                acquired = as_of or utc_today()
                result.warnings.append(
                    f"{holding.symbol}: acquisition date unknown, treated as short-term"
                )

            result.lots.setdefault(holding.holding_id, []).append(
                Lot(
                    lot_id=f"OPEN-{holding.holding_id}",
                    holding_id=holding.holding_id,
                    symbol=holding.symbol,
                    quantity=qty,
                    remaining_quantity=qty,
                    cost_basis_per_unit=holding.cost_basis_per_unit or ZERO,
                    acquisition_date=acquired,
                )
            )

            if ordered:
                result.warnings.append(
                    f"{holding.symbol}: {qty} shares predate the transaction history; "
                    f"opening lot synthesized at holding cost basis"
                )

    @staticmethod
    def _lot_from_buy(
            txn: TransactionRecord,
            key: PositionKey,
            holding: HoldingSnapshot | None,
    ) -> Lot:
        if txn.amount is not None and txn.quantity > ZERO:
            cost_per_unit = abs(txn.amount) / txn.quantity
        else:
            cost_per_unit = txn.price

        return Lot(
            lot_id=f"T{txn.transaction_id}",
            holding_id=holding.holding_id if holding else txn.holding_id,
            symbol=(holding.symbol if holding else txn.symbol) or str(key),
            quantity=txn.quantity,
            remaining_quantity=txn.quantity,
            cost_basis_per_unit=cost_per_unit,
            acquisition_date=txn.date,
            specific_id=txn.transaction_id,
        )

    # =========================================================================
    # LOT CONSUMPTION
    # =========================================================================

    def _sell(self, txn: TransactionRecord, lots: list[Lot]) -> list[RealizedGain]:
        """Consume lots for one SELL and return the realized slices."""
        open_quantity = sum((lot.remaining_quantity for lot in lots), ZERO)
        if txn.quantity > open_quantity:
            raise ValidationError(
                f"Transaction {txn.transaction_id} sells {txn.quantity} shares "
                f"but only {open_quantity} are open",
                field="quantity",
                value=txn.quantity,
            )

        total_proceeds = txn.gross_amount
        remaining = txn.quantity
        gains: list[RealizedGain] = []

        for lot in self._selection_order(txn, lots):
            if remaining <= ZERO:
                break
            if not lot.is_open:
                continue

            take = min(lot.remaining_quantity, remaining)
            lot.remaining_quantity -= take
            remaining -= take

            proceeds = total_proceeds * take / txn.quantity
            cost_basis = take * lot.cost_basis_per_unit
            gains.append(
                RealizedGain(
                    lot_id=lot.lot_id,
                    holding_id=lot.holding_id,
                    symbol=lot.symbol,
                    sale_date=txn.date,
                    quantity_sold=take,
                    proceeds=proceeds,
                    cost_basis=cost_basis,
                    gain_loss=proceeds - cost_basis,
                    is_long_term=is_long_term(lot.acquisition_date, txn.date),
                )
            )

        return gains

    @staticmethod
    def _selection_order(txn: TransactionRecord, lots: list[Lot]) -> list[Lot]:
        """Named lots first (in the order named), then FIFO by acquisition date."""
        fifo = sorted(lots, key=lambda lot: lot.acquisition_date)

        if txn.lot_method != LotMethod.SPECIFIC_ID and not txn.specific_lot_ids:
            return fifo

        by_specific_id = {lot.specific_id: lot for lot in lots if lot.specific_id is not None}
        named = []
        for lot_ref in txn.specific_lot_ids:
            lot = by_specific_id.get(lot_ref)
            if lot is None:
                logger.warning(
                    f"Transaction {txn.transaction_id} names unknown lot {lot_ref}; using FIFO"
                )
                continue
            named.append(lot)

        named_ids = {id(lot) for lot in named}
        return named + [lot for lot in fifo if id(lot) not in named_ids]

    # =========================================================================
    # CONSERVATION
    # =========================================================================

    @staticmethod
    def _check_conservation(result: LotReplay, holdings: list[HoldingSnapshot]) -> None:
        for holding in holdings:
            open_qty = sum(
                (lot.remaining_quantity for lot in result.lots.get(holding.holding_id, [])),
                ZERO,
            )
            if abs(open_qty - holding.quantity) > SHARE_PRECISION:
                message = (
                    f"{holding.symbol}: open lots hold {open_qty} shares "
                    f"but the holding reports {holding.quantity}"
                )
                result.warnings.append(message)
                logger.warning(f"Lot conservation mismatch - {message}")
