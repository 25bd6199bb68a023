# backend/finance_engine/services/analytics/timeseries.py
"""
Valuation time series reconstruction.

Rebuilds the market value of an account over a date range from the
current holdings snapshot and the transaction history, and extracts the
external cash flows that performance calculations must neutralize.

Key Insight:
    Holdings CHANGE over time as buys/sells occur, so today's quantities
    cannot simply be multiplied by historical prices. We derive the
    quantity each holding had BEFORE any recorded transaction
    (opening = current - net change) and replay transactions forward.

Rolling State:
    Dates and transactions are both sorted, so one forward pass applies
    each transaction exactly once. O(D + T) instead of O(D * T).

Pricing:
    price_asof(d) = nearest close on or before d from price history,
    falling back to the holding's current price. A missing price never
    fails the series.
"""

import bisect
import logging
from datetime import date
from decimal import Decimal

from finance_engine.services.analytics.types import (
    EXTERNAL_FLOW_DIRECTIONS,
    QUANTITY_INCREASING_TYPES,
    CashFlowEvent,
    HoldingSnapshot,
    PricePoint,
    TransactionRecord,
    TransactionType,
    ValuationPoint,
    ValuationSeries,
)
from finance_engine.services.constants import ZERO
from finance_engine.services.exceptions import ValidationError
from finance_engine.utils.date_utils import sampling_dates

logger = logging.getLogger(__name__)

# Position key: holding_id when known, else the ticker
PositionKey = int | str


class PriceLookup:
    """
    As-of price lookup over per-symbol daily closes.

    Closes are sorted once; lookups are a binary search for the last
    close on or before the requested date.
    """

    def __init__(self, price_history: dict[str, list[PricePoint]] | None = None) -> None:
        self._dates: dict[str, list[date]] = {}
        self._closes: dict[str, list[Decimal]] = {}

        for symbol, points in (price_history or {}).items():
            ordered = sorted(points, key=lambda p: p.date)
            self._dates[symbol.upper()] = [p.date for p in ordered]
            self._closes[symbol.upper()] = [p.close for p in ordered]

    def has_symbol(self, symbol: str | None) -> bool:
        return symbol is not None and bool(self._dates.get(symbol.upper()))

    def close_asof(self, symbol: str | None, target_date: date) -> Decimal | None:
        """Last close on or before target_date, or None if there is none."""
        if symbol is None:
            return None

        dates = self._dates.get(symbol.upper())
        if not dates:
            return None

        idx = bisect.bisect_right(dates, target_date) - 1
        if idx < 0:
            return None
        return self._closes[symbol.upper()][idx]


def quantity_delta(txn: TransactionRecord) -> Decimal:
    """Signed change in share count caused by a transaction."""
    kind = txn.kind
    if kind in QUANTITY_INCREASING_TYPES:
        return txn.quantity
    if kind == TransactionType.SELL:
        return -txn.quantity
    return ZERO


def replay_order(txn: TransactionRecord) -> tuple[date, int, int]:
    """
    Sort key for replaying a history forward.

    Within one date, acquisitions come before sells so that a same-day
    round trip never looks oversold, whatever its transaction ids.
    """
    sells_last = 1 if txn.kind == TransactionType.SELL else 0
    return txn.date, sells_last, txn.transaction_id


def check_quantities(
        transactions: list[TransactionRecord],
        holdings: list[HoldingSnapshot],
) -> None:
    """
    Reject negative share counts.

    Raises:
        ValidationError: A transaction or holding quantity below zero (field="quantity")
    """
    for txn in transactions:
        if txn.quantity < ZERO:
            raise ValidationError(
                f"Transaction {txn.transaction_id} has negative quantity {txn.quantity}",
                field="quantity",
                value=txn.quantity,
            )
    for holding in holdings:
        if holding.quantity < ZERO:
            raise ValidationError(
                f"Holding {holding.holding_id} ({holding.symbol}) has negative quantity {holding.quantity}",
                field="quantity",
                value=holding.quantity,
            )


def position_key(
        txn: TransactionRecord,
        by_symbol: dict[str, HoldingSnapshot],
) -> PositionKey:
    """Holding a transaction belongs to: holding_id, else symbol match."""
    if txn.holding_id is not None:
        return txn.holding_id
    if txn.symbol:
        holding = by_symbol.get(txn.symbol.upper())
        if holding is not None:
            return holding.holding_id
        return txn.symbol.upper()
    return f"txn-{txn.transaction_id}"


def opening_quantities(
        transactions: list[TransactionRecord],
        holdings: list[HoldingSnapshot],
) -> dict[PositionKey, Decimal]:
    """
    Quantity of every position before the first recorded transaction.

    opening = current quantity - net change of all transactions
    """
    by_symbol = {h.symbol.upper(): h for h in holdings}

    opening: dict[PositionKey, Decimal] = {h.holding_id: h.quantity for h in holdings}
    for txn in transactions:
        delta = quantity_delta(txn)
        if delta == ZERO:
            continue
        key = position_key(txn, by_symbol)
        opening[key] = opening.get(key, ZERO) - delta

    return opening


def extract_cash_flows(
        transactions: list[TransactionRecord],
        start_date: date,
        end_date: date,
) -> list[CashFlowEvent]:
    """
    External flows strictly after start_date and up to end_date.

    Flows on start_date are already inside the start valuation and are
    excluded. BUY/SELL/DIVIDEND/FEE are internal and never appear.
    """
    flows: list[CashFlowEvent] = []

    for txn in sorted(transactions, key=lambda t: (t.date, t.transaction_id)):
        direction = EXTERNAL_FLOW_DIRECTIONS.get(txn.kind)
        if direction is None:
            continue
        if not (start_date < txn.date <= end_date):
            continue

        amount = txn.gross_amount
        if amount == ZERO:
            continue

        flows.append(CashFlowEvent(date=txn.date, amount=amount, direction=direction))

    return flows


class TimeSeriesBuilder:
    """
    Builds a ValuationSeries for one account.

    Stateless: every call receives its snapshots as arguments.
    """

    def build(
            self,
            account_id: int,
            start_date: date,
            end_date: date,
            transactions: list[TransactionRecord],
            holdings: list[HoldingSnapshot],
            price_history: dict[str, list[PricePoint]] | None = None,
            interval: str | None = None,
    ) -> ValuationSeries:
        """
        Reconstruct valuations and cash flows over [start_date, end_date].

        Args:
            account_id: Account being valued
            start_date: First date in the series
            end_date: Last date in the series
            transactions: Full transaction history of the account
            holdings: Current holdings snapshot
            price_history: Optional symbol -> daily closes
            interval: Optional sampling calendar ("daily", "weekly", "monthly")

        Returns:
            ValuationSeries (never raises for missing data)

        Raises:
            ValidationError: If start_date is after end_date, or any
                             transaction or holding quantity is negative
            InvalidIntervalError: If interval is not supported
        """
        if start_date > end_date:
            raise ValidationError(
                f"start_date {start_date} is after end_date {end_date}",
                field="start_date",
                value=start_date,
            )
        check_quantities(transactions, holdings)

        sampled = sampling_dates(start_date, end_date, interval) if interval else []

        series = ValuationSeries(
            account_id=account_id,
            start_date=start_date,
            end_date=end_date,
        )
        prices = PriceLookup(price_history)

        in_range = [t for t in transactions if start_date <= t.date <= end_date]
        if not in_range and not any(prices.has_symbol(h.symbol) for h in holdings):
            current_value = sum((h.market_value for h in holdings), ZERO)
            series.points = [
                ValuationPoint(date=start_date, total_market_value=current_value),
                ValuationPoint(date=end_date, total_market_value=current_value),
            ]
            series.insufficient_data = True
            series.warnings.append(
                "No transactions or price history in range: valued at current snapshot"
            )
            logger.debug(f"Account {account_id}: flat series at current snapshot value")
            return series

        dates = sorted({start_date, end_date, *sampled, *(t.date for t in in_range)})
        series.points = self._value_dates(account_id, dates, transactions, holdings, prices, series.warnings)
        series.cash_flows = extract_cash_flows(transactions, start_date, end_date)

        logger.debug(
            f"Account {account_id}: built {len(series.points)} points, "
            f"{len(series.cash_flows)} cash flows ({start_date} to {end_date})"
        )
        return series

    # =========================================================================
    # ROLLING STATE
    # =========================================================================

    def _value_dates(
            self,
            account_id: int,
            dates: list[date],
            transactions: list[TransactionRecord],
            holdings: list[HoldingSnapshot],
            prices: PriceLookup,
            warnings: list[str],
    ) -> list[ValuationPoint]:
        by_id = {h.holding_id: h for h in holdings}
        by_symbol = {h.symbol.upper(): h for h in holdings}

        ordered = sorted(transactions, key=replay_order)

        quantities = opening_quantities(ordered, holdings)
        symbols: dict[PositionKey, str | None] = {h.holding_id: h.symbol for h in holdings}
        fallback_prices: dict[PositionKey, Decimal] = {h.holding_id: h.current_price for h in holdings}
        clamped: set[PositionKey] = set()

        points: list[ValuationPoint] = []
        txn_idx = 0

        for current_date in dates:
            # Apply every transaction up to and including this date
            while txn_idx < len(ordered) and ordered[txn_idx].date <= current_date:
                txn = ordered[txn_idx]
                txn_idx += 1

                delta = quantity_delta(txn)
                if delta == ZERO:
                    continue

                key = position_key(txn, by_symbol)
                quantities[key] = quantities.get(key, ZERO) + delta
                symbols.setdefault(key, txn.symbol)
                if key not in by_id and txn.price > ZERO:
                    fallback_prices[key] = txn.price

            total = ZERO
            for key, qty in quantities.items():
                if qty < ZERO:
                    if key not in clamped:
                        clamped.add(key)
                        message = f"Negative quantity for {symbols.get(key) or key} clamped to 0"
                        warnings.append(message)
                        logger.warning(f"Account {account_id}: {message}")
                    continue

                if qty == ZERO:
                    continue

                price = prices.close_asof(symbols.get(key), current_date)
                if price is None:
                    price = fallback_prices.get(key, ZERO)
                total += qty * price

            points.append(ValuationPoint(date=current_date, total_market_value=total))

        return points

