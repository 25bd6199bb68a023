# backend/finance_engine/services/liabilities/payoff.py
"""
Debt payoff strategy simulation.

Strategies:
    avalanche     - Extra payment goes to the highest APR first
                    (ties: lower balance, then id)
    snowball      - Extra payment goes to the lowest balance first
                    (ties: higher APR, then id)
    minimum_only  - Minimum payments only; nothing rolls over

Monthly cycle (apply-then-accrue, same order as AmortizationEngine):
    1. Pay the minimum on every open debt. A debt that needs less than
       its minimum hands the remainder to the extra pool this month.
    2. Pay the extra pool (configured extra + minimums of debts closed in
       earlier months + same-month remainders) into the current target,
       cascading to the next target when the target closes.
    3. Accrue balance × APR / 12 (rounded to the cent) on what is left.
    4. Debts at zero are closed; their minimum joins the pool next month.

    Freed capacity is never dropped: every dollar of the monthly budget is
    applied while any debt is still open.

The simulation stops when every debt is closed or at the month cap
(completed=False), which bounds pathological inputs such as a minimum
payment below the monthly interest.
"""

import logging
from decimal import Decimal
from typing import Callable

from finance_engine.services.constants import (
    DEFAULT_MORTGAGE_APR,
    HUNDRED,
    MAX_SIMULATION_MONTHS,
    MIN_PAYMENT_BALANCE_RATE,
    MIN_PAYMENT_FLOOR,
    MONTHS_PER_YEAR,
    ONE,
    ZERO,
)
from finance_engine.services.exceptions import ValidationError
from finance_engine.services.liabilities.types import (
    DebtAccount,
    DebtId,
    PayoffSimulationResult,
    PayoffTimelinePoint,
    PropertyMortgage,
    StrategyComparison,
)
from finance_engine.utils.money import to_cents

logger = logging.getLogger(__name__)

STRATEGY_DESCRIPTIONS: dict[str, str] = {
    "avalanche": "Pay highest interest rate first. Saves the most money mathematically.",
    "snowball": "Pay lowest balance first. Quick wins for motivation.",
    "minimum_only": "Pay only minimum payments. Takes longest and costs most.",
}

NOT_APPLICABLE = "N/A"


def estimate_minimum_payment(balance: Decimal) -> Decimal:
    """
    Minimum payment when the lender reports none: max($25, 2% of balance).

    Example:
        >>> estimate_minimum_payment(Decimal("5000"))
        Decimal('100.00')
    """
    return max(MIN_PAYMENT_FLOOR, to_cents(balance * MIN_PAYMENT_BALANCE_RATE))


def mortgages_as_debts(
        properties: list[PropertyMortgage],
        default_apr: Decimal = DEFAULT_MORTGAGE_APR,
) -> list[DebtAccount]:
    """Synthetic debt entries for properties that still carry a mortgage."""
    return [
        DebtAccount(
            id=f"mortgage-{p.property_id}",
            balance=p.mortgage_balance,
            apr=p.apr if p.apr is not None else default_apr,
            minimum_payment=p.monthly_payment,
            name=f"{p.name} Mortgage",
            debt_type="mortgage",
        )
        for p in properties
        if p.mortgage_balance > ZERO
    ]


def _id_key(debt_id: DebtId) -> tuple[int, int, str]:
    # int ids sort numerically and ahead of str ids
    if isinstance(debt_id, int):
        return 0, debt_id, ""
    return 1, 0, str(debt_id)


def avalanche_key(debt: DebtAccount, balance: Decimal) -> tuple:
    return -debt.apr, balance, _id_key(debt.id)


def snowball_key(debt: DebtAccount, balance: Decimal) -> tuple:
    return balance, -debt.apr, _id_key(debt.id)


TargetKey = Callable[[DebtAccount, Decimal], tuple]

STRATEGY_KEYS: dict[str, TargetKey] = {
    "avalanche": avalanche_key,
    "snowball": snowball_key,
}


class DebtPayoffStrategist:
    """
    Compares payoff strategies for one set of debts.

    Attributes:
        _max_months: Termination cap for every simulation
        _default_mortgage_apr: APR for mortgages that carry none
    """

    def __init__(
            self,
            max_months: int = MAX_SIMULATION_MONTHS,
            default_mortgage_apr: Decimal = DEFAULT_MORTGAGE_APR,
    ) -> None:
        self._max_months = max_months
        self._default_mortgage_apr = default_mortgage_apr

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def compare(
            self,
            debts: list[DebtAccount],
            extra_payment: Decimal = ZERO,
            mortgages: list[PropertyMortgage] | None = None,
            include_mortgages: bool = False,
    ) -> StrategyComparison:
        """
        Simulate avalanche, snowball and minimum-only and compare them.

        Args:
            debts: Debts to pay off
            extra_payment: Monthly amount on top of all minimums
            mortgages: Property mortgages available as synthetic debts
            include_mortgages: Add the mortgages to the simulation

        Returns:
            StrategyComparison

        Raises:
            ValidationError: Negative extra payment, negative minimum,
                             or an APR outside [0, 1]
        """
        if extra_payment < ZERO:
            raise ValidationError(
                f"Extra payment cannot be negative, got {extra_payment}",
                field="extra_payment",
                value=extra_payment,
            )

        candidates = list(debts)
        if include_mortgages and mortgages:
            candidates.extend(mortgages_as_debts(mortgages, self._default_mortgage_apr))

        prepared = self.prepare_debts(candidates)
        warnings = []
        skipped = len(candidates) - len(prepared)
        if skipped:
            warnings.append(f"{skipped} debt(s) with no outstanding balance excluded")

        if not prepared:
            return self._empty_comparison(extra_payment, warnings)

        avalanche = self.simulate(prepared, extra_payment, "avalanche")
        snowball = self.simulate(prepared, extra_payment, "snowball")
        minimum_only = self.simulate(prepared, ZERO, "minimum_only")

        for result in (avalanche, snowball, minimum_only):
            if not result.completed:
                warnings.append(
                    f"{result.strategy_name}: debts remain after {self._max_months} months; "
                    f"payments do not cover interest"
                )

        total_debt = sum((d.balance for d in prepared), ZERO)
        weighted_rate = sum((d.balance * d.apr for d in prepared), ZERO) / total_debt * HUNDRED

        recommended = self._recommend(avalanche, snowball)
        interest_difference = snowball.total_interest_paid - avalanche.total_interest_paid
        month_difference = snowball.total_months - avalanche.total_months

        logger.info(
            f"Payoff comparison for {len(prepared)} debts: avalanche "
            f"{avalanche.total_months} months / {avalanche.total_interest_paid} interest, "
            f"snowball {snowball.total_months} months / {snowball.total_interest_paid} interest"
        )

        return StrategyComparison(
            debts=prepared,
            total_debt=total_debt,
            weighted_average_rate=weighted_rate,
            total_minimum_payment=sum((d.minimum_payment for d in prepared), ZERO),
            extra_monthly_payment=extra_payment,
            avalanche=avalanche,
            snowball=snowball,
            minimum_only=minimum_only,
            interest_difference=interest_difference,
            month_difference=month_difference,
            recommended_strategy=recommended,
            recommendation=self._recommendation_text(recommended, interest_difference, month_difference),
            warnings=warnings,
        )

    @staticmethod
    def prepare_debts(debts: list[DebtAccount]) -> list[DebtAccount]:
        """
        Validate debts, drop closed ones and fill in missing minimums.

        Raises:
            ValidationError: APR outside [0, 1] or negative minimum
        """
        prepared: list[DebtAccount] = []
        for debt in debts:
            if debt.apr < ZERO or debt.apr > ONE:
                raise ValidationError(
                    f"APR must be between 0 and 1 for debt {debt.id}, got {debt.apr}",
                    field="apr",
                    value=debt.apr,
                )
            if debt.minimum_payment is not None and debt.minimum_payment < ZERO:
                raise ValidationError(
                    f"Minimum payment cannot be negative for debt {debt.id}, "
                    f"got {debt.minimum_payment}",
                    field="minimum_payment",
                    value=debt.minimum_payment,
                )
            if debt.balance <= ZERO:
                continue

            if debt.minimum_payment is None:
                debt = DebtAccount(
                    id=debt.id,
                    balance=debt.balance,
                    apr=debt.apr,
                    minimum_payment=estimate_minimum_payment(debt.balance),
                    priority=debt.priority,
                    name=debt.name,
                    debt_type=debt.debt_type,
                )
            prepared.append(debt)

        return prepared

    # =========================================================================
    # SIMULATION
    # =========================================================================

    def simulate(
            self,
            debts: list[DebtAccount],
            extra_payment: Decimal,
            strategy: str,
    ) -> PayoffSimulationResult:
        """
        Month-by-month payoff for one strategy.

        Debts must already be prepared (positive balance, minimum set).
        minimum_only ignores extra_payment and never rolls freed minimums.
        """
        if strategy not in STRATEGY_DESCRIPTIONS:
            raise ValidationError(
                f"Unknown payoff strategy: '{strategy}'",
                field="strategy",
                value=strategy,
            )

        target_key = STRATEGY_KEYS.get(strategy)
        rolls_over = target_key is not None

        by_id = {d.id: d for d in debts}
        balances: dict[DebtId, Decimal] = {d.id: d.balance for d in debts}
        payoff_month: dict[DebtId, int | None] = {d.id: None for d in debts}
        payoff_order: list[DebtId] = []
        timeline: list[PayoffTimelinePoint] = []

        freed = ZERO
        total_interest = ZERO
        total_paid = ZERO
        month = 0

        while any(b > ZERO for b in balances.values()) and month < self._max_months:
            month += 1
            paid_this_month = ZERO

            # 1. Minimums
            pool = (extra_payment + freed) if rolls_over else ZERO
            for debt_id, balance in balances.items():
                if balance <= ZERO:
                    continue
                minimum = by_id[debt_id].minimum_payment
                applied = min(minimum, balance)
                balances[debt_id] = balance - applied
                paid_this_month += applied
                if rolls_over:
                    pool += minimum - applied

            # 2. Extra pool to the target, cascading
            first_target: DebtId | None = None
            while rolls_over and pool > ZERO:
                open_debts = [by_id[i] for i, b in balances.items() if b > ZERO]
                if not open_debts:
                    break
                target = min(open_debts, key=lambda d: target_key(d, balances[d.id]))
                if first_target is None:
                    first_target = target.id

                applied = min(pool, balances[target.id])
                balances[target.id] -= applied
                paid_this_month += applied
                pool -= applied

            # 3. Accrue interest on what is left
            interest_this_month = ZERO
            for debt_id, balance in balances.items():
                if balance <= ZERO:
                    continue
                interest = to_cents(balance * by_id[debt_id].apr / Decimal(MONTHS_PER_YEAR))
                balances[debt_id] = balance + interest
                interest_this_month += interest

            # 4. Close paid debts; their minimum is free from next month
            for debt_id, balance in balances.items():
                if balance <= ZERO and payoff_month[debt_id] is None:
                    payoff_month[debt_id] = month
                    payoff_order.append(debt_id)
                    freed += by_id[debt_id].minimum_payment

            total_interest += interest_this_month
            total_paid += paid_this_month
            timeline.append(
                PayoffTimelinePoint(
                    month=month,
                    total_balance=sum((b for b in balances.values() if b > ZERO), ZERO),
                    payment=paid_this_month,
                    interest=interest_this_month,
                    target_id=first_target,
                )
            )

        completed = all(m is not None for m in payoff_month.values())
        if not completed:
            logger.warning(
                f"{strategy} simulation stopped at {self._max_months} months "
                f"with {sum(1 for m in payoff_month.values() if m is None)} debts open"
            )

        closed_months = [m for m in payoff_month.values() if m is not None]
        return PayoffSimulationResult(
            strategy_name=strategy,
            description=STRATEGY_DESCRIPTIONS[strategy],
            total_months=month,
            total_interest_paid=total_interest,
            total_paid=total_paid,
            first_payoff_month=min(closed_months) if closed_months else None,
            payoff_order=payoff_order,
            per_debt_payoff_month=payoff_month,
            monthly_timeline=timeline,
            completed=completed,
        )

    # =========================================================================
    # RECOMMENDATION
    # =========================================================================

    @staticmethod
    def _recommend(avalanche: PayoffSimulationResult, snowball: PayoffSimulationResult) -> str:
        """
        Cheapest strategy wins; on equal interest, the one whose first
        debt closes sooner.
        """
        if avalanche.total_interest_paid < snowball.total_interest_paid:
            return "avalanche"
        if snowball.total_interest_paid < avalanche.total_interest_paid:
            return "snowball"

        a_first = avalanche.first_payoff_month or 0
        s_first = snowball.first_payoff_month or 0
        return "snowball" if s_first < a_first else "avalanche"

    @staticmethod
    def _recommendation_text(strategy: str, interest_difference: Decimal, month_difference: int) -> str:
        if strategy == "avalanche" and interest_difference > ZERO:
            text = f"Avalanche saves ${interest_difference:,.2f} in interest versus snowball"
            if month_difference > 0:
                text += f" and finishes {month_difference} months sooner"
            return text + "."
        if strategy == "snowball" and interest_difference < ZERO:
            return f"Snowball saves ${-interest_difference:,.2f} in interest versus avalanche."
        if strategy == "snowball":
            return "Both strategies cost the same; snowball pays off the first debt sooner."
        return "Both strategies cost the same interest."

    @staticmethod
    def _empty_comparison(extra_payment: Decimal, warnings: list[str]) -> StrategyComparison:
        def empty(strategy: str) -> PayoffSimulationResult:
            return PayoffSimulationResult(
                strategy_name=strategy,
                description=STRATEGY_DESCRIPTIONS[strategy],
                total_months=0,
                total_interest_paid=ZERO,
                total_paid=ZERO,
                first_payoff_month=None,
            )

        return StrategyComparison(
            debts=[],
            total_debt=ZERO,
            weighted_average_rate=ZERO,
            total_minimum_payment=ZERO,
            extra_monthly_payment=extra_payment,
            avalanche=empty("avalanche"),
            snowball=empty("snowball"),
            minimum_only=empty("minimum_only"),
            interest_difference=ZERO,
            month_difference=0,
            recommended_strategy=NOT_APPLICABLE,
            recommendation="No debts to analyze",
            warnings=warnings,
        )
