# backend/finance_engine/services/liabilities/amortization.py
"""
Amortization engine for fixed-rate installment loans.

Formulas:
    i = APR / 12
    M = P × i / (1 - (1 + i)^-n)          (i > 0)
    M = P / n                              (i = 0)

    Per period:
        interest  = round(balance × i, 0.01)
        principal = M - interest
        balance   = balance - principal

    M is rounded to the cent, so the schedule drifts by a few cents over
    the term. The final period pays whatever balance is left, which makes
    the last remaining_balance exactly 0.

Payoff Acceleration:
    The same loop is re-run from the outstanding balance with M + extra.
    A payment that does not cover the first month's interest can never
    retire the loan; that plan is reported with never_pays_off=True
    instead of being simulated to the month cap.

Example:
    $300,000 at 6% for 360 months -> M = $1,798.65,
    total interest ≈ $347,515.
"""

import logging
from datetime import date
from decimal import Decimal

from finance_engine.services.constants import (
    HUNDRED,
    MAX_SIMULATION_MONTHS,
    MONTHS_PER_YEAR,
    ONE,
    ZERO,
)
from finance_engine.services.exceptions import ValidationError
from finance_engine.services.liabilities.types import (
    AmortizationPeriod,
    AmortizationSchedule,
    AmortizationSummary,
    LoanTerms,
    PayoffComparison,
    PayoffPlan,
)
from finance_engine.utils.date_utils import add_months, utc_today
from finance_engine.utils.money import to_cents

logger = logging.getLogger(__name__)


def monthly_rate(annual_rate: Decimal) -> Decimal:
    return annual_rate / Decimal(MONTHS_PER_YEAR)


def calculate_monthly_payment(principal: Decimal, annual_rate: Decimal, term_months: int) -> Decimal:
    """
    Fixed monthly payment, rounded to the cent.

    Example:
        >>> calculate_monthly_payment(Decimal("300000"), Decimal("0.06"), 360)
        Decimal('1798.65')
    """
    if annual_rate == ZERO:
        return to_cents(principal / Decimal(term_months))

    i = monthly_rate(annual_rate)
    return to_cents(principal * i / (ONE - (ONE + i) ** -term_months))


def validate_loan(loan: LoanTerms) -> None:
    """
    Reject loan terms outside their valid domain.

    Raises:
        ValidationError: principal <= 0, term <= 0, APR outside [0, 1],
                         or a negative current balance / payment
    """
    if loan.principal <= ZERO:
        raise ValidationError(
            f"Loan principal must be positive, got {loan.principal}",
            field="principal",
            value=loan.principal,
        )
    if loan.term_months <= 0:
        raise ValidationError(
            f"Loan term must be positive, got {loan.term_months} months",
            field="term_months",
            value=loan.term_months,
        )
    if loan.annual_rate < ZERO or loan.annual_rate > ONE:
        raise ValidationError(
            f"Annual rate must be between 0 and 1, got {loan.annual_rate}",
            field="annual_rate",
            value=loan.annual_rate,
        )
    if loan.current_balance is not None and loan.current_balance < ZERO:
        raise ValidationError(
            f"Current balance cannot be negative, got {loan.current_balance}",
            field="current_balance",
            value=loan.current_balance,
        )
    if loan.monthly_payment is not None and loan.monthly_payment < ZERO:
        raise ValidationError(
            f"Monthly payment cannot be negative, got {loan.monthly_payment}",
            field="monthly_payment",
            value=loan.monthly_payment,
        )


class AmortizationEngine:
    """
    Schedules and payoff simulations for LoanTerms.

    Attributes:
        _max_months: Month cap for payoff simulations
    """

    def __init__(self, max_months: int = MAX_SIMULATION_MONTHS) -> None:
        self._max_months = max_months

    # =========================================================================
    # SCHEDULE
    # =========================================================================

    def generate_schedule(self, loan: LoanTerms, as_of: date | None = None) -> AmortizationSchedule:
        """
        Full period-by-period schedule over the original term.

        Args:
            loan: Loan terms
            as_of: Date used to count payments made (default: today, UTC)

        Returns:
            AmortizationSchedule with periods and summary

        Raises:
            ValidationError: If the loan terms are invalid
        """
        validate_loan(loan)
        as_of = as_of or utc_today()

        payment = calculate_monthly_payment(loan.principal, loan.annual_rate, loan.term_months)
        i = monthly_rate(loan.annual_rate)

        periods: list[AmortizationPeriod] = []
        balance = loan.principal
        cumulative_principal = ZERO
        cumulative_interest = ZERO

        for index in range(1, loan.term_months + 1):
            interest = to_cents(balance * i)
            principal = payment - interest

            # Last period (or a rounding overshoot) settles the residual
            if index == loan.term_months or principal >= balance:
                principal = balance

            balance -= principal
            cumulative_principal += principal
            cumulative_interest += interest

            periods.append(
                AmortizationPeriod(
                    index=index,
                    payment_date=add_months(loan.start_date, index),
                    payment_amount=principal + interest,
                    principal_portion=principal,
                    interest_portion=interest,
                    remaining_balance=balance,
                    cumulative_principal=cumulative_principal,
                    cumulative_interest=cumulative_interest,
                )
            )

            if balance == ZERO:
                break

        summary = self._summarize(loan, payment, periods, as_of)

        logger.debug(
            f"Amortization schedule for loan {loan.loan_id}: {len(periods)} payments "
            f"of {payment}, total interest {summary.total_interest}"
        )

        return AmortizationSchedule(
            loan_id=loan.loan_id,
            principal=loan.principal,
            annual_rate=loan.annual_rate,
            term_months=loan.term_months,
            periods=periods,
            summary=summary,
            lender=loan.lender,
        )

    @staticmethod
    def _summarize(
            loan: LoanTerms,
            payment: Decimal,
            periods: list[AmortizationPeriod],
            as_of: date,
    ) -> AmortizationSummary:
        made = [p for p in periods if p.payment_date <= as_of]
        last_made = made[-1] if made else None

        total_interest = periods[-1].cumulative_interest if periods else ZERO
        total_principal = periods[-1].cumulative_principal if periods else ZERO
        interest_to_date = last_made.cumulative_interest if last_made else ZERO
        principal_to_date = last_made.cumulative_principal if last_made else ZERO

        return AmortizationSummary(
            monthly_payment=payment,
            number_of_payments=len(periods),
            total_paid=total_principal + total_interest,
            total_interest=total_interest,
            total_principal=total_principal,
            payments_made=len(made),
            payments_remaining=len(periods) - len(made),
            principal_paid_to_date=principal_to_date,
            interest_paid_to_date=interest_to_date,
            interest_remaining=total_interest - interest_to_date,
            scheduled_balance=last_made.remaining_balance if last_made else loan.principal,
            percent_paid=principal_to_date / loan.principal * HUNDRED,
            payoff_date=periods[-1].payment_date if periods else None,
        )

    # =========================================================================
    # PAYOFF WITH EXTRA PAYMENT
    # =========================================================================

    def calculate_payoff(
            self,
            loan: LoanTerms,
            extra_payment: Decimal,
            as_of: date | None = None,
    ) -> PayoffComparison:
        """
        Compare paying the scheduled amount against paying it plus extra.

        The simulation starts from current_balance when the loan reports
        one (first payment one month after as_of), otherwise from the
        original principal at start_date. The baseline payment is the
        lender's monthly_payment when given, otherwise the computed M; in
        that case the baseline is the amortization schedule itself and both
        plans settle any rounding residual in the final scheduled month.

        Args:
            loan: Loan terms
            extra_payment: Constant amount added to every payment
            as_of: Start of the simulation for a loan with a current balance

        Returns:
            PayoffComparison with both plans and the savings

        Raises:
            ValidationError: If the loan terms are invalid or extra < 0
        """
        validate_loan(loan)
        if extra_payment < ZERO:
            raise ValidationError(
                f"Extra payment cannot be negative, got {extra_payment}",
                field="extra_payment",
                value=extra_payment,
            )

        if loan.current_balance is not None:
            balance = loan.current_balance
            start = as_of or utc_today()
        else:
            balance = loan.principal
            start = loan.start_date

        settle_after = None
        if loan.monthly_payment:
            payment = loan.monthly_payment
        else:
            payment = calculate_monthly_payment(loan.principal, loan.annual_rate, loan.term_months)
            if loan.current_balance is None:
                settle_after = loan.term_months

        rate = loan.annual_rate
        current = self.simulate_payoff(balance, rate, payment, start, settle_after)
        accelerated = self.simulate_payoff(balance, rate, payment + extra_payment, start, settle_after)

        if current.never_pays_off or accelerated.never_pays_off:
            months_saved = 0
            interest_saved = ZERO
        else:
            months_saved = current.months - accelerated.months
            interest_saved = current.total_interest - accelerated.total_interest

        logger.info(
            f"Payoff for loan {loan.loan_id}: extra {extra_payment} saves "
            f"{months_saved} months and {interest_saved} interest"
        )

        return PayoffComparison(
            loan_id=loan.loan_id,
            starting_balance=balance,
            extra_payment=extra_payment,
            current_plan=current,
            accelerated_plan=accelerated,
            months_saved=months_saved,
            interest_saved=interest_saved,
        )

    def simulate_payoff(
            self,
            balance: Decimal,
            annual_rate: Decimal,
            payment: Decimal,
            start_date: date,
            settle_after: int | None = None,
    ) -> PayoffPlan:
        """
        Pay a balance down at a fixed amount until it reaches zero.

        Stops early with never_pays_off=True when the payment does not
        exceed the first month's interest or the month cap is reached.
        With settle_after, payment number settle_after pays off whatever
        is left (the final-period residual of a rounded schedule payment).
        """
        i = monthly_rate(annual_rate)

        if balance <= ZERO:
            return PayoffPlan(
                monthly_payment=payment,
                months=0,
                total_interest=ZERO,
                total_paid=ZERO,
                payoff_date=start_date,
            )

        if payment <= to_cents(balance * i):
            logger.warning(
                f"Payment {payment} does not cover first-month interest on {balance}; "
                f"loan never pays off"
            )
            return PayoffPlan(
                monthly_payment=payment,
                months=0,
                total_interest=ZERO,
                total_paid=ZERO,
                payoff_date=None,
                never_pays_off=True,
            )

        months = 0
        total_interest = ZERO
        total_paid = ZERO

        while balance > ZERO and months < self._max_months:
            interest = to_cents(balance * i)
            principal = min(payment - interest, balance)
            if settle_after is not None and months + 1 >= settle_after:
                principal = balance

            balance -= principal
            total_interest += interest
            total_paid += principal + interest
            months += 1

        if balance > ZERO:
            logger.warning(f"Payoff simulation hit the {self._max_months}-month cap")
            return PayoffPlan(
                monthly_payment=payment,
                months=months,
                total_interest=total_interest,
                total_paid=total_paid,
                payoff_date=None,
                never_pays_off=True,
            )

        return PayoffPlan(
            monthly_payment=payment,
            months=months,
            total_interest=total_interest,
            total_paid=total_paid,
            payoff_date=add_months(start_date, months),
        )
