# backend/tests/services/liabilities/test_amortization.py
"""
Unit tests for the amortization engine.

Test Coverage:
- calculate_monthly_payment: Standard formula and zero-rate loans
- generate_schedule: Closure, balance chain, payment dates, summary
- calculate_payoff: Extra payments, monotonicity, never-pays-off
- validate_loan: Rejected inputs name the offending field
"""

from datetime import date
from decimal import Decimal

import pytest

from finance_engine.services.exceptions import ValidationError
from finance_engine.services.liabilities.amortization import (
    AmortizationEngine,
    calculate_monthly_payment,
)
from finance_engine.services.liabilities.types import LoanTerms


def make_loan(
        principal: str = "300000",
        rate: str = "0.06",
        term: int = 360,
        start: date = date(2024, 1, 1),
        **kwargs,
) -> LoanTerms:
    return LoanTerms(
        loan_id=1,
        principal=Decimal(principal),
        annual_rate=Decimal(rate),
        term_months=term,
        start_date=start,
        **kwargs,
    )


@pytest.fixture
def engine() -> AmortizationEngine:
    return AmortizationEngine()


# =============================================================================
# MONTHLY PAYMENT
# =============================================================================

class TestMonthlyPayment:
    """Tests for calculate_monthly_payment."""

    def test_thirty_year_mortgage(self):
        """$300,000 at 6% over 360 months pays $1,798.65."""
        payment = calculate_monthly_payment(Decimal("300000"), Decimal("0.06"), 360)
        assert payment == Decimal("1798.65")

    def test_zero_rate_divides_principal(self):
        """0% APR: payment is principal / term."""
        payment = calculate_monthly_payment(Decimal("12000"), Decimal("0"), 12)
        assert payment == Decimal("1000.00")

    def test_payment_rounded_to_cents(self):
        """Payment always has two decimal places."""
        payment = calculate_monthly_payment(Decimal("1000"), Decimal("0"), 3)
        assert payment == Decimal("333.33")


# =============================================================================
# SCHEDULE
# =============================================================================

class TestGenerateSchedule:
    """Tests for AmortizationEngine.generate_schedule."""

    @pytest.mark.parametrize(
        "principal,rate,term",
        [
            ("300000", "0.06", 360),
            ("25000", "0.0499", 60),
            ("1000", "0", 3),
            ("18500.55", "0.219", 24),
            ("500", "1", 6),
        ],
    )
    def test_schedule_closes_to_zero(self, engine, principal, rate, term):
        """Final balance is exactly 0 and principal portions sum to the principal."""
        schedule = engine.generate_schedule(
            make_loan(principal, rate, term), as_of=date(2024, 1, 1)
        )

        assert schedule.periods[-1].remaining_balance == Decimal("0")
        total_principal = sum(p.principal_portion for p in schedule.periods)
        assert abs(total_principal - Decimal(principal)) <= Decimal("0.01")
        assert len(schedule.periods) == term

    def test_balance_chain(self, engine):
        """Each remaining balance is the previous one minus the principal portion."""
        schedule = engine.generate_schedule(make_loan("25000", "0.0499", 60), as_of=date(2024, 1, 1))

        previous = Decimal("25000")
        for period in schedule.periods:
            assert period.remaining_balance == previous - period.principal_portion
            assert period.payment_amount == period.principal_portion + period.interest_portion
            previous = period.remaining_balance

    def test_first_period_split(self, engine):
        """First month of a 6% mortgage: $1,500 interest, $298.65 principal."""
        schedule = engine.generate_schedule(make_loan(), as_of=date(2024, 1, 1))
        first = schedule.periods[0]

        assert first.interest_portion == Decimal("1500.00")
        assert first.principal_portion == Decimal("298.65")
        assert first.remaining_balance == Decimal("299701.35")

    def test_last_period_absorbs_residual(self, engine):
        """Zero-rate loan of $1,000 over 3 months pays 333.33, 333.33, 333.34."""
        schedule = engine.generate_schedule(make_loan("1000", "0", 3), as_of=date(2024, 1, 1))

        payments = [p.payment_amount for p in schedule.periods]
        assert payments == [Decimal("333.33"), Decimal("333.33"), Decimal("333.34")]

    def test_total_interest_for_thirty_year_mortgage(self, engine):
        """Total interest on $300k at 6% / 30y is about $347,515."""
        schedule = engine.generate_schedule(make_loan(), as_of=date(2024, 1, 1))

        total_interest = schedule.summary.total_interest
        assert Decimal("347500") < total_interest < Decimal("347530")
        assert schedule.summary.total_paid == total_interest + Decimal("300000")

    def test_payment_dates_clamp_to_month_end(self, engine):
        """A loan funded on Jan 31 pays on Feb 29 in a leap year."""
        schedule = engine.generate_schedule(
            make_loan("1200", "0", 3, start=date(2024, 1, 31)), as_of=date(2024, 1, 31)
        )

        dates = [p.payment_date for p in schedule.periods]
        assert dates == [date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30)]
        assert schedule.summary.payoff_date == date(2024, 4, 30)

    def test_summary_counts_payments_made(self, engine):
        """Payments dated on or before as_of count as made."""
        schedule = engine.generate_schedule(
            make_loan("12000", "0", 12, start=date(2024, 1, 15)), as_of=date(2024, 4, 15)
        )
        summary = schedule.summary

        assert summary.payments_made == 3
        assert summary.payments_remaining == 9
        assert summary.principal_paid_to_date == Decimal("3000.00")
        assert summary.scheduled_balance == Decimal("9000.00")
        assert summary.percent_paid == Decimal("25")

    def test_summary_before_first_payment(self, engine):
        """Nothing paid yet: balance is the principal, percent paid is 0."""
        schedule = engine.generate_schedule(make_loan(), as_of=date(2024, 1, 10))
        summary = schedule.summary

        assert summary.payments_made == 0
        assert summary.scheduled_balance == Decimal("300000")
        assert summary.percent_paid == Decimal("0")
        assert summary.interest_remaining == summary.total_interest


# =============================================================================
# PAYOFF WITH EXTRA PAYMENT
# =============================================================================

class TestCalculatePayoff:
    """Tests for AmortizationEngine.calculate_payoff."""

    def test_extra_200_on_thirty_year_mortgage(self, engine):
        """$200 extra pays off sooner and with less interest than the baseline."""
        result = engine.calculate_payoff(make_loan(), Decimal("200"))

        assert result.current_plan.months == 360
        assert result.accelerated_plan.months < 360
        assert result.accelerated_plan.total_interest < Decimal("347515")
        assert result.months_saved == 360 - result.accelerated_plan.months
        assert result.interest_saved > Decimal("0")
        assert result.new_payoff_date < result.current_plan.payoff_date
        assert result.accelerated_plan.monthly_payment == Decimal("1998.65")

    def test_zero_extra_saves_nothing(self, engine):
        """No extra payment: both plans are identical."""
        result = engine.calculate_payoff(make_loan(), Decimal("0"))

        assert result.months_saved == 0
        assert result.interest_saved == Decimal("0")
        assert result.current_plan == result.accelerated_plan

    @pytest.mark.parametrize("extra", ["0", "1", "50", "200", "1000", "50000"])
    def test_extra_never_lengthens_payoff(self, engine, extra):
        """Payoff month count with extra > 0 is never above the baseline."""
        loan = make_loan("40000", "0.0725", 120)
        result = engine.calculate_payoff(loan, Decimal(extra))

        assert result.accelerated_plan.months <= result.current_plan.months
        assert result.accelerated_plan.total_interest <= result.current_plan.total_interest

    def test_payoff_from_current_balance(self, engine):
        """A reported current balance starts the simulation at as_of."""
        loan = make_loan(
            "300000",
            current_balance=Decimal("0"),
            monthly_payment=Decimal("1798.65"),
        )
        result = engine.calculate_payoff(loan, Decimal("100"), as_of=date(2025, 6, 1))

        assert result.starting_balance == Decimal("0")
        assert result.current_plan.months == 0
        assert result.current_plan.payoff_date == date(2025, 6, 1)

    def test_zero_rate_payoff(self, engine):
        """0% loan of $1,200 at $100/month: 12 months, 6 with $100 extra."""
        result = engine.calculate_payoff(make_loan("1200", "0", 12), Decimal("100"))

        assert result.current_plan.months == 12
        assert result.accelerated_plan.months == 6
        assert result.months_saved == 6
        assert result.interest_saved == Decimal("0")

    def test_payment_below_interest_never_pays_off(self, engine):
        """A payment that does not cover first-month interest is flagged, not looped."""
        loan = make_loan("100000", monthly_payment=Decimal("400"))  # interest is $500/month
        result = engine.calculate_payoff(loan, Decimal("50"))

        assert result.current_plan.never_pays_off is True
        assert result.accelerated_plan.never_pays_off is True
        assert result.never_pays_off is True
        assert result.new_payoff_date is None
        assert result.months_saved == 0

    def test_simulation_cap(self):
        """A payment barely above interest stops at the month cap."""
        engine = AmortizationEngine(max_months=24)
        plan = engine.simulate_payoff(
            Decimal("100000"), Decimal("0.06"), Decimal("501"), date(2024, 1, 1)
        )

        assert plan.never_pays_off is True
        assert plan.months == 24
        assert plan.payoff_date is None


# =============================================================================
# VALIDATION
# =============================================================================

class TestLoanValidation:
    """Invalid loan terms raise ValidationError naming the field."""

    @pytest.mark.parametrize(
        "kwargs,field",
        [
            ({"principal": "0"}, "principal"),
            ({"principal": "-100"}, "principal"),
            ({"term": 0}, "term_months"),
            ({"rate": "1.5"}, "annual_rate"),
            ({"rate": "-0.01"}, "annual_rate"),
        ],
    )
    def test_invalid_terms(self, engine, kwargs, field):
        """Rejected, not clamped."""
        with pytest.raises(ValidationError) as exc_info:
            engine.generate_schedule(make_loan(**kwargs))
        assert exc_info.value.field == field

    def test_negative_extra_payment(self, engine):
        """Negative extra payment is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            engine.calculate_payoff(make_loan(), Decimal("-1"))
        assert exc_info.value.field == "extra_payment"

    def test_rate_of_exactly_one_is_allowed(self, engine):
        """100% APR is the upper bound and still valid."""
        schedule = engine.generate_schedule(make_loan("1000", "1", 12), as_of=date(2024, 1, 1))
        assert schedule.periods[-1].remaining_balance == Decimal("0")
