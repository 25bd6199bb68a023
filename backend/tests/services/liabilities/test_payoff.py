# backend/tests/services/liabilities/test_payoff.py
"""
Unit tests for debt payoff strategies.

Test Coverage:
- Target selection and tie-breaks (avalanche, snowball)
- Rollover of freed capacity (closed debts, same-month remainders)
- Apply-then-accrue interest
- Minimum-only baseline and the month cap
- Estimated minimums, synthetic mortgages, validation
"""

from decimal import Decimal

import pytest

from finance_engine.services.exceptions import ValidationError
from finance_engine.services.liabilities.payoff import (
    DebtPayoffStrategist,
    estimate_minimum_payment,
    mortgages_as_debts,
)
from finance_engine.services.liabilities.types import DebtAccount, PropertyMortgage


def debt(
        debt_id: int | str,
        balance: str,
        apr: str,
        minimum: str | None,
        name: str = "",
) -> DebtAccount:
    return DebtAccount(
        id=debt_id,
        balance=Decimal(balance),
        apr=Decimal(apr),
        minimum_payment=Decimal(minimum) if minimum is not None else None,
        name=name,
    )


@pytest.fixture
def strategist() -> DebtPayoffStrategist:
    return DebtPayoffStrategist()


@pytest.fixture
def card_and_loan() -> list[DebtAccount]:
    """Card A ($5,000 @ 22%, min $100) and Loan B ($15,000 @ 7%, min $300)."""
    return [
        debt(1, "5000", "0.22", "100", name="Card A"),
        debt(2, "15000", "0.07", "300", name="Loan B"),
    ]


# =============================================================================
# TARGET SELECTION
# =============================================================================

class TestTargetSelection:
    """Which debt receives the extra payment first."""

    def test_both_strategies_target_card_first(self, strategist, card_and_loan):
        """Lower balance and higher APR coincide: both pick Card A."""
        result = strategist.compare(card_and_loan, Decimal("200"))

        assert result.avalanche.first_target_id == 1
        assert result.snowball.first_target_id == 1
        assert result.avalanche.payoff_order == [1, 2]
        assert result.snowball.payoff_order == [1, 2]

    def test_strategies_diverge(self, strategist):
        """Smaller balance with the lower APR: avalanche and snowball split."""
        debts = [
            debt(1, "5000", "0.05", "100"),
            debt(2, "8000", "0.20", "150"),
        ]
        result = strategist.compare(debts, Decimal("200"))

        assert result.avalanche.first_target_id == 2
        assert result.snowball.first_target_id == 1
        assert result.avalanche.total_interest_paid < result.snowball.total_interest_paid
        assert result.interest_difference > Decimal("0")
        assert result.recommended_strategy == "avalanche"
        assert result.recommendation.startswith("Avalanche saves $")

    def test_snowball_tie_breaks_on_higher_apr(self, strategist):
        """Equal balances: snowball falls back to the higher APR."""
        debts = [
            debt(1, "5000", "0.10", "100"),
            debt(2, "5000", "0.20", "100"),
        ]
        result = strategist.compare(debts, Decimal("200"))

        assert result.snowball.first_target_id == 2
        assert result.avalanche.first_target_id == 2

    def test_avalanche_tie_breaks_on_lower_balance(self, strategist):
        """Equal APRs: avalanche takes the smaller balance."""
        debts = [
            debt(1, "9000", "0.15", "100"),
            debt(2, "3000", "0.15", "100"),
        ]
        result = strategist.compare(debts, Decimal("200"))

        assert result.avalanche.first_target_id == 2

    def test_full_tie_breaks_on_id(self, strategist):
        """Same balance and APR: lowest id first."""
        debts = [
            debt(7, "1000", "0.10", "50"),
            debt(3, "1000", "0.10", "50"),
        ]
        result = strategist.compare(debts, Decimal("100"))

        assert result.avalanche.first_target_id == 3
        assert result.snowball.first_target_id == 3

    @pytest.mark.parametrize(
        "debts",
        [
            [("5000", "0.22", "100"), ("15000", "0.07", "300")],
            [("5000", "0.05", "100"), ("8000", "0.20", "150")],
            [("1200", "0.09", "40"), ("7000", "0.29", "140"), ("22000", "0.045", "260")],
            [("3000", "0.18", "90"), ("3000", "0.18", "90")],
        ],
    )
    def test_avalanche_never_costs_more_interest(self, strategist, debts):
        """Avalanche interest <= snowball interest for the same debts and extra."""
        accounts = [debt(i, b, a, m) for i, (b, a, m) in enumerate(debts, start=1)]
        result = strategist.compare(accounts, Decimal("150"))

        assert result.avalanche.total_interest_paid <= result.snowball.total_interest_paid


# =============================================================================
# ROLLOVER
# =============================================================================

class TestRollover:
    """Freed capacity is never lost."""

    def test_monthly_budget_is_conserved(self, strategist):
        """
        Budget = 100 + 50 minimums + 100 extra = 250 every month.

        Month 1: A pays 100 min + 50 extra (closes), B gets 50 min + 50 rest
        Months 2-4: B gets 250
        Month 5: B's last 150
        """
        debts = [
            debt(1, "150", "0", "100"),
            debt(2, "1000", "0", "50"),
        ]
        result = strategist.simulate(debts, Decimal("100"), "avalanche")

        payments = [p.payment for p in result.monthly_timeline]
        assert payments == [Decimal("250")] * 4 + [Decimal("150")]
        assert result.total_months == 5
        assert result.per_debt_payoff_month == {1: 1, 2: 5}
        assert result.total_paid == Decimal("1150")
        assert result.total_interest_paid == Decimal("0")

    def test_unused_minimum_cascades_same_month(self, strategist):
        """A debt smaller than its minimum hands the remainder to the next target."""
        debts = [
            debt(1, "30", "0", "100"),
            debt(2, "1000", "0", "50"),
        ]
        result = strategist.simulate(debts, Decimal("0"), "snowball")
        first = result.monthly_timeline[0]

        assert first.payment == Decimal("150")
        assert first.total_balance == Decimal("880")
        assert result.first_payoff_month == 1

    def test_minimum_only_does_not_roll_over(self, strategist):
        """Minimum-only keeps paying just the minimums."""
        debts = [
            debt(1, "30", "0", "100"),
            debt(2, "1000", "0", "50"),
        ]
        result = strategist.simulate(debts, Decimal("500"), "minimum_only")

        assert result.monthly_timeline[0].payment == Decimal("80")
        assert result.total_months == 20
        assert result.monthly_timeline[0].target_id is None


# =============================================================================
# INTEREST & TERMINATION
# =============================================================================

class TestInterestAndTermination:
    """Apply-then-accrue and the month cap."""

    def test_interest_accrues_after_payment(self, strategist):
        """$1,000 at 12% with $100 paid: interest is 1% of $900."""
        result = strategist.simulate([debt(1, "1000", "0.12", "100")], Decimal("0"), "avalanche")
        first = result.monthly_timeline[0]

        assert first.interest == Decimal("9.00")
        assert first.total_balance == Decimal("909.00")

    def test_month_cap_stops_pathological_debt(self):
        """Minimum below interest: stops at the cap with completed=False."""
        strategist = DebtPayoffStrategist(max_months=24)
        result = strategist.compare([debt(1, "10000", "0.24", "100")], Decimal("0"))

        assert result.minimum_only.completed is False
        assert result.minimum_only.total_months == 24
        assert result.minimum_only.per_debt_payoff_month == {1: None}
        assert result.avalanche.completed is False
        assert any("debts remain" in w for w in result.warnings)

    def test_all_strategies_complete_for_healthy_debts(self, strategist, card_and_loan):
        result = strategist.compare(card_and_loan, Decimal("200"))

        assert result.avalanche.completed
        assert result.snowball.completed
        assert result.minimum_only.completed
        assert result.avalanche.total_months < result.minimum_only.total_months
        assert result.avalanche.total_interest_paid < result.minimum_only.total_interest_paid


# =============================================================================
# COMPARISON
# =============================================================================

class TestCompare:
    """Tests for DebtPayoffStrategist.compare."""

    def test_totals(self, strategist, card_and_loan):
        """Total debt, minimums and balance-weighted APR (percent)."""
        result = strategist.compare(card_and_loan, Decimal("200"))

        assert result.total_debt == Decimal("20000")
        assert result.total_minimum_payment == Decimal("400")
        assert result.weighted_average_rate == Decimal("10.75")
        assert result.extra_monthly_payment == Decimal("200")

    def test_identical_orderings_recommend_avalanche(self, strategist, card_and_loan):
        """Same interest both ways: avalanche is recommended."""
        result = strategist.compare(card_and_loan, Decimal("200"))

        assert result.interest_difference == Decimal("0")
        assert result.month_difference == 0
        assert result.recommended_strategy == "avalanche"

    def test_descriptions(self, strategist, card_and_loan):
        result = strategist.compare(card_and_loan, Decimal("200"))

        assert result.avalanche.description.startswith("Pay highest interest rate first")
        assert result.snowball.description.startswith("Pay lowest balance first")
        assert result.minimum_only.description.startswith("Pay only minimum payments")

    def test_no_debts(self, strategist):
        """Empty input produces an N/A comparison."""
        result = strategist.compare([], Decimal("200"))

        assert result.recommended_strategy == "N/A"
        assert result.recommendation == "No debts to analyze"
        assert result.total_debt == Decimal("0")
        assert result.avalanche.total_months == 0

    def test_paid_off_debts_are_excluded(self, strategist):
        """Debts without a balance do not enter the simulation."""
        result = strategist.compare(
            [debt(1, "0", "0.2", "50"), debt(2, "500", "0.1", "50")],
            Decimal("0"),
        )

        assert [d.id for d in result.debts] == [2]
        assert result.warnings == ["1 debt(s) with no outstanding balance excluded"]

    def test_negative_extra_rejected(self, strategist, card_and_loan):
        with pytest.raises(ValidationError) as exc_info:
            strategist.compare(card_and_loan, Decimal("-5"))
        assert exc_info.value.field == "extra_payment"

    def test_apr_out_of_range_rejected(self, strategist):
        with pytest.raises(ValidationError) as exc_info:
            strategist.compare([debt(1, "100", "1.5", "10")], Decimal("0"))
        assert exc_info.value.field == "apr"

    def test_unknown_strategy_rejected(self, strategist, card_and_loan):
        with pytest.raises(ValidationError):
            strategist.simulate(card_and_loan, Decimal("0"), "tsunami")


# =============================================================================
# MINIMUMS & MORTGAGES
# =============================================================================

class TestEstimatedMinimum:
    """max($25, 2% of balance)."""

    def test_two_percent(self):
        assert estimate_minimum_payment(Decimal("5000")) == Decimal("100.00")

    def test_floor(self):
        assert estimate_minimum_payment(Decimal("1000")) == Decimal("25")

    def test_missing_minimum_is_estimated(self, strategist):
        result = strategist.compare([debt(1, "5000", "0.2", None)], Decimal("0"))
        assert result.debts[0].minimum_payment == Decimal("100.00")


class TestMortgages:
    """Synthetic mortgage debts."""

    @pytest.fixture
    def homes(self) -> list[PropertyMortgage]:
        return [
            PropertyMortgage(
                property_id=9,
                name="Home",
                mortgage_balance=Decimal("200000"),
                monthly_payment=Decimal("1500"),
            ),
            PropertyMortgage(
                property_id=10,
                name="Cabin",
                mortgage_balance=Decimal("0"),
                monthly_payment=Decimal("0"),
            ),
        ]

    def test_default_apr_applied(self, homes):
        debts = mortgages_as_debts(homes)

        assert len(debts) == 1
        assert debts[0].id == "mortgage-9"
        assert debts[0].apr == Decimal("0.065")
        assert debts[0].debt_type == "mortgage"
        assert debts[0].name == "Home Mortgage"

    def test_included_only_when_opted_in(self, strategist, card_and_loan, homes):
        without = strategist.compare(card_and_loan, Decimal("200"), homes, include_mortgages=False)
        with_mortgage = strategist.compare(card_and_loan, Decimal("200"), homes, include_mortgages=True)

        assert "mortgage-9" not in [d.id for d in without.debts]
        assert "mortgage-9" in [d.id for d in with_mortgage.debts]
        assert with_mortgage.total_debt == Decimal("220000")
        assert with_mortgage.avalanche.per_debt_payoff_month["mortgage-9"] is not None
