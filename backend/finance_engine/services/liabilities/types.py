# backend/finance_engine/services/liabilities/types.py
"""
Data types for the liability services.

Architecture:
    Inputs (frozen snapshots):
    - LoanTerms: Fixed-rate installment loan
    - CreditCardSnapshot: Revolving account with a credit limit
    - DebtAccount: Balance/APR/minimum view used by payoff simulation
    - PropertyMortgage: Property row that can become a synthetic debt

    Results:
    - AmortizationPeriod, AmortizationSummary, AmortizationSchedule
    - PayoffPlan, PayoffComparison
    - CardUtilization, UtilizationReport
    - PayoffTimelinePoint, PayoffSimulationResult, StrategyComparison
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

DebtId = int | str


# =============================================================================
# INPUTS
# =============================================================================


@dataclass(frozen=True)
class LoanTerms:
    """
    Fixed-rate loan.

    Attributes:
        principal: Original amount borrowed
        annual_rate: APR as a decimal (0.06 = 6%)
        term_months: Original term
        start_date: Date the loan was funded; first payment is one month later
        current_balance: Outstanding balance today, when known
        monthly_payment: Scheduled payment, when the lender reports one
    """
    loan_id: DebtId
    principal: Decimal
    annual_rate: Decimal
    term_months: int
    start_date: date
    current_balance: Decimal | None = None
    monthly_payment: Decimal | None = None
    lender: str | None = None


@dataclass(frozen=True)
class CreditCardSnapshot:
    """Revolving credit account. A negative balance is a credit owed to the holder."""
    account_id: DebtId
    balance: Decimal
    credit_limit: Decimal
    name: str | None = None
    apr: Decimal | None = None
    minimum_payment: Decimal | None = None


@dataclass(frozen=True)
class DebtAccount:
    """
    Read-only debt view shared by utilization and payoff analytics.

    minimum_payment may be None; the strategist then estimates it as
    max($25, 2% of balance).
    """
    id: DebtId
    balance: Decimal
    apr: Decimal
    minimum_payment: Decimal | None = None
    priority: int = 0
    name: str = ""
    debt_type: str = "other"


@dataclass(frozen=True)
class PropertyMortgage:
    property_id: DebtId
    name: str
    mortgage_balance: Decimal
    monthly_payment: Decimal
    apr: Decimal | None = None


# =============================================================================
# AMORTIZATION
# =============================================================================


@dataclass(frozen=True)
class AmortizationPeriod:
    """
    One scheduled payment.

    remaining_balance == previous remaining_balance - principal_portion.
    """
    index: int
    payment_date: date
    payment_amount: Decimal
    principal_portion: Decimal
    interest_portion: Decimal
    remaining_balance: Decimal
    cumulative_principal: Decimal
    cumulative_interest: Decimal


@dataclass(frozen=True)
class AmortizationSummary:
    monthly_payment: Decimal
    number_of_payments: int
    total_paid: Decimal
    total_interest: Decimal
    total_principal: Decimal
    payments_made: int
    payments_remaining: int
    principal_paid_to_date: Decimal
    interest_paid_to_date: Decimal
    interest_remaining: Decimal
    scheduled_balance: Decimal
    percent_paid: Decimal
    payoff_date: date | None


@dataclass
class AmortizationSchedule:
    loan_id: DebtId
    principal: Decimal
    annual_rate: Decimal
    term_months: int
    periods: list[AmortizationPeriod]
    summary: AmortizationSummary
    lender: str | None = None


@dataclass(frozen=True)
class PayoffPlan:
    """
    Result of paying a balance down at a fixed monthly amount.

    never_pays_off is set when the payment does not cover the first
    month's interest (or the simulation hits its month cap); months and
    totals then describe the simulated prefix only and payoff_date is None.
    """
    monthly_payment: Decimal
    months: int
    total_interest: Decimal
    total_paid: Decimal
    payoff_date: date | None
    never_pays_off: bool = False


@dataclass(frozen=True)
class PayoffComparison:
    """Baseline payment versus payment plus a constant extra amount."""
    loan_id: DebtId
    starting_balance: Decimal
    extra_payment: Decimal
    current_plan: PayoffPlan
    accelerated_plan: PayoffPlan
    months_saved: int
    interest_saved: Decimal

    @property
    def years_saved(self) -> Decimal:
        return Decimal(self.months_saved) / Decimal(12)

    @property
    def new_payoff_date(self) -> date | None:
        return self.accelerated_plan.payoff_date

    @property
    def never_pays_off(self) -> bool:
        return self.accelerated_plan.never_pays_off


# =============================================================================
# UTILIZATION
# =============================================================================


@dataclass(frozen=True)
class CardUtilization:
    """
    Utilization of one card.

    utilization is a percentage (35.5 = 35.5%) or None when the card has
    no credit limit, in which case band is "N/A".
    """
    account_id: DebtId
    name: str
    balance: Decimal
    credit_limit: Decimal
    available_credit: Decimal
    utilization: Decimal | None
    band: str
    color: str
    recommendations: list[str] = field(default_factory=list)


@dataclass
class UtilizationReport:
    cards: list[CardUtilization]
    total_balance: Decimal
    total_credit_limit: Decimal
    total_available_credit: Decimal
    utilization: Decimal | None
    band: str
    color: str
    recommendations: list[str] = field(default_factory=list)


# =============================================================================
# DEBT PAYOFF
# =============================================================================


@dataclass(frozen=True)
class PayoffTimelinePoint:
    """State at the end of one simulated month (after interest accrual)."""
    month: int
    total_balance: Decimal
    payment: Decimal
    interest: Decimal
    target_id: DebtId | None


@dataclass
class PayoffSimulationResult:
    """
    Outcome of one payoff strategy.

    per_debt_payoff_month maps debt id -> month the debt closed, or None
    when it was still open at the month cap (completed=False).
    """
    strategy_name: str
    description: str
    total_months: int
    total_interest_paid: Decimal
    total_paid: Decimal
    first_payoff_month: int | None
    payoff_order: list[DebtId] = field(default_factory=list)
    per_debt_payoff_month: dict[DebtId, int | None] = field(default_factory=dict)
    monthly_timeline: list[PayoffTimelinePoint] = field(default_factory=list)
    completed: bool = True

    @property
    def first_target_id(self) -> DebtId | None:
        """Debt that received the extra payment in month 1."""
        if not self.monthly_timeline:
            return None
        return self.monthly_timeline[0].target_id


@dataclass
class StrategyComparison:
    """
    Avalanche vs snowball vs minimum-only for one debt set.

    interest_difference and month_difference are snowball minus
    avalanche: positive numbers mean avalanche is cheaper/faster.
    """
    debts: list[DebtAccount]
    total_debt: Decimal
    weighted_average_rate: Decimal
    total_minimum_payment: Decimal
    extra_monthly_payment: Decimal
    avalanche: PayoffSimulationResult
    snowball: PayoffSimulationResult
    minimum_only: PayoffSimulationResult
    interest_difference: Decimal
    month_difference: int
    recommended_strategy: str
    recommendation: str
    warnings: list[str] = field(default_factory=list)
