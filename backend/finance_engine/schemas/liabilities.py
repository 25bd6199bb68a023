# backend/finance_engine/schemas/liabilities.py
"""
Pydantic schemas for loan, credit and debt payoff results.

Money is a cent-rounded string. Utilization and weighted APR are
percent figures (35.5 = 35.5%). Dates past a payoff that never happens
are null rather than a sentinel date.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from finance_engine.services.liabilities.types import (
    AmortizationSchedule,
    CardUtilization,
    PayoffComparison,
    PayoffPlan,
    PayoffSimulationResult,
    StrategyComparison,
    UtilizationReport,
)
from finance_engine.utils.money import format_money, format_percent


# =============================================================================
# AMORTIZATION
# =============================================================================

class AmortizationPeriodResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payment_number: int
    date: date
    payment: str
    principal: str
    interest: str
    balance: str
    cumulative_principal: str
    cumulative_interest: str


class AmortizationSummaryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    monthly_payment: str
    total_payments: int
    total_paid: str
    total_interest: str
    total_principal: str
    payments_made: int
    payments_remaining: int
    interest_paid_to_date: str
    interest_remaining: str
    scheduled_balance: str
    percent_paid: str
    estimated_payoff_date: date | None = None


class AmortizationScheduleResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    loan_id: int | str
    lender: str | None = None
    principal: str
    annual_rate: str
    term_months: int
    summary: AmortizationSummaryResponse
    schedule: list[AmortizationPeriodResponse] = Field(default_factory=list)


# =============================================================================
# PAYOFF CALCULATOR
# =============================================================================

class PayoffPlanResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    payoff_date: date | None = None
    months_remaining: int
    monthly_payment: str
    total_interest: str
    total_cost: str
    never_pays_off: bool = False


class PayoffSavingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    months_saved: int
    years_saved: str
    interest_saved: str


class PayoffResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    loan_id: int | str
    current_balance: str
    extra_payment: str
    current_plan: PayoffPlanResponse
    accelerated_plan: PayoffPlanResponse
    savings: PayoffSavingsResponse


# =============================================================================
# UTILIZATION
# =============================================================================

class CardUtilizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: int | str
    name: str
    balance: str
    credit_limit: str
    available_credit: str
    utilization: str | None = Field(None, description="Percent, null when the card has no limit")
    band: str = Field(..., description="excellent, good, fair, poor or N/A")
    color: str
    recommendations: list[str] = Field(default_factory=list)


class UtilizationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_balance: str
    total_credit_limit: str
    total_available_credit: str
    utilization: str | None = None
    band: str
    color: str
    recommendations: list[str] = Field(default_factory=list)
    cards: list[CardUtilizationResponse] = Field(default_factory=list)


# =============================================================================
# DEBT PAYOFF STRATEGIES
# =============================================================================

class DebtResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int | str
    name: str
    debt_type: str
    balance: str
    interest_rate: str = Field(..., description="APR in percent")
    minimum_payment: str
    payoff_month_avalanche: int | None = None
    payoff_month_snowball: int | None = None


class PayoffStrategyResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    strategy: str
    description: str
    months_to_payoff: int
    total_interest_paid: str
    total_paid: str
    first_payoff_month: int | None = None
    payoff_order: list[int | str] = Field(default_factory=list)
    completed: bool = True


class StrategyComparisonResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_debt: str
    weighted_average_interest_rate: str
    total_minimum_payment: str
    extra_monthly_payment: str
    debts: list[DebtResponse] = Field(default_factory=list)
    avalanche: PayoffStrategyResponse
    snowball: PayoffStrategyResponse
    minimum_only: PayoffStrategyResponse
    interest_difference: str
    month_difference: int
    recommended_strategy: str
    recommendation: str
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# MAPPERS
# =============================================================================

def build_amortization_response(schedule: AmortizationSchedule) -> AmortizationScheduleResponse:
    """Render an AmortizationSchedule for JSON output."""
    summary = schedule.summary

    return AmortizationScheduleResponse(
        loan_id=schedule.loan_id,
        lender=schedule.lender,
        principal=format_money(schedule.principal),
        annual_rate=str(schedule.annual_rate),
        term_months=schedule.term_months,
        summary=AmortizationSummaryResponse(
            monthly_payment=format_money(summary.monthly_payment),
            total_payments=summary.number_of_payments,
            total_paid=format_money(summary.total_paid),
            total_interest=format_money(summary.total_interest),
            total_principal=format_money(summary.total_principal),
            payments_made=summary.payments_made,
            payments_remaining=summary.payments_remaining,
            interest_paid_to_date=format_money(summary.interest_paid_to_date),
            interest_remaining=format_money(summary.interest_remaining),
            scheduled_balance=format_money(summary.scheduled_balance),
            percent_paid=format_percent(summary.percent_paid),
            estimated_payoff_date=summary.payoff_date,
        ),
        schedule=[
            AmortizationPeriodResponse(
                payment_number=p.index,
                date=p.payment_date,
                payment=format_money(p.payment_amount),
                principal=format_money(p.principal_portion),
                interest=format_money(p.interest_portion),
                balance=format_money(p.remaining_balance),
                cumulative_principal=format_money(p.cumulative_principal),
                cumulative_interest=format_money(p.cumulative_interest),
            )
            for p in schedule.periods
        ],
    )


def _map_plan(plan: PayoffPlan) -> PayoffPlanResponse:
    return PayoffPlanResponse(
        payoff_date=plan.payoff_date,
        months_remaining=plan.months,
        monthly_payment=format_money(plan.monthly_payment),
        total_interest=format_money(plan.total_interest),
        total_cost=format_money(plan.total_paid),
        never_pays_off=plan.never_pays_off,
    )


def build_payoff_response(comparison: PayoffComparison) -> PayoffResponse:
    """Render a PayoffComparison for JSON output."""
    return PayoffResponse(
        loan_id=comparison.loan_id,
        current_balance=format_money(comparison.starting_balance),
        extra_payment=format_money(comparison.extra_payment),
        current_plan=_map_plan(comparison.current_plan),
        accelerated_plan=_map_plan(comparison.accelerated_plan),
        savings=PayoffSavingsResponse(
            months_saved=comparison.months_saved,
            years_saved=format_money(comparison.years_saved),
            interest_saved=format_money(comparison.interest_saved),
        ),
    )


def _map_card(card: CardUtilization) -> CardUtilizationResponse:
    return CardUtilizationResponse(
        account_id=card.account_id,
        name=card.name,
        balance=format_money(card.balance),
        credit_limit=format_money(card.credit_limit),
        available_credit=format_money(card.available_credit),
        utilization=format_percent(card.utilization),
        band=card.band,
        color=card.color,
        recommendations=list(card.recommendations),
    )


def build_utilization_response(report: UtilizationReport) -> UtilizationResponse:
    """Render a UtilizationReport for JSON output."""
    return UtilizationResponse(
        total_balance=format_money(report.total_balance),
        total_credit_limit=format_money(report.total_credit_limit),
        total_available_credit=format_money(report.total_available_credit),
        utilization=format_percent(report.utilization),
        band=report.band,
        color=report.color,
        recommendations=list(report.recommendations),
        cards=[_map_card(c) for c in report.cards],
    )


def _map_strategy(result: PayoffSimulationResult) -> PayoffStrategyResponse:
    return PayoffStrategyResponse(
        strategy=result.strategy_name,
        description=result.description,
        months_to_payoff=result.total_months,
        total_interest_paid=format_money(result.total_interest_paid),
        total_paid=format_money(result.total_paid),
        first_payoff_month=result.first_payoff_month,
        payoff_order=list(result.payoff_order),
        completed=result.completed,
    )


def build_strategy_comparison_response(comparison: StrategyComparison) -> StrategyComparisonResponse:
    """Render a StrategyComparison for JSON output."""
    avalanche_months = comparison.avalanche.per_debt_payoff_month
    snowball_months = comparison.snowball.per_debt_payoff_month

    return StrategyComparisonResponse(
        total_debt=format_money(comparison.total_debt),
        weighted_average_interest_rate=format_percent(comparison.weighted_average_rate),
        total_minimum_payment=format_money(comparison.total_minimum_payment),
        extra_monthly_payment=format_money(comparison.extra_monthly_payment),
        debts=[
            DebtResponse(
                id=d.id,
                name=d.name,
                debt_type=d.debt_type,
                balance=format_money(d.balance),
                interest_rate=format_percent(d.apr * 100),
                minimum_payment=format_money(d.minimum_payment),
                payoff_month_avalanche=avalanche_months.get(d.id),
                payoff_month_snowball=snowball_months.get(d.id),
            )
            for d in comparison.debts
        ],
        avalanche=_map_strategy(comparison.avalanche),
        snowball=_map_strategy(comparison.snowball),
        minimum_only=_map_strategy(comparison.minimum_only),
        interest_difference=format_money(comparison.interest_difference),
        month_difference=comparison.month_difference,
        recommended_strategy=comparison.recommended_strategy,
        recommendation=comparison.recommendation,
        warnings=list(comparison.warnings),
    )
