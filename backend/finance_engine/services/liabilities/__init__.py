# backend/finance_engine/services/liabilities/__init__.py
"""
Liability analytics: loans, revolving credit and debt payoff.

Architecture:
    liabilities/
    ├── __init__.py              # This file - package exports
    ├── types.py                 # Input snapshots and result dataclasses
    ├── amortization.py          # AmortizationEngine (schedule, extra payments)
    ├── utilization.py           # CreditUtilizationCalculator
    └── payoff.py                # DebtPayoffStrategist (avalanche / snowball)

Usage:
    from finance_engine.services.liabilities import AmortizationEngine, LoanTerms

    schedule = AmortizationEngine().generate_schedule(
        LoanTerms(
            loan_id=1,
            principal=Decimal("300000"),
            annual_rate=Decimal("0.06"),
            term_months=360,
            start_date=date(2024, 1, 1),
        )
    )
    print(schedule.summary.monthly_payment)  # 1798.65
"""

from finance_engine.services.liabilities.amortization import (
    AmortizationEngine,
    calculate_monthly_payment,
    validate_loan,
)
from finance_engine.services.liabilities.payoff import (
    DebtPayoffStrategist,
    estimate_minimum_payment,
    mortgages_as_debts,
)
from finance_engine.services.liabilities.types import (
    AmortizationPeriod,
    AmortizationSchedule,
    AmortizationSummary,
    CardUtilization,
    CreditCardSnapshot,
    DebtAccount,
    LoanTerms,
    PayoffComparison,
    PayoffPlan,
    PayoffSimulationResult,
    PayoffTimelinePoint,
    PropertyMortgage,
    StrategyComparison,
    UtilizationReport,
)
from finance_engine.services.liabilities.utilization import (
    CreditUtilizationCalculator,
    utilization_band,
    utilization_ratio,
)

__all__ = [
    # Calculators
    "AmortizationEngine",
    "CreditUtilizationCalculator",
    "DebtPayoffStrategist",

    # Inputs
    "LoanTerms",
    "CreditCardSnapshot",
    "DebtAccount",
    "PropertyMortgage",

    # Results
    "AmortizationPeriod",
    "AmortizationSchedule",
    "AmortizationSummary",
    "PayoffPlan",
    "PayoffComparison",
    "CardUtilization",
    "UtilizationReport",
    "PayoffTimelinePoint",
    "PayoffSimulationResult",
    "StrategyComparison",

    # Functions
    "calculate_monthly_payment",
    "validate_loan",
    "estimate_minimum_payment",
    "mortgages_as_debts",
    "utilization_band",
    "utilization_ratio",
]
