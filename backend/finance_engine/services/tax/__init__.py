# backend/finance_engine/services/tax/__init__.py
"""
Tax-lot engine and tax insights.

Usage:
    from finance_engine.services.tax import TaxInsightsService

    insights = TaxInsightsService().calculate(
        account_id=1,
        holdings=holdings,
        transactions=transactions,
        as_of=date(2024, 12, 31),
    )
    for candidate in insights.harvesting_opportunities:
        print(candidate.symbol, candidate.tax_savings)
"""

from finance_engine.services.tax.lots import TaxLotEngine, is_long_term
from finance_engine.services.tax.service import (
    TaxInsightsService,
    format_holding_period,
    suggest_replacement,
)
from finance_engine.services.tax.types import (
    EstimatedTaxLiability,
    HarvestCandidate,
    HoldingTaxDetail,
    Lot,
    LotPosition,
    LotReplay,
    RealizedGain,
    ReturnValue,
    TaxInsights,
    UnrealizedGainsSummary,
)

__all__ = [
    "TaxLotEngine",
    "TaxInsightsService",
    "is_long_term",
    "format_holding_period",
    "suggest_replacement",
    "EstimatedTaxLiability",
    "HarvestCandidate",
    "HoldingTaxDetail",
    "Lot",
    "LotPosition",
    "LotReplay",
    "RealizedGain",
    "ReturnValue",
    "TaxInsights",
    "UnrealizedGainsSummary",
]
