# backend/finance_engine/services/liabilities/utilization.py
"""
Credit utilization for revolving accounts.

Formulas:
    Per card:   utilization = max(0, balance) / credit_limit × 100
    Aggregate:  Σ max(0, balance) / Σ credit_limit × 100

Bands (percent):
    < 10        excellent
    10 - < 30   good
    30 - 50     fair
    > 50        poor

A card with a zero limit has no ratio of its own ("N/A") but still adds
its balance to the aggregate numerator. Credit balances (negative) count
as zero, so utilization never goes below 0.
"""

import logging
from decimal import Decimal

from finance_engine.services.constants import (
    HUNDRED,
    UTILIZATION_EXCELLENT_BELOW,
    UTILIZATION_FAIR_UP_TO,
    UTILIZATION_GOOD_BELOW,
    UTILIZATION_NOT_APPLICABLE,
    ZERO,
)
from finance_engine.services.exceptions import ValidationError
from finance_engine.services.liabilities.types import (
    CardUtilization,
    CreditCardSnapshot,
    UtilizationReport,
)

logger = logging.getLogger(__name__)

BAND_COLORS: dict[str, str] = {
    "excellent": "green",
    "good": "green",
    "fair": "yellow",
    "poor": "red",
    UTILIZATION_NOT_APPLICABLE: "gray",
}


def utilization_ratio(balance: Decimal, credit_limit: Decimal) -> Decimal | None:
    """Utilization percentage, or None when there is no limit to measure against."""
    if credit_limit == ZERO:
        return None
    return max(ZERO, balance) / credit_limit * HUNDRED


def utilization_band(ratio: Decimal | None) -> str:
    if ratio is None:
        return UTILIZATION_NOT_APPLICABLE
    if ratio < UTILIZATION_EXCELLENT_BELOW:
        return "excellent"
    if ratio < UTILIZATION_GOOD_BELOW:
        return "good"
    if ratio <= UTILIZATION_FAIR_UP_TO:
        return "fair"
    return "poor"


def recommendations_for(ratio: Decimal | None) -> list[str]:
    """Guidance text for a utilization percentage."""
    if ratio is None:
        return []
    if ratio > 75:
        return [
            "Consider paying down balance to below 50% for better credit score impact",
            "Avoid making new purchases until balance is reduced",
        ]
    if ratio > 50:
        return [
            "Try to keep utilization below 30% for optimal credit score",
            "Consider paying more than the minimum each month",
        ]
    if ratio > 30:
        return ["You're doing well! Aim to keep utilization under 30%"]
    return ["Excellent utilization! Keep maintaining low balances"]


class CreditUtilizationCalculator:
    """Per-card and aggregate utilization with risk bands."""

    def calculate(self, cards: list[CreditCardSnapshot]) -> UtilizationReport:
        """
        Calculate utilization across a user's revolving accounts.

        Raises:
            ValidationError: If any card has a negative credit limit
        """
        for card in cards:
            if card.credit_limit < ZERO:
                raise ValidationError(
                    f"Credit limit cannot be negative for account {card.account_id}, "
                    f"got {card.credit_limit}",
                    field="credit_limit",
                    value=card.credit_limit,
                )

        results = [self._card(card) for card in cards]

        total_balance = sum((max(ZERO, c.balance) for c in cards), ZERO)
        total_limit = sum((c.credit_limit for c in cards), ZERO)
        total_available = sum((r.available_credit for r in results), ZERO)

        ratio = utilization_ratio(total_balance, total_limit)
        band = utilization_band(ratio)

        logger.debug(
            f"Utilization across {len(cards)} cards: {ratio if ratio is not None else 'N/A'} ({band})"
        )

        return UtilizationReport(
            cards=results,
            total_balance=total_balance,
            total_credit_limit=total_limit,
            total_available_credit=total_available,
            utilization=ratio,
            band=band,
            color=BAND_COLORS[band],
            recommendations=recommendations_for(ratio),
        )

    @staticmethod
    def _card(card: CreditCardSnapshot) -> CardUtilization:
        ratio = utilization_ratio(card.balance, card.credit_limit)
        band = utilization_band(ratio)

        return CardUtilization(
            account_id=card.account_id,
            name=card.name or str(card.account_id),
            balance=card.balance,
            credit_limit=card.credit_limit,
            available_credit=max(ZERO, card.credit_limit - card.balance),
            utilization=ratio,
            band=band,
            color=BAND_COLORS[band],
            recommendations=recommendations_for(ratio),
        )
