# backend/finance_engine/utils/money.py
"""
Decimal rounding helpers.

Calculations keep full Decimal precision; these helpers are applied only
at presentation boundaries (schemas) and where the domain itself settles
in cents (loan payments and interest charges).
"""

from decimal import Decimal, ROUND_HALF_UP

from finance_engine.services.constants import (
    CURRENCY_PRECISION,
    PERCENTAGE_PRECISION,
    RATIO_PRECISION,
)


def to_cents(value: Decimal) -> Decimal:
    """Round a money amount to the cent (half-up)."""
    return value.quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)


def to_ratio(value: Decimal) -> Decimal:
    """Round a return/ratio to 8 decimal places."""
    return value.quantize(RATIO_PRECISION, rounding=ROUND_HALF_UP)


def to_percent(value: Decimal) -> Decimal:
    """Round a percentage figure (12.3456) to 4 decimal places."""
    return value.quantize(PERCENTAGE_PRECISION, rounding=ROUND_HALF_UP)


def format_money(value: Decimal | None) -> str | None:
    """Serialize money as a cent-rounded string; None stays None."""
    if value is None:
        return None
    return str(to_cents(value))


def format_ratio(value: Decimal | None) -> str | None:
    """Serialize a ratio as an 8-dp string; None stays None."""
    if value is None:
        return None
    return str(to_ratio(value))


def format_percent(value: Decimal | None) -> str | None:
    if value is None:
        return None
    return str(to_percent(value))
