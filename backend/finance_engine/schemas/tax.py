# backend/finance_engine/schemas/tax.py
"""
Pydantic schemas for tax insights.

Money is a cent-rounded string; percentages are percent figures
(12.5 = 12.5%) rounded to 4 decimal places, except harvesting
loss_percent which stays a decimal fraction like the lot it describes.
"""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field

from finance_engine.services.tax.types import (
    HarvestCandidate,
    HoldingTaxDetail,
    LotPosition,
    RealizedGain,
    ReturnValue,
    TaxInsights,
)
from finance_engine.utils.money import format_money, format_percent, format_ratio


class ReturnValueResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    dollar: str
    percent: str


class UnrealizedGainsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    short_term: ReturnValueResponse
    long_term: ReturnValueResponse
    total: ReturnValueResponse


class TaxLiabilityResponse(BaseModel):
    """Federal tax if every open position were sold on the evaluation date."""

    model_config = ConfigDict(from_attributes=True)

    short_term_tax: str
    long_term_tax: str
    total_federal_tax: str
    tax_rate: str = Field(..., description="Effective rate in percent")


class LotResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lot_id: str
    quantity: str
    cost_basis_per_unit: str
    cost_basis: str
    current_value: str
    gain_loss: str
    acquisition_date: date
    holding_days: int
    is_long_term: bool


class HoldingTaxResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    holding_id: int | None
    symbol: str
    name: str
    cost_basis: str
    current_value: str
    gain_loss: str
    percent_gain: str
    holding_period: str
    tax_type: str = Field(..., description="short_term, long_term or mixed")
    purchase_date: date | None = None
    lots: list[LotResponse] = Field(default_factory=list)


class HarvestCandidateResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lot_id: str
    holding_id: int | None
    symbol: str
    loss: str
    loss_percent: str = Field(..., description="Loss as a decimal fraction (-0.2 = -20%)")
    holding_period: str
    is_long_term: bool
    tax_savings: str
    replacement_suggestion: str
    wash_sale_risk: bool = Field(
        False,
        description="Same symbol bought within 30 days before the evaluation date"
    )
    reason: str


class RealizedGainResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    lot_id: str
    symbol: str
    sale_date: date
    quantity_sold: str
    proceeds: str
    cost_basis: str
    gain_loss: str
    is_long_term: bool


class TaxInsightsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    account_id: int
    as_of: date
    unrealized_gains: UnrealizedGainsResponse
    estimated_tax_liability: TaxLiabilityResponse
    holdings: list[HoldingTaxResponse] = Field(default_factory=list)
    harvesting_opportunities: list[HarvestCandidateResponse] = Field(default_factory=list)
    realized_gains: list[RealizedGainResponse] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


# =============================================================================
# MAPPERS
# =============================================================================

def _map_return(value: ReturnValue) -> ReturnValueResponse:
    return ReturnValueResponse(
        dollar=format_money(value.dollar),
        percent=format_percent(value.percent),
    )


def _map_lot(lot: LotPosition) -> LotResponse:
    return LotResponse(
        lot_id=lot.lot_id,
        quantity=str(lot.remaining_quantity),
        cost_basis_per_unit=format_money(lot.cost_basis_per_unit),
        cost_basis=format_money(lot.cost_basis),
        current_value=format_money(lot.current_value),
        gain_loss=format_money(lot.gain_loss),
        acquisition_date=lot.acquisition_date,
        holding_days=lot.holding_days,
        is_long_term=lot.is_long_term,
    )


def _map_holding(detail: HoldingTaxDetail) -> HoldingTaxResponse:
    return HoldingTaxResponse(
        holding_id=detail.holding_id,
        symbol=detail.symbol,
        name=detail.name,
        cost_basis=format_money(detail.cost_basis),
        current_value=format_money(detail.current_value),
        gain_loss=format_money(detail.gain_loss),
        percent_gain=format_percent(detail.percent_gain),
        holding_period=detail.holding_period,
        tax_type=detail.tax_type,
        purchase_date=detail.purchase_date,
        lots=[_map_lot(lot) for lot in detail.lots],
    )


def _map_candidate(candidate: HarvestCandidate) -> HarvestCandidateResponse:
    return HarvestCandidateResponse(
        lot_id=candidate.lot_id,
        holding_id=candidate.holding_id,
        symbol=candidate.symbol,
        loss=format_money(candidate.loss),
        loss_percent=format_ratio(candidate.loss_percent),
        holding_period=candidate.holding_period,
        is_long_term=candidate.is_long_term,
        tax_savings=format_money(candidate.tax_savings),
        replacement_suggestion=candidate.replacement_suggestion,
        wash_sale_risk=candidate.wash_sale_risk,
        reason=candidate.reason,
    )


def _map_realized(gain: RealizedGain) -> RealizedGainResponse:
    return RealizedGainResponse(
        lot_id=gain.lot_id,
        symbol=gain.symbol,
        sale_date=gain.sale_date,
        quantity_sold=str(gain.quantity_sold),
        proceeds=format_money(gain.proceeds),
        cost_basis=format_money(gain.cost_basis),
        gain_loss=format_money(gain.gain_loss),
        is_long_term=gain.is_long_term,
    )


def build_tax_insights_response(insights: TaxInsights) -> TaxInsightsResponse:
    """Render TaxInsights for JSON output."""
    liability = insights.estimated_tax_liability
    gains = insights.unrealized_gains

    return TaxInsightsResponse(
        account_id=insights.account_id,
        as_of=insights.as_of,
        unrealized_gains=UnrealizedGainsResponse(
            short_term=_map_return(gains.short_term),
            long_term=_map_return(gains.long_term),
            total=_map_return(gains.total),
        ),
        estimated_tax_liability=TaxLiabilityResponse(
            short_term_tax=format_money(liability.short_term_tax),
            long_term_tax=format_money(liability.long_term_tax),
            total_federal_tax=format_money(liability.total_federal_tax),
            tax_rate=format_percent(liability.tax_rate),
        ),
        holdings=[_map_holding(h) for h in insights.holdings],
        harvesting_opportunities=[_map_candidate(c) for c in insights.harvesting_opportunities],
        realized_gains=[_map_realized(g) for g in insights.realized_gains],
        warnings=list(insights.warnings),
    )
