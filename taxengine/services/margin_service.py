"""Deal margin and opportunity gross-profit calculations.

Deal margin:
    total cost      = Σ cost lines
    net profit      = revenue − total cost
    gross margin %  = net profit / revenue × 100

Margin bands (lower bound belongs to the higher band):
    ≥ 20 %  → AboveThreshold
    ≥ 10 %  → AtThreshold
    else    → BelowThreshold   (loss-making, director approval required)
"""

from __future__ import annotations

from decimal import Decimal

from taxengine.config import settings
from taxengine.exceptions import InvalidInput
from taxengine.models.schemas import (
    DealCosts,
    MarginResult,
    MarginStatus,
    OpportunityCosts,
    OpportunityGPResult,
)
from taxengine.utils.helpers import non_negative, percentage, round_currency, to_decimal

_DEAL_COST_FIELDS = (
    "trainerCost",
    "labCost",
    "logisticsCost",
    "contentCost",
    "contingencyBuffer",
    "travelCost",
    "marketingCost",
    "otherCost",
)

_OPPORTUNITY_COST_FIELDS = (
    "trainerPOValues",
    "labPOValue",
    "courseMaterial",
    "royaltyCharges",
    "travelCharges",
    "accommodation",
    "perDiem",
    "localConveyance",
)


def _positive_revenue(value: float, field: str) -> Decimal:
    revenue = to_decimal(value, field)
    if revenue <= 0:
        raise InvalidInput(f"{field} must be greater than zero, got {value}")
    return revenue


def margin_status(gross_margin_percent: Decimal) -> MarginStatus:
    """Map an exact margin percentage onto its band."""
    if gross_margin_percent >= Decimal(str(settings.MARGIN_ABOVE_THRESHOLD_PERCENT)):
        return MarginStatus.ABOVE_THRESHOLD
    if gross_margin_percent >= Decimal(str(settings.MARGIN_AT_THRESHOLD_PERCENT)):
        return MarginStatus.AT_THRESHOLD
    return MarginStatus.BELOW_THRESHOLD


def compute_margin(expected_revenue: float, costs: DealCosts) -> MarginResult:
    """Gross margin and band for a deal.

    Raises ``InvalidInput`` when revenue is not positive or a cost is negative.
    """
    revenue = _positive_revenue(expected_revenue, "expectedRevenue")
    total_cost = sum(
        (non_negative(getattr(costs, name), name) for name in _DEAL_COST_FIELDS),
        Decimal("0"),
    )
    net_profit = revenue - total_cost
    margin = net_profit / revenue * 100
    status = margin_status(margin)

    return MarginResult(
        totalCost=round_currency(total_cost),
        netProfit=round_currency(net_profit),
        grossMarginPercent=round_currency(margin),
        marginStatus=status,
        breakEvenValue=round_currency(total_cost),
        directorApprovalRequired=status is MarginStatus.BELOW_THRESHOLD,
    )


def compute_opportunity_gp(tov: float, costs: OpportunityCosts) -> OpportunityGPResult:
    """Final GP for an opportunity.

    Marketing charges and contingency are entered as a percentage of the
    total order value (TOV) and converted to amounts before summing.
    """
    order_value = _positive_revenue(tov, "tov")
    marketing = order_value * percentage(costs.marketingChargesPercent, "marketingChargesPercent") / 100
    contingency = order_value * percentage(costs.contingencyPercent, "contingencyPercent") / 100

    total_cost = marketing + contingency
    for name in _OPPORTUNITY_COST_FIELDS:
        total_cost += non_negative(getattr(costs, name), name)

    final_gp = order_value - total_cost

    return OpportunityGPResult(
        marketingChargesAmount=round_currency(marketing),
        contingencyAmount=round_currency(contingency),
        totalCost=round_currency(total_cost),
        finalGP=round_currency(final_gp),
        gpPercent=round_currency(final_gp / order_value * 100),
    )
