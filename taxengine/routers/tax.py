"""Routers for TDS endpoints:
    POST  /api/v1/tax:tds
    GET   /api/v1/tax:rules
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from taxengine.database import record_calculation
from taxengine.models.schemas import (
    RulesResponse,
    TDSRequest,
    TDSResponse,
    ThresholdRuleOut,
)
from taxengine.services.tds_rules import PAN_MISSING_RATE, THRESHOLD_TABLE
from taxengine.services.tds_service import compute_tds, vendor_yearly_total

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["Tax"],
)


# ── 1. TDS calculation ───────────────────────────────────────────────────

@router.post(
    "/tax:tds",
    response_model=TDSResponse,
    summary="Compute TDS section, rate and net payable for a vendor payment",
)
async def tax_tds(body: TDSRequest) -> TDSResponse:
    """Apply sections 194C / 194J and the missing-PAN rate to one payment.

    ``directorOverride`` waives the missing-PAN rate; the result is reported
    as ``DirectorOverride``.

    If ``priorPayables`` is supplied, the vendor's yearly cumulative total is
    summed from those payables for ``year`` and replaces the value sent in
    ``payment``.
    """
    payment = body.payment
    try:
        if body.priorPayables is not None:
            cumulative = vendor_yearly_total(body.priorPayables, body.year)
            payment = payment.model_copy(update={"vendorYearlyCumulativeTotal": cumulative})
        result = compute_tds(body.vendor, payment, director_override=body.directorOverride)
    except ValueError as exc:
        logger.warning("Rejected TDS request: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc))

    if body.directorOverride:
        logger.info("Director override applied to %s payment", result.section.value)

    response = TDSResponse(
        **result.model_dump(),
        vendorYearlyCumulativeTotal=payment.vendorYearlyCumulativeTotal,
    )
    await record_calculation("/tax:tds", "tds", body, response)
    return response


# ── 2. Threshold table ───────────────────────────────────────────────────

@router.get(
    "/tax:rules",
    response_model=RulesResponse,
    summary="The TDS threshold and rate table in force",
)
async def tax_rules() -> RulesResponse:
    rules = []
    for rule in THRESHOLD_TABLE:
        rates = rule.rates_by_category or rule.rates_by_nature or {}
        per_payment = rule.per_payment_threshold
        yearly = rule.yearly_threshold
        rules.append(
            ThresholdRuleOut(
                section=rule.section,
                natures=list(rule.natures),
                perPaymentThreshold=float(per_payment) if per_payment is not None else None,
                yearlyThreshold=float(yearly) if yearly is not None else None,
                rates={key.value: float(rate) for key, rate in rates.items()},
            )
        )
    return RulesResponse(rules=rules, panMissingRatePercent=float(PAN_MISSING_RATE))
