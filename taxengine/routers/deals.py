"""Routers for profitability endpoints:
    POST  /api/v1/deals:margin
    POST  /api/v1/opportunities:gp
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from taxengine.database import record_calculation
from taxengine.models.schemas import (
    MarginRequest,
    MarginResult,
    OpportunityGPRequest,
    OpportunityGPResult,
)
from taxengine.services.margin_service import compute_margin, compute_opportunity_gp

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["Deals"],
)


@router.post(
    "/deals:margin",
    response_model=MarginResult,
    summary="Gross margin, margin band and approval flag for a deal",
)
async def deal_margin(body: MarginRequest) -> MarginResult:
    """Sum the deal's cost lines and place its gross margin in a band.

    Deals that land below the lower band need director approval.
    """
    try:
        result = compute_margin(body.expectedRevenue, body.costs)
    except ValueError as exc:
        logger.warning("Rejected margin request: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc))

    await record_calculation("/deals:margin", "margin", body, result)
    return result


@router.post(
    "/opportunities:gp",
    response_model=OpportunityGPResult,
    summary="Final gross profit for an opportunity",
)
async def opportunity_gp(body: OpportunityGPRequest) -> OpportunityGPResult:
    try:
        result = compute_opportunity_gp(body.tov, body.costs)
    except ValueError as exc:
        logger.warning("Rejected opportunity GP request: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc))

    await record_calculation("/opportunities:gp", "opportunity_gp", body, result)
    return result
