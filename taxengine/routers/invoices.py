"""Router for invoice endpoints:
    POST  /api/v1/invoices:totals
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException

from taxengine.database import record_calculation
from taxengine.models.schemas import InvoiceFacts, InvoiceResult
from taxengine.services.invoice_service import compute_invoice_totals

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/api/v1",
    tags=["Invoices"],
)


@router.post(
    "/invoices:totals",
    response_model=InvoiceResult,
    summary="GST, invoice total and client-side TDS for an invoice",
)
async def invoice_totals(body: InvoiceFacts) -> InvoiceResult:
    """Return tax and total amounts plus the IGST or CGST/SGST split.

    The GST type never changes ``taxAmount`` or ``totalAmount``.
    """
    try:
        result = compute_invoice_totals(body)
    except ValueError as exc:
        logger.warning("Rejected invoice request: %s", exc)
        raise HTTPException(status_code=422, detail=str(exc))

    await record_calculation("/invoices:totals", "invoice", body, result)
    return result
