"""GST and TDS totals for client invoices.

base   = baseAmount                   (2 dp, half-up)
tax    = base × gst% / 100            (2 dp, half-up)
total  = base + tax
tds    = total × tds% / 100           (2 dp, half-up)
net    = total − tds

The GST type only decides how the tax is reported (one IGST line or a
CGST + SGST pair); the aggregate tax is the same for every type.
"""

from __future__ import annotations

from decimal import Decimal

from taxengine.config import settings
from taxengine.models.schemas import GstType, InvoiceFacts, InvoiceResult
from taxengine.utils.helpers import non_negative, percentage, round_half_up


def compute_invoice_totals(invoice: InvoiceFacts) -> InvoiceResult:
    """Tax, total, GST breakdown and net receivable for one invoice.

    Raises ``InvalidInput`` for a negative base amount or a GST / TDS
    percentage outside [0, 100].
    """
    places = settings.CURRENCY_DECIMALS
    # Sub-paisa bases are settled to paise first; total is then exact.
    base = round_half_up(non_negative(invoice.baseAmount, "baseAmount"), places)
    gst_pct = percentage(invoice.gstPercent, "gstPercent")
    tds_pct = percentage(invoice.tdsPercent, "tdsPercent")

    tax = round_half_up(base * gst_pct / 100, places)
    total = base + tax

    igst = cgst = sgst = Decimal("0")
    if invoice.gstType is GstType.IGST:
        igst = tax
    elif invoice.gstType is GstType.CGST_SGST:
        cgst = round_half_up(tax / 2, places)
        sgst = tax - cgst

    tds = round_half_up(total * tds_pct / 100, places)

    return InvoiceResult(
        baseAmount=float(base),
        taxAmount=float(tax),
        totalAmount=float(total),
        igstAmount=float(igst),
        cgstAmount=float(cgst),
        sgstAmount=float(sgst),
        tdsAmount=float(tds),
        netAmount=float(total - tds),
    )
