"""TDS (tax deducted at source) on vendor payments.

Steps:
    1. Pick the section from the nature of service (see ``tds_rules``).
    2. Check the section's thresholds; below them nothing is withheld.
    3. No PAN and threshold crossed → rate raised to at least 20 %, unless a
       director has overridden the PAN requirement for the payment.
    4. tds = payment × rate / 100, rounded half-up to whole rupees.
    5. net payable = payment − tds.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from taxengine.models.schemas import (
    ComplianceStatus,
    PayableEntry,
    PayeeType,
    PaymentFacts,
    TDSResult,
    TDSSection,
    VendorCategory,
    VendorFacts,
)
from taxengine.services.tds_rules import PAN_MISSING_RATE, rule_for
from taxengine.utils.helpers import non_negative, round_currency, round_half_up

_INDIVIDUAL_PAYEES = (VendorCategory.INDIVIDUAL, VendorCategory.HUF)


def payee_type(category: VendorCategory) -> PayeeType:
    if category in _INDIVIDUAL_PAYEES:
        return PayeeType.INDIVIDUAL_HUF
    return PayeeType.COMPANY_FIRM_LLP


def _compliance_status(penalty: bool, director_override: bool) -> ComplianceStatus:
    if director_override:
        return ComplianceStatus.DIRECTOR_OVERRIDE
    if penalty:
        return ComplianceStatus.PENDING_PAN
    return ComplianceStatus.COMPLIANT


def compute_tds(
    vendor: VendorFacts,
    payment: PaymentFacts,
    director_override: bool = False,
) -> TDSResult:
    """Compute section, rate and amounts for one vendor payment.

    With *director_override* the payment is taxed as if a PAN were on file
    and the result is marked ``DirectorOverride``.

    Raises ``InvalidInput`` for negative or non-finite amounts and
    ``CalculationFailed`` when the rule table has no rate for the vendor.
    """
    amount = non_negative(payment.paymentAmount, "paymentAmount")
    prior_total = non_negative(
        payment.vendorYearlyCumulativeTotal, "vendorYearlyCumulativeTotal"
    )

    rule = rule_for(vendor.natureOfService)
    if rule is None:
        section = TDSSection.NONE
        exceeded = False
        rate = Decimal("0")
    else:
        section = rule.section
        exceeded = rule.is_exceeded(amount, prior_total)
        rate = rule.rate_for(vendor.vendorCategory, vendor.natureOfService) if exceeded else Decimal("0")

    # Missing PAN only matters once the payment is actually taxable.
    penalty = exceeded and not vendor.panProvided and not director_override
    if penalty:
        rate = max(rate, PAN_MISSING_RATE)

    tds_amount = round_half_up(amount * rate / 100)
    net_payable = amount - tds_amount

    return TDSResult(
        section=section,
        payeeType=payee_type(vendor.vendorCategory),
        ratePercent=float(rate),
        thresholdExceeded=exceeded,
        tdsAmount=float(tds_amount),
        netPayable=round_currency(net_payable),
        panMissingPenaltyApplied=penalty,
        complianceStatus=_compliance_status(penalty, director_override),
    )


def vendor_yearly_total(
    payables: Iterable[PayableEntry],
    year: Optional[int] = None,
) -> float:
    """Sum ``adjustedPayableAmount`` over payables created in *year*.

    *year* defaults to the current calendar year. The result is the
    ``vendorYearlyCumulativeTotal`` for the next payment to the vendor.
    """
    if year is None:
        year = date.today().year

    total = Decimal("0")
    for entry in payables:
        if entry.createdAt.year != year:
            continue
        total += non_negative(entry.adjustedPayableAmount, "adjustedPayableAmount")
    return round_currency(total)
