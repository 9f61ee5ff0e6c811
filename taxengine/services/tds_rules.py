"""Static TDS rule table (Income Tax Act, sections 194C and 194J).

Section 194C — payments to contractors / sub-contractors
    Deduct when a single payment > ₹30,000
    OR the year's payments (including this one) > ₹1,00,000.
    Individual / HUF        → 1 %
    Company / Firm / LLP    → 2 %

Section 194J — professional or technical services
    Deduct when the year's payments (including this one) > ₹50,000.
    Professional services   → 10 %
    Technical services      → 2 %
    Call-centre services    → 2 %

No PAN on file (section 206AA): at least 20 %, but only once a threshold
has been crossed.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Tuple

from taxengine.exceptions import CalculationFailed
from taxengine.models.schemas import NatureOfService, TDSSection, VendorCategory

PAN_MISSING_RATE = Decimal("20")

CONTRACTOR_SINGLE_PAYMENT_LIMIT = Decimal("30000")
CONTRACTOR_YEARLY_LIMIT = Decimal("100000")
PROFESSIONAL_YEARLY_LIMIT = Decimal("50000")


@dataclass(frozen=True)
class ThresholdRule:
    """One row of the table: which natures it covers, when it bites, at what rate.

    ``rates_by_category`` and ``rates_by_nature`` are alternatives: 194C
    varies by payee, 194J by the kind of service.
    """

    section: TDSSection
    natures: Tuple[NatureOfService, ...]
    per_payment_threshold: Optional[Decimal] = None
    yearly_threshold: Optional[Decimal] = None
    rates_by_category: Optional[Dict[VendorCategory, Decimal]] = None
    rates_by_nature: Optional[Dict[NatureOfService, Decimal]] = None

    def is_exceeded(self, payment: Decimal, prior_yearly_total: Decimal) -> bool:
        """Either limit crossed → deduct. Both limits are strict (>)."""
        if self.per_payment_threshold is not None and payment > self.per_payment_threshold:
            return True
        if self.yearly_threshold is not None and payment + prior_yearly_total > self.yearly_threshold:
            return True
        return False

    def rate_for(self, category: VendorCategory, nature: NatureOfService) -> Decimal:
        if self.rates_by_category is not None:
            rate = self.rates_by_category.get(category)
        elif self.rates_by_nature is not None:
            rate = self.rates_by_nature.get(nature)
        else:
            rate = Decimal("0")
        if rate is None:
            raise CalculationFailed(
                f"No {self.section.value} rate for {category.value} / {nature.value}"
            )
        return rate


SECTION_194C = ThresholdRule(
    section=TDSSection.SECTION_194C,
    natures=(NatureOfService.CONTRACTOR,),
    per_payment_threshold=CONTRACTOR_SINGLE_PAYMENT_LIMIT,
    yearly_threshold=CONTRACTOR_YEARLY_LIMIT,
    rates_by_category={
        VendorCategory.INDIVIDUAL: Decimal("1"),
        VendorCategory.HUF: Decimal("1"),
        VendorCategory.COMPANY: Decimal("2"),
        VendorCategory.FIRM: Decimal("2"),
        VendorCategory.LLP: Decimal("2"),
    },
)

SECTION_194J = ThresholdRule(
    section=TDSSection.SECTION_194J,
    natures=(
        NatureOfService.PROFESSIONAL_SERVICES,
        NatureOfService.TECHNICAL_SERVICES,
        NatureOfService.CALL_CENTRE_SERVICES,
    ),
    yearly_threshold=PROFESSIONAL_YEARLY_LIMIT,
    rates_by_nature={
        NatureOfService.PROFESSIONAL_SERVICES: Decimal("10"),
        NatureOfService.TECHNICAL_SERVICES: Decimal("2"),
        NatureOfService.CALL_CENTRE_SERVICES: Decimal("2"),
    },
)

THRESHOLD_TABLE: Tuple[ThresholdRule, ...] = (SECTION_194C, SECTION_194J)

_RULE_BY_NATURE: Dict[NatureOfService, ThresholdRule] = {
    nature: rule for rule in THRESHOLD_TABLE for nature in rule.natures
}


def rule_for(nature: NatureOfService) -> Optional[ThresholdRule]:
    """The rule governing *nature*, or ``None`` when no section applies."""
    return _RULE_BY_NATURE.get(nature)
