"""Pydantic value records and request / response schemas.

Field names follow the ERP's vendor, payable, deal and invoice records
(camelCase on the wire):
  - VendorFacts + PaymentFacts  → TDSResult
  - expected revenue + DealCosts → MarginResult
  - InvoiceFacts                → InvoiceResult

Numeric fields are deliberately unconstrained here; range checks live in the
calculators so that the Python API and the HTTP API reject bad amounts with
the same ``InvalidInput`` error. Input records built directly in Python also
raise ``InvalidInput`` for unknown enum labels or non-numeric amounts; the
HTTP layer validates the same records and answers 422.
"""

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from taxengine.exceptions import InvalidInput
from taxengine.utils.helpers import normalise_label


# ── Enumerations ─────────────────────────────────────────────────────────

class VendorCategory(str, Enum):
    INDIVIDUAL = "Individual"
    HUF = "HUF"
    COMPANY = "Company"
    FIRM = "Firm"
    LLP = "LLP"

class NatureOfService(str, Enum):
    CONTRACTOR = "Contractor"
    PROFESSIONAL_SERVICES = "ProfessionalServices"
    TECHNICAL_SERVICES = "TechnicalServices"
    CALL_CENTRE_SERVICES = "CallCentreServices"
    OTHER = "Other"

class TDSSection(str, Enum):
    SECTION_194C = "194C"
    SECTION_194J = "194J"
    NONE = "None"

class PayeeType(str, Enum):
    INDIVIDUAL_HUF = "Individual/HUF"
    COMPANY_FIRM_LLP = "Company/Firm/LLP"

class ComplianceStatus(str, Enum):
    COMPLIANT = "Compliant"
    PENDING_PAN = "PendingPAN"
    DIRECTOR_OVERRIDE = "DirectorOverride"

class MarginStatus(str, Enum):
    ABOVE_THRESHOLD = "AboveThreshold"
    AT_THRESHOLD = "AtThreshold"
    BELOW_THRESHOLD = "BelowThreshold"

class GstType(str, Enum):
    IGST = "IGST"
    CGST_SGST = "CGST_SGST"
    NONE = "None"


# ── Input records ────────────────────────────────────────────────────────

class InputRecord(BaseModel):
    """Caller-supplied facts. Construction errors surface as ``InvalidInput``."""

    def __init__(self, **data):
        try:
            super().__init__(**data)
        except ValidationError as exc:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
                for err in exc.errors()
            )
            raise InvalidInput(f"Invalid {type(self).__name__}: {problems}") from exc


# ── TDS ──────────────────────────────────────────────────────────────────

class VendorFacts(InputRecord):
    """What the vendor record tells us about a payee."""
    vendorCategory: VendorCategory
    panProvided: bool = Field(..., description="Whether a PAN is on file for the vendor")
    natureOfService: NatureOfService

    @field_validator("natureOfService", mode="before")
    @classmethod
    def _accept_display_label(cls, value):
        # "Professional Services" → "ProfessionalServices"
        if isinstance(value, str):
            return normalise_label(value)
        return value

class PaymentFacts(InputRecord):
    paymentAmount: float = Field(..., description="Current payment in INR")
    vendorYearlyCumulativeTotal: float = Field(
        0.0, description="Payments to this vendor earlier in the year, excluding this one"
    )

class TDSResult(BaseModel):
    """Withholding decision for a single payment."""
    model_config = ConfigDict(frozen=True)

    section: TDSSection
    payeeType: PayeeType
    ratePercent: float = Field(..., ge=0, le=20)
    thresholdExceeded: bool
    tdsAmount: float = Field(..., description="Tax withheld, whole rupees")
    netPayable: float = Field(..., description="paymentAmount − tdsAmount")
    panMissingPenaltyApplied: bool
    complianceStatus: ComplianceStatus

class PayableEntry(InputRecord):
    """A prior payable used to derive the vendor's yearly cumulative total."""
    createdAt: datetime
    adjustedPayableAmount: float = 0.0


# ── Deal margin ──────────────────────────────────────────────────────────

class DealCosts(InputRecord):
    trainerCost: float = 0.0
    labCost: float = 0.0
    logisticsCost: float = 0.0
    contentCost: float = 0.0
    contingencyBuffer: float = 0.0
    travelCost: float = 0.0
    marketingCost: float = 0.0
    otherCost: float = 0.0

class MarginResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    totalCost: float
    netProfit: float = Field(..., description="Revenue − total cost (contribution margin)")
    grossMarginPercent: float
    marginStatus: MarginStatus
    breakEvenValue: float = Field(..., description="Revenue needed to cover costs")
    directorApprovalRequired: bool = Field(
        ..., description="Below-threshold deals are loss-making and need director sign-off"
    )


# ── Opportunity gross profit ─────────────────────────────────────────────

class OpportunityCosts(InputRecord):
    """Cost lines captured on an opportunity before it becomes a deal."""
    trainerPOValues: float = 0.0
    labPOValue: float = 0.0
    courseMaterial: float = 0.0
    royaltyCharges: float = 0.0
    travelCharges: float = 0.0
    accommodation: float = 0.0
    perDiem: float = 0.0
    localConveyance: float = 0.0
    marketingChargesPercent: float = Field(0.0, description="Percent of TOV")
    contingencyPercent: float = Field(0.0, description="Percent of TOV")

class OpportunityGPResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    marketingChargesAmount: float
    contingencyAmount: float
    totalCost: float
    finalGP: float
    gpPercent: float


# ── Invoice ──────────────────────────────────────────────────────────────

class InvoiceFacts(InputRecord):
    baseAmount: float = Field(..., description="Invoice amount before GST")
    gstType: GstType = GstType.NONE
    gstPercent: float = Field(0.0, description="GST rate, 0-100")
    tdsPercent: float = Field(0.0, description="TDS withheld by the client on the total, 0-100")

    @field_validator("gstType", mode="before")
    @classmethod
    def _accept_display_label(cls, value):
        # "CGST+SGST" → "CGST_SGST"
        if isinstance(value, str):
            return normalise_label(value)
        return value

class InvoiceResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    baseAmount: float = Field(..., description="Base amount settled to paise")
    taxAmount: float
    totalAmount: float
    igstAmount: float = 0.0
    cgstAmount: float = 0.0
    sgstAmount: float = 0.0
    tdsAmount: float = 0.0
    netAmount: float = Field(..., description="totalAmount − tdsAmount")


# ── 1. TDS calculation  (/tax:tds) ───────────────────────────────────────

class TDSRequest(BaseModel):
    vendor: VendorFacts
    payment: PaymentFacts
    priorPayables: Optional[List[PayableEntry]] = Field(
        None,
        description="When given, the yearly cumulative total is derived from these payables",
    )
    year: Optional[int] = Field(None, description="Calendar year for priorPayables (default: current)")
    directorOverride: bool = Field(
        False, description="Director has waived the missing-PAN rate for this payment"
    )

class TDSResponse(TDSResult):
    vendorYearlyCumulativeTotal: float = Field(
        ..., description="Cumulative total the threshold check was run against"
    )

# ── 2. Threshold table  (/tax:rules) ─────────────────────────────────────

class ThresholdRuleOut(BaseModel):
    section: TDSSection
    natures: List[NatureOfService]
    perPaymentThreshold: Optional[float] = None
    yearlyThreshold: Optional[float] = None
    rates: Dict[str, float] = Field(
        ..., description="Rate percent keyed by vendor category or nature of service"
    )

class RulesResponse(BaseModel):
    rules: List[ThresholdRuleOut]
    panMissingRatePercent: float

# ── 3. Deal margin  (/deals:margin) ──────────────────────────────────────

class MarginRequest(BaseModel):
    expectedRevenue: float = Field(..., description="Total order value in INR")
    costs: DealCosts = Field(default_factory=DealCosts)

# ── 4. Opportunity GP  (/opportunities:gp) ───────────────────────────────

class OpportunityGPRequest(BaseModel):
    tov: float = Field(..., description="Total order value in INR")
    costs: OpportunityCosts = Field(default_factory=OpportunityCosts)

# ── 5. Performance Report  (/performance) ────────────────────────────────

class PerformanceResponse(BaseModel):
    time: str = Field(..., description="Last response time (HH:mm:ss.SSS)")
    memory: str = Field(..., description="Current memory usage (e.g. '123.45 MB')")
    threads: int = Field(..., description="Number of active threads")
