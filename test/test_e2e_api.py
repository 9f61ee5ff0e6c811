# Test type: End-to-End (E2E) API
# Validation to be executed: Full HTTP round-trip for every API endpoint
# Command: pytest test/test_e2e_api.py -v

"""End-to-end tests that exercise every API endpoint via HTTP using the ASGI
transport (no real server process required).  These tests verify request/
response contracts, status codes, and payload shapes.
"""

from __future__ import annotations

import pytest

pytestmark = pytest.mark.anyio


# ── Helper payloads ──────────────────────────────────────────────────────

BASE = "/api/v1"

COMPANY_CONTRACTOR_BODY = {
    "vendor": {"vendorCategory": "Company", "panProvided": True, "natureOfService": "Contractor"},
    "payment": {"paymentAmount": 50000, "vendorYearlyCumulativeTotal": 0},
}

DEAL_BODY = {
    "expectedRevenue": 100000,
    "costs": {
        "trainerCost": 40000,
        "labCost": 10000,
        "logisticsCost": 5000,
        "contentCost": 5000,
        "contingencyBuffer": 5000,
        "travelCost": 8000,
        "marketingCost": 4000,
        "otherCost": 3000,
    },
}


# ══════════════════════════════════════════════════════════════════════════
# 1.  Health Check
# ══════════════════════════════════════════════════════════════════════════


async def test_health_check(client):
    """GET /health returns 200 with healthy status."""
    resp = await client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"


# ══════════════════════════════════════════════════════════════════════════
# 2.  POST /tax:tds
# ══════════════════════════════════════════════════════════════════════════


async def test_tds_company_contractor(client):
    """Company contractor, ₹50,000, PAN on file → 194C at 2 %."""
    resp = await client.post(f"{BASE}/tax:tds", json=COMPANY_CONTRACTOR_BODY)
    assert resp.status_code == 200
    data = resp.json()
    assert data["section"] == "194C"
    assert data["ratePercent"] == 2
    assert data["tdsAmount"] == 1000
    assert data["netPayable"] == 49000
    assert data["complianceStatus"] == "Compliant"
    assert data["payeeType"] == "Company/Firm/LLP"
    assert data["vendorYearlyCumulativeTotal"] == 0


async def test_tds_missing_pan_with_display_label(client):
    """ERP label 'Professional Services' is accepted; no PAN → 20 %."""
    body = {
        "vendor": {
            "vendorCategory": "Individual",
            "panProvided": False,
            "natureOfService": "Professional Services",
        },
        "payment": {"paymentAmount": 1, "vendorYearlyCumulativeTotal": 50000},
    }
    resp = await client.post(f"{BASE}/tax:tds", json=body)
    assert resp.status_code == 200
    data = resp.json()
    assert data["section"] == "194J"
    assert data["ratePercent"] == 20
    assert data["panMissingPenaltyApplied"] is True
    assert data["complianceStatus"] == "PendingPAN"


async def test_tds_director_override_waives_pan_rate(client):
    body = {
        "vendor": {
            "vendorCategory": "Individual",
            "panProvided": False,
            "natureOfService": "ProfessionalServices",
        },
        "payment": {"paymentAmount": 60000, "vendorYearlyCumulativeTotal": 0},
        "directorOverride": True,
    }
    resp = await client.post(f"{BASE}/tax:tds", json=body)
    assert resp.status_code == 200
    data = resp.json()
    assert data["ratePercent"] == 10
    assert data["tdsAmount"] == 6000
    assert data["panMissingPenaltyApplied"] is False
    assert data["complianceStatus"] == "DirectorOverride"


async def test_tds_very_large_payment(client):
    body = {
        **COMPANY_CONTRACTOR_BODY,
        "payment": {"paymentAmount": 1e30, "vendorYearlyCumulativeTotal": 0},
    }
    resp = await client.post(f"{BASE}/tax:tds", json=body)
    assert resp.status_code == 200
    assert resp.json()["tdsAmount"] == 2e28


async def test_tds_prior_payables_override_cumulative(client):
    """Cumulative total is summed from the year's payables."""
    body = {
        **COMPANY_CONTRACTOR_BODY,
        "payment": {"paymentAmount": 20000, "vendorYearlyCumulativeTotal": 0},
        "priorPayables": [
            {"createdAt": "2026-02-01T10:00:00", "adjustedPayableAmount": 50000},
            {"createdAt": "2026-05-01T10:00:00", "adjustedPayableAmount": 40000},
            {"createdAt": "2025-11-01T10:00:00", "adjustedPayableAmount": 90000},
        ],
        "year": 2026,
    }
    resp = await client.post(f"{BASE}/tax:tds", json=body)
    assert resp.status_code == 200
    data = resp.json()
    assert data["vendorYearlyCumulativeTotal"] == 90000
    assert data["thresholdExceeded"] is True
    assert data["tdsAmount"] == 400


async def test_tds_below_threshold(client):
    body = {
        **COMPANY_CONTRACTOR_BODY,
        "payment": {"paymentAmount": 30000, "vendorYearlyCumulativeTotal": 0},
    }
    resp = await client.post(f"{BASE}/tax:tds", json=body)
    data = resp.json()
    assert data["thresholdExceeded"] is False
    assert data["tdsAmount"] == 0
    assert data["netPayable"] == 30000


async def test_tds_negative_amount_returns_422(client):
    body = {
        **COMPANY_CONTRACTOR_BODY,
        "payment": {"paymentAmount": -1, "vendorYearlyCumulativeTotal": 0},
    }
    resp = await client.post(f"{BASE}/tax:tds", json=body)
    assert resp.status_code == 422
    assert "paymentAmount" in resp.json()["detail"]


async def test_tds_unknown_nature_returns_422(client):
    body = {
        **COMPANY_CONTRACTOR_BODY,
        "vendor": {"vendorCategory": "Company", "panProvided": True, "natureOfService": "Catering"},
    }
    resp = await client.post(f"{BASE}/tax:tds", json=body)
    assert resp.status_code == 422


async def test_tds_missing_vendor_returns_422(client):
    resp = await client.post(f"{BASE}/tax:tds", json={"payment": {"paymentAmount": 100}})
    assert resp.status_code == 422


async def test_tds_calculation_failed_returns_500(client, monkeypatch):
    """A rule-table gap surfaces as a 500, never as a zero deduction."""
    from taxengine.exceptions import CalculationFailed
    from taxengine.routers import tax

    def _broken(vendor, payment, director_override=False):
        raise CalculationFailed("No 194C rate for Company / Contractor")

    monkeypatch.setattr(tax, "compute_tds", _broken)
    resp = await client.post(f"{BASE}/tax:tds", json=COMPANY_CONTRACTOR_BODY)
    assert resp.status_code == 500
    assert "Calculation failed" in resp.json()["detail"]


# ══════════════════════════════════════════════════════════════════════════
# 3.  GET /tax:rules
# ══════════════════════════════════════════════════════════════════════════


async def test_rules_table(client):
    resp = await client.get(f"{BASE}/tax:rules")
    assert resp.status_code == 200
    data = resp.json()
    assert data["panMissingRatePercent"] == 20

    by_section = {rule["section"]: rule for rule in data["rules"]}
    assert set(by_section) == {"194C", "194J"}

    c = by_section["194C"]
    assert c["perPaymentThreshold"] == 30000
    assert c["yearlyThreshold"] == 100000
    assert c["rates"]["Individual"] == 1
    assert c["rates"]["LLP"] == 2

    j = by_section["194J"]
    assert j["perPaymentThreshold"] is None
    assert j["yearlyThreshold"] == 50000
    assert j["rates"]["ProfessionalServices"] == 10
    assert "CallCentreServices" in j["natures"]


# ══════════════════════════════════════════════════════════════════════════
# 4.  POST /deals:margin
# ══════════════════════════════════════════════════════════════════════════


async def test_margin_boundary_above(client):
    resp = await client.post(f"{BASE}/deals:margin", json=DEAL_BODY)
    assert resp.status_code == 200
    data = resp.json()
    assert data["totalCost"] == 80000
    assert data["grossMarginPercent"] == 20
    assert data["marginStatus"] == "AboveThreshold"
    assert data["directorApprovalRequired"] is False


async def test_margin_below_threshold_flags_director(client):
    body = {"expectedRevenue": 100000, "costs": {"trainerCost": 95000}}
    resp = await client.post(f"{BASE}/deals:margin", json=body)
    data = resp.json()
    assert data["marginStatus"] == "BelowThreshold"
    assert data["directorApprovalRequired"] is True


async def test_margin_negative_revenue_returns_422(client):
    body = {**DEAL_BODY, "expectedRevenue": -100}
    resp = await client.post(f"{BASE}/deals:margin", json=body)
    assert resp.status_code == 422
    assert "expectedRevenue" in resp.json()["detail"]


# ══════════════════════════════════════════════════════════════════════════
# 5.  POST /opportunities:gp
# ══════════════════════════════════════════════════════════════════════════


async def test_opportunity_gp(client):
    body = {
        "tov": 200000,
        "costs": {
            "trainerPOValues": 80000,
            "labPOValue": 20000,
            "marketingChargesPercent": 5,
            "contingencyPercent": 3,
        },
    }
    resp = await client.post(f"{BASE}/opportunities:gp", json=body)
    assert resp.status_code == 200
    data = resp.json()
    assert data["marketingChargesAmount"] == 10000
    assert data["contingencyAmount"] == 6000
    assert data["finalGP"] == 84000
    assert data["gpPercent"] == 42


async def test_opportunity_gp_zero_tov_returns_422(client):
    resp = await client.post(f"{BASE}/opportunities:gp", json={"tov": 0})
    assert resp.status_code == 422


# ══════════════════════════════════════════════════════════════════════════
# 6.  POST /invoices:totals
# ══════════════════════════════════════════════════════════════════════════


async def test_invoice_totals(client):
    body = {"baseAmount": 500000, "gstType": "CGST+SGST", "gstPercent": 18}
    resp = await client.post(f"{BASE}/invoices:totals", json=body)
    assert resp.status_code == 200
    data = resp.json()
    assert data["taxAmount"] == 90000
    assert data["totalAmount"] == 590000
    assert data["cgstAmount"] == 45000
    assert data["sgstAmount"] == 45000
    assert data["igstAmount"] == 0
    assert data["baseAmount"] == 500000


async def test_invoice_unknown_gst_type_returns_422(client):
    body = {"baseAmount": 1000, "gstType": "VAT", "gstPercent": 18}
    resp = await client.post(f"{BASE}/invoices:totals", json=body)
    assert resp.status_code == 422


async def test_invoice_gst_over_100_returns_422(client):
    body = {"baseAmount": 1000, "gstType": "IGST", "gstPercent": 150}
    resp = await client.post(f"{BASE}/invoices:totals", json=body)
    assert resp.status_code == 422
    assert "gstPercent" in resp.json()["detail"]


# ══════════════════════════════════════════════════════════════════════════
# 7.  GET /performance
# ══════════════════════════════════════════════════════════════════════════


async def test_performance_endpoint(client):
    """Performance endpoint returns valid metrics."""
    await client.get("/health")
    resp = await client.get(f"{BASE}/performance")
    assert resp.status_code == 200
    data = resp.json()

    assert "MB" in data["memory"]
    assert data["threads"] >= 1

    hours, minutes, rest = data["time"].split(":")
    secs, millis = rest.split(".")
    assert len(hours) == 2 and len(minutes) == 2
    assert len(secs) == 2 and len(millis) == 3


async def test_response_time_header(client):
    resp = await client.get("/health")
    assert "x-response-time-ms" in resp.headers
