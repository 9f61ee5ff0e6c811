# Test type: Configuration
# Validation to be executed: Shared fixtures for all test modules
# Command: pytest test/ -v (this file is auto-loaded by pytest)

"""Shared pytest fixtures for the ERP Tax Rule Engine test suite."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from taxengine.main import app
from taxengine.models.schemas import (
    DealCosts,
    NatureOfService,
    PaymentFacts,
    VendorCategory,
    VendorFacts,
)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def client():
    """Async HTTP client bound to the FastAPI app (no real server needed)."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://testserver") as ac:
        yield ac


# ── Sample data fixtures ─────────────────────────────────────────────────

@pytest.fixture
def company_contractor():
    """Company vendor, PAN on file, contracting work."""
    return VendorFacts(
        vendorCategory=VendorCategory.COMPANY,
        panProvided=True,
        natureOfService=NatureOfService.CONTRACTOR,
    )


@pytest.fixture
def individual_professional_no_pan():
    """Freelance trainer billing professional fees without a PAN."""
    return VendorFacts(
        vendorCategory=VendorCategory.INDIVIDUAL,
        panProvided=False,
        natureOfService=NatureOfService.PROFESSIONAL_SERVICES,
    )


@pytest.fixture
def first_payment_50k():
    return PaymentFacts(paymentAmount=50_000, vendorYearlyCumulativeTotal=0)


@pytest.fixture
def deal_costs_80k():
    """Cost lines summing to ₹80,000."""
    return DealCosts(
        trainerCost=40_000,
        labCost=10_000,
        logisticsCost=5_000,
        contentCost=5_000,
        contingencyBuffer=5_000,
        travelCost=8_000,
        marketingCost=4_000,
        otherCost=3_000,
    )
