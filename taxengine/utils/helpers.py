"""Shared utility functions — amount validation, rounding, label handling."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal, localcontext
from typing import Union

from taxengine.config import settings
from taxengine.exceptions import InvalidInput

Number = Union[int, float, Decimal]


# ── Amount validation ─────────────────────────────────────────────────────

def to_decimal(value: Number, field: str) -> Decimal:
    """Convert *value* to ``Decimal`` via its shortest string form.

    Raises ``InvalidInput`` for booleans, NaN and infinities.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float, Decimal)):
        raise InvalidInput(f"{field} must be a number, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidInput(f"{field} must be finite, got {value}")
    if isinstance(value, Decimal) and not value.is_finite():
        raise InvalidInput(f"{field} must be finite, got {value}")
    return Decimal(str(value))


def non_negative(value: Number, field: str) -> Decimal:
    """Return *value* as ``Decimal``, rejecting negatives."""
    amount = to_decimal(value, field)
    if amount < 0:
        raise InvalidInput(f"{field} must not be negative, got {value}")
    return amount


def percentage(value: Number, field: str) -> Decimal:
    """Return *value* as ``Decimal``, rejecting anything outside [0, 100]."""
    pct = to_decimal(value, field)
    if pct < 0 or pct > 100:
        raise InvalidInput(f"{field} must be within [0, 100], got {value}")
    return pct


# ── Rounding ──────────────────────────────────────────────────────────────

def round_half_up(value: Decimal, decimals: int = 0) -> Decimal:
    """Round half away from zero to *decimals* places (0.5 → 1, 2.345 → 2.35).

    Precision grows with the magnitude of *value*, so crore-scale and larger
    amounts quantize instead of overflowing the default 28-digit context.
    """
    quantum = Decimal(1).scaleb(-decimals)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, value.adjusted() + decimals + 2)
        return value.quantize(quantum, rounding=ROUND_HALF_UP)


def round_currency(value: Number, decimals: int = settings.CURRENCY_DECIMALS) -> float:
    """Round to *decimals* places, half-up, and hand back a plain float."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return float(round_half_up(value, decimals))


# ── Labels ────────────────────────────────────────────────────────────────

def normalise_label(value: str) -> str:
    """Collapse ERP display labels onto enum values.

    ``"Professional Services"`` → ``"ProfessionalServices"``,
    ``"CGST+SGST"`` → ``"CGST_SGST"``.
    """
    return "".join(value.split()).replace("+", "_")
