"""Errors raised by the rule engine.

Calculators never fall back to a zero result: bad input raises
``InvalidInput`` and a rule table that cannot answer raises
``CalculationFailed``.
"""

from __future__ import annotations


class TaxEngineError(Exception):
    """Base class for every rule-engine error."""


class InvalidInput(TaxEngineError, ValueError):
    """Negative amounts, out-of-range percentages or unknown enum values."""


class CalculationFailed(TaxEngineError, RuntimeError):
    """The rule table has no answer for inputs it claims to cover."""
