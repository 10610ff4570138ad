"""
Module: tax_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    tax calculation engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import money_kernel (values, exceptions, logging).
    MUST NOT import money_config.

Invariants enforced:
    - Decimal-only arithmetic: all monetary amounts are Money values.
    - Determinism: identical inputs always produce identical outputs.

Usage:
    from tax_engines import TaxBracket, TaxSchedule, TaxDeductionRule
"""

from tax_engines.progressive import (
    BracketTaxLine,
    ProgressiveTaxResult,
    TaxBracket,
    TaxDeduction,
    TaxDeductionCategory,
    TaxDeductionRule,
    TaxSchedule,
)
from tax_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "BracketTaxLine",
    "ProgressiveTaxResult",
    "TaxBracket",
    "TaxDeduction",
    "TaxDeductionCategory",
    "TaxDeductionRule",
    "TaxSchedule",
    "compute_input_fingerprint",
    "traced_engine",
]
