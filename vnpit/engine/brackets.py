"""
brackets.py — progressive PIT bracket tables and the bracket tax calculator.

Pure Python, deterministic, no I/O. Same input → same output.

Two regimes:
  OLD: 7 brackets  5/10/15/20/25/30/35%  at 0/5/10/18/32/52/80 M
  NEW: 5 brackets  5/10/20/30/35%        at 0/10/30/60/100 M   (effective 2026-07-01)

Amounts are MONTHLY VND. Both tables are validated at import time — a broken
table is a configuration bug and must fail fast, never per call.
"""
from __future__ import annotations

import math
from typing import Sequence

from vnpit.engine.schemas import BracketBreakdown, TaxBracket

INF = float("inf")

# Tolerance for the quick-deduction consistency check (VND)
_QUICK_DEDUCTION_TOLERANCE = 1e-6

# ===========================================================================
# BRACKET TABLES — (min, max, rate, quick_deduction)
# ===========================================================================

OLD_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(min=0,          max=5_000_000,  rate=0.05, quick_deduction=0),
    TaxBracket(min=5_000_000,  max=10_000_000, rate=0.10, quick_deduction=250_000),
    TaxBracket(min=10_000_000, max=18_000_000, rate=0.15, quick_deduction=750_000),
    TaxBracket(min=18_000_000, max=32_000_000, rate=0.20, quick_deduction=1_650_000),
    TaxBracket(min=32_000_000, max=52_000_000, rate=0.25, quick_deduction=3_250_000),
    TaxBracket(min=52_000_000, max=80_000_000, rate=0.30, quick_deduction=5_850_000),
    TaxBracket(min=80_000_000, max=INF,        rate=0.35, quick_deduction=9_850_000),
)

NEW_TAX_BRACKETS: tuple[TaxBracket, ...] = (
    TaxBracket(min=0,           max=10_000_000,  rate=0.05, quick_deduction=0),
    TaxBracket(min=10_000_000,  max=30_000_000,  rate=0.10, quick_deduction=500_000),
    TaxBracket(min=30_000_000,  max=60_000_000,  rate=0.20, quick_deduction=3_500_000),
    TaxBracket(min=60_000_000,  max=100_000_000, rate=0.30, quick_deduction=9_500_000),
    TaxBracket(min=100_000_000, max=INF,         rate=0.35, quick_deduction=14_500_000),
)


# ===========================================================================
# TABLE VALIDATION (startup assertion)
# ===========================================================================

def validate_bracket_table(brackets: Sequence[TaxBracket]) -> None:
    """
    Check that a bracket table is usable by both calculation methods.

    Raises:
        ValueError: empty table, first min != 0, last max != inf, gap or overlap
            between neighbours, rate outside 0..1, decreasing rates, or a
            quick_deduction that does not reproduce the progressive result.
    """
    if not brackets:
        raise ValueError("Bracket table must contain at least one bracket")
    if brackets[0].min != 0:
        raise ValueError(f"First bracket must start at 0, got {brackets[0].min}")
    if not math.isinf(brackets[-1].max):
        raise ValueError(f"Last bracket must be unbounded, got max={brackets[-1].max}")

    cumulative_tax = 0.0
    for i, b in enumerate(brackets):
        if not 0 <= b.rate <= 1:
            raise ValueError(f"Bracket {i + 1}: rate {b.rate} outside 0..1")
        if b.max <= b.min:
            raise ValueError(f"Bracket {i + 1}: max {b.max} must exceed min {b.min}")
        if i > 0:
            prev = brackets[i - 1]
            if prev.max != b.min:
                raise ValueError(
                    f"Bracket {i + 1}: min {b.min} does not continue previous max {prev.max}"
                )
            if b.rate < prev.rate:
                raise ValueError(f"Bracket {i + 1}: rate {b.rate} lower than previous {prev.rate}")

        expected_quick = b.min * b.rate - cumulative_tax
        if abs(expected_quick - b.quick_deduction) > _QUICK_DEDUCTION_TOLERANCE:
            raise ValueError(
                f"Bracket {i + 1}: quick_deduction {b.quick_deduction} "
                f"should be {expected_quick}"
            )
        if not math.isinf(b.max):
            cumulative_tax += (b.max - b.min) * b.rate


validate_bracket_table(OLD_TAX_BRACKETS)
validate_bracket_table(NEW_TAX_BRACKETS)


# ===========================================================================
# BRACKET TAX CALCULATOR
# ===========================================================================

def calculate_bracket_tax(
    taxable_income: float,
    brackets: Sequence[TaxBracket],
) -> tuple[float, list[BracketBreakdown]]:
    """
    Progressive method: walk the brackets bottom-up, taxing each slice at its rate.

    Returns (total_tax, breakdown). taxable_income <= 0 gives (0.0, []).
    The top bracket's to_amount is reported as from + slice, never infinity.
    """
    if taxable_income <= 0:
        return 0.0, []

    breakdown: list[BracketBreakdown] = []
    remaining = taxable_income
    total_tax = 0.0

    for i, b in enumerate(brackets):
        if remaining <= 0:
            break
        taxable_in_bracket = min(remaining, b.max - b.min)
        tax_in_bracket = taxable_in_bracket * b.rate

        breakdown.append(BracketBreakdown(
            bracket=i + 1,
            from_amount=b.min,
            to_amount=b.min + taxable_in_bracket if math.isinf(b.max) else b.max,
            rate=b.rate,
            taxable_amount=taxable_in_bracket,
            tax_amount=tax_in_bracket,
        ))

        total_tax += tax_in_bracket
        remaining -= taxable_in_bracket

    return total_tax, breakdown


def calculate_quick_tax(taxable_income: float, brackets: Sequence[TaxBracket]) -> float:
    """Quick formula: income * rate - quick_deduction of the highest bracket reached."""
    if taxable_income <= 0:
        return 0.0
    for b in reversed(brackets):
        if taxable_income > b.min:
            return taxable_income * b.rate - b.quick_deduction
    return 0.0


def marginal_rate(taxable_income: float, brackets: Sequence[TaxBracket]) -> float:
    """Rate of the bracket the last VND of taxable income falls into (0 when nothing is taxable)."""
    if taxable_income <= 0:
        return 0.0
    for b in reversed(brackets):
        if taxable_income > b.min:
            return b.rate
    return brackets[0].rate
