"""
tax_engine.py — ForwardTaxEngine: gross (or declared) income → full TaxResult.

Pure Python, deterministic, no I/O. Same input → same output
(the only implicit input is today's date when as_of is omitted, which selects
the insurance caps in force).

Dual-basis rule (CRITICAL):
  declared_salary, when given, is the basis for BOTH insurance and tax.
  gross_income is ALWAYS the basis for net income — net is what the employee
  actually takes home from the real salary.
"""
from __future__ import annotations

import logging

from vnpit.engine.brackets import calculate_bracket_tax
from vnpit.engine.deductions import (
    calculate_allowances_breakdown,
    combine_other_deductions,
    resolve_deductions,
)
from vnpit.engine.insurance import calculate_insurance
from vnpit.engine.regimes import get_regime_config
from vnpit.engine.schemas import Regime, RegimeComparison, TaxInput, TaxRangePoint, TaxResult

logger = logging.getLogger(__name__)

MAX_RANGE_POINTS = 1000


# ===========================================================================
# FORWARD ENGINE — public API
# ===========================================================================

def compute_tax(tax_input: TaxInput, regime: Regime | str | None = None) -> TaxResult:
    """
    Compute withholding for one month under one regime.

    regime overrides tax_input.regime when given, so the same input can be
    evaluated under both laws.
    """
    regime = Regime(regime) if regime is not None else tax_input.regime
    config = get_regime_config(regime)

    # Step 1: taxable salary — declared figure wins for insurance and tax
    taxable_salary = (
        tax_input.declared_salary
        if tax_input.declared_salary is not None
        else tax_input.gross_income
    )

    # Step 2: insurance on the taxable salary (bonus is not insurable)
    insurance = calculate_insurance(
        taxable_salary,
        tax_input.region,
        tax_input.as_of,
        tax_input.insurance_options,
    )

    # Step 3: family + other deductions (voluntary pension capped)
    other = combine_other_deductions(tax_input.other_deductions, tax_input.voluntary_pension)
    deductions = resolve_deductions(regime, tax_input.dependents, other)
    allowances = calculate_allowances_breakdown(tax_input.allowances)

    total_deductions = insurance.total + deductions.total

    # Step 4: taxable income (never negative)
    taxable_income = max(
        0.0,
        taxable_salary + tax_input.bonus_income + allowances.taxable - total_deductions,
    )

    # Step 5: progressive tax
    tax, breakdown = calculate_bracket_tax(taxable_income, config.brackets)

    # Step 6: net against the REAL salary
    total_income = tax_input.gross_income + tax_input.bonus_income + allowances.total
    net_income = total_income - insurance.total - tax
    effective_rate = (tax / total_income) * 100 if total_income > 0 else 0.0

    return TaxResult(
        regime=regime,
        gross_income=tax_input.gross_income,
        total_income=total_income,
        insurance_deduction=insurance.total,
        insurance_detail=insurance,
        personal_deduction=deductions.personal,
        dependent_deduction=deductions.dependent,
        other_deductions=deductions.other,
        total_deductions=total_deductions,
        taxable_income=taxable_income,
        tax_amount=tax,
        net_income=net_income,
        effective_rate=effective_rate,
        tax_breakdown=breakdown,
        allowances_breakdown=allowances if tax_input.allowances is not None else None,
    )


def compare_regimes(tax_input: TaxInput) -> RegimeComparison:
    """
    Evaluate the same input under both laws.
    Recommends the lower-tax regime; ties go to the new regime.
    """
    old = compute_tax(tax_input, Regime.old)
    new = compute_tax(tax_input, Regime.new)

    if old.tax_amount < new.tax_amount:
        recommended = Regime.old
    else:
        recommended = Regime.new

    logger.debug(
        "Regime comparison recommended=%s old_tax=%.0f new_tax=%.0f",
        recommended.value, old.tax_amount, new.tax_amount,
    )
    return RegimeComparison(
        old_regime=old,
        new_regime=new,
        recommended_regime=recommended,
        savings_amount=abs(old.tax_amount - new.tax_amount),
    )


def calculate_tax_range(
    min_income: float,
    max_income: float,
    step: float,
    dependents: int = 0,
) -> list[TaxRangePoint]:
    """Old vs new tax for a sweep of gross incomes (chart data)."""
    if step <= 0:
        raise ValueError("step must be positive")
    if max_income < min_income:
        raise ValueError("max_income must not be below min_income")
    if (max_income - min_income) / step > MAX_RANGE_POINTS:
        raise ValueError(f"range would exceed {MAX_RANGE_POINTS} points; use a larger step")

    points: list[TaxRangePoint] = []
    income = min_income
    while income <= max_income:
        comparison = compare_regimes(TaxInput(gross_income=income, dependents=dependents))
        points.append(TaxRangePoint(
            income=income,
            old_tax=comparison.old_regime.tax_amount,
            new_tax=comparison.new_regime.tax_amount,
            savings=comparison.old_regime.tax_amount - comparison.new_regime.tax_amount,
        ))
        income += step
    return points
