"""
settlement.py — SettlementReconciler: AnnualTotals → SettlementResult.

  non-transition year → one bracket pass over total_assessable_income with the
                        year's regime (brackets_for(regime), monthly table)
  transition year     → every period taxed under its own law, then summed

  difference = annual_tax_due - total_tax_paid
  pay if difference > 0, refund if < 0, even if exactly 0
"""
from __future__ import annotations

import logging

from vnpit.engine.brackets import calculate_bracket_tax
from vnpit.engine.periods import (
    MONTHS_PER_YEAR,
    aggregate_months,
    create_default_monthly_income,
)
from vnpit.engine.regimes import DEFAULT_TRANSITION, TransitionRule, brackets_for
from vnpit.engine.schemas import (
    AnnualTotals,
    DependentWindow,
    InsuranceOptions,
    SettlementInput,
    SettlementResult,
    SettlementType,
)

logger = logging.getLogger(__name__)


def settlement_type_for(difference: float) -> SettlementType:
    if difference > 0:
        return SettlementType.pay
    if difference < 0:
        return SettlementType.refund
    return SettlementType.even


def reconcile(
    annual_totals: AnnualTotals,
    manual_tax_paid: float | None = None,
) -> SettlementResult:
    """
    Final annual liability versus what was withheld.

    manual_tax_paid, when given, replaces the summed monthly withholding.
    """
    periods = [
        p.model_copy(update={
            "tax_due": calculate_bracket_tax(p.assessable_income, brackets_for(p.law))[0],
        })
        for p in annual_totals.periods
    ]

    if annual_totals.is_transition_year:
        annual_tax_due = sum(p.tax_due for p in periods)
    else:
        annual_tax_due, _ = calculate_bracket_tax(
            annual_totals.total_assessable_income,
            brackets_for(annual_totals.regime),
        )

    total_tax_paid = (
        manual_tax_paid if manual_tax_paid is not None else annual_totals.total_tax_paid
    )
    difference = annual_tax_due - total_tax_paid
    settlement_type = settlement_type_for(difference)

    logger.info(
        "Settlement year=%d transition=%s periods=%d type=%s manual_paid=%s",
        annual_totals.year, annual_totals.is_transition_year, len(periods),
        settlement_type.value, manual_tax_paid is not None,
    )

    return SettlementResult(
        year=annual_totals.year,
        is_transition_year=annual_totals.is_transition_year,
        total_gross_income=annual_totals.total_gross_income,
        total_bonus_income=annual_totals.total_bonus_income,
        total_tax_exempt_income=annual_totals.total_tax_exempt_income,
        total_taxable_income=annual_totals.total_taxable_income,
        deductions=annual_totals.deductions,
        total_assessable_income=annual_totals.total_assessable_income,
        annual_tax_due=annual_tax_due,
        total_tax_paid=total_tax_paid,
        difference=difference,
        settlement_type=settlement_type,
        periods=periods,
        monthly_breakdown=annual_totals.monthly_breakdown,
        insurance_detail=annual_totals.insurance_detail,
        dependent_summary=annual_totals.dependent_summary,
    )


def calculate_annual_settlement(
    settlement_input: SettlementInput,
    transition_rule: TransitionRule = DEFAULT_TRANSITION,
) -> SettlementResult:
    """Aggregate + reconcile in one call."""
    totals = aggregate_months(
        settlement_input.year,
        settlement_input.monthly_income,
        settlement_input.dependents,
        transition_rule=transition_rule,
        insurance_options=settlement_input.insurance_options,
        region=settlement_input.region,
        declared_salary=settlement_input.declared_salary,
        charitable_contributions=settlement_input.charitable_contributions,
        voluntary_pension=settlement_input.voluntary_pension,
    )
    return reconcile(totals, settlement_input.manual_tax_paid)


def estimate_settlement(
    year: int,
    average_monthly_salary: float,
    annual_bonus: float = 0,
    dependent_count: int = 0,
    region: int = 1,
    insurance_options: InsuranceOptions | None = None,
) -> dict[str, float]:
    """Quick estimate: flat salary, bonus in December, dependents all year, estimated withholding."""
    entries = create_default_monthly_income(average_monthly_salary, MONTHS_PER_YEAR, annual_bonus)
    dependents = [
        DependentWindow(name=f"Người phụ thuộc {i + 1}") for i in range(dependent_count)
    ]
    result = calculate_annual_settlement(SettlementInput(
        year=year,
        monthly_income=entries,
        dependents=dependents,
        insurance_options=insurance_options or InsuranceOptions(),
        region=region,
    ))
    return {
        "estimated_tax_due": result.annual_tax_due,
        "estimated_tax_paid": result.total_tax_paid,
        "estimated_difference": result.difference,
    }
