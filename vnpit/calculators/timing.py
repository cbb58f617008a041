"""
timing.py — shared helpers for "when should this income be paid" calculators.

A payment moment is a (year, month) pair. Its law comes from the transition
rule and its insurance caps from the first day of that month, so moving a
payment across 01/07/2026 changes both brackets and family deductions.
"""
from __future__ import annotations

from vnpit.calculators.schemas import HouseholdParams, TimingScenario
from vnpit.engine.regimes import DEFAULT_TRANSITION, nominal_date
from vnpit.engine.schemas import Regime, TaxInput, TaxResult
from vnpit.engine.tax_engine import compute_tax

DEC_2025 = TimingScenario(
    id="dec-2025",
    name="Tháng 12/2025",
    description="Paid in December 2025 (7-bracket law)",
    year=2025,
    month=12,
)
H1_2026 = TimingScenario(
    id="h1-2026",
    name="Nửa đầu 2026",
    description="Paid January-June 2026 (7-bracket law still in force)",
    year=2026,
    month=1,
)
H2_2026 = TimingScenario(
    id="h2-2026",
    name="Nửa cuối 2026",
    description="Paid July-December 2026 (5-bracket law)",
    year=2026,
    month=7,
)


def law_for(scenario: TimingScenario) -> Regime:
    return DEFAULT_TRANSITION.law_for(scenario.year, scenario.month)


def salary_input(
    household: HouseholdParams,
    monthly_salary: float,
    scenario: TimingScenario,
) -> TaxInput:
    """Regular pay of the scenario's month, under the scenario's law."""
    return TaxInput(
        gross_income=monthly_salary,
        dependents=household.dependents,
        region=household.region,
        insurance_options=household.insurance_options,
        regime=law_for(scenario),
        as_of=nominal_date(scenario.year, scenario.month),
    )


def with_and_without(base: TaxInput, extra_income: float) -> tuple[TaxResult, TaxResult]:
    """
    Month result with extra_income stacked as bonus income, and without it.
    Bonus income is taxable but not insurable, so insurance is identical in both.
    """
    stacked = base.model_copy(update={"bonus_income": base.bonus_income + extra_income})
    return compute_tax(stacked), compute_tax(base)
