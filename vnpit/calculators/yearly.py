"""
yearly.py — two-year salary strategies across the law change.

Each month is taxed under the law the transition rule assigns to it:
  2025          → old law
  2026 T1-T6    → old law
  2026 T7-T12   → new law
Bonus entries are stacked on the regular pay of their nominal month
(month > 12 = December) and on the bonuses listed before them for that
month; their tax is the extra tax each one adds.

Presets (same salary, one 13th-month bonus per year):
  normal       2025 bonus paid in December 2025
  defer-bonus  2025 bonus deferred to January 2026
  optimize     2025 bonus deferred to July 2026 (first month of the new law)
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from vnpit.calculators.schemas import (
    HouseholdParams,
    MonthlyScenarioResult,
    PresetRequest,
    StrategyComparison,
    TwoYearResult,
    YearlyResult,
    YearMonthEntry,
    YearScenario,
)
from vnpit.calculators.timing import with_and_without
from vnpit.engine.insurance import sum_insurance
from vnpit.engine.regimes import DEFAULT_TRANSITION, nominal_date
from vnpit.engine.schemas import InsuranceDetail, Regime, TaxInput
from vnpit.engine.tax_engine import compute_tax

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Monthly and yearly computation
# ---------------------------------------------------------------------------

def _regular_input(scenario: YearScenario, month: int, gross: float) -> TaxInput:
    return TaxInput(
        gross_income=gross,
        declared_salary=scenario.declared_salary,
        dependents=scenario.dependents,
        region=scenario.region,
        insurance_options=scenario.insurance_options,
        regime=DEFAULT_TRANSITION.law_for(scenario.year, month),
        as_of=nominal_date(scenario.year, month),
    )


def calculate_monthly_tax(
    entry: YearMonthEntry,
    scenario: YearScenario,
    regular_gross: float = 0,
    earlier_bonus: float = 0,
) -> MonthlyScenarioResult:
    """
    regular_gross is the salary of the entry's calendar month and
    earlier_bonus the bonuses already paid in it; only bonus entries use
    them, as the pay they are stacked on.
    """
    law = DEFAULT_TRANSITION.law_for(scenario.year, entry.month)

    if entry.is_bonus:
        base = _regular_input(scenario, entry.month, regular_gross).model_copy(
            update={"bonus_income": earlier_bonus}
        )
        with_bonus, without_bonus = with_and_without(base, entry.gross_income)
        tax = with_bonus.tax_amount - without_bonus.tax_amount
        return MonthlyScenarioResult(
            month=entry.month,
            label=entry.label,
            is_bonus=True,
            used_law=law,
            gross_income=entry.gross_income,
            insurance=0.0,
            insurance_detail=InsuranceDetail(),
            personal_deduction=0.0,
            dependent_deduction=0.0,
            taxable_income=with_bonus.taxable_income - without_bonus.taxable_income,
            tax=tax,
            net_income=entry.gross_income - tax,
        )

    result = compute_tax(_regular_input(scenario, entry.month, entry.gross_income))
    return MonthlyScenarioResult(
        month=entry.month,
        label=entry.label,
        is_bonus=False,
        used_law=law,
        gross_income=entry.gross_income,
        insurance=result.insurance_deduction,
        insurance_detail=result.insurance_detail,
        personal_deduction=result.personal_deduction,
        dependent_deduction=result.dependent_deduction,
        taxable_income=result.taxable_income,
        tax=result.tax_amount,
        net_income=result.net_income,
    )


def calculate_yearly_tax(scenario: YearScenario) -> YearlyResult:
    regular_by_month: dict[int, float] = {}
    for entry in scenario.months:
        month = min(entry.month, 12)
        regular_by_month[month] = regular_by_month.get(month, 0.0) + entry.gross_income

    # bonuses of one month stack on each other in list order
    bonus_by_month: dict[int, float] = {}
    breakdown: list[MonthlyScenarioResult] = []
    for entry in [*scenario.months, *scenario.bonus_months]:
        month = min(entry.month, 12)
        earlier = bonus_by_month.get(month, 0.0)
        breakdown.append(calculate_monthly_tax(
            entry, scenario, regular_by_month.get(month, 0.0), earlier,
        ))
        if entry.is_bonus:
            bonus_by_month[month] = earlier + entry.gross_income

    total_gross = sum(m.gross_income for m in breakdown)
    total_tax = sum(m.tax for m in breakdown)
    return YearlyResult(
        scenario_id=scenario.id,
        scenario_name=scenario.name,
        year=scenario.year,
        total_gross=total_gross,
        total_insurance=sum_insurance([m.insurance_detail for m in breakdown]).total,
        total_tax=total_tax,
        total_net=sum(m.net_income for m in breakdown),
        effective_rate=(total_tax / total_gross) * 100 if total_gross > 0 else 0.0,
        monthly_breakdown=breakdown,
        old_law_months=sum(1 for m in breakdown if m.used_law == Regime.old),
        new_law_months=sum(1 for m in breakdown if m.used_law == Regime.new),
    )


def calculate_two_year_strategy(first: YearScenario, second: YearScenario) -> TwoYearResult:
    first_year = calculate_yearly_tax(first)
    second_year = calculate_yearly_tax(second)

    combined_gross = first_year.total_gross + second_year.total_gross
    combined_tax = first_year.total_tax + second_year.total_tax
    return TwoYearResult(
        first_year=first_year,
        second_year=second_year,
        combined_gross=combined_gross,
        combined_tax=combined_tax,
        combined_net=first_year.total_net + second_year.total_net,
        combined_effective_rate=(combined_tax / combined_gross) * 100 if combined_gross > 0 else 0.0,
    )


def compare_strategies(strategies: Sequence[TwoYearResult]) -> StrategyComparison:
    """Lowest combined tax wins; savings are measured against the first strategy."""
    if not strategies:
        return StrategyComparison(strategies=[], best_strategy=-1, max_savings=0.0)

    best_index = 0
    for i, strategy in enumerate(strategies):
        if strategy.combined_tax < strategies[best_index].combined_tax:
            best_index = i

    return StrategyComparison(
        strategies=list(strategies),
        best_strategy=best_index,
        max_savings=strategies[0].combined_tax - strategies[best_index].combined_tax,
    )


# ---------------------------------------------------------------------------
# Presets
# ---------------------------------------------------------------------------

def uniform_months(monthly_salary: float) -> list[YearMonthEntry]:
    return [YearMonthEntry(month=m, gross_income=monthly_salary) for m in range(1, 13)]


def bonus_entry(month: int, amount: float, label: Optional[str] = None) -> YearMonthEntry:
    return YearMonthEntry(
        month=month,
        gross_income=amount,
        is_bonus=True,
        label=label or f"Thưởng T{month}",
    )


@dataclass(frozen=True)
class Preset:
    id: str
    name: str
    description: str
    first_year_bonus_months: tuple[tuple[int, str], ...]     # (month, label)
    second_year_bonus_months: tuple[tuple[int, str], ...]


PRESETS: tuple[Preset, ...] = (
    Preset(
        id="normal",
        name="Bình thường",
        description="2025 13th-month bonus paid in December 2025",
        first_year_bonus_months=((13, "Thưởng T13 (T12/2025)"),),
        second_year_bonus_months=((14, "Thưởng T13/2026 (T12/2026)"),),
    ),
    Preset(
        id="defer-bonus",
        name="Dời thưởng sang 2026",
        description="2025 13th-month bonus deferred to January 2026",
        first_year_bonus_months=(),
        second_year_bonus_months=(
            (1, "Thưởng T13/2025 (T1/2026)"),
            (14, "Thưởng T13/2026 (T12/2026)"),
        ),
    ),
    Preset(
        id="optimize",
        name="Tối ưu (T7/2026)",
        description="2025 13th-month bonus deferred to July 2026, under the new law",
        first_year_bonus_months=(),
        second_year_bonus_months=(
            (7, "Thưởng T13/2025 (T7/2026)"),
            (14, "Thưởng T13/2026 (T12/2026)"),
        ),
    ),
)


def preset_scenarios(
    preset: Preset,
    monthly_salary: float,
    household: HouseholdParams,
    bonus_amount: Optional[float] = None,
) -> tuple[YearScenario, YearScenario]:
    bonus = monthly_salary if bonus_amount is None else bonus_amount

    def build(year: int, bonus_months: tuple[tuple[int, str], ...]) -> YearScenario:
        return YearScenario(
            id=f"{preset.id}-{year}",
            name=f"{year} ({12 + len(bonus_months)} tháng)",
            year=year,
            months=uniform_months(monthly_salary),
            bonus_months=[bonus_entry(m, bonus, label) for m, label in bonus_months],
            dependents=household.dependents,
            region=household.region,
            insurance_options=household.insurance_options,
        )

    return build(2025, preset.first_year_bonus_months), build(2026, preset.second_year_bonus_months)


def compare_all_presets(request: PresetRequest) -> StrategyComparison:
    strategies = [
        calculate_two_year_strategy(*preset_scenarios(
            preset, request.monthly_salary, request, request.bonus_amount,
        ))
        for preset in PRESETS
    ]
    comparison = compare_strategies(strategies)
    logger.debug("Preset comparison best=%s", PRESETS[comparison.best_strategy].id)
    return comparison
