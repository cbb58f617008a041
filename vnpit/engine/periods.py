"""
periods.py — PeriodAggregator: monthly income entries → AnnualTotals.

Per entry (never cached across months — dependent counts and law vary):
  law        = transition_rule.law_for(year, month)
  dependents = number of DependentWindows containing the month
  insurance  = on that month's salary (declared salary if given), caps as of the 1st of the month
  tax_paid   = entry.tax_paid if supplied (trusted as-is), else a ForwardTaxEngine estimate

Periods are runs of calendar months sharing one law:
  non-transition year → one period "Cả năm"
  transition year     → "T1-T6" (old) + "T7-T12" (new)
Bonus slots (month > 12) belong to whichever period holds December.
"""
from __future__ import annotations

import logging
from typing import Iterable, Sequence

from vnpit.engine.deductions import cap_voluntary_pension_yearly
from vnpit.engine.insurance import calculate_insurance, sum_insurance
from vnpit.engine.regimes import (
    DEFAULT_TRANSITION,
    TransitionRule,
    get_regime_config,
    nominal_date,
)
from vnpit.engine.schemas import (
    AnnualDeductions,
    AnnualTotals,
    DependentSummary,
    DependentWindow,
    InsuranceDetail,
    InsuranceOptions,
    MonthlyBreakdown,
    MonthlyIncomeEntry,
    PeriodBreakdown,
    Regime,
    TaxInput,
)
from vnpit.engine.tax_engine import compute_tax

logger = logging.getLogger(__name__)

MONTHS_PER_YEAR = 12

MONTH_NAMES = [f"Tháng {m}" for m in range(1, MONTHS_PER_YEAR + 1)]
WHOLE_YEAR_PERIOD_NAME = "Cả năm"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def month_name(month: int) -> str:
    if month <= MONTHS_PER_YEAR:
        return MONTH_NAMES[month - 1]
    return f"Thưởng {month - MONTHS_PER_YEAR}"


def calendar_month(month: int) -> int:
    """Bonus slots are taxed as December income."""
    return min(month, MONTHS_PER_YEAR)


def dependent_count_for_month(windows: Iterable[DependentWindow], month: int) -> int:
    month = calendar_month(month)
    return sum(1 for w in windows if w.from_month <= month <= w.to_month)


def dependent_months(window: DependentWindow) -> int:
    start = max(window.from_month, 1)
    end = min(window.to_month, MONTHS_PER_YEAR)
    return max(0, end - start + 1)


def create_default_monthly_income(
    average_salary: float = 0,
    bonus_month: int = 0,
    bonus_amount: float = 0,
) -> list[MonthlyIncomeEntry]:
    """Twelve entries at the average salary; the bonus lands in bonus_month (0 = none)."""
    return [
        MonthlyIncomeEntry(
            month=m,
            gross_salary=average_salary,
            bonus=bonus_amount if m == bonus_month else 0,
        )
        for m in range(1, MONTHS_PER_YEAR + 1)
    ]


def apply_average_salary(
    entries: Sequence[MonthlyIncomeEntry],
    average_salary: float,
) -> list[MonthlyIncomeEntry]:
    """Average-salary mode: overwrite the salary of every regular month, leave bonus slots alone."""
    return [
        e.model_copy(update={"gross_salary": average_salary})
        if e.month <= MONTHS_PER_YEAR else e
        for e in entries
    ]


def _law_periods(year: int, rule: TransitionRule) -> list[tuple[Regime, list[int]]]:
    """Consecutive runs of calendar months sharing one law."""
    runs: list[tuple[Regime, list[int]]] = []
    for month in range(1, MONTHS_PER_YEAR + 1):
        law = rule.law_for(year, month)
        if runs and runs[-1][0] == law:
            runs[-1][1].append(month)
        else:
            runs.append((law, [month]))
    return runs


def _period_name(months: list[int]) -> str:
    if len(months) == MONTHS_PER_YEAR:
        return WHOLE_YEAR_PERIOD_NAME
    return f"T{months[0]}-T{months[-1]}"


# ---------------------------------------------------------------------------
# Monthly pass
# ---------------------------------------------------------------------------

def _month_input(
    year: int,
    entry: MonthlyIncomeEntry,
    law: Regime,
    dependents: int,
    insurance_options: InsuranceOptions,
    region: int,
    declared_salary: float | None,
) -> TaxInput:
    return TaxInput(
        gross_income=entry.gross_salary,
        declared_salary=declared_salary,
        bonus_income=entry.bonus,
        other_deductions=entry.tax_exempt,
        dependents=dependents,
        insurance_options=insurance_options,
        region=region,
        regime=law,
        as_of=nominal_date(year, entry.month),
    )


def _stack_bonus_slot(
    entry: MonthlyIncomeEntry,
    stacked_input: TaxInput,
) -> tuple[float, TaxInput]:
    """
    Extra withholding caused by stacking a bonus slot on top of December's pay
    and every earlier slot. Returns the extra tax and the new stack.
    """
    extra = max(0.0, entry.gross_salary + entry.bonus - entry.tax_exempt)
    stacked = stacked_input.model_copy(
        update={"bonus_income": stacked_input.bonus_income + extra}
    )
    return compute_tax(stacked).tax_amount - compute_tax(stacked_input).tax_amount, stacked



# ===========================================================================
# AGGREGATOR — public API
# ===========================================================================

def aggregate_months(
    year: int,
    entries: Sequence[MonthlyIncomeEntry],
    dependent_windows: Sequence[DependentWindow] = (),
    transition_rule: TransitionRule = DEFAULT_TRANSITION,
    insurance_options: InsuranceOptions | None = None,
    region: int = 1,
    declared_salary: float | None = None,
    charitable_contributions: float = 0,
    voluntary_pension: float = 0,
) -> AnnualTotals:
    """
    Sum a year of income entries into AnnualTotals.

    charitable_contributions and voluntary_pension are YEARLY amounts; the
    pension is capped at 12M here and both are prorated across periods by
    month count. tax_due on each period is left at 0 for the reconciler.
    """
    insurance_options = insurance_options or InsuranceOptions()
    ordered = sorted(entries, key=lambda e: e.month)

    december = next((e for e in ordered if e.month == MONTHS_PER_YEAR), None)
    # bonus slots stack on December, then on each other in slot order
    stacked_input = _month_input(
        year,
        december or MonthlyIncomeEntry(month=MONTHS_PER_YEAR),
        transition_rule.law_for(year, MONTHS_PER_YEAR),
        dependent_count_for_month(dependent_windows, MONTHS_PER_YEAR),
        insurance_options,
        region,
        declared_salary,
    )

    monthly: list[MonthlyBreakdown] = []
    insurance_by_month: list[tuple[int, InsuranceDetail]] = []
    estimated_count = 0

    for entry in ordered:
        law = transition_rule.law_for(year, entry.month)
        config = get_regime_config(law)
        is_bonus_slot = entry.month > MONTHS_PER_YEAR
        dependents = dependent_count_for_month(dependent_windows, entry.month)

        if is_bonus_slot:
            salary_basis = entry.gross_salary
            insurance = InsuranceDetail()
        else:
            salary_basis = declared_salary if declared_salary is not None else entry.gross_salary
            insurance = calculate_insurance(
                salary_basis, region, nominal_date(year, entry.month), insurance_options,
            )

        if is_bonus_slot:
            slot_tax, stacked_input = _stack_bonus_slot(entry, stacked_input)

        if entry.tax_paid is not None:
            tax_paid = entry.tax_paid
        elif is_bonus_slot:
            tax_paid = slot_tax
        else:
            tax_paid = compute_tax(_month_input(
                year, entry, law, dependents, insurance_options, region, declared_salary,
            )).tax_amount

        if entry.tax_paid is None:
            estimated_count += 1

        insurance_by_month.append((calendar_month(entry.month), insurance))
        monthly.append(MonthlyBreakdown(
            month=entry.month,
            month_name=month_name(entry.month),
            law=law,
            gross=entry.gross_salary,
            bonus=entry.bonus,
            tax_exempt=entry.tax_exempt,
            taxable_income=salary_basis + entry.bonus - entry.tax_exempt,
            insurance=insurance.total,
            personal_deduction=0.0 if is_bonus_slot else config.personal_deduction,
            dependent_count=dependents,
            dependent_deduction=0.0 if is_bonus_slot else dependents * config.dependent_deduction,
            tax_paid=tax_paid,
            estimated=entry.tax_paid is None,
        ))

    # Yearly extras, spread over periods by month count
    yearly_other = max(0.0, charitable_contributions) + cap_voluntary_pension_yearly(voluntary_pension)

    periods: list[PeriodBreakdown] = []
    for law, months in _law_periods(year, transition_rule):
        config = get_regime_config(law)
        rows = [r for r in monthly if calendar_month(r.month) in months]

        personal = len(months) * config.personal_deduction
        dependent = sum(
            dependent_count_for_month(dependent_windows, m) * config.dependent_deduction
            for m in months
        )
        insurance_total = sum(d.total for m, d in insurance_by_month if m in months)
        other = yearly_other * len(months) / MONTHS_PER_YEAR
        total_deductions = personal + dependent + insurance_total + other
        taxable = sum(r.taxable_income for r in rows)

        periods.append(PeriodBreakdown(
            period_name=_period_name(months),
            law=law,
            months=months,
            total_gross=sum(r.gross for r in rows),
            total_bonus=sum(r.bonus for r in rows),
            total_tax_exempt=sum(r.tax_exempt for r in rows),
            total_taxable_income=taxable,
            personal_deduction=personal,
            dependent_deduction=dependent,
            insurance_deduction=insurance_total,
            other_deduction=other,
            total_deductions=total_deductions,
            assessable_income=max(0.0, taxable - total_deductions),
            tax_paid=sum(r.tax_paid for r in rows),
        ))

    deductions = AnnualDeductions(
        personal=sum(p.personal_deduction for p in periods),
        dependent=sum(p.dependent_deduction for p in periods),
        insurance=sum(p.insurance_deduction for p in periods),
        other=sum(p.other_deduction for p in periods),
        total=sum(p.total_deductions for p in periods),
    )

    logger.debug(
        "Aggregated year=%d entries=%d periods=%d estimated_months=%d",
        year, len(ordered), len(periods), estimated_count,
    )

    return AnnualTotals(
        year=year,
        is_transition_year=transition_rule.is_transition_year(year),
        regime=transition_rule.law_for(year, MONTHS_PER_YEAR),
        total_gross_income=sum(r.gross for r in monthly),
        total_bonus_income=sum(r.bonus for r in monthly),
        total_tax_exempt_income=sum(r.tax_exempt for r in monthly),
        total_taxable_income=sum(r.taxable_income for r in monthly),
        deductions=deductions,
        total_assessable_income=sum(p.assessable_income for p in periods),
        total_tax_paid=sum(r.tax_paid for r in monthly),
        insurance_detail=sum_insurance([d for _, d in insurance_by_month]),
        dependent_summary=DependentSummary(
            count=len(dependent_windows),
            total_months=sum(dependent_months(w) for w in dependent_windows),
            total_deduction=deductions.dependent,
        ),
        periods=periods,
        monthly_breakdown=monthly,
    )
