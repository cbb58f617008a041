"""
esop.py — employee stock option exercise timing.

Taxable gain = max(0, (exercise price - grant price) x shares), taxed as
employment income of the exercise month on top of that month's salary.
"""
from __future__ import annotations

import logging

from vnpit.calculators.schemas import (
    AnnualEsopImpact,
    EsopComparison,
    EsopInput,
    EsopPeriodResult,
    TimingScenario,
)
from vnpit.calculators.timing import H1_2026, H2_2026, law_for, salary_input, with_and_without
from vnpit.engine.regimes import nominal_date
from vnpit.engine.schemas import Regime, TaxInput
from vnpit.engine.tax_engine import compute_tax

logger = logging.getLogger(__name__)

YEAR_2025 = TimingScenario(
    id="2025",
    name="Năm 2025",
    description="Exercised during 2025 (7-bracket law)",
    year=2025,
    month=12,
)

ESOP_PERIODS: tuple[TimingScenario, ...] = (YEAR_2025, H1_2026, H2_2026)


def esop_gain(esop_input: EsopInput) -> float:
    return max(0.0, (esop_input.exercise_price - esop_input.grant_price) * esop_input.number_of_shares)


def esop_total_value(esop_input: EsopInput) -> float:
    return esop_input.exercise_price * esop_input.number_of_shares


def _period_result(esop_input: EsopInput, period: TimingScenario) -> EsopPeriodResult:
    gain = esop_gain(esop_input)
    base = salary_input(esop_input, esop_input.monthly_salary, period)
    with_esop, without_esop = with_and_without(base, gain)

    tax = with_esop.tax_amount - without_esop.tax_amount
    return EsopPeriodResult(
        period=period,
        law=law_for(period),
        taxable_gain=gain,
        tax=tax,
        net_gain=gain - tax,
        effective_tax_rate=(tax / gain) * 100 if gain > 0 else 0.0,
        total_value=esop_total_value(esop_input),
        monthly_tax_with_esop=with_esop.tax_amount,
        monthly_tax_without_esop=without_esop.tax_amount,
    )


def compare_esop_periods(esop_input: EsopInput) -> EsopComparison:
    results = [_period_result(esop_input, p) for p in ESOP_PERIODS]
    ordered = sorted(results, key=lambda r: r.tax)
    best, worst = ordered[0], ordered[-1]

    logger.debug("ESOP comparison best=%s", best.period.id)
    return EsopComparison(
        periods=results,
        recommendation=best.period,
        max_savings=worst.tax - best.tax,
        taxable_gain=esop_gain(esop_input),
        total_value=esop_total_value(esop_input),
    )


def annual_esop_impact(
    esop_input: EsopInput,
    exercise_month: int,
    regime: Regime | str,
    year: int = 2026,
) -> AnnualEsopImpact:
    """
    Twelve months under ONE law with the gain landing in exercise_month.
    The law is fixed by the caller so the two laws can be compared side by side.
    """
    if not 1 <= exercise_month <= 12:
        raise ValueError(f"exercise_month must be between 1 and 12, got {exercise_month}")

    regime = Regime(regime)
    gain = esop_gain(esop_input)
    monthly_taxes: list[float] = []
    tax_without = 0.0

    for month in range(1, 13):
        base = TaxInput(
            gross_income=esop_input.monthly_salary,
            dependents=esop_input.dependents,
            region=esop_input.region,
            insurance_options=esop_input.insurance_options,
            regime=regime,
            as_of=nominal_date(year, month),
        )

        without = compute_tax(base).tax_amount
        tax_without += without
        if month == exercise_month:
            with_esop, _ = with_and_without(base, gain)
            monthly_taxes.append(with_esop.tax_amount)
        else:
            monthly_taxes.append(without)

    total = sum(monthly_taxes)
    return AnnualEsopImpact(
        exercise_month=exercise_month,
        monthly_taxes=monthly_taxes,
        total_annual_tax=total,
        tax_without_esop=tax_without,
        esop_tax_impact=total - tax_without,
    )
