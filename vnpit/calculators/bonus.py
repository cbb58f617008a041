"""
bonus.py — 13th-month salary / Tết bonus timing.

Compares paying the bonus in December 2025, in H1 2026 or in H2 2026. The
bonus is stacked on that month's salary; its cost is the EXTRA tax of the
month, not an average rate.
"""
from __future__ import annotations

import logging

from vnpit.calculators.schemas import (
    BonusComparison,
    BonusInput,
    BonusScenarioResult,
    BonusSplitResult,
    TimingScenario,
)
from vnpit.calculators.timing import DEC_2025, H1_2026, H2_2026, law_for, salary_input, with_and_without
from vnpit.engine.schemas import Regime

logger = logging.getLogger(__name__)

BONUS_SCENARIOS: tuple[TimingScenario, ...] = (DEC_2025, H1_2026, H2_2026)

# Split search grid: 0.0, 0.1, ... 1.0 (share paid in H1)
SPLIT_STEPS = 10


def _scenario_result(bonus_input: BonusInput, scenario: TimingScenario) -> BonusScenarioResult:
    total_bonus = bonus_input.total_bonus
    base = salary_input(bonus_input, bonus_input.monthly_salary, scenario)
    with_bonus, without_bonus = with_and_without(base, total_bonus)

    additional_tax = with_bonus.tax_amount - without_bonus.tax_amount
    return BonusScenarioResult(
        scenario=scenario,
        law=law_for(scenario),
        total_bonus=total_bonus,
        monthly_tax_with_bonus=with_bonus.tax_amount,
        monthly_tax_without_bonus=without_bonus.tax_amount,
        additional_tax=additional_tax,
        net_bonus=total_bonus - additional_tax,
        effective_tax_rate=(additional_tax / total_bonus) * 100 if total_bonus > 0 else 0.0,
        annual_income=bonus_input.monthly_salary * 12 + total_bonus,
        annual_tax=without_bonus.tax_amount * 11 + with_bonus.tax_amount,
    )


def compare_bonus_scenarios(bonus_input: BonusInput) -> BonusComparison:
    """Lowest additional tax wins; the first scenario wins ties."""
    results = [_scenario_result(bonus_input, s) for s in BONUS_SCENARIOS]
    ordered = sorted(results, key=lambda r: r.additional_tax)
    best, worst = ordered[0], ordered[-1]

    logger.debug("Bonus comparison best=%s", best.scenario.id)
    return BonusComparison(
        scenarios=results,
        recommendation=best.scenario,
        max_savings=worst.additional_tax - best.additional_tax,
    )


def marginal_bonus_tax_rate(bonus_input: BonusInput, regime: Regime | str) -> float:
    """Percent of the bonus lost to tax when paid under the given law."""
    total_bonus = bonus_input.total_bonus
    if total_bonus <= 0:
        return 0.0
    scenario = H2_2026 if Regime(regime) == Regime.new else H1_2026
    base = salary_input(bonus_input, bonus_input.monthly_salary, scenario)
    with_bonus, without_bonus = with_and_without(base, total_bonus)
    return (with_bonus.tax_amount - without_bonus.tax_amount) / total_bonus * 100


def bonus_split(bonus_input: BonusInput, split_ratio: float) -> BonusSplitResult:
    """Pay split_ratio of the bonus in H1 2026 (old law) and the rest in H2 2026 (new law)."""
    split_ratio = min(max(split_ratio, 0.0), 1.0)
    total_bonus = bonus_input.total_bonus
    h1_portion = total_bonus * split_ratio
    h2_portion = total_bonus * (1 - split_ratio)

    h1_with, h1_without = with_and_without(
        salary_input(bonus_input, bonus_input.monthly_salary, H1_2026), h1_portion,
    )
    h2_with, h2_without = with_and_without(
        salary_input(bonus_input, bonus_input.monthly_salary, H2_2026), h2_portion,
    )
    h1_tax = h1_with.tax_amount - h1_without.tax_amount
    h2_tax = h2_with.tax_amount - h2_without.tax_amount

    return BonusSplitResult(
        split_ratio=split_ratio,
        h1_portion=h1_portion,
        h2_portion=h2_portion,
        h1_tax=h1_tax,
        h2_tax=h2_tax,
        total_tax=h1_tax + h2_tax,
        total_net_bonus=total_bonus - h1_tax - h2_tax,
    )


def find_optimal_split_ratio(bonus_input: BonusInput) -> BonusSplitResult:
    """Grid search in 10% steps; integer steps keep the ratios exact."""
    best = bonus_split(bonus_input, 0.0)
    for i in range(1, SPLIT_STEPS + 1):
        candidate = bonus_split(bonus_input, i / SPLIT_STEPS)
        if candidate.total_tax < best.total_tax:
            best = candidate
    return best
