"""
insurance.py — mandatory insurance caps and contributions.

InsuranceCapResolver:
  BHXH + BHYT share one national cap   = 20 x statutory base salary (lương cơ sở)
  BHTN has a per-region cap            = 20 x regional minimum wage
  Both source tables are effective-dated; a lookup returns the latest entry
  whose effective date is <= the query date.

InsuranceCalculator:
  line = min(base, cap) * rate if enabled, else 0. No rounding here —
  rounding to display precision is a presentation concern.
"""
from __future__ import annotations

from datetime import date
from typing import Mapping, Sequence, TypeVar

from vnpit.engine.schemas import (
    EmployerInsuranceDetail,
    InsuranceCaps,
    InsuranceDetail,
    InsuranceOptions,
)

T = TypeVar("T")

# ===========================================================================
# CONTRIBUTION RATES
# ===========================================================================

# Employee
BHXH_RATE = 0.08      # social insurance
BHYT_RATE = 0.015     # health insurance
BHTN_RATE = 0.01      # unemployment insurance
TOTAL_EMPLOYEE_RATE = BHXH_RATE + BHYT_RATE + BHTN_RATE   # 10.5%

# Employer
EMPLOYER_BHXH_RATE = 0.175
EMPLOYER_BHYT_RATE = 0.03
EMPLOYER_BHTN_RATE = 0.01
EMPLOYER_UNION_FEE_RATE = 0.02

# Cap multiples
SOCIAL_HEALTH_CAP_MULTIPLE = 20
UNEMPLOYMENT_CAP_MULTIPLE = 20

# ===========================================================================
# EFFECTIVE-DATED SCHEDULES — ordered by effective date, ascending
# ===========================================================================

BASE_SALARY_SCHEDULE: tuple[tuple[date, float], ...] = (
    (date(2023, 7, 1), 1_800_000),
    (date(2024, 7, 1), 2_340_000),
)

REGIONAL_MINIMUM_WAGE_SCHEDULE: tuple[tuple[date, Mapping[int, float]], ...] = (
    # Decree 74/2024
    (date(2024, 7, 1), {1: 4_960_000, 2: 4_410_000, 3: 3_860_000, 4: 3_450_000}),
    # Decree 293/2025
    (date(2026, 1, 1), {1: 5_310_000, 2: 4_730_000, 3: 4_140_000, 4: 3_700_000}),
)


def value_on(schedule: Sequence[tuple[date, T]], on: date) -> T:
    """
    Latest schedule value effective on or before `on`.
    Dates before the first entry fall back to the first entry.
    """
    selected = schedule[0][1]
    for effective_from, value in schedule:
        if effective_from <= on:
            selected = value
        else:
            break
    return selected


def _today() -> date:
    return date.today()


# ===========================================================================
# CAP RESOLVER
# ===========================================================================

def resolve_caps(region: int, on: date | None = None) -> InsuranceCaps:
    """Caps in effect for a region on a date (today if omitted)."""
    on = on or _today()
    base_salary = value_on(BASE_SALARY_SCHEDULE, on)
    minimum_wage = value_on(REGIONAL_MINIMUM_WAGE_SCHEDULE, on)[region]
    return InsuranceCaps(
        base_salary=base_salary,
        social_health_cap=SOCIAL_HEALTH_CAP_MULTIPLE * base_salary,
        regional_minimum_wage=minimum_wage,
        unemployment_cap=UNEMPLOYMENT_CAP_MULTIPLE * minimum_wage,
    )


# ===========================================================================
# INSURANCE CALCULATOR
# ===========================================================================

def calculate_insurance(
    base: float,
    region: int = 1,
    on: date | None = None,
    options: InsuranceOptions | None = None,
) -> InsuranceDetail:
    """
    Employee contributions on a salary base.

    Disabling every flag yields total == 0, identical to has_insurance=False.
    """
    options = options or InsuranceOptions()
    caps = resolve_caps(region, on)

    social_health_base = min(base, caps.social_health_cap)
    bhxh = social_health_base * BHXH_RATE if options.bhxh else 0.0
    bhyt = social_health_base * BHYT_RATE if options.bhyt else 0.0

    unemployment_base = min(base, caps.unemployment_cap)
    bhtn = unemployment_base * BHTN_RATE if options.bhtn else 0.0

    return InsuranceDetail(bhxh=bhxh, bhyt=bhyt, bhtn=bhtn, total=bhxh + bhyt + bhtn)


def calculate_employer_insurance(
    base: float,
    region: int = 1,
    on: date | None = None,
    options: InsuranceOptions | None = None,
    include_union_fee: bool = False,
) -> EmployerInsuranceDetail:
    """Employer-side contributions. The union fee is 2% of the full base, uncapped."""
    options = options or InsuranceOptions()
    caps = resolve_caps(region, on)

    social_health_base = min(base, caps.social_health_cap)
    bhxh = social_health_base * EMPLOYER_BHXH_RATE if options.bhxh else 0.0
    bhyt = social_health_base * EMPLOYER_BHYT_RATE if options.bhyt else 0.0

    unemployment_base = min(base, caps.unemployment_cap)
    bhtn = unemployment_base * EMPLOYER_BHTN_RATE if options.bhtn else 0.0

    union_fee = base * EMPLOYER_UNION_FEE_RATE if include_union_fee else 0.0

    return EmployerInsuranceDetail(
        bhxh=bhxh,
        bhyt=bhyt,
        bhtn=bhtn,
        union_fee=union_fee,
        total=bhxh + bhyt + bhtn + union_fee,
    )


def sum_insurance(details: Sequence[InsuranceDetail]) -> InsuranceDetail:
    return InsuranceDetail(
        bhxh=sum(d.bhxh for d in details),
        bhyt=sum(d.bhyt for d in details),
        bhtn=sum(d.bhtn for d in details),
        total=sum(d.total for d in details),
    )
