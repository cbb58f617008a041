"""
Insurance cap resolver and contribution tests.

Groups:
  1. Effective-dated cap lookup
  2. Employee contributions (rates, caps, saturation, toggles)
  3. Employer contributions
"""
from __future__ import annotations

from datetime import date

import pytest

from vnpit.engine.insurance import (
    BASE_SALARY_SCHEDULE,
    TOTAL_EMPLOYEE_RATE,
    calculate_employer_insurance,
    calculate_insurance,
    resolve_caps,
    sum_insurance,
    value_on,
)
from vnpit.engine.schemas import InsuranceOptions


# ===========================================================================
# TEST GROUP 1: Cap lookup
# ===========================================================================

def test_social_health_cap_is_twenty_base_salaries() -> None:
    caps = resolve_caps(1, date(2025, 6, 1))
    assert caps.base_salary == 2_340_000
    assert caps.social_health_cap == 46_800_000


@pytest.mark.parametrize(
    "region, on, expected_cap",
    [
        pytest.param(1, date(2025, 12, 31), 99_200_000, id="region1_before_decree_293"),
        pytest.param(1, date(2026, 1, 1), 106_200_000, id="region1_from_2026"),
        pytest.param(2, date(2025, 6, 1), 88_200_000, id="region2_2025"),
        pytest.param(4, date(2026, 7, 1), 74_000_000, id="region4_2026"),
    ],
)
def test_unemployment_cap_follows_regional_minimum_wage(region, on, expected_cap) -> None:
    assert resolve_caps(region, on).unemployment_cap == expected_cap


def test_lookup_before_first_entry_falls_back_to_first() -> None:
    assert value_on(BASE_SALARY_SCHEDULE, date(2020, 1, 1)) == 1_800_000
    assert resolve_caps(1, date(2024, 1, 1)).regional_minimum_wage == 4_960_000


def test_lookup_on_effective_date_uses_new_value() -> None:
    assert value_on(BASE_SALARY_SCHEDULE, date(2024, 6, 30)) == 1_800_000
    assert value_on(BASE_SALARY_SCHEDULE, date(2024, 7, 1)) == 2_340_000


# ===========================================================================
# TEST GROUP 2: Employee contributions
# ===========================================================================

def test_contributions_below_caps() -> None:
    assert TOTAL_EMPLOYEE_RATE == pytest.approx(0.105)
    detail = calculate_insurance(30_000_000, 1, date(2026, 1, 1))
    assert detail.bhxh == pytest.approx(2_400_000)
    assert detail.bhyt == pytest.approx(450_000)
    assert detail.bhtn == pytest.approx(300_000)
    assert detail.total == pytest.approx(3_150_000)


def test_contributions_at_caps() -> None:
    detail = calculate_insurance(150_000_000, 1, date(2026, 7, 1))
    assert detail.bhxh == pytest.approx(46_800_000 * 0.08)
    assert detail.bhyt == pytest.approx(46_800_000 * 0.015)
    assert detail.bhtn == pytest.approx(106_200_000 * 0.01)
    assert detail.total == pytest.approx(5_508_000)


def test_contributions_saturate_above_caps() -> None:
    on = date(2026, 1, 1)
    at_cap = calculate_insurance(106_200_000, 1, on)
    far_above = calculate_insurance(1_062_000_000, 1, on)
    assert far_above.bhxh == at_cap.bhxh
    assert far_above.bhyt == at_cap.bhyt
    assert far_above.bhtn == at_cap.bhtn
    assert far_above.total == at_cap.total


def test_unemployment_cap_differs_by_region() -> None:
    on = date(2026, 1, 1)
    region1 = calculate_insurance(200_000_000, 1, on)
    region4 = calculate_insurance(200_000_000, 4, on)
    assert region1.bhxh == region4.bhxh
    assert region1.bhtn > region4.bhtn


def test_all_flags_disabled_gives_zero() -> None:
    options = InsuranceOptions(bhxh=False, bhyt=False, bhtn=False)
    assert not options.has_insurance
    assert calculate_insurance(30_000_000, 1, date(2026, 1, 1), options).total == 0
    assert options == InsuranceOptions.from_flag(False)


def test_single_line_can_be_toggled() -> None:
    options = InsuranceOptions(bhtn=False)
    detail = calculate_insurance(30_000_000, 1, date(2026, 1, 1), options)
    assert detail.bhtn == 0
    assert detail.total == pytest.approx(2_850_000)
    assert not options.has_insurance


def test_zero_base_gives_zero() -> None:
    assert calculate_insurance(0, 1, date(2026, 1, 1)).total == 0


def test_sum_insurance() -> None:
    month = calculate_insurance(30_000_000, 1, date(2026, 1, 1))
    yearly = sum_insurance([month] * 12)
    assert yearly.total == pytest.approx(37_800_000)
    assert yearly.bhxh == pytest.approx(12 * month.bhxh)


# ===========================================================================
# TEST GROUP 3: Employer contributions
# ===========================================================================

def test_employer_contributions_below_caps() -> None:
    detail = calculate_employer_insurance(30_000_000, 1, date(2026, 1, 1))
    assert detail.bhxh == pytest.approx(5_250_000)
    assert detail.bhyt == pytest.approx(900_000)
    assert detail.bhtn == pytest.approx(300_000)
    assert detail.union_fee == 0
    assert detail.total == pytest.approx(6_450_000)


def test_employer_union_fee_is_uncapped() -> None:
    detail = calculate_employer_insurance(
        150_000_000, 1, date(2026, 7, 1), include_union_fee=True,
    )
    assert detail.union_fee == pytest.approx(3_000_000)
    assert detail.bhxh == pytest.approx(46_800_000 * 0.175)
    assert detail.total == pytest.approx(detail.bhxh + detail.bhyt + detail.bhtn + 3_000_000)
