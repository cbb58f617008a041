"""
overtime.py — overtime pay and its tax treatment (Labor Code 2019, Decree 145/2020).

Multipliers of the regular hourly rate:
                 day     night (22h-6h)
  weekday        150%    210%   = 150% + 30% night + 20% x 150%
  weekend        200%    270%
  holiday / Tết  300%    390%

Only the regular-pay part of overtime is taxable; the premium above it is
exempt (Circular 111/2013). Insurance stays on the base salary.
"""
from __future__ import annotations

from typing import Sequence

from vnpit.calculators.schemas import (
    OvertimeBreakdown,
    OvertimeEntry,
    OvertimeInput,
    OvertimeResult,
    OvertimeType,
    ShiftType,
)
from vnpit.engine.schemas import TaxInput
from vnpit.engine.tax_engine import compute_tax

OVERTIME_RATES: dict[OvertimeType, dict[ShiftType, float]] = {
    OvertimeType.weekday: {ShiftType.day: 1.5, ShiftType.night: 2.1},
    OvertimeType.weekend: {ShiftType.day: 2.0, ShiftType.night: 2.7},
    OvertimeType.holiday: {ShiftType.day: 3.0, ShiftType.night: 3.9},
}

# Legal limits
MAX_OVERTIME_PER_DAY = 4           # hours (50% of a normal 8h day)
MAX_TOTAL_HOURS_PER_DAY = 12
MAX_OVERTIME_PER_MONTH = 40

DEFAULT_WORKING_DAYS = 26
DEFAULT_HOURS_PER_DAY = 8


def overtime_rate(overtime_type: OvertimeType, shift: ShiftType) -> float:
    return OVERTIME_RATES[OvertimeType(overtime_type)][ShiftType(shift)]


def hourly_rate(
    monthly_salary: float,
    working_days: int = DEFAULT_WORKING_DAYS,
    hours_per_day: float = DEFAULT_HOURS_PER_DAY,
) -> float:
    total_hours = working_days * hours_per_day
    return monthly_salary / total_hours if total_hours > 0 else 0.0


def check_overtime_limits(
    entries: Sequence[OvertimeEntry],
    hours_per_day: float = DEFAULT_HOURS_PER_DAY,
) -> list[str]:
    """Legal-limit warnings. Limits never block the calculation."""
    warnings: list[str] = []
    total_hours = sum(e.hours for e in entries)

    if total_hours > MAX_OVERTIME_PER_MONTH:
        warnings.append(
            f"Overtime exceeds {MAX_OVERTIME_PER_MONTH} hours/month ({total_hours:g} hours entered)"
        )
    if any(e.hours > MAX_OVERTIME_PER_DAY for e in entries):
        warnings.append(f"Some entries exceed {MAX_OVERTIME_PER_DAY} overtime hours/day")

    longest = max((e.hours for e in entries), default=0)
    if hours_per_day + longest > MAX_TOTAL_HOURS_PER_DAY:
        warnings.append(f"Total working time may exceed {MAX_TOTAL_HOURS_PER_DAY} hours/day")

    return warnings


def calculate_overtime(overtime_input: OvertimeInput) -> OvertimeResult:
    rate_per_hour = hourly_rate(
        overtime_input.monthly_salary,
        overtime_input.working_days_per_month,
        overtime_input.hours_per_day,
    )

    breakdowns: list[OvertimeBreakdown] = []
    for entry in overtime_input.entries:
        rate = overtime_rate(entry.type, entry.shift)
        gross_amount = rate_per_hour * rate * entry.hours
        taxable_amount = rate_per_hour * entry.hours
        breakdowns.append(OvertimeBreakdown(
            type=entry.type,
            shift=entry.shift,
            hours=entry.hours,
            rate=rate,
            hourly_rate=rate_per_hour,
            gross_amount=gross_amount,
            taxable_amount=taxable_amount,
            tax_exempt_amount=gross_amount - taxable_amount,
        ))

    total_hours = sum(b.hours for b in breakdowns)
    total_gross = sum(b.gross_amount for b in breakdowns)
    total_taxable = sum(b.taxable_amount for b in breakdowns)
    total_exempt = sum(b.tax_exempt_amount for b in breakdowns)

    # Working a normally paid holiday also earns the day's base pay
    holiday_hours = sum(e.hours for e in overtime_input.entries if e.type == OvertimeType.holiday)
    holiday_base_pay = rate_per_hour * holiday_hours if overtime_input.include_holiday_base_pay else 0.0

    # Insurance on the salary only; taxable overtime rides along as bonus income
    result = compute_tax(TaxInput(
        gross_income=overtime_input.monthly_salary,
        bonus_income=total_taxable + holiday_base_pay,
        dependents=overtime_input.dependents,
        other_deductions=overtime_input.other_deductions,
        insurance_options=overtime_input.insurance_options,
        region=overtime_input.region,
        regime=overtime_input.regime,
    ))

    total_gross_income = overtime_input.monthly_salary + total_gross + holiday_base_pay
    return OvertimeResult(
        hourly_rate=rate_per_hour,
        regular_monthly_pay=overtime_input.monthly_salary,
        breakdowns=breakdowns,
        total_overtime_hours=total_hours,
        total_overtime_gross=total_gross,
        total_taxable_overtime=total_taxable,
        total_tax_exempt_overtime=total_exempt,
        holiday_base_pay=holiday_base_pay,
        holiday_hours=holiday_hours,
        total_gross_income=total_gross_income,
        total_taxable_income=overtime_input.monthly_salary + total_taxable + holiday_base_pay,
        insurance_amount=result.insurance_deduction,
        insurance_detail=result.insurance_detail,
        tax_amount=result.tax_amount,
        net_income=total_gross_income - result.insurance_deduction - result.tax_amount,
        effective_overtime_rate=(
            total_gross / (rate_per_hour * total_hours) if total_hours > 0 and rate_per_hour > 0 else 0.0
        ),
        tax_exempt_percentage=(total_exempt / total_gross) * 100 if total_gross > 0 else 0.0,
        warnings=check_overtime_limits(overtime_input.entries, overtime_input.hours_per_day),
    )
