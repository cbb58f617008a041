"""
schemas.py — calculator Pydantic v2 request/response contracts.

Every calculator is a thin wrapper around the engine: it shapes scenario
inputs into TaxInput, calls compute_tax / gross_from_net, and reports the
differences. Nothing here carries tax rules of its own.
"""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from vnpit.config import settings
from vnpit.engine.schemas import (
    Allowances,
    EmployerInsuranceDetail,
    GrossFromNetParams,
    InsuranceDetail,
    InsuranceOptions,
    Regime,
    Region,
    TaxResult,
)


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------

class HouseholdParams(BaseModel):
    """Fields every scenario calculator needs besides the income itself."""
    model_config = ConfigDict(extra="forbid")

    dependents: int = Field(default=0, ge=0)
    region: Region = Field(default_factory=lambda: settings.default_region)
    insurance_options: InsuranceOptions = Field(default_factory=InsuranceOptions)


class TimingScenario(BaseModel):
    """A payment moment. The law is derived from (year, month) by the transition rule."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    year: int
    month: int


# ---------------------------------------------------------------------------
# Gross ⇄ net
# ---------------------------------------------------------------------------

class GrossNetRequest(GrossFromNetParams):
    amount: float = Field(..., ge=0)
    direction: Literal["gross", "net"] = "gross"      # what `amount` is


class YearlyProjection(BaseModel):
    yearly_gross: float
    yearly_net: float
    yearly_tax: float
    yearly_insurance: float


class GrossNetResponse(BaseModel):
    result: TaxResult
    yearly: YearlyProjection


# ---------------------------------------------------------------------------
# Bonus timing
# ---------------------------------------------------------------------------

class BonusInput(HouseholdParams):
    monthly_salary: float = Field(..., ge=0)
    thirteenth_month_salary: float = Field(default=0, ge=0)
    tet_bonus: float = Field(default=0, ge=0)
    other_bonuses: float = Field(default=0, ge=0)

    @property
    def total_bonus(self) -> float:
        return self.thirteenth_month_salary + self.tet_bonus + self.other_bonuses


class BonusScenarioResult(BaseModel):
    scenario: TimingScenario
    law: Regime
    total_bonus: float
    monthly_tax_with_bonus: float
    monthly_tax_without_bonus: float
    additional_tax: float
    net_bonus: float
    effective_tax_rate: float        # percent of the bonus
    annual_income: float             # 12 x salary + bonus
    annual_tax: float                # 11 normal months + the bonus month


class BonusComparison(BaseModel):
    scenarios: List[BonusScenarioResult]
    recommendation: TimingScenario
    max_savings: float               # worst additional tax - best additional tax


class BonusSplitResult(BaseModel):
    split_ratio: float               # share paid in H1 (old law)
    h1_portion: float
    h2_portion: float
    h1_tax: float
    h2_tax: float
    total_tax: float
    total_net_bonus: float


class BonusResponse(BaseModel):
    comparison: BonusComparison
    optimal_split: BonusSplitResult
    marginal_rate_old: float
    marginal_rate_new: float


# ---------------------------------------------------------------------------
# ESOP timing
# ---------------------------------------------------------------------------

class EsopInput(HouseholdParams):
    grant_price: float = Field(..., ge=0)
    exercise_price: float = Field(..., ge=0)
    number_of_shares: float = Field(..., ge=0)
    monthly_salary: float = Field(default=0, ge=0)


class EsopPeriodResult(BaseModel):
    period: TimingScenario
    law: Regime
    taxable_gain: float
    tax: float                       # extra tax of the exercise month
    net_gain: float
    effective_tax_rate: float
    total_value: float
    monthly_tax_with_esop: float
    monthly_tax_without_esop: float


class EsopComparison(BaseModel):
    periods: List[EsopPeriodResult]
    recommendation: TimingScenario
    max_savings: float
    taxable_gain: float
    total_value: float


class AnnualEsopImpact(BaseModel):
    exercise_month: int
    monthly_taxes: List[float]
    total_annual_tax: float
    tax_without_esop: float
    esop_tax_impact: float


# ---------------------------------------------------------------------------
# Overtime
# ---------------------------------------------------------------------------

class OvertimeType(str, Enum):
    weekday = "weekday"
    weekend = "weekend"
    holiday = "holiday"


class ShiftType(str, Enum):
    day = "day"
    night = "night"              # 22:00 - 06:00


class OvertimeEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: OvertimeType
    shift: ShiftType = ShiftType.day
    hours: float = Field(..., ge=0)


class OvertimeInput(HouseholdParams):
    monthly_salary: float = Field(..., ge=0)
    working_days_per_month: int = Field(default=26, ge=1, le=31)
    hours_per_day: float = Field(default=8, gt=0, le=24)
    entries: List[OvertimeEntry] = []
    include_holiday_base_pay: bool = False
    other_deductions: float = Field(default=0, ge=0)
    regime: Regime = Regime.new


class OvertimeBreakdown(BaseModel):
    type: OvertimeType
    shift: ShiftType
    hours: float
    rate: float
    hourly_rate: float
    gross_amount: float
    taxable_amount: float            # regular hourly pay for those hours
    tax_exempt_amount: float         # premium above regular pay


class OvertimeResult(BaseModel):
    hourly_rate: float
    regular_monthly_pay: float
    breakdowns: List[OvertimeBreakdown]

    total_overtime_hours: float
    total_overtime_gross: float
    total_taxable_overtime: float
    total_tax_exempt_overtime: float

    holiday_base_pay: float
    holiday_hours: float

    total_gross_income: float
    total_taxable_income: float

    insurance_amount: float
    insurance_detail: InsuranceDetail
    tax_amount: float
    net_income: float

    effective_overtime_rate: float   # average multiplier
    tax_exempt_percentage: float
    warnings: List[str] = []


# ---------------------------------------------------------------------------
# Yearly comparison
# ---------------------------------------------------------------------------

class YearMonthEntry(BaseModel):
    """
    One pay event. Regular entries carry a month's salary; bonus entries are
    stacked on top of the regular pay of their nominal month (month > 12 = December).
    """
    model_config = ConfigDict(extra="forbid")

    month: int = Field(..., ge=1)
    gross_income: float = Field(default=0, ge=0)
    is_bonus: bool = False
    label: Optional[str] = None


class YearScenario(HouseholdParams):
    id: str
    name: str
    year: int = Field(..., ge=2000, le=2100)
    months: List[YearMonthEntry]
    bonus_months: List[YearMonthEntry] = []
    declared_salary: Optional[float] = Field(default=None, ge=0)


class MonthlyScenarioResult(BaseModel):
    month: int
    label: Optional[str] = None
    is_bonus: bool
    used_law: Regime
    gross_income: float
    insurance: float
    insurance_detail: InsuranceDetail
    personal_deduction: float
    dependent_deduction: float
    taxable_income: float
    tax: float
    net_income: float


class YearlyResult(BaseModel):
    scenario_id: str
    scenario_name: str
    year: int
    total_gross: float
    total_insurance: float
    total_tax: float
    total_net: float
    effective_rate: float
    monthly_breakdown: List[MonthlyScenarioResult]
    old_law_months: int
    new_law_months: int


class TwoYearResult(BaseModel):
    first_year: YearlyResult
    second_year: YearlyResult
    combined_gross: float
    combined_tax: float
    combined_net: float
    combined_effective_rate: float


class StrategyComparison(BaseModel):
    strategies: List[TwoYearResult]
    best_strategy: int               # index into strategies, -1 when empty
    max_savings: float               # versus the first strategy


class PresetRequest(HouseholdParams):
    monthly_salary: float = Field(..., ge=0)
    bonus_amount: Optional[float] = Field(default=None, ge=0)   # defaults to one month's salary


class YearlyRequest(BaseModel):
    """Either presets (compare the three built-in strategies) or explicit scenario pairs."""
    model_config = ConfigDict(extra="forbid")

    presets: Optional[PresetRequest] = None
    strategies: List[List[YearScenario]] = []


# ---------------------------------------------------------------------------
# Employer cost
# ---------------------------------------------------------------------------

class EmployerCostInput(HouseholdParams):
    gross_income: float = Field(..., ge=0)
    declared_salary: Optional[float] = Field(default=None, ge=0)
    include_union_fee: bool = False
    regime: Regime = Regime.new
    allowances: Optional[Allowances] = None
    as_of: Optional[date] = None


class EmployerCostResult(BaseModel):
    gross_salary: float
    employer_insurance: EmployerInsuranceDetail
    total_employer_cost: float
    yearly_employer_cost: float
    employee_insurance: InsuranceDetail
    employee_tax: float
    employee_net_income: float
    insurance_percent_of_gross: float
    total_cost_percent_of_gross: float


# ---------------------------------------------------------------------------
# Salary offer comparison
# ---------------------------------------------------------------------------

class SalaryOffer(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1)
    gross_salary: float = Field(..., gt=0)
    bonus_months: int = Field(default=0, ge=0, le=3)     # 13th, 14th... month salaries a year
    other_benefits: float = Field(default=0, ge=0)       # monthly, paid on top of net
    has_insurance: bool = True
    region: Region = Field(default_factory=lambda: settings.default_region)


class SalaryComparisonInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    offers: List[SalaryOffer] = Field(..., min_length=2, max_length=4)
    dependents: int = Field(default=0, ge=0)
    regime: Regime = Regime.new
    as_of: Optional[date] = None


class OfferResult(BaseModel):
    name: str
    monthly_gross: float
    monthly_insurance: float
    monthly_tax: float
    monthly_net: float
    monthly_benefits: float
    monthly_total: float             # net + benefits
    annual_gross: float              # 12 x salary
    annual_bonus: float              # bonus_months x salary
    annual_total_gross: float
    annual_insurance: float
    annual_tax: float                # 12 regular months + the bonus stacked on one month
    annual_net: float                # after tax and insurance, benefits included


class BestOffer(BaseModel):
    by_monthly_net: int
    by_annual_net: int
    by_lowest_tax: int


class OfferDifferences(BaseModel):
    max_monthly_diff: float
    max_annual_diff: float


class SalaryComparisonResult(BaseModel):
    regime: Regime
    offers: List[OfferResult]
    best_offer: BestOffer
    differences: OfferDifferences
