"""
schemas.py — engine Pydantic v2 data contracts.

Defines:
  - Regime, SettlementType enums and the Region literal
  - TaxBracket, BracketBreakdown              (bracket table + per-bracket result rows)
  - InsuranceOptions, InsuranceCaps, InsuranceDetail, EmployerInsuranceDetail
  - Allowances, AllowancesBreakdown, DeductionBreakdown
  - TaxInput, GrossFromNetParams, TaxResult, RegimeComparison
  - MonthlyIncomeEntry, DependentWindow, MonthlyBreakdown, PeriodBreakdown,
    AnnualDeductions, DependentSummary, AnnualTotals, SettlementInput, SettlementResult
  - GrossFromNetRequest, InsuranceRequest/Response, TaxRangeRequest/Point, BracketView
  - ErrorDetail, ErrorBody, ErrorResponse     (cross-cutting error envelope)

All money is VND as float. All rates are fractions (0.05 == 5%).
Every model is a value object built fresh per computation — nothing here is shared state.
"""
from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from vnpit.config import settings


Region = Literal[1, 2, 3, 4]


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class Regime(str, Enum):
    old = "old"      # 7 brackets, 11M / 4.4M deductions
    new = "new"      # 5 brackets, 15.5M / 6.2M deductions


class SettlementType(str, Enum):
    pay = "pay"
    refund = "refund"
    even = "even"


# ---------------------------------------------------------------------------
# Brackets
# ---------------------------------------------------------------------------

class TaxBracket(BaseModel):
    """
    One progressive bracket. The top bracket has max = float("inf").

    quick_deduction is the cumulative-tax correction that makes
    taxable_income * rate - quick_deduction equal the progressive total
    for any income inside this bracket.
    """
    model_config = ConfigDict(extra="forbid", frozen=True)

    min: float
    max: float
    rate: float
    quick_deduction: float


class BracketBreakdown(BaseModel):
    """Slice of taxable income taxed inside one bracket. to_amount is never infinite."""
    model_config = ConfigDict(extra="forbid")

    bracket: int                 # 1-based bracket number
    from_amount: float
    to_amount: float
    rate: float
    taxable_amount: float
    tax_amount: float


# ---------------------------------------------------------------------------
# Insurance
# ---------------------------------------------------------------------------

class InsuranceOptions(BaseModel):
    """
    Independently togglable mandatory insurance lines.
    has_insurance is a derived view, never stored separately.
    """
    model_config = ConfigDict(extra="forbid")

    bhxh: bool = True    # social insurance 8%
    bhyt: bool = True    # health insurance 1.5%
    bhtn: bool = True    # unemployment insurance 1%

    @property
    def has_insurance(self) -> bool:
        return self.bhxh and self.bhyt and self.bhtn

    @classmethod
    def from_flag(cls, has_insurance: bool) -> "InsuranceOptions":
        return cls(bhxh=has_insurance, bhyt=has_insurance, bhtn=has_insurance)


class InsuranceCaps(BaseModel):
    """Salary caps in effect for one (region, date) pair."""
    model_config = ConfigDict(extra="forbid")

    base_salary: float              # statutory base salary (lương cơ sở)
    social_health_cap: float        # 20 x base salary — BHXH and BHYT
    regional_minimum_wage: float
    unemployment_cap: float         # 20 x regional minimum wage — BHTN


class InsuranceDetail(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bhxh: float = 0
    bhyt: float = 0
    bhtn: float = 0
    total: float = 0


class EmployerInsuranceDetail(BaseModel):
    model_config = ConfigDict(extra="forbid")

    bhxh: float = 0          # 17.5%
    bhyt: float = 0          # 3%
    bhtn: float = 0          # 1%
    union_fee: float = 0     # 2% of gross, uncapped, optional
    total: float = 0


# ---------------------------------------------------------------------------
# Allowances and deductions
# ---------------------------------------------------------------------------

class Allowances(BaseModel):
    """Monthly allowances paid on top of the salary."""
    model_config = ConfigDict(extra="forbid")

    # Fully exempt
    meal: float = Field(default=0, ge=0)
    phone: float = Field(default=0, ge=0)
    transport: float = Field(default=0, ge=0)
    hazardous: float = Field(default=0, ge=0)
    # Exempt up to a monthly limit
    clothing: float = Field(default=0, ge=0)
    # Fully taxable
    housing: float = Field(default=0, ge=0)
    position: float = Field(default=0, ge=0)


class AllowancesBreakdown(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tax_exempt: float = 0
    taxable: float = 0
    total: float = 0
    clothing_exempt: float = 0
    clothing_taxable: float = 0


class DeductionBreakdown(BaseModel):
    """Statutory family deductions for one month under one regime."""
    model_config = ConfigDict(extra="forbid")

    personal: float
    dependent: float
    other: float
    total: float


# ---------------------------------------------------------------------------
# Forward / inverse engine contracts
# ---------------------------------------------------------------------------

class GrossFromNetParams(BaseModel):
    """
    Everything ForwardTaxEngine needs except the gross income itself.

    declared_salary, when present, is the basis for BOTH insurance and tax.
    gross_income stays the basis for net income reporting.
    """
    model_config = ConfigDict(extra="forbid")

    declared_salary: Optional[float] = Field(default=None, ge=0)
    dependents: int = Field(default=0, ge=0)
    other_deductions: float = Field(default=0, ge=0)
    insurance_options: InsuranceOptions = Field(default_factory=InsuranceOptions)
    region: Region = Field(default_factory=lambda: settings.default_region)
    regime: Regime = Regime.new
    as_of: Optional[date] = None          # date used to resolve insurance caps; today if omitted
    bonus_income: float = Field(default=0, ge=0)   # taxable, not subject to insurance
    voluntary_pension: float = Field(default=0, ge=0)  # monthly; deductible up to 1M
    allowances: Optional[Allowances] = None


class TaxInput(GrossFromNetParams):
    gross_income: float = Field(..., ge=0)


class TaxResult(BaseModel):
    """
    Output of ForwardTaxEngine (and InverseTaxEngine at its converged point).

    Computation sequence:
      1. taxable_salary = declared_salary ?? gross_income
      2. insurance on taxable_salary (capped)
      3. taxable_income = max(0, taxable_salary + bonus + taxable allowances - deductions)
      4. tax via progressive brackets
      5. net_income = total_income - insurance - tax   ← real salary, never declared
    """
    model_config = ConfigDict(extra="forbid")

    regime: Regime
    gross_income: float
    total_income: float              # gross + bonus + all allowances
    insurance_deduction: float
    insurance_detail: InsuranceDetail
    personal_deduction: float
    dependent_deduction: float
    other_deductions: float
    total_deductions: float
    taxable_income: float
    tax_amount: float
    net_income: float
    effective_rate: float            # percent of total_income
    tax_breakdown: List[BracketBreakdown] = []
    allowances_breakdown: Optional[AllowancesBreakdown] = None
    approximate: bool = False        # set by gross_from_net when it did not converge


class RegimeComparison(BaseModel):
    model_config = ConfigDict(extra="forbid")

    old_regime: TaxResult
    new_regime: TaxResult
    recommended_regime: Regime       # lower tax; ties go to new
    savings_amount: float            # abs(old_tax - new_tax)


# ---------------------------------------------------------------------------
# Period aggregation and settlement
# ---------------------------------------------------------------------------

class MonthlyIncomeEntry(BaseModel):
    """
    One income event of the settlement year.

    month 1..12 is a regular month; month > 12 is a bonus slot taxed in the
    regime of December. tax_paid=None means "estimate the withholding".
    """
    model_config = ConfigDict(extra="forbid")

    month: int = Field(..., ge=1)
    gross_salary: float = 0
    bonus: float = 0
    tax_exempt: float = 0            # overtime premium, exempt allowances
    tax_paid: Optional[float] = None


class DependentWindow(BaseModel):
    """Registration window of one dependent, inclusive on both ends."""
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = None
    from_month: int = 1
    to_month: int = 12


class MonthlyBreakdown(BaseModel):
    model_config = ConfigDict(extra="forbid")

    month: int
    month_name: str
    law: Regime
    gross: float
    bonus: float
    tax_exempt: float
    taxable_income: float            # gross + bonus - tax_exempt
    insurance: float
    personal_deduction: float
    dependent_count: int
    dependent_deduction: float
    tax_paid: float
    estimated: bool                  # True when tax_paid came from the engine


class PeriodBreakdown(BaseModel):
    """A run of calendar months sharing one law (whole year, or T1-T6 / T7-T12)."""
    model_config = ConfigDict(extra="forbid")

    period_name: str
    law: Regime
    months: List[int]

    total_gross: float
    total_bonus: float
    total_tax_exempt: float
    total_taxable_income: float

    personal_deduction: float
    dependent_deduction: float
    insurance_deduction: float
    other_deduction: float
    total_deductions: float

    assessable_income: float         # max(0, taxable income - deductions)
    tax_due: float = 0               # filled in by the reconciler
    tax_paid: float


class AnnualDeductions(BaseModel):
    model_config = ConfigDict(extra="forbid")

    personal: float
    dependent: float
    insurance: float
    other: float
    total: float


class DependentSummary(BaseModel):
    model_config = ConfigDict(extra="forbid")

    count: int
    total_months: int
    total_deduction: float


class AnnualTotals(BaseModel):
    """PeriodAggregator output — everything the reconciler needs."""
    model_config = ConfigDict(extra="forbid")

    year: int
    is_transition_year: bool
    regime: Regime                   # law of the year's last month

    total_gross_income: float
    total_bonus_income: float
    total_tax_exempt_income: float
    total_taxable_income: float

    deductions: AnnualDeductions
    total_assessable_income: float
    total_tax_paid: float

    insurance_detail: InsuranceDetail        # annual sum
    dependent_summary: DependentSummary
    periods: List[PeriodBreakdown]
    monthly_breakdown: List[MonthlyBreakdown]


class SettlementInput(BaseModel):
    model_config = ConfigDict(extra="forbid")

    year: int = Field(..., ge=2000, le=2100)
    monthly_income: List[MonthlyIncomeEntry]
    dependents: List[DependentWindow] = []
    charitable_contributions: float = 0      # yearly, uncapped
    voluntary_pension: float = 0             # yearly, capped at 12M by the caller
    insurance_options: InsuranceOptions = Field(default_factory=InsuranceOptions)
    region: Region = Field(default_factory=lambda: settings.default_region)
    declared_salary: Optional[float] = Field(default=None, ge=0)
    manual_tax_paid: Optional[float] = None


class SettlementResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    year: int
    is_transition_year: bool

    total_gross_income: float
    total_bonus_income: float
    total_tax_exempt_income: float
    total_taxable_income: float
    deductions: AnnualDeductions
    total_assessable_income: float

    annual_tax_due: float
    total_tax_paid: float
    difference: float                # positive = pay more, negative = refund
    settlement_type: SettlementType

    periods: List[PeriodBreakdown]
    monthly_breakdown: List[MonthlyBreakdown]
    insurance_detail: InsuranceDetail
    dependent_summary: DependentSummary


# ---------------------------------------------------------------------------
# HTTP request / view models
# ---------------------------------------------------------------------------

class GrossFromNetRequest(GrossFromNetParams):
    target_net: float = Field(..., ge=0)


class InsuranceRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    base: float = Field(..., ge=0)
    region: Region = Field(default_factory=lambda: settings.default_region)
    as_of: Optional[date] = None
    insurance_options: InsuranceOptions = Field(default_factory=InsuranceOptions)
    include_union_fee: bool = False


class InsuranceResponse(BaseModel):
    caps: InsuranceCaps
    employee: InsuranceDetail
    employer: EmployerInsuranceDetail


# Chart sweeps stop at 10B VND/month; the point count is capped by the engine
MAX_RANGE_INCOME = 10_000_000_000


class TaxRangeRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    min_income: float = Field(default=0, ge=0, le=MAX_RANGE_INCOME)
    max_income: float = Field(default=100_000_000, ge=0, le=MAX_RANGE_INCOME)
    step: float = Field(default=5_000_000, gt=0)
    dependents: int = Field(default=0, ge=0)


class TaxRangePoint(BaseModel):
    income: float
    old_tax: float
    new_tax: float
    savings: float                   # old - new


class BracketView(BaseModel):
    """JSON-safe bracket row: the unbounded top bracket has max=None."""
    bracket: int
    min: float
    max: Optional[float]
    rate: float
    quick_deduction: float


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------

class ErrorDetail(BaseModel):
    field: Optional[str] = None
    issue: str


class ErrorBody(BaseModel):
    code: str
    message: str
    details: List[ErrorDetail] = []


class ErrorResponse(BaseModel):
    error: ErrorBody


__all__ = [
    "Region",
    "Regime",
    "SettlementType",
    "TaxBracket",
    "BracketBreakdown",
    "InsuranceOptions",
    "InsuranceCaps",
    "InsuranceDetail",
    "EmployerInsuranceDetail",
    "Allowances",
    "AllowancesBreakdown",
    "DeductionBreakdown",
    "GrossFromNetParams",
    "TaxInput",
    "TaxResult",
    "RegimeComparison",
    "MonthlyIncomeEntry",
    "DependentWindow",
    "MonthlyBreakdown",
    "PeriodBreakdown",
    "AnnualDeductions",
    "DependentSummary",
    "AnnualTotals",
    "SettlementInput",
    "SettlementResult",
    "GrossFromNetRequest",
    "InsuranceRequest",
    "InsuranceResponse",
    "TaxRangeRequest",
    "TaxRangePoint",
    "BracketView",
    "ErrorDetail",
    "ErrorBody",
    "ErrorResponse",
]
