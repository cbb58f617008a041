"""
routes.py — calculator HTTP endpoints.

POST /api/calculators/gross-net      — gross ⇄ net + 12-month projection
POST /api/calculators/bonus          — bonus timing scenarios + optimal H1/H2 split
POST /api/calculators/esop           — ESOP exercise timing
POST /api/calculators/overtime       — overtime pay, exempt premium, legal-limit warnings
POST /api/calculators/yearly         — two-year strategies (presets or explicit pairs)
POST /api/calculators/employer-cost  — employer insurance + total cost
POST /api/calculators/salary-comparison — 2-4 job offers side by side under one law
"""
from __future__ import annotations

import json
import logging

from fastapi import APIRouter

from vnpit.calculators.bonus import (
    compare_bonus_scenarios,
    find_optimal_split_ratio,
    marginal_bonus_tax_rate,
)
from vnpit.calculators.employer_cost import calculate_employer_cost
from vnpit.calculators.esop import compare_esop_periods
from vnpit.calculators.gross_net import convert_gross_net, yearly_projection
from vnpit.calculators.overtime import calculate_overtime
from vnpit.calculators.salary_comparison import compare_salary_offers
from vnpit.calculators.schemas import (
    BonusInput,
    BonusResponse,
    EmployerCostInput,
    EmployerCostResult,
    EsopComparison,
    EsopInput,
    GrossNetRequest,
    GrossNetResponse,
    OvertimeInput,
    OvertimeResult,
    SalaryComparisonInput,
    SalaryComparisonResult,
    StrategyComparison,
    YearlyRequest,
)
from vnpit.calculators.yearly import (
    calculate_two_year_strategy,
    compare_all_presets,
    compare_strategies,
)
from vnpit.engine.schemas import Regime

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/calculators", tags=["Calculators"])


@router.post("/gross-net", response_model=GrossNetResponse)
async def gross_net_endpoint(body: GrossNetRequest) -> GrossNetResponse:
    result = convert_gross_net(body.amount, body.direction, body)
    return GrossNetResponse(result=result, yearly=yearly_projection(result))


@router.post("/bonus", response_model=BonusResponse)
async def bonus_endpoint(body: BonusInput) -> BonusResponse:
    return BonusResponse(
        comparison=compare_bonus_scenarios(body),
        optimal_split=find_optimal_split_ratio(body),
        marginal_rate_old=marginal_bonus_tax_rate(body, Regime.old),
        marginal_rate_new=marginal_bonus_tax_rate(body, Regime.new),
    )


@router.post("/esop", response_model=EsopComparison)
async def esop_endpoint(body: EsopInput) -> EsopComparison:
    return compare_esop_periods(body)


@router.post("/overtime", response_model=OvertimeResult)
async def overtime_endpoint(body: OvertimeInput) -> OvertimeResult:
    result = calculate_overtime(body)
    if result.warnings:
        logger.info("Overtime request produced %d limit warning(s)", len(result.warnings))
    return result


@router.post("/yearly", response_model=StrategyComparison)
async def yearly_endpoint(body: YearlyRequest) -> StrategyComparison:
    """
    Presets take precedence; otherwise every item of `strategies` must be a
    [first_year, second_year] pair.
    """
    if body.presets is not None:
        return compare_all_presets(body.presets)

    bad_pairs = [i for i, pair in enumerate(body.strategies) if len(pair) != 2]
    if bad_pairs:
        raise ValueError(json.dumps([
            {"field": f"strategies[{i}]", "issue": "Each strategy must contain exactly two year scenarios."}
            for i in bad_pairs
        ]))
    return compare_strategies([
        calculate_two_year_strategy(first, second) for first, second in body.strategies
    ])


@router.post("/employer-cost", response_model=EmployerCostResult)
async def employer_cost_endpoint(body: EmployerCostInput) -> EmployerCostResult:
    return calculate_employer_cost(body)


@router.post("/salary-comparison", response_model=SalaryComparisonResult)
async def salary_comparison_endpoint(body: SalaryComparisonInput) -> SalaryComparisonResult:
    return compare_salary_offers(body)
