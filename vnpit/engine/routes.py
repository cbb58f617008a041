"""
routes.py — engine HTTP endpoints.

POST /api/tax              — ForwardTaxEngine under the requested regime
POST /api/tax/compare      — same input under both regimes + recommendation
POST /api/tax/range        — old vs new tax across a gross sweep (chart data)
POST /api/insurance        — employee + employer contributions and the caps used
POST /api/gross-from-net   — InverseTaxEngine
POST /api/settlement       — validate → aggregate months → reconcile
GET  /api/brackets/{regime} — bracket table (top bracket max=null)

Stateless: every request is computed from its body, nothing is stored.
Business-rule ValueErrors propagate to the global handler in main.py.
"""
from __future__ import annotations

import logging
import math
from typing import List

from fastapi import APIRouter

from vnpit.engine.insurance import (
    calculate_employer_insurance,
    calculate_insurance,
    resolve_caps,
)
from vnpit.engine.inverse import gross_from_net
from vnpit.engine.regimes import brackets_for
from vnpit.engine.schemas import (
    BracketView,
    GrossFromNetParams,
    GrossFromNetRequest,
    InsuranceRequest,
    InsuranceResponse,
    Regime,
    RegimeComparison,
    SettlementInput,
    SettlementResult,
    TaxInput,
    TaxRangePoint,
    TaxRangeRequest,
    TaxResult,
)
from vnpit.engine.settlement import calculate_annual_settlement
from vnpit.engine.tax_engine import calculate_tax_range, compare_regimes, compute_tax
from vnpit.engine.validator import validate_settlement_input

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["Engine"])


@router.post("/tax", response_model=TaxResult)
async def tax_endpoint(body: TaxInput) -> TaxResult:
    result = compute_tax(body)
    logger.info("Tax computed regime=%s dependents=%d", result.regime.value, body.dependents)
    return result


@router.post("/tax/compare", response_model=RegimeComparison)
async def compare_endpoint(body: TaxInput) -> RegimeComparison:
    return compare_regimes(body)


@router.post("/tax/range", response_model=List[TaxRangePoint])
async def tax_range_endpoint(body: TaxRangeRequest) -> list[TaxRangePoint]:
    return calculate_tax_range(body.min_income, body.max_income, body.step, body.dependents)


@router.post("/insurance", response_model=InsuranceResponse)
async def insurance_endpoint(body: InsuranceRequest) -> InsuranceResponse:
    return InsuranceResponse(
        caps=resolve_caps(body.region, body.as_of),
        employee=calculate_insurance(body.base, body.region, body.as_of, body.insurance_options),
        employer=calculate_employer_insurance(
            body.base,
            body.region,
            body.as_of,
            body.insurance_options,
            include_union_fee=body.include_union_fee,
        ),
    )


@router.post("/gross-from-net", response_model=TaxResult)
async def gross_from_net_endpoint(body: GrossFromNetRequest) -> TaxResult:
    params = GrossFromNetParams(**body.model_dump(exclude={"target_net"}))
    result = gross_from_net(body.target_net, params)
    if result.approximate:
        logger.info("gross-from-net returned an approximate result regime=%s", result.regime.value)
    return result


@router.post("/settlement", response_model=SettlementResult)
async def settlement_endpoint(body: SettlementInput) -> SettlementResult:
    """
    Annual settlement. Validation failures raise ValueError → 422 envelope
    listing every violation.
    """
    validate_settlement_input(body)
    return calculate_annual_settlement(body)


@router.get("/brackets/{regime}", response_model=List[BracketView])
async def brackets_endpoint(regime: Regime) -> list[BracketView]:
    views = []
    for i, b in enumerate(brackets_for(regime)):
        views.append(BracketView(
            bracket=i + 1,
            min=b.min,
            max=None if math.isinf(b.max) else b.max,
            rate=b.rate,
            quick_deduction=b.quick_deduction,
        ))
    return views
