"""
deductions.py — DeductionResolver and caller-side deduction helpers.

resolve_deductions() only looks up the regime constants and passes other
deductions through. Capping policy (voluntary pension <= 1M/month) belongs to
the caller and is provided here as separate helpers.
"""
from __future__ import annotations

from vnpit.engine.regimes import get_regime_config
from vnpit.engine.schemas import Allowances, AllowancesBreakdown, DeductionBreakdown, Regime

# ===========================================================================
# CAPS
# ===========================================================================

MAX_VOLUNTARY_PENSION_MONTHLY = 1_000_000
MAX_VOLUNTARY_PENSION_YEARLY  = 12_000_000

# Uniform allowance: 5M/year exempt (Circular 111/2013) ≈ 416,667/month
CLOTHING_EXEMPT_YEARLY  = 5_000_000
CLOTHING_EXEMPT_MONTHLY = 416_667


def resolve_deductions(
    regime: Regime | str,
    dependents: int,
    other_deductions: float = 0,
) -> DeductionBreakdown:
    """
    Statutory family deductions for one month.

    dependents is not validated (caller responsibility); it only scales a
    multiplication, so 0 or any other integer is safe.
    """
    config = get_regime_config(regime)
    personal = float(config.personal_deduction)
    dependent = dependents * config.dependent_deduction
    return DeductionBreakdown(
        personal=personal,
        dependent=dependent,
        other=other_deductions,
        total=personal + dependent + other_deductions,
    )


def cap_voluntary_pension(monthly_contribution: float) -> float:
    return min(max(0.0, monthly_contribution), MAX_VOLUNTARY_PENSION_MONTHLY)


def cap_voluntary_pension_yearly(yearly_contribution: float) -> float:
    return min(max(0.0, yearly_contribution), MAX_VOLUNTARY_PENSION_YEARLY)


def combine_other_deductions(charitable: float = 0, voluntary_pension: float = 0) -> float:
    """Charity is uncapped; the monthly voluntary pension is capped before it is added."""
    return max(0.0, charitable) + cap_voluntary_pension(voluntary_pension)


def calculate_allowances_breakdown(allowances: Allowances | None) -> AllowancesBreakdown:
    """
    Split monthly allowances into tax-exempt and taxable parts.

    Exempt:  meal, phone, transport, hazardous, clothing up to 416,667
    Taxable: housing, position, clothing above the limit
    """
    if allowances is None:
        return AllowancesBreakdown()

    clothing_exempt = min(allowances.clothing, CLOTHING_EXEMPT_MONTHLY)
    clothing_taxable = max(0.0, allowances.clothing - CLOTHING_EXEMPT_MONTHLY)

    tax_exempt = (
        allowances.meal
        + allowances.phone
        + allowances.transport
        + allowances.hazardous
        + clothing_exempt
    )
    taxable = allowances.housing + allowances.position + clothing_taxable

    return AllowancesBreakdown(
        tax_exempt=tax_exempt,
        taxable=taxable,
        total=tax_exempt + taxable,
        clothing_exempt=clothing_exempt,
        clothing_taxable=clothing_taxable,
    )
