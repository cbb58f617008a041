"""
inverse.py — InverseTaxEngine: target net income → gross income.

The forward function has insurance caps and bracket kinks, so there is no
closed-form inverse. Net is non-decreasing in gross (incremental insurance and
tax never exceed the incremental gross), which is all bisection needs.

Search:
  low  = max(0, target - bonus - allowances)   net can never exceed gross + extras
  high = max(2 x target, 1), grown x1.5 until net(high) >= target or the
         safety ceiling is passed
  up to MAX_ITERATIONS midpoint evaluations, early exit at |net - target| < NET_TOLERANCE

Never raises. When the ceiling is hit without bracketing the target, or the
iteration budget runs out, the best-effort result comes back with
approximate=True and a warning is logged.
"""
from __future__ import annotations

import logging

from vnpit.engine.deductions import calculate_allowances_breakdown
from vnpit.engine.schemas import GrossFromNetParams, TaxInput, TaxResult
from vnpit.engine.tax_engine import compute_tax

logger = logging.getLogger(__name__)

# ===========================================================================
# SEARCH CONSTANTS
# ===========================================================================

MAX_ITERATIONS     = 100
NET_TOLERANCE      = 1.0          # VND
UPPER_BOUND_GROWTH = 1.5
SAFETY_CEILING     = 1e9          # VND / month


def _evaluate(gross: float, params: GrossFromNetParams) -> TaxResult:
    fields = params.model_dump(exclude={"gross_income"})
    return compute_tax(TaxInput(gross_income=gross, **fields))


def gross_from_net(target_net: float, params: GrossFromNetParams) -> TaxResult:
    """
    Recover the gross income whose forward result nets to target_net.

    Returns the full TaxResult at the converged point so callers get the
    insurance and bracket breakdown without a second forward call.
    """
    target_net = max(0.0, target_net)
    extras = params.bonus_income + calculate_allowances_breakdown(params.allowances).total

    low = max(0.0, target_net - extras)
    high = max(target_net * 2, 1.0)

    bracketed = True
    while _evaluate(high, params).net_income < target_net:
        high *= UPPER_BOUND_GROWTH
        if high > SAFETY_CEILING:
            bracketed = _evaluate(high, params).net_income >= target_net
            break

    result: TaxResult | None = None
    for _ in range(MAX_ITERATIONS):
        mid = (low + high) / 2
        candidate = _evaluate(mid, params)

        if abs(candidate.net_income - target_net) < NET_TOLERANCE:
            result = candidate
            break

        if candidate.net_income < target_net:
            low = mid
        else:
            high = mid

    if result is not None and bracketed:
        return result

    if result is None:
        result = _evaluate((low + high) / 2, params)

    logger.warning(
        "gross_from_net did not converge (bracketed=%s, residual=%.2f); returning approximate result",
        bracketed, result.net_income - target_net,
    )
    return result.model_copy(update={"approximate": True})
