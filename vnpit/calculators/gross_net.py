"""
gross_net.py — GROSS ⇄ NET converter.

direction="gross": amount is the gross salary → ForwardTaxEngine
direction="net":   amount is the desired take-home → InverseTaxEngine
"""
from __future__ import annotations

from vnpit.calculators.schemas import YearlyProjection
from vnpit.engine.inverse import gross_from_net
from vnpit.engine.schemas import GrossFromNetParams, TaxInput, TaxResult
from vnpit.engine.tax_engine import compute_tax


def convert_gross_net(amount: float, direction: str, params: GrossFromNetParams) -> TaxResult:
    # GrossNetRequest carries amount/direction on the same model
    fields = params.model_dump(exclude={"amount", "direction"})
    if direction == "gross":
        return compute_tax(TaxInput(gross_income=amount, **fields))
    if direction == "net":
        return gross_from_net(amount, GrossFromNetParams(**fields))
    raise ValueError(f"direction must be 'gross' or 'net', got {direction!r}")


def yearly_projection(monthly: TaxResult) -> YearlyProjection:
    """Twelve identical months."""
    return YearlyProjection(
        yearly_gross=monthly.total_income * 12,
        yearly_net=monthly.net_income * 12,
        yearly_tax=monthly.tax_amount * 12,
        yearly_insurance=monthly.insurance_deduction * 12,
    )
