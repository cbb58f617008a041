"""Tax engine — stable surface consumed by the calculators and the HTTP layer."""
from vnpit.engine.insurance import calculate_insurance
from vnpit.engine.inverse import gross_from_net
from vnpit.engine.periods import aggregate_months
from vnpit.engine.settlement import reconcile
from vnpit.engine.tax_engine import compute_tax

__all__ = [
    "compute_tax",
    "calculate_insurance",
    "gross_from_net",
    "aggregate_months",
    "reconcile",
]
