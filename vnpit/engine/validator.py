"""
Settlement input business-rule validator

Runs AFTER Pydantic structural validation has passed. Collects all violations
in a single pass and raises ValueError with a JSON-encoded list of
{field, issue} dicts so the global exception handler can build the standard
error envelope.

Rules enforced:
  1. months 1..12 each present exactly once (month > 12 = bonus slot, allowed)
  2. no negative money on any entry (gross_salary, bonus, tax_exempt, tax_paid)
  3. charitable_contributions, voluntary_pension, manual_tax_paid >= 0
  4. voluntary_pension <= 12,000,000 / year
  5. dependent windows within 1..12 and from_month <= to_month

The engine itself never validates; it clamps. This module is for the HTTP
boundary and for callers that want early feedback.
"""
from __future__ import annotations

import json
import logging
from collections import Counter
from typing import Any

from vnpit.engine.deductions import MAX_VOLUNTARY_PENSION_YEARLY
from vnpit.engine.schemas import SettlementInput

logger = logging.getLogger(__name__)

_MONTHS = range(1, 13)
_ENTRY_MONEY_FIELDS = ("gross_salary", "bonus", "tax_exempt", "tax_paid")


def validate_settlement_input(settlement_input: SettlementInput) -> None:
    """
    Validate a settlement request against the rules above.

    Raises:
        ValueError: If any rule is violated. The message is a JSON string
            containing a list of {"field": str, "issue": str} dicts.
    """
    violations: list[dict[str, Any]] = []

    # ---- 1. Month coverage ---------------------------------------------------
    counts = Counter(e.month for e in settlement_input.monthly_income)
    missing = [m for m in _MONTHS if counts[m] == 0]
    duplicated = sorted(m for m, n in counts.items() if n > 1)
    if missing:
        violations.append({
            "field": "monthly_income",
            "issue": f"Missing months: {', '.join(str(m) for m in missing)}. All 12 months are required.",
        })
    if duplicated:
        violations.append({
            "field": "monthly_income",
            "issue": f"Months entered more than once: {', '.join(str(m) for m in duplicated)}.",
        })

    # ---- 2. Non-negative entry amounts -----------------------------------------
    for i, entry in enumerate(settlement_input.monthly_income):
        for name in _ENTRY_MONEY_FIELDS:
            value = getattr(entry, name)
            if value is not None and value < 0:
                violations.append({
                    "field": f"monthly_income[{i}].{name}",
                    "issue": f"Month {entry.month}: {name} must not be negative (got {value:,.0f}).",
                })

    # ---- 3. Non-negative yearly amounts ----------------------------------------
    for name in ("charitable_contributions", "voluntary_pension", "manual_tax_paid"):
        value = getattr(settlement_input, name)
        if value is not None and value < 0:
            violations.append({
                "field": name,
                "issue": f"{name} must not be negative (got {value:,.0f}).",
            })

    # ---- 4. Voluntary pension yearly cap ---------------------------------------
    if settlement_input.voluntary_pension > MAX_VOLUNTARY_PENSION_YEARLY:
        violations.append({
            "field": "voluntary_pension",
            "issue": (
                f"Value {settlement_input.voluntary_pension:,.0f} exceeds the yearly "
                f"voluntary pension cap of {MAX_VOLUNTARY_PENSION_YEARLY:,.0f}."
            ),
        })

    # ---- 5. Dependent windows ---------------------------------------------------
    for i, window in enumerate(settlement_input.dependents):
        label = window.name or f"#{i + 1}"
        if window.from_month not in _MONTHS:
            violations.append({
                "field": f"dependents[{i}].from_month",
                "issue": f"Dependent {label}: from_month must be between 1 and 12.",
            })
        if window.to_month not in _MONTHS:
            violations.append({
                "field": f"dependents[{i}].to_month",
                "issue": f"Dependent {label}: to_month must be between 1 and 12.",
            })
        if window.from_month > window.to_month:
            violations.append({
                "field": f"dependents[{i}]",
                "issue": f"Dependent {label}: from_month is after to_month.",
            })

    if violations:
        # Log count only — no salary values
        logger.info(
            "Settlement validation failed: %d violation(s) year=%d",
            len(violations),
            settlement_input.year,
        )
        raise ValueError(json.dumps(violations))
