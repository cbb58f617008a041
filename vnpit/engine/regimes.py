"""
regimes.py — regime configuration and the law-switching rule.

Old and new law differ only in data (brackets + family deductions), so each
regime is one RegimeConfig value keyed by its tag. Nothing here subclasses a
calculator.

Transition: the new law applies to income from 01/07/2026. In 2026 months
1-6 use the old law and months 7-12 the new law; bonus slots (month > 12)
are taxed as December income.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from vnpit.engine.brackets import NEW_TAX_BRACKETS, OLD_TAX_BRACKETS
from vnpit.engine.schemas import Regime, TaxBracket

# ===========================================================================
# FAMILY DEDUCTION CONSTANTS (monthly VND)
# ===========================================================================

OLD_PERSONAL_DEDUCTION  = 11_000_000
OLD_DEPENDENT_DEDUCTION = 4_400_000

NEW_PERSONAL_DEDUCTION  = 15_500_000
NEW_DEPENDENT_DEDUCTION = 6_200_000

# ===========================================================================
# EFFECTIVE DATES
# ===========================================================================

# Old family deductions (11M / 4.4M) apply from 01/07/2020 (Resolution 954/2020)
OLD_TAX_LAW_EFFECTIVE = date(2020, 7, 1)
NEW_TAX_LAW_EFFECTIVE = date(2026, 7, 1)


@dataclass(frozen=True)
class RegimeConfig:
    regime: Regime
    brackets: tuple[TaxBracket, ...]
    personal_deduction: float
    dependent_deduction: float
    effective_from: date


REGIMES: dict[Regime, RegimeConfig] = {
    Regime.old: RegimeConfig(
        regime=Regime.old,
        brackets=OLD_TAX_BRACKETS,
        personal_deduction=OLD_PERSONAL_DEDUCTION,
        dependent_deduction=OLD_DEPENDENT_DEDUCTION,
        effective_from=OLD_TAX_LAW_EFFECTIVE,
    ),
    Regime.new: RegimeConfig(
        regime=Regime.new,
        brackets=NEW_TAX_BRACKETS,
        personal_deduction=NEW_PERSONAL_DEDUCTION,
        dependent_deduction=NEW_DEPENDENT_DEDUCTION,
        effective_from=NEW_TAX_LAW_EFFECTIVE,
    ),
}


def get_regime_config(regime: Regime | str) -> RegimeConfig:
    return REGIMES[Regime(regime)]


def brackets_for(regime: Regime | str) -> tuple[TaxBracket, ...]:
    return get_regime_config(regime).brackets


def regime_for_date(d: date) -> Regime:
    """Regime in force on a given day."""
    return Regime.new if d >= REGIMES[Regime.new].effective_from else Regime.old


# ===========================================================================
# TRANSITION RULE
# ===========================================================================

@dataclass(frozen=True)
class TransitionRule:
    """
    Fixed calendar boundary between the two laws.

    year < self.year  → old law for every month
    year == self.year → old before self.month, new from self.month
    year > self.year  → new law for every month
    """
    year: int = NEW_TAX_LAW_EFFECTIVE.year
    month: int = NEW_TAX_LAW_EFFECTIVE.month

    def law_for(self, year: int, month: int) -> Regime:
        nominal_month = min(month, 12)
        if year < self.year:
            return Regime.old
        if year > self.year:
            return Regime.new
        return Regime.new if nominal_month >= self.month else Regime.old

    def is_transition_year(self, year: int) -> bool:
        return year == self.year and self.month > 1


DEFAULT_TRANSITION = TransitionRule()


def nominal_date(year: int, month: int) -> date:
    """First day of a settlement month; bonus slots map to December."""
    return date(year, min(max(month, 1), 12), 1)
