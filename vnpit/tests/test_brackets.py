"""
Bracket table and bracket calculator tests.

Groups:
  1. Table constants and startup validation
  2. Progressive vs quick-formula agreement
  3. Per-bracket breakdown rows
  4. Marginal rate
"""
from __future__ import annotations

import math

import pytest

from vnpit.engine.brackets import (
    INF,
    NEW_TAX_BRACKETS,
    OLD_TAX_BRACKETS,
    calculate_bracket_tax,
    calculate_quick_tax,
    marginal_rate,
    validate_bracket_table,
)
from vnpit.engine.schemas import TaxBracket


SAMPLE_INCOMES = [
    0, 1, 4_999_999, 5_000_000, 7_500_000, 10_000_000, 18_000_000, 25_000_000,
    32_000_000, 52_000_000, 80_000_000, 80_000_001, 100_000_000, 150_000_000, 1_000_000_000,
]


# ===========================================================================
# TEST GROUP 1: Table constants and validation
# ===========================================================================

def test_old_table_has_seven_brackets() -> None:
    assert len(OLD_TAX_BRACKETS) == 7
    assert [b.rate for b in OLD_TAX_BRACKETS] == [0.05, 0.10, 0.15, 0.20, 0.25, 0.30, 0.35]
    assert [b.min for b in OLD_TAX_BRACKETS] == [
        0, 5_000_000, 10_000_000, 18_000_000, 32_000_000, 52_000_000, 80_000_000,
    ]


def test_new_table_has_five_brackets() -> None:
    assert len(NEW_TAX_BRACKETS) == 5
    assert [b.rate for b in NEW_TAX_BRACKETS] == [0.05, 0.10, 0.20, 0.30, 0.35]
    assert [b.min for b in NEW_TAX_BRACKETS] == [0, 10_000_000, 30_000_000, 60_000_000, 100_000_000]


@pytest.mark.parametrize("table", [OLD_TAX_BRACKETS, NEW_TAX_BRACKETS], ids=["old", "new"])
def test_tables_cover_zero_to_infinity(table) -> None:
    assert table[0].min == 0
    assert math.isinf(table[-1].max)
    for prev, cur in zip(table, table[1:]):
        assert prev.max == cur.min
    validate_bracket_table(table)


def _b(lo: float, hi: float, rate: float, quick: float = 0) -> TaxBracket:
    return TaxBracket(min=lo, max=hi, rate=rate, quick_deduction=quick)


@pytest.mark.parametrize(
    "table, match",
    [
        pytest.param([], "at least one", id="empty"),
        pytest.param([_b(1, INF, 0.05)], "start at 0", id="first_min_not_zero"),
        pytest.param([_b(0, 5_000_000, 0.05)], "unbounded", id="last_max_finite"),
        pytest.param(
            [_b(0, 5_000_000, 0.05), _b(6_000_000, INF, 0.10, 350_000)],
            "does not continue", id="gap_between_brackets",
        ),
        pytest.param(
            [_b(0, 5_000_000, 0.10), _b(5_000_000, INF, 0.05, -250_000)],
            "lower than previous", id="decreasing_rate",
        ),
        pytest.param(
            [_b(0, 5_000_000, 0.05), _b(5_000_000, INF, 0.10, 0)],
            "quick_deduction", id="quick_deduction_mismatch",
        ),
        pytest.param([_b(0, INF, 1.5)], "outside 0..1", id="rate_above_one"),
    ],
)
def test_validate_rejects_broken_tables(table, match) -> None:
    with pytest.raises(ValueError, match=match):
        validate_bracket_table(table)


# ===========================================================================
# TEST GROUP 2: Progressive vs quick formula
# ===========================================================================

@pytest.mark.parametrize("table", [OLD_TAX_BRACKETS, NEW_TAX_BRACKETS], ids=["old", "new"])
@pytest.mark.parametrize("income", SAMPLE_INCOMES)
def test_quick_formula_matches_progressive(table, income) -> None:
    progressive, _ = calculate_bracket_tax(income, table)
    quick = calculate_quick_tax(income, table)
    assert progressive == pytest.approx(quick, abs=1e-3), (
        f"income={income:,}: progressive={progressive} quick={quick}"
    )


@pytest.mark.parametrize("income", [0, -1, -5_000_000])
def test_non_positive_income_is_untaxed(income) -> None:
    assert calculate_bracket_tax(income, OLD_TAX_BRACKETS) == (0.0, [])
    assert calculate_quick_tax(income, NEW_TAX_BRACKETS) == 0.0


def test_new_table_never_taxes_more_than_old_on_same_taxable_income() -> None:
    for income in SAMPLE_INCOMES:
        old, _ = calculate_bracket_tax(income, OLD_TAX_BRACKETS)
        new, _ = calculate_bracket_tax(income, NEW_TAX_BRACKETS)
        assert new <= old + 1e-6, f"income={income:,}: new={new} old={old}"


# ===========================================================================
# TEST GROUP 3: Breakdown rows
# ===========================================================================

def test_breakdown_stops_at_highest_bracket_reached() -> None:
    tax, rows = calculate_bracket_tax(15_850_000, OLD_TAX_BRACKETS)

    assert tax == pytest.approx(1_627_500, abs=1e-3)
    assert [r.bracket for r in rows] == [1, 2, 3]
    assert rows[0].tax_amount == pytest.approx(250_000)
    assert rows[1].tax_amount == pytest.approx(500_000)
    assert rows[2].from_amount == 10_000_000
    assert rows[2].to_amount == 18_000_000
    assert rows[2].taxable_amount == pytest.approx(5_850_000)
    assert rows[2].tax_amount == pytest.approx(877_500)


def test_breakdown_top_bracket_reports_finite_upper_bound() -> None:
    tax, rows = calculate_bracket_tax(128_992_000, NEW_TAX_BRACKETS)

    top = rows[-1]
    assert top.bracket == 5
    assert top.from_amount == 100_000_000
    assert top.to_amount == pytest.approx(128_992_000)
    assert not math.isinf(top.to_amount)
    assert top.taxable_amount == pytest.approx(28_992_000)
    assert tax == pytest.approx(30_647_200, abs=1e-3)


def test_breakdown_rows_sum_to_total() -> None:
    for income in SAMPLE_INCOMES:
        tax, rows = calculate_bracket_tax(income, OLD_TAX_BRACKETS)
        assert sum(r.tax_amount for r in rows) == pytest.approx(tax)
        assert sum(r.taxable_amount for r in rows) == pytest.approx(max(0, income))


# ===========================================================================
# TEST GROUP 4: Marginal rate
# ===========================================================================

@pytest.mark.parametrize(
    "income, table, expected",
    [
        pytest.param(0, OLD_TAX_BRACKETS, 0.0, id="nothing_taxable"),
        pytest.param(5_000_000, OLD_TAX_BRACKETS, 0.05, id="old_boundary_stays_lower"),
        pytest.param(15_850_000, OLD_TAX_BRACKETS, 0.15, id="old_third_bracket"),
        pytest.param(11_350_000, NEW_TAX_BRACKETS, 0.10, id="new_second_bracket"),
        pytest.param(500_000_000, NEW_TAX_BRACKETS, 0.35, id="new_top_bracket"),
    ],
)
def test_marginal_rate(income, table, expected) -> None:
    assert marginal_rate(income, table) == expected
