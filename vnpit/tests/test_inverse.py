"""
Inverse engine (net → gross) tests.

Groups:
  1. Round trip: forward(gross).net → gross_from_net → same gross
  2. Parameters flow through to the converged result
  3. Non-convergence is flagged, never raised
"""
from __future__ import annotations

import logging
from datetime import date

import pytest

from vnpit.engine import inverse
from vnpit.engine.inverse import NET_TOLERANCE, gross_from_net
from vnpit.engine.schemas import Allowances, GrossFromNetParams, Regime, TaxInput
from vnpit.engine.tax_engine import compute_tax

AS_OF = date(2026, 1, 1)

ROUND_TRIP_GROSSES = [
    0, 3_000_000, 12_000_000, 20_000_000, 30_000_000, 45_000_000,
    60_000_000, 100_000_000, 150_000_000, 500_000_000,
]


# ===========================================================================
# TEST GROUP 1: Round trip
# ===========================================================================

@pytest.mark.parametrize("regime", ["old", "new"])
@pytest.mark.parametrize("gross", ROUND_TRIP_GROSSES)
def test_round_trip_recovers_gross(gross, regime) -> None:
    params = GrossFromNetParams(regime=regime, as_of=AS_OF)
    net = compute_tax(TaxInput(gross_income=gross, **params.model_dump())).net_income

    result = gross_from_net(net, params)

    assert result.approximate is False
    assert result.net_income == pytest.approx(net, abs=NET_TOLERANCE), (
        f"{regime} gross={gross:,}: target net {net:,.2f}, got {result.net_income:,.2f}"
    )
    assert result.gross_income == pytest.approx(gross, abs=5)


def test_office_worker_net_to_gross(first_day_of_new_law) -> None:
    result = gross_from_net(26_215_000, GrossFromNetParams(as_of=first_day_of_new_law))
    assert result.gross_income == pytest.approx(30_000_000, abs=5)
    assert result.tax_amount == pytest.approx(635_000, abs=5)


def test_negative_target_is_clamped_to_zero() -> None:
    result = gross_from_net(-1_000_000, GrossFromNetParams(as_of=AS_OF))
    assert result.approximate is False
    assert result.net_income == pytest.approx(0, abs=NET_TOLERANCE)


# ===========================================================================
# TEST GROUP 2: Parameters flow through
# ===========================================================================

def test_dependents_and_regime_are_applied() -> None:
    params = GrossFromNetParams(regime=Regime.old, dependents=2, as_of=AS_OF)
    result = gross_from_net(40_000_000, params)

    assert result.regime == Regime.old
    assert result.dependent_deduction == 8_800_000
    assert result.net_income == pytest.approx(40_000_000, abs=NET_TOLERANCE)


def test_bonus_and_allowances_reduce_required_gross() -> None:
    plain = gross_from_net(30_000_000, GrossFromNetParams(as_of=AS_OF))
    with_extras = gross_from_net(30_000_000, GrossFromNetParams(
        bonus_income=5_000_000,
        allowances=Allowances(meal=730_000),
        as_of=AS_OF,
    ))

    assert with_extras.net_income == pytest.approx(30_000_000, abs=NET_TOLERANCE)
    assert with_extras.gross_income < plain.gross_income


def test_declared_salary_round_trip() -> None:
    params = GrossFromNetParams(declared_salary=15_000_000, as_of=AS_OF)
    net = compute_tax(TaxInput(gross_income=40_000_000, **params.model_dump())).net_income

    result = gross_from_net(net, params)
    assert result.gross_income == pytest.approx(40_000_000, abs=5)
    assert result.insurance_deduction == pytest.approx(1_575_000, abs=1)


# ===========================================================================
# TEST GROUP 3: Non-convergence
# ===========================================================================

def test_unreachable_target_is_flagged_approximate(caplog) -> None:
    """
    A 10-billion declared salary costs ~3.5 billion tax a month, more than any
    gross below the safety ceiling can cover, so the target is never bracketed.
    """
    params = GrossFromNetParams(declared_salary=10_000_000_000, as_of=AS_OF)

    with caplog.at_level(logging.WARNING, logger="vnpit.engine.inverse"):
        result = gross_from_net(10_000_000, params)

    assert result.approximate is True
    assert "did not converge" in caplog.text


def test_exhausted_iteration_budget_is_flagged_approximate(monkeypatch) -> None:
    monkeypatch.setattr(inverse, "MAX_ITERATIONS", 1)

    result = gross_from_net(26_215_000, GrossFromNetParams(as_of=AS_OF))

    assert result.approximate is True
    assert result.net_income != pytest.approx(26_215_000, abs=NET_TOLERANCE)
