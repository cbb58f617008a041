"""
End-to-end API tests for the engine and calculator routers.

Tests the full stack: HTTP request → schema validation → business-rule
validation → engine → HTTP response, driven in-process through the ASGI
transport (see the `client` fixture in conftest.py).

Tolerance: ±1 VND on all monetary assertions (consistent with test_tax_engine.py).
"""
from __future__ import annotations

import pytest
from httpx import AsyncClient

from vnpit.main import violations_from
from vnpit.tests.demo_profiles import DEMO_PROFILES


def _year(salary: float = 30_000_000, months=range(1, 13)) -> list[dict]:
    return [{"month": m, "gross_salary": salary} for m in months]


# ---------------------------------------------------------------------------
# Test Group 1: Health and demo profiles
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_health(client: AsyncClient) -> None:
    response = await client.get("/api/health")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert "version" in body


@pytest.mark.asyncio
@pytest.mark.parametrize("name", list(DEMO_PROFILES))
async def test_compare_demo_profiles(client: AsyncClient, name: str) -> None:
    data = DEMO_PROFILES[name]
    expected = data["expected"]

    response = await client.post("/api/tax/compare", json=data["profile"])
    assert response.status_code == 200, (
        f"{name}: Expected 200, got {response.status_code}. Body: {response.text}"
    )

    result = response.json()
    assert result["recommended_regime"] == expected["expected_regime"]
    assert abs(result["old_regime"]["tax_amount"] - expected["expected_old_tax"]) <= 1, (
        f"{name}: old tax expected {expected['expected_old_tax']:,.0f}, "
        f"got {result['old_regime']['tax_amount']:,.0f}"
    )
    assert abs(result["new_regime"]["tax_amount"] - expected["expected_new_tax"]) <= 1
    assert abs(result["savings_amount"] - expected["expected_savings"]) <= 1
    assert abs(result["new_regime"]["insurance_deduction"] - expected["expected_insurance"]) <= 1


# ---------------------------------------------------------------------------
# Test Group 2: Engine endpoints
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_tax_single_regime(client: AsyncClient) -> None:
    response = await client.post("/api/tax", json={
        "gross_income": 30_000_000, "regime": "old", "as_of": "2026-01-01",
    })
    assert response.status_code == 200
    result = response.json()
    assert result["regime"] == "old"
    assert result["tax_amount"] == pytest.approx(1_627_500, abs=1)
    assert result["net_income"] == pytest.approx(25_222_500, abs=1)
    assert len(result["tax_breakdown"]) == 3


@pytest.mark.asyncio
async def test_tax_range(client: AsyncClient) -> None:
    response = await client.post("/api/tax/range", json={
        "min_income": 10_000_000, "max_income": 40_000_000, "step": 10_000_000,
    })
    assert response.status_code == 200
    points = response.json()
    assert [p["income"] for p in points] == [10_000_000, 20_000_000, 30_000_000, 40_000_000]
    assert all(p["savings"] >= 0 for p in points)


@pytest.mark.asyncio
async def test_tax_range_rejects_oversized_sweep(client: AsyncClient) -> None:
    too_wide = await client.post("/api/tax/range", json={"max_income": 1e12, "step": 1})
    assert too_wide.status_code == 422
    assert too_wide.json()["error"]["details"][0]["field"] == "max_income"

    too_many = await client.post("/api/tax/range", json={"max_income": 1e9, "step": 1})
    assert too_many.status_code == 422
    assert "points" in too_many.json()["error"]["message"]



@pytest.mark.asyncio
async def test_insurance(client: AsyncClient) -> None:
    response = await client.post("/api/insurance", json={
        "base": 150_000_000, "region": 1, "as_of": "2026-07-01", "include_union_fee": True,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["caps"]["social_health_cap"] == 46_800_000
    assert body["caps"]["unemployment_cap"] == 106_200_000
    assert body["employee"]["total"] == pytest.approx(5_508_000, abs=1)
    assert body["employer"]["union_fee"] == pytest.approx(3_000_000, abs=1)


@pytest.mark.asyncio
async def test_gross_from_net(client: AsyncClient) -> None:
    response = await client.post("/api/gross-from-net", json={
        "target_net": 26_215_000, "as_of": "2026-01-01",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["gross_income"] == pytest.approx(30_000_000, abs=5)
    assert body["approximate"] is False


@pytest.mark.asyncio
async def test_brackets(client: AsyncClient) -> None:
    response = await client.get("/api/brackets/new")
    assert response.status_code == 200
    rows = response.json()
    assert len(rows) == 5
    assert rows[-1]["max"] is None
    assert rows[-1]["rate"] == 0.35

    old = await client.get("/api/brackets/old")
    assert len(old.json()) == 7


@pytest.mark.asyncio
async def test_settlement_transition_year(client: AsyncClient) -> None:
    response = await client.post("/api/settlement", json={
        "year": 2026,
        "monthly_income": _year(),
        "dependents": [{"name": "Con", "from_month": 1, "to_month": 12}],
    })
    assert response.status_code == 200, response.text
    body = response.json()
    assert body["is_transition_year"] is True
    assert [p["period_name"] for p in body["periods"]] == ["T1-T6", "T7-T12"]
    assert body["annual_tax_due"] == pytest.approx(sum(p["tax_due"] for p in body["periods"]), abs=1)
    # T1-T6 old: 68.7M assessable → 14,760,000; T7-T12 new: 30.9M → 2,680,000
    assert body["annual_tax_due"] == pytest.approx(17_440_000, abs=1)
    assert body["total_tax_paid"] == pytest.approx(6 * 967_500 + 6 * 257_500, abs=1)
    assert body["settlement_type"] == "pay"
    assert len(body["monthly_breakdown"]) == 12


@pytest.mark.asyncio
async def test_settlement_manual_tax_paid_refund(client: AsyncClient) -> None:
    response = await client.post("/api/settlement", json={
        "year": 2025, "monthly_income": _year(), "manual_tax_paid": 100_000_000,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["settlement_type"] == "refund"
    assert body["difference"] < 0


# ---------------------------------------------------------------------------
# Test Group 3: Error envelope
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_schema_violation_returns_envelope(client: AsyncClient) -> None:
    response = await client.post("/api/tax", json={"gross_income": -1})
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert any(d["field"] == "gross_income" for d in error["details"])


@pytest.mark.asyncio
async def test_unknown_field_rejected(client: AsyncClient) -> None:
    response = await client.post("/api/tax", json={"gross_income": 1, "salary": 2})
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_unknown_regime_rejected(client: AsyncClient) -> None:
    response = await client.get("/api/brackets/ancient")
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_settlement_business_rules_listed_together(client: AsyncClient) -> None:
    response = await client.post("/api/settlement", json={
        "year": 2025,
        "monthly_income": _year(months=range(1, 12)),
        "voluntary_pension": 20_000_000,
    })
    assert response.status_code == 422
    error = response.json()["error"]
    assert error["code"] == "VALIDATION_ERROR"
    assert error["message"] == "Input validation failed"
    fields = {d["field"] for d in error["details"]}
    assert fields == {"monthly_income", "voluntary_pension"}


@pytest.mark.asyncio
async def test_not_found_envelope(client: AsyncClient) -> None:
    response = await client.get("/api/nowhere")
    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"


# ---------------------------------------------------------------------------
# Test Group 4: Calculator endpoints
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_calculator_gross_net(client: AsyncClient) -> None:
    response = await client.post("/api/calculators/gross-net", json={
        "amount": 26_215_000, "direction": "net", "as_of": "2026-01-01",
    })
    assert response.status_code == 200
    body = response.json()
    assert body["result"]["gross_income"] == pytest.approx(30_000_000, abs=5)
    assert body["yearly"]["yearly_net"] == pytest.approx(12 * 26_215_000, abs=12)


@pytest.mark.asyncio
async def test_calculator_bonus(client: AsyncClient) -> None:
    response = await client.post("/api/calculators/bonus", json={
        "monthly_salary": 30_000_000, "thirteenth_month_salary": 30_000_000,
    })
    assert response.status_code == 200
    body = response.json()
    assert body["comparison"]["recommendation"]["id"] == "h2-2026"
    assert body["marginal_rate_old"] > body["marginal_rate_new"]


@pytest.mark.asyncio
async def test_calculator_esop(client: AsyncClient) -> None:
    response = await client.post("/api/calculators/esop", json={
        "grant_price": 10_000, "exercise_price": 50_000, "number_of_shares": 1_000,
        "monthly_salary": 30_000_000,
    })
    assert response.status_code == 200
    assert response.json()["taxable_gain"] == 40_000_000


@pytest.mark.asyncio
async def test_calculator_overtime(client: AsyncClient) -> None:
    response = await client.post("/api/calculators/overtime", json={
        "monthly_salary": 20_800_000,
        "entries": [{"type": "weekend", "shift": "night", "hours": 4}],
    })
    assert response.status_code == 200
    body = response.json()
    assert body["total_overtime_gross"] == pytest.approx(100_000 * 2.7 * 4)
    assert body["warnings"] == []


@pytest.mark.asyncio
async def test_calculator_yearly_presets(client: AsyncClient) -> None:
    response = await client.post("/api/calculators/yearly", json={
        "presets": {"monthly_salary": 30_000_000},
    })
    assert response.status_code == 200
    body = response.json()
    assert body["best_strategy"] == 2
    assert body["max_savings"] == pytest.approx(2_450_000, abs=1)


@pytest.mark.asyncio
async def test_calculator_yearly_rejects_unpaired_strategy(client: AsyncClient) -> None:
    scenario = {"id": "a", "name": "a", "year": 2025, "months": [{"month": 1, "gross_income": 1}]}
    response = await client.post("/api/calculators/yearly", json={"strategies": [[scenario]]})
    assert response.status_code == 422
    assert response.json()["error"]["details"][0]["field"] == "strategies[0]"


@pytest.mark.asyncio
async def test_calculator_employer_cost(client: AsyncClient) -> None:
    response = await client.post("/api/calculators/employer-cost", json={
        "gross_income": 30_000_000, "as_of": "2026-01-01",
    })
    assert response.status_code == 200
    assert response.json()["total_employer_cost"] == pytest.approx(36_450_000, abs=1)


@pytest.mark.asyncio
async def test_calculator_salary_comparison(client: AsyncClient) -> None:
    response = await client.post("/api/calculators/salary-comparison", json={
        "offers": [
            {"name": "Công ty A", "gross_salary": 30_000_000, "bonus_months": 1},
            {"name": "Công ty B", "gross_salary": 32_000_000, "other_benefits": 1_000_000,
             "has_insurance": False},
        ],
        "as_of": "2026-07-01",
    })
    assert response.status_code == 200, response.text
    body = response.json()
    assert [o["name"] for o in body["offers"]] == ["Công ty A", "Công ty B"]
    assert body["best_offer"] == {"by_monthly_net": 1, "by_annual_net": 1, "by_lowest_tax": 0}
    assert body["differences"]["max_annual_diff"] == pytest.approx(41_755_000, abs=1)


@pytest.mark.asyncio
async def test_calculator_salary_comparison_needs_two_offers(client: AsyncClient) -> None:
    response = await client.post("/api/calculators/salary-comparison", json={
        "offers": [{"name": "A", "gross_salary": 30_000_000}],
    })
    assert response.status_code == 422
    assert response.json()["error"]["details"][0]["field"] == "offers"



# ---------------------------------------------------------------------------
# Test Group 5: Violation parsing
# ---------------------------------------------------------------------------

def test_violations_from_json_list() -> None:
    details = violations_from(ValueError('[{"field": "year", "issue": "bad"}, {"issue": "also bad"}]'))
    assert [(d.field, d.issue) for d in details] == [("year", "bad"), (None, "also bad")]


@pytest.mark.parametrize("message", ["plain message", "[]", '{"issue": "x"}', '[{"field": "a"}]'])
def test_violations_from_other_messages(message: str) -> None:
    assert violations_from(ValueError(message)) is None
