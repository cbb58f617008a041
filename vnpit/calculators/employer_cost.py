"""
employer_cost.py — what a salary costs the company.

total cost = gross + employer insurance (17.5% BHXH, 3% BHYT, 1% BHTN,
optional 2% union fee). Insurance uses the declared salary when given.
"""
from __future__ import annotations

from vnpit.calculators.schemas import EmployerCostInput, EmployerCostResult
from vnpit.engine.insurance import calculate_employer_insurance
from vnpit.engine.schemas import TaxInput
from vnpit.engine.tax_engine import compute_tax


def calculate_employer_cost(cost_input: EmployerCostInput) -> EmployerCostResult:
    gross = cost_input.gross_income
    insurance_base = (
        cost_input.declared_salary if cost_input.declared_salary is not None else gross
    )

    employer_insurance = calculate_employer_insurance(
        insurance_base,
        cost_input.region,
        cost_input.as_of,
        cost_input.insurance_options,
        include_union_fee=cost_input.include_union_fee,
    )
    employee = compute_tax(TaxInput(
        gross_income=gross,
        declared_salary=cost_input.declared_salary,
        dependents=cost_input.dependents,
        region=cost_input.region,
        insurance_options=cost_input.insurance_options,
        regime=cost_input.regime,
        as_of=cost_input.as_of,
        allowances=cost_input.allowances,
    ))

    total_cost = gross + employer_insurance.total
    return EmployerCostResult(
        gross_salary=gross,
        employer_insurance=employer_insurance,
        total_employer_cost=total_cost,
        yearly_employer_cost=total_cost * 12,
        employee_insurance=employee.insurance_detail,
        employee_tax=employee.tax_amount,
        employee_net_income=employee.net_income,
        insurance_percent_of_gross=(employer_insurance.total / gross) * 100 if gross > 0 else 0.0,
        total_cost_percent_of_gross=(total_cost / gross) * 100 if gross > 0 else 0.0,
    )
