"""
salary_comparison.py — side-by-side job offers under one law.

Each offer is one monthly salary plus bonus_months extra salaries a year
and a monthly benefit paid on top of net. The yearly bonus is stacked on a
single month, so its tax is the EXTRA tax of that month. An offer without
insurance has every mandatory line switched off.

Ties in the best-offer picks go to the offer listed first.
"""
from __future__ import annotations

import logging

from vnpit.calculators.schemas import (
    BestOffer,
    OfferDifferences,
    OfferResult,
    SalaryComparisonInput,
    SalaryComparisonResult,
    SalaryOffer,
)
from vnpit.calculators.timing import with_and_without
from vnpit.engine.periods import MONTHS_PER_YEAR
from vnpit.engine.schemas import InsuranceOptions, TaxInput

logger = logging.getLogger(__name__)

NO_INSURANCE = InsuranceOptions(bhxh=False, bhyt=False, bhtn=False)


def _offer_input(offer: SalaryOffer, comparison: SalaryComparisonInput) -> TaxInput:
    return TaxInput(
        gross_income=offer.gross_salary,
        dependents=comparison.dependents,
        region=offer.region,
        insurance_options=InsuranceOptions() if offer.has_insurance else NO_INSURANCE,
        regime=comparison.regime,
        as_of=comparison.as_of,
    )


def calculate_offer(offer: SalaryOffer, comparison: SalaryComparisonInput) -> OfferResult:
    annual_bonus = offer.bonus_months * offer.gross_salary
    with_bonus, month = with_and_without(_offer_input(offer, comparison), annual_bonus)
    bonus_tax = with_bonus.tax_amount - month.tax_amount

    annual_gross = MONTHS_PER_YEAR * offer.gross_salary
    annual_benefits = MONTHS_PER_YEAR * offer.other_benefits
    annual_insurance = MONTHS_PER_YEAR * month.insurance_deduction
    annual_tax = MONTHS_PER_YEAR * month.tax_amount + bonus_tax

    return OfferResult(
        name=offer.name,
        monthly_gross=offer.gross_salary,
        monthly_insurance=month.insurance_deduction,
        monthly_tax=month.tax_amount,
        monthly_net=month.net_income,
        monthly_benefits=offer.other_benefits,
        monthly_total=month.net_income + offer.other_benefits,
        annual_gross=annual_gross,
        annual_bonus=annual_bonus,
        annual_total_gross=annual_gross + annual_bonus,
        annual_insurance=annual_insurance,
        annual_tax=annual_tax,
        annual_net=annual_gross + annual_bonus + annual_benefits - annual_insurance - annual_tax,
    )


def _best_index(values: list[float], highest: bool = True) -> int:
    best = max(values) if highest else min(values)
    return values.index(best)


def compare_salary_offers(comparison: SalaryComparisonInput) -> SalaryComparisonResult:
    results = [calculate_offer(offer, comparison) for offer in comparison.offers]

    monthly = [r.monthly_total for r in results]
    annual = [r.annual_net for r in results]
    best = BestOffer(
        by_monthly_net=_best_index(monthly),
        by_annual_net=_best_index(annual),
        by_lowest_tax=_best_index([r.annual_tax for r in results], highest=False),
    )

    logger.debug(
        "Salary comparison offers=%d regime=%s best_annual=%s",
        len(results), comparison.regime.value, results[best.by_annual_net].name,
    )
    return SalaryComparisonResult(
        regime=comparison.regime,
        offers=results,
        best_offer=best,
        differences=OfferDifferences(
            max_monthly_diff=max(monthly) - min(monthly),
            max_annual_diff=max(annual) - min(annual),
        ),
    )
