"""Recalculation entry point.

:func:`recalculate` runs the whole chain for one input snapshot: budget and
borrowing capacity, rate, maximum affordable price, required loan and fees,
monthly payment (single annuity or gigogne), schedule, total cost and TAEG.
It has no side effects and keeps no state between calls.
"""

from __future__ import annotations

from typing import List, Optional

from .affordability import (
    optimize_max_price_with_gigogne,
    optimize_max_price_with_insurance,
    required_loan,
)
from .amortization import generate_schedule, summarize
from .annuity import max_loan, monthly_payment
from .budget import debt_ratio, max_monthly_payment, total_monthly
from .config import FormulaConstants, resolve_constants
from .data_models import (
    AmortizationRow,
    GigogneSummary,
    LoanTerms,
    MortgageInput,
    MortgageResult,
)
from .gigogne import (
    generate_gigogne_schedule,
    optimal_secondary_amount,
    secondary_payment,
    smoothed_payment,
)
from .insurance import monthly_insurance, rate_for_age
from .logging import get_logger
from .rates import interpolate_rate
from .taeg import effective_rate

logger = get_logger(__name__)


def recalculate(
    snapshot: MortgageInput, constants: Optional[FormulaConstants] = None
) -> MortgageResult:
    """Compute every figure the simulator displays for ``snapshot``.

    Parameters
    ----------
    snapshot: MortgageInput
        The validated input snapshot.
    constants: FormulaConstants
        Formula constants; the module defaults when omitted.

    Returns
    -------
    MortgageResult
        The complete, immutable result, including the amortization schedule
        (two-tranche rows when the gigogne loan is enabled).
    """
    constants = resolve_constants(constants)
    years = snapshot.duration_years
    category = snapshot.property_category

    # 1. Income and capacity
    income = total_monthly(snapshot.incomes)
    charges = total_monthly(snapshot.expenses)
    budget = max_monthly_payment(income, charges, constants=constants)

    # 2. Rate for the chosen duration
    if snapshot.rate_override is not None:
        rate = snapshot.rate_override
    else:
        rate = interpolate_rate(years, snapshot.rates)

    # 3. Capacity without insurance
    capacity = max_loan(budget, rate, years)
    insurance_rate = rate_for_age(snapshot.age, constants=constants)

    # 4. Maximum affordable price
    gigogne = snapshot.gigogne if snapshot.gigogne is not None and snapshot.gigogne.enabled else None
    if gigogne is not None:
        max_price = optimize_max_price_with_gigogne(
            snapshot.capital,
            budget,
            snapshot.dossier_fee,
            category,
            rate,
            years,
            gigogne.secondary_rate,
            gigogne.secondary_duration_years,
            gigogne.max_secondary_amount,
            insurance_rate,
            constants=constants,
        )
    else:
        max_price = optimize_max_price_with_insurance(
            snapshot.capital,
            budget,
            snapshot.dossier_fee,
            category,
            rate,
            years,
            insurance_rate,
            constants=constants,
        )

    # 5. Required loan for the selected price
    loan_result = required_loan(
        snapshot.property_price,
        snapshot.capital,
        snapshot.dossier_fee,
        category,
        constants=constants,
    )
    loan = loan_result.loan
    insurance = monthly_insurance(loan, insurance_rate)

    # 6. Payment and schedule
    schedule: List[AmortizationRow]
    gigogne_summary: Optional[GigogneSummary] = None
    if gigogne is not None:
        optimal = optimal_secondary_amount(
            loan,
            rate,
            years,
            gigogne.secondary_rate,
            gigogne.secondary_duration_years,
            gigogne.max_secondary_amount,
            constants=constants,
        )
        secondary = min(optimal.value, gigogne.max_secondary_amount, loan)
        primary = loan - secondary
        payment = smoothed_payment(
            primary,
            rate,
            years,
            secondary,
            gigogne.secondary_rate,
            gigogne.secondary_duration_years,
        )
        schedule = list(
            generate_gigogne_schedule(
                primary,
                rate,
                years,
                secondary,
                gigogne.secondary_rate,
                gigogne.secondary_duration_years,
                insurance,
            )
        )
        gigogne_summary = GigogneSummary(
            optimal_amount=optimal.value,
            actual_amount=secondary,
            primary_amount=primary,
            secondary_payment=secondary_payment(
                secondary, gigogne.secondary_rate, gigogne.secondary_duration_years
            ),
            smoothed_payment=payment,
            converged=optimal.converged,
            iterations=optimal.iterations,
        )
    else:
        payment = monthly_payment(loan, rate, years)
        schedule = list(generate_schedule(LoanTerms(loan, rate, years), insurance))

    # 7. Totals and effective rate
    totals = summarize(schedule)
    payment_with_insurance = payment + insurance
    taeg = effective_rate(
        loan,
        payment_with_insurance,
        years,
        rate,
        insurance_rate,
        constants=constants,
    )

    logger.info(
        "Recalculated: price=%.2f loan=%.2f payment=%.2f taeg=%.3f%%",
        snapshot.property_price,
        loan,
        payment_with_insurance,
        taeg.value,
    )

    return MortgageResult(
        monthly_income=income,
        monthly_charges=charges,
        max_monthly_payment=budget,
        interest_rate=rate,
        insurance_rate=insurance_rate,
        max_loan=capacity,
        max_price=max_price,
        required_loan=loan_result,
        monthly_payment=payment,
        monthly_insurance=insurance,
        monthly_payment_with_insurance=payment_with_insurance,
        total_cost=totals["total_paid"],
        total_interest=totals["total_interest"],
        total_insurance=totals["total_insurance"],
        taeg=taeg,
        debt_ratio=debt_ratio(payment_with_insurance, income),
        schedule=schedule,
        gigogne=gigogne_summary,
    )
