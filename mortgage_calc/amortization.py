"""Amortization schedule for a single annuity loan.

Each month the interest is charged on the remaining balance, the rest of the
constant payment repays principal, and the constant insurance premium is
added to the cumulative amount paid. Results are returned as a list of
:class:`~mortgage_calc.data_models.AmortizationRow` objects.
"""

from __future__ import annotations

import math
from typing import List

from .annuity import payment_for_monthly_rate
from .data_models import AmortizationRow, LoanTerms


def generate_schedule(terms: LoanTerms, monthly_insurance: float = 0.0) -> List[AmortizationRow]:
    """Compute the month-by-month schedule of ``terms``.

    Parameters
    ----------
    terms: LoanTerms
        Principal, annual nominal rate (percent) and duration of the loan.
    monthly_insurance: float
        Constant premium added to each month's cash outflow.

    Returns
    -------
    List[AmortizationRow]
        One row per month, ``terms.months`` rows in total. The remaining
        balance of the last row is exactly zero, absorbing floating point
        drift. An empty list is returned for a non-positive principal or
        duration.
    """
    months = terms.months
    if terms.principal <= 0 or months <= 0 or terms.annual_rate_percent < 0:
        return []

    rate_per_month = terms.monthly_rate
    payment = payment_for_monthly_rate(terms.principal, rate_per_month, months)

    schedule: List[AmortizationRow] = []
    balance = terms.principal
    total_paid = 0.0

    for period in range(1, months + 1):
        interest_payment = balance * rate_per_month
        principal_payment = payment - interest_payment
        balance -= principal_payment

        if period == months:
            balance = 0.0

        total_paid += payment + monthly_insurance

        schedule.append(
            AmortizationRow(
                period=period,
                year=math.ceil(period / 12),
                payment=payment,
                principal=principal_payment,
                interest=interest_payment,
                insurance=monthly_insurance,
                cumulative_paid=total_paid,
                remaining=max(0.0, balance),
            )
        )

    return schedule


def summarize(schedule: List[AmortizationRow]) -> dict:
    """Aggregate totals of a schedule (single or two-tranche)."""
    if not schedule:
        return {"total_paid": 0.0, "total_interest": 0.0, "total_insurance": 0.0, "months": 0}
    return {
        "total_paid": schedule[-1].cumulative_paid,
        "total_interest": sum(row.interest for row in schedule),
        "total_insurance": sum(row.insurance for row in schedule),
        "months": len(schedule),
    }


def yearly_totals(schedule: List[AmortizationRow]) -> List[dict]:
    """Group a schedule by loan year, as the yearly table view shows it."""
    years: dict = {}
    for row in schedule:
        entry = years.setdefault(
            row.year,
            {"year": row.year, "payment": 0.0, "principal": 0.0, "interest": 0.0, "insurance": 0.0},
        )
        entry["payment"] += row.payment
        entry["principal"] += row.principal
        entry["interest"] += row.interest
        entry["insurance"] += row.insurance
        entry["remaining"] = row.remaining
        entry["cumulative_paid"] = row.cumulative_paid
    return list(years.values())
