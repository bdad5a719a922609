"""Borrower insurance: age brackets and monthly premium."""

from __future__ import annotations

from typing import Optional

from .config import FormulaConstants, resolve_constants


def rate_for_age(age: Optional[float], *, constants: Optional[FormulaConstants] = None) -> float:
    """Annual insurance rate (decimal) for the borrower's age.

    Brackets are <= 25, <= 40, <= 50, <= 65 and above 65. A missing or
    non-positive age means no insurance.
    """
    if age is None or age <= 0:
        return 0.0
    rates = resolve_constants(constants).insurance_rates
    if age <= 25:
        return rates.up_to_25
    if age <= 40:
        return rates.up_to_40
    if age <= 50:
        return rates.up_to_50
    if age <= 65:
        return rates.up_to_65
    return rates.over_65


def monthly_insurance(principal: float, annual_rate_decimal: float) -> float:
    """Monthly premium ``principal * rate / 12``.

    The premium is computed once on the initial principal and stays the same
    for the whole loan; it does not follow the amortized balance.
    """
    if principal <= 0 or annual_rate_decimal <= 0:
        return 0.0
    return principal * annual_rate_decimal / 12
