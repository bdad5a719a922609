"""Annuity formulas: monthly payment, borrowing capacity and annuity factor.

All functions return ``0.0`` when a required input is non-positive (or the
rate is negative). This is the calculator's "not yet provided" semantics:
a form with an empty field shows zeros instead of an error. Inputs are
validated for negative and NaN values earlier, when the snapshot is built.
"""

from __future__ import annotations


def _months(years: float) -> int:
    return int(round(years * 12))


def annuity_factor(monthly_rate: float, months: int) -> float:
    """Present value of 1 paid monthly for ``months`` periods.

    ``(1 - (1 + r)^-n) / r``, which degenerates to ``n`` when ``r`` is 0.
    """
    if months <= 0 or monthly_rate <= -1:
        return 0.0
    if monthly_rate == 0:
        return float(months)
    return (1 - (1 + monthly_rate) ** (-months)) / monthly_rate


def payment_for_monthly_rate(principal: float, monthly_rate: float, months: int) -> float:
    """Annuity payment for a monthly rate and a number of months."""
    if principal <= 0 or months <= 0 or monthly_rate < 0:
        return 0.0
    if monthly_rate == 0:
        return principal / months
    factor = (1 + monthly_rate) ** months
    return principal * (monthly_rate * factor) / (factor - 1)


def monthly_payment(principal: float, annual_rate_percent: float, years: float) -> float:
    """Return the fully amortizing monthly payment (insurance excluded).

    The formula is::

        payment = P * r * (1 + r)^n / ((1 + r)^n - 1)

    with ``r = annual_rate_percent / 12 / 100`` and ``n = years * 12``. A zero
    rate gives the straight-line payment ``P / n``.
    """
    if years <= 0 or annual_rate_percent < 0:
        return 0.0
    return payment_for_monthly_rate(principal, annual_rate_percent / 12 / 100, _months(years))


def max_loan(payment: float, annual_rate_percent: float, years: float) -> float:
    """Largest principal a monthly ``payment`` amortizes: ``M * A(r, n)``."""
    if payment <= 0 or years <= 0 or annual_rate_percent < 0:
        return 0.0
    return payment * annuity_factor(annual_rate_percent / 12 / 100, _months(years))
