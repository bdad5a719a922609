"""Income, charges and borrowing capacity under the debt-ratio rule."""

from __future__ import annotations

from typing import Iterable, Optional

from .config import FormulaConstants, resolve_constants
from .data_models import BudgetItem


def total_monthly(items: Iterable[BudgetItem]) -> float:
    """Sum a collection of income or expense items as a monthly figure."""
    return sum((item.monthly_amount for item in items), 0.0)


def max_monthly_payment(
    income: float, charges: float, *, constants: Optional[FormulaConstants] = None
) -> float:
    """Largest monthly loan payment allowed: ``income * debt_ratio - charges``.

    Never negative; insurance is not deducted here.
    """
    ratio = resolve_constants(constants).debt_ratio
    return max(0.0, income * ratio - charges)


def debt_ratio(monthly_payment_with_insurance: float, income: float) -> float:
    """Share of the monthly income spent on the loan, in percent."""
    if income <= 0:
        return 0.0
    return monthly_payment_with_insurance / income * 100
