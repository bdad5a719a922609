"""Gigogne (nested) loans.

A gigogne loan combines a long primary tranche ``(p1, r1, n1)`` with a
shorter secondary tranche ``(p2, r2, n2)``, ``n2 <= n1``. The borrower pays
one flat amount ``M`` every month: during the overlap the secondary takes its
own annuity ``m2`` out of ``M`` and the primary receives the rest; once the
secondary has matured the primary receives all of ``M``. With
``A(r, n) = (1 - (1 + r)^-n) / r``::

    m2 = p2 / A(r2, n2)
    M  = (p1 + m2 * A(r1, n2)) / A(r1, n1)

The primary must never amortize negatively during the overlap, i.e.
``M - m2 >= p1 * r1`` (monthly rates). Because the payment left to the
primary is constant while its interest only shrinks, checking the first
month is enough.

Rates are annual percentages and durations are years at this module's
interface, like everywhere else in the calculator.
"""

from __future__ import annotations

import math
from typing import List, Optional

from .annuity import annuity_factor, monthly_payment
from .config import FormulaConstants, resolve_constants
from .data_models import GigogneCapacity, GigogneRow, SolverResult
from .logging import get_logger

logger = get_logger(__name__)


def _monthly(rate_percent: float) -> float:
    return rate_percent / 12 / 100


def _months(years: float) -> int:
    return int(round(years * 12))


def secondary_payment(p2: float, r2: float, n2: float) -> float:
    """Annuity ``m2`` of the secondary tranche."""
    return monthly_payment(p2, r2, n2)


def smoothed_payment(p1: float, r1: float, n1: float, p2: float, r2: float, n2: float) -> float:
    """Flat monthly payment ``M`` covering both tranches."""
    factor_full = annuity_factor(_monthly(r1), _months(n1))
    if factor_full <= 0:
        return 0.0
    m2 = secondary_payment(p2, r2, n2)
    factor_overlap = annuity_factor(_monthly(r1), _months(n2))
    return (max(0.0, p1) + m2 * factor_overlap) / factor_full


def amortization_headroom(p1: float, r1: float, n1: float, p2: float, r2: float, n2: float) -> float:
    """``M - m2 - p1 * r1``: what the primary repays in the first month.

    Negative values mean the primary balance would grow during the overlap.
    """
    m2 = secondary_payment(p2, r2, n2)
    payment = smoothed_payment(p1, r1, n1, p2, r2, n2)
    return payment - m2 - max(0.0, p1) * _monthly(r1)


def optimal_secondary_amount(
    total_loan: float,
    r1: float,
    n1: float,
    r2: float,
    n2: float,
    max_allowed: float,
    *,
    constants: Optional[FormulaConstants] = None,
) -> SolverResult:
    """Largest secondary amount keeping the primary from amortizing negatively.

    Binary search over whole euros ``p2`` in
    ``[0, floor(min(max_allowed, total_loan))]`` with ``p1 = total_loan - p2``.
    The headroom is linear and, for a secondary shorter than the primary,
    decreasing in ``p2``, so the feasible set is an interval starting at 0
    and the result is the same for any cap above the optimum.
    """
    search = resolve_constants(constants).gigogne
    upper = math.floor(min(max_allowed, total_loan))
    if upper <= 0 or _months(n2) <= 0 or _months(n1) <= 0:
        return SolverResult(0.0, converged=True, iterations=0)

    def feasible(p2: int) -> bool:
        return amortization_headroom(total_loan - p2, r1, n1, p2, r2, n2) >= -search.epsilon

    if feasible(upper):
        return SolverResult(float(upper), converged=True, iterations=0)
    if not feasible(0):
        return SolverResult(0.0, converged=True, iterations=0)

    # feasible(low) holds and feasible(high) does not
    low, high = 0, upper
    iterations = 0
    while high - low > 1 and iterations < search.max_iterations:
        mid = (low + high) // 2
        if feasible(mid):
            low = mid
        else:
            high = mid
        iterations += 1

    converged = high - low <= 1
    if not converged:
        logger.warning("Secondary amount search stopped after %d iterations at %d", iterations, low)
    logger.debug("Optimal secondary amount %d after %d iterations", low, iterations)
    return SolverResult(float(low), converged=converged, iterations=iterations)


def max_loan_with_gigogne(
    budget: float,
    r1: float,
    n1: float,
    r2: float,
    n2: float,
    max_secondary: float,
    *,
    constants: Optional[FormulaConstants] = None,
) -> GigogneCapacity:
    """Total borrowing capacity for a flat monthly ``budget``.

    With ``M`` fixed, ``p1 = M * A(r1, n1) - m2 * A(r1, n2)`` and the total
    grows with ``p2`` only when the secondary is cheaper than the primary
    over the overlap (``A(r2, n2) > A(r1, n2)``). The constraint then binds
    at ``p2* = M * A(r2, n2) * (1 + r1)^-(n1 - n2)``. That optimum is capped
    by ``max_secondary``, floored, and corrected by binary search when
    rounding leaves the constraint violated.
    """
    search = resolve_constants(constants).gigogne
    months1, months2 = _months(n1), _months(n2)
    rate1, rate2 = _monthly(r1), _monthly(r2)
    factor_full = annuity_factor(rate1, months1)
    if budget <= 0 or factor_full <= 0:
        return GigogneCapacity(0.0, 0.0, 0.0, converged=True, iterations=0)

    factor_overlap = annuity_factor(rate1, months2)
    factor_secondary = annuity_factor(rate2, months2)

    def split(p2: float) -> float:
        m2 = p2 / factor_secondary if factor_secondary > 0 else 0.0
        return budget * factor_full - m2 * factor_overlap

    def feasible(p2: float) -> bool:
        p1 = split(p2)
        if p1 < 0:
            return False
        m2 = p2 / factor_secondary if factor_secondary > 0 else 0.0
        return budget - m2 - p1 * rate1 >= -search.epsilon

    if months2 <= 0 or factor_secondary <= factor_overlap:
        secondary = 0.0
    else:
        secondary = budget * factor_secondary * (1 + rate1) ** (months2 - months1)
        secondary = float(math.floor(min(secondary, max(0.0, max_secondary))))

    iterations = 0
    converged = True
    if secondary > 0 and not feasible(secondary):
        low, high = 0.0, secondary
        while high - low > search.tolerance and iterations < search.max_iterations:
            mid = (low + high) / 2
            if feasible(mid):
                low = mid
            else:
                high = mid
            iterations += 1
        converged = high - low <= search.tolerance
        secondary = float(math.floor(low))

    primary = split(secondary)
    return GigogneCapacity(
        total=primary + secondary,
        primary=primary,
        secondary=secondary,
        converged=converged,
        iterations=iterations,
    )


def generate_gigogne_schedule(
    p1: float,
    r1: float,
    n1: float,
    p2: float,
    r2: float,
    n2: float,
    monthly_insurance: float = 0.0,
) -> List[GigogneRow]:
    """Two-tranche amortization schedule with one flat payment.

    Each tranche keeps its own balance and is zeroed exactly in its own
    maturity month. The schedule lasts ``n1`` years; insurance is constant.
    """
    months1, months2 = _months(n1), _months(n2)
    p1, p2 = max(0.0, p1), max(0.0, p2)
    if months1 <= 0 or p1 + p2 <= 0:
        return []
    if p2 <= 0 or months2 <= 0:
        p2, months2 = 0.0, 0
    months2 = min(months2, months1)

    rate1, rate2 = _monthly(r1), _monthly(r2)
    payment = smoothed_payment(p1, r1, n1, p2, r2, months2 / 12)
    m2 = secondary_payment(p2, r2, months2 / 12) if months2 else 0.0

    schedule: List[GigogneRow] = []
    balance1, balance2 = p1, p2
    total_paid = 0.0

    for period in range(1, months1 + 1):
        if period <= months2:
            secondary_due = m2
            interest2 = balance2 * rate2
            principal2 = secondary_due - interest2
            balance2 -= principal2
            if period == months2:
                balance2 = 0.0
        else:
            secondary_due = interest2 = principal2 = 0.0

        primary_due = payment - secondary_due
        interest1 = balance1 * rate1
        principal1 = primary_due - interest1
        balance1 -= principal1
        if period == months1:
            balance1 = 0.0

        total_paid += payment + monthly_insurance

        schedule.append(
            GigogneRow(
                period=period,
                year=math.ceil(period / 12),
                payment=payment,
                principal=principal1 + principal2,
                interest=interest1 + interest2,
                insurance=monthly_insurance,
                cumulative_paid=total_paid,
                remaining=max(0.0, balance1) + max(0.0, balance2),
                primary_principal=principal1,
                primary_interest=interest1,
                primary_remaining=max(0.0, balance1),
                secondary_payment=secondary_due,
                secondary_principal=principal2,
                secondary_interest=interest2,
                secondary_remaining=max(0.0, balance2),
            )
        )

    return schedule
