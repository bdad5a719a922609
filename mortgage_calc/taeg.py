"""Effective annual rate (TAEG).

The TAEG is the annual rate at which a plain annuity of ``loan`` over the
loan's duration would cost exactly what the borrower actually pays each month
(interest and insurance included). It is found with Newton-Raphson on the
monthly rate; a bisection on the same function takes over when Newton leaves
the allowed rate band too often or runs out of iterations.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from .annuity import payment_for_monthly_rate
from .config import FormulaConstants, TaegConfig, resolve_constants
from .data_models import SolverResult
from .logging import get_logger

logger = get_logger(__name__)


def _payment_and_derivative(loan: float, rate: float, months: int) -> Tuple[float, float]:
    """Annuity payment at monthly ``rate`` and its derivative in ``rate``."""
    if rate == 0:
        # limit of the derivative at zero
        return loan / months, loan * (months + 1) / (2 * months)
    discount = (1 + rate) ** (-months)
    denominator = 1 - discount
    payment = loan * rate / denominator
    derivative = loan * (denominator - rate * months * (1 + rate) ** (-months - 1)) / denominator**2
    return payment, derivative


def _newton(
    objective: Callable[[float], Tuple[float, float]], seed: float, config: TaegConfig
) -> Tuple[float, bool, int]:
    rate = min(max(seed, config.min_rate), config.max_rate)
    clamp_hits = 0
    iterations = 0
    while iterations < config.max_iterations:
        iterations += 1
        value, slope = objective(rate)
        if abs(value) < config.tolerance:
            return rate, True, iterations
        if slope <= 0:
            return rate, False, iterations
        candidate = rate - value / slope
        if candidate < config.min_rate or candidate > config.max_rate:
            clamp_hits += 1
            if clamp_hits >= config.max_clamp_hits:
                return rate, False, iterations
            candidate = min(max(candidate, config.min_rate), config.max_rate)
        if abs(candidate - rate) < 1e-15:
            return candidate, abs(objective(candidate)[0]) < config.tolerance, iterations
        rate = candidate
    return rate, False, iterations


def _bisect(
    objective: Callable[[float], Tuple[float, float]], low: float, high: float, config: TaegConfig
) -> Tuple[Optional[float], int]:
    """Root of the increasing ``objective`` in ``[low, high]``, or None."""
    f_low = objective(low)[0]
    if abs(f_low) < config.tolerance:
        return low, 0
    f_high = objective(high)[0]
    if f_low > 0 or f_high < 0:
        return None, 0
    iterations = 0
    mid = low
    while iterations < config.bisection_iterations:
        iterations += 1
        mid = (low + high) / 2
        f_mid = objective(mid)[0]
        if abs(f_mid) < config.tolerance or high - low < 1e-15:
            break
        if f_mid > 0:
            high = mid
        else:
            low = mid
    return mid, iterations


def effective_rate(
    loan: float,
    total_monthly_payment: float,
    years: float,
    nominal_rate: float,
    insurance_rate: float = 0.0,
    *,
    constants: Optional[FormulaConstants] = None,
) -> SolverResult:
    """Solve for the TAEG, in percent.

    Parameters
    ----------
    loan: float
        Net amount borrowed.
    total_monthly_payment: float
        What the borrower pays each month: principal, interest and insurance.
    years: float
        Loan duration.
    nominal_rate: float
        Nominal annual rate (percent). The result is never below it.
    insurance_rate: float
        Annual insurance rate (decimal), only used to seed the search.

    Returns
    -------
    SolverResult
        ``value`` is the TAEG in percent. Degenerate inputs give ``0.0``.
    """
    config = resolve_constants(constants).taeg
    months = int(round(years * 12))
    if loan <= 0 or total_monthly_payment <= 0 or months <= 0:
        return SolverResult(0.0, converged=True, iterations=0)

    nominal_rate = max(0.0, nominal_rate)

    def objective(rate: float) -> Tuple[float, float]:
        payment, slope = _payment_and_derivative(loan, rate, months)
        return payment - total_monthly_payment, slope

    insurance_contribution = insurance_rate * 100 * 0.5 if insurance_rate else 0.3
    if nominal_rate > 0:
        seed = (nominal_rate + insurance_contribution) / 12 / 100
    else:
        seed = config.initial_guess

    rate, converged, iterations = _newton(objective, seed, config)
    if not converged:
        logger.debug("Newton did not converge for TAEG, falling back to bisection")
        nominal_monthly = nominal_rate / 12 / 100
        root, extra = _bisect(objective, min(nominal_monthly, config.max_rate), config.max_rate, config)
        iterations += extra
        if root is None:
            logger.warning(
                "TAEG has no root in the allowed band (loan=%.2f, payment=%.2f); using nominal rate",
                loan,
                total_monthly_payment,
            )
            return SolverResult(nominal_rate, converged=False, iterations=iterations)
        rate = root
        converged = abs(objective(rate)[0]) < config.tolerance
        if not converged:
            logger.warning("TAEG bisection stopped after %d iterations", iterations)

    taeg = rate * 12 * 100
    return SolverResult(max(taeg, nominal_rate), converged=converged, iterations=iterations)


def theoretical_payment(loan: float, annual_rate_percent: float, years: float) -> float:
    """Annuity payment of ``loan`` at an annual rate; ``loan / n`` at zero."""
    months = int(round(years * 12))
    return payment_for_monthly_rate(loan, annual_rate_percent / 12 / 100, months)
