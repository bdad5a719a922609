"""Affordability solvers.

Fees and price depend on each other (notary fees are a function of the price,
the guarantee a function of the loan), so the maximum price and the required
loan are found by fixed-point iteration. The insurance-aware maximum price
wraps those in a binary search on price.

Every solver is bounded: when its iteration cap is reached it returns the last
estimate with ``converged=False`` and logs a warning.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from .annuity import max_loan as annuity_max_loan
from .annuity import monthly_payment
from .config import FormulaConstants, resolve_constants
from .data_models import AffordabilityResult, FeeBreakdown, PropertyCategory
from .fees import guarantee_fee, notary_fees
from .gigogne import max_loan_with_gigogne, optimal_secondary_amount, smoothed_payment
from .insurance import monthly_insurance
from .logging import get_logger

logger = get_logger(__name__)


def _empty_result(price: float = 0.0, dossier_fee: float = 0.0) -> AffordabilityResult:
    return AffordabilityResult(
        price=price,
        loan=0.0,
        fees=FeeBreakdown(dossier_fee=dossier_fee),
        iterations=0,
        converged=True,
    )


def max_property_price(
    capital: float,
    max_loan: float,
    dossier_fee: float,
    category: PropertyCategory | str,
    *,
    constants: Optional[FormulaConstants] = None,
) -> AffordabilityResult:
    """Maximum price payable with ``capital`` and a loan of ``max_loan``.

    Solves ``price = capital + max_loan - fees(price)`` starting from
    ``capital + max_loan``. The guarantee is charged on ``max_loan``, which
    does not change between iterations.
    """
    constants = resolve_constants(constants)
    iteration = constants.iteration
    if capital < 0 or max_loan <= 0:
        return _empty_result(dossier_fee=dossier_fee)

    caution = guarantee_fee(max_loan, constants=constants)
    estimated_price = capital + max_loan
    previous_price = 0.0
    iterations = 0

    while (
        abs(estimated_price - previous_price) > iteration.convergence_threshold
        and iterations < iteration.max_iterations
    ):
        previous_price = estimated_price
        total_fees = notary_fees(estimated_price, category, constants=constants) + dossier_fee + caution
        estimated_price = capital + max_loan - total_fees
        iterations += 1

    converged = abs(estimated_price - previous_price) <= iteration.convergence_threshold
    if not converged:
        logger.warning(
            "Max price did not converge after %d iterations (last estimate %.2f)",
            iterations,
            estimated_price,
        )
    logger.debug("Max price %.2f after %d iterations", estimated_price, iterations)

    price = max(0.0, estimated_price)
    fees = FeeBreakdown(
        notary_fees=notary_fees(price, category, constants=constants),
        guarantee_fee=caution,
        dossier_fee=dossier_fee,
    )
    return AffordabilityResult(
        price=price,
        loan=max_loan,
        fees=fees,
        iterations=iterations,
        converged=converged,
    )


def required_loan(
    price: float,
    capital: float,
    dossier_fee: float,
    category: PropertyCategory | str,
    *,
    constants: Optional[FormulaConstants] = None,
) -> AffordabilityResult:
    """Loan needed to buy at ``price`` once fees are paid.

    Solves ``loan = price + fees(loan) - capital``. Notary fees only depend
    on the price; the guarantee depends on the loan. When the capital covers
    everything the loan is clamped to zero and the loop stops.
    """
    constants = resolve_constants(constants)
    iteration = constants.iteration
    if price <= 0:
        return _empty_result(dossier_fee=dossier_fee)

    notary = notary_fees(price, category, constants=constants)
    estimated_loan = price + price * iteration.initial_fees_estimate - capital
    previous_loan = 0.0
    iterations = 0

    while (
        abs(estimated_loan - previous_loan) > iteration.convergence_threshold
        and iterations < iteration.max_iterations
    ):
        previous_loan = estimated_loan
        total_fees = notary + dossier_fee + guarantee_fee(estimated_loan, constants=constants)
        estimated_loan = price + total_fees - capital
        iterations += 1
        if estimated_loan < 0:
            estimated_loan = 0.0
            break

    if estimated_loan == 0:
        converged = True
    else:
        converged = abs(estimated_loan - previous_loan) <= iteration.convergence_threshold
    if not converged:
        logger.warning(
            "Required loan did not converge after %d iterations (last estimate %.2f)",
            iterations,
            estimated_loan,
        )

    loan = max(0.0, estimated_loan)
    fees = FeeBreakdown(
        notary_fees=notary,
        guarantee_fee=guarantee_fee(loan, constants=constants),
        dossier_fee=dossier_fee,
    )
    return AffordabilityResult(
        price=price,
        loan=loan,
        fees=fees,
        iterations=iterations,
        converged=converged,
    )


# (loan) -> (monthly payment without insurance, monthly insurance)
MonthlyCost = Callable[[float], Tuple[float, float]]


def _search_max_price(
    upper_price: float,
    budget: float,
    capital: float,
    dossier_fee: float,
    category: PropertyCategory | str,
    cost: MonthlyCost,
    constants: FormulaConstants,
) -> AffordabilityResult:
    """Binary search for the highest affordable price in ``[0, upper_price]``.

    Precondition: the total monthly cost is non-decreasing in price. A fee or
    insurance configuration breaking that would make the search return a
    wrong bound without any error.
    """
    iteration = constants.iteration

    def check(candidate: float) -> Tuple[bool, AffordabilityResult, float, float]:
        loan_result = required_loan(candidate, capital, dossier_fee, category, constants=constants)
        if loan_result.loan <= 0:
            return True, loan_result, 0.0, 0.0
        payment, insurance = cost(loan_result.loan)
        return payment + insurance <= budget, loan_result, payment, insurance

    low = 0.0
    high = upper_price
    optimal = 0.0
    iterations = 0
    while high - low > iteration.search_tolerance and iterations < iteration.search_max_iterations:
        mid = (low + high) / 2
        affordable = check(mid)[0]
        if affordable:
            optimal = mid
            low = mid
        else:
            high = mid
        iterations += 1

    converged = high - low <= iteration.search_tolerance
    if not converged:
        logger.warning("Price search stopped after %d iterations at %.2f", iterations, optimal)
    logger.debug("Price search found %.2f in %d iterations", optimal, iterations)

    if optimal <= 0:
        return AffordabilityResult(
            price=0.0,
            loan=0.0,
            fees=FeeBreakdown(dossier_fee=dossier_fee),
            iterations=iterations,
            converged=converged,
        )
    _, loan_result, payment, insurance = check(optimal)
    return AffordabilityResult(
        price=optimal,
        loan=loan_result.loan,
        fees=loan_result.fees,
        iterations=iterations,
        converged=converged,
        monthly_payment=payment,
        monthly_insurance=insurance,
    )


def optimize_max_price_with_insurance(
    capital: float,
    budget: float,
    dossier_fee: float,
    category: PropertyCategory | str,
    annual_rate: float,
    years: int,
    insurance_rate: float,
    *,
    constants: Optional[FormulaConstants] = None,
) -> AffordabilityResult:
    """Highest price whose loan payment plus insurance fits in ``budget``.

    The price computed without insurance is the upper bound of the search:
    adding insurance can only lower what the borrower can afford.
    """
    constants = resolve_constants(constants)
    if capital < 0 or budget <= 0:
        return _empty_result(dossier_fee=dossier_fee)

    initial = max_property_price(
        capital,
        annuity_max_loan(budget, annual_rate, years),
        dossier_fee,
        category,
        constants=constants,
    )
    if initial.price <= 0:
        return _empty_result(dossier_fee=dossier_fee)

    def cost(loan: float) -> Tuple[float, float]:
        return monthly_payment(loan, annual_rate, years), monthly_insurance(loan, insurance_rate)

    return _search_max_price(initial.price, budget, capital, dossier_fee, category, cost, constants)


def optimize_max_price_with_gigogne(
    capital: float,
    budget: float,
    dossier_fee: float,
    category: PropertyCategory | str,
    annual_rate: float,
    years: int,
    secondary_rate: float,
    secondary_years: int,
    max_secondary_amount: float,
    insurance_rate: float,
    *,
    constants: Optional[FormulaConstants] = None,
) -> AffordabilityResult:
    """Highest affordable price when the loan is split into two tranches.

    For each candidate price the required loan is split the way
    :func:`mortgage_calc.gigogne.optimal_secondary_amount` splits it and the
    smoothed monthly payment plus insurance (on the whole loan) is compared
    with ``budget``.
    """
    constants = resolve_constants(constants)
    if capital < 0 or budget <= 0:
        return _empty_result(dossier_fee=dossier_fee)

    capacity = max_loan_with_gigogne(
        budget,
        annual_rate,
        years,
        secondary_rate,
        secondary_years,
        max_secondary_amount,
        constants=constants,
    )
    upper_loan = max(capacity.total, annuity_max_loan(budget, annual_rate, years))
    initial = max_property_price(capital, upper_loan, dossier_fee, category, constants=constants)
    if initial.price <= 0:
        return _empty_result(dossier_fee=dossier_fee)

    def cost(loan: float) -> Tuple[float, float]:
        optimal = optimal_secondary_amount(
            loan,
            annual_rate,
            years,
            secondary_rate,
            secondary_years,
            max_secondary_amount,
            constants=constants,
        ).value
        secondary = min(optimal, max_secondary_amount, loan)
        payment = smoothed_payment(
            loan - secondary, annual_rate, years, secondary, secondary_rate, secondary_years
        )
        return payment, monthly_insurance(loan, insurance_rate)

    return _search_max_price(initial.price, budget, capital, dossier_fee, category, cost, constants)
