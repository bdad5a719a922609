import pytest

from mortgage_calc.annuity import monthly_payment
from mortgage_calc.config import FormulaConstants, TaegConfig
from mortgage_calc.insurance import monthly_insurance
from mortgage_calc.taeg import effective_rate, theoretical_payment


def test_without_insurance_equals_nominal_rate():
    payment = monthly_payment(200000, 3.09, 20)
    result = effective_rate(200000, payment, 20, 3.09)
    assert result.converged
    assert result.value == pytest.approx(3.09, abs=1e-3)


def test_insurance_raises_the_effective_rate():
    payment = monthly_payment(200000, 3.09, 20) + monthly_insurance(200000, 0.00235)
    result = effective_rate(200000, payment, 20, 3.09, 0.00235)
    assert result.converged
    assert result.value > 3.09
    assert 0 < result.iterations <= 100
    assert theoretical_payment(200000, result.value, 20) == pytest.approx(payment, abs=1e-3)


def test_effective_rate_grows_with_the_payment():
    base = monthly_payment(150000, 3.5, 25)
    low = effective_rate(150000, base + 20, 25, 3.5).value
    high = effective_rate(150000, base + 60, 25, 3.5).value
    assert 3.5 < low < high


def test_zero_rate_loan():
    result = effective_rate(120000, 500, 20, 0.0)
    assert result.converged
    assert result.value == pytest.approx(0.0, abs=1e-6)


def test_zero_rate_loan_with_insurance():
    result = effective_rate(120000, 500 + 30, 20, 0.0, 0.003)
    assert result.converged
    assert result.value > 0
    assert theoretical_payment(120000, result.value, 20) == pytest.approx(530, abs=1e-3)


@pytest.mark.parametrize(
    "loan,payment,years",
    [(0, 1000, 20), (100000, 0, 20), (100000, 1000, 0)],
)
def test_degenerate_input(loan, payment, years):
    result = effective_rate(loan, payment, years, 3.0)
    assert result.value == 0.0
    assert result.converged
    assert result.iterations == 0


def test_payment_below_nominal_annuity_falls_back_to_nominal():
    result = effective_rate(200000, 500, 20, 3.09)
    assert not result.converged
    assert result.value == 3.09


def test_never_below_nominal_rate():
    payment = monthly_payment(200000, 3.09, 20) - 0.5
    result = effective_rate(200000, payment, 20, 3.09)
    assert result.value >= 3.09


def test_bisection_takes_over_when_newton_is_capped():
    constants = FormulaConstants(taeg=TaegConfig(max_iterations=1))
    payment = monthly_payment(200000, 3.09, 20) + monthly_insurance(200000, 0.0055)
    result = effective_rate(200000, payment, 20, 3.09, 0.0055, constants=constants)
    reference = effective_rate(200000, payment, 20, 3.09, 0.0055)
    assert result.converged
    assert result.iterations > 1
    assert result.value == pytest.approx(reference.value, abs=1e-4)


def test_theoretical_payment():
    assert theoretical_payment(120000, 0.0, 10) == pytest.approx(1000)
    assert theoretical_payment(200000, 3.09, 20) == pytest.approx(monthly_payment(200000, 3.09, 20))
