import pytest

from mortgage_calc.annuity import annuity_factor, max_loan, monthly_payment


def test_reference_loan_payment():
    # 200000 at 3.09% over 20 years
    payment = monthly_payment(200000, 3.09, 20)
    assert payment == pytest.approx(1118.23, abs=0.5)


@pytest.mark.parametrize("principal,rate,years", [(200000, 3.09, 20), (350000, 4.2, 25), (1000, 0.5, 1)])
def test_max_loan_inverts_monthly_payment(principal, rate, years):
    payment = monthly_payment(principal, rate, years)
    assert max_loan(payment, rate, years) == pytest.approx(principal, rel=1e-9)


def test_zero_rate_is_straight_line():
    assert monthly_payment(120000, 0, 10) == pytest.approx(1000.0)
    assert max_loan(1000, 0, 10) == pytest.approx(120000.0)
    assert annuity_factor(0, 240) == 240


def test_annuity_factor_matches_max_loan():
    r = 3.17 / 12 / 100
    assert max_loan(1000, 3.17, 20) == pytest.approx(1000 * annuity_factor(r, 240))


def test_non_positive_inputs_return_zero():
    assert monthly_payment(0, 3.0, 20) == 0.0
    assert monthly_payment(100000, 3.0, 0) == 0.0
    assert monthly_payment(100000, -1.0, 20) == 0.0
    assert max_loan(-10, 3.0, 20) == 0.0
    assert max_loan(1000, 3.0, 0) == 0.0
    assert annuity_factor(0.01, 0) == 0.0
