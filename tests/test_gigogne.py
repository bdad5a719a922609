import pytest

from mortgage_calc.annuity import max_loan, monthly_payment
from mortgage_calc.gigogne import (
    amortization_headroom,
    generate_gigogne_schedule,
    max_loan_with_gigogne,
    optimal_secondary_amount,
    secondary_payment,
    smoothed_payment,
)

LOAN = 250000
PRIMARY_RATE, PRIMARY_YEARS = 3.5, 25
SECONDARY_RATE, SECONDARY_YEARS = 1.0, 10


def test_without_secondary_the_smoothed_payment_is_the_plain_annuity():
    assert smoothed_payment(LOAN, 3.5, 25, 0, 1.0, 10) == pytest.approx(monthly_payment(LOAN, 3.5, 25))


def test_secondary_payment_is_its_own_annuity():
    assert secondary_payment(50000, 1.0, 10) == pytest.approx(monthly_payment(50000, 1.0, 10))


def test_cheaper_secondary_lowers_the_payment():
    split = smoothed_payment(LOAN - 50000, 3.5, 25, 50000, 1.0, 10)
    assert split < monthly_payment(LOAN, 3.5, 25)


def test_optimal_secondary_keeps_primary_amortizing():
    result = optimal_secondary_amount(LOAN, PRIMARY_RATE, PRIMARY_YEARS, SECONDARY_RATE, SECONDARY_YEARS, 200000)
    assert result.converged
    assert 0 < result.value < 200000
    assert result.value == int(result.value)
    assert amortization_headroom(
        LOAN - result.value, PRIMARY_RATE, PRIMARY_YEARS, result.value, SECONDARY_RATE, SECONDARY_YEARS
    ) >= -1e-6
    # one euro more would make the primary balance grow
    bigger = result.value + 1
    assert amortization_headroom(
        LOAN - bigger, PRIMARY_RATE, PRIMARY_YEARS, bigger, SECONDARY_RATE, SECONDARY_YEARS
    ) < 0


LOOSE_CAP_CASES = [
    (100000, 3.5, 25, 1.0, 10),
    (175000, 3.2, 20, 0.5, 7),
    (250000, 4.0, 25, 2.0, 15),
    (400000, 3.0, 30, 1.5, 12),
]


@pytest.mark.parametrize("total,r1,n1,r2,n2", LOOSE_CAP_CASES)
@pytest.mark.parametrize("margin", [0.4, 1.0, 37.5, 5000.25])
def test_optimum_does_not_depend_on_a_loose_cap(total, r1, n1, r2, n2, margin):
    loose = optimal_secondary_amount(total, r1, n1, r2, n2, 10**9)
    assert 0 < loose.value < total
    capped = optimal_secondary_amount(total, r1, n1, r2, n2, min(total, loose.value + margin))
    assert capped.value == loose.value


def test_reference_split_of_a_100k_loan():
    assert optimal_secondary_amount(100000, 3.5, 25, 1.0, 10, 95000).value == optimal_secondary_amount(
        100000, 3.5, 25, 1.0, 10, 10**9
    ).value


def test_binding_cap_is_returned_as_is():
    result = optimal_secondary_amount(LOAN, PRIMARY_RATE, PRIMARY_YEARS, SECONDARY_RATE, SECONDARY_YEARS, 10000)
    assert result.value == 10000
    assert result.converged
    assert result.iterations == 0


@pytest.mark.parametrize("total,cap", [(0, 100000), (LOAN, 0)])
def test_optimal_secondary_degenerate(total, cap):
    result = optimal_secondary_amount(total, PRIMARY_RATE, PRIMARY_YEARS, SECONDARY_RATE, SECONDARY_YEARS, cap)
    assert result.value == 0
    assert result.converged


@pytest.fixture
def nested_schedule():
    secondary = optimal_secondary_amount(
        LOAN, PRIMARY_RATE, PRIMARY_YEARS, SECONDARY_RATE, SECONDARY_YEARS, 100000
    ).value
    rows = generate_gigogne_schedule(
        LOAN - secondary, PRIMARY_RATE, PRIMARY_YEARS, secondary, SECONDARY_RATE, SECONDARY_YEARS, 50.0
    )
    return secondary, rows


def test_schedule_lasts_the_primary_duration(nested_schedule):
    _, rows = nested_schedule
    assert len(rows) == 300
    assert rows[-1].remaining == 0.0
    assert rows[-1].primary_remaining == 0.0


def test_each_tranche_matures_on_time(nested_schedule):
    secondary, rows = nested_schedule
    assert rows[0].secondary_remaining < secondary
    assert rows[118].secondary_remaining > 0
    assert rows[119].secondary_remaining == 0.0
    assert all(row.secondary_payment == 0 for row in rows[120:])
    assert all(row.secondary_remaining == 0 for row in rows[120:])


def test_payment_is_flat_and_fully_allocated(nested_schedule):
    _, rows = nested_schedule
    payment = rows[0].payment
    for row in rows:
        assert row.payment == payment
        assert row.principal + row.interest == pytest.approx(row.payment, abs=1e-6)
        assert row.insurance == 50.0


def test_primary_never_grows_during_overlap(nested_schedule):
    _, rows = nested_schedule
    for row in rows[:120]:
        assert row.primary_principal >= -1e-6


def test_tranches_are_fully_repaid(nested_schedule):
    secondary, rows = nested_schedule
    assert sum(row.secondary_principal for row in rows) == pytest.approx(secondary, rel=1e-9)
    assert sum(row.primary_principal for row in rows) == pytest.approx(LOAN - secondary, rel=1e-9)


def test_empty_schedule_for_nothing_borrowed():
    assert generate_gigogne_schedule(0, 3.5, 25, 0, 1.0, 10) == []


def test_capacity_uses_the_full_budget():
    capacity = max_loan_with_gigogne(1500, PRIMARY_RATE, PRIMARY_YEARS, SECONDARY_RATE, SECONDARY_YEARS, 200000)
    assert capacity.converged
    assert 0 < capacity.secondary < 200000
    assert capacity.total == pytest.approx(capacity.primary + capacity.secondary)
    assert capacity.total > max_loan(1500, PRIMARY_RATE, PRIMARY_YEARS)
    assert smoothed_payment(
        capacity.primary, PRIMARY_RATE, PRIMARY_YEARS, capacity.secondary, SECONDARY_RATE, SECONDARY_YEARS
    ) == pytest.approx(1500)
    assert amortization_headroom(
        capacity.primary, PRIMARY_RATE, PRIMARY_YEARS, capacity.secondary, SECONDARY_RATE, SECONDARY_YEARS
    ) >= -1e-6


def test_capacity_respects_the_secondary_cap():
    capacity = max_loan_with_gigogne(1500, PRIMARY_RATE, PRIMARY_YEARS, SECONDARY_RATE, SECONDARY_YEARS, 20000)
    assert capacity.secondary == 20000


def test_expensive_secondary_is_not_used():
    capacity = max_loan_with_gigogne(1500, PRIMARY_RATE, PRIMARY_YEARS, 5.0, SECONDARY_YEARS, 200000)
    assert capacity.secondary == 0
    assert capacity.total == pytest.approx(max_loan(1500, PRIMARY_RATE, PRIMARY_YEARS))


def test_capacity_without_budget():
    capacity = max_loan_with_gigogne(0, PRIMARY_RATE, PRIMARY_YEARS, SECONDARY_RATE, SECONDARY_YEARS, 200000)
    assert capacity.total == 0
    assert capacity.converged
