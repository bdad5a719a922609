"""Pytest configuration and fixtures."""

import pytest

from mortgage_calc.config import FormulaConstants
from mortgage_calc.data_models import BudgetItem, MortgageInput


@pytest.fixture
def constants() -> FormulaConstants:
    """Default formula constants."""
    return FormulaConstants()


@pytest.fixture
def rates() -> dict:
    """Rate anchors in percent."""
    return {15: 3.09, 20: 3.17, 25: 3.25}


@pytest.fixture
def snapshot(rates) -> MortgageInput:
    """A couple earning 5200/month buying a 250k pre-owned flat."""
    return MortgageInput(
        incomes=[BudgetItem(2800), BudgetItem(2400), BudgetItem(3600, "yearly", label="Prime")],
        expenses=[BudgetItem(150)],
        rates=rates,
        age=30,
        capital=50000,
        duration_years=20,
        dossier_fee=1000,
        property_category="old",
        property_price=250000,
    )
