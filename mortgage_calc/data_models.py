"""Data models for the mortgage calculator.

This module defines the dataclasses exchanged between the formulas and their
callers: budget items, loan terms, amortization rows, fee breakdowns, solver
results, the input snapshot consumed by :func:`mortgage_calc.engine.recalculate`
and the result snapshot it returns. Results are frozen; they are recomputed
from scratch on every recalculation.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .exceptions import InvalidInputError
from .utils import (
    parse_flag,
    require_mapping,
    require_non_negative,
    require_whole_number,
)

# Duration anchor (years) -> annual nominal rate in percent.
RateTable = Dict[int, float]

DEFAULT_RATES: RateTable = {15: 3.09, 20: 3.17, 25: 3.25}


class Recurrence(str, Enum):
    MONTHLY = "monthly"
    YEARLY = "yearly"


class PropertyCategory(str, Enum):
    NEW = "new"
    OLD = "old"


def _enum_value(enum_cls, value, name: str):
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).lower())
    except ValueError as exc:
        allowed = ", ".join(member.value for member in enum_cls)
        raise InvalidInputError(f"{name} must be one of {allowed}; got {value!r}") from exc


@dataclass(frozen=True)
class BudgetItem:
    """A recurring income or expense.

    Attributes
    ----------
    amount: float
        Non-negative amount per ``recurrence`` period.
    recurrence: Recurrence
        ``monthly`` or ``yearly``; yearly amounts count for one twelfth.
    label: str
        Free text shown by the presentation layer ("Salaire", "Loyer", ...).
    """

    amount: float
    recurrence: Recurrence = Recurrence.MONTHLY
    label: str = ""

    def __post_init__(self) -> None:
        object.__setattr__(self, "amount", require_non_negative("amount", self.amount))
        object.__setattr__(
            self, "recurrence", _enum_value(Recurrence, self.recurrence, "recurrence")
        )

    @property
    def monthly_amount(self) -> float:
        if self.recurrence is Recurrence.YEARLY:
            return self.amount / 12
        return self.amount

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "BudgetItem":
        require_mapping("Budget item", data)
        if "amount" not in data:
            raise InvalidInputError("Budget item requires an amount")
        return cls(
            amount=data["amount"],
            recurrence=data.get("recurrence", data.get("frequency", Recurrence.MONTHLY)),
            label=str(data.get("label", data.get("type", ""))),
        )


IncomeItem = BudgetItem
ExpenseItem = BudgetItem


@dataclass(frozen=True)
class LoanTerms:
    """Principal, annual nominal rate (percent) and duration of an annuity."""

    principal: float
    annual_rate_percent: float
    duration_years: int

    @property
    def months(self) -> int:
        return int(round(self.duration_years * 12))

    @property
    def monthly_rate(self) -> float:
        return self.annual_rate_percent / 12 / 100


@dataclass(frozen=True)
class AmortizationRow:
    """One month of an amortization schedule.

    ``principal + interest == payment`` for every row. ``remaining`` is set
    to exactly zero on the final row.
    """

    period: int
    year: int
    payment: float
    principal: float
    interest: float
    insurance: float
    cumulative_paid: float
    remaining: float


@dataclass(frozen=True)
class GigogneRow(AmortizationRow):
    """A month of a two-tranche schedule; the base columns are the totals."""

    primary_principal: float
    primary_interest: float
    primary_remaining: float
    secondary_payment: float
    secondary_principal: float
    secondary_interest: float
    secondary_remaining: float


@dataclass(frozen=True)
class NotaryFeeDetails:
    emoluments: float
    transfer_tax: float
    disbursements: float
    security_contribution: float

    @property
    def total(self) -> float:
        return self.emoluments + self.transfer_tax + self.disbursements + self.security_contribution

    def to_dict(self) -> Dict[str, float]:
        data = asdict(self)
        data["total"] = self.total
        return data


@dataclass(frozen=True)
class FeeBreakdown:
    notary_fees: float = 0.0
    guarantee_fee: float = 0.0
    dossier_fee: float = 0.0

    @property
    def total(self) -> float:
        return self.notary_fees + self.guarantee_fee + self.dossier_fee

    def to_dict(self) -> Dict[str, float]:
        data = asdict(self)
        data["total"] = self.total
        return data


@dataclass(frozen=True)
class SolverResult:
    """Outcome of a bounded iterative computation.

    ``converged`` is False when the iteration cap was reached before the
    tolerance was met; ``value`` is then the last estimate.
    """

    value: float
    converged: bool
    iterations: int


@dataclass(frozen=True)
class AffordabilityResult:
    """Result of the price and loan solvers.

    For :func:`~mortgage_calc.affordability.required_loan`, ``price`` echoes
    the requested price; for the price solvers it is the maximum affordable
    price and ``loan`` the loan that finances it.
    """

    price: float
    loan: float
    fees: FeeBreakdown
    iterations: int
    converged: bool
    monthly_payment: float = 0.0
    monthly_insurance: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["fees"] = self.fees.to_dict()
        return data


@dataclass(frozen=True)
class GigogneConfig:
    """Secondary (nested) loan settings.

    ``max_secondary_amount`` caps the secondary tranche; the amount actually
    borrowed is ``min(optimum, max_secondary_amount, total loan)``.
    """

    enabled: bool = False
    secondary_rate: float = 0.0
    secondary_duration_years: int = 0
    max_secondary_amount: float = 0.0

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "secondary_rate", require_non_negative("secondary_rate", self.secondary_rate)
        )
        object.__setattr__(
            self,
            "max_secondary_amount",
            require_non_negative("max_secondary_amount", self.max_secondary_amount),
        )
        if self.enabled:
            object.__setattr__(
                self,
                "secondary_duration_years",
                require_whole_number(
                    "secondary_duration_years", self.secondary_duration_years, positive=True
                ),
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "GigogneConfig":
        require_mapping("gigogne", data)
        return cls(
            enabled=parse_flag("enabled", data.get("enabled", False)),
            secondary_rate=data.get("secondary_rate", data.get("rate", 0.0)),
            secondary_duration_years=data.get(
                "secondary_duration_years", data.get("duration", 0)
            ),
            max_secondary_amount=data.get("max_secondary_amount", data.get("max_amount", 0.0)),
        )


@dataclass(frozen=True)
class GigogneCapacity:
    total: float
    primary: float
    secondary: float
    converged: bool
    iterations: int


@dataclass(frozen=True)
class GigogneSummary:
    optimal_amount: float
    actual_amount: float
    primary_amount: float
    secondary_payment: float
    smoothed_payment: float
    converged: bool
    iterations: int


@dataclass(frozen=True)
class MortgageInput:
    """Immutable snapshot of everything a recalculation needs.

    ``age`` is only used for the insurance bracket; ``None`` means no
    insurance. ``rate_override`` replaces the rate interpolated from
    ``rates`` when set.
    """

    incomes: Sequence[IncomeItem] = ()
    expenses: Sequence[ExpenseItem] = ()
    rates: RateTable = field(default_factory=lambda: dict(DEFAULT_RATES))
    age: Optional[int] = None
    capital: float = 0.0
    duration_years: int = 20
    dossier_fee: float = 0.0
    property_category: PropertyCategory = PropertyCategory.OLD
    property_price: float = 0.0
    gigogne: Optional[GigogneConfig] = None
    rate_override: Optional[float] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "incomes", tuple(self.incomes))
        object.__setattr__(self, "expenses", tuple(self.expenses))
        rates: RateTable = {}
        for anchor, rate in dict(require_mapping("rates", self.rates)).items():
            years = require_whole_number("rate anchor", anchor, positive=True)
            rates[years] = require_non_negative(f"rate[{years}]", rate)
        object.__setattr__(self, "rates", rates)
        if self.age is not None:
            object.__setattr__(self, "age", require_whole_number("age", self.age))
        object.__setattr__(self, "capital", require_non_negative("capital", self.capital))
        object.__setattr__(
            self,
            "duration_years",
            require_whole_number("duration_years", self.duration_years, positive=True),
        )
        object.__setattr__(self, "dossier_fee", require_non_negative("dossier_fee", self.dossier_fee))
        object.__setattr__(
            self,
            "property_category",
            _enum_value(PropertyCategory, self.property_category, "property_category"),
        )
        object.__setattr__(
            self, "property_price", require_non_negative("property_price", self.property_price)
        )
        if self.rate_override is not None:
            object.__setattr__(
                self, "rate_override", require_non_negative("rate_override", self.rate_override)
            )
        if self.gigogne is not None and self.gigogne.enabled:
            if self.gigogne.secondary_duration_years > self.duration_years:
                raise InvalidInputError(
                    "Secondary loan duration cannot exceed the primary duration "
                    f"({self.gigogne.secondary_duration_years} > {self.duration_years} years)"
                )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MortgageInput":
        """Build a snapshot from plain JSON-like data."""
        require_mapping("Input", data)
        kwargs: Dict[str, Any] = {}
        for key in ("capital", "duration_years", "dossier_fee", "property_price", "property_category",
                    "age", "rate_override"):
            if data.get(key) is not None:
                kwargs[key] = data[key]
        if "rates" in data:
            kwargs["rates"] = require_mapping("rates", data["rates"])
        for key in ("incomes", "expenses"):
            items = data.get(key) or []
            if not isinstance(items, (list, tuple)):
                raise InvalidInputError(f"{key} must be a list of budget items")
            kwargs[key] = [BudgetItem.from_dict(item) for item in items]
        if data.get("gigogne") is not None:
            kwargs["gigogne"] = GigogneConfig.from_dict(data["gigogne"])
        try:
            return cls(**kwargs)
        except TypeError as exc:
            raise InvalidInputError(str(exc)) from exc


@dataclass(frozen=True)
class MortgageResult:
    """Output snapshot read by the presentation and export layers."""

    monthly_income: float
    monthly_charges: float
    max_monthly_payment: float
    interest_rate: float
    insurance_rate: float
    max_loan: float
    max_price: AffordabilityResult
    required_loan: AffordabilityResult
    monthly_payment: float
    monthly_insurance: float
    monthly_payment_with_insurance: float
    total_cost: float
    total_interest: float
    total_insurance: float
    taeg: SolverResult
    debt_ratio: float
    schedule: List[AmortizationRow]
    gigogne: Optional[GigogneSummary] = None

    @property
    def max_affordable_price(self) -> float:
        return self.max_price.price

    @property
    def fees(self) -> FeeBreakdown:
        return self.required_loan.fees

    def to_dict(self) -> Dict[str, Any]:
        return {
            "monthly_income": self.monthly_income,
            "monthly_charges": self.monthly_charges,
            "max_monthly_payment": self.max_monthly_payment,
            "interest_rate": self.interest_rate,
            "insurance_rate": self.insurance_rate,
            "max_loan": self.max_loan,
            "max_affordable_price": self.max_affordable_price,
            "max_price": self.max_price.to_dict(),
            "required_loan": self.required_loan.loan,
            "required_loan_details": self.required_loan.to_dict(),
            "fees": self.fees.to_dict(),
            "monthly_payment": self.monthly_payment,
            "monthly_insurance": self.monthly_insurance,
            "monthly_payment_with_insurance": self.monthly_payment_with_insurance,
            "total_cost": self.total_cost,
            "total_interest": self.total_interest,
            "total_insurance": self.total_insurance,
            "taeg": self.taeg.value,
            "taeg_details": asdict(self.taeg),
            "debt_ratio": self.debt_ratio,
            "gigogne": asdict(self.gigogne) if self.gigogne else None,
            "schedule": [asdict(row) for row in self.schedule],
        }
