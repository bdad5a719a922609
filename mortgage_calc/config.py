"""Formula constants for the mortgage calculator.

Every regulatory rate, threshold and solver tolerance used by the formulas
lives here, grouped into small frozen dataclasses. The defaults reproduce the
French market figures the calculator was built around; any of them can be
overridden from a JSON document, either loaded explicitly or pointed to by
the ``MORTGAGE_CALC_CONSTANTS`` environment variable.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from .exceptions import ConfigurationError

CONSTANTS_ENV_VAR = "MORTGAGE_CALC_CONSTANTS"


@dataclass(frozen=True)
class InsuranceRates:
    """Annual borrower insurance rates (decimal) by age bracket."""

    up_to_25: float = 0.0012
    up_to_40: float = 0.00235
    up_to_50: float = 0.00385
    up_to_65: float = 0.0055
    over_65: float = 0.0065


@dataclass(frozen=True)
class EmolumentScale:
    """Regressive sliding scale of the notary's émoluments.

    ``thresholds`` are the lower bounds of tiers 2..n, ascending; ``rates``
    holds one rate per tier, so it is one element longer than
    ``thresholds``. The result is multiplied by ``vat_factor``.
    """

    thresholds: Tuple[float, ...] = (6500.0, 17000.0, 60000.0)
    rates: Tuple[float, ...] = (0.03870, 0.01596, 0.01064, 0.00799)
    vat_factor: float = 1.20

    def __post_init__(self) -> None:
        object.__setattr__(self, "thresholds", tuple(float(t) for t in self.thresholds))
        object.__setattr__(self, "rates", tuple(float(r) for r in self.rates))
        if len(self.rates) != len(self.thresholds) + 1:
            raise ConfigurationError(
                "Emolument scale needs exactly one more rate than thresholds; "
                f"got {len(self.rates)} rates for {len(self.thresholds)} thresholds"
            )
        if any(b <= a for a, b in zip(self.thresholds, self.thresholds[1:])):
            raise ConfigurationError("Emolument thresholds must be strictly ascending")
        if self.thresholds and self.thresholds[0] <= 0:
            raise ConfigurationError("Emolument thresholds must be positive")


@dataclass(frozen=True)
class PropertyTaxRates:
    """Transfer tax rate by property category."""

    new: float = 0.00715
    old: float = 0.058


@dataclass(frozen=True)
class SecurityContribution:
    """Contribution de sécurité immobilière: proportional, with a floor."""

    rate: float = 0.001
    minimum: float = 15.0


@dataclass(frozen=True)
class GuaranteeConfig:
    """Caution Crédit Logement commission and mutual guarantee fund."""

    threshold: float = 500000.0
    commission_rate_low: float = 0.012
    commission_fixed: float = 6000.0
    commission_rate_high: float = 0.005
    mutual_fund_rate: float = 0.005
    minimum: float = 1000.0


@dataclass(frozen=True)
class TaegConfig:
    """Newton-Raphson / bisection settings for the effective rate.

    Rates are monthly decimals.
    """

    initial_guess: float = 0.003
    max_iterations: int = 100
    tolerance: float = 1e-6
    min_rate: float = 0.0001
    max_rate: float = 0.1
    max_clamp_hits: int = 3
    bisection_iterations: int = 200

    def __post_init__(self) -> None:
        if not 0 < self.min_rate < self.max_rate:
            raise ConfigurationError("TAEG rate band must satisfy 0 < min_rate < max_rate")


@dataclass(frozen=True)
class IterationConfig:
    """Fixed-point and price-search settings (amounts in euros)."""

    max_iterations: int = 10
    convergence_threshold: float = 100.0
    initial_fees_estimate: float = 0.10
    search_tolerance: float = 100.0
    search_max_iterations: int = 30


@dataclass(frozen=True)
class GigogneSearchConfig:
    """Binary search settings for the secondary loan amount."""

    tolerance: float = 1.0
    max_iterations: int = 60
    epsilon: float = 1e-9


@dataclass(frozen=True)
class FormulaConstants:
    """All constants used by the formulas."""

    debt_ratio: float = 0.35
    disbursements: float = 1000.0
    insurance_rates: InsuranceRates = field(default_factory=InsuranceRates)
    emoluments: EmolumentScale = field(default_factory=EmolumentScale)
    property_tax: PropertyTaxRates = field(default_factory=PropertyTaxRates)
    contribution: SecurityContribution = field(default_factory=SecurityContribution)
    guarantee: GuaranteeConfig = field(default_factory=GuaranteeConfig)
    taeg: TaegConfig = field(default_factory=TaegConfig)
    iteration: IterationConfig = field(default_factory=IterationConfig)
    gigogne: GigogneSearchConfig = field(default_factory=GigogneSearchConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FormulaConstants":
        """Build constants from a (possibly partial) mapping of overrides.

        Nested groups are given as nested mappings; keys that are not set
        keep their default value.
        """
        if not isinstance(data, Mapping):
            raise ConfigurationError("Formula constants must be a mapping")
        return _apply_overrides(cls(), data, path="")

    @classmethod
    def from_env(cls) -> "FormulaConstants":
        """Load overrides from the file named by ``MORTGAGE_CALC_CONSTANTS``."""
        path = os.getenv(CONSTANTS_ENV_VAR)
        if not path:
            return cls()
        return load_constants(path)

    def to_dict(self) -> dict[str, Any]:
        return _to_dict(self)


def _apply_overrides(target: Any, data: Mapping[str, Any], path: str) -> Any:
    known = {f.name: f for f in fields(target)}
    updates: dict[str, Any] = {}
    for key, value in data.items():
        name = f"{path}{key}"
        if key not in known:
            raise ConfigurationError(f"Unknown formula constant: {name}")
        current = getattr(target, key)
        if is_dataclass(current):
            if not isinstance(value, Mapping):
                raise ConfigurationError(f"Constant group {name} must be a mapping")
            updates[key] = _apply_overrides(current, value, path=f"{name}.")
        elif isinstance(current, tuple):
            if not isinstance(value, (list, tuple)):
                raise ConfigurationError(f"Constant {name} must be a list")
            updates[key] = tuple(value)
        else:
            try:
                updates[key] = type(current)(value)
            except (TypeError, ValueError) as exc:
                raise ConfigurationError(f"Invalid value for {name}: {value!r}") from exc
    try:
        return replace(target, **updates)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(str(exc)) from exc


def _to_dict(obj: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if is_dataclass(value):
            result[f.name] = _to_dict(value)
        elif isinstance(value, tuple):
            result[f.name] = list(value)
        else:
            result[f.name] = value
    return result


def load_constants(path: str | Path) -> FormulaConstants:
    """Load formula constants overrides from a JSON file."""
    file_path = Path(path)
    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Constants file not found: {file_path}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in constants file {file_path}: {exc}") from exc
    return FormulaConstants.from_dict(data)


DEFAULT_CONSTANTS = FormulaConstants()


def resolve_constants(constants: Optional[FormulaConstants]) -> FormulaConstants:
    return constants if constants is not None else DEFAULT_CONSTANTS
