"""Utility functions for the mortgage calculator.

This module provides the helpers used at the boundary of the engine: numeric
validation of snapshot fields and parsing of the shorthand strings accepted by
the command-line interface (amounts with ``k``/``m`` suffixes, rate tables,
budget items).
"""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, Mapping, Tuple

from .exceptions import InvalidInputError


def to_number(name: str, value: Any) -> float:
    """Convert ``value`` to a float, rejecting NaN and non-numeric input."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a number; got {value!r}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"{name} must be a number; got {value!r}") from exc
    if math.isnan(number) or math.isinf(number):
        raise InvalidInputError(f"{name} must be a finite number; got {value!r}")
    return number


def require_non_negative(name: str, value: Any) -> float:
    number = to_number(name, value)
    if number < 0:
        raise InvalidInputError(f"{name} must not be negative; got {value!r}")
    return number


def require_positive(name: str, value: Any) -> float:
    number = to_number(name, value)
    if number <= 0:
        raise InvalidInputError(f"{name} must be positive; got {value!r}")
    return number


def require_whole_number(name: str, value: Any, *, positive: bool = False) -> int:
    """Like :func:`require_non_negative`, but the value must also be integral."""
    number = require_positive(name, value) if positive else require_non_negative(name, value)
    if not number.is_integer():
        raise InvalidInputError(f"{name} must be a whole number; got {value!r}")
    return int(number)


def require_mapping(name: str, value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise InvalidInputError(f"{name} must be an object; got {type(value).__name__}")
    return value


def parse_flag(name: str, value: Any) -> bool:
    """Accept a real boolean or the strings ``"true"`` / ``"false"``."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ("true", "false"):
        return value.strip().lower() == "true"
    raise InvalidInputError(f"{name} must be true or false; got {value!r}")


def parse_amount(value: str) -> float:
    """Parse a numeric string with optional suffixes.

    Accepts plain numbers ("250000") and shorthand with ``k``/``m`` suffixes
    (e.g. "250k" meaning 250_000). Spaces and commas used as thousands
    separators are ignored.
    """
    cleaned = value.strip().lower().replace(",", "").replace(" ", "").replace("_", "")
    factor = 1.0
    if cleaned.endswith("k"):
        factor = 1_000.0
        cleaned = cleaned[:-1]
    elif cleaned.endswith("m"):
        factor = 1_000_000.0
        cleaned = cleaned[:-1]
    return to_number("amount", cleaned) * factor


def parse_budget_item(value: str) -> Tuple[float, str]:
    """Parse ``AMOUNT[:monthly|yearly]`` into an amount and a recurrence."""
    parts = value.split(":")
    if len(parts) > 2:
        raise InvalidInputError(f"Budget item must be in AMOUNT[:RECURRENCE] format; got {value}")
    amount = parse_amount(parts[0])
    recurrence = parts[1].strip().lower() if len(parts) == 2 else "monthly"
    if recurrence not in ("monthly", "yearly"):
        raise InvalidInputError(f"Recurrence must be 'monthly' or 'yearly'; got {recurrence}")
    return amount, recurrence


def parse_rate_table(values: Iterable[str]) -> Dict[int, float]:
    """Parse ``YEARS=RATE`` entries (e.g. ``20=3.17``) into a rate table."""
    table: Dict[int, float] = {}
    for item in values:
        if "=" not in item:
            raise InvalidInputError(f"Rate must be in YEARS=RATE format; got {item}")
        years_str, rate_str = item.split("=", 1)
        try:
            years = int(years_str.strip())
        except ValueError as exc:
            raise InvalidInputError(f"Invalid rate duration: {years_str}") from exc
        table[years] = require_non_negative(f"rate[{years}]", rate_str.strip().rstrip("%"))
    return table
