"""Exception hierarchy for the mortgage calculator."""


class MortgageCalcError(Exception):
    """Base exception for all mortgage calculator errors."""


class InvalidInputError(MortgageCalcError, ValueError):
    """Raised when an input snapshot holds a negative, NaN or unknown value."""


class ConfigurationError(MortgageCalcError):
    """Raised when formula constants are invalid or cannot be loaded."""
