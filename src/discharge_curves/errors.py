"""
Discharge Curve Errors
======================

Validation errors raised by the interpolation and energy calculations.
All are ValueError subclasses so callers that already guard against bad
input with ``except ValueError`` keep working.
"""


class OutOfRangeError(ValueError):
    """A rate, temperature or voltage lies outside the supported range."""

    def __init__(self, parameter: str, value: float, lower: float, upper: float, unit: str = ""):
        self.parameter = parameter
        self.value = value
        self.lower = lower
        self.upper = upper
        self.unit = unit
        suffix = f" {unit}" if unit else ""
        super().__init__(
            f"Invalid {parameter}: {value!r}{suffix}. "
            f"Please provide a {parameter} between {lower:g}{suffix} and {upper:g}{suffix} (inclusive)."
        )


class InvalidConfigError(ValueError):
    """A pack configuration string does not match '<series>s<parallel>p'."""


class DatasetIntegrityError(ValueError):
    """The reference dataset is incomplete or its curves disagree."""
