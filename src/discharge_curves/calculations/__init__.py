"""
Discharge Curve Calculations Module
===================================

Pure functions over an explicitly passed ReferenceCurveSet.
"""

from .interpolation import (
    find_bracket,
    interpolate_axis,
    interpolate_rate_curve,
    interpolate_temperature_curve,
    compose_curve,
)

from .capacity import find_capacity_at_voltage

from .energy import (
    EnergyChangeResult,
    calculate_energy_breakdown,
    calculate_energy_change,
)

__all__ = [
    # Interpolation
    "find_bracket",
    "interpolate_axis",
    "interpolate_rate_curve",
    "interpolate_temperature_curve",
    "compose_curve",
    # Capacity
    "find_capacity_at_voltage",
    # Energy
    "EnergyChangeResult",
    "calculate_energy_breakdown",
    "calculate_energy_change",
]
