"""
Discharge Curve Module
======================

Estimates a cell's voltage vs discharged-capacity curve at any discharge
rate and temperature by interpolating between measured reference curves,
and computes the net energy between two voltage setpoints for a single
cell or an NsMp pack.

Features:
---------
- Linear interpolation along the rate axis (0.2C-2C at 25°C)
- Linear interpolation along the temperature axis (-20°C to 40°C at 1C)
- Multiplicative composition of both axes against the 1C/25°C baseline
- Capacity lookup on the declining branch of the curve
- Energy change between voltage setpoints with pack scaling

Usage:
------
    from src.discharge_curves import DischargeCurveAnalyzer

    analyzer = DischargeCurveAnalyzer()

    # Interpolated curve at 1.5C and 10°C
    curve = analyzer.interpolate_curve(1.5, 10.0)

    # Energy change from 3.7 V to 3.3 V for a 1s2p pack (final - initial)
    delta_wh = analyzer.calculate_energy_change(1.5, 10.0, 3.7, 3.3, "1s2p")
"""

from .models.curve import DischargeCurve, ReferenceCurveSet
from .models.pack import PackConfig, parse_pack_config
from .errors import OutOfRangeError, InvalidConfigError, DatasetIntegrityError
from .config import DischargeCurveConfig, DEFAULT_CONFIG
from .data.dataset_loader import load_reference_curves, build_curve_set
from .calculations import (
    find_bracket,
    interpolate_axis,
    interpolate_rate_curve,
    interpolate_temperature_curve,
    compose_curve,
    find_capacity_at_voltage,
    EnergyChangeResult,
    calculate_energy_breakdown,
    calculate_energy_change,
)
from .core import DischargeCurveAnalyzer
from .debugger import CalculationDebugger, get_debugger, set_debugger, debug_step
from .debug_trace import trace_energy_calculation

__all__ = [
    # Core classes
    "DischargeCurve",
    "ReferenceCurveSet",
    "PackConfig",
    "DischargeCurveAnalyzer",
    "EnergyChangeResult",
    # Errors
    "OutOfRangeError",
    "InvalidConfigError",
    "DatasetIntegrityError",
    # Config
    "DischargeCurveConfig",
    "DEFAULT_CONFIG",
    # Data
    "load_reference_curves",
    "build_curve_set",
    # Calculations
    "parse_pack_config",
    "find_bracket",
    "interpolate_axis",
    "interpolate_rate_curve",
    "interpolate_temperature_curve",
    "compose_curve",
    "find_capacity_at_voltage",
    "calculate_energy_breakdown",
    "calculate_energy_change",
    # Debugger
    "CalculationDebugger",
    "get_debugger",
    "set_debugger",
    "debug_step",
    "trace_energy_calculation",
]
