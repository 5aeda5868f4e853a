"""
Discharge Curve Interpolation
=============================

Builds a discharge curve for an arbitrary (rate, temperature) pair from the
measured reference curves:

1. Rate axis: linear interpolation between the two reference curves that
   bracket the requested rate (all at 25°C).
2. Temperature axis: the same along temperature (all at 1C).
3. Composition: each axis result is expressed as a per-sample scaling
   factor relative to the 1C/25°C baseline, and both factors are applied to
   the baseline multiplicatively.

Step 3 assumes that rate and temperature change the voltage independently
and by multiplication. This is an approximation carried over from how the
reference data was prepared, not a physical law; it is kept exactly so
results stay consistent with that data.
"""

import math
from typing import Sequence, Tuple

import numpy as np

from ..debugger import debug_step
from ..errors import DatasetIntegrityError, OutOfRangeError
from ..models.curve import DischargeCurve, ReferenceCurveSet


def find_bracket(
    axis_values: Sequence[float],
    target: float,
    parameter: str = "axis value",
    unit: str = "",
) -> Tuple[int, int]:
    """
    Indices of the two axis values that bracket a target.

    Returns (index, index) when the target equals an axis value.

    Raises:
    ------
    OutOfRangeError
        If target lies outside [min(axis_values), max(axis_values)].
    """
    values = np.asarray(axis_values, dtype=float)
    lower_bound = float(values.min())
    upper_bound = float(values.max())

    # Range check must come first: it keeps index +/- 1 inside the array
    if not math.isfinite(target) or target < lower_bound or target > upper_bound:
        raise OutOfRangeError(parameter, target, lower_bound, upper_bound, unit)

    # argmin returns the first (lowest) index on exact ties
    index = int(np.argmin(np.abs(values - target)))

    if target == values[index]:
        return index, index
    if target > values[index]:
        return index, index + 1
    return index - 1, index


def interpolate_axis(
    axis_values: Sequence[float],
    axis_curves: Sequence[DischargeCurve],
    target: float,
    parameter: str = "axis value",
    unit: str = "",
) -> DischargeCurve:
    """
    Interpolate a discharge curve along one axis.

    Uses linear interpolation between the two reference curves bracketing
    the target. A target equal to a reference value returns that reference
    curve unchanged.

    Parameters:
    ----------
    axis_values : sequence of float
        Axis positions of the reference curves, ascending

    axis_curves : sequence of DischargeCurve
        Reference curves aligned 1:1 with axis_values

    target : float
        Requested axis position

    parameter : str
        Name used in error messages (e.g., "discharge rate")

    unit : str
        Unit used in error messages (e.g., "C", "°C")

    Returns:
    -------
    DischargeCurve
        Interpolated curve on the shared capacity grid

    Raises:
    ------
    OutOfRangeError
        If target lies outside [min(axis_values), max(axis_values)].
    """
    values = np.asarray(axis_values, dtype=float)
    if values.size != len(axis_curves):
        raise ValueError(
            f"Got {values.size} axis values but {len(axis_curves)} curves"
        )

    lower_index, upper_index = find_bracket(values, target, parameter, unit)

    if lower_index == upper_index:
        index = lower_index
        debug_step(
            category="Axis Interpolation",
            description=f"Exact {parameter} match, using stored curve",
            formula="",
            variables={parameter: target, "index": index},
            result=axis_curves[index],
            result_name=f"curve({target:g})",
            result_unit="V",
        )
        return axis_curves[index]

    lower_value = values[lower_index]
    upper_value = values[upper_index]
    lower_curve = axis_curves[lower_index]
    upper_curve = axis_curves[upper_index]

    fraction = (target - lower_value) / (upper_value - lower_value)

    voltage = lower_curve.voltage_v + fraction * (upper_curve.voltage_v - lower_curve.voltage_v)

    debug_step(
        category="Axis Interpolation",
        description=f"Interpolate {parameter} between {lower_value:g} and {upper_value:g}",
        formula="V = V_lower + t × (V_upper - V_lower), t = (x - x_lower) / (x_upper - x_lower)",
        variables={
            parameter: target,
            "x_lower": float(lower_value),
            "x_upper": float(upper_value),
            "t": float(fraction),
        },
        result=voltage,
        result_name=f"curve({target:g})",
        result_unit="V",
    )

    return lower_curve.with_voltage(voltage)


def interpolate_rate_curve(curve_set: ReferenceCurveSet, rate: float) -> DischargeCurve:
    """
    Interpolate along the discharge-rate axis (reference temperature).

    Parameters:
    ----------
    curve_set : ReferenceCurveSet
        Loaded reference curves

    rate : float
        Discharge rate coefficient (C)

    Returns:
    -------
    DischargeCurve
        Curve at the requested rate and the reference temperature
    """
    return interpolate_axis(
        curve_set.rate_values, curve_set.rate_curves, rate,
        parameter="discharge rate", unit="C",
    )


def interpolate_temperature_curve(curve_set: ReferenceCurveSet, temperature: float) -> DischargeCurve:
    """
    Interpolate along the temperature axis (reference rate).

    Parameters:
    ----------
    curve_set : ReferenceCurveSet
        Loaded reference curves

    temperature : float
        Temperature (°C)

    Returns:
    -------
    DischargeCurve
        Curve at the requested temperature and the reference rate
    """
    return interpolate_axis(
        curve_set.temperature_values, curve_set.temperature_curves, temperature,
        parameter="temperature", unit="°C",
    )


def compose_curve(
    curve_set: ReferenceCurveSet,
    rate: float,
    temperature: float,
) -> DischargeCurve:
    """
    Estimate the discharge curve at an arbitrary rate and temperature.

    V(i) = V_base(i) × (V_temp(i) / V_base(i)) × (V_rate(i) / V_base(i))

    Parameters:
    ----------
    curve_set : ReferenceCurveSet
        Loaded reference curves

    rate : float
        Discharge rate coefficient (0.2 to 2 C for the shipped dataset)

    temperature : float
        Temperature (-20 to 40 °C for the shipped dataset)

    Returns:
    -------
    DischargeCurve
        Composed curve on the baseline capacity grid

    Raises:
    ------
    OutOfRangeError
        If rate or temperature is outside its axis.

    DatasetIntegrityError
        If the baseline curve has a zero voltage sample (scaling undefined).
    """
    curve_from_rate = interpolate_rate_curve(curve_set, rate)
    curve_from_temperature = interpolate_temperature_curve(curve_set, temperature)
    baseline = curve_set.baseline.voltage_v

    zero_samples = np.flatnonzero(baseline == 0.0)
    if zero_samples.size:
        first = int(zero_samples[0])
        raise DatasetIntegrityError(
            f"Baseline curve has zero voltage at {zero_samples.size} sample(s) "
            f"(first at {curve_set.capacity_mah[first]:g} mAh); "
            "rate/temperature scaling factors are undefined there"
        )

    temperature_scaling_factor = curve_from_temperature.voltage_v / baseline
    rate_scaling_factor = curve_from_rate.voltage_v / baseline

    voltage = baseline * temperature_scaling_factor
    voltage = voltage * rate_scaling_factor

    debug_step(
        category="Composition",
        description="Scale baseline by temperature and rate factors",
        formula="V = V_base × (V_temp / V_base) × (V_rate / V_base)",
        variables={
            "rate": rate,
            "temperature": temperature,
            "temp_factor": temperature_scaling_factor,
            "rate_factor": rate_scaling_factor,
        },
        result=voltage,
        result_name="V_interp",
        result_unit="V",
        comment="Assumes independent multiplicative rate and temperature effects",
    )

    return curve_set.baseline.with_voltage(voltage)
