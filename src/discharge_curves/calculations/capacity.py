"""
Capacity Lookup
===============

Finds the discharged capacity at which a discharge curve reaches a voltage.

Discharge curves usually climb briefly out of a start transient before the
main decline, so one voltage can appear on both sides of the peak. Only the
declining branch (from the global voltage maximum onward) is searched.
"""

import numpy as np

from ..debugger import debug_step
from ..errors import OutOfRangeError
from ..models.curve import DischargeCurve


def find_capacity_at_voltage(curve: DischargeCurve, voltage: float) -> float:
    """
    Find the discharged capacity corresponding to a voltage.

    Nearest-neighbour match on voltage (no interpolation between samples),
    restricted to samples at or after the curve's maximum voltage. Ties go
    to the lowest capacity.

    Parameters:
    ----------
    curve : DischargeCurve
        Discharge curve to search

    voltage : float
        Cell voltage (V)

    Returns:
    -------
    float
        Discharged capacity (mAh)

    Raises:
    ------
    OutOfRangeError
        If voltage is outside [min, max] of the curve.
    """
    voltage_values = curve.voltage_v
    v_min, v_max = curve.voltage_range

    if not np.isfinite(voltage) or voltage < v_min or voltage > v_max:
        raise OutOfRangeError("cell voltage", voltage, v_min, v_max, "V")

    # First occurrence of the peak; everything before it is the start transient
    max_index = int(np.argmax(voltage_values))
    declining = voltage_values[max_index:]
    matching_index = max_index + int(np.argmin(np.abs(declining - voltage)))

    capacity = float(curve.capacity_mah[matching_index])

    debug_step(
        category="Capacity Lookup",
        description=f"Capacity at {voltage:.4g} V on declining branch",
        formula="argmin |V(i) - V_target| for i >= argmax(V)",
        variables={
            "V_target": voltage,
            "peak_index": max_index,
            "match_index": matching_index,
            "V_match": float(voltage_values[matching_index]),
        },
        result=capacity,
        result_name="discharged_capacity",
        result_unit="mAh",
    )

    return capacity
