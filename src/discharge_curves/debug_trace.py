"""
Debug Trace Functions
=====================

Run an energy calculation with a debugger installed and return the
recorded steps.
"""

from typing import Optional, Union

from .calculations.energy import calculate_energy_breakdown
from .debugger import CalculationDebugger, get_debugger, set_debugger
from .models.curve import ReferenceCurveSet
from .models.pack import PackConfig


def trace_energy_calculation(
    curve_set: ReferenceCurveSet,
    rate: float,
    temperature: float,
    initial_voltage: float,
    final_voltage: float,
    pack_config: Optional[Union[str, PackConfig]] = None,
) -> CalculationDebugger:
    """
    Trace an energy change calculation step by step.

    The previously installed global debugger is restored afterwards, also
    when the calculation raises.

    The debugger slot is process-wide, not per thread. While a trace runs,
    calculations made by other threads are recorded into it as well, so
    trace from one thread at a time.

    Parameters:
    ----------
    curve_set : ReferenceCurveSet
        Loaded reference curves

    rate : float
        Discharge rate coefficient (C)

    temperature : float
        Temperature (°C)

    initial_voltage : float
        Initial voltage (V)

    final_voltage : float
        Final voltage (V)

    pack_config : str or PackConfig, optional
        Pack configuration (e.g., "2s1p")

    Returns:
    -------
    CalculationDebugger
        Debugger with all calculation steps recorded
    """
    debugger = CalculationDebugger()
    debugger.start(
        rate=f"{rate} C",
        temperature=f"{temperature} °C",
        pack=pack_config if pack_config is not None else "single cell",
    )

    debugger.start_section("INPUTS")
    debugger.add_input("rate", rate, "C", "Discharge rate coefficient")
    debugger.add_input("temperature", temperature, "°C", "Cell temperature")
    debugger.add_input("initial_voltage", initial_voltage, "V", "Initial voltage")
    debugger.add_input("final_voltage", final_voltage, "V", "Final voltage")

    debugger.start_section("CALCULATION")
    previous = get_debugger()
    set_debugger(debugger)
    try:
        calculate_energy_breakdown(
            curve_set, rate, temperature, initial_voltage, final_voltage, pack_config
        )
    finally:
        set_debugger(previous)
        debugger.finish()

    return debugger
