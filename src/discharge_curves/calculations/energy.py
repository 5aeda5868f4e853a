"""
Energy Change Calculations
==========================

Net energy between two voltage setpoints on an interpolated discharge curve:

- Pack voltages are divided by the series count to get cell voltages
- Each cell voltage is mapped to a discharged capacity on the curve
- Energy = Capacity (Ah) × Parallel × Voltage (V)
- Result = final energy - initial energy

Sign convention: the result is final minus initial, where each term is the
discharged capacity at that voltage times the voltage. It is not a positive
"energy consumed" figure; its sign depends on the curve and the setpoints.
"""

from dataclasses import dataclass
from typing import Optional, Union

from ..config import MAH_TO_AH
from ..debugger import debug_step
from ..models.curve import ReferenceCurveSet
from ..models.pack import PackConfig, parse_pack_config
from .capacity import find_capacity_at_voltage
from .interpolation import compose_curve


@dataclass
class EnergyChangeResult:
    """
    All intermediate values of an energy change calculation.

    Attributes:
        rate:                     Discharge rate coefficient [C].
        temperature:              Temperature [°C].
        pack:                     Pack configuration used (1s1p if none given).
        initial_cell_voltage:     Initial voltage per cell [V].
        final_cell_voltage:       Final voltage per cell [V].
        initial_capacity_mah:     Discharged capacity at the initial voltage [mAh].
        final_capacity_mah:       Discharged capacity at the final voltage [mAh].
        initial_energy_wh:        Initial capacity × parallel × voltage [Wh].
        final_energy_wh:          Final capacity × parallel × voltage [Wh].
        energy_change_wh:         final_energy_wh - initial_energy_wh [Wh].
    """
    rate:                 float
    temperature:          float
    pack:                 PackConfig
    initial_cell_voltage: float
    final_cell_voltage:   float
    initial_capacity_mah: float
    final_capacity_mah:   float
    initial_energy_wh:    float
    final_energy_wh:      float
    energy_change_wh:     float

    @property
    def capacity_change_mah(self) -> float:
        """Capacity drawn per cell between the two setpoints [mAh]."""
        return self.final_capacity_mah - self.initial_capacity_mah


def resolve_pack_config(pack_config: Optional[Union[str, PackConfig]]) -> Optional[PackConfig]:
    """Accept a PackConfig, an "NsMp" string, or None."""
    if pack_config is None or isinstance(pack_config, PackConfig):
        return pack_config
    return parse_pack_config(pack_config)


def calculate_energy_breakdown(
    curve_set: ReferenceCurveSet,
    rate: float,
    temperature: float,
    initial_voltage: float,
    final_voltage: float,
    pack_config: Optional[Union[str, PackConfig]] = None,
) -> EnergyChangeResult:
    """
    Calculate the net energy change and keep every intermediate value.

    Parameters:
    ----------
    curve_set : ReferenceCurveSet
        Loaded reference curves

    rate : float
        Discharge rate coefficient (C)

    temperature : float
        Temperature (°C)

    initial_voltage : float
        Initial voltage (V), pack terminal voltage if pack_config is given

    final_voltage : float
        Final voltage (V), pack terminal voltage if pack_config is given

    pack_config : str or PackConfig, optional
        Pack configuration (e.g., "1s2p", "3s4p")

    Returns:
    -------
    EnergyChangeResult
        Breakdown of the calculation

    Raises:
    ------
    InvalidConfigError
        If pack_config is not a valid "NsMp" string.

    OutOfRangeError
        If rate, temperature, or a cell voltage is out of range.
    """
    pack = resolve_pack_config(pack_config)

    if pack is not None:
        initial_voltage = pack.to_cell_voltage(initial_voltage)
        final_voltage = pack.to_cell_voltage(final_voltage)
        parallel = pack.parallel
    else:
        pack = PackConfig()
        parallel = 1

    debug_step(
        category="Pack",
        description=f"Cell voltages for {pack.configuration_string} pack",
        formula="V_cell = V_pack / Series",
        variables={"series": pack.series, "parallel": parallel},
        result=f"{initial_voltage:.6g} V -> {final_voltage:.6g} V",
        result_name="V_cell",
    )

    interpolated_curve = compose_curve(curve_set, rate, temperature)

    initial_capacity = find_capacity_at_voltage(interpolated_curve, initial_voltage)
    final_capacity = find_capacity_at_voltage(interpolated_curve, final_voltage)

    initial_energy = initial_capacity * MAH_TO_AH * parallel * initial_voltage
    final_energy = final_capacity * MAH_TO_AH * parallel * final_voltage
    energy_change = final_energy - initial_energy

    debug_step(
        category="Energy",
        description="Net energy change between setpoints",
        formula="ΔE = C_f(Ah) × P × V_f - C_i(Ah) × P × V_i",
        variables={
            "C_i": initial_capacity,
            "C_f": final_capacity,
            "P": parallel,
            "V_i": initial_voltage,
            "V_f": final_voltage,
        },
        result=energy_change,
        result_name="energy_change",
        result_unit="Wh",
        comment="Sign: final minus initial",
    )

    return EnergyChangeResult(
        rate=rate,
        temperature=temperature,
        pack=pack,
        initial_cell_voltage=initial_voltage,
        final_cell_voltage=final_voltage,
        initial_capacity_mah=initial_capacity,
        final_capacity_mah=final_capacity,
        initial_energy_wh=initial_energy,
        final_energy_wh=final_energy,
        energy_change_wh=energy_change,
    )


def calculate_energy_change(
    curve_set: ReferenceCurveSet,
    rate: float,
    temperature: float,
    initial_voltage: float,
    final_voltage: float,
    pack_config: Optional[Union[str, PackConfig]] = None,
) -> float:
    """
    Calculate the net change in stored energy between two voltages.

    See calculate_energy_breakdown for parameters.

    Returns:
    -------
    float
        Energy change (Wh), final minus initial
    """
    return calculate_energy_breakdown(
        curve_set, rate, temperature, initial_voltage, final_voltage, pack_config
    ).energy_change_wh
