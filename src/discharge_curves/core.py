"""
Discharge Curve Analyzer Core Module
====================================

Public entry point for discharge curve interpolation and energy
calculations.

The analyzer owns one ReferenceCurveSet. It is either injected at
construction or loaded from the configured dataset on first use and then
cached; every calculation receives it explicitly, so the calculation
functions themselves stay pure and can be shared across threads.

Classes:
--------
- DischargeCurveAnalyzer: Interpolated curves and energy change queries

Units Convention:
----------------
- Discharge rate: C
- Temperature: °C
- Voltage: V (pack voltage when a pack configuration is given)
- Capacity: mAh
- Energy: Wh
"""

from typing import Optional, Tuple, Union

from .calculations.energy import (
    EnergyChangeResult,
    calculate_energy_breakdown,
    calculate_energy_change,
)
from .calculations.interpolation import compose_curve
from .config import DischargeCurveConfig, DEFAULT_CONFIG
from .data.dataset_loader import load_reference_curves
from .models.curve import DischargeCurve, ReferenceCurveSet
from .models.pack import PackConfig


class DischargeCurveAnalyzer:
    """
    Discharge curve estimator built on measured reference curves.

    Attributes:
    ----------
    config : DischargeCurveConfig
        Configuration object containing the dataset path and axes.

    Example:
    -------
        analyzer = DischargeCurveAnalyzer()

        # Estimated curve at 1.5C and 10°C
        curve = analyzer.interpolate_curve(rate=1.5, temperature=10.0)

        # Energy between 3.7 V and 3.3 V for a 1s2p pack
        delta_wh = analyzer.calculate_energy_change(1.5, 10.0, 3.7, 3.3, "1s2p")
        print(f"Energy change: {delta_wh:.2f} Wh")
    """

    def __init__(
        self,
        config: Optional[DischargeCurveConfig] = None,
        curve_set: Optional[ReferenceCurveSet] = None,
    ):
        """
        Initialize the analyzer.

        Parameters:
        ----------
        config : DischargeCurveConfig, optional
            Configuration; if None, uses the default configuration.

        curve_set : ReferenceCurveSet, optional
            Already loaded reference curves. If None, the configured dataset
            is loaded on first use.
        """
        self.config = config if config is not None else DEFAULT_CONFIG
        self._curve_set = curve_set

    @property
    def curve_set(self) -> ReferenceCurveSet:
        """Reference curves, loaded from disk on first access."""
        if self._curve_set is None:
            self._curve_set = load_reference_curves(self.config.dataset_path, self.config)
        return self._curve_set

    def get_valid_ranges(self) -> dict:
        """
        Supported rate and temperature bounds.

        Returns:
        -------
        dict
            {"rate": (min, max), "temperature": (min, max)}
        """
        curve_set = self.curve_set
        return {
            "rate": (float(curve_set.rate_values[0]), float(curve_set.rate_values[-1])),
            "temperature": (
                float(curve_set.temperature_values[0]),
                float(curve_set.temperature_values[-1]),
            ),
        }

    def interpolate_curve(self, rate: float, temperature: float) -> DischargeCurve:
        """
        Estimate the discharge curve for a rate and temperature.

        Parameters:
        ----------
        rate : float
            Discharge rate coefficient (C)

        temperature : float
            Temperature (°C)

        Returns:
        -------
        DischargeCurve
            Interpolated curve

        Raises:
        ------
        OutOfRangeError
            If rate or temperature is outside the reference data.
        """
        return compose_curve(self.curve_set, rate, temperature)

    def get_voltage_range(self, rate: float, temperature: float) -> Tuple[float, float]:
        """(min, max) cell voltage of the interpolated curve (V)."""
        return self.interpolate_curve(rate, temperature).voltage_range

    def calculate_energy_change(
        self,
        rate: float,
        temperature: float,
        initial_voltage: float,
        final_voltage: float,
        pack_config: Optional[Union[str, PackConfig]] = None,
    ) -> float:
        """
        Net change in stored energy between two voltages.

        Parameters:
        ----------
        rate : float
            Discharge rate coefficient (C)

        temperature : float
            Temperature (°C)

        initial_voltage : float
            Initial voltage (V)

        final_voltage : float
            Final voltage (V)

        pack_config : str or PackConfig, optional
            Pack configuration (e.g., "1s2p")

        Returns:
        -------
        float
            Energy change (Wh), final minus initial capacity × voltage
        """
        return calculate_energy_change(
            self.curve_set, rate, temperature, initial_voltage, final_voltage, pack_config
        )

    def calculate_energy_breakdown(
        self,
        rate: float,
        temperature: float,
        initial_voltage: float,
        final_voltage: float,
        pack_config: Optional[Union[str, PackConfig]] = None,
    ) -> EnergyChangeResult:
        """Same as calculate_energy_change, returning all intermediate values."""
        return calculate_energy_breakdown(
            self.curve_set, rate, temperature, initial_voltage, final_voltage, pack_config
        )
