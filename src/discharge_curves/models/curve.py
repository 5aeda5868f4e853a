"""
Discharge Curve Models
======================

Defines the DischargeCurve value type (voltage vs discharged capacity) and
the ReferenceCurveSet that organizes the measured curves along the
discharge-rate and temperature axes.

All curves of a set share one capacity grid, which is what makes
element-wise arithmetic between curves valid.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional, Tuple

import numpy as np
import pandas as pd

from ..config import (
    CAPACITY_COLUMN,
    VOLTAGE_COLUMN,
    DischargeCurveConfig,
    DEFAULT_CONFIG,
)
from ..errors import DatasetIntegrityError


def _frozen_array(values) -> np.ndarray:
    """Copy values into a read-only 1-D float array."""
    array = np.array(values, dtype=float).ravel()
    array.flags.writeable = False
    return array


@dataclass(frozen=True, eq=False)
class DischargeCurve:
    """
    Voltage as a function of discharged capacity.

    Both arrays are read-only after construction. A curve produced by
    interpolation shares its capacity array with the curves it came from.

    Attributes:
    ----------
    capacity_mah : np.ndarray
        Discharged capacity samples (mAh), strictly increasing

    voltage_v : np.ndarray
        Cell voltage at each capacity sample (V)

    Example:
    -------
        curve = DischargeCurve([0.0, 0.01, 0.02], [4.10, 4.12, 4.11])
        v_min, v_max = curve.voltage_range
        df = curve.to_dataframe()
    """
    capacity_mah: np.ndarray
    voltage_v: np.ndarray

    def __post_init__(self):
        capacity = self.capacity_mah
        if not (isinstance(capacity, np.ndarray) and not capacity.flags.writeable
                and capacity.dtype == float and capacity.ndim == 1):
            capacity = _frozen_array(capacity)
        voltage = _frozen_array(self.voltage_v)

        if capacity.size == 0:
            raise ValueError("Discharge curve must contain at least one sample")
        if capacity.shape != voltage.shape:
            raise ValueError(
                f"Capacity and voltage lengths differ: {capacity.size} vs {voltage.size}"
            )
        if not np.all(np.diff(capacity) > 0):
            raise ValueError("Discharge curve capacity must be strictly increasing")

        object.__setattr__(self, "capacity_mah", capacity)
        object.__setattr__(self, "voltage_v", voltage)

    def __len__(self) -> int:
        return int(self.capacity_mah.size)

    @property
    def voltage_range(self) -> Tuple[float, float]:
        """(min, max) voltage of the curve (V)."""
        return float(np.min(self.voltage_v)), float(np.max(self.voltage_v))

    @property
    def capacity_range(self) -> Tuple[float, float]:
        """(first, last) capacity sample (mAh)."""
        return float(self.capacity_mah[0]), float(self.capacity_mah[-1])

    def with_voltage(self, voltage_v) -> "DischargeCurve":
        """New curve on the same capacity grid with different voltages."""
        return DischargeCurve(self.capacity_mah, voltage_v)

    def shares_grid_with(self, other: "DischargeCurve") -> bool:
        """True if both curves are sampled at identical capacities."""
        return (
            self.capacity_mah is other.capacity_mah
            or np.array_equal(self.capacity_mah, other.capacity_mah)
        )

    def to_dataframe(self) -> pd.DataFrame:
        """Return the curve as a table with capacity and voltage columns."""
        return pd.DataFrame({
            CAPACITY_COLUMN: np.array(self.capacity_mah),
            VOLTAGE_COLUMN: np.array(self.voltage_v),
        })


class ReferenceCurveSet:
    """
    Immutable set of measured reference curves.

    Curves are keyed by (rate, temperature). The rate axis holds curves at
    the reference temperature, the temperature axis holds curves at the
    reference rate, and the (reference rate, reference temperature) curve
    belongs to both as the baseline.

    Build one with ``from_named_curves`` from a {curve name: curve} mapping,
    which validates that the dataset is complete and consistently sampled.

    Attributes:
    ----------
    rate_values : np.ndarray
        Discharge rates of the rate axis, ascending

    rate_curves : tuple of DischargeCurve
        Curves aligned 1:1 with rate_values

    temperature_values : np.ndarray
        Temperatures of the temperature axis, ascending

    temperature_curves : tuple of DischargeCurve
        Curves aligned 1:1 with temperature_values

    baseline : DischargeCurve
        Reference-condition curve shared by both axes
    """

    def __init__(
        self,
        rate_axis: Mapping[float, DischargeCurve],
        temperature_axis: Mapping[float, DischargeCurve],
        reference_rate: float,
        reference_temp_c: float,
    ):
        if reference_rate not in rate_axis:
            raise DatasetIntegrityError(
                f"Rate axis has no curve at the reference rate {reference_rate}C"
            )
        if reference_temp_c not in temperature_axis:
            raise DatasetIntegrityError(
                f"Temperature axis has no curve at the reference temperature {reference_temp_c}°C"
            )
        if len(rate_axis) < 2 or len(temperature_axis) < 2:
            raise DatasetIntegrityError("Each axis needs at least two reference curves")

        baseline = rate_axis[reference_rate]
        if temperature_axis[reference_temp_c] is not baseline:
            raise DatasetIntegrityError(
                "Rate and temperature axes must share the same baseline curve"
            )

        rates = sorted(float(r) for r in rate_axis)
        temperatures = sorted(float(t) for t in temperature_axis)

        curves: Dict[Tuple[float, float], DischargeCurve] = {}
        for rate in rates:
            curves[(rate, float(reference_temp_c))] = rate_axis[rate]
        for temperature in temperatures:
            curves[(float(reference_rate), temperature)] = temperature_axis[temperature]

        for key, curve in curves.items():
            if not curve.shares_grid_with(baseline):
                raise DatasetIntegrityError(
                    f"Curve at rate={key[0]:g}C, temperature={key[1]:g}°C "
                    "does not share the baseline capacity grid"
                )

        self._curves = MappingProxyType(curves)
        self._reference = (float(reference_rate), float(reference_temp_c))
        self.rate_values = _frozen_array(rates)
        self.rate_curves = tuple(rate_axis[r] for r in rates)
        self.temperature_values = _frozen_array(temperatures)
        self.temperature_curves = tuple(temperature_axis[t] for t in temperatures)
        self.baseline = baseline

    @classmethod
    def from_named_curves(
        cls,
        named_curves: Mapping[str, DischargeCurve],
        config: Optional[DischargeCurveConfig] = None,
    ) -> "ReferenceCurveSet":
        """
        Organize named curves (e.g. "curve_0_5C_25degC") into the two axes.

        Raises:
        ------
        DatasetIntegrityError
            If a curve required by the configuration is missing, or the
            capacity grids disagree.
        """
        config = config if config is not None else DEFAULT_CONFIG

        missing = [name for name in config.curve_names() if name not in named_curves]
        if missing:
            raise DatasetIntegrityError(
                f"Reference dataset is missing curves: {', '.join(missing)}"
            )

        rate_axis = {rate: named_curves[name] for rate, name in config.rate_axis.items()}
        temperature_axis = {
            temp: named_curves[name] for temp, name in config.temperature_axis.items()
        }
        return cls(rate_axis, temperature_axis, config.reference_rate, config.reference_temp_c)

    # =========================================================================
    # Mapping-style access
    # =========================================================================

    @property
    def curves(self) -> Mapping[Tuple[float, float], DischargeCurve]:
        """Read-only {(rate, temperature): curve} view."""
        return self._curves

    @property
    def reference_conditions(self) -> Tuple[float, float]:
        """(rate, temperature) of the baseline curve."""
        return self._reference

    @property
    def capacity_mah(self) -> np.ndarray:
        """Capacity grid shared by every curve."""
        return self.baseline.capacity_mah

    def get(self, rate: float, temperature: float) -> DischargeCurve:
        """Curve measured at exactly (rate, temperature)."""
        try:
            return self._curves[(float(rate), float(temperature))]
        except KeyError:
            raise KeyError(
                f"No reference curve at rate={rate}C, temperature={temperature}°C. "
                f"Available: {sorted(self._curves)}"
            ) from None

    def __len__(self) -> int:
        return len(self._curves)

    def __contains__(self, key) -> bool:
        return key in self._curves

    def __iter__(self):
        return iter(self._curves)

    def __repr__(self) -> str:
        return (
            f"ReferenceCurveSet(rates={list(self.rate_values)}, "
            f"temperatures={list(self.temperature_values)}, "
            f"samples={len(self.baseline)})"
        )
