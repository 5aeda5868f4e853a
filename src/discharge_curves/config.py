"""
Discharge Curve Configuration
=============================

Contains configuration settings, reference axes, and constants for
discharge curve interpolation and energy calculations.

Units used throughout:
- Capacity: mAh (converted to Ah for energy)
- Voltage: V (per cell unless noted)
- Temperature: Celsius
- Discharge rate: C (multiple of the one-hour capacity)
- Energy: Wh
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional


# =============================================================================
# Physical Constants
# =============================================================================

# Reference conditions of the baseline curve
REFERENCE_RATE_C = 1.0
REFERENCE_TEMP_C = 25.0

# mAh -> Ah
MAH_TO_AH = 1.0 / 1000.0


# =============================================================================
# Capacity Sampling Grid
# =============================================================================

# Every stored curve is sampled on 0:0.01:3200 mAh
CAPACITY_STEP_MAH = 0.01
CAPACITY_MAX_MAH = 3200.0


# =============================================================================
# Dataset Column / Variable Names
# =============================================================================

CAPACITY_COLUMN = "Discharged_Capacity_mAh"
VOLTAGE_COLUMN = "Voltage_V"

# Rate axis (at 25°C): rate (C) -> curve name
RATE_AXIS_CURVES: Dict[float, str] = {
    0.2: "curve_0_2C_25degC",
    0.5: "curve_0_5C_25degC",
    1.0: "curve_1C_25degC",
    2.0: "curve_2C_25degC",
}

# Temperature axis (at 1C): temperature (°C) -> curve name
TEMPERATURE_AXIS_CURVES: Dict[float, str] = {
    -20.0: "curve_1C_neg20degC",
    -10.0: "curve_1C_neg10degC",
    0.0: "curve_1C_0degC",
    25.0: "curve_1C_25degC",
    40.0: "curve_1C_40degC",
}

BASELINE_CURVE = "curve_1C_25degC"


# =============================================================================
# Configuration Dataclass
# =============================================================================

@dataclass
class DischargeCurveConfig:
    """
    Configuration for discharge curve calculations.

    Attributes:
    ----------
    data_root : Path
        Directory holding the reference dataset.
        Default: "data" folder in the project root.

    dataset_filename : str
        Reference dataset file (.mat, .csv or .pkl)

    rate_axis : dict
        Discharge rate (C) -> curve name, measured at the reference temperature

    temperature_axis : dict
        Temperature (°C) -> curve name, measured at the reference rate

    baseline_curve : str
        Curve shared by both axes (1C, 25°C)

    capacity_step_mah : float
        Sampling step of the capacity grid (mAh)

    capacity_max_mah : float
        Last point of the capacity grid (mAh)

    verbose : bool
        Print status messages while loading data
    """
    data_root: Optional[Path] = None
    dataset_filename: str = "dischargeCurves.mat"

    rate_axis: Dict[float, str] = field(default_factory=lambda: dict(RATE_AXIS_CURVES))
    temperature_axis: Dict[float, str] = field(
        default_factory=lambda: dict(TEMPERATURE_AXIS_CURVES)
    )
    baseline_curve: str = BASELINE_CURVE
    reference_rate: float = REFERENCE_RATE_C
    reference_temp_c: float = REFERENCE_TEMP_C

    capacity_step_mah: float = CAPACITY_STEP_MAH
    capacity_max_mah: float = CAPACITY_MAX_MAH

    verbose: bool = False

    def __post_init__(self):
        # config.py -> discharge_curves/ -> src/ -> PROJECT_ROOT/
        self._project_root = Path(__file__).parent.parent.parent

        if self.data_root is None:
            self.data_root = self._project_root / "data"
        elif isinstance(self.data_root, str):
            self.data_root = Path(self.data_root)

    @property
    def project_root(self) -> Path:
        """Get the project root directory."""
        return self._project_root

    @property
    def dataset_path(self) -> Path:
        """Full path to the reference dataset file."""
        return self.data_root / self.dataset_filename

    @property
    def rate_bounds(self) -> tuple:
        """(min, max) supported discharge rate (C)."""
        return min(self.rate_axis), max(self.rate_axis)

    @property
    def temperature_bounds(self) -> tuple:
        """(min, max) supported temperature (°C)."""
        return min(self.temperature_axis), max(self.temperature_axis)

    @property
    def capacity_points(self) -> int:
        """Number of samples on the default capacity grid."""
        return int(round(self.capacity_max_mah / self.capacity_step_mah)) + 1

    def curve_names(self) -> list:
        """Curve names required by this configuration (baseline once)."""
        names = list(self.rate_axis.values())
        for name in self.temperature_axis.values():
            if name not in names:
                names.append(name)
        return names

    def validate(self) -> tuple[bool, str]:
        """Validate configuration values."""
        errors = []

        if len(self.rate_axis) < 2:
            errors.append("Rate axis needs at least two curves")
        if len(self.temperature_axis) < 2:
            errors.append("Temperature axis needs at least two curves")
        if self.rate_axis.get(self.reference_rate) != self.baseline_curve:
            errors.append(
                f"Rate axis must map {self.reference_rate}C to {self.baseline_curve}"
            )
        if self.temperature_axis.get(self.reference_temp_c) != self.baseline_curve:
            errors.append(
                f"Temperature axis must map {self.reference_temp_c}°C to {self.baseline_curve}"
            )
        if any(rate <= 0 for rate in self.rate_axis):
            errors.append("Discharge rates must be positive")
        if self.capacity_step_mah <= 0:
            errors.append("Capacity step must be positive")
        if self.capacity_max_mah <= 0:
            errors.append("Capacity maximum must be positive")

        if errors:
            return False, "; ".join(errors)
        return True, ""


# Module-level default configuration instance
DEFAULT_CONFIG = DischargeCurveConfig()
