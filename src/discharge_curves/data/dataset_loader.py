"""
Reference Dataset Loader
========================

Reads the measured discharge curves from disk and builds a
ReferenceCurveSet. The set is loaded once and then only read.

Supported formats:
- ".mat": one variable per curve (e.g. ``curve_0_5C_25degC``), stored as a
  struct with ``Discharged_Capacity_mAh``/``Voltage_V`` fields, an Nx2
  [capacity, voltage] array, or a bare voltage vector on the default
  0:0.01:3200 mAh grid. MATLAB ``table`` objects cannot be read by scipy;
  export them with ``table2struct(t, 'ToScalar', true)`` first.
- ".csv": a ``Discharged_Capacity_mAh`` column plus one voltage column per
  curve name.
- ".pkl": a pickled pandas DataFrame with the same columns as the CSV.
"""

from pathlib import Path
from typing import Dict, Optional, Union

import numpy as np
import pandas as pd
from scipy import io as sio

from ..config import CAPACITY_COLUMN, VOLTAGE_COLUMN, DischargeCurveConfig, DEFAULT_CONFIG
from ..errors import DatasetIntegrityError
from ..models.curve import DischargeCurve, ReferenceCurveSet


def default_capacity_grid(config: Optional[DischargeCurveConfig] = None) -> np.ndarray:
    """Capacity grid 0:step:max (mAh) used when a file stores voltages only."""
    config = config if config is not None else DEFAULT_CONFIG
    return np.arange(config.capacity_points) * config.capacity_step_mah


def _check_columns(name: str, capacity: np.ndarray, voltage: np.ndarray):
    if capacity.ndim != 1 or voltage.ndim != 1 or capacity.size != voltage.size:
        raise DatasetIntegrityError(
            f"Curve '{name}' has mismatched capacity/voltage lengths "
            f"({capacity.size} vs {voltage.size})"
        )
    if capacity.size < 2:
        raise DatasetIntegrityError(f"Curve '{name}' needs at least two samples")
    if not np.all(np.isfinite(capacity)) or not np.all(np.diff(capacity) > 0):
        raise DatasetIntegrityError(f"Curve '{name}' capacity is not strictly increasing")
    if not np.all(np.isfinite(voltage)):
        raise DatasetIntegrityError(f"Curve '{name}' contains non-finite voltages")


def build_curve_set(
    raw_curves: Dict[str, tuple],
    config: Optional[DischargeCurveConfig] = None,
) -> ReferenceCurveSet:
    """
    Validate raw (capacity, voltage) arrays and organize them into a set.

    All curves end up sharing one read-only capacity array.

    Parameters:
    ----------
    raw_curves : dict
        Curve name -> (capacity array, voltage array)

    config : DischargeCurveConfig, optional
        Axis definitions; defaults to DEFAULT_CONFIG

    Returns:
    -------
    ReferenceCurveSet

    Raises:
    ------
    DatasetIntegrityError
        If a curve is missing, malformed, or sampled on a different grid.
    """
    config = config if config is not None else DEFAULT_CONFIG

    missing = [name for name in config.curve_names() if name not in raw_curves]
    if missing:
        raise DatasetIntegrityError(
            f"Reference dataset is missing curves: {', '.join(missing)}"
        )

    reference_name = config.baseline_curve
    reference_capacity = np.asarray(raw_curves[reference_name][0], dtype=float)
    _check_columns(reference_name, reference_capacity,
                   np.asarray(raw_curves[reference_name][1], dtype=float))
    shared_grid = DischargeCurve(reference_capacity, raw_curves[reference_name][1]).capacity_mah

    curves = {}
    for name in config.curve_names():
        capacity = np.asarray(raw_curves[name][0], dtype=float)
        voltage = np.asarray(raw_curves[name][1], dtype=float)
        _check_columns(name, capacity, voltage)
        if not np.array_equal(capacity, shared_grid):
            raise DatasetIntegrityError(
                f"Curve '{name}' is not sampled on the same capacity grid as '{reference_name}'"
            )
        curves[name] = DischargeCurve(shared_grid, voltage)

    return ReferenceCurveSet.from_named_curves(curves, config)


# =============================================================================
# Format readers: each returns {curve name: (capacity, voltage)}
# =============================================================================

def _read_mat(path: Path, config: DischargeCurveConfig) -> Dict[str, tuple]:
    try:
        data = sio.loadmat(str(path), squeeze_me=True, struct_as_record=False)
    except (NotImplementedError, ValueError, TypeError) as e:
        raise DatasetIntegrityError(f"Could not read MAT file {path}: {e}") from e

    grid = None
    raw = {}
    for name in config.curve_names():
        if name not in data:
            continue
        entry = data[name]

        voltage = getattr(entry, VOLTAGE_COLUMN, None)
        if voltage is not None:
            capacity = getattr(entry, CAPACITY_COLUMN, None)
            if capacity is None:
                if grid is None:
                    grid = default_capacity_grid(config)
                capacity = grid
            raw[name] = (np.atleast_1d(capacity), np.atleast_1d(voltage))
            continue

        if not isinstance(entry, np.ndarray) or entry.dtype.kind not in "fiu":
            raise DatasetIntegrityError(
                f"MAT variable '{name}' has unsupported type {type(entry).__name__}; "
                "store it as a struct or numeric array"
            )

        if entry.ndim == 2 and entry.shape[1] == 2:
            raw[name] = (entry[:, 0], entry[:, 1])
        elif entry.ndim == 1:
            if grid is None:
                grid = default_capacity_grid(config)
            raw[name] = (grid, entry)
        else:
            raise DatasetIntegrityError(
                f"MAT variable '{name}' has shape {entry.shape}; expected Nx2 or N"
            )

    return raw


def _read_table(df: pd.DataFrame, path: Path, config: DischargeCurveConfig) -> Dict[str, tuple]:
    if CAPACITY_COLUMN not in df.columns:
        raise DatasetIntegrityError(f"{path} has no '{CAPACITY_COLUMN}' column")

    columns = [CAPACITY_COLUMN] + [name for name in config.curve_names() if name in df.columns]
    try:
        values = {column: df[column].to_numpy(dtype=float) for column in columns}
    except (ValueError, TypeError) as e:
        raise DatasetIntegrityError(f"{path} contains non-numeric values: {e}") from e

    capacity = values.pop(CAPACITY_COLUMN)
    return {name: (capacity, voltage) for name, voltage in values.items()}


def _read_csv(path: Path, config: DischargeCurveConfig) -> Dict[str, tuple]:
    try:
        df = pd.read_csv(path)
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise DatasetIntegrityError(f"Could not read CSV file {path}: {e}") from e
    return _read_table(df, path, config)


def _read_pickle(path: Path, config: DischargeCurveConfig) -> Dict[str, tuple]:
    df = pd.read_pickle(path)
    if not isinstance(df, pd.DataFrame):
        raise DatasetIntegrityError(
            f"{path} holds a {type(df).__name__}, expected a pandas DataFrame"
        )
    return _read_table(df, path, config)


_READERS = {
    ".mat": _read_mat,
    ".csv": _read_csv,
    ".pkl": _read_pickle,
    ".pickle": _read_pickle,
}


def load_reference_curves(
    path: Optional[Union[str, Path]] = None,
    config: Optional[DischargeCurveConfig] = None,
) -> ReferenceCurveSet:
    """
    Load the reference discharge curves from disk.

    Parameters:
    ----------
    path : str or Path, optional
        Dataset file; defaults to config.dataset_path

    config : DischargeCurveConfig, optional
        Configuration; defaults to DEFAULT_CONFIG

    Returns:
    -------
    ReferenceCurveSet
        Validated, read-only reference curves

    Raises:
    ------
    FileNotFoundError
        If the dataset file does not exist.

    DatasetIntegrityError
        If the file format is unsupported or the curves are incomplete or
        inconsistently sampled.
    """
    config = config if config is not None else DEFAULT_CONFIG
    path = Path(path) if path is not None else config.dataset_path

    if not path.exists():
        raise FileNotFoundError(
            f"Reference dataset not found: {path}\n"
            "Please provide the discharge curve dataset (.mat, .csv or .pkl)."
        )

    reader = _READERS.get(path.suffix.lower())
    if reader is None:
        raise DatasetIntegrityError(
            f"Unsupported dataset format '{path.suffix}'. "
            f"Supported: {', '.join(sorted(_READERS))}"
        )

    if config.verbose:
        print(f"Loading reference curves from {path}")

    curve_set = build_curve_set(reader(path, config), config)

    if config.verbose:
        print(f"  [OK] {len(curve_set)} curves, {len(curve_set.baseline)} samples each")

    return curve_set
