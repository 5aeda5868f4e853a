"""
Discharge Curve Interpolation Tests
===================================

Validates the interpolation engine, capacity lookup and energy
calculations against synthetic reference curves with known scale factors.

Test Methodology:
- Exact axis values return stored curves unchanged
- Interpolated voltages stay between the bracketing reference curves
- Composition matches the product of the per-axis scale factors
- Capacity lookup ignores the rising start transient
- Pack configuration scales voltage (series) and energy (parallel)
"""

import sys
from dataclasses import FrozenInstanceError
from pathlib import Path
import unittest

import numpy as np

# Add project root and tests directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from src.discharge_curves import (
    DischargeCurve,
    DischargeCurveAnalyzer,
    DischargeCurveConfig,
    DEFAULT_CONFIG,
    ReferenceCurveSet,
    PackConfig,
    parse_pack_config,
    OutOfRangeError,
    InvalidConfigError,
    DatasetIntegrityError,
    build_curve_set,
    find_bracket,
    interpolate_axis,
    interpolate_rate_curve,
    interpolate_temperature_curve,
    compose_curve,
    find_capacity_at_voltage,
    calculate_energy_change,
    calculate_energy_breakdown,
    trace_energy_calculation,
    get_debugger,
    set_debugger,
    debug_step,
    CalculationDebugger,
)
from src.discharge_curves.config import BASELINE_CURVE

from curve_fixtures import (
    RATE_SCALES,
    TEMPERATURE_SCALES,
    capacity_grid,
    baseline_voltage,
    make_raw_curves,
    make_curve_set,
)


class TestConfig(unittest.TestCase):
    """Test configuration defaults and validation."""

    def test_default_config_valid(self):
        valid, message = DEFAULT_CONFIG.validate()
        self.assertTrue(valid, message)
        self.assertEqual(message, "")

    def test_default_dataset_path(self):
        self.assertEqual(DEFAULT_CONFIG.dataset_path.name, "dischargeCurves.mat")
        self.assertEqual(DEFAULT_CONFIG.dataset_path.parent.name, "data")

    def test_curve_names_share_baseline(self):
        """Eight distinct curves: four rates plus four more temperatures."""
        names = DEFAULT_CONFIG.curve_names()
        self.assertEqual(len(names), 8)
        self.assertEqual(names.count(BASELINE_CURVE), 1)

    def test_default_grid_size(self):
        """0:0.01:3200 mAh has 320001 samples."""
        self.assertEqual(DEFAULT_CONFIG.capacity_points, 320001)

    def test_bounds(self):
        self.assertEqual(DEFAULT_CONFIG.rate_bounds, (0.2, 2.0))
        self.assertEqual(DEFAULT_CONFIG.temperature_bounds, (-20.0, 40.0))

    def test_invalid_config(self):
        config = DischargeCurveConfig(baseline_curve="curve_other", capacity_step_mah=0.0)
        valid, message = config.validate()
        self.assertFalse(valid)
        self.assertIn("Capacity step", message)
        self.assertIn("curve_other", message)


class TestDischargeCurve(unittest.TestCase):
    """Test the curve value type."""

    def test_arrays_are_read_only(self):
        curve = DischargeCurve([0.0, 1.0, 2.0], [4.0, 3.9, 3.8])
        with self.assertRaises(ValueError):
            curve.voltage_v[0] = 1.0
        with self.assertRaises(ValueError):
            curve.capacity_mah[0] = 1.0

    def test_frozen(self):
        curve = DischargeCurve([0.0, 1.0], [4.0, 3.9])
        with self.assertRaises(FrozenInstanceError):
            curve.voltage_v = np.array([1.0, 2.0])

    def test_input_is_copied(self):
        voltage = np.array([4.0, 3.9])
        curve = DischargeCurve([0.0, 1.0], voltage)
        voltage[0] = 0.0
        self.assertEqual(curve.voltage_v[0], 4.0)

    def test_length_mismatch(self):
        with self.assertRaises(ValueError):
            DischargeCurve([0.0, 1.0, 2.0], [4.0, 3.9])

    def test_empty_curve(self):
        with self.assertRaises(ValueError):
            DischargeCurve([], [])

    def test_capacity_must_increase(self):
        with self.assertRaises(ValueError):
            DischargeCurve([0.0, 2.0, 1.0], [4.0, 3.9, 3.8])
        with self.assertRaises(ValueError):
            DischargeCurve([0.0, 1.0, 1.0], [4.0, 3.9, 3.8])
        with self.assertRaises(ValueError):
            DischargeCurve([0.0, np.nan, 2.0], [4.0, 3.9, 3.8])

    def test_single_sample(self):
        self.assertEqual(len(DischargeCurve([0.0], [4.0])), 1)

    def test_ranges_and_len(self):
        curve = DischargeCurve([0.0, 1.0, 2.0], [3.9, 4.1, 3.5])
        self.assertEqual(len(curve), 3)
        self.assertEqual(curve.voltage_range, (3.5, 4.1))
        self.assertEqual(curve.capacity_range, (0.0, 2.0))

    def test_with_voltage_shares_grid(self):
        curve = DischargeCurve([0.0, 1.0], [4.0, 3.9])
        other = curve.with_voltage([3.0, 2.9])
        self.assertIs(other.capacity_mah, curve.capacity_mah)
        self.assertTrue(other.shares_grid_with(curve))

    def test_to_dataframe(self):
        curve = DischargeCurve([0.0, 0.01], [4.1, 4.0])
        df = curve.to_dataframe()
        self.assertEqual(list(df.columns), ["Discharged_Capacity_mAh", "Voltage_V"])
        self.assertEqual(len(df), 2)
        self.assertAlmostEqual(df["Voltage_V"].iloc[1], 4.0)


class TestReferenceCurveSet(unittest.TestCase):
    """Test organization and validation of the reference curves."""

    def setUp(self):
        self.curve_set = make_curve_set()

    def test_axes(self):
        np.testing.assert_array_equal(self.curve_set.rate_values, [0.2, 0.5, 1.0, 2.0])
        np.testing.assert_array_equal(
            self.curve_set.temperature_values, [-20.0, -10.0, 0.0, 25.0, 40.0]
        )
        self.assertEqual(len(self.curve_set.rate_curves), 4)
        self.assertEqual(len(self.curve_set.temperature_curves), 5)

    def test_baseline_shared_by_both_axes(self):
        self.assertIs(self.curve_set.rate_curves[2], self.curve_set.baseline)
        self.assertIs(self.curve_set.temperature_curves[3], self.curve_set.baseline)
        self.assertIs(self.curve_set.get(1, 25), self.curve_set.baseline)
        self.assertEqual(self.curve_set.reference_conditions, (1.0, 25.0))

    def test_keys(self):
        """Rate curves at 25°C, temperature curves at 1C, baseline once."""
        self.assertEqual(len(self.curve_set), 8)
        self.assertIn((0.5, 25.0), self.curve_set)
        self.assertIn((1.0, -10.0), self.curve_set)
        self.assertNotIn((0.5, -10.0), self.curve_set)

    def test_get_missing(self):
        with self.assertRaises(KeyError):
            self.curve_set.get(0.5, -10.0)

    def test_mapping_is_read_only(self):
        with self.assertRaises(TypeError):
            self.curve_set.curves[(3.0, 3.0)] = self.curve_set.baseline

    def test_all_curves_share_one_grid(self):
        for curve in self.curve_set.curves.values():
            self.assertIs(curve.capacity_mah, self.curve_set.capacity_mah)

    def test_missing_curve(self):
        raw = make_raw_curves()
        del raw["curve_1C_neg10degC"]
        with self.assertRaises(DatasetIntegrityError) as ctx:
            build_curve_set(raw)
        self.assertIn("curve_1C_neg10degC", str(ctx.exception))

    def test_grid_mismatch(self):
        raw = make_raw_curves()
        grid, voltage = raw["curve_2C_25degC"]
        raw["curve_2C_25degC"] = (grid + 0.5, voltage)
        with self.assertRaises(DatasetIntegrityError):
            build_curve_set(raw)

    def test_length_mismatch(self):
        raw = make_raw_curves()
        grid, voltage = raw["curve_0_5C_25degC"]
        raw["curve_0_5C_25degC"] = (grid, voltage[:-1])
        with self.assertRaises(DatasetIntegrityError):
            build_curve_set(raw)

    def test_non_increasing_capacity(self):
        raw = make_raw_curves()
        grid, voltage = raw[BASELINE_CURVE]
        bad_grid = grid.copy()
        bad_grid[3] = bad_grid[2]
        raw = {name: (bad_grid, v) for name, (_, v) in raw.items()}
        with self.assertRaises(DatasetIntegrityError):
            build_curve_set(raw)

    def test_non_finite_voltage(self):
        raw = make_raw_curves()
        grid, voltage = raw["curve_1C_40degC"]
        voltage = voltage.copy()
        voltage[10] = np.nan
        raw["curve_1C_40degC"] = (grid, voltage)
        with self.assertRaises(DatasetIntegrityError):
            build_curve_set(raw)

    def test_axes_must_share_baseline(self):
        grid = capacity_grid()
        base = DischargeCurve(grid, baseline_voltage(grid))
        copy = DischargeCurve(base.capacity_mah, baseline_voltage(grid))
        other = base.with_voltage(base.voltage_v * 0.9)
        with self.assertRaises(DatasetIntegrityError):
            ReferenceCurveSet({0.5: other, 1.0: base}, {0.0: other, 25.0: copy}, 1.0, 25.0)

    def test_missing_reference_rate(self):
        grid = capacity_grid()
        base = DischargeCurve(grid, baseline_voltage(grid))
        with self.assertRaises(DatasetIntegrityError):
            ReferenceCurveSet({0.5: base, 2.0: base}, {0.0: base, 25.0: base}, 1.0, 25.0)


class TestAxisInterpolation(unittest.TestCase):
    """Test single-axis linear interpolation."""

    def setUp(self):
        base = DischargeCurve([0.0, 1.0, 2.0], [3.0, 3.0, 3.0])
        self.values = [0.0, 10.0, 20.0]
        self.curves = [
            base,
            base.with_voltage([4.0, 4.0, 4.0]),
            base.with_voltage([6.0, 5.0, 4.0]),
        ]
        self.curve_set = make_curve_set()

    def test_exact_match_returns_stored_curve(self):
        for value, curve in zip(self.values, self.curves):
            self.assertIs(interpolate_axis(self.values, self.curves, value), curve)

    def test_between_samples(self):
        result = interpolate_axis(self.values, self.curves, 15.0)
        np.testing.assert_allclose(result.voltage_v, [5.0, 4.5, 4.0])
        self.assertIs(result.capacity_mah, self.curves[1].capacity_mah)

    def test_capacity_copied_unchanged(self):
        """Curves on separate but equal grids keep their capacity values."""
        grid = [0.0, 1.0, 2.0]
        curves = [
            DischargeCurve(grid, [3.0, 3.0, 3.0]),
            DischargeCurve(grid, [4.0, 4.0, 4.0]),
            DischargeCurve(grid, [6.0, 5.0, 4.0]),
        ]
        result = interpolate_axis(self.values, curves, 15.0)
        np.testing.assert_array_equal(result.capacity_mah, grid)
        np.testing.assert_allclose(result.voltage_v, [5.0, 4.5, 4.0])

    def test_find_bracket(self):
        self.assertEqual(find_bracket(self.values, 15.0), (1, 2))
        self.assertEqual(find_bracket(self.values, 8.0), (0, 1))
        self.assertEqual(find_bracket(self.values, 5.0), (0, 1))
        self.assertEqual(find_bracket(self.values, 20.0), (2, 2))
        with self.assertRaises(OutOfRangeError):
            find_bracket(self.values, 20.5)

    def test_below_nearest(self):
        """Target just below a reference value uses (next-lower, nearest)."""
        result = interpolate_axis(self.values, self.curves, 8.0)
        np.testing.assert_allclose(result.voltage_v, [3.8, 3.8, 3.8])

    def test_equidistant_target(self):
        """Midpoint between two values: lower index wins, result is the mean."""
        result = interpolate_axis(self.values, self.curves, 5.0)
        np.testing.assert_allclose(result.voltage_v, [3.5, 3.5, 3.5])

    def test_out_of_range(self):
        with self.assertRaises(OutOfRangeError) as ctx:
            interpolate_axis(self.values, self.curves, 25.0, parameter="temperature", unit="°C")
        error = ctx.exception
        self.assertEqual(error.parameter, "temperature")
        self.assertEqual(error.lower, 0.0)
        self.assertEqual(error.upper, 20.0)
        self.assertIn("temperature", str(error))
        self.assertIn("20", str(error))

        with self.assertRaises(OutOfRangeError):
            interpolate_axis(self.values, self.curves, -0.001)

    def test_nan_rejected(self):
        with self.assertRaises(OutOfRangeError):
            interpolate_axis(self.values, self.curves, float("nan"))

    def test_out_of_range_is_value_error(self):
        with self.assertRaises(ValueError):
            interpolate_axis(self.values, self.curves, 100.0)

    def test_misaligned_axis(self):
        with self.assertRaises(ValueError):
            interpolate_axis(self.values[:2], self.curves, 5.0)

    def test_rate_axis_midpoint(self):
        """0.35C lies halfway between the 0.2C and 0.5C curves."""
        result = interpolate_rate_curve(self.curve_set, 0.35)
        expected = 0.5 * (self.curve_set.rate_curves[0].voltage_v
                          + self.curve_set.rate_curves[1].voltage_v)
        np.testing.assert_allclose(result.voltage_v, expected, rtol=1e-12)

    def test_temperature_axis(self):
        """10°C is 40% of the way from 0°C to 25°C."""
        result = interpolate_temperature_curve(self.curve_set, 10.0)
        scale = TEMPERATURE_SCALES[0.0] + 0.4 * (TEMPERATURE_SCALES[25.0] - TEMPERATURE_SCALES[0.0])
        np.testing.assert_allclose(
            result.voltage_v, self.curve_set.baseline.voltage_v * scale, rtol=1e-12
        )

    def test_interpolation_bounded_by_bracketing_curves(self):
        rates = self.curve_set.rate_values
        for rate in np.linspace(0.2, 2.0, 37):
            result = interpolate_rate_curve(self.curve_set, float(rate))
            upper_index = min(int(np.searchsorted(rates, rate)), len(rates) - 1)
            lower_index = max(upper_index - 1, 0)
            lower = self.curve_set.rate_curves[lower_index].voltage_v
            upper = self.curve_set.rate_curves[upper_index].voltage_v
            low = np.minimum(lower, upper) - 1e-12
            high = np.maximum(lower, upper) + 1e-12
            self.assertTrue(np.all(result.voltage_v >= low), f"below bracket at {rate}")
            self.assertTrue(np.all(result.voltage_v <= high), f"above bracket at {rate}")

    def test_axis_bounds_inclusive(self):
        interpolate_rate_curve(self.curve_set, 0.2)
        interpolate_rate_curve(self.curve_set, 2.0)
        interpolate_temperature_curve(self.curve_set, -20.0)
        interpolate_temperature_curve(self.curve_set, 40.0)


class TestComposition(unittest.TestCase):
    """Test multiplicative composition of the two axes."""

    def setUp(self):
        self.curve_set = make_curve_set()

    def test_reference_conditions_return_baseline(self):
        curve = compose_curve(self.curve_set, 1.0, 25.0)
        np.testing.assert_array_equal(curve.voltage_v, self.curve_set.baseline.voltage_v)

    def test_exact_reference_points(self):
        curve = compose_curve(self.curve_set, 0.5, 0.0)
        expected = self.curve_set.baseline.voltage_v * RATE_SCALES[0.5] * TEMPERATURE_SCALES[0.0]
        np.testing.assert_allclose(curve.voltage_v, expected, rtol=1e-12)

    def test_scale_factors_multiply(self):
        curve = compose_curve(self.curve_set, 1.5, 10.0)
        rate_scale = 0.5 * (RATE_SCALES[1.0] + RATE_SCALES[2.0])
        temp_scale = TEMPERATURE_SCALES[0.0] + 0.4 * (TEMPERATURE_SCALES[25.0] - TEMPERATURE_SCALES[0.0])
        np.testing.assert_allclose(
            curve.voltage_v,
            self.curve_set.baseline.voltage_v * rate_scale * temp_scale,
            rtol=1e-12,
        )
        self.assertIs(curve.capacity_mah, self.curve_set.capacity_mah)

    def test_idempotent(self):
        first = compose_curve(self.curve_set, 1.3, 7.5)
        second = compose_curve(self.curve_set, 1.3, 7.5)
        self.assertEqual(first.voltage_v.tobytes(), second.voltage_v.tobytes())
        self.assertEqual(first.capacity_mah.tobytes(), second.capacity_mah.tobytes())

    def test_range_rejection(self):
        with self.assertRaises(OutOfRangeError) as ctx:
            compose_curve(self.curve_set, 2.5, 25.0)
        self.assertEqual(ctx.exception.parameter, "discharge rate")
        self.assertEqual((ctx.exception.lower, ctx.exception.upper), (0.2, 2.0))

        with self.assertRaises(OutOfRangeError) as ctx:
            compose_curve(self.curve_set, 1.0, -25.0)
        self.assertEqual(ctx.exception.parameter, "temperature")
        self.assertEqual((ctx.exception.lower, ctx.exception.upper), (-20.0, 40.0))

    def test_zero_baseline_voltage_fails(self):
        raw = make_raw_curves()
        grid, voltage = raw[BASELINE_CURVE]
        voltage = voltage.copy()
        voltage[5] = 0.0
        raw[BASELINE_CURVE] = (grid, voltage)
        curve_set = build_curve_set(raw)

        with self.assertRaises(DatasetIntegrityError) as ctx:
            compose_curve(curve_set, 1.5, 10.0)
        self.assertIn("50", str(ctx.exception))


class TestCapacityLookup(unittest.TestCase):
    """Test capacity lookup on non-monotonic curves."""

    def setUp(self):
        # Rising transient to a peak at 2 mAh, then a decline
        self.curve = DischargeCurve(
            [0.0, 1.0, 2.0, 3.0, 4.0, 5.0],
            [3.8, 4.0, 4.2, 4.0, 3.8, 3.6],
        )

    def test_declining_branch_used(self):
        self.assertEqual(find_capacity_at_voltage(self.curve, 3.8), 4.0)
        self.assertEqual(find_capacity_at_voltage(self.curve, 4.0), 3.0)

    def test_peak(self):
        self.assertEqual(find_capacity_at_voltage(self.curve, 4.2), 2.0)

    def test_nearest_neighbour(self):
        self.assertEqual(find_capacity_at_voltage(self.curve, 3.65), 5.0)

    def test_tie_goes_to_lowest_capacity(self):
        curve = DischargeCurve([0.0, 1.0, 2.0], [4.0, 3.5, 3.0])
        self.assertEqual(find_capacity_at_voltage(curve, 3.75), 0.0)

    def test_out_of_range(self):
        with self.assertRaises(OutOfRangeError) as ctx:
            find_capacity_at_voltage(self.curve, 4.3)
        self.assertEqual(ctx.exception.parameter, "cell voltage")
        self.assertEqual(ctx.exception.upper, 4.2)
        with self.assertRaises(OutOfRangeError):
            find_capacity_at_voltage(self.curve, 3.5)

    def test_synthetic_curve_skips_start_transient(self):
        curve = make_curve_set().baseline
        peak_capacity = curve.capacity_mah[int(np.argmax(curve.voltage_v))]

        # 3.95 V occurs on the rising transient (near 10 mAh) and on the decline
        self.assertLess(curve.voltage_v[0], 3.95)
        capacity = find_capacity_at_voltage(curve, 3.95)
        self.assertGreaterEqual(capacity, peak_capacity)
        self.assertGreater(capacity, 400.0)

        index = int(np.flatnonzero(curve.capacity_mah == capacity)[0])
        self.assertAlmostEqual(curve.voltage_v[index], 3.95, delta=0.002)


class TestPackConfig(unittest.TestCase):
    """Test pack configuration parsing."""

    def test_parse(self):
        pack = parse_pack_config("2s3p")
        self.assertEqual(pack.series, 2)
        self.assertEqual(pack.parallel, 3)
        self.assertEqual(pack.total_cells, 6)
        self.assertEqual(pack.configuration_string, "2s3p")

    def test_multi_digit(self):
        self.assertEqual(parse_pack_config("12s10p"), PackConfig(12, 10))

    def test_invalid(self):
        for token in ["bad", "", "2S3P", "2s3", "s3p", "2s3p ", " 2s3p", "x2s3p", "2.5s1p", "2s-1p"]:
            with self.subTest(token=token):
                with self.assertRaises(InvalidConfigError):
                    parse_pack_config(token)

    def test_zero_counts(self):
        with self.assertRaises(InvalidConfigError):
            parse_pack_config("0s1p")
        with self.assertRaises(InvalidConfigError):
            parse_pack_config("1s0p")

    def test_non_string(self):
        with self.assertRaises(InvalidConfigError):
            parse_pack_config(None)
        with self.assertRaises(InvalidConfigError):
            parse_pack_config(23)

    def test_direct_construction_validated(self):
        with self.assertRaises(InvalidConfigError):
            PackConfig(series=0, parallel=1)
        with self.assertRaises(InvalidConfigError):
            PackConfig(series=1, parallel=1.5)

    def test_cell_voltage(self):
        self.assertAlmostEqual(PackConfig(4, 1).to_cell_voltage(14.8), 3.7)


class TestEnergyCalculation(unittest.TestCase):
    """Test energy change between voltage setpoints."""

    def setUp(self):
        self.curve_set = make_curve_set()

    def test_matches_formula(self):
        curve = compose_curve(self.curve_set, 1.0, 25.0)
        initial_capacity = find_capacity_at_voltage(curve, 3.7)
        final_capacity = find_capacity_at_voltage(curve, 3.3)
        expected = final_capacity / 1000.0 * 3.3 - initial_capacity / 1000.0 * 3.7

        result = calculate_energy_change(self.curve_set, 1.0, 25.0, 3.7, 3.3)
        self.assertAlmostEqual(result, expected, places=9)
        self.assertGreater(final_capacity, initial_capacity)

    def test_parallel_doubles_exactly(self):
        single = calculate_energy_change(self.curve_set, 1.0, 25.0, 3.7, 3.3)
        doubled = calculate_energy_change(self.curve_set, 1.0, 25.0, 3.7, 3.3, "1s2p")
        self.assertEqual(doubled, 2 * single)

    def test_series_divides_voltages(self):
        single = calculate_energy_change(self.curve_set, 1.0, 25.0, 3.7, 3.3)
        two_series = calculate_energy_change(self.curve_set, 1.0, 25.0, 7.4, 6.6, "2s1p")
        self.assertAlmostEqual(two_series, single, places=12)

    def test_series_lookup_uses_cell_voltage(self):
        """2s1p at 3.7/3.3 V means 1.85/1.65 V per cell, below the curve."""
        with self.assertRaises(OutOfRangeError) as ctx:
            calculate_energy_change(self.curve_set, 1.0, 25.0, 3.7, 3.3, "2s1p")
        self.assertEqual(ctx.exception.parameter, "cell voltage")

    def test_pack_config_object(self):
        by_string = calculate_energy_change(self.curve_set, 1.5, 10.0, 7.2, 6.8, "2s3p")
        by_object = calculate_energy_change(self.curve_set, 1.5, 10.0, 7.2, 6.8, PackConfig(2, 3))
        self.assertEqual(by_string, by_object)

    def test_breakdown(self):
        result = calculate_energy_breakdown(self.curve_set, 1.5, 10.0, 7.2, 6.8, "2s3p")
        self.assertEqual(result.pack, PackConfig(2, 3))
        self.assertAlmostEqual(result.initial_cell_voltage, 3.6)
        self.assertAlmostEqual(result.final_cell_voltage, 3.4)
        self.assertAlmostEqual(
            result.initial_energy_wh,
            result.initial_capacity_mah / 1000.0 * 3 * result.initial_cell_voltage,
        )
        self.assertAlmostEqual(
            result.energy_change_wh, result.final_energy_wh - result.initial_energy_wh
        )
        self.assertGreater(result.capacity_change_mah, 0)

    def test_no_pack_defaults_to_single_cell(self):
        result = calculate_energy_breakdown(self.curve_set, 1.0, 25.0, 3.7, 3.3)
        self.assertEqual(result.pack, PackConfig(1, 1))
        self.assertEqual(result.initial_cell_voltage, 3.7)

    def test_same_voltage_no_change(self):
        self.assertEqual(calculate_energy_change(self.curve_set, 1.0, 25.0, 3.5, 3.5), 0.0)

    def test_invalid_pack(self):
        with self.assertRaises(InvalidConfigError):
            calculate_energy_change(self.curve_set, 1.0, 25.0, 3.7, 3.3, "bad")

    def test_out_of_range_conditions(self):
        with self.assertRaises(OutOfRangeError):
            calculate_energy_change(self.curve_set, 0.1, 25.0, 3.7, 3.3)
        with self.assertRaises(OutOfRangeError):
            calculate_energy_change(self.curve_set, 1.0, 45.0, 3.7, 3.3)

    def test_voltage_outside_composed_curve(self):
        """At 2C/-20°C the curve tops out below 3.5 V."""
        with self.assertRaises(OutOfRangeError):
            calculate_energy_change(self.curve_set, 2.0, -20.0, 3.7, 3.0)


class TestAnalyzer(unittest.TestCase):
    """Test the public analyzer API with an injected curve set."""

    def setUp(self):
        self.curve_set = make_curve_set()
        self.analyzer = DischargeCurveAnalyzer(curve_set=self.curve_set)

    def test_curve_set_injected(self):
        self.assertIs(self.analyzer.curve_set, self.curve_set)

    def test_interpolate_curve_baseline(self):
        curve = self.analyzer.interpolate_curve(1, 25)
        np.testing.assert_array_equal(curve.voltage_v, self.curve_set.baseline.voltage_v)

    def test_range_rejection(self):
        with self.assertRaises(OutOfRangeError):
            self.analyzer.interpolate_curve(2.5, 25)
        with self.assertRaises(OutOfRangeError):
            self.analyzer.interpolate_curve(1, -25)

    def test_idempotent(self):
        first = self.analyzer.interpolate_curve(0.8, 33.0)
        second = self.analyzer.interpolate_curve(0.8, 33.0)
        self.assertEqual(first.voltage_v.tobytes(), second.voltage_v.tobytes())

    def test_valid_ranges(self):
        self.assertEqual(
            self.analyzer.get_valid_ranges(),
            {"rate": (0.2, 2.0), "temperature": (-20.0, 40.0)},
        )

    def test_voltage_range(self):
        v_min, v_max = self.analyzer.get_voltage_range(1.0, 25.0)
        self.assertEqual((v_min, v_max), self.curve_set.baseline.voltage_range)
        self.assertLess(v_min, 3.0)
        self.assertGreater(v_max, 4.0)

    def test_energy_change(self):
        self.assertEqual(
            self.analyzer.calculate_energy_change(1.2, 15.0, 3.7, 3.3, "1s2p"),
            calculate_energy_change(self.curve_set, 1.2, 15.0, 3.7, 3.3, "1s2p"),
        )

    def test_energy_breakdown(self):
        result = self.analyzer.calculate_energy_breakdown(1.2, 15.0, 3.7, 3.3)
        self.assertEqual(result.rate, 1.2)
        self.assertEqual(result.temperature, 15.0)


class TestCalculationTrace(unittest.TestCase):
    """Test the calculation debugger hooks."""

    def setUp(self):
        self.curve_set = make_curve_set()
        set_debugger(None)

    def tearDown(self):
        set_debugger(None)

    def test_trace_records_all_stages(self):
        debugger = trace_energy_calculation(self.curve_set, 1.5, 10.0, 3.7, 3.3, "1s2p")

        categories = {step.category for step in debugger.steps}
        for expected in ["Input", "Pack", "Axis Interpolation", "Composition",
                         "Capacity Lookup", "Energy"]:
            self.assertIn(expected, categories)

        step = debugger.find_step_by_result("energy_change")
        expected = calculate_energy_change(self.curve_set, 1.5, 10.0, 3.7, 3.3, "1s2p")
        self.assertAlmostEqual(step.result, expected)
        self.assertEqual(step.result_unit, "Wh")

    def test_trace_summarizes_curves(self):
        debugger = trace_energy_calculation(self.curve_set, 1.5, 10.0, 3.7, 3.3)
        step = debugger.find_step_by_result("V_interp")
        self.assertTrue(step.result.startswith(f"[{len(self.curve_set.baseline)} samples"))

    def test_report(self):
        debugger = trace_energy_calculation(self.curve_set, 1.0, 25.0, 3.7, 3.3)
        report = debugger.get_report()
        self.assertIn("DISCHARGE CURVE CALCULATION TRACE", report)
        self.assertIn("energy_change", report)
        self.assertIn(f"Total Steps: {debugger.get_step_count()}", report)
        self.assertIn(">>> CALCULATION", report)

    def test_global_debugger_restored(self):
        trace_energy_calculation(self.curve_set, 1.0, 25.0, 3.7, 3.3)
        self.assertIsNone(get_debugger())

        with self.assertRaises(OutOfRangeError):
            trace_energy_calculation(self.curve_set, 5.0, 25.0, 3.7, 3.3)
        self.assertIsNone(get_debugger())

    def test_debug_step_inactive(self):
        debug_step("Energy", "ignored", "", {}, 1.0, "x")
        self.assertIsNone(get_debugger())

    def test_installed_debugger_collects(self):
        debugger = CalculationDebugger()
        set_debugger(debugger)
        find_capacity_at_voltage(self.curve_set.baseline, 3.5)
        self.assertEqual(len(debugger.find_steps_by_category("Capacity Lookup")), 1)

    def test_trace_restores_outer_debugger(self):
        outer = CalculationDebugger()
        set_debugger(outer)
        inner = trace_energy_calculation(self.curve_set, 1.0, 25.0, 3.7, 3.3)
        self.assertIs(get_debugger(), outer)
        self.assertEqual(outer.get_step_count(), 0)
        self.assertGreater(inner.get_step_count(), 0)

    def test_installed_debugger_records_every_caller(self):
        """The slot is shared: any calculation while it is set gets recorded."""
        debugger = CalculationDebugger()
        set_debugger(debugger)
        compose_curve(self.curve_set, 1.5, 10.0)
        calculate_energy_change(self.curve_set, 1.0, 25.0, 3.7, 3.3)
        self.assertEqual(len(debugger.find_steps_by_category("Composition")), 2)


def run_validation():
    """Run tests and print summary."""
    print("=" * 60)
    print("Discharge Curve Validation")
    print("=" * 60)
    print()

    loader = unittest.TestLoader()
    suite = unittest.TestSuite()

    for case in (TestConfig, TestDischargeCurve, TestReferenceCurveSet,
                 TestAxisInterpolation, TestComposition, TestCapacityLookup,
                 TestPackConfig, TestEnergyCalculation, TestAnalyzer,
                 TestCalculationTrace):
        suite.addTests(loader.loadTestsFromTestCase(case))

    runner = unittest.TextTestRunner(verbosity=2)
    result = runner.run(suite)

    print()
    print("=" * 60)
    if result.wasSuccessful():
        print("All validation tests PASSED")
    else:
        print(f"FAILED: {len(result.failures)} failures, {len(result.errors)} errors")
    print("=" * 60)

    return result.wasSuccessful()


if __name__ == "__main__":
    success = run_validation()
    sys.exit(0 if success else 1)
