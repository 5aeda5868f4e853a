#!/usr/bin/env python3
"""
Discharge Energy Calculator Launcher
====================================

Command-line front end for the discharge curve interpolator.

Interpolates a discharge curve at the requested rate and temperature and
prints the net energy change between two voltages (final minus initial).

Usage:
------
    python run_discharge_calculator.py --rate 1.5 --temperature 10 \\
        --initial-voltage 3.7 --final-voltage 3.3

    # 2s1p pack, pack voltages, custom dataset, with trace and plot
    python run_discharge_calculator.py --dataset data/dischargeCurves.mat \\
        --rate 1 --temperature 25 --initial-voltage 7.4 --final-voltage 6.6 \\
        --pack 2s1p --trace --plot

Requirements:
------------
- Python 3.9+
- numpy
- pandas
- scipy
- matplotlib
"""

import argparse
import sys
from pathlib import Path

# Add the project root to the Python path
project_root = Path(__file__).parent.resolve()
sys.path.insert(0, str(project_root))

from src.discharge_curves import (
    DischargeCurveAnalyzer,
    DischargeCurveConfig,
    DatasetIntegrityError,
    InvalidConfigError,
    OutOfRangeError,
    load_reference_curves,
    trace_energy_calculation,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Net battery energy change between two voltages, "
                    "interpolated from reference discharge curves."
    )
    parser.add_argument("--dataset", type=Path, default=None,
                        help="Reference dataset (.mat, .csv or .pkl); "
                             "default: data/dischargeCurves.mat")
    parser.add_argument("--rate", type=float, required=True,
                        help="Discharge rate coefficient in C (0.2 to 2)")
    parser.add_argument("--temperature", type=float, required=True,
                        help="Temperature in degC (-20 to 40)")
    parser.add_argument("--initial-voltage", type=float, required=True,
                        help="Initial voltage (V), pack voltage if --pack is given")
    parser.add_argument("--final-voltage", type=float, required=True,
                        help="Final voltage (V), pack voltage if --pack is given")
    parser.add_argument("--pack", default=None,
                        help="Pack configuration such as 1s2p or 3s4p")
    parser.add_argument("--trace", action="store_true",
                        help="Print the step-by-step calculation trace")
    parser.add_argument("--plot", action="store_true",
                        help="Show the interpolated curve with both setpoints")
    parser.add_argument("--verbose", action="store_true",
                        help="Print dataset loading status")
    return parser


def main(argv=None) -> int:
    """Parse arguments, run the calculation and print the result."""
    args = build_parser().parse_args(argv)

    print("=" * 60)
    print("  Battery Discharge Energy Calculator")
    print("=" * 60)

    config = DischargeCurveConfig(verbose=args.verbose)
    dataset = args.dataset if args.dataset is not None else config.dataset_path

    try:
        curve_set = load_reference_curves(dataset, config)
        analyzer = DischargeCurveAnalyzer(config, curve_set=curve_set)

        result = analyzer.calculate_energy_breakdown(
            args.rate, args.temperature,
            args.initial_voltage, args.final_voltage, args.pack,
        )

    except FileNotFoundError as e:
        print(f"\n[ERROR] Data file not found: {e}")
        return 1

    except DatasetIntegrityError as e:
        print(f"\n[ERROR] Invalid reference dataset: {e}")
        return 1

    except (OutOfRangeError, InvalidConfigError) as e:
        print(f"\n[ERROR] {e}")
        return 1

    print()
    print(f"  Conditions:       {args.rate:g}C, {args.temperature:g}°C, "
          f"{result.pack.configuration_string}")
    print(f"  Cell voltages:    {result.initial_cell_voltage:.4f} V -> "
          f"{result.final_cell_voltage:.4f} V")
    print(f"  Capacity (cell):  {result.initial_capacity_mah:.2f} mAh -> "
          f"{result.final_capacity_mah:.2f} mAh")
    print(f"  Energy change:    {result.energy_change_wh:.4f} Wh")
    print()

    if args.trace:
        debugger = trace_energy_calculation(
            curve_set, args.rate, args.temperature,
            args.initial_voltage, args.final_voltage, args.pack,
        )
        print(debugger.get_report())

    if args.plot:
        import matplotlib.pyplot as plt
        from src.discharge_curves.plotting import DischargeCurvePlotter

        plotter = DischargeCurvePlotter(analyzer)
        plotter.plot_energy_window(
            args.rate, args.temperature,
            args.initial_voltage, args.final_voltage, args.pack,
        )
        plt.show()

    return 0


if __name__ == "__main__":
    sys.exit(main())
