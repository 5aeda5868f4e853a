"""
Discharge Curve Plotting Module
===============================

Visualization of reference and interpolated discharge curves.

Plot Types Available:
--------------------
- Reference curves along the rate or temperature axis
- An interpolated curve with the reference curves that bracket it
- An energy window: the interpolated curve with both voltage setpoints
  marked at their looked-up capacities

Curves hold ~320k samples; lines are decimated to at most ``max_points``
points before drawing.

Usage:
-----
    from src.discharge_curves import DischargeCurveAnalyzer
    from src.discharge_curves.plotting import DischargeCurvePlotter

    plotter = DischargeCurvePlotter(DischargeCurveAnalyzer())
    fig = plotter.plot_interpolated_curve(rate=1.5, temperature=10.0)
    plt.show()
"""

from typing import Dict, Optional, Tuple, Union

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure

from .calculations.energy import calculate_energy_breakdown
from .calculations.interpolation import find_bracket
from .core import DischargeCurveAnalyzer
from .models.curve import DischargeCurve
from .models.pack import PackConfig


class DischargeCurvePlotter:
    """
    Discharge curve visualization class.

    Attributes:
    ----------
    analyzer : DischargeCurveAnalyzer
        Analyzer providing the reference and interpolated curves.

    max_points : int
        Maximum number of points drawn per curve.

    Example:
    -------
        plotter = DischargeCurvePlotter(analyzer)
        plotter.plot_reference_curves("temperature")
        plotter.plot_energy_window(1.0, 25.0, 3.7, 3.3)
        plt.show()
    """

    DEFAULT_FIGURE_SIZE = (10, 6)
    DEFAULT_GRID = True
    DEFAULT_LEGEND_LOC = "best"

    def __init__(self, analyzer: Optional[DischargeCurveAnalyzer] = None, max_points: int = 2000):
        self.analyzer = analyzer if analyzer is not None else DischargeCurveAnalyzer()
        self.max_points = max_points

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _decimate(self, curve: DischargeCurve) -> Tuple[np.ndarray, np.ndarray]:
        """Every n-th sample so at most max_points remain (last sample kept)."""
        step = max(1, int(np.ceil(len(curve) / self.max_points)))
        capacity = curve.capacity_mah[::step]
        voltage = curve.voltage_v[::step]
        if (len(curve) - 1) % step:
            capacity = np.append(capacity, curve.capacity_mah[-1])
            voltage = np.append(voltage, curve.voltage_v[-1])
        return capacity, voltage

    def _get_axes(self, ax: Optional[Axes], figsize) -> Tuple[Figure, Axes]:
        if ax is None:
            fig, ax = plt.subplots(1, figsize=figsize or self.DEFAULT_FIGURE_SIZE)
        else:
            fig = ax.get_figure()
        return fig, ax

    def _finish(self, ax: Axes, title: str, show_legend: bool):
        ax.set_xlabel("Discharged Capacity [mAh]")
        ax.set_ylabel("Voltage [V]")
        ax.set_title(title)
        ax.grid(self.DEFAULT_GRID)
        if show_legend:
            ax.legend(loc=self.DEFAULT_LEGEND_LOC)

    # -------------------------------------------------------------------------
    # Plotting Methods
    # -------------------------------------------------------------------------

    def plot_reference_curves(
        self,
        axis: str = "rate",
        figsize: Optional[Tuple[int, int]] = None,
        show_legend: bool = True,
        ax: Optional[Axes] = None
    ) -> Figure:
        """
        Plot the measured curves of one axis.

        Parameters:
        ----------
        axis : str
            "rate" (curves at 25°C) or "temperature" (curves at 1C)

        figsize : tuple, optional
            Figure size as (width, height) in inches.

        show_legend : bool, optional
            Whether to display the legend.

        ax : matplotlib.axes.Axes, optional
            Existing axes to plot on. If None, creates new figure.

        Returns:
        -------
        matplotlib.figure.Figure
        """
        curve_set = self.analyzer.curve_set
        if axis == "rate":
            values, curves, label, title = (
                curve_set.rate_values, curve_set.rate_curves, "{:g}C",
                f"Reference Discharge Curves at {curve_set.reference_conditions[1]:g}°C",
            )
        elif axis == "temperature":
            values, curves, label, title = (
                curve_set.temperature_values, curve_set.temperature_curves, "{:g}°C",
                f"Reference Discharge Curves at {curve_set.reference_conditions[0]:g}C",
            )
        else:
            raise ValueError(f"Invalid axis: {axis}. Must be 'rate' or 'temperature'.")

        fig, ax = self._get_axes(ax, figsize)
        for value, curve in zip(values, curves):
            ax.plot(*self._decimate(curve), label=label.format(value))

        self._finish(ax, title, show_legend)
        return fig

    def _bracketing_references(self, rate: float, temperature: float) -> Dict[Tuple[float, float], DischargeCurve]:
        """{(rate, temperature): curve} of the reference curves bracketing a query."""
        curve_set = self.analyzer.curve_set
        ref_rate, ref_temp = curve_set.reference_conditions

        rate_indices = find_bracket(curve_set.rate_values, rate, "discharge rate", "C")
        temp_indices = find_bracket(curve_set.temperature_values, temperature, "temperature", "°C")

        references = {}
        for i in sorted(set(rate_indices)):
            references[(float(curve_set.rate_values[i]), ref_temp)] = curve_set.rate_curves[i]
        for i in sorted(set(temp_indices)):
            references[(ref_rate, float(curve_set.temperature_values[i]))] = curve_set.temperature_curves[i]
        return references

    def plot_interpolated_curve(
        self,
        rate: float,
        temperature: float,
        show_reference: bool = True,
        figsize: Optional[Tuple[int, int]] = None,
        ax: Optional[Axes] = None
    ) -> Figure:
        """
        Plot the interpolated curve against the reference curves it came from.

        Parameters:
        ----------
        rate : float
            Discharge rate coefficient (C)

        temperature : float
            Temperature (°C)

        show_reference : bool
            Also draw (dashed) the rate-axis and temperature-axis reference
            curves that bracket the query. The baseline is drawn once even
            when it brackets on both axes.

        Returns:
        -------
        matplotlib.figure.Figure
        """
        curve = self.analyzer.interpolate_curve(rate, temperature)

        fig, ax = self._get_axes(ax, figsize)
        if show_reference:
            for (ref_rate, ref_temp), reference in self._bracketing_references(rate, temperature).items():
                ax.plot(
                    *self._decimate(reference),
                    linestyle="--", alpha=0.7,
                    label=f"Reference {ref_rate:g}C / {ref_temp:g}°C",
                )
        ax.plot(
            *self._decimate(curve), color="black", linewidth=2,
            label=f"Interpolated {rate:g}C / {temperature:g}°C",
        )

        self._finish(ax, "Interpolated Discharge Curve", show_legend=True)
        return fig

    def plot_energy_window(
        self,
        rate: float,
        temperature: float,
        initial_voltage: float,
        final_voltage: float,
        pack_config: Optional[Union[str, PackConfig]] = None,
        figsize: Optional[Tuple[int, int]] = None,
        ax: Optional[Axes] = None
    ) -> Figure:
        """
        Plot the interpolated curve with both setpoints marked.

        The region between the two looked-up capacities is shaded and the
        energy change is shown in the title.

        Returns:
        -------
        matplotlib.figure.Figure
        """
        result = calculate_energy_breakdown(
            self.analyzer.curve_set, rate, temperature,
            initial_voltage, final_voltage, pack_config,
        )
        curve = self.analyzer.interpolate_curve(rate, temperature)

        fig, ax = self._get_axes(ax, figsize)
        ax.plot(*self._decimate(curve), label=f"{rate:g}C / {temperature:g}°C")

        ax.scatter(
            [result.initial_capacity_mah, result.final_capacity_mah],
            [result.initial_cell_voltage, result.final_cell_voltage],
            color="red", zorder=3, label="Setpoints",
        )
        low, high = sorted((result.initial_capacity_mah, result.final_capacity_mah))
        ax.axvspan(low, high, alpha=0.15, color="red")

        self._finish(
            ax,
            f"Energy Change ({result.pack.configuration_string}): {result.energy_change_wh:.3f} Wh",
            show_legend=True,
        )
        return fig
