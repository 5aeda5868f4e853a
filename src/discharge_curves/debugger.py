"""
Calculation Debugger
====================

Records interpolation, lookup and energy steps so a result can be traced
back to the curves and formulas that produced it.

Whole curves are too long to print, so array values are stored as short
summaries (sample count, min, max).
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

import numpy as np


@dataclass
class CalculationStep:
    """A single calculation step with inputs, formula, and result."""
    category: str           # e.g., "Rate Axis", "Composition", "Energy"
    description: str
    formula: str
    variables: dict
    result: Any
    result_name: str
    result_unit: str = ""
    comment: str = ""


def summarize_value(value: Any) -> Any:
    """Reduce arrays and curves to a printable summary."""
    voltage = getattr(value, "voltage_v", None)
    if voltage is not None:
        value = voltage
    if isinstance(value, np.ndarray):
        if value.size == 0:
            return "[]"
        return f"[{value.size} samples, min={np.min(value):.6g}, max={np.max(value):.6g}]"
    if isinstance(value, np.floating):
        return float(value)
    return value


def _format_value(value: Any) -> str:
    if isinstance(value, float):
        return f"{value:.6g}"
    return str(value)


class CalculationDebugger:
    """
    Traces and records calculation steps.

    Usage:
        debugger = CalculationDebugger()
        set_debugger(debugger)
        analyzer.calculate_energy_change(1.5, 10.0, 3.7, 3.3)
        set_debugger(None)
        print(debugger.get_report())
    """

    def __init__(self):
        self.steps: List[CalculationStep] = []
        self.sections: List[tuple] = []  # (step index, section name)
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.metadata: dict = {}

    def clear(self):
        """Clear all recorded steps."""
        self.steps = []
        self.sections = []
        self.start_time = None
        self.end_time = None
        self.metadata = {}

    def start(self, **metadata):
        """Start a new debugging session."""
        self.clear()
        self.start_time = datetime.now()
        self.metadata = metadata

    def finish(self):
        """Finish the debugging session."""
        self.end_time = datetime.now()

    def start_section(self, name: str):
        """Start a new section of calculations."""
        self.sections.append((len(self.steps), name))

    def add_step(
        self,
        category: str,
        description: str,
        formula: str,
        variables: dict,
        result: Any,
        result_name: str,
        result_unit: str = "",
        comment: str = ""
    ):
        """Add a calculation step. Arrays are stored as summaries."""
        self.steps.append(CalculationStep(
            category=category,
            description=description,
            formula=formula,
            variables={k: summarize_value(v) for k, v in variables.items()},
            result=summarize_value(result),
            result_name=result_name,
            result_unit=result_unit,
            comment=comment,
        ))

    def add_input(self, name: str, value: Any, unit: str = "", description: str = ""):
        """Add an input variable."""
        self.add_step(
            category="Input",
            description=description or f"Input parameter: {name}",
            formula="",
            variables={},
            result=value,
            result_name=name,
            result_unit=unit,
        )

    def get_report(self, include_sections: bool = True) -> str:
        """
        Generate a formatted text report of all calculations.

        Parameters:
        ----------
        include_sections : bool
            Include section headers in the report

        Returns:
        -------
        str
            Formatted calculation trace
        """
        lines = ["=" * 70, "DISCHARGE CURVE CALCULATION TRACE", "=" * 70]

        if self.start_time:
            lines.append(f"Generated: {self.start_time.strftime('%Y-%m-%d %H:%M:%S')}")

        if self.metadata:
            lines.append("")
            lines.append("Configuration:")
            for key, value in self.metadata.items():
                lines.append(f"  {key}: {value}")

        lines.append("")

        section_indices = {idx: name for idx, name in self.sections}
        current_category = None

        for number, step in enumerate(self.steps, start=1):
            if include_sections and (number - 1) in section_indices:
                lines.extend(["", "=" * 70, f">>> {section_indices[number - 1]}", "=" * 70, ""])

            if step.category != current_category and step.category != "Input":
                lines.append(f"--- {step.category} ---")
                lines.append("")
                current_category = step.category

            lines.append(f"[{number}] {step.description}")

            if step.variables:
                inputs = ", ".join(
                    f"{name}={_format_value(value)}" for name, value in step.variables.items()
                )
                lines.append(f"    Inputs: {inputs}")

            if step.formula:
                lines.append(f"    Formula: {step.formula}")

            unit = f" {step.result_unit}" if step.result_unit else ""
            lines.append(f"    => {step.result_name} = {_format_value(step.result)}{unit}")

            if step.comment:
                lines.append(f"    // {step.comment}")

            lines.append("")

        lines.append("=" * 70)
        lines.append(f"Total Steps: {len(self.steps)}")
        if self.start_time and self.end_time:
            elapsed = (self.end_time - self.start_time).total_seconds()
            lines.append(f"Elapsed Time: {elapsed:.3f} seconds")
        lines.append("=" * 70)

        return "\n".join(lines)

    def get_step_count(self) -> int:
        """Return the number of recorded steps."""
        return len(self.steps)

    def find_steps_by_category(self, category: str) -> List[CalculationStep]:
        """Find all steps in a given category."""
        return [s for s in self.steps if s.category == category]

    def find_step_by_result(self, result_name: str) -> Optional[CalculationStep]:
        """Find the most recent step that produced a specific result."""
        for step in reversed(self.steps):
            if step.result_name == result_name:
                return step
        return None


# Global debugger instance; calculations record into it only while set
_debugger: Optional[CalculationDebugger] = None


def get_debugger() -> Optional[CalculationDebugger]:
    """Get the installed debugger (None when tracing is off)."""
    return _debugger


def set_debugger(debugger: Optional[CalculationDebugger]):
    """Install a debugger, or None to stop tracing."""
    global _debugger
    _debugger = debugger


def debug_step(
    category: str,
    description: str,
    formula: str,
    variables: dict,
    result: Any,
    result_name: str,
    result_unit: str = "",
    comment: str = ""
):
    """Add a step to the global debugger (if active)."""
    if _debugger is not None:
        _debugger.add_step(
            category=category,
            description=description,
            formula=formula,
            variables=variables,
            result=result,
            result_name=result_name,
            result_unit=result_unit,
            comment=comment,
        )
