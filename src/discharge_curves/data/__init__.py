"""
Discharge Curve Data Module
===========================

Loads and validates the reference discharge curve dataset.
"""

from .dataset_loader import (
    load_reference_curves,
    build_curve_set,
    default_capacity_grid,
)

__all__ = [
    "load_reference_curves",
    "build_curve_set",
    "default_capacity_grid",
]
