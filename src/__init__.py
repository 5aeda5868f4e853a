"""
Battery Discharge Interpolator - Main Package
=============================================

Tools for estimating battery discharge behaviour from measured reference
curves.

This package provides:
- Discharge Curves (discharge_curves): rate/temperature curve interpolation,
  capacity lookup and pack energy change between voltage setpoints
"""

__version__ = "0.1.0"
