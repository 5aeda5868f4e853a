"""
Discharge Curve Models
======================

Core data models for discharge curve calculations.
"""

from .curve import DischargeCurve, ReferenceCurveSet
from .pack import PackConfig, parse_pack_config

__all__ = [
    "DischargeCurve",
    "ReferenceCurveSet",
    "PackConfig",
    "parse_pack_config",
]
