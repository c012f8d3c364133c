"""Overlay weighting module.

This module provides functionality for:
- Intersecting leveed areas with census tracts
- Average (share of overlap) and total (share of tract) weights
- Binary tract/block-group overlap flags
"""

from .records import WeightRecord, WeightTable
from .engine import WeightEngine, compute_weights, compute_chunk_weights, intersect_target
from .overlap import flag_overlapping_sources

__all__ = [
    'WeightRecord',
    'WeightTable',
    'WeightEngine',
    'compute_weights',
    'compute_chunk_weights',
    'intersect_target',
    'flag_overlapping_sources'
]
