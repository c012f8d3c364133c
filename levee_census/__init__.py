"""
levee_census: census tract estimates interpolated to leveed areas

This package converts ACS census-tract estimates (with margins of error) into
estimates for National Levee Database leveed areas by areal interpolation:
an overlay step computes area weights for every (leveed area, tract) pair and
an aggregation step applies them, propagating margins of error and deriving
coefficients of variation.
"""

__version__ = "0.1.0"
__author__ = "Levee Census Team"

from .config import constants
from .aggregation import AggregationClass, AggregationEngine, VariableSpec, aggregate
from .weighting import WeightEngine, WeightTable, compute_weights
from .pipeline import InterpolationResult, interpolate, interpolate_files

__all__ = [
    "constants",
    "AggregationClass",
    "AggregationEngine",
    "VariableSpec",
    "aggregate",
    "WeightEngine",
    "WeightTable",
    "compute_weights",
    "InterpolationResult",
    "interpolate",
    "interpolate_files"
]
