"""Aggregation module.

This module provides functionality for:
- Variable declarations with a closed AVERAGE/TOTAL aggregation class
- Average (renormalized weighted mean) and total (apportionment) strategies
- MOE propagation and coefficient of variation
- Assembly of the per-leveed-area attribute table
"""

from .variables import AggregationClass, VariableSpec, AggregatedAttribute, parse_variables
from .strategies import AggregationStrategy, AverageStrategy, TotalStrategy, get_strategy
from .uncertainty import coefficient_of_variation
from .engine import AggregationEngine, AggregationResult, aggregate
from .reliability import reliability_flags

__all__ = [
    'AggregationClass',
    'VariableSpec',
    'AggregatedAttribute',
    'parse_variables',
    'AggregationStrategy',
    'AverageStrategy',
    'TotalStrategy',
    'get_strategy',
    'coefficient_of_variation',
    'AggregationEngine',
    'AggregationResult',
    'aggregate',
    'reliability_flags'
]
