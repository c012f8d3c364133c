"""Validation module: weight-table invariants and run diagnostics."""

from .diagnostics import RunDiagnostics
from .weight_checks import (
    check_weight_normalization,
    check_weight_bounds,
    check_no_overlap_preserved
)

__all__ = [
    'RunDiagnostics',
    'check_weight_normalization',
    'check_weight_bounds',
    'check_no_overlap_preserved'
]
