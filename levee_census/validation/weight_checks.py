"""Invariant checks on a computed weight table."""

from typing import Iterable, List

import numpy as np
import pandas as pd

from ..config.constants import WEIGHT_BOUND_TOLERANCE, WEIGHT_SUM_TOLERANCE


def check_weight_normalization(weights: pd.DataFrame,
                               tolerance: float = WEIGHT_SUM_TOLERANCE) -> pd.Series:
    """Targets whose weight_for_average does not sum to 1.

    Returns:
        Series of offending sums indexed by target_id (empty when all pass)
    """
    overlapping = weights[weights["has_intersection"]]
    sums = overlapping.groupby("target_id")["weight_for_average"].sum()
    return sums[(sums - 1.0).abs() > tolerance]


def check_weight_bounds(weights: pd.DataFrame,
                        tolerance: float = WEIGHT_BOUND_TOLERANCE) -> pd.DataFrame:
    """Rows whose weight_for_total lies outside [0, 1] beyond ``tolerance``.

    Non-finite weights (a zero-area source region) are reported as well.
    """
    overlapping = weights[weights["has_intersection"]]
    w = overlapping["weight_for_total"].astype(float)
    bad = ~np.isfinite(w) | (w < -tolerance) | (w > 1.0 + tolerance)
    return overlapping[bad]


def check_no_overlap_preserved(weights: pd.DataFrame, target_ids: Iterable[str]) -> List[str]:
    """Targets that are missing from the table or carry a malformed placeholder.

    Every target must appear; a target without overlap must appear exactly
    once, with has_intersection False and no source id.
    """
    problems = []
    grouped = {tid: group for tid, group in weights.groupby("target_id", sort=False)}
    for target_id in target_ids:
        group = grouped.get(target_id)
        if group is None:
            problems.append(target_id)
            continue
        placeholders = group[~group["has_intersection"]]
        if len(placeholders) and (len(group) != 1 or placeholders["source_id"].notna().any()):
            problems.append(target_id)
    return problems
