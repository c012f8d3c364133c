"""Aggregation strategies, one per AggregationClass."""

from abc import ABC, abstractmethod
from typing import Dict

import numpy as np
import pandas as pd

from .variables import AggregationClass, VariableSpec

SUMMARY_COLUMNS = ["weighted_value", "weighted_moe", "n_tracts_with_data", "total_weight"]


class AggregationStrategy(ABC):
    """Turns joined (weight, attribute) rows into one summary row per target.

    Rows whose estimate is missing contribute to neither the value nor the
    MOE sum; a present estimate with a missing MOE contributes zero to the
    MOE sum. MOEs are combined in quadrature, assuming independent tract
    errors.
    """

    aggregation_class: AggregationClass
    weight_column: str

    def summarise(self, joined: pd.DataFrame, variable: VariableSpec) -> pd.DataFrame:
        """Per-target weighted value, MOE and bookkeeping.

        Args:
            joined: Overlapping weight rows joined to tract attributes
            variable: Variable to aggregate

        Returns:
            DataFrame indexed by target_id with SUMMARY_COLUMNS
        """
        estimate = joined[variable.estimate_column].astype(float)
        moe = joined[variable.moe_column].astype(float)
        weight = joined[self.weight_column].astype(float)

        present = estimate.notna()
        weight_with_data = weight.where(present, 0.0)

        parts = pd.DataFrame({
            "weighted_sum": (estimate * weight_with_data).fillna(0.0),
            "squared_moe": ((moe * weight_with_data) ** 2).fillna(0.0),
            "weight_with_data": weight_with_data.fillna(0.0),
            "n_tracts_with_data": present.astype(int),
            "total_weight": weight.fillna(0.0),
        }, index=joined.index)

        sums = parts.groupby(joined["target_id"], sort=True).sum()
        summary = self._finalise(sums)
        summary["n_tracts_with_data"] = sums["n_tracts_with_data"]
        summary["total_weight"] = sums["total_weight"]
        summary.index.name = "target_id"
        return summary[SUMMARY_COLUMNS].copy()

    @abstractmethod
    def _finalise(self, sums: pd.DataFrame) -> pd.DataFrame:
        """Weighted value and MOE from the per-target sums."""


class TotalStrategy(AggregationStrategy):
    """Count variables: each tract contributes the share of its count inside the target.

    value = sum(estimate * weight_for_total)
    moe   = sqrt(sum((moe * weight_for_total)^2))

    Tracts with a missing estimate count as zero and the weights are not
    renormalized, so partial coverage undercounts; n_tracts_with_data
    exposes how many tracts actually contributed.
    """

    aggregation_class = AggregationClass.TOTAL
    weight_column = "weight_for_total"

    def _finalise(self, sums: pd.DataFrame) -> pd.DataFrame:
        return pd.DataFrame({
            "weighted_value": sums["weighted_sum"],
            "weighted_moe": np.sqrt(sums["squared_moe"]),
        }, index=sums.index)


class AverageStrategy(AggregationStrategy):
    """Rate and median variables: weighted mean over the tracts that have data.

    With w restricted to tracts whose estimate is present and
    effective = sum(w):

    value = sum(estimate * w) / effective
    moe   = sqrt(sum((moe * w)^2)) / effective

    Renormalizing keeps a target from being diluted by overlap with tracts
    lacking data. Both are NaN when effective is 0.
    """

    aggregation_class = AggregationClass.AVERAGE
    weight_column = "weight_for_average"

    def _finalise(self, sums: pd.DataFrame) -> pd.DataFrame:
        effective = sums["weight_with_data"]
        has_weight = effective > 0
        denominator = effective.where(has_weight)
        return pd.DataFrame({
            "weighted_value": (sums["weighted_sum"] / denominator).where(has_weight),
            "weighted_moe": (np.sqrt(sums["squared_moe"]) / denominator).where(has_weight),
        }, index=sums.index)


_STRATEGIES: Dict[AggregationClass, AggregationStrategy] = {
    AggregationClass.AVERAGE: AverageStrategy(),
    AggregationClass.TOTAL: TotalStrategy(),
}


def get_strategy(aggregation_class) -> AggregationStrategy:
    """Strategy for an AggregationClass (or its string form)."""
    return _STRATEGIES[AggregationClass.coerce(aggregation_class)]
