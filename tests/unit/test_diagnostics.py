"""Unit tests for weight-table checks and run diagnostics."""

import pytest
import pandas as pd
import numpy as np

from levee_census.validation import (
    RunDiagnostics,
    check_no_overlap_preserved,
    check_weight_bounds,
    check_weight_normalization,
)
from levee_census.weighting import WeightRecord, WeightTable


class TestWeightChecks:
    """Test weight-table invariant checks."""

    def setup_method(self):
        self.table = WeightTable.from_records([
            WeightRecord("T1", "06001000100", 4.0, 100.0, 1.0, 0.04, True),
            WeightRecord("T2", "06001000100", 70.0, 100.0, 0.7, 0.7, True),
            WeightRecord("T2", "06001000200", 30.0, 200.0, 0.3, 0.15, True),
            WeightRecord.no_intersection("T3"),
        ])

    def test_valid_table_passes(self):
        data = self.table.data
        assert check_weight_normalization(data).empty
        assert check_weight_bounds(data).empty
        assert check_no_overlap_preserved(data, ["T1", "T2", "T3"]) == []

    def test_normalization_violation(self):
        data = self.table.data.copy()
        data.loc[1, "weight_for_average"] = 0.6
        offending = check_weight_normalization(data)

        assert offending.index.tolist() == ["T2"]
        assert offending["T2"] == pytest.approx(0.9)

    def test_bounds_violation(self):
        data = self.table.data.copy()
        data.loc[0, "weight_for_total"] = 1.0 + 1e-3
        data.loc[2, "weight_for_total"] = np.inf
        offending = check_weight_bounds(data)

        assert offending.index.tolist() == [0, 2]

    def test_bounds_within_tolerance(self):
        data = self.table.data.copy()
        data.loc[1, "weight_for_total"] = 1.0 + 1e-9
        assert check_weight_bounds(data).empty

    def test_placeholder_rows_ignored_by_bounds(self):
        data = self.table.data
        assert data["weight_for_total"].isna().any()
        assert check_weight_bounds(data).empty

    def test_missing_target(self):
        assert check_no_overlap_preserved(self.table.data, ["T1", "T4"]) == ["T4"]

    def test_malformed_placeholder(self):
        extra = pd.DataFrame([WeightRecord("T3", "06001000300", 1.0, 10.0, 1.0, 0.1,
                                           True).to_dict()])
        data = pd.concat([self.table.data, extra], ignore_index=True)
        assert check_no_overlap_preserved(data, ["T3"]) == ["T3"]


class TestRunDiagnostics:
    """Test RunDiagnostics bookkeeping."""

    def test_from_weight_table(self):
        data = WeightTable.from_records([
            WeightRecord("T1", "06001000100", 4.0, 100.0, 1.0, 0.04, True),
            WeightRecord.no_intersection("T2"),
            WeightRecord.no_intersection("T3"),
        ]).data
        table = WeightTable(data, failed_targets=["T3"])
        diagnostics = RunDiagnostics.from_weight_table(table)

        assert diagnostics.n_targets == 3
        assert diagnostics.targets_without_overlap == ["T2"]
        assert diagnostics.targets_failed == ["T3"]
        assert diagnostics.degenerate_weights == 0

    def test_merge_and_summary(self):
        weighting = RunDiagnostics(n_targets=3, targets_without_overlap=["T3"])
        aggregation = RunDiagnostics(
            n_targets=3,
            unmatched_weight_sources=["06001000200"],
            dropped_weight_rows=1,
            unmatched_attribute_sources=4,
            skipped_variables={"PovertyRate": "columns not found"},
            targets_with_data={"TotalPopulation": 2},
        )
        summary = weighting.merge(aggregation).summary()

        assert summary["n_targets"] == 3
        assert summary["n_targets_without_overlap"] == 1
        assert summary["n_unmatched_weight_sources"] == 1
        assert summary["n_dropped_weight_rows"] == 1
        assert summary["n_unmatched_attribute_sources"] == 4
        assert summary["n_skipped_variables"] == 1
        assert summary["skipped_variables"] == ["PovertyRate"]
        assert summary["targets_without_data"] == {"TotalPopulation": 1}

    def test_log_summary(self):
        diagnostics = RunDiagnostics(
            n_targets=2,
            skipped_variables={"PovertyRate": "columns not found"},
            targets_with_data={"MedianIncome": 1},
        )
        diagnostics.log_summary()
