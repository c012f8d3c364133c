"""Unit tests for weight records and the weight table wrapper."""

import pytest
import pandas as pd
import numpy as np

from levee_census.weighting import WeightRecord, WeightTable


class TestWeightRecord:
    """Test WeightRecord functionality."""

    def test_no_intersection(self):
        record = WeightRecord.no_intersection("T3")
        assert record.target_id == "T3"
        assert record.source_id is None
        assert not record.has_intersection
        assert np.isnan(record.weight_for_average)
        assert np.isnan(record.weight_for_total)

    def test_to_dict(self):
        record = WeightRecord("T1", "06001000100", 4.0, 100.0, 1.0, 0.04, True)
        assert record.to_dict()["weight_for_total"] == 0.04


class TestWeightTable:
    """Test WeightTable functionality."""

    def setup_method(self):
        self.records = [
            WeightRecord("T2", "06001000200", 30.0, 200.0, 0.3, 0.15, True),
            WeightRecord.no_intersection("T3"),
            WeightRecord("T1", "06001000100", 4.0, 100.0, 1.0, 0.04, True),
            WeightRecord("T2", "06001000100", 70.0, 100.0, 0.7, 0.7, True),
        ]

    def test_from_records_sorted(self):
        table = WeightTable.from_records(self.records)

        assert len(table) == 4
        assert table.data["target_id"].tolist() == ["T1", "T2", "T2", "T3"]
        assert table.data["source_id"].tolist()[1:3] == ["06001000100", "06001000200"]
        assert table.data.index.tolist() == [0, 1, 2, 3]

    def test_accessors(self):
        table = WeightTable.from_records(self.records)

        assert table.target_ids == ["T1", "T2", "T3"]
        assert len(table.intersecting()) == 3
        assert table.unweightable_targets() == ["T3"]

    def test_records_round_trip(self):
        table = WeightTable.from_records(self.records)
        records = table.records()

        assert len(records) == 4
        assert records[-1].source_id is None
        assert records[-1].has_intersection is False
        assert records[0] == WeightRecord("T1", "06001000100", 4.0, 100.0, 1.0, 0.04, True)

    def test_to_dataframe_is_copy(self):
        table = WeightTable.from_records(self.records)
        frame = table.to_dataframe()
        frame.loc[0, "weight_for_total"] = 99.0
        assert table.data.loc[0, "weight_for_total"] == 0.04

    def test_empty(self):
        table = WeightTable.from_records([])
        assert len(table) == 0
        assert table.target_ids == []

    def test_missing_columns(self):
        with pytest.raises(ValueError, match="missing required columns"):
            WeightTable(pd.DataFrame({"target_id": ["T1"]}))

    def test_from_dataframe_read_back(self):
        # As written by R's write.csv and read back without dtypes
        frame = pd.DataFrame({
            "target_id": [5305000029, 5305000029, 5305000030],
            "source_id": [6001000100, 6001000200, np.nan],
            "intersection_area": [70.0, 30.0, np.nan],
            "source_area": [100.0, 200.0, np.nan],
            "weight_for_average": [0.7, 0.3, np.nan],
            "weight_for_total": [0.7, 0.15, np.nan],
            "has_intersection": ["TRUE", "TRUE", "FALSE"],
        })
        table = WeightTable.from_dataframe(frame)

        assert table.data["target_id"].tolist() == ["5305000029", "5305000029", "5305000030"]
        assert table.data["source_id"].tolist()[:2] == ["06001000100", "06001000200"]
        assert table.data["has_intersection"].tolist() == [True, True, False]
        assert table.unweightable_targets() == ["5305000030"]

    def test_from_dataframe_keeps_text_source_ids(self):
        frame = pd.DataFrame({
            "target_id": ["T1", "T1"],
            "source_id": ["A", "B"],
            "intersection_area": [1.0, 3.0],
            "source_area": [10.0, 10.0],
            "weight_for_average": [0.25, 0.75],
            "weight_for_total": [0.1, 0.3],
            "has_intersection": [True, True],
        })
        table = WeightTable.from_dataframe(frame)
        assert table.data["source_id"].tolist() == ["A", "B"]
