"""Unit tests for data loaders."""

import pytest
import pandas as pd
import numpy as np
import geopandas as gpd
from shapely.geometry import box

from levee_census.aggregation import VariableSpec
from levee_census.data.loaders import (
    normalize_geoid,
    replace_missing_sentinels,
    load_source_attributes,
    load_source_regions,
    load_target_regions,
    save_results,
)


class TestNormalizeGeoid:
    """Test GEOID normalization."""

    def test_integer_ids_padded(self):
        ids = pd.Series([6001400100, 6067007001])
        assert normalize_geoid(ids).tolist() == ["06001400100", "06067007001"]

    def test_float_ids_padded(self):
        ids = pd.Series([6001400100.0, np.nan])
        result = normalize_geoid(ids)
        assert result.iloc[0] == "06001400100"
        assert pd.isna(result.iloc[1])

    def test_string_ids_kept(self):
        ids = pd.Series(["06001400100", " 6001400200"])
        assert normalize_geoid(ids).tolist() == ["06001400100", "06001400200"]

    def test_block_group_width(self):
        ids = pd.Series([60014001001])
        assert normalize_geoid(ids, width=12).tolist() == ["060014001001"]

    def test_too_long(self):
        with pytest.raises(ValueError, match="longer than 11"):
            normalize_geoid(pd.Series(["123456789012"]))


class TestReplaceMissingSentinels:
    """Test ACS sentinel replacement."""

    def test_all_sentinels_replaced(self):
        df = pd.DataFrame({
            "Pop": [1000, -666666666, -999999999],
            "Pop_moe": [100, -222222222, -888888888],
        })
        result = replace_missing_sentinels(df)

        assert result["Pop"].tolist()[0] == 1000.0
        assert result["Pop"].isna().sum() == 2
        assert result["Pop_moe"].isna().sum() == 2
        assert df["Pop"].iloc[1] == -666666666

    def test_selected_columns_only(self):
        df = pd.DataFrame({"a": [-666666666], "b": [-666666666]})
        result = replace_missing_sentinels(df, columns=["a"])
        assert np.isnan(result["a"].iloc[0])
        assert result["b"].iloc[0] == -666666666

    def test_text_columns_ignored(self):
        df = pd.DataFrame({"source_id": ["06001000100"], "Pop": [-666666666]})
        result = replace_missing_sentinels(df)
        assert result["source_id"].iloc[0] == "06001000100"
        assert result["Pop"].isna().all()


class TestLoadSourceAttributes:
    """Test attribute table loading."""

    def setup_method(self):
        self.variables = [
            VariableSpec("TotalPopulation", "Pop", "Pop_moe", "total"),
            VariableSpec("MedianIncome", "MedianIncome", "MedianIncome_moe", "average"),
        ]

    def test_load_csv(self, tmp_path):
        path = tmp_path / "acs.csv"
        pd.DataFrame({
            "X": [1, 2],
            "GEOID": [6001400100, 6001400200],
            "Pop": [1000, 2000],
            "Pop_moe": [100, 150],
            "MedianIncome": [-666666666, 75000],
            "MedianIncome_moe": [-222222222, 7000],
        }).to_csv(path, index=False)

        df = load_source_attributes(path, variables=self.variables)

        assert "X" not in df.columns
        assert df["source_id"].tolist() == ["06001400100", "06001400200"]
        assert np.isnan(df["MedianIncome"].iloc[0])
        assert np.isnan(df["MedianIncome_moe"].iloc[0])
        assert df["MedianIncome"].iloc[1] == 75000.0

    def test_missing_id_column(self, tmp_path):
        path = tmp_path / "acs.csv"
        pd.DataFrame({"tract": ["06001400100"], "Pop": [1]}).to_csv(path, index=False)
        with pytest.raises(ValueError, match="GEOID"):
            load_source_attributes(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_source_attributes(tmp_path / "absent.csv")

    def test_unsupported_format(self, tmp_path):
        path = tmp_path / "acs.xlsx"
        path.write_text("")
        with pytest.raises(ValueError, match="Unsupported"):
            load_source_attributes(path)


class TestLoadRegions:
    """Test region loading and reprojection."""

    def test_load_source_regions_reprojects(self, tmp_path):
        path = tmp_path / "tracts.gpkg"
        gpd.GeoDataFrame(
            {"GEOID": ["06067007001", "06067007002"], "NAME": ["a", "b"]},
            geometry=[box(-121.5, 38.5, -121.45, 38.55), box(-121.45, 38.5, -121.4, 38.55)],
            crs="EPSG:4326",
        ).to_file(path, driver="GPKG")

        tracts = load_source_regions(path)

        assert tracts.crs.to_epsg() == 3310
        assert list(tracts.columns) == ["source_id", "geometry", "source_area"]
        assert (tracts["source_area"] > 1e6).all()
        assert tracts["source_area"].tolist() == pytest.approx(tracts.geometry.area.tolist())

    def test_load_target_regions(self, tmp_path):
        path = tmp_path / "leveed_areas.parquet"
        gpd.GeoDataFrame(
            {
                "id": [5305000029, 5305000030],
                "name": ["North", "South"],
                "accredited": ["A99", "Non-Accredited Levee System"],
            },
            geometry=[box(0, 0, 10, 10), box(20, 0, 30, 10)],
            crs="EPSG:3310",
        ).to_parquet(path)

        targets = load_target_regions(path)

        assert targets["target_id"].tolist() == ["5305000029", "5305000030"]
        assert targets.crs.to_epsg() == 3310

    def test_unsupported_vector_format(self, tmp_path):
        path = tmp_path / "leveed_areas.kml"
        path.write_text("")
        with pytest.raises(ValueError, match="Unsupported vector format"):
            load_target_regions(path)


class TestSaveResults:
    """Test result writing."""

    def setup_method(self):
        self.table = pd.DataFrame({
            "target_id": ["T1", "T2"],
            "TotalPopulation_weighted_value": [40.0, 1000.0],
        })

    @pytest.mark.parametrize("suffix", [".csv", ".parquet", ".feather"])
    def test_round_trip(self, tmp_path, suffix):
        path = tmp_path / "out" / f"result{suffix}"
        save_results(self.table, path)
        assert path.exists()

        if suffix == ".csv":
            loaded = pd.read_csv(path)
        elif suffix == ".parquet":
            loaded = pd.read_parquet(path)
        else:
            loaded = pd.read_feather(path)
        pd.testing.assert_frame_equal(loaded, self.table, check_dtype=False)

    def test_geometry_dropped(self, tmp_path):
        gdf = gpd.GeoDataFrame(self.table, geometry=[box(0, 0, 1, 1), box(1, 1, 2, 2)],
                               crs="EPSG:3310")
        path = tmp_path / "result.csv"
        save_results(gdf, path)
        assert "geometry" not in pd.read_csv(path).columns

    def test_unsupported_format(self, tmp_path):
        with pytest.raises(ValueError, match="Unsupported output format"):
            save_results(self.table, tmp_path / "result.xlsx")
