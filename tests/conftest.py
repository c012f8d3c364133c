"""Shared fixtures: the two-tract scenario and synthetic grid data."""

import pytest
import numpy as np
import pandas as pd
import geopandas as gpd
from shapely.geometry import box

from levee_census.aggregation import VariableSpec
from levee_census.config import Settings

from fixtures.sample_data_generator import (
    generate_acs_attributes,
    generate_leveed_areas,
    generate_tract_grid,
)

CRS = "EPSG:3310"
TRACT_A = "06001000100"
TRACT_B = "06001000200"


@pytest.fixture
def serial_settings():
    """In-process settings without a progress bar."""
    return Settings(n_workers=0, show_progress=False, targets_per_chunk=2)


@pytest.fixture
def two_tracts():
    """Tract A (area 100) and tract B (area 200), side by side."""
    return gpd.GeoDataFrame(
        {"source_id": [TRACT_A, TRACT_B]},
        geometry=[box(0, 0, 10, 10), box(10, 0, 30, 10)],
        crs=CRS,
    )


@pytest.fixture
def scenario_targets():
    """T1 inside tract A, T2 across A and B (70 / 30), T3 outside every tract."""
    return gpd.GeoDataFrame(
        {
            "target_id": ["T1", "T2", "T3"],
            "name": ["Inner", "Straddling", "Offshore"],
            "accredited": ["Accredited Levee System", "A99", None],
            "areaSquareMiles": [0.1, 0.2, 0.05],
            "leveeLengthInMiles": [1.5, 2.5, 0.5],
        },
        geometry=[box(0.5, 0.5, 2.5, 2.5), box(3, 0, 13, 10), box(100, 100, 110, 110)],
        crs=CRS,
    )


@pytest.fixture
def scenario_attributes():
    return pd.DataFrame({
        "source_id": [TRACT_A, TRACT_B],
        "Pop": [1000.0, 2000.0],
        "Pop_moe": [100.0, 300.0],
        "MedianIncome": [50000.0, 80000.0],
        "MedianIncome_moe": [5000.0, 8000.0],
    })


@pytest.fixture
def scenario_variables():
    return [
        VariableSpec("TotalPopulation", "Pop", "Pop_moe", "total"),
        VariableSpec("MedianIncome", "MedianIncome", "MedianIncome_moe", "average"),
    ]


@pytest.fixture
def tract_grid():
    return generate_tract_grid()


@pytest.fixture
def leveed_areas():
    return generate_leveed_areas()


@pytest.fixture
def grid_attributes(tract_grid):
    return generate_acs_attributes(tract_grid["source_id"])


@pytest.fixture
def rng():
    return np.random.default_rng(7)
