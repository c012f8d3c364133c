"""Generate sample geometries and ACS attributes for testing levee_census."""

import numpy as np
import pandas as pd
import geopandas as gpd
from shapely.geometry import box
from pathlib import Path


WORKING_CRS = "EPSG:3310"


def generate_tract_grid(
    n_cols: int = 6,
    n_rows: int = 4,
    cell_size: float = 1000.0,
    origin: tuple = (0.0, 0.0),
    county: str = "06001",
    crs: str = WORKING_CRS
) -> gpd.GeoDataFrame:
    """
    Generate a regular grid of square census tracts.

    Parameters
    ----------
    n_cols, n_rows : int
        Grid dimensions
    cell_size : float
        Tract side length in CRS units
    origin : tuple
        Lower-left corner of the grid
    county : str
        5-digit state+county FIPS prefix for the GEOIDs
    crs : str
        CRS of the generated geometries
    """
    x0, y0 = origin
    ids, geoms = [], []
    for row in range(n_rows):
        for col in range(n_cols):
            tract_number = (row * n_cols + col + 1) * 100
            ids.append(f"{county}{tract_number:06d}")
            geoms.append(box(x0 + col * cell_size, y0 + row * cell_size,
                             x0 + (col + 1) * cell_size, y0 + (row + 1) * cell_size))
    gdf = gpd.GeoDataFrame({"source_id": ids}, geometry=geoms, crs=crs)
    gdf["source_area"] = gdf.geometry.area
    return gdf


def generate_leveed_areas(
    n_areas: int = 12,
    extent: tuple = (0.0, 0.0, 6000.0, 4000.0),
    max_size: float = 1500.0,
    seed: int = 42,
    crs: str = WORKING_CRS
) -> gpd.GeoDataFrame:
    """
    Generate random rectangular leveed areas inside ``extent``.

    The last area is placed well outside the extent so that one target never
    overlaps a tract.
    """
    rng = np.random.default_rng(seed)
    xmin, ymin, xmax, ymax = extent
    geoms = []
    for _ in range(n_areas - 1):
        width, height = rng.uniform(100.0, max_size, size=2)
        x = rng.uniform(xmin, xmax - width)
        y = rng.uniform(ymin, ymax - height)
        geoms.append(box(x, y, x + width, y + height))
    geoms.append(box(xmax + 5000.0, ymax + 5000.0, xmax + 5500.0, ymax + 5500.0))

    accreditation = ["Accredited Levee System", "Non-Accredited Levee System",
                     "Provisionally Accredited Levee (PAL) System", "A99"]
    gdf = gpd.GeoDataFrame({
        "target_id": [str(5000000000 + i) for i in range(n_areas)],
        "name": [f"Leveed Area {i}" for i in range(n_areas)],
        "accredited": [accreditation[i % len(accreditation)] for i in range(n_areas)],
    }, geometry=geoms, crs=crs)
    gdf["areaSquareMiles"] = gdf.geometry.area / 2589988.11
    gdf["leveeLengthInMiles"] = gdf.geometry.length / 1609.344
    return gdf


def generate_acs_attributes(
    source_ids,
    missing_fraction: float = 0.1,
    seed: int = 42
) -> pd.DataFrame:
    """
    Generate ACS-style tract attributes with paired MOE columns.

    A share of MedianIncome values is set to the ACS sentinel -666666666,
    as it arrives from the Census API.
    """
    rng = np.random.default_rng(seed)
    n = len(source_ids)

    pop = rng.integers(1500, 8000, size=n).astype(float)
    houses = np.round(pop / rng.uniform(2.2, 3.4, size=n))
    income = np.round(rng.uniform(35000, 150000, size=n), -2)

    missing = rng.random(n) < missing_fraction
    income[missing] = -666666666

    return pd.DataFrame({
        "source_id": list(source_ids),
        "Pop": pop,
        "Pop_moe": np.round(pop * rng.uniform(0.05, 0.2, size=n)),
        "TotHouses": houses,
        "TotHouses_moe": np.round(houses * rng.uniform(0.05, 0.2, size=n)),
        "MedianIncome": income,
        "MedianIncome_moe": np.where(missing, -222222222,
                                     np.round(np.abs(income) * rng.uniform(0.05, 0.3, size=n))),
    })


def save_sample_data(output_dir: str = 'tests/fixtures/data'):
    """Write sample tracts, leveed areas and attributes to ``output_dir``."""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    tracts = generate_tract_grid()
    leveed = generate_leveed_areas()
    acs = generate_acs_attributes(tracts["source_id"])

    tracts.rename(columns={"source_id": "GEOID"}).drop(columns="source_area") \
        .to_file(output_path / "tracts.gpkg", driver="GPKG")
    leveed.rename(columns={"target_id": "id"}).to_file(output_path / "leveed_areas.geojson",
                                                       driver="GeoJSON")
    acs.rename(columns={"source_id": "GEOID"}).to_csv(output_path / "acs_tracts.csv", index=False)

    print(f"Sample data saved to {output_path}")


if __name__ == '__main__':
    save_sample_data()
