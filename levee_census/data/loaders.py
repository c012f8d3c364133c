"""Data loading utilities: the ingestion boundary for regions and tract attributes.

Everything that reaches the weight or aggregation engines passes through
here first, so GEOIDs are zero-padded strings and ACS missing-value
sentinels are already NaN.
"""

import pandas as pd
import geopandas as gpd
import numpy as np
from pathlib import Path
from typing import Union, Optional, Iterable, Sequence

from .schemas import validate_source_attributes, validate_source_regions, validate_target_regions
from ..config import constants
from ..geography.projection import to_working_crs
from ..utils.logging import get_logger

logger = get_logger(__name__)


def normalize_geoid(ids: pd.Series, width: int = constants.GEOID_LENGTH) -> pd.Series:
    """
    Render census identifiers as zero-padded strings.

    CSV round trips turn California GEOIDs ("06...") into integers and drop
    the leading zero; this restores it.

    Parameters
    ----------
    ids : pd.Series
        Identifiers as strings, integers or floats
    width : int, default 11
        Identifier width (11 for tracts, 12 for block groups)

    Returns
    -------
    pd.Series
        String identifiers; missing values stay missing
    """
    def _pad(value):
        if pd.isna(value):
            return None
        if isinstance(value, (float, np.floating)):
            value = int(value)
        return str(value).strip().zfill(width)

    padded = ids.map(_pad)
    too_long = padded.dropna().str.len() > width
    if too_long.any():
        raise ValueError(
            f"{int(too_long.sum())} identifiers longer than {width} characters, "
            f"e.g. {padded.dropna()[too_long].iloc[0]}"
        )
    return padded.astype(object)


def replace_missing_sentinels(
    df: pd.DataFrame,
    columns: Optional[Iterable[str]] = None,
    sentinels: Sequence[int] = constants.ACS_MISSING_SENTINELS
) -> pd.DataFrame:
    """
    Replace ACS annotation values with NaN.

    Parameters
    ----------
    df : pd.DataFrame
        Attribute table
    columns : iterable of str, optional
        Columns to clean (defaults to every numeric column)
    sentinels : sequence of int
        Values meaning "no estimate"

    Returns
    -------
    pd.DataFrame
        Copy with sentinels replaced; affected columns become float
    """
    df = df.copy()
    if columns is None:
        columns = df.select_dtypes(include="number").columns
    columns = list(columns)

    for column in columns:
        values = pd.to_numeric(df[column], errors="coerce").astype(float)
        mask = values.isin(sentinels)
        if mask.any():
            logger.debug("Replacing missing-value sentinels", column=column,
                         n_replaced=int(mask.sum()))
        df[column] = values.mask(mask)

    return df


def load_source_attributes(
    filepath: Union[str, Path],
    id_column: str = "GEOID",
    variables=None,
    validate: bool = True,
    **kwargs
) -> pd.DataFrame:
    """
    Load a tract attribute table (ACS estimates with paired MOE columns).

    Parameters
    ----------
    filepath : str or Path
        CSV, parquet or feather file
    id_column : str, default "GEOID"
        Column holding the tract identifier; renamed to ``source_id``
    variables : list of VariableSpec, optional
        Declared variables; when given, the table is validated for them
    validate : bool, default True
        Whether to validate against the attribute schema
    **kwargs
        Additional arguments passed to the pandas reader

    Returns
    -------
    pd.DataFrame
        Attribute table keyed by ``source_id`` with sentinels replaced
    """
    df = _read_table(filepath, **kwargs)

    # Row-number column written by R's write.csv
    df = df.drop(columns=[c for c in ("X", "Unnamed: 0") if c in df.columns])

    if id_column not in df.columns:
        raise ValueError(f"Identifier column {id_column!r} not found in {filepath}")

    df = df.rename(columns={id_column: "source_id"})
    df["source_id"] = normalize_geoid(df["source_id"])
    df = replace_missing_sentinels(df, columns=[
        c for c in df.select_dtypes(include="number").columns if c != "source_id"
    ])

    if validate and variables is not None:
        df = validate_source_attributes(df, variables)

    logger.info("Loaded source attributes", path=str(filepath), n_rows=len(df))
    return df


def load_source_regions(
    filepath: Union[str, Path],
    id_column: str = "GEOID",
    crs: Optional[str] = constants.WORKING_CRS,
    id_length: int = constants.GEOID_LENGTH,
    validate: bool = True
) -> gpd.GeoDataFrame:
    """
    Load source region (census tract) polygons.

    The planar area is computed once, after reprojection, and stored as
    ``source_area``.
    """
    gdf = _read_vector(filepath)

    if id_column not in gdf.columns:
        raise ValueError(f"Identifier column {id_column!r} not found in {filepath}")

    gdf = gdf.rename(columns={id_column: "source_id"})[["source_id", gdf.geometry.name]]
    gdf["source_id"] = normalize_geoid(gdf["source_id"], width=id_length)

    if crs is not None:
        gdf = to_working_crs(gdf, crs)
    gdf["source_area"] = gdf.geometry.area.astype(float)

    if validate:
        gdf = validate_source_regions(gdf, id_length=id_length)

    logger.info("Loaded source regions", path=str(filepath), n_regions=len(gdf))
    return gdf


def load_target_regions(
    filepath: Union[str, Path],
    id_column: str = "id",
    crs: Optional[str] = constants.WORKING_CRS,
    validate: bool = True
) -> gpd.GeoDataFrame:
    """
    Load target region (leveed area) polygons with their pass-through metadata.
    """
    gdf = _read_vector(filepath)

    if id_column not in gdf.columns:
        raise ValueError(f"Identifier column {id_column!r} not found in {filepath}")

    gdf = gdf.rename(columns={id_column: "target_id"})
    gdf["target_id"] = gdf["target_id"].astype(str)

    if crs is not None:
        gdf = to_working_crs(gdf, crs)

    if validate:
        gdf = validate_target_regions(gdf)

    logger.info("Loaded target regions", path=str(filepath), n_regions=len(gdf))
    return gdf


def save_results(
    df: pd.DataFrame,
    filepath: Union[str, Path],
    **kwargs
) -> None:
    """
    Save a weight or aggregated attribute table.

    Parameters
    ----------
    df : pd.DataFrame
        Table to save; geometry columns are dropped
    filepath : str or Path
        Output path; format chosen by suffix
    **kwargs
        Additional arguments passed to the pandas writer
    """
    filepath = Path(filepath)
    filepath.parent.mkdir(parents=True, exist_ok=True)

    if isinstance(df, gpd.GeoDataFrame):
        df = pd.DataFrame(df.drop(columns=df.geometry.name))

    file_ext = filepath.suffix.lower()
    if file_ext == '.parquet':
        df.to_parquet(filepath, index=False, **kwargs)
    elif file_ext == '.csv':
        df.to_csv(filepath, index=False, **kwargs)
    elif file_ext == '.feather':
        df.reset_index(drop=True).to_feather(filepath, **kwargs)
    else:
        raise ValueError(
            f"Unsupported output format: {file_ext}. "
            f"Supported formats: {constants.SUPPORTED_TABLE_FORMATS}"
        )

    logger.info("Saved results", path=str(filepath), n_rows=len(df))


def _read_table(filepath: Union[str, Path], **kwargs) -> pd.DataFrame:
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    file_ext = filepath.suffix.lower()
    if file_ext == '.parquet':
        return pd.read_parquet(filepath, **kwargs)
    if file_ext == '.csv':
        return pd.read_csv(filepath, **kwargs)
    if file_ext == '.feather':
        return pd.read_feather(filepath, **kwargs)
    raise ValueError(
        f"Unsupported file format: {file_ext}. "
        f"Supported formats: {constants.SUPPORTED_TABLE_FORMATS}"
    )


def _read_vector(filepath: Union[str, Path]) -> gpd.GeoDataFrame:
    filepath = Path(filepath)
    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    file_ext = filepath.suffix.lower()
    if file_ext not in constants.SUPPORTED_VECTOR_FORMATS:
        raise ValueError(
            f"Unsupported vector format: {file_ext}. "
            f"Supported formats: {constants.SUPPORTED_VECTOR_FORMATS}"
        )
    if file_ext == '.parquet':
        return gpd.read_parquet(filepath)
    return gpd.read_file(filepath)
