"""Data validation schemas using Pandera for the interpolation inputs and outputs."""

from typing import Iterable

import pandas as pd
import pandera.pandas as pa

from ..config import constants


def _geoid_check(length: int) -> pa.Check:
    return pa.Check(
        lambda s: s.str.fullmatch(rf"\d{{{length}}}"),
        error=f"Source region id must be {length} digits",
    )


def source_region_schema(id_length: int = constants.GEOID_LENGTH) -> pa.DataFrameSchema:
    """Schema for the source (census tract) GeoDataFrame."""
    return pa.DataFrameSchema({
        "source_id": pa.Column(
            str,
            nullable=False,
            unique=True,
            checks=[_geoid_check(id_length)],
            description="Zero-padded census GEOID"
        ),
        "source_area": pa.Column(
            float,
            nullable=False,
            required=False,
            checks=[pa.Check.greater_than_or_equal_to(0)],
            description="Planar area in the working CRS"
        ),
    })


# Target (leveed area) region schema
target_region_schema = pa.DataFrameSchema({
    "target_id": pa.Column(
        str,
        nullable=False,
        unique=True,
        description="Leveed area identifier"
    ),
    "name": pa.Column(str, nullable=True, required=False),
    "accredited": pa.Column(
        str,
        nullable=True,
        required=False,
        checks=[pa.Check.isin(constants.ACCREDITATION_LEVELS)],
        description="FEMA accreditation category"
    ),
    "areaSquareMiles": pa.Column(
        float,
        nullable=True,
        required=False,
        coerce=True,
        checks=[pa.Check.greater_than_or_equal_to(0)]
    ),
    "leveeLengthInMiles": pa.Column(
        float,
        nullable=True,
        required=False,
        coerce=True,
        checks=[pa.Check.greater_than_or_equal_to(0)]
    ),
})


# Weight table schema; weight_for_total bounds are checked separately so that
# violations are reported rather than rejected row by row.
weight_table_schema = pa.DataFrameSchema(
    {
        "target_id": pa.Column(str, nullable=False),
        "source_id": pa.Column(str, nullable=True),
        "intersection_area": pa.Column(
            float,
            nullable=True,
            checks=[pa.Check.greater_than_or_equal_to(0)]
        ),
        "source_area": pa.Column(
            float,
            nullable=True,
            checks=[pa.Check.greater_than_or_equal_to(0)]
        ),
        "weight_for_average": pa.Column(
            float,
            nullable=True,
            checks=[pa.Check.in_range(0, 1 + constants.WEIGHT_SUM_TOLERANCE)]
        ),
        "weight_for_total": pa.Column(float, nullable=True),
        "has_intersection": pa.Column(bool, nullable=False),
    },
    strict=True,
    ordered=True,
)


def source_attribute_schema(columns: Iterable[str],
                            moe_columns: Iterable[str] = ()) -> pa.DataFrameSchema:
    """Schema for a tract attribute table holding the given value columns.

    Estimates may be missing (NaN) but never carry an ACS sentinel; MOEs,
    when present, are non-negative.
    """
    moe_columns = set(moe_columns)
    sentinel_check = pa.Check(
        lambda s: ~s.isin(constants.ACS_MISSING_SENTINELS),
        error="ACS missing-value sentinel must be replaced before aggregation",
    )
    schema_columns = {
        "source_id": pa.Column(str, nullable=False, unique=True),
    }
    for column in columns:
        checks = [sentinel_check]
        if column in moe_columns:
            checks.append(pa.Check.greater_than_or_equal_to(0))
        schema_columns[column] = pa.Column(float, nullable=True, coerce=True, checks=checks)
    return pa.DataFrameSchema(schema_columns)


def validate_source_regions(df: pd.DataFrame,
                            id_length: int = constants.GEOID_LENGTH) -> pd.DataFrame:
    """
    Validate source region data against schema.

    Parameters
    ----------
    df : pd.DataFrame
        Source regions with ``source_id`` (and optionally ``source_area``)
    id_length : int, default 11
        Expected GEOID length (11 for tracts, 12 for block groups)

    Returns
    -------
    pd.DataFrame
        Validated source regions

    Raises
    ------
    pa.errors.SchemaError
        If validation fails
    """
    return source_region_schema(id_length).validate(df)


def validate_target_regions(df: pd.DataFrame) -> pd.DataFrame:
    """
    Validate target region metadata against schema.

    Raises
    ------
    pa.errors.SchemaError
        If validation fails
    """
    return target_region_schema.validate(df)


def validate_weight_table(df: pd.DataFrame) -> pd.DataFrame:
    """Validate a weight table's columns, order and value ranges."""
    return weight_table_schema.validate(df)


def validate_source_attributes(df: pd.DataFrame, variables) -> pd.DataFrame:
    """
    Validate a tract attribute table for the declared variables.

    Only columns actually present are checked; absent variable columns are
    reported by the aggregation engine, which skips those variables.
    """
    estimate_columns = [v.estimate_column for v in variables if v.estimate_column in df.columns]
    moe_columns = [v.moe_column for v in variables if v.moe_column in df.columns]
    schema = source_attribute_schema(estimate_columns + moe_columns, moe_columns)
    return schema.validate(df)
