"""Data ingestion and validation module."""

from .schemas import (
    source_region_schema,
    target_region_schema,
    weight_table_schema,
    source_attribute_schema,
    validate_source_regions,
    validate_target_regions,
    validate_weight_table,
    validate_source_attributes
)
from .loaders import (
    normalize_geoid,
    replace_missing_sentinels,
    load_source_attributes,
    load_source_regions,
    load_target_regions,
    save_results
)

__all__ = [
    "source_region_schema",
    "target_region_schema",
    "weight_table_schema",
    "source_attribute_schema",
    "validate_source_regions",
    "validate_target_regions",
    "validate_weight_table",
    "validate_source_attributes",
    "normalize_geoid",
    "replace_missing_sentinels",
    "load_source_attributes",
    "load_source_regions",
    "load_target_regions",
    "save_results"
]
