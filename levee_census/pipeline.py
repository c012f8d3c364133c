"""End-to-end interpolation: overlay weights, then weighted aggregation."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import geopandas as gpd
import pandas as pd

from .aggregation.engine import AggregationEngine
from .aggregation.reliability import reliability_flags
from .aggregation.variables import parse_variables
from .config import Settings, get_default_settings
from .config.constants import DEFAULT_OUTPUT_FORMAT
from .data.loaders import (
    load_source_attributes,
    load_source_regions,
    load_target_regions,
    save_results
)
from .parallel.execution import ExecutionContext
from .utils.exceptions import ConfigurationError
from .utils.logging import configure_logging, get_logger
from .validation.diagnostics import RunDiagnostics
from .weighting.engine import WeightEngine
from .weighting.records import WeightTable

logger = get_logger(__name__)


@dataclass
class InterpolationResult:
    """Output of a full run.

    Attributes:
        weights: Weight table from the overlay
        table: One row per leveed area with aggregated variables
        diagnostics: Targets without data, skipped variables, join mismatches
    """

    weights: WeightTable
    table: pd.DataFrame
    diagnostics: RunDiagnostics


def interpolate(targets: gpd.GeoDataFrame,
                sources: gpd.GeoDataFrame,
                source_attributes: pd.DataFrame,
                variables,
                settings: Optional[Settings] = None,
                context: Optional[ExecutionContext] = None,
                target_metadata: Optional[pd.DataFrame] = None) -> InterpolationResult:
    """Convert tract attributes to leveed-area estimates.

    Args:
        targets: Leveed areas (``target_id``, geometry, metadata columns)
        sources: Census tracts (``source_id``, geometry, optional ``source_area``)
        source_attributes: Tract attributes keyed by ``source_id``
        variables: VariableSpec list or manifest dict
        settings: Run settings
        context: Worker pool for the overlay (created per run when None)
        target_metadata: Pass-through columns; defaults to ``targets``
            without geometry

    Returns:
        InterpolationResult
    """
    settings = settings or get_default_settings()
    variables = parse_variables(variables)

    weights = WeightEngine(settings, context).compute_weights(targets, sources)

    if target_metadata is None:
        target_metadata = pd.DataFrame(targets.drop(columns=targets.geometry.name))

    result = AggregationEngine(settings).aggregate(weights, source_attributes,
                                                   target_metadata, variables)

    diagnostics = RunDiagnostics.from_weight_table(weights).merge(result.diagnostics)
    diagnostics.log_summary()

    return InterpolationResult(weights=weights, table=result.table, diagnostics=diagnostics)


def interpolate_files(variables,
                      settings: Settings,
                      context: Optional[ExecutionContext] = None) -> InterpolationResult:
    """Run the interpolation on the files named in ``settings``.

    Logging is configured from ``settings.log_level`` / ``settings.log_json``.
    The output table gains ``<var>_unreliable`` flags at
    ``settings.cv_threshold`` and is written to ``settings.output_path``
    when one is set (parquet when the path has no suffix).

    Raises:
        ConfigurationError: if an input path is not set
    """
    configure_logging(settings.log_level, settings.log_json)

    paths = {
        "target_regions_path": settings.target_regions_path,
        "source_regions_path": settings.source_regions_path,
        "source_attributes_path": settings.source_attributes_path,
    }
    missing = [name for name, path in paths.items() if not path]
    if missing:
        raise ConfigurationError(f"Input paths not set: {missing}")

    variables = parse_variables(variables)
    targets = load_target_regions(settings.target_regions_path, crs=settings.working_crs)
    sources = load_source_regions(settings.source_regions_path, crs=settings.working_crs)
    attributes = load_source_attributes(settings.source_attributes_path, variables=variables)

    result = interpolate(targets, sources, attributes, variables,
                         settings=settings, context=context)
    aggregated = [v for v in variables if v.name not in result.diagnostics.skipped_variables]
    result.table = reliability_flags(result.table, aggregated, threshold=settings.cv_threshold)

    if settings.output_path:
        output_path = Path(settings.output_path)
        if not output_path.suffix:
            output_path = output_path.with_suffix(DEFAULT_OUTPUT_FORMAT)
        save_results(result.table, output_path)

    return result
