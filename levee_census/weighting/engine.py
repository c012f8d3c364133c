"""Area weights from overlaying target regions (leveed areas) on source regions (tracts).

Two weights are derived for every overlapping (target, source) pair:

- ``weight_for_average`` = intersection_area / sum of the target's
  intersection areas. Sums to 1 per target; used for rates and medians.
- ``weight_for_total`` = intersection_area / source_area. The share of the
  source region inside the target; used to apportion counts.
"""

from typing import List, Optional, Sequence, Tuple, Union

import geopandas as gpd
import numpy as np
import pandas as pd
import shapely
from shapely.errors import GEOSException

from ..config import Settings, get_default_settings
from ..geography.projection import check_crs
from ..geography.regions import SourceRegion, TargetRegion, sources_to_frame, targets_to_frame
from ..geography.repair import repair_geometries, repair_geometry
from ..parallel.execution import ExecutionContext, chunk_frame
from ..utils.exceptions import DataValidationError, DegenerateWeightError, GeometryError
from ..utils.logging import get_logger
from ..validation.weight_checks import check_weight_bounds
from .records import WeightTable, empty_weight_frame, no_intersection_frame, sort_weight_frame

logger = get_logger(__name__)

TargetInput = Union[gpd.GeoDataFrame, Sequence[TargetRegion]]
SourceInput = Union[gpd.GeoDataFrame, Sequence[SourceRegion]]


def intersect_target(target_id: str, geometry, sources: gpd.GeoDataFrame) -> pd.DataFrame:
    """Weight rows for one target region.

    Args:
        target_id: Target identifier (used in error messages)
        geometry: Target polygon in the working CRS
        sources: Source regions with ``source_id``, ``source_area`` and a
            spatial index

    Returns:
        One row per source with a non-empty, positive-area intersection;
        an empty frame when nothing overlaps

    Raises:
        GeometryError: if the geometry library fails on this target
    """
    try:
        geometry = repair_geometry(geometry)
        if geometry is None or geometry.is_empty:
            return empty_weight_frame()

        candidates = np.sort(sources.sindex.query(geometry, predicate="intersects"))
        if len(candidates) == 0:
            return empty_weight_frame()

        source_geoms = sources.geometry.to_numpy()[candidates]
        pieces = shapely.intersection(geometry, source_geoms)
        areas = shapely.area(pieces)
    except (GEOSException, ValueError, TypeError) as e:
        raise GeometryError(target_id, str(e)) from e

    if not np.all(np.isfinite(areas)):
        raise GeometryError(target_id, "non-finite intersection area")

    keep = areas > 0
    if not keep.any():
        return empty_weight_frame()

    areas = areas[keep]
    source_ids = sources["source_id"].to_numpy()[candidates][keep]
    source_areas = sources["source_area"].to_numpy(dtype=float)[candidates][keep]

    with np.errstate(divide="ignore", invalid="ignore"):
        weight_for_total = areas / source_areas

    return pd.DataFrame({
        "target_id": pd.Series([target_id] * len(areas), dtype=object),
        "source_id": pd.Series(source_ids, dtype=object),
        "intersection_area": areas,
        "source_area": source_areas,
        "weight_for_average": areas / areas.sum(),
        "weight_for_total": weight_for_total,
        "has_intersection": np.ones(len(areas), dtype=bool),
    })


def compute_chunk_weights(targets: gpd.GeoDataFrame,
                          sources: gpd.GeoDataFrame) -> Tuple[pd.DataFrame, List[str]]:
    """Weight rows for a disjoint chunk of targets (one worker task).

    A geometry failure on one target is logged and turned into that
    target's no-intersection placeholder; the rest of the chunk proceeds.

    Returns:
        (weight rows for the chunk, ids of targets whose overlay failed)
    """
    frames = []
    failed = []
    for target_id, geometry in zip(targets["target_id"], targets.geometry):
        try:
            rows = intersect_target(target_id, geometry, sources)
        except GeometryError as e:
            logger.error("Overlay failed; target carried as missing",
                         target_id=target_id, error=str(e))
            failed.append(target_id)
            rows = empty_weight_frame()

        if rows.empty:
            rows = no_intersection_frame([target_id])
        frames.append(rows)

    if not frames:
        return empty_weight_frame(), failed
    return pd.concat(frames, ignore_index=True), failed


class WeightEngine:
    """Compute the (target, source) weight table.

    The engine holds configuration only; every call is a pure function of
    its inputs.
    """

    def __init__(self,
                 settings: Optional[Settings] = None,
                 context: Optional[ExecutionContext] = None):
        """Initialize weight engine.

        Args:
            settings: Run settings (defaults used when None)
            context: Worker pool to fan out over. When None, a pool is created
                from ``settings`` for each call and torn down afterwards; a
                supplied context is started if needed but left open.
        """
        self.settings = settings or get_default_settings()
        self.settings.validate()
        self.context = context

    def compute_weights(self,
                        targets: TargetInput,
                        sources: SourceInput,
                        crs=None) -> WeightTable:
        """Overlay targets on sources and derive both weights.

        Args:
            targets: Target GeoDataFrame (``target_id`` + geometry) or TargetRegion list
            sources: Source GeoDataFrame (``source_id`` + geometry, optional
                ``source_area``) or SourceRegion list
            crs: CRS of region lists (ignored for GeoDataFrames)

        Returns:
            WeightTable sorted by (target_id, source_id)

        Raises:
            ProjectionError: if the inputs do not share a projected CRS
            DataValidationError: if identifiers are duplicated
            DegenerateWeightError: if weight_for_total leaves [0, 1] and
                ``settings.strict_weights`` is set
        """
        target_frame = _as_target_frame(targets, crs)
        source_frame = _as_source_frame(sources, crs)

        check_crs(target_frame, source_frame, self.settings.working_crs)
        _check_unique(target_frame, "target_id")
        _check_unique(source_frame, "source_id")

        source_frame = self._prepare_sources(source_frame)
        target_frame = target_frame[["target_id", target_frame.geometry.name]].reset_index(drop=True)

        logger.info("Computing area weights", n_targets=len(target_frame),
                    n_sources=len(source_frame))

        chunks = chunk_frame(target_frame, self.settings.targets_per_chunk)
        results = self._run(chunks, source_frame)

        frames = [frame for frame, _ in results]
        failed = sorted(tid for _, ids in results for tid in ids)
        data = sort_weight_frame(pd.concat(frames, ignore_index=True)) if frames \
            else empty_weight_frame()

        degenerate = check_weight_bounds(data, self.settings.weight_tolerance)
        if not degenerate.empty:
            if self.settings.strict_weights:
                raise DegenerateWeightError(degenerate)
            logger.error("weight_for_total outside [0, 1]; check the working projection",
                         n_rows=len(degenerate),
                         targets=degenerate["target_id"].drop_duplicates().head(20).tolist())

        table = WeightTable(data, failed_targets=failed, degenerate=degenerate)
        logger.info("Area weights computed",
                    n_rows=len(data),
                    n_pairs=int(data["has_intersection"].sum()),
                    n_without_overlap=len(table.unweightable_targets()),
                    n_failed=len(failed))
        return table

    def _prepare_sources(self, sources: gpd.GeoDataFrame) -> gpd.GeoDataFrame:
        """Repair source geometries once and cache their areas before fan-out."""
        sources = repair_geometries(sources, "source_id")
        if "source_area" not in sources.columns:
            sources = sources.assign(source_area=sources.geometry.area.astype(float))
        elif sources["source_area"].isna().any():
            missing = sources["source_area"].isna()
            sources = sources.assign(
                source_area=sources["source_area"].where(~missing, sources.geometry.area)
            )
        sources = sources[["source_id", "source_area", sources.geometry.name]].reset_index(drop=True)
        sources.sindex  # build once; in-process and threaded workers share it
        return sources

    def _run(self, chunks, sources) -> List[Tuple[pd.DataFrame, List[str]]]:
        sizes = [len(chunk) for chunk in chunks]
        if self.context is not None:
            self.context.start()
            return self.context.map_chunks(compute_chunk_weights, chunks, shared=sources,
                                           sizes=sizes, desc="Leveed areas")

        with ExecutionContext.from_settings(self.settings) as context:
            return context.map_chunks(compute_chunk_weights, chunks, shared=sources,
                                      sizes=sizes, desc="Leveed areas")


def compute_weights(targets: TargetInput,
                    sources: SourceInput,
                    settings: Optional[Settings] = None,
                    context: Optional[ExecutionContext] = None,
                    crs=None) -> WeightTable:
    """Compute the weight table with a one-shot WeightEngine."""
    return WeightEngine(settings, context).compute_weights(targets, sources, crs=crs)


def _as_target_frame(targets: TargetInput, crs) -> gpd.GeoDataFrame:
    if isinstance(targets, gpd.GeoDataFrame):
        frame = targets
    else:
        frame = targets_to_frame(targets, crs)
    if "target_id" not in frame.columns:
        raise DataValidationError("Target regions must have a 'target_id' column")
    frame = frame.copy()
    frame["target_id"] = frame["target_id"].astype(str)
    return frame


def _as_source_frame(sources: SourceInput, crs) -> gpd.GeoDataFrame:
    if isinstance(sources, gpd.GeoDataFrame):
        frame = sources
    else:
        frame = sources_to_frame(sources, crs)
    if "source_id" not in frame.columns:
        raise DataValidationError("Source regions must have a 'source_id' column")
    return frame


def _check_unique(frame: pd.DataFrame, column: str) -> None:
    duplicated = frame[column][frame[column].duplicated()]
    if not duplicated.empty:
        raise DataValidationError(
            f"Duplicate {column} values: {duplicated.drop_duplicates().head(10).tolist()}"
        )
