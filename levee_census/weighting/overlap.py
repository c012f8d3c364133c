"""Binary overlap flags: which source regions touch any target region."""

import geopandas as gpd
import numpy as np
import pandas as pd

from ..utils.exceptions import ProjectionError
from ..utils.logging import get_logger

logger = get_logger(__name__)


def flag_overlapping_sources(sources: gpd.GeoDataFrame,
                             targets: gpd.GeoDataFrame,
                             id_column: str = "source_id") -> pd.DataFrame:
    """Flag every source region (tract or block group) intersecting a target.

    Only the intersects predicate is evaluated, so unlike the weights this
    does not need an equal-area CRS; sources are reprojected to the
    targets' CRS when the two differ.

    Returns:
        DataFrame with ``id_column`` and ``intersects_target`` (0/1), one row
        per source region in input order
    """
    if sources.crs is None or targets.crs is None:
        raise ProjectionError("Source and target geometries must both carry a CRS")
    if sources.crs != targets.crs:
        sources = sources.to_crs(targets.crs)

    source_positions, _ = targets.sindex.query(sources.geometry, predicate="intersects")
    flags = np.zeros(len(sources), dtype=int)
    flags[np.unique(source_positions)] = 1

    logger.info("Flagged overlapping source regions", n_sources=len(sources),
                n_overlapping=int(flags.sum()))
    return pd.DataFrame({
        id_column: sources[id_column].to_numpy(),
        "intersects_target": flags,
    })
