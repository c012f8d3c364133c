"""Coordinate reference system checks for the overlay inputs."""

from typing import Optional

import geopandas as gpd
from pyproj import CRS

from ..config.constants import WORKING_CRS
from ..utils.exceptions import ProjectionError
from ..utils.logging import get_logger

logger = get_logger(__name__)


def to_working_crs(frame: gpd.GeoDataFrame, crs: str = WORKING_CRS) -> gpd.GeoDataFrame:
    """Reproject a GeoDataFrame into the equal-area working CRS.

    Args:
        frame: Input geometries; must carry a CRS
        crs: Target CRS (defaults to California Albers, EPSG:3310)

    Returns:
        Reprojected copy (or the input itself when already in ``crs``)
    """
    if frame.crs is None:
        raise ProjectionError("Input geometries have no CRS; cannot reproject")

    target = CRS.from_user_input(crs)
    if target.is_geographic:
        raise ProjectionError(f"Working CRS {crs} is geographic; areas would be distorted")

    if CRS.from_user_input(frame.crs) == target:
        return frame

    logger.info("Reprojecting geometries", source_crs=str(frame.crs), target_crs=str(crs),
                n_features=len(frame))
    return frame.to_crs(target)


def check_crs(targets: gpd.GeoDataFrame,
              sources: gpd.GeoDataFrame,
              expected_crs: Optional[str] = None) -> CRS:
    """Verify that both geometry sets share one projected CRS.

    Mismatched or geographic coordinate systems are configuration errors
    that invalidate every area ratio in the run, so they are fatal.

    Returns:
        The shared CRS
    """
    if targets.crs is None or sources.crs is None:
        raise ProjectionError("Target and source geometries must both carry a CRS")

    target_crs = CRS.from_user_input(targets.crs)
    source_crs = CRS.from_user_input(sources.crs)

    if target_crs != source_crs:
        raise ProjectionError(
            f"Target CRS {target_crs.to_string()} does not match source CRS "
            f"{source_crs.to_string()}"
        )

    if target_crs.is_geographic:
        raise ProjectionError(
            f"CRS {target_crs.to_string()} is geographic; reproject to an "
            f"equal-area CRS such as {WORKING_CRS} before computing weights"
        )

    if expected_crs is not None and target_crs != CRS.from_user_input(expected_crs):
        logger.warning("Inputs are not in the configured working CRS",
                       input_crs=target_crs.to_string(), working_crs=str(expected_crs))

    return target_crs
