"""Geometry validation and repair ahead of intersection."""

import geopandas as gpd
import shapely
from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

from ..utils.logging import get_logger

logger = get_logger(__name__)

_POLYGONAL = ("Polygon", "MultiPolygon")


def repair_geometry(geom: BaseGeometry) -> BaseGeometry:
    """Return a valid polygonal version of ``geom``.

    ``make_valid`` can split a self-intersecting ring into a collection that
    also holds lines and points; only the polygonal parts carry area, so the
    rest is dropped.
    """
    if geom is None or geom.is_empty or geom.is_valid:
        return geom

    fixed = shapely.make_valid(geom)
    if fixed.geom_type in _POLYGONAL:
        return fixed

    polygons = [part for part in shapely.get_parts(fixed) if part.geom_type in _POLYGONAL]
    if not polygons:
        return Polygon()
    if len(polygons) == 1:
        return polygons[0]
    return shapely.union_all(polygons)


def repair_geometries(frame: gpd.GeoDataFrame, id_column: str) -> gpd.GeoDataFrame:
    """Repair every invalid geometry in ``frame`` and log which ids were touched."""
    invalid = ~frame.geometry.is_valid
    n_invalid = int(invalid.sum())
    if n_invalid == 0:
        return frame

    logger.info("Repairing invalid geometries", n_invalid=n_invalid,
                ids=frame.loc[invalid, id_column].head(20).tolist())
    repaired = gpd.GeoSeries(
        [repair_geometry(geom) for geom in frame.geometry],
        index=frame.index,
        crs=frame.crs,
    )
    result = frame.copy()
    result[frame.geometry.name] = repaired
    return result
