"""Source (census tract) and target (leveed area) region data structures."""

from dataclasses import dataclass, field
from typing import Optional, Dict, Any, List, Iterable
import math

import geopandas as gpd
import pandas as pd
from shapely.geometry.base import BaseGeometry

from ..config import constants


@dataclass(frozen=True)
class SourceRegion:
    """A polygon at which attribute data was measured (e.g. a census tract).

    Attributes:
        source_id: Stable region key; for tracts the 11-digit GEOID
            (2 state + 3 county + 6 tract), zero-padded
        geometry: Polygon or multipolygon in the working projection
        area: Planar area in the working projection; computed from the
            geometry on construction when not supplied
    """

    source_id: str
    geometry: BaseGeometry
    area: Optional[float] = None

    def __post_init__(self):
        if not self.source_id:
            raise ValueError("Source region id cannot be empty")
        if self.geometry is None:
            raise ValueError(f"Source region {self.source_id} has no geometry")
        if self.area is None or (isinstance(self.area, float) and math.isnan(self.area)):
            object.__setattr__(self, "area", float(self.geometry.area))
        if self.area < 0:
            raise ValueError(f"Source region {self.source_id} has negative area: {self.area}")

    @property
    def state_code(self) -> str:
        """2-digit state FIPS code (tract GEOIDs only)."""
        return self.source_id[:2]

    @property
    def county_code(self) -> str:
        """3-digit county FIPS code (tract GEOIDs only)."""
        return self.source_id[2:5]

    def __str__(self) -> str:
        return f"SourceRegion({self.source_id}, area={self.area:.1f})"


@dataclass(frozen=True)
class TargetRegion:
    """A polygon for which estimates are wanted (e.g. a leveed area).

    Metadata fields are carried through to the output table and are never
    used for weighting.
    """

    target_id: str
    geometry: BaseGeometry
    name: Optional[str] = None
    accredited: Optional[str] = None
    area_sq_miles: Optional[float] = None
    levee_length_miles: Optional[float] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.target_id is None or str(self.target_id) == "":
            raise ValueError("Target region id cannot be empty")
        object.__setattr__(self, "target_id", str(self.target_id))
        if pd.isna(self.accredited):
            object.__setattr__(self, "accredited", None)
        elif self.accredited not in constants.ACCREDITATION_LEVELS:
            raise ValueError(f"Unknown accreditation category: {self.accredited}")

    def to_dict(self) -> Dict[str, Any]:
        """Metadata as a flat dictionary using output column names."""
        return {
            "target_id": self.target_id,
            "name": self.name,
            "accredited": self.accredited,
            "areaSquareMiles": self.area_sq_miles,
            "leveeLengthInMiles": self.levee_length_miles,
            **self.metadata,
        }

    def __str__(self) -> str:
        return f"TargetRegion({self.target_id}, {self.name})"


def sources_to_frame(regions: Iterable[SourceRegion], crs) -> gpd.GeoDataFrame:
    """Build the source GeoDataFrame used by the weight engine."""
    regions = list(regions)
    return gpd.GeoDataFrame(
        {
            "source_id": [r.source_id for r in regions],
            "source_area": [r.area for r in regions],
        },
        geometry=[r.geometry for r in regions],
        crs=crs,
    )


def targets_to_frame(regions: Iterable[TargetRegion], crs) -> gpd.GeoDataFrame:
    """Build the target GeoDataFrame used by the weight engine."""
    regions = list(regions)
    records = [r.to_dict() for r in regions]
    frame = pd.DataFrame.from_records(records, columns=_target_columns(records))
    return gpd.GeoDataFrame(frame, geometry=[r.geometry for r in regions], crs=crs)


def frame_to_sources(frame: gpd.GeoDataFrame) -> List[SourceRegion]:
    """Convert a source GeoDataFrame back to SourceRegion objects."""
    areas = frame["source_area"] if "source_area" in frame.columns else [None] * len(frame)
    return [
        SourceRegion(source_id=sid, geometry=geom, area=area)
        for sid, geom, area in zip(frame["source_id"], frame.geometry, areas)
    ]


def frame_to_targets(frame: gpd.GeoDataFrame) -> List[TargetRegion]:
    """Convert a target GeoDataFrame back to TargetRegion objects."""
    known = {
        "target_id": "target_id",
        "name": "name",
        "accredited": "accredited",
        "areaSquareMiles": "area_sq_miles",
        "leveeLengthInMiles": "levee_length_miles",
    }
    geometry_name = frame.geometry.name
    regions = []
    for row in frame.to_dict("records"):
        geometry = row.pop(geometry_name)
        kwargs = {known[k]: row.pop(k) for k in list(row) if k in known}
        regions.append(TargetRegion(geometry=geometry, metadata=row, **kwargs))
    return regions


def _target_columns(records: List[Dict[str, Any]]) -> List[str]:
    columns = list(constants.TARGET_METADATA_COLUMNS)
    for record in records:
        for key in record:
            if key not in columns:
                columns.append(key)
    return columns
