"""Geographic processing module.

This module provides functionality for:
- Source (census tract) and target (leveed area) region structures
- CRS checks and reprojection into the equal-area working CRS
- Geometry repair ahead of intersection
"""

from .regions import (
    SourceRegion,
    TargetRegion,
    sources_to_frame,
    targets_to_frame,
    frame_to_sources,
    frame_to_targets
)
from .projection import check_crs, to_working_crs
from .repair import repair_geometry, repair_geometries

__all__ = [
    'SourceRegion',
    'TargetRegion',
    'sources_to_frame',
    'targets_to_frame',
    'frame_to_sources',
    'frame_to_targets',
    'check_crs',
    'to_working_crs',
    'repair_geometry',
    'repair_geometries'
]
