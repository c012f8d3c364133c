"""Constants for census-tract to leveed-area interpolation."""

# Survey uncertainty
MOE_Z_SCORE = 1.645  # 90% confidence MOE -> standard error
CV_UNRELIABLE_THRESHOLD = 0.4  # ACS guidance: CV above this is unreliable

# ACS annotation values that stand in for "no estimate"
# -666666666: estimate could not be computed (too few sample observations)
# -999999999: estimate or MOE not available
# -888888888: not applicable
# -222222222: MOE could not be computed
ACS_MISSING_SENTINELS = (-666666666, -999999999, -888888888, -222222222)

# Geographic constants
GEOID_LENGTH = 11  # 2 state + 3 county + 6 tract

# Working projection: California Albers (NAD83), equal-area. Areas computed in
# this CRS are treated as ground truth square metres.
WORKING_CRS = "EPSG:3310"

# Weight table
WEIGHT_COLUMNS = [
    "target_id",
    "source_id",
    "intersection_area",
    "source_area",
    "weight_for_average",
    "weight_for_total",
    "has_intersection",
]
WEIGHT_SUM_TOLERANCE = 1e-6  # |sum(weight_for_average) - 1| per target
WEIGHT_BOUND_TOLERANCE = 1e-6  # slack on 0 <= weight_for_total <= 1

# Output column suffixes, one set per aggregated variable
OUTPUT_SUFFIXES = [
    "weighted_value",
    "weighted_moe",
    "CV",
    "n_tracts_with_data",
    "total_weight",
]

# Leveed-area metadata carried through to the output table
TARGET_METADATA_COLUMNS = [
    "target_id",
    "name",
    "accredited",
    "areaSquareMiles",
    "leveeLengthInMiles",
]

# National Levee Database accreditation categories, in reporting order
ACCREDITATION_LEVELS = [
    "Accredited Levee System",
    "Provisionally Accredited Levee (PAL) System",
    "A99",
    "Non-Accredited Levee System",
]

# Parallel processing
TARGETS_PER_CHUNK = 25
TASK_RETRIES = 2

# File formats
SUPPORTED_TABLE_FORMATS = [".parquet", ".csv", ".feather"]
SUPPORTED_VECTOR_FORMATS = [".geojson", ".json", ".gpkg", ".shp", ".parquet"]
DEFAULT_OUTPUT_FORMAT = ".parquet"
