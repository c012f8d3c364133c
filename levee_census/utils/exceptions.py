"""Custom exceptions for levee_census."""


class LeveeCensusError(Exception):
    """Base exception for levee_census package."""
    pass


class ConfigurationError(LeveeCensusError):
    """Raised when configuration is invalid."""
    pass


class ProjectionError(ConfigurationError):
    """Raised when the two input geometry sets are not in a shared projected CRS."""
    pass


class DataValidationError(LeveeCensusError):
    """Raised when data validation fails."""
    pass


class GeometryError(LeveeCensusError):
    """Raised when intersection or area computation fails for one target region."""

    def __init__(self, target_id, message: str):
        self.target_id = target_id
        super().__init__(f"Target {target_id}: {message}")


class DegenerateWeightError(LeveeCensusError):
    """Raised when weight_for_total falls outside [0, 1] beyond tolerance."""

    def __init__(self, offending):
        self.offending = offending
        pairs = ", ".join(
            f"{row.target_id}/{row.source_id}={row.weight_for_total:.6f}"
            for row in offending.head(10).itertuples()
        )
        super().__init__(
            f"{len(offending)} weight_for_total values outside [0, 1] "
            f"(wrong or non-equal-area projection?): {pairs}"
        )


class MissingVariableError(LeveeCensusError):
    """Raised when a variable's estimate or MOE column is absent from the attributes."""

    def __init__(self, variable: str, missing_columns):
        self.variable = variable
        self.missing_columns = list(missing_columns)
        super().__init__(
            f"Variable {variable}: columns not found in attribute table: "
            f"{self.missing_columns}"
        )


class JoinMismatchWarning(UserWarning):
    """Issued when weight and attribute tables disagree on source region ids."""
    pass
