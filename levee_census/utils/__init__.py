"""Utility modules: logging setup and exception hierarchy."""

from .exceptions import (
    LeveeCensusError,
    ConfigurationError,
    ProjectionError,
    DataValidationError,
    GeometryError,
    DegenerateWeightError,
    MissingVariableError,
    JoinMismatchWarning,
)
from .logging import configure_logging, get_logger

__all__ = [
    "LeveeCensusError",
    "ConfigurationError",
    "ProjectionError",
    "DataValidationError",
    "GeometryError",
    "DegenerateWeightError",
    "MissingVariableError",
    "JoinMismatchWarning",
    "configure_logging",
    "get_logger",
]
