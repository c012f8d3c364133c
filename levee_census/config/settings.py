"""Settings configuration for leveed-area interpolation runs."""

from dataclasses import dataclass, asdict
from typing import Optional, Dict, Any
import json
import os

from . import constants


@dataclass
class Settings:
    """Configuration settings for weight computation and aggregation."""

    # Data paths
    target_regions_path: Optional[str] = None
    source_regions_path: Optional[str] = None
    source_attributes_path: Optional[str] = None
    output_path: Optional[str] = None

    # Projection
    working_crs: str = constants.WORKING_CRS

    # Processing parameters
    n_workers: int = -1  # -1 = all CPUs but one, 0 = in-process
    use_processes: bool = True
    targets_per_chunk: int = constants.TARGETS_PER_CHUNK
    task_retries: int = constants.TASK_RETRIES
    show_progress: bool = True

    # Weight checks
    weight_tolerance: float = constants.WEIGHT_BOUND_TOLERANCE
    strict_weights: bool = False  # True raises DegenerateWeightError

    # Uncertainty
    moe_z_score: float = constants.MOE_Z_SCORE
    cv_threshold: float = constants.CV_UNRELIABLE_THRESHOLD

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    @classmethod
    def from_json(cls, json_path: str) -> "Settings":
        """Load settings from JSON file."""
        with open(json_path, 'r') as f:
            config = json.load(f)
        return cls(**config)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "Settings":
        """Create settings from dictionary."""
        return cls(**config_dict)

    def to_json(self, json_path: str) -> None:
        """Save settings to JSON file."""
        config_dict = {
            k: v for k, v in asdict(self).items()
            if v is not None
        }
        with open(json_path, 'w') as f:
            json.dump(config_dict, f, indent=2)

    def resolved_workers(self) -> int:
        """Number of worker processes to start (0 means run in-process)."""
        if self.n_workers < 0:
            return max((os.cpu_count() or 2) - 1, 1)
        return self.n_workers

    def validate(self) -> None:
        """Validate settings consistency."""
        if self.n_workers < -1:
            raise ValueError("Number of workers must be -1, 0 or positive")

        if self.targets_per_chunk < 1:
            raise ValueError("Targets per chunk must be at least 1")

        if self.task_retries < 0:
            raise ValueError("Task retries cannot be negative")

        if self.weight_tolerance < 0 or self.weight_tolerance >= 0.5:
            raise ValueError("Weight tolerance must be between 0 and 0.5")

        if self.moe_z_score <= 0:
            raise ValueError("MOE z-score must be positive")

        if self.cv_threshold <= 0:
            raise ValueError("CV threshold must be positive")

        if not self.working_crs:
            raise ValueError("A working CRS is required")


def get_default_settings() -> Settings:
    """Get default settings instance."""
    return Settings()
