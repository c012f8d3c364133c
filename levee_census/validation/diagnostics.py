"""Run diagnostics: what was missing, skipped or mismatched."""

from dataclasses import dataclass, field
from typing import Any, Dict, List

from ..utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class RunDiagnostics:
    """Data-quality signals collected while weighting and aggregating.

    Attributes:
        n_targets: Target regions in the output table
        targets_without_overlap: Targets with no overlapping source region
        targets_failed: Targets whose overlay raised a geometry error
        degenerate_weights: Rows with weight_for_total outside [0, 1]
        unmatched_weight_sources: Source ids in the weights but not in the
            attribute table (their weight rows were dropped)
        dropped_weight_rows: Weight rows dropped by the attribute join
        unmatched_attribute_sources: Attribute rows whose source never
            overlaps a target
        unmatched_metadata_targets: Weighted targets absent from the metadata
        skipped_variables: Variable name -> reason it was skipped
        targets_with_data: Variable name -> targets with a non-null value
    """

    n_targets: int = 0
    targets_without_overlap: List[str] = field(default_factory=list)
    targets_failed: List[str] = field(default_factory=list)
    degenerate_weights: int = 0
    unmatched_weight_sources: List[str] = field(default_factory=list)
    dropped_weight_rows: int = 0
    unmatched_attribute_sources: int = 0
    unmatched_metadata_targets: List[str] = field(default_factory=list)
    skipped_variables: Dict[str, str] = field(default_factory=dict)
    targets_with_data: Dict[str, int] = field(default_factory=dict)

    @classmethod
    def from_weight_table(cls, table) -> "RunDiagnostics":
        """Diagnostics known once the weight table exists."""
        failed = set(table.failed_targets)
        return cls(
            n_targets=len(table.target_ids),
            targets_without_overlap=[
                tid for tid in table.unweightable_targets() if tid not in failed
            ],
            targets_failed=list(table.failed_targets),
            degenerate_weights=len(table.degenerate),
        )

    def merge(self, other: "RunDiagnostics") -> "RunDiagnostics":
        """Combine weighting diagnostics (self) with aggregation diagnostics (other)."""
        return RunDiagnostics(
            n_targets=max(self.n_targets, other.n_targets),
            targets_without_overlap=sorted(
                set(self.targets_without_overlap) | set(other.targets_without_overlap)
            ),
            targets_failed=sorted(set(self.targets_failed) | set(other.targets_failed)),
            degenerate_weights=self.degenerate_weights + other.degenerate_weights,
            unmatched_weight_sources=sorted(
                set(self.unmatched_weight_sources) | set(other.unmatched_weight_sources)
            ),
            dropped_weight_rows=self.dropped_weight_rows + other.dropped_weight_rows,
            unmatched_attribute_sources=max(self.unmatched_attribute_sources,
                                            other.unmatched_attribute_sources),
            unmatched_metadata_targets=sorted(
                set(self.unmatched_metadata_targets) | set(other.unmatched_metadata_targets)
            ),
            skipped_variables={**self.skipped_variables, **other.skipped_variables},
            targets_with_data={**self.targets_with_data, **other.targets_with_data},
        )

    def targets_without_data(self) -> Dict[str, int]:
        """Variable name -> targets whose value is null."""
        return {
            name: self.n_targets - count for name, count in self.targets_with_data.items()
        }

    def summary(self) -> Dict[str, Any]:
        """Counts for reporting alongside the output table."""
        return {
            "n_targets": self.n_targets,
            "n_targets_without_overlap": len(self.targets_without_overlap),
            "n_targets_failed": len(self.targets_failed),
            "n_degenerate_weights": self.degenerate_weights,
            "n_unmatched_weight_sources": len(self.unmatched_weight_sources),
            "n_dropped_weight_rows": self.dropped_weight_rows,
            "n_unmatched_attribute_sources": self.unmatched_attribute_sources,
            "n_unmatched_metadata_targets": len(self.unmatched_metadata_targets),
            "n_skipped_variables": len(self.skipped_variables),
            "skipped_variables": sorted(self.skipped_variables),
            "targets_without_data": self.targets_without_data(),
        }

    def log_summary(self) -> None:
        """Log the run summary, one line per variable."""
        summary = self.summary()
        logger.info("Run summary", **{k: v for k, v in summary.items()
                                      if k not in ("targets_without_data", "skipped_variables")})
        for name, count in self.targets_with_data.items():
            logger.info(f"{name}: {count}/{self.n_targets} leveed areas have data")
        for name, reason in self.skipped_variables.items():
            logger.warning("Variable skipped", variable=name, reason=reason)
