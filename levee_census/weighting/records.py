"""Weight records and the weight table produced by the overlay."""

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd

from ..config.constants import GEOID_LENGTH, WEIGHT_COLUMNS
from ..data.loaders import normalize_geoid


@dataclass(frozen=True)
class WeightRecord:
    """Overlap between one target region and one source region.

    Attributes:
        target_id: Target (leveed area) identifier
        source_id: Source (tract) identifier; None when the target has no overlap
        intersection_area: Area of target ∩ source in the working CRS
        source_area: Area of the whole source region
        weight_for_average: intersection_area / sum of the target's intersection areas
        weight_for_total: intersection_area / source_area
        has_intersection: False for the single placeholder record of a target
            with no overlapping source (or whose overlay failed)
    """

    target_id: str
    source_id: Optional[str]
    intersection_area: float
    source_area: float
    weight_for_average: float
    weight_for_total: float
    has_intersection: bool

    @classmethod
    def no_intersection(cls, target_id: str) -> "WeightRecord":
        """Placeholder record for a target that cannot be weighted."""
        return cls(
            target_id=target_id,
            source_id=None,
            intersection_area=np.nan,
            source_area=np.nan,
            weight_for_average=np.nan,
            weight_for_total=np.nan,
            has_intersection=False,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def empty_weight_frame() -> pd.DataFrame:
    """A zero-row weight table with the canonical dtypes."""
    return pd.DataFrame({
        "target_id": pd.Series(dtype=object),
        "source_id": pd.Series(dtype=object),
        "intersection_area": pd.Series(dtype=float),
        "source_area": pd.Series(dtype=float),
        "weight_for_average": pd.Series(dtype=float),
        "weight_for_total": pd.Series(dtype=float),
        "has_intersection": pd.Series(dtype=bool),
    })


def no_intersection_frame(target_ids: List[str]) -> pd.DataFrame:
    """Placeholder rows, one per target id."""
    n = len(target_ids)
    return pd.DataFrame({
        "target_id": pd.Series(list(target_ids), dtype=object),
        "source_id": pd.Series([None] * n, dtype=object),
        "intersection_area": np.full(n, np.nan),
        "source_area": np.full(n, np.nan),
        "weight_for_average": np.full(n, np.nan),
        "weight_for_total": np.full(n, np.nan),
        "has_intersection": np.zeros(n, dtype=bool),
    })


def sort_weight_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Canonical row order, so results do not depend on worker scheduling."""
    return (
        frame[WEIGHT_COLUMNS]
        .sort_values(["target_id", "source_id"], kind="mergesort", na_position="first")
        .reset_index(drop=True)
    )


@dataclass
class WeightTable:
    """Flat weight table keyed by (target_id, source_id) with run bookkeeping.

    Attributes:
        data: One row per overlapping (target, source) pair, plus one
            placeholder row per target without overlap
        failed_targets: Targets whose overlay raised a geometry error
        degenerate: Rows whose weight_for_total fell outside [0, 1]
    """

    data: pd.DataFrame
    failed_targets: List[str] = field(default_factory=list)
    degenerate: pd.DataFrame = field(default_factory=empty_weight_frame)

    def __post_init__(self):
        _check_columns(self.data)

    @classmethod
    def from_records(cls, records: List[WeightRecord]) -> "WeightTable":
        if not records:
            return cls(empty_weight_frame())
        frame = pd.DataFrame([r.to_dict() for r in records], columns=WEIGHT_COLUMNS)
        frame["has_intersection"] = frame["has_intersection"].astype(bool)
        frame["target_id"] = frame["target_id"].astype(str)
        return cls(sort_weight_frame(frame))

    @classmethod
    def from_dataframe(cls, frame: pd.DataFrame,
                       id_width: int = GEOID_LENGTH) -> "WeightTable":
        """Wrap a weight table read back from disk.

        ``has_intersection`` may arrive as text ("TRUE"/"FALSE") and source
        ids as integers that lost their leading zero.
        """
        _check_columns(frame)
        frame = frame.copy()
        flags = frame["has_intersection"]
        if not pd.api.types.is_bool_dtype(flags):
            flags = flags.astype(str).str.upper().map(
                {"TRUE": True, "FALSE": False, "1": True, "0": False}
            )
        frame["has_intersection"] = flags.astype(bool)
        frame["target_id"] = frame["target_id"].astype(str)
        if pd.api.types.is_numeric_dtype(frame["source_id"]):
            frame["source_id"] = normalize_geoid(frame["source_id"], width=id_width)
        return cls(sort_weight_frame(frame))

    def __len__(self) -> int:
        return len(self.data)

    @property
    def target_ids(self) -> List[str]:
        return self.data["target_id"].drop_duplicates().tolist()

    def intersecting(self) -> pd.DataFrame:
        """Rows with an actual overlap."""
        return self.data[self.data["has_intersection"]]

    def unweightable_targets(self) -> List[str]:
        """Targets with no overlapping source region (including failures)."""
        return self.data.loc[~self.data["has_intersection"], "target_id"].tolist()

    def records(self) -> List[WeightRecord]:
        return [
            WeightRecord(**{
                **row,
                "source_id": None if pd.isna(row["source_id"]) else row["source_id"],
                "has_intersection": bool(row["has_intersection"]),
            })
            for row in self.data[WEIGHT_COLUMNS].to_dict("records")
        ]

    def to_dataframe(self) -> pd.DataFrame:
        return self.data.copy()


def _check_columns(frame: pd.DataFrame) -> None:
    missing = set(WEIGHT_COLUMNS) - set(frame.columns)
    if missing:
        raise ValueError(f"Weight table missing required columns: {sorted(missing)}")
