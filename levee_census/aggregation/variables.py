"""Variable declarations for aggregation."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union
import math


class AggregationClass(Enum):
    """How a tract variable is carried over to a leveed area."""
    AVERAGE = "average"  # Rates, medians: weighted mean over tracts with data
    TOTAL = "total"      # Counts: proportional areal apportionment

    @classmethod
    def coerce(cls, value: Union[str, "AggregationClass"]) -> "AggregationClass":
        """Accept an enum member or its (case-insensitive) name or value."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if key in (member.value, member.name.lower()):
                    return member
        raise ValueError(f"Unknown aggregation class: {value!r}")


@dataclass(frozen=True)
class VariableSpec:
    """A tract variable to aggregate.

    Attributes:
        name: Output column prefix (e.g. "TotalPopulation")
        estimate_column: Attribute-table column with the estimate (e.g. "Pop")
        moe_column: Attribute-table column with its 90% MOE (e.g. "Pop_moe")
        aggregation_class: AVERAGE or TOTAL
    """

    name: str
    estimate_column: str
    moe_column: str
    aggregation_class: AggregationClass

    def __post_init__(self):
        if not self.name:
            raise ValueError("Variable name cannot be empty")
        object.__setattr__(self, "aggregation_class",
                           AggregationClass.coerce(self.aggregation_class))

    @classmethod
    def from_dict(cls, name: str, data: Mapping[str, Any]) -> "VariableSpec":
        """Build from a manifest entry such as
        ``{"var": "Pop", "moe": "Pop_moe", "type": "total"}``.

        ``moe`` defaults to ``<var>_moe``.
        """
        estimate = data.get("var", data.get("estimate_column"))
        if estimate is None:
            raise ValueError(f"Variable {name}: no estimate column given")
        moe = data.get("moe", data.get("moe_column", f"{estimate}_moe"))
        klass = data.get("type", data.get("aggregation_class"))
        if klass is None:
            raise ValueError(f"Variable {name}: no aggregation class given")
        return cls(name=name, estimate_column=estimate, moe_column=moe, aggregation_class=klass)

    def output_column(self, suffix: str) -> str:
        return f"{self.name}_{suffix}"


def parse_variables(manifest: Union[Mapping[str, Mapping[str, Any]], List[VariableSpec]]
                    ) -> List[VariableSpec]:
    """Normalize a manifest (dict of entries or list of specs) to VariableSpecs.

    Raises:
        ValueError: on duplicate variable names
    """
    if isinstance(manifest, Mapping):
        variables = [VariableSpec.from_dict(name, entry) for name, entry in manifest.items()]
    else:
        variables = list(manifest)

    seen = set()
    for variable in variables:
        if variable.name in seen:
            raise ValueError(f"Duplicate variable name: {variable.name}")
        seen.add(variable.name)
    return variables


@dataclass(frozen=True)
class AggregatedAttribute:
    """One variable's result for one target region."""

    weighted_value: float
    weighted_moe: float
    coefficient_of_variation: float
    n_source_regions_with_data: Optional[int]
    total_weight_used: float

    @property
    def has_data(self) -> bool:
        return not math.isnan(self.weighted_value)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weighted_value": self.weighted_value,
            "weighted_moe": self.weighted_moe,
            "coefficient_of_variation": self.coefficient_of_variation,
            "n_source_regions_with_data": self.n_source_regions_with_data,
            "total_weight_used": self.total_weight_used,
        }
