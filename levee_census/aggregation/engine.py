"""Apply area weights to tract attributes, producing one row per leveed area."""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union
import warnings

import geopandas as gpd
import pandas as pd

from ..config import Settings, get_default_settings
from ..config.constants import OUTPUT_SUFFIXES, TARGET_METADATA_COLUMNS
from ..utils.exceptions import DataValidationError, JoinMismatchWarning, MissingVariableError
from ..utils.logging import get_logger
from ..validation.diagnostics import RunDiagnostics
from ..weighting.records import WeightRecord, WeightTable
from .strategies import get_strategy
from .uncertainty import coefficient_of_variation
from .variables import AggregatedAttribute, VariableSpec, parse_variables

logger = get_logger(__name__)

WeightInput = Union[WeightTable, pd.DataFrame, Sequence[WeightRecord]]


@dataclass
class AggregationResult:
    """Aggregated attribute table with the diagnostics of the run.

    Attributes:
        table: One row per target: metadata columns followed by
            ``<var>_weighted_value``, ``<var>_weighted_moe``, ``<var>_CV``,
            ``<var>_n_tracts_with_data`` and ``<var>_total_weight`` per variable
        diagnostics: Join mismatches, skipped variables and coverage counts
        variables: Variables actually aggregated (skipped ones excluded)
    """

    table: pd.DataFrame
    diagnostics: RunDiagnostics
    variables: List[VariableSpec] = field(default_factory=list)

    def attribute(self, target_id: str, variable: str) -> AggregatedAttribute:
        """Result for one (target, variable) pair."""
        names = [v.name for v in self.variables]
        if variable not in names:
            raise KeyError(f"Variable {variable} was not aggregated")
        rows = self.table[self.table["target_id"] == str(target_id)]
        if rows.empty:
            raise KeyError(f"Target {target_id} not in result")
        row = rows.iloc[0]
        n = row[f"{variable}_n_tracts_with_data"]
        return AggregatedAttribute(
            weighted_value=float(row[f"{variable}_weighted_value"]),
            weighted_moe=float(row[f"{variable}_weighted_moe"]),
            coefficient_of_variation=float(row[f"{variable}_CV"]),
            n_source_regions_with_data=None if pd.isna(n) else int(n),
            total_weight_used=float(row[f"{variable}_total_weight"]),
        )


class AggregationEngine:
    """Weighted aggregation of tract variables to leveed areas."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_default_settings()

    def aggregate(self,
                  weights: WeightInput,
                  source_attributes: pd.DataFrame,
                  target_metadata: Optional[pd.DataFrame],
                  variables) -> AggregationResult:
        """Aggregate every declared variable for every target.

        Args:
            weights: Weight table from the WeightEngine, its WeightRecords, or a
                weight DataFrame (e.g. read back from CSV)
            source_attributes: Tract attributes with ``source_id`` and paired
                estimate / MOE columns, sentinels already replaced by NaN
            target_metadata: Target metadata with ``target_id`` (geometry is
                dropped); None uses the weight table's targets
            variables: VariableSpec list or manifest dict

        Returns:
            AggregationResult with one row per metadata target
        """
        variables = parse_variables(variables)
        weight_frame = _weight_table(weights).data
        metadata = _metadata_frame(target_metadata, weight_frame)
        attributes = _attribute_frame(source_attributes)

        diagnostics = RunDiagnostics(n_targets=len(metadata))
        joined = self._join(weight_frame, attributes, diagnostics)

        weighted_targets = set(weight_frame["target_id"])
        diagnostics.unmatched_metadata_targets = sorted(weighted_targets - set(metadata["target_id"]))
        if diagnostics.unmatched_metadata_targets:
            logger.warning("Weighted targets missing from metadata; not in output",
                           n_targets=len(diagnostics.unmatched_metadata_targets))

        blocks = []
        aggregated = []
        for variable in variables:
            try:
                block = self._aggregate_variable(joined, attributes, variable)
            except MissingVariableError as e:
                logger.warning("Skipping variable", variable=variable.name, error=str(e))
                diagnostics.skipped_variables[variable.name] = str(e)
                continue
            blocks.append(block)
            aggregated.append(variable)

        table = metadata
        if blocks:
            table = metadata.merge(pd.concat(blocks, axis=1), how="left",
                                   left_on="target_id", right_index=True)
        table = table.reset_index(drop=True)

        for variable in aggregated:
            count_column = variable.output_column("n_tracts_with_data")
            table[count_column] = table[count_column].astype("Int64")
            diagnostics.targets_with_data[variable.name] = int(
                table[variable.output_column("weighted_value")].notna().sum()
            )

        return AggregationResult(table=table, diagnostics=diagnostics, variables=aggregated)

    def _join(self, weights: pd.DataFrame, attributes: pd.DataFrame,
              diagnostics: RunDiagnostics) -> pd.DataFrame:
        """Inner-join overlapping weight rows to attributes, counting what falls out."""
        overlapping = weights[weights["has_intersection"]]

        attribute_ids = set(attributes["source_id"])
        unmatched = ~overlapping["source_id"].isin(attribute_ids)
        diagnostics.dropped_weight_rows = int(unmatched.sum())
        diagnostics.unmatched_weight_sources = sorted(
            overlapping.loc[unmatched, "source_id"].drop_duplicates()
        )
        diagnostics.unmatched_attribute_sources = len(
            attribute_ids - set(overlapping["source_id"])
        )

        if diagnostics.dropped_weight_rows:
            message = (
                f"{len(diagnostics.unmatched_weight_sources)} source regions in the weight "
                f"table have no attribute row; {diagnostics.dropped_weight_rows} weight rows "
                f"dropped"
            )
            logger.warning(message,
                           source_ids=diagnostics.unmatched_weight_sources[:20])
            warnings.warn(message, JoinMismatchWarning, stacklevel=3)

        joined = overlapping.merge(attributes, on="source_id", how="inner",
                                   suffixes=("", "_attribute"))
        logger.info("Joined weights to attributes",
                    n_rows=len(joined),
                    n_targets=joined["target_id"].nunique(),
                    n_sources=joined["source_id"].nunique())
        return joined

    def _aggregate_variable(self, joined: pd.DataFrame, attributes: pd.DataFrame,
                            variable: VariableSpec) -> pd.DataFrame:
        """Output columns for one variable, indexed by target_id."""
        missing = [c for c in (variable.estimate_column, variable.moe_column)
                   if c not in attributes.columns]
        if missing:
            raise MissingVariableError(variable.name, missing)

        strategy = get_strategy(variable.aggregation_class)
        summary = strategy.summarise(joined, variable)
        summary["CV"] = coefficient_of_variation(summary["weighted_value"],
                                                 summary["weighted_moe"],
                                                 z_score=self.settings.moe_z_score)

        n_missing = int(joined[variable.estimate_column].isna().sum())
        logger.info("Aggregated variable",
                    variable=variable.name,
                    aggregation_class=variable.aggregation_class.value,
                    missing_values=n_missing,
                    targets_with_data=int(summary["weighted_value"].notna().sum()))

        summary = summary[OUTPUT_SUFFIXES]
        summary.columns = [variable.output_column(suffix) for suffix in OUTPUT_SUFFIXES]
        return summary


def aggregate(weights: WeightInput,
              source_attributes: pd.DataFrame,
              target_metadata: Optional[pd.DataFrame],
              variables,
              settings: Optional[Settings] = None) -> AggregationResult:
    """Aggregate with a one-shot AggregationEngine."""
    return AggregationEngine(settings).aggregate(weights, source_attributes,
                                                 target_metadata, variables)


def _metadata_frame(target_metadata: Optional[pd.DataFrame],
                    weights: pd.DataFrame) -> pd.DataFrame:
    """One row per target with pass-through columns and no geometry."""
    if target_metadata is None:
        ids = weights["target_id"].astype(str).drop_duplicates().sort_values()
        return pd.DataFrame({"target_id": ids.to_numpy()})

    if "target_id" not in target_metadata.columns:
        raise DataValidationError("Target metadata must have a 'target_id' column")

    if isinstance(target_metadata, gpd.GeoDataFrame):
        target_metadata = pd.DataFrame(target_metadata.drop(columns=target_metadata.geometry.name))

    metadata = target_metadata.copy()
    metadata["target_id"] = metadata["target_id"].astype(str)
    duplicated = metadata["target_id"].duplicated()
    if duplicated.any():
        raise DataValidationError(
            f"Duplicate target_id values in metadata: "
            f"{metadata.loc[duplicated, 'target_id'].head(10).tolist()}"
        )

    ordered = [c for c in TARGET_METADATA_COLUMNS if c in metadata.columns]
    return metadata[ordered + [c for c in metadata.columns if c not in ordered]]


def _attribute_frame(source_attributes: pd.DataFrame) -> pd.DataFrame:
    if "source_id" not in source_attributes.columns:
        raise DataValidationError("Source attributes must have a 'source_id' column")
    duplicated = source_attributes["source_id"].duplicated()
    if duplicated.any():
        raise DataValidationError(
            f"Duplicate source_id values in attributes: "
            f"{source_attributes.loc[duplicated, 'source_id'].head(10).tolist()}"
        )
    return source_attributes


def _weight_table(weights: WeightInput) -> WeightTable:
    """Wrap weights in a WeightTable with string target ids."""
    if isinstance(weights, WeightTable):
        return weights
    if isinstance(weights, pd.DataFrame):
        return WeightTable.from_dataframe(weights)
    return WeightTable.from_records(list(weights))
