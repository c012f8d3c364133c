"""Reliability flags from coefficients of variation.

Kept apart from the aggregation engine: the engine reports CVs and the
threshold is a reporting choice.
"""

from typing import Iterable

import pandas as pd

from ..config.constants import CV_UNRELIABLE_THRESHOLD


def reliability_flags(table: pd.DataFrame,
                      variables: Iterable,
                      threshold: float = CV_UNRELIABLE_THRESHOLD) -> pd.DataFrame:
    """Add ``<var>_unreliable`` columns (CV above ``threshold``).

    A null CV gives a null flag rather than False.

    Args:
        table: Aggregated attribute table
        variables: VariableSpecs or variable names
        threshold: CV cut-off (0.4 per ACS guidance)

    Returns:
        Copy of ``table`` with one boolean (nullable) column per variable
    """
    table = table.copy()
    for variable in variables:
        name = getattr(variable, "name", variable)
        cv = table[f"{name}_CV"]
        flags = (cv > threshold).astype("boolean")
        table[f"{name}_unreliable"] = flags.mask(cv.isna())
    return table
