"""Coefficient of variation for survey estimates with 90% margins of error."""

from typing import Union

import numpy as np
import pandas as pd

from ..config.constants import MOE_Z_SCORE

ArrayLike = Union[float, np.ndarray, pd.Series]


def coefficient_of_variation(value: ArrayLike,
                             moe: ArrayLike,
                             z_score: float = MOE_Z_SCORE) -> ArrayLike:
    """CV = (MOE / z) / estimate.

    Edge cases, in order: a missing or non-positive estimate gives NaN (no
    meaningful relative precision); a non-positive MOE gives 0.

    Args:
        value: Estimate(s)
        moe: Margin(s) of error at the confidence level matching ``z_score``
        z_score: 1.645 for 90% MOEs

    Returns:
        Same shape as ``value`` (Series index preserved)
    """
    values = np.asarray(value, dtype=float)
    moes = np.asarray(moe, dtype=float)

    with np.errstate(divide="ignore", invalid="ignore"):
        cv = np.where(
            np.isnan(values) | (values <= 0),
            np.nan,
            np.where(moes <= 0, 0.0, (moes / z_score) / values),
        )

    if isinstance(value, pd.Series):
        return pd.Series(cv, index=value.index, name=value.name)
    if cv.ndim == 0:
        return float(cv)
    return cv
