"""
Helpers that sit around the aggregators.

These shape classifier output into the long quasi-observation table the
aggregators consume, and reshape their results for downstream reports
(group averages, empirical overlays).
"""

from typing import List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .exceptions import ContractViolationError, SchemaError


def hazard_frame_from_matrix(
    hazard: np.ndarray,
    ids: Optional[Sequence] = None,
    id_col: str = "id",
    index_col: str = "timeIndex",
    hazard_col: str = "hazard",
    covariates: Optional[pd.DataFrame] = None,
) -> pd.DataFrame:
    """
    Long-format quasi observations from a hazard matrix.

    Args:
        hazard: (n_subjects, n_steps) hazards, e.g. the output of a
            discrete-time model's predict_hazard
        ids: Subject ids, one per row of hazard (default 0..n_subjects-1)
        id_col, index_col, hazard_col: Output column names
        covariates: Optional frame with one row per subject, repeated on
            every step of that subject

    Returns:
        DataFrame with n_subjects * n_steps rows, time steps numbered 1..n_steps
    """
    hazard = np.asarray(hazard, dtype=float)
    if hazard.ndim != 2:
        raise ContractViolationError(
            f"hazard_frame_from_matrix expects a 2D hazard matrix, got shape {hazard.shape}"
        )
    n_samples, n_steps = hazard.shape
    if ids is None:
        ids = np.arange(n_samples)
    ids = np.asarray(ids)
    if len(ids) != n_samples:
        raise ContractViolationError(
            f"hazard_frame_from_matrix got {len(ids)} ids for {n_samples} subjects"
        )

    d = pd.DataFrame(
        {
            id_col: np.repeat(ids, n_steps),
            index_col: np.tile(np.arange(1, n_steps + 1), n_samples),
            hazard_col: hazard.ravel(),
        }
    )
    if covariates is not None:
        if len(covariates) != n_samples:
            raise ContractViolationError(
                f"hazard_frame_from_matrix got {len(covariates)} covariate rows "
                f"for {n_samples} subjects"
            )
        repeated = covariates.iloc[np.repeat(np.arange(n_samples), n_steps)]
        d = pd.concat([d, repeated.reset_index(drop=True)], axis=1)
    return d


def average_by_group(
    details: pd.DataFrame,
    group_col: str,
    index_col: str,
    value_cols: Union[str, List[str]] = "survival",
) -> pd.DataFrame:
    """Mean of the per-step curve columns for every (group, step) pair."""
    if isinstance(value_cols, str):
        value_cols = [value_cols]
    missing = [c for c in [group_col, index_col] + list(value_cols) if c not in details.columns]
    if missing:
        raise SchemaError(f"average_by_group must have columns {missing} in data frame")
    return (
        details.groupby([group_col, index_col])[list(value_cols)]
        .mean()
        .reset_index()
    )


def overlay_empirical(
    modeled: pd.DataFrame,
    empirical: pd.DataFrame,
    group_col: str,
    age_col: str,
    survival_col: str = "survival",
    empirical_col: str = "empirical_survival",
) -> pd.DataFrame:
    """
    Attach empirical survival points to modeled curves.

    ``modeled`` is keyed by (group_col, age_col), e.g. the output of
    average_by_group with the time step used as age; ``empirical`` is the
    output of summarize_ages_by_group. Rows of ``modeled`` without an
    empirical point get NaN.
    """
    for name, frame in (("modeled", modeled), ("empirical", empirical)):
        missing = [c for c in (group_col, age_col) if c not in frame.columns]
        if missing:
            raise SchemaError(f"overlay_empirical {name} must have columns {missing}")
    if survival_col not in empirical.columns:
        raise SchemaError(f"overlay_empirical empirical must have column '{survival_col}'")

    points = empirical[[group_col, age_col, survival_col]].rename(
        columns={survival_col: empirical_col}
    )
    return modeled.merge(points, on=[group_col, age_col], how="left")
