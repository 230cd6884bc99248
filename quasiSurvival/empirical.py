"""
Empirical survival curves from fully observed ages.

Every age is read as the end of life, so these helpers must NOT be used
on censored data (use a Kaplan-Meier estimate there).
"""

from functools import partial
from typing import Optional

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator

from .exceptions import ContractViolationError, SchemaError
from .partition import map_partitions, split_frame


def summarize_ages(ages, age_range: int) -> pd.DataFrame:
    """
    Fraction of subjects still alive after each integer age.

    Parameters
    ----------
    ages : array-like
        Non-negative integer-valued ages (uncensored).
    age_range : int
        Positive upper bound of the output domain, at least max(ages).

    Returns
    -------
    curve : pd.DataFrame
        age_range + 1 rows with columns 'age' (0..age_range) and
        'survival' (fraction of ages > age).
    """
    ages = np.asarray(ages, dtype=float).ravel()
    if ages.size == 0:
        raise ContractViolationError("summarize_ages needs at least one age")
    if np.isnan(ages).any():
        raise ContractViolationError("summarize_ages can not have NA in ages")
    if ages.min() < 0:
        raise ContractViolationError("summarize_ages ages must be non-negative")
    if not np.array_equal(ages, np.floor(ages)):
        raise ContractViolationError("summarize_ages ages must be integer valued")
    if age_range <= 0:
        raise ContractViolationError("summarize_ages range must be positive")
    if age_range != int(age_range):
        raise ContractViolationError("summarize_ages range must be an integer")
    age_range = int(age_range)
    if ages.max() > age_range:
        raise ContractViolationError(
            f"summarize_ages ages must not exceed range ({ages.max():g} > {age_range})"
        )

    counts = np.bincount(ages.astype(int), minlength=age_range + 1)
    total = counts.sum()
    return pd.DataFrame(
        {
            "age": np.arange(age_range + 1),
            "survival": (total - np.cumsum(counts)) / total,
        }
    )


def _summarize_group(
    di: pd.DataFrame, group_col: str, age_col: str, age_range: int
) -> pd.DataFrame:
    curve = summarize_ages(di[age_col].to_numpy(dtype=float, na_value=np.nan), age_range)
    curve.columns = [age_col, "survival"]
    curve.insert(0, group_col, di[group_col].iloc[0])
    return curve


def summarize_ages_by_group(
    d: pd.DataFrame,
    group_col: str,
    age_col: str,
    n_jobs: int = 1,
    backend: Optional[str] = None,
    verbose: bool = False,
) -> pd.DataFrame:
    """
    Empirical survival curve per group, all on a shared age domain.

    The range is the largest age in the whole frame, so curves of
    different groups line up row for row and can be joined on age.
    A frame whose ages are all 0 has no positive range and is rejected.

    Parameters
    ----------
    d : pd.DataFrame
        One row per subject.
    group_col : str
        Grouping column.
    age_col : str
        Age column (non-negative integers, uncensored).
    n_jobs : int, default=1
        Number of joblib workers; 1 runs sequentially.
    backend : str, optional
        joblib backend used when n_jobs != 1.
    verbose : bool, default=False
        Print progress information.

    Returns
    -------
    curves : pd.DataFrame
        Columns group_col, age_col, 'survival'; groups in order of first
        appearance, ages ascending within each group.
    """
    if not isinstance(d, pd.DataFrame):
        raise SchemaError(
            f"summarize_ages_by_group d must be a pandas DataFrame, got {type(d).__name__}"
        )
    if d.shape[0] == 0:
        raise SchemaError("summarize_ages_by_group d must have at least one row")
    if group_col not in d.columns:
        raise SchemaError(
            f"summarize_ages_by_group must have group column '{group_col}' in data frame"
        )
    if age_col not in d.columns:
        raise SchemaError(
            f"summarize_ages_by_group must have age column '{age_col}' in data frame"
        )
    if not pd.api.types.is_numeric_dtype(d[age_col]):
        raise SchemaError(f"summarize_ages_by_group age column '{age_col}' must be numeric")
    if d[group_col].isna().any():
        raise ContractViolationError(
            f"summarize_ages_by_group group column '{group_col}' can not contain NA"
        )

    age_range = d[age_col].max()
    if age_range <= 0:
        raise ContractViolationError(
            "summarize_ages_by_group range is the largest age in the frame and must be "
            f"positive (largest '{age_col}' is {age_range})"
        )
    partitions = split_frame(d, group_col)
    if verbose:
        print(f"Summarizing ages for {len(partitions)} groups, range 0..{age_range}")

    worker = partial(_summarize_group, group_col=group_col, age_col=age_col, age_range=age_range)
    curves = map_partitions(worker, partitions, n_jobs=n_jobs, backend=backend)
    return pd.concat(curves, ignore_index=True)


class EmpiricalSurvival(BaseEstimator):
    """
    Estimator-style wrapper around summarize_ages_by_group.

    Attributes
    ----------
    curves_ : pd.DataFrame
        Per-group survival curves
    age_range_ : int
        Shared upper bound of the age domain
    """

    def __init__(
        self,
        group_col: str = "group",
        age_col: str = "age",
        n_jobs: int = 1,
        backend: Optional[str] = None,
        verbose: bool = False,
    ):
        self.group_col = group_col
        self.age_col = age_col
        self.n_jobs = n_jobs
        self.backend = backend
        self.verbose = verbose

        self.curves_ = None
        self.age_range_ = None

    def fit(self, d: pd.DataFrame, y=None) -> "EmpiricalSurvival":
        self.curves_ = summarize_ages_by_group(
            d,
            self.group_col,
            self.age_col,
            n_jobs=self.n_jobs,
            backend=self.backend,
            verbose=self.verbose,
        )
        self.age_range_ = int(self.curves_[self.age_col].max())
        return self
