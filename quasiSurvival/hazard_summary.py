"""
Hazard Aggregation

Turns per-step hazard predictions (one row per subject and time step, the
"quasi observations" a discrete-time classifier is scored on) back into
survival curves, death intensities and expected lifetimes.

For a subject with ordered hazards h_1..h_k:
- survival      s_i = prod_{j<=i} (1 - h_j)
- intensity     s_{i-1} - s_i, with s_0 = 1
- lifetime      sum_i s_i + s_k / h_k   (geometric tail past the window)
"""

from functools import partial
from typing import Dict, List, NamedTuple, Optional, Sequence, Union

import numpy as np
import pandas as pd
from sklearn.base import BaseEstimator

from .exceptions import ContractViolationError, SchemaError, StructuralError
from .partition import map_partitions, split_frame

ColumnNames = Union[str, Sequence[str]]


class HazardSummary(NamedTuple):
    """Result of summarize_hazard."""

    details: pd.DataFrame
    expected_lifetime: pd.DataFrame


def survival_from_hazard(hazard) -> np.ndarray:
    """
    Survival probabilities via the product-limit formula.

    Parameters
    ----------
    hazard : array-like
        Hazards of shape (n_steps,) or (n_subjects, n_steps).

    Returns
    -------
    survival : np.ndarray
        Same shape; survival[..., i] = prod_{j<=i} (1 - hazard[..., j])
    """
    hazard = np.asarray(hazard, dtype=float)
    # Clamp again even though callers validate hazards into [0, 1]
    return np.cumprod(np.maximum(0.0, 1.0 - np.minimum(1.0, hazard)), axis=-1)


def death_intensity_from_survival(survival) -> np.ndarray:
    """Probability mass of the event at each step: s_{i-1} - s_i."""
    survival = np.asarray(survival, dtype=float)
    before = np.concatenate(
        [np.ones(survival.shape[:-1] + (1,)), survival[..., :-1]], axis=-1
    )
    return before - survival


def expected_lifetime_from_hazard(hazard, survival=None):
    """
    Expected lifetime: survival summed over the window plus a tail term.

    Time past the window is modelled as geometric with the last observed
    hazard and contributes s_k / h_k (nothing when h_k == 0). Note the
    mean residual of that geometric tail is s_k * (1/h_k - 1); the
    s_k / h_k form is kept as is for compatibility with existing results.

    Parameters
    ----------
    hazard : array-like
        Hazards of shape (n_steps,) or (n_subjects, n_steps).
    survival : array-like, optional
        Precomputed survival_from_hazard(hazard).

    Returns
    -------
    lifetime : float or np.ndarray
        Scalar for a single subject, (n_subjects,) otherwise.
    """
    hazard = np.asarray(hazard, dtype=float)
    if hazard.ndim == 0 or hazard.shape[-1] == 0:
        raise ValueError("expected_lifetime_from_hazard needs at least one time step")
    if survival is None:
        survival = survival_from_hazard(hazard)
    survival = np.asarray(survival, dtype=float)

    last_hazard = hazard[..., -1]
    last_survival = survival[..., -1]
    tail = np.divide(
        last_survival,
        last_hazard,
        out=np.zeros_like(last_survival),
        where=last_hazard > 0,
    )
    lifetime = survival.sum(axis=-1) + tail
    if np.ndim(lifetime) == 0:
        return float(lifetime)
    return lifetime


def _as_list(columns: Optional[ColumnNames]) -> Optional[List[str]]:
    if columns is None:
        return None
    if isinstance(columns, str):
        return [columns]
    return list(columns)


def _check_hazard_frame(
    d,
    id_col: str,
    index_col: str,
    hazard_cols: List[str],
    survival_cols: List[str],
    death_intensity_cols: Optional[List[str]],
) -> None:
    """Whole-table checks, run once before any partitioning."""
    if not isinstance(d, pd.DataFrame):
        raise SchemaError(
            f"summarize_hazard d must be a pandas DataFrame, got {type(d).__name__}"
        )
    if d.shape[0] == 0:
        raise SchemaError("summarize_hazard d must have at least one row")
    if id_col not in d.columns:
        raise SchemaError(f"summarize_hazard must have id column '{id_col}' in data frame")
    if index_col not in d.columns:
        raise SchemaError(
            f"summarize_hazard must have index column '{index_col}' in data frame"
        )
    missing = [c for c in hazard_cols if c not in d.columns]
    if missing:
        raise SchemaError(f"summarize_hazard must have hazard columns {missing} in data frame")
    if not pd.api.types.is_numeric_dtype(d[index_col]):
        raise SchemaError(f"summarize_hazard index column '{index_col}' must be numeric")

    if not hazard_cols:
        raise ContractViolationError("summarize_hazard needs at least one hazard column")
    if len(hazard_cols) != len(survival_cols):
        raise ContractViolationError(
            "summarize_hazard must have len(hazard_cols) == len(survival_cols) "
            f"({len(hazard_cols)} != {len(survival_cols)})"
        )
    if death_intensity_cols is not None and len(hazard_cols) != len(death_intensity_cols):
        raise ContractViolationError(
            "summarize_hazard must have len(hazard_cols) == len(death_intensity_cols) "
            f"({len(hazard_cols)} != {len(death_intensity_cols)})"
        )
    if d[id_col].isna().any():
        raise ContractViolationError(f"summarize_hazard id column '{id_col}' can not contain NA")

    for col in hazard_cols:
        if not pd.api.types.is_numeric_dtype(d[col]):
            raise ContractViolationError(f"summarize_hazard hazard column '{col}' must be numeric")
    if d[hazard_cols].isna().any().any():
        raise ContractViolationError("summarize_hazard can not have NA in hazard")
    hazard = d[hazard_cols].to_numpy(dtype=float)
    if hazard.min() < 0:
        raise ContractViolationError("summarize_hazard must have non-negative hazard")
    if hazard.max() > 1:
        raise ContractViolationError("summarize_hazard must have hazard <= 1")


def _summarize_subject(
    di: pd.DataFrame,
    id_col: str,
    index_col: str,
    hazard_cols: List[str],
    survival_cols: List[str],
    death_intensity_cols: Optional[List[str]],
) -> pd.DataFrame:
    """Order one subject's rows by time step and append its curves."""
    steps = di[index_col].to_numpy(dtype=float)
    k = len(steps)
    if not np.array_equal(np.sort(steps), np.arange(1, k + 1)):
        raise StructuralError(
            "summarize_hazard time steps must be 1:k intervals "
            f"(subject {di[id_col].iloc[0]!r} has steps {sorted(steps.tolist())})"
        )

    di = di.iloc[np.argsort(steps, kind="stable")].copy()
    for j, (hcn, scn) in enumerate(zip(hazard_cols, survival_cols)):
        survival = survival_from_hazard(di[hcn].to_numpy(dtype=float))
        di[scn] = survival
        if death_intensity_cols is not None:
            di[death_intensity_cols[j]] = death_intensity_from_survival(survival)
    return di


def _lifetime_row(
    di: pd.DataFrame, id_col: str, hazard_cols: List[str], survival_cols: List[str]
) -> Dict:
    row = {id_col: di[id_col].iloc[0]}
    for hcn, scn in zip(hazard_cols, survival_cols):
        row[scn] = expected_lifetime_from_hazard(
            di[hcn].to_numpy(dtype=float), di[scn].to_numpy(dtype=float)
        )
    return row


def summarize_hazard(
    d: pd.DataFrame,
    id_col: str,
    index_col: str,
    hazard_cols: ColumnNames,
    survival_cols: ColumnNames = "survival",
    death_intensity_cols: Optional[ColumnNames] = None,
    n_jobs: int = 1,
    backend: Optional[str] = None,
    verbose: bool = False,
) -> HazardSummary:
    """
    Convert hazards to survival curves, death intensities and lifetimes.

    Rows are grouped by ``id_col``; within a subject the ``index_col``
    values must be exactly 1..k. Subjects are independent, so they can be
    processed in parallel with ``n_jobs``.

    Parameters
    ----------
    d : pd.DataFrame
        Quasi observations: id, time step, hazard column(s), any covariates.
    id_col : str
        Column holding the original subject ids.
    index_col : str
        Column holding the time step (1..k per subject).
    hazard_cols : str or list of str
        Column(s) holding hazard predictions in [0, 1].
    survival_cols : str or list of str, default='survival'
        Output column(s) for survival, one per hazard column. Also used to
        name the expected lifetime columns.
    death_intensity_cols : str or list of str, optional
        Output column(s) for death intensity, one per hazard column.
    n_jobs : int, default=1
        Number of joblib workers; 1 runs sequentially.
    backend : str, optional
        joblib backend used when n_jobs != 1.
    verbose : bool, default=False
        Print progress information.

    Returns
    -------
    summary : HazardSummary
        details: every input row ordered by time step within subject, with
        the survival (and intensity) columns appended.
        expected_lifetime: one row per subject, id column plus one lifetime
        column per survival column.

    Raises
    ------
    SchemaError, ContractViolationError
        Bad input, detected before any per-subject work.
    StructuralError
        A subject's time steps are not 1..k.
    """
    hazard_cols = _as_list(hazard_cols)
    survival_cols = _as_list(survival_cols)
    death_intensity_cols = _as_list(death_intensity_cols)
    _check_hazard_frame(d, id_col, index_col, hazard_cols, survival_cols, death_intensity_cols)

    partitions = split_frame(d, id_col)
    if verbose:
        mode = "sequential" if n_jobs == 1 else f"n_jobs={n_jobs}"
        print(f"Summarizing hazard ({mode})...")
        print(f"  - Rows: {len(d)}, Subjects: {len(partitions)}")
        print(f"  - Hazard columns: {hazard_cols}")

    worker = partial(
        _summarize_subject,
        id_col=id_col,
        index_col=index_col,
        hazard_cols=hazard_cols,
        survival_cols=survival_cols,
        death_intensity_cols=death_intensity_cols,
    )
    subjects = map_partitions(worker, partitions, n_jobs=n_jobs, backend=backend)

    details = pd.concat(subjects, ignore_index=True)
    expected_lifetime = pd.DataFrame(
        [_lifetime_row(di, id_col, hazard_cols, survival_cols) for di in subjects],
        columns=[id_col] + survival_cols,
    )

    if verbose:
        print("  - Done!")
    return HazardSummary(details=details, expected_lifetime=expected_lifetime)


class HazardSummarizer(BaseEstimator):
    """
    Estimator-style wrapper around summarize_hazard.

    Parameters
    ----------
    id_col : str, default='id'
        Subject id column
    index_col : str, default='timeIndex'
        Time step column
    hazard_cols : str or list of str, default='hazard'
        Hazard prediction column(s)
    survival_cols : str or list of str, default='survival'
        Output survival column(s)
    death_intensity_cols : str or list of str, optional
        Output death intensity column(s)
    n_jobs : int, default=1
        joblib workers
    backend : str, optional
        joblib backend used when n_jobs != 1
    verbose : bool, default=False
        Print progress information

    Attributes
    ----------
    details_ : pd.DataFrame
        Per-step survival table from the last fit
    expected_lifetime_ : pd.DataFrame
        Per-subject expected lifetimes from the last fit
    """

    def __init__(
        self,
        id_col: str = "id",
        index_col: str = "timeIndex",
        hazard_cols: ColumnNames = "hazard",
        survival_cols: ColumnNames = "survival",
        death_intensity_cols: Optional[ColumnNames] = None,
        n_jobs: int = 1,
        backend: Optional[str] = None,
        verbose: bool = False,
    ):
        self.id_col = id_col
        self.index_col = index_col
        self.hazard_cols = hazard_cols
        self.survival_cols = survival_cols
        self.death_intensity_cols = death_intensity_cols
        self.n_jobs = n_jobs
        self.backend = backend
        self.verbose = verbose

        # Fitted attributes
        self.details_ = None
        self.expected_lifetime_ = None

    def summarize(self, d: pd.DataFrame) -> HazardSummary:
        return summarize_hazard(
            d,
            self.id_col,
            self.index_col,
            self.hazard_cols,
            survival_cols=self.survival_cols,
            death_intensity_cols=self.death_intensity_cols,
            n_jobs=self.n_jobs,
            backend=self.backend,
            verbose=self.verbose,
        )

    def fit(self, d: pd.DataFrame, y=None) -> "HazardSummarizer":
        summary = self.summarize(d)
        self.details_ = summary.details
        self.expected_lifetime_ = summary.expected_lifetime
        return self
