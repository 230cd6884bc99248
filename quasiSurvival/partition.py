"""
Partition-and-reduce helpers.

Rows are split into disjoint partitions with a single linear pass over the
key column, and a worker is mapped over the partitions either sequentially
or with joblib. Results always come back in partition order.
"""

from typing import Any, Callable, Dict, Hashable, Iterable, List, Optional

import pandas as pd
from joblib import Parallel, delayed


def partition_positions(keys: Iterable[Hashable]) -> Dict[Hashable, List[int]]:
    """
    Map each distinct key to the row positions holding it.

    Keys appear in order of first occurrence and positions keep their
    original (stable) order inside each partition.
    """
    partitions: Dict[Hashable, List[int]] = {}
    for position, key in enumerate(keys):
        partitions.setdefault(key, []).append(position)
    return partitions


def split_frame(d: pd.DataFrame, key_col: str) -> List[pd.DataFrame]:
    """Split ``d`` into one frame per distinct value of ``key_col``."""
    partitions = partition_positions(d[key_col].tolist())
    return [d.iloc[positions] for positions in partitions.values()]


def map_partitions(
    worker: Callable[..., Any],
    partitions: List[Any],
    n_jobs: int = 1,
    backend: Optional[str] = None,
) -> List[Any]:
    """
    Apply ``worker`` to every partition and gather all results.

    Parameters
    ----------
    worker : callable
        Pure function of one partition. Must be picklable for process
        based backends (module level function or functools.partial).
    partitions : list
        Inputs, one per task.
    n_jobs : int, default=1
        1 runs a plain loop; anything else is handed to joblib.Parallel
        (-1 uses all cores).
    backend : str, optional
        joblib backend, e.g. 'threading' or 'loky'.

    Returns
    -------
    results : list
        One result per partition, in partition order.
    """
    if n_jobs == 1:
        return [worker(partition) for partition in partitions]

    # Parallel returns only once every task has finished
    return Parallel(n_jobs=n_jobs, backend=backend)(
        delayed(worker)(partition) for partition in partitions
    )
