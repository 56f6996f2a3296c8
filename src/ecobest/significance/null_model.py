"""
Constrained null model for the variable matrix.

Randomized copies keep the column totals and the data type of the input:

- ``method="samp"``: the values of each column are shuffled among the samples,
  independently per column. Column totals and the within-column value
  distribution are preserved; works for any non-negative data.
- ``method="ind"``: every column total is redistributed individual by
  individual among the samples with equal probability. Requires
  integer-valued counts.

With ``data_type="prab"`` the matrix is first reduced to presence/absence and
presences are shuffled within columns, which keeps column frequencies.
"""
from __future__ import annotations

from typing import List, Optional

import numpy as np
import pandas as pd

from ..config import DATA_TYPES, NULL_METHODS
from ..data_process.cleaning import as_frame, ensure_nonnegative
from ..exceptions import InvalidParameter

__all__ = ["permute"]


def _shuffle_within_columns(X: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    return rng.permuted(X, axis=0)


def _redistribute_individuals(X: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    n = X.shape[0]
    totals = X.sum(axis=0).astype(np.int64)
    probs = np.full(n, 1.0 / n)
    return np.column_stack([rng.multinomial(t, probs) for t in totals]).astype(float)


def permute(matrix, fixed_margin: str = "columns", data_type: str = "count",
            times: int = 1, method: str = "samp",
            rng: Optional[np.random.Generator] = None) -> List[pd.DataFrame]:
    """
    Produce ``times`` randomized copies of a non-negative matrix.

    Args:
        matrix: samples x variables, non-negative
        fixed_margin: margin kept fixed; only "columns" is supported
        data_type: "count" or "prab" (presence/absence)
        times: number of randomized matrices to return
        method: "samp" (shuffle values within columns) or "ind" (redistribute individuals)
        rng: numpy Generator; a fresh unseeded one when None

    Returns:
        list of DataFrames with the input's shape, index and column names
    """
    if fixed_margin != "columns":
        raise InvalidParameter(f"only fixed_margin='columns' is supported, got {fixed_margin!r}",
                               name="fixed_margin", value=fixed_margin)
    if data_type not in DATA_TYPES:
        raise InvalidParameter(f"data_type must be one of {DATA_TYPES}, got {data_type!r}",
                               name="data_type", value=data_type)
    if method not in NULL_METHODS:
        raise InvalidParameter(f"method must be one of {NULL_METHODS}, got {method!r}",
                               name="method", value=method)
    if isinstance(times, bool) or not isinstance(times, int) or times < 1:
        raise InvalidParameter(f"times must be a positive integer, got {times!r}", name="times", value=times)
    if rng is None:
        rng = np.random.default_rng()

    frame = ensure_nonnegative(as_frame(matrix))
    X = frame.to_numpy(dtype=float, copy=True)
    if data_type == "prab":
        X = (X > 0).astype(float)
    elif method == "ind" and not np.allclose(X, np.round(X)):
        raise InvalidParameter("method='ind' needs integer-valued counts; use method='samp'",
                               name="method", value=method)

    # presences shuffled within columns are already an individual-level null
    draw = _redistribute_individuals if (method == "ind" and data_type == "count") \
        else _shuffle_within_columns
    if draw is _redistribute_individuals:
        X = np.round(X)
    return [pd.DataFrame(draw(X, rng), index=frame.index, columns=frame.columns)
            for _ in range(times)]
