"""
Dissimilarity provider.

Turns a samples x variables matrix into a DistanceStructure for a named
index. The names and formulas follow the ecological indices of vegan's
``vegdist`` so results line up with published BIOENV / BVstep analyses:

- euclidean, manhattan: plain Minkowski distances
- bray: sum|x - y| / sum(x + y)
- jaccard: quantitative Jaccard, 2B / (1 + B) with B the Bray-Curtis distance
- canberra: (1/NZ) sum |x - y| / (x + y), NZ = variables not jointly zero
- kulczynski: 1 - (sum min(x, y) / sum x + sum min(x, y) / sum y) / 2
- gower: (1/M) sum |x - y| / range, M = number of variables
- chord, hellinger: Euclidean distance after row normalisation / Hellinger transform

The condensed layout is scipy's ``pdist`` layout: pairs (i, j), i < j, in
row-major order.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist, squareform

from ..data_process.transform import hellinger_transform, standardize
from ..exceptions import DimensionMismatch, UnknownIndex

__all__ = [
    "DistanceStructure",
    "SUPPORTED_INDICES",
    "dissimilarity",
    "resolve_index",
    "target_distance",
]


@dataclass(frozen=True, eq=False)
class DistanceStructure:
    """
    Symmetric, zero-diagonal pairwise dissimilarities over an ordered sample set.

    Attributes:
        values: condensed distance vector (read-only), length n(n-1)/2
        samples: sample labels in matrix order
        index_name: name of the index that produced the distances
    """
    values: np.ndarray
    samples: Tuple
    index_name: str

    def __post_init__(self):
        n = len(self.samples)
        vals = np.array(self.values, dtype=float, copy=True).ravel()
        if vals.size != n * (n - 1) // 2:
            raise DimensionMismatch(
                f"condensed distances of length {vals.size} do not match {n} samples",
                expected=n * (n - 1) // 2, actual=vals.size)
        vals.setflags(write=False)
        object.__setattr__(self, "values", vals)
        object.__setattr__(self, "samples", tuple(self.samples))

    @property
    def n_samples(self) -> int:
        return len(self.samples)

    def same_samples(self, other: "DistanceStructure") -> bool:
        return self.samples == other.samples

    def equals(self, other: "DistanceStructure") -> bool:
        return (self.same_samples(other) and self.index_name == other.index_name
                and np.array_equal(self.values, other.values, equal_nan=True))

    def to_square(self) -> np.ndarray:
        return squareform(self.values, checks=False)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(self.to_square(), index=list(self.samples), columns=list(self.samples))

    def __repr__(self):
        return f"DistanceStructure(index='{self.index_name}', samples={self.n_samples})"


# ------------------------------ index formulas ------------------------------

def _upper_pairs(M: np.ndarray) -> np.ndarray:
    i, j = np.triu_indices(M.shape[0], k=1)
    return M[i, j]


def _bray(X: np.ndarray) -> np.ndarray:
    with np.errstate(invalid="ignore", divide="ignore"):
        return pdist(X, "braycurtis")


def _jaccard(X: np.ndarray) -> np.ndarray:
    b = _bray(X)
    return 2.0 * b / (1.0 + b)


def _canberra(X: np.ndarray) -> np.ndarray:
    Z = (X == 0).astype(float)
    n_joint_zero = _upper_pairs(Z @ Z.T)
    nz = X.shape[1] - n_joint_zero
    with np.errstate(invalid="ignore", divide="ignore"):
        d = pdist(X, "canberra") / nz
    d[nz == 0] = np.nan
    return d


def _kulczynski(X: np.ndarray) -> np.ndarray:
    n = X.shape[0]
    row_sums = X.sum(axis=1)
    out = np.empty(n * (n - 1) // 2)
    pos = 0
    with np.errstate(invalid="ignore", divide="ignore"):
        for i in range(n - 1):
            mins = np.minimum(X[i], X[i + 1:]).sum(axis=1)
            out[pos:pos + mins.size] = 1.0 - 0.5 * (mins / row_sums[i] + mins / row_sums[i + 1:])
            pos += mins.size
    return out


def _gower(X: np.ndarray) -> np.ndarray:
    rng = X.max(axis=0) - X.min(axis=0)
    rng[rng == 0] = 1.0
    return pdist(X / rng, "cityblock") / X.shape[1]


def _chord(X: np.ndarray) -> np.ndarray:
    norms = np.sqrt((X * X).sum(axis=1, keepdims=True))
    norms[norms == 0] = 1.0
    return pdist(X / norms, "euclidean")


def _hellinger(X: np.ndarray) -> np.ndarray:
    return pdist(hellinger_transform(pd.DataFrame(X)).to_numpy(), "euclidean")


_INDEX_FUNCS: Dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "euclidean": lambda X: pdist(X, "euclidean"),
    "manhattan": lambda X: pdist(X, "cityblock"),
    "bray": _bray,
    "jaccard": _jaccard,
    "canberra": _canberra,
    "kulczynski": _kulczynski,
    "gower": _gower,
    "chord": _chord,
    "hellinger": _hellinger,
}

SUPPORTED_INDICES: Tuple[str, ...] = tuple(sorted(_INDEX_FUNCS))


def resolve_index(index_name: str) -> Callable[[np.ndarray], np.ndarray]:
    """Return the distance function for ``index_name`` or raise UnknownIndex."""
    func = _INDEX_FUNCS.get(str(index_name).strip().lower()) if index_name is not None else None
    if func is None:
        raise UnknownIndex(
            f"Unknown dissimilarity index {index_name!r}. Supported: {', '.join(SUPPORTED_INDICES)}",
            index_name=index_name, supported=SUPPORTED_INDICES)
    return func


def dissimilarity(matrix, index_name: str, samples: Optional[Sequence] = None) -> DistanceStructure:
    """
    Compute the DistanceStructure of ``matrix`` under ``index_name``.

    Args:
        matrix: DataFrame or 2-D array, samples as rows
        index_name: one of SUPPORTED_INDICES
        samples: sample labels; defaults to the DataFrame index or 0..n-1

    Raises:
        UnknownIndex: for unsupported index names
    """
    func = resolve_index(index_name)
    if samples is None:
        samples = tuple(matrix.index) if isinstance(matrix, pd.DataFrame) else range(len(matrix))
    X = matrix.to_numpy(dtype=float) if isinstance(matrix, pd.DataFrame) else np.asarray(matrix, dtype=float)
    if X.ndim == 1:
        X = X.reshape(-1, 1)
    if X.shape[0] != len(samples):
        raise DimensionMismatch(f"matrix has {X.shape[0]} rows but {len(samples)} sample labels",
                                expected=len(samples), actual=X.shape[0])
    return DistanceStructure(values=func(X), samples=tuple(samples),
                             index_name=str(index_name).strip().lower())


def target_distance(fixed: pd.DataFrame, index_name: str, scale: bool = False) -> DistanceStructure:
    """
    DistanceStructure of the fixed (target) matrix, optionally z-scored first.
    """
    frame = standardize(fixed) if scale else fixed
    return dissimilarity(frame, index_name)
