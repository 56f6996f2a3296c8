from __future__ import annotations
import numpy as np
from scipy.stats import rankdata

from ..exceptions import DimensionMismatch
from .dissimilarity import DistanceStructure

__all__ = ["rank_correlation", "spearman_vectors"]


def spearman_vectors(a: np.ndarray, b: np.ndarray) -> float:
    """
    Spearman correlation of two equal-length vectors.

    Pairs with a NaN on either side are dropped (complete cases). When fewer
    than two pairs remain, or either side is constant, the association is
    undefined and 0.0 is returned. The result is clipped into [-1, 1].
    """
    a = np.asarray(a, dtype=float)
    b = np.asarray(b, dtype=float)
    keep = ~(np.isnan(a) | np.isnan(b))
    if keep.sum() < 2:
        return 0.0
    ra = rankdata(a[keep])
    rb = rankdata(b[keep])
    ra = ra - ra.mean()
    rb = rb - rb.mean()
    denom = np.sqrt(np.dot(ra, ra) * np.dot(rb, rb))
    if denom == 0:
        return 0.0
    return float(np.clip(np.dot(ra, rb) / denom, -1.0, 1.0))


def rank_correlation(target: DistanceStructure, other: DistanceStructure) -> float:
    """
    Matching coefficient between two distance structures over the same samples.

    Raises:
        DimensionMismatch: if the sample sets or their order differ
    """
    if not target.same_samples(other):
        raise DimensionMismatch(
            f"distance structures cover different samples "
            f"({target.n_samples} vs {other.n_samples} samples, or a different order)",
            expected=target.n_samples, actual=other.n_samples)
    return spearman_vectors(target.values, other.values)
