from __future__ import annotations
from dataclasses import dataclass

import numpy as np

from ..exceptions import InvalidParameter

__all__ = ["SignificanceResult", "estimate_significance"]


@dataclass(frozen=True)
class SignificanceResult:
    observed: float
    t: int  # null scores >= observed
    n_permutations: int
    p_value: float


def estimate_significance(observed: float, null) -> SignificanceResult:
    """
    Upper-bound Monte Carlo p-value of an observed best-match score.

    p = (t + 1) / (N + 1), where t counts null scores >= observed. The bound
    never reaches 0: N permutations cannot certify anything below 1/(N + 1).

    Args:
        observed: best score on the real data
        null: NullDistribution or sequence of permuted best scores
    """
    scores = np.asarray(getattr(null, "scores", null), dtype=float).ravel()
    n = int(scores.size)
    if n == 0:
        raise InvalidParameter("the null distribution is empty (N = 0)", name="n_permutations", value=0)
    if observed is None or np.isnan(observed):
        raise InvalidParameter(f"observed score must be a number, got {observed!r}",
                               name="observed", value=observed)
    t = int(np.sum(scores >= observed))
    return SignificanceResult(observed=float(observed), t=t, n_permutations=n,
                              p_value=(t + 1) / (n + 1))
