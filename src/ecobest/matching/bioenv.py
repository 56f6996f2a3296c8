"""
Exhaustive best-subset matching (BIOENV).

Every non-empty subset of the variable columns (optionally only up to
``upto`` columns) is scored against the fixed target distances; the subset
with the highest rank correlation wins. Ties go to the smaller subset, then
to the lexicographically lower column order, so the search is deterministic.

Cost is 2^k - 1 evaluations for k variables. Callers bound k.
"""
from __future__ import annotations

import logging
from itertools import combinations
from math import comb
from typing import List, Optional

from ..config import BioEnvParams, DEFAULT_FIX_INDEX
from ..data_process.cleaning import align_samples
from ..data_process.validators import validate_matrix
from .dissimilarity import DistanceStructure, target_distance
from .results import ScoredSubset, SearchResult, rank_scored
from .subsets import SubsetEvaluator, VariableSubset, coerce_variables

logger = logging.getLogger(__name__)

__all__ = ["ExhaustiveMatcher", "bio_env"]

# above this many subsets a run is worth a warning
LARGE_SEARCH = 2 ** 20


class ExhaustiveMatcher:
    """BIOENV-style search over all variable subsets."""

    method = "bioenv"

    def __init__(self, params: Optional[BioEnvParams] = None, **kwargs):
        self.params = params if params is not None else BioEnvParams(**kwargs)

    def search(self, target: DistanceStructure, variables, rng=None) -> SearchResult:
        """
        Find the best subset of ``variables`` for ``target``.

        ``rng`` is accepted for interface compatibility with the stepwise
        search and ignored.
        """
        p = self.params
        var_df = coerce_variables(variables, target)
        evaluator = SubsetEvaluator(var_df, target, p.var_index, scale=p.scale_var)
        k = evaluator.n_variables
        upto = k if p.upto is None else min(p.upto, k)

        n_subsets = sum(comb(k, size) for size in range(1, upto + 1))
        if n_subsets > LARGE_SEARCH:
            logger.warning(f"Exhaustive search over {k} variables evaluates {n_subsets} subsets")

        top: List[ScoredSubset] = []
        per_size: List[ScoredSubset] = []
        for size in range(1, upto + 1):
            scored = [ScoredSubset(s, evaluator.score(s))
                      for s in (VariableSubset(cols) for cols in combinations(range(k), size))]
            ranked = rank_scored(scored)
            per_size.append(ranked[0])
            top = rank_scored(top + ranked[:p.output_best])[:p.output_best]

        logger.debug(f"BIOENV evaluated {n_subsets} subsets; best rho={top[0].score:.4f}")
        return SearchResult(
            order_by_best=tuple(top),
            order_by_i_comb=tuple(per_size),
            column_names=evaluator.column_names,
            method=self.method,
            n_evaluated=n_subsets,
            meta={"upto": upto, "var_index": p.var_index, "scale_var": p.scale_var},
        )


def bio_env(fix_mat, var_mat, *,
            fix_dist_method: str = DEFAULT_FIX_INDEX,
            var_dist_method: str = "euclidean",
            scale_fix: bool = False,
            scale_var: bool = True,
            upto: Optional[int] = None,
            output_best: int = 10) -> SearchResult:
    """
    One-call BIOENV analysis.

    - Align and validate the fixed (e.g. taxa) and variable (e.g. environment) matrices.
    - Build the fixed distances with ``fix_dist_method`` (optionally z-scored first).
    - Score every subset of the variables and return the ranked SearchResult.
    """
    fix_df, var_df = align_samples(fix_mat, var_mat)
    params = BioEnvParams(var_index=var_dist_method, scale_var=scale_var,
                          upto=upto, output_best=output_best)
    fix_df = validate_matrix(fix_df, "fix_mat")
    var_df = validate_matrix(var_df, "var_mat")
    target = target_distance(fix_df, fix_dist_method, scale=scale_fix)
    return ExhaustiveMatcher(params).search(target, var_df)
