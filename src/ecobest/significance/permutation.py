"""
Permutation engine: the null distribution of best-match scores.

Each iteration draws one column-margin-preserving randomization of the
(absolute-valued) variable matrix, re-runs the chosen matcher against the
same fixed target distances and keeps the best score. Iterations share only
read-only inputs and each owns a generator spawned from one SeedSequence, so
the distribution is identical whether it is built in a loop or on a worker
pool. A failing iteration aborts the run with PermutationFailure; a shorter
distribution is never returned.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

import numpy as np
import pandas as pd
from joblib import Parallel, delayed

from .._random import spawn_generators
from ..config import PermutationParams
from ..data_process.transform import absolute
from ..exceptions import PermutationFailure
from ..matching.dissimilarity import DistanceStructure
from ..matching.results import Matcher
from ..matching.subsets import coerce_variables
from .null_model import permute

logger = logging.getLogger(__name__)

__all__ = ["NullDistribution", "PermutationEngine"]


@dataclass(frozen=True, eq=False)
class NullDistribution:
    """
    Best-match scores of the permuted matrices, one per permutation.

    Attributes:
        scores: read-only array of best scores, in permutation order
        best_models: best subset (variable names) found on each permuted matrix
    """
    scores: np.ndarray
    best_models: Tuple[str, ...] = ()

    def __post_init__(self):
        scores = np.array(self.scores, dtype=float, copy=True).ravel()
        scores.setflags(write=False)
        object.__setattr__(self, "scores", scores)
        models = tuple(self.best_models)
        if models and len(models) != scores.size:
            raise ValueError(f"{len(models)} best models for {scores.size} scores")
        object.__setattr__(self, "best_models", models)

    def __len__(self) -> int:
        return int(self.scores.size)

    @property
    def n_permutations(self) -> int:
        return len(self)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame({
            "permutation": np.arange(1, len(self) + 1),
            "rho": self.scores,
            "best_model": list(self.best_models) if self.best_models else [None] * len(self),
        })


class PermutationEngine:
    """
    Build a NullDistribution by re-running ``matcher`` on randomized variable matrices.

    Args:
        matcher: an ExhaustiveMatcher or StepwiseMatcher, parameters fixed for the run
        params: PermutationParams (or keyword arguments to build one)
    """

    def __init__(self, matcher: Matcher, params: Optional[PermutationParams] = None, **kwargs):
        self.matcher = matcher
        self.params = params if params is not None else PermutationParams(**kwargs)

    def _iteration(self, i: int, target: DistanceStructure, base: pd.DataFrame,
                   rng: np.random.Generator) -> Tuple[float, str]:
        p = self.params
        try:
            perm_rng, search_rng = rng.spawn(2)
            permuted = permute(base, fixed_margin="columns", data_type=p.data_type,
                               times=1, method=p.method, rng=perm_rng)[0]
            result = self.matcher.search(target, permuted, rng=search_rng)
        except Exception as exc:
            raise PermutationFailure(
                f"permutation {i + 1}/{p.permutations} failed: {exc}",
                iteration=i, n_permutations=p.permutations) from exc
        return result.best_model_rho, result.best_model_vars

    def run(self, target: DistanceStructure, variables, rng=None) -> NullDistribution:
        """
        Run all permutations.

        Args:
            target: fixed DistanceStructure used for the observed statistic
            variables: the original variable matrix; absolute values are permuted
            rng: seed, SeedSequence or Generator

        Raises:
            PermutationFailure: as soon as one iteration fails
        """
        p = self.params
        base = absolute(coerce_variables(variables, target))
        generators = spawn_generators(rng, p.permutations)
        logger.info(f"Running {p.permutations} permutations ({self.matcher.method}, "
                    f"data_type={p.data_type}, n_jobs={p.n_jobs})")

        if p.n_jobs == 1:
            outcomes = []
            for i, g in enumerate(generators):
                outcomes.append(self._iteration(i, target, base, g))
                if (i + 1) % p.progress_every == 0:
                    logger.info(f"  Permutation {i + 1}/{p.permutations}")
        else:
            outcomes = Parallel(n_jobs=p.n_jobs, prefer="threads")(
                delayed(self._iteration)(i, target, base, g) for i, g in enumerate(generators))

        scores: Sequence[float] = [o[0] for o in outcomes]
        null = NullDistribution(scores=np.asarray(scores), best_models=tuple(o[1] for o in outcomes))
        if len(null) != p.permutations:
            raise PermutationFailure(
                f"expected {p.permutations} permuted scores, collected {len(null)}",
                iteration=len(null), n_permutations=p.permutations)
        return null
