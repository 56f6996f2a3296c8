"""
Stepwise best-subset matching (BVstep).

For variable counts where the exhaustive search is out of reach, the subset
that maximizes the rank correlation with the fixed target distances is
approximated by a forward/backward local search with random restarts.

Per analysis
------------
1. Pruning: the score of the full set (every variable not in ``var_exclude``)
   is compared with the score of the full set minus each variable. Variables
   whose removal changes the score by less than ``min_delta_rho`` join the
   permanent exclusion set (with ``var_exclude``). Always-include variables
   are never pruned. A pruning pass that would leave nothing to search is
   dropped with a warning.
2. Candidate pool: with random selection every restart samples
   ``floor(prop_selected_var * k)`` (at least one) of the remaining optional
   variables and adds the always-include set. The floor carries a 1e-9
   tolerance, so 0.29 * 100 selects 29. Without random selection the pool is
   every non-excluded variable and a single restart runs.

Per restart (state machine FORWARD -> BACKWARD -> FORWARD ... -> TERMINATED)
---------------------------------------------------------------------------
- The search starts from the always-include set (the empty set, scored 0 and
  never reported, when there is none).
- FORWARD adds the single pool variable giving the best score. The step must
  beat the running best strictly, otherwise the restart stops at a local
  optimum. FORWARD only runs while the best score is below ``max_rho``, the
  last improvement exceeds ``min_delta_rho`` and the best subset is smaller
  than the pool.
- BACKWARD removes the single removable variable giving the best score and
  keeps going while each removal is a new running best and more than one
  variable is left; then control returns to FORWARD.

After all restarts the visited subsets are deduplicated and ranked
(``order_by_best``) and the best subset of each size is reported
(``order_by_i_comb``).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from joblib import Parallel, delayed

from .._random import spawn_generators
from ..config import BVStepParams, DEFAULT_FIX_INDEX
from ..data_process.cleaning import align_samples
from ..data_process.validators import validate_matrix
from ..exceptions import InvalidParameter
from .dissimilarity import DistanceStructure, target_distance
from .results import ScoredSubset, SearchResult, best_per_size, rank_scored
from .subsets import SubsetEvaluator, VariableSubset, coerce_variables

logger = logging.getLogger(__name__)

__all__ = ["Phase", "SearchState", "RestartTrace", "StepwiseMatcher", "bv_step"]


class Phase(Enum):
    FORWARD = "F"
    BACKWARD = "B"
    TERMINATED = "T"


@dataclass(frozen=True)
class SearchState:
    subset: VariableSubset
    score: float
    step: int
    direction: str


@dataclass(frozen=True)
class RestartTrace:
    """
    What one restart did.

    Attributes:
        pool: candidate variables of the restart
        history: every state visited, in step order (the empty start excluded)
        termination: 'max_rho', 'min_delta_rho', 'pool_exhausted' or 'local_optimum'
        n_evaluated: subset evaluations performed
    """
    pool: VariableSubset
    history: Tuple[SearchState, ...]
    termination: str
    n_evaluated: int


def _best_candidate(evaluator: SubsetEvaluator,
                    candidates: Sequence[VariableSubset]) -> Tuple[VariableSubset, float]:
    # first maximum in canonical order wins
    best_subset, best_score = None, -np.inf
    for subset in sorted(candidates, key=VariableSubset.sort_key):
        score = evaluator.score(subset)
        if score > best_score:
            best_subset, best_score = subset, score
    return best_subset, best_score


def _run_restart(evaluator: SubsetEvaluator, pool: VariableSubset,
                 include: VariableSubset, params: BVStepParams) -> RestartTrace:
    step = 1
    n_eval = 0
    if len(include) == 0:
        best = SearchState(include, 0.0, step, Phase.FORWARD.value)
    else:
        best = SearchState(include, evaluator.score(include), step, Phase.FORWARD.value)
        n_eval += 1
    states: List[SearchState] = [best]
    delta = np.inf
    phase = Phase.FORWARD
    termination = ""

    while phase is not Phase.TERMINATED:
        if phase is Phase.FORWARD:
            if best.score >= params.max_rho:
                termination, phase = "max_rho", Phase.TERMINATED
                continue
            if delta <= params.min_delta_rho:
                termination, phase = "min_delta_rho", Phase.TERMINATED
                continue
            if len(best.subset) >= len(pool):
                termination, phase = "pool_exhausted", Phase.TERMINATED
                continue

            candidates = [best.subset.with_column(v) for v in pool if v not in best.subset]
            subset, score = _best_candidate(evaluator, candidates)
            n_eval += len(candidates)
            step += 1
            state = SearchState(subset, score, step, Phase.FORWARD.value)
            states.append(state)
            # a tie with the running best is not an improvement
            if score > best.score:
                delta, best = score - best.score, state
                phase = Phase.BACKWARD
            else:
                termination, phase = "local_optimum", Phase.TERMINATED

        else:
            removable = [v for v in best.subset if v not in include]
            if len(best.subset) <= 1 or not removable:
                phase = Phase.FORWARD
                continue
            candidates = [best.subset.without_column(v) for v in removable]
            subset, score = _best_candidate(evaluator, candidates)
            n_eval += len(candidates)
            step += 1
            state = SearchState(subset, score, step, Phase.BACKWARD.value)
            states.append(state)
            if score > best.score:
                delta, best = score - best.score, state
            else:
                phase = Phase.FORWARD

    history = tuple(s for s in states if len(s.subset) > 0)
    return RestartTrace(pool=pool, history=history, termination=termination, n_evaluated=n_eval)


class StepwiseMatcher:
    """BVstep-style forward/backward search with random restarts."""

    method = "bvstep"

    def __init__(self, params: Optional[BVStepParams] = None, **kwargs):
        self.params = params if params is not None else BVStepParams(**kwargs)

    # ------------------------------ phases ------------------------------

    def _check_constraints(self, k: int) -> None:
        p = self.params
        for name, cols in (("var_always_include", p.var_always_include),
                           ("var_exclude", p.var_exclude)):
            bad = [c for c in cols if c >= k]
            if bad:
                raise InvalidParameter(f"{name} refers to columns {bad} but the variable matrix "
                                       f"has only {k} columns", name=name, value=cols)

    def _prune(self, evaluator: SubsetEvaluator) -> Tuple[Tuple[int, ...], Dict]:
        """Variables whose removal from the full set barely changes the score."""
        p = self.params
        # user-excluded variables never enter any evaluated subset
        full = VariableSubset(tuple(j for j in range(evaluator.n_variables) if j not in p.var_exclude))
        if len(full) < 2:
            return (), {"full_set_rho": None, "drop_one_rho": {}, "n_evaluated": 0}
        full_score = evaluator.score(full)
        drop_one: Dict[int, float] = {}
        pruned = []
        for j in full:
            if j in p.var_always_include:
                continue
            drop_one[j] = evaluator.score(full.without_column(j))
            if abs(drop_one[j] - full_score) < p.min_delta_rho:
                pruned.append(j)
        if pruned:
            logger.debug(f"Pruned variables {pruned} (full-set rho={full_score:.4f})")
        return tuple(pruned), {"full_set_rho": full_score, "drop_one_rho": drop_one,
                               "n_evaluated": 1 + len(drop_one)}

    def _pool(self, available: Sequence[int], k: int,
              rng: Optional[np.random.Generator]) -> VariableSubset:
        p = self.params
        include = p.var_always_include
        if not p.random_selection:
            return VariableSubset(tuple(available) + include)
        candidates = [j for j in available if j not in include]
        if not candidates:
            return VariableSubset(include)
        n_selected = max(1, min(len(candidates), int(np.floor(p.prop_selected_var * k + 1e-9))))
        chosen = rng.choice(np.asarray(candidates), size=n_selected, replace=False)
        return VariableSubset(tuple(int(c) for c in chosen) + include)

    def _restart(self, evaluator, available, k, rng) -> RestartTrace:
        pool = self._pool(available, k, rng)
        trace = _run_restart(evaluator, pool, VariableSubset(self.params.var_always_include),
                             self.params)
        logger.debug(f"Restart over {len(pool)} candidates stopped ({trace.termination}) "
                     f"after {len(trace.history)} steps")
        return trace

    # ------------------------------ search ------------------------------

    def search(self, target: DistanceStructure, variables, rng=None) -> SearchResult:
        """
        Run the pruning pass and all restarts for ``variables`` against ``target``.

        Args:
            target: DistanceStructure of the fixed matrix
            variables: samples x variables DataFrame (or array on the target's samples)
            rng: seed, SeedSequence or Generator; each restart gets its own child

        Raises:
            RowCountMismatch: if the sample counts differ (before any search work)
            InvalidParameter: for constraint columns out of range or an empty pool
        """
        p = self.params
        var_df = coerce_variables(variables, target)
        k = var_df.shape[1]
        self._check_constraints(k)
        evaluator = SubsetEvaluator(var_df, target, p.var_index, scale=p.scale_var)

        if not [j for j in range(k) if j not in p.var_exclude]:
            raise InvalidParameter("every variable is excluded; nothing left to search",
                                   name="var_exclude", value=p.var_exclude)
        pruned, pruning = self._prune(evaluator)
        available = [j for j in range(k) if j not in p.var_exclude and j not in pruned]
        if not available:
            logger.warning("Pruning removed every candidate variable; searching without pruning")
            pruned = ()
            available = [j for j in range(k) if j not in p.var_exclude]
        exclude = tuple(sorted(set(p.var_exclude) | set(pruned)))

        n_restarts = p.effective_restarts
        generators = spawn_generators(rng, n_restarts)
        if p.n_jobs == 1 or n_restarts == 1:
            traces = [self._restart(evaluator, available, k, g) for g in generators]
        else:
            traces = Parallel(n_jobs=p.n_jobs, prefer="threads")(
                delayed(self._restart)(evaluator, available, k, g) for g in generators)

        # merge the per-restart results; subset identity is the dedup key
        seen: Dict[VariableSubset, float] = {}
        for trace in traces:
            for state in trace.history:
                seen.setdefault(state.subset, state.score)
        scored = [ScoredSubset(s, v) for s, v in seen.items()]
        ranked = rank_scored(scored)
        largest_pool = max(len(t.pool) for t in traces)

        return SearchResult(
            order_by_best=tuple(ranked[:p.output_best]),
            order_by_i_comb=tuple(best_per_size(scored, range(1, largest_pool + 1))),
            column_names=evaluator.column_names,
            var_always_include=p.var_always_include,
            var_exclude=exclude,
            method=self.method,
            n_evaluated=pruning["n_evaluated"] + sum(t.n_evaluated for t in traces),
            meta={"restarts": tuple(traces), "pruned": pruned, **pruning},
        )


def bv_step(fix_mat, var_mat, *,
            fix_dist_method: str = DEFAULT_FIX_INDEX,
            var_dist_method: str = "euclidean",
            scale_fix: bool = False,
            scale_var: bool = True,
            max_rho: float = 0.95,
            min_delta_rho: float = 0.001,
            random_selection: bool = True,
            prop_selected_var: float = 0.2,
            num_restarts: int = 10,
            var_always_include: Optional[Sequence[int]] = None,
            var_exclude: Optional[Sequence[int]] = None,
            output_best: int = 10,
            seed=None,
            n_jobs: int = 1) -> SearchResult:
    """
    One-call BVstep analysis with the classic defaults.

    Column positions in ``var_always_include`` / ``var_exclude`` are zero-based.
    """
    fix_df, var_df = align_samples(fix_mat, var_mat)
    params = BVStepParams(
        var_index=var_dist_method, scale_var=scale_var, max_rho=max_rho,
        min_delta_rho=min_delta_rho, random_selection=random_selection,
        prop_selected_var=prop_selected_var, num_restarts=num_restarts,
        var_always_include=() if var_always_include is None else var_always_include,
        var_exclude=() if var_exclude is None else var_exclude,
        output_best=output_best, n_jobs=n_jobs)
    fix_df = validate_matrix(fix_df, "fix_mat")
    var_df = validate_matrix(var_df, "var_mat")
    target = target_distance(fix_df, fix_dist_method, scale=scale_fix)
    return StepwiseMatcher(params).search(target, var_df, rng=seed)
