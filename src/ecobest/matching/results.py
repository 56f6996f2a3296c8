from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

import pandas as pd

from .subsets import VariableSubset

__all__ = ["ScoredSubset", "SearchResult", "Matcher", "rank_scored", "best_per_size"]


@dataclass(frozen=True)
class ScoredSubset:
    subset: VariableSubset
    score: float

    @property
    def n_var(self) -> int:
        return len(self.subset)


def rank_scored(items: Iterable[ScoredSubset]) -> List[ScoredSubset]:
    """Highest score first; ties go to the smaller, then lexicographically lower subset."""
    return sorted(items, key=lambda s: (-s.score, s.subset.sort_key()))


def best_per_size(items: Iterable[ScoredSubset], sizes: Iterable[int]) -> List[ScoredSubset]:
    """Best-scoring subset for each requested size; sizes never visited are skipped."""
    by_size: Dict[int, List[ScoredSubset]] = {}
    for item in items:
        by_size.setdefault(item.n_var, []).append(item)
    return [rank_scored(by_size[k])[0] for k in sizes if k in by_size]


@dataclass(frozen=True)
class SearchResult:
    """
    Outcome of one best-subset search.

    Attributes:
        order_by_best: distinct subsets ranked by score (truncated to output_best)
        order_by_i_comb: best subset for each subset size
        column_names: names of the variable matrix columns
        var_always_include: columns forced into every subset
        var_exclude: columns kept out of every subset (user-given plus pruned)
        method: 'bioenv' or 'bvstep'
        n_evaluated: number of subset evaluations performed
        meta: free-form diagnostics (restart traces, pruning scores)
    """
    order_by_best: Tuple[ScoredSubset, ...]
    order_by_i_comb: Tuple[ScoredSubset, ...]
    column_names: Tuple
    var_always_include: Tuple[int, ...] = ()
    var_exclude: Tuple[int, ...] = ()
    method: str = "bvstep"
    n_evaluated: int = 0
    meta: Optional[Dict] = field(default=None, compare=False)

    @property
    def best(self) -> ScoredSubset:
        return self.order_by_best[0]

    @property
    def best_subset(self) -> VariableSubset:
        return self.best.subset

    @property
    def best_model_rho(self) -> float:
        return self.best.score

    @property
    def best_model_vars(self) -> str:
        return self.best.subset.label(self.column_names)

    def _frame(self, rows: Iterable[ScoredSubset]) -> pd.DataFrame:
        return pd.DataFrame(
            [{"var_incl": r.subset.label(), "var_names": r.subset.label(self.column_names),
              "n_var": r.n_var, "rho": r.score} for r in rows],
            columns=["var_incl", "var_names", "n_var", "rho"],
        )

    def to_frame(self, which: str = "best") -> pd.DataFrame:
        """Tabulate 'best' (order_by_best) or 'size' (order_by_i_comb)."""
        if which == "best":
            return self._frame(self.order_by_best)
        if which == "size":
            return self._frame(self.order_by_i_comb)
        raise ValueError("which must be 'best' or 'size'")

    def __repr__(self):
        return (f"SearchResult(method='{self.method}', best='{self.best_model_vars}', "
                f"rho={self.best_model_rho:.4f}, evaluated={self.n_evaluated})")


class Matcher(Protocol):
    """Anything that finds the best-matching variable subset for a fixed target."""
    method: str

    def search(self, target, variables, rng=None) -> SearchResult:
        ...
