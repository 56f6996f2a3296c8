"""
Variable subsets and their evaluation against a fixed target.

VariableSubset is the canonical identity of a set of variable columns: a
sorted tuple of column positions with structural equality and hashing, so it
can be used directly as a deduplication key. SubsetEvaluator scores a subset
by the rank correlation between the target distances and the distances
induced by the subset's columns.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Tuple

import pandas as pd

from ..data_process.cleaning import as_frame
from ..data_process.transform import standardize
from ..exceptions import EmptySubset, InvalidParameter, RowCountMismatch
from .dissimilarity import DistanceStructure, resolve_index
from .rank_correlation import rank_correlation

__all__ = ["VariableSubset", "SubsetEvaluator", "coerce_variables"]


@dataclass(frozen=True)
class VariableSubset:
    columns: Tuple[int, ...] = ()

    def __post_init__(self):
        cols = tuple(sorted({int(c) for c in self.columns}))
        object.__setattr__(self, "columns", cols)

    @classmethod
    def of(cls, columns: Iterable[int]) -> "VariableSubset":
        return cls(tuple(columns))

    def __len__(self) -> int:
        return len(self.columns)

    def __iter__(self):
        return iter(self.columns)

    def __contains__(self, col) -> bool:
        return col in self.columns

    def with_column(self, col: int) -> "VariableSubset":
        return VariableSubset(self.columns + (col,))

    def without_column(self, col: int) -> "VariableSubset":
        return VariableSubset(tuple(c for c in self.columns if c != col))

    def sort_key(self) -> Tuple[int, Tuple[int, ...]]:
        """Smaller subsets first, then lexicographic column order."""
        return (len(self.columns), self.columns)

    def label(self, names: Optional[Sequence] = None, sep: str = ",") -> str:
        if names is None:
            return sep.join(str(c) for c in self.columns)
        return sep.join(str(names[c]) for c in self.columns)

    def __repr__(self):
        return f"VariableSubset({list(self.columns)})"


class SubsetEvaluator:
    """
    Score variable subsets of one matrix against a fixed target DistanceStructure.

    The evaluator only reads its inputs, so one instance can be shared by
    concurrent restarts.

    Args:
        variables: samples x variables DataFrame
        target: DistanceStructure of the fixed matrix, same samples in the same order
        index_name: dissimilarity index for the induced distances
        scale: z-score the variable columns once before any distance is computed
    """

    def __init__(self, variables: pd.DataFrame, target: DistanceStructure,
                 index_name: str, scale: bool = False):
        self._metric = resolve_index(index_name)
        if variables.shape[0] != target.n_samples:
            raise RowCountMismatch(
                f"variable matrix has {variables.shape[0]} rows, target distances cover "
                f"{target.n_samples} samples", expected=target.n_samples, actual=variables.shape[0])
        frame = standardize(variables) if scale else variables
        X = frame.to_numpy(dtype=float, copy=True)
        X.setflags(write=False)
        self._X = X
        self.target = target
        self.index_name = str(index_name).strip().lower()
        self.scale = scale
        self.samples = tuple(variables.index)
        self.column_names = tuple(variables.columns)

    @property
    def n_variables(self) -> int:
        return self._X.shape[1]

    def _check(self, subset: VariableSubset) -> None:
        if len(subset) == 0:
            raise EmptySubset("cannot evaluate an empty variable subset")
        if subset.columns[0] < 0 or subset.columns[-1] >= self.n_variables:
            raise InvalidParameter(
                f"subset {list(subset.columns)} refers to columns outside 0..{self.n_variables - 1}",
                name="subset", value=subset.columns)

    def distance(self, subset: VariableSubset) -> DistanceStructure:
        """Induced DistanceStructure of the subset's columns."""
        self._check(subset)
        X_sub = self._X[:, list(subset.columns)]
        return DistanceStructure(values=self._metric(X_sub), samples=self.samples,
                                 index_name=self.index_name)

    def score(self, subset: VariableSubset) -> float:
        """Rank correlation between the target and the subset's induced distances."""
        return rank_correlation(self.target, self.distance(subset))

    def full_set(self) -> VariableSubset:
        return VariableSubset(tuple(range(self.n_variables)))


def coerce_variables(variables, target: DistanceStructure) -> pd.DataFrame:
    """
    Variable matrix as a DataFrame on the target's sample index.

    Raises:
        RowCountMismatch: if the row count differs from the target's sample count
    """
    frame = as_frame(variables, prefix="V")
    if frame.shape[0] != target.n_samples:
        raise RowCountMismatch(
            f"fixed and variable matrices must have the same number of rows "
            f"({target.n_samples} vs {frame.shape[0]})",
            expected=target.n_samples, actual=frame.shape[0])
    if not isinstance(variables, pd.DataFrame):
        frame.index = pd.Index(target.samples)
    return frame
