from __future__ import annotations
import logging
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml

from .exceptions import ConstraintConflict, InvalidParameter

ROOT = Path(__file__).resolve().parents[2]
RESULTS = ROOT / "results"

# defaults of the classic BVstep / global BEST calls
DEFAULT_PERMUTATIONS = 999
DEFAULT_FIX_INDEX = "bray"
DEFAULT_VAR_INDEX = "euclidean"
DATA_TYPES = ("count", "prab")
NULL_METHODS = ("samp", "ind")
MATCH_METHODS = ("bvstep", "bioenv")
MISSING_STRATEGIES = ("zero_for_absent_taxa", "median_by_column", "drop_rows_if_any")


def setup_logging(level: int | str = logging.INFO) -> None:
    """Configure root logging for scripts and notebooks."""
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")


def _as_index_tuple(values, name: str) -> Tuple[int, ...]:
    if values is None:
        return ()
    if isinstance(values, int):
        values = [values]
    out = []
    for v in values:
        if isinstance(v, bool) or int(v) != v or int(v) < 0:
            raise InvalidParameter(f"{name} must hold non-negative column positions, got {v!r}",
                                   name=name, value=values)
        out.append(int(v))
    return tuple(sorted(set(out)))


def _check_positive_int(value, name: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise InvalidParameter(f"{name} must be a positive integer, got {value!r}",
                               name=name, value=value)


def _check_n_jobs(value) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value == 0:
        raise InvalidParameter(f"n_jobs must be a non-zero integer, got {value!r}",
                               name="n_jobs", value=value)


@dataclass(frozen=True)
class BVStepParams:
    """Parameters of the stepwise (BVstep) search."""
    var_index: str = DEFAULT_VAR_INDEX
    scale_var: bool = True
    max_rho: float = 0.95
    min_delta_rho: float = 0.001
    random_selection: bool = True
    prop_selected_var: float = 0.2
    num_restarts: int = 10
    var_always_include: Tuple[int, ...] = ()
    var_exclude: Tuple[int, ...] = ()
    output_best: int = 10
    n_jobs: int = 1

    def __post_init__(self):
        include = _as_index_tuple(self.var_always_include, "var_always_include")
        exclude = _as_index_tuple(self.var_exclude, "var_exclude")
        object.__setattr__(self, "var_always_include", include)
        object.__setattr__(self, "var_exclude", exclude)
        overlap = tuple(sorted(set(include) & set(exclude)))
        if overlap:
            raise ConstraintConflict(
                f"var_always_include and var_exclude share variables: {list(overlap)}",
                overlap=overlap)
        if not 0.0 < self.max_rho <= 1.0:
            raise InvalidParameter(f"max_rho must lie in (0, 1], got {self.max_rho}",
                                   name="max_rho", value=self.max_rho)
        if not self.min_delta_rho > 0.0:
            raise InvalidParameter(f"min_delta_rho must be > 0, got {self.min_delta_rho}",
                                   name="min_delta_rho", value=self.min_delta_rho)
        if not 0.0 < self.prop_selected_var <= 1.0:
            raise InvalidParameter(
                f"prop_selected_var must lie in (0, 1], got {self.prop_selected_var}",
                name="prop_selected_var", value=self.prop_selected_var)
        _check_positive_int(self.num_restarts, "num_restarts")
        _check_positive_int(self.output_best, "output_best")
        _check_n_jobs(self.n_jobs)

    @property
    def effective_restarts(self) -> int:
        # a fixed candidate pool makes every restart identical
        return self.num_restarts if self.random_selection else 1


@dataclass(frozen=True)
class BioEnvParams:
    """Parameters of the exhaustive (BIOENV) search."""
    var_index: str = DEFAULT_VAR_INDEX
    scale_var: bool = True
    upto: Optional[int] = None
    output_best: int = 10

    def __post_init__(self):
        if self.upto is not None:
            _check_positive_int(self.upto, "upto")
        _check_positive_int(self.output_best, "output_best")


@dataclass(frozen=True)
class PermutationParams:
    """Parameters of the null-model permutation run."""
    permutations: int = DEFAULT_PERMUTATIONS
    data_type: str = "count"
    method: str = "samp"
    n_jobs: int = 1
    progress_every: int = 100

    def __post_init__(self):
        _check_positive_int(self.permutations, "permutations")
        if self.data_type not in DATA_TYPES:
            raise InvalidParameter(f"data_type must be one of {DATA_TYPES}, got {self.data_type!r}",
                                   name="data_type", value=self.data_type)
        if self.method not in NULL_METHODS:
            raise InvalidParameter(f"method must be one of {NULL_METHODS}, got {self.method!r}",
                                   name="method", value=self.method)
        _check_n_jobs(self.n_jobs)
        _check_positive_int(self.progress_every, "progress_every")


@dataclass(frozen=True)
class AnalysisConfig:
    """Everything a global BEST run needs besides the two matrices."""
    method: str = "bvstep"
    fix_index: str = DEFAULT_FIX_INDEX
    scale_fix: bool = False
    seed: Optional[int] = None
    bvstep: BVStepParams = field(default_factory=BVStepParams)
    bioenv: BioEnvParams = field(default_factory=BioEnvParams)
    permutation: PermutationParams = field(default_factory=PermutationParams)
    fix_path: Optional[Path] = None
    var_path: Optional[Path] = None
    index_col: Optional[str] = None
    missing: Optional[str] = None

    def __post_init__(self):
        if self.method not in MATCH_METHODS:
            raise InvalidParameter(f"method must be one of {MATCH_METHODS}, got {self.method!r}",
                                   name="method", value=self.method)
        if self.missing is not None and self.missing not in MISSING_STRATEGIES:
            raise InvalidParameter(
                f"missing must be one of {MISSING_STRATEGIES}, got {self.missing!r}",
                name="missing", value=self.missing)


def _normalize_keys(section: Dict[str, Any]) -> Dict[str, Any]:
    # accept the dotted option names of the classic R calls (max.rho -> max_rho)
    return {str(k).replace(".", "_"): v for k, v in (section or {}).items()}


def _build(cls, section: Dict[str, Any], where: str):
    known = {f.name for f in fields(cls)}
    section = _normalize_keys(section)
    unknown = sorted(set(section) - known)
    if unknown:
        raise InvalidParameter(f"Unknown option(s) in '{where}': {unknown}", name=where, value=unknown)
    return cls(**section)


def load_analysis_config(path: str | Path) -> AnalysisConfig:
    """
    Load an analysis configuration from a YAML file.

    Expected layout (every key optional)::

        method: bvstep
        fix_index: bray
        scale_fix: false
        seed: 1
        fix_path: data/raw/taxa.csv
        var_path: data/raw/env.csv
        index_col: StationID
        missing: zero_for_absent_taxa
        bvstep: {max.rho: 0.95, num.restarts: 10, var.exclude: [0]}
        bioenv: {upto: 4}
        permutation: {permutations: 999, data_type: count}
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")
    with open(path, "r") as fh:
        raw = yaml.safe_load(fh) or {}
    if not isinstance(raw, dict):
        raise InvalidParameter(f"Configuration root must be a mapping, got {type(raw).__name__}")

    raw = _normalize_keys(raw)
    kwargs: Dict[str, Any] = {}
    for key, cls in (("bvstep", BVStepParams), ("bioenv", BioEnvParams),
                     ("permutation", PermutationParams)):
        if key in raw:
            kwargs[key] = _build(cls, raw.pop(key), key)
    for key in ("fix_path", "var_path"):
        if raw.get(key) is not None:
            p = Path(raw.pop(key))
            kwargs[key] = p if p.is_absolute() else (path.parent / p)
    kwargs.update(raw)
    return _build(AnalysisConfig, kwargs, "root")
